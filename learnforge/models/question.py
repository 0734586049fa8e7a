"""
Questions and assessment results exchanged with the Reasoning Provider.

Both are ephemeral: a Question lives for one question/answer cycle and an
AssessmentResult is produced once per submitted answer.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

try:
    from .concept import Concept, MasteryLevel
except ImportError:
    from learnforge.models.concept import Concept, MasteryLevel


# Sentinel id marking a locally generated fallback question
FALLBACK_QUESTION_ID = "fallback"

EVALUATION_APOLOGY = "An error occurred during evaluation. Please try again."


class QuestionType(str, Enum):
    """Question formats, one per mastery level by convention."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"
    SCENARIO = "SCENARIO"
    OPEN_REASONING = "OPEN_REASONING"

    @classmethod
    def for_level(cls, level: MasteryLevel) -> "QuestionType":
        """Conventional question type for an effective mastery level."""
        return LEVEL_QUESTION_TYPES.get(MasteryLevel(level), cls.MULTIPLE_CHOICE)


LEVEL_QUESTION_TYPES = {
    MasteryLevel.RECOGNITION: QuestionType.MULTIPLE_CHOICE,
    MasteryLevel.UNDERSTANDING: QuestionType.SHORT_ANSWER,
    MasteryLevel.APPLICATION: QuestionType.SCENARIO,
    MasteryLevel.REASONING: QuestionType.OPEN_REASONING,
}


@dataclass(frozen=True)
class Question:
    """
    A single comprehension check.

    Attributes:
        question_id: Unique identifier (FALLBACK_QUESTION_ID for fallbacks)
        concept_id: Owning concept
        text: Question text shown to the learner
        question_type: Format tag
        options: Choices, present only for multiple choice
        correct_answer_context: Hidden key points used only for evaluation
    """
    question_id: str
    concept_id: str
    text: str
    question_type: QuestionType
    options: Optional[tuple] = None
    correct_answer_context: str = ""

    @classmethod
    def new(
        cls,
        concept_id: str,
        text: str,
        question_type: QuestionType,
        options: Optional[List[str]] = None,
        correct_answer_context: str = "",
    ) -> "Question":
        """Create a question with a fresh id."""
        return cls(
            question_id=f"q-{uuid.uuid4()}",
            concept_id=concept_id,
            text=text,
            question_type=QuestionType(question_type),
            options=tuple(options) if options else None,
            correct_answer_context=correct_answer_context,
        )

    @classmethod
    def fallback(cls, concept: Concept) -> "Question":
        """Deterministic question used when generation fails."""
        return cls(
            question_id=FALLBACK_QUESTION_ID,
            concept_id=concept.concept_id,
            text=f"Explain the concept of {concept.title}",
            question_type=QuestionType.SHORT_ANSWER,
            options=None,
            correct_answer_context=concept.description,
        )

    @property
    def is_fallback(self) -> bool:
        return self.question_id == FALLBACK_QUESTION_ID

    def to_dict(self, include_answer_context: bool = False) -> Dict[str, Any]:
        """
        Convert to dictionary.

        The answer context is omitted unless requested, since it must never
        reach the learner.
        """
        data = {
            "id": self.question_id,
            "concept_id": self.concept_id,
            "text": self.text,
            "type": self.question_type.value,
            "options": list(self.options) if self.options else None,
        }
        if include_answer_context:
            data["correct_answer_context"] = self.correct_answer_context
        return data


@dataclass(frozen=True)
class AssessmentResult:
    """
    Outcome of evaluating one answer.

    Attributes:
        is_correct: Binary verdict
        explanation: Constructive feedback or correction
        suggested_level: Optional level the evaluator proposes (advisory only)
    """
    is_correct: bool
    explanation: str
    suggested_level: Optional[MasteryLevel] = None

    @classmethod
    def fallback(cls) -> "AssessmentResult":
        """Result used when evaluation fails; counts as an incorrect turn."""
        return cls(is_correct=False, explanation=EVALUATION_APOLOGY)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_correct": self.is_correct,
            "explanation": self.explanation,
            "suggested_level": int(self.suggested_level) if self.suggested_level is not None else None,
        }
