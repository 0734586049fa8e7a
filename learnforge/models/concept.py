"""
Concept and mistake records.

Concepts are immutable values: every state change (level up, new mistake)
produces a new Concept via `dataclasses.replace`, so the orchestrator and the
host-held graph can never diverge through shared mutation.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Tuple

try:
    from ..errors import ValidationError
except ImportError:
    from learnforge.errors import ValidationError


class MasteryLevel(IntEnum):
    """Ordered depth of demonstrated understanding for a concept."""

    LOCKED = 0
    RECOGNITION = 1  # Definitions, terminology
    UNDERSTANDING = 2  # Explain in own words
    APPLICATION = 3  # Scenarios
    REASONING = 4  # Trade-offs, edge cases

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @property
    def description(self) -> str:
        return LEVEL_DESCRIPTIONS[self]


LEVEL_DESCRIPTIONS = {
    MasteryLevel.LOCKED: "Not yet attempted",
    MasteryLevel.RECOGNITION: "Definitions and terminology",
    MasteryLevel.UNDERSTANDING: "Explain in your own words",
    MasteryLevel.APPLICATION: "Apply to new scenarios",
    MasteryLevel.REASONING: "Trade-offs and edge cases",
}


@dataclass(frozen=True)
class MistakeRecord:
    """
    One incorrect submission, kept for review and summarization.

    Attributes:
        mistake_id: Unique identifier
        timestamp: Creation time (epoch milliseconds)
        question: Question text that was answered
        user_answer: Learner's submitted answer
        correction: Corrective explanation from the evaluator
        misunderstanding_type: Free-text category label
    """
    mistake_id: str
    timestamp: int
    question: str
    user_answer: str
    correction: str
    misunderstanding_type: str

    @classmethod
    def create(
        cls,
        question: str,
        user_answer: str,
        correction: str,
        misunderstanding_type: str,
    ) -> "MistakeRecord":
        """Build a new record stamped with a fresh id and the current time."""
        return cls(
            mistake_id=f"mr-{uuid.uuid4()}",
            timestamp=int(time.time() * 1000),
            question=question,
            user_answer=user_answer,
            correction=correction,
            misunderstanding_type=misunderstanding_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.mistake_id,
            "timestamp": self.timestamp,
            "question": self.question,
            "user_answer": self.user_answer,
            "correction": self.correction,
            "misunderstanding_type": self.misunderstanding_type,
        }


@dataclass(frozen=True)
class Concept:
    """
    An atomic unit of material to be learned.

    Attributes:
        concept_id: Unique, stable slug
        title: Short display title
        description: Concise definition
        dependencies: Identifiers of prerequisite concepts (order irrelevant)
        mastery_level: Current mastery level
        mistakes: Mistake records in creation order
    """
    concept_id: str
    title: str
    description: str = ""
    dependencies: frozenset = field(default_factory=frozenset)
    mastery_level: MasteryLevel = MasteryLevel.LOCKED
    mistakes: Tuple[MistakeRecord, ...] = ()

    def __post_init__(self):
        if not self.concept_id or not self.concept_id.strip():
            raise ValidationError("Concept id cannot be empty")

        if not self.title or not self.title.strip():
            raise ValidationError(f"Concept {self.concept_id!r} must have a title")

        # Normalize container types so equality and hashing stay value-based
        object.__setattr__(self, "dependencies", frozenset(self.dependencies))
        object.__setattr__(self, "mistakes", tuple(self.mistakes))
        object.__setattr__(self, "mastery_level", MasteryLevel(self.mastery_level))

        if self.concept_id in self.dependencies:
            raise ValidationError(
                f"Concept {self.concept_id!r} cannot depend on itself"
            )

    @property
    def effective_level(self) -> MasteryLevel:
        """Level used for question difficulty; LOCKED is asked at RECOGNITION."""
        if self.mastery_level == MasteryLevel.LOCKED:
            return MasteryLevel.RECOGNITION
        return self.mastery_level

    @property
    def is_mastered(self) -> bool:
        return self.mastery_level == MasteryLevel.REASONING

    def with_level(self, level: MasteryLevel) -> "Concept":
        return replace(self, mastery_level=MasteryLevel(level))

    def with_mistake(self, mistake: MistakeRecord) -> "Concept":
        return replace(self, mistakes=self.mistakes + (mistake,))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (dependencies sorted for stable output)."""
        return {
            "id": self.concept_id,
            "title": self.title,
            "description": self.description,
            "dependencies": sorted(self.dependencies),
            "mastery_level": int(self.mastery_level),
            "mistakes": [m.to_dict() for m in self.mistakes],
        }

    @classmethod
    def from_extraction(
        cls,
        concept_id: str,
        title: str,
        description: Optional[str] = None,
        dependencies: Optional[Iterable[str]] = None,
    ) -> "Concept":
        """
        Build a fresh LOCKED concept from extracted data.

        Self references in the dependency list are dropped rather than
        rejected, since extraction output is not under our control.
        """
        deps = frozenset(d for d in (dependencies or []) if d and d != concept_id)
        return cls(
            concept_id=concept_id,
            title=title,
            description=description or "",
            dependencies=deps,
        )
