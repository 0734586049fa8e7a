"""
Reasoning Provider - the single capability interface behind all LLM work.

A provider extracts concepts from raw text, generates a question for a
concept at a given level, evaluates a learner's answer and writes summary
prose. Backends differ only in how a prompt is sent (`_complete`); prompts,
JSON parsing and schema validation are shared here so both backends behave
identically.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Callable, Dict, List, Optional, Sequence

from langchain_core.prompts import PromptTemplate
from loguru import logger

try:
    from ..config import ModelConfig
    from ..errors import (
        ExtractionError,
        ProviderError,
        ProviderTimeoutError,
        ValidationError,
    )
    from ..models.concept import Concept, MasteryLevel
    from ..models.question import AssessmentResult, Question, QuestionType
    from ..utils.validation import (
        SchemaValidator,
        assessment_validator,
        concept_list_validator,
        extract_json,
        question_validator,
        repair_concept_payload,
    )
except ImportError:
    from learnforge.config import ModelConfig
    from learnforge.errors import (
        ExtractionError,
        ProviderError,
        ProviderTimeoutError,
        ValidationError,
    )
    from learnforge.models.concept import Concept, MasteryLevel
    from learnforge.models.question import AssessmentResult, Question, QuestionType
    from learnforge.utils.validation import (
        SchemaValidator,
        assessment_validator,
        concept_list_validator,
        extract_json,
        question_validator,
        repair_concept_payload,
    )


EXTRACTION_SYSTEM = """You are an expert curriculum designer.
Analyze the provided learning material and extract a structured Concept Graph.
Focus on key concepts, not trivial details.
Identify dependencies (which concepts must be understood before others).
Return a JSON object with a "concepts" array using this exact structure:
{
  "concepts": [
    {
      "id": "unique-slug-identifier",
      "title": "Concept Title",
      "description": "A concise definition",
      "dependencies": ["ids-of-prerequisite-concepts-from-this-list"]
    }
  ]
}"""

QUESTION_SYSTEM = """You are an expert educator creating assessment questions.

Level 1 (Recognition): Multiple choice. Focus on definition or basic identification.
Level 2 (Understanding): Short answer. Ask to explain in own words or fill in the gap.
Level 3 (Application): Scenario based. Apply the concept to a new situation.
Level 4 (Reasoning): Complex open reasoning. Compare/contrast or discuss trade-offs.

Return JSON with this exact structure:
{
  "text": "The question text",
  "type": "MULTIPLE_CHOICE" | "SHORT_ANSWER" | "SCENARIO" | "OPEN_REASONING",
  "options": ["option1", "option2", "option3", "option4"] (only for MULTIPLE_CHOICE, null otherwise),
  "correctAnswerContext": "The correct answer or key points to check against"
}"""

QUESTION_PROMPT = PromptTemplate(
    input_variables=["level", "expected_type", "title", "description", "related"],
    template="""Generate a Level {level} assessment question for the concept: "{title}".
Definition: {description}.
Related concepts: {related}.
Expected question type: {expected_type}.""",
)

EVALUATION_SYSTEM = PromptTemplate(
    input_variables=["level"],
    template="""You are a supportive, intelligent tutor.
Evaluate the student's answer based on the provided context.
NEVER strictly say "Wrong". Instead, identify misunderstandings.
If the answer is incorrect, explain WHY and provide the correct reasoning.
If correct, reinforce the key insight.

Current Mastery Level Target: {level}

Return JSON with this exact structure:
{{
  "isCorrect": true | false,
  "explanation": "Constructive feedback"
}}""",
)

EVALUATION_PROMPT = PromptTemplate(
    input_variables=["question", "context", "answer"],
    template="""Question: {question}
Context/Correct Answer: {context}
Student Answer: {answer}

Determine if the student has demonstrated sufficient understanding to pass this specific check.
Return JSON.""",
)

SUMMARY_SYSTEM = """You are an expert educational content writer creating professional study notes.

CRITICAL RULES:
- NO EMOJIS whatsoever
- Use clear, professional language
- Create well-structured, hierarchical content
- Use proper markdown formatting
- Include specific examples and explanations
- Make content scannable with headers and lists"""

SUMMARY_PROMPT = PromptTemplate(
    input_variables=["concept_data"],
    template="""Generate a comprehensive, professional study guide in Markdown format based on these learned concepts.

Structure the document as follows:

1. OVERVIEW
   - Brief introduction to the topic
   - Key learning objectives
   - Total concepts covered

2. CONCEPT BREAKDOWN
   - For each concept, provide:
     * Clear definition
     * Detailed explanation
     * Key points (as bullet lists)
     * Relationships to other concepts
     * Mastery level achieved

3. COMMON MISTAKES AND CORRECTIONS
   - Document specific mistakes made during learning
   - Provide clear corrections and explanations
   - Highlight common pitfalls to avoid

4. SUMMARY AND NEXT STEPS
   - Recap key takeaways
   - Suggest areas for further study
   - Provide practice recommendations

Concept Data:
{concept_data}

Remember: NO EMOJIS. Professional formatting only. Use markdown headers (##, ###), bullet points, and bold text for emphasis.""",
)


def call_with_timeout(
    func: Callable[..., Any],
    timeout: Optional[float],
    operation: str,
    *args,
    **kwargs,
) -> Any:
    """
    Run a provider call, abandoning it after `timeout` seconds.

    The call runs on a daemon thread that is never joined: a hung call keeps
    running in the background but blocks neither the learning loop nor
    interpreter shutdown.

    Raises:
        ProviderTimeoutError: If the call does not finish in time
    """
    if timeout is None:
        return func(*args, **kwargs)

    future: Future = Future()

    def run():
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(func(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)

    worker = threading.Thread(target=run, name=f"provider-{operation}", daemon=True)
    worker.start()
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError:
        raise ProviderTimeoutError(operation, timeout) from None


class ReasoningProvider(ABC):
    """
    Base class for Reasoning Provider backends.

    Subclasses implement `_complete` for one LLM API. Every public method
    raises ProviderError (or ExtractionError for extraction) on failure;
    recovering with fallbacks is the caller's job.
    """

    name = "base"

    def __init__(self, model_config: ModelConfig):
        """
        Initialize provider.

        Args:
            model_config: Explicit model configuration (keys, models, sampling)
        """
        self.model_config = model_config

    @abstractmethod
    def _complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Send one prompt and return the raw response text."""

    def _call(self, operation: str, prompt: str, **kwargs) -> str:
        """Invoke `_complete`, normalizing any failure into ProviderError."""
        try:
            response = self._complete(prompt, **kwargs)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"{self.name} {operation} failed: {e}") from e

        if not response or not response.strip():
            raise ProviderError(f"{self.name} {operation} returned an empty response")
        return response

    def _parse(self, operation: str, response: str, validator: SchemaValidator) -> Dict[str, Any]:
        """Parse and validate a JSON response."""
        try:
            data = extract_json(response)
        except json.JSONDecodeError as e:
            raise ProviderError(f"{self.name} {operation} returned invalid JSON: {e}") from e

        result = validator.validate(data)
        if not result:
            raise ProviderError(
                f"{self.name} {operation} response failed validation: "
                + "; ".join(result.errors)
            )
        return result.data

    # ==================== Capability interface ====================

    def extract_concepts(self, raw_text: str) -> List[Concept]:
        """
        Extract a concept list from raw learning material.

        Args:
            raw_text: Learning material as plain text

        Returns:
            Concepts at LOCKED with no mistakes (empty for blank input,
            without contacting the backend)

        Raises:
            ExtractionError: If the backend fails or returns no usable concepts
        """
        if not raw_text or not raw_text.strip():
            return []

        try:
            response = self._call(
                "extraction",
                raw_text,
                system=EXTRACTION_SYSTEM,
                temperature=self.model_config.extraction_temperature,
                json_mode=True,
            )
            data = extract_json(response)
        except (ProviderError, json.JSONDecodeError) as e:
            raise ExtractionError(f"Failed to extract concepts: {e}") from e

        data, repairs = repair_concept_payload(data)
        if repairs:
            logger.debug(f"Extraction payload repaired: {repairs}")

        result = concept_list_validator.validate(data)
        if not result:
            raise ExtractionError(
                "Failed to extract concepts: " + "; ".join(result.errors)
            )

        try:
            concepts = [
                Concept.from_extraction(
                    concept_id=item["id"],
                    title=item["title"],
                    description=item.get("description"),
                    dependencies=item.get("dependencies"),
                )
                for item in result.data
            ]
        except ValidationError as e:
            raise ExtractionError(f"Failed to extract concepts: {e}") from e
        logger.info(f"{self.name} extracted {len(concepts)} concepts")
        return concepts

    def generate_question(
        self,
        concept: Concept,
        level: MasteryLevel,
        related_titles: Sequence[str],
    ) -> Question:
        """
        Generate one question for `concept` at `level`.

        The level-to-type mapping is an instruction to the model, not a
        constraint: whatever valid type comes back is accepted.
        """
        level = MasteryLevel(level)
        prompt = QUESTION_PROMPT.format(
            level=int(level),
            expected_type=QuestionType.for_level(level).value,
            title=concept.title,
            description=concept.description,
            related=", ".join(related_titles),
        )
        response = self._call(
            "question generation",
            prompt,
            system=QUESTION_SYSTEM,
            temperature=self.model_config.question_temperature,
            json_mode=True,
        )
        data = self._parse("question generation", response, question_validator)

        question_type = QuestionType(data["type"])
        options = data.get("options") if question_type == QuestionType.MULTIPLE_CHOICE else None
        return Question.new(
            concept_id=concept.concept_id,
            text=data["text"],
            question_type=question_type,
            options=options,
            correct_answer_context=data["correctAnswerContext"],
        )

    def evaluate_answer(
        self,
        question: Question,
        learner_answer: str,
        concept: Concept,
    ) -> AssessmentResult:
        """Judge a learner's answer against the question's hidden context."""
        response = self._call(
            "evaluation",
            EVALUATION_PROMPT.format(
                question=question.text,
                context=question.correct_answer_context,
                answer=learner_answer,
            ),
            system=EVALUATION_SYSTEM.format(level=int(concept.effective_level)),
            temperature=self.model_config.evaluation_temperature,
            json_mode=True,
        )
        data = self._parse("evaluation", response, assessment_validator)

        suggested = data.get("suggestedLevel")
        return AssessmentResult(
            is_correct=data["isCorrect"],
            explanation=data["explanation"],
            suggested_level=MasteryLevel(suggested) if suggested is not None else None,
        )

    def summarize(self, payload: Dict[str, Any]) -> str:
        """Render the structured session payload as Markdown study notes."""
        return self._call(
            "summary",
            SUMMARY_PROMPT.format(concept_data=json.dumps(payload, indent=2)),
            system=SUMMARY_SYSTEM,
            temperature=self.model_config.summary_temperature,
        )
