"""
Question Session Orchestrator

Drives the question/answer cycle for one active concept at a time:
1. begin: request a question at the concept's effective level
2. submit: evaluate an answer, apply the mastery transition, record mistakes
3. next_question: request a fresh question, avoiding ones already asked

Provider failures never stall the loop: a failed question becomes a
deterministic fallback question and a failed evaluation becomes an
incorrect result with an apology. The orchestrator never mutates the host's
concept graph; `submit` returns the updated Concept for the host to write
back.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from .agents.base import ReasoningProvider, call_with_timeout
from .config import SessionConfig, config
from .errors import PrerequisiteError
from .models.concept import Concept
from .models.concept_graph import ConceptGraph
from .models.mastery import Transition, apply_assessment
from .models.mistake_ledger import MistakeLedger
from .models.question import AssessmentResult, Question
from .utils.validation import validate_answer_text


# ==================== Session State Models ====================

@dataclass
class ConceptSession:
    """
    Per-concept state held while a concept is active.

    History is the ordered list of question texts already answered in this
    session; it is never persisted.
    """
    concept_id: str
    question: Optional[Question] = None
    last_result: Optional[AssessmentResult] = None
    history: List[str] = field(default_factory=list)
    needs_retry: bool = False


@dataclass(frozen=True)
class SubmissionOutcome:
    """
    Everything the host needs after one submitted answer.

    Attributes:
        result: Assessment to display
        concept: Updated concept value to write back into the graph
        transition: Mastery transition that produced `concept`
    """
    result: AssessmentResult
    concept: Concept
    transition: Transition

    @property
    def mastery_complete(self) -> bool:
        """True when the host should close the concept view."""
        return self.transition.mastery_complete

    @property
    def needs_retry(self) -> bool:
        return self.transition.needs_retry


class QuestionSessionOrchestrator:
    """
    Sequences question generation, submission, retry and advancement.

    Single-flight: one provider call per step, and the caller must not
    re-enter `submit` while a previous call for the same question is
    outstanding.
    """

    def __init__(
        self,
        provider: ReasoningProvider,
        session_config: Optional[SessionConfig] = None,
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: Reasoning Provider used for questions and evaluations
            session_config: Session tuning (defaults to the global config)
            request_timeout: Seconds before a provider call is abandoned
                (defaults to the model config's request_timeout)
        """
        self.provider = provider
        self.session_config = session_config or config.session
        self.request_timeout = (
            request_timeout if request_timeout is not None else config.model.request_timeout
        )
        self.ledger = MistakeLedger(category=self.session_config.mistake_category)

        self.sessions: Dict[str, ConceptSession] = {}
        self.active_concept_id: Optional[str] = None

    # ==================== Operations ====================

    def begin(self, concept: Concept, graph: ConceptGraph) -> Question:
        """
        Start (or restart) work on a concept.

        Clears any prior session state for the concept. History starts empty.

        Raises:
            PrerequisiteError: If prerequisite gating is enabled and a
                prerequisite is not yet mastered
        """
        if self.session_config.enforce_prerequisites:
            missing = graph.missing_prerequisites(concept)
            if missing:
                raise PrerequisiteError(concept.concept_id, missing)

        session = ConceptSession(concept_id=concept.concept_id)
        self.sessions[concept.concept_id] = session
        self.active_concept_id = concept.concept_id

        logger.info(
            f"Begin concept {concept.concept_id!r} at level "
            f"{concept.effective_level.display_name}"
        )
        session.question = self._request_question(concept, graph)
        return session.question

    def submit(self, question: Question, answer_text: str, concept: Concept) -> SubmissionOutcome:
        """
        Evaluate an answer and compute the concept's next state.

        Args:
            question: The question being answered
            answer_text: Learner's answer
            concept: Current concept value

        Returns:
            SubmissionOutcome with the result, updated concept and transition

        Raises:
            ValidationError: If the answer is blank (no provider call is made)
        """
        validate_answer_text(answer_text)

        session = self.session_for(concept)
        result = self._request_evaluation(question, answer_text, concept)

        session.history.append(question.text)
        session.last_result = result

        updated, transition = apply_assessment(concept, result)
        if not result.is_correct:
            updated = self.ledger.record(
                updated,
                question=question.text,
                user_answer=answer_text,
                correction=result.explanation,
            )
        session.needs_retry = transition.needs_retry

        return SubmissionOutcome(result=result, concept=updated, transition=transition)

    def next_question(self, concept: Concept, graph: ConceptGraph) -> Question:
        """
        Request a new question that does not repeat this session's history.

        Best effort: after `max_question_attempts` generations the last
        question is returned even if it duplicates history.
        """
        session = self.session_for(concept)
        max_attempts = max(1, self.session_config.max_question_attempts)

        question = self._request_question(concept, graph)
        attempts = 1
        while question.text in session.history and attempts < max_attempts:
            logger.debug(
                f"Duplicate question for {concept.concept_id!r} "
                f"(attempt {attempts}/{max_attempts}), regenerating"
            )
            question = self._request_question(concept, graph)
            attempts += 1

        if question.text in session.history:
            logger.warning(
                f"Returning repeated question for {concept.concept_id!r} "
                f"after {attempts} attempts"
            )

        session.question = question
        session.last_result = None
        return question

    # ==================== Session accessors ====================

    def session_for(self, concept: Concept) -> ConceptSession:
        """Get the session for a concept, creating an empty one if needed."""
        session = self.sessions.get(concept.concept_id)
        if session is None:
            session = ConceptSession(concept_id=concept.concept_id)
            self.sessions[concept.concept_id] = session
        return session

    def history(self, concept_id: str) -> List[str]:
        session = self.sessions.get(concept_id)
        return list(session.history) if session else []

    def close(self):
        """Leave the active concept view (session state is kept)."""
        self.active_concept_id = None

    def end_session(self):
        """End the learning session; all question history is discarded."""
        self.sessions.clear()
        self.active_concept_id = None

    @property
    def close_delay(self) -> float:
        """Seconds the host should wait before closing a mastered concept."""
        return self.session_config.mastery_close_delay

    # ==================== Provider calls with fallbacks ====================

    def _request_question(self, concept: Concept, graph: ConceptGraph) -> Question:
        try:
            return call_with_timeout(
                self.provider.generate_question,
                self.request_timeout,
                "question generation",
                concept,
                concept.effective_level,
                graph.related_titles(concept),
            )
        except Exception as e:
            logger.error(f"Question generation failed for {concept.concept_id!r}: {e}")
            return Question.fallback(concept)

    def _request_evaluation(
        self,
        question: Question,
        answer_text: str,
        concept: Concept,
    ) -> AssessmentResult:
        try:
            return call_with_timeout(
                self.provider.evaluate_answer,
                self.request_timeout,
                "evaluation",
                question,
                answer_text,
                concept,
            )
        except Exception as e:
            logger.error(f"Evaluation failed for {concept.concept_id!r}: {e}")
            return AssessmentResult.fallback()
