"""
Learning Session - the host-side owner of the concept collection.

Wires extraction, the question orchestrator, the summary aggregator and the
notes store into one session object. This is the only place the concept
graph is replaced: every SubmissionOutcome is written back here, so the
orchestrator never holds a stale copy.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from loguru import logger

from .agents.base import ReasoningProvider, call_with_timeout
from .config import SessionConfig, config, token_tracker
from .errors import ExtractionError, LearnForgeError, ProviderError
from .models.concept import Concept
from .models.concept_graph import ConceptGraph
from .models.question import Question
from .orchestrator import QuestionSessionOrchestrator, SubmissionOutcome
from .summary import SummaryAggregator
from .utils.persistence import NoteData, NoteStore, SavedNote
from .utils.progress import default_note_title, mastery_summary


@dataclass
class SessionStats:
    """Running counters for the current session."""
    questions_answered: int = 0
    correct_answers: int = 0
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class LearningSession:
    """
    One continuous learning interaction over a fixed concept set.

    Usage:
        session = LearningSession(create_provider(config.model))
        session.start(raw_text)
        question = session.open("recursion")
        outcome = session.answer("A function that calls itself")
        ...
        notes = session.summary()
    """

    def __init__(
        self,
        provider: ReasoningProvider,
        session_config: Optional[SessionConfig] = None,
        note_store: Optional[NoteStore] = None,
        request_timeout: Optional[float] = None,
    ):
        """
        Initialize a session.

        Args:
            provider: Reasoning Provider for all LLM work
            session_config: Session tuning (defaults to the global config)
            note_store: Notes persistence (defaults to a store under config paths)
            request_timeout: Seconds before a provider call is abandoned
        """
        self.provider = provider
        self.request_timeout = (
            request_timeout if request_timeout is not None else config.model.request_timeout
        )
        self.orchestrator = QuestionSessionOrchestrator(
            provider, session_config=session_config, request_timeout=self.request_timeout
        )
        self.aggregator = SummaryAggregator(provider, request_timeout=self.request_timeout)
        self.note_store = note_store or NoteStore()

        self.graph = ConceptGraph()
        self.current_question: Optional[Question] = None
        self.last_outcome: Optional[SubmissionOutcome] = None
        self.summary_text: Optional[str] = None
        self.stats = SessionStats()

    # ==================== Setup ====================

    def start(self, raw_text: str) -> ConceptGraph:
        """
        Extract concepts from raw material and start the session.

        Raises:
            ExtractionError: If no usable concepts could be extracted
            DuplicateConceptError: If extraction produced repeated ids
        """
        try:
            concepts = call_with_timeout(
                self.provider.extract_concepts,
                self.request_timeout,
                "extraction",
                raw_text,
            )
        except ProviderError as e:
            raise ExtractionError(f"Failed to extract concepts: {e}") from e

        if not concepts:
            raise ExtractionError("No concepts could be extracted from the material")
        return self.start_with_concepts(concepts)

    def start_with_concepts(self, concepts: Iterable[Concept]) -> ConceptGraph:
        """Start the session from an already extracted concept list."""
        self.end()
        self.graph = ConceptGraph(concepts)
        logger.info(f"Session started with {len(self.graph)} concepts")
        return self.graph

    # ==================== Question loop ====================

    @property
    def active_concept(self) -> Optional[Concept]:
        concept_id = self.orchestrator.active_concept_id
        if concept_id is None:
            return None
        return self.graph.by_id(concept_id)

    def _require_active(self) -> Concept:
        concept = self.active_concept
        if concept is None:
            raise LearnForgeError("No concept is active; open one first")
        return concept

    def open(self, concept_id: str) -> Question:
        """
        Make a concept active and fetch its first question.

        Raises:
            ConceptNotFoundError: If the id is not in the graph
            PrerequisiteError: If gating is enabled and prerequisites are unmet
        """
        concept = self.graph.by_id(concept_id)
        self.last_outcome = None
        self.current_question = self.orchestrator.begin(concept, self.graph)
        return self.current_question

    def answer(self, answer_text: str) -> SubmissionOutcome:
        """
        Submit an answer to the current question and write back the result.

        Raises:
            ValidationError: If the answer is blank
            LearnForgeError: If no question is pending (already answered)
        """
        concept = self._require_active()
        if self.current_question is None:
            raise LearnForgeError("No question is pending; request the next question first")

        outcome = self.orchestrator.submit(self.current_question, answer_text, concept)
        self.graph = self.graph.replace(outcome.concept)
        self.last_outcome = outcome

        # One submission per question; `next` issues the following one
        self.current_question = None
        self.summary_text = None

        self.stats.questions_answered += 1
        if outcome.result.is_correct:
            self.stats.correct_answers += 1
        return outcome

    def next(self) -> Question:
        """Fetch the next question for the active concept."""
        concept = self._require_active()
        self.last_outcome = None
        self.current_question = self.orchestrator.next_question(concept, self.graph)
        return self.current_question

    def close(self):
        """Close the active concept view."""
        self.orchestrator.close()
        self.current_question = None
        self.last_outcome = None

    def end(self):
        """Discard all session state, including question history."""
        self.orchestrator.end_session()
        self.graph = ConceptGraph()
        self.current_question = None
        self.last_outcome = None
        self.summary_text = None
        self.stats = SessionStats()

    # ==================== Summary and notes ====================

    @property
    def concepts(self) -> List[Concept]:
        return self.graph.concepts

    def summary(self) -> str:
        """Generate (and remember) the study notes for this session."""
        self.summary_text = self.aggregator.summarize(self.graph.concepts)
        self._log_token_usage()
        return self.summary_text

    def _log_token_usage(self):
        if config.logging.log_tokens:
            logger.info(token_tracker.summary())

    def note_data(self, title: Optional[str] = None) -> NoteData:
        """Build the note payload from the generated summary."""
        if self.summary_text is None:
            self.summary()
        return NoteData(
            title=(title or "").strip() or default_note_title(self.graph.concepts),
            content=self.summary_text,
            concept_count=len(self.graph),
            mastery_summary=mastery_summary(self.graph.concepts),
        )

    def save_note(self, owner_id: str, title: Optional[str] = None) -> SavedNote:
        """
        Persist the session summary for `owner_id`.

        Raises:
            PersistenceError: If the note cannot be saved
        """
        return self.note_store.save(owner_id, self.note_data(title))
