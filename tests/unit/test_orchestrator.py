"""
Unit tests for the Question Session Orchestrator.

Tests the question/answer cycle including:
- Question requests at the effective level with related context
- Fallback questions and evaluations on provider failure or timeout
- Blank answer rejection without provider calls
- Mastery transitions and mistake recording
- Bounded anti-repetition for follow-up questions
- Optional prerequisite gating
"""

import threading
import unittest
from unittest.mock import MagicMock

from learnforge.agents.base import ReasoningProvider
from learnforge.config import SessionConfig
from learnforge.errors import PrerequisiteError, ProviderError, ValidationError
from learnforge.models.concept import Concept, MasteryLevel
from learnforge.models.concept_graph import ConceptGraph
from learnforge.models.question import (
    EVALUATION_APOLOGY,
    AssessmentResult,
    Question,
    QuestionType,
)
from learnforge.orchestrator import QuestionSessionOrchestrator


def make_question(text, concept_id="functions"):
    return Question.new(concept_id, text, QuestionType.SHORT_ANSWER, None, "context")


class OrchestratorTestCase(unittest.TestCase):
    """Shared fixtures: a three-concept chain and a mocked provider."""

    def setUp(self):
        """Set up test fixtures."""
        self.variables = Concept(concept_id="variables", title="Variables")
        self.functions = Concept(
            concept_id="functions",
            title="Functions",
            description="Reusable code",
            dependencies={"variables"},
        )
        self.recursion = Concept(
            concept_id="recursion", title="Recursion", dependencies={"functions"}
        )
        self.graph = ConceptGraph([self.variables, self.functions, self.recursion])

        self.provider = MagicMock(spec=ReasoningProvider)
        self.provider.generate_question.return_value = make_question("What is a function?")
        self.provider.evaluate_answer.return_value = AssessmentResult(True, "Well done")

        self.session_config = SessionConfig()
        self.orchestrator = QuestionSessionOrchestrator(
            self.provider, session_config=self.session_config, request_timeout=2.0
        )


class TestBegin(OrchestratorTestCase):
    """Test begin."""

    def test_requests_question_at_effective_level(self):
        question = self.orchestrator.begin(self.functions, self.graph)

        self.assertEqual(question.text, "What is a function?")
        self.assertEqual(self.orchestrator.active_concept_id, "functions")
        args = self.provider.generate_question.call_args.args
        self.assertEqual(args[0], self.functions)
        self.assertEqual(args[1], MasteryLevel.RECOGNITION)
        self.assertCountEqual(args[2], ["Variables", "Recursion"])

    def test_begin_resets_history(self):
        self.orchestrator.begin(self.functions, self.graph)
        question = self.orchestrator.sessions["functions"].question
        self.orchestrator.submit(question, "reusable code", self.functions)
        self.assertEqual(len(self.orchestrator.history("functions")), 1)

        self.orchestrator.begin(self.functions, self.graph)
        self.assertEqual(self.orchestrator.history("functions"), [])

    def test_provider_failure_returns_fallback(self):
        self.provider.generate_question.side_effect = ProviderError("bad json")

        question = self.orchestrator.begin(self.functions, self.graph)

        self.assertTrue(question.is_fallback)
        self.assertEqual(question.text, "Explain the concept of Functions")
        self.assertEqual(question.question_type, QuestionType.SHORT_ANSWER)

    def test_provider_timeout_returns_fallback(self):
        release = threading.Event()
        self.provider.generate_question.side_effect = lambda *args: release.wait(5)
        orchestrator = QuestionSessionOrchestrator(
            self.provider, session_config=self.session_config, request_timeout=0.05
        )
        try:
            question = orchestrator.begin(self.functions, self.graph)
        finally:
            release.set()
        self.assertTrue(question.is_fallback)

    def test_gating_disabled_by_default(self):
        question = self.orchestrator.begin(self.recursion, self.graph)
        self.assertIsNotNone(question)

    def test_gating_blocks_unmastered_prerequisites(self):
        orchestrator = QuestionSessionOrchestrator(
            self.provider,
            session_config=SessionConfig(enforce_prerequisites=True),
            request_timeout=2.0,
        )
        with self.assertRaises(PrerequisiteError) as cm:
            orchestrator.begin(self.recursion, self.graph)
        self.assertEqual(cm.exception.missing, ["functions"])
        self.provider.generate_question.assert_not_called()

        mastered = self.graph.replace(self.functions.with_level(MasteryLevel.REASONING))
        question = orchestrator.begin(mastered.by_id("recursion"), mastered)
        self.assertIsNotNone(question)


class TestSubmit(OrchestratorTestCase):
    """Test submit."""

    def setUp(self):
        super().setUp()
        self.question = self.orchestrator.begin(self.functions, self.graph)

    def test_blank_answer_rejected_without_provider_call(self):
        with self.assertRaises(ValidationError):
            self.orchestrator.submit(self.question, "   ", self.functions)
        self.provider.evaluate_answer.assert_not_called()
        self.assertEqual(self.orchestrator.history("functions"), [])

    def test_correct_answer_advances(self):
        outcome = self.orchestrator.submit(self.question, "reusable code", self.functions)

        self.assertTrue(outcome.result.is_correct)
        self.assertEqual(outcome.concept.mastery_level, MasteryLevel.UNDERSTANDING)
        self.assertEqual(outcome.concept.mistakes, ())
        self.assertFalse(outcome.needs_retry)
        self.assertFalse(outcome.mastery_complete)
        self.assertEqual(self.orchestrator.history("functions"), ["What is a function?"])
        self.provider.evaluate_answer.assert_called_once_with(
            self.question, "reusable code", self.functions
        )

    def test_incorrect_answer_records_one_mistake(self):
        self.provider.evaluate_answer.return_value = AssessmentResult(False, "Functions are reusable")

        outcome = self.orchestrator.submit(self.question, "a variable", self.functions)

        self.assertEqual(outcome.concept.mastery_level, MasteryLevel.LOCKED)
        self.assertTrue(outcome.needs_retry)
        self.assertTrue(self.orchestrator.sessions["functions"].needs_retry)
        self.assertEqual(len(outcome.concept.mistakes), 1)
        record = outcome.concept.mistakes[0]
        self.assertEqual(record.question, "What is a function?")
        self.assertEqual(record.user_answer, "a variable")
        self.assertEqual(record.correction, "Functions are reusable")
        self.assertEqual(record.misunderstanding_type, "Conceptual")

    def test_evaluation_failure_is_incorrect_with_apology(self):
        self.provider.evaluate_answer.side_effect = RuntimeError("network down")

        outcome = self.orchestrator.submit(self.question, "reusable code", self.functions)

        self.assertFalse(outcome.result.is_correct)
        self.assertEqual(outcome.result.explanation, EVALUATION_APOLOGY)
        self.assertEqual(outcome.concept.mastery_level, MasteryLevel.LOCKED)
        self.assertEqual(len(outcome.concept.mistakes), 1)
        self.assertEqual(outcome.concept.mistakes[0].correction, EVALUATION_APOLOGY)

    def test_mastery_complete_at_reasoning(self):
        concept = self.functions.with_level(MasteryLevel.REASONING)
        outcome = self.orchestrator.submit(self.question, "trade-offs", concept)
        self.assertTrue(outcome.mastery_complete)
        self.assertEqual(outcome.concept.mastery_level, MasteryLevel.REASONING)

    def test_does_not_mutate_input_concept(self):
        self.provider.evaluate_answer.return_value = AssessmentResult(False, "No")
        self.orchestrator.submit(self.question, "wrong", self.functions)
        self.assertEqual(self.functions.mistakes, ())
        self.assertEqual(self.graph.by_id("functions").mistakes, ())


class TestNextQuestion(OrchestratorTestCase):
    """Test next_question anti-repetition."""

    def setUp(self):
        super().setUp()
        question = self.orchestrator.begin(self.functions, self.graph)
        self.orchestrator.submit(question, "reusable code", self.functions)
        self.provider.generate_question.reset_mock()

    def test_regenerates_duplicates(self):
        self.provider.generate_question.side_effect = [
            make_question("What is a function?"),
            make_question("Why use functions?"),
        ]

        question = self.orchestrator.next_question(self.functions, self.graph)

        self.assertEqual(question.text, "Why use functions?")
        self.assertEqual(self.provider.generate_question.call_count, 2)
        self.assertIsNone(self.orchestrator.sessions["functions"].last_result)

    def test_bounded_attempts_return_duplicate(self):
        self.provider.generate_question.side_effect = None
        self.provider.generate_question.return_value = make_question("What is a function?")

        question = self.orchestrator.next_question(self.functions, self.graph)

        self.assertEqual(question.text, "What is a function?")
        self.assertEqual(
            self.provider.generate_question.call_count,
            self.session_config.max_question_attempts,
        )

    def test_fresh_question_needs_single_call(self):
        self.provider.generate_question.return_value = make_question("Name a built-in function")
        self.orchestrator.next_question(self.functions, self.graph)
        self.assertEqual(self.provider.generate_question.call_count, 1)


class TestSessionLifecycle(OrchestratorTestCase):
    """Test close and end_session."""

    def test_close_keeps_history(self):
        question = self.orchestrator.begin(self.functions, self.graph)
        self.orchestrator.submit(question, "reusable code", self.functions)

        self.orchestrator.close()

        self.assertIsNone(self.orchestrator.active_concept_id)
        self.assertEqual(len(self.orchestrator.history("functions")), 1)

    def test_end_session_discards_history(self):
        question = self.orchestrator.begin(self.functions, self.graph)
        self.orchestrator.submit(question, "reusable code", self.functions)

        self.orchestrator.end_session()

        self.assertEqual(self.orchestrator.history("functions"), [])
        self.assertEqual(self.orchestrator.sessions, {})

    def test_close_delay_from_config(self):
        orchestrator = QuestionSessionOrchestrator(
            self.provider, session_config=SessionConfig(mastery_close_delay=0.5)
        )
        self.assertEqual(orchestrator.close_delay, 0.5)


if __name__ == "__main__":
    unittest.main()
