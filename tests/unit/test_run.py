"""
Unit tests for the Gradio host handlers.

The handlers are driven against a LearningSession with a mocked provider;
the interface itself is not launched.
"""

from unittest.mock import MagicMock

import pytest

from learnforge import run
from learnforge.agents.base import ReasoningProvider
from learnforge.config import SessionConfig
from learnforge.models.question import AssessmentResult, Question, QuestionType
from learnforge.session import LearningSession
from learnforge.utils.persistence import NoteStore


@pytest.fixture
def provider(sample_concepts):
    provider = MagicMock(spec=ReasoningProvider)
    provider.extract_concepts.return_value = sample_concepts
    provider.generate_question.return_value = Question.new(
        "variables", "Which is a variable?", QuestionType.MULTIPLE_CHOICE, ["x = 1", "def f()"]
    )
    provider.evaluate_answer.return_value = AssessmentResult(True, "Yes")
    provider.summarize.return_value = "# Notes"
    return provider


@pytest.fixture
def session(provider, tmp_path, monkeypatch):
    session = LearningSession(
        provider,
        session_config=SessionConfig(mastery_close_delay=0),
        note_store=NoteStore(tmp_path / "notes"),
        request_timeout=2.0,
    )
    monkeypatch.setattr(run, "current_session", session)
    return session


class TestHandlers:
    """Test suite for the *_ui handlers."""

    def test_concept_label_round_trip(self, sample_concepts):
        label = run._concept_label(sample_concepts[1])
        assert label == "Functions [functions]"
        assert run._concept_id_from_label(label) == "functions"
        assert run._concept_id_from_label("") is None

    def test_extract_and_open(self, session):
        status, table, _ = run.extract_concepts_ui("Python basics")

        assert status == "Extracted 3 concepts."
        assert "0 / 3 Mastered" in table

        question_md, feedback = run.open_concept_ui("Variables [variables]")
        assert "Which is a variable?" in question_md
        assert "- x = 1" in question_md
        assert feedback == ""

    def test_extract_failure_is_reported(self, session, provider):
        provider.extract_concepts.return_value = []
        status, _, _ = run.extract_concepts_ui("   ")
        assert status.startswith("Could not start session")

    def test_blank_answer_prompts(self, session):
        run.extract_concepts_ui("Python basics")
        run.open_concept_ui("Variables [variables]")

        _, feedback, _, _ = run.submit_answer_ui("  ")
        assert feedback == "Please enter an answer first."

    def test_submit_correct_answer(self, session):
        run.extract_concepts_ui("Python basics")
        run.open_concept_ui("Variables [variables]")

        _, feedback, table, _ = run.submit_answer_ui("x = 1")

        assert "now at Understanding" in feedback
        assert "2 - Understanding" in table

    def test_submit_incorrect_answer(self, session, provider):
        provider.evaluate_answer.return_value = AssessmentResult(False, "A variable stores a value")
        run.extract_concepts_ui("Python basics")
        run.open_concept_ui("Variables [variables]")

        _, feedback, _, _ = run.submit_answer_ui("def f()")

        assert "Learning Moment" in feedback
        assert "A variable stores a value" in feedback

    def test_save_and_list_notes(self, session):
        run.extract_concepts_ui("Python basics")
        summary, title = run.generate_summary_ui()
        assert summary == "# Notes"
        assert title.startswith("Variables & Functions")

        status = run.save_note_ui("learner-1", "")
        assert status.startswith("Saved note")
        assert "Variables & Functions" in run.list_notes_ui("learner-1")

        note_id = session.note_store.list("learner-1")[0].id
        status, listing = run.delete_note_ui("learner-1", note_id)
        assert status == "Note deleted."
        assert listing == "*No saved notes.*"

    def test_answered_question_cannot_be_resubmitted(self, session, provider):
        run.extract_concepts_ui("Python basics")
        run.open_concept_ui("Variables [variables]")

        question_md, _, _, answer_box = run.submit_answer_ui("x = 1")
        assert question_md == run.NEXT_QUESTION_PROMPT
        assert answer_box == ""

        _, feedback, table, _ = run.submit_answer_ui("x = 1")
        assert "No question is pending" in feedback
        assert "2 - Understanding" in table
        assert provider.evaluate_answer.call_count == 1

        question_md, _, _ = run.next_question_ui()
        assert "Which is a variable?" in question_md
