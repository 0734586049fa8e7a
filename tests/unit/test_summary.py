"""
Unit tests for the Summary Aggregator.
"""

import unittest
from unittest.mock import MagicMock

from learnforge.agents.base import ReasoningProvider
from learnforge.errors import ProviderError
from learnforge.models.concept import Concept, MasteryLevel
from learnforge.models.mistake_ledger import MistakeLedger
from learnforge.summary import (
    EMPTY_SUMMARY_DOCUMENT,
    NO_CONCEPTS_MESSAGE,
    SUMMARY_ERROR_DOCUMENT,
    SummaryAggregator,
    strip_emoji,
)


class TestSummaryAggregator(unittest.TestCase):
    """Test SummaryAggregator."""

    def setUp(self):
        """Set up test fixtures."""
        ledger = MistakeLedger()
        self.loops = ledger.record(
            Concept(
                concept_id="loops",
                title="Loops",
                description="Repetition",
                dependencies={"variables", "conditions"},
                mastery_level=MasteryLevel.APPLICATION,
            ),
            "What does a while loop do?",
            "Runs once",
            "It repeats while the condition holds",
        )
        self.variables = Concept(
            concept_id="variables",
            title="Variables",
            mastery_level=MasteryLevel.REASONING,
        )

        self.provider = MagicMock(spec=ReasoningProvider)
        self.provider.summarize.return_value = "# Study Notes\n\nLoops repeat."
        self.aggregator = SummaryAggregator(self.provider, request_timeout=2.0)

    def test_build_payload(self):
        payload = SummaryAggregator.build_payload([self.loops, self.variables])

        self.assertEqual(payload["total_concepts"], 2)
        self.assertEqual(payload["mastered_concepts"], 1)
        self.assertEqual(payload["total_mistakes"], 1)
        loops = payload["concepts"][0]
        self.assertEqual(loops["title"], "Loops")
        self.assertEqual(loops["mastery_level"], 3)
        self.assertEqual(loops["dependencies"], ["conditions", "variables"])
        self.assertEqual(
            loops["mistakes"],
            [
                {
                    "question": "What does a while loop do?",
                    "user_answer": "Runs once",
                    "correction": "It repeats while the condition holds",
                    "type": "Conceptual",
                }
            ],
        )

    def test_build_payload_is_deterministic(self):
        first = SummaryAggregator.build_payload([self.loops, self.variables])
        second = SummaryAggregator.build_payload([self.loops, self.variables])
        self.assertEqual(first, second)

    def test_empty_set_makes_no_call(self):
        self.assertEqual(self.aggregator.summarize([]), NO_CONCEPTS_MESSAGE)
        self.provider.summarize.assert_not_called()

    def test_summarize_passes_payload(self):
        text = self.aggregator.summarize([self.loops])
        self.assertEqual(text, "# Study Notes\n\nLoops repeat.")
        payload = self.provider.summarize.call_args.args[0]
        self.assertEqual(payload["total_concepts"], 1)

    def test_provider_failure_returns_error_document(self):
        self.provider.summarize.side_effect = ProviderError("quota")
        self.assertEqual(self.aggregator.summarize([self.loops]), SUMMARY_ERROR_DOCUMENT)

    def test_blank_text_returns_placeholder(self):
        self.provider.summarize.return_value = "  "
        self.assertEqual(self.aggregator.summarize([self.loops]), EMPTY_SUMMARY_DOCUMENT)

    def test_emoji_stripped(self):
        self.provider.summarize.return_value = "# Notes \U0001F680\n\nGreat job \U0001F600 ✅ done ☀"
        text = self.aggregator.summarize([self.loops])
        self.assertEqual(text, "# Notes \n\nGreat job   done ")


class TestStripEmoji(unittest.TestCase):
    """Test strip_emoji."""

    def test_plain_text_untouched(self):
        text = "## Recursion\n\n- Base case: stops the calls\n- Cost: O(n) stack"
        self.assertEqual(strip_emoji(text), text)

    def test_flags_removed(self):
        self.assertEqual(strip_emoji("Made in \U0001F1FA\U0001F1F8"), "Made in ")


if __name__ == "__main__":
    unittest.main()
