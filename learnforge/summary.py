"""
Summary Aggregator

Folds every concept's state and mistakes into one structured payload and
asks the Reasoning Provider to render it as professional study notes. The
summary view must always render something, so provider failures become a
fixed error document instead of an exception.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from .agents.base import ReasoningProvider, call_with_timeout
from .config import config
from .models.concept import Concept, MasteryLevel
from .models.mistake_ledger import MistakeLedger, TaggedMistake


NO_CONCEPTS_MESSAGE = "No concepts to summarize."
SUMMARY_ERROR_DOCUMENT = "# Error\n\nFailed to generate summary."
EMPTY_SUMMARY_DOCUMENT = "# Summary\n\nCould not generate summary."

# Emoticons, symbols and pictographs, transport and map, regional indicator
# flags, miscellaneous symbols, dingbats
EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "]"
)


def strip_emoji(text: str) -> str:
    """Remove pictographic characters from generated notes."""
    return EMOJI_PATTERN.sub("", text)


def _mistake_entry(tagged: TaggedMistake) -> Dict[str, str]:
    record = tagged.record
    return {
        "question": record.question,
        "user_answer": record.user_answer,
        "correction": record.correction,
        "type": record.misunderstanding_type,
    }


class SummaryAggregator:
    """Builds the end-of-session report payload and its prose rendering."""

    def __init__(self, provider: ReasoningProvider, request_timeout: Optional[float] = None):
        self.provider = provider
        self.request_timeout = (
            request_timeout if request_timeout is not None else config.model.request_timeout
        )

    @staticmethod
    def build_payload(concepts: Iterable[Concept]) -> Dict[str, Any]:
        """
        Structured, deterministic view of the session.

        Returns:
            Dict with aggregate counts and one entry per concept
        """
        concepts = list(concepts)
        tagged = MistakeLedger.all_mistakes(concepts)
        entries: List[Dict[str, Any]] = [
            {
                "title": c.title,
                "description": c.description,
                "mastery_level": int(c.mastery_level),
                "dependencies": sorted(c.dependencies),
                "mistakes": [
                    _mistake_entry(t) for t in tagged if t.record in c.mistakes
                ],
            }
            for c in concepts
        ]
        return {
            "total_concepts": len(concepts),
            "mastered_concepts": sum(
                1 for c in concepts if c.mastery_level == MasteryLevel.REASONING
            ),
            "total_mistakes": len(tagged),
            "concepts": entries,
        }

    def summarize(self, concepts: Iterable[Concept]) -> str:
        """
        Generate Markdown study notes for the session.

        Returns:
            Notes with emoji stripped; NO_CONCEPTS_MESSAGE for an empty set
            (no provider call); SUMMARY_ERROR_DOCUMENT if the provider fails
        """
        concepts = list(concepts)
        if not concepts:
            return NO_CONCEPTS_MESSAGE

        payload = self.build_payload(concepts)
        try:
            text = call_with_timeout(
                self.provider.summarize,
                self.request_timeout,
                "summary",
                payload,
            )
        except Exception as e:
            logger.error(f"Summary generation failed: {e}")
            return SUMMARY_ERROR_DOCUMENT

        if not text or not text.strip():
            return EMPTY_SUMMARY_DOCUMENT

        logger.info(
            f"Summary generated for {payload['total_concepts']} concepts "
            f"({payload['mastered_concepts']} mastered)"
        )
        return strip_emoji(text)
