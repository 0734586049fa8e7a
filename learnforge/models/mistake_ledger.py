"""
Mistake Ledger - purely additive record of incorrect answers.

Records are appended to the owning concept's sequence and are never trimmed,
reordered or deduplicated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from loguru import logger

try:
    from .concept import Concept, MistakeRecord
except ImportError:
    from learnforge.models.concept import Concept, MistakeRecord


DEFAULT_MISTAKE_CATEGORY = "Conceptual"


@dataclass(frozen=True)
class TaggedMistake:
    """A mistake record paired with its owning concept's title."""
    concept_title: str
    record: MistakeRecord


class MistakeLedger:
    """Appends mistake records and exposes them across all concepts."""

    def __init__(self, category: str = DEFAULT_MISTAKE_CATEGORY):
        self.category = category

    def record(
        self,
        concept: Concept,
        question: str,
        user_answer: str,
        correction: str,
    ) -> Concept:
        """
        Append one mistake to `concept`.

        Returns:
            A new Concept with the record appended
        """
        mistake = MistakeRecord.create(
            question=question,
            user_answer=user_answer,
            correction=correction,
            misunderstanding_type=self.category,
        )
        logger.debug(
            f"Recorded mistake {mistake.mistake_id} for concept {concept.concept_id!r} "
            f"({len(concept.mistakes) + 1} total)"
        )
        return concept.with_mistake(mistake)

    @staticmethod
    def all_mistakes(concepts: Iterable[Concept]) -> List[TaggedMistake]:
        """Every mistake across `concepts`, in concept order then creation order."""
        return [
            TaggedMistake(concept_title=concept.title, record=mistake)
            for concept in concepts
            for mistake in concept.mistakes
        ]
