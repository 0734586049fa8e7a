"""
Mastery State Machine - per-concept level transitions.

LOCKED -> RECOGNITION -> UNDERSTANDING -> APPLICATION -> REASONING

Rules, given the effective level L (LOCKED counts as RECOGNITION):
- correct and L < REASONING: advance exactly one level
- correct and L == REASONING: stay, and signal mastery complete
- incorrect: level unchanged, retry required

Levels never decrease and never skip.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

try:
    from .concept import Concept, MasteryLevel
    from .question import AssessmentResult
except ImportError:
    from learnforge.models.concept import Concept, MasteryLevel
    from learnforge.models.question import AssessmentResult


@dataclass(frozen=True)
class Transition:
    """
    Outcome of applying one assessment to a concept.

    Attributes:
        previous_level: Stored level before the assessment
        new_level: Stored level after the assessment
        mastery_complete: True when a correct answer was given at REASONING
        needs_retry: True when the answer was incorrect
    """
    previous_level: MasteryLevel
    new_level: MasteryLevel
    mastery_complete: bool
    needs_retry: bool

    @property
    def advanced(self) -> bool:
        return self.new_level > self.previous_level


def next_level(concept: Concept, result: AssessmentResult) -> Transition:
    """
    Compute the transition for `concept` given an assessment result.

    `result.suggested_level` is advisory and ignored here, so an evaluator
    can never make a concept skip or lose a level.
    """
    previous = concept.mastery_level
    current = concept.effective_level

    if not result.is_correct:
        return Transition(
            previous_level=previous,
            new_level=previous,
            mastery_complete=False,
            needs_retry=True,
        )

    if current < MasteryLevel.REASONING:
        return Transition(
            previous_level=previous,
            new_level=MasteryLevel(min(current + 1, MasteryLevel.REASONING)),
            mastery_complete=False,
            needs_retry=False,
        )

    return Transition(
        previous_level=previous,
        new_level=MasteryLevel.REASONING,
        mastery_complete=True,
        needs_retry=False,
    )


def apply_assessment(concept: Concept, result: AssessmentResult) -> tuple[Concept, Transition]:
    """
    Apply the transition rule and return the updated concept value.

    Returns:
        (updated_concept, transition) tuple; the input concept is untouched
    """
    transition = next_level(concept, result)

    if transition.advanced:
        logger.info(
            f"Concept {concept.concept_id!r} advanced "
            f"{transition.previous_level.name} -> {transition.new_level.name}"
        )
    elif transition.mastery_complete:
        logger.info(f"Concept {concept.concept_id!r} mastery complete")

    if transition.new_level == concept.mastery_level:
        return concept, transition
    return concept.with_level(transition.new_level), transition
