"""
Error taxonomy for LearnForge.

Policy:
- Failures that would stall the learning loop (question generation,
  answer evaluation, summary prose) are raised by providers as
  ProviderError and recovered with deterministic fallbacks by callers.
- Failures that would silently corrupt progress (blank answers,
  duplicate concept identifiers) are rejected outright.
"""

from __future__ import annotations


class LearnForgeError(Exception):
    """Base class for all LearnForge errors."""


class ExtractionError(LearnForgeError):
    """The provider returned no usable concepts; the session cannot start."""


class ProviderError(LearnForgeError):
    """A Reasoning Provider call failed or returned malformed output."""


class ProviderTimeoutError(ProviderError):
    """A Reasoning Provider call did not return within the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} did not complete within {timeout:g}s")


class ValidationError(LearnForgeError, ValueError):
    """Input rejected before any provider call (blank answer, malformed concept)."""


class DuplicateConceptError(ValidationError):
    """A concept graph was constructed with a repeated identifier."""

    def __init__(self, concept_id: str):
        self.concept_id = concept_id
        super().__init__(f"Duplicate concept id: {concept_id!r}")


class ConceptNotFoundError(LearnForgeError, KeyError):
    """Lookup of an identifier that is not in the concept graph."""

    def __init__(self, concept_id: str):
        self.concept_id = concept_id
        super().__init__(concept_id)

    def __str__(self) -> str:
        return f"Concept not found: {self.concept_id!r}"


class PrerequisiteError(LearnForgeError):
    """A gated concept was started before all of its prerequisites were mastered."""

    def __init__(self, concept_id: str, missing: list[str]):
        self.concept_id = concept_id
        self.missing = missing
        super().__init__(
            f"Concept {concept_id!r} is locked until prerequisites are mastered: "
            + ", ".join(missing)
        )


class PersistenceError(LearnForgeError):
    """A notes store operation failed; the learner may retry."""
