"""
Concept Graph - holds concepts and their prerequisite edges.

The graph is treated as a DAG for presentation, but cycles are tolerated:
dependencies give question-generation context and, only when gating is
enabled, decide whether a concept may be started.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List

try:
    from ..errors import ConceptNotFoundError, DuplicateConceptError
    from .concept import Concept, MasteryLevel
except ImportError:
    from learnforge.errors import ConceptNotFoundError, DuplicateConceptError
    from learnforge.models.concept import Concept, MasteryLevel


class ConceptGraph:
    """
    Immutable collection of concepts keyed by identifier.

    Write-back of an updated concept goes through `replace`, which returns a
    new graph. Insertion order is preserved for display.
    """

    def __init__(self, concepts: Iterable[Concept] = ()):
        """
        Build a graph.

        Args:
            concepts: Concepts to hold

        Raises:
            DuplicateConceptError: If two concepts share an identifier
        """
        self._concepts: Dict[str, Concept] = {}
        for concept in concepts:
            if concept.concept_id in self._concepts:
                raise DuplicateConceptError(concept.concept_id)
            self._concepts[concept.concept_id] = concept

    def __len__(self) -> int:
        return len(self._concepts)

    def __iter__(self) -> Iterator[Concept]:
        return iter(self._concepts.values())

    def __contains__(self, concept_id: object) -> bool:
        return concept_id in self._concepts

    @property
    def concepts(self) -> List[Concept]:
        return list(self._concepts.values())

    def by_id(self, concept_id: str) -> Concept:
        """
        Look up a concept.

        Raises:
            ConceptNotFoundError: If no concept has this identifier
        """
        try:
            return self._concepts[concept_id]
        except KeyError:
            raise ConceptNotFoundError(concept_id) from None

    def replace(self, concept: Concept) -> "ConceptGraph":
        """
        Return a new graph with `concept` substituted for the stored one.

        Raises:
            ConceptNotFoundError: If the concept is not part of this graph
        """
        if concept.concept_id not in self._concepts:
            raise ConceptNotFoundError(concept.concept_id)
        updated = dict(self._concepts)
        updated[concept.concept_id] = concept
        return ConceptGraph(updated.values())

    def prerequisites_of(self, concept: Concept) -> List[Concept]:
        """Known prerequisite concepts (unknown dependency ids are skipped)."""
        return [c for c in self._concepts.values() if c.concept_id in concept.dependencies]

    def dependents_of(self, concept: Concept) -> List[Concept]:
        """Concepts that list `concept` as a prerequisite."""
        return [
            c for c in self._concepts.values()
            if concept.concept_id in c.dependencies
        ]

    def related_titles(self, concept: Concept) -> List[str]:
        """
        Titles of every concept related to `concept` in either direction.

        Used only as context for question generation.
        """
        return [
            c.title for c in self._concepts.values()
            if c.concept_id != concept.concept_id
            and (c.concept_id in concept.dependencies or concept.concept_id in c.dependencies)
        ]

    def missing_prerequisites(self, concept: Concept) -> List[str]:
        """Identifiers of known prerequisites not yet at REASONING."""
        return [
            c.concept_id for c in self.prerequisites_of(concept)
            if c.mastery_level < MasteryLevel.REASONING
        ]

    def prerequisites_met(self, concept: Concept) -> bool:
        return not self.missing_prerequisites(concept)

    def topological_order(self) -> List[Concept]:
        """
        Concepts ordered so prerequisites come first where possible.

        Kahn's algorithm with insertion order as the tiebreak. Concepts caught
        in a cycle are appended in insertion order instead of being dropped.
        """
        remaining = {
            cid: {d for d in c.dependencies if d in self._concepts}
            for cid, c in self._concepts.items()
        }
        ordered: List[Concept] = []

        while remaining:
            ready = [cid for cid, deps in remaining.items() if not deps]
            if not ready:
                # Cycle: emit the rest as-is
                ordered.extend(self._concepts[cid] for cid in remaining)
                break
            for cid in ready:
                ordered.append(self._concepts[cid])
                del remaining[cid]
            for deps in remaining.values():
                deps.difference_update(ready)

        return ordered

    @property
    def mastered_count(self) -> int:
        return sum(1 for c in self._concepts.values() if c.is_mastered)
