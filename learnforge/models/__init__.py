"""
Data models for concept mastery.

This module contains the pure-logic core (no I/O, no LLM calls):
- Concept, MistakeRecord, MasteryLevel: concept state
- Question, AssessmentResult: one question/answer cycle
- ConceptGraph: prerequisite relationships and lookups
- Mastery state machine: level transitions
- MistakeLedger: additive mistake records
"""

from .concept import Concept, MasteryLevel, MistakeRecord
from .question import (
    AssessmentResult,
    Question,
    QuestionType,
    EVALUATION_APOLOGY,
    FALLBACK_QUESTION_ID,
)
from .concept_graph import ConceptGraph
from .mastery import Transition, apply_assessment, next_level
from .mistake_ledger import MistakeLedger, TaggedMistake

__all__ = [
    "Concept",
    "MasteryLevel",
    "MistakeRecord",
    "AssessmentResult",
    "Question",
    "QuestionType",
    "EVALUATION_APOLOGY",
    "FALLBACK_QUESTION_ID",
    "ConceptGraph",
    "Transition",
    "apply_assessment",
    "next_level",
    "MistakeLedger",
    "TaggedMistake",
]
