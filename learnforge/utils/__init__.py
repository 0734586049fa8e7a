"""
Utility modules for LearnForge.

This module contains utility functions:
- validation: JSON Schema validation of provider output and answer checks
- progress: Mastery analytics and note summary helpers
- persistence: Saved notes store
- logging_setup: Loguru sink configuration
"""

from .validation import (
    SchemaValidator,
    ValidationResult,
    extract_json,
    repair_concept_payload,
    validate_answer_text,
)
from .progress import (
    default_note_title,
    mastery_distribution,
    mastery_progress_label,
    mastery_summary,
)
from .persistence import NoteData, NoteStore, SavedNote
from .logging_setup import configure_logging

__all__ = [
    # Validation
    "SchemaValidator",
    "ValidationResult",
    "extract_json",
    "repair_concept_payload",
    "validate_answer_text",
    # Progress analytics
    "default_note_title",
    "mastery_distribution",
    "mastery_progress_label",
    "mastery_summary",
    # Persistence
    "NoteData",
    "NoteStore",
    "SavedNote",
    # Logging
    "configure_logging",
]
