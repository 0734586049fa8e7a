"""
Progress analytics helpers for the concept map and saved notes.

Provides:
- Mastery distribution across levels
- Mastery summary payload stored alongside notes
- Default note titles
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

try:
    from ..models.concept import Concept, MasteryLevel
except ImportError:
    from learnforge.models.concept import Concept, MasteryLevel


def mastery_distribution(concepts: Iterable[Concept]) -> Dict[str, int]:
    """
    Count concepts at each mastery level.

    Returns:
        Dict keyed by level name, in level order, including empty levels

    Example:
        >>> mastery_distribution(concepts)
        {'LOCKED': 2, 'RECOGNITION': 1, 'UNDERSTANDING': 0, 'APPLICATION': 0, 'REASONING': 1}
    """
    counts = {level.name: 0 for level in MasteryLevel}
    for concept in concepts:
        counts[concept.mastery_level.name] += 1
    return counts


def mastery_summary(concepts: Iterable[Concept]) -> Dict[str, object]:
    """
    Summary stored with a saved note.

    Returns:
        Dict with total, mastered (at REASONING) and concept titles
    """
    concepts = list(concepts)
    return {
        "total": len(concepts),
        "mastered": sum(1 for c in concepts if c.is_mastered),
        "concepts": [c.title for c in concepts],
    }


def mastery_progress_label(concepts: Iterable[Concept]) -> str:
    """Short "N / M Mastered" label for the concept map header."""
    summary = mastery_summary(concepts)
    return f"{summary['mastered']} / {summary['total']} Mastered"


def default_note_title(concepts: Iterable[Concept], today: Optional[date] = None) -> str:
    """
    Title suggested for a new note.

    Built from the first two concept titles and the date, e.g.
    "Recursion & Base Cases - Oct 19, 2026".
    """
    today = today or date.today()
    titles: List[str] = [c.title for c in list(concepts)[:2]]
    date_label = f"{today.strftime('%b')} {today.day}, {today.year}"
    if not titles:
        return f"Study Notes - {date_label}"
    return f"{' & '.join(titles)} - {date_label}"
