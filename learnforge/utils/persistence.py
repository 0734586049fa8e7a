"""
Saved notes persistence with validation.

Stores generated study notes as JSON files, one directory per owner. The
owner identifier comes from the host's identity collaborator and is used
only to namespace notes.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

try:
    from ..config import config
    from ..errors import PersistenceError, ValidationError
    from .validation import SchemaValidator
except ImportError:
    from learnforge.config import config
    from learnforge.errors import PersistenceError, ValidationError
    from learnforge.utils.validation import SchemaValidator


NOTE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "user_id": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "content": {"type": "string"},
        "concept_count": {"type": "integer", "minimum": 0},
        "mastery_summary": {
            "type": "object",
            "properties": {
                "total": {"type": "integer", "minimum": 0},
                "mastered": {"type": "integer", "minimum": 0},
                "concepts": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["total", "mastered", "concepts"],
        },
        "created_at": {"type": "string"},
        "updated_at": {"type": "string"},
    },
    "required": ["id", "user_id", "title", "content", "concept_count", "mastery_summary"],
}


@dataclass
class NoteData:
    """Payload for a new note, produced from the session summary."""
    title: str
    content: str
    concept_count: int
    mastery_summary: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SavedNote:
    """A stored note as returned by the store."""
    id: str
    user_id: str
    title: str
    content: str
    concept_count: int
    mastery_summary: Dict[str, Any]
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NoteStore:
    """
    Handles persistence of saved notes.

    Features:
    - Validate notes against NOTE_SCHEMA before writing
    - One directory per owner under notes_dir
    - Newest-first listing
    """

    def __init__(self, notes_dir: Path | str | None = None):
        """
        Initialize the store.

        Args:
            notes_dir: Directory for notes (default: config.paths.notes_dir)
        """
        self.notes_dir = Path(notes_dir) if notes_dir else config.paths.notes_dir
        self.validator = SchemaValidator(NOTE_SCHEMA)

    def _owner_dir(self, owner_id: str) -> Path:
        if not owner_id or not owner_id.strip():
            raise ValidationError("Owner id cannot be empty")
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", owner_id.strip())
        return self.notes_dir / safe

    def _note_path(self, owner_id: str, note_id: str) -> Path:
        if not re.fullmatch(r"[A-Za-z0-9_-]+", note_id or ""):
            raise ValidationError(f"Invalid note id: {note_id!r}")
        return self._owner_dir(owner_id) / f"{note_id}.json"

    def _write(self, path: Path, record: Dict[str, Any]):
        result = self.validator.validate(record)
        if not result:
            raise PersistenceError("Invalid note: " + "; ".join(result.errors))
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise PersistenceError(f"Failed to save note: {e}") from e

    def _read(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to load note {path.stem}: {e}") from e

    def save(self, owner_id: str, note: NoteData) -> SavedNote:
        """
        Save a new note.

        Returns:
            The stored note with its generated id and timestamps

        Raises:
            PersistenceError: If the note is invalid or cannot be written
        """
        now = datetime.now(timezone.utc).isoformat()
        record = {
            "id": f"note-{uuid.uuid4()}",
            "user_id": owner_id,
            "title": note.title,
            "content": note.content,
            "concept_count": note.concept_count,
            "mastery_summary": note.mastery_summary,
            "created_at": now,
            "updated_at": now,
        }
        self._write(self._note_path(owner_id, record["id"]), record)
        logger.info(f"Saved note {record['id']} for owner {owner_id}")
        return SavedNote(**record)

    def list(self, owner_id: str) -> List[SavedNote]:
        """
        All notes for an owner, newest first.

        Raises:
            PersistenceError: If the notes directory cannot be read
        """
        owner_dir = self._owner_dir(owner_id)
        if not owner_dir.exists():
            return []

        notes = []
        try:
            paths = sorted(owner_dir.glob("note-*.json"))
        except OSError as e:
            raise PersistenceError(f"Failed to list notes: {e}") from e

        for path in paths:
            try:
                record = self._read(path)
            except PersistenceError as e:
                logger.warning(f"Skipping unreadable note: {e}")
                continue
            if record.get("user_id") == owner_id:
                notes.append(SavedNote(**record))

        notes.sort(key=lambda n: n.created_at, reverse=True)
        return notes

    def get(self, owner_id: str, note_id: str) -> Optional[SavedNote]:
        """Load one note, or None if it does not exist for this owner."""
        path = self._note_path(owner_id, note_id)
        if not path.exists():
            return None
        record = self._read(path)
        if record.get("user_id") != owner_id:
            return None
        return SavedNote(**record)

    def delete(self, owner_id: str, note_id: str) -> bool:
        """
        Delete a note.

        Returns:
            True if the note existed and was removed, False otherwise

        Raises:
            PersistenceError: If the file exists but cannot be removed
        """
        if self.get(owner_id, note_id) is None:
            return False
        try:
            self._note_path(owner_id, note_id).unlink()
        except OSError as e:
            raise PersistenceError(f"Failed to delete note {note_id}: {e}") from e
        logger.info(f"Deleted note {note_id} for owner {owner_id}")
        return True

    def update_title(self, owner_id: str, note_id: str, new_title: str) -> bool:
        """
        Rename a note.

        Returns:
            True if the note was updated, False if it does not exist
        """
        if not new_title or not new_title.strip():
            raise ValidationError("Note title cannot be empty")
        note = self.get(owner_id, note_id)
        if note is None:
            return False
        note.title = new_title.strip()
        note.updated_at = datetime.now(timezone.utc).isoformat()
        self._write(self._note_path(owner_id, note_id), note.to_dict())
        return True
