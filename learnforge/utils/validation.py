"""
Schema validation utilities for Reasoning Provider output.

Provides JSON Schema validation (jsonschema Draft 7) with readable error
messages, a tolerant JSON extractor for LLM responses, and light repair
of common extraction quirks.
"""

from __future__ import annotations

import json
from copy import deepcopy
from typing import Any, Optional

from jsonschema import Draft7Validator
from jsonschema import ValidationError as SchemaError

try:
    from ..errors import ValidationError
    from ..models.question import QuestionType
except ImportError:
    from learnforge.errors import ValidationError
    from learnforge.models.question import QuestionType


CONCEPT_LIST_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "array",
    "minItems": 1,
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string", "minLength": 1},
            "title": {"type": "string", "minLength": 1},
            "description": {"type": "string"},
            "dependencies": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["id", "title", "description", "dependencies"],
    },
}

QUESTION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "text": {"type": "string", "minLength": 1},
        "type": {"type": "string", "enum": [t.value for t in QuestionType]},
        "options": {
            "anyOf": [
                {"type": "array", "items": {"type": "string"}},
                {"type": "null"},
            ]
        },
        "correctAnswerContext": {"type": "string"},
    },
    "required": ["text", "type", "correctAnswerContext"],
}

ASSESSMENT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "isCorrect": {"type": "boolean"},
        "explanation": {"type": "string"},
        "suggestedLevel": {
            "anyOf": [
                {"type": "integer", "minimum": 0, "maximum": 4},
                {"type": "null"},
            ]
        },
    },
    "required": ["isCorrect", "explanation"],
}


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data (may be modified if repair was attempted)
        repairs: List of repairs applied (for transparency)
    """

    def __init__(
        self,
        valid: bool,
        errors: list[str],
        data: Any = None,
        repairs: Optional[list[str]] = None,
    ):
        self.valid = valid
        self.errors = errors
        self.data = data
        self.repairs = repairs or []

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        if self.valid:
            msg = "Validation passed"
            if self.repairs:
                msg += f" (with {len(self.repairs)} repair(s))"
            return msg
        return f"Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator for provider payloads.

    Usage:
        validator = SchemaValidator(QUESTION_SCHEMA)
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema: dict):
        self.schema = schema
        self.validator = Draft7Validator(self.schema)

    def validate(self, data: Any) -> ValidationResult:
        """
        Validate data against the schema.

        Args:
            data: Parsed JSON payload

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(e) for e in self.validator.iter_errors(data)]
        if errors:
            return ValidationResult(valid=False, errors=errors, data=data)
        return ValidationResult(valid=True, errors=[], data=data)

    def _format_error(self, error: SchemaError) -> str:
        """Convert a jsonschema error to a message with its location."""
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        return f"At '{path}': {error.message} [validator={validator_name}]"


def extract_json(response: str) -> Any:
    """
    Parse JSON from an LLM response, tolerating markdown code fences.

    Raises:
        json.JSONDecodeError: If no valid JSON can be parsed
    """
    text = response.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return json.loads(text)


def repair_concept_payload(data: Any) -> tuple[Any, list[str]]:
    """
    Normalize an extraction payload before validation.

    - Unwraps `{"concepts": [...]}` into the bare list
    - Fills a missing description or dependency list
    - Drops self references from dependency lists

    Returns:
        Tuple of (repaired data, list of repairs applied)
    """
    repairs: list[str] = []
    repaired = deepcopy(data)

    if isinstance(repaired, dict):
        repaired = repaired.get("concepts", [])
        repairs.append("Unwrapped 'concepts' array from object")

    if not isinstance(repaired, list):
        return repaired, repairs

    for item in repaired:
        if not isinstance(item, dict):
            continue
        cid = item.get("id", "?")
        if item.get("description") is None:
            item["description"] = ""
            repairs.append(f"Added empty description to {cid}")
        if item.get("dependencies") is None:
            item["dependencies"] = []
            repairs.append(f"Added empty dependencies to {cid}")
        deps = item.get("dependencies")
        if isinstance(deps, list) and cid in deps:
            item["dependencies"] = [d for d in deps if d != cid]
            repairs.append(f"Removed self-dependency from {cid}")

    return repaired, repairs


def validate_answer_text(answer: Optional[str]) -> str:
    """
    Reject blank answers before any provider call.

    Returns:
        The answer unchanged

    Raises:
        ValidationError: If the answer is empty or whitespace-only
    """
    if not answer or not answer.strip():
        raise ValidationError("Learner answer cannot be empty")
    return answer


concept_list_validator = SchemaValidator(CONCEPT_LIST_SCHEMA)
question_validator = SchemaValidator(QUESTION_SCHEMA)
assessment_validator = SchemaValidator(ASSESSMENT_SCHEMA)
