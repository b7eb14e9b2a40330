"""Decoding and validation of individual JSONL lines."""

from __future__ import annotations

import json

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ParseError, RecordValidationError
from ..schemas.records import RawRecord


def parse_line(line: str) -> RawRecord:
    """
    Decode one line of a review file into a :class:`RawRecord`.

    Args:
        line: A single, non-blank line of text

    Returns:
        The decoded record

    Raises:
        ParseError: If the line is not JSON, is not a JSON object, or a field
            has the wrong type
    """
    try:
        document = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    try:
        return RawRecord.model_validate(document)
    except PydanticValidationError as exc:
        raise ParseError(f"Type mismatch: {exc.error_count()} invalid field(s): {exc}") from exc


def validate_record(record: RawRecord) -> RawRecord:
    """Return ``record`` if every required field is present, otherwise raise."""

    missing = record.missing_required_fields()
    if missing:
        raise RecordValidationError(missing)
    return record
