"""Validators for metadata strings entering the ledger."""

from __future__ import annotations

from typing import Any

from custodia.ledger.errors import ValidationFailed

MAX_LOCATION_LENGTH = 64
MAX_NOTES_LENGTH = 128


def _validate_bounded(field: str, value: Any, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationFailed(field, "not_a_string", f"{field} must be a string")
    if len(value) == 0:
        raise ValidationFailed(field, "empty")
    if len(value) > max_length:
        raise ValidationFailed(
            field,
            "too_long",
            f"{field} exceeds {max_length} characters ({len(value)})",
        )
    return value


def validate_location(value: Any) -> str:
    """Return *value* if it is a non-empty string of at most 64 characters."""
    return _validate_bounded("location", value, MAX_LOCATION_LENGTH)


def validate_notes(value: Any) -> str:
    """Return *value* if it is a non-empty string of at most 128 characters."""
    return _validate_bounded("notes", value, MAX_NOTES_LENGTH)


def validate_metadata(location: Any, notes: Any) -> tuple[str, str]:
    """Validate both metadata fields, location first."""
    return validate_location(location), validate_notes(notes)
