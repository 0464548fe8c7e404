"""Lightweight validation helpers raising the client's ValidationError."""

from typing import Any

from helpdesk_sync.utils.error_handling import ValidationError


def ensure_present(value: Any, field: str) -> None:
    """Raise ValidationError if value is falsy."""
    if value in (None, "", []):
        raise ValidationError(f"{field} is required")


def require_text(value: Any, field: str) -> str:
    """Return the trimmed text or raise ValidationError when nothing is left."""
    cleaned = str(value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} must not be empty")
    return cleaned
