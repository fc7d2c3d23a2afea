from __future__ import annotations

from typing import Any


# Hard ceiling for a single line quantity, independent of unit_limit.
# Keeps obviously broken payloads out of integer columns.
MAX_LINE_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem. Raised before any write."""

    def __init__(self, message: str, reasons: list[str] | None = None):
        super().__init__(message)
        self.reasons = list(reasons) if reasons else [message]


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., idempotency key owned by another user)."""


class AuthorizationError(Exception):
    """403-level: wrong role or wrong ownership for the attempted action."""


class NotFoundError(LookupError):
    """404-level: referenced requisition, property or catalog item does not exist."""


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for client-supplied quantities.

    Rejects floats, booleans, scientific notation and decimal strings.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    raise ValidationError(f"{field} must be an integer")


def clean_text(value: Any) -> str | None:
    """Strip a free-text value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_text(value: Any, field: str) -> str:
    """Required non-empty free text (reasons, clarification messages)."""
    text = clean_text(value)
    if not text:
        raise ValidationError(f"{field} is required")
    return text
