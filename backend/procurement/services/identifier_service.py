# Overview: Service-layer operations for identifier; derives idempotency keys for requisition creation.

"""
Idempotency Key Service

WHY: A requester double-clicking "Submit", or a client retrying after a
dropped response, must not produce two requisitions. Every create carries a
key derived BEFORE the insert; the unique constraint on
requisition_lists.idempotency_key turns the second insert into a lookup.

KEY FORMAT:
    <PROPERTY CODE>-<YYYYMMDDHHMMSS>

    PROPERTY CODE: the property's stored code, else its name reduced to
    [A-Z0-9] (first 6 chars), else the configured fallback ("PROP").

Two calls for the same property within the same second produce the same
key. That is intended: they are treated as one logical action.
"""

from __future__ import annotations

import re
from datetime import datetime

from flask import current_app

from ..models import Property
from procurement.time_utils import utcnow


DEFAULT_FALLBACK_CODE = "PROP"
NAME_CODE_LENGTH = 6
MAX_KEY_LENGTH = 128

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_KEY_ALLOWED = re.compile(r"[^A-Za-z0-9_.:\-]")


def normalize_code(value: str | None) -> str:
    """Uppercase, alphanumerics only."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", value).upper()


def _fallback_code() -> str:
    try:
        return current_app.config.get("REQUISITION_FALLBACK_PROPERTY_CODE") or DEFAULT_FALLBACK_CODE
    except RuntimeError:
        # Outside an application context (pure unit use)
        return DEFAULT_FALLBACK_CODE


def property_code(prop: Property | None) -> str:
    """
    Short code identifying a property inside idempotency keys.

    Priority: stored code > sanitized name > fallback constant.
    """
    if prop is not None:
        code = normalize_code(prop.code)
        if code:
            return code
        from_name = normalize_code(prop.name)[:NAME_CODE_LENGTH]
        if from_name:
            return from_name
    return _fallback_code()


def generate_idempotency_key(code: str, now: datetime | None = None) -> str:
    """
    Combine a property code with a second-resolution timestamp.
    """
    moment = now or utcnow()
    return f"{code or _fallback_code()}-{moment.strftime('%Y%m%d%H%M%S')}"


def normalize_client_key(value: str | None) -> str | None:
    """
    Clean a caller-supplied key (Idempotency-Key header).

    Returns None when nothing usable remains, in which case a derived key is used.
    """
    if value is None:
        return None
    cleaned = _KEY_ALLOWED.sub("", value.strip())[:MAX_KEY_LENGTH]
    return cleaned or None


def key_for_property(prop: Property | None, now: datetime | None = None, client_key: str | None = None) -> str:
    """Idempotency key for one create/submit action on a property."""
    supplied = normalize_client_key(client_key)
    if supplied:
        return supplied
    return generate_idempotency_key(property_code(prop), now)
