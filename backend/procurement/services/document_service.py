# Overview: Service-layer operations for document numbering; human-readable requisition order numbers.

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import RequisitionList
from procurement.time_utils import utcnow


DEFAULT_ORDER_PREFIX = "REQ"
ORDER_NUMBER_PAD = 4


def order_number_prefix(now: datetime | None = None) -> str:
    """'REQ-YYYYMMDD-' for the given (or current) UTC day."""
    base = current_app.config.get("REQUISITION_ORDER_PREFIX") or DEFAULT_ORDER_PREFIX
    day = (now or utcnow()).strftime("%Y%m%d")
    return f"{base}-{day}-"


def generate_order_number(now: datetime | None = None) -> str:
    """
    Next display number for today: count of today's numbers + 1.

    NOTE: count-then-increment, no lock. Two concurrent creates on the same
    day can receive the same number. order_number is not the row identity
    (id is) and carries no unique constraint.
    """
    prefix = order_number_prefix(now)
    count = (
        db.session.query(RequisitionList)
        .filter(RequisitionList.order_number.like(f"{prefix}%"))
        .count()
    )
    return f"{prefix}{count + 1:0{ORDER_NUMBER_PAD}d}"
