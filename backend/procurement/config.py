# backend/procurement/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/procurement.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///procurement.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Requisition numbering: REQ-YYYYMMDD-NNNN
    REQUISITION_ORDER_PREFIX = os.environ.get("REQUISITION_ORDER_PREFIX", "REQ")

    # Used in idempotency keys when a property has neither a code nor a usable name
    REQUISITION_FALLBACK_PROPERTY_CODE = os.environ.get("REQUISITION_FALLBACK_PROPERTY_CODE", "PROP")

    REQUISITION_LIST_LIMIT = int(os.environ.get("REQUISITION_LIST_LIMIT", "200"))

    # In-app notifications for requesters and assignees
    NOTIFICATIONS_ENABLED = os.environ.get("NOTIFICATIONS_ENABLED", "1") == "1"
