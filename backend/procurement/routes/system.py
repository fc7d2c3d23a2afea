# backend/procurement/routes/system.py
"""
System health endpoint.

Reports database reachability and whether reference data the requisition
workflow depends on (roles, properties, catalog) has been seeded.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import UserRole, Property, ItemMaster, RequisitionList
from ..permissions import ROLE_PROPERTY_MANAGER, SUPERVISOR_ROLES
from procurement.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        requisition_count = db.session.query(RequisitionList).count()
        property_count = db.session.query(Property).filter_by(is_active=True).count()
        catalog_count = db.session.query(ItemMaster).filter_by(is_active=True).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "requisitions": requisition_count,
                "active_properties": property_count,
                "catalog_items": catalog_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_approver_health() -> dict:
    """
    Check that someone can approve and someone can reroute.

    Degraded (not unhealthy) when no approver or supervisor exists: the
    service works, but submitted requisitions would sit in the queue.
    """
    start_time = time.time()
    try:
        roles = {r[0] for r in db.session.query(UserRole.role).distinct().all()}
        missing = []
        if ROLE_PROPERTY_MANAGER not in roles and not roles.intersection(SUPERVISOR_ROLES):
            missing.append("approver")
        if not roles.intersection(SUPERVISOR_ROLES):
            missing.append("supervisor")

        elapsed_ms = (time.time() - start_time) * 1000
        if missing:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": f"No users with role: {', '.join(missing)}",
            }
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"roles_in_use": sorted(roles)},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Approver health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Role lookup error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: Healthy or degraded
    - 503: Database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    approver_health = check_approver_health()

    all_checks = [database_health, approver_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200  # Degraded is still operational
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "approvers": approver_health,
        }
    }

    return response, http_status
