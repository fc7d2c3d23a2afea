# Overview: Flask API routes for requisition operations; parses input and returns JSON responses.

# backend/procurement/routes/requisitions.py
"""
Requisition API Routes

DESIGN:
- Requesters compose drafts, edit them, submit them, cancel or delete them
- Managers approve / reject / request clarification
- Supervisors reroute (assignee and/or status)
- Purchase executives accept and complete

SECURITY:
- Caller identity comes from @require_auth
- Role and ownership checks happen in the service layer through
  permission_service.authorize_requisition_action()
- Create/submit honour an optional Idempotency-Key header so that a client
  retry after a lost response resolves to the same requisition
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..services import lifecycle_service, approval_service, permission_service
from ..services.lifecycle_service import LifecycleError, OUTCOME_CREATED
from ..validation import ValidationError, AuthorizationError, NotFoundError, ConflictError, coerce_int
from ..decorators import require_auth, require_permission


requisitions_bp = Blueprint("requisitions", __name__, url_prefix="/api/requisitions")


def _service_error(e: Exception):
    if isinstance(e, LifecycleError):
        return jsonify({"error": str(e)}), 409
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e), "reasons": e.reasons}), 400
    if isinstance(e, AuthorizationError):
        return jsonify({"error": "Permission denied", "message": str(e)}), 403
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, ConflictError):
        return jsonify({"error": str(e)}), 409
    raise e


SERVICE_ERRORS = (ValidationError, AuthorizationError, NotFoundError, ConflictError)


def _internal_error(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _can_view(requisition) -> bool:
    user_id = g.user_id
    if requisition.created_by == user_id or requisition.assigned_to == user_id:
        return True
    return permission_service.user_has_permission(user_id, "VIEW_REQUISITIONS")


def _save_response(outcome):
    requisition = lifecycle_service.get_requisition(outcome.requisition_id)
    status = 201 if outcome.outcome == OUTCOME_CREATED else 200
    return jsonify({
        "requisition": requisition.to_dict(include_items=True),
        "outcome": outcome.outcome,
    }), status


# =============================================================================
# QUERIES
# =============================================================================

@requisitions_bp.get("")
@require_auth
def list_requisitions_route():
    """
    List requisitions.

    Query params: status, property_id, mine=1, assigned_to_me=1, limit

    Users without VIEW_REQUISITIONS only ever see their own requisitions.
    """
    try:
        created_by = None
        assigned_to = None
        if request.args.get("mine") == "1" or not permission_service.user_has_permission(g.user_id, "VIEW_REQUISITIONS"):
            created_by = g.user_id
        if request.args.get("assigned_to_me") == "1":
            assigned_to = g.user_id

        limit = request.args.get("limit")
        rows = lifecycle_service.list_requisitions(
            status=request.args.get("status") or None,
            property_id=request.args.get("property_id") or None,
            created_by=created_by,
            assigned_to=assigned_to,
            limit=coerce_int(limit, "limit") if limit else None,
        )
        return jsonify({"requisitions": [r.to_dict() for r in rows]}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to list requisitions")


@requisitions_bp.get("/pending-approvals")
@require_auth
@require_permission("APPROVE_REQUISITION")
def pending_approvals_route():
    """
    Approval queue: pending requisitions of the properties the caller
    approves for (every property for supervisors).

    Query params: limit
    """
    try:
        limit = request.args.get("limit")
        rows = approval_service.list_pending_approvals(
            g.user_id,
            limit=coerce_int(limit, "limit") if limit else None,
        )
        return jsonify({"requisitions": [r.to_dict() for r in rows]}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to list pending approvals")


@requisitions_bp.get("/<requisition_id>")
@require_auth
def get_requisition_route(requisition_id: str):
    try:
        requisition = lifecycle_service.get_requisition(requisition_id)
        if not _can_view(requisition):
            raise AuthorizationError("You cannot view this requisition")
        return jsonify({"requisition": requisition.to_dict(include_items=True)}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to load requisition")


@requisitions_bp.get("/<requisition_id>/history")
@require_auth
def get_history_route(requisition_id: str):
    try:
        requisition = lifecycle_service.get_requisition(requisition_id)
        if not _can_view(requisition):
            raise AuthorizationError("You cannot view this requisition")
        history = lifecycle_service.get_status_history(requisition_id)
        return jsonify({"history": [h.to_dict() for h in history]}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to load requisition history")


# =============================================================================
# REQUESTER ACTIONS
# =============================================================================

@requisitions_bp.post("")
@require_auth
@require_permission("CREATE_REQUISITION")
def create_draft_route():
    """
    Save a new draft.

    Request body:
    {
        "property_id": "...",
        "priority": "normal",              (optional)
        "expected_delivery_date": "2024-02-01",  (optional)
        "notes": "...",                    (optional)
        "items": [{"item_master_id": "...", "quantity": 2}]
    }

    Returns:
        201: Draft created
        200: Duplicate of an earlier create (same Idempotency-Key / moment)
        400: Validation failed (nothing written)
    """
    try:
        data = _json_body()
        outcome = lifecycle_service.save_draft(
            lifecycle_service.form_from_payload(data),
            lifecycle_service.items_from_payload(data.get("items")),
            actor_id=g.user_id,
            idempotency_key=request.headers.get("Idempotency-Key"),
        )
        return _save_response(outcome)

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to save draft")


@requisitions_bp.put("/<requisition_id>")
@require_auth
def update_draft_route(requisition_id: str):
    """Replace a draft's metadata and full item set (creator only)."""
    try:
        data = _json_body()
        outcome = lifecycle_service.save_draft(
            lifecycle_service.form_from_payload(data),
            lifecycle_service.items_from_payload(data.get("items")),
            actor_id=g.user_id,
            existing_id=requisition_id,
        )
        return _save_response(outcome)

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to update draft")


@requisitions_bp.post("/submit")
@require_auth
@require_permission("CREATE_REQUISITION")
def submit_new_route():
    """Create and submit in one step. Same body as draft creation."""
    try:
        data = _json_body()
        outcome = lifecycle_service.submit_for_approval(
            lifecycle_service.form_from_payload(data),
            lifecycle_service.items_from_payload(data.get("items")),
            actor_id=g.user_id,
            idempotency_key=request.headers.get("Idempotency-Key"),
        )
        return _save_response(outcome)

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to submit requisition")


@requisitions_bp.post("/<requisition_id>/submit")
@require_auth
def submit_existing_route(requisition_id: str):
    """
    Submit a draft.

    With a body containing "items", the draft is rewritten first (same as
    PUT) and then submitted. Without, the stored draft is submitted as-is.
    """
    try:
        data = _json_body()
        if "items" in data:
            outcome = lifecycle_service.submit_for_approval(
                lifecycle_service.form_from_payload(data),
                lifecycle_service.items_from_payload(data.get("items")),
                actor_id=g.user_id,
                existing_id=requisition_id,
            )
            return _save_response(outcome)

        requisition = lifecycle_service.submit_existing(requisition_id, actor_id=g.user_id)
        return jsonify({"requisition": requisition.to_dict(include_items=True)}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to submit requisition")


@requisitions_bp.post("/<requisition_id>/cancel")
@require_auth
def cancel_submission_route(requisition_id: str):
    try:
        requisition = lifecycle_service.cancel_submission(requisition_id, actor_id=g.user_id)
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to cancel submission")


@requisitions_bp.delete("/<requisition_id>")
@require_auth
def delete_draft_route(requisition_id: str):
    try:
        lifecycle_service.delete_draft(requisition_id, actor_id=g.user_id)
        return jsonify({"deleted": requisition_id}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to delete requisition")


# =============================================================================
# APPROVAL WORKFLOW
# =============================================================================

@requisitions_bp.post("/<requisition_id>/approve")
@require_auth
def approve_route(requisition_id: str):
    """
    Approve a pending requisition.

    Request body: {"remarks": "ok"}  (optional)
    """
    try:
        data = _json_body()
        requisition = approval_service.approve_requisition(
            requisition_id,
            actor_id=g.user_id,
            remarks=data.get("remarks"),
        )
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to approve requisition")


@requisitions_bp.post("/<requisition_id>/reject")
@require_auth
def reject_route(requisition_id: str):
    """
    Reject a pending requisition.

    Request body: {"reason": "Over budget"}  (required)
    """
    try:
        data = _json_body()
        requisition = approval_service.reject_requisition(
            requisition_id,
            actor_id=g.user_id,
            reason=data.get("reason"),
        )
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to reject requisition")


@requisitions_bp.post("/<requisition_id>/clarify")
@require_auth
def clarify_route(requisition_id: str):
    """
    Request clarification from the requester. Status is unchanged.

    Request body: {"message": "Which model?"}  (required)
    """
    try:
        data = _json_body()
        requisition = approval_service.request_clarification(
            requisition_id,
            actor_id=g.user_id,
            message=data.get("message"),
        )
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to request clarification")


@requisitions_bp.post("/bulk-approve")
@require_auth
@require_permission("APPROVE_REQUISITION")
def bulk_approve_route():
    """
    Request body: {"requisition_ids": ["...", "..."]}
    """
    try:
        data = _json_body()
        ids = data.get("requisition_ids")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("requisition_ids must be a non-empty list")

        result = approval_service.bulk_approve([str(i) for i in ids], actor_id=g.user_id)
        return jsonify({
            "approved": result.approved,
            "failed": [{"id": rid, "error": err} for rid, err in result.failed],
        }), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to bulk approve requisitions")


@requisitions_bp.post("/<requisition_id>/reroute")
@require_auth
def reroute_route(requisition_id: str):
    """
    Reassign and/or force status (supervisors only).

    Request body:
    {
        "assigned_to": "<purchase executive id>",  (optional)
        "status": "in_progress",                   (optional)
        "remarks": "..."                           (optional)
    }
    """
    try:
        data = _json_body()
        requisition = approval_service.reroute_requisition(
            requisition_id,
            actor_id=g.user_id,
            new_assignee_id=data.get("assigned_to"),
            new_status=data.get("status"),
            remarks=data.get("remarks"),
        )
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to reroute requisition")


# =============================================================================
# PURCHASING
# =============================================================================

@requisitions_bp.post("/<requisition_id>/accept")
@require_auth
def accept_route(requisition_id: str):
    try:
        requisition = approval_service.accept_requisition(requisition_id, actor_id=g.user_id)
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to accept requisition")


@requisitions_bp.post("/<requisition_id>/complete")
@require_auth
def complete_route(requisition_id: str):
    try:
        data = _json_body()
        requisition = approval_service.complete_requisition(
            requisition_id,
            actor_id=g.user_id,
            remarks=data.get("remarks"),
        )
        return jsonify({"requisition": requisition.to_dict()}), 200

    except SERVICE_ERRORS as e:
        return _service_error(e)
    except Exception:
        return _internal_error("Failed to complete requisition")
