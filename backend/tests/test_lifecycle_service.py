"""
Requisition lifecycle tests.

Verifies:
- Validation blocks out-of-bounds quantities before anything is written
- Retried create/submit resolves to the same requisition
- Drafts are editable only by their creator, and only while draft
- Editing replaces the whole item set
- Submit / cancel / delete follow the state machine
"""

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import FIXED_NOW, form_for, line
from procurement.models import RequisitionList, RequisitionListItem, RequisitionStatusHistory, SecurityEvent
from procurement.services import lifecycle_service
from procurement.services.lifecycle_service import (
    LifecycleError,
    OUTCOME_ALREADY_EXISTS,
    OUTCOME_CREATED,
    OUTCOME_UPDATED,
    RequisitionForm,
    LineItemInput,
)
from procurement.validation import AuthorizationError, ConflictError, NotFoundError, ValidationError


def _count(db_session, model):
    return db_session.query(model).count()


# =============================================================================
# PURE VALIDATION
# =============================================================================


class TestValidateRequisition:
    def test_valid_form(self):
        result = lifecycle_service.validate_requisition(
            RequisitionForm(property_id="P"),
            [LineItemInput(item_master_id="X1", quantity=2, unit_limit=5)],
        )
        assert result.ok
        assert result.reasons == ()

    def test_missing_property_and_items(self):
        result = lifecycle_service.validate_requisition(RequisitionForm(property_id=None), [])
        assert not result.ok
        assert "Please select a property" in result.reasons
        assert "Please add at least one item" in result.reasons

    @pytest.mark.parametrize("quantity", [0, -1, 6])
    def test_quantity_out_of_bounds(self, quantity):
        result = lifecycle_service.validate_requisition(
            RequisitionForm(property_id="P"),
            [LineItemInput(item_master_id="X1", quantity=quantity, item_name="LED Bulb", unit_limit=5)],
        )
        assert not result.ok
        assert result.reasons[0].startswith("LED Bulb: quantity")

    def test_quantity_at_limit_is_valid(self):
        result = lifecycle_service.validate_requisition(
            RequisitionForm(property_id="P"),
            [LineItemInput(item_master_id="X1", quantity=5, unit_limit=5)],
        )
        assert result.ok

    def test_duplicate_item_rejected(self):
        result = lifecycle_service.validate_requisition(
            RequisitionForm(property_id="P"),
            [line("X1", 1), line("X1", 2)],
        )
        assert not result.ok
        assert any("already added" in r for r in result.reasons)

    def test_unknown_priority(self):
        result = lifecycle_service.validate_requisition(
            RequisitionForm(property_id="P", priority="whenever"),
            [line("X1", 1)],
        )
        assert not result.ok

    def test_total_items(self):
        assert lifecycle_service.calculate_total_items([line("A", 2), line("B", 3)]) == 5


class TestStateMachine:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("draft", "pending_manager_approval"),
            ("pending_manager_approval", "draft"),
            ("pending_manager_approval", "manager_approved"),
            ("pending_manager_approval", "rejected"),
            ("manager_approved", "in_progress"),
            ("in_progress", "completed"),
        ],
    )
    def test_allowed(self, from_status, to_status):
        assert lifecycle_service.can_transition(from_status, to_status)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("draft", "manager_approved"),
            ("draft", "completed"),
            ("manager_approved", "draft"),
            ("rejected", "draft"),
            ("completed", "in_progress"),
        ],
    )
    def test_forbidden(self, from_status, to_status):
        assert not lifecycle_service.can_transition(from_status, to_status)

    def test_reroute_moves_between_post_approval_states(self):
        assert lifecycle_service.can_transition("in_progress", "manager_approved", reroute=True)
        assert lifecycle_service.can_transition("manager_approved", "completed", reroute=True)
        assert not lifecycle_service.can_transition("pending_manager_approval", "in_progress", reroute=True)
        assert not lifecycle_service.can_transition("completed", "in_progress", reroute=True)

    def test_unknown_status(self):
        with pytest.raises(LifecycleError):
            lifecycle_service.can_transition("draft", "shipped")


# =============================================================================
# SAVE / SUBMIT
# =============================================================================


class TestSaveDraft:
    def test_creates_draft_with_catalog_snapshot(self, db_session, requester, property_p, item_x1):
        outcome = lifecycle_service.save_draft(
            form_for(property_p, notes="Lobby lights"),
            [line("X1", 2)],
            actor_id=requester.id,
            now=FIXED_NOW,
        )

        assert outcome.outcome == OUTCOME_CREATED
        req = lifecycle_service.get_requisition(outcome.requisition_id)
        assert req.status == "draft"
        assert req.total_items == 2
        assert req.created_by_name == "Sam Staff"
        assert req.idempotency_key == "HBV-20240115093000"
        assert req.order_number == "REQ-20240115-0001"
        assert [(i.item_name, i.unit, i.unit_limit, i.quantity) for i in req.items] == [
            ("LED Bulb", "piece", 5, 2)
        ]

    @pytest.mark.parametrize("quantity", [0, 6])
    def test_quantity_bound_writes_nothing(self, db_session, requester, property_p, item_x1, quantity):
        with pytest.raises(ValidationError):
            lifecycle_service.submit_for_approval(
                form_for(property_p),
                [line("X1", quantity)],
                actor_id=requester.id,
                now=FIXED_NOW,
            )

        assert _count(db_session, RequisitionList) == 0
        assert _count(db_session, RequisitionListItem) == 0
        assert _count(db_session, RequisitionStatusHistory) == 0

    def test_empty_items_rejected(self, db_session, requester, property_p):
        with pytest.raises(ValidationError) as exc:
            lifecycle_service.save_draft(form_for(property_p), [], actor_id=requester.id)
        assert "Please add at least one item" in exc.value.reasons
        assert _count(db_session, RequisitionList) == 0

    def test_unknown_catalog_item(self, db_session, requester, property_p):
        with pytest.raises(NotFoundError):
            lifecycle_service.save_draft(form_for(property_p), [line("NOPE", 1)], actor_id=requester.id)
        assert _count(db_session, RequisitionList) == 0

    def test_unknown_property(self, db_session, requester, item_x1):
        with pytest.raises(NotFoundError):
            lifecycle_service.save_draft(
                RequisitionForm(property_id="missing"), [line("X1", 1)], actor_id=requester.id,
            )


class TestIdempotentSubmit:
    def test_retry_returns_same_requisition(self, db_session, requester, property_p, item_x1):
        first = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )
        second = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )

        assert first.outcome == OUTCOME_CREATED
        assert second.outcome == OUTCOME_ALREADY_EXISTS
        assert second.already_existed
        assert second.requisition_id == first.requisition_id
        assert _count(db_session, RequisitionList) == 1

    def test_client_key_overrides_derived_key(self, db_session, requester, property_p, item_x1):
        first = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)],
            actor_id=requester.id, now=datetime(2024, 1, 15, 9, 0, 0), idempotency_key="client-abc",
        )
        retry = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)],
            actor_id=requester.id, now=datetime(2024, 1, 15, 9, 0, 7), idempotency_key="client-abc",
        )

        assert retry.requisition_id == first.requisition_id
        assert lifecycle_service.get_requisition(first.requisition_id).idempotency_key == "client-abc"

    def test_different_seconds_are_distinct(self, db_session, requester, property_p, item_x1):
        a = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)], actor_id=requester.id, now=datetime(2024, 1, 15, 9, 0, 0),
        )
        b = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)], actor_id=requester.id, now=datetime(2024, 1, 15, 9, 0, 1),
        )
        assert a.requisition_id != b.requisition_id
        assert _count(db_session, RequisitionList) == 2

    def test_key_owned_by_another_user_conflicts(self, db_session, requester, other_requester, property_p, item_x1):
        lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)], actor_id=requester.id, now=FIXED_NOW,
        )
        with pytest.raises(ConflictError):
            lifecycle_service.submit_for_approval(
                form_for(property_p), [line("X1", 1)], actor_id=other_requester.id, now=FIXED_NOW,
            )
        assert _count(db_session, RequisitionList) == 1

    def test_concurrent_insert_resolves_to_existing(self, db_session, monkeypatch, requester, property_p, item_x1):
        first = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )

        # The pre-insert lookup misses, as if the other request had not committed yet
        real_lookup = lifecycle_service.find_by_idempotency_key
        calls = []

        def lookup_after_race(key):
            calls.append(key)
            if len(calls) == 1:
                return None
            return real_lookup(key)

        monkeypatch.setattr(lifecycle_service, "find_by_idempotency_key", lookup_after_race)

        second = lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )

        assert len(calls) == 2
        assert second.outcome == OUTCOME_ALREADY_EXISTS
        assert second.requisition_id == first.requisition_id
        assert _count(db_session, RequisitionList) == 1
        assert _count(db_session, RequisitionListItem) == 1

    def test_other_integrity_errors_propagate(self, db_session, monkeypatch, requester, property_p, item_x1):
        monkeypatch.setattr(lifecycle_service, "generate_order_number", lambda moment: None)

        with pytest.raises(IntegrityError):
            lifecycle_service.submit_for_approval(
                form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
            )

        assert _count(db_session, RequisitionList) == 0
        assert _count(db_session, RequisitionStatusHistory) == 0


class TestEditDraft:
    def _draft(self, requester, property_p, items):
        outcome = lifecycle_service.save_draft(
            form_for(property_p), items, actor_id=requester.id, now=FIXED_NOW,
        )
        return outcome.requisition_id

    def test_item_set_replaced(self, db_session, requester, property_p, catalog):
        req_id = self._draft(requester, property_p, [line("A", 2), line("B", 3)])

        outcome = lifecycle_service.save_draft(
            form_for(property_p), [line("A", 5)], actor_id=requester.id, existing_id=req_id,
        )

        assert outcome.outcome == OUTCOME_UPDATED
        rows = db_session.query(RequisitionListItem).filter_by(requisition_list_id=req_id).all()
        assert [(r.item_master_id, r.quantity) for r in rows] == [("A", 5)]
        assert lifecycle_service.get_requisition(req_id).total_items == 5

    def test_only_creator_may_edit(self, db_session, requester, other_requester, property_p, item_x1):
        req_id = self._draft(requester, property_p, [line("X1", 2)])

        with pytest.raises(AuthorizationError):
            lifecycle_service.save_draft(
                form_for(property_p), [line("X1", 4)], actor_id=other_requester.id, existing_id=req_id,
            )

        req = lifecycle_service.get_requisition(req_id)
        assert [i.quantity for i in req.items] == [2]
        denial = db_session.query(SecurityEvent).filter_by(user_id=other_requester.id).one()
        assert denial.event_type == "OWNERSHIP_DENIED"
        assert denial.success is False

    def test_failed_edit_keeps_previous_items(self, db_session, requester, property_p, catalog):
        req_id = self._draft(requester, property_p, [line("A", 2), line("B", 3)])

        with pytest.raises(ValidationError):
            lifecycle_service.save_draft(
                form_for(property_p), [line("A", 50)], actor_id=requester.id, existing_id=req_id,
            )

        rows = db_session.query(RequisitionListItem).filter_by(requisition_list_id=req_id).all()
        assert sorted((r.item_master_id, r.quantity) for r in rows) == [("A", 2), ("B", 3)]

    def test_submitted_requisition_is_frozen(self, db_session, requester, pending_requisition):
        with pytest.raises(LifecycleError):
            lifecycle_service.save_draft(
                form_for(pending_requisition.property), [line("X1", 1)],
                actor_id=requester.id, existing_id=pending_requisition.id,
            )

    def test_update_and_submit(self, db_session, requester, property_p, item_x1):
        req_id = self._draft(requester, property_p, [line("X1", 1)])

        outcome = lifecycle_service.submit_for_approval(
            form_for(property_p, priority="urgent"), [line("X1", 3)],
            actor_id=requester.id, existing_id=req_id,
        )

        req = lifecycle_service.get_requisition(outcome.requisition_id)
        assert req.status == "pending_manager_approval"
        assert req.priority == "urgent"
        assert req.total_items == 3
        assert req.submitted_at is not None


class TestSubmitCancelDelete:
    def test_submit_existing_draft(self, db_session, requester, property_p, item_x1):
        outcome = lifecycle_service.save_draft(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )

        req = lifecycle_service.submit_existing(outcome.requisition_id, actor_id=requester.id)

        assert req.status == "pending_manager_approval"
        actions = [h.action for h in lifecycle_service.get_status_history(req.id)]
        assert actions == ["create", "submit"]

    def test_submit_existing_requires_creator(self, db_session, requester, other_requester, property_p, item_x1):
        outcome = lifecycle_service.save_draft(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )
        with pytest.raises(AuthorizationError):
            lifecycle_service.submit_existing(outcome.requisition_id, actor_id=other_requester.id)

    def test_cancel_returns_to_draft(self, db_session, requester, pending_requisition):
        req = lifecycle_service.cancel_submission(pending_requisition.id, actor_id=requester.id)
        assert req.status == "draft"
        assert req.submitted_at is None

    def test_cancel_only_when_pending(self, db_session, requester, property_p, item_x1):
        outcome = lifecycle_service.save_draft(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )
        with pytest.raises(LifecycleError):
            lifecycle_service.cancel_submission(outcome.requisition_id, actor_id=requester.id)

    def test_delete_draft_removes_lines_and_history(self, db_session, requester, property_p, item_x1):
        outcome = lifecycle_service.save_draft(
            form_for(property_p), [line("X1", 2)], actor_id=requester.id, now=FIXED_NOW,
        )

        lifecycle_service.delete_draft(outcome.requisition_id, actor_id=requester.id)

        assert _count(db_session, RequisitionList) == 0
        assert _count(db_session, RequisitionListItem) == 0
        assert _count(db_session, RequisitionStatusHistory) == 0

    def test_delete_submitted_refused(self, db_session, requester, pending_requisition):
        with pytest.raises(LifecycleError):
            lifecycle_service.delete_draft(pending_requisition.id, actor_id=requester.id)
        assert _count(db_session, RequisitionList) == 1


class TestListRequisitions:
    def test_filters(self, db_session, requester, other_requester, property_p, item_x1):
        lifecycle_service.save_draft(
            form_for(property_p), [line("X1", 1)], actor_id=requester.id, now=datetime(2024, 1, 15, 8, 0, 0),
        )
        lifecycle_service.submit_for_approval(
            form_for(property_p), [line("X1", 1)], actor_id=other_requester.id, now=datetime(2024, 1, 15, 8, 0, 1),
        )

        assert len(lifecycle_service.list_requisitions()) == 2
        assert len(lifecycle_service.list_requisitions(created_by=requester.id)) == 1
        pending = lifecycle_service.list_requisitions(status="pending_manager_approval")
        assert [r.created_by for r in pending] == [other_requester.id]

    def test_unknown_status_filter(self, db_session):
        with pytest.raises(LifecycleError):
            lifecycle_service.list_requisitions(status="lost")
