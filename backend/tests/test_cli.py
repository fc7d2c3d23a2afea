"""
CLI bootstrap and inspection commands.
"""

from procurement.models import User, Property, ItemMaster, PropertyApprover
from procurement.services import permission_service


def test_create_reference_data(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create", "--email", "PM@Example.com", "--name", "Priya",
        "--role", "property_manager", "--role", "ops_supervisor",
    ])
    assert "PASS Created user: pm@example.com" in result.output
    user = db_session.query(User).filter_by(email="pm@example.com").one()
    assert sorted(r.role for r in user.roles) == ["ops_supervisor", "property_manager"]

    result = runner.invoke(args=["properties", "create", "--name", "Harbour View", "--code", "hbv"])
    assert "PASS" in result.output
    assert db_session.query(Property).one().code == "HBV"

    result = runner.invoke(args=["items", "create", "--name", "LED Bulb", "--unit-limit", "20"])
    assert "PASS" in result.output
    assert db_session.query(ItemMaster).one().unit_limit == 20


def test_duplicate_user_reported(app, db_session, requester):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--email", requester.email, "--role", "staff",
    ])
    assert "FAIL" in result.output


def test_item_limit_must_be_positive(app, db_session):
    result = app.test_cli_runner().invoke(args=["items", "create", "--name", "Broom", "--unit-limit", "0"])
    assert "FAIL" in result.output
    assert db_session.query(ItemMaster).count() == 0


def test_perms_list_and_check(app, db_session, manager):
    runner = app.test_cli_runner()

    listing = runner.invoke(args=["perms", "list", "--role", "staff"])
    assert "CREATE_REQUISITION" in listing.output
    assert "APPROVE_REQUISITION" not in listing.output

    allowed = runner.invoke(args=["perms", "check", manager.email, "APPROVE_REQUISITION"])
    assert allowed.output.startswith("PASS")

    denied = runner.invoke(args=["perms", "check", manager.email, "PROCESS_REQUISITION"])
    assert denied.output.startswith("DENY")

    unknown = runner.invoke(args=["perms", "check", manager.email, "FLY"])
    assert "Unknown permission" in unknown.output


def test_requisitions_list(app, db_session, pending_requisition):
    result = app.test_cli_runner().invoke(args=["requisitions", "list"])
    assert pending_requisition.order_number in result.output
    assert "pending_manager_approval" in result.output

    bad = app.test_cli_runner().invoke(args=["requisitions", "list", "--status", "lost"])
    assert "FAIL" in bad.output


def test_assign_and_revoke_approver(app, db_session, outside_manager, requester, property_p):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "properties", "assign-approver", "--property-id", "P", "--email", outside_manager.email,
    ])
    assert result.output.startswith("PASS")
    assignment = db_session.query(PropertyApprover).filter_by(approver_user_id=outside_manager.id).one()
    assert assignment.property_id == "P"
    assert assignment.is_active
    assert permission_service.is_property_approver(outside_manager.id, "P")

    staff = runner.invoke(args=["properties", "assign-approver", "--property-id", "P", "--email", requester.email])
    assert "does not have APPROVE_REQUISITION" in staff.output

    missing = runner.invoke(args=["properties", "assign-approver", "--property-id", "Q", "--email", outside_manager.email])
    assert "FAIL Property Q not found" in missing.output

    revoked = runner.invoke(args=[
        "properties", "assign-approver", "--property-id", "P", "--email", outside_manager.email, "--revoke",
    ])
    assert revoked.output.startswith("PASS")
    assert not permission_service.is_property_approver(outside_manager.id, "P")

    again = runner.invoke(args=["properties", "assign-approver", "--property-id", "P", "--email", outside_manager.email])
    assert again.output.startswith("PASS")
    assert db_session.query(PropertyApprover).count() == 1
    assert permission_service.is_property_approver(outside_manager.id, "P")
