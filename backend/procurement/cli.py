# Overview: Flask CLI command groups for bootstrap, reference data and inspection.

# backend/procurement/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "procurement:create_app" (PowerShell: $env:FLASK_APP="procurement:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Reference data:
# - python -m flask users create --email pm@example.com --name "Priya M" --role property_manager
#   Create a user mirrored from the identity provider, with one or more roles.
# - python -m flask users list
#   List users with roles and active status.
# - python -m flask properties create --name "Harbour View" --code HBV
#   Create a property.
# - python -m flask properties assign-approver --property-id <id> --email pm@example.com
#   Make a manager an approver for a property (--revoke to deactivate).
# - python -m flask items create --name "LED Bulb" --unit piece --unit-limit 20 --category Electrical
#   Create a catalog item.
#
# Permission inspection:
# - python -m flask perms list --role staff
#   List permissions (optionally filtered by role or category).
# - python -m flask perms check pm@example.com APPROVE_REQUISITION
#   Check whether a user has a permission.
#
# Inspection:
# - python -m flask requisitions list --status pending_manager_approval --limit 20
#   List recent requisitions.

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models import User, UserRole, Property, ItemMaster, PropertyApprover
from .permissions import (
    VALID_ROLES,
    PERMISSION_DEFINITIONS,
    get_permissions_by_category,
    get_permission_definition,
    get_role_permissions,
    validate_permission_code,
)
from .services import lifecycle_service, permission_service
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables. Safe to run repeatedly."""
    click.echo("START Initializing requisition database...")
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', 'full_name', default=None, help='Display name')
@click.option('--role', 'roles', multiple=True, type=click.Choice(sorted(VALID_ROLES)), required=True, help='Role (repeatable)')
@with_appcontext
def create_user_cli(email, full_name, roles):
    """Create a user and grant the given roles."""
    try:
        user = User(email=email.strip().lower(), full_name=full_name, is_active=True)
        db.session.add(user)
        db.session.flush()
        for role in dict.fromkeys(roles):
            db.session.add(UserRole(user_id=user.id, role=role))
        db.session.commit()
        click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with roles: {', '.join(roles)}")
    except IntegrityError:
        db.session.rollback()
        click.echo(f"FAIL A user with email {email} already exists")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.email).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<38} {'Email':<30} {'Active':<8} {'Roles'}")
    click.echo("="*110)

    for user in users:
        roles_str = ", ".join(sorted(r.role for r in user.roles)) or "none"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<30} {active_str:<8} {roles_str}")

    click.echo("="*110 + "\n")


@click.group('properties')
def properties_group():
    """Property reference data."""


@properties_group.command('create')
@click.option('--name', required=True, help='Property name')
@click.option('--code', default=None, help='Short code used in idempotency keys')
@with_appcontext
def create_property_cli(name, code):
    prop = Property(name=name.strip(), code=(code or "").strip().upper() or None, is_active=True)
    db.session.add(prop)
    db.session.commit()
    click.echo(f"PASS Created property: {prop.name} (ID: {prop.id}, Code: {prop.code or '-'})")


@properties_group.command('assign-approver')
@click.option('--property-id', required=True, help='Property ID')
@click.option('--email', required=True, help='Approver email')
@click.option('--revoke', is_flag=True, help='Deactivate the assignment instead')
@with_appcontext
def assign_approver_cli(property_id, email, revoke):
    """Assign (or revoke) a property approver."""
    prop = db.session.get(Property, property_id)
    if not prop:
        click.echo(f"FAIL Property {property_id} not found")
        return

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User {email} not found")
        return

    assignment = (
        db.session.query(PropertyApprover)
        .filter_by(property_id=prop.id, approver_user_id=user.id)
        .first()
    )

    if revoke:
        if not assignment or not assignment.is_active:
            click.echo(f"FAIL {user.email} is not an approver for {prop.name}")
            return
        assignment.is_active = False
        db.session.commit()
        click.echo(f"PASS Revoked {user.email} as approver for {prop.name}")
        return

    if not permission_service.user_has_permission(user.id, "APPROVE_REQUISITION"):
        click.echo(f"FAIL {user.email} does not have APPROVE_REQUISITION")
        return

    if assignment is None:
        assignment = PropertyApprover(property_id=prop.id, approver_user_id=user.id)
        db.session.add(assignment)
    assignment.is_active = True
    db.session.commit()
    click.echo(f"PASS {user.email} is now an approver for {prop.name} (ID: {prop.id})")


@click.group('items')
def items_group():
    """Item catalog reference data."""


@items_group.command('create')
@click.option('--name', required=True, help='Item name')
@click.option('--unit', default='unit', show_default=True, help='Unit of measure')
@click.option('--unit-limit', type=int, required=True, help='Maximum quantity per requisition line')
@click.option('--category', default=None, help='Category name')
@with_appcontext
def create_item_cli(name, unit, unit_limit, category):
    if unit_limit < 1:
        click.echo("FAIL --unit-limit must be at least 1")
        return
    item = ItemMaster(
        name=name.strip(),
        unit=unit.strip(),
        unit_limit=unit_limit,
        category_name=category,
        is_active=True,
    )
    db.session.add(item)
    db.session.commit()
    click.echo(f"PASS Created catalog item: {item.name} (ID: {item.id}, limit {item.unit_limit} {item.unit})")


@click.group('perms')
def perms_group():
    """Permission inspection."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
@with_appcontext
def list_permissions_cli(role, category):
    """List permissions (optionally filtered by role or category)."""
    if role and role not in VALID_ROLES:
        click.echo(f"FAIL Unknown role '{role}'")
        return

    if category:
        definitions = get_permissions_by_category(category.upper())
    else:
        definitions = list(PERMISSION_DEFINITIONS)

    if role:
        granted = get_role_permissions([role])
        definitions = [d for d in definitions if d[0] in granted]

    if not definitions:
        click.echo("No permissions found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'Code':<24} {'Category':<14} {'Description'}")
    click.echo("="*90)
    for code, _name, description, perm_category in definitions:
        click.echo(f"{code:<24} {perm_category:<14} {description}")
    click.echo("="*90 + "\n")


@perms_group.command('check')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(email, permission_code):
    """Check whether a user has a permission."""
    if not validate_permission_code(permission_code):
        click.echo(f"FAIL Unknown permission '{permission_code}'")
        return

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User {email} not found")
        return

    definition = get_permission_definition(permission_code)
    if permission_service.user_has_permission(user.id, permission_code):
        click.echo(f"PASS {user.email} has {permission_code} ({definition['name']})")
    else:
        click.echo(f"DENY {user.email} does not have {permission_code} ({definition['name']})")


@click.group('requisitions')
def requisitions_group():
    """Requisition inspection."""


@requisitions_group.command('list')
@click.option('--status', default=None, help='Filter by status')
@click.option('--property-id', default=None, help='Filter by property ID')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_requisitions_cli(status, property_id, limit):
    """List recent requisitions."""
    try:
        rows = lifecycle_service.list_requisitions(status=status, property_id=property_id, limit=limit)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return

    if not rows:
        click.echo("No requisitions found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Order #':<20} {'Status':<26} {'Priority':<9} {'Items':<6} {'Requested by'}")
    click.echo("="*100)
    for r in rows:
        click.echo(f"{r.order_number:<20} {r.status:<26} {r.priority:<9} {r.total_items:<6} {r.created_by_name}")
    click.echo("="*100 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(properties_group)
    app.cli.add_command(items_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(requisitions_group)
