"""
Pytest fixtures for procurement backend tests.

Provides test database setup, role-holding users, reference data and a
test client.
"""

from datetime import datetime

import pytest
from procurement import create_app
from procurement.extensions import db
from procurement.models import User, UserRole, Property, ItemMaster, PropertyApprover
from procurement.permissions import (
    ROLE_STAFF,
    ROLE_PROPERTY_MANAGER,
    ROLE_OPS_SUPERVISOR,
    ROLE_PURCHASE_EXECUTIVE,
)
from procurement.services import lifecycle_service
from procurement.services.lifecycle_service import RequisitionForm, LineItemInput


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, user_id, email, name, *roles):
    user = User(id=user_id, email=email, full_name=name, is_active=True)
    db_session.add(user)
    db_session.flush()
    for role in roles:
        db_session.add(UserRole(user_id=user.id, role=role))
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def requester(db_session):
    """Staff member who raises requisitions."""
    return _make_user(db_session, "U1", "staff@example.com", "Sam Staff", ROLE_STAFF)


@pytest.fixture(scope='function')
def other_requester(db_session):
    return _make_user(db_session, "U2", "other@example.com", "Olu Other", ROLE_STAFF)


@pytest.fixture(scope='function')
def manager(db_session, property_p):
    """Property manager M1, active approver for property P."""
    user = _make_user(db_session, "M1", "pm@example.com", "Priya Manager", ROLE_PROPERTY_MANAGER)
    db_session.add(PropertyApprover(property_id=property_p.id, approver_user_id=user.id, is_active=True))
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def outside_manager(db_session):
    """Property manager M2, approver for no property."""
    return _make_user(db_session, "M2", "pm2@example.com", "Mo Manager", ROLE_PROPERTY_MANAGER)


@pytest.fixture(scope='function')
def supervisor(db_session):
    return _make_user(db_session, "S1", "ops@example.com", "Ola Supervisor", ROLE_OPS_SUPERVISOR)


@pytest.fixture(scope='function')
def executive(db_session):
    """Purchase executive with the well-known id E2."""
    return _make_user(db_session, "E2", "buyer@example.com", "Eve Buyer", ROLE_PURCHASE_EXECUTIVE)


@pytest.fixture(scope='function')
def other_executive(db_session):
    return _make_user(db_session, "E3", "buyer2@example.com", "Ezra Buyer", ROLE_PURCHASE_EXECUTIVE)


@pytest.fixture(scope='function')
def property_p(db_session):
    prop = Property(id="P", name="Harbour View Towers", code="HBV", is_active=True)
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture(scope='function')
def item_x1(db_session):
    """Catalog item X1, at most 5 per requisition."""
    item = ItemMaster(id="X1", name="LED Bulb", category_name="Electrical", unit="piece", unit_limit=5)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def catalog(db_session, item_x1):
    """X1 plus items A and B."""
    a = ItemMaster(id="A", name="Mop", category_name="Housekeeping", unit="piece", unit_limit=10)
    b = ItemMaster(id="B", name="Bleach", category_name="Housekeeping", unit="litre", unit_limit=10)
    db_session.add_all([a, b])
    db_session.commit()
    return {"X1": item_x1, "A": a, "B": b}


FIXED_NOW = datetime(2024, 1, 15, 9, 30, 0)


def form_for(prop, **kwargs):
    return RequisitionForm(property_id=prop.id, **kwargs)


def line(item_id: str, quantity: int) -> LineItemInput:
    return LineItemInput(item_master_id=item_id, quantity=quantity)


@pytest.fixture(scope='function')
def pending_requisition(db_session, requester, property_p, item_x1):
    """A requisition submitted by `requester` and awaiting a manager."""
    outcome = lifecycle_service.submit_for_approval(
        form_for(property_p),
        [line("X1", 2)],
        actor_id=requester.id,
        now=FIXED_NOW,
    )
    return lifecycle_service.get_requisition(outcome.requisition_id)


def user_headers(user) -> dict:
    """Helper to create identity headers for a user."""
    return {'X-User-Id': user.id}
