import os

# Must be set before ironing_service.db / rate_limit are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import ironing_service.db as db
import ironing_service.sms as sms_mod
from ironing_service.auth import issue_api_token
from ironing_service.main import app
from ironing_service.models import (
    Address,
    Base,
    Center,
    Role,
    Service,
    Timeslot,
    User,
    Wallet,
)
from ironing_service.order_state_machine import transition_order_status
from ironing_service.services import orders as order_service

CUSTOMER_BALANCE = 50000


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite DB.

    Uses StaticPool so all connections share the same in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def mock_sms(monkeypatch):
    """Force SMS mock mode regardless of the developer's environment."""
    monkeypatch.setattr(sms_mod, "TWILIO_ACCOUNT_SID", None)
    monkeypatch.setattr(sms_mod, "TWILIO_AUTH_TOKEN", None)
    monkeypatch.setattr(sms_mod, "TWILIO_PHONE_NUMBER", None)


def _add_user(session, key, role, phone=None):
    user = User(name=key.replace("_", " ").title(), email=f"{key}@example.com", phone=phone, role=role)
    session.add(user)
    session.flush()
    return user


@pytest.fixture
def seed(db_session):
    """Users for every role (with API tokens), catalog, and timeslots.

    Returns a namespace of ids and plain tokens so tests never depend on
    objects bound to a particular session.
    """
    users = {
        "customer": _add_user(db_session, "customer", Role.USER, phone="9876543210"),
        "other_customer": _add_user(db_session, "other_customer", Role.USER, phone="9876500000"),
        "partner": _add_user(db_session, "partner", Role.DELIVERY_PERSON),
        "other_partner": _add_user(db_session, "other_partner", Role.DELIVERY_PERSON),
        "manager": _add_user(db_session, "manager", Role.FLOOR_MANAGER),
        "operator": _add_user(db_session, "operator", Role.CENTER_OPERATOR),
        "admin": _add_user(db_session, "admin", Role.ADMIN),
    }

    for key in ("customer", "other_customer"):
        db_session.add(Wallet(user_id=users[key].id, balance_cents=CUSTOMER_BALANCE))

    home = Address(user_id=users["customer"].id, label="Home", line1="12 MG Road", city="Bengaluru", pincode="560001")
    office = Address(user_id=users["customer"].id, label="Office", line1="4 Park Street", city="Bengaluru", pincode="560002")
    other_home = Address(user_id=users["other_customer"].id, label="Home", line1="9 Lake View", city="Pune", pincode="411001")
    center = Center(name="Downtown Ironing Center", address="1 Main Street")
    shirt = Service(name="Shirt", base_price_cents=500)
    pants = Service(name="Pants", base_price_cents=700)
    dress = Service(name="Dress", base_price_cents=1200)
    db_session.add_all([home, office, other_home, center, shirt, pants, dress])
    db_session.flush()

    tomorrow = date.today() + timedelta(days=1)
    morning = Timeslot(center_id=center.id, date=tomorrow, start_time="09:00", end_time="11:00",
                       capacity=10, remaining_capacity=10)
    midday = Timeslot(center_id=center.id, date=tomorrow, start_time="11:00", end_time="13:00",
                      capacity=10, remaining_capacity=10)
    last_seat = Timeslot(center_id=center.id, date=tomorrow, start_time="13:00", end_time="15:00",
                         capacity=1, remaining_capacity=1)
    db_session.add_all([morning, midday, last_seat])
    db_session.commit()

    tokens = {key: issue_api_token(db_session, user) for key, user in users.items()}

    return SimpleNamespace(
        user_ids={key: user.id for key, user in users.items()},
        tokens=tokens,
        address_id=home.id,
        office_address_id=office.id,
        other_address_id=other_home.id,
        center_id=center.id,
        shirt_id=shirt.id,
        pants_id=pants.id,
        dress_id=dress.id,
        timeslot_id=morning.id,
        other_timeslot_id=midday.id,
        last_seat_timeslot_id=last_seat.id,
    )


@pytest.fixture
def client(session_factory, seed):
    """Shared FastAPI TestClient using the seeded in-memory SQLite DB."""

    def override_get_db():
        db_sess = session_factory()
        try:
            yield db_sess
        finally:
            db_sess.close()

    app.dependency_overrides[db.get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth(seed):
    """auth("customer") -> Authorization header for that seeded user."""

    def _headers(key):
        return {"Authorization": f"Bearer {seed.tokens[key]}"}

    return _headers


@pytest.fixture
def get_user(db_session):
    def _get(user_id):
        db_session.expire_all()
        return db_session.get(User, user_id)

    return _get


@pytest.fixture
def place_order(db_session, seed):
    """Create a PLACED order through the service layer and return its id."""

    def _place(items=None, delivery_type="STANDARD", user_key="customer", timeslot_id=None, address_id=None):
        user = db_session.get(User, seed.user_ids[user_key])
        order = order_service.create_order(
            db_session,
            user,
            address_id=address_id or (seed.address_id if user_key == "customer" else seed.other_address_id),
            timeslot_id=timeslot_id or seed.timeslot_id,
            items=items or [{"service_id": seed.shirt_id, "quantity": 2}],
            delivery_type=delivery_type,
        )
        return order.id

    return _place


@pytest.fixture
def advance_order(db_session, seed):
    """Walk an order through the given statuses as the admin user."""

    def _advance(order_id, *statuses):
        for status in statuses:
            transition_order_status(
                db_session,
                order_id,
                status,
                actor_id=seed.user_ids["admin"],
                actor_role=Role.ADMIN,
            )

    return _advance
