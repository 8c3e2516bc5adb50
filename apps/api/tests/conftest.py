"""Pytest configuration and fixtures for ledger and API tests."""

import os

# Settings are read at import time by the session module
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tripflow_api.db.base import Base
from tripflow_api.db.session import get_db
from tripflow_api.main import app
from tripflow_api.models import (
    Event,
    EventActivity,
    EventItem,
    Participant,
    ParticipantActivityWillNotAttend,
    Tenant,
)

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")


def build_engine(url: str = TEST_DATABASE_URL):
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    # PostgreSQL for integration tests
    return create_engine(url)


@pytest.fixture(scope="function")
def engine():
    """
    Create a test database engine.

    For integration tests, set TEST_DATABASE_URL to a real PostgreSQL instance.
    """
    engine = build_engine()
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def create_scenario(session: Session) -> SimpleNamespace:
    """One tenant with an event, three participants, an activity and two items.

    Returns plain ids and codes so tests never hold ORM instances across commits.
    """
    tenant = Tenant(label="test-tenant", status="active")
    other_tenant = Tenant(label="other-tenant", status="active")
    session.add_all([tenant, other_tenant])
    session.flush()

    event = Event(tenant_id=tenant.id, name="Cappadocia Tour")
    other_event = Event(tenant_id=tenant.id, name="Aegean Tour")
    foreign_event = Event(tenant_id=other_tenant.id, name="Foreign Tour")
    session.add_all([event, other_event, foreign_event])
    session.flush()

    alice = Participant(
        tenant_id=tenant.id,
        event_id=event.id,
        first_name="Alice",
        last_name="Archer",
        full_name="Alice Archer",
        phone="+90 555 000 0001",
        email="alice@example.com",
        check_in_code="A7K3Q9ZP",
        room_no="204",
        agency_name="Blue Sky Travel",
    )
    bob = Participant(
        tenant_id=tenant.id,
        event_id=event.id,
        first_name="Bob",
        last_name="Baker",
        full_name="Bob Baker",
        check_in_code="B2C3D4E5",
        room_no="101",
        agency_name="Anatolia Tours",
    )
    carol = Participant(
        tenant_id=tenant.id,
        event_id=event.id,
        first_name="Carol",
        last_name="Cole",
        full_name="Carol Cole",
        check_in_code="C6D7E8F9",
        room_no="305",
        will_not_attend=True,
    )
    stranger = Participant(
        tenant_id=tenant.id,
        event_id=other_event.id,
        first_name="Dan",
        last_name="Drake",
        full_name="Dan Drake",
        check_in_code="D2E3F4G5",
    )
    session.add_all([alice, bob, carol, stranger])
    session.flush()

    activity = EventActivity(
        tenant_id=tenant.id,
        event_id=event.id,
        title="Balloon Flight",
        check_in_enabled=True,
        check_in_mode="EntryExit",
    )
    hidden_activity = EventActivity(tenant_id=tenant.id, event_id=event.id, title="Free Time")
    headset = EventItem(tenant_id=tenant.id, event_id=event.id, name="Headset", sort_order=1)
    retired = EventItem(tenant_id=tenant.id, event_id=event.id, name="Old Radio", is_active=False, sort_order=2)
    session.add_all([activity, hidden_activity, headset, retired])
    session.flush()

    # Bob skips the balloon flight
    session.add(ParticipantActivityWillNotAttend(participant_id=bob.id, activity_id=activity.id, will_not_attend=True))
    session.commit()

    return SimpleNamespace(
        tenant_id=tenant.id,
        other_tenant_id=other_tenant.id,
        event_id=event.id,
        other_event_id=other_event.id,
        foreign_event_id=foreign_event.id,
        alice_id=alice.id,
        alice_code=alice.check_in_code,
        bob_id=bob.id,
        bob_code=bob.check_in_code,
        carol_id=carol.id,
        carol_code=carol.check_in_code,
        stranger_id=stranger.id,
        stranger_code=stranger.check_in_code,
        activity_id=activity.id,
        hidden_activity_id=hidden_activity.id,
        item_id=headset.id,
        retired_item_id=retired.id,
    )


@pytest.fixture
def scenario(db: Session) -> SimpleNamespace:
    return create_scenario(db)


@pytest.fixture
def client(engine):
    """API client whose requests use the test engine."""
    TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers(scenario):
    return {"x-tenant-id": str(scenario.tenant_id), "x-actor-id": "guide-7", "x-actor-role": "Guide"}
