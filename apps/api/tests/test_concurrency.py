"""Concurrent writers racing on the same subject.

Uses a file-backed SQLite database so each thread gets its own connection and
the unique constraints arbitrate, as PostgreSQL does in production.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import create_scenario
from tripflow_api.db.base import Base
from tripflow_api.ledger.actions import ActionResult
from tripflow_api.ledger.definitions import ACTIVITY_LEDGER, EVENT_LEDGER, ITEM_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.models import ActivityParticipantLog, CheckIn, EventParticipantLog, ParticipantItemLog

WRITERS = 5


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


def _race(factory, ledger, scope, code):
    barrier = threading.Barrier(WRITERS)

    def write(_):
        session = factory()
        try:
            barrier.wait()
            return LedgerEngine(session, ledger).record(scope, code=code).result
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WRITERS) as pool:
        return list(pool.map(write, range(WRITERS)))


def test_concurrent_event_check_ins_produce_one_success(file_sessions):
    with file_sessions() as session:
        scenario = create_scenario(session)
    scope = LedgerScope(scenario.tenant_id, scenario.event_id)

    results = _race(file_sessions, EVENT_LEDGER, scope, scenario.alice_code)

    assert results.count(ActionResult.SUCCESS) == 1
    assert results.count(ActionResult.ALREADY_IN_STATE) == WRITERS - 1
    with file_sessions() as session:
        assert session.query(CheckIn).filter(CheckIn.participant_id == scenario.alice_id).count() == 1
        assert session.query(EventParticipantLog).count() == WRITERS


def test_concurrent_activity_entries_produce_one_success(file_sessions):
    with file_sessions() as session:
        scenario = create_scenario(session)
    scope = LedgerScope(scenario.tenant_id, scenario.event_id, scenario.activity_id)

    results = _race(file_sessions, ACTIVITY_LEDGER, scope, scenario.alice_code)

    assert results.count(ActionResult.SUCCESS) == 1
    assert results.count(ActionResult.ALREADY_IN_STATE) == WRITERS - 1
    with file_sessions() as session:
        rows = session.query(ActivityParticipantLog).filter(ActivityParticipantLog.result == "Success").all()
        assert [row.activation_seq for row in rows] == [1]


def test_concurrent_item_gives_produce_one_success(file_sessions):
    with file_sessions() as session:
        scenario = create_scenario(session)
    scope = LedgerScope(scenario.tenant_id, scenario.event_id, scenario.item_id)

    results = _race(file_sessions, ITEM_LEDGER, scope, scenario.bob_code)

    assert results.count(ActionResult.SUCCESS) == 1
    assert results.count(ActionResult.ALREADY_IN_STATE) == WRITERS - 1
    with file_sessions() as session:
        sequences = [
            row.activation_seq
            for row in session.query(ParticipantItemLog).filter(ParticipantItemLog.activation_seq.isnot(None))
        ]
        assert sequences == [1]
