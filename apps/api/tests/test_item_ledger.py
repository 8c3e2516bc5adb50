"""Tests for the equipment give/return ledger."""

from unittest.mock import patch

import pytest

from tripflow_api.ledger.actions import Action, ActionResult
from tripflow_api.ledger.definitions import ITEM_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.ledger.projector import StateProjector
from tripflow_api.models import ParticipantItemLog


@pytest.fixture
def scope(scenario):
    return LedgerScope(tenant_id=scenario.tenant_id, event_id=scenario.event_id, ref_id=scenario.item_id)


@pytest.fixture
def engine_(db):
    return LedgerEngine(db, ITEM_LEDGER)


def _results(db, participant_id):
    rows = (
        db.query(ParticipantItemLog)
        .filter(ParticipantItemLog.participant_id == participant_id)
        .order_by(ParticipantItemLog.id)
        .all()
    )
    return [(row.action, row.result) for row in rows]


def test_default_action_is_give(db, scenario, scope, engine_):
    outcome = engine_.record(scope, code=scenario.alice_code, method="scan")
    assert outcome.action == Action.GIVE
    assert outcome.result == ActionResult.SUCCESS


def test_give_twice_is_already_in_state(db, scenario, scope, engine_):
    engine_.record(scope, code=scenario.alice_code)
    assert engine_.record(scope, code=scenario.alice_code).already_in_state


def test_give_return_give_is_a_fresh_success(db, scenario, scope, engine_):
    engine_.record(scope, code=scenario.alice_code)
    engine_.record(scope, code=scenario.alice_code, action="return")
    outcome = engine_.record(scope, code=scenario.alice_code, action="give")

    assert outcome.result == ActionResult.SUCCESS
    assert _results(db, scenario.alice_id) == [("Give", "Success"), ("Return", "Success"), ("Give", "Success")]


def test_return_without_give_succeeds(db, scenario, scope, engine_):
    outcome = engine_.record(scope, code=scenario.bob_code, action="return")
    assert outcome.result == ActionResult.SUCCESS
    assert StateProjector(db, ITEM_LEDGER).counts(scope) == (0, 3)


def test_direction_vocabulary_is_rejected(db, scenario, scope, engine_):
    assert engine_.record(scope, code=scenario.alice_code, action=Action.ENTRY).result == ActionResult.INVALID_REQUEST


def test_no_exclusion_guard(db, scenario, scope, engine_):
    # Event-level will-not-attend does not stop equipment hand-out
    assert engine_.record(scope, code=scenario.carol_code).result == ActionResult.SUCCESS


def test_stale_state_read_collides(db, scenario, scope, engine_):
    engine_.record(scope, code=scenario.alice_code)

    with patch.object(LedgerEngine, "is_active", return_value=False):
        outcome = engine_.record(scope, code=scenario.alice_code)

    assert outcome.result == ActionResult.ALREADY_IN_STATE
    assert _results(db, scenario.alice_id) == [("Give", "Success"), ("Give", "AlreadyInState")]


def test_stale_read_after_return_still_collides(db, scenario, scope, engine_):
    engine_.record(scope, code=scenario.alice_code)
    engine_.record(scope, code=scenario.alice_code, action="return")
    engine_.record(scope, code=scenario.alice_code)

    with patch.object(LedgerEngine, "is_active", return_value=False):
        outcome = engine_.record(scope, code=scenario.alice_code)

    assert outcome.result == ActionResult.ALREADY_IN_STATE
    sequences = [
        row.activation_seq
        for row in db.query(ParticipantItemLog)
        .filter(ParticipantItemLog.participant_id == scenario.alice_id)
        .order_by(ParticipantItemLog.id)
    ]
    assert sequences == [1, None, 2, None]


def test_state_is_per_item(db, scenario, scope, engine_):
    engine_.record(scope, code=scenario.alice_code)
    other = LedgerScope(scenario.tenant_id, scenario.event_id, scenario.retired_item_id)
    assert not engine_.is_active(other, scenario.alice_id)
    assert engine_.is_active(scope, scenario.alice_id)
