"""Tests for the operator CLI."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tripflow_api.cli import cli
from tripflow_api.ledger.definitions import ACTIVITY_LEDGER, EVENT_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.models import CheckIn, Event, Participant


@pytest.fixture
def runner(session_factory):
    with patch("tripflow_api.cli.SessionLocal", session_factory):
        yield CliRunner()


def test_summary(runner, db, scenario):
    LedgerEngine(db, EVENT_LEDGER).record(LedgerScope(scenario.tenant_id, scenario.event_id), code=scenario.alice_code)
    LedgerEngine(db, ACTIVITY_LEDGER).record(
        LedgerScope(scenario.tenant_id, scenario.event_id, scenario.activity_id), code=scenario.carol_code
    )

    result = runner.invoke(cli, ["summary", "--tenant-id", str(scenario.tenant_id), "--event-id", str(scenario.event_id)])

    assert result.exit_code == 0
    assert "Cappadocia Tour: 1/3 arrived" in result.output
    assert "Balloon Flight: 1/3 checked in" in result.output
    assert "Free Time" not in result.output


def test_summary_unknown_event(runner, scenario):
    result = runner.invoke(
        cli, ["summary", "--tenant-id", str(scenario.other_tenant_id), "--event-id", str(scenario.event_id)]
    )
    assert result.exit_code == 1


def test_reset_checkins_requires_confirmation(runner, db, scenario):
    LedgerEngine(db, EVENT_LEDGER).record(LedgerScope(scenario.tenant_id, scenario.event_id), code=scenario.alice_code)
    args = ["reset-checkins", "--tenant-id", str(scenario.tenant_id), "--event-id", str(scenario.event_id)]

    declined = runner.invoke(cli, args, input="n\n")
    assert declined.exit_code == 1
    assert db.query(CheckIn).count() == 1

    confirmed = runner.invoke(cli, args + ["--yes"])
    assert confirmed.exit_code == 0
    assert "Removed 1 event check-ins." in confirmed.output
    assert db.query(CheckIn).count() == 0


def test_reset_activity_checkins(runner, db, scenario):
    scope = LedgerScope(scenario.tenant_id, scenario.event_id, scenario.activity_id)
    LedgerEngine(db, ACTIVITY_LEDGER).record(scope, code=scenario.alice_code)

    result = runner.invoke(
        cli,
        [
            "reset-checkins",
            "--tenant-id",
            str(scenario.tenant_id),
            "--event-id",
            str(scenario.event_id),
            "--activity-id",
            str(scenario.activity_id),
            "--yes",
        ],
    )

    assert result.exit_code == 0
    assert "Removed 1 activity check-ins." in result.output


def test_seed_creates_demo_event(runner, db, engine):
    result = runner.invoke(cli, ["seed"])

    assert result.exit_code == 0
    event = db.query(Event).filter(Event.name == "Cappadocia Tour").one()
    codes = [p.check_in_code for p in db.query(Participant).filter(Participant.event_id == event.id)]
    assert len(codes) == len(set(codes)) == 8
    assert all(len(code) == 8 for code in codes)
