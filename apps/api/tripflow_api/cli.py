"""CLI commands for the Tripflow check-in API."""

from typing import Optional

import click

from tripflow_api.db.seed import seed_all
from tripflow_api.db.session import SessionLocal
from tripflow_api.ledger.bulk import BulkOperations
from tripflow_api.ledger.definitions import ACTIVITY_LEDGER, EVENT_LEDGER, LedgerScope
from tripflow_api.ledger.projector import StateProjector
from tripflow_api.models import Event, EventActivity


@click.group()
def cli():
    """Tripflow check-in CLI."""
    pass


@cli.command()
def seed():
    """Seed initial data."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--tenant-id", type=int, required=True)
@click.option("--event-id", type=int, required=True)
def summary(tenant_id: int, event_id: int):
    """Print arrival and activity attendance counts for an event."""
    db = SessionLocal()
    try:
        event = db.query(Event).filter(Event.id == event_id, Event.tenant_id == tenant_id).first()
        if not event:
            click.echo(f"✗ Event {event_id} not found for tenant {tenant_id}", err=True)
            raise SystemExit(1)

        arrived, total = StateProjector(db, EVENT_LEDGER).counts(LedgerScope(tenant_id, event_id))
        click.echo(f"{event.name}: {arrived}/{total} arrived")

        activities = (
            db.query(EventActivity)
            .filter(EventActivity.event_id == event_id, EventActivity.check_in_enabled.is_(True))
            .order_by(EventActivity.day_date, EventActivity.start_time)
            .all()
        )
        projector = StateProjector(db, ACTIVITY_LEDGER)
        for activity in activities:
            present, _ = projector.counts(LedgerScope(tenant_id, event_id, activity.id))
            click.echo(f"  {activity.title}: {present}/{total} checked in")
    finally:
        db.close()


@cli.command("reset-checkins")
@click.option("--tenant-id", type=int, required=True)
@click.option("--event-id", type=int, required=True)
@click.option("--activity-id", type=int, default=None, help="Reset one activity instead of event arrivals")
@click.confirmation_option(prompt="Remove all check-ins for this scope?")
def reset_checkins(tenant_id: int, event_id: int, activity_id: Optional[int]):
    """Reset event arrivals or one activity's entries. Audit history is kept."""
    ledger = ACTIVITY_LEDGER if activity_id is not None else EVENT_LEDGER
    db = SessionLocal()
    try:
        removed = BulkOperations(db, ledger).reset_all(LedgerScope(tenant_id, event_id, activity_id))
        click.echo(f"✓ Removed {removed} {ledger.name} check-ins.")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
