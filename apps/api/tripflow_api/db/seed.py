"""Seed data for development and testing."""

from datetime import date, time, timedelta

from sqlalchemy.orm import Session

from tripflow_api.ledger.codes import generate_code
from tripflow_api.models import Event, EventActivity, EventItem, Participant, Tenant

DEMO_PARTICIPANTS = [
    ("Ayse", "Yilmaz", "101", "Blue Sky Travel"),
    ("Mehmet", "Demir", "101", "Blue Sky Travel"),
    ("Elif", "Kaya", "102", "Blue Sky Travel"),
    ("Can", "Sahin", "103", "Anatolia Tours"),
    ("Zeynep", "Celik", "104", "Anatolia Tours"),
    ("Emre", "Aydin", "104", "Anatolia Tours"),
    ("Selin", "Ozturk", "105", None),
    ("Burak", "Arslan", "106", None),
]


def _unique_code(db: Session) -> str:
    while True:
        code = generate_code()
        if not db.query(Participant.id).filter(Participant.check_in_code == code).first():
            return code


def seed_tenant(db: Session) -> Tenant:
    """Seed the demo tenant."""
    tenant = db.query(Tenant).filter(Tenant.label == "demo").first()
    if not tenant:
        tenant = Tenant(label="demo", status="active")
        db.add(tenant)
        db.commit()
        print(f"✓ Created demo tenant: {tenant.label} (ID: {tenant.id})")
    else:
        print(f"✓ Demo tenant already exists: {tenant.label}")
    return tenant


def seed_event(db: Session, tenant: Tenant) -> Event:
    """Seed a demo tour with participants, schedule and equipment."""
    event = db.query(Event).filter(Event.tenant_id == tenant.id, Event.name == "Cappadocia Tour").first()
    if event:
        print(f"✓ Demo event already exists: {event.name} (ID: {event.id})")
        return event

    start = date.today()
    event = Event(tenant_id=tenant.id, name="Cappadocia Tour", start_date=start, end_date=start + timedelta(days=2))
    db.add(event)
    db.flush()

    for first_name, last_name, room_no, agency_name in DEMO_PARTICIPANTS:
        db.add(
            Participant(
                tenant_id=tenant.id,
                event_id=event.id,
                first_name=first_name,
                last_name=last_name,
                full_name=f"{first_name} {last_name}",
                check_in_code=_unique_code(db),
                room_no=room_no,
                agency_name=agency_name,
            )
        )
        db.flush()

    db.add_all(
        [
            EventActivity(
                tenant_id=tenant.id,
                event_id=event.id,
                title="Balloon Flight",
                type="Excursion",
                day_date=start,
                start_time=time(5, 30),
                end_time=time(7, 30),
                location_name="Goreme",
                check_in_enabled=True,
                check_in_mode="EntryExit",
            ),
            EventActivity(
                tenant_id=tenant.id,
                event_id=event.id,
                title="Welcome Dinner",
                type="Meal",
                day_date=start,
                start_time=time(20, 0),
                location_name="Hotel Restaurant",
                check_in_enabled=True,
            ),
            EventItem(tenant_id=tenant.id, event_id=event.id, name="Headset", title="Audio guide", sort_order=1),
            EventItem(tenant_id=tenant.id, event_id=event.id, name="Umbrella", sort_order=2),
        ]
    )
    db.commit()
    print(f"✓ Created demo event: {event.name} (ID: {event.id}) with {len(DEMO_PARTICIPANTS)} participants")
    return event


def seed_all(db: Session):
    """Seed all data."""
    print("Seeding database...")
    tenant = seed_tenant(db)
    seed_event(db, tenant)
    print("✓ Seeding complete!")
