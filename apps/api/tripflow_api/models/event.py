"""Event, schedule activity and equipment item models."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import relationship

from tripflow_api.db.base import Base


class Event(Base):
    """Multi-day tour or event."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="events")
    participants = relationship("Participant", back_populates="event", cascade="all, delete-orphan")
    activities = relationship("EventActivity", back_populates="event", cascade="all, delete-orphan")
    items = relationship("EventItem", back_populates="event", cascade="all, delete-orphan")


class EventActivity(Base):
    """Scheduled activity inside an event (museum visit, dinner, transfer...)."""

    __tablename__ = "event_activities"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    type = Column(String(32), default="Other", nullable=False)
    day_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    location_name = Column(String(200), nullable=True)
    check_in_enabled = Column(Boolean, default=False, nullable=False)
    check_in_mode = Column(String(32), default="EntryOnly", nullable=False)  # EntryOnly, EntryExit

    # Relationships
    event = relationship("Event", back_populates="activities")


class EventItem(Base):
    """Equipment handed out to participants (headsets, badges, umbrellas)."""

    __tablename__ = "event_items"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    type = Column(String(32), default="Equipment", nullable=False)
    title = Column(String(100), default="Equipment", nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "event_id", "name", name="uq_event_items_name"),
    )

    # Relationships
    event = relationship("Event", back_populates="items")
