"""Participant models."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tripflow_api.db.base import Base


class Participant(Base):
    """Person registered for an event; identified at kiosks by check_in_code."""

    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    full_name = Column(String(200), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    document_no = Column(String(50), nullable=True)  # national id / passport
    check_in_code = Column(String(64), nullable=False, unique=True, index=True)
    will_not_attend = Column(Boolean, default=False, nullable=False)
    room_no = Column(String(50), nullable=True)
    agency_name = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    event = relationship("Event", back_populates="participants")
    activity_exclusions = relationship(
        "ParticipantActivityWillNotAttend", back_populates="participant", cascade="all, delete-orphan"
    )


class ParticipantActivityWillNotAttend(Base):
    """Per-activity opt-out; excluded participants cannot be checked in to the activity."""

    __tablename__ = "participant_activity_will_not_attend"

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("event_activities.id"), nullable=False, index=True)
    will_not_attend = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("participant_id", "activity_id", name="uq_participant_activity_wna"),
    )

    # Relationships
    participant = relationship("Participant", back_populates="activity_exclusions")
