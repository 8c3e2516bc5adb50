"""Check-in state and append-only action ledger models."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import declared_attr

from tripflow_api.db.base import Base


class CheckIn(Base):
    """Materialized arrival state: at most one row per (event, participant)."""

    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False, index=True)
    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    method = Column(String(16), default="Manual", nullable=False)  # Manual, QrScan

    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", name="uq_check_ins_event_participant"),
    )


class LedgerLogMixin:
    """Columns shared by every action log. Rows are written once and never updated."""

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(16), nullable=False)  # Entry, Exit, Give, Return
    method = Column(String(16), nullable=False)  # Manual, QrScan
    result = Column(String(32), nullable=False, index=True)  # Success, AlreadyInState, NotFound, InvalidRequest, Failed
    actor_user_id = Column(String(64), nullable=True)
    actor_role = Column(String(64), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    correlation_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

    @declared_attr
    def event_id(cls):
        return Column(Integer, ForeignKey("events.id"), nullable=False, index=True)

    @declared_attr
    def participant_id(cls):
        # NULL when the scanned code did not resolve
        return Column(Integer, ForeignKey("participants.id"), nullable=True, index=True)


class EventParticipantLog(LedgerLogMixin, Base):
    """Arrival/departure attempts for a whole event."""

    __tablename__ = "event_participant_logs"

    __table_args__ = (
        Index("ix_event_participant_logs_subject", "tenant_id", "event_id", "participant_id", "created_at"),
    )


class ActivityParticipantLog(LedgerLogMixin, Base):
    """Entry/exit attempts for one scheduled activity."""

    __tablename__ = "activity_participant_logs"

    activity_id = Column(Integer, ForeignKey("event_activities.id"), nullable=False, index=True)
    # Set only on successful Entry rows; collides when two kiosks open the same cycle
    activation_seq = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("activity_id", "participant_id", "activation_seq", name="uq_activity_logs_activation"),
        Index("ix_activity_participant_logs_subject", "tenant_id", "activity_id", "participant_id", "created_at"),
    )


class ParticipantItemLog(LedgerLogMixin, Base):
    """Give/return attempts for one equipment item."""

    __tablename__ = "participant_item_logs"

    item_id = Column(Integer, ForeignKey("event_items.id"), nullable=False, index=True)
    # Set only on successful Give rows
    activation_seq = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("item_id", "participant_id", "activation_seq", name="uq_item_logs_activation"),
        Index("ix_participant_item_logs_subject", "tenant_id", "item_id", "participant_id", "created_at"),
    )
