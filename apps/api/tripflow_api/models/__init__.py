"""Database models - import all models here for Alembic discovery."""

from tripflow_api.models.event import Event, EventActivity, EventItem
from tripflow_api.models.ledger import ActivityParticipantLog, CheckIn, EventParticipantLog, ParticipantItemLog
from tripflow_api.models.participant import Participant, ParticipantActivityWillNotAttend
from tripflow_api.models.tenant import Tenant

__all__ = [
    "Tenant",
    "Event",
    "EventActivity",
    "EventItem",
    "Participant",
    "ParticipantActivityWillNotAttend",
    "CheckIn",
    "EventParticipantLog",
    "ActivityParticipantLog",
    "ParticipantItemLog",
]
