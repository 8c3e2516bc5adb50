"""Participant lookup scoped to a tenant and event."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from tripflow_api.models import Participant


@dataclass(frozen=True)
class Subject:
    """Detached snapshot of a participant; stays valid after the session rolls back."""

    id: int
    full_name: str
    check_in_code: str
    will_not_attend: bool

    @classmethod
    def from_model(cls, participant: Participant) -> "Subject":
        return cls(
            id=participant.id,
            full_name=participant.full_name,
            check_in_code=participant.check_in_code,
            will_not_attend=bool(participant.will_not_attend),
        )


class ParticipantResolver:
    """Resolve the subject of a ledger action by code or id."""

    def __init__(self, db: Session):
        """Initialize resolver with database session."""
        self.db = db

    def _scoped(self, tenant_id: int, event_id: int):
        return self.db.query(Participant).filter(
            Participant.tenant_id == tenant_id,
            Participant.event_id == event_id,
        )

    def by_code(self, tenant_id: int, event_id: int, code: str) -> Optional[Subject]:
        """Resolve a normalized code; codes are stored uppercase."""
        participant = self._scoped(tenant_id, event_id).filter(Participant.check_in_code == code).first()
        return Subject.from_model(participant) if participant else None

    def by_id(self, tenant_id: int, event_id: int, participant_id: int) -> Optional[Subject]:
        participant = self._scoped(tenant_id, event_id).filter(Participant.id == participant_id).first()
        return Subject.from_model(participant) if participant else None

    def resolve(
        self,
        tenant_id: int,
        event_id: int,
        code: Optional[str] = None,
        participant_id: Optional[int] = None,
    ) -> Optional[Subject]:
        """Resolve by id when given, otherwise by code."""
        if participant_id is not None:
            return self.by_id(tenant_id, event_id, participant_id)
        if code:
            return self.by_code(tenant_id, event_id, code)
        return None
