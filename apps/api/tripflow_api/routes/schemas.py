"""Response models shared by the ledger routes."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from tripflow_api.ledger.projector import LogPage, ParticipantPage


class LastLogResponse(BaseModel):
    """Latest log row for a participant."""

    action: str
    method: str
    result: str
    created_at: datetime

    class Config:
        from_attributes = True


class ParticipantTableRow(BaseModel):
    """One participant with ledger state."""

    id: int
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    document_no: Optional[str] = None
    check_in_code: str
    room_no: Optional[str] = None
    agency_name: Optional[str] = None
    active: bool
    excluded: bool
    state_at: Optional[datetime] = None
    last_log: Optional[LastLogResponse] = None

    class Config:
        from_attributes = True


class ParticipantTableResponse(BaseModel):
    page: int
    page_size: int
    total: int
    items: List[ParticipantTableRow]

    @classmethod
    def from_page(cls, page: ParticipantPage) -> "ParticipantTableResponse":
        return cls(
            page=page.page,
            page_size=page.page_size,
            total=page.total,
            items=[ParticipantTableRow.model_validate(row) for row in page.items],
        )


class LogEntryResponse(BaseModel):
    """Audit log row."""

    id: int
    participant_id: Optional[int] = None
    participant_name: Optional[str] = None
    action: str
    method: str
    result: str
    actor_user_id: Optional[str] = None
    actor_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LogPageResponse(BaseModel):
    page: int
    page_size: int
    total: int
    items: List[LogEntryResponse]

    @classmethod
    def from_page(cls, page: LogPage) -> "LogPageResponse":
        return cls(
            page=page.page,
            page_size=page.page_size,
            total=page.total,
            items=[LogEntryResponse.model_validate(row) for row in page.items],
        )


class ResetResponse(BaseModel):
    """Reset-all result with refreshed counts."""

    removed_count: int
    active_count: int
    total_count: int
