"""Event arrival check-in routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tripflow_api.db.session import get_db
from tripflow_api.ledger.actions import ActionResult
from tripflow_api.ledger.bulk import BulkOperations
from tripflow_api.ledger.codes import validate_code
from tripflow_api.ledger.definitions import EVENT_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.ledger.projector import StateProjector
from tripflow_api.ledger.resolver import ParticipantResolver
from tripflow_api.models import Participant
from tripflow_api.routes.deps import RequestContext, get_request_context, outcome_response, require_event
from tripflow_api.routes.schemas import LogPageResponse, ParticipantTableResponse, ResetResponse

router = APIRouter(prefix="/v1/events/{event_id}", tags=["checkins"])


class CheckInRequest(BaseModel):
    """Check-in request model."""

    code: Optional[str] = Field(None, description="Check-in code or scanned QR payload")
    participant_id: Optional[int] = Field(None, description="Direct participant id (manual check-in)")
    method: Optional[str] = Field(None, description="manual | qr | scan")
    direction: Optional[str] = Field(None, description="entry | exit")


class CheckInResponse(BaseModel):
    """Check-in response model."""

    participant_id: Optional[int] = None
    participant_name: Optional[str] = None
    already_in_state: bool
    direction: str
    method: str
    result: str
    logged_at: datetime
    arrived_count: int
    total_count: int


class UndoRequest(BaseModel):
    participant_id: Optional[int] = None
    code: Optional[str] = None


class UndoResponse(BaseModel):
    participant_id: int
    already_undone: bool
    arrived_count: int
    total_count: int


class SummaryResponse(BaseModel):
    arrived_count: int
    total_count: int


class VerifyRequest(BaseModel):
    code: Optional[str] = None


class VerifyResponse(BaseModel):
    is_valid: bool
    normalized_code: Optional[str] = None


class ResolveResponse(BaseModel):
    id: int
    full_name: str
    check_in_code: str
    arrived: bool
    will_not_attend: bool


class WillNotAttendRequest(BaseModel):
    will_not_attend: bool


class WillNotAttendResponse(BaseModel):
    participant_id: int
    will_not_attend: bool


@router.post("/checkins", response_model=CheckInResponse)
async def check_in(
    event_id: int,
    request_data: CheckInRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Record an arrival (or departure) for a participant."""
    require_event(db, ctx.tenant_id, event_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id)

    outcome = LedgerEngine(db, EVENT_LEDGER).record(
        scope,
        ctx.actor,
        code=request_data.code,
        participant_id=request_data.participant_id,
        action=request_data.direction,
        method=request_data.method,
    )
    arrived, total = StateProjector(db, EVENT_LEDGER).counts(scope)

    body = CheckInResponse(
        participant_id=outcome.participant_id,
        participant_name=outcome.participant_name,
        already_in_state=outcome.already_in_state,
        direction=outcome.action.value,
        method=outcome.method.value,
        result=outcome.result.value,
        logged_at=outcome.logged_at,
        arrived_count=arrived,
        total_count=total,
    )
    return outcome_response(outcome.result, body)


@router.post("/checkins/undo", response_model=UndoResponse)
async def undo_check_in(
    event_id: int,
    request_data: UndoRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Remove a participant's arrival state; the Entry log row stays."""
    require_event(db, ctx.tenant_id, event_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id)

    outcome = BulkOperations(db, EVENT_LEDGER).undo(
        scope, participant_id=request_data.participant_id, code=request_data.code
    )
    if outcome.result == ActionResult.INVALID_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide participant_id or an 8-character check-in code.",
        )
    if outcome.result == ActionResult.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found.")

    arrived, total = StateProjector(db, EVENT_LEDGER).counts(scope)
    return UndoResponse(
        participant_id=outcome.participant_id,
        already_undone=outcome.already_undone,
        arrived_count=arrived,
        total_count=total,
    )


@router.post("/checkins/reset-all", response_model=ResetResponse)
async def reset_all_check_ins(
    event_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Clear every arrival for the event; history is kept."""
    require_event(db, ctx.tenant_id, event_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id)

    removed = BulkOperations(db, EVENT_LEDGER).reset_all(scope)
    arrived, total = StateProjector(db, EVENT_LEDGER).counts(scope)
    return ResetResponse(removed_count=removed, active_count=arrived, total_count=total)


@router.get("/checkins/summary", response_model=SummaryResponse)
async def check_in_summary(
    event_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Arrived/total counts."""
    require_event(db, ctx.tenant_id, event_id)
    arrived, total = StateProjector(db, EVENT_LEDGER).counts(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id)
    )
    return SummaryResponse(arrived_count=arrived, total_count=total)


@router.post("/checkins/verify", response_model=VerifyResponse)
async def verify_code(
    event_id: int,
    request_data: VerifyRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Check whether a code belongs to a participant of this event."""
    require_event(db, ctx.tenant_id, event_id)
    code = validate_code(request_data.code, *EVENT_LEDGER.code_length)
    if code is None:
        return VerifyResponse(is_valid=False)

    subject = ParticipantResolver(db).by_code(ctx.tenant_id, event_id, code)
    if subject is None:
        return VerifyResponse(is_valid=False)
    return VerifyResponse(is_valid=True, normalized_code=code)


@router.get("/checkins/logs", response_model=LogPageResponse)
async def check_in_logs(
    event_id: int,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    result: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Event check-in audit log, newest first."""
    require_event(db, ctx.tenant_id, event_id)
    log_page = StateProjector(db, EVENT_LEDGER).list_logs(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id),
        page=page,
        page_size=page_size,
        result=result,
    )
    return LogPageResponse.from_page(log_page)


@router.get("/participants/table", response_model=ParticipantTableResponse)
async def participants_table(
    event_id: int,
    query: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    sort: Optional[str] = Query(None),
    dir: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Participants with arrival state: all | arrived | not_arrived | will_not_attend."""
    require_event(db, ctx.tenant_id, event_id)
    table = StateProjector(db, EVENT_LEDGER).list_participants(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id),
        query=query,
        status=status_filter,
        page=page,
        page_size=page_size,
        sort=sort,
        direction=dir,
    )
    return ParticipantTableResponse.from_page(table)


@router.get("/participants/resolve", response_model=ResolveResponse)
async def resolve_participant(
    event_id: int,
    code: str = Query(...),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Resolve a scanned code to a participant without recording anything."""
    require_event(db, ctx.tenant_id, event_id)
    normalized = validate_code(code, *EVENT_LEDGER.code_length)
    if normalized is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid check-in code.")

    subject = ParticipantResolver(db).by_code(ctx.tenant_id, event_id, normalized)
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found.")

    arrived = LedgerEngine(db, EVENT_LEDGER).is_active(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id), subject.id
    )
    return ResolveResponse(
        id=subject.id,
        full_name=subject.full_name,
        check_in_code=subject.check_in_code,
        arrived=arrived,
        will_not_attend=subject.will_not_attend,
    )


@router.patch("/participants/{participant_id}/will-not-attend", response_model=WillNotAttendResponse)
async def set_will_not_attend(
    event_id: int,
    participant_id: int,
    request_data: WillNotAttendRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Toggle the event-level exclusion flag."""
    require_event(db, ctx.tenant_id, event_id)
    participant = (
        db.query(Participant)
        .filter(
            Participant.id == participant_id,
            Participant.event_id == event_id,
            Participant.tenant_id == ctx.tenant_id,
        )
        .first()
    )
    if not participant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found.")

    participant.will_not_attend = request_data.will_not_attend
    db.commit()
    return WillNotAttendResponse(participant_id=participant_id, will_not_attend=request_data.will_not_attend)
