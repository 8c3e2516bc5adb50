"""Per-activity entry/exit routes."""

from datetime import date, datetime, time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tripflow_api.db.session import get_db
from tripflow_api.ledger.bulk import BulkOperations
from tripflow_api.ledger.definitions import ACTIVITY_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.ledger.projector import StateProjector
from tripflow_api.models import EventActivity, Participant, ParticipantActivityWillNotAttend
from tripflow_api.routes.deps import (
    RequestContext,
    get_request_context,
    outcome_response,
    require_activity,
    require_event,
)
from tripflow_api.routes.schemas import LastLogResponse, LogPageResponse, ParticipantTableResponse, ResetResponse

router = APIRouter(prefix="/v1/events/{event_id}/activities", tags=["activities"])


class ActivityResponse(BaseModel):
    """Activity available for check-in."""

    id: int
    title: str
    type: str
    day_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    location_name: Optional[str] = None
    check_in_mode: str

    class Config:
        from_attributes = True


class ActivityCheckInRequest(BaseModel):
    """Activity check-in request model."""

    code: Optional[str] = Field(None, description="Check-in code or scanned QR payload")
    direction: Optional[str] = Field(None, description="entry | exit")
    method: Optional[str] = Field(None, description="manual | qr | scan")


class ActivityCheckInResponse(BaseModel):
    participant_id: Optional[int] = None
    participant_name: Optional[str] = None
    result: str
    direction: str
    method: str
    logged_at: datetime


class ActivityWillNotAttendRequest(BaseModel):
    will_not_attend: bool


class ActivityWillNotAttendResponse(BaseModel):
    participant_id: int
    will_not_attend: bool
    checked_in: bool
    last_log: Optional[LastLogResponse] = None


@router.get("/for-checkin", response_model=List[ActivityResponse])
async def activities_for_check_in(
    event_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Activities with check-in enabled, in schedule order."""
    require_event(db, ctx.tenant_id, event_id)
    activities = (
        db.query(EventActivity)
        .filter(
            EventActivity.tenant_id == ctx.tenant_id,
            EventActivity.event_id == event_id,
            EventActivity.check_in_enabled.is_(True),
        )
        .order_by(EventActivity.day_date, EventActivity.start_time, EventActivity.title)
        .all()
    )
    return [ActivityResponse.model_validate(activity) for activity in activities]


@router.post("/{activity_id}/checkins", response_model=ActivityCheckInResponse)
async def activity_check_in(
    event_id: int,
    activity_id: int,
    request_data: ActivityCheckInRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Record an entry or exit for a participant at an activity."""
    require_activity(db, ctx.tenant_id, event_id, activity_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=activity_id)

    outcome = LedgerEngine(db, ACTIVITY_LEDGER).record(
        scope,
        ctx.actor,
        code=request_data.code,
        action=request_data.direction,
        method=request_data.method,
    )
    body = ActivityCheckInResponse(
        participant_id=outcome.participant_id,
        participant_name=outcome.participant_name,
        result=outcome.result.value,
        direction=outcome.action.value,
        method=outcome.method.value,
        logged_at=outcome.logged_at,
    )
    return outcome_response(outcome.result, body)


@router.get("/{activity_id}/participants/table", response_model=ParticipantTableResponse)
async def activity_participants_table(
    event_id: int,
    activity_id: int,
    query: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    sort: Optional[str] = Query(None),
    dir: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Participants with activity state: all | checked_in | not_checked_in | will_not_attend."""
    require_activity(db, ctx.tenant_id, event_id, activity_id)
    table = StateProjector(db, ACTIVITY_LEDGER).list_participants(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=activity_id),
        query=query,
        status=status_filter,
        page=page,
        page_size=page_size,
        sort=sort,
        direction=dir,
    )
    return ParticipantTableResponse.from_page(table)


@router.patch(
    "/{activity_id}/participants/{participant_id}/will-not-attend",
    response_model=ActivityWillNotAttendResponse,
)
async def set_activity_will_not_attend(
    event_id: int,
    activity_id: int,
    participant_id: int,
    request_data: ActivityWillNotAttendRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Mark a participant as skipping (or rejoining) one activity."""
    require_activity(db, ctx.tenant_id, event_id, activity_id)
    participant = (
        db.query(Participant.id)
        .filter(
            Participant.id == participant_id,
            Participant.event_id == event_id,
            Participant.tenant_id == ctx.tenant_id,
        )
        .first()
    )
    if not participant:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Participant not found.")

    exclusion = (
        db.query(ParticipantActivityWillNotAttend)
        .filter(
            ParticipantActivityWillNotAttend.participant_id == participant_id,
            ParticipantActivityWillNotAttend.activity_id == activity_id,
        )
        .first()
    )
    if exclusion is None:
        exclusion = ParticipantActivityWillNotAttend(
            participant_id=participant_id,
            activity_id=activity_id,
            will_not_attend=request_data.will_not_attend,
        )
        db.add(exclusion)
    else:
        exclusion.will_not_attend = request_data.will_not_attend
        exclusion.updated_at = datetime.utcnow()
    db.commit()

    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=activity_id)
    projector = StateProjector(db, ACTIVITY_LEDGER)
    last_log = projector.last_log(scope, participant_id)
    return ActivityWillNotAttendResponse(
        participant_id=participant_id,
        will_not_attend=request_data.will_not_attend,
        checked_in=LedgerEngine(db, ACTIVITY_LEDGER).is_active(scope, participant_id),
        last_log=LastLogResponse.model_validate(last_log) if last_log else None,
    )


@router.post("/{activity_id}/checkins/reset-all", response_model=ResetResponse)
async def reset_activity_check_ins(
    event_id: int,
    activity_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Remove successful entries for the activity; exits and rejections stay."""
    require_activity(db, ctx.tenant_id, event_id, activity_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=activity_id)

    removed = BulkOperations(db, ACTIVITY_LEDGER).reset_all(scope)
    active, total = StateProjector(db, ACTIVITY_LEDGER).counts(scope)
    return ResetResponse(removed_count=removed, active_count=active, total_count=total)


@router.get("/{activity_id}/checkins/logs", response_model=LogPageResponse)
async def activity_check_in_logs(
    event_id: int,
    activity_id: int,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    result: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Activity audit log, newest first."""
    require_activity(db, ctx.tenant_id, event_id, activity_id)
    log_page = StateProjector(db, ACTIVITY_LEDGER).list_logs(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=activity_id),
        page=page,
        page_size=page_size,
        result=result,
    )
    return LogPageResponse.from_page(log_page)
