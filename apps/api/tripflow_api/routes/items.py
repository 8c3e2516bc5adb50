"""Equipment give/return routes."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tripflow_api.db.session import get_db
from tripflow_api.ledger.definitions import ITEM_LEDGER, LedgerScope
from tripflow_api.ledger.engine import LedgerEngine
from tripflow_api.ledger.projector import StateProjector
from tripflow_api.models import EventItem
from tripflow_api.routes.deps import (
    RequestContext,
    get_request_context,
    outcome_response,
    require_event,
    require_item,
)
from tripflow_api.routes.schemas import LogPageResponse, ParticipantTableResponse

router = APIRouter(prefix="/v1/events/{event_id}/items", tags=["items"])


class ItemResponse(BaseModel):
    id: int
    type: str
    title: str
    name: str
    is_active: bool
    sort_order: int

    class Config:
        from_attributes = True


class ItemActionRequest(BaseModel):
    """Item action request model."""

    code: Optional[str] = Field(None, description="Check-in code or scanned QR payload")
    action: Optional[str] = Field(None, description="give | return")
    method: Optional[str] = Field(None, description="manual | qr | scan")


class ItemActionResponse(BaseModel):
    participant_id: Optional[int] = None
    participant_name: Optional[str] = None
    result: str
    action: str
    method: str
    logged_at: datetime


@router.get("", response_model=List[ItemResponse])
async def list_items(
    event_id: int,
    include_inactive: bool = Query(False),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Equipment items of the event, active ones only unless asked."""
    require_event(db, ctx.tenant_id, event_id)
    query = db.query(EventItem).filter(EventItem.tenant_id == ctx.tenant_id, EventItem.event_id == event_id)
    if not include_inactive:
        query = query.filter(EventItem.is_active.is_(True))
    items = query.order_by(EventItem.sort_order, EventItem.name).all()
    return [ItemResponse.model_validate(item) for item in items]


@router.post("/{item_id}/actions", response_model=ItemActionResponse)
async def item_action(
    event_id: int,
    item_id: int,
    request_data: ItemActionRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Record handing an item to a participant or taking it back."""
    require_item(db, ctx.tenant_id, event_id, item_id)
    scope = LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=item_id)

    outcome = LedgerEngine(db, ITEM_LEDGER).record(
        scope,
        ctx.actor,
        code=request_data.code,
        action=request_data.action,
        method=request_data.method,
    )
    body = ItemActionResponse(
        participant_id=outcome.participant_id,
        participant_name=outcome.participant_name,
        result=outcome.result.value,
        action=outcome.action.value,
        method=outcome.method.value,
        logged_at=outcome.logged_at,
    )
    return outcome_response(outcome.result, body)


@router.get("/{item_id}/participants/table", response_model=ParticipantTableResponse)
async def item_participants_table(
    event_id: int,
    item_id: int,
    query: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    sort: Optional[str] = Query(None),
    dir: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Participants with custody state: all | given | not_returned | returned | never_given."""
    require_item(db, ctx.tenant_id, event_id, item_id, active_only=False)
    table = StateProjector(db, ITEM_LEDGER).list_participants(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=item_id),
        query=query,
        status=status_filter,
        page=page,
        page_size=page_size,
        sort=sort,
        direction=dir,
    )
    return ParticipantTableResponse.from_page(table)


@router.get("/{item_id}/actions/logs", response_model=LogPageResponse)
async def item_action_logs(
    event_id: int,
    item_id: int,
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    result: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Item custody audit log, newest first."""
    require_item(db, ctx.tenant_id, event_id, item_id, active_only=False)
    log_page = StateProjector(db, ITEM_LEDGER).list_logs(
        LedgerScope(tenant_id=ctx.tenant_id, event_id=event_id, ref_id=item_id),
        page=page,
        page_size=page_size,
        result=result,
    )
    return LogPageResponse.from_page(log_page)
