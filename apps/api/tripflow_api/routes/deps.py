"""Shared route dependencies: request context, scope lookups, outcome responses."""

from dataclasses import dataclass

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tripflow_api.ledger.actions import ActionResult
from tripflow_api.ledger.engine import ActorContext
from tripflow_api.models import Event, EventActivity, EventItem

RESULT_STATUS = {
    ActionResult.SUCCESS: status.HTTP_200_OK,
    ActionResult.ALREADY_IN_STATE: status.HTTP_200_OK,
    ActionResult.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ActionResult.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ActionResult.FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class RequestContext:
    """Tenant and actor for one request, passed explicitly into ledger calls."""

    tenant_id: int
    actor: ActorContext


def get_request_context(request: Request) -> RequestContext:
    """Build the request context from state set by the middleware stack."""
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing tenant. Provide x-tenant-id header.",
        )

    return RequestContext(
        tenant_id=tenant_id,
        actor=ActorContext(
            user_id=getattr(request.state, "actor_id", None),
            role=getattr(request.state, "actor_role", None),
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
    )


def require_event(db: Session, tenant_id: int, event_id: int) -> Event:
    event = (
        db.query(Event)
        .filter(Event.id == event_id, Event.tenant_id == tenant_id, Event.is_deleted.is_(False))
        .first()
    )
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found.")
    return event


def require_activity(db: Session, tenant_id: int, event_id: int, activity_id: int) -> EventActivity:
    require_event(db, tenant_id, event_id)
    activity = (
        db.query(EventActivity)
        .filter(
            EventActivity.id == activity_id,
            EventActivity.event_id == event_id,
            EventActivity.tenant_id == tenant_id,
        )
        .first()
    )
    if not activity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found.")
    return activity


def require_item(
    db: Session, tenant_id: int, event_id: int, item_id: int, active_only: bool = True
) -> EventItem:
    """Look up an item; inactive items do not accept actions."""
    require_event(db, tenant_id, event_id)
    query = db.query(EventItem).filter(
        EventItem.id == item_id,
        EventItem.event_id == event_id,
        EventItem.tenant_id == tenant_id,
    )
    if active_only:
        query = query.filter(EventItem.is_active.is_(True))
    item = query.first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found.")
    return item


def outcome_response(result: ActionResult, body: BaseModel) -> JSONResponse:
    """Structured body for every outcome; only the status code varies."""
    return JSONResponse(status_code=RESULT_STATUS[result], content=jsonable_encoder(body))
