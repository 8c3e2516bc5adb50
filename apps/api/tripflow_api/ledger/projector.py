"""Read-side projections over the ledgers: counts, last logs, tables and audit pages.

Reads take no locks and may trail an in-flight write; callers refetch.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import String, and_, exists, false, func, literal, or_
from sqlalchemy.orm import Session

from tripflow_api.ledger.actions import SUCCESSFUL_RESULTS
from tripflow_api.ledger.definitions import LedgerDefinition, LedgerScope
from tripflow_api.models import Participant
from tripflow_api.settings import get_settings

settings = get_settings()

_NON_ALNUM = re.compile(r"[^a-z0-9]")

SEARCH_COLUMNS = (
    Participant.full_name,
    Participant.first_name,
    Participant.last_name,
    Participant.phone,
    Participant.email,
    Participant.document_no,
    Participant.check_in_code,
    Participant.room_no,
    Participant.agency_name,
)


@dataclass(frozen=True)
class LastLog:
    action: str
    method: str
    result: str
    created_at: datetime


@dataclass(frozen=True)
class ParticipantRow:
    id: int
    full_name: str
    phone: Optional[str]
    email: Optional[str]
    document_no: Optional[str]
    check_in_code: str
    room_no: Optional[str]
    agency_name: Optional[str]
    active: bool
    excluded: bool
    state_at: Optional[datetime]
    last_log: Optional[LastLog]


@dataclass(frozen=True)
class ParticipantPage:
    page: int
    page_size: int
    total: int
    items: List[ParticipantRow]


@dataclass(frozen=True)
class LogRow:
    id: int
    participant_id: Optional[int]
    participant_name: Optional[str]
    action: str
    method: str
    result: str
    actor_user_id: Optional[str]
    actor_role: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class LogPage:
    page: int
    page_size: int
    total: int
    items: List[LogRow]


def normalize_sort_key(value: Optional[str]) -> str:
    """Compare sort keys without separators or case: "full_name" == "fullName"."""
    return _NON_ALNUM.sub("", (value or "").lower())


def resolve_paging(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Clamp page to >= 1 and page size to 1..TABLE_PAGE_SIZE_MAX."""
    resolved_page = max(1, page or 1)
    size = page_size if page_size is not None else settings.table_page_size_default
    return resolved_page, min(max(1, size), settings.table_page_size_max)


class StateProjector:
    """Derive current state for one ledger from stored rows or the latest log rows."""

    def __init__(self, db: Session, ledger: LedgerDefinition):
        """Initialize projector with database session."""
        self.db = db
        self.ledger = ledger

    def _participants(self, scope: LedgerScope):
        return self.db.query(Participant).filter(
            Participant.tenant_id == scope.tenant_id,
            Participant.event_id == scope.event_id,
        )

    def _latest_successful(self, scope: LedgerScope):
        """Subquery: one (participant_id, action, state_at) row per subject with state."""
        if self.ledger.stored:
            model = self.ledger.state_model
            return (
                self.db.query(
                    model.participant_id.label("participant_id"),
                    literal(self.ledger.vocabulary.activate.value, type_=String).label("action"),
                    model.checked_in_at.label("state_at"),
                )
                .filter(*self.ledger.state_criteria(scope))
                .subquery()
            )

        model = self.ledger.log_model
        ranked = (
            self.db.query(
                model.participant_id.label("participant_id"),
                model.action.label("action"),
                model.created_at.label("state_at"),
                func.row_number()
                .over(
                    partition_by=model.participant_id,
                    order_by=(model.created_at.desc(), model.id.desc()),
                )
                .label("rn"),
            )
            .filter(
                *self.ledger.scope_criteria(scope),
                model.participant_id.isnot(None),
                model.result.in_(SUCCESSFUL_RESULTS),
            )
            .subquery()
        )
        return (
            self.db.query(ranked.c.participant_id, ranked.c.action, ranked.c.state_at)
            .filter(ranked.c.rn == 1)
            .subquery()
        )

    def active_participant_ids(self, scope: LedgerScope) -> Set[int]:
        latest = self._latest_successful(scope)
        rows = (
            self.db.query(latest.c.participant_id)
            .filter(latest.c.action == self.ledger.vocabulary.activate.value)
            .all()
        )
        return {row.participant_id for row in rows}

    def is_active(self, scope: LedgerScope, participant_id: int) -> bool:
        return participant_id in self.active_participant_ids(scope)

    def counts(self, scope: LedgerScope) -> Tuple[int, int]:
        """(active subjects, total participants in the event)."""
        latest = self._latest_successful(scope)
        active = (
            self.db.query(func.count(latest.c.participant_id))
            .filter(latest.c.action == self.ledger.vocabulary.activate.value)
            .scalar()
        )
        total = self._participants(scope).count()
        return active or 0, total

    def last_logs(self, scope: LedgerScope, participant_ids: List[int]) -> Dict[int, LastLog]:
        """Latest log row of any result per participant, for display."""
        if not participant_ids:
            return {}

        model = self.ledger.log_model
        ranked = (
            self.db.query(
                model.participant_id.label("participant_id"),
                model.action.label("action"),
                model.method.label("method"),
                model.result.label("result"),
                model.created_at.label("created_at"),
                func.row_number()
                .over(
                    partition_by=model.participant_id,
                    order_by=(model.created_at.desc(), model.id.desc()),
                )
                .label("rn"),
            )
            .filter(*self.ledger.scope_criteria(scope), model.participant_id.in_(participant_ids))
            .subquery()
        )
        rows = self.db.query(ranked).filter(ranked.c.rn == 1).all()
        return {
            row.participant_id: LastLog(
                action=row.action, method=row.method, result=row.result, created_at=row.created_at
            )
            for row in rows
        }

    def last_log(self, scope: LedgerScope, participant_id: int) -> Optional[LastLog]:
        return self.last_logs(scope, [participant_id]).get(participant_id)

    def list_participants(
        self,
        scope: LedgerScope,
        query: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> ParticipantPage:
        """Filterable, sortable participant table with each row's ledger state."""
        resolved_page, resolved_size = resolve_paging(page, page_size)
        latest = self._latest_successful(scope)
        activate = self.ledger.vocabulary.activate.value

        q = (
            self.db.query(Participant, latest.c.action, latest.c.state_at)
            .filter(Participant.tenant_id == scope.tenant_id, Participant.event_id == scope.event_id)
            .outerjoin(latest, latest.c.participant_id == Participant.id)
        )

        search = (query or "").strip()
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(*[column.ilike(pattern) for column in SEARCH_COLUMNS]))

        status_value = normalize_sort_key(status) or "all"
        canonical = {normalize_sort_key(k): v for k, v in self.ledger.status_filters.items()}.get(status_value)
        excluded = self.ledger.excluded_criterion(scope) if self.ledger.excluded_criterion else None

        if excluded is not None and self.ledger.hide_excluded and canonical != "excluded":
            q = q.filter(~excluded)

        if canonical == "active":
            q = q.filter(latest.c.action == activate)
        elif canonical == "inactive":
            q = q.filter(or_(latest.c.participant_id.is_(None), latest.c.action != activate))
        elif canonical == "excluded":
            q = q.filter(excluded if excluded is not None else false())
        elif canonical == "deactivated":
            q = q.filter(latest.c.action == self.ledger.vocabulary.deactivate.value)
        elif canonical in ("ever", "never"):
            ever = self._ever_activated(scope)
            q = q.filter(ever if canonical == "ever" else ~ever)

        total = q.count()

        descending = (direction or "asc").strip().lower() == "desc"
        sort_key = normalize_sort_key(sort)
        if sort_key == "stateat":
            # Subjects without state sort last either way
            order = [latest.c.state_at.is_(None), latest.c.state_at.desc() if descending else latest.c.state_at]
        else:
            column = {
                "roomno": func.coalesce(Participant.room_no, ""),
                "agencyname": func.coalesce(Participant.agency_name, ""),
            }.get(sort_key, Participant.full_name)
            order = [column.desc() if descending else column]
        q = q.order_by(*order, Participant.full_name, Participant.id)

        rows = q.offset((resolved_page - 1) * resolved_size).limit(resolved_size).all()
        participant_ids = [participant.id for participant, _, _ in rows]
        last_logs = self.last_logs(scope, participant_ids)
        excluded_ids = self._excluded_ids(scope, participant_ids)

        items = [
            ParticipantRow(
                id=participant.id,
                full_name=participant.full_name,
                phone=participant.phone,
                email=participant.email,
                document_no=participant.document_no,
                check_in_code=participant.check_in_code,
                room_no=participant.room_no,
                agency_name=participant.agency_name,
                active=action == activate,
                excluded=participant.id in excluded_ids,
                state_at=state_at,
                last_log=last_logs.get(participant.id),
            )
            for participant, action, state_at in rows
        ]
        return ParticipantPage(page=resolved_page, page_size=resolved_size, total=total, items=items)

    def _ever_activated(self, scope: LedgerScope):
        model = self.ledger.log_model
        return exists().where(
            and_(
                model.participant_id == Participant.id,
                *self.ledger.scope_criteria(scope),
                model.action == self.ledger.vocabulary.activate.value,
                model.result.in_(SUCCESSFUL_RESULTS),
            )
        )

    def _excluded_ids(self, scope: LedgerScope, participant_ids: List[int]) -> Set[int]:
        if not participant_ids or self.ledger.excluded_criterion is None:
            return set()
        rows = (
            self.db.query(Participant.id)
            .filter(Participant.id.in_(participant_ids), self.ledger.excluded_criterion(scope))
            .all()
        )
        return {row.id for row in rows}

    def list_logs(
        self,
        scope: LedgerScope,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        result: Optional[str] = None,
    ) -> LogPage:
        """Audit log for the scope, newest first."""
        resolved_page, resolved_size = resolve_paging(page, page_size)
        model = self.ledger.log_model

        q = (
            self.db.query(model, Participant.full_name)
            .outerjoin(Participant, Participant.id == model.participant_id)
            .filter(*self.ledger.scope_criteria(scope))
        )
        if result:
            q = q.filter(model.result == result)

        total = q.count()
        rows = (
            q.order_by(model.created_at.desc(), model.id.desc())
            .offset((resolved_page - 1) * resolved_size)
            .limit(resolved_size)
            .all()
        )
        items = [
            LogRow(
                id=entry.id,
                participant_id=entry.participant_id,
                participant_name=full_name,
                action=entry.action,
                method=entry.method,
                result=entry.result,
                actor_user_id=entry.actor_user_id,
                actor_role=entry.actor_role,
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
                created_at=entry.created_at,
            )
            for entry, full_name in rows
        ]
        return LogPage(page=resolved_page, page_size=resolved_size, total=total, items=items)
