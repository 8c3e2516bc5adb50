"""The three ledger instantiations: event arrival, activity attendance, item custody."""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import and_, exists

from tripflow_api.ledger.actions import (
    DIRECTION_VOCABULARY,
    ITEM_VOCABULARY,
    Action,
    Vocabulary,
    classify_direction,
    classify_item_action,
)
from tripflow_api.models import (
    ActivityParticipantLog,
    CheckIn,
    EventParticipantLog,
    Participant,
    ParticipantActivityWillNotAttend,
    ParticipantItemLog,
)
from tripflow_api.settings import get_settings

settings = get_settings()


@dataclass(frozen=True)
class LedgerScope:
    """Partition key for subjects and state; ref_id is the activity or item id."""

    tenant_id: int
    event_id: int
    ref_id: Optional[int] = None


@dataclass(frozen=True)
class LedgerDefinition:
    """Binds the generic engine to one log table, vocabulary and state strategy."""

    name: str
    log_model: type
    vocabulary: Vocabulary
    classify_action: Callable[[Optional[str]], Action]
    code_length: Tuple[int, int]
    ref_column: Optional[str] = None
    # Stored variant keeps one row per active subject; computed variant reads the log
    state_model: Optional[type] = None
    excluded_criterion: Optional[Callable[[LedgerScope], object]] = None
    supports_undo: bool = False
    supports_reset: bool = False
    # Table status name -> canonical filter (active, inactive, excluded, ever, deactivated, never)
    status_filters: Dict[str, str] = field(default_factory=dict)
    # Excluded subjects only show up under the "excluded" filter
    hide_excluded: bool = False

    @property
    def stored(self) -> bool:
        return self.state_model is not None

    def scope_criteria(self, scope: LedgerScope) -> List:
        """Filter clauses selecting this scope's log rows."""
        model = self.log_model
        criteria = [model.tenant_id == scope.tenant_id, model.event_id == scope.event_id]
        if self.ref_column:
            criteria.append(getattr(model, self.ref_column) == scope.ref_id)
        return criteria

    def state_criteria(self, scope: LedgerScope) -> List:
        model = self.state_model
        return [model.tenant_id == scope.tenant_id, model.event_id == scope.event_id]

    def scope_values(self, scope: LedgerScope) -> Dict[str, int]:
        """Column values every log row of this scope carries."""
        values = {"tenant_id": scope.tenant_id, "event_id": scope.event_id}
        if self.ref_column:
            values[self.ref_column] = scope.ref_id
        return values


def _event_excluded(scope: LedgerScope):
    return Participant.will_not_attend.is_(True)


def _activity_excluded(scope: LedgerScope):
    return exists().where(
        and_(
            ParticipantActivityWillNotAttend.participant_id == Participant.id,
            ParticipantActivityWillNotAttend.activity_id == scope.ref_id,
            ParticipantActivityWillNotAttend.will_not_attend.is_(True),
        )
    )


EVENT_LEDGER = LedgerDefinition(
    name="event",
    log_model=EventParticipantLog,
    vocabulary=DIRECTION_VOCABULARY,
    classify_action=classify_direction,
    code_length=(settings.event_code_length, settings.event_code_length),
    state_model=CheckIn,
    excluded_criterion=_event_excluded,
    supports_undo=True,
    supports_reset=True,
    status_filters={"arrived": "active", "not_arrived": "inactive", "will_not_attend": "excluded"},
)

ACTIVITY_LEDGER = LedgerDefinition(
    name="activity",
    log_model=ActivityParticipantLog,
    vocabulary=DIRECTION_VOCABULARY,
    classify_action=classify_direction,
    code_length=(settings.scan_code_min_length, settings.scan_code_max_length),
    ref_column="activity_id",
    excluded_criterion=_activity_excluded,
    supports_reset=True,
    status_filters={"checked_in": "active", "not_checked_in": "inactive", "will_not_attend": "excluded"},
    hide_excluded=True,
)

ITEM_LEDGER = LedgerDefinition(
    name="item",
    log_model=ParticipantItemLog,
    vocabulary=ITEM_VOCABULARY,
    classify_action=classify_item_action,
    code_length=(settings.scan_code_min_length, settings.scan_code_max_length),
    ref_column="item_id",
    status_filters={
        "given": "ever",
        "not_returned": "active",
        "returned": "deactivated",
        "never_given": "never",
    },
)

LEDGERS = {ledger.name: ledger for ledger in (EVENT_LEDGER, ACTIVITY_LEDGER, ITEM_LEDGER)}
