"""Ledger writer: the single place that mutates check-in state.

Every attempted action produces exactly one log row. Activations are guarded by
a unique constraint (the CheckIn row for the event ledger, activation_seq for
the computed ledgers); losing that race is reinterpreted as AlreadyInState in a
fresh transaction instead of surfacing an error.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tripflow_api.ledger.actions import SUCCESSFUL_RESULTS, Action, ActionResult, Method, classify_method
from tripflow_api.ledger.codes import validate_code
from tripflow_api.ledger.definitions import LedgerDefinition, LedgerScope
from tripflow_api.ledger.errors import is_unique_violation
from tripflow_api.ledger.resolver import ParticipantResolver, Subject
from tripflow_api.models import Participant
from tripflow_api.utils.metrics import (
    ledger_actions,
    ledger_conflicts,
    ledger_failure_log_errors,
    ledger_write_duration,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
    """Who performed the action and from where; all fields optional."""

    user_id: Optional[str] = None
    role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    correlation_id: Optional[str] = None


@dataclass(frozen=True)
class LedgerOutcome:
    """Result of one recorded action."""

    result: ActionResult
    action: Action
    method: Method
    logged_at: datetime
    participant_id: Optional[int] = None
    participant_name: Optional[str] = None
    log_id: Optional[int] = None

    @property
    def already_in_state(self) -> bool:
        return self.result == ActionResult.ALREADY_IN_STATE

    @property
    def succeeded(self) -> bool:
        return self.result in (ActionResult.SUCCESS, ActionResult.ALREADY_IN_STATE)


def _clip(value: Optional[str], length: int) -> Optional[str]:
    if value is None:
        return None
    return value[:length]


class LedgerEngine:
    """Record actions against one ledger definition."""

    def __init__(self, db: Session, ledger: LedgerDefinition):
        """Initialize engine with database session."""
        self.db = db
        self.ledger = ledger
        self.resolver = ParticipantResolver(db)

    def record(
        self,
        scope: LedgerScope,
        actor: Optional[ActorContext] = None,
        code: Optional[str] = None,
        participant_id: Optional[int] = None,
        action: Union[Action, str, None] = None,
        method: Union[Method, str, None] = None,
    ) -> LedgerOutcome:
        """Record one attempted action and return its outcome.

        Never raises for logical rejections or infrastructure failures; those
        come back as InvalidRequest/NotFound/Failed outcomes with a log row
        written where possible.
        """
        actor = actor or ActorContext()
        action = action if isinstance(action, Action) else self.ledger.classify_action(action)
        method = method if isinstance(method, Method) else classify_method(method)

        normalized = None
        valid = action in self.ledger.vocabulary
        # A direct participant id wins over any code sent alongside it
        if valid and participant_id is None:
            normalized = validate_code(code, *self.ledger.code_length) if code and code.strip() else None
            valid = normalized is not None

        subject: Optional[Subject] = None
        started = time.perf_counter()
        try:
            if not valid:
                outcome = self._commit_log(scope, actor, action, method, ActionResult.INVALID_REQUEST)
            else:
                subject = self.resolver.resolve(
                    scope.tenant_id, scope.event_id, code=normalized, participant_id=participant_id
                )
                outcome = self._decide(scope, actor, action, method, subject)
        except Exception:
            logger.error(
                f"Ledger write failed for {self.ledger.name} ledger",
                exc_info=True,
                extra=self._log_extra(scope, actor, ActionResult.FAILED),
            )
            outcome = self._record_failure(scope, actor, action, method, subject)
        finally:
            ledger_write_duration.labels(ledger=self.ledger.name).observe(time.perf_counter() - started)
        return self._finish(outcome, scope, actor)

    def _decide(self, scope, actor, action, method, subject: Optional[Subject]) -> LedgerOutcome:
        if subject is None:
            return self._commit_log(scope, actor, action, method, ActionResult.NOT_FOUND)

        if not self.ledger.vocabulary.is_activation(action):
            return self._deactivate(scope, actor, action, method, subject)

        if self.is_excluded(scope, subject.id):
            return self._commit_log(scope, actor, action, method, ActionResult.INVALID_REQUEST, subject)

        if self.is_active(scope, subject.id):
            return self._commit_log(scope, actor, action, method, ActionResult.ALREADY_IN_STATE, subject)

        return self._activate(scope, actor, action, method, subject)

    def is_active(self, scope: LedgerScope, participant_id: int) -> bool:
        """Whether the subject is currently in the activated state."""
        if self.ledger.stored:
            model = self.ledger.state_model
            row = (
                self.db.query(model.id)
                .filter(*self.ledger.state_criteria(scope), model.participant_id == participant_id)
                .first()
            )
            return row is not None

        model = self.ledger.log_model
        latest = (
            self.db.query(model.action)
            .filter(
                *self.ledger.scope_criteria(scope),
                model.participant_id == participant_id,
                model.result.in_(SUCCESSFUL_RESULTS),
            )
            .order_by(model.created_at.desc(), model.id.desc())
            .first()
        )
        return latest is not None and latest.action == self.ledger.vocabulary.activate.value

    def is_excluded(self, scope: LedgerScope, participant_id: int) -> bool:
        """Whether the subject opted out of this scope."""
        if self.ledger.excluded_criterion is None:
            return False
        row = (
            self.db.query(Participant.id)
            .filter(Participant.id == participant_id, self.ledger.excluded_criterion(scope))
            .first()
        )
        return row is not None

    def _activate(self, scope, actor, action, method, subject: Subject) -> LedgerOutcome:
        extra = {}
        try:
            if self.ledger.stored:
                self.db.add(
                    self.ledger.state_model(
                        tenant_id=scope.tenant_id,
                        event_id=scope.event_id,
                        participant_id=subject.id,
                        method=method.value,
                    )
                )
            else:
                extra["activation_seq"] = self._next_activation_seq(scope, subject.id)
            return self._commit_log(scope, actor, action, method, ActionResult.SUCCESS, subject, **extra)
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            return self._recover_conflict(scope, actor, action, method, subject)

    def _recover_conflict(self, scope, actor, action, method, subject: Subject) -> LedgerOutcome:
        """Another writer activated the subject first; record the duplicate."""
        self.db.rollback()
        self.db.expunge_all()
        ledger_conflicts.labels(ledger=self.ledger.name).inc()
        logger.info(
            f"Concurrent {action.value} for participant {subject.id} resolved as AlreadyInState",
            extra=self._log_extra(scope, actor, ActionResult.ALREADY_IN_STATE),
        )
        # A second collision here propagates and is recorded as Failed
        return self._commit_log(scope, actor, action, method, ActionResult.ALREADY_IN_STATE, subject)

    def _deactivate(self, scope, actor, action, method, subject: Subject) -> LedgerOutcome:
        # Deactivation without a prior activation is still recorded as Success
        if self.ledger.stored:
            model = self.ledger.state_model
            self.db.query(model).filter(
                *self.ledger.state_criteria(scope), model.participant_id == subject.id
            ).delete(synchronize_session=False)
        return self._commit_log(scope, actor, action, method, ActionResult.SUCCESS, subject)

    def _next_activation_seq(self, scope: LedgerScope, participant_id: int) -> int:
        """Cycle number of the next activation: 1 + completed deactivations.

        Only deactivations advance the cycle, so two writers that both missed a
        concurrent activation compute the same number and collide.
        """
        model = self.ledger.log_model
        deactivations = (
            self.db.query(func.count(model.id))
            .filter(
                *self.ledger.scope_criteria(scope),
                model.participant_id == participant_id,
                model.action == self.ledger.vocabulary.deactivate.value,
                model.result.in_(SUCCESSFUL_RESULTS),
            )
            .scalar()
        )
        return (deactivations or 0) + 1

    def _commit_log(
        self,
        scope: LedgerScope,
        actor: ActorContext,
        action: Action,
        method: Method,
        result: ActionResult,
        subject: Optional[Subject] = None,
        **extra,
    ) -> LedgerOutcome:
        """Write one log row in the current transaction and commit it."""
        entry = self.ledger.log_model(
            **self.ledger.scope_values(scope),
            participant_id=subject.id if subject else None,
            action=action.value,
            method=method.value,
            result=result.value,
            actor_user_id=_clip(actor.user_id, 64),
            actor_role=_clip(actor.role, 64),
            ip_address=_clip(actor.ip_address, 64),
            user_agent=_clip(actor.user_agent, 512),
            correlation_id=_clip(actor.correlation_id, 255),
            created_at=datetime.utcnow(),
            **extra,
        )
        self.db.add(entry)
        self.db.flush()
        outcome = LedgerOutcome(
            result=result,
            action=action,
            method=method,
            logged_at=entry.created_at,
            participant_id=subject.id if subject else None,
            participant_name=subject.full_name if subject else None,
            log_id=entry.id,
        )
        self.db.commit()
        return outcome

    def _record_failure(self, scope, actor, action, method, subject: Optional[Subject]) -> LedgerOutcome:
        """Best-effort Failed log row; never raises."""
        try:
            self.db.rollback()
            return self._commit_log(scope, actor, action, method, ActionResult.FAILED, subject)
        except Exception:
            ledger_failure_log_errors.labels(ledger=self.ledger.name).inc()
            logger.exception(
                f"Could not write Failed log row for {self.ledger.name} ledger",
                extra=self._log_extra(scope, actor, ActionResult.FAILED),
            )
            try:
                self.db.rollback()
            except Exception:
                logger.warning("Rollback after failed failure log also failed", exc_info=True)
            return LedgerOutcome(
                result=ActionResult.FAILED,
                action=action,
                method=method,
                logged_at=datetime.utcnow(),
                participant_id=subject.id if subject else None,
                participant_name=subject.full_name if subject else None,
            )

    def _finish(self, outcome: LedgerOutcome, scope: LedgerScope, actor: ActorContext) -> LedgerOutcome:
        ledger_actions.labels(
            ledger=self.ledger.name, action=outcome.action.value, result=outcome.result.value
        ).inc()
        logger.info(
            f"{self.ledger.name} ledger {outcome.action.value}: {outcome.result.value}",
            extra=self._log_extra(scope, actor, outcome.result),
        )
        return outcome

    def _log_extra(self, scope: LedgerScope, actor: ActorContext, result: ActionResult) -> dict:
        return {
            "tenant_id": scope.tenant_id,
            "event_id": scope.event_id,
            "ledger": self.ledger.name,
            "result": result.value,
            "correlation_id": actor.correlation_id,
        }
