"""Undo and reset-all over a ledger scope."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from tripflow_api.ledger.actions import SUCCESSFUL_RESULTS, ActionResult
from tripflow_api.ledger.codes import validate_code
from tripflow_api.ledger.definitions import LedgerDefinition, LedgerScope
from tripflow_api.ledger.errors import UnsupportedLedgerOperation
from tripflow_api.ledger.resolver import ParticipantResolver
from tripflow_api.utils.metrics import ledger_reset_rows_removed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoOutcome:
    result: ActionResult
    participant_id: Optional[int] = None
    already_undone: bool = False


class BulkOperations:
    """Remove materialized state; history rows other than activations are never touched."""

    def __init__(self, db: Session, ledger: LedgerDefinition):
        """Initialize bulk operations with database session."""
        self.db = db
        self.ledger = ledger
        self.resolver = ParticipantResolver(db)

    def undo(
        self,
        scope: LedgerScope,
        participant_id: Optional[int] = None,
        code: Optional[str] = None,
    ) -> UndoOutcome:
        """Remove one subject's state row. Undoing an inactive subject reports already_undone."""
        if not self.ledger.supports_undo:
            raise UnsupportedLedgerOperation(self.ledger.name, "undo")

        if participant_id is not None:
            subject = self.resolver.by_id(scope.tenant_id, scope.event_id, participant_id)
        elif code and code.strip():
            normalized = validate_code(code, *self.ledger.code_length)
            if normalized is None:
                return UndoOutcome(result=ActionResult.INVALID_REQUEST)
            subject = self.resolver.by_code(scope.tenant_id, scope.event_id, normalized)
        else:
            return UndoOutcome(result=ActionResult.INVALID_REQUEST)

        if subject is None:
            return UndoOutcome(result=ActionResult.NOT_FOUND)

        model = self.ledger.state_model
        removed = (
            self.db.query(model)
            .filter(*self.ledger.state_criteria(scope), model.participant_id == subject.id)
            .delete(synchronize_session=False)
        )
        self.db.commit()

        if removed:
            ledger_reset_rows_removed.labels(ledger=self.ledger.name, operation="undo").inc(removed)
        logger.info(
            f"Undo for participant {subject.id}: {'removed' if removed else 'already undone'}",
            extra={"tenant_id": scope.tenant_id, "event_id": scope.event_id, "ledger": self.ledger.name},
        )
        return UndoOutcome(result=ActionResult.SUCCESS, participant_id=subject.id, already_undone=removed == 0)

    def reset_all(self, scope: LedgerScope) -> int:
        """Remove every activation in the scope in one transaction; returns rows removed."""
        if not self.ledger.supports_reset:
            raise UnsupportedLedgerOperation(self.ledger.name, "reset")

        if self.ledger.stored:
            model = self.ledger.state_model
            query = self.db.query(model).filter(*self.ledger.state_criteria(scope))
        else:
            model = self.ledger.log_model
            query = self.db.query(model).filter(
                *self.ledger.scope_criteria(scope),
                model.participant_id.isnot(None),
                model.action == self.ledger.vocabulary.activate.value,
                model.result.in_(SUCCESSFUL_RESULTS),
            )

        try:
            removed = query.delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        ledger_reset_rows_removed.labels(ledger=self.ledger.name, operation="reset").inc(removed)
        logger.info(
            f"Reset {self.ledger.name} ledger: {removed} rows removed",
            extra={"tenant_id": scope.tenant_id, "event_id": scope.event_id, "ledger": self.ledger.name},
        )
        return removed
