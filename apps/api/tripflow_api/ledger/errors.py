"""Ledger exceptions. Logical outcomes are ActionResult values, not exceptions."""

from sqlalchemy.exc import IntegrityError


class UnsupportedLedgerOperation(Exception):
    """Raised when undo/reset is requested on a ledger that does not offer it."""

    def __init__(self, ledger: str, operation: str):
        super().__init__(f"{operation} is not supported by the {ledger} ledger")
        self.ledger = ledger
        self.operation = operation


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the integrity error is a unique-constraint collision."""
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == "23505":
        return True
    return "unique" in str(orig if orig is not None else exc).lower()
