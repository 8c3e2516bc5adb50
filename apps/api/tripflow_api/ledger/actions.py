"""Closed vocabularies for ledger actions and free-form client input classification."""

import re
from enum import Enum
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]")


class Action(str, Enum):
    """Ledger action; Entry/Give activate, Exit/Return deactivate."""

    ENTRY = "Entry"
    EXIT = "Exit"
    GIVE = "Give"
    RETURN = "Return"


class Method(str, Enum):
    MANUAL = "Manual"
    QR_SCAN = "QrScan"


class ActionResult(str, Enum):
    SUCCESS = "Success"
    ALREADY_IN_STATE = "AlreadyInState"
    NOT_FOUND = "NotFound"
    INVALID_REQUEST = "InvalidRequest"
    FAILED = "Failed"


# Results that count as an observed state for "latest successful action" reads
SUCCESSFUL_RESULTS = (ActionResult.SUCCESS.value, ActionResult.ALREADY_IN_STATE.value)


class Vocabulary:
    """Pair of activating/deactivating actions used by one ledger."""

    def __init__(self, activate: Action, deactivate: Action):
        self.activate = activate
        self.deactivate = deactivate

    def is_activation(self, action: Action) -> bool:
        return action == self.activate

    def __contains__(self, action: Action) -> bool:
        return action in (self.activate, self.deactivate)

    def __repr__(self) -> str:
        return f"Vocabulary({self.activate.value}/{self.deactivate.value})"


DIRECTION_VOCABULARY = Vocabulary(Action.ENTRY, Action.EXIT)
ITEM_VOCABULARY = Vocabulary(Action.GIVE, Action.RETURN)


def _token(value: Optional[str]) -> str:
    if not value:
        return ""
    return _NON_ALNUM.sub("", value.lower())


def classify_direction(value: Optional[str]) -> Action:
    """Map a direction string to Entry/Exit; anything but "exit" is Entry."""
    return Action.EXIT if _token(value) == "exit" else Action.ENTRY


def classify_method(value: Optional[str]) -> Method:
    """Map a method string to Manual/QrScan; unknown values are Manual."""
    return Method.QR_SCAN if _token(value) in ("qr", "qrscan", "scan") else Method.MANUAL


def classify_item_action(value: Optional[str]) -> Action:
    """Map an item action string to Give/Return; anything but "return" is Give."""
    return Action.RETURN if _token(value) == "return" else Action.GIVE
