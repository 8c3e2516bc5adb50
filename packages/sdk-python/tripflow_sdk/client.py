"""Tripflow check-in API client."""

import requests
from typing import Optional

# Logical rejections come back with a structured body instead of raising
LEDGER_REJECTION_STATUSES = (400, 404)


class TripflowClient:
    """Client for the check-in, activity and equipment ledgers."""

    def __init__(
        self,
        tenant_id: int,
        base_url: str = "http://localhost:8000",
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        timeout: float = 10.0,
    ):
        """Initialize client."""
        self.tenant_id = tenant_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"x-tenant-id": str(tenant_id)})
        if actor_id:
            self.session.headers["x-actor-id"] = actor_id
        if actor_role:
            self.session.headers["x-actor-role"] = actor_role

    def _event_url(self, event_id: int, path: str) -> str:
        return f"{self.base_url}/v1/events/{event_id}/{path}"

    def _ledger_post(self, url: str, payload: dict, correlation_id: Optional[str] = None) -> dict:
        """POST a ledger action; 400/404 with a result body are returned, not raised."""
        headers = {}
        if correlation_id:
            headers["x-correlation-id"] = correlation_id

        response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        if response.status_code in LEDGER_REJECTION_STATUSES:
            body = response.json()
            if isinstance(body, dict) and "result" in body:
                return body
        response.raise_for_status()
        return response.json()

    def check_in(
        self,
        event_id: int,
        code: Optional[str] = None,
        participant_id: Optional[int] = None,
        method: str = "manual",
        direction: str = "entry",
        correlation_id: Optional[str] = None,
    ) -> dict:
        """Record an event arrival (or departure with direction="exit")."""
        payload = {"method": method, "direction": direction}
        if code:
            payload["code"] = code
        if participant_id is not None:
            payload["participant_id"] = participant_id
        return self._ledger_post(self._event_url(event_id, "checkins"), payload, correlation_id)

    def undo_check_in(
        self,
        event_id: int,
        participant_id: Optional[int] = None,
        code: Optional[str] = None,
    ) -> dict:
        """Remove an arrival; returns already_undone when there was none."""
        payload = {"participant_id": participant_id, "code": code}
        response = self.session.post(
            self._event_url(event_id, "checkins/undo"), json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def reset_all_check_ins(self, event_id: int) -> dict:
        """Clear every arrival for the event."""
        response = self.session.post(self._event_url(event_id, "checkins/reset-all"), timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def check_in_summary(self, event_id: int) -> dict:
        """Get arrived/total counts."""
        response = self.session.get(self._event_url(event_id, "checkins/summary"), timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def activity_check_in(
        self,
        event_id: int,
        activity_id: int,
        code: str,
        direction: str = "entry",
        method: str = "qr",
        correlation_id: Optional[str] = None,
    ) -> dict:
        """Record an entry or exit at an activity."""
        payload = {"code": code, "direction": direction, "method": method}
        url = self._event_url(event_id, f"activities/{activity_id}/checkins")
        return self._ledger_post(url, payload, correlation_id)

    def item_action(
        self,
        event_id: int,
        item_id: int,
        code: str,
        action: str = "give",
        method: str = "qr",
        correlation_id: Optional[str] = None,
    ) -> dict:
        """Hand an item to a participant or take it back (action="return")."""
        payload = {"code": code, "action": action, "method": method}
        url = self._event_url(event_id, f"items/{item_id}/actions")
        return self._ledger_post(url, payload, correlation_id)
