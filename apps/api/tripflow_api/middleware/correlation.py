"""Correlation ID middleware."""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

CORRELATION_HEADER = "x-correlation-id"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Carry a correlation ID from the kiosk through ledger log rows and back."""

    async def dispatch(self, request: Request, call_next):
        """Process request with correlation ID."""
        # Reuse the caller's ID so retried scans share one trace
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id[:255]

        response: Response = await call_next(request)
        response.headers[CORRELATION_HEADER] = request.state.correlation_id

        return response
