"""Tenant context middleware.

Tenant resolution happens upstream (org gateway); this service only receives
the resolved tenant id and the acting user as headers.
"""

import logging

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

TENANT_HEADER = "x-tenant-id"
ACTOR_ID_HEADER = "x-actor-id"
ACTOR_ROLE_HEADER = "x-actor-role"


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Require a tenant id on /v1 paths and expose it on request.state."""

    async def dispatch(self, request: Request, call_next):
        """Process request with tenant extraction."""
        # Health checks, docs and metrics are tenant-less
        if not request.url.path.startswith("/v1"):
            return await call_next(request)

        raw_tenant = request.headers.get(TENANT_HEADER)
        if not raw_tenant:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "Missing tenant. Provide x-tenant-id header."},
            )

        try:
            tenant_id = int(raw_tenant.strip())
        except ValueError:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "x-tenant-id must be an integer."},
            )

        if tenant_id <= 0:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "x-tenant-id must be positive."},
            )

        request.state.tenant_id = tenant_id
        request.state.actor_id = request.headers.get(ACTOR_ID_HEADER)
        request.state.actor_role = request.headers.get(ACTOR_ROLE_HEADER)

        # Structured logging
        logger.debug(
            "Tenant request",
            extra={
                "tenant_id": tenant_id,
                "correlation_id": getattr(request.state, "correlation_id", None),
                "path": request.url.path,
            },
        )

        return await call_next(request)
