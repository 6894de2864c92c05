"""Tenant resolution middleware.

Runs the resolution strategy chain for every request outside
SKIP_TENANT_PATHS. On success the resolved TenantContext is:
- set in the request-scoped ContextVar (reset when the request ends)
- attached to request.state as ``tenant``, ``tenant_id`` and ``tenant_context``

On failure the request is rejected with 400 before any tenant-scoped handler
runs. The body lists the checked signals only when DEBUG is enabled.
"""

from __future__ import annotations

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.tenancy.config import Settings, get_settings
from src.tenancy.core.exceptions import TenantNotFound
from src.tenancy.core.resolution import RequestSignals, TenantResolver
from src.tenancy.core.tenant import reset_tenant_context, set_tenant_context
from src.tenancy.schemas.tenant import ErrorResponse

logger = structlog.get_logger(__name__)

# ── Paths that skip tenant resolution ───────────────────────────────────────

SKIP_TENANT_PATHS = (
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/v1/admin",
)


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Resolve the tenant of each request and scope the request to it.

    Paths in SKIP_TENANT_PATHS are excluded from tenant resolution (health
    checks, metrics, docs, cross-tenant administration).
    """

    def __init__(self, app, resolver: TenantResolver, settings: Settings | None = None):
        super().__init__(app)
        self._resolver = resolver
        self._settings = settings or get_settings()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if any(path.startswith(skip) for skip in SKIP_TENANT_PATHS):
            return await call_next(request)

        signals = RequestSignals.from_request(request, self._settings)
        try:
            tenant_ctx = await self._resolver.resolve(signals)
        except TenantNotFound as exc:
            logger.warning("tenant_rejected", path=path, method=request.method)
            body = ErrorResponse(
                message=exc.message,
                debug=exc.checked if self._settings.DEBUG else None,
            )
            return JSONResponse(status_code=400, content=body.model_dump())

        request.state.tenant = tenant_ctx.tenant
        request.state.tenant_id = tenant_ctx.tenant_id
        request.state.tenant_context = tenant_ctx

        token = set_tenant_context(tenant_ctx)
        try:
            response = await call_next(request)
            return response
        finally:
            reset_tenant_context(token)
