"""FastAPI application factory.

Creates the app with tenant resolution middleware, logging middleware,
metrics middleware, CORS, Sentry, lifespan events for database
initialization, and the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.tenancy.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.tenancy.api.middleware.tenant import TenantResolutionMiddleware
from src.tenancy.api.v1.router import router as v1_router
from src.tenancy.config import Settings, get_settings
from src.tenancy.core.database import close_db, get_session, init_db
from src.tenancy.core.directory import CachedTenantDirectory, SqlTenantDirectory, TenantDirectory
from src.tenancy.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.tenancy.core.redis import close_redis, get_redis_pool
from src.tenancy.core.resolution import build_default_resolver


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and Sentry on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings: Settings = app.state.settings
    configure_structlog()

    if app.state.owns_database:
        await init_db()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    # Start every process with a fresh view of the tenants
    await app.state.directory.invalidate()

    log.info(
        "app_started",
        environment=settings.ENVIRONMENT.value,
        query_fallback=settings.query_fallback_enabled,
    )

    yield

    if app.state.owns_database:
        await close_db()
        await close_redis()


def create_app(
    settings: Settings | None = None,
    directory: TenantDirectory | None = None,
    session_factory=None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``directory`` and ``session_factory`` default to the database-backed
    implementations; tests pass in-memory replacements.
    """
    settings = settings or get_settings()
    owns_database = session_factory is None
    session_factory = session_factory or get_session

    if directory is None:
        directory = CachedTenantDirectory(
            SqlTenantDirectory(session_factory),
            get_redis_pool(),
            ttl=settings.TENANT_CACHE_TTL,
        )

    app = FastAPI(
        title="Hyve Tenancy API",
        version="0.1.0",
        description="Multi-tenant site resolution and tenant-scoped content API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.directory = directory
    app.state.session_factory = session_factory
    app.state.owns_database = owns_database

    # Middleware is added in reverse order (last added = outermost)

    # Tenant middleware (inner -- resolves tenant context from header/domain/query)
    app.add_middleware(
        TenantResolutionMiddleware,
        resolver=build_default_resolver(directory, settings),
        settings=settings,
    )

    # CORS middleware (outside tenant resolution so preflights never need a tenant)
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app
