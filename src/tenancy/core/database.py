"""Async SQLAlchemy engine and session factory.

All tenants share one schema. Isolation is enforced at the query level:
tenant-owned tables carry a non-null tenant_id and are only read or written
through TenantScopedRepository, which takes the tenant id explicitly.

Provides:
- Base: Declarative base for every model (tenants and tenant-owned rows)
- get_session(): AsyncSession generator used as a session_factory
- init_db() / close_db(): lifespan helpers
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.tenancy.config import get_settings

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=20,
            max_overflow=10,
            pool_pre_ping=True,
            echo=False,
        )
    return _engine


# ── Declarative Base ────────────────────────────────────────────────────────


class Base(DeclarativeBase):
    """Base class for all ORM models."""


# ── Session Factory ─────────────────────────────────────────────────────────


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession bound to the shared engine.

    The session carries no tenant state of its own; callers pass the tenant
    id to the repository on every operation.
    """
    engine = get_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


# ── Database Initialization ─────────────────────────────────────────────────


async def init_db() -> None:
    """Create tables if they don't exist (development convenience; Alembic in production)."""
    # Import models so they register on Base.metadata
    from src.tenancy.models import content, tenant  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
