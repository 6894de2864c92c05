"""Tenant directory: active-tenant lookups by id, slug and domain.

Every lookup filters out inactive tenants; a deactivated tenant cannot be
resolved by any strategy. The only exception is ``lookup_any()``, which
administrative code uses to tell "inactive" apart from "unknown".

Two implementations:
- SqlTenantDirectory reads the tenants table on every call.
- CachedTenantDirectory keeps a JSON snapshot of the active tenants in Redis
  for TENANT_CACHE_TTL seconds. Anything that creates, updates or
  deactivates a tenant must call ``invalidate()``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Callable

import redis.asyncio as aioredis
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.core.exceptions import TenantInactive, TenantNotFound
from src.tenancy.core.matcher import DomainMatch, DomainMatcher
from src.tenancy.core.tenant import TenantRecord

logger = logging.getLogger(__name__)

ACTIVE_TENANTS_CACHE_KEY = "tenant:directory:active"
CACHE_GENERATION_KEY = "tenant:directory:generation"

# tenants.id is a 32-bit INTEGER column
MAX_TENANT_ID = 2**31 - 1


def _as_int(identifier: str) -> int | None:
    """Parse an identifier as a tenant id, or None if it cannot be one.

    Only ASCII digits count (``str.isdigit`` also accepts superscripts), and
    values outside the id column's range are rejected before reaching SQL.
    """
    identifier = identifier.strip()
    if not (identifier.isascii() and identifier.isdigit()) or len(identifier) > len(str(MAX_TENANT_ID)):
        return None
    value = int(identifier)
    if not 1 <= value <= MAX_TENANT_ID:
        return None
    return value


def snapshot_key(generation: str | int) -> str:
    return f"{ACTIVE_TENANTS_CACHE_KEY}:{generation}"


class TenantDirectory(ABC):
    """Read-only view over the registered tenants."""

    def __init__(self, matcher: DomainMatcher | None = None):
        self._matcher = matcher or DomainMatcher()

    @abstractmethod
    async def active_tenants(self) -> list[TenantRecord]:
        """All active tenants, ordered by id."""

    @abstractmethod
    async def lookup_any(self, identifier: str) -> TenantRecord | None:
        """Find a tenant by slug or id regardless of its active flag."""

    async def get_by_slug(self, slug: str) -> TenantRecord | None:
        for tenant in await self.active_tenants():
            if tenant.slug == slug:
                return tenant
        return None

    async def get_by_id(self, tenant_id: int) -> TenantRecord | None:
        for tenant in await self.active_tenants():
            if tenant.id == tenant_id:
                return tenant
        return None

    async def find_by_identifier(self, identifier: str) -> TenantRecord | None:
        """Resolve an out-of-band identifier to an active tenant.

        The slug is tried first since it is the public identifier; the value
        is only treated as a numeric id when no slug matches. A purely
        numeric slug therefore shadows the tenant whose id has that value.
        """
        identifier = identifier.strip()
        if not identifier:
            return None
        tenant = await self.get_by_slug(identifier)
        if tenant:
            return tenant
        tenant_id = _as_int(identifier)
        if tenant_id is not None:
            return await self.get_by_id(tenant_id)
        return None

    async def find_by_domain(self, domain: str) -> DomainMatch | None:
        """Match a normalized host against the active tenants' domains."""
        return self._matcher.match(domain, await self.active_tenants())

    async def invalidate(self) -> None:
        """Drop cached state. No-op for uncached directories."""


# ── SQL Directory ───────────────────────────────────────────────────────────


class SqlTenantDirectory(TenantDirectory):
    """Directory backed by the tenants table.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
        matcher: DomainMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self._session_factory = session_factory

    async def active_tenants(self) -> list[TenantRecord]:
        from src.tenancy.models.tenant import Tenant

        async for session in self._session_factory():
            result = await session.execute(
                select(Tenant).where(Tenant.is_active.is_(True)).order_by(Tenant.id)
            )
            return [TenantRecord.from_model(row) for row in result.scalars().all()]
        return []

    async def get_by_slug(self, slug: str) -> TenantRecord | None:
        from src.tenancy.models.tenant import Tenant

        async for session in self._session_factory():
            result = await session.execute(
                select(Tenant).where(Tenant.is_active.is_(True), Tenant.slug == slug).limit(1)
            )
            model = result.scalar_one_or_none()
            return TenantRecord.from_model(model) if model else None
        return None

    async def get_by_id(self, tenant_id: int) -> TenantRecord | None:
        from src.tenancy.models.tenant import Tenant

        async for session in self._session_factory():
            result = await session.execute(
                select(Tenant).where(Tenant.is_active.is_(True), Tenant.id == tenant_id)
            )
            model = result.scalar_one_or_none()
            return TenantRecord.from_model(model) if model else None
        return None

    async def lookup_any(self, identifier: str) -> TenantRecord | None:
        from src.tenancy.models.tenant import Tenant

        identifier = identifier.strip()
        conditions = [Tenant.slug == identifier]
        tenant_id = _as_int(identifier)
        if tenant_id is not None:
            conditions.append(Tenant.id == tenant_id)

        async for session in self._session_factory():
            result = await session.execute(
                # Active rows first so a reused slug reports the live tenant
                select(Tenant).where(or_(*conditions)).order_by(Tenant.is_active.desc(), Tenant.id).limit(1)
            )
            model = result.scalar_one_or_none()
            return TenantRecord.from_model(model) if model else None
        return None


# ── Cached Directory ────────────────────────────────────────────────────────


class CachedTenantDirectory(TenantDirectory):
    """Directory that caches the active-tenant snapshot in Redis.

    Snapshots are stored under a generation number that ``invalidate()``
    increments. A reader that loaded the tenants before an invalidation writes
    its snapshot under the old generation, where no later reader looks, so a
    deactivated tenant cannot be cached back in.

    Redis failures are logged and fall through to the wrapped directory, so a
    cache outage costs latency, never correctness.
    """

    def __init__(
        self,
        inner: TenantDirectory,
        redis_client: aioredis.Redis | None,
        ttl: int = 300,
        matcher: DomainMatcher | None = None,
    ) -> None:
        super().__init__(matcher)
        self._inner = inner
        self._redis = redis_client
        self._ttl = ttl

    async def active_tenants(self) -> list[TenantRecord]:
        generation = None
        if self._redis:
            try:
                generation = await self._redis.get(CACHE_GENERATION_KEY) or "0"
                cached = await self._redis.get(snapshot_key(generation))
                if cached:
                    return [TenantRecord.from_dict(item) for item in json.loads(cached)]
            except Exception:
                generation = None
                logger.warning("Redis cache lookup failed for tenant directory")

        tenants = await self._inner.active_tenants()

        if self._redis and generation is not None:
            try:
                await self._redis.set(
                    snapshot_key(generation),
                    json.dumps([t.to_dict() for t in tenants]),
                    ex=self._ttl,
                )
            except Exception:
                logger.warning("Redis cache set failed for tenant directory")

        return tenants

    async def lookup_any(self, identifier: str) -> TenantRecord | None:
        return await self._inner.lookup_any(identifier)

    async def invalidate(self) -> None:
        await self._inner.invalidate()
        if self._redis:
            try:
                generation = await self._redis.incr(CACHE_GENERATION_KEY)
                await self._redis.delete(snapshot_key(generation - 1))
            except Exception:
                logger.warning("Redis cache invalidation failed for tenant directory")


# ── Administrative lookup ───────────────────────────────────────────────────


async def require_tenant(directory: TenantDirectory, identifier: str) -> TenantRecord:
    """Look up a tenant for an operation that names it explicitly.

    Raises:
        TenantInactive: The identifier names a deactivated tenant.
        TenantNotFound: No tenant has this slug or id.
    """
    tenant = await directory.find_by_identifier(identifier)
    if tenant:
        return tenant
    existing = await directory.lookup_any(identifier)
    if existing and not existing.is_active:
        raise TenantInactive(identifier)
    raise TenantNotFound(f"Tenant not found: {identifier}", checked={"identifier": identifier})
