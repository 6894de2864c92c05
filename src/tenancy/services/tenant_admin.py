"""Tenant administration service.

Creates, updates and (de)activates tenants while keeping the directory
invariants:
- slug is unique among active tenants
- the primary domain, when set, is unique among active tenants
- every change invalidates the tenant directory cache, so resolution never
  serves a stale view for longer than it takes the next request to reload

Domains typed by administrators are cleaned first (scheme, path and port
stripped, lowercased). Tenants are never hard-deleted here; deactivation is
the only way to retire one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncGenerator, Callable, Iterable
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.core.directory import TenantDirectory
from src.tenancy.core.domains import clean_domain_input
from src.tenancy.core.exceptions import TenantConflict, TenantNotFound
from src.tenancy.core.tenant import TenantRecord
from src.tenancy.models.content import TENANT_OWNED_MODELS
from src.tenancy.models.tenant import Tenant
from src.tenancy.repositories.scoped import TenantScopedRepository
from src.tenancy.schemas.tenant import TenantCreate, TenantUpdate

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


# ── Helpers ─────────────────────────────────────────────────────────────────


def slugify(name: str) -> str:
    """Lowercase ASCII slug: runs of other characters collapse to one hyphen."""
    slug = _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")
    return slug or "tenant"


def unique_slug(base: str, taken: Iterable[str]) -> str:
    """Append -1, -2, ... to ``base`` until it is not in ``taken``."""
    taken = set(taken)
    slug = base
    counter = 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def clean_domains(domains: Iterable[str]) -> list[str]:
    """Clean each domain and drop empties and duplicates, keeping order."""
    cleaned: list[str] = []
    for raw in domains:
        domain = clean_domain_input(raw)
        if domain and domain not in cleaned:
            cleaned.append(domain)
    return cleaned


def check_conflicts(
    slug: str,
    domain: str | None,
    active_tenants: Iterable[TenantRecord],
    exclude_id: int | None = None,
) -> None:
    """Raise TenantConflict if another active tenant owns the slug or primary domain."""
    for tenant in active_tenants:
        if tenant.id == exclude_id:
            continue
        if tenant.slug == slug:
            raise TenantConflict("slug", slug)
        if domain and tenant.domain and clean_domain_input(tenant.domain) == domain:
            raise TenantConflict("domain", domain)


# ── Service ─────────────────────────────────────────────────────────────────


class TenantAdminService:
    """Administrative tenant operations.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
        directory: Directory whose cache is invalidated after each change.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
        directory: TenantDirectory,
    ) -> None:
        self._session_factory = session_factory
        self._directory = directory

    async def _active_records(self, session: AsyncSession) -> list[TenantRecord]:
        result = await session.execute(select(Tenant).where(Tenant.is_active.is_(True)))
        return [TenantRecord.from_model(t) for t in result.scalars().all()]

    async def _get_model(self, session: AsyncSession, tenant_id: int) -> Tenant:
        tenant = await session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFound(f"Tenant not found: {tenant_id}", checked={"identifier": str(tenant_id)})
        return tenant

    async def list_tenants(self, include_inactive: bool = True) -> list[TenantRecord]:
        stmt = select(Tenant).order_by(Tenant.id)
        if not include_inactive:
            stmt = stmt.where(Tenant.is_active.is_(True))
        async for session in self._session_factory():
            result = await session.execute(stmt)
            return [TenantRecord.from_model(t) for t in result.scalars().all()]
        return []

    async def get_tenant(self, tenant_id: int) -> TenantRecord:
        async for session in self._session_factory():
            return TenantRecord.from_model(await self._get_model(session, tenant_id))
        raise RuntimeError("session factory yielded no session")

    async def create_tenant(self, data: TenantCreate) -> TenantRecord:
        """Create a tenant, generating a unique slug from the name when none is given.

        Raises:
            TenantConflict: slug or domain already used by an active tenant.
        """
        domain = clean_domain_input(data.domain)
        async for session in self._session_factory():
            active = await self._active_records(session)
            if data.slug:
                slug = data.slug
            else:
                result = await session.execute(select(Tenant.slug))
                slug = unique_slug(slugify(data.name), result.scalars().all())

            if data.is_active:
                check_conflicts(slug, domain, active)

            tenant = Tenant(
                name=data.name,
                slug=slug,
                domain=domain,
                additional_domains=clean_domains(data.additional_domains),
                active_template_id=data.active_template_id,
                settings=dict(data.settings),
                is_active=data.is_active,
            )
            session.add(tenant)
            await session.commit()
            await session.refresh(tenant)
            record = TenantRecord.from_model(tenant)

            await self._directory.invalidate()
            logger.info("Tenant created: %s (ID: %s)", record.slug, record.id)
            return record
        raise RuntimeError("session factory yielded no session")

    async def update_tenant(self, tenant_id: int, data: TenantUpdate) -> TenantRecord:
        """Apply a partial update.

        Raises:
            TenantNotFound: no tenant with this id.
            TenantConflict: new slug or domain collides with another active tenant.
        """
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        # Required columns cannot be cleared
        for key in ("name", "slug"):
            if key in changes and changes[key] is None:
                del changes[key]
        if "domain" in changes:
            changes["domain"] = clean_domain_input(changes["domain"])
        if changes.get("additional_domains") is not None:
            changes["additional_domains"] = clean_domains(changes["additional_domains"])

        async for session in self._session_factory():
            tenant = await self._get_model(session, tenant_id)
            slug = changes.get("slug") or tenant.slug
            domain = changes["domain"] if "domain" in changes else tenant.domain
            if tenant.is_active:
                check_conflicts(slug, clean_domain_input(domain), await self._active_records(session), exclude_id=tenant.id)

            for key, value in changes.items():
                setattr(tenant, key, value)
            await session.commit()
            await session.refresh(tenant)
            record = TenantRecord.from_model(tenant)

            await self._directory.invalidate()
            logger.info("Tenant updated: %s (ID: %s) fields=%s", record.slug, record.id, sorted(changes))
            return record
        raise RuntimeError("session factory yielded no session")

    async def toggle_active(self, tenant_id: int) -> TenantRecord:
        """Flip is_active. Reactivation re-checks uniqueness against active tenants.

        Raises:
            TenantNotFound: no tenant with this id.
            TenantConflict: reactivating would duplicate an active slug or domain.
        """
        async for session in self._session_factory():
            tenant = await self._get_model(session, tenant_id)
            if not tenant.is_active:
                check_conflicts(
                    tenant.slug,
                    clean_domain_input(tenant.domain),
                    await self._active_records(session),
                    exclude_id=tenant.id,
                )
            tenant.is_active = not tenant.is_active
            await session.commit()
            await session.refresh(tenant)
            record = TenantRecord.from_model(tenant)

            await self._directory.invalidate()
            logger.info("Tenant %s: %s (ID: %s)", "activated" if record.is_active else "deactivated", record.slug, record.id)
            return record
        raise RuntimeError("session factory yielded no session")

    async def get_statistics(self, tenant_id: int) -> dict[str, int]:
        """Number of owned rows per content table."""
        await self.get_tenant(tenant_id)
        counts: dict[str, int] = {}
        for model in TENANT_OWNED_MODELS:
            repo = TenantScopedRepository(model, self._session_factory)
            counts[model.__tablename__] = await repo.count(tenant_id)
        return counts
