"""Cross-tenant content copy.

This is a maintenance operation, so it never relies on a resolved request
tenant: both the source and the target tenant are named by the caller and
every statement is built through TenantScopedRepository.scoped_select() for
one of the two. Rows already present in the target (same page/service slug,
menu location, or setting group+key) are skipped unless ``overwrite`` is set.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.core.exceptions import TenantScopeViolation
from src.tenancy.models.content import Menu, Page, Section, Service, Setting
from src.tenancy.repositories.scoped import TenantScopedRepository

logger = structlog.get_logger(__name__)

_SKIP_COLUMNS = {"id", "tenant_id", "created_at", "updated_at"}

# model -> columns identifying "the same" row in another tenant
_NATURAL_KEYS: dict[type, tuple[str, ...]] = {
    Page: ("slug",),
    Service: ("slug",),
    Menu: ("location",),
    Setting: ("group", "key"),
}

COPYABLE = {
    "pages": Page,
    "services": Service,
    "menus": Menu,
    "settings": Setting,
}


def _copy_values(instance: Any) -> dict[str, Any]:
    return {
        column.key: getattr(instance, column.key)
        for column in instance.__table__.columns
        if column.key not in _SKIP_COLUMNS
    }


async def copy_content(
    session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
    source_tenant_id: int,
    target_tenant_id: int,
    kinds: tuple[str, ...] = tuple(COPYABLE),
    overwrite: bool = False,
) -> dict[str, int]:
    """Copy content rows from one tenant to another in a single transaction.

    Pages are copied together with their sections.

    Returns:
        Number of rows written per kind (plus "sections").

    Raises:
        TenantScopeViolation: source and target are the same tenant.
        ValueError: unknown kind.
    """
    if source_tenant_id == target_tenant_id:
        raise TenantScopeViolation("Source and target tenant must differ")
    unknown = set(kinds) - set(COPYABLE)
    if unknown:
        raise ValueError(f"Unknown content kinds: {sorted(unknown)}")

    counts: dict[str, int] = {kind: 0 for kind in kinds}
    counts["sections"] = 0

    async for session in session_factory():
        for kind in kinds:
            model = COPYABLE[kind]
            repo = TenantScopedRepository(model, session_factory)
            keys = _NATURAL_KEYS[model]

            source_rows = (await session.execute(repo.scoped_select(source_tenant_id))).scalars().all()
            for row in source_rows:
                lookup = {k: getattr(row, k) for k in keys}
                existing = (
                    await session.execute(repo.scoped_select(target_tenant_id, **lookup))
                ).scalar_one_or_none()
                if existing is not None and not overwrite:
                    continue

                values = _copy_values(row)
                if existing is not None:
                    for key, value in values.items():
                        setattr(existing, key, value)
                    target = existing
                else:
                    target = model(tenant_id=target_tenant_id, **values)
                    session.add(target)
                await session.flush()
                counts[kind] += 1

                if model is Page:
                    counts["sections"] += await _copy_sections(
                        session, session_factory, row.id, target.id, source_tenant_id, target_tenant_id
                    )

        await session.commit()
        logger.info(
            "tenant_content_copied",
            source_tenant_id=source_tenant_id,
            target_tenant_id=target_tenant_id,
            **counts,
        )
        return counts
    return counts


async def _copy_sections(
    session: AsyncSession,
    session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
    source_page_id: int,
    target_page_id: int,
    source_tenant_id: int,
    target_tenant_id: int,
) -> int:
    repo = TenantScopedRepository(Section, session_factory)

    # Replace the target page's sections wholesale to keep ordering intact
    stale = (await session.execute(repo.scoped_select(target_tenant_id, page_id=target_page_id))).scalars().all()
    for section in stale:
        await session.delete(section)

    sections = (
        await session.execute(repo.scoped_select(source_tenant_id, page_id=source_page_id))
    ).scalars().all()
    for section in sections:
        values = _copy_values(section)
        values["page_id"] = target_page_id
        session.add(Section(tenant_id=target_tenant_id, **values))
    return len(sections)
