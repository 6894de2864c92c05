"""Tenant-scoped repository for tenant-owned models.

Every method takes tenant_id as its first argument and every statement is
built from ``scoped_select()``, so the ``tenant_id = :id`` filter is visible
at each call site instead of being injected behind the caller's back. There
is no unscoped read path; administrative code that works across tenants
passes each tenant id explicitly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.core.exceptions import TenantScopeViolation

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT")


def _require_tenant_id(tenant_id: int | None) -> int:
    if tenant_id is None:
        raise TenantScopeViolation("tenant_id is required for tenant-owned records")
    return tenant_id


class TenantScopedRepository(Generic[ModelT]):
    """Async CRUD for one tenant-owned model.

    Args:
        model: ORM class with a tenant_id column.
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self,
        model: type[ModelT],
        session_factory: Callable[..., AsyncGenerator[AsyncSession, None]],
    ) -> None:
        self.model = model
        self._session_factory = session_factory

    # ── Statement builders ──────────────────────────────────────────────────

    def scoped_select(self, tenant_id: int, /, **filters: Any) -> Select:
        """SELECT restricted to one tenant, with optional equality filters."""
        tenant_id = _require_tenant_id(tenant_id)
        stmt = select(self.model).where(self.model.tenant_id == tenant_id)
        for column, value in filters.items():
            stmt = stmt.where(getattr(self.model, column) == value)
        return stmt

    def _order(self, stmt: Select) -> Select:
        if hasattr(self.model, "order"):
            return stmt.order_by(self.model.order, self.model.id)
        return stmt.order_by(self.model.id)

    # ── Reads ───────────────────────────────────────────────────────────────

    async def list_all(self, tenant_id: int, /, **filters: Any) -> list[ModelT]:
        stmt = self._order(self.scoped_select(tenant_id, **filters))
        async for session in self._session_factory():
            result = await session.execute(stmt)
            return list(result.scalars().all())
        return []

    async def get(self, tenant_id: int, record_id: int) -> ModelT | None:
        stmt = self.scoped_select(tenant_id, id=record_id)
        async for session in self._session_factory():
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
        return None

    async def get_by(self, tenant_id: int, /, **filters: Any) -> ModelT | None:
        """First row matching the filters within the tenant, or None."""
        stmt = self._order(self.scoped_select(tenant_id, **filters)).limit(1)
        async for session in self._session_factory():
            result = await session.execute(stmt)
            return result.scalar_one_or_none()
        return None

    async def count(self, tenant_id: int) -> int:
        tenant_id = _require_tenant_id(tenant_id)
        stmt = select(func.count()).select_from(self.model).where(self.model.tenant_id == tenant_id)
        async for session in self._session_factory():
            result = await session.execute(stmt)
            return int(result.scalar_one())
        return 0

    # ── Writes ──────────────────────────────────────────────────────────────

    async def create(self, tenant_id: int, /, **values: Any) -> ModelT:
        """Insert a row owned by ``tenant_id``.

        Raises:
            TenantScopeViolation: values carry a different tenant_id.
        """
        tenant_id = _require_tenant_id(tenant_id)
        owner = values.pop("tenant_id", tenant_id)
        if owner != tenant_id:
            raise TenantScopeViolation(
                f"Cannot create {self.model.__name__} for tenant {owner} while scoped to tenant {tenant_id}"
            )
        async for session in self._session_factory():
            instance = self.model(tenant_id=tenant_id, **values)
            session.add(instance)
            await session.commit()
            await session.refresh(instance)
            logger.debug("tenant_record_created", model=self.model.__name__, tenant_id=tenant_id, record_id=instance.id)
            return instance
        raise RuntimeError("session factory yielded no session")

    async def update(self, tenant_id: int, record_id: int, /, **values: Any) -> ModelT | None:
        """Update a row of this tenant. Returns None if the tenant has no such row.

        Raises:
            TenantScopeViolation: values try to move the row to another tenant.
        """
        tenant_id = _require_tenant_id(tenant_id)
        if "tenant_id" in values and values.pop("tenant_id") != tenant_id:
            raise TenantScopeViolation(f"Cannot move {self.model.__name__} {record_id} to another tenant")
        stmt = self.scoped_select(tenant_id, id=record_id)
        async for session in self._session_factory():
            result = await session.execute(stmt)
            instance = result.scalar_one_or_none()
            if instance is None:
                return None
            for key, value in values.items():
                setattr(instance, key, value)
            await session.commit()
            await session.refresh(instance)
            return instance
        return None

    async def delete(self, tenant_id: int, record_id: int) -> bool:
        stmt = self.scoped_select(tenant_id, id=record_id)
        async for session in self._session_factory():
            result = await session.execute(stmt)
            instance = result.scalar_one_or_none()
            if instance is None:
                return False
            await session.delete(instance)
            await session.commit()
            logger.debug("tenant_record_deleted", model=self.model.__name__, tenant_id=tenant_id, record_id=record_id)
            return True
        return False
