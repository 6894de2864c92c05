"""Tests for tenant administration: slug generation, conflicts, cache invalidation.

The service runs against an AsyncMock session; no database is involved.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tenancy.core.exceptions import TenantConflict, TenantNotFound
from src.tenancy.models.tenant import Tenant
from src.tenancy.schemas.tenant import TenantCreate, TenantUpdate
from src.tenancy.services.tenant_admin import (
    TenantAdminService,
    check_conflicts,
    clean_domains,
    slugify,
    unique_slug,
)

from conftest import DEMO, RETIRED, SAMPLE_TENANTS, WELLNESS, InMemoryTenantDirectory


def _tenant(**overrides) -> Tenant:
    values = {
        "id": 1,
        "slug": "hyve-wellness",
        "name": "Hyve Wellness",
        "domain": "wellness.hyve.com",
        "additional_domains": [],
        "settings": {},
        "active_template_id": None,
        "is_active": True,
    }
    values.update(overrides)
    return Tenant(**values)


def _result(rows) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


def _service(session: AsyncMock) -> tuple[TenantAdminService, InMemoryTenantDirectory]:
    async def factory():
        yield session

    directory = InMemoryTenantDirectory(SAMPLE_TENANTS)
    return TenantAdminService(factory, directory), directory


def _session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    return session


# ── Helpers ─────────────────────────────────────────────────────────────────


class TestSlugify:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Hyve Wellness", "hyve-wellness"),
            ("  Café & Spa!! ", "caf-spa"),
            ("Demo", "demo"),
            ("***", "tenant"),
        ],
    )
    def test_slugify(self, name, expected):
        assert slugify(name) == expected

    def test_unique_slug_free(self):
        assert unique_slug("demo", ["other"]) == "demo"

    def test_unique_slug_counter(self):
        assert unique_slug("demo", ["demo", "demo-1"]) == "demo-2"


class TestCleanDomains:
    def test_cleans_and_deduplicates(self):
        raw = ["https://WWW.Hyve.com/", "www.hyve.com", "", "*.Hyve.com", "shop.hyve.com:8080"]
        assert clean_domains(raw) == ["www.hyve.com", "*.hyve.com", "shop.hyve.com"]


class TestCheckConflicts:
    def test_slug_taken(self):
        with pytest.raises(TenantConflict) as exc_info:
            check_conflicts("demo", None, SAMPLE_TENANTS)
        assert exc_info.value.field == "slug"

    def test_domain_taken(self):
        with pytest.raises(TenantConflict) as exc_info:
            check_conflicts("new", "wellness.hyve.com", SAMPLE_TENANTS)
        assert exc_info.value.field == "domain"

    def test_own_record_is_excluded(self):
        check_conflicts(WELLNESS.slug, WELLNESS.domain, SAMPLE_TENANTS, exclude_id=WELLNESS.id)

    def test_only_active_tenants_count(self):
        active = [t for t in SAMPLE_TENANTS if t.is_active]
        check_conflicts(RETIRED.slug, RETIRED.domain, active)


# ── Service ─────────────────────────────────────────────────────────────────


class TestCreateTenant:
    @pytest.mark.asyncio
    async def test_generates_unique_slug(self):
        session = _session()
        session.execute.side_effect = [
            _result([_tenant()]),
            _result(["hyve-wellness", "demo-studio"]),
        ]

        async def assign_id(instance):
            instance.id = 10

        session.refresh.side_effect = assign_id
        service, directory = _service(session)

        record = await service.create_tenant(
            TenantCreate(name="Demo Studio", domain="https://Studio.Example.org/", additional_domains=["*.Studio.io"])
        )

        assert record.id == 10
        assert record.slug == "demo-studio-1"
        assert record.domain == "studio.example.org"
        assert record.additional_domains == ("*.studio.io",)
        session.commit.assert_awaited_once()
        assert directory.invalidations == 1

    @pytest.mark.asyncio
    async def test_conflicting_domain(self):
        session = _session()
        session.execute.return_value = _result([_tenant()])
        service, directory = _service(session)

        with pytest.raises(TenantConflict):
            await service.create_tenant(TenantCreate(name="Copycat", slug="copycat", domain="wellness.hyve.com"))

        session.add.assert_not_called()
        assert directory.invalidations == 0

    @pytest.mark.asyncio
    async def test_inactive_tenant_skips_conflict_check(self):
        session = _session()
        session.execute.return_value = _result([_tenant()])
        service, _ = _service(session)

        record = await service.create_tenant(
            TenantCreate(name="Parked", slug="hyve-wellness", is_active=False)
        )
        assert not record.is_active


class TestUpdateTenant:
    @pytest.mark.asyncio
    async def test_partial_update(self):
        tenant = _tenant()
        session = _session()
        session.get.return_value = tenant
        session.execute.return_value = _result([tenant])
        service, directory = _service(session)

        record = await service.update_tenant(1, TenantUpdate(name="Hyve Wellness Co", domain="HTTPS://new.hyve.com"))

        assert record.name == "Hyve Wellness Co"
        assert record.domain == "new.hyve.com"
        assert record.slug == "hyve-wellness"
        assert directory.invalidations == 1

    @pytest.mark.asyncio
    async def test_slug_taken_by_other_tenant(self):
        tenant = _tenant()
        session = _session()
        session.get.return_value = tenant
        session.execute.return_value = _result([tenant, _tenant(id=2, slug="demo", domain=None)])
        service, directory = _service(session)

        with pytest.raises(TenantConflict):
            await service.update_tenant(1, TenantUpdate(slug="demo"))
        assert directory.invalidations == 0

    @pytest.mark.asyncio
    async def test_missing_tenant(self):
        session = _session()
        session.get.return_value = None
        service, _ = _service(session)

        with pytest.raises(TenantNotFound):
            await service.update_tenant(99, TenantUpdate(name="Ghost"))


class TestToggleActive:
    @pytest.mark.asyncio
    async def test_deactivate(self):
        tenant = _tenant()
        session = _session()
        session.get.return_value = tenant
        service, directory = _service(session)

        record = await service.toggle_active(1)

        assert not record.is_active
        assert directory.invalidations == 1

    @pytest.mark.asyncio
    async def test_reactivate_conflict(self):
        retired = _tenant(id=3, slug="demo", domain="old.hyve.com", is_active=False)
        session = _session()
        session.get.return_value = retired
        session.execute.return_value = _result([_tenant(id=2, slug="demo", domain=DEMO.domain)])
        service, directory = _service(session)

        with pytest.raises(TenantConflict):
            await service.toggle_active(3)
        assert retired.is_active is False
        assert directory.invalidations == 0

    @pytest.mark.asyncio
    async def test_reactivate(self):
        retired = _tenant(id=3, slug="retired", domain="old.hyve.com", is_active=False)
        session = _session()
        session.get.return_value = retired
        session.execute.return_value = _result([_tenant()])
        service, _ = _service(session)

        record = await service.toggle_active(3)
        assert record.is_active
