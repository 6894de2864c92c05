"""Test fixtures for tenant resolution and tenant-scoped API tests.

Provides:
- InMemoryTenantDirectory: TenantDirectory over a fixed list of records
- FakeRedis / BrokenRedis: async stand-ins for the directory cache
- Sample tenants mirroring a typical deployment (see SAMPLE_TENANTS)
- FastAPI test app wired to the in-memory directory (DEBUG on)
- Async HTTP client for API testing

No database or Redis server is needed; anything that would touch one is
replaced through create_app() arguments or dependency overrides.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.tenancy.config import Environment, Settings
from src.tenancy.core.directory import TenantDirectory
from src.tenancy.core.tenant import TenantRecord
from src.tenancy.main import create_app


# ── Doubles ─────────────────────────────────────────────────────────────────


class InMemoryTenantDirectory(TenantDirectory):
    """Directory backed by a plain list, inactive tenants included."""

    def __init__(self, tenants: list[TenantRecord]):
        super().__init__()
        self.tenants = list(tenants)
        self.invalidations = 0
        self.active_calls = 0

    async def active_tenants(self) -> list[TenantRecord]:
        self.active_calls += 1
        return sorted((t for t in self.tenants if t.is_active), key=lambda t: t.id)

    async def lookup_any(self, identifier: str) -> TenantRecord | None:
        identifier = identifier.strip()
        for tenant in self.tenants:
            if tenant.slug == identifier or str(tenant.id) == identifier:
                return tenant
        return None

    async def invalidate(self) -> None:
        self.invalidations += 1


class FakeRedis:
    """Minimal async Redis: get/set/delete/incr on a dict, TTL recorded but not enforced."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str):
        existed = key in self.store
        self.store.pop(key, None)
        self.ttls.pop(key, None)
        return int(existed)

    async def incr(self, key: str):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value


class BrokenRedis:
    """Redis whose every call fails, as during an outage."""

    async def get(self, key: str):
        raise ConnectionError("redis unavailable")

    async def set(self, key: str, value: str, ex: int | None = None):
        raise ConnectionError("redis unavailable")

    async def delete(self, key: str):
        raise ConnectionError("redis unavailable")

    async def incr(self, key: str):
        raise ConnectionError("redis unavailable")


# ── Sample data ─────────────────────────────────────────────────────────────

WELLNESS = TenantRecord(
    id=1,
    slug="hyve-wellness",
    name="Hyve Wellness",
    domain="wellness.hyve.com",
    additional_domains=("www.hyvewellness.com",),
    active_template_id=3,
    settings={"theme": "calm"},
)
DEMO = TenantRecord(id=2, slug="demo", name="Demo Studio", domain="demo-studio.example.org")
RETIRED = TenantRecord(id=3, slug="retired", name="Old Site", domain="old.hyve.com", is_active=False)
LOCAL = TenantRecord(id=5, slug="local-dev", name="Local Dev", domain="localhost")

SAMPLE_TENANTS = [WELLNESS, DEMO, RETIRED, LOCAL]

# Owner of the *.hyve.com wildcard; kept out of SAMPLE_TENANTS since it
# would capture every hyve.com subdomain.
HYVE_NETWORK = TenantRecord(
    id=4,
    slug="hyve-network",
    name="Hyve Network",
    domain="hyve-network.com",
    additional_domains=("*.hyve.com",),
)


def make_settings(**overrides) -> Settings:
    """Settings isolated from any .env file, DEBUG on unless overridden."""
    values = {
        "ENVIRONMENT": Environment.development,
        "DEBUG": True,
        "SENTRY_DSN": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


async def _no_session() -> AsyncGenerator[None, None]:
    raise AssertionError("tests must not open a database session")
    yield  # pragma: no cover


# ── Fixtures ────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def directory() -> InMemoryTenantDirectory:
    return InMemoryTenantDirectory(SAMPLE_TENANTS)


@pytest.fixture
def app(settings, directory):
    """FastAPI app resolving tenants against the in-memory directory."""
    return create_app(settings=settings, directory=directory, session_factory=_no_session)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
