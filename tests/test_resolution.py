"""Tests for the tenant resolution strategy chain.

Tests cover:
- each strategy resolving on its own signal
- priority between strategies and fall-through on misses
- inactive and local-domain tenants never resolving
- query fallback gating
- failure diagnostics and resolution metrics
"""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from src.tenancy.config import Environment
from src.tenancy.core.exceptions import TenantNotFound
from src.tenancy.core.resolution import (
    HeaderStrategy,
    HostStrategy,
    RequestSignals,
    TenantResolver,
    build_default_resolver,
)

from conftest import DEMO, HYVE_NETWORK, SAMPLE_TENANTS, WELLNESS, InMemoryTenantDirectory, make_settings


@pytest.fixture
def resolver(directory, settings) -> TenantResolver:
    return build_default_resolver(directory, settings)


def _resolution_count(strategy: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "tenant_resolutions_total",
        {"strategy": strategy, "outcome": outcome},
    )
    return value or 0.0


# ── Individual strategies ───────────────────────────────────────────────────


class TestStrategies:
    @pytest.mark.asyncio
    async def test_header_by_slug(self, resolver):
        ctx = await resolver.resolve(RequestSignals(tenant_header="hyve-wellness"))
        assert ctx.tenant == WELLNESS
        assert ctx.tenant_id == 1
        assert ctx.strategy == "header"
        assert ctx.rule is None

    @pytest.mark.asyncio
    async def test_header_by_id(self, resolver):
        ctx = await resolver.resolve(RequestSignals(tenant_header="2"))
        assert ctx.tenant == DEMO
        assert ctx.identifier == "2"

    @pytest.mark.asyncio
    async def test_header_whitespace_is_trimmed(self, resolver):
        ctx = await resolver.resolve(RequestSignals(tenant_header="  demo "))
        assert ctx.tenant == DEMO
        assert ctx.identifier == "demo"

    @pytest.mark.asyncio
    async def test_forwarded_host(self, resolver):
        ctx = await resolver.resolve(RequestSignals(forwarded_host="wellness.hyve.com", host="internal-lb:8080"))
        assert ctx.tenant == WELLNESS
        assert ctx.strategy == "forwarded_host"
        assert ctx.rule == "exact"

    @pytest.mark.asyncio
    async def test_origin_slug_subdomain(self, resolver):
        ctx = await resolver.resolve(RequestSignals(origin="https://demo.hyve.com"))
        assert ctx.tenant == DEMO
        assert ctx.strategy == "origin"
        assert ctx.rule == "slug"

    @pytest.mark.asyncio
    async def test_host(self, resolver):
        ctx = await resolver.resolve(RequestSignals(host="Wellness.Hyve.com:443"))
        assert ctx.tenant == WELLNESS
        assert ctx.strategy == "host"
        assert ctx.identifier == "wellness.hyve.com"

    @pytest.mark.asyncio
    async def test_query(self, resolver):
        ctx = await resolver.resolve(RequestSignals(query_tenant="demo"))
        assert ctx.tenant == DEMO
        assert ctx.strategy == "query"


# ── Example scenarios ───────────────────────────────────────────────────────


class TestScenarios:
    @pytest.mark.asyncio
    async def test_localhost_falls_through_to_query(self, resolver):
        ctx = await resolver.resolve(RequestSignals(host="localhost:3000", query_tenant="hyve-wellness"))
        assert ctx.tenant == WELLNESS
        assert ctx.strategy == "query"

    @pytest.mark.asyncio
    async def test_localhost_without_query_fails(self, resolver):
        # A tenant with domain "localhost" exists and must still not match
        with pytest.raises(TenantNotFound):
            await resolver.resolve(RequestSignals(host="localhost:3000"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("host", ["127.0.0.1:8000", "0.0.0.0"])
    async def test_other_local_hosts_fail(self, resolver, host):
        with pytest.raises(TenantNotFound):
            await resolver.resolve(RequestSignals(host=host))

    @pytest.mark.asyncio
    async def test_inactive_tenant_domain_fails(self, resolver):
        with pytest.raises(TenantNotFound):
            await resolver.resolve(RequestSignals(host="old.hyve.com"))

    @pytest.mark.asyncio
    async def test_inactive_tenant_falls_through(self, resolver):
        ctx = await resolver.resolve(RequestSignals(host="old.hyve.com", query_tenant="demo"))
        assert ctx.tenant == DEMO

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "signals",
        [
            RequestSignals(tenant_header="retired"),
            RequestSignals(tenant_header="3"),
            RequestSignals(query_tenant="retired"),
            RequestSignals(origin="https://retired.hyve.com"),
        ],
    )
    async def test_inactive_tenant_never_resolves(self, resolver, signals):
        with pytest.raises(TenantNotFound):
            await resolver.resolve(signals)

    @pytest.mark.asyncio
    async def test_wildcard_owner(self, settings):
        resolver = build_default_resolver(InMemoryTenantDirectory([*SAMPLE_TENANTS, HYVE_NETWORK]), settings)
        ctx = await resolver.resolve(RequestSignals(host="anything.hyve.com"))
        assert ctx.tenant == HYVE_NETWORK
        assert ctx.rule == "wildcard"

    @pytest.mark.asyncio
    async def test_exact_beats_wildcard(self, settings):
        resolver = build_default_resolver(InMemoryTenantDirectory([HYVE_NETWORK, *SAMPLE_TENANTS]), settings)
        ctx = await resolver.resolve(RequestSignals(host="wellness.hyve.com"))
        assert ctx.tenant == WELLNESS
        assert ctx.rule == "exact"


# ── Priority ────────────────────────────────────────────────────────────────


class TestPriority:
    @pytest.mark.asyncio
    async def test_header_beats_conflicting_host(self, resolver):
        ctx = await resolver.resolve(RequestSignals(tenant_header="demo", host="wellness.hyve.com"))
        assert ctx.tenant == DEMO
        assert ctx.strategy == "header"

    @pytest.mark.asyncio
    async def test_forwarded_host_beats_host(self, resolver):
        ctx = await resolver.resolve(
            RequestSignals(forwarded_host="demo.hyve.com", host="wellness.hyve.com")
        )
        assert ctx.tenant == DEMO
        assert ctx.strategy == "forwarded_host"

    @pytest.mark.asyncio
    async def test_unknown_header_falls_through(self, resolver):
        ctx = await resolver.resolve(RequestSignals(tenant_header="nobody", host="wellness.hyve.com"))
        assert ctx.tenant == WELLNESS
        assert ctx.strategy == "host"

    @pytest.mark.asyncio
    async def test_unmatched_origin_falls_through_to_host(self, resolver):
        ctx = await resolver.resolve(RequestSignals(origin="https://elsewhere.net", host="wellness.hyve.com"))
        assert ctx.strategy == "host"

    @pytest.mark.asyncio
    async def test_idempotent(self, resolver):
        signals = RequestSignals(origin="https://demo.hyve.com", query_tenant="hyve-wellness")
        first = await resolver.resolve(signals)
        second = await resolver.resolve(signals)
        assert first == second

    @pytest.mark.asyncio
    async def test_custom_chain(self, directory):
        resolver = TenantResolver(directory, [HostStrategy(), HeaderStrategy()])
        ctx = await resolver.resolve(RequestSignals(tenant_header="demo", host="wellness.hyve.com"))
        assert ctx.tenant == WELLNESS
        assert resolver.strategy_names == ["host", "header"]


# ── Query fallback gating ───────────────────────────────────────────────────


class TestQueryFallback:
    def test_enabled_in_development(self, directory):
        resolver = build_default_resolver(directory, make_settings())
        assert resolver.strategy_names == ["header", "forwarded_host", "origin", "host", "query"]

    def test_disabled_in_production_by_default(self, directory):
        resolver = build_default_resolver(directory, make_settings(ENVIRONMENT=Environment.production))
        assert "query" not in resolver.strategy_names

    def test_explicit_flag_wins(self, directory):
        settings = make_settings(ENVIRONMENT=Environment.production, TENANT_QUERY_FALLBACK_ENABLED=True)
        assert build_default_resolver(directory, settings).strategy_names[-1] == "query"

        settings = make_settings(TENANT_QUERY_FALLBACK_ENABLED=False)
        assert "query" not in build_default_resolver(directory, settings).strategy_names

    @pytest.mark.asyncio
    async def test_query_ignored_when_disabled(self, directory):
        resolver = build_default_resolver(directory, make_settings(TENANT_QUERY_FALLBACK_ENABLED=False))
        with pytest.raises(TenantNotFound):
            await resolver.resolve(RequestSignals(query_tenant="demo"))


# ── Failure ─────────────────────────────────────────────────────────────────


class TestFailure:
    @pytest.mark.asyncio
    async def test_error_lists_checked_signals(self, resolver):
        signals = RequestSignals(
            tenant_header="nobody",
            forwarded_host="a.example.net, proxy",
            origin="https://b.example.net",
            host="localhost:3000",
            query_tenant="ghost",
        )
        with pytest.raises(TenantNotFound) as exc_info:
            await resolver.resolve(signals)

        assert "X-Tenant-ID" in exc_info.value.message
        assert exc_info.value.checked == {
            "header": "nobody",
            "forwarded_host": "a.example.net",
            "origin": "b.example.net",
            "host": "localhost",
            "query": "ghost",
        }

    @pytest.mark.asyncio
    async def test_no_signals(self, resolver):
        with pytest.raises(TenantNotFound) as exc_info:
            await resolver.resolve(RequestSignals())
        assert set(exc_info.value.checked.values()) == {None}

    @pytest.mark.asyncio
    async def test_metrics(self, resolver):
        resolved_before = _resolution_count("header", "resolved")
        failed_before = _resolution_count("none", "failed")

        await resolver.resolve(RequestSignals(tenant_header="demo"))
        with pytest.raises(TenantNotFound):
            await resolver.resolve(RequestSignals())

        assert _resolution_count("header", "resolved") == resolved_before + 1
        assert _resolution_count("none", "failed") == failed_before + 1
