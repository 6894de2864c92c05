"""Tenant resolution strategy chain.

A request is mapped to a tenant by trying one signal at a time, highest
priority first, and stopping at the first strategy that yields an active
tenant:

1. header         -- explicit X-Tenant-ID (slug or id)
2. forwarded_host -- X-Forwarded-Host, set by a reverse proxy / CDN
3. origin         -- host part of the Origin header (cross-origin browsers)
4. host           -- the request's own Host
5. query          -- ?tenant_id= (slug or id), development fallback that can
                     be switched off with TENANT_QUERY_FALLBACK_ENABLED

A strategy whose signal is absent or does not match simply passes to the
next one. If none match, TenantNotFound is raised; there is no default
tenant. Resolution is a pure function of the signals and the directory
contents, so resolving the same request twice yields the same tenant.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from src.tenancy.config import Settings, get_settings
from src.tenancy.core.directory import TenantDirectory
from src.tenancy.core.domains import (
    first_forwarded_host,
    host_from_origin,
    is_local_domain,
    normalize_domain,
)
from src.tenancy.core.exceptions import TenantNotFound
from src.tenancy.core.monitoring import tenant_resolutions_total
from src.tenancy.core.tenant import TenantContext

logger = structlog.get_logger(__name__)


class ResolutionState(str, Enum):
    unresolved = "unresolved"
    resolving = "resolving"
    resolved = "resolved"
    failed = "failed"


# ── Request Signals ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RequestSignals:
    """The raw request values resolution looks at, as opaque strings."""

    tenant_header: str | None = None
    forwarded_host: str | None = None
    origin: str | None = None
    host: str | None = None
    query_tenant: str | None = None

    @classmethod
    def from_request(cls, request: Any, settings: Settings | None = None) -> RequestSignals:
        """Extract signals from a Starlette request (header lookups are case-insensitive)."""
        settings = settings or get_settings()
        headers = request.headers
        return cls(
            tenant_header=headers.get(settings.TENANT_HEADER) or None,
            forwarded_host=headers.get("X-Forwarded-Host") or None,
            origin=headers.get("Origin") or None,
            host=headers.get("Host") or None,
            query_tenant=request.query_params.get(settings.TENANT_QUERY_PARAM) or None,
        )

    def checked(self) -> dict[str, str | None]:
        """Signals as inspected, for diagnostics in error responses."""
        return {
            "header": self.tenant_header,
            "forwarded_host": first_forwarded_host(self.forwarded_host),
            "origin": host_from_origin(self.origin),
            "host": normalize_domain(self.host) or None,
            "query": self.query_tenant,
        }


# ── Strategies ──────────────────────────────────────────────────────────────


class ResolutionStrategy(ABC):
    """One link of the chain: turns a single signal into a tenant, or None."""

    name: str

    @abstractmethod
    async def resolve(self, signals: RequestSignals, directory: TenantDirectory) -> TenantContext | None:
        ...


class IdentifierStrategy(ResolutionStrategy):
    """Look the signal up as a tenant slug or id."""

    signal: str

    async def resolve(self, signals: RequestSignals, directory: TenantDirectory) -> TenantContext | None:
        identifier = getattr(signals, self.signal)
        if not identifier or not identifier.strip():
            return None
        tenant = await directory.find_by_identifier(identifier)
        if tenant is None:
            return None
        return TenantContext(tenant=tenant, identifier=identifier.strip(), strategy=self.name)


class DomainStrategy(ResolutionStrategy):
    """Normalize the signal to a host and run it through the domain matcher."""

    @abstractmethod
    def extract_domain(self, signals: RequestSignals) -> str | None:
        ...

    async def resolve(self, signals: RequestSignals, directory: TenantDirectory) -> TenantContext | None:
        domain = self.extract_domain(signals)
        if not domain or is_local_domain(domain):
            return None
        match = await directory.find_by_domain(domain)
        if match is None:
            return None
        return TenantContext(
            tenant=match.tenant,
            identifier=domain,
            strategy=self.name,
            rule=match.rule.value,
        )


class HeaderStrategy(IdentifierStrategy):
    name = "header"
    signal = "tenant_header"


class ForwardedHostStrategy(DomainStrategy):
    name = "forwarded_host"

    def extract_domain(self, signals: RequestSignals) -> str | None:
        return first_forwarded_host(signals.forwarded_host)


class OriginStrategy(DomainStrategy):
    name = "origin"

    def extract_domain(self, signals: RequestSignals) -> str | None:
        return host_from_origin(signals.origin)


class HostStrategy(DomainStrategy):
    name = "host"

    def extract_domain(self, signals: RequestSignals) -> str | None:
        return normalize_domain(signals.host) or None


class QueryParamStrategy(IdentifierStrategy):
    name = "query"
    signal = "query_tenant"


# ── Resolver ────────────────────────────────────────────────────────────────


class TenantResolver:
    """Run the strategies in order against one request's signals.

    Holds no per-request state; one instance can serve concurrent requests.
    """

    def __init__(self, directory: TenantDirectory, strategies: list[ResolutionStrategy]):
        self._directory = directory
        self._strategies = list(strategies)

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self._strategies]

    async def resolve(self, signals: RequestSignals) -> TenantContext:
        """Return the context for the first strategy that yields a tenant.

        Raises:
            TenantNotFound: No strategy matched an active tenant.
        """
        for strategy in self._strategies:
            logger.debug("tenant_resolution_attempt", state=ResolutionState.resolving.value, strategy=strategy.name)
            ctx = await strategy.resolve(signals, self._directory)
            if ctx is not None:
                tenant_resolutions_total.labels(strategy=strategy.name, outcome="resolved").inc()
                logger.debug(
                    "tenant_resolved",
                    state=ResolutionState.resolved.value,
                    strategy=ctx.strategy,
                    rule=ctx.rule,
                    tenant_id=ctx.tenant_id,
                    tenant_slug=ctx.tenant_slug,
                )
                return ctx

        tenant_resolutions_total.labels(strategy="none", outcome="failed").inc()
        checked = signals.checked()
        logger.info("tenant_not_resolved", state=ResolutionState.failed.value, **checked)
        raise TenantNotFound(
            "Tenant not found. Please provide X-Tenant-ID header, valid domain, or tenant_id query parameter.",
            checked=checked,
        )


def build_default_resolver(directory: TenantDirectory, settings: Settings | None = None) -> TenantResolver:
    """Standard chain; the query fallback is left out when disabled in settings."""
    settings = settings or get_settings()
    strategies: list[ResolutionStrategy] = [
        HeaderStrategy(),
        ForwardedHostStrategy(),
        OriginStrategy(),
        HostStrategy(),
    ]
    if settings.query_fallback_enabled:
        strategies.append(QueryParamStrategy())
    return TenantResolver(directory, strategies)
