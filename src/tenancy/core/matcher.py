"""Domain to tenant matching.

Rules are applied in a fixed order and each rule is evaluated across every
active tenant before the next one is tried:

1. exact    -- the primary domain, then plain (non-wildcard) aliases
2. wildcard -- ``*.base`` patterns match ``base`` and any ``<sub>.base``
3. slug     -- the first label of the host equals a tenant slug

A host that could satisfy more than one rule (say ``demo.hyve.com`` where
``demo`` is a slug and another tenant owns ``*.hyve.com``) is settled by this
ordering; first match wins and the overlap is not reported as an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from src.tenancy.core.domains import WILDCARD_PREFIX, is_local_domain, is_wildcard, normalize_domain
from src.tenancy.core.tenant import TenantRecord


class MatchRule(str, Enum):
    exact = "exact"
    wildcard = "wildcard"
    slug = "slug"


@dataclass(frozen=True)
class DomainMatch:
    tenant: TenantRecord
    rule: MatchRule


def wildcard_matches(domain: str, pattern: str) -> bool:
    """True if ``domain`` falls under a ``*.base`` pattern."""
    if not is_wildcard(pattern):
        return False
    base = pattern[len(WILDCARD_PREFIX):]
    if not base:
        return False
    return domain == base or domain.endswith("." + base)


def _domains_of(tenant: TenantRecord) -> list[str]:
    domains = [tenant.domain] if tenant.domain else []
    domains.extend(tenant.additional_domains)
    return [normalize_domain(d) for d in domains if d]


class DomainMatcher:
    """Find the active tenant a cleaned host belongs to."""

    def match(self, domain: str, tenants: Iterable[TenantRecord]) -> DomainMatch | None:
        domain = normalize_domain(domain)
        if not domain or is_local_domain(domain):
            return None

        active = [t for t in tenants if t.is_active]

        tenant = self._exact(domain, active)
        if tenant:
            return DomainMatch(tenant, MatchRule.exact)

        tenant = self._wildcard(domain, active)
        if tenant:
            return DomainMatch(tenant, MatchRule.wildcard)

        tenant = self._slug(domain, active)
        if tenant:
            return DomainMatch(tenant, MatchRule.slug)

        return None

    def _exact(self, domain: str, tenants: list[TenantRecord]) -> TenantRecord | None:
        # Primary domains take precedence over aliases of other tenants
        for tenant in tenants:
            if tenant.domain and normalize_domain(tenant.domain) == domain:
                return tenant
        for tenant in tenants:
            for alias in tenant.additional_domains:
                alias = normalize_domain(alias)
                if not is_wildcard(alias) and alias == domain:
                    return tenant
        return None

    def _wildcard(self, domain: str, tenants: list[TenantRecord]) -> TenantRecord | None:
        for tenant in tenants:
            if any(wildcard_matches(domain, pattern) for pattern in _domains_of(tenant)):
                return tenant
        return None

    def _slug(self, domain: str, tenants: list[TenantRecord]) -> TenantRecord | None:
        labels = domain.split(".")
        if len(labels) < 2 or not labels[0]:
            return None
        candidate = labels[0]
        for tenant in tenants:
            if tenant.slug == candidate:
                return tenant
        return None
