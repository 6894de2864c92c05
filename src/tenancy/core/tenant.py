"""Tenant records and request-scoped tenant context.

TenantRecord is the read-only view of a tenant that resolution works with.
TenantContext is set by the resolution middleware at the start of each
request and reset when the request finishes. It lives in a ContextVar, so
concurrent requests never observe each other's tenant, and it is also
attached to ``request.state`` for code that prefers explicit access.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass, field
from typing import Any


# ── Tenant Record ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TenantRecord:
    """Immutable snapshot of a tenant row."""

    id: int
    slug: str
    name: str
    domain: str | None = None
    additional_domains: tuple[str, ...] = ()
    is_active: bool = True
    active_template_id: int | None = None
    settings: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_model(cls, model: Any) -> TenantRecord:
        """Build a record from a Tenant ORM instance."""
        return cls(
            id=model.id,
            slug=model.slug,
            name=model.name,
            domain=model.domain,
            additional_domains=tuple(model.additional_domains or ()),
            is_active=bool(model.is_active),
            active_template_id=model.active_template_id,
            settings=dict(model.settings or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "domain": self.domain,
            "additional_domains": list(self.additional_domains),
            "is_active": self.is_active,
            "active_template_id": self.active_template_id,
            "settings": self.settings,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TenantRecord:
        return cls(
            id=int(data["id"]),
            slug=data["slug"],
            name=data["name"],
            domain=data.get("domain"),
            additional_domains=tuple(data.get("additional_domains") or ()),
            is_active=bool(data.get("is_active", True)),
            active_template_id=data.get("active_template_id"),
            settings=dict(data.get("settings") or {}),
        )


# ── Tenant Context ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TenantContext:
    """Immutable tenant context for the current request.

    ``identifier`` is the raw signal value that matched and ``strategy`` the
    name of the resolution strategy that produced it; ``rule`` is the domain
    matching rule for domain-based strategies. They exist for diagnostics.
    """

    tenant: TenantRecord
    identifier: str
    strategy: str
    rule: str | None = None

    @property
    def tenant_id(self) -> int:
        return self.tenant.id

    @property
    def tenant_slug(self) -> str:
        return self.tenant.slug


_tenant_context: contextvars.ContextVar[TenantContext] = contextvars.ContextVar("tenant_context")


def get_current_tenant() -> TenantContext:
    """Get the tenant context for the current request.

    Raises RuntimeError if no tenant context has been set (i.e., the call
    is not within a tenant-scoped request).
    """
    try:
        return _tenant_context.get()
    except LookupError:
        raise RuntimeError("No tenant context set -- request is not tenant-scoped")


def set_tenant_context(ctx: TenantContext) -> contextvars.Token[TenantContext]:
    """Set the tenant context for the current request. Returns a token for reset."""
    return _tenant_context.set(ctx)


def reset_tenant_context(token: contextvars.Token[TenantContext]) -> None:
    """Restore the context that was active before set_tenant_context()."""
    _tenant_context.reset(token)
