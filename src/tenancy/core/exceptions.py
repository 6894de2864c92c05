"""Tenant error hierarchy.

Resolution failures are ordinary request outcomes: the middleware turns
TenantNotFound (and its TenantInactive subclass) into a 400 response before
any tenant-scoped handler runs. They are never retried and never escalate
beyond the request.
"""

from __future__ import annotations


class TenantError(Exception):
    """Base class for tenant resolution and scoping errors."""


class TenantNotFound(TenantError):
    """No resolution strategy produced an active tenant.

    ``checked`` maps each request signal name to the value that was inspected
    (None when the signal was absent). It is diagnostic only.
    """

    def __init__(self, message: str = "Tenant not found", checked: dict[str, str | None] | None = None):
        super().__init__(message)
        self.message = message
        self.checked = dict(checked or {})


class TenantInactive(TenantNotFound):
    """An identifier named a tenant that exists but is deactivated.

    Subclasses TenantNotFound so callers handle both the same way.
    """

    def __init__(self, identifier: str):
        super().__init__(f"Tenant is inactive: {identifier}", checked={"identifier": identifier})
        self.identifier = identifier


class TenantConflict(TenantError):
    """Slug or primary domain is already taken by another active tenant."""

    def __init__(self, field: str, value: str):
        super().__init__(f"An active tenant with {field} '{value}' already exists")
        self.field = field
        self.value = value


class TenantScopeViolation(TenantError):
    """A tenant-scoped write targeted a row outside the bound tenant."""
