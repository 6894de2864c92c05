"""FastAPI dependency injection for tenant context and data access.

The tenant is taken from request.state, where TenantResolutionMiddleware
put it, and handed to endpoints explicitly. Repositories are unscoped
objects; endpoints pass ``tenant.tenant_id`` to every call.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.core.directory import TenantDirectory
from src.tenancy.core.tenant import TenantContext
from src.tenancy.models.content import Page, Section
from src.tenancy.repositories.scoped import TenantScopedRepository
from src.tenancy.services.tenant_admin import TenantAdminService

SessionFactory = Callable[..., AsyncGenerator[AsyncSession, None]]


def get_tenant(request: Request) -> TenantContext:
    """Get the resolved tenant context for this request."""
    ctx = getattr(request.state, "tenant_context", None)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request is not tenant-scoped",
        )
    return ctx


def get_directory(request: Request) -> TenantDirectory:
    return request.app.state.directory


def get_session_factory(request: Request) -> SessionFactory:
    return request.app.state.session_factory


def get_page_repository(
    session_factory: SessionFactory = Depends(get_session_factory),
) -> TenantScopedRepository[Page]:
    return TenantScopedRepository(Page, session_factory)


def get_section_repository(
    session_factory: SessionFactory = Depends(get_session_factory),
) -> TenantScopedRepository[Section]:
    return TenantScopedRepository(Section, session_factory)


def get_admin_service(
    session_factory: SessionFactory = Depends(get_session_factory),
    directory: TenantDirectory = Depends(get_directory),
) -> TenantAdminService:
    return TenantAdminService(session_factory, directory)


# Alias for cleaner endpoint signatures
current_tenant = Depends(get_tenant)
