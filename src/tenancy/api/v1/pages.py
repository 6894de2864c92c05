"""Tenant-scoped page endpoints.

Every query goes through TenantScopedRepository with the resolved tenant id,
so a page slug that exists for another tenant is simply not found here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.tenancy.api.deps import current_tenant, get_page_repository, get_section_repository
from src.tenancy.core.tenant import TenantContext
from src.tenancy.models.content import Page, Section
from src.tenancy.repositories.scoped import TenantScopedRepository
from src.tenancy.schemas.content import PageDetailResponse, PageResponse, SectionResponse

router = APIRouter(prefix="/api/v1/pages", tags=["pages"])


@router.get("", response_model=list[PageResponse])
async def list_pages(
    tenant: TenantContext = current_tenant,
    pages: TenantScopedRepository[Page] = Depends(get_page_repository),
):
    """List published pages of the current tenant."""
    rows = await pages.list_all(tenant.tenant_id, is_published=True)
    return [PageResponse.model_validate(row) for row in rows]


@router.get("/{slug}", response_model=PageDetailResponse)
async def get_page(
    slug: str,
    tenant: TenantContext = current_tenant,
    pages: TenantScopedRepository[Page] = Depends(get_page_repository),
    sections: TenantScopedRepository[Section] = Depends(get_section_repository),
):
    """Get a published page with its visible sections."""
    page = await pages.get_by(tenant.tenant_id, slug=slug, is_published=True)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Page not found: {slug}")

    blocks = await sections.list_all(tenant.tenant_id, page_id=page.id, is_visible=True)
    return PageDetailResponse(
        **PageResponse.model_validate(page).model_dump(),
        sections=[SectionResponse.model_validate(b) for b in blocks],
    )
