"""Public site configuration for the resolved tenant.

Frontends call this on start-up to learn which tenant they are serving
(branding, template, settings). The tenant comes from the resolution
middleware; nothing here looks it up again.
"""

from __future__ import annotations

from fastapi import APIRouter

from src.tenancy.api.deps import current_tenant
from src.tenancy.core.tenant import TenantContext
from src.tenancy.schemas.tenant import SiteResponse

router = APIRouter(prefix="/api/v1/site", tags=["site"])


@router.get("", response_model=SiteResponse)
async def get_site(tenant: TenantContext = current_tenant):
    """Return the configuration of the tenant this request resolved to."""
    record = tenant.tenant
    return SiteResponse(
        id=record.id,
        slug=record.slug,
        name=record.name,
        domain=record.domain,
        additional_domains=list(record.additional_domains),
        active_template_id=record.active_template_id,
        settings=record.settings,
        resolved_by=tenant.strategy,
    )
