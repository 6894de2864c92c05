"""Tenant administration endpoints.

These live under /api/v1/admin and skip the tenant middleware: they operate
across tenants and always name the tenant they act on in the path.
Authentication and role checks for administrators are handled outside this
service.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.tenancy.api.deps import get_admin_service, get_directory
from src.tenancy.core.directory import TenantDirectory
from src.tenancy.core.domains import normalize_domain
from src.tenancy.core.exceptions import TenantConflict, TenantNotFound
from src.tenancy.core.tenant import TenantRecord
from src.tenancy.schemas.tenant import (
    DomainLookupResponse,
    TenantCreate,
    TenantResponse,
    TenantStatistics,
    TenantUpdate,
)
from src.tenancy.services.tenant_admin import TenantAdminService

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


def _to_response(record: TenantRecord) -> TenantResponse:
    return TenantResponse(**record.to_dict())


@router.get("/tenants", response_model=list[TenantResponse])
async def list_tenants(
    include_inactive: bool = True,
    service: TenantAdminService = Depends(get_admin_service),
):
    """List tenants, inactive ones included unless asked otherwise."""
    return [_to_response(t) for t in await service.list_tenants(include_inactive=include_inactive)]


@router.post("/tenants", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(body: TenantCreate, service: TenantAdminService = Depends(get_admin_service)):
    """Create a tenant. Slug and primary domain must be free among active tenants."""
    try:
        record = await service.create_tenant(body)
    except TenantConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _to_response(record)


@router.get("/tenants/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: int, service: TenantAdminService = Depends(get_admin_service)):
    try:
        return _to_response(await service.get_tenant(tenant_id))
    except TenantNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)


@router.patch("/tenants/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: int,
    body: TenantUpdate,
    service: TenantAdminService = Depends(get_admin_service),
):
    try:
        record = await service.update_tenant(tenant_id, body)
    except TenantNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    except TenantConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _to_response(record)


@router.post("/tenants/{tenant_id}/toggle-active", response_model=TenantResponse)
async def toggle_tenant_active(tenant_id: int, service: TenantAdminService = Depends(get_admin_service)):
    """Activate or deactivate a tenant. Deactivated tenants stop resolving immediately."""
    try:
        record = await service.toggle_active(tenant_id)
    except TenantNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    except TenantConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _to_response(record)


@router.get("/tenants/{tenant_id}/statistics", response_model=TenantStatistics)
async def tenant_statistics(tenant_id: int, service: TenantAdminService = Depends(get_admin_service)):
    try:
        counts = await service.get_statistics(tenant_id)
    except TenantNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    return TenantStatistics(tenant_id=tenant_id, counts=counts)


@router.get("/site-lookup/{domain}", response_model=DomainLookupResponse)
async def lookup_domain(domain: str, directory: TenantDirectory = Depends(get_directory)):
    """Show which active tenant a domain maps to, and by which matching rule."""
    cleaned = normalize_domain(domain)
    match = await directory.find_by_domain(cleaned)
    if match is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Site not found for domain: {cleaned}")
    return DomainLookupResponse(domain=cleaned, rule=match.rule.value, tenant=_to_response(match.tenant))
