"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.tenancy.api.v1 import admin_tenants, health, pages, site

router = APIRouter()

router.include_router(health.router)
router.include_router(admin_tenants.router)
router.include_router(site.router)
router.include_router(pages.router)
