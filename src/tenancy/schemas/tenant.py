"""Pydantic schemas for tenant administration and site endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SLUG_REGEX = r"^[a-z0-9][a-z0-9-]*[a-z0-9]$"


class TenantCreate(BaseModel):
    """Request schema for creating a new tenant."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Human-readable tenant name",
        examples=["Hyve Wellness"],
    )
    slug: str | None = Field(
        None,
        min_length=2,
        max_length=100,
        pattern=SLUG_REGEX,
        description="Public identifier; generated from the name when omitted",
        examples=["hyve-wellness", "demo"],
    )
    domain: str | None = Field(None, max_length=255, examples=["wellness.hyve.com"])
    additional_domains: list[str] = Field(
        default_factory=list,
        description="Aliases and wildcard patterns such as *.hyve.com",
    )
    active_template_id: int | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True


class TenantUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""

    name: str | None = Field(None, min_length=1, max_length=200)
    slug: str | None = Field(None, min_length=2, max_length=100, pattern=SLUG_REGEX)
    domain: str | None = Field(None, max_length=255)
    additional_domains: list[str] | None = None
    active_template_id: int | None = None
    settings: dict[str, Any] | None = None


class TenantResponse(BaseModel):
    """Response schema for tenant data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    domain: str | None = None
    additional_domains: list[str] = Field(default_factory=list)
    active_template_id: int | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime | None = None


class TenantStatistics(BaseModel):
    tenant_id: int
    counts: dict[str, int]


class SiteResponse(BaseModel):
    """Public configuration of the tenant a request resolved to."""

    id: int
    slug: str
    name: str
    domain: str | None = None
    additional_domains: list[str] = Field(default_factory=list)
    active_template_id: int | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    resolved_by: str = Field(..., description="Resolution strategy that matched")


class DomainLookupResponse(BaseModel):
    domain: str
    rule: str
    tenant: TenantResponse


class ErrorResponse(BaseModel):
    """Body returned when a request cannot be tied to a tenant."""

    success: bool = False
    message: str
    debug: dict[str, str | None] | None = None
