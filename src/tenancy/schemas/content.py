"""Pydantic schemas for tenant-owned content read endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    component_type: str
    order: int = 0
    is_visible: bool = True
    content: dict[str, Any] | None = None
    styles: dict[str, Any] | None = None


class PageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    slug: str
    title: str
    meta_title: str | None = None
    meta_description: str | None = None
    is_published: bool = False
    order: int = 0


class PageDetailResponse(PageResponse):
    sections: list[SectionResponse] = Field(default_factory=list)
