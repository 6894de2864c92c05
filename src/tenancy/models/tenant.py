"""Tenant model -- one row per branded site sharing the platform.

Tenants are soft-disabled through is_active and never hard-deleted while
owned rows reference them (tenant_id foreign keys use RESTRICT).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.tenancy.core.database import Base


class Tenant(Base):
    """Registered tenant in the platform.

    slug and the primary domain are unique among active tenants; that rule is
    enforced by TenantAdminService since inactive rows may keep stale values.
    additional_domains holds aliases and ``*.suffix`` wildcard patterns.
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    additional_domains: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    favicon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    active_template_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    settings: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )
