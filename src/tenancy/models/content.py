"""Tenant-owned content models.

Every table here carries a non-null tenant_id referencing tenants.id. Unique
constraints are scoped to tenant_id so two tenants can reuse the same slug
or key without colliding. Rows are only reached through
TenantScopedRepository, which requires the tenant id on every call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from src.tenancy.core.database import Base


class TenantOwnedMixin:
    """Columns shared by every tenant-owned table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    @declared_attr
    def tenant_id(cls) -> Mapped[int]:
        return mapped_column(
            Integer,
            ForeignKey("tenants.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )


class Page(TenantOwnedMixin, Base):
    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_pages_tenant_slug"),)

    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    meta_title: Mapped[str | None] = mapped_column(String(300), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"))
    order: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))


class Section(TenantOwnedMixin, Base):
    """A block on a page (hero, services grid, FAQ...)."""

    __tablename__ = "sections"

    page_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    content: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    styles: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class Service(TenantOwnedMixin, Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("tenant_id", "slug", name="uq_services_tenant_slug"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    pricing: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))
    order: Mapped[int] = mapped_column(Integer, default=0, server_default=text("0"))
    content: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)


class Menu(TenantOwnedMixin, Base):
    __tablename__ = "menus"
    __table_args__ = (UniqueConstraint("tenant_id", "location", name="uq_menus_tenant_location"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(50), nullable=False)  # header, footer, mobile
    items: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=text("true"))


class Setting(TenantOwnedMixin, Base):
    __tablename__ = "settings"
    __table_args__ = (UniqueConstraint("tenant_id", "group", "key", name="uq_settings_tenant_group_key"),)

    group: Mapped[str] = mapped_column(String(50), nullable=False)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)


class Media(TenantOwnedMixin, Base):
    __tablename__ = "media"

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size: Mapped[int] = mapped_column(BigInteger, default=0, server_default=text("0"))
    alt_text: Mapped[str | None] = mapped_column(String(300), nullable=True)


TENANT_OWNED_MODELS: tuple[type[TenantOwnedMixin], ...] = (Page, Section, Service, Menu, Setting, Media)
