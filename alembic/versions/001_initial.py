"""Initial schema: tenants and tenant-owned content tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-01-15

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _tenant_owned_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tenant_id",
            sa.Integer(),
            sa.ForeignKey("tenants.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(100), nullable=False, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("domain", sa.String(255), nullable=True, index=True),
        sa.Column("additional_domains", sa.JSON(), nullable=True),
        sa.Column("logo", sa.String(500), nullable=True),
        sa.Column("favicon", sa.String(500), nullable=True),
        sa.Column("active_template_id", sa.Integer(), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "pages",
        *_tenant_owned_columns(),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("meta_title", sa.String(300), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("is_published", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_pages_tenant_slug"),
    )

    op.create_table(
        "sections",
        *_tenant_owned_columns(),
        sa.Column("page_id", sa.Integer(), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("component_type", sa.String(100), nullable=False),
        sa.Column("order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("is_visible", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.Column("styles", sa.JSON(), nullable=True),
    )

    op.create_table(
        "services",
        *_tenant_owned_columns(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("pricing", sa.String(100), nullable=True),
        sa.Column("is_published", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("content", sa.JSON(), nullable=True),
        sa.UniqueConstraint("tenant_id", "slug", name="uq_services_tenant_slug"),
    )

    op.create_table(
        "menus",
        *_tenant_owned_columns(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(50), nullable=False),
        sa.Column("items", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.UniqueConstraint("tenant_id", "location", name="uq_menus_tenant_location"),
    )

    op.create_table(
        "settings",
        *_tenant_owned_columns(),
        sa.Column("group", sa.String(50), nullable=False),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.UniqueConstraint("tenant_id", "group", "key", name="uq_settings_tenant_group_key"),
    )

    op.create_table(
        "media",
        *_tenant_owned_columns(),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("size", sa.BigInteger(), server_default=sa.text("0"), nullable=False),
        sa.Column("alt_text", sa.String(300), nullable=True),
    )


def downgrade() -> None:
    for table in ("media", "settings", "menus", "services", "sections", "pages", "tenants"):
        op.drop_table(table)
