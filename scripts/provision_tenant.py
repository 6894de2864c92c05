#!/usr/bin/env python3
"""CLI script to provision a new tenant.

Usage:
    uv run python scripts/provision_tenant.py --name "Hyve Wellness" --domain wellness.hyve.com
    uv run python scripts/provision_tenant.py --name "Demo" --slug demo --alias "*.demo.hyve.com"

Connects directly to the database using DATABASE_URL from environment or .env file.
Creates the tables if needed, registers the tenant and clears the tenant
directory cache so running API processes pick it up.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.tenancy
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


async def provision(name: str, slug: str | None, domain: str | None, aliases: list[str], inactive: bool) -> int:
    """Provision a tenant by calling the admin service directly."""
    from src.tenancy.config import get_settings
    from src.tenancy.core.database import close_db, get_session, init_db
    from src.tenancy.core.directory import CachedTenantDirectory, SqlTenantDirectory
    from src.tenancy.core.exceptions import TenantConflict
    from src.tenancy.core.redis import close_redis, get_redis_pool
    from src.tenancy.schemas.tenant import TenantCreate
    from src.tenancy.services.tenant_admin import TenantAdminService

    await init_db()

    settings = get_settings()
    directory = CachedTenantDirectory(SqlTenantDirectory(get_session), get_redis_pool(), ttl=settings.TENANT_CACHE_TTL)
    service = TenantAdminService(get_session, directory)

    print(f"Provisioning tenant: name={name}, slug={slug or '(generated)'}")
    try:
        record = await service.create_tenant(
            TenantCreate(name=name, slug=slug, domain=domain, additional_domains=aliases, is_active=not inactive)
        )
    except TenantConflict as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await close_redis()
        await close_db()

    print("Tenant provisioned successfully:")
    print(f"  ID:      {record.id}")
    print(f"  Slug:    {record.slug}")
    print(f"  Name:    {record.name}")
    print(f"  Domain:  {record.domain or '-'}")
    print(f"  Aliases: {', '.join(record.additional_domains) or '-'}")
    print(f"  Active:  {record.is_active}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Provision a new tenant")
    parser.add_argument("--name", required=True, help="Tenant display name (e.g., 'Hyve Wellness')")
    parser.add_argument("--slug", default=None, help="Tenant slug (generated from the name if omitted)")
    parser.add_argument("--domain", default=None, help="Primary domain (e.g., wellness.hyve.com)")
    parser.add_argument(
        "--alias",
        action="append",
        default=[],
        help="Additional domain or wildcard pattern (repeatable, e.g. '*.hyve.com')",
    )
    parser.add_argument("--inactive", action="store_true", help="Create the tenant deactivated")
    args = parser.parse_args()

    sys.exit(asyncio.run(provision(args.name, args.slug, args.domain, args.alias, args.inactive)))


if __name__ == "__main__":
    main()
