#!/usr/bin/env python3
"""CLI script to copy content from one tenant to another.

Usage:
    uv run python scripts/copy_tenant_content.py --from hyve-wellness --to demo
    uv run python scripts/copy_tenant_content.py --from 1 --to 4 --kinds pages menus --overwrite

Both tenants are named explicitly (slug or id); this script never relies on
request-based tenant resolution. The target must be active.
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


async def copy(source: str, target: str, kinds: list[str], overwrite: bool) -> int:
    from src.tenancy.core.database import close_db, get_session
    from src.tenancy.core.directory import SqlTenantDirectory, require_tenant
    from src.tenancy.core.exceptions import TenantNotFound
    from src.tenancy.services.content_copy import copy_content

    directory = SqlTenantDirectory(get_session)
    try:
        source_tenant = await require_tenant(directory, source)
        target_tenant = await require_tenant(directory, target)
    except TenantNotFound as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        await close_db()
        return 1

    print(f"Copying {', '.join(kinds)} from '{source_tenant.slug}' (ID: {source_tenant.id}) "
          f"to '{target_tenant.slug}' (ID: {target_tenant.id})")
    try:
        counts = await copy_content(
            get_session,
            source_tenant.id,
            target_tenant.id,
            kinds=tuple(kinds),
            overwrite=overwrite,
        )
    finally:
        await close_db()

    for kind, count in counts.items():
        print(f"  {kind}: {count}")
    return 0


def main() -> None:
    from src.tenancy.services.content_copy import COPYABLE

    parser = argparse.ArgumentParser(description="Copy content between tenants")
    parser.add_argument("--from", dest="source", required=True, help="Source tenant slug or id")
    parser.add_argument("--to", dest="target", required=True, help="Target tenant slug or id")
    parser.add_argument("--kinds", nargs="+", choices=sorted(COPYABLE), default=sorted(COPYABLE))
    parser.add_argument("--overwrite", action="store_true", help="Replace rows that already exist in the target")
    args = parser.parse_args()

    if args.source == args.target:
        parser.error("--from and --to must name different tenants")

    sys.exit(asyncio.run(copy(args.source, args.target, args.kinds, args.overwrite)))


if __name__ == "__main__":
    main()
