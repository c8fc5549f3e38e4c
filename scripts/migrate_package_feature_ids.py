#!/usr/bin/env python
"""
Remove the retired featureIds field from package documents.

Dry run unless DRY_RUN=0 is set.

Usage:
    python scripts/migrate_package_feature_ids.py
    DRY_RUN=0 python scripts/migrate_package_feature_ids.py
"""
import asyncio
import os
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from protection_configurator.config.settings import get_settings
from protection_configurator.migrations.remove_package_feature_ids import remove_package_feature_ids
from protection_configurator.services.catalog_store import CatalogStoreError, create_store

DIVIDER = "=" * 60


async def run(dry_run: bool):
    settings = get_settings()
    store = create_store(settings)
    if store is None:
        print("❌ MONGO_URL is not set. Nothing to migrate.")
        sys.exit(1)
    try:
        return await remove_package_feature_ids(store, dry_run=dry_run, settings=settings)
    finally:
        store.close()


def main():
    dry_run = os.environ.get("DRY_RUN") != "0"

    print("Starting package featureIds removal")
    print(DIVIDER)
    print(f"Mode: {'DRY RUN (set DRY_RUN=0 to commit)' if dry_run else 'LIVE (writes enabled)'}")

    try:
        stats = asyncio.run(run(dry_run))
    except CatalogStoreError as e:
        print(f"\n❌ Fatal error during migration: {e}")
        sys.exit(1)

    for line in stats.planned:
        prefix = "DRY RUN: Would update" if dry_run else "Updated"
        print(f"  {prefix} package {line}")

    print()
    print(DIVIDER)
    print("Migration Summary")
    print(DIVIDER)
    print(f"Scanned   : {stats.scanned}")
    print(f"Updated   : {stats.updated}")
    print(f"Backed up : {stats.backed_up}")
    print(f"Skipped   : {stats.skipped}")
    if not dry_run:
        print(f"Chunks    : {stats.chunks_committed}")
    print("\n✅ Migration finished.")


if __name__ == "__main__":
    main()
