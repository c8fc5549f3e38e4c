#!/usr/bin/env python
"""
Import features or a la carte options from a CSV, JSON or Excel file.

Usage:
    python scripts/import_catalog.py features data/features.xlsx
    python scripts/import_catalog.py ala_carte_options data/options.csv --dry-run
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from protection_configurator.config.settings import get_settings
from protection_configurator.data.import_catalog import import_catalog
from protection_configurator.services.catalog_store import create_store


async def run(args) -> dict:
    store = None if args.dry_run else create_store(get_settings())
    try:
        return await import_catalog(store, Path(args.path), collection=args.collection, dry_run=args.dry_run)
    finally:
        if store is not None:
            store.close()


def main():
    parser = argparse.ArgumentParser(description="Import catalog items into the document store")
    parser.add_argument("collection", choices=["features", "ala_carte_options"])
    parser.add_argument("path")
    parser.add_argument("--dry-run", action="store_true", help="Validate only, write nothing")
    parser.add_argument("--report", help="Write the import report as JSON to this path")
    args = parser.parse_args()

    print("=" * 60)
    print("CATALOG IMPORT")
    print("=" * 60)
    print()

    report = asyncio.run(run(args))

    if args.report:
        with open(args.report, 'w') as f:
            json.dump(report, f, indent=2)
        print(f"Report written to {args.report}")

    if report["status"] == "failed":
        print("\n❌ IMPORT FAILED")
        sys.exit(1)

    print()
    print("Summary:")
    for key, value in report["metrics"].items():
        print(f"  {key}: {value}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
