#!/usr/bin/env python
"""
Check every stored catalog record against the record schemas.

Exits non-zero when any record is invalid.

Usage:
    python scripts/verify_data_integrity.py
"""
import asyncio
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from protection_configurator.config.settings import get_settings
from protection_configurator.engine.validation import (
    ALA_CARTE_OPTIONS,
    FEATURES,
    PACKAGES,
    verify_collection,
)
from protection_configurator.services.catalog_store import create_store


async def collect_reports():
    store = create_store(get_settings())
    if store is None:
        print("❌ MONGO_URL is not set. Nothing to verify.")
        sys.exit(1)
    try:
        reports = []
        for collection in (FEATURES, ALA_CARTE_OPTIONS, PACKAGES):
            reports.append(verify_collection(collection, await store.fetch_all(collection)))
        return reports
    finally:
        store.close()


def main():
    print("=" * 60)
    print("DATA INTEGRITY VERIFICATION")
    print("=" * 60)

    reports = asyncio.run(collect_reports())

    for report in reports:
        print()
        print(f"[{report.collection}] {report.valid}/{report.total} valid")
        for record_id, message in report.errors:
            print(f"  ERROR {record_id}: {message}")
        for record_id, message in report.warnings:
            print(f"  WARNING {record_id}: {message}")

    print()
    if any(not r.ok for r in reports):
        print("❌ INVALID RECORDS FOUND")
        sys.exit(1)
    print("✅ ALL RECORDS VALID")


if __name__ == "__main__":
    main()
