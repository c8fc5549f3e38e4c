"""
Retire the legacy `featureIds` field on package documents.

Package features are derived from feature columns, so the stored id list is
dead data. Each package that still has the field gets it removed; a non-empty
list is first copied to `legacyFeatureIds` unless a backup already exists.
Dry run by default.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from ..config.settings import Settings, get_settings
from ..engine.validation import PACKAGES
from ..services.catalog_store import DocumentStore, StoreUnavailableError, commit_in_chunks

logger = logging.getLogger(__name__)

MIGRATION_BATCH_LIMIT = 400


@dataclass
class MigrationStats:
    scanned: int = 0
    updated: int = 0
    skipped: int = 0
    backed_up: int = 0
    chunks_committed: int = 0
    dry_run: bool = True
    planned: list[str] = field(default_factory=list)


def plan_package_update(doc: dict) -> Optional[dict]:
    """The update for one package document, or None if it has no featureIds."""
    if 'featureIds' not in doc:
        return None
    raw = doc.get('featureIds')
    feature_ids = list(raw) if isinstance(raw, list) else []
    legacy = doc.get('legacyFeatureIds')
    has_backup = isinstance(legacy, list) and len(legacy) > 0

    update = {'featureIds': None}
    if not has_backup and feature_ids:
        update['legacyFeatureIds'] = feature_ids
    return update


async def remove_package_feature_ids(
    store: Optional[DocumentStore],
    dry_run: bool = True,
    settings: Optional[Settings] = None,
    batch_limit: int = MIGRATION_BATCH_LIMIT,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
) -> MigrationStats:
    if store is None:
        raise StoreUnavailableError("Document store is not configured. Cannot migrate packages.")
    settings = settings or get_settings()
    stats = MigrationStats(dry_run=dry_run)

    packages = await store.fetch_all(PACKAGES)
    stats.scanned = len(packages)

    operations = []
    for doc in sorted(packages, key=lambda d: str(d['id'])):
        update = plan_package_update(doc)
        if update is None:
            stats.skipped += 1
            continue
        stats.updated += 1
        if 'legacyFeatureIds' in update:
            stats.backed_up += 1
        action = (
            "backup to legacyFeatureIds and remove featureIds"
            if 'legacyFeatureIds' in update else "remove featureIds only"
        )
        stats.planned.append(f"{doc['id']} ({doc.get('name', 'unnamed')}): {action}")
        operations.append((str(doc['id']), update))

    if dry_run or not operations:
        logger.info(f"Package featureIds migration: {stats.updated} of {stats.scanned} to update (dry_run={dry_run})")
        return stats

    stats.chunks_committed = await commit_in_chunks(
        store,
        PACKAGES,
        operations,
        batch_limit=batch_limit,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
        timeout=settings.request_timeout_seconds,
        sleep=sleep,
    )
    logger.info(f"Package featureIds migration: updated {stats.updated} package(s) in {stats.chunks_committed} chunk(s)")
    return stats
