import pytest

from conftest import package_record
from protection_configurator.migrations.remove_package_feature_ids import (
    plan_package_update,
    remove_package_feature_ids,
)
from protection_configurator.services.catalog_store import InMemoryDocumentStore, StoreUnavailableError


@pytest.fixture
def package_store():
    return InMemoryDocumentStore({"packages": [
        package_record("gold", "Gold", 2399, 550, featureIds=["a", "b"]),
        package_record("elite", "Elite", 3499, 900, featureIds=["c"], legacyFeatureIds=["old"]),
        package_record("platinum", "Platinum", 2899, 750, featureIds=[]),
        package_record("clean", "Custom", 100, 50),
    ]})


def test_plan_package_update():
    assert plan_package_update({"id": "x"}) is None
    assert plan_package_update({"featureIds": ["a"]}) == {"featureIds": None, "legacyFeatureIds": ["a"]}
    assert plan_package_update({"featureIds": ["a"], "legacyFeatureIds": ["z"]}) == {"featureIds": None}
    assert plan_package_update({"featureIds": "garbage"}) == {"featureIds": None}


async def test_dry_run_writes_nothing(package_store, settings):
    stats = await remove_package_feature_ids(package_store, settings=settings)
    assert stats.dry_run
    assert (stats.scanned, stats.updated, stats.skipped, stats.backed_up) == (4, 3, 1, 1)
    assert len(stats.planned) == 3
    docs = {d["id"]: d for d in await package_store.fetch_all("packages")}
    assert docs["gold"]["featureIds"] == ["a", "b"]


async def test_live_run_backs_up_once_and_removes_field(package_store, settings):
    stats = await remove_package_feature_ids(package_store, dry_run=False, settings=settings, batch_limit=2)
    assert stats.chunks_committed == 2
    docs = {d["id"]: d for d in await package_store.fetch_all("packages")}
    assert not any("featureIds" in d for d in docs.values())
    assert docs["gold"]["legacyFeatureIds"] == ["a", "b"]
    assert docs["elite"]["legacyFeatureIds"] == ["old"]
    assert "legacyFeatureIds" not in docs["platinum"]

    again = await remove_package_feature_ids(package_store, dry_run=False, settings=settings)
    assert again.updated == 0
    assert again.chunks_committed == 0


async def test_migration_requires_store(settings):
    with pytest.raises(StoreUnavailableError):
        await remove_package_feature_ids(None, settings=settings)
