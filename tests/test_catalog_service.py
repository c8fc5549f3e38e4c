import pytest

from protection_configurator.engine.feature_ordering import UNASSIGNED, group_features_by_column
from protection_configurator.engine.models import Feature
from protection_configurator.services.catalog_service import CatalogService
from protection_configurator.services.catalog_store import StoreUnavailableError


@pytest.fixture
def service(store, settings):
    return CatalogService(store, settings)


async def docs_by_id(store, collection):
    return {d["id"]: d for d in await store.fetch_all(collection)}


async def test_add_and_update_feature(service, store):
    new_id = await service.add_feature(Feature(
        id="ignored", name="Paint Sealant", description="Gloss", points=("Shine",), cost=80.0, column=2,
    ))
    docs = await docs_by_id(store, "features")
    assert new_id in docs
    assert docs[new_id]["points"] == ["Shine"]
    assert "imageUrl" not in docs[new_id]

    await service.update_feature(new_id, {"image_url": "https://example.com/i.png", "column": None})
    docs = await docs_by_id(store, "features")
    assert docs[new_id]["imageUrl"] == "https://example.com/i.png"
    assert "column" not in docs[new_id]


async def test_update_unknown_or_bad_field(service):
    with pytest.raises(ValueError, match="not found"):
        await service.update_feature("ghost", {"price": 1.0})
    with pytest.raises(ValueError, match="Unknown Feature field"):
        await service.update_feature("rustguard", {"colour": 1})


async def test_add_feature_rejects_invalid_document(service, store):
    before = await docs_by_id(store, "features")
    with pytest.raises(ValueError, match="Invalid feature"):
        await service.add_feature(Feature(id="x", name="X"))
    assert await docs_by_id(store, "features") == before


async def test_update_feature_rejects_invalid_result(service, store):
    """A write that would make the record unreadable is refused."""
    with pytest.raises(ValueError, match="Invalid feature"):
        await service.update_feature("rustguard", {"description": ""})
    with pytest.raises(ValueError, match="Invalid feature"):
        await service.update_feature("rustguard", {"price": -5.0})
    docs = await docs_by_id(store, "features")
    assert docs["rustguard"]["description"]
    assert docs["rustguard"]["price"] >= 0


async def test_mutations_without_store_raise(settings):
    service = CatalogService(None, settings)
    with pytest.raises(StoreUnavailableError):
        await service.add_feature(Feature(id="x", name="X"))
    snapshot = await service.get_catalog()
    assert snapshot.source == "fallback"


async def test_set_recommended_package(service, store):
    await service.set_recommended_package("pkg-gold")
    docs = await docs_by_id(store, "packages")
    assert docs["pkg-gold"]["isRecommended"] is True
    assert docs["pkg-gold"]["is_recommended"] is True
    assert docs["pkg-platinum"]["isRecommended"] is False
    assert docs["pkg-elite"]["is_recommended"] is False

    await service.set_recommended_package(None)
    docs = await docs_by_id(store, "packages")
    assert not any(d["isRecommended"] for d in docs.values())


async def test_set_recommended_unknown_package(service):
    with pytest.raises(ValueError, match="not found"):
        await service.set_recommended_package("pkg-bronze")


async def test_upsert_ala_carte_from_feature(service, store):
    feature = Feature(
        id="rustguard", name="RustGuard Pro", description="Underbody", cost=300.0, warranty="Lifetime",
        publish_to_ala_carte=True, ala_carte_price=499.0, ala_carte_is_new=True,
    )
    await service.upsert_ala_carte_from_feature(feature, {"column": 4, "position": 6})
    await service.upsert_ala_carte_from_feature(feature)

    docs = await docs_by_id(store, "ala_carte_options")
    doc = docs["rustguard"]
    assert doc["price"] == 499.0
    assert doc["sourceFeatureId"] == "rustguard"
    assert doc["isPublished"] is True
    assert doc["isNew"] is True
    assert doc["warranty"] == "Lifetime"
    # Second call kept the placement from the first
    assert doc["column"] == 4 and doc["position"] == 6


async def test_upsert_requires_publish_flag_and_price(service):
    with pytest.raises(ValueError):
        await service.upsert_ala_carte_from_feature(Feature(id="a", name="A", ala_carte_price=10.0))
    with pytest.raises(ValueError):
        await service.upsert_ala_carte_from_feature(Feature(id="a", name="A", publish_to_ala_carte=True))


async def test_unpublish_ala_carte(service, store):
    await service.unpublish_ala_carte("doorcups")
    docs = await docs_by_id(store, "ala_carte_options")
    assert docs["doorcups"]["isPublished"] is False
    assert docs["doorcups"]["price"] == 195


async def test_reorder_features_persists_normalized_board(service, store):
    features = await service.list_features()
    board = group_features_by_column(features)
    board[1] = list(reversed(board[1]))
    updates = await service.reorder_features(board)

    assert len(updates) == len(features)
    docs = await docs_by_id(store, "features")
    assert docs["toughguard"]["position"] == 0
    assert docs["rustguard"]["position"] == 1
    assert docs["draft"]["position"] == 0


async def test_move_feature(service, store):
    await service.move_feature("diamond", UNASSIGNED, 5)
    docs = await docs_by_id(store, "features")
    assert "column" not in docs["diamond"]
    assert docs["diamond"]["position"] == 1
    assert docs["ceramic"]["position"] == 0

    with pytest.raises(ValueError, match="not found"):
        await service.move_feature("ghost", 1, 0)


async def test_reorder_feature_board(service, store):
    updates = await service.reorder_feature_board({
        1: ["toughguard", "rustguard"],
        2: [],
        3: ["windshield", "interior"],
        4: ["diamond", "ceramic"],
        UNASSIGNED: ["draft"],
    })
    assert len(updates) == 7
    docs = await docs_by_id(store, "features")
    assert [docs["toughguard"]["position"], docs["rustguard"]["position"]] == [0, 1]
    assert docs["interior"]["column"] == 3
    assert docs["interior"]["position"] == 1


async def test_reorder_feature_board_requires_every_feature(service, store):
    before = await docs_by_id(store, "features")
    with pytest.raises(ValueError, match="missing: ceramic, diamond, draft, interior, rustguard, windshield"):
        await service.reorder_feature_board({1: ["toughguard"]})
    assert await docs_by_id(store, "features") == before


async def test_reorder_feature_board_rejects_duplicates_and_unknown_ids(service):
    with pytest.raises(ValueError, match="more than once"):
        await service.reorder_feature_board({1: ["rustguard"], 2: ["rustguard"]})
    with pytest.raises(ValueError, match="not found"):
        await service.reorder_feature_board({1: ["ghost"]})
    with pytest.raises(ValueError, match="Unknown column"):
        await service.reorder_feature_board({9: ["rustguard"]})
