"""
Catalog Service - admin operations on features, a la carte options and packages.
"""
import logging
from dataclasses import fields
from typing import Optional

from pydantic import ValidationError

from ..config.settings import Settings, get_settings
from ..engine.feature_ordering import (
    BUCKETS,
    group_features_by_column,
    move_feature,
    normalize_grouped_positions,
    to_position_updates,
)
from ..engine.models import (
    DOCUMENT_FIELD_NAMES,
    AlaCarteOption,
    CatalogSnapshot,
    Feature,
    PositionUpdate,
    to_document,
)
from ..engine.validation import (
    ALA_CARTE_OPTIONS,
    FEATURES,
    PACKAGES,
    format_validation_error,
    parse_record,
    validate_records,
)
from .catalog_store import (
    CatalogStoreError,
    DocumentNotFoundError,
    DocumentStore,
    StoreUnavailableError,
    batch_update_ala_carte_positions,
    batch_update_feature_positions,
    commit_in_chunks,
    fetch_catalog,
)

logger = logging.getLogger(__name__)


def _update_document(model_cls, updates: dict) -> dict:
    """Translate attribute-named updates into store field names. None removes a field."""
    allowed = {f.name for f in fields(model_cls)} - {'id'}
    doc = {}
    for key, value in updates.items():
        if key not in allowed:
            raise ValueError(f"Unknown {model_cls.__name__} field '{key}'")
        if isinstance(value, tuple):
            value = list(value)
        doc[DOCUMENT_FIELD_NAMES.get(key, key)] = value
    return doc


def _check_document(collection: str, doc_id: str, doc: dict, label: str):
    """Reject a write whose resulting document would fail validation on read."""
    try:
        parse_record(collection, {**doc, 'id': doc_id})
    except ValidationError as e:
        raise ValueError(f"Invalid {label}: {format_validation_error(e)}") from e


class CatalogService:
    """Service for curating the catalog from the admin panel."""

    def __init__(self, store: Optional[DocumentStore], settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    def _require_store(self, action: str) -> DocumentStore:
        if self.store is None:
            raise StoreUnavailableError(f"Document store is not configured. Cannot {action}.")
        return self.store

    async def get_catalog(self) -> CatalogSnapshot:
        """Best-effort catalog snapshot (falls back to the built-in dataset)."""
        return await fetch_catalog(self.store, timeout=self.settings.request_timeout_seconds)

    async def list_features(self) -> list[Feature]:
        """Stored features only, without fallback. Used before writes."""
        store = self._require_store("list features")
        return validate_records(FEATURES, await store.fetch_all(FEATURES))

    async def list_ala_carte_options(self) -> list[AlaCarteOption]:
        store = self._require_store("list a la carte options")
        return validate_records(ALA_CARTE_OPTIONS, await store.fetch_all(ALA_CARTE_OPTIONS))

    async def _add(self, collection: str, item, label: str) -> str:
        store = self._require_store(f"add {label}")
        doc = to_document(item)
        _check_document(collection, 'new', doc, label)
        try:
            return await store.add_document(collection, doc)
        except CatalogStoreError:
            raise
        except Exception as e:
            logger.error(f"Error adding {label} to the document store: {e!r}")
            raise CatalogStoreError(f"Failed to save the new {label}.") from e

    async def _update(self, collection: str, model_cls, item_id: str, updates: dict, label: str):
        store = self._require_store(f"update {label}")
        doc = _update_document(model_cls, updates)
        try:
            stored = await store.fetch_all(collection)
        except Exception as e:
            logger.error(f"Error reading {label} {item_id}: {e!r}")
            raise CatalogStoreError(f"Failed to read the {label}.") from e
        current = next((d for d in stored if str(d.get('id')) == item_id), None)
        if current is None:
            raise ValueError(f"{label.capitalize()} '{item_id}' not found")
        merged = {k: v for k, v in {**current, **doc}.items() if v is not None and k != 'id'}
        _check_document(collection, item_id, merged, label)
        try:
            await store.update_document(collection, item_id, doc)
        except DocumentNotFoundError:
            raise ValueError(f"{label.capitalize()} '{item_id}' not found")
        except CatalogStoreError:
            raise
        except Exception as e:
            logger.error(f"Error updating {label} {item_id}: {e!r}")
            raise CatalogStoreError(f"Failed to update the {label}.") from e

    async def add_feature(self, feature: Feature) -> str:
        """Add a feature under a generated id; `feature.id` is ignored."""
        return await self._add(FEATURES, feature, "feature")

    async def update_feature(self, feature_id: str, updates: dict):
        """Partial update; a None value removes the field."""
        await self._update(FEATURES, Feature, feature_id, updates, "feature")

    async def add_ala_carte_option(self, option: AlaCarteOption) -> str:
        return await self._add(ALA_CARTE_OPTIONS, option, "a la carte option")

    async def update_ala_carte_option(self, option_id: str, updates: dict):
        await self._update(ALA_CARTE_OPTIONS, AlaCarteOption, option_id, updates, "a la carte option")

    async def set_recommended_package(self, package_id: Optional[str]):
        """Mark one package as recommended (or none when package_id is None)."""
        store = self._require_store("update recommended package")
        packages = await store.fetch_all(PACKAGES)
        if not packages:
            return

        ids = {str(pkg["id"]) for pkg in packages}
        if package_id is not None and package_id not in ids:
            raise ValueError(f"Package '{package_id}' not found")

        operations = []
        for doc_id in sorted(ids):
            flag = package_id is not None and doc_id == package_id
            # Legacy field kept in step for older readers
            operations.append((doc_id, {"isRecommended": flag, "is_recommended": flag}))

        await commit_in_chunks(
            store,
            PACKAGES,
            operations,
            batch_limit=self.settings.batch_limit,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay_seconds,
            timeout=self.settings.request_timeout_seconds,
        )

    async def upsert_ala_carte_from_feature(self, feature: Feature, overrides: Optional[dict] = None):
        """
        Publish (or refresh) a feature as an a la carte option.

        The option's document id is the feature id, so repeated calls update
        the same document. Column, position and connector are only written when
        given in `overrides`.
        """
        store = self._require_store("publish to a la carte")
        overrides = overrides or {}

        is_publishing = overrides.get('is_published', True)
        price = overrides.get('price', feature.ala_carte_price)
        if is_publishing and (not feature.publish_to_ala_carte or price is None):
            raise ValueError("Feature must have publish_to_ala_carte=True and ala_carte_price set to publish.")

        warranty = overrides.get('warranty', feature.ala_carte_warranty or feature.warranty)
        data = {
            'name': feature.name,
            'description': feature.description,
            'points': list(feature.points),
            'price': feature.price if price is None else price,
            'cost': feature.cost,
            'warranty': warranty,
            'isNew': overrides.get('is_new', bool(feature.ala_carte_is_new)),
            'useCases': list(feature.use_cases),
            'imageUrl': feature.image_url,
            'thumbnailUrl': feature.thumbnail_url,
            'videoUrl': feature.video_url,
            'sourceFeatureId': overrides.get('source_feature_id', feature.id),
            'isPublished': is_publishing,
        }
        for key in ('column', 'position', 'connector'):
            if key in overrides:
                data[key] = overrides[key]

        await store.set_document(ALA_CARTE_OPTIONS, feature.id, data, merge=True)

    async def unpublish_ala_carte(self, feature_id: str):
        """Hide a published option from customers without deleting it."""
        store = self._require_store("unpublish from a la carte")
        await store.set_document(ALA_CARTE_OPTIONS, feature_id, {'isPublished': False}, merge=True)

    async def reorder_features(self, grouped: dict) -> list[PositionUpdate]:
        """Renormalize a grouped board and persist every position."""
        updates = to_position_updates(normalize_grouped_positions(grouped))
        await batch_update_feature_positions(self._require_store("reorder features"), updates, self.settings)
        return updates

    async def reorder_feature_board(self, board: dict) -> list[PositionUpdate]:
        """
        Persist a whole admin board given as bucket -> ordered feature ids.

        Every stored feature must be listed exactly once so that each column
        is rewritten with dense positions.
        """
        by_id = {f.id: f for f in await self.list_features()}
        grouped = {bucket: [] for bucket in BUCKETS}
        seen = set()
        for bucket, ids in board.items():
            if bucket not in grouped:
                raise ValueError(f"Unknown column '{bucket}'")
            for feature_id in ids:
                if feature_id not in by_id:
                    raise ValueError(f"Feature '{feature_id}' not found")
                if feature_id in seen:
                    raise ValueError(f"Feature '{feature_id}' is listed more than once")
                seen.add(feature_id)
                grouped[bucket].append(by_id[feature_id])

        missing = sorted(set(by_id) - seen)
        if missing:
            raise ValueError(f"Board must list every feature; missing: {', '.join(missing)}")
        return await self.reorder_features(grouped)

    async def reorder_ala_carte(self, grouped: dict) -> list[PositionUpdate]:
        updates = to_position_updates(normalize_grouped_positions(grouped))
        await batch_update_ala_carte_positions(
            self._require_store("reorder a la carte options"), updates, self.settings
        )
        return updates

    async def move_feature(self, feature_id: str, to_bucket, to_index: int) -> list[PositionUpdate]:
        """Move one feature on the admin board and persist the resulting positions."""
        features = await self.list_features()
        if feature_id not in {f.id for f in features}:
            raise ValueError(f"Feature '{feature_id}' not found")
        board = move_feature(group_features_by_column(features), feature_id, to_bucket, to_index)
        return await self.reorder_features(board)
