"""
Catalog Store - document store access for features, a la carte options and packages.

Reads are best effort: any failure (no store, network, permissions, timeout)
falls back to the built-in demo catalog instead of raising. Bulk writes are
chunked to the store's batch limit and retried with exponential backoff; a
chunk that exhausts its retries aborts the operation with a BatchCommitError
that says how many chunks were already committed.
"""
import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Iterable, Optional

from ..config.settings import Settings, get_settings
from ..data.fallback import fallback_snapshot
from ..engine.feature_ordering import derive_tier_features
from ..engine.models import CatalogSnapshot, PositionUpdate
from ..engine.validation import ALA_CARTE_OPTIONS, FEATURES, PACKAGES, validate_records

logger = logging.getLogger(__name__)


class CatalogStoreError(Exception):
    """Base exception for document store operations."""
    pass


class StoreUnavailableError(CatalogStoreError):
    """No document store is configured."""
    pass


class DocumentNotFoundError(CatalogStoreError):
    """Document not found in the store."""
    pass


class BatchCommitError(CatalogStoreError):
    """A chunk of a bulk write failed after all retries."""

    def __init__(self, message: str, committed_chunks: int, total_chunks: int, failed_chunk: int):
        super().__init__(message)
        self.committed_chunks = committed_chunks
        self.total_chunks = total_chunks
        self.failed_chunk = failed_chunk

    @property
    def partially_committed(self) -> bool:
        return self.committed_chunks > 0


def _split_update(data: dict) -> dict:
    """Build a Mongo update: None values remove the field."""
    to_set = {k: v for k, v in data.items() if v is not None}
    to_unset = {k: "" for k, v in data.items() if v is None}
    update = {}
    if to_set:
        update["$set"] = to_set
    if to_unset:
        update["$unset"] = to_unset
    return update


def _id_filter(doc_id: str) -> dict:
    """Match a string key, or the ObjectId that `fetch_all` rendered as this string."""
    from bson import ObjectId

    if ObjectId.is_valid(doc_id):
        return {"_id": {"$in": [doc_id, ObjectId(doc_id)]}}
    return {"_id": doc_id}


class DocumentStore(ABC):
    """
    Abstract document store.

    Documents are plain dicts; `fetch_all` returns them with their key under
    "id". In every write, a None value removes the field.
    """

    @abstractmethod
    async def fetch_all(self, collection: str) -> list[dict]:
        pass

    @abstractmethod
    async def commit_batch(self, collection: str, operations: list[tuple[str, dict]]) -> None:
        """Apply (doc_id, partial update) pairs as a single batch. Documents must exist."""
        pass

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, data: dict) -> None:
        pass

    @abstractmethod
    async def set_document(self, collection: str, doc_id: str, data: dict, merge: bool = True) -> None:
        """Create or update a document under a caller-chosen id."""
        pass

    @abstractmethod
    async def add_document(self, collection: str, data: dict) -> str:
        """Insert a document under a generated id and return the id."""
        pass


class MongoDocumentStore(DocumentStore):
    """MongoDB implementation using the motor async driver."""

    def __init__(self, db, client=None):
        self.db = db
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> 'MongoDocumentStore':
        from motor.motor_asyncio import AsyncIOMotorClient

        if not settings.mongo_url:
            raise StoreUnavailableError("MONGO_URL is not set")
        client = AsyncIOMotorClient(settings.mongo_url)
        logger.info(f"Using MongoDB database: {settings.db_name}")
        return cls(client[settings.db_name], client=client)

    def close(self):
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def fetch_all(self, collection: str) -> list[dict]:
        docs = await self.db[collection].find({}).to_list(length=None)
        result = []
        for doc in docs:
            doc = dict(doc)
            doc["id"] = str(doc.pop("_id"))
            result.append(doc)
        return result

    async def commit_batch(self, collection: str, operations: list[tuple[str, dict]]) -> None:
        from pymongo import UpdateOne

        requests = [UpdateOne(_id_filter(doc_id), _split_update(data)) for doc_id, data in operations]
        if not requests:
            return
        result = await self.db[collection].bulk_write(requests, ordered=True)
        if result.matched_count != len(requests):
            # Matched documents in this chunk are already updated
            raise DocumentNotFoundError(
                f"{collection}: only {result.matched_count} of {len(requests)} documents matched"
            )

    async def update_document(self, collection: str, doc_id: str, data: dict) -> None:
        update = _split_update(data)
        if not update:
            return
        result = await self.db[collection].update_one(_id_filter(doc_id), update)
        if result.matched_count == 0:
            raise DocumentNotFoundError(f"{collection}/{doc_id} not found")

    async def set_document(self, collection: str, doc_id: str, data: dict, merge: bool = True) -> None:
        if merge:
            update = _split_update(data)
            if update:
                result = await self.db[collection].update_one(_id_filter(doc_id), update)
                if result.matched_count == 0:
                    await self.db[collection].update_one({"_id": doc_id}, update, upsert=True)
        else:
            body = {k: v for k, v in data.items() if v is not None}
            await self.db[collection].replace_one({"_id": doc_id}, body, upsert=True)

    async def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        body = {k: v for k, v in data.items() if v is not None}
        await self.db[collection].insert_one({"_id": doc_id, **body})
        return doc_id


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with the same semantics, for tests and demos."""

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None):
        self.collections: dict[str, dict[str, dict]] = {}
        for name, docs in (collections or {}).items():
            self.collections[name] = {
                str(doc["id"]): {k: v for k, v in doc.items() if k != "id"} for doc in docs
            }

    def _collection(self, name: str) -> dict:
        return self.collections.setdefault(name, {})

    @staticmethod
    def _merge(target: dict, data: dict):
        for key, value in data.items():
            if value is None:
                target.pop(key, None)
            else:
                target[key] = value

    async def fetch_all(self, collection: str) -> list[dict]:
        return [{"id": doc_id, **dict(doc)} for doc_id, doc in self._collection(collection).items()]

    async def commit_batch(self, collection: str, operations: list[tuple[str, dict]]) -> None:
        docs = self._collection(collection)
        missing = [doc_id for doc_id, _ in operations if doc_id not in docs]
        if missing:
            # Nothing is applied when any document is missing
            raise DocumentNotFoundError(f"{collection}: documents not found: {', '.join(missing)}")
        for doc_id, data in operations:
            self._merge(docs[doc_id], data)

    async def update_document(self, collection: str, doc_id: str, data: dict) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise DocumentNotFoundError(f"{collection}/{doc_id} not found")
        self._merge(docs[doc_id], data)

    async def set_document(self, collection: str, doc_id: str, data: dict, merge: bool = True) -> None:
        docs = self._collection(collection)
        if not merge or doc_id not in docs:
            docs[doc_id] = {}
        self._merge(docs[doc_id], data)

    async def add_document(self, collection: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self._collection(collection)[doc_id] = {}
        self._merge(self._collection(collection)[doc_id], data)
        return doc_id


def create_store(settings: Optional[Settings] = None) -> Optional[DocumentStore]:
    """Connect to the configured store, or return None when none is configured."""
    settings = settings or get_settings()
    if not settings.mongo_url:
        logger.warning("MONGO_URL not set; catalog reads will use the built-in dataset")
        return None
    return MongoDocumentStore.from_settings(settings)


async def fetch_catalog(store: Optional[DocumentStore], timeout: Optional[float] = None) -> CatalogSnapshot:
    """
    Read, validate and assemble the catalog.

    Package features are derived from feature columns here, never read from
    the package documents. Returns the fallback dataset when there is no store,
    any read fails or times out, or every collection comes back empty.
    """
    if store is None:
        logger.warning("Document store not configured, falling back to built-in data.")
        return fallback_snapshot()

    try:
        raw_features, raw_options, raw_packages = await asyncio.gather(
            asyncio.wait_for(store.fetch_all(FEATURES), timeout),
            asyncio.wait_for(store.fetch_all(ALA_CARTE_OPTIONS), timeout),
            asyncio.wait_for(store.fetch_all(PACKAGES), timeout),
        )
    except Exception as e:
        logger.error(f"Error fetching catalog from the document store, falling back to built-in data: {e!r}")
        return fallback_snapshot()

    features = validate_records(FEATURES, raw_features)
    options = validate_records(ALA_CARTE_OPTIONS, raw_options)
    packages = [
        record.to_domain(derive_tier_features(record.name, features))
        for record in validate_records(PACKAGES, raw_packages)
    ]

    if not packages and not features and not options:
        logger.warning("No catalog data found in the document store, falling back to built-in data.")
        return fallback_snapshot()

    return CatalogSnapshot(
        packages=packages,
        features=features,
        ala_carte_options=options,
        source="store",
    )


async def commit_in_chunks(
    store: DocumentStore,
    collection: str,
    operations: list[tuple[str, dict]],
    batch_limit: int = 500,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    timeout: Optional[float] = None,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
) -> int:
    """
    Commit upserts chunk by chunk with bounded exponential backoff per chunk.

    Returns the number of chunks committed. Raises BatchCommitError when a
    chunk still fails after `max_retries` attempts; chunks before it stay
    committed and the error reports how many. A chunk that references a
    missing document fails without retrying.
    """
    if batch_limit < 1:
        raise ValueError("batch_limit must be at least 1")
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    chunks = [operations[i:i + batch_limit] for i in range(0, len(operations), batch_limit)]
    total = len(chunks)

    for index, chunk in enumerate(chunks):
        last_error = None
        attempts = 0
        for attempt in range(max_retries):
            attempts = attempt + 1
            try:
                await asyncio.wait_for(store.commit_batch(collection, chunk), timeout)
                last_error = None
                break
            except DocumentNotFoundError as e:
                # Retrying cannot create the missing documents
                last_error = e
                logger.warning(f"Batch update for {collection} chunk {index + 1}/{total} hit missing documents: {e}")
                break
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Batch update attempt {attempt + 1} failed for {collection} "
                    f"chunk {index + 1}/{total}: {e!r}"
                )
                if attempt < max_retries - 1:
                    await sleep(retry_delay * (2 ** attempt))

        if last_error is not None:
            partial = f" ({index} of {total} chunks already committed)" if index else ""
            raise BatchCommitError(
                f"Failed to update {collection} after {attempts} attempt(s) on chunk "
                f"{index + 1}/{total}{partial}",
                committed_chunks=index,
                total_chunks=total,
                failed_chunk=index,
            ) from last_error

    return total


async def _batch_update_positions(
    store: Optional[DocumentStore],
    collection: str,
    updates: Iterable[PositionUpdate],
    settings: Optional[Settings],
    sleep: Callable[[float], Awaitable],
) -> int:
    if store is None:
        raise StoreUnavailableError(f"Document store is not configured. Cannot batch update {collection}.")
    settings = settings or get_settings()
    operations = [(u.id, u.to_update_dict()) for u in updates]
    if not operations:
        return 0
    return await commit_in_chunks(
        store,
        collection,
        operations,
        batch_limit=settings.batch_limit,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay_seconds,
        timeout=settings.request_timeout_seconds,
        sleep=sleep,
    )


async def batch_update_feature_positions(
    store: Optional[DocumentStore],
    updates: Iterable[PositionUpdate],
    settings: Optional[Settings] = None,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
) -> int:
    """Persist feature position/column/connector updates."""
    return await _batch_update_positions(store, FEATURES, updates, settings, sleep)


async def batch_update_ala_carte_positions(
    store: Optional[DocumentStore],
    updates: Iterable[PositionUpdate],
    settings: Optional[Settings] = None,
    sleep: Callable[[float], Awaitable] = asyncio.sleep,
) -> int:
    """Persist a la carte option position/column/connector updates."""
    return await _batch_update_positions(store, ALA_CARTE_OPTIONS, updates, settings, sleep)
