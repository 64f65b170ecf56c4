import asyncio
import json
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from .config import settings

logger = logging.getLogger(__name__)

COLLEGES = "colleges"
USERS = "users"
EVENTS = "events"
REGISTRATIONS = "registrations"
ATTENDANCES = "attendances"
FEEDBACKS = "feedbacks"

COLLECTIONS = (COLLEGES, USERS, EVENTS, REGISTRATIONS, ATTENDANCES, FEEDBACKS)

# Mongo collection holding one document per namespaced key
MONGO_COLLECTION = "collections"


class CollectionStore:
    """Keyed storage for whole arrays of records.

    Each collection lives under ``<namespace>_<collection>`` and is always read
    and written in full: there are no partial updates, no indexes used for
    lookups and no transactions across collections. ``lock()`` hands out one
    ``asyncio.Lock`` per collection so callers can make a read-modify-write
    atomic with respect to other coroutines on the same loop.
    """

    def __init__(self, namespace: Optional[str] = None):
        self.namespace = namespace or settings.STORAGE_NAMESPACE
        self._locks: dict[str, asyncio.Lock] = {}

    def key(self, collection: str) -> str:
        return f"{self.namespace}_{collection}"

    def lock(self, collection: str) -> asyncio.Lock:
        return self._locks.setdefault(collection, asyncio.Lock())

    async def read(self, collection: str) -> list[dict]:
        raise NotImplementedError

    async def write(self, collection: str, records: list[dict]) -> None:
        raise NotImplementedError


class MemoryStore(CollectionStore):
    """Process-local store holding each collection as a serialized JSON array."""

    def __init__(self, namespace: Optional[str] = None):
        super().__init__(namespace)
        self._data: dict[str, str] = {}

    async def read(self, collection: str) -> list[dict]:
        data = self._data.get(self.key(collection))
        return json.loads(data) if data else []

    async def write(self, collection: str, records: list[dict]) -> None:
        self._data[self.key(collection)] = json.dumps(records)


class MongoStore(CollectionStore):
    """MongoDB-backed store.

    Every namespaced key is a single document ``{_id: key, records: [...]}``
    in one Mongo collection, so a write replaces the whole array atomically
    and reads get the records back in the order they were written.
    """

    def __init__(self, db: AsyncIOMotorDatabase, namespace: Optional[str] = None):
        super().__init__(namespace)
        self.db = db
        self.documents = db[MONGO_COLLECTION]

    async def read(self, collection: str) -> list[dict]:
        doc = await self.documents.find_one({"_id": self.key(collection)})
        return list(doc.get("records", [])) if doc else []

    async def write(self, collection: str, records: list[dict]) -> None:
        await self.documents.replace_one(
            {"_id": self.key(collection)},
            {"records": [dict(r) for r in records]},
            upsert=True,
        )


def build_store(backend: Optional[str] = None) -> CollectionStore:
    backend = (backend or settings.STORE_BACKEND).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "mongo":
        client = AsyncIOMotorClient(settings.MONGO_URI)
        logger.info("Using MongoDB store (db=%s)", settings.DB_NAME)
        return MongoStore(client[settings.DB_NAME])
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


_store: Optional[CollectionStore] = None


def get_store() -> CollectionStore:
    global _store
    if _store is None:
        _store = build_store()
    return _store
