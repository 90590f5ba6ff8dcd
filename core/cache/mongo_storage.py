"""
MongoDB snapshot storage.

Each key is one document in the `category_snapshots` collection:

    {
        "_id": "category_293",
        "data": <bytes>,
        "updated_at": "2026-10-19T12:00:00Z"
    }

A write is a single-document upsert, which MongoDB applies atomically.
"""
from datetime import datetime, timezone
from typing import List, Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from core.cache.storage import SnapshotStorage
from core.errors import CacheStorageError


class MongoSnapshotStorage(SnapshotStorage):
    """Snapshot storage backed by a MongoDB collection."""

    def __init__(self, collection: Optional[Collection] = None):
        if collection is None:
            from core.database import get_snapshot_collection
            collection = get_snapshot_collection()
        self.collection = collection

    def read(self, key: str) -> Optional[bytes]:
        try:
            doc = self.collection.find_one({"_id": key}, {"data": 1})
        except PyMongoError as e:
            raise CacheStorageError(f"Error reading snapshot {key}: {e}") from e
        if doc is None or doc.get("data") is None:
            return None
        return bytes(doc["data"])

    def write(self, key: str, data: bytes) -> None:
        document = {
            "_id": key,
            "data": bytes(data),
            "updated_at": datetime.now(timezone.utc),
        }
        try:
            self.collection.replace_one({"_id": key}, document, upsert=True)
        except PyMongoError as e:
            raise CacheStorageError(f"Error writing snapshot {key}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            result = self.collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise CacheStorageError(f"Error deleting snapshot {key}: {e}") from e
        return result.deleted_count > 0

    def keys(self) -> List[str]:
        try:
            return sorted(str(doc["_id"]) for doc in self.collection.find({}, {"_id": 1}))
        except PyMongoError as e:
            raise CacheStorageError(f"Error listing snapshots: {e}") from e
