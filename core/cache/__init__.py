"""
Snapshot Cache

TTL cache for enriched category results, over a pluggable key -> bytes
storage backend:

    - file:   JSON files under CACHE_DIR (default)
    - memory: process-local dict
    - mongo:  `category_snapshots` collection in MongoDB

Usage:
    from core.cache import CacheStore, create_snapshot_storage, make_cache_key

    store = CacheStore(create_snapshot_storage("file", "data"), ttl_seconds=7200)
    store.set(make_cache_key("293"), {"items": []})
"""
from pathlib import Path
from typing import Union

from core.cache.storage import FileSnapshotStorage, MemorySnapshotStorage, SnapshotStorage
from core.cache.mongo_storage import MongoSnapshotStorage
from core.cache.store import CacheEntryInfo, CacheStats, CacheStore, make_cache_key


CACHE_BACKENDS = ("file", "memory", "mongo")


def create_snapshot_storage(backend: str, cache_dir: Union[str, Path] = "data") -> SnapshotStorage:
    """
    Storage backend by name.

    Raises:
        ValueError: Unknown backend name
    """
    backend = backend.lower()
    if backend == "file":
        return FileSnapshotStorage(cache_dir)
    if backend == "memory":
        return MemorySnapshotStorage()
    if backend == "mongo":
        return MongoSnapshotStorage()
    raise ValueError(f"Unknown cache backend: {backend!r} (expected one of {', '.join(CACHE_BACKENDS)})")


__all__ = [
    # Store
    "CacheStore",
    "CacheStats",
    "CacheEntryInfo",
    "make_cache_key",
    # Storage backends
    "SnapshotStorage",
    "FileSnapshotStorage",
    "MemorySnapshotStorage",
    "MongoSnapshotStorage",
    "CACHE_BACKENDS",
    "create_snapshot_storage",
]
