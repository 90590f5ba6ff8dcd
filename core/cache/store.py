"""
CacheStore - TTL snapshot cache over a pluggable SnapshotStorage.

Lifecycle of an entry:
    - written on a cache miss after a successful fetch
    - read on every request
    - deleted once now - created_at > ttl (expired)
    - deleted when it can no longer be parsed (corrupt); the caller just sees a miss

Usage:
    store = CacheStore(FileSnapshotStorage("data"), ttl_seconds=2 * 3600)
    key = make_cache_key("293")
    payload = store.get(key)
    if payload is None:
        store.set(key, fresh_payload)
"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from core.cache.storage import SnapshotStorage
from core.errors import CacheStorageError
from core.logging import get_logger
from core.models.snapshot import CacheEntry

logger = get_logger("cache")


DEFAULT_TTL_SECONDS = 2 * 60 * 60
KEY_PREFIX = "category"

_SAFE_KEY_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789")


def make_cache_key(category_id: str, prefix: str = KEY_PREFIX) -> str:
    """
    Storage key for a category id.

    Lower-case letters and digits pass through; every other byte of the
    UTF-8 encoding (including "_" and upper-case letters) becomes "_xx" hex.
    The escape is reversible, so two different ids never share a key.

    Example:
        make_cache_key("293")      -> "category_293"
        make_cache_key("a_b")      -> "category_a_5fb"
        make_cache_key("A")        -> "category__41"
    """
    escaped = "".join(
        chr(byte) if chr(byte) in _SAFE_KEY_CHARS else f"_{byte:02x}"
        for byte in str(category_id).encode("utf-8")
    )
    return f"{prefix}_{escaped}"


@dataclass
class CacheEntryInfo:
    key: str
    age_seconds: float
    expires_at: datetime
    size_bytes: int


@dataclass
class CacheStats:
    """Summary of everything currently stored."""
    total_entries: int = 0
    total_bytes: int = 0
    oldest: Optional[CacheEntryInfo] = None
    newest: Optional[CacheEntryInfo] = None
    entries: List[CacheEntryInfo] = field(default_factory=list)


class CacheStore:
    """Keyed snapshot cache with a fixed TTL."""

    def __init__(
        self,
        storage: SnapshotStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Payload for key, or None when absent, expired or corrupt."""
        entry = self.lookup(key)
        return entry.payload if entry is not None else None

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """Like get(), but returns the whole entry so callers can report its age."""
        entry = self._load(key)
        if entry is None:
            return None

        if entry.is_expired(self.clock()):
            logger.info("Cache entry expired", extra={"cache_key": key})
            self._discard(key)
            return None

        return entry

    def set(self, key: str, payload: Dict[str, Any]) -> CacheEntry:
        """
        Store a snapshot stamped with the current time.

        Raises:
            CacheStorageError: when the backend cannot write
        """
        entry = CacheEntry.create(key, payload, now=self.clock(), ttl_seconds=self.ttl_seconds)
        self.storage.write(key, entry.to_bytes())
        logger.debug("Cache entry written", extra={"cache_key": key, "expires_at": entry.expires_at.isoformat()})
        return entry

    def delete(self, key: str) -> bool:
        return self.storage.delete(key)

    def age(self, key: str) -> Optional[float]:
        """Seconds since the entry was written, or None if there is no readable entry."""
        entry = self._load(key)
        if entry is None:
            return None
        return entry.age(self.clock())

    def clear(self) -> int:
        """Delete every entry; returns how many were removed."""
        cleared = 0
        for key in self.storage.keys():
            if self.storage.delete(key):
                cleared += 1
        logger.info(f"Cleared {cleared} cache entries")
        return cleared

    def stats(self) -> CacheStats:
        """Size and age summary. Unreadable entries are skipped, not deleted."""
        now = self.clock()
        stats = CacheStats()

        for key in self.storage.keys():
            try:
                raw = self.storage.read(key)
            except CacheStorageError as e:
                logger.warning(f"Skipping unreadable cache entry: {e}", extra={"cache_key": key})
                continue
            if raw is None:
                continue
            try:
                entry = CacheEntry.model_validate_json(raw)
            except ValidationError:
                continue

            info = CacheEntryInfo(
                key=entry.key,
                age_seconds=entry.age(now),
                expires_at=entry.expires_at,
                size_bytes=len(raw),
            )
            stats.entries.append(info)
            stats.total_bytes += info.size_bytes

            if stats.oldest is None or info.age_seconds > stats.oldest.age_seconds:
                stats.oldest = info
            if stats.newest is None or info.age_seconds < stats.newest.age_seconds:
                stats.newest = info

        stats.total_entries = len(stats.entries)
        return stats

    def _load(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.storage.read(key)
        except CacheStorageError as e:
            logger.warning(f"Error reading cache: {e}", extra={"cache_key": key})
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Corrupted cache entry removed",
                extra={"cache_key": key, "error": str(e).splitlines()[0]},
            )
            self._discard(key)
            return None

        if entry.key != key:
            logger.warning(
                "Cache entry stored under the wrong key removed",
                extra={"cache_key": key, "stored_key": entry.key},
            )
            self._discard(key)
            return None

        return entry

    def _discard(self, key: str) -> None:
        try:
            self.storage.delete(key)
        except CacheStorageError as e:
            logger.error(f"Error deleting cache entry: {e}", extra={"cache_key": key})
