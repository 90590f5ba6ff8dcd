"""
Snapshot storage backends: key -> bytes.

CacheStore owns TTL, parsing and corruption handling; a backend only stores
opaque bytes under a key. Backends raise CacheStorageError when the
underlying medium fails, and return None / False for missing keys.

Backends:
    FileSnapshotStorage    one JSON file per key, atomic replace on write
    MemorySnapshotStorage  process-local dict (tests, single process)
    MongoSnapshotStorage   see core.cache.mongo_storage
"""
import contextlib
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from core.errors import CacheStorageError


_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class SnapshotStorage(ABC):
    """Key -> bytes store used by CacheStore."""

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """Stored bytes, or None if the key is absent."""

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """Store bytes; a concurrent reader sees either the old or the new value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the key; False if it was absent."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All stored keys."""

    def size(self, key: str) -> Optional[int]:
        """Stored size in bytes, or None if the key is absent."""
        data = self.read(key)
        return None if data is None else len(data)


class FileSnapshotStorage(SnapshotStorage):
    """
    One file per key under a cache directory (<dir>/<key>.json).

    Writes go to a temporary file in the same directory, are fsynced, then
    moved over the target with os.replace, so readers never observe a
    half-written snapshot. No cross-process lock: last writer wins.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}{self.SUFFIX}"

    def read(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError(f"Error reading cache file {path}: {e}") from e

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
        except OSError as e:
            raise CacheStorageError(f"Error preparing cache file {path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise CacheStorageError(f"Error writing cache file {path}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheStorageError(f"Error deleting cache file {path}: {e}") from e

    def size(self, key: str) -> Optional[int]:
        path = self.path_for(key)
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheStorageError(f"Error reading cache file {path}: {e}") from e

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        try:
            return sorted(
                path.stem
                for path in self.directory.glob(f"*{self.SUFFIX}")
                if _KEY_PATTERN.match(path.stem)
            )
        except OSError as e:
            raise CacheStorageError(f"Error listing cache directory {self.directory}: {e}") from e


class MemorySnapshotStorage(SnapshotStorage):
    """Thread-safe in-process storage."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)
