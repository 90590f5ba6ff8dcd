"""
Cache Snapshot Schema - the at-rest record written by CacheStore.

Example Document:
    {
        "key": "category_293",
        "created_at": 1792411200.0,
        "ttl_seconds": 7200.0,
        "expires_at": "2026-10-19T14:00:00Z",
        "payload": {...}
    }
"""
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field


class CacheEntry(BaseModel):
    """One keyed, timestamped snapshot."""

    key: str = Field(..., min_length=1)
    created_at: float = Field(..., description="Epoch seconds when the snapshot was written")
    ttl_seconds: float = Field(..., ge=0)
    expires_at: datetime = Field(..., description="created_at + ttl, for humans reading the file")
    payload: Dict[str, Any]

    @classmethod
    def create(cls, key: str, payload: Dict[str, Any], now: float, ttl_seconds: float) -> "CacheEntry":
        return cls(
            key=key,
            created_at=now,
            ttl_seconds=ttl_seconds,
            expires_at=datetime.fromtimestamp(now + ttl_seconds, tz=timezone.utc),
            payload=payload,
        )

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_expired(self, now: float) -> bool:
        return self.age(now) > self.ttl_seconds

    def to_bytes(self) -> bytes:
        return self.model_dump_json(indent=2).encode("utf-8")
