"""
Error taxonomy for the category data pipeline.

Fatal errors (abort a get_category_data run and reach the caller):
    AuthError, NoResultsError, RateLimitedError, UpstreamError

Non-fatal errors (handled inside the pipeline, never surfaced):
    ItemLookupError    - one item's detail or group lookup failed; item is degraded
    CacheStorageError  - snapshot backend failed; treated as a miss / logged on persist
"""
from typing import Optional


class PipelineError(Exception):
    """
    Base class for run-level failures.

    Carries the category id and the pipeline stage where the failure happened
    so callers can render a single descriptive message.
    """

    def __init__(
        self,
        message: str,
        category_id: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category_id = category_id
        self.stage = stage

    def __str__(self) -> str:
        parts = [self.message]
        if self.category_id is not None:
            parts.append(f"category={self.category_id}")
        if self.stage is not None:
            parts.append(f"stage={self.stage}")
        if len(parts) == 1:
            return self.message
        return f"{parts[0]} ({', '.join(parts[1:])})"


class AuthError(PipelineError):
    """OAuth client-credentials exchange failed."""


class NoResultsError(PipelineError):
    """Category search returned no listings."""

    def __init__(self, category_id: Optional[str] = None, stage: Optional[str] = None):
        super().__init__("No items found in this category", category_id=category_id, stage=stage)


class RateLimitedError(PipelineError):
    """Upstream throttled the request. Never retried automatically."""

    def __init__(
        self,
        cooldown_seconds: int = 3600,
        category_id: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        self.cooldown_seconds = cooldown_seconds
        super().__init__(
            f"eBay API rate limit exceeded. Please wait {_describe_cooldown(cooldown_seconds)} and try again.",
            category_id=category_id,
            stage=stage,
        )


class UpstreamError(PipelineError):
    """Any other non-success response (or transport failure) from the search endpoint."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        category_id: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message, category_id=category_id, stage=stage)
        self.status_code = status_code
        self.body = body


class ItemLookupError(Exception):
    """Detail or item-group lookup failed for a single item."""

    def __init__(self, item_id: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"Lookup failed for {item_id}: {reason}")
        self.item_id = item_id
        self.reason = reason
        self.status_code = status_code


class CacheStorageError(Exception):
    """Snapshot storage backend could not read or write an entry."""


def _describe_cooldown(seconds: int) -> str:
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return "1 hour" if hours == 1 else f"{hours} hours"
    if seconds % 60 == 0:
        minutes = seconds // 60
        return "1 minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"
