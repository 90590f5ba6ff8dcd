"""
Category Result Schema - what get_category_data() returns and what the cache stores.

EnrichedResult is persisted without its `metadata` block: freshness and cache
age describe one particular answer, not the snapshot, so two answers for the
same snapshot differ only there.
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.models.listing import EnrichmentStatus, ItemDetail


SourceFreshness = Literal["fresh", "cached"]


class CategoryInfo(BaseModel):
    """Static description of a supported marketplace category."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class CategoryStats(BaseModel):
    """
    Category-wide aggregates over the final item set.

    All fields are zero for an empty item set.
    """
    avg_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    total_listings: int = 0
    total_watchers: int = 0
    avg_watchers: float = 0.0


class EnrichmentSummary(BaseModel):
    """Per-run enrichment outcome counts."""
    enriched: int = 0
    grouped: int = 0
    degraded: int = 0

    @classmethod
    def from_items(cls, items: List[ItemDetail]) -> "EnrichmentSummary":
        statuses = [item.enrichment_status for item in items]
        return cls(
            enriched=statuses.count(EnrichmentStatus.ENRICHED.value),
            grouped=statuses.count(EnrichmentStatus.GROUPED.value),
            degraded=statuses.count(EnrichmentStatus.DEGRADED.value),
        )


class ResultMetadata(BaseModel):
    """Freshness annotation attached to each answer."""
    source_freshness: SourceFreshness = "fresh"
    cache_age_seconds: Optional[float] = None


class EnrichedResult(BaseModel):
    """
    Enriched snapshot of one category.

    Example:
        {
            "category_id": "293",
            "category": {"id": "293", "name": "Electronics", "description": "..."},
            "items": [...],
            "stats": {"avg_price": 84.2, "min_price": 4.99, ...},
            "total": 1532041,
            "limit": 20,
            "offset": 0,
            "fetched_at": "2026-10-19T12:00:00Z",
            "source": "eBay Browse API",
            "enrichment": {"enriched": 17, "grouped": 2, "degraded": 1},
            "metadata": {"source_freshness": "cached", "cache_age_seconds": 1830.0}
        }
    """
    category_id: str
    category: Optional[CategoryInfo] = None
    items: List[ItemDetail] = Field(default_factory=list)
    stats: CategoryStats = Field(default_factory=CategoryStats)
    total: int = 0
    limit: int = 0
    offset: int = 0
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "eBay Browse API"
    enrichment: EnrichmentSummary = Field(default_factory=EnrichmentSummary)
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)

    def to_snapshot(self) -> dict:
        """JSON-compatible payload for the cache (metadata excluded)."""
        return self.model_dump(mode="json", exclude={"metadata"})
