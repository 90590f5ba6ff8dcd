"""
TrendSpotter Core Models

Exports for listing, category result and cache snapshot models.
"""

# Listing models (search summaries, enriched details, variant groups)
from core.models.listing import (
    # Enums
    EnrichmentStatus,
    # Main models
    ItemSummary,
    ItemDetail,
    ItemGroup,
    # Factory functions
    create_item_summary,
    create_item_detail,
    create_item_group,
    merge_item_detail,
    # Parsing helpers
    extract_listing_fields,
    parse_price,
)

# Category result models (what get_category_data returns)
from core.models.category import (
    CategoryInfo,
    CategoryStats,
    EnrichmentSummary,
    ResultMetadata,
    EnrichedResult,
    SourceFreshness,
)

# Cache snapshot model
from core.models.snapshot import CacheEntry

__all__ = [
    # Listing models
    "EnrichmentStatus",
    "ItemSummary",
    "ItemDetail",
    "ItemGroup",
    "create_item_summary",
    "create_item_detail",
    "create_item_group",
    "merge_item_detail",
    "extract_listing_fields",
    "parse_price",
    # Category result models
    "CategoryInfo",
    "CategoryStats",
    "EnrichmentSummary",
    "ResultMetadata",
    "EnrichedResult",
    "SourceFreshness",
    # Cache snapshot model
    "CacheEntry",
]
