"""
Listing Schema - eBay Browse API item summaries, enriched details and variant groups.

Architecture: Summary -> Detail merge
- ItemSummary holds what the search endpoint returns for one listing
- ItemDetail extends it with engagement, shipping, returns, stock, seller and location
- ItemGroup aggregates the variants of a multi-variation listing into one representative

Raw Browse payloads are flattened by extract_listing_fields(), which returns only
the fields actually present in the payload. Merging relies on that: a field the
detail lookup did not return never overwrites the summary value, and anything
absent from both falls back to the model default ("", 0, False, []).

Usage:
    summary = create_item_summary(raw_summary)
    detail = create_item_detail(raw_detail)
    merged = merge_item_detail(summary, detail, status=EnrichmentStatus.ENRICHED)
"""
import math
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# ENUMS
# ============================================================================

class EnrichmentStatus(str, Enum):
    """How an item in the final result was produced."""
    ENRICHED = "ENRICHED"  # summary merged with its own detail lookup
    GROUPED = "GROUPED"  # summary merged with its variant group representative
    DEGRADED = "DEGRADED"  # detail lookup failed, summary fields only


# ============================================================================
# ITEM SUMMARY MODEL
# ============================================================================

class ItemSummary(BaseModel):
    """
    One listing as returned by the item_summary/search endpoint.

    Immutable within a pipeline run.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    # --- IDENTITY ---
    item_id: str = Field(..., description="Browse API item id (e.g. 'v1|123456789|0')")
    legacy_item_id: str = Field("", description="Classic numeric eBay item id")

    # --- LISTING ---
    title: str = ""
    price: str = Field("", description="Raw decimal price string as returned upstream")
    currency: str = ""
    item_url: str = ""
    image_url: str = ""
    condition: str = ""

    # --- SELLER ---
    seller_username: str = ""
    seller_feedback_score: int = 0
    seller_feedback_percentage: str = ""

    @property
    def parsed_price(self) -> Optional[float]:
        """Numeric price, or None when missing or unparseable."""
        return parse_price(self.price)


# ============================================================================
# ITEM DETAIL MODEL
# ============================================================================

class ItemDetail(ItemSummary):
    """
    A listing enriched with its per-item detail lookup.

    Example:
        {
            "item_id": "v1|1234|0",
            "title": "Vintage Camera",
            "price": "129.99",
            "currency": "USD",
            "watch_count": 14,
            "quantity_sold": 3,
            "free_shipping": true,
            "returns_accepted": true,
            "return_period": "30 DAY",
            "item_location_country": "US",
            "enrichment_status": "ENRICHED"
        }
    """

    # --- PRICING ---
    original_price: str = ""
    discount_percentage: str = ""

    # --- MEDIA / DESCRIPTION ---
    additional_images: List[str] = Field(default_factory=list)
    short_description: str = ""
    category_path: str = ""
    item_group_id: str = ""

    # --- ENGAGEMENT ---
    watch_count: int = 0
    quantity_sold: int = 0

    # --- SHIPPING ---
    shipping_cost: str = ""
    shipping_type: str = ""
    free_shipping: bool = False
    ship_to_locations: List[str] = Field(default_factory=list)

    # --- RETURNS ---
    returns_accepted: bool = False
    return_period: str = ""
    return_shipping_payer: str = ""

    # --- AVAILABILITY ---
    availability_threshold: int = 0
    availability_threshold_type: str = ""
    estimated_available_quantity: int = 0
    estimated_remaining_quantity: int = 0

    # --- SELLER REPUTATION ---
    top_rated: bool = False
    priority_listing: bool = False

    # --- LOCATION ---
    item_location_city: str = ""
    item_location_state: str = ""
    item_location_country: str = ""

    enrichment_status: EnrichmentStatus = EnrichmentStatus.DEGRADED

    @property
    def stock_level(self) -> int:
        """Best available stock signal; a MORE_THAN threshold is not an exact count."""
        if self.estimated_available_quantity:
            return self.estimated_available_quantity
        if self.estimated_remaining_quantity:
            return self.estimated_remaining_quantity
        if self.availability_threshold and self.availability_threshold_type != "MORE_THAN":
            return self.availability_threshold
        return 0

    @property
    def item_location(self) -> str:
        parts = [self.item_location_city, self.item_location_state, self.item_location_country]
        return ", ".join(part for part in parts if part)


# ============================================================================
# ITEM GROUP MODEL
# ============================================================================

class ItemGroup(BaseModel):
    """
    Variants of one multi-variation listing (e.g. sizes or colors).

    The representative is the cheapest variant (first one wins on ties,
    unparseable prices sort last). Sold and remaining quantities are summed
    across every variant; all other fields come from the representative.
    """
    item_group_id: str
    variants: List[ItemDetail] = Field(default_factory=list)

    def representative(self) -> ItemDetail:
        if not self.variants:
            raise ValueError(f"Item group {self.item_group_id} has no variants")

        cheapest = min(self.variants, key=_price_sort_key)
        return cheapest.model_copy(update={
            "item_group_id": self.item_group_id,
            "quantity_sold": sum(v.quantity_sold for v in self.variants),
            "estimated_remaining_quantity": sum(v.estimated_remaining_quantity for v in self.variants),
        })


def _price_sort_key(item: ItemSummary) -> float:
    price = item.parsed_price
    return math.inf if price is None else price


# ============================================================================
# PARSING HELPERS
# ============================================================================

def parse_price(value: Any) -> Optional[float]:
    """Parse a Browse price value ("12.50", 12.5) into a finite float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(price):
        return None
    return price


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _first(value: Any) -> Dict[str, Any]:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return {}


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _image_urls(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    urls = []
    for image in value:
        if isinstance(image, dict) and image.get("imageUrl"):
            urls.append(str(image["imageUrl"]))
        elif isinstance(image, str) and image:
            urls.append(image)
    return urls


def extract_listing_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a Browse API item payload (summary or detail) into model fields.

    Only fields present in the payload appear in the returned dictionary.
    """
    price = _dict(raw.get("price"))
    marketing = _dict(raw.get("marketingPrice"))
    seller = _dict(raw.get("seller"))
    shipping = _first(raw.get("shippingOptions"))
    shipping_cost = _dict(shipping.get("shippingCost"))
    returns = _dict(raw.get("returnTerms"))
    return_period = _dict(returns.get("returnPeriod"))
    availability = _first(raw.get("estimatedAvailabilities"))
    location = _dict(raw.get("itemLocation"))
    group = _dict(raw.get("primaryItemGroup"))
    regions = _dict(raw.get("shipToLocations")).get("regionIncluded")

    additional_images = _image_urls(raw.get("additionalImages"))
    if additional_images is None:
        additional_images = _image_urls(raw.get("images"))

    period = None
    if return_period.get("value") is not None:
        period = f"{return_period.get('value')} {return_period.get('unit', '')}".strip()

    fields: Dict[str, Any] = {
        "item_id": _as_str(raw.get("itemId")),
        "legacy_item_id": _as_str(raw.get("legacyItemId")),
        "title": _as_str(raw.get("title")),
        "price": _as_str(price.get("value")),
        "currency": _as_str(price.get("currency")),
        "item_url": _as_str(raw.get("itemWebUrl")),
        "image_url": _as_str(_dict(raw.get("image")).get("imageUrl")),
        "condition": _as_str(raw.get("condition")),
        "seller_username": _as_str(seller.get("username")),
        "seller_feedback_score": _as_int(seller.get("feedbackScore")),
        "seller_feedback_percentage": _as_str(seller.get("feedbackPercentage")),
        "original_price": _as_str(_dict(marketing.get("originalPrice")).get("value")),
        "discount_percentage": _as_str(marketing.get("discountPercentage")),
        "additional_images": additional_images,
        "short_description": _as_str(raw.get("shortDescription")),
        "category_path": _as_str(raw.get("categoryPath")),
        "item_group_id": _as_str(group.get("itemGroupId")),
        "watch_count": _as_int(raw.get("watchCount")),
        "quantity_sold": _as_int(availability.get("estimatedSoldQuantity")),
        "shipping_cost": _as_str(shipping_cost.get("value")),
        "shipping_type": _as_str(shipping.get("type") or shipping.get("shippingCostType")),
        "ship_to_locations": (
            [str(r.get("regionName")) for r in regions if isinstance(r, dict) and r.get("regionName")]
            if isinstance(regions, list) else None
        ),
        "returns_accepted": returns.get("returnsAccepted") if isinstance(returns.get("returnsAccepted"), bool) else None,
        "return_period": period,
        "return_shipping_payer": _as_str(returns.get("returnShippingCostPayer")),
        "availability_threshold": _as_int(availability.get("availabilityThreshold")),
        "availability_threshold_type": _as_str(availability.get("availabilityThresholdType")),
        "estimated_available_quantity": _as_int(availability.get("estimatedAvailableQuantity")),
        "estimated_remaining_quantity": _as_int(availability.get("estimatedRemainingQuantity")),
        "top_rated": raw.get("topRatedBuyingExperience") if isinstance(raw.get("topRatedBuyingExperience"), bool) else None,
        "priority_listing": raw.get("priorityListing") if isinstance(raw.get("priorityListing"), bool) else None,
        "item_location_city": _as_str(location.get("city")),
        "item_location_state": _as_str(location.get("stateOrProvince")),
        "item_location_country": _as_str(location.get("country")),
    }

    if shipping_cost.get("value") is not None:
        cost = parse_price(shipping_cost.get("value"))
        fields["free_shipping"] = cost == 0

    return {key: value for key, value in fields.items() if value is not None}


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

_IDENTITY_FIELDS = {"item_id", "legacy_item_id", "item_url"}

def create_item_summary(raw: Dict[str, Any]) -> ItemSummary:
    """
    Build an ItemSummary from one entry of `itemSummaries`.

    Raises:
        pydantic.ValidationError: when the payload has no itemId
    """
    fields = extract_listing_fields(raw)
    return ItemSummary(**{k: v for k, v in fields.items() if k in ItemSummary.model_fields})


def create_item_detail(raw: Dict[str, Any]) -> ItemDetail:
    """Build an ItemDetail from an item (or item group variant) payload."""
    return ItemDetail(**extract_listing_fields(raw))


def create_item_group(item_group_id: str, raw_variants: List[Dict[str, Any]]) -> ItemGroup:
    return ItemGroup(
        item_group_id=item_group_id,
        variants=[create_item_detail(raw) for raw in raw_variants if isinstance(raw, dict)],
    )


def merge_item_detail(
    summary: ItemSummary,
    detail: Optional[ItemDetail] = None,
    status: EnrichmentStatus = EnrichmentStatus.ENRICHED,
) -> ItemDetail:
    """
    Overlay detail fields on the summary.

    Fields the detail lookup returned win; fields it did not return keep the
    summary value; fields absent from both take the model default. Without a
    detail the result is a degraded copy of the summary.

    Identity fields (ids and URL) the summary already has are kept, so a group
    representative never replaces the listing the search returned.
    """
    data = summary.model_dump(exclude_unset=True)
    if detail is None:
        status = EnrichmentStatus.DEGRADED
    else:
        overlay = detail.model_dump(exclude_unset=True, exclude={"enrichment_status"})
        for key in _IDENTITY_FIELDS.intersection(data):
            overlay.pop(key, None)
        data.update(overlay)
    data["enrichment_status"] = status
    return ItemDetail(**data)
