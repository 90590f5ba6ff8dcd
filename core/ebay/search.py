"""
Category search against the Browse item_summary/search endpoint.

One call returns one page of fixed-price listings with a positive price.
Failures are classified for the caller and never retried here:
    - no listings                 -> NoResultsError
    - HTTP 429 / rate-limit id    -> RateLimitedError (fixed cool-down guidance)
    - anything else unsuccessful  -> UpstreamError
"""
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from pydantic import ValidationError

from core.ebay.api import (
    BrowseApi,
    BrowseApiConfig,
    is_rate_limited,
    is_success,
    response_body,
)
from core.ebay.auth import TokenProvider
from core.errors import NoResultsError, RateLimitedError, UpstreamError
from core.logging import get_logger
from core.models.listing import ItemSummary, create_item_summary

logger = get_logger("ebay-search")


SEARCH_PATH = "/item_summary/search"
MAX_SEARCH_LIMIT = 200
FIXED_PRICE_FILTER = "price:[1..],buyingOptions:{FIXED_PRICE}"
DEFAULT_RATE_LIMIT_COOLDOWN = 3600


@dataclass
class SearchPage:
    """One page of search results plus pagination metadata."""
    category_id: str
    items: List[ItemSummary] = field(default_factory=list)
    total: int = 0
    limit: int = 0
    offset: int = 0


class SearchClient(BrowseApi):
    """
    Browse search client.

    Example:
        client = SearchClient(token_provider)
        page = client.search("293", limit=20)
        print(page.total, [item.title for item in page.items])
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        config: Optional[BrowseApiConfig] = None,
        session: Optional[requests.Session] = None,
        rate_limit_cooldown: int = DEFAULT_RATE_LIMIT_COOLDOWN,
    ):
        super().__init__(token_provider, config=config, session=session)
        self.rate_limit_cooldown = rate_limit_cooldown

    def search(self, category_id: str, limit: int = 20) -> SearchPage:
        """
        Fetch one page of listings for a category.

        Args:
            category_id: eBay category id
            limit: Requested page size (capped at 200)

        Returns:
            SearchPage with item summaries in upstream order

        Raises:
            AuthError, NoResultsError, RateLimitedError, UpstreamError
        """
        page_size = max(1, min(int(limit), MAX_SEARCH_LIMIT))
        params = {
            "category_ids": category_id,
            "limit": page_size,
            "filter": FIXED_PRICE_FILTER,
        }

        logger.debug("Searching category", extra={"category_id": category_id, "limit": page_size})

        try:
            response = self._get(
                SEARCH_PATH,
                params=params,
                headers={"X-EBAY-C-ENDUSERCTX": self.config.end_user_context},
            )
        except requests.Timeout as e:
            raise UpstreamError(
                f"eBay search timed out after {self.config.timeout}s",
                category_id=category_id,
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(
                f"Failed to fetch data from eBay: {e}",
                category_id=category_id,
            ) from e

        if is_rate_limited(response):
            logger.warning(
                "eBay rate limit hit",
                extra={"category_id": category_id, "status_code": response.status_code},
            )
            raise RateLimitedError(self.rate_limit_cooldown, category_id=category_id)

        if not is_success(response):
            if response.status_code == 401:
                # Token was revoked or expired early; force a new exchange next time
                self.token_provider.invalidate()
            body = response_body(response)
            logger.error(
                "eBay search failed",
                extra={"category_id": category_id, "status_code": response.status_code, "body": body},
            )
            raise UpstreamError(
                f"Failed to fetch data from eBay (HTTP {response.status_code})",
                status_code=response.status_code,
                body=body,
                category_id=category_id,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "eBay search returned an unreadable response",
                status_code=response.status_code,
                body=response_body(response),
                category_id=category_id,
            ) from e

        if not isinstance(data, dict):
            data = {}
        raw_items = data.get("itemSummaries") or []
        if not raw_items:
            raise NoResultsError(category_id=category_id)

        items: List[ItemSummary] = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(create_item_summary(raw))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed item summary",
                    extra={"category_id": category_id, "error": str(e)},
                )

        if not items:
            raise NoResultsError(category_id=category_id)

        page = SearchPage(
            category_id=category_id,
            items=items,
            total=_as_count(data.get("total")),
            limit=_as_count(data.get("limit")) or page_size,
            offset=_as_count(data.get("offset")),
        )
        logger.info(
            f"Found {len(items)} listings",
            extra={"category_id": category_id, "total": page.total},
        )
        return page


def _as_count(value) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0
