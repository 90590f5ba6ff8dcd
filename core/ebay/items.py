"""
Per-item lookups: item detail and item group (all variations of a listing).

Every failure, including timeouts, surfaces as ItemLookupError so the
enricher can degrade that single item. AuthError from the token provider is
left as is.
"""
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from core.ebay.api import BrowseApi, is_success
from core.errors import ItemLookupError
from core.models.listing import ItemDetail, ItemGroup, create_item_detail, create_item_group


ITEM_PATH = "/item/{item_id}"
ITEM_GROUP_PATH = "/item/get_items_by_item_group"


class ItemClient(BrowseApi):
    """Browse item and item-group lookups."""

    def get_item(self, item_id: str) -> ItemDetail:
        data = self._fetch_json(ITEM_PATH.format(item_id=quote(item_id, safe="")), None, item_id)
        try:
            return create_item_detail(data)
        except ValidationError as e:
            raise ItemLookupError(item_id, f"invalid item payload: {e}") from e

    def get_item_group(self, item_group_id: str) -> ItemGroup:
        data = self._fetch_json(ITEM_GROUP_PATH, {"item_group_id": item_group_id}, item_group_id)
        raw_variants = data.get("items") or []
        if not raw_variants:
            raise ItemLookupError(item_group_id, "item group has no variants")
        try:
            group = create_item_group(item_group_id, raw_variants)
        except ValidationError as e:
            raise ItemLookupError(item_group_id, f"invalid item group payload: {e}") from e
        if not group.variants:
            raise ItemLookupError(item_group_id, "item group has no variants")
        return group

    def _fetch_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]],
        lookup_id: str,
    ) -> Dict[str, Any]:
        try:
            response = self._get(path, params=params)
        except requests.Timeout as e:
            raise ItemLookupError(lookup_id, f"timed out after {self.config.timeout}s") from e
        except requests.RequestException as e:
            raise ItemLookupError(lookup_id, f"request failed: {e}") from e

        if not is_success(response):
            raise ItemLookupError(lookup_id, f"HTTP {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise ItemLookupError(lookup_id, "response is not valid JSON") from e

        if not isinstance(data, dict):
            raise ItemLookupError(lookup_id, "unexpected response shape")
        return data
