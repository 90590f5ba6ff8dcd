"""
Category statistics over the final enriched item set.

Pure functions: no I/O, no network.
"""
from typing import List

from core.models.category import CategoryStats
from core.models.listing import ItemDetail


def compute_category_stats(items: List[ItemDetail]) -> CategoryStats:
    """
    Price range, averages and watcher totals for a category.

    Prices that are missing, unparseable or not positive are left out of the
    price figures. Watcher figures use every item (missing counts as 0).
    An empty item set gives all-zero stats.
    """
    if not items:
        return CategoryStats()

    prices = [price for price in (item.parsed_price for item in items) if price is not None and price > 0]
    watchers = [item.watch_count for item in items]
    total_watchers = sum(watchers)

    return CategoryStats(
        avg_price=sum(prices) / len(prices) if prices else 0.0,
        min_price=min(prices) if prices else 0.0,
        max_price=max(prices) if prices else 0.0,
        total_listings=len(items),
        total_watchers=total_watchers,
        avg_watchers=total_watchers / len(watchers),
    )
