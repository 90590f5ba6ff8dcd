#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for category statistics and the static category table.
"""
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.categories import (
    Category,
    CATEGORIES,
    get_all_category_ids,
    get_category_by_id,
    is_supported_category,
    list_categories,
)
from core.models.category import CategoryStats
from core.models.listing import ItemDetail
from core.stats import compute_category_stats


def item(price, watchers=0):
    return ItemDetail(item_id=f"v1|{price}|0", price=price, watch_count=watchers)


def test_empty_input():
    """Test that no items gives all-zero stats."""
    print("\n=== Test 1: Empty Input ===")

    stats = compute_category_stats([])

    assert stats == CategoryStats()
    assert stats.avg_price == 0.0
    assert stats.total_listings == 0
    assert stats.avg_watchers == 0.0
    print("✓ Empty input passed")


def test_price_and_watcher_stats():
    """Test min/max/avg prices and watcher totals."""
    print("\n=== Test 2: Price and Watcher Stats ===")

    stats = compute_category_stats([item("10.00", 4), item("30.00", 0), item("20.00", 2)])

    assert stats.min_price == 10.0
    assert stats.max_price == 30.0
    assert stats.avg_price == 20.0
    assert stats.total_listings == 3
    assert stats.total_watchers == 6
    assert stats.avg_watchers == 2.0
    print(f"✓ avg={stats.avg_price}, watchers={stats.total_watchers}")


def test_invalid_prices_filtered():
    """Test that unparseable and non-positive prices are left out of price stats only."""
    print("\n=== Test 3: Invalid Prices ===")

    items = [item("12.00", 1), item("", 3), item("N/A", 0), item("0", 5), item("-4.00", 1), item("8.00", 2)]
    stats = compute_category_stats(items)

    assert stats.min_price == 8.0
    assert stats.max_price == 12.0
    assert stats.avg_price == 10.0
    assert stats.total_listings == 6
    assert stats.total_watchers == 12
    assert stats.avg_watchers == 2.0

    stats = compute_category_stats([item("", 3), item("free", 1)])
    assert (stats.min_price, stats.max_price, stats.avg_price) == (0.0, 0.0, 0.0)
    assert stats.total_listings == 2
    assert stats.avg_watchers == 2.0

    print("✓ Invalid prices passed")


def test_category_table():
    """Test the static category table lookups."""
    print("\n=== Test 4: Category Table ===")

    categories = list_categories()
    assert len(categories) == len(Category) == len(CATEGORIES) == 13
    assert categories[0].id == "6000"

    electronics = get_category_by_id("293")
    assert electronics is not None
    assert electronics.name == "Electronics"

    assert get_category_by_id("424242") is None
    assert is_supported_category("281")
    assert not is_supported_category("424242")
    assert len(set(get_all_category_ids())) == 13

    print("✓ Category table passed")


def main():
    """Run all tests."""
    print("=" * 60)
    print("CATEGORY STATS TEST SUITE")
    print("=" * 60)

    tests = [
        test_empty_input,
        test_price_and_watcher_stats,
        test_invalid_prices_filtered,
        test_category_table,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            failed += 1
            print(f"\n❌ FAILED: {test.__name__}")
            print(f"   Error: {e}")
        except Exception as e:
            failed += 1
            print(f"\n❌ ERROR: {test.__name__}")
            print(f"   Exception: {type(e).__name__}: {e}")

    print("\n" + "=" * 60)
    print(f"SUMMARY: {passed} passed, {failed} failed")
    print("=" * 60)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    exit(main())
