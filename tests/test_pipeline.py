#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for the category data pipeline.
Validates cache-first behaviour, idempotent cached answers, persist failures,
degraded enrichment and error stage reporting.
"""
import sys
import warnings
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.cache import CacheStore, MemorySnapshotStorage, make_cache_key
from core.config import Config
from core.ebay import BrowseApiConfig, ItemClient, SearchClient, TokenProvider
from core.ebay.search import SearchPage
from core.enrichment import DetailEnricher
from core.errors import (
    AuthError,
    CacheStorageError,
    ItemLookupError,
    RateLimitedError,
    UpstreamError,
)
from core.models.listing import create_item_detail, create_item_summary
from core.pipeline import CategoryPipeline, PipelineStage, build_pipeline, list_categories

from fakes import FakeClock, FakeResponse, FakeSession, browse_item


TTL = 2 * 60 * 60


class FakeSearchClient:
    def __init__(self, pages=None, error=None):
        self.pages = pages or {}
        self.error = error
        self.calls = []

    def search(self, category_id, limit=20):
        self.calls.append((category_id, limit))
        if self.error is not None:
            raise self.error
        return self.pages[category_id]


class FakeItemClient:
    def __init__(self, details, failing=()):
        self.details = details
        self.failing = set(failing)

    def get_item(self, item_id):
        if item_id in self.failing:
            raise ItemLookupError(item_id, "HTTP 500", 500)
        return create_item_detail(self.details[item_id])

    def get_item_group(self, item_group_id):
        raise AssertionError("no groups in these tests")


def electronics_page():
    return SearchPage(
        category_id="293",
        items=[
            create_item_summary(browse_item("v1|1|0", price="10.00")),
            create_item_summary(browse_item("v1|2|0", price="30.00")),
        ],
        total=1532041,
        limit=20,
        offset=0,
    )


def make_pipeline(search=None, storage=None, clock=None, enricher=None):
    clock = clock or FakeClock()
    search = search or FakeSearchClient({"293": electronics_page()})
    details = {
        "v1|1|0": browse_item("v1|1|0", price="10.00", watchCount=3),
        "v1|2|0": browse_item("v1|2|0", price="30.00", watchCount=1),
    }
    enricher = enricher or DetailEnricher(FakeItemClient(details), max_workers=2)
    store = CacheStore(storage or MemorySnapshotStorage(), ttl_seconds=TTL, clock=clock)
    return CategoryPipeline(search, enricher, store, search_limit=20), search, store, clock


def test_cache_miss_then_hit():
    """Test the first call fetches and the second is served from cache."""
    print("\n=== Test 1: Cache Miss Then Hit ===")

    pipeline, search, store, clock = make_pipeline()

    fresh = pipeline.get_category_data("293")
    assert fresh.metadata.source_freshness == "fresh"
    assert fresh.metadata.cache_age_seconds is None
    assert fresh.category.name == "Electronics"
    assert [item.item_id for item in fresh.items] == ["v1|1|0", "v1|2|0"]
    assert fresh.stats.avg_price == 20.0
    assert fresh.stats.total_watchers == 4
    assert fresh.total == 1532041
    assert fresh.enrichment.enriched == 2
    assert store.get(make_cache_key("293")) is not None
    assert search.calls == [("293", 20)]

    clock.advance(1830)
    cached = pipeline.get_category_data("293")
    assert cached.metadata.source_freshness == "cached"
    assert cached.metadata.cache_age_seconds == 1830
    assert len(search.calls) == 1  # no upstream call

    print("✓ Cache miss then hit passed")


def test_cached_answers_are_idempotent():
    """Test two cached answers differ only in freshness metadata."""
    print("\n=== Test 2: Idempotent Cached Answers ===")

    pipeline, _, _, clock = make_pipeline()

    fresh = pipeline.get_category_data("293")
    clock.advance(10)
    first = pipeline.get_category_data("293")
    clock.advance(10)
    second = pipeline.get_category_data("293")

    assert first.to_snapshot() == second.to_snapshot() == fresh.to_snapshot()
    assert first.metadata != second.metadata
    print("✓ Idempotent cached answers passed")


def test_expired_entry_refetches():
    """Test an expired snapshot triggers a new upstream fetch."""
    print("\n=== Test 3: Expired Entry ===")

    pipeline, search, _, clock = make_pipeline()

    pipeline.get_category_data("293")
    clock.advance(TTL + 1)
    result = pipeline.get_category_data("293")

    assert result.metadata.source_freshness == "fresh"
    assert len(search.calls) == 2
    print("✓ Expired entry passed")


def test_invalid_cached_shape_is_discarded():
    """Test a snapshot that is not an EnrichedResult is deleted and refetched."""
    print("\n=== Test 4: Invalid Cached Shape ===")

    pipeline, search, store, _ = make_pipeline()
    key = make_cache_key("293")
    store.set(key, {"unexpected": True})

    result = pipeline.get_category_data("293")

    assert result.metadata.source_freshness == "fresh"
    assert len(search.calls) == 1
    assert store.get(key)["category_id"] == "293"
    print("✓ Invalid cached shape passed")


def test_persist_failure_still_returns():
    """Test a failing cache write does not fail the request."""
    print("\n=== Test 5: Persist Failure ===")

    storage = MagicMock()
    storage.read.return_value = None
    storage.write.side_effect = CacheStorageError("read-only file system")
    pipeline, search, _, _ = make_pipeline(storage=storage)

    result = pipeline.get_category_data("293")

    assert result.metadata.source_freshness == "fresh"
    assert len(result.items) == 2
    assert storage.write.call_count == 1
    print("✓ Persist failure passed")


def test_fetch_failure_carries_stage():
    """Test a fatal search error records category and stage, and caches nothing."""
    print("\n=== Test 6: Fetch Failure ===")

    storage = MemorySnapshotStorage()
    search = FakeSearchClient(error=RateLimitedError(3600))
    pipeline, _, _, _ = make_pipeline(search=search, storage=storage)

    with pytest.raises(RateLimitedError) as exc_info:
        pipeline.get_category_data("293")

    error = exc_info.value
    assert error.category_id == "293"
    assert error.stage == PipelineStage.FETCH.value
    assert "category=293" in str(error)
    assert "stage=FETCH" in str(error)
    assert storage.keys() == []
    print(f"✓ {error}")


def test_enrich_failure_carries_stage():
    """Test a fatal error raised during enrichment is tagged ENRICH."""
    print("\n=== Test 7: Enrich Failure ===")

    enricher = MagicMock()
    enricher.enrich.side_effect = UpstreamError("boom", status_code=503)
    pipeline, _, store, _ = make_pipeline(enricher=enricher)

    with pytest.raises(UpstreamError) as exc_info:
        pipeline.get_category_data("293")

    assert exc_info.value.stage == PipelineStage.ENRICH.value
    assert store.get(make_cache_key("293")) is None
    print("✓ Enrich failure passed")


def test_unknown_and_empty_category_ids():
    """Test unknown ids pass through and empty ids are rejected."""
    print("\n=== Test 8: Unknown / Empty Category ===")

    page = electronics_page()
    page.category_id = "424242"
    pipeline, search, _, _ = make_pipeline(search=FakeSearchClient({"424242": page}))

    result = pipeline.get_category_data(" 424242 ")
    assert result.category_id == "424242"
    assert result.category is None
    assert search.calls == [("424242", 20)]

    with pytest.raises(ValueError):
        pipeline.get_category_data("  ")

    print("✓ Unknown / empty category passed")


def test_build_pipeline_wiring():
    """Test the production wiring from configuration."""
    print("\n=== Test 9: Build Pipeline ===")

    cfg = Config()
    cfg.EBAY_APP_ID = "app"
    cfg.EBAY_CERT_ID = "cert"
    cfg.EBAY_ENV = "SANDBOX"
    cfg.EBAY_API_BASE = ""
    cfg.CACHE_BACKEND = "memory"
    cfg.DETAIL_WORKERS = 3
    cfg.SEARCH_LIMIT = 50
    cfg.CACHE_DURATION_HOURS = 1

    pipeline = build_pipeline(cfg)

    assert isinstance(pipeline.search_client, SearchClient)
    assert pipeline.search_client.config.base_url == "https://api.sandbox.ebay.com"
    assert isinstance(pipeline.enricher, DetailEnricher)
    assert pipeline.enricher.max_workers == 3
    assert isinstance(pipeline.enricher.item_client, ItemClient)
    assert isinstance(pipeline.cache_store.storage, MemorySnapshotStorage)
    assert pipeline.cache_store.ttl_seconds == 3600
    assert pipeline.search_limit == 50

    cfg.EBAY_APP_ID = ""
    with pytest.raises(ValueError):
        build_pipeline(cfg)

    print("✓ Build pipeline passed")


def test_list_categories():
    """Test the companion category listing."""
    print("\n=== Test 10: List Categories ===")

    categories = list_categories()
    assert len(categories) == 13
    assert {"id", "name", "description"} <= set(categories[0].model_dump())
    print("✓ List categories passed")


def test_one_failed_lookup_degrades_one_item():
    """Test a single failed detail lookup keeps the run and degrades only that item."""
    print("\n=== Test 11: One Degraded Item ===")

    page = SearchPage(
        category_id="1",
        items=[
            create_item_summary(browse_item("A", price="10.00")),
            create_item_summary(browse_item("B", price="20.00", title="Summary title B")),
            create_item_summary(browse_item("C", price="30.00")),
        ],
        total=3,
        limit=20,
        offset=0,
    )
    details = {
        "A": browse_item("A", price="10.00", watchCount=2),
        "C": browse_item("C", price="30.00", watchCount=5),
    }
    enricher = DetailEnricher(FakeItemClient(details, failing={"B"}), max_workers=3)
    pipeline, _, store, _ = make_pipeline(search=FakeSearchClient({"1": page}), enricher=enricher)

    result = pipeline.get_category_data("1")

    assert len(result.items) == 3
    assert [item.item_id for item in result.items] == ["A", "B", "C"]
    assert result.enrichment.degraded == 1
    assert result.enrichment.enriched == 2
    assert result.metadata.source_freshness == "fresh"

    degraded = result.items[1]
    assert degraded.enrichment_status == "DEGRADED"
    assert degraded.title == "Summary title B"
    assert degraded.price == "20.00"
    assert store.get(make_cache_key("1")) is not None
    print("✓ One degraded item passed")


def test_token_failure_during_enrichment_is_fatal():
    """Test a token that cannot be refreshed mid-run fails the run instead of degrading every item."""
    print("\n=== Test 12: Token Failure During Enrichment ===")

    clock = FakeClock()
    token_posts = []

    def handler(method, url, **kwargs):
        if method == "POST":
            token_posts.append(url)
            if len(token_posts) == 1:
                # Usable for one second once the 300s margin is applied
                return FakeResponse(200, {"access_token": "t1", "expires_in": 301})
            return FakeResponse(401, {"error": "invalid_client"})
        if url.endswith("/item_summary/search"):
            clock.advance(5)
            return FakeResponse(200, {
                "itemSummaries": [browse_item("A"), browse_item("B"), browse_item("C")],
                "total": 3,
            })
        item_id = url.rsplit("/", 1)[-1]
        return FakeResponse(200, browse_item(item_id, watchCount=1))

    session = FakeSession(handler=handler)
    tokens = TokenProvider("app", "cert", safety_margin=300, session=session, clock=clock)
    api_config = BrowseApiConfig()
    search = SearchClient(tokens, config=api_config, session=session)
    enricher = DetailEnricher(ItemClient(tokens, config=api_config, session=session), max_workers=3)

    storage = MemorySnapshotStorage()
    store = CacheStore(storage, ttl_seconds=TTL, clock=clock)
    pipeline = CategoryPipeline(search, enricher, store, search_limit=20)

    with pytest.raises(AuthError) as exc_info:
        pipeline.get_category_data("1")

    error = exc_info.value
    assert error.category_id == "1"
    assert error.stage == PipelineStage.ENRICH.value
    assert len(token_posts) >= 2
    assert not any("/item/" in call["url"] for call in session.calls if call["method"] == "GET")
    assert storage.keys() == []
    print(f"✓ {error}")


def test_sources_compile_without_warnings():
    """Test that no core module triggers invalid escape sequence warnings."""
    print("\n=== Test 13: Clean Compile ===")

    sources = sorted((PROJECT_ROOT / "core").rglob("*.py"))
    assert sources

    for path in sources:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")

    print(f"✓ {len(sources)} modules compiled cleanly")


def main():
    """Run all tests."""
    print("=" * 60)
    print("CATEGORY PIPELINE TEST SUITE")
    print("=" * 60)

    tests = [
        test_cache_miss_then_hit,
        test_cached_answers_are_idempotent,
        test_expired_entry_refetches,
        test_invalid_cached_shape_is_discarded,
        test_persist_failure_still_returns,
        test_fetch_failure_carries_stage,
        test_enrich_failure_carries_stage,
        test_unknown_and_empty_category_ids,
        test_build_pipeline_wiring,
        test_list_categories,
        test_one_failed_lookup_degrades_one_item,
        test_token_failure_during_enrichment_is_fatal,
        test_sources_compile_without_warnings,
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
