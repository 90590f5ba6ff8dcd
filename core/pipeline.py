"""
Category Data Pipeline - the single entry point for enriched category data.

Stages of one get_category_data() run:

    CACHE_CHECK -> FETCH -> ENRICH -> AGGREGATE -> PERSIST -> DONE
                     |        |         |
                     +--------+---------+--> FAILED  (PipelineError, stage recorded on the error)

A valid cache entry short-circuits everything after CACHE_CHECK. Nothing is
retried: a rate-limited search fails fast with cool-down guidance.

Usage:
    from core.pipeline import build_pipeline

    pipeline = build_pipeline()
    result = pipeline.get_category_data("293")
    print(result.metadata.source_freshness, result.stats.avg_price)
"""
from enum import Enum
from typing import List, Optional, Protocol

from pydantic import ValidationError

from core.cache import CacheStore, create_snapshot_storage, make_cache_key
from core.categories import get_category_by_id
from core.categories import list_categories as _list_categories
from core.config import Config, config
from core.ebay import BrowseApiConfig, ItemClient, SearchClient, TokenProvider, create_session
from core.ebay.search import SearchPage
from core.enrichment import DetailEnricher
from core.errors import CacheStorageError, PipelineError
from core.logging import get_logger, log_execution_time
from core.models.category import (
    CategoryInfo,
    EnrichedResult,
    EnrichmentSummary,
    ResultMetadata,
)
from core.models.listing import ItemDetail, ItemSummary
from core.stats import compute_category_stats

logger = get_logger("pipeline")


class PipelineStage(str, Enum):
    """Where a get_category_data() run is, or where it stopped."""
    CACHE_CHECK = "CACHE_CHECK"
    FETCH = "FETCH"
    ENRICH = "ENRICH"
    AGGREGATE = "AGGREGATE"
    PERSIST = "PERSIST"
    DONE = "DONE"
    FAILED = "FAILED"


class CategorySearch(Protocol):
    def search(self, category_id: str, limit: int = 20) -> SearchPage: ...


class ItemEnricher(Protocol):
    def enrich(self, summaries: List[ItemSummary]) -> List[ItemDetail]: ...


class CategoryPipeline:
    """
    Cache-first orchestration of search, enrichment and aggregation.

    All collaborators are injected; see build_pipeline() for the production wiring.
    """

    def __init__(
        self,
        search_client: CategorySearch,
        enricher: ItemEnricher,
        cache_store: CacheStore,
        search_limit: int = 20,
    ):
        self.search_client = search_client
        self.enricher = enricher
        self.cache_store = cache_store
        self.search_limit = search_limit

    @log_execution_time(logger)
    def get_category_data(self, category_id: str) -> EnrichedResult:
        """
        Enriched listings and stats for one category.

        Args:
            category_id: eBay category id (unknown ids are passed upstream as-is)

        Returns:
            EnrichedResult with metadata.source_freshness "cached" or "fresh"

        Raises:
            ValueError: Empty category id
            AuthError, NoResultsError, RateLimitedError, UpstreamError:
                the run failed; the error carries category_id and stage
        """
        category_id = str(category_id).strip()
        if not category_id:
            raise ValueError("category_id must not be empty")

        key = make_cache_key(category_id)

        cached = self._load_cached(key, category_id)
        if cached is not None:
            return cached

        stage = PipelineStage.FETCH
        try:
            logger.info(f"Fetching category {category_id} from eBay", extra={"category_id": category_id})
            page = self.search_client.search(category_id, limit=self.search_limit)

            stage = PipelineStage.ENRICH
            items = self.enricher.enrich(page.items)

            stage = PipelineStage.AGGREGATE
            result = EnrichedResult(
                category_id=category_id,
                category=get_category_by_id(category_id),
                items=items,
                stats=compute_category_stats(items),
                total=page.total,
                limit=page.limit,
                offset=page.offset,
                enrichment=EnrichmentSummary.from_items(items),
            )
        except PipelineError as e:
            if e.category_id is None:
                e.category_id = category_id
            if e.stage is None:
                e.stage = stage.value
            logger.error(
                f"Category pipeline failed: {e}",
                extra={"category_id": category_id, "stage": e.stage, "pipeline_stage": PipelineStage.FAILED.value},
            )
            raise

        self._persist(key, result)

        result.metadata = ResultMetadata(source_freshness="fresh")
        logger.info(
            f"Category {category_id} ready: {len(result.items)} items",
            extra={
                "category_id": category_id,
                "pipeline_stage": PipelineStage.DONE.value,
                "degraded": result.enrichment.degraded,
            },
        )
        return result

    def _load_cached(self, key: str, category_id: str) -> Optional[EnrichedResult]:
        entry = self.cache_store.lookup(key)
        if entry is None:
            return None

        try:
            result = EnrichedResult.model_validate(entry.payload)
        except ValidationError:
            logger.warning(
                "Cached snapshot has an unexpected shape, discarding",
                extra={"category_id": category_id, "cache_key": key},
            )
            try:
                self.cache_store.delete(key)
            except CacheStorageError as e:
                logger.error(f"Error deleting cache entry: {e}", extra={"cache_key": key})
            return None

        age = entry.age(self.cache_store.clock())
        result.metadata = ResultMetadata(source_freshness="cached", cache_age_seconds=age)
        logger.info(
            f"Using cached data for category {category_id}",
            extra={"category_id": category_id, "cache_age_seconds": round(age, 1)},
        )
        return result

    def _persist(self, key: str, result: EnrichedResult) -> None:
        try:
            self.cache_store.set(key, result.to_snapshot())
        except CacheStorageError as e:
            logger.error(
                f"Error writing cache: {e}",
                extra={"cache_key": key, "pipeline_stage": PipelineStage.PERSIST.value},
            )


def list_categories() -> List[CategoryInfo]:
    """Supported categories, in display order."""
    return _list_categories()


def build_pipeline(cfg: Config = config) -> CategoryPipeline:
    """
    Wire the production pipeline from configuration.

    Raises:
        ValueError: Missing eBay credentials or unknown cache backend
    """
    session = create_session(pool_size=max(cfg.DETAIL_WORKERS, 1))
    base_url = cfg.api_base_url

    tokens = TokenProvider(
        app_id=cfg.EBAY_APP_ID,
        cert_id=cfg.EBAY_CERT_ID,
        base_url=base_url,
        safety_margin=cfg.TOKEN_SAFETY_MARGIN,
        timeout=cfg.REQUEST_TIMEOUT,
        session=session,
    )
    api_config = BrowseApiConfig(
        base_url=base_url,
        marketplace_id=cfg.EBAY_MARKETPLACE,
        timeout=cfg.REQUEST_TIMEOUT,
    )

    search_client = SearchClient(
        tokens,
        config=api_config,
        session=session,
        rate_limit_cooldown=cfg.RATE_LIMIT_COOLDOWN,
    )
    item_client = ItemClient(tokens, config=api_config, session=session)
    enricher = DetailEnricher(item_client, max_workers=cfg.DETAIL_WORKERS)

    cache_store = CacheStore(
        create_snapshot_storage(cfg.CACHE_BACKEND, cfg.CACHE_DIR),
        ttl_seconds=cfg.cache_ttl_seconds,
    )

    logger.info(
        "Category pipeline ready",
        extra={"base_url": base_url, "cache_backend": cfg.CACHE_BACKEND, "detail_workers": cfg.DETAIL_WORKERS},
    )
    return CategoryPipeline(search_client, enricher, cache_store, search_limit=cfg.SEARCH_LIMIT)
