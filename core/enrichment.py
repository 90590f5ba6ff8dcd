"""
Detail Enricher - bounded fan-out of per-item detail lookups.

Each search summary gets one detail lookup, plus an item-group lookup when the
detail says the listing has variations. Lookups run on a thread pool capped at
`max_workers` so a run never has more than that many requests in flight.

Enrichment is best-effort per item: a failed lookup yields a DEGRADED outcome
carrying the summary fields only, and the run carries on. An AuthError (no
usable token) is not per-item and aborts the whole run. Outcomes come back
in the order of the input summaries.

Example:
    enricher = DetailEnricher(item_client, max_workers=5)
    outcomes = enricher.enrich_all(page.items)
    degraded = sum(1 for o in outcomes if o.degraded)
"""
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Protocol

from pydantic import ValidationError

from core.errors import ItemLookupError
from core.logging import get_logger
from core.models.listing import (
    EnrichmentStatus,
    ItemDetail,
    ItemGroup,
    ItemSummary,
    merge_item_detail,
)

logger = get_logger("enrichment")


DEFAULT_MAX_WORKERS = 5


class ItemLookup(Protocol):
    """What the enricher needs from an item client."""

    def get_item(self, item_id: str) -> ItemDetail: ...

    def get_item_group(self, item_group_id: str) -> ItemGroup: ...


@dataclass
class EnrichmentOutcome:
    """
    Result of enriching one summary.

    Attributes:
        item: The item as it goes into the final result
        status: ENRICHED, GROUPED or DEGRADED
        error: Why the detail (or group) lookup failed, if it did
    """
    item: ItemDetail
    status: EnrichmentStatus
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status == EnrichmentStatus.DEGRADED


class DetailEnricher:
    """Enriches item summaries with detail and item-group lookups."""

    def __init__(self, item_client: ItemLookup, max_workers: int = DEFAULT_MAX_WORKERS):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.item_client = item_client
        self.max_workers = max_workers

    def enrich(self, summaries: List[ItemSummary]) -> List[ItemDetail]:
        """Enriched items in input order; never fails as a whole."""
        return [outcome.item for outcome in self.enrich_all(summaries)]

    def enrich_all(self, summaries: List[ItemSummary]) -> List[EnrichmentOutcome]:
        """
        Enrich every summary on the bounded worker pool.

        Returns only once every lookup has finished or failed. If the wait is
        interrupted, pending lookups are cancelled and the interruption
        propagates; lookups already running finish on their own.
        """
        if not summaries:
            return []

        logger.info(
            f"Fetching detailed data for {len(summaries)} items",
            extra={"max_workers": self.max_workers},
        )

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(summaries)),
            thread_name_prefix="enrich",
        )
        futures: List[Future] = []
        try:
            futures = [executor.submit(self.enrich_one, summary) for summary in summaries]
            outcomes = [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        degraded = sum(1 for outcome in outcomes if outcome.degraded)
        if degraded:
            logger.warning(
                f"{degraded} of {len(outcomes)} items kept summary data only",
                extra={"degraded": degraded, "total": len(outcomes)},
            )
        return outcomes

    def enrich_one(self, summary: ItemSummary) -> EnrichmentOutcome:
        """
        Enrich a single summary.

        Lookup failures degrade the item instead of raising. AuthError
        propagates: without a token every lookup would fail the same way.
        """
        try:
            detail = self.item_client.get_item(summary.item_id)
        except (ItemLookupError, ValidationError) as e:
            logger.warning(
                f"Could not fetch details for item {summary.item_id}: {e}",
                extra={"item_id": summary.item_id},
            )
            return EnrichmentOutcome(
                item=merge_item_detail(summary, None),
                status=EnrichmentStatus.DEGRADED,
                error=str(e),
            )

        if not detail.item_group_id:
            return EnrichmentOutcome(
                item=merge_item_detail(summary, detail, EnrichmentStatus.ENRICHED),
                status=EnrichmentStatus.ENRICHED,
            )

        try:
            group = self.item_client.get_item_group(detail.item_group_id)
            representative = group.representative()
        except (ItemLookupError, ValidationError, ValueError) as e:
            logger.warning(
                f"Could not fetch item group {detail.item_group_id}: {e}",
                extra={"item_id": summary.item_id, "item_group_id": detail.item_group_id},
            )
            return EnrichmentOutcome(
                item=merge_item_detail(summary, detail, EnrichmentStatus.ENRICHED),
                status=EnrichmentStatus.ENRICHED,
                error=str(e),
            )

        return EnrichmentOutcome(
            item=merge_item_detail(summary, representative, EnrichmentStatus.GROUPED),
            status=EnrichmentStatus.GROUPED,
        )
