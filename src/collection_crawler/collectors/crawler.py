"""Two-phase collection crawl: discover collections, then expand each one."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
import json
import logging
import time
from typing import Any

from collection_crawler.browser.base import SessionDriver
from collection_crawler.collectors.base import CrawlResult, ExpansionResult, ScrollBounds
from collection_crawler.collectors.pager import ScrollPager
from collection_crawler.config import CrawlConfig
from collection_crawler.diagnostics.events import (
    COLLECTION_EXPANDED,
    COLLECTION_FAILED,
    COLLECTION_RESUMED,
    CRAWL_COMPLETED,
    DISCOVERY_COMPLETED,
    JsonlEventLogger,
)
from collection_crawler.errors import (
    DiagnosticsError,
    DiscoveryError,
    ExtractionError,
    FatalSessionError,
)
from collection_crawler.extract.base import PageExtractor
from collection_crawler.models import Collection, Item, unique_collections, unique_items
from collection_crawler.scheduler.rate import RateLimiter
from collection_crawler.scheduler.retry import RetryPolicy, call_with_retry
from collection_crawler.store.checkpoint import CheckpointWriter, item_to_dict

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], None]


class CollectionCrawler:
    """Crawl collections and their items over one borrowed session.

    The crawler never opens or closes the session. All navigation, scrolling
    and extraction happen strictly in sequence. The checkpoint is rewritten in
    full after every expanded collection.
    """

    def __init__(
        self,
        session: SessionDriver,
        extractor: PageExtractor,
        writer: CheckpointWriter,
        *,
        config: CrawlConfig = CrawlConfig(),
        pager: ScrollPager | None = None,
        rate_limiter: RateLimiter | None = None,
        event_logger: JsonlEventLogger | None = None,
        run_id: str | None = None,
        sleep: SleepFn = time.sleep,
    ) -> None:
        self._session = session
        self._extractor = extractor
        self._writer = writer
        self._config = config
        self._pager = pager or ScrollPager(sleep=sleep)
        self._rate_limiter = rate_limiter or RateLimiter(sleep=sleep)
        self._event_logger = event_logger
        self._sleep = sleep
        self.run_id = run_id or _new_run_id("crawl")
        self._root_bounds = ScrollBounds(
            max_steps=config.max_scrolls,
            stall_threshold=config.stall_threshold,
            settle_delay_ms=config.settle_delay_ms,
        )
        self._collection_bounds = ScrollBounds(
            max_steps=config.collection_max_scrolls,
            stall_threshold=config.stall_threshold,
            settle_delay_ms=config.settle_delay_ms,
        )
        self._retry_policy = RetryPolicy(
            retries=config.navigation_retries,
            base_delay_ms=config.retry_base_delay_ms,
        )

    def crawl(self, previous: Sequence[Collection] | None = None) -> CrawlResult:
        """Run discovery then expansion.

        Collections in ``previous`` (a loaded checkpoint) that already hold
        items are carried over verbatim. Checkpointed collections with no items
        are expanded again, since an empty entry may stand for a failed
        expansion. A successful discovery always produces a checkpoint, even
        an empty one.
        """
        discovered = self.discover()
        carried = {
            collection.collection_id: collection
            for collection in previous or ()
            if collection.items
        }

        completed: list[Collection] = []
        outcomes: list[ExpansionResult] = []
        resumed: list[str] = []
        writes = 0

        for index, collection in enumerate(discovered, start=1):
            prior = carried.get(collection.collection_id)
            if prior is not None:
                completed.append(prior)
                resumed.append(collection.collection_id)
                logger.info(
                    "Skipping collection %d/%d: %s (already checkpointed)",
                    index,
                    len(discovered),
                    collection.name,
                )
                self._emit(
                    COLLECTION_RESUMED,
                    collection.collection_id,
                    {"item_count": len(prior.items)},
                )
                continue

            if outcomes:
                self._rate_limiter.delay(self._config.collection_delay_ms)

            logger.info("Crawling collection %d/%d: %s", index, len(discovered), collection.name)
            outcome = self.expand(collection)
            outcomes.append(outcome)
            completed.append(collection.with_items(outcome.items))

            self._writer.write(tuple(completed))
            writes += 1

        if writes == 0:
            self._writer.write(tuple(completed))
            writes += 1

        result = CrawlResult(
            collections=tuple(completed),
            outcomes=tuple(outcomes),
            resumed=tuple(resumed),
            checkpoint_writes=writes,
        )
        logger.info(
            "Crawled %d collections (%d expanded, %d failed, %d resumed, %d items)",
            len(result.collections),
            result.succeeded,
            result.failed,
            len(result.resumed),
            result.total_items,
        )
        self._emit(
            CRAWL_COMPLETED,
            None,
            {
                "collections": len(result.collections),
                "succeeded": result.succeeded,
                "failed": result.failed,
                "resumed": len(result.resumed),
                "items": result.total_items,
                "checkpoint_writes": result.checkpoint_writes,
            },
        )
        return result

    def discover(self) -> tuple[Collection, ...]:
        """Paginate the root listing and return its collections, deduplicated by id.

        Any failure aborts discovery; nothing partial is returned.
        """
        logger.info("Scrolling to load collections...")
        try:
            self._pager.run(self._session, self._root_bounds)
            candidates = tuple(
                candidate.with_items(()) for candidate in self._extractor.extract_collections()
            )
        except FatalSessionError:
            raise
        except Exception as exc:
            logger.error("Failed to discover collections: %s", exc)
            raise DiscoveryError(f"Failed to discover collections: {exc}") from exc

        discovered = unique_collections(candidates)
        duplicates = len(candidates) - len(discovered)
        if duplicates:
            logger.info("Dropped %d duplicate collection element(s)", duplicates)
        logger.info("Found %d collections", len(discovered))
        self._emit(
            DISCOVERY_COMPLETED,
            None,
            {"collections": len(discovered), "duplicates": duplicates},
        )
        return discovered

    def expand(self, collection: Collection) -> ExpansionResult:
        """Navigate to one collection and read its items.

        Failures are returned as ``ExpansionResult.failure`` so the caller can
        move on; only ``FatalSessionError`` propagates.
        """
        scroll_steps = 0
        try:
            logger.info("Navigating to collection: %s", collection.url)
            call_with_retry(
                lambda: self._session.navigate(
                    collection.url, self._config.navigation_wait_until
                ),
                self._retry_policy,
                description=f"Navigation to {collection.url}",
                sleep=self._sleep,
            )
            if self._config.item_ready_selector:
                self._session.wait_for_selector(
                    self._config.item_ready_selector,
                    self._config.item_ready_timeout_ms,
                )
            summary = self._pager.run(self._session, self._collection_bounds)
            scroll_steps = summary.steps
            items = unique_items(self._extractor.extract_items())
            _check_serializable(items)
        except FatalSessionError:
            raise
        except Exception as exc:
            logger.error(
                "Failed to extract posts from collection %s: %s", collection.url, exc
            )
            self._emit(
                COLLECTION_FAILED,
                collection.collection_id,
                {"url": collection.url, "error": str(exc), "scroll_steps": scroll_steps},
            )
            return ExpansionResult.failure(
                collection.collection_id, exc, scroll_steps=scroll_steps
            )

        logger.info("Extracted %d posts from collection", len(items))
        self._emit(
            COLLECTION_EXPANDED,
            collection.collection_id,
            {"url": collection.url, "item_count": len(items), "scroll_steps": scroll_steps},
        )
        return ExpansionResult.success(
            collection.collection_id, items, scroll_steps=scroll_steps
        )

    def _emit(self, event_type: str, collection_id: str | None, payload: dict[str, Any]) -> None:
        if self._event_logger is None:
            return
        try:
            self._event_logger.append(
                event_type,
                run_id=self.run_id,
                collection_id=collection_id,
                payload=payload,
            )
        except DiagnosticsError as exc:
            logger.warning("Could not record %s event: %s", event_type, exc)


def _check_serializable(items: tuple[Item, ...]) -> None:
    for item in items:
        try:
            json.dumps(item_to_dict(item))
        except (TypeError, ValueError) as exc:
            raise ExtractionError(
                f"Item {item.item_id} has a detail record that cannot be saved as JSON: {exc}"
            ) from exc


def _new_run_id(prefix: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    return f"{prefix}-{stamp}"
