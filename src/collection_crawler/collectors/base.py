"""Result contracts for pagination and collection expansion."""

from __future__ import annotations

from dataclasses import dataclass

from collection_crawler.models import Collection, Item


@dataclass(frozen=True)
class ScrollBounds:
    max_steps: int = 10
    stall_threshold: int = 2
    settle_delay_ms: int = 2_000


@dataclass(frozen=True)
class GrowthSample:
    step: int
    extent: int | None
    growth: int
    error: str | None = None


@dataclass(frozen=True)
class PaginationSummary:
    steps: int
    stalled: bool
    final_extent: int | None
    errors: int = 0


@dataclass(frozen=True)
class ExpansionResult:
    """Outcome of expanding one collection: its items or the error that stopped it."""

    collection_id: str
    items: tuple[Item, ...] = ()
    error: Exception | None = None
    scroll_steps: int = 0

    @classmethod
    def success(
        cls, collection_id: str, items: tuple[Item, ...], *, scroll_steps: int = 0
    ) -> ExpansionResult:
        return cls(collection_id=collection_id, items=items, scroll_steps=scroll_steps)

    @classmethod
    def failure(
        cls, collection_id: str, error: Exception, *, scroll_steps: int = 0
    ) -> ExpansionResult:
        return cls(collection_id=collection_id, error=error, scroll_steps=scroll_steps)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CrawlResult:
    collections: tuple[Collection, ...]
    outcomes: tuple[ExpansionResult, ...]
    resumed: tuple[str, ...] = ()
    checkpoint_writes: int = 0

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

    @property
    def total_items(self) -> int:
        return sum(len(collection.items) for collection in self.collections)
