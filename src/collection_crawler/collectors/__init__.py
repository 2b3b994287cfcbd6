"""Collector contracts."""

from .base import (
    CrawlResult,
    ExpansionResult,
    GrowthSample,
    PaginationSummary,
    ScrollBounds,
)
from .crawler import CollectionCrawler
from .pager import ScrollPager

__all__ = [
    "CollectionCrawler",
    "CrawlResult",
    "ExpansionResult",
    "GrowthSample",
    "PaginationSummary",
    "ScrollBounds",
    "ScrollPager",
]
