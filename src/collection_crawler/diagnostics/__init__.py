"""Diagnostics contracts."""

from .events import (
    CRAWL_EVENT_SCHEMA_VERSION,
    CRAWL_EVENT_TYPES,
    CrawlEvent,
    JsonlEventLogger,
    read_crawl_events,
)

__all__ = [
    "CRAWL_EVENT_SCHEMA_VERSION",
    "CRAWL_EVENT_TYPES",
    "CrawlEvent",
    "JsonlEventLogger",
    "read_crawl_events",
]
