"""Checkpointed crawler for paginated collection feeds."""

from .collectors import CollectionCrawler, CrawlResult, ExpansionResult, ScrollPager
from .config import (
    AppConfig,
    BrowserConfig,
    CheckpointConfig,
    CrawlConfig,
    RuntimeConfig,
    config_to_dict,
    default_config,
    init_default_config,
    load_runtime_config,
    resolve_config_path,
)
from .models import Collection, Item
from .scheduler import RateLimiter
from .store import CheckpointWriter, load_checkpoint

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "CheckpointConfig",
    "CheckpointWriter",
    "Collection",
    "CollectionCrawler",
    "CrawlConfig",
    "CrawlResult",
    "ExpansionResult",
    "Item",
    "RateLimiter",
    "RuntimeConfig",
    "ScrollPager",
    "config_to_dict",
    "default_config",
    "init_default_config",
    "load_checkpoint",
    "load_runtime_config",
    "resolve_config_path",
]

__version__ = "0.1.0"
