"""Extractor interfaces."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from collection_crawler.models import Collection, Item


class PageExtractor(Protocol):
    def extract_collections(self) -> Sequence[Collection]:
        """Read collection descriptors (with empty items) from the current page."""

    def extract_items(self) -> Sequence[Item]:
        """Read the ordered items of the collection currently rendered."""
