"""Data model contracts for cross-module use."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Item:
    item_id: str
    url: str
    detail: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class Collection:
    collection_id: str
    owner: str
    name: str
    url: str
    items: tuple[Item, ...] = ()

    def with_items(self, items: Iterable[Item]) -> Collection:
        """Return a copy holding ``items`` deduplicated by id, first seen wins."""
        return replace(self, items=unique_items(items))


def unique_collections(collections: Iterable[Collection]) -> tuple[Collection, ...]:
    seen: set[str] = set()
    ordered: list[Collection] = []
    for collection in collections:
        if collection.collection_id in seen:
            continue
        seen.add(collection.collection_id)
        ordered.append(collection)
    return tuple(ordered)


def unique_items(items: Iterable[Item]) -> tuple[Item, ...]:
    seen: set[str] = set()
    ordered: list[Item] = []
    for item in items:
        if item.item_id in seen:
            continue
        seen.add(item.item_id)
        ordered.append(item)
    return tuple(ordered)
