"""Whole-document checkpoint persistence with atomic replace."""

from __future__ import annotations

from collections.abc import Iterable
import json
import logging
import os
from pathlib import Path
from typing import Any

from collection_crawler.errors import CheckpointError
from collection_crawler.models import Collection, Item

logger = logging.getLogger(__name__)


class CheckpointWriter:
    """Overwrite one JSON checkpoint so readers only ever see complete documents.

    Each write serializes the given collections up front, writes a sibling
    temporary file, fsyncs it and renames it over the target.
    """

    def __init__(self, path: str | Path, *, indent: int | None = 2) -> None:
        self._path = Path(path).expanduser()
        self._indent = indent
        self.writes = 0

    @property
    def path(self) -> Path:
        return self._path

    def write(self, collections: Iterable[Collection]) -> Path:
        snapshot = tuple(collections)
        try:
            serialized = json.dumps(
                [collection_to_dict(collection) for collection in snapshot],
                indent=self._indent,
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as exc:
            raise CheckpointError(
                f"Could not serialize checkpoint for '{self._path}': {exc}."
            ) from exc
        _write_atomic(self._path, serialized)
        self.writes += 1
        logger.info("Progress saved to %s (%d collections)", self._path, len(snapshot))
        return self._path


def load_checkpoint(path: str | Path) -> tuple[Collection, ...] | None:
    """Read a checkpoint back; ``None`` when no checkpoint exists yet."""
    target = Path(path).expanduser()
    if not target.exists():
        return None

    try:
        raw = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise CheckpointError(
            f"Could not read checkpoint '{target}': {exc}. Check file permissions."
        ) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CheckpointError(f"Checkpoint '{target}' is not valid JSON: {exc}.") from exc

    if not isinstance(data, list):
        raise CheckpointError(f"Checkpoint '{target}' has invalid structure: expected JSON array.")
    return tuple(collection_from_dict(entry, index=index) for index, entry in enumerate(data))


def collection_to_dict(collection: Collection) -> dict[str, Any]:
    return {
        "user": collection.owner,
        "name": collection.name,
        "id": collection.collection_id,
        "url": collection.url,
        "posts": [item_to_dict(item) for item in collection.items],
    }


def item_to_dict(item: Item) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": item.item_id, "url": item.url}
    if item.detail:
        payload["detail"] = dict(item.detail)
    return payload


def collection_from_dict(data: object, *, index: int = 0) -> Collection:
    if not isinstance(data, dict):
        raise CheckpointError(f"Checkpoint entry [{index}] must be an object.")
    posts = data.get("posts")
    if not isinstance(posts, list):
        raise CheckpointError(f"Checkpoint entry [{index}] is missing a 'posts' array.")

    return Collection(
        collection_id=_expect_string(data, "id", index),
        owner=_expect_string(data, "user", index),
        name=_expect_string(data, "name", index),
        url=_expect_string(data, "url", index),
        items=tuple(_item_from_dict(post, index=index) for post in posts),
    )


def _item_from_dict(data: object, *, index: int) -> Item:
    if not isinstance(data, dict):
        raise CheckpointError(f"Checkpoint entry [{index}] has a post that is not an object.")
    detail = data.get("detail")
    if detail is not None and not isinstance(detail, dict):
        raise CheckpointError(f"Checkpoint entry [{index}] has a post with invalid 'detail'.")
    return Item(
        item_id=_expect_string(data, "id", index),
        url=_expect_string(data, "url", index),
        detail=detail,
    )


def _expect_string(data: dict[str, Any], key: str, index: int) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise CheckpointError(f"Checkpoint entry [{index}] field '{key}' must be a string.")
    return value


def _write_atomic(path: Path, serialized: str) -> None:
    temp_path = path.with_name(f"{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with temp_path.open("w", encoding="utf-8") as stream:
            stream.write(serialized)
            stream.write("\n")
            stream.flush()
            os.fsync(stream.fileno())
        os.replace(temp_path, path)
    except OSError as exc:
        raise CheckpointError(
            f"Could not persist checkpoint at '{path}': {exc}. Check directory permissions."
        ) from exc
    finally:
        try:
            if temp_path.exists():
                temp_path.unlink()
        except OSError:
            pass
