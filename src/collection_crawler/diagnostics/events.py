"""Append-only JSONL log of crawl progress events."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any

from collection_crawler.errors import DiagnosticsError

CRAWL_EVENT_SCHEMA_VERSION = 1

DISCOVERY_COMPLETED = "discovery_completed"
COLLECTION_EXPANDED = "collection_expanded"
COLLECTION_FAILED = "collection_failed"
COLLECTION_RESUMED = "collection_resumed"
CRAWL_COMPLETED = "crawl_completed"

CRAWL_EVENT_TYPES = frozenset(
    {
        DISCOVERY_COMPLETED,
        COLLECTION_EXPANDED,
        COLLECTION_FAILED,
        COLLECTION_RESUMED,
        CRAWL_COMPLETED,
    }
)
# Events about a single collection must name it; run-level events must not.
_COLLECTION_SCOPED = frozenset({COLLECTION_EXPANDED, COLLECTION_FAILED, COLLECTION_RESUMED})

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class CrawlEvent:
    event_type: str
    run_id: str
    occurred_at: datetime
    collection_id: str | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.event_type not in CRAWL_EVENT_TYPES:
            raise DiagnosticsError(f"Unknown crawl event type '{self.event_type}'.")
        if not self.run_id:
            raise DiagnosticsError("Crawl events need a run_id.")
        scoped = self.event_type in _COLLECTION_SCOPED
        if scoped and not self.collection_id:
            raise DiagnosticsError(f"'{self.event_type}' events need a collection_id.")
        if not scoped and self.collection_id is not None:
            raise DiagnosticsError(f"'{self.event_type}' events do not take a collection_id.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": CRAWL_EVENT_SCHEMA_VERSION,
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "run_id": self.run_id,
            "collection_id": self.collection_id,
            "payload": dict(self.payload),
        }

    @classmethod
    def from_dict(cls, data: object, *, line: int = 0) -> CrawlEvent:
        if not isinstance(data, dict):
            raise DiagnosticsError(f"Event on line {line} is not an object.")
        version = data.get("schema_version")
        if version != CRAWL_EVENT_SCHEMA_VERSION:
            raise DiagnosticsError(
                f"Event on line {line} has schema_version {version!r}; "
                f"this reader understands {CRAWL_EVENT_SCHEMA_VERSION}."
            )
        collection_id = data.get("collection_id")
        if collection_id is not None and not isinstance(collection_id, str):
            raise DiagnosticsError(f"Event on line {line} has a non-string collection_id.")
        payload = data.get("payload")
        if not isinstance(payload, dict):
            raise DiagnosticsError(f"Event on line {line} has no payload object.")
        try:
            occurred_at = datetime.fromisoformat(str(data.get("occurred_at")))
        except ValueError as exc:
            raise DiagnosticsError(f"Event on line {line} has an invalid occurred_at.") from exc
        return cls(
            event_type=str(data.get("event_type")),
            run_id=str(data.get("run_id") or ""),
            occurred_at=occurred_at,
            collection_id=collection_id,
            payload=payload,
        )


class JsonlEventLogger:
    """Write one JSON line per crawl event to ``path``."""

    def __init__(self, path: str | Path, *, clock: Clock | None = None) -> None:
        self._path = Path(path).expanduser()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def path(self) -> Path:
        return self._path

    def append(
        self,
        event_type: str,
        *,
        run_id: str,
        collection_id: str | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> CrawlEvent:
        event = CrawlEvent(
            event_type=event_type,
            run_id=run_id,
            occurred_at=self._clock(),
            collection_id=collection_id,
            payload=dict(payload or {}),
        )
        try:
            line = json.dumps(event.to_dict(), sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise DiagnosticsError(f"'{event_type}' payload is not JSON-serializable: {exc}") from exc
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as stream:
                stream.write(line + "\n")
        except OSError as exc:
            raise DiagnosticsError(f"Could not append crawl event to '{self._path}': {exc}") from exc
        return event

    def read(self) -> tuple[CrawlEvent, ...]:
        return read_crawl_events(self._path)


def read_crawl_events(path: str | Path) -> tuple[CrawlEvent, ...]:
    """Load every event from a JSONL log, rejecting lines this version cannot read."""
    target = Path(path).expanduser()
    try:
        lines = target.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise DiagnosticsError(f"Could not read crawl events from '{target}': {exc}") from exc

    events: list[CrawlEvent] = []
    for number, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DiagnosticsError(f"Line {number} of '{target}' is not valid JSON.") from exc
        events.append(CrawlEvent.from_dict(data, line=number))
    return tuple(events)
