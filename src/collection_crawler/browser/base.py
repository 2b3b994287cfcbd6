"""Session driver contract consumed by the crawl engine."""

from __future__ import annotations

from typing import Any, Protocol

SCROLL_TO_BOTTOM_SCRIPT = "window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_TOP_SCRIPT = "window.scrollTo(0, 0)"
CONTENT_EXTENT_SCRIPT = "document.body.scrollHeight"


class SessionDriver(Protocol):
    """One navigable, scriptable page.

    Implementations raise ``TransientNetworkError`` when navigation or a wait
    fails and ``FatalSessionError`` when the session can no longer be used.
    """

    def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """Navigate to ``url`` and return once ``wait_until`` is satisfied."""

    def evaluate(self, script: str) -> Any:
        """Evaluate a JavaScript expression and return its value."""

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        """Block until ``selector`` is attached or ``timeout_ms`` elapses."""
