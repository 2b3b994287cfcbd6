"""Browser contracts."""

from .base import (
    CONTENT_EXTENT_SCRIPT,
    SCROLL_TO_BOTTOM_SCRIPT,
    SCROLL_TO_TOP_SCRIPT,
    SessionDriver,
)
from .session import (
    BrowserSessionOptions,
    PlaywrightBrowserSession,
    PlaywrightSessionDriver,
)

__all__ = [
    "CONTENT_EXTENT_SCRIPT",
    "SCROLL_TO_BOTTOM_SCRIPT",
    "SCROLL_TO_TOP_SCRIPT",
    "BrowserSessionOptions",
    "PlaywrightBrowserSession",
    "PlaywrightSessionDriver",
    "SessionDriver",
]
