"""Playwright browser lifecycle and SessionDriver adapter."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from collection_crawler.config import RuntimeConfig
from collection_crawler.errors import (
    BrowserError,
    FatalSessionError,
    TransientNetworkError,
)

_CLOSED_MARKERS = ("has been closed", "target closed", "browser has disconnected")


@dataclass(frozen=True)
class BrowserSessionOptions:
    engine: str
    headless: bool
    navigation_timeout_ms: int
    action_timeout_ms: int
    locale: str
    viewport_width: int
    viewport_height: int
    storage_state: str | dict[str, Any] | None = None


class PlaywrightSessionDriver:
    """Adapt one Playwright page to the SessionDriver contract."""

    def __init__(self, page: Any, *, navigation_timeout_ms: int = 30_000) -> None:
        self._page = page
        self._navigation_timeout_ms = navigation_timeout_ms

    @property
    def page(self) -> Any:
        return self._page

    def navigate(self, url: str, wait_until: str = "domcontentloaded") -> None:
        try:
            self._page.goto(url, wait_until=wait_until, timeout=self._navigation_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TransientNetworkError(f"Navigation to '{url}' timed out: {exc}") from exc
        except PlaywrightError as exc:
            _raise_if_closed(exc)
            raise TransientNetworkError(f"Could not navigate to '{url}': {exc}") from exc

    def evaluate(self, script: str) -> Any:
        try:
            return self._page.evaluate(script)
        except PlaywrightError as exc:
            _raise_if_closed(exc)
            raise

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        try:
            self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TransientNetworkError(
                f"Selector '{selector}' did not appear within {timeout_ms}ms."
            ) from exc
        except PlaywrightError as exc:
            _raise_if_closed(exc)
            raise TransientNetworkError(f"Waiting for '{selector}' failed: {exc}") from exc


class PlaywrightBrowserSession:
    """Manage one browser/context lifecycle with deterministic teardown.

    The context is opened from a storage state captured elsewhere; this class
    never logs in. It hands out a single driver so the crawl has exactly one
    navigation context.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        headless: bool | None = None,
        storage_state: str | Path | dict[str, Any] | None = None,
        playwright_factory: Callable[[], AbstractContextManager[Any]] | None = None,
    ) -> None:
        browser = config.browser
        resolved_storage_state: str | dict[str, Any] | None
        if storage_state is None:
            resolved_storage_state = browser.storage_state
        elif isinstance(storage_state, Path):
            resolved_storage_state = str(storage_state)
        else:
            resolved_storage_state = storage_state

        self.options = BrowserSessionOptions(
            engine=browser.engine,
            headless=headless if headless is not None else browser.headless,
            navigation_timeout_ms=browser.navigation_timeout_ms,
            action_timeout_ms=browser.action_timeout_ms,
            locale=browser.locale,
            viewport_width=browser.viewport_width,
            viewport_height=browser.viewport_height,
            storage_state=resolved_storage_state,
        )
        self._playwright_factory = playwright_factory or _default_playwright_factory
        self._playwright_cm: AbstractContextManager[Any] | None = None
        self._browser: Any | None = None
        self._context: Any | None = None
        self._driver: PlaywrightSessionDriver | None = None

    def open(self) -> None:
        if self._context is not None:
            return

        try:
            self._playwright_cm = self._playwright_factory()
            playwright = self._playwright_cm.__enter__()

            launcher = getattr(playwright, self.options.engine, None)
            if launcher is None:
                raise BrowserError(
                    f"Unsupported browser engine '{self.options.engine}' for Playwright session."
                )

            self._browser = launcher.launch(headless=self.options.headless)

            context_kwargs: dict[str, Any] = {
                "locale": self.options.locale,
                "viewport": {
                    "width": self.options.viewport_width,
                    "height": self.options.viewport_height,
                },
            }
            if self.options.storage_state is not None:
                context_kwargs["storage_state"] = self.options.storage_state
            self._context = self._browser.new_context(**context_kwargs)
            self._context.set_default_timeout(self.options.action_timeout_ms)
        except BrowserError:
            self._teardown(raise_on_error=False)
            raise
        except Exception as exc:
            self._teardown(raise_on_error=False)
            raise BrowserError(f"Failed to open browser session: {exc}") from exc

    def driver(self) -> PlaywrightSessionDriver:
        """Return the session's single driver, creating its page on first use."""
        if self._driver is not None:
            return self._driver

        if self._context is None:
            self.open()
        if self._context is None:
            raise BrowserError("Browser session is not open.")

        try:
            page = self._context.new_page()
            set_navigation_timeout = getattr(page, "set_default_navigation_timeout", None)
            if callable(set_navigation_timeout):
                set_navigation_timeout(self.options.navigation_timeout_ms)
        except Exception as exc:
            raise BrowserError(f"Failed to create browser page: {exc}") from exc

        self._driver = PlaywrightSessionDriver(
            page, navigation_timeout_ms=self.options.navigation_timeout_ms
        )
        return self._driver

    def close(self) -> None:
        self._teardown(raise_on_error=True)

    def __enter__(self) -> PlaywrightBrowserSession:
        self.open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        try:
            self.close()
        except BrowserError:
            if exc_type is None:
                raise
        return False

    def _teardown(self, *, raise_on_error: bool) -> None:
        errors: list[str] = []
        self._driver = None

        if self._context is not None:
            try:
                self._context.close()
            except Exception as exc:
                errors.append(f"context close failed: {exc}")
            finally:
                self._context = None

        if self._browser is not None:
            try:
                self._browser.close()
            except Exception as exc:
                errors.append(f"browser close failed: {exc}")
            finally:
                self._browser = None

        if self._playwright_cm is not None:
            try:
                self._playwright_cm.__exit__(None, None, None)
            except Exception as exc:
                errors.append(f"playwright teardown failed: {exc}")
            finally:
                self._playwright_cm = None

        if raise_on_error and errors:
            raise BrowserError(
                "Errors occurred during browser session teardown: " + "; ".join(errors)
            )


def _raise_if_closed(exc: Exception) -> None:
    message = str(exc).lower()
    if any(marker in message for marker in _CLOSED_MARKERS):
        raise FatalSessionError(f"Browser session is no longer usable: {exc}") from exc


def _default_playwright_factory() -> AbstractContextManager[Any]:
    from playwright.sync_api import sync_playwright

    return sync_playwright()
