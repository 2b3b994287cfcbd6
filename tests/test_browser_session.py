"""Browser session lifecycle and driver adapter behavior."""

from __future__ import annotations

from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
import pytest

from collection_crawler.browser.session import PlaywrightBrowserSession, PlaywrightSessionDriver
from collection_crawler.config import BrowserConfig, RuntimeConfig
from collection_crawler.errors import BrowserError, FatalSessionError, TransientNetworkError


class FakePage:
    def __init__(
        self,
        *,
        goto_error: Exception | None = None,
        evaluate_error: Exception | None = None,
        wait_error: Exception | None = None,
    ) -> None:
        self.navigation_timeouts: list[int] = []
        self.goto_calls: list[tuple[str, dict[str, object]]] = []
        self.wait_calls: list[tuple[str, int | None]] = []
        self.goto_error = goto_error
        self.evaluate_error = evaluate_error
        self.wait_error = wait_error

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeouts.append(timeout)

    def goto(self, url: str, **kwargs: object) -> None:
        self.goto_calls.append((url, kwargs))
        if self.goto_error is not None:
            raise self.goto_error

    def evaluate(self, expression: str) -> object:
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return len(expression)

    def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        self.wait_calls.append((selector, timeout))
        if self.wait_error is not None:
            raise self.wait_error


class FakeContext:
    def __init__(
        self,
        *,
        events: list[str] | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.default_timeout_ms: int | None = None
        self.new_page_calls = 0
        self.events = events
        self.close_error = close_error

    def set_default_timeout(self, timeout_ms: int) -> None:
        self.default_timeout_ms = timeout_ms

    def new_page(self) -> FakePage:
        self.new_page_calls += 1
        return FakePage()

    def close(self) -> None:
        if self.events is not None:
            self.events.append("context.close")
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    def __init__(self, context: FakeContext, *, events: list[str] | None = None) -> None:
        self.context = context
        self.new_context_kwargs: dict[str, object] | None = None
        self.events = events

    def new_context(self, **kwargs: object) -> FakeContext:
        self.new_context_kwargs = kwargs
        return self.context

    def close(self) -> None:
        if self.events is not None:
            self.events.append("browser.close")


class FakeLauncher:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.launch_headless_values: list[bool] = []

    def launch(self, *, headless: bool) -> FakeBrowser:
        self.launch_headless_values.append(headless)
        return self.browser


class FakePlaywright:
    def __init__(self, **engines: FakeLauncher) -> None:
        for name, launcher in engines.items():
            setattr(self, name, launcher)


class FakePlaywrightContextManager:
    def __init__(self, playwright: FakePlaywright, *, events: list[str] | None = None) -> None:
        self.playwright = playwright
        self.events = events
        self.entered = 0
        self.exited = 0

    def __enter__(self) -> FakePlaywright:
        self.entered += 1
        return self.playwright

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        self.exited += 1
        if self.events is not None:
            self.events.append("playwright.exit")
        return False


def _config(**browser_overrides: object) -> RuntimeConfig:
    return RuntimeConfig(browser=BrowserConfig(**browser_overrides))


def _manager(context: FakeContext | None = None) -> tuple[FakePlaywrightContextManager, FakeLauncher, FakeBrowser]:
    browser = FakeBrowser(context or FakeContext())
    launcher = FakeLauncher(browser)
    return FakePlaywrightContextManager(FakePlaywright(chromium=launcher)), launcher, browser


def test_open_and_driver_wire_defaults_from_config() -> None:
    context = FakeContext()
    manager, launcher, browser = _manager(context)

    session = PlaywrightBrowserSession(
        _config(
            headless=True,
            navigation_timeout_ms=12_345,
            action_timeout_ms=4_321,
            viewport_width=1440,
            viewport_height=900,
            locale="en-GB",
            storage_state="/tmp/state.json",
        ),
        playwright_factory=lambda: manager,
    )

    session.open()
    driver = session.driver()

    assert launcher.launch_headless_values == [True]
    assert browser.new_context_kwargs == {
        "locale": "en-GB",
        "viewport": {"width": 1440, "height": 900},
        "storage_state": "/tmp/state.json",
    }
    assert context.default_timeout_ms == 4_321
    assert driver.page.navigation_timeouts == [12_345]

    session.close()
    assert manager.entered == 1
    assert manager.exited == 1


def test_storage_state_override_takes_precedence_over_config() -> None:
    manager, _, browser = _manager()
    session = PlaywrightBrowserSession(
        _config(storage_state="/tmp/config-state.json"),
        headless=False,
        storage_state=Path("/tmp/override.json"),
        playwright_factory=lambda: manager,
    )

    session.open()

    assert browser.new_context_kwargs is not None
    assert browser.new_context_kwargs["storage_state"] == "/tmp/override.json"
    assert session.options.headless is False


def test_driver_is_created_once_per_session() -> None:
    context = FakeContext()
    manager, _, _ = _manager(context)
    session = PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager)

    first = session.driver()
    second = session.driver()

    assert first is second
    assert manager.entered == 1
    assert context.new_page_calls == 1


def test_close_attempts_full_teardown_even_if_context_close_fails() -> None:
    events: list[str] = []
    context = FakeContext(events=events, close_error=RuntimeError("context boom"))
    browser = FakeBrowser(context, events=events)
    manager = FakePlaywrightContextManager(
        FakePlaywright(chromium=FakeLauncher(browser)), events=events
    )

    session = PlaywrightBrowserSession(_config(), playwright_factory=lambda: manager)
    session.open()

    with pytest.raises(BrowserError, match="context boom"):
        session.close()

    assert events == ["context.close", "browser.close", "playwright.exit"]
    session.close()


def test_open_raises_for_unsupported_engine() -> None:
    manager, _, _ = _manager()
    session = PlaywrightBrowserSession(_config(engine="firefox"), playwright_factory=lambda: manager)

    with pytest.raises(BrowserError, match="Unsupported browser engine"):
        session.open()


def test_driver_navigate_passes_wait_policy_and_timeout() -> None:
    page = FakePage()
    driver = PlaywrightSessionDriver(page, navigation_timeout_ms=9_000)

    driver.navigate("https://example.test/saved/", "load")

    assert page.goto_calls == [
        ("https://example.test/saved/", {"wait_until": "load", "timeout": 9_000})
    ]


def test_driver_maps_navigation_timeout_to_transient_error() -> None:
    driver = PlaywrightSessionDriver(FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded")))

    with pytest.raises(TransientNetworkError, match="timed out"):
        driver.navigate("https://example.test/saved/")


def test_driver_maps_closed_page_to_fatal_session_error() -> None:
    driver = PlaywrightSessionDriver(
        FakePage(goto_error=PlaywrightError("Target page, context or browser has been closed"))
    )

    with pytest.raises(FatalSessionError, match="no longer usable"):
        driver.navigate("https://example.test/saved/")


def test_driver_maps_selector_timeout_to_transient_error() -> None:
    page = FakePage(wait_error=PlaywrightTimeoutError("Timeout 10000ms exceeded"))
    driver = PlaywrightSessionDriver(page)

    with pytest.raises(TransientNetworkError, match="did not appear within 10000ms"):
        driver.wait_for_selector("article", 10_000)
    assert page.wait_calls == [("article", 10_000)]


def test_driver_evaluate_returns_value_and_reraises_script_errors() -> None:
    assert PlaywrightSessionDriver(FakePage()).evaluate("1 + 1") == 5

    driver = PlaywrightSessionDriver(FakePage(evaluate_error=PlaywrightError("ReferenceError: x")))
    with pytest.raises(PlaywrightError, match="ReferenceError"):
        driver.evaluate("x")
