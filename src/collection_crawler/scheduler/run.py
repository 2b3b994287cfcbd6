"""Crawl run orchestration from runtime configuration."""

from __future__ import annotations

from collections.abc import Callable
import logging
import time

from collection_crawler.browser.base import SessionDriver
from collection_crawler.browser.session import PlaywrightBrowserSession
from collection_crawler.collectors.base import CrawlResult
from collection_crawler.collectors.crawler import CollectionCrawler
from collection_crawler.config import RuntimeConfig
from collection_crawler.diagnostics.events import JsonlEventLogger
from collection_crawler.extract.base import PageExtractor
from collection_crawler.logging import configure_logging
from collection_crawler.scheduler.rate import RateLimiter
from collection_crawler.store.checkpoint import CheckpointWriter, load_checkpoint

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], None]
ExtractorFactory = Callable[[SessionDriver], PageExtractor]


def run_configured_crawl(
    config: RuntimeConfig,
    session: SessionDriver,
    extractor: PageExtractor,
    *,
    run_id: str | None = None,
    event_logger: JsonlEventLogger | None = None,
    sleep: SleepFn = time.sleep,
) -> CrawlResult:
    """Execute one crawl over an already-authenticated session.

    When ``browser.start_url`` is set the session is first navigated to the
    root listing; otherwise the session is expected to be there already.
    """
    checkpoint_path = config.checkpoint.path
    previous = None
    if config.crawl.resume:
        previous = load_checkpoint(checkpoint_path)
        if previous is None:
            logger.info("No checkpoint at %s; starting a fresh crawl", checkpoint_path)
        else:
            logger.info("Resuming from %s (%d collections)", checkpoint_path, len(previous))

    if event_logger is None and config.app.event_log:
        event_logger = JsonlEventLogger(config.app.event_log)

    if config.browser.start_url:
        logger.info("Navigating to %s", config.browser.start_url)
        session.navigate(config.browser.start_url, config.crawl.navigation_wait_until)

    crawler = CollectionCrawler(
        session,
        extractor,
        CheckpointWriter(checkpoint_path, indent=config.checkpoint.indent),
        config=config.crawl,
        rate_limiter=RateLimiter(sleep=sleep),
        event_logger=event_logger,
        run_id=run_id,
        sleep=sleep,
    )
    return crawler.crawl(previous)


def run_browser_crawl(
    config: RuntimeConfig,
    extractor_factory: ExtractorFactory,
    *,
    browser_session: PlaywrightBrowserSession | None = None,
    run_id: str | None = None,
    sleep: SleepFn = time.sleep,
) -> CrawlResult:
    """Open a Playwright session from the configured storage state and crawl it."""
    configure_logging(config.app.debug)
    session = browser_session or PlaywrightBrowserSession(config)
    with session:
        driver = session.driver()
        return run_configured_crawl(
            config,
            driver,
            extractor_factory(driver),
            run_id=run_id,
            sleep=sleep,
        )
