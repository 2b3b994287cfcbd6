"""Infinite-scroll pagination with explicit step and stall bounds."""

from __future__ import annotations

from collections.abc import Callable, Iterator
import logging
import time

from collection_crawler.browser.base import (
    CONTENT_EXTENT_SCRIPT,
    SCROLL_TO_BOTTOM_SCRIPT,
    SCROLL_TO_TOP_SCRIPT,
    SessionDriver,
)
from collection_crawler.collectors.base import GrowthSample, PaginationSummary, ScrollBounds
from collection_crawler.errors import ExtractionError, FatalSessionError

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], None]


class ScrollPager:
    """Scroll the current page until content stops growing or the step budget runs out."""

    def __init__(self, *, sleep: SleepFn = time.sleep) -> None:
        self._sleep = sleep

    def paginate(self, session: SessionDriver, bounds: ScrollBounds) -> Iterator[GrowthSample]:
        """Return a lazy iterator yielding one sample per scroll step.

        At most ``bounds.max_steps`` scrolls are issued. Iteration stops early
        once ``bounds.stall_threshold`` consecutive steps show no growth. The
        page is scrolled back to the top when iteration ends or is closed.
        """
        _validate_bounds(bounds)
        return self._paginate(session, bounds)

    def run(self, session: SessionDriver, bounds: ScrollBounds) -> PaginationSummary:
        samples = list(self.paginate(session, bounds))
        trailing_stalls = 0
        for sample in reversed(samples):
            if sample.growth > 0:
                break
            trailing_stalls += 1
        final_extent = next(
            (sample.extent for sample in reversed(samples) if sample.extent is not None),
            None,
        )
        return PaginationSummary(
            steps=len(samples),
            stalled=bounds.max_steps > 0 and trailing_stalls >= bounds.stall_threshold,
            final_extent=final_extent,
            errors=sum(1 for sample in samples if sample.error is not None),
        )

    def _paginate(self, session: SessionDriver, bounds: ScrollBounds) -> Iterator[GrowthSample]:
        previous = _baseline_extent(session)
        stalled_steps = 0
        try:
            for step in range(1, bounds.max_steps + 1):
                extent: int | None = None
                error: str | None = None
                try:
                    session.evaluate(SCROLL_TO_BOTTOM_SCRIPT)
                    self._sleep(bounds.settle_delay_ms / 1000)
                    extent = _read_extent(session)
                except FatalSessionError:
                    raise
                except Exception as exc:
                    error = str(exc)
                    logger.warning("Scroll %d/%d failed: %s", step, bounds.max_steps, exc)

                growth = _growth(previous, extent)
                if extent is not None:
                    previous = extent
                logger.debug("Scroll %d/%d - Page height: %s", step, bounds.max_steps, extent)
                yield GrowthSample(step=step, extent=extent, growth=growth, error=error)

                stalled_steps = stalled_steps + 1 if growth <= 0 else 0
                if stalled_steps >= bounds.stall_threshold:
                    logger.debug("Content stopped growing after %d scroll(s)", step)
                    return
        finally:
            _scroll_to_top(session)


def _validate_bounds(bounds: ScrollBounds) -> ScrollBounds:
    if bounds.max_steps < 0:
        raise ValueError("max_steps must be >= 0.")
    if bounds.stall_threshold <= 0:
        raise ValueError("stall_threshold must be > 0.")
    if bounds.settle_delay_ms < 0:
        raise ValueError("settle_delay_ms must be >= 0.")
    return bounds


def _read_extent(session: SessionDriver) -> int:
    value = session.evaluate(CONTENT_EXTENT_SCRIPT)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ExtractionError(f"Content extent must be numeric, got {type(value).__name__}.")
    return int(value)


def _baseline_extent(session: SessionDriver) -> int | None:
    try:
        return _read_extent(session)
    except FatalSessionError:
        raise
    except Exception as exc:
        logger.warning("Could not sample initial content extent: %s", exc)
        return None


def _growth(previous: int | None, extent: int | None) -> int:
    if previous is None or extent is None:
        return 0
    return max(0, extent - previous)


def _scroll_to_top(session: SessionDriver) -> None:
    try:
        session.evaluate(SCROLL_TO_TOP_SCRIPT)
    except Exception as exc:
        logger.debug("Could not scroll back to top: %s", exc)
