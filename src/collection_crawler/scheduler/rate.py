"""Politeness delays between expensive remote operations."""

from __future__ import annotations

from collections.abc import Callable
import logging
import random
import time

from collection_crawler.scheduler.timing import jittered_delay_ms

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], None]


class RateLimiter:
    """Suspend the crawl flow for a fixed delay.

    The delay is a lower bound: optional jitter only ever lengthens it. The
    limiter has no bearing on the data produced; it paces consecutive remote
    operations so the crawl looks less automated.
    """

    def __init__(
        self,
        *,
        jitter_ratio: float = 0.0,
        sleep: SleepFn = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        if jitter_ratio < 0 or jitter_ratio > 1:
            raise ValueError("jitter_ratio must be between 0 and 1.")
        self._jitter_ratio = jitter_ratio
        self._sleep = sleep
        self._rng = rng
        self.total_delay_ms = 0

    def delay(self, duration_ms: int) -> int:
        """Sleep for ``duration_ms`` (plus jitter) and return the applied delay."""
        applied = jittered_delay_ms(duration_ms, self._jitter_ratio, rng=self._rng)
        if applied <= 0:
            return 0
        logger.debug("Rate limit delay %dms", applied)
        self._sleep(applied / 1000)
        self.total_delay_ms += applied
        return applied
