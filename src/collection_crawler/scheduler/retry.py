"""Bounded retry with exponential backoff for transient failures."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import time
from typing import TypeVar

from collection_crawler.errors import TransientNetworkError
from collection_crawler.scheduler.timing import backoff_delay_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], None]


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 0
    base_delay_ms: int = 1_000
    max_delay_ms: int = 60_000
    jitter_ratio: float = 0.1
    retry_on: tuple[type[BaseException], ...] = (TransientNetworkError,)


def call_with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    description: str = "operation",
    sleep: SleepFn = time.sleep,
) -> T:
    """Run ``operation``, retrying errors in ``policy.retry_on`` up to ``policy.retries`` times.

    Errors outside ``retry_on`` propagate immediately. The last retryable error
    propagates unchanged once the budget is spent.
    """
    if policy.retries < 0:
        raise ValueError("retries must be >= 0.")

    attempt = 0
    while True:
        try:
            return operation()
        except policy.retry_on as exc:
            if attempt >= policy.retries:
                raise
            delay_ms = backoff_delay_ms(
                attempt,
                base_delay_ms=policy.base_delay_ms,
                max_delay_ms=policy.max_delay_ms,
                jitter_ratio=policy.jitter_ratio,
            )
            logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                description,
                attempt + 1,
                policy.retries + 1,
                exc,
                delay_ms / 1000,
            )
            sleep(delay_ms / 1000)
            attempt += 1
