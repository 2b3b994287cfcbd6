"""Pacing and retry helpers."""

from .rate import RateLimiter
from .retry import RetryPolicy, call_with_retry
from .timing import backoff_delay_ms, jittered_delay_ms

__all__ = [
    "RateLimiter",
    "RetryPolicy",
    "backoff_delay_ms",
    "call_with_retry",
    "jittered_delay_ms",
]
