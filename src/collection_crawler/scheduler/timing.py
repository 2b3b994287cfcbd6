"""Delay calculation helpers."""

from __future__ import annotations

import random


def jittered_delay_ms(
    duration_ms: int,
    jitter_ratio: float = 0.0,
    *,
    rng: random.Random | None = None,
) -> int:
    """Return ``duration_ms`` plus non-negative jitter of at most ``jitter_ratio``."""
    if duration_ms <= 0:
        return 0
    if jitter_ratio < 0 or jitter_ratio > 1:
        raise ValueError("jitter_ratio must be between 0 and 1.")

    spread = int(round(duration_ms * jitter_ratio))
    if spread <= 0:
        return duration_ms

    chooser = rng if rng is not None else random
    return duration_ms + chooser.randint(0, spread)


def backoff_delay_ms(
    attempt: int,
    *,
    base_delay_ms: int,
    max_delay_ms: int,
    jitter_ratio: float = 0.0,
    rng: random.Random | None = None,
) -> int:
    """Exponential backoff for zero-based ``attempt``, capped at ``max_delay_ms``."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0.")
    delay = min(base_delay_ms * (2**attempt), max_delay_ms)
    return jittered_delay_ms(delay, jitter_ratio, rng=rng)
