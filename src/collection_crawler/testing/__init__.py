"""Test-only utilities for deterministic crawl assertions."""

from .fakes import FakeExtractor, FakeSessionDriver
from .time_control import ManualClock, SleepRecorder

__all__ = [
    "FakeExtractor",
    "FakeSessionDriver",
    "ManualClock",
    "SleepRecorder",
]
