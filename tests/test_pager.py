"""Scroll pagination bounds, stall detection, and error tolerance."""

from __future__ import annotations

import pytest

from collection_crawler.collectors.base import ScrollBounds
from collection_crawler.collectors.pager import ScrollPager
from collection_crawler.errors import FatalSessionError
from collection_crawler.testing import FakeSessionDriver, SleepRecorder

GROWING = tuple(range(1_000, 50_000, 500))


def _pager(sleep: SleepRecorder | None = None) -> ScrollPager:
    return ScrollPager(sleep=sleep or SleepRecorder())


def test_paginate_never_exceeds_max_steps_while_content_grows() -> None:
    session = FakeSessionDriver(default_extents=GROWING)

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=3, stall_threshold=2)))

    assert [sample.step for sample in samples] == [1, 2, 3]
    assert all(sample.growth == 500 for sample in samples)
    assert session.scroll_calls == 3
    assert session.scroll_to_top_calls == 1


def test_paginate_stops_after_stall_threshold_consecutive_flat_steps() -> None:
    session = FakeSessionDriver(default_extents=(1_000, 1_800))

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=10, stall_threshold=2)))

    assert [sample.growth for sample in samples] == [800, 0, 0]
    assert session.scroll_calls == 3


def test_paginate_with_threshold_one_stops_on_first_flat_step() -> None:
    session = FakeSessionDriver(default_extents=(1_000, 1_800))

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=10, stall_threshold=1)))

    assert [sample.growth for sample in samples] == [800, 0]


def test_stall_counter_resets_when_content_grows_again() -> None:
    session = FakeSessionDriver(default_extents=(1_000, 1_000, 1_500, 1_500, 1_500))

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=10, stall_threshold=2)))

    assert [sample.growth for sample in samples] == [0, 500, 0, 0]


def test_step_error_counts_as_zero_growth_and_does_not_abort() -> None:
    session = FakeSessionDriver(default_extents=GROWING, scroll_failures=(2,))

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=4, stall_threshold=2)))

    assert len(samples) == 4
    assert samples[1].error == "scroll 2 failed"
    assert samples[1].growth == 0
    assert samples[1].extent is None
    assert [sample.growth for sample in samples] == [500, 0, 500, 500]


def test_non_numeric_extent_is_recorded_as_step_error() -> None:
    session = FakeSessionDriver(default_extents=("tall",))  # type: ignore[arg-type]

    samples = list(_pager().paginate(session, ScrollBounds(max_steps=5, stall_threshold=2)))

    assert len(samples) == 2
    assert all("numeric" in (sample.error or "") for sample in samples)


def test_settle_delay_is_applied_after_each_scroll() -> None:
    sleep = SleepRecorder()
    session = FakeSessionDriver(default_extents=GROWING)

    list(_pager(sleep).paginate(session, ScrollBounds(max_steps=2, settle_delay_ms=1_500)))

    assert sleep.calls == [1.5, 1.5]


def test_zero_step_budget_issues_no_scroll() -> None:
    session = FakeSessionDriver(default_extents=GROWING)

    summary = _pager().run(session, ScrollBounds(max_steps=0))

    assert summary.steps == 0
    assert summary.stalled is False
    assert session.scroll_calls == 0
    assert session.scroll_to_top_calls == 1


def test_closing_iterator_early_still_scrolls_back_to_top() -> None:
    session = FakeSessionDriver(default_extents=GROWING)
    samples = _pager().paginate(session, ScrollBounds(max_steps=10))

    first = next(samples)
    samples.close()

    assert first.step == 1
    assert session.scroll_calls == 1
    assert session.scroll_to_top_calls == 1


def test_run_summarizes_stall_and_final_extent() -> None:
    session = FakeSessionDriver(default_extents=(1_000, 2_000, 2_500))

    summary = _pager().run(session, ScrollBounds(max_steps=10, stall_threshold=2))

    assert summary.steps == 4
    assert summary.stalled is True
    assert summary.final_extent == 2_500
    assert summary.errors == 0


def test_invalid_bounds_are_rejected_before_any_scroll() -> None:
    session = FakeSessionDriver()

    with pytest.raises(ValueError, match="stall_threshold"):
        _pager().paginate(session, ScrollBounds(stall_threshold=0))
    with pytest.raises(ValueError, match="max_steps"):
        _pager().paginate(session, ScrollBounds(max_steps=-1))
    assert session.scripts == []


def test_fatal_session_error_propagates() -> None:
    class ClosedSession(FakeSessionDriver):
        def evaluate(self, script: str) -> object:
            raise FatalSessionError("browser has disconnected")

    with pytest.raises(FatalSessionError):
        _pager().run(ClosedSession(), ScrollBounds(max_steps=3))
