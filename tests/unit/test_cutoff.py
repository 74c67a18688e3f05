"""Unit tests for the run cutoff, upcoming filter and final ordering."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from hu5events.models.event import CanonicalEvent
from hu5events.services.cutoff import compute_cutoff, filter_upcoming, sort_events

MakeEvent = Callable[..., CanonicalEvent]


class TestComputeCutoff:
    def test_local_midnight_during_bst(self, fixed_now: datetime, london: ZoneInfo) -> None:
        cutoff = compute_cutoff(fixed_now, london)
        assert cutoff.astimezone(timezone.utc) == datetime(2026, 10, 17, 23, 0, tzinfo=timezone.utc)

    def test_late_utc_evening_is_next_local_day(self, london: ZoneInfo) -> None:
        now = datetime(2026, 7, 1, 23, 30, tzinfo=timezone.utc)
        assert compute_cutoff(now, london).date() == datetime(2026, 7, 2).date()


class TestFilterUpcoming:
    def test_boundaries(self, make_event: MakeEvent, cutoff: datetime) -> None:
        at_cutoff = make_event(title="A", start=cutoff)
        just_before = make_event(title="B", start=cutoff - timedelta(milliseconds=1))
        undated = make_event(title="C")
        assert filter_upcoming([at_cutoff, just_before, undated], cutoff) == [at_cutoff, undated]


class TestSortEvents:
    def test_ascending_with_undated_last(self, make_event: MakeEvent) -> None:
        early = make_event(title="early", start=datetime(2026, 11, 1, 18, tzinfo=timezone.utc))
        late = make_event(title="late", start=datetime(2026, 11, 2, 18, tzinfo=timezone.utc))
        undated = make_event(title="undated")
        assert sort_events([undated, late, early]) == [early, late, undated]

    def test_stable_for_equal_starts(self, make_event: MakeEvent) -> None:
        start = datetime(2026, 11, 1, 18, tzinfo=timezone.utc)
        first = make_event(title="first", start=start)
        second = make_event(title="second", start=start)
        assert sort_events([first, second]) == [first, second]
