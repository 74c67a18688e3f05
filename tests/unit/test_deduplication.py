"""Unit tests for deduplication and recurring-slot merging."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from hu5events.models.event import CanonicalEvent, TicketRef
from hu5events.models.source import RecurringMergeRule
from hu5events.services.deduplication import (
    deduplicate,
    event_key,
    merge_group,
    merge_recurring,
)

MakeEvent = Callable[..., CanonicalEvent]

LONDON = ZoneInfo("Europe/London")

NOON_SUNDAY = datetime(2025, 11, 2, 12, 0, tzinfo=timezone.utc)

MOODYS_RULE = RecurringMergeRule(
    canonical_name="Mr Moody's Tavern",
    venue_pattern=r"mr\s*moody'?s",
    title_pattern=r"sunday\s+lunch",
)


# ======================================================================
# event_key / deduplicate
# ======================================================================


class TestDeduplicate:
    """Tests for key-based deduplication."""

    def test_key_uses_local_date(self, make_event: MakeEvent) -> None:
        # 23:30Z on 31 July is 00:30 BST on 1 August.
        event = make_event(title="Late Show", start=datetime(2025, 7, 31, 23, 30, tzinfo=timezone.utc))
        assert event_key(event, LONDON) == "late show|2025-08-01|polar bear music club"

    def test_key_for_undated(self, make_event: MakeEvent) -> None:
        event = make_event(title="Open Mic")
        assert event_key(event, LONDON) == "open mic|undated|polar bear music club"

    def test_key_follows_the_given_zone(self, make_event: MakeEvent) -> None:
        event = make_event(title="Late Show", start=datetime(2025, 7, 31, 23, 30, tzinfo=timezone.utc))
        assert event_key(event, timezone.utc) == "late show|2025-07-31|polar bear music club"

    def test_first_occurrence_wins(self, make_event: MakeEvent) -> None:
        first = make_event(title="Gig", start=NOON_SUNDAY, url="https://a.example/1")
        second = make_event(title="GIG ", start=NOON_SUNDAY, url="https://b.example/2")
        assert deduplicate([first, second], LONDON) == [first]

    def test_different_venues_are_kept(self, make_event: MakeEvent) -> None:
        a = make_event(start=NOON_SUNDAY, venue="Polar Bear Music Club")
        b = make_event(start=NOON_SUNDAY, venue="The New Adelphi Club")
        assert len(deduplicate([a, b], LONDON)) == 2

    def test_idempotent(self, make_event: MakeEvent) -> None:
        events = [
            make_event(title="Gig", start=NOON_SUNDAY),
            make_event(title="Gig", start=NOON_SUNDAY),
            make_event(title="Quiz"),
            make_event(title="Quiz"),
        ]
        once = deduplicate(events, LONDON)
        assert deduplicate(once, LONDON) == once
        assert len(once) == 2


# ======================================================================
# merge_group / merge_recurring
# ======================================================================


class TestMergeGroup:
    """Tests for reducing a same-day group to one record."""

    def test_winner_has_real_link(self, make_event: MakeEvent) -> None:
        plain = make_event(title="Sunday Lunch", venue="Mr Moodys", start=NOON_SUNDAY)
        linked = make_event(
            title="Sunday Lunch (Walk-ins)",
            venue="Mr Moody's Tavern",
            start=NOON_SUNDAY,
            url="https://moodys.example/lunch",
        )
        merged = merge_group([plain, linked], "Mr Moody's Tavern")
        assert merged.url == "https://moodys.example/lunch"
        assert merged.venue == merged.source == "Mr Moody's Tavern"

    def test_tickets_are_unioned(self, make_event: MakeEvent) -> None:
        a = make_event(start=NOON_SUNDAY, tickets=[TicketRef(url="https://t.example/a")])
        b = make_event(
            start=NOON_SUNDAY,
            tickets=[TicketRef(url="https://t.example/a"), TicketRef(url="https://t.example/b")],
        )
        merged = merge_group([a, b], "Venue")
        assert [t.url for t in merged.tickets] == ["https://t.example/a", "https://t.example/b"]

    def test_fills_missing_display_fields(self, make_event: MakeEvent) -> None:
        a = make_event(start=NOON_SUNDAY, url="https://x.example")
        b = make_event(start=NOON_SUNDAY, display_time="12:00", address="6 Newland Ave")
        merged = merge_group([a, b], "Venue")
        assert merged.display_time == "12:00"
        assert merged.address == "6 Newland Ave"

    def test_inputs_are_not_mutated(self, make_event: MakeEvent) -> None:
        a = make_event(start=NOON_SUNDAY, venue="Mr Moodys")
        merge_group([a], "Mr Moody's Tavern")
        assert a.venue == "Mr Moodys"

    def test_empty_group(self) -> None:
        with pytest.raises(ValueError):
            merge_group([], "Venue")


class TestMergeRecurring:
    """Tests for rule-driven recurring-slot merging."""

    def test_same_day_duplicates_collapse(self, make_event: MakeEvent) -> None:
        gig = make_event(title="Gig", start=NOON_SUNDAY)
        sheet = make_event(title="Sunday Lunch", venue="Mr Moodys", start=NOON_SUNDAY)
        generated = make_event(
            title="Sunday Lunch (Walk-ins Only)",
            venue="Mr Moody's Tavern",
            start=NOON_SUNDAY,
            tickets=[TicketRef(url="https://t.example/lunch")],
        )
        result = merge_recurring([gig, sheet, generated], [MOODYS_RULE], LONDON)
        assert len(result) == 2
        assert result[0] == gig
        assert result[1].tickets[0].url == "https://t.example/lunch"
        assert result[1].venue == "Mr Moody's Tavern"

    def test_different_days_stay_separate(self, make_event: MakeEvent) -> None:
        week_later = datetime(2025, 11, 9, 12, 0, tzinfo=timezone.utc)
        a = make_event(title="Sunday Lunch", venue="Mr Moodys", start=NOON_SUNDAY)
        b = make_event(title="Sunday Lunch", venue="Mr Moodys", start=week_later)
        assert len(merge_recurring([a, b], [MOODYS_RULE], LONDON)) == 2

    def test_other_records_at_venue_are_renamed(self, make_event: MakeEvent) -> None:
        quiz = make_event(title="Quiz", venue="Mr Moodys", start=NOON_SUNDAY)
        (result,) = merge_recurring([quiz], [MOODYS_RULE], LONDON)
        assert result.venue == "Mr Moody's Tavern"
        assert result.title == "Quiz"

    def test_no_rules_is_identity(self, make_event: MakeEvent) -> None:
        events = [make_event(title="Sunday Lunch", venue="Mr Moodys", start=NOON_SUNDAY)]
        assert merge_recurring(events, [], LONDON) == events
