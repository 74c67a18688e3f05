"""Run cutoff, upcoming-event filter and final ordering."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time, tzinfo

from hu5events.models.event import CanonicalEvent


def compute_cutoff(now: datetime, tz: tzinfo) -> datetime:
    """Start of *now*'s calendar day in *tz* (timezone-aware)."""
    local = now.astimezone(tz)
    return datetime.combine(local.date(), time(0, 0), tzinfo=tz)


def filter_upcoming(events: Iterable[CanonicalEvent], cutoff: datetime) -> list[CanonicalEvent]:
    """Keep undated events and those starting at or after *cutoff*."""
    return [e for e in events if e.start is None or e.start >= cutoff]


def sort_events(events: Iterable[CanonicalEvent]) -> list[CanonicalEvent]:
    """Ascending by start, undated last; ties keep their input order."""
    return sorted(events, key=lambda e: (e.start is None, e.start.timestamp() if e.start else 0.0))
