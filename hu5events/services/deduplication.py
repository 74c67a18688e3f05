"""Deduplication and recurring-slot merging for canonical events.

Two collapsing passes run over the flattened event list:

1. **merge_recurring** -- a recurring slot (e.g. Sunday lunch) that is
   both listed in a venue's spreadsheet and synthesised by a weekly
   generator is merged per local calendar day into one record carrying
   the best URL and every ticket link.
2. **deduplicate** -- records sharing ``title | local date | venue`` are
   collapsed, first occurrence wins.

Both passes are pure: they return new lists and new records
(``model_copy``), never mutate their input.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, tzinfo

from hu5events.models.event import CanonicalEvent
from hu5events.models.source import RecurringMergeRule
from hu5events.services.event_builder import clean_tickets


def local_date(event: CanonicalEvent, tz: tzinfo) -> date | None:
    """Calendar date of the event's start in *tz*, or ``None`` if undated."""
    if event.start is None:
        return None
    return event.start.astimezone(tz).date()


def event_key(event: CanonicalEvent, tz: tzinfo) -> str:
    """``lower(title) | YYYY-MM-DD or 'undated' | lower(venue)``."""
    day = local_date(event, tz)
    day_key = day.isoformat() if day else "undated"
    return f"{event.title.strip().lower()}|{day_key}|{event.venue.strip().lower()}"


def deduplicate(events: Iterable[CanonicalEvent], tz: tzinfo) -> list[CanonicalEvent]:
    """Keep the first record per :func:`event_key`, preserving order."""
    seen: set[str] = set()
    kept: list[CanonicalEvent] = []
    for event in events:
        key = event_key(event, tz)
        if key in seen:
            continue
        seen.add(key)
        kept.append(event)
    return kept


def _has_real_link(event: CanonicalEvent) -> bool:
    return event.url.lower().startswith(("http://", "https://")) or bool(event.tickets)


def merge_group(group: Sequence[CanonicalEvent], canonical_name: str) -> CanonicalEvent:
    """Reduce same-day duplicates of one recurring slot to a single record.

    The winner is the first member with an ``http(s)`` URL or any ticket
    link, else the first member.  The result carries the union of all
    distinct ticket URLs (winner's first), the first available display
    time and address, and *canonical_name* as venue and source.
    """
    if not group:
        raise ValueError("merge_group() needs at least one event")

    winner = next((e for e in group if _has_real_link(e)), group[0])
    others = [e for e in group if e is not winner]

    tickets = clean_tickets(t for e in (winner, *others) for t in e.tickets)
    display_time = winner.display_time or next(
        (e.display_time for e in others if e.display_time), None
    )
    display_local = winner.display_local_date_time or next(
        (e.display_local_date_time for e in others if e.display_local_date_time), None
    )
    address = winner.address or next((e.address for e in others if e.address), "")

    return winner.model_copy(
        update={
            "venue": canonical_name,
            "source": canonical_name,
            "tickets": tickets,
            "display_time": display_time,
            "display_local_date_time": display_local,
            "address": address,
        }
    )


def merge_recurring(
    events: Sequence[CanonicalEvent],
    rules: Iterable[RecurringMergeRule],
    tz: tzinfo,
) -> list[CanonicalEvent]:
    """Apply every merge rule in turn; see :func:`merge_group`.

    Dated records matching a rule's venue and title patterns are grouped by
    local date and merged; the merged record takes the position of the
    group's first member.  Any other record at the rule's venue is renamed
    to the canonical name.
    """
    result = list(events)
    for rule in rules:
        result = _apply_rule(result, rule, tz)
    return result


def _apply_rule(
    events: list[CanonicalEvent],
    rule: RecurringMergeRule,
    tz: tzinfo,
) -> list[CanonicalEvent]:
    def at_venue(event: CanonicalEvent) -> bool:
        return rule.matches_venue(event.venue) or rule.matches_venue(event.source)

    groups: dict[date, list[int]] = {}
    for idx, event in enumerate(events):
        day = local_date(event, tz)
        if day is not None and at_venue(event) and rule.matches_title(event.title):
            groups.setdefault(day, []).append(idx)

    group_of: dict[int, list[int]] = {idx: members for members in groups.values() for idx in members}

    out: list[CanonicalEvent] = []
    for idx, event in enumerate(events):
        members = group_of.get(idx)
        if members is not None:
            if idx == members[0]:
                out.append(merge_group([events[i] for i in members], rule.canonical_name))
            continue
        if at_venue(event):
            event = event.model_copy(
                update={"venue": rule.canonical_name, "source": rule.canonical_name}
            )
        out.append(event)
    return out
