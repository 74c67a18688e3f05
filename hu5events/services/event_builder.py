"""Canonical event builder.

Combines a :class:`RawCandidate` with the date/time and address resolvers
into one immutable :class:`CanonicalEvent`.  Every text field is cleaned
(HTML entities decoded, NBSPs folded, whitespace collapsed), ticket links
are de-duplicated by URL, and the derived flags (sold out, free entry,
price, categories, distance) are computed here so no later stage has to
look at raw text again.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Collection, Iterable, Mapping
from datetime import datetime, timezone
from types import MappingProxyType

from hu5events.models.event import DEFAULT_TICKET_LABEL, CanonicalEvent, RawCandidate, TicketRef
from hu5events.models.source import Coordinates, VenueConfig
from hu5events.services.address_resolver import AddressResolver
from hu5events.services.datetime_resolver import DateTimeResolver, parse_trusted
from hu5events.services.time_normalizer import normalize_time
from hu5events.utils.errors import ExtractionError
from hu5events.utils.text_normalizer import (
    detect_event_types,
    first_price,
    is_free_entry,
    is_sold_out,
    normalize_whitespace,
    offers_indicate_sold_out,
)

_EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lon / 2) ** 2
    )
    return _EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def build_coordinate_index(venues: Iterable[VenueConfig]) -> Mapping[str, Coordinates]:
    """Lower-case venue name/alias -> coordinates, for venues that have them."""
    index: dict[str, Coordinates] = {}
    for venue in venues:
        if venue.coords is None:
            continue
        for key in (venue.name, *venue.aliases):
            key = normalize_whitespace(key).lower()
            if key and key not in index:
                index[key] = venue.coords
    return MappingProxyType(index)


def clean_tickets(refs: Iterable[TicketRef]) -> list[TicketRef]:
    """Trim URLs, default labels, drop URL-less entries and repeat URLs."""
    seen: set[str] = set()
    out: list[TicketRef] = []
    for ref in refs:
        url = (ref.url or "").strip()
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(TicketRef(label=normalize_whitespace(ref.label) or DEFAULT_TICKET_LABEL, url=url))
    return out


class EventBuilder:
    """Build canonical events for one run.

    Parameters
    ----------
    resolver:
        Date/time resolver bound to the reference timezone.
    address_resolver:
        Venue address resolver over the injected alias table.
    cutoff:
        Start of the current day; drives year inference.
    clock:
        Returns "now" for ``scraped_at``.  Defaults to the UTC wall clock.
    city_centre:
        Origin for ``distance_km``; ``None`` disables distances.
    venue_coords:
        Lower-case venue key -> coordinates.
    always_free:
        Lower-case source/venue names whose events are always free entry.
    """

    def __init__(
        self,
        resolver: DateTimeResolver,
        address_resolver: AddressResolver,
        cutoff: datetime,
        clock: Callable[[], datetime] | None = None,
        city_centre: Coordinates | None = None,
        venue_coords: Mapping[str, Coordinates] | None = None,
        always_free: Collection[str] = (),
    ) -> None:
        self._resolver = resolver
        self._addresses = address_resolver
        self._cutoff = cutoff
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._centre = city_centre
        self._coords = venue_coords or {}
        self._always_free = frozenset(name.lower() for name in always_free)

    def build(self, candidate: RawCandidate) -> CanonicalEvent:
        """Turn one candidate into a canonical event.

        Raises
        ------
        ExtractionError
            If the candidate carries neither a title nor a URL.
        """
        source = normalize_whitespace(candidate.source_name)
        venue = normalize_whitespace(candidate.venue_name) or source
        title = normalize_whitespace(candidate.title)
        url = (candidate.url or "").strip()
        date_text = normalize_whitespace(candidate.date_text)
        time_text = normalize_whitespace(candidate.time_text)
        description = normalize_whitespace(candidate.description)

        if not title and not url:
            raise ExtractionError(
                message="Candidate has neither a title nor a URL",
                source_name=source or None,
            )

        resolution = self._resolver.resolve(
            date_text, time_text, candidate.trusted_timestamp, self._cutoff
        )

        display_time: str | None = None
        display_local: str | None = None
        if resolution.start is not None:
            local = resolution.start.astimezone(self._resolver.tz)
            display_time = local.strftime("%H:%M")
            display_local = local.strftime("%Y-%m-%d %H:%M")
        else:
            display_time = normalize_time(time_text)

        text_blob = f"{title} {description}"
        price_text = normalize_whitespace(candidate.price_text) or first_price(text_blob)

        return CanonicalEvent(
            source=source,
            venue=venue,
            url=url,
            title=title,
            start=resolution.start,
            end=parse_trusted(candidate.end_timestamp, self._resolver.tz),
            date_text=date_text,
            time_text=time_text,
            address=self._addresses.resolve(candidate.address_text, venue, source),
            tickets=clean_tickets(candidate.ticket_refs),
            scraped_at=self._clock(),
            sold_out=bool(
                candidate.sold_out_hint
                or is_sold_out(text_blob)
                or offers_indicate_sold_out(candidate.offers)
            ),
            free_entry=bool(
                candidate.free_hint
                or is_free_entry(f"{text_blob} {price_text or ''}")
                or source.lower() in self._always_free
                or venue.lower() in self._always_free
            ),
            display_time=display_time,
            display_local_date_time=display_local,
            time_uncertain=resolution.time_uncertain,
            price_text=price_text or None,
            event_types=detect_event_types(title, description),
            distance_km=self._distance(venue, source),
        )

    def _distance(self, venue: str, source: str) -> float | None:
        if self._centre is None:
            return None
        coords = self._coords.get(venue.lower()) or self._coords.get(source.lower())
        if coords is None:
            return None
        return round(haversine_km(self._centre, coords), 2)
