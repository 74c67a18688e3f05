"""Shared pytest fixtures for the hu5events test suite."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import CanonicalEvent
from hu5events.models.source import CityConfig, Coordinates, VenueConfig
from hu5events.services.address_resolver import AddressResolver, VenueAddressMap
from hu5events.services.cutoff import compute_cutoff
from hu5events.services.datetime_resolver import DateTimeResolver
from hu5events.services.event_builder import EventBuilder, build_coordinate_index
from hu5events.utils.errors import NotFoundError

LONDON = ZoneInfo("Europe/London")

# Sunday 18 October 2026, mid-morning; BST is still in force.
FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeFetcher(IPageFetcher):
    """In-memory fetcher: URL -> text, or URL -> exception to raise."""

    def __init__(self, pages: Mapping[str, str | BaseException] | None = None) -> None:
        self.pages: dict[str, str | BaseException] = dict(pages or {})
        self.calls: list[str] = []

    async def get_text(self, url: str, source_name: str | None = None) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise NotFoundError(message=f"HTTP 404 for {url}", source_name=source_name)
        page = self.pages[url]
        if isinstance(page, BaseException):
            raise page
        return page


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


@pytest.fixture
def london() -> ZoneInfo:
    return LONDON


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def cutoff(fixed_now: datetime, london: ZoneInfo) -> datetime:
    """Local midnight of 18 October 2026 (23:00Z on the 17th)."""
    return compute_cutoff(fixed_now, london)


# ---------------------------------------------------------------------------
# Venue table
# ---------------------------------------------------------------------------


@pytest.fixture
def city() -> CityConfig:
    return CityConfig(name="Hull", centre=Coordinates(lat=53.7431, lon=-0.337))


@pytest.fixture
def venues() -> list[VenueConfig]:
    return [
        VenueConfig(
            name="Polar Bear Music Club",
            address="229 Spring Bank, Hull, HU3 1LR",
            aliases=["polar bear"],
            coords=Coordinates(lat=53.7656, lon=-0.3364),
        ),
        VenueConfig(
            name="The New Adelphi Club",
            address="89 De Grey Street, Hull, HU5 2RU",
            aliases=["adelphi"],
            coords=Coordinates(lat=53.7762, lon=-0.3406),
        ),
        VenueConfig(
            name="Newland Tap",
            address="135 Newland Ave, Kingston upon Hull HU5 2ES",
            aliases=["newland tap"],
        ),
    ]


@pytest.fixture
def address_map(venues: list[VenueConfig]) -> VenueAddressMap:
    return VenueAddressMap.from_venues(venues)


@pytest.fixture
def address_resolver(address_map: VenueAddressMap, city: CityConfig) -> AddressResolver:
    return AddressResolver(address_map, city)


# ---------------------------------------------------------------------------
# Core services
# ---------------------------------------------------------------------------


@pytest.fixture
def resolver(london: ZoneInfo) -> DateTimeResolver:
    return DateTimeResolver(london)


@pytest.fixture
def builder(
    resolver: DateTimeResolver,
    address_resolver: AddressResolver,
    cutoff: datetime,
    fixed_now: datetime,
    city: CityConfig,
    venues: list[VenueConfig],
) -> EventBuilder:
    return EventBuilder(
        resolver=resolver,
        address_resolver=address_resolver,
        cutoff=cutoff,
        clock=lambda: fixed_now,
        city_centre=city.centre,
        venue_coords=build_coordinate_index(venues),
        always_free=["newland tap"],
    )


@pytest.fixture
def make_event() -> Callable[..., CanonicalEvent]:
    """Factory for canonical events with sensible defaults."""

    def _make(
        title: str = "Live Music",
        venue: str = "Polar Bear Music Club",
        start: datetime | None = None,
        url: str = "",
        **overrides: Any,
    ) -> CanonicalEvent:
        fields: dict[str, Any] = {
            "source": venue,
            "venue": venue,
            "title": title,
            "start": start,
            "url": url,
            "scraped_at": FIXED_NOW,
        }
        fields.update(overrides)
        return CanonicalEvent(**fields)

    return _make


@pytest.fixture
def fake_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher
