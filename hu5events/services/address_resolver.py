"""Venue address resolution against the configured venue table.

A scraped address is kept when it already looks complete (contains a
local postcode or the city name).  Otherwise the venue name, then the
source name, is looked up in an immutable alias table: exact key first,
then the first key (in table order) contained in the name.  An address is
never invented; with no match the original string comes back unchanged.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from hu5events.models.source import CityConfig, VenueConfig
from hu5events.utils.text_normalizer import normalize_whitespace


class VenueAddressMap:
    """Read-only mapping of lower-case venue keys to postal addresses.

    Keys are each venue's canonical name plus its aliases, lower-cased.
    Insertion order is preserved; substring lookups scan in that order.
    """

    def __init__(self, entries: Mapping[str, str]) -> None:
        normalized: dict[str, str] = {}
        for key, address in entries.items():
            clean_key = normalize_whitespace(key).lower()
            if clean_key and clean_key not in normalized:
                normalized[clean_key] = normalize_whitespace(address)
        self._entries = MappingProxyType(normalized)

    @classmethod
    def from_venues(cls, venues: Iterable[VenueConfig]) -> VenueAddressMap:
        entries: dict[str, str] = {}
        for venue in venues:
            for key in (venue.name, *venue.aliases):
                key = normalize_whitespace(key).lower()
                if key and key not in entries:
                    entries[key] = venue.address
        return cls(entries)

    @property
    def entries(self) -> Mapping[str, str]:
        return self._entries

    def exact(self, name: str) -> str | None:
        return self._entries.get(normalize_whitespace(name).lower())

    def contained_in(self, name: str) -> str | None:
        """Address of the first key that is a substring of *name*."""
        needle = normalize_whitespace(name).lower()
        if not needle:
            return None
        for key, address in self._entries.items():
            if key in needle:
                return address
        return None

    def __len__(self) -> int:
        return len(self._entries)


class AddressResolver:
    """Resolve a record's postal address.

    Parameters
    ----------
    address_map:
        Immutable venue table, injected.
    city:
        Supplies the postcode pattern and city word that mark an address
        as already complete.
    """

    def __init__(self, address_map: VenueAddressMap, city: CityConfig) -> None:
        self._map = address_map
        self._postcode_re = re.compile(city.postcode_pattern, re.IGNORECASE)
        self._city_re = re.compile(rf"\b{re.escape(city.name)}\b", re.IGNORECASE)

    def looks_complete(self, address: str) -> bool:
        return bool(self._postcode_re.search(address) or self._city_re.search(address))

    def resolve(self, raw: str | None, venue: str | None, source: str | None) -> str:
        clean = normalize_whitespace(raw)
        if clean and self.looks_complete(clean):
            return clean

        venue = normalize_whitespace(venue)
        source = normalize_whitespace(source)

        hit = (
            self._map.exact(venue)
            or self._map.exact(source)
            or self._map.contained_in(venue)
            or self._map.contained_in(source)
        )
        return hit or clean
