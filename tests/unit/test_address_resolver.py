"""Unit tests for the venue address table and resolver."""

from __future__ import annotations

import pytest

from hu5events.services.address_resolver import AddressResolver, VenueAddressMap


class TestVenueAddressMap:
    """Tests for the immutable alias table."""

    def test_keys_include_name_and_aliases(self, address_map: VenueAddressMap) -> None:
        assert address_map.exact("Polar Bear Music Club") == "229 Spring Bank, Hull, HU3 1LR"
        assert address_map.exact("POLAR BEAR") == "229 Spring Bank, Hull, HU3 1LR"

    def test_entries_are_read_only(self, address_map: VenueAddressMap) -> None:
        with pytest.raises(TypeError):
            address_map.entries["new venue"] = "somewhere"  # type: ignore[index]

    def test_contained_in_uses_table_order(self) -> None:
        table = VenueAddressMap({"bar": "first", "bar one": "second"})
        assert table.contained_in("The Bar One") == "first"

    def test_blank_name(self, address_map: VenueAddressMap) -> None:
        assert address_map.contained_in("  ") is None


class TestAddressResolver:
    """Tests for AddressResolver.resolve."""

    def test_complete_address_is_kept(self, address_resolver: AddressResolver) -> None:
        raw = "12 Some Street, Hull, HU5 1AA"
        assert address_resolver.resolve(raw, "Polar Bear", None) == raw

    def test_postcode_alone_marks_complete(self, address_resolver: AddressResolver) -> None:
        assert address_resolver.looks_complete("Unit 4, HU5 3QJ")

    def test_exact_venue_lookup(self, address_resolver: AddressResolver) -> None:
        result = address_resolver.resolve("", "The New Adelphi Club", None)
        assert result == "89 De Grey Street, Hull, HU5 2RU"

    def test_falls_back_to_source_name(self, address_resolver: AddressResolver) -> None:
        result = address_resolver.resolve(None, "Back Room", "Newland Tap")
        assert result == "135 Newland Ave, Kingston upon Hull HU5 2ES"

    def test_alias_contained_in_venue(self, address_resolver: AddressResolver) -> None:
        result = address_resolver.resolve("Upstairs", "Live at the Adelphi", None)
        assert result == "89 De Grey Street, Hull, HU5 2RU"

    def test_never_invents_an_address(self, address_resolver: AddressResolver) -> None:
        assert address_resolver.resolve("Upstairs", "Unknown Venue", "Unknown") == "Upstairs"
        assert address_resolver.resolve(None, "Unknown Venue", None) == ""
