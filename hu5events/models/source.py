"""Pydantic v2 models for the static sources table.

The table (``hu5events/config/sources.yaml``) describes the city, the known
venues with their postal addresses and aliases, every event source and the
recurring-slot merge rules.  It is loaded once per process and validated
here; a table that does not validate is a :class:`ConfigurationError`.
"""

from __future__ import annotations

import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_pattern(value: str) -> str:
    try:
        re.compile(value)
    except re.error as exc:
        raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
    return value


class Coordinates(BaseModel):
    """WGS84 latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class CityConfig(BaseModel):
    """The city every source belongs to."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="City word that marks an address as complete.")
    timezone: str = "Europe/London"
    postcode_pattern: str = Field(
        default=r"\bHU\d+\s*\d?[A-Z]{2}\b",
        description="Regex for a local postal code (matched case-insensitively).",
    )
    centre: Coordinates | None = None

    @field_validator("postcode_pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        return _check_pattern(value)


class VenueConfig(BaseModel):
    """A known venue: canonical name, postal address and alias spellings."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    aliases: list[str] = Field(default_factory=list)
    coords: Coordinates | None = None


class _SourceBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Source label stamped on every event.")
    venue: str = Field(default="", description="Venue name; defaults to the source name.")
    toggle: str | None = Field(
        default=None,
        description="Suffix of the SKIP_<TOGGLE> environment switch that excludes this source.",
    )
    address: str = ""
    always_free: bool = False

    @property
    def venue_name(self) -> str:
        return self.venue or self.name


class TabularSourceConfig(_SourceBase):
    """A published spreadsheet (CSV export) with one event per row."""

    kind: Literal["csv"] = "csv"
    url: str


class JsonLdSourceConfig(_SourceBase):
    """A listing page whose detail pages carry schema.org Event metadata."""

    kind: Literal["jsonld"] = "jsonld"
    url: str
    link_pattern: str = Field(description="Regex the detail-page URL path must match.")
    max_links: int = 200

    @field_validator("link_pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        return _check_pattern(value)


class WeeklySourceConfig(_SourceBase):
    """A synthetic recurring slot, e.g. Sunday lunch every week."""

    kind: Literal["weekly"] = "weekly"
    title: str
    weekday: int = Field(ge=0, le=6, description="0=Monday ... 6=Sunday.")
    time: str = Field(pattern=r"^\d{2}:\d{2}$")
    weeks: int = Field(default=15, ge=1)
    url: str = ""


SourceConfig = Annotated[
    Union[TabularSourceConfig, JsonLdSourceConfig, WeeklySourceConfig],
    Field(discriminator="kind"),
]


class RecurringMergeRule(BaseModel):
    """Collapse same-day duplicates of one recurring slot across sources."""

    model_config = ConfigDict(frozen=True)

    canonical_name: str = Field(description="Venue/source name the survivor is given.")
    venue_pattern: str = Field(description="Regex matched against venue names.")
    title_pattern: str = Field(description="Regex matched against titles.")

    @field_validator("venue_pattern", "title_pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        return _check_pattern(value)

    def matches_venue(self, venue: str) -> bool:
        return bool(re.search(self.venue_pattern, venue or "", re.IGNORECASE))

    def matches_title(self, title: str) -> bool:
        return bool(re.search(self.title_pattern, title or "", re.IGNORECASE))


class SourcesTable(BaseModel):
    """Root of the YAML sources table."""

    model_config = ConfigDict(frozen=True)

    city: CityConfig
    venues: list[VenueConfig] = Field(default_factory=list)
    sources: list[SourceConfig] = Field(default_factory=list)
    recurring_merges: list[RecurringMergeRule] = Field(default_factory=list)
