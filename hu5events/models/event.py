"""Pydantic v2 models for event candidates and canonical event records.

All models use frozen config (immutable).  A :class:`RawCandidate` is what
an extractor hands to the core; a :class:`CanonicalEvent` is what the core
publishes.  Derived records are produced with ``model_copy(update={...})``,
never by mutating an existing instance.

The canonical record serializes with camelCase keys (``dateText``,
``displayTime``, ``scrapedAt``...) because that is the JSON contract the
browser UI and the persisted cache file share.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TICKET_LABEL = "Tickets"


class TicketRef(BaseModel):
    """A single ticket or booking link."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(default=DEFAULT_TICKET_LABEL, description="Link text shown to users.")
    url: str = Field(description="Absolute ticket URL.")


class RawCandidate(BaseModel):
    """Unstructured per-event fields as yielded by an extractor.

    Nothing here is trusted or normalized yet: ``date_text`` may be
    ``"Sat 2nd Nov"``, ``time_text`` may be ``"£10.25 entry, doors 8pm"``.
    """

    model_config = ConfigDict(frozen=True)

    source_name: str
    venue_name: str = ""
    url: str = ""
    title: str = ""
    date_text: str = ""
    time_text: str = ""
    trusted_timestamp: str | None = Field(
        default=None,
        description="ISO-8601 start from structured metadata (JSON-LD, sheet column).",
    )
    end_timestamp: str | None = None
    address_text: str | None = None
    ticket_refs: list[TicketRef] = Field(default_factory=list)
    offers: list[dict[str, Any]] | None = None
    sold_out_hint: bool | None = None
    free_hint: bool | None = None
    price_text: str | None = None
    description: str | None = None


class CanonicalEvent(BaseModel):
    """The fully normalized, immutable output record.

    Every field is always present in the serialized form; optional data
    is ``null`` or an empty list, never omitted.  ``start``/``end`` are
    UTC instants.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    source: str
    venue: str
    url: str = ""
    title: str = ""
    start: datetime | None = None
    end: datetime | None = None
    date_text: str = ""
    time_text: str = ""
    address: str = ""
    tickets: list[TicketRef] = Field(default_factory=list)
    scraped_at: datetime
    sold_out: bool = False
    free_entry: bool = False
    display_time: str | None = Field(default=None, description="Local 'HH:mm'.")
    display_local_date_time: str | None = Field(
        default=None, description="Local 'YYYY-MM-DD HH:mm'."
    )
    time_uncertain: bool = Field(
        default=False,
        description="True when the start time was defaulted or could not be read.",
    )
    price_text: str | None = None
    event_types: list[str] | None = None
    distance_km: float | None = None

    @field_validator("start", "end", "scraped_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        # Naive instants in an old cache file are taken as UTC.
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys of the published JSON contract."""
        return self.model_dump(mode="json", by_alias=True)
