"""hu5events domain models - re-exports all public model classes.

The models are organized across three submodules by domain concern:
    - event.py    - RawCandidate (extractor output) and CanonicalEvent
    - pipeline.py - Run phases, per-source fetch outcomes, run report
    - source.py   - The static sources table (city, venues, sources, merge rules)
"""

from __future__ import annotations

from hu5events.models.event import (
    DEFAULT_TICKET_LABEL,
    CanonicalEvent,
    RawCandidate,
    TicketRef,
)
from hu5events.models.pipeline import (
    RUN_PHASE_ORDER,
    FetchOutcome,
    RunPhase,
    RunReport,
    RunResult,
)
from hu5events.models.source import (
    CityConfig,
    Coordinates,
    JsonLdSourceConfig,
    RecurringMergeRule,
    SourceConfig,
    SourcesTable,
    TabularSourceConfig,
    VenueConfig,
    WeeklySourceConfig,
)

__all__ = [
    "DEFAULT_TICKET_LABEL",
    "RUN_PHASE_ORDER",
    "CanonicalEvent",
    "CityConfig",
    "Coordinates",
    "FetchOutcome",
    "JsonLdSourceConfig",
    "RawCandidate",
    "RecurringMergeRule",
    "RunPhase",
    "RunReport",
    "RunResult",
    "SourceConfig",
    "SourcesTable",
    "TabularSourceConfig",
    "TicketRef",
    "VenueConfig",
    "WeeklySourceConfig",
]
