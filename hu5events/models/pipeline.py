"""Run state models for the event pipeline.

A run walks a fixed, forward-only sequence of phases.  Failures of single
sources are recorded as data (:class:`FetchOutcome` with ``error`` set)
rather than raised, so partial results always flow forward to the output.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from hu5events.models.event import CanonicalEvent, RawCandidate


class RunPhase(str, Enum):  # noqa: UP042  (StrEnum needs 3.11+)
    """Phases of a single scrape run, in execution order.

        FETCHING → RESOLVING → BUILDING → DEDUPING → RECONCILING →
        FILTERING → DONE

    There are no backward transitions.
    """

    FETCHING = "FETCHING"         # Extractors running against the network
    RESOLVING = "RESOLVING"       # Cutoff + address table fixed for the run
    BUILDING = "BUILDING"         # Candidates -> canonical events
    DEDUPING = "DEDUPING"         # Recurring merge + key-based dedup
    RECONCILING = "RECONCILING"   # Fold in the previous snapshot
    FILTERING = "FILTERING"       # Cutoff filter + final ordering
    DONE = "DONE"


RUN_PHASE_ORDER: tuple[RunPhase, ...] = tuple(RunPhase)


class FetchOutcome(BaseModel):
    """Result slot for one extractor: its candidates, or the error it hit."""

    model_config = ConfigDict(frozen=True)

    source: str
    candidates: list[RawCandidate] = Field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RunReport(BaseModel):
    """Summary counters for one run, logged at the end and handy in tests."""

    model_config = ConfigDict(frozen=True)

    phase: RunPhase = RunPhase.DONE
    cutoff: datetime
    sources_ok: list[str] = Field(default_factory=list)
    sources_failed: dict[str, str] = Field(default_factory=dict)
    candidates: int = 0
    built: int = 0
    skipped_candidates: int = 0
    after_dedup: int = 0
    retained_from_snapshot: int = 0
    after_reconcile: int = 0
    output: int = 0


class RunResult(BaseModel):
    """Final events plus the report that describes how they were produced."""

    model_config = ConfigDict(frozen=True)

    events: list[CanonicalEvent] = Field(default_factory=list)
    report: RunReport
