"""End-to-end event pipeline: fetch, build, collapse, reconcile, filter.

ARCHITECTURE NOTE:
    A run walks a fixed sequence of phases and never goes back:

        FETCHING → RESOLVING → BUILDING → DEDUPING → RECONCILING →
        FILTERING → DONE

    FETCHING    every extractor runs; failures become data (FetchOutcome)
    RESOLVING   the cutoff and address table are fixed for the run
    BUILDING    candidates -> canonical events; bad candidates skipped
    DEDUPING    recurring-slot merge, then key-based deduplication
    RECONCILING the previous snapshot is folded back in
    FILTERING   past dated events dropped, final ordering applied

    Only one thing can make a run fail: being unable to produce output at
    all, which is the caller's concern (the CLI serialises the result).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import structlog

from hu5events.config.settings import Settings
from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import CanonicalEvent
from hu5events.models.pipeline import RUN_PHASE_ORDER, FetchOutcome, RunPhase, RunReport, RunResult
from hu5events.models.source import SourcesTable
from hu5events.pipeline.orchestrator import FetchOrchestrator
from hu5events.services.address_resolver import AddressResolver, VenueAddressMap
from hu5events.services.cutoff import compute_cutoff, filter_upcoming, sort_events
from hu5events.services.datetime_resolver import DateTimeResolver
from hu5events.services.deduplication import deduplicate, merge_recurring
from hu5events.services.event_builder import EventBuilder, build_coordinate_index
from hu5events.services.reconciler import SnapshotStore, reconcile, stale_records
from hu5events.utils.errors import ExtractionError, SnapshotError
from hu5events.utils.logging import get_logger


class EventPipeline:
    """Run one scrape from extractors to the final, ordered event list.

    Parameters
    ----------
    extractors:
        Extractors to run, in source-table order (the tie-break for
        "first wins" during deduplication).
    fetcher:
        Page fetcher handed to every extractor.
    table:
        Sources table: city, venues and recurring-merge rules.
    settings:
        Runtime settings (timezone, concurrency, default time).
    snapshot_store:
        Previous-run cache; ``None`` skips reconciliation.
    clock:
        Returns "now"; defaults to the UTC wall clock.
    cutoff:
        Pre-computed start of today.  Computed from *clock* when omitted.
    orchestrator:
        Fetch orchestrator; built from ``settings.fetch_concurrency`` when
        omitted.
    """

    def __init__(
        self,
        extractors: Sequence[IExtractor],
        fetcher: IPageFetcher,
        table: SourcesTable,
        settings: Settings,
        snapshot_store: SnapshotStore | None = None,
        clock: Callable[[], datetime] | None = None,
        cutoff: datetime | None = None,
        orchestrator: FetchOrchestrator | None = None,
    ) -> None:
        self._extractors = list(extractors)
        self._fetcher = fetcher
        self._table = table
        self._settings = settings
        self._store = snapshot_store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tz = ZoneInfo(settings.timezone)
        self._cutoff = cutoff or compute_cutoff(self._clock(), self._tz)
        self._orchestrator = orchestrator or FetchOrchestrator(settings.fetch_concurrency)
        self._phase: RunPhase | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def cutoff(self) -> datetime:
        return self._cutoff

    @property
    def phase(self) -> RunPhase | None:
        return self._phase

    async def run(self, update_snapshot: bool = False) -> RunResult:
        """Execute every phase once and return the events with a report.

        Parameters
        ----------
        update_snapshot:
            When ``True`` the final events replace the snapshot file.
        """
        self._phase = None
        counts: dict[str, int] = {}

        # -- FETCHING ---------------------------------------------------
        self._advance(RunPhase.FETCHING, sources=len(self._extractors))
        outcomes = await self._orchestrator.run(self._extractors, self._fetcher)
        counts["candidates"] = sum(len(o.candidates) for o in outcomes)

        # -- RESOLVING --------------------------------------------------
        self._advance(RunPhase.RESOLVING, cutoff=self._cutoff.isoformat())
        builder = self._make_builder()

        # -- BUILDING ---------------------------------------------------
        self._advance(RunPhase.BUILDING, candidates=counts["candidates"])
        events, skipped = self._build_all(builder, outcomes)
        counts["built"] = len(events)
        counts["skipped_candidates"] = skipped

        # -- DEDUPING ---------------------------------------------------
        self._advance(RunPhase.DEDUPING, events=len(events))
        events = merge_recurring(events, self._table.recurring_merges, self._tz)
        events = deduplicate(events, self._tz)
        counts["after_dedup"] = len(events)

        # -- RECONCILING ------------------------------------------------
        self._advance(RunPhase.RECONCILING, events=len(events))
        snapshot = self._store.load() if self._store is not None else []
        counts["retained_from_snapshot"] = len(stale_records(events, snapshot))
        events = reconcile(events, snapshot, self._tz)
        counts["after_reconcile"] = len(events)

        # -- FILTERING --------------------------------------------------
        self._advance(RunPhase.FILTERING, events=len(events))
        events = sort_events(filter_upcoming(events, self._cutoff))
        counts["output"] = len(events)

        if update_snapshot and self._store is not None:
            try:
                self._store.save(events)
            except SnapshotError as exc:
                self._logger.error("snapshot_save_failed", error=str(exc))

        self._advance(RunPhase.DONE, **counts)
        report = RunReport(
            phase=RunPhase.DONE,
            cutoff=self._cutoff,
            sources_ok=[o.source for o in outcomes if o.ok],
            sources_failed={o.source: o.error or "" for o in outcomes if not o.ok},
            **counts,
        )
        return RunResult(events=events, report=report)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _advance(self, phase: RunPhase, **context: object) -> None:
        if self._phase is not None and RUN_PHASE_ORDER.index(phase) <= RUN_PHASE_ORDER.index(
            self._phase
        ):
            raise RuntimeError(f"Illegal phase transition {self._phase.value} -> {phase.value}")
        self._phase = phase
        self._logger.info("run_phase", phase=phase.value, **context)

    def _make_builder(self) -> EventBuilder:
        always_free = [
            name
            for source in self._table.sources
            if source.always_free
            for name in (source.name, source.venue_name)
        ]
        return EventBuilder(
            resolver=DateTimeResolver(self._tz, self._settings.default_event_time),
            address_resolver=AddressResolver(
                VenueAddressMap.from_venues(self._table.venues), self._table.city
            ),
            cutoff=self._cutoff,
            clock=self._clock,
            city_centre=self._table.city.centre,
            venue_coords=build_coordinate_index(self._table.venues),
            always_free=always_free,
        )

    def _build_all(
        self,
        builder: EventBuilder,
        outcomes: Sequence[FetchOutcome],
    ) -> tuple[list[CanonicalEvent], int]:
        events: list[CanonicalEvent] = []
        skipped = 0
        for outcome in outcomes:
            for candidate in outcome.candidates:
                try:
                    events.append(builder.build(candidate))
                except (ExtractionError, ValueError) as exc:
                    skipped += 1
                    self._logger.warning(
                        "candidate_skipped",
                        source=outcome.source,
                        title=candidate.title[:80],
                        error=str(exc),
                    )
        return events, skipped
