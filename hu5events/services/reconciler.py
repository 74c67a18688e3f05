"""Snapshot persistence and reconciliation.

A run may not re-fetch every source (a source is toggled off, or its site
is down).  Reconciliation folds the previous run's output back in so those
events are not lost: snapshot records whose URL was not produced by this
run are retained, fresh records always win, and the combined list is
deduplicated again.  Old records are never dropped here; only the cutoff
filter removes past events.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable, Sequence
from datetime import tzinfo
from pathlib import Path

import structlog
from pydantic import ValidationError

from hu5events.models.event import CanonicalEvent
from hu5events.services.deduplication import deduplicate
from hu5events.utils.errors import SnapshotError

logger = structlog.get_logger(logger_name=__name__)


class SnapshotStore:
    """JSON-array file holding the previous run's canonical events.

    Parameters
    ----------
    path:
        Location of the cache file, e.g. ``public/events.json``.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[CanonicalEvent]:
        """Read the snapshot; problems degrade to an empty or partial list.

        - missing file -> ``[]``
        - unreadable or non-array JSON -> warning, ``[]``
        - individual malformed records -> skipped
        """
        if not self._path.is_file():
            logger.info("snapshot_absent", path=str(self._path))
            return []

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("snapshot_unreadable", path=str(self._path), error=str(exc))
            return []

        if not isinstance(raw, list):
            logger.warning("snapshot_not_a_list", path=str(self._path), type=type(raw).__name__)
            return []

        events: list[CanonicalEvent] = []
        skipped = 0
        for record in raw:
            try:
                events.append(CanonicalEvent.model_validate(record))
            except ValidationError:
                skipped += 1
        if skipped:
            logger.warning("snapshot_records_skipped", path=str(self._path), skipped=skipped)
        logger.info("snapshot_loaded", path=str(self._path), events=len(events))
        return events

    def save(self, events: Sequence[CanonicalEvent]) -> None:
        """Atomically replace the snapshot with *events*.

        Raises
        ------
        SnapshotError
            If the file cannot be written.
        """
        payload = json.dumps([e.to_json_dict() for e in events], ensure_ascii=False, indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            raise SnapshotError(f"Cannot write snapshot {self._path}: {exc}") from exc
        logger.info("snapshot_saved", path=str(self._path), events=len(events))


def stale_records(
    fresh: Iterable[CanonicalEvent],
    snapshot: Iterable[CanonicalEvent],
) -> list[CanonicalEvent]:
    """Snapshot records whose URL this run did not produce."""
    fresh_urls = {e.url for e in fresh if e.url}
    return [e for e in snapshot if e.url not in fresh_urls]


def reconcile(
    fresh: Sequence[CanonicalEvent],
    snapshot: Sequence[CanonicalEvent],
    tz: tzinfo,
) -> list[CanonicalEvent]:
    """Fresh records followed by retained snapshot records, deduplicated."""
    return deduplicate([*fresh, *stale_records(fresh, snapshot)], tz)
