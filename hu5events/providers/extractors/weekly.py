"""Synthetic weekly-slot extractor.

Some venues run a fixed weekly slot (Sunday lunch at noon) that never
appears on any page.  This extractor generates it for the next N weeks,
starting from the cutoff's calendar day, with trusted timestamps so the
resolver never has to guess.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

import structlog

from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import RawCandidate
from hu5events.models.source import WeeklySourceConfig

logger = structlog.get_logger(logger_name=__name__)


class WeeklyScheduleExtractor(IExtractor):
    """Generate one candidate per week for a recurring slot.

    Parameters
    ----------
    source:
        Title, weekday (0=Monday), ``HH:MM`` time and number of weeks.
    cutoff:
        Start of the current day; the first slot is on or after it.
    tz:
        Timezone the slot's wall-clock time is expressed in.
    """

    def __init__(self, source: WeeklySourceConfig, cutoff: datetime, tz: ZoneInfo) -> None:
        self._source = source
        self._cutoff = cutoff
        self._tz = tz

    def get_source_name(self) -> str:
        return self._source.name

    async def extract(self, fetcher: IPageFetcher) -> list[RawCandidate]:
        # No network access: the fetcher is part of the interface only.
        return self.generate()

    def generate(self) -> list[RawCandidate]:
        today = self._cutoff.astimezone(self._tz).date()
        first = today + timedelta(days=(self._source.weekday - today.weekday()) % 7)
        hour, minute = (int(part) for part in self._source.time.split(":"))

        candidates: list[RawCandidate] = []
        for week in range(self._source.weeks):
            day = first + timedelta(weeks=week)
            start = datetime.combine(day, time(hour, minute), tzinfo=self._tz)
            if start < self._cutoff:
                continue
            candidates.append(
                RawCandidate(
                    source_name=self._source.name,
                    venue_name=self._source.venue_name,
                    url=self._source.url,
                    title=self._source.title,
                    date_text=f"{day.day}/{day.month}/{day.year}",
                    time_text=self._source.time,
                    trusted_timestamp=start.isoformat(),
                    address_text=self._source.address or None,
                )
            )

        logger.info("weekly_slots_generated", source=self._source.name, slots=len(candidates))
        return candidates
