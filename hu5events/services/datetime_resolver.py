"""Cascading date/time resolution for scraped event candidates.

Turns (free-text date, free-text time, optional trusted timestamp) into a
UTC instant anchored in the reference timezone, or fails closed.  Steps
run in strict priority order and the first success wins:

1. **Trusted** -- an ISO-8601 timestamp from structured metadata.
2. **Strict** -- ``date + HH:MM`` against an explicit format list.
3. **Strict date** -- the date alone against the same list, date-only.
4. **Fuzzy** -- wider formats, then a date-shaped fragment located
   anywhere in the combined text.
5. **Year inference** -- ``5/11`` or ``Wed 5 Nov`` with no year assumes
   the cutoff's year, rolling to the next year when that date has passed.
6. Nothing date-bearing -> no instant.

Time policy once a calendar date is known:

- readable time text        -> that time, ``time_uncertain=False``
- no time text at all       -> default evening time, ``time_uncertain=True``
- time text that won't read -> NO instant, ``time_uncertain=True``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse

from hu5events.services.time_normalizer import find_time_in_text, normalize_time
from hu5events.utils.text_normalizer import normalize_whitespace, strip_ordinals

DEFAULT_EVENT_TIME = "20:00"

# Full-match strptime formats.  %d/%m accept one or two digits.
STRICT_DATETIME_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d %B %Y %H:%M",
    "%d %b %Y %H:%M",
)
STRICT_DATE_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y",
    "%d %B %Y",
    "%d %b %Y",
)
FUZZY_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%a %d/%m/%Y",
    "%A %d/%m/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%a %d %B %Y",
    "%A %d %B %Y",
    "%a %d %b %Y",
    "%A %d %b %Y",
)

_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

_SEPT_RE = re.compile(r"\bsept\b", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b\d{4}\b")
_ISO_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRAGMENT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    re.compile(
        r"\b(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*\s+\d{1,2}\s+[A-Za-z]+\s+\d{4}\b",
        re.IGNORECASE,
    ),
    re.compile(
        r"\b\d{1,2}\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{4}\b",
        re.IGNORECASE,
    ),
]
_NUMERIC_DAY_MONTH_RE = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})\b")
_NAMED_DAY_MONTH_RE = re.compile(
    r"\b(?:(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)\w*\s+)?(\d{1,2})\s+([A-Za-z]+)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one candidate's start.

    Attributes
    ----------
    start:
        UTC instant, or ``None`` when no safe instant exists.
    local_date:
        Calendar date found in the text, even when ``start`` is ``None``.
    time_uncertain:
        ``True`` when the time was defaulted or could not be read.
    method:
        Which step produced the result (``trusted``, ``strict``,
        ``strict_date``, ``fuzzy``, ``inferred`` or ``none``).
    """

    start: datetime | None = None
    local_date: date | None = None
    time_uncertain: bool = False
    method: str = "none"


# ------------------------------------------------------------------
# Single-step parsers (pure functions)
# ------------------------------------------------------------------


def clean_date_text(text: str | None) -> str:
    """Strip ordinals and commas, fold ``Sept`` to ``Sep``."""
    cleaned = strip_ordinals(text or "").replace(",", " ")
    cleaned = _SEPT_RE.sub("Sep", cleaned)
    return normalize_whitespace(cleaned)


def parse_trusted(value: str | None, tz: ZoneInfo) -> datetime | None:
    """Parse an ISO-8601 timestamp, anchoring naive values to *tz*.

    Returns a UTC-aware datetime, or ``None`` if *value* is not ISO-8601.
    """
    if not value or not str(value).strip():
        return None
    try:
        parsed = isoparse(str(value).strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def _strptime_any(text: str, formats: tuple[str, ...]) -> datetime | None:
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_strict_datetime(date_text: str, hhmm: str) -> datetime | None:
    """Strictly parse ``"<date> <HH:MM>"``; returns a naive local datetime."""
    cleaned = clean_date_text(date_text)
    if not cleaned or not hhmm:
        return None
    return _strptime_any(f"{cleaned} {hhmm}", STRICT_DATETIME_FORMATS)


def parse_strict_date(date_text: str) -> date | None:
    """Strictly parse a date with no time component."""
    cleaned = clean_date_text(date_text)
    if not cleaned:
        return None
    parsed = _strptime_any(cleaned, STRICT_DATE_FORMATS)
    return parsed.date() if parsed else None


def parse_fuzzy_date(text: str) -> date | None:
    """Try the wider format list, then any date-shaped fragment in *text*."""
    cleaned = clean_date_text(text)
    if not cleaned:
        return None

    parsed = _strptime_any(cleaned, FUZZY_DATE_FORMATS)
    if parsed:
        return parsed.date()

    for pattern in _FRAGMENT_PATTERNS:
        match = pattern.search(cleaned)
        if not match:
            continue
        parsed = _strptime_any(match.group(0), FUZZY_DATE_FORMATS)
        if parsed:
            return parsed.date()
    return None


def infer_year(date_text: str, cutoff_date: date) -> date | None:
    """Complete a year-less day/month using the cutoff's year.

    ``"5/11"``, ``"5-11"``, ``"5 Nov"`` and ``"Wed 5 November"`` are
    recognised.  A date strictly before *cutoff_date* rolls to next year.
    Text that already carries a 4-digit year is left alone (``None``).
    """
    cleaned = clean_date_text(date_text)
    if not cleaned or _YEAR_RE.search(cleaned):
        return None

    day = month = None
    # "7.30" in "Sat 2 Nov, doors 7.30 pm" is a time, not day 7 of month 30.
    match = _NUMERIC_DAY_MONTH_RE.search(cleaned)
    if match and 1 <= int(match.group(1)) <= 31 and 1 <= int(match.group(2)) <= 12:
        day, month = int(match.group(1)), int(match.group(2))
    else:
        match = _NAMED_DAY_MONTH_RE.search(cleaned)
        if match:
            name = match.group(2).lower()
            index = next((i for i, m in enumerate(_MONTHS) if name.startswith(m)), -1)
            if index >= 0:
                day, month = int(match.group(1)), index + 1

    if day is None or month is None:
        return None

    for year in (cutoff_date.year, cutoff_date.year + 1):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate >= cutoff_date:
            return candidate
    return None


# ------------------------------------------------------------------
# Resolver
# ------------------------------------------------------------------


class DateTimeResolver:
    """Stateless resolver bound to a reference timezone.

    Parameters
    ----------
    tz:
        Reference timezone all local dates/times are anchored in.
    default_time:
        ``HH:MM`` applied when a date is known but no time text exists.
    """

    def __init__(self, tz: ZoneInfo, default_time: str = DEFAULT_EVENT_TIME) -> None:
        self._tz = tz
        hour, minute = (int(part) for part in default_time.split(":"))
        self._default_time = time(hour, minute)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def resolve(
        self,
        date_text: str | None,
        time_text: str | None,
        trusted_timestamp: str | None,
        cutoff: datetime,
    ) -> Resolution:
        """Run the cascade and return the first successful resolution."""
        date_text = normalize_whitespace(date_text)
        time_text = normalize_whitespace(time_text)

        # 1. Trusted structured metadata.
        if trusted_timestamp and _ISO_DATE_ONLY_RE.match(trusted_timestamp.strip()):
            try:
                day = date.fromisoformat(trusted_timestamp.strip())
            except ValueError:
                day = None
            if day is not None:
                return self._with_time(day, time_text, date_text, "trusted")
        trusted = parse_trusted(trusted_timestamp, self._tz)
        if trusted is not None:
            local = trusted.astimezone(self._tz)
            return Resolution(start=trusted, local_date=local.date(), method="trusted")

        if not date_text:
            return Resolution()

        # 2. Strict date + normalized time.
        hhmm = normalize_time(time_text) if time_text else None
        if hhmm:
            naive = parse_strict_datetime(date_text, hhmm)
            if naive is not None:
                return Resolution(
                    start=self._to_utc(naive),
                    local_date=naive.date(),
                    method="strict",
                )

        # 3. Strict date alone.
        day = parse_strict_date(date_text)
        if day is not None:
            return self._with_time(day, time_text, date_text, "strict_date")

        # 4. Fuzzy formats and embedded fragments.
        day = parse_fuzzy_date(f"{date_text} {time_text}".strip())
        if day is not None:
            return self._with_time(day, time_text, date_text, "fuzzy")

        # 5. Year inference for day/month without a year.
        cutoff_date = cutoff.astimezone(self._tz).date()
        day = infer_year(date_text, cutoff_date)
        if day is not None:
            return self._with_time(day, time_text, date_text, "inferred")

        # 6. Undated.
        return Resolution()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _with_time(self, day: date, time_text: str, date_text: str, method: str) -> Resolution:
        if time_text:
            hhmm = normalize_time(time_text)
            if hhmm is None:
                return Resolution(local_date=day, time_uncertain=True, method=method)
        else:
            hhmm = find_time_in_text(date_text)

        if hhmm is None:
            local = datetime.combine(day, self._default_time)
            return Resolution(
                start=self._to_utc(local),
                local_date=day,
                time_uncertain=True,
                method=method,
            )

        hour, minute = (int(part) for part in hhmm.split(":"))
        local = datetime.combine(day, time(hour, minute))
        return Resolution(start=self._to_utc(local), local_date=day, method=method)

    def _to_utc(self, naive: datetime) -> datetime:
        return naive.replace(tzinfo=self._tz).astimezone(timezone.utc)
