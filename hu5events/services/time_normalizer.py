"""Time-of-day normalization for scraped listing text.

Venue pages mix prices, labels and times in one string
(``"£10.25 entry, doors 8pm"``, ``"Doors 7.30pm - till late"``).  This module
turns such text into a 24-hour ``"HH:MM"`` string, or ``None`` when no
time can be read safely.

Cleaning runs BEFORE matching, in this order:

1. Prices are removed (``£10``, ``£10.25/£12``, ``10/12``, ``12.50 adv``)
   so ``10.25`` can never be read as ``10:25``.
2. Dotted times become colon times (``8.30`` -> ``8:30``).
3. Label words are removed (doors, from, starts, show, music, late).

Matching then tries, first hit wins: a range (first token, borrowing the
closing am/pm when needed), 12-hour with minutes, 24-hour ``HH:MM``,
bare 12-hour (``8pm``), ``HHhMM``.  Without am/pm, ``"7.30"`` reads
as 24-hour ``07:30``.  A bare hour such as ``"8"`` is ambiguous and returns
``None``.
"""

from __future__ import annotations

import re

from hu5events.utils.text_normalizer import normalize_whitespace

# -- Price stripping ---------------------------------------------------------
_CURRENCY_RE = re.compile(r"£\s*\d{1,3}(?:\.\d{2})?(?:\s*/\s*£?\s*\d{1,3}(?:\.\d{2})?)*")
_FEE_DECIMAL_RE = re.compile(
    r"\b\d{1,3}\.\d{2}\b(?=\s*(?:adv|otd|door|entry|tickets?|\+?bf|\+?fees?))",
    re.IGNORECASE,
)
_PRICE_RANGE_RE = re.compile(r"\b\d{1,3}(?:\.\d{2})?\s*/\s*\d{1,3}(?:\.\d{2})?\b")

# -- Shape normalization -----------------------------------------------------
_DOTTED_RE = re.compile(r"\b(\d{1,2})\.(\d{2})(?!\d)")
_LABEL_RE = re.compile(r"\b(?:doors?|from|starts?|show(?:time)?|music)\b\s*[:\-–]?\s*")
_TILL_LATE_RE = re.compile(r"\b(?:till|['’]?til)\s*late\b")
_LATE_RE = re.compile(r"\blate\b")

# -- Matchers (run against cleaned, lower-cased text) ------------------------
_RANGE_RE = re.compile(
    r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\s*[–—-]\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b"
)
_TWELVE_MINUTES_RE = re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)\b")
_TWENTY_FOUR_RE = re.compile(r"\b(\d{1,2}):(\d{2})\b")
_TWELVE_BARE_RE = re.compile(r"\b(\d{1,2})\s*(am|pm)\b")
_H_MINUTES_RE = re.compile(r"\b(\d{1,2})h(\d{2})\b")

# -- Time-in-text search (dates such as 02.11.2025 must not look like times) --
_EMBEDDED_TIME_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?<![\d./:])\d{1,2}[:.]\d{2}\s*(?:am|pm)\b", re.IGNORECASE),
    re.compile(r"(?<![\d./:])\d{1,2}[:.]\d{2}(?![\d./:])"),
    re.compile(r"(?<![\d./:])\d{1,2}\s*(?:am|pm)\b", re.IGNORECASE),
    re.compile(r"\bdoors?\s*[:\-]?\s*\d{1,2}(?:[:.h]\d{2})?\s*(?:am|pm)?", re.IGNORECASE),
]


def strip_prices(text: str) -> str:
    """Remove currency amounts and price-like ranges from *text*."""
    s = _CURRENCY_RE.sub("", text)
    s = _FEE_DECIMAL_RE.sub("", s)
    return _PRICE_RANGE_RE.sub("", s)


def clean_time_candidate(raw: str) -> str:
    """Lower-case, strip prices and label words, convert dotted times."""
    s = normalize_whitespace(raw).lower()
    s = strip_prices(s)
    s = _DOTTED_RE.sub(r"\1:\2", s)
    s = _LABEL_RE.sub("", s)
    s = _TILL_LATE_RE.sub("", s)
    s = _LATE_RE.sub("", s)
    return normalize_whitespace(s)


def to_24h(hour: int, minute: int, meridiem: str | None) -> str | None:
    """Format a clock reading as ``HH:MM``; ``None`` when out of range.

    With a meridiem the hour must be 1-12 (12am is midnight, 12pm is noon);
    without one it must be 0-23.
    """
    if not 0 <= minute <= 59:
        return None
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "pm" and hour != 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    elif not 0 <= hour <= 23:
        return None
    return f"{hour:02d}:{minute:02d}"


def normalize_time(raw: str | None) -> str | None:
    """Normalize free-form time text to ``"HH:MM"`` (24-hour).

    Examples
    --------
    >>> normalize_time("£10.25 entry, doors 8pm")
    '20:00'
    >>> normalize_time("7–11pm")
    '19:00'
    >>> normalize_time("8") is None
    True
    """
    if not raw:
        return None
    s = clean_time_candidate(raw)
    if not s:
        return None

    match = _RANGE_RE.search(s)
    if match:
        result = _first_of_range(match)
        if result:
            return result

    match = _TWELVE_MINUTES_RE.search(s)
    if match:
        return to_24h(int(match.group(1)), int(match.group(2)), match.group(3))

    match = _TWENTY_FOUR_RE.search(s)
    if match:
        return to_24h(int(match.group(1)), int(match.group(2)), None)

    match = _TWELVE_BARE_RE.search(s)
    if match:
        return to_24h(int(match.group(1)), 0, match.group(2))

    match = _H_MINUTES_RE.search(s)
    if match:
        return to_24h(int(match.group(1)), int(match.group(2)), None)

    return None


def find_time_in_text(text: str | None) -> str | None:
    """Locate and normalize the first time-looking fragment in a text blob.

    Used when a page or row has no dedicated time field, e.g. a date cell
    reading ``"Sat 2 Nov 2025, 8pm"``.
    """
    if not text:
        return None
    blob = strip_prices(normalize_whitespace(text))
    for pattern in _EMBEDDED_TIME_PATTERNS:
        match = pattern.search(blob)
        if match:
            result = normalize_time(match.group(0))
            if result:
                return result
    return None


def _first_of_range(match: re.Match[str]) -> str | None:
    h1, m1, ap1, h2, _m2, ap2 = match.groups()
    hour = int(h1)
    minute = int(m1) if m1 else 0
    if ap1:
        return to_24h(hour, minute, ap1)
    if ap2:
        # "7-11pm": the opening hour shares the closing meridiem unless
        # the range wraps past noon/midnight ("11-2am").
        if hour <= int(h2) or hour == 12:
            return to_24h(hour, minute, ap2)
        return to_24h(hour, minute, "am" if ap2 == "pm" else "pm")
    if m1:
        return to_24h(hour, minute, None)
    return None
