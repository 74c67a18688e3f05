"""Text normalization utilities for scraped event fields.

This module handles three distinct normalization concerns:

1. **Field cleanup** -- Decodes HTML entities (``&#8211;``, ``&amp;``),
   replaces non-breaking spaces and collapses whitespace so every text
   field of a canonical event compares and displays consistently.

2. **Flag detection** -- Keyword heuristics for "sold out", "free entry",
   prices and coarse event categories, applied to titles, descriptions and
   whole spreadsheet rows.

3. **Header matching** -- Fuzzy matching of spreadsheet column headers
   against synonym lists via rapidfuzz, so "Event Date (DD/MM/YYYY)" and
   "date" land on the same logical field.
"""

from __future__ import annotations

import html
import re
from typing import Any, Collection, Iterable

from rapidfuzz import fuzz, process

_WHITESPACE_RE = re.compile(r"\s+")
_ORDINAL_RE = re.compile(r"\b(\d{1,2})(st|nd|rd|th)\b", re.IGNORECASE)
_URL_RE = re.compile(r"https?://[^\s,;\"]+", re.IGNORECASE)
_PRICE_RE = re.compile(r"£\d+(?:\.\d{2})?(?:\s*/\s*£\d+(?:\.\d{2})?)?")


def normalize_whitespace(value: Any) -> str:
    """Decode HTML entities, drop NBSPs and collapse runs of whitespace.

    ``None`` becomes the empty string so builders never see ``"None"``.
    """
    if value is None:
        return ""
    text = html.unescape(str(value)).replace("\u00a0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_ordinals(text: str) -> str:
    """Remove ordinal suffixes: ``"2nd Nov 2025"`` -> ``"2 Nov 2025"``."""
    return _ORDINAL_RE.sub(r"\1", normalize_whitespace(text))


def find_urls(text: Any) -> list[str]:
    """Return every ``http(s)://`` URL embedded in *text*, in order."""
    return _URL_RE.findall(str(text or ""))


def first_price(text: str) -> str | None:
    """Return the first ``£`` price or price pair in *text*, if any."""
    match = _PRICE_RE.search(text or "")
    return match.group(0) if match else None


def unique(values: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication that also drops empty values."""
    seen: set[str] = set()
    out: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


# ------------------------------------------------------------------
# Flag detection
# ------------------------------------------------------------------

_SOLD_OUT_RE = re.compile(
    r"\b(sold\s*out|tickets?\s*sold\s*out|no\s*tickets\s*left|fully\s*booked)\b",
    re.IGNORECASE,
)

_FREE_ENTRY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\bfree\s+(entry|admission|show|gig|event)\b", re.IGNORECASE),
    re.compile(r"\bno\s+cover\b", re.IGNORECASE),
    re.compile(r"\bentry\s*[:\-]?\s*£?\s*0\b", re.IGNORECASE),
    re.compile(r"\bfree\s*admission\b", re.IGNORECASE),
    re.compile(r"\bfree\s*entry\b", re.IGNORECASE),
    re.compile(r"\bfree\s*gig\b", re.IGNORECASE),
    re.compile(r"£\s*0(?![\d.])", re.IGNORECASE),
    re.compile(r"\bcomplimentary\b", re.IGNORECASE),
    re.compile(r"\bno\s+bookings?\b", re.IGNORECASE),
]

# (category, pattern) -- an event may land in several categories.
_EVENT_TYPE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("Live Music", re.compile(r"\b(live\s+music|music|gig|band|concert|dj)\b", re.IGNORECASE)),
    ("Quiz", re.compile(r"\bquiz\b", re.IGNORECASE)),
    ("Comedy", re.compile(r"\b(comedy|comic|stand.?up)\b", re.IGNORECASE)),
    ("Open Mic", re.compile(r"\bopen\s+mic\b", re.IGNORECASE)),
    ("Karaoke", re.compile(r"\b(karaoke|sing|singing)\b", re.IGNORECASE)),
    ("Poetry", re.compile(r"\b(poetry|spoken\s+word|slam)\b", re.IGNORECASE)),
    ("Games", re.compile(r"\b(trivia|bingo|games?\s+night)\b", re.IGNORECASE)),
    ("Theatre", re.compile(r"\b(theatre|play|production|show)\b", re.IGNORECASE)),
    ("Food", re.compile(r"\b(lunch|dinner|brunch|food|eating)\b", re.IGNORECASE)),
    ("Party", re.compile(r"\b(party|dance|club|clubbing)\b", re.IGNORECASE)),
    ("Drag", re.compile(r"\bdrag\b", re.IGNORECASE)),
]


def is_sold_out(text: str) -> bool:
    """True when *text* says the tickets are gone."""
    return bool(_SOLD_OUT_RE.search(text or ""))


def offers_indicate_sold_out(offers: Iterable[dict[str, Any]] | None) -> bool:
    """True when any schema.org offer has ``SoldOut``/``OutOfStock`` availability."""
    for offer in offers or []:
        if not isinstance(offer, dict):
            continue
        if re.search(r"SoldOut|OutOfStock", str(offer.get("availability", "")), re.IGNORECASE):
            return True
    return False


def is_free_entry(text: str) -> bool:
    """True when *text* advertises free entry in any of the usual phrasings."""
    if not text:
        return False
    return any(p.search(text) for p in _FREE_ENTRY_PATTERNS)


def detect_event_types(title: str, description: str = "") -> list[str] | None:
    """Return the keyword categories matched by title + description, or ``None``."""
    text = f"{title} {description}"
    types = [name for name, pattern in _EVENT_TYPE_PATTERNS if pattern.search(text)]
    return types or None


# ------------------------------------------------------------------
# Header matching
# ------------------------------------------------------------------


def normalize_header(name: str) -> str:
    """Lower-case a column header and fold punctuation to single spaces.

    ``"Optional (tickets/link)"`` -> ``"optional tickets link"``.
    """
    text = normalize_whitespace(name).lower()
    text = re.sub(r"[()]", "", text)
    text = re.sub(r"[/_,.\-]+", " ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def fuzzy_match(
    query: str,
    candidates: list[str],
    threshold: float = 0.8,
) -> tuple[str, float] | None:
    """Find the best fuzzy match for a query among candidates.

    Uses rapidfuzz ``token_sort_ratio`` which sorts tokens alphabetically
    before comparing, so "time start" matches "start time".

    Args:
        query: The string to match.
        candidates: List of candidate strings to match against.
        threshold: Minimum similarity score (0.0--1.0) to accept a match.

    Returns:
        A (best_match, score) tuple if a match meets the threshold, else None.
    """
    if not candidates or not query:
        return None

    result = process.extractOne(
        query,
        candidates,
        scorer=fuzz.token_sort_ratio,
        score_cutoff=threshold * 100,
    )

    if result is None:
        return None

    match_str, score, _ = result
    return (match_str, score / 100.0)


def find_column(
    headers: list[str],
    synonyms: list[str],
    threshold: float = 0.85,
    exclude: Collection[int] = (),
) -> int:
    """Locate the column for a logical field; ``-1`` when absent.

    Matching runs in three passes, first hit wins: normalized exact match
    (synonyms in priority order), then a synonym appearing as whole words
    inside a header, then a rapidfuzz similarity above *threshold*.
    Columns listed in *exclude* (already claimed by another field) are
    never returned.
    """
    normalized = [
        "" if idx in exclude else normalize_header(h) for idx, h in enumerate(headers)
    ]
    wanted = [w for w in (normalize_header(s) for s in synonyms) if w]

    for want in wanted:
        if want in normalized:
            return normalized.index(want)

    for idx, header in enumerate(normalized):
        if header and any(re.search(rf"\b{re.escape(want)}\b", header) for want in wanted):
            return idx

    best_idx = -1
    best_score = 0.0
    for idx, header in enumerate(normalized):
        if not header:
            continue
        match = fuzzy_match(header, wanted, threshold=threshold)
        if match is not None and match[1] > best_score:
            best_idx, best_score = idx, match[1]
    return best_idx
