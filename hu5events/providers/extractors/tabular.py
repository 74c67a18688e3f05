"""Published-spreadsheet extractor (CSV export, one event per row).

Venue staff maintain these sheets by hand, so column names drift
("Date", "Event Date (DD/MM/YYYY)", "When") and cells hold whatever was
typed.  Columns are located by synonym lists (exact, whole-word, then
fuzzy via rapidfuzz); each row is converted independently so one bad row
never costs the rest of the sheet.
"""

from __future__ import annotations

import csv
import io

import structlog

from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import RawCandidate, TicketRef
from hu5events.models.source import TabularSourceConfig
from hu5events.utils.errors import ExtractionError
from hu5events.utils.text_normalizer import (
    find_column,
    find_urls,
    is_free_entry,
    is_sold_out,
    normalize_whitespace,
    strip_ordinals,
    unique,
)

logger = structlog.get_logger(logger_name=__name__)

# Resolved in this order; a column claimed by an earlier field is not
# offered to later ones.
COLUMN_SYNONYMS: dict[str, list[str]] = {
    "title": ["title", "event", "name", "event_name"],
    "date": ["date", "event_date", "when", "date_dd_mm_yyyy", "event_date_dd_mm_yyyy"],
    "time": ["time", "start_time", "doors", "starts", "start_time_hh_mm", "event_time"],
    "tickets": [
        "Optional (tickets/link)",
        "optional tickets link",
        "tickets",
        "ticket_url",
        "booking",
        "book",
    ],
    "price": ["price", "cost", "admission", "entry", "ticket_price"],
    "url": ["url", "link", "event_link", "page", "website", "facebook_event", "tickets_url"],
    "start": ["start", "start_iso", "starttime", "datetime", "date_time"],
    "end": ["end", "end_iso", "endtime", "end_time"],
    "day": ["day"],
    "month": ["month"],
    "year": ["year", "yyyy"],
}

_MAX_TICKETS_PER_ROW = 5


def parse_csv(text: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into a header row and non-blank data rows.

    Quoting (embedded commas, doubled quotes, newlines in cells) is
    handled by the stdlib reader.  Leading blank lines are skipped.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    headers: list[str] = []
    rows: list[list[str]] = []
    for record in reader:
        if not any(cell.strip() for cell in record):
            continue
        if not headers:
            headers = [cell.strip() for cell in record]
            continue
        rows.append(record)
    return headers, rows


def locate_columns(headers: list[str]) -> dict[str, int]:
    """Map each logical field to a column index (``-1`` when absent)."""
    claimed: set[int] = set()
    columns: dict[str, int] = {}
    for field, synonyms in COLUMN_SYNONYMS.items():
        idx = find_column(headers, synonyms, exclude=claimed)
        columns[field] = idx
        if idx >= 0:
            claimed.add(idx)
    return columns


def _cell(row: list[str], idx: int) -> str:
    if idx < 0 or idx >= len(row):
        return ""
    return row[idx]


def _combined_date(day: str, month: str, year: str) -> str:
    day, month, year = (normalize_whitespace(p) for p in (day, month, year))
    if not day or not month:
        return ""
    if month.isdigit():
        return "/".join(p for p in (day, month, year) if p)
    return " ".join(p for p in (day, month, year) if p)


class TabularExtractor(IExtractor):
    """Extract candidates from one published CSV sheet.

    Parameters
    ----------
    source:
        Sheet URL, source/venue names and fallback address.
    """

    def __init__(self, source: TabularSourceConfig) -> None:
        self._source = source

    def get_source_name(self) -> str:
        return self._source.name

    async def extract(self, fetcher: IPageFetcher) -> list[RawCandidate]:
        text = await fetcher.get_text(self._source.url, source_name=self._source.name)
        return self.parse(text)

    def parse(self, text: str) -> list[RawCandidate]:
        """Convert CSV text into candidates, skipping rows that fail."""
        log = logger.bind(source=self._source.name)
        headers, rows = parse_csv(text)
        if not rows:
            log.info("sheet_empty")
            return []

        columns = locate_columns(headers)
        for field in ("tickets", "price"):
            if columns[field] < 0:
                log.debug("column_not_found", field=field, headers=headers[:12])

        candidates: list[RawCandidate] = []
        skipped = 0
        for number, row in enumerate(rows, start=2):
            try:
                candidate = self._row_to_candidate(row, columns)
            except (ExtractionError, ValueError) as exc:
                skipped += 1
                log.warning("row_skipped", row=number, error=str(exc))
                continue
            if candidate is not None:
                candidates.append(candidate)

        log.info("sheet_parsed", rows=len(rows), candidates=len(candidates), skipped=skipped)
        return candidates

    def _row_to_candidate(self, row: list[str], columns: dict[str, int]) -> RawCandidate | None:
        title = normalize_whitespace(_cell(row, columns["title"]))
        date_text = strip_ordinals(_cell(row, columns["date"]))
        if not date_text:
            date_text = _combined_date(
                _cell(row, columns["day"]),
                _cell(row, columns["month"]),
                _cell(row, columns["year"]),
            )
        time_text = normalize_whitespace(_cell(row, columns["time"]))
        url = normalize_whitespace(_cell(row, columns["url"]))
        tickets_raw = _cell(row, columns["tickets"])
        row_text = normalize_whitespace(" ".join(row))

        if not (title or date_text or url):
            return None

        ticket_urls = unique(find_urls(tickets_raw)) or unique(find_urls(" ".join(row)))
        if ticket_urls and not url.lower().startswith(("http://", "https://")):
            url = ticket_urls[0]

        if not title and not url:
            raise ExtractionError(
                message=f"Row has a date ({date_text!r}) but no title or link",
                source_name=self._source.name,
            )

        return RawCandidate(
            source_name=self._source.name,
            venue_name=self._source.venue_name,
            url=url,
            title=title,
            date_text=date_text,
            time_text=time_text,
            trusted_timestamp=normalize_whitespace(_cell(row, columns["start"])) or None,
            end_timestamp=normalize_whitespace(_cell(row, columns["end"])) or None,
            address_text=self._source.address or None,
            ticket_refs=[TicketRef(url=u) for u in ticket_urls[:_MAX_TICKETS_PER_ROW]],
            sold_out_hint=is_sold_out(f"{title} {row_text}"),
            free_hint=is_free_entry(f"{title} {row_text} {tickets_raw}"),
            price_text=normalize_whitespace(_cell(row, columns["price"])) or None,
        )
