"""Listing-page extractor for sites publishing schema.org ``Event`` data.

Two stages per source, strictly ordered:

1. Fetch the listing page and collect same-host detail links whose path
   matches the source's ``link_pattern`` (from ``<a href>`` and from
   ``ItemList``/``Event`` JSON-LD blocks).  Query strings and fragments are
   dropped, calendar export links ignored, the list capped at ``max_links``.
2. Fetch the detail pages with bounded concurrency.  Each page prefers a
   JSON-LD ``Event`` block and falls back to ``<h1>``/``<title>`` plus
   date/time fragments in the page text.  A page that fails to fetch or
   carries malformed JSON-LD is skipped; its siblings continue.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

import structlog
from bs4 import BeautifulSoup

from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import RawCandidate, TicketRef
from hu5events.models.source import JsonLdSourceConfig
from hu5events.services.time_normalizer import find_time_in_text
from hu5events.utils.concurrency import gather_settled
from hu5events.utils.errors import ExtractionError
from hu5events.utils.text_normalizer import normalize_whitespace

logger = structlog.get_logger(logger_name=__name__)

_CALENDAR_RE = re.compile(r"(\.ics$|/ical/|calendar|add-to-calendar|outlook|google\.com/calendar)", re.I)

_PAGE_DATE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"\b(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*,?\s+\d{1,2}(?:st|nd|rd|th)?\s+"
        r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*(?:\s+\d{4})?\b",
        re.I,
    ),
    re.compile(
        r"\b\d{1,2}(?:st|nd|rd|th)?\s+(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"
        r"(?:\s+\d{4})?\b",
        re.I,
    ),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
]


# ------------------------------------------------------------------
# JSON-LD helpers (pure)
# ------------------------------------------------------------------


def iter_jsonld_nodes(soup: BeautifulSoup) -> tuple[list[dict[str, Any]], int]:
    """Return every JSON-LD object on the page (``@graph`` flattened).

    The second element counts blocks that failed to decode.
    """
    nodes: list[dict[str, Any]] = []
    malformed = 0
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text() or ""
        if not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            malformed += 1
            continue
        for item in data if isinstance(data, list) else [data]:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                nodes.extend(g for g in graph if isinstance(g, dict))
            else:
                nodes.append(item)
    return nodes, malformed


def node_types(node: dict[str, Any]) -> set[str]:
    raw = node.get("@type")
    values = raw if isinstance(raw, list) else [raw]
    return {str(v) for v in values if v}


def is_event_node(node: dict[str, Any]) -> bool:
    """``Event`` or any subtype (``MusicEvent``, ``ComedyEvent``...)."""
    return any(t.endswith("Event") for t in node_types(node))


def format_address(location: Any) -> str:
    """Flatten a schema.org ``Place``/``PostalAddress`` into one line."""
    if isinstance(location, list):
        location = next((loc for loc in location if loc), None)
    if isinstance(location, str):
        return normalize_whitespace(location)
    if not isinstance(location, dict):
        return ""
    address = location.get("address", location)
    if isinstance(address, str):
        return normalize_whitespace(address)
    if not isinstance(address, dict):
        return ""
    parts = [
        address.get("streetAddress"),
        address.get("addressLocality"),
        address.get("postalCode"),
    ]
    return normalize_whitespace(", ".join(str(p) for p in parts if p))


def as_offer_list(offers: Any) -> list[dict[str, Any]]:
    if isinstance(offers, dict):
        return [offers]
    if isinstance(offers, list):
        return [o for o in offers if isinstance(o, dict)]
    return []


def offer_price_text(offers: list[dict[str, Any]]) -> str | None:
    for offer in offers:
        price = offer.get("price", offer.get("lowPrice"))
        if price in (None, ""):
            continue
        currency = str(offer.get("priceCurrency", "GBP")).upper()
        symbol = "£" if currency == "GBP" else f"{currency} "
        return f"{symbol}{price}"
    return None


def clean_link(href: str, base_url: str) -> str | None:
    """Absolute URL without query or fragment; ``None`` for non-http links."""
    try:
        absolute = urljoin(base_url, href.strip())
        parts = urlsplit(absolute)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https"):
        return None
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _host(url: str) -> str:
    host = urlsplit(url).netloc.lower()
    return host[4:] if host.startswith("www.") else host


# ------------------------------------------------------------------
# Extractor
# ------------------------------------------------------------------


class JsonLdHtmlExtractor(IExtractor):
    """Extract candidates from a listing page and its detail pages.

    Parameters
    ----------
    source:
        Listing URL, detail-link pattern and link cap.
    detail_concurrency:
        Maximum detail pages in flight at once for this source.
    """

    def __init__(self, source: JsonLdSourceConfig, detail_concurrency: int = 4) -> None:
        self._source = source
        self._link_re = re.compile(source.link_pattern, re.IGNORECASE)
        self._detail_concurrency = max(1, detail_concurrency)
        self._logger = logger.bind(source=source.name)

    def get_source_name(self) -> str:
        return self._source.name

    async def extract(self, fetcher: IPageFetcher) -> list[RawCandidate]:
        listing = await fetcher.get_text(self._source.url, source_name=self._source.name)
        links = self.collect_links(listing)
        self._logger.info("detail_links_collected", links=len(links))
        if not links:
            return []

        semaphore = asyncio.Semaphore(self._detail_concurrency)
        successes, failures = await gather_settled(
            [self._fetch_detail(fetcher, url) for url in links],
            semaphore=semaphore,
        )
        for idx, exc in failures:
            self._logger.warning("detail_page_skipped", url=links[idx], error=str(exc))

        candidates = [c for _, c in successes if c is not None]
        self._logger.info(
            "detail_pages_done",
            candidates=len(candidates),
            failed=len(failures),
        )
        return candidates

    # ------------------------------------------------------------------
    # Listing page
    # ------------------------------------------------------------------

    def collect_links(self, html: str) -> list[str]:
        """Detail-page URLs found on the listing page, in page order."""
        soup = BeautifulSoup(html, "html.parser")
        base_host = _host(self._source.url)
        found: list[str] = []
        seen: set[str] = set()

        def add(href: Any) -> None:
            if not isinstance(href, str) or not href.strip():
                return
            url = clean_link(href, self._source.url)
            if url is None or url in seen:
                return
            if _host(url) != base_host or _CALENDAR_RE.search(url):
                return
            if not self._link_re.search(urlsplit(url).path):
                return
            seen.add(url)
            found.append(url)

        for anchor in soup.find_all("a", href=True):
            add(anchor["href"])

        nodes, _ = iter_jsonld_nodes(soup)
        for node in nodes:
            types = node_types(node)
            if is_event_node(node):
                add(node.get("url"))
            if "ItemList" in types and isinstance(node.get("itemListElement"), list):
                for element in node["itemListElement"]:
                    item = element
                    if isinstance(element, dict):
                        item = element.get("item") or element.get("url")
                    add(item.get("url") if isinstance(item, dict) else item)

        return found[: self._source.max_links]

    # ------------------------------------------------------------------
    # Detail pages
    # ------------------------------------------------------------------

    async def _fetch_detail(self, fetcher: IPageFetcher, url: str) -> RawCandidate | None:
        html = await fetcher.get_text(url, source_name=self._source.name)
        return self.parse_detail(html, url)

    def parse_detail(self, html: str, page_url: str) -> RawCandidate | None:
        """Build a candidate from one detail page.

        Raises
        ------
        ExtractionError
            If the page's JSON-LD is malformed and no usable ``Event``
            block remains.
        """
        soup = BeautifulSoup(html, "html.parser")
        nodes, malformed = iter_jsonld_nodes(soup)
        event = next((n for n in nodes if is_event_node(n)), None)

        if event is not None:
            return self._from_event_node(event, page_url)
        if malformed:
            raise ExtractionError(
                message=f"Malformed JSON-LD on {page_url}",
                source_name=self._source.name,
            )
        return self._from_page_text(soup, page_url)

    def _from_event_node(self, node: dict[str, Any], page_url: str) -> RawCandidate:
        offers = as_offer_list(node.get("offers"))
        tickets = [
            TicketRef(url=str(o["url"]).strip())
            for o in offers
            if isinstance(o.get("url"), str) and o["url"].strip()
        ]
        raw_description = node.get("description")
        description = normalize_whitespace(raw_description) if isinstance(raw_description, str) else None
        start = node.get("startDate")
        end = node.get("endDate")
        address = format_address(node.get("location")) or self._source.address

        return RawCandidate(
            source_name=self._source.name,
            venue_name=self._source.venue_name,
            url=page_url,
            title=normalize_whitespace(node.get("name")),
            trusted_timestamp=str(start) if start else None,
            end_timestamp=str(end) if end else None,
            address_text=address or None,
            ticket_refs=tickets,
            offers=offers or None,
            price_text=offer_price_text(offers),
            free_hint=True if node.get("isAccessibleForFree") is True else None,
            description=description,
        )

    def _from_page_text(self, soup: BeautifulSoup, page_url: str) -> RawCandidate | None:
        heading = soup.find("h1")
        title = normalize_whitespace(heading.get_text(" ")) if heading else ""
        if not title and soup.title is not None:
            title = normalize_whitespace(soup.title.get_text(" "))

        text = normalize_whitespace(soup.get_text(" "))
        date_text = ""
        for pattern in _PAGE_DATE_PATTERNS:
            match = pattern.search(text)
            if match:
                date_text = match.group(0)
                break

        if not title and not date_text:
            self._logger.debug("detail_page_empty", url=page_url)
            return None

        return RawCandidate(
            source_name=self._source.name,
            venue_name=self._source.venue_name,
            url=page_url,
            title=title,
            date_text=date_text,
            time_text=find_time_in_text(text) or "",
            address_text=self._source.address or None,
        )
