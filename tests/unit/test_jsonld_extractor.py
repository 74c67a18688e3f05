"""Unit tests for the JSON-LD listing/detail extractor."""

from __future__ import annotations

import json
from collections.abc import Callable

import pytest
from bs4 import BeautifulSoup

from hu5events.models.source import JsonLdSourceConfig
from hu5events.providers.extractors.jsonld import (
    JsonLdHtmlExtractor,
    clean_link,
    format_address,
    is_event_node,
    iter_jsonld_nodes,
    offer_price_text,
)
from hu5events.utils.errors import ExtractionError, NotFoundError

LISTING_URL = "https://www.skiddle.com/whats-on/Hull/DIVE-HU5/"

LISTING = """
<html><body>
  <a href="/e/12345">Band night</a>
  <a href="https://www.skiddle.com/e/12345?ref=listing#top">Same event again</a>
  <a href="https://other.example/e/999">Somewhere else</a>
  <a href="/whats-on/Hull/">Back to Hull</a>
  <a href="/e/777/add-to-calendar">Add to calendar</a>
  <script type="application/ld+json">
    {"@type": "ItemList",
     "itemListElement": [{"@type": "ListItem", "url": "https://skiddle.com/e/555"}]}
  </script>
</body></html>
"""

EVENT_NODE = {
    "@context": "https://schema.org",
    "@type": "MusicEvent",
    "name": "Band &amp; Friends",
    "startDate": "2026-11-07T19:30:00+00:00",
    "endDate": "2026-11-07T23:00:00+00:00",
    "description": "Live music all night",
    "location": {
        "@type": "Place",
        "name": "DIVE",
        "address": {
            "streetAddress": "78 Princes Ave",
            "addressLocality": "Hull",
            "postalCode": "HU5 3QJ",
        },
    },
    "offers": [
        {
            "url": "https://tix.example/1",
            "price": "8.00",
            "priceCurrency": "GBP",
            "availability": "https://schema.org/InStock",
        }
    ],
}

DETAIL = f"""
<html><head>
<script type="application/ld+json">{json.dumps({"@graph": [{"@type": "WebPage"}, EVENT_NODE]})}</script>
</head><body><h1>ignored</h1></body></html>
"""

FALLBACK = """
<html><head><title>Fallback</title></head>
<body><h1>Open Mic Night</h1><p>Thursday 12th November 2026, doors 8pm</p></body></html>
"""

MALFORMED = """
<html><head><script type="application/ld+json">{"@type": "Event", </script></head>
<body><h1>Broken</h1></body></html>
"""


@pytest.fixture
def source() -> JsonLdSourceConfig:
    return JsonLdSourceConfig(
        name="DIVE HU5",
        url=LISTING_URL,
        link_pattern=r"/e/\d+/?$",
    )


# ======================================================================
# Pure helpers
# ======================================================================


class TestHelpers:
    def test_graph_is_flattened(self) -> None:
        nodes, malformed = iter_jsonld_nodes(BeautifulSoup(DETAIL, "html.parser"))
        assert malformed == 0
        assert any(is_event_node(n) for n in nodes)

    def test_malformed_blocks_are_counted(self) -> None:
        nodes, malformed = iter_jsonld_nodes(BeautifulSoup(MALFORMED, "html.parser"))
        assert nodes == []
        assert malformed == 1

    def test_event_subtypes(self) -> None:
        assert is_event_node({"@type": ["Thing", "ComedyEvent"]})
        assert not is_event_node({"@type": "Place"})

    def test_format_address(self) -> None:
        assert format_address(EVENT_NODE["location"]) == "78 Princes Ave, Hull, HU5 3QJ"
        assert format_address("Somewhere, Hull") == "Somewhere, Hull"
        assert format_address(None) == ""

    def test_offer_price_text(self) -> None:
        assert offer_price_text(EVENT_NODE["offers"]) == "£8.00"
        assert offer_price_text([{"price": 10, "priceCurrency": "EUR"}]) == "EUR 10"
        assert offer_price_text([]) is None

    def test_clean_link(self) -> None:
        assert clean_link("/e/1?x=1#y", LISTING_URL) == "https://www.skiddle.com/e/1"
        assert clean_link("mailto:someone@example.com", LISTING_URL) is None


# ======================================================================
# Listing page
# ======================================================================


class TestCollectLinks:
    def test_same_host_matching_links_in_order(self, source: JsonLdSourceConfig) -> None:
        links = JsonLdHtmlExtractor(source).collect_links(LISTING)
        assert links == ["https://www.skiddle.com/e/12345", "https://skiddle.com/e/555"]

    def test_link_cap(self) -> None:
        capped = JsonLdSourceConfig(
            name="DIVE HU5", url=LISTING_URL, link_pattern=r"/e/\d+/?$", max_links=1
        )
        assert len(JsonLdHtmlExtractor(capped).collect_links(LISTING)) == 1


# ======================================================================
# Detail pages
# ======================================================================


class TestParseDetail:
    def test_event_block(self, source: JsonLdSourceConfig) -> None:
        candidate = JsonLdHtmlExtractor(source).parse_detail(DETAIL, "https://www.skiddle.com/e/1")
        assert candidate is not None
        assert candidate.title == "Band & Friends"
        assert candidate.trusted_timestamp == "2026-11-07T19:30:00+00:00"
        assert candidate.end_timestamp == "2026-11-07T23:00:00+00:00"
        assert candidate.address_text == "78 Princes Ave, Hull, HU5 3QJ"
        assert [t.url for t in candidate.ticket_refs] == ["https://tix.example/1"]
        assert candidate.price_text == "£8.00"
        assert candidate.url == "https://www.skiddle.com/e/1"

    def test_page_text_fallback(self, source: JsonLdSourceConfig) -> None:
        candidate = JsonLdHtmlExtractor(source).parse_detail(FALLBACK, "https://www.skiddle.com/e/2")
        assert candidate is not None
        assert candidate.title == "Open Mic Night"
        assert candidate.date_text.startswith("Thursday 12th November 2026")
        assert candidate.time_text == "20:00"

    def test_malformed_jsonld_is_rejected(self, source: JsonLdSourceConfig) -> None:
        with pytest.raises(ExtractionError):
            JsonLdHtmlExtractor(source).parse_detail(MALFORMED, "https://www.skiddle.com/e/3")

    def test_empty_page(self, source: JsonLdSourceConfig) -> None:
        assert JsonLdHtmlExtractor(source).parse_detail("<html></html>", "https://x") is None


class TestExtract:
    @pytest.mark.asyncio
    async def test_failed_detail_pages_are_skipped(
        self, source: JsonLdSourceConfig, fake_fetcher: Callable
    ) -> None:
        fetcher = fake_fetcher(
            {
                LISTING_URL: LISTING,
                "https://www.skiddle.com/e/12345": DETAIL,
                # https://skiddle.com/e/555 is missing -> NotFoundError
            }
        )
        candidates = await JsonLdHtmlExtractor(source, detail_concurrency=2).extract(fetcher)
        assert [c.title for c in candidates] == ["Band & Friends"]
        assert fetcher.calls[0] == LISTING_URL

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(
        self, source: JsonLdSourceConfig, fake_fetcher: Callable
    ) -> None:
        with pytest.raises(NotFoundError):
            await JsonLdHtmlExtractor(source).extract(fake_fetcher({}))
