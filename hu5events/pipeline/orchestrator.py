"""Bounded-concurrency fetch orchestrator.

Runs every extractor concurrently under one semaphore and collects a
:class:`FetchOutcome` per extractor, in input order.  A failing extractor
(network error after retries, unexpected exception) becomes an outcome
with ``error`` set and no candidates; it never cancels or blocks the
others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from hu5events.interfaces.extractor import IExtractor
from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.pipeline import FetchOutcome
from hu5events.utils.concurrency import gather_settled
from hu5events.utils.logging import get_logger


class FetchOrchestrator:
    """Fan extractors out with a concurrency ceiling.

    Parameters
    ----------
    concurrency:
        Maximum number of extractors running at once.
    """

    def __init__(self, concurrency: int = 8) -> None:
        self._concurrency = max(1, concurrency)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def run(
        self,
        extractors: Sequence[IExtractor],
        fetcher: IPageFetcher,
    ) -> list[FetchOutcome]:
        """Execute all extractors; one outcome per extractor, input order."""
        if not extractors:
            return []

        semaphore = asyncio.Semaphore(self._concurrency)
        successes, failures = await gather_settled(
            [extractor.extract(fetcher) for extractor in extractors],
            semaphore=semaphore,
        )

        outcomes: dict[int, FetchOutcome] = {}
        for idx, candidates in successes:
            name = extractors[idx].get_source_name()
            outcomes[idx] = FetchOutcome(source=name, candidates=list(candidates))
            self._logger.info("source_fetched", source=name, candidates=len(candidates))

        for idx, exc in failures:
            name = extractors[idx].get_source_name()
            outcomes[idx] = FetchOutcome(source=name, error=str(exc) or type(exc).__name__)
            self._logger.warning(
                "source_fetch_failed",
                source=name,
                error=str(exc),
                error_type=type(exc).__name__,
            )

        return [outcomes[idx] for idx in range(len(extractors))]
