"""Abstract base class for per-source event extractors.

An extractor knows how ONE source publishes its listings (a spreadsheet,
an HTML listing page, a synthetic weekly slot) and turns that into
:class:`RawCandidate` records.  It knows nothing about dates, addresses or
deduplication; those are handled downstream by the services layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.models.event import RawCandidate


class IExtractor(ABC):
    """Contract for source adapters consumed by the fetch orchestrator.

    Implementations must be safe to run concurrently with other extractors
    and must not share mutable state between runs.
    """

    @abstractmethod
    async def extract(self, fetcher: IPageFetcher) -> list[RawCandidate]:
        """Fetch the source and yield its candidates.

        Parameters
        ----------
        fetcher:
            Page fetcher applying timeout and retry policy.

        Returns
        -------
        list[RawCandidate]
            Zero or more candidates, in source order.

        Raises
        ------
        hu5events.utils.errors.FetchError
            If the source's primary document cannot be fetched.  The
            orchestrator records the failure and carries on.
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Return the source label stamped on every candidate."""
