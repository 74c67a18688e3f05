"""Abstract base class for page fetchers.

Extractors receive a fetcher instead of an HTTP client so the timeout,
retry and header policy lives in one place and tests can substitute a
canned implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IPageFetcher(ABC):
    """Contract for fetching a document body as text."""

    @abstractmethod
    async def get_text(self, url: str, source_name: str | None = None) -> str:
        """Return the decoded body of *url*.

        Parameters
        ----------
        url:
            Absolute URL to fetch.
        source_name:
            Label attached to any raised error for log context.

        Raises
        ------
        hu5events.utils.errors.NotFoundError
            The server answered 404.
        hu5events.utils.errors.FetchError
            Any other failure once the retry budget is spent.
        """
