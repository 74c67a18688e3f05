"""HTTP transport providers."""

from hu5events.providers.http.fetcher import HttpFetcher

__all__ = ["HttpFetcher"]
