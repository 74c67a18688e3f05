"""HTTP page fetcher with per-attempt timeout and bounded retry.

Wraps an injected ``httpx.AsyncClient``.  Every attempt carries its own
timeout; transport errors, timeouts and non-2xx answers are retried with
linear backoff, except 404 which fails immediately with
:class:`NotFoundError`.
"""

from __future__ import annotations

import httpx
import structlog

from hu5events.interfaces.fetcher import IPageFetcher
from hu5events.utils.concurrency import with_retry
from hu5events.utils.errors import FetchError, NotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124 Safari/537.36"
    ),
    "Accept-Language": "en-GB,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,text/csv,*/*;q=0.8",
}


class HttpFetcher(IPageFetcher):
    """Page fetcher backed by httpx.

    Parameters
    ----------
    http_client:
        Shared async client.  When omitted the fetcher creates and owns
        one, closed by :meth:`aclose`.
    timeout:
        Per-attempt timeout in seconds.
    max_retries:
        Retries after the first attempt (``1`` means two attempts total).
    backoff:
        Base backoff in seconds; attempt ``n`` waits ``backoff * n``.
    headers:
        Extra request headers merged over the browser-like defaults.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        max_retries: int = 1,
        backoff: float = 0.5,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(follow_redirects=True)
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._backoff = backoff
        self._headers = {**_DEFAULT_HEADERS, **(headers or {})}

    async def get_text(self, url: str, source_name: str | None = None) -> str:
        async def _attempt() -> str:
            return await self._get_once(url, source_name)

        return await with_retry(
            _attempt,
            max_attempts=self._max_retries + 1,
            backoff=self._backoff,
            should_retry=_is_retryable,
            logger=logger.bind(url=url, source=source_name),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_once(self, url: str, source_name: str | None) -> str:
        try:
            response = await self._client.get(
                url,
                headers=self._headers,
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise FetchError(
                message=f"Timeout fetching {url}: {exc}",
                source_name=source_name,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"HTTP error fetching {url}: {exc}",
                source_name=source_name,
            ) from exc

        if response.status_code == 404:
            raise NotFoundError(message=f"HTTP 404 for {url}", source_name=source_name)
        if not response.is_success:
            raise FetchError(
                message=f"HTTP {response.status_code} for {url}",
                source_name=source_name,
                status_code=response.status_code,
            )
        return response.text


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, FetchError) and not isinstance(exc, NotFoundError)
