"""Shared concurrency primitives for the fetch stage.

Three patterns are exposed:

1. **throttled_gather** -- A drop-in replacement for ``asyncio.gather`` that
   wraps each awaitable in a semaphore acquire/release.  Used when you have
   a list of arbitrary coroutines to run with bounded concurrency.

2. **gather_settled** -- Settle-all fan-out: runs every awaitable to
   completion and returns a ``(successes, failures)`` pair instead of
   failing fast.  Failures are data at this boundary, never exceptions.

3. **with_retry** -- Bounded-retry combinator with linearly increasing
   backoff, composed around a single zero-argument async operation.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog

from hu5events.utils.logging import get_logger

_T = TypeVar("_T")

_DEFAULT_CONCURRENCY = 8

_logger: structlog.BoundLogger = get_logger(__name__)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Each coroutine is wrapped so it acquires the semaphore before executing
    and releases it afterward, so at most the semaphore's initial value
    run simultaneously.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  A fresh semaphore of
        ``_DEFAULT_CONCURRENCY`` slots is created when omitted.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(_DEFAULT_CONCURRENCY)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def gather_settled(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
) -> tuple[list[tuple[int, _T]], list[tuple[int, BaseException]]]:
    """Run every awaitable to completion and split the outcomes.

    Parameters
    ----------
    coros:
        Awaitables to execute; one slow or failing entry never cancels
        its siblings.
    semaphore:
        Concurrency ceiling shared by the batch.

    Returns
    -------
    tuple
        ``(successes, failures)`` where each entry is ``(index, value)``
        or ``(index, exception)`` and ``index`` is the position of the
        awaitable in *coros*.  Both lists are in input order.
    """
    raw = await throttled_gather(coros, semaphore=semaphore, return_exceptions=True)

    successes: list[tuple[int, _T]] = []
    failures: list[tuple[int, BaseException]] = []
    for idx, result in enumerate(raw):
        if isinstance(result, BaseException):
            failures.append((idx, result))
        else:
            successes.append((idx, result))
    return successes, failures


async def with_retry(
    operation: Callable[[], Awaitable[_T]],
    max_attempts: int,
    backoff: float,
    should_retry: Callable[[BaseException], bool] | None = None,
    logger: structlog.BoundLogger | None = None,
) -> _T:
    """Call *operation* up to *max_attempts* times.

    Attempt ``n`` (1-indexed) that fails with a retryable exception is
    followed by a sleep of ``backoff * n`` seconds.  The last exception is
    re-raised once the budget is spent, or immediately when
    *should_retry* rejects it.

    Parameters
    ----------
    operation:
        Zero-argument coroutine factory; called afresh for every attempt.
    max_attempts:
        Total attempts including the first one (minimum 1).
    backoff:
        Base delay in seconds for the linear backoff.
    should_retry:
        Predicate deciding whether an exception is worth another attempt.
        Defaults to retrying everything.
    logger:
        Optional structured logger for retry warnings.
    """
    if logger is None:
        logger = _logger

    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            retryable = should_retry(exc) if should_retry is not None else True
            if not retryable or attempt >= attempts:
                raise
            delay = backoff * attempt
            logger.warning(
                "retrying_operation",
                attempt=attempt,
                max_attempts=attempts,
                backoff_s=delay,
                error=str(exc),
            )
            await asyncio.sleep(delay)

    # range() above always runs at least once and either returns or raises.
    raise AssertionError("unreachable")
