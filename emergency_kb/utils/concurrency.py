"""Concurrency primitives for ingestion and embedding.

Two pieces are exposed:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped in a
   semaphore acquire/release.  The ingestion pipeline uses it as a bounded
   worker pool for embedding generation; results keep input order.

2. **CancellationToken** -- a cooperative cancellation flag.  Long-running
   stages call :meth:`CancellationToken.raise_if_cancelled` between sources
   and between entries so a cancelled run stops at a clean boundary.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from emergency_kb.utils.errors import IngestionCancelledError

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore``-many at a time.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore bounding how many awaitables run at once.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a running job."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`IngestionCancelledError` if :meth:`cancel` was called."""
        if self._event.is_set():
            raise IngestionCancelledError()
