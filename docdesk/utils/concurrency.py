"""Shared concurrency primitives for the storage and ingestion layers.

Two patterns are exposed:

1. **KeyedLocks** -- a registry of ``asyncio.Lock`` objects keyed by record
   (e.g. ``("documents", 7)``).  Storage providers take the lock for a
   record before a read-modify-write so two coroutines updating the same
   document or conversation serialise, while writes to different records
   proceed concurrently.

2. **throttled_gather** -- ``asyncio.gather`` with each awaitable wrapped
   in a semaphore acquire/release, used by the CLI to ingest several files
   with bounded concurrency.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Hashable
from typing import TypeVar

import structlog

from docdesk.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


class KeyedLocks:
    """Lazily-created ``asyncio.Lock`` per key.

    Locks are never evicted; the key space is bounded by the number of
    records in the process, which is acceptable for the single-node
    deployments this targets.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> asyncio.Lock:
        """Return the lock for *key*, creating it on first use."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with optional semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore for concurrency control.  When ``None`` the
        awaitables run unthrottled.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.
    """
    if semaphore is None:
        return list(await asyncio.gather(*coros, return_exceptions=return_exceptions))

    async def _guarded(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    results = await asyncio.gather(
        *(_guarded(c) for c in coros),
        return_exceptions=return_exceptions,
    )
    failures = sum(1 for r in results if isinstance(r, BaseException))
    if failures:
        _logger.warning("throttled_gather_failures", total=len(results), failed=failures)
    return list(results)
