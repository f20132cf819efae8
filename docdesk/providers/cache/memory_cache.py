"""In-process cache for query embeddings, built on cachetools.TLRUCache.

The chat service stores one vector per (embedding backend, question) pair
here so a repeated question skips the embedding call.

Entries carry their own time-to-live: ``set(key, value, ttl=...)`` is
honoured per entry, and the provider-wide ``ttl`` applies otherwise.
Vectors are stored as tuples and handed back as fresh lists, so a caller
that mutates a returned embedding cannot corrupt the cached copy.
"""

from __future__ import annotations

import time
from typing import Any, NamedTuple

import structlog
from cachetools import TLRUCache

from docdesk.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _expires_at(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """Bounded, expiring key-value cache for embedding vectors.

    Parameters
    ----------
    max_size:
        Maximum number of entries; the least-recently-used entry is
        evicted first.
    ttl:
        Default time-to-live in seconds.
    namespace:
        Prefix applied to every key, so several caches can share one
        key space in logs without colliding.
    """

    def __init__(self, max_size: int = 512, ttl: int = 3600, namespace: str = "") -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._default_ttl = float(ttl)
        self._namespace = namespace
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_expires_at, timer=time.monotonic
        )
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(self._key(key))
        if entry is None:
            self.misses += 1
            logger.debug("embedding_cache_miss", key=key)
            return None
        self.hits += 1
        logger.debug("embedding_cache_hit", key=key)
        if isinstance(entry.value, tuple):
            return list(entry.value)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if isinstance(value, list):
            value = tuple(value)
        self._cache[self._key(key)] = _Entry(
            value=value,
            ttl=self._default_ttl if ttl is None else float(ttl),
        )

    async def delete(self, key: str) -> None:
        self._cache.pop(self._key(key), None)

    async def exists(self, key: str) -> bool:
        return self._key(key) in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key
