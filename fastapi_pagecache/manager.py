"""Bounded in-memory cache with TTL expiry, tag invalidation and pluggable eviction."""

import math
import re
import time
from collections.abc import Callable
from collections.abc import Iterable
from logging import getLogger
from typing import Any
from typing import Generic
from typing import Optional
from typing import TypeVar

from pydantic_core import to_json

from fastapi_pagecache.config import CacheConfig
from fastapi_pagecache.eviction import create_policy
from fastapi_pagecache.models import CacheMetrics
from fastapi_pagecache.models import CacheStats
from fastapi_pagecache.models import TopKey
from fastapi_pagecache.types import CacheEntry

T = TypeVar("T")

DEFAULT_ENTRY_SIZE = 100
EVICTION_RATIO = 0.1
TOP_KEYS_LIMIT = 10

logger = getLogger(__name__)


def estimate_size(value: Any) -> int:
    """Estimate the size of ``value`` in bytes from its JSON length.

    Only used for reporting. Values that cannot be serialized (cycles,
    unsupported types) count as ``DEFAULT_ENTRY_SIZE``.
    """
    try:
        return len(to_json(value).decode()) * 2
    except (ValueError, TypeError) as e:
        logger.warning("Cannot estimate size of %s value: %s", type(value).__name__, e)
        return DEFAULT_ENTRY_SIZE


class CacheManager(Generic[T]):
    """In-memory key-value cache bound to a single process.

    Entries expire lazily: an expired entry is treated as absent when it is
    read, and stays in memory until it is read or ``cleanup()`` sweeps it.
    When the cache is full, ``set()`` first evicts ``ceil(max_size * 0.1)``
    entries chosen by the configured strategy.

    The cache is not thread-safe; confine an instance to one thread or event
    loop, or guard it with an external lock.
    """

    def __init__(
        self, config: CacheConfig, clock: Callable[[], float] = time.time
    ) -> None:
        self.config = config
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._policy = create_policy(config.strategy)
        self._total_size = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._average_access_time = 0.0

    def get(self, key: str) -> Optional[T]:
        """Return the live value stored under ``key``, or None."""
        started = time.perf_counter()
        try:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                self._remove(key)
                self._misses += 1
                return None

            entry.access_count += 1
            entry.last_accessed = self._clock()
            self._policy.on_access(key)
            self._hits += 1
            return entry.value
        finally:
            self._record_access_time(time.perf_counter() - started)

    def set(
        self,
        key: str,
        value: T,
        ttl: Optional[float] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        self._remove(key)

        if len(self._entries) >= self.config.max_size:
            self._evict()

        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=value,
            timestamp=now,
            ttl=ttl if ttl is not None else self.config.default_ttl,
            last_accessed=now,
            size=estimate_size(value),
            tags=frozenset(tags or ()),
        )
        self._entries[key] = entry
        self._total_size += entry.size
        self._policy.on_insert(key)

    def delete(self, key: str) -> bool:
        return self._remove(key)

    def clear(self) -> None:
        """Drop every entry. Hit, miss and eviction counters are kept."""
        self._entries.clear()
        self._policy.clear()
        self._total_size = 0

    def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry carrying at least one of ``tags``."""
        wanted = set(tags)
        keys = [key for key, entry in self._entries.items() if entry.tags & wanted]
        for key in keys:
            self._remove(key)
        logger.debug("Invalidated %d entries by tags %s", len(keys), sorted(wanted))
        return len(keys)

    def invalidate_by_pattern(self, pattern: str | re.Pattern[str]) -> int:
        """Remove every entry whose key matches ``pattern`` anywhere."""
        regex = re.compile(pattern)
        keys = [key for key in self._entries if regex.search(key)]
        for key in keys:
            self._remove(key)
        logger.debug("Invalidated %d entries by pattern %r", len(keys), regex.pattern)
        return len(keys)

    def cleanup(self) -> int:
        """Remove expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._remove(key)
        if expired:
            logger.debug("Cleaned up %d expired entries", len(expired))
        return len(expired)

    def get_metrics(self) -> CacheMetrics:
        accesses = self._hits + self._misses
        return CacheMetrics(
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / accesses if accesses else 0.0,
            total_size=self._total_size,
            entry_count=len(self._entries),
            evictions=self._evictions,
            average_access_time=self._average_access_time,
        )

    def get_stats(self) -> CacheStats:
        """Return the most read keys and how many entries carry each tag."""
        accessed = [entry for entry in self._entries.values() if entry.access_count]
        accessed.sort(key=lambda entry: entry.access_count, reverse=True)
        top_keys = [
            TopKey(key=entry.key, access_count=entry.access_count, size=entry.size)
            for entry in accessed[:TOP_KEYS_LIMIT]
        ]

        tag_distribution: dict[str, int] = {}
        for entry in self._entries.values():
            for tag in sorted(entry.tags):
                tag_distribution[tag] = tag_distribution.get(tag, 0) + 1

        return CacheStats(
            size=len(self._entries),
            memory_usage=self._total_size,
            top_keys=top_keys,
            tag_distribution=tag_distribution,
        )

    def keys(self) -> list[str]:
        return list(self._entries)

    def values(self) -> list[T]:
        return [entry.value for entry in self._entries.values()]

    def entries(self) -> list[tuple[str, T]]:
        return [(key, entry.value) for key, entry in self._entries.items()]

    def has(self, key: str) -> bool:
        """Return whether ``key`` holds a live entry, without touching it."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _remove(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._total_size -= entry.size
        self._policy.on_remove(key)
        return True

    def _evict(self) -> None:
        count = max(1, math.ceil(self.config.max_size * EVICTION_RATIO))
        victims = self._policy.select_victims(self._entries, count)
        for key in victims:
            if self._remove(key):
                self._evictions += 1
        logger.debug(
            "Evicted %d entries using %s strategy", len(victims), self.config.strategy
        )

    def _record_access_time(self, elapsed: float) -> None:
        accesses = self._hits + self._misses
        self._average_access_time += (elapsed - self._average_access_time) / accesses
