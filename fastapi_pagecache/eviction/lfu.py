from collections.abc import Mapping
from typing import Any

from fastapi_pagecache.types import CacheEntry

from .base import BaseEvictionPolicy


class LFUPolicy(BaseEvictionPolicy):
    """Evicts the entries with the fewest reads first.

    Ties keep the insertion order of the cache.
    """

    def select_victims(
        self, entries: Mapping[str, CacheEntry[Any]], count: int
    ) -> list[str]:
        ranked = sorted(entries.values(), key=lambda entry: entry.access_count)
        return [entry.key for entry in ranked[:count]]
