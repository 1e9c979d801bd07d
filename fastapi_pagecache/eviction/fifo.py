from collections.abc import Mapping
from typing import Any

from fastapi_pagecache.types import CacheEntry

from .base import BaseEvictionPolicy


class FIFOPolicy(BaseEvictionPolicy):
    """Evicts the oldest entries first, regardless of how often they are read."""

    def select_victims(
        self, entries: Mapping[str, CacheEntry[Any]], count: int
    ) -> list[str]:
        ranked = sorted(entries.values(), key=lambda entry: entry.timestamp)
        return [entry.key for entry in ranked[:count]]
