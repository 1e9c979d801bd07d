from abc import ABC
from abc import abstractmethod
from collections.abc import Mapping
from typing import Any

from fastapi_pagecache.types import CacheEntry


class BaseEvictionPolicy(ABC):
    """Base class for all eviction policies.

    The cache notifies the policy of every insert, read and removal so that
    policies needing their own ordering can keep it up to date.
    """

    def on_insert(self, key: str) -> None:
        """Record that ``key`` was stored."""

    def on_access(self, key: str) -> None:
        """Record a successful read of ``key``."""

    def on_remove(self, key: str) -> None:
        """Forget ``key`` after it left the cache."""

    def clear(self) -> None:
        """Forget every key."""

    @abstractmethod
    def select_victims(
        self, entries: Mapping[str, CacheEntry[Any]], count: int
    ) -> list[str]:
        """Return up to ``count`` keys to evict, least valuable first."""
