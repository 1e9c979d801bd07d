from collections import OrderedDict
from collections.abc import Mapping
from itertools import islice
from typing import Any

from fastapi_pagecache.types import CacheEntry

from .base import BaseEvictionPolicy


class LRUPolicy(BaseEvictionPolicy):
    """Evicts the least recently stored or read entries first."""

    def __init__(self) -> None:
        self.access_order: OrderedDict[str, None] = OrderedDict()

    def on_insert(self, key: str) -> None:
        self.access_order[key] = None
        self.access_order.move_to_end(key)

    def on_access(self, key: str) -> None:
        if key in self.access_order:
            self.access_order.move_to_end(key)

    def on_remove(self, key: str) -> None:
        self.access_order.pop(key, None)

    def clear(self) -> None:
        self.access_order.clear()

    def select_victims(
        self, entries: Mapping[str, CacheEntry[Any]], count: int
    ) -> list[str]:
        return list(islice((k for k in self.access_order if k in entries), count))
