"""Eviction policy implementations for FastAPI-PageCache."""

from fastapi_pagecache.types import EvictionStrategy

from .base import BaseEvictionPolicy
from .fifo import FIFOPolicy
from .lfu import LFUPolicy
from .lru import LRUPolicy

POLICIES: dict[str, type[BaseEvictionPolicy]] = {
    "lru": LRUPolicy,
    "lfu": LFUPolicy,
    "fifo": FIFOPolicy,
}


def create_policy(strategy: EvictionStrategy) -> BaseEvictionPolicy:
    """Create a fresh policy instance for ``strategy``."""
    return POLICIES[strategy]()


__all__ = [
    "POLICIES",
    "BaseEvictionPolicy",
    "FIFOPolicy",
    "LFUPolicy",
    "LRUPolicy",
    "create_policy",
]
