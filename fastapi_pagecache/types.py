"""Type definitions and type aliases for FastAPI-PageCache."""

from dataclasses import dataclass
from dataclasses import field
from typing import Generic
from typing import Literal
from typing import TypeVar

T = TypeVar("T")

# Cache key separator - using ||| to avoid conflicts with port numbers and query strings
CACHE_KEY_SEPARATOR = "|||"

EvictionStrategy = Literal["lru", "lfu", "fifo"]


@dataclass
class CacheEntry(Generic[T]):
    """A single cached value and its bookkeeping.

    Args:
        key: Key of the entry, unique within a cache instance
        value: The cached payload
        timestamp: Epoch seconds when the entry was stored
        ttl: Seconds until expiry, relative to ``timestamp``
        access_count: Number of successful reads
        last_accessed: Epoch seconds of the most recent read
        size: Estimated size of ``value`` in bytes
        tags: Labels used for group invalidation
    """

    key: str
    value: T
    timestamp: float
    ttl: float
    access_count: int = 0
    last_accessed: float = 0.0
    size: int = 0
    tags: frozenset[str] = field(default_factory=frozenset)

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


@dataclass
class CachedResponse:
    """HTTP response body and headers stored by the response cache."""

    etag: str
    content: bytes
    status_code: int = 200
    media_type: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
