"""Cache configuration settings."""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from fastapi_pagecache.types import EvictionStrategy

MINUTE = 60
HOUR = 60 * MINUTE


class CacheConfig(BaseModel):
    """Configuration of a single in-memory cache instance."""

    model_config = ConfigDict(frozen=True)

    max_size: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of entries before the eviction pass runs",
    )
    default_ttl: float = Field(
        default=5 * MINUTE,
        gt=0,
        description="Time-to-live in seconds applied when set() omits a TTL",
    )
    strategy: EvictionStrategy = Field(
        default="lru",
        description="Which entries are sacrificed during eviction",
    )


INVENTORY_CACHE_CONFIG = CacheConfig(max_size=500, default_ttl=5 * MINUTE)
PROJECT_CACHE_CONFIG = CacheConfig(max_size=200, default_ttl=10 * MINUTE)
USER_CACHE_CONFIG = CacheConfig(max_size=100, default_ttl=30 * MINUTE)
GLOBAL_CACHE_CONFIG = CacheConfig(max_size=1000, default_ttl=5 * MINUTE)


class EndpointCacheConfig(BaseModel):
    """Response caching policy of an API endpoint."""

    model_config = ConfigDict(frozen=True)

    ttl: float = Field(gt=0, description="Time-to-live of the cached response in seconds")
    tags: tuple[str, ...] = Field(
        default=(), description="Tags attached to the cached response"
    )
    vary_by: tuple[str, ...] | None = Field(
        default=None,
        description="Query parameters that take part in the cache key (None = all)",
    )
    skip_cache: bool = Field(default=False, description="Bypass the cache entirely")
    revalidate: bool = Field(
        default=False,
        description="Whether to advertise stale-while-revalidate to clients",
    )


ENDPOINT_CACHE_CONFIGS: dict[str, dict[str, EndpointCacheConfig]] = {
    "inventory": {
        "list": EndpointCacheConfig(
            ttl=5 * MINUTE,
            tags=("inventory", "list"),
            vary_by=("page", "limit", "category", "location", "status", "search"),
        ),
        "item": EndpointCacheConfig(
            ttl=10 * MINUTE, tags=("inventory", "item"), vary_by=("id",)
        ),
        "low_stock": EndpointCacheConfig(
            ttl=2 * MINUTE, tags=("inventory", "low-stock"), revalidate=True
        ),
    },
    "categories": {
        "list": EndpointCacheConfig(
            ttl=30 * MINUTE, tags=("categories", "list"), revalidate=True
        ),
        "item": EndpointCacheConfig(
            ttl=HOUR, tags=("categories", "item"), vary_by=("id",)
        ),
    },
    "locations": {
        "list": EndpointCacheConfig(
            ttl=30 * MINUTE, tags=("locations", "list"), revalidate=True
        ),
        "item": EndpointCacheConfig(
            ttl=HOUR, tags=("locations", "item"), vary_by=("id",)
        ),
    },
    "users": {
        "list": EndpointCacheConfig(
            ttl=5 * MINUTE,
            tags=("users", "list"),
            vary_by=("page", "limit", "role", "status"),
        ),
        "profile": EndpointCacheConfig(
            ttl=15 * MINUTE, tags=("users", "profile"), vary_by=("id",)
        ),
    },
    "dashboard": {
        "metrics": EndpointCacheConfig(
            ttl=2 * MINUTE, tags=("dashboard", "metrics"), revalidate=True
        ),
        "recent_activities": EndpointCacheConfig(
            ttl=MINUTE, tags=("dashboard", "activities"), revalidate=True
        ),
    },
    "audit": {
        "logs": EndpointCacheConfig(
            ttl=MINUTE,
            tags=("audit", "logs"),
            vary_by=("page", "limit", "table", "user", "date"),
        ),
        "stats": EndpointCacheConfig(
            ttl=5 * MINUTE, tags=("audit", "stats"), revalidate=True
        ),
    },
}


def get_endpoint_config(endpoint: str, action: str) -> EndpointCacheConfig | None:
    """Look up the caching policy of an endpoint action, or None if there is none."""
    return ENDPOINT_CACHE_CONFIGS.get(endpoint, {}).get(action)
