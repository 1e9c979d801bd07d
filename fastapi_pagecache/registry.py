"""Named cache instances shared by an application."""

from collections.abc import Iterable
from collections.abc import Iterator
from logging import getLogger
from typing import Any

from fastapi import FastAPI

from fastapi_pagecache.config import GLOBAL_CACHE_CONFIG
from fastapi_pagecache.config import INVENTORY_CACHE_CONFIG
from fastapi_pagecache.config import PROJECT_CACHE_CONFIG
from fastapi_pagecache.config import USER_CACHE_CONFIG
from fastapi_pagecache.config import CacheConfig
from fastapi_pagecache.exceptions import CacheError
from fastapi_pagecache.exceptions import CacheNotFoundError
from fastapi_pagecache.manager import CacheManager

INVENTORY_CACHE = "inventory"
PROJECT_CACHE = "project"
USER_CACHE = "user"
GLOBAL_CACHE = "global"

DEFAULT_CACHE_CONFIGS = {
    INVENTORY_CACHE: INVENTORY_CACHE_CONFIG,
    PROJECT_CACHE: PROJECT_CACHE_CONFIG,
    USER_CACHE: USER_CACHE_CONFIG,
    GLOBAL_CACHE: GLOBAL_CACHE_CONFIG,
}

logger = getLogger(__name__)


class CacheRegistry:
    """Holds the cache instances of one application, one per cached entity type.

    Build a registry per application (or per test) instead of sharing
    module-level caches, then attach it with ``install_registry``.
    """

    def __init__(self) -> None:
        self._caches: dict[str, CacheManager[Any]] = {}

    @classmethod
    def with_defaults(cls) -> "CacheRegistry":
        """Create a registry holding the inventory, project, user and global caches."""
        registry = cls()
        for name, config in DEFAULT_CACHE_CONFIGS.items():
            registry.create(name, config)
        return registry

    def register(self, name: str, manager: CacheManager[Any]) -> CacheManager[Any]:
        """Register an existing cache under ``name``.

        Raises:
            CacheError: If ``name`` is already taken
        """
        if name in self._caches:
            msg = f"Cache {name!r} is already registered"
            raise CacheError(msg)
        self._caches[name] = manager
        return manager

    def create(self, name: str, config: CacheConfig) -> CacheManager[Any]:
        return self.register(name, CacheManager(config))

    def get(self, name: str) -> CacheManager[Any]:
        """Return the cache registered under ``name``.

        Raises:
            CacheNotFoundError: If no cache has that name
        """
        try:
            return self._caches[name]
        except KeyError:
            msg = f"Cache {name!r} is not registered"
            raise CacheNotFoundError(msg) from None

    def names(self) -> list[str]:
        return list(self._caches)

    def items(self) -> Iterator[tuple[str, CacheManager[Any]]]:
        return iter(self._caches.items())

    def __contains__(self, name: object) -> bool:
        return name in self._caches

    def cleanup(self) -> dict[str, int]:
        """Sweep expired entries from every cache."""
        return {name: manager.cleanup() for name, manager in self._caches.items()}

    def invalidate_by_tags(self, tags: Iterable[str]) -> dict[str, int]:
        tags = list(tags)
        return {
            name: manager.invalidate_by_tags(tags)
            for name, manager in self._caches.items()
        }

    def invalidate_by_pattern(self, pattern: str) -> dict[str, int]:
        return {
            name: manager.invalidate_by_pattern(pattern)
            for name, manager in self._caches.items()
        }


def install_registry(
    app: FastAPI, registry: CacheRegistry | None = None
) -> CacheRegistry:
    """Attach ``registry`` (or a default one) to ``app.state``."""
    if registry is None:
        registry = CacheRegistry.with_defaults()
    logger.info("Installing cache registry with caches: %s", registry.names())
    app.state.cache_registry = registry
    return registry


def get_registry(app: FastAPI) -> CacheRegistry:
    """Return the registry of ``app``, installing the default one on first use."""
    registry = getattr(app.state, "cache_registry", None)
    if registry is None:
        registry = install_registry(app)
    return registry
