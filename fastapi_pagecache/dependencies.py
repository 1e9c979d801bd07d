"""FastAPI dependencies for cache and pagination access."""

from collections.abc import Callable
from typing import Annotated
from typing import Any

from fastapi import Depends
from fastapi import Request

from fastapi_pagecache.manager import CacheManager
from fastapi_pagecache.models import PaginationParams
from fastapi_pagecache.pagination import parse_params
from fastapi_pagecache.registry import CacheRegistry
from fastapi_pagecache.registry import get_registry


def get_cache_registry(request: Request) -> CacheRegistry:
    """Dependency returning the cache registry of the current application."""
    return get_registry(request.app)


def cache_manager(name: str) -> Callable[[Request], CacheManager[Any]]:
    """Build a dependency returning the cache registered under ``name``.

    Example:
        ```python
        InventoryCache = Annotated[CacheManager, Depends(cache_manager("inventory"))]
        ```
    """

    def dependency(request: Request) -> CacheManager[Any]:
        return get_registry(request.app).get(name)

    return dependency


def get_pagination_params(request: Request) -> PaginationParams:
    """Dependency parsing clamped pagination parameters from the query string."""
    return parse_params(request.query_params)


CacheRegistryDep = Annotated[CacheRegistry, Depends(get_cache_registry)]
PaginationDep = Annotated[PaginationParams, Depends(get_pagination_params)]
