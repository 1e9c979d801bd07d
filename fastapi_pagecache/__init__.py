"""FastAPI-PageCache: bounded in-memory caching and pagination helpers for FastAPI."""

from .cache import cache as cache
from .cache import cache_for as cache_for
from .cache import default_key_builder as default_key_builder
from .config import CacheConfig as CacheConfig
from .dependencies import CacheRegistryDep as CacheRegistryDep
from .dependencies import PaginationDep as PaginationDep
from .dependencies import cache_manager as cache_manager
from .manager import CacheManager as CacheManager
from .registry import CacheRegistry as CacheRegistry
from .registry import install_registry as install_registry
from .routes import add_routes as add_routes

__all__ = [
    "CacheConfig",
    "CacheManager",
    "CacheRegistry",
    "CacheRegistryDep",
    "PaginationDep",
    "add_routes",
    "cache",
    "cache_for",
    "cache_manager",
    "default_key_builder",
    "install_registry",
]
