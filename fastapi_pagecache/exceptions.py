class PageCacheError(Exception):
    """Base class for all exceptions in FastAPI-PageCache."""


class CacheError(PageCacheError):
    """Exception raised for cache-related errors."""


class CacheNotFoundError(CacheError):
    """Exception raised when a named cache is not registered."""
