class PageCacheError(Exception):
    """Base class for all exceptions in FastAPI-PageCache."""


class CacheError(PageCacheError):
    """Exception raised for cache-store errors."""


class CacheReadError(CacheError):
    """Exception raised when a stored entry cannot be read back."""


class CacheWriteError(CacheError):
    """Exception raised when an entry cannot be written to the store."""


class BackendNotFoundError(PageCacheError):
    """Exception raised when no cache backend has been registered."""
