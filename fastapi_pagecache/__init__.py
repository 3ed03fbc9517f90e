"""FastAPI-PageCache: full-page caching and static asset delivery for FastAPI."""

from .cache import page_cache as page_cache
from .config import PageCacheConfig as PageCacheConfig
from .dependencies import CacheBackend as CacheBackend
from .dependencies import get_cache_backend as get_cache_backend
from .invalidation import ContentEvent as ContentEvent
from .invalidation import ContentEventBus as ContentEventBus
from .invalidation import InvalidationTrigger as InvalidationTrigger
from .middleware import PageCacheMiddleware as PageCacheMiddleware
from .negotiator import ResponseNegotiator as ResponseNegotiator
from .proxy import BackendProxy as BackendProxy
from .routes import add_routes as add_routes
from .static import StaticAssetResolver as StaticAssetResolver

__all__ = [
    "BackendProxy",
    "CacheBackend",
    "ContentEvent",
    "ContentEventBus",
    "InvalidationTrigger",
    "PageCacheConfig",
    "PageCacheMiddleware",
    "ResponseNegotiator",
    "StaticAssetResolver",
    "add_routes",
    "get_cache_backend",
    "page_cache",
]
