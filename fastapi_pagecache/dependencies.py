"""FastAPI dependencies exposing the registered cache backend."""

from typing import Annotated
from typing import Optional

from fastapi import Depends

from fastapi_pagecache.backends import BaseCacheBackend
from fastapi_pagecache.exceptions import BackendNotFoundError
from fastapi_pagecache.proxy import BackendProxy


def get_cache_backend() -> BaseCacheBackend:
    """Return the registered backend.

    Raises:
        BackendNotFoundError: If no backend has been set
    """
    return BackendProxy.get_backend()


def get_optional_cache_backend() -> Optional[BaseCacheBackend]:
    try:
        return BackendProxy.get_backend()
    except BackendNotFoundError:
        return None


CacheBackend = Annotated[BaseCacheBackend, Depends(get_cache_backend)]
OptionalCacheBackend = Annotated[
    Optional[BaseCacheBackend], Depends(get_optional_cache_backend)
]
