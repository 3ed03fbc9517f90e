from abc import ABC
from abc import abstractmethod
from typing import Optional

from fastapi_pagecache.types import CachedEntry
from fastapi_pagecache.types import CacheKey
from fastapi_pagecache.types import EntryInfo
from fastapi_pagecache.types import HeaderList


class BaseCacheBackend(ABC):
    """Base class for all page cache backends."""

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[CachedEntry]:
        """Retrieve a fresh cached page, or None if absent or expired."""

    @abstractmethod
    async def put(
        self,
        key: CacheKey,
        body: bytes,
        content_type: Optional[str] = None,
        source: str = "",
        headers: Optional[HeaderList] = None,
    ) -> CachedEntry:
        """Store a rendered page, replacing any previous entry for the key."""

    @abstractmethod
    async def delete(self, key: CacheKey) -> None:
        """Remove a single page from the cache."""

    @abstractmethod
    async def purge_all(self) -> int:
        """Remove every cached page and return how many were removed."""

    @abstractmethod
    async def list_entries(self) -> list[EntryInfo]:
        """Describe every stored page, fresh or not."""
