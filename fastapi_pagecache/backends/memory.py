import asyncio
import time
from collections.abc import Callable
from typing import Optional

from fastapi_pagecache.headers import compute_etag
from fastapi_pagecache.types import PAGE_CACHE_TTL
from fastapi_pagecache.types import CachedEntry
from fastapi_pagecache.types import CacheKey
from fastapi_pagecache.types import EntryInfo
from fastapi_pagecache.types import HeaderList

from .base import BaseCacheBackend


class MemoryBackend(BaseCacheBackend):
    """In-memory page cache backend.

    Entries do not survive a restart and are not shared between worker
    processes; use :class:`FileBackend` outside of tests and development.
    """

    def __init__(
        self,
        ttl: int = PAGE_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache: dict[CacheKey, CachedEntry] = {}
        self.lock = asyncio.Lock()
        self.ttl = ttl
        self.clock = clock

    async def get(self, key: CacheKey) -> Optional[CachedEntry]:
        async with self.lock:
            cached_entry = self.cache.get(key)
            if cached_entry and cached_entry.is_fresh(self.clock(), self.ttl):
                return cached_entry
            return None

    async def put(
        self,
        key: CacheKey,
        body: bytes,
        content_type: Optional[str] = None,
        source: str = "",
        headers: Optional[HeaderList] = None,
    ) -> CachedEntry:
        entry = CachedEntry(
            body=body,
            etag=compute_etag(body),
            created_at=self.clock(),
            size=len(body),
            content_type=content_type,
            source=source,
            headers=list(headers or []),
        )
        async with self.lock:
            self.cache[key] = entry
        return entry

    async def delete(self, key: CacheKey) -> None:
        async with self.lock:
            self.cache.pop(key, None)

    async def purge_all(self) -> int:
        async with self.lock:
            removed = len(self.cache)
            self.cache.clear()
            return removed

    async def list_entries(self) -> list[EntryInfo]:
        async with self.lock:
            return [
                EntryInfo(
                    key=key,
                    etag=entry.etag,
                    created_at=entry.created_at,
                    size=entry.size,
                    content_type=entry.content_type,
                    source=entry.source,
                    headers=entry.headers,
                )
                for key, entry in self.cache.items()
            ]
