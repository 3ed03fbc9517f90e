"""Read-only monitoring route listing cached pages."""

import time

from fastapi import FastAPI
from pydantic import BaseModel
from pydantic import Field

from fastapi_pagecache.dependencies import OptionalCacheBackend
from fastapi_pagecache.types import PAGE_CACHE_TTL
from fastapi_pagecache.types import EntryInfo


class CachedPage(EntryInfo):
    age: float = Field(..., description="Seconds since the page was captured")
    fresh: bool = Field(..., description="Whether the page is still served from cache")


class CachedPagesReport(BaseModel):
    cached_pages: list[CachedPage] = Field(default_factory=list)
    total_pages: int = 0
    fresh_pages: int = 0
    stale_pages: int = 0
    total_bytes: int = 0


def add_routes(app: FastAPI, path: str = "/cached-pages") -> None:
    """Add the ``GET /cached-pages`` monitoring route to ``app``."""

    @app.get(path, response_model=CachedPagesReport)
    async def cached_pages(backend: OptionalCacheBackend) -> CachedPagesReport:
        if backend is None:
            return CachedPagesReport()

        now = getattr(backend, "clock", time.time)()
        ttl = getattr(backend, "ttl", PAGE_CACHE_TTL)
        pages = [
            CachedPage(
                **info.model_dump(),
                age=now - info.created_at,
                fresh=now - info.created_at < ttl,
            )
            for info in await backend.list_entries()
        ]
        pages.sort(key=lambda page: page.created_at, reverse=True)

        fresh = sum(1 for page in pages if page.fresh)
        return CachedPagesReport(
            cached_pages=pages,
            total_pages=len(pages),
            fresh_pages=fresh,
            stale_pages=len(pages) - fresh,
            total_bytes=sum(page.size for page in pages),
        )
