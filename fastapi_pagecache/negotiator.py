"""Decide how a page request is answered: bypass, hit, not-modified or miss."""

import inspect
from collections.abc import Awaitable
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional
from typing import Union

from fastapi_pagecache.backends import BaseCacheBackend
from fastapi_pagecache.config import PageCacheConfig
from fastapi_pagecache.directives import CacheControl
from fastapi_pagecache.directives import DirectiveType
from fastapi_pagecache.directives import page_cache_control
from fastapi_pagecache.exceptions import CacheReadError
from fastapi_pagecache.exceptions import CacheWriteError
from fastapi_pagecache.headers import accepts_encoding
from fastapi_pagecache.headers import compute_etag
from fastapi_pagecache.headers import etag_matches
from fastapi_pagecache.headers import gzip_body
from fastapi_pagecache.keys import is_eligible
from fastapi_pagecache.keys import request_cache_key
from fastapi_pagecache.keys import request_source
from fastapi_pagecache.types import CachedEntry
from fastapi_pagecache.types import CacheKey
from fastapi_pagecache.types import HeaderList
from fastapi_pagecache.types import PageResponse
from fastapi_pagecache.types import RequestDescriptor

RenderResult = Union[PageResponse, tuple[int, Any, Union[bytes, str]]]
Render = Callable[[RequestDescriptor], Union[RenderResult, Awaitable[RenderResult]]]

HTTP_200_OK = 200
HTTP_304_NOT_MODIFIED = 304

# Headers that belong to a single response or visitor, or are set on every hit
UNSTORED_HEADERS = frozenset(
    {
        "content-type",
        "content-length",
        "content-encoding",
        "transfer-encoding",
        "etag",
        "x-cache",
        "set-cookie",
        "date",
        "connection",
    }
)

# Stored headers repeated on a 304, alongside the ETag
NOT_MODIFIED_HEADERS = frozenset(
    {"cache-control", "vary", "expires", "content-location"}
)

logger = getLogger(__name__)


async def call_render(render: Render, request: RequestDescriptor) -> PageResponse:
    """Call the render capability, sync or async, and normalise its result."""
    if inspect.iscoroutinefunction(render):
        result = await render(request)
    else:
        result = render(request)
        if inspect.isawaitable(result):
            result = await result

    if isinstance(result, tuple):
        status_code, headers, body = result
        return PageResponse(status_code=status_code, headers=headers, body=body)
    return result


def storable_headers(response: PageResponse) -> HeaderList:
    """Return the rendered headers worth replaying on later hits."""
    return [
        (name, value)
        for name, value in response.headers
        if name.lower() not in UNSTORED_HEADERS
    ]


def add_vary(response: PageResponse, header_name: str) -> None:
    current = response.header("Vary")
    if current is None:
        response.set_header("Vary", header_name)
        return

    names = {name.strip().lower() for name in current.split(",")}
    if header_name.lower() not in names and "*" not in names:
        response.set_header("Vary", f"{current}, {header_name}")


class ResponseNegotiator:
    """Answer eligible page requests from the cache, rendering on a miss."""

    def __init__(
        self,
        backend: BaseCacheBackend,
        config: Optional[PageCacheConfig] = None,
    ) -> None:
        self.backend = backend
        self.config = config or PageCacheConfig()

    async def handle(self, request: RequestDescriptor, render: Render) -> PageResponse:
        if not is_eligible(request):
            logger.debug("Bypassing page cache for %s %s", request.method, request.path)
            return await call_render(render, request)

        key = request_cache_key(request)
        entry = await self._lookup(key)
        if entry is not None:
            logger.debug("Page cache hit for %s", request.path)
            return self._serve_entry(request, entry)

        logger.debug("Page cache miss for %s", request.path)
        rendered = await call_render(render, request)
        if not self.is_storable(rendered):
            return rendered

        etag = await self._store(key, request, rendered)
        response = PageResponse(
            status_code=rendered.status_code,
            headers=rendered.headers,
            body=rendered.body,
        )
        response.set_header("ETag", etag)
        response.set_header("X-Cache", "MISS")
        response.set_default_header(
            "Cache-Control", page_cache_control(self.config.page_max_age)
        )
        self._decorate(response)
        return self._encode(request, response)

    @staticmethod
    def is_storable(response: PageResponse) -> bool:
        """Return True if a rendered response may be written to the cache."""
        if response.status_code != HTTP_200_OK or response.headers_sent:
            return False

        if response.header("Content-Encoding") is not None:
            return False

        cache_control = response.header("Cache-Control")
        if cache_control:
            directives = CacheControl.parse(cache_control)
            if {DirectiveType.NO_STORE.value, DirectiveType.PRIVATE.value} & directives:
                return False

        return True

    async def _lookup(self, key: CacheKey) -> Optional[CachedEntry]:
        try:
            return await self.backend.get(key)
        except CacheReadError as e:
            # The next successful render overwrites the broken entry
            logger.warning("Treating unreadable cache entry as a miss: %s", e)
            return None

    async def _store(
        self, key: CacheKey, request: RequestDescriptor, response: PageResponse
    ) -> str:
        try:
            entry = await self.backend.put(
                key,
                response.body,
                content_type=response.header("Content-Type"),
                source=request_source(request),
                headers=storable_headers(response),
            )
        except CacheWriteError as e:
            logger.warning("Unable to cache %s: %s", request.path, e)
            return compute_etag(response.body)
        return entry.etag

    def _serve_entry(self, request: RequestDescriptor, entry: CachedEntry) -> PageResponse:
        not_modified = etag_matches(request.header("if-none-match"), entry.etag)
        if not_modified:
            response = PageResponse(
                status_code=HTTP_304_NOT_MODIFIED,
                headers=[
                    (name, value)
                    for name, value in entry.headers
                    if name.lower() in NOT_MODIFIED_HEADERS
                ],
            )
        else:
            response = PageResponse(
                status_code=HTTP_200_OK, headers=entry.headers, body=entry.body
            )
            if entry.content_type:
                response.set_header("Content-Type", entry.content_type)

        response.set_header("ETag", entry.etag)
        response.set_header("X-Cache", "HIT")
        response.set_default_header(
            "Cache-Control", page_cache_control(self.config.page_max_age)
        )
        self._decorate(response)
        if not_modified:
            return response
        return self._encode(request, response)

    def _decorate(self, response: PageResponse) -> None:
        add_vary(response, "Accept-Encoding")
        for name, value in self.config.security_headers.items():
            response.set_default_header(name, value)

    def _encode(self, request: RequestDescriptor, response: PageResponse) -> PageResponse:
        if (
            not self.config.compress_pages
            or len(response.body) < self.config.gzip_minimum_size
            or response.header("Content-Encoding") is not None
            or not accepts_encoding(request.header("accept-encoding"), "gzip")
        ):
            return response

        response.body = gzip_body(response.body, self.config.gzip_level)
        response.set_header("Content-Encoding", "gzip")
        return response
