"""ASGI middleware putting the static resolver and page cache in front of an app."""

from typing import Optional

from starlette.requests import Request
from starlette.types import ASGIApp
from starlette.types import Receive
from starlette.types import Scope
from starlette.types import Send

from fastapi_pagecache.backends import BaseCacheBackend
from fastapi_pagecache.config import PageCacheConfig
from fastapi_pagecache.descriptor import describe_request
from fastapi_pagecache.keys import is_eligible
from fastapi_pagecache.negotiator import ResponseNegotiator
from fastapi_pagecache.proxy import BackendProxy
from fastapi_pagecache.responses import capture_response
from fastapi_pagecache.responses import to_starlette
from fastapi_pagecache.static import StaticAssetResolver
from fastapi_pagecache.types import PageResponse
from fastapi_pagecache.types import RequestDescriptor


class PageCacheMiddleware:
    """Serve static assets and cached pages before the wrapped app renders.

    Ineligible requests are streamed straight through to the app. Eligible
    ones are buffered so the rendered page can be stored.
    """

    def __init__(
        self,
        app: ASGIApp,
        backend: Optional[BaseCacheBackend] = None,
        config: Optional[PageCacheConfig] = None,
    ) -> None:
        self.app = app
        self.config = config or PageCacheConfig()
        self.backend = backend or BackendProxy.get_or_create_backend(self.config)
        self.negotiator = ResponseNegotiator(self.backend, self.config)
        self.static_resolver = (
            StaticAssetResolver(self.config.document_root, self.config.static_max_age)
            if self.config.document_root is not None
            else None
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = describe_request(Request(scope), self.config)

        if self.static_resolver is not None:
            asset = await self.static_resolver.serve(request)
            if asset is not None:
                await to_starlette(asset)(scope, receive, send)
                return

        if not is_eligible(request):
            await self.app(scope, receive, send)
            return

        async def render(_: RequestDescriptor) -> PageResponse:
            return await capture_response(self.app, scope, receive)

        response = await self.negotiator.handle(request, render)
        await to_starlette(response)(scope, receive, send)
