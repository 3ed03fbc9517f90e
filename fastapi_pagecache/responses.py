"""Conversion between PageResponse and Starlette responses."""

from starlette.responses import Response
from starlette.types import ASGIApp
from starlette.types import Message
from starlette.types import Receive
from starlette.types import Scope

from fastapi_pagecache.exceptions import PageCacheError
from fastapi_pagecache.types import PageResponse


def to_starlette(page: PageResponse) -> Response:
    """Build a Starlette response; Content-Length is recomputed from the body."""
    response = Response(content=page.body, status_code=page.status_code)
    for name, value in page.headers:
        if name.lower() != "content-length":
            response.headers.append(name, value)
    return response


def from_starlette(response: Response) -> PageResponse:
    headers = [
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in response.raw_headers
    ]
    if not hasattr(response, "body"):
        # Streaming responses cannot be captured, they are handed back as-is
        return PageResponse(
            status_code=response.status_code, headers=headers, headers_sent=True
        )
    return PageResponse(
        status_code=response.status_code, headers=headers, body=response.body
    )


async def capture_response(app: ASGIApp, scope: Scope, receive: Receive) -> PageResponse:
    """Run an ASGI app and buffer its whole response in memory."""
    started = False
    status_code = 500
    headers: list[tuple[str, str]] = []
    chunks: list[bytes] = []

    async def send(message: Message) -> None:
        nonlocal started, status_code
        if message["type"] == "http.response.start":
            started = True
            status_code = message["status"]
            headers.extend(
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in message.get("headers", [])
            )
        elif message["type"] == "http.response.body":
            chunks.append(message.get("body", b""))

    await app(scope, receive, send)

    if not started:
        msg = "Application returned without starting a response"
        raise PageCacheError(msg)

    return PageResponse(status_code=status_code, headers=headers, body=b"".join(chunks))
