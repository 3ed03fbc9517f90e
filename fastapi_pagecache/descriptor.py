"""Build request descriptors from Starlette requests."""

from starlette.requests import Request

from fastapi_pagecache.config import PageCacheConfig
from fastapi_pagecache.types import RequestDescriptor
from fastapi_pagecache.types import RequestFlag


def _has_prefix(path: str, prefixes: list[str]) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes if prefix)


def request_flags(request: Request, config: PageCacheConfig) -> frozenset[RequestFlag]:
    """Detect the contexts that make a request bypass the page cache."""
    flags = set()
    path = request.url.path

    if _has_prefix(path, config.admin_path_prefixes):
        flags.add(RequestFlag.ADMIN)

    if _has_prefix(path, config.cron_path_prefixes):
        flags.add(RequestFlag.CRON)

    if request.headers.get("authorization") or any(
        name.startswith(cookie_name)
        for name in request.cookies
        for cookie_name in config.auth_cookie_names
    ):
        flags.add(RequestFlag.AUTHENTICATED)

    if request.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
        flags.add(RequestFlag.AJAX)

    return frozenset(flags)


def describe_request(request: Request, config: PageCacheConfig) -> RequestDescriptor:
    return RequestDescriptor(
        method=request.method.upper(),
        scheme=request.url.scheme,
        path=request.url.path,
        query_string=request.url.query,
        headers={key.lower(): value for key, value in request.headers.items()},
        flags=request_flags(request, config),
    )
