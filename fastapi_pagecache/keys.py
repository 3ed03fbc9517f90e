"""Cache key generation and page-cache eligibility."""

import hashlib
from urllib.parse import parse_qsl

from fastapi_pagecache.exceptions import PageCacheError
from fastapi_pagecache.types import CACHE_KEY_SEPARATOR
from fastapi_pagecache.types import CacheKey
from fastapi_pagecache.types import RequestDescriptor

CACHE_KEY_PREFIX = "page_"

# Marketing parameters that do not change the rendered page
TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAMS = frozenset({"ref", "fbclid", "gclid"})


def is_tracking_param(name: str) -> bool:
    name = name.lower()
    return name in TRACKING_PARAMS or name.startswith(TRACKING_PARAM_PREFIXES)


def is_cacheable_query(query_string: str) -> bool:
    """Return True if the query string is empty or only carries tracking parameters."""
    if not query_string:
        return True

    params = parse_qsl(query_string, keep_blank_values=True)
    if not params:
        return False

    return all(is_tracking_param(name) for name, _ in params)


def is_eligible(request: RequestDescriptor) -> bool:
    """Decide whether a request may be served from, or written to, the page cache.

    Only anonymous ``GET`` requests outside admin, AJAX and cron contexts whose
    query string passes :func:`is_cacheable_query` are eligible.
    """
    if request.method.upper() != "GET":
        return False

    if request.flags:
        return False

    return is_cacheable_query(request.query_string)


def make_cache_key(method: str, scheme: str, path: str, query_string: str) -> CacheKey:
    """Derive the cache key of a request.

    The key is a SHA-256 digest over the method, scheme, path and literal query
    string, so http and https pages, and pages that differ only by query
    string, never share an entry.

    Raises:
        PageCacheError: If ``method`` is not GET
    """
    method = method.upper()
    if method != "GET":
        msg = f"Only GET requests are cached, got {method}"
        raise PageCacheError(msg)

    material = CACHE_KEY_SEPARATOR.join([method, scheme.lower(), path, query_string])
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


def request_cache_key(request: RequestDescriptor) -> CacheKey:
    return make_cache_key(
        request.method, request.scheme, request.path, request.query_string
    )


def request_source(request: RequestDescriptor) -> str:
    """Human-readable request target, stored alongside entries for monitoring."""
    source = f"{request.scheme}://{request.path}"
    if request.query_string:
        source = f"{source}?{request.query_string}"
    return source
