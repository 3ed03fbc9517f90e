import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any
from typing import Optional

from fastapi import Request
from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from fastapi_pagecache.config import PageCacheConfig
from fastapi_pagecache.descriptor import describe_request
from fastapi_pagecache.keys import is_eligible
from fastapi_pagecache.negotiator import ResponseNegotiator
from fastapi_pagecache.proxy import BackendProxy
from fastapi_pagecache.responses import from_starlette
from fastapi_pagecache.responses import to_starlette
from fastapi_pagecache.types import PageResponse
from fastapi_pagecache.types import RequestDescriptor


async def call_endpoint(func: Callable, *args: Any, **kwargs: Any) -> Any:
    """Call the wrapped endpoint, running plain functions in the threadpool.

    FastAPI runs undecorated sync endpoints in the threadpool, and wrapping
    them in an async function must not move them onto the event loop.
    """
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    return await run_in_threadpool(func, *args, **kwargs)


def page_cache(config: Optional[PageCacheConfig] = None) -> Callable:
    """Serve a FastAPI route through the page cache.

    The endpoint's return value is captured on a miss; anything that is not a
    ``Response`` is JSON-encoded first.
    """
    config = config or PageCacheConfig()

    def decorator(func: Callable) -> Callable:
        negotiator = ResponseNegotiator(
            BackendProxy.get_or_create_backend(config), config
        )

        # Analyze the original function's signature
        sig = inspect.signature(func)
        params = list(sig.parameters.values())

        # Find an existing Request parameter
        request_param_name = next(
            (
                param.name
                for param in params
                if param.annotation == Request or param.annotation == Optional[Request]
            ),
            None,
        )

        # Add Request parameter if it's not present
        if request_param_name is None:
            request_param = inspect.Parameter(
                "request",
                inspect.Parameter.KEYWORD_ONLY,
                annotation=Request,
            )
            sig = sig.replace(parameters=[*params, request_param])
            func.__signature__ = sig

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            if request_param_name is None:
                request: Request | None = kwargs.pop("request", None)
            else:
                request = kwargs.get(request_param_name)

            if request is None:
                return await call_endpoint(func, *args, **kwargs)

            descriptor = describe_request(request, config)
            if not is_eligible(descriptor):
                return await call_endpoint(func, *args, **kwargs)

            rendered: dict[str, Any] = {}

            async def render(_: RequestDescriptor) -> PageResponse:
                result = await call_endpoint(func, *args, **kwargs)
                if not isinstance(result, Response):
                    result = JSONResponse(jsonable_encoder(result))
                rendered["response"] = result
                rendered["page"] = from_starlette(result)
                return rendered["page"]

            page = await negotiator.handle(descriptor, render)

            # Passed through untouched: hand back the endpoint's own response
            if page is rendered.get("page"):
                return rendered["response"]

            return to_starlette(page)

        return wrapper

    return decorator
