"""Shared test helpers."""

from fastapi_pagecache.types import RequestDescriptor

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_request(
    path: str = "/page",
    query_string: str = "",
    method: str = "GET",
    scheme: str = "https",
    headers: dict[str, str] | None = None,
    flags: frozenset = frozenset(),
) -> RequestDescriptor:
    return RequestDescriptor(
        method=method,
        scheme=scheme,
        path=path,
        query_string=query_string,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        flags=flags,
    )
