"""Integration tests for the page_cache route decorator.

- Verify that cached pages are returned directly without re-executing the endpoint
- Verify that only tracking query parameters keep a request cacheable
- Verify conditional requests and method handling
"""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.responses import StreamingResponse
from fastapi.testclient import TestClient

from fastapi_pagecache import page_cache
from fastapi_pagecache.backends import FileBackend
from fastapi_pagecache.proxy import BackendProxy


@pytest.fixture
def backend(tmp_path):
    backend = FileBackend(tmp_path / "pages")
    BackendProxy.set_backend(backend)
    return backend


@pytest.fixture
def app(backend):
    return FastAPI()


@pytest.fixture
def client(app):
    return TestClient(app)


def test_cache_hit_returns_200_with_cached_content(app, client):
    call_count = {"value": 0}

    @app.get("/cached-response")
    @page_cache()
    async def get_cached():
        call_count["value"] += 1
        return Response(
            content=f"<html>{call_count['value']}</html>",
            media_type="text/html",
        )

    response1 = client.get("/cached-response")
    assert response1.status_code == 200
    assert response1.text == "<html>1</html>"
    assert response1.headers["X-Cache"] == "MISS"
    etag1 = response1.headers.get("ETag")
    assert etag1 is not None

    response2 = client.get("/cached-response")
    assert response2.status_code == 200
    assert response2.text == "<html>1</html>"
    assert response2.headers["X-Cache"] == "HIT"
    assert response2.headers.get("ETag") == etag1
    assert call_count["value"] == 1


def test_json_results_are_cached(app, client):
    call_count = {"value": 0}

    @app.get("/data")
    @page_cache()
    def get_data():
        call_count["value"] += 1
        return {"count": call_count["value"]}

    assert client.get("/data").json() == {"count": 1}
    response = client.get("/data")

    assert response.json() == {"count": 1}
    assert response.headers["Content-Type"] == "application/json"
    assert response.headers["X-Cache"] == "HIT"


def test_tracking_params_share_cache_rules(app, client):
    call_log = []

    @app.get("/landing")
    @page_cache()
    async def landing(utm_source: str = ""):
        call_log.append(utm_source)
        return Response(content=f"<html>{len(call_log)}</html>", media_type="text/html")

    client.get("/landing?utm_source=a")
    client.get("/landing?utm_source=b")
    response = client.get("/landing?utm_source=a")

    assert response.headers["X-Cache"] == "HIT"
    assert response.text == "<html>1</html>"
    assert call_log == ["a", "b"]


def test_other_query_params_are_never_cached(app, client):
    call_log = []

    @app.get("/query-variant")
    @page_cache()
    async def query_variant(user_id: int):
        call_log.append(user_id)
        return {"user_id": user_id, "call_number": len(call_log)}

    response1 = client.get("/query-variant?user_id=1")
    response2 = client.get("/query-variant?user_id=1")

    assert response1.json() == {"user_id": 1, "call_number": 1}
    assert response2.json() == {"user_id": 1, "call_number": 2}
    assert "X-Cache" not in response2.headers


def test_post_is_not_cached(app, client):
    execution_log = {"post": 0}

    @app.post("/method-specific")
    @page_cache()
    async def post_method():
        execution_log["post"] += 1
        return {"count": execution_log["post"]}

    assert client.post("/method-specific").json() == {"count": 1}
    assert client.post("/method-specific").json() == {"count": 2}


def test_not_modified_on_etag_match(app, client):
    execution_count = {"value": 0}

    @app.get("/etag")
    @page_cache()
    async def etag_endpoint():
        execution_count["value"] += 1
        return Response(content=b"<html>static</html>", media_type="text/html")

    etag = client.get("/etag").headers["ETag"]

    response = client.get("/etag", headers={"If-None-Match": etag})

    assert response.status_code == 304
    assert response.content == b""
    assert execution_count["value"] == 1


def test_endpoint_with_own_request_parameter(app, client):
    @app.get("/whoami")
    @page_cache()
    async def whoami(request: Request):
        return Response(content=f"<html>{request.url.path}</html>", media_type="text/html")

    assert client.get("/whoami").text == "<html>/whoami</html>"
    assert client.get("/whoami").headers["X-Cache"] == "HIT"


def test_error_responses_are_passed_through(app, client):
    @app.get("/broken")
    @page_cache()
    async def broken():
        return Response(content=b"gone", status_code=410)

    response = client.get("/broken")

    assert response.status_code == 410
    assert response.content == b"gone"
    assert "X-Cache" not in response.headers


def test_streaming_responses_are_not_cached(app, client, backend):
    @app.get("/stream")
    @page_cache()
    async def stream():
        async def chunks():
            yield b"<html>"
            yield b"</html>"

        return StreamingResponse(chunks(), media_type="text/html")

    response = client.get("/stream")

    assert response.text == "<html></html>"
    assert "X-Cache" not in response.headers
    assert not backend.cache_dir.exists()


def test_sync_endpoint_runs_off_the_event_loop(app, client):
    loops = []

    @app.get("/sync")
    @page_cache()
    def sync_page():
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            loops.append(None)
        else:
            loops.append("event loop")
        return Response(content="<html>sync</html>", media_type="text/html")

    assert client.get("/sync").headers["X-Cache"] == "MISS"
    assert client.get("/sync").headers["X-Cache"] == "HIT"
    assert loops == [None]
