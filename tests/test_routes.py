"""Tests for the cache monitoring route."""

import pytest
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from fastapi.testclient import TestClient

from fastapi_pagecache import CacheBackend
from fastapi_pagecache import add_routes
from fastapi_pagecache import page_cache
from fastapi_pagecache.backends import FileBackend
from fastapi_pagecache.exceptions import BackendNotFoundError
from fastapi_pagecache.proxy import BackendProxy
from fastapi_pagecache.types import PAGE_CACHE_TTL
from tests.helpers import FakeClock


@pytest.fixture
def app():
    """Create a test FastAPI application."""
    return FastAPI()


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI application."""
    return TestClient(app)


@pytest.fixture
def setup_cache(tmp_path, clock):
    """Setup cache backend before test and cleanup after."""
    backend = FileBackend(tmp_path / "pages", clock=clock)
    BackendProxy.set_backend(backend)
    yield backend
    BackendProxy.set_backend(None)


class TestCachedPagesRoute:
    """Test suite for the /cached-pages route."""

    def test_cached_pages_without_backend(self, app, client):
        add_routes(app)

        response = client.get("/cached-pages")
        assert response.status_code == 200
        data = response.json()
        assert data["cached_pages"] == []
        assert data["total_pages"] == 0
        assert data["fresh_pages"] == 0
        assert data["stale_pages"] == 0

    def test_cached_pages_empty_cache(self, app, client, setup_cache):
        add_routes(app)

        data = client.get("/cached-pages").json()
        assert data["cached_pages"] == []
        assert data["total_pages"] == 0
        assert data["total_bytes"] == 0

    def test_cached_pages_with_entries(self, app, client, setup_cache):
        add_routes(app)

        @app.get("/about")
        @page_cache()
        async def about():
            return HTMLResponse("<html>about</html>")

        @app.get("/contact")
        @page_cache()
        async def contact():
            return HTMLResponse("<html>contact us</html>")

        client.get("/about?utm_source=mail")
        client.get("/contact")

        data = client.get("/cached-pages").json()

        assert data["total_pages"] == 2
        assert data["fresh_pages"] == 2
        assert data["stale_pages"] == 0
        assert data["total_bytes"] == len("<html>about</html>") + len(
            "<html>contact us</html>"
        )
        assert {page["source"] for page in data["cached_pages"]} == {
            "http:///about?utm_source=mail",
            "http:///contact",
        }

    def test_cached_page_structure(self, app, client, setup_cache):
        add_routes(app)

        @app.get("/about")
        @page_cache()
        async def about():
            return HTMLResponse("<html>about</html>")

        etag = client.get("/about").headers["ETag"]

        page = client.get("/cached-pages").json()["cached_pages"][0]
        assert page["key"].startswith("page_")
        assert page["etag"] == etag
        assert page["size"] == len("<html>about</html>")
        assert page["content_type"] == "text/html; charset=utf-8"
        assert page["age"] == 0
        assert page["fresh"] is True

    def test_stale_pages_are_reported(self, app, client, setup_cache, clock: FakeClock):
        add_routes(app)

        @app.get("/about")
        @page_cache()
        async def about():
            return HTMLResponse("<html>about</html>")

        client.get("/about")
        clock.advance(PAGE_CACHE_TTL + 1)

        data = client.get("/cached-pages").json()
        assert data["total_pages"] == 1
        assert data["fresh_pages"] == 0
        assert data["stale_pages"] == 1
        assert data["cached_pages"][0]["fresh"] is False

    def test_custom_path(self, app, client):
        add_routes(app, path="/_internal/pages")

        assert client.get("/_internal/pages").status_code == 200
        assert client.get("/cached-pages").status_code == 404


class TestCacheBackendDependency:
    """Test the CacheBackend dependency used by application routes."""

    def test_dependency_resolves_registered_backend(self, app, client, setup_cache):
        @app.post("/purge")
        async def purge(backend: CacheBackend):
            return {"removed": await backend.purge_all()}

        @app.get("/about")
        @page_cache()
        async def about():
            return HTMLResponse("<html>about</html>")

        client.get("/about")

        assert client.post("/purge").json() == {"removed": 1}
        assert client.get("/about").headers["X-Cache"] == "MISS"

    def test_dependency_without_backend(self, app, client):
        @app.post("/purge")
        async def purge(backend: CacheBackend):
            return {"removed": await backend.purge_all()}

        with pytest.raises(BackendNotFoundError):
            client.post("/purge")
