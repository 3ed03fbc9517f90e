import pytest

from fastapi_pagecache.proxy import BackendProxy
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_backend():
    """Make sure no test leaks its backend into the next one."""
    yield
    BackendProxy.set_backend(None)
