"""Shared fixtures for API tests."""

from __future__ import annotations

import httpx
import pytest

from geoscan.api.app import app
from geoscan.api.deps import get_geo_manager
from geoscan.config import GeoTableConfig
from geoscan.persistence.memory_store import InMemoryPointStore
from geoscan.services.geo_data_manager import GeoDataManager


@pytest.fixture
def store():
    return InMemoryPointStore()


@pytest.fixture
def manager(store):
    return GeoDataManager(GeoTableConfig(table_name="test-capitals", hash_key_length=3), store)


@pytest.fixture
def test_app(manager):
    """FastAPI app wired to an in-memory geo table."""
    app.dependency_overrides[get_geo_manager] = lambda: manager
    app.state.geo_manager = manager
    yield app
    app.dependency_overrides.clear()
    del app.state.geo_manager


@pytest.fixture
async def client(test_app):
    """httpx AsyncClient wired to the test app."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

