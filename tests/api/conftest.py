"""Fixtures for API tests."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

import api.session
from api.main import app
from api.session import InMemorySessionStore


@pytest.fixture(autouse=True)
def memory_store(monkeypatch):
    """Keep API tests off any real Redis server."""
    store = InMemorySessionStore()
    monkeypatch.setattr(api.session, "_session_store", store)
    return store


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def session_id(client):
    """A fresh table session."""
    response = await client.post("/api/table/new")
    return response.json()["session_id"]
