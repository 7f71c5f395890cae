"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from app.database import get_store
from app.main import app
from src.record_store import InMemoryRecordStore


@pytest.fixture
def store():
    """Fresh in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def now():
    return datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def client(store):
    """Async test client backed by the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
