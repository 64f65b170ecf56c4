# tests/conftest.py

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from campus_events.db import MemoryStore, get_store
from campus_events.main import app


@pytest.fixture
def store():
    return MemoryStore(namespace="test")


@pytest.fixture
def test_client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def event_fields():
    """Factory for a valid set of event fields, overridable per test."""

    def _make(**overrides):
        start = datetime.now(timezone.utc) + timedelta(days=7)
        fields = {
            "title": "AI/ML Workshop",
            "description": "Learn the fundamentals of Machine Learning",
            "type": "workshop",
            "venue": "Main Auditorium",
            "start_date": start,
            "end_date": start + timedelta(hours=4),
            "registration_deadline": start - timedelta(days=2),
            "max_capacity": 100,
            "college_id": "college-1",
            "created_by": "admin-1",
            "status": "published",
        }
        fields.update(overrides)
        return fields

    return _make
