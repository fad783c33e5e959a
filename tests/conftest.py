"""
Shared fixtures for the test suite.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

# Settings are read at import time; provide a backend for every test module
os.environ.setdefault("SUPABASE_URL", "https://backend.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")

from app.models.error import ErrorRecord  # noqa: E402
from app.models.user import CurrentUser  # noqa: E402
from app.services.record_store import RecordStoreClient  # noqa: E402


BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _record(index: int = 0, **overrides) -> ErrorRecord:
    timestamp = overrides.pop("timestamp", BASE_TIME + timedelta(hours=index))
    fields = {
        "id": f"err-{index}",
        "title": f"Error {index}",
        "description": f"Description {index}",
        "severity": "medium",
        "status": "open",
        "system": "billing",
        "timestamp": timestamp,
        "last_occurrence": overrides.pop("last_occurrence", timestamp),
        "tags": [],
        "occurrences": 1,
        "user_id": "user-1",
    }
    fields.update(overrides)
    return ErrorRecord(**fields)


def _row(index: int = 0, **overrides) -> dict:
    timestamp = BASE_TIME + timedelta(hours=index)
    row = {
        "id": f"err-{index}",
        "title": f"Error {index}",
        "description": f"Description {index}",
        "resolution": None,
        "severity": "high",
        "status": "open",
        "system": "billing",
        "error_code": None,
        "stack_trace": None,
        "image_url": None,
        "timestamp": timestamp.isoformat(),
        "last_occurrence": timestamp.isoformat(),
        "resolved_at": None,
        "assigned_to": None,
        "tags": ["db"],
        "occurrences": 1,
        "user_id": "user-1",
        "created_at": timestamp.isoformat(),
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_record():
    """Factory for ErrorRecord instances."""
    return _record


@pytest.fixture
def make_row():
    """Factory for raw record store rows."""
    return _row


@pytest.fixture
def user():
    """Signed-in user."""
    return CurrentUser(id="user-1", email="ana@example.com", display_name="Ana Silva")


@pytest.fixture
def fake_store():
    """Record store client with every network method mocked."""
    store = AsyncMock(spec=RecordStoreClient)
    store.select_all.return_value = []
    return store
