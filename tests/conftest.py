"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from tests.fake_supabase import FakeSupabase


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")


_set_default_env()


@pytest.fixture
def fake_db() -> FakeSupabase:
    """Return an empty in-memory store."""
    return FakeSupabase()


@pytest.fixture
def client(fake_db: FakeSupabase) -> Iterator[TestClient]:
    """Create a FastAPI test client reading from ``fake_db``."""
    from streakboard.dependencies import get_db_client
    from streakboard.main import app

    app.dependency_overrides[get_db_client] = lambda: fake_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
