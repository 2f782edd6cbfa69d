"""
Shared pytest fixtures for Studio Sessions tests.

This module provides common fixtures including:
- A real SQLite store built from the schema metadata
- Seed data for studios, bands and users
- A controllable clock for duration tests
- Redis mocks for the auth audit trail
"""

import os
import sys
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine, text

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from studiosessions.modules.session import SessionModule
from studiosessions.modules.storage import QueryExecutor

STUDIO_A = "11111111-1111-1111-1111-111111111111"
STUDIO_B = "22222222-2222-2222-2222-222222222222"
BAND_X = "aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa"
BAND_Y = "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb"
USER_1 = "99999999-9999-9999-9999-999999999999"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return self.now


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite engine with the studio sessions schema."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'sessions.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def executor(engine):
    """QueryExecutor over the test database, with reference rows seeded."""
    executor = QueryExecutor(engine)
    executor.create_schema()

    with engine.begin() as conn:
        conn.execute(
            text("INSERT INTO users (id, email, name) VALUES (:id, :email, :name)"),
            {"id": USER_1, "email": "engineer@example.com", "name": "Sam Engineer"},
        )
        conn.execute(
            text("INSERT INTO bands (id, band_name) VALUES (:id, :name)"),
            [
                {"id": BAND_X, "name": "The Feedback Loops"},
                {"id": BAND_Y, "name": "Null Pointers"},
            ],
        )
        conn.execute(
            text("INSERT INTO recording_studios (id, studio_name) VALUES (:id, :name)"),
            [
                {"id": STUDIO_A, "name": "Blackbird Room"},
                {"id": STUDIO_B, "name": "Basement Tapes"},
            ],
        )

    return executor


@pytest.fixture
def clock():
    """Clock pinned to 2026-10-18 10:00:00 UTC."""
    return FakeClock(datetime(2026, 10, 18, 10, 0, 0, tzinfo=UTC))


@pytest.fixture
def session_module(executor, clock):
    """SessionModule with the default (clear) notes policy."""
    return SessionModule(executor, notes_policy="clear", clock=clock)


@pytest.fixture
def preserving_session_module(executor, clock):
    """SessionModule that keeps stored notes/files when the caller omits them."""
    return SessionModule(executor, notes_policy="preserve", clock=clock)


@pytest.fixture
def fetch_row(engine):
    """Read a raw studio_sessions row, bypassing the module under test."""
    def _fetch(session_id):
        with engine.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM studio_sessions WHERE id = :id"), {"id": session_id}
            ).first()
        return dict(row._mapping) if row else None

    return _fetch


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Mock async Redis client covering the audit trail calls."""
    redis = AsyncMock()
    redis.lpush = AsyncMock()
    redis.ltrim = AsyncMock()
    redis.ping = AsyncMock(return_value=True)
    redis.close = AsyncMock()
    return redis


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
