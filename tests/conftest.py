"""Shared test fixtures for the location service test suite.

Provides mock database sessions, session tokens, and model factories so
tests can run without a database.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest

from shared.config import Settings
from shared.models.location_sample import LocationSample
from shared.models.user import User

TEST_JWT_SECRET = "test-session-secret-for-location-service"


# ---------------------------------------------------------------------------
# Database mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db_session():
    """Mock async SQLAlchemy session.

    Supports the patterns used by the service code:
        session.execute(stmt) -> result
        session.add(obj)
        session.commit() / session.rollback()
    """
    session = AsyncMock()
    # Default: execute returns a result with no rows
    default_result = MagicMock()
    default_result.scalar_one_or_none.return_value = None
    default_result.scalars.return_value.all.return_value = []
    default_result.all.return_value = []
    session.execute = AsyncMock(return_value=default_result)
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    """Mock async session factory compatible with ``async with factory() as session:``."""

    @asynccontextmanager
    async def _session_ctx():
        yield mock_db_session

    factory = MagicMock(side_effect=lambda: _session_ctx())
    return factory


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings():
    """Settings with a known session secret, patched into the auth layer."""
    settings = Settings(session_jwt_secret=TEST_JWT_SECRET)
    with patch("shared.auth.get_settings", return_value=settings):
        yield settings


@pytest.fixture
def make_token(test_settings):
    """Factory for signed session tokens."""

    def _make(
        user_id: uuid.UUID | str,
        permission_level: str = "user",
        expires_in: timedelta = timedelta(hours=1),
        secret: str = TEST_JWT_SECRET,
    ) -> str:
        payload = {
            "sub": str(user_id),
            "permission_level": permission_level,
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user():
    """Factory for creating User instances."""

    def _make(
        user_id: uuid.UUID | None = None,
        display_name: str | None = "Test User",
        location_tracking: bool | None = None,
        permission_level: str = "user",
        device_info: str | None = None,
    ) -> User:
        now = datetime.now(timezone.utc)
        return User(
            id=user_id or uuid.uuid4(),
            display_name=display_name,
            avatar_url=None,
            permission_level=permission_level,
            location_tracking=location_tracking,
            device_info=device_info,
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def make_location_sample():
    """Factory for creating LocationSample instances."""

    def _make(
        user_id: uuid.UUID | None = None,
        latitude: float = -41.28,
        longitude: float = 174.77,
        accuracy: float | None = 12.0,
        received_at: datetime | None = None,
    ) -> LocationSample:
        received = received_at or datetime.now(timezone.utc)
        return LocationSample(
            id=uuid.uuid4(),
            user_id=user_id or uuid.uuid4(),
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            sampled_at=received - timedelta(seconds=2),
            received_at=received,
        )

    return _make


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def scalar_result(value):
    """A result whose ``scalar_one_or_none()`` returns ``value``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values):
    """A result whose ``scalars().all()`` returns ``values``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


def rows_result(rows):
    """A result whose ``all()`` returns ``rows``."""
    result = MagicMock()
    result.all.return_value = list(rows)
    return result


def make_execute_side_effect(*results):
    """Create an execute side_effect that returns different results per call.

    Usage::

        session.execute = AsyncMock(
            side_effect=make_execute_side_effect(result1, result2)
        )

    An exception instance in ``results`` is raised for that call instead.
    Calls past the end return an empty result.
    """
    call_idx = 0

    async def _side_effect(stmt, *args, **kwargs):
        nonlocal call_idx
        if call_idx < len(results):
            r = results[call_idx]
            call_idx += 1
            if isinstance(r, BaseException):
                raise r
            return r
        fallback = MagicMock()
        fallback.scalar_one_or_none.return_value = None
        fallback.scalars.return_value.all.return_value = []
        fallback.all.return_value = []
        return fallback

    return _side_effect
