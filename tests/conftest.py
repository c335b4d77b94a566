"""Pytest configuration shared across the suite."""

from datetime import datetime, timezone

import pytest

from authserver.core.clock import FixedClock


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to a known instant."""
    return FixedClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))
