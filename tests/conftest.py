"""Pytest configuration and fixtures."""

import sys
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import structlog

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    """A fresh deterministic clock."""
    return TickingClock()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Keep structlog configuration from leaking between tests."""
    yield
    structlog.reset_defaults()
