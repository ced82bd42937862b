"""Shared test configuration: adds the project root to sys.path."""

import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Ensure project root is importable from all test files
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from data.forecast import Confidence, DailyForecast  # noqa: E402


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def fixed_now():
    return datetime(2025, 12, 24, 15, 0, tzinfo=UTC)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_forecast():
    def _make(high=75.0, confidence=Confidence.HIGH, city_code="NYC", date="2025-12-25"):
        return DailyForecast(
            city_code=city_code,
            date=date,
            high_temp=high,
            low_temp=high - 15,
            confidence=confidence,
            hours_until=30,
            short_forecast="Sunny",
        )

    return _make
