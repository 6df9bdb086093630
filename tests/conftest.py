"""Shared pytest fixtures for surfcast tests.

Test Tiers:
- unit: Fast tests with fixtures, no network (default)
- integration: Tests with recorded API responses
- live: Real API tests, slow, requires network

Run live tests with: pytest -m live --run-live
"""

import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from surfcast.cache.database import CacheDatabase
from surfcast.cache.models import DailyForecast, Location, Rating, Source


def pytest_addoption(parser):
    """Add command line options for test configuration."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run live API tests (slow, requires network)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: fast unit tests using fixtures")
    config.addinivalue_line("markers", "integration: tests with recorded API responses")
    config.addinivalue_line("markers", "live: real API tests (slow, requires network)")


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is specified."""
    if config.getoption("--run-live"):
        return

    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeClock:
    """Settable clock for staleness tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2026-10-19 06:00 UTC."""
    return FakeClock(datetime(2026, 10, 19, 6, 0, 0))


@pytest.fixture
def temp_db_path():
    """Create a temporary database path for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.duckdb"


@pytest.fixture
def db(temp_db_path, clock):
    """CacheDatabase with the seed catalog and a fake clock."""
    database = CacheDatabase(temp_db_path, now_func=clock)
    yield database
    database.close()


@pytest.fixture
def trestles() -> Location:
    """Location inside the spotter region."""
    return Location(5, "Trestles", 33.38, -117.59, "California", "intermediate")


@pytest.fixture
def pipeline() -> Location:
    """Location outside the spotter region."""
    return Location(1, "Pipeline", 21.66, -158.05, "Hawaii", "pro")


@pytest.fixture
def make_forecast():
    """Factory for valid DailyForecast records."""

    def _make(
        location_id: int,
        day: date,
        low: int = 2,
        high: int = 3,
        rating: Rating = Rating.FAIR,
        source: Source = Source.GLOBAL_MODEL,
    ) -> DailyForecast:
        return DailyForecast(
            location_id=location_id,
            date=day,
            wave_height_min_ft=low,
            wave_height_max_ft=high,
            rating=rating,
            source=source,
            last_updated_at=datetime(2026, 10, 19, 6, 0, 0),
        )

    return _make
