"""Tests for the DuckDB cache database.

Tests use a real temporary database and a fake clock.
"""

from datetime import date, datetime, timedelta

import pytest

from surfcast.cache.database import CacheDatabase
from surfcast.cache.models import (
    SURF_LOCATIONS_DATA,
    DailyForecast,
    Location,
    ProviderRecord,
    Rating,
    Source,
)

TODAY = date(2026, 10, 19)


def week(location_id, make_forecast, start=TODAY, n=7, **kwargs):
    return [make_forecast(location_id, start + timedelta(days=i), **kwargs) for i in range(n)]


class TestSchema:
    """Tests for database initialization."""

    def test_creates_file(self, temp_db_path):
        db = CacheDatabase(temp_db_path)
        try:
            assert temp_db_path.exists()
        finally:
            db.close()

    def test_seeds_locations(self, db):
        locations = db.get_locations()
        assert len(locations) == len(SURF_LOCATIONS_DATA)
        assert [loc.location_id for loc in locations] == sorted(
            loc.location_id for loc in SURF_LOCATIONS_DATA
        )

    def test_reopen_keeps_data(self, temp_db_path, clock, make_forecast):
        db = CacheDatabase(temp_db_path, now_func=clock)
        db.upsert(5, week(5, make_forecast))
        db.close()

        db = CacheDatabase(temp_db_path, now_func=clock)
        try:
            assert len(db.get_forecasts(5)) == 7
            assert len(db.get_locations()) == len(SURF_LOCATIONS_DATA)
        finally:
            db.close()

    def test_no_seed(self, temp_db_path):
        db = CacheDatabase(temp_db_path, seed_locations=False)
        try:
            assert db.get_locations() == []
        finally:
            db.close()


class TestLocations:
    """Tests for the location catalog."""

    def test_get_location(self, db):
        location = db.get_location(5)
        assert location.name == "Trestles"
        assert location.region == "California"

    def test_get_unknown_location(self, db):
        assert db.get_location(999) is None

    def test_add_location(self, db):
        db.add_location(Location(42, "Rincon", 34.37, -119.48, "California"))
        assert db.get_location(42).name == "Rincon"

    def test_add_existing_location_is_noop(self, db):
        db.add_location(Location(5, "Other", 0.0, 0.0))
        assert db.get_location(5).name == "Trestles"


class TestUpsert:
    """Tests for forecast upsert."""

    def test_insert_and_read_back(self, db, make_forecast, clock):
        reports = week(5, make_forecast, rating=Rating.GOOD, source=Source.SPOTTER_NETWORK)

        written = db.upsert(5, reports)

        assert written == 7
        stored = db.get_forecasts(5)
        assert [r.date for r in stored] == [r.date for r in reports]
        assert all(r.rating == Rating.GOOD for r in stored)
        assert all(r.source == Source.SPOTTER_NETWORK for r in stored)
        assert all(r.last_updated_at == clock.now for r in stored)

    def test_optional_fields_round_trip(self, db):
        report = DailyForecast(
            location_id=5,
            date=TODAY,
            wave_height_min_ft=3,
            wave_height_max_ft=4,
            rating=Rating.FAIR,
            source=Source.SPOTTER_NETWORK,
            last_updated_at=datetime(2000, 1, 1),
            swell_period_sec=13.5,
            wind_direction="SW",
            wind_speed_kt=8,
            swell_direction="S",
            spot_name="Lower Trestles",
        )
        db.upsert(5, [report])

        stored = db.get_forecasts(5)[0]
        assert stored.swell_period_sec == 13.5
        assert stored.wind_direction == "SW"
        assert stored.wind_speed_kt == 8
        assert stored.swell_direction == "S"
        assert stored.spot_name == "Lower Trestles"

    def test_idempotent(self, db, make_forecast):
        reports = week(5, make_forecast)
        db.upsert(5, reports)
        db.upsert(5, reports)
        assert len(db.get_forecasts(5)) == 7

    def test_overwrites_existing_day(self, db, make_forecast, clock):
        db.upsert(5, [make_forecast(5, TODAY, low=2, high=3)])
        clock.advance(hours=1)
        db.upsert(5, [make_forecast(5, TODAY, low=6, high=8, rating=Rating.EPIC)])

        stored = db.get_forecasts(5)
        assert len(stored) == 1
        assert stored[0].wave_height_max_ft == 8
        assert stored[0].rating == Rating.EPIC
        assert stored[0].last_updated_at == clock.now

    def test_other_days_untouched(self, db, make_forecast, clock):
        db.upsert(5, week(5, make_forecast, n=3))
        first_write = clock.now
        clock.advance(hours=2)
        db.upsert(5, [make_forecast(5, TODAY + timedelta(days=1), high=9)])

        stored = {r.date: r for r in db.get_forecasts(5)}
        assert stored[TODAY].last_updated_at == first_write
        assert stored[TODAY + timedelta(days=1)].last_updated_at == clock.now

    def test_last_record_in_batch_wins(self, db, make_forecast):
        db.upsert(5, [make_forecast(5, TODAY, high=3), make_forecast(5, TODAY, high=7)])
        assert db.get_forecasts(5)[0].wave_height_max_ft == 7

    def test_empty_batch(self, db):
        assert db.upsert(5, []) == 0
        assert db.get_last_updated(5) is None

    def test_locations_are_isolated(self, db, make_forecast):
        db.upsert(5, week(5, make_forecast))
        db.upsert(6, week(6, make_forecast, n=2))
        assert len(db.get_forecasts(5)) == 7
        assert len(db.get_forecasts(6)) == 2

    @pytest.mark.parametrize(
        "low,high",
        [(0, 3), (5, 3)],
    )
    def test_invalid_heights_rejected(self, db, make_forecast, low, high):
        with pytest.raises(ValueError):
            db.upsert(5, [make_forecast(5, TODAY, low=low, high=high)])
        assert db.get_forecasts(5) == []

    def test_wrong_location_rejected(self, db, make_forecast):
        with pytest.raises(ValueError, match="location"):
            db.upsert(5, [make_forecast(6, TODAY)])

    def test_invalid_batch_writes_nothing(self, db, make_forecast):
        batch = [make_forecast(5, TODAY), make_forecast(5, TODAY + timedelta(days=1), low=0)]
        with pytest.raises(ValueError):
            db.upsert(5, batch)
        assert db.get_forecasts(5) == []


class TestGetForecasts:
    """Tests for forecast reads."""

    def test_unknown_location_empty(self, db):
        assert db.get_forecasts(999) == []

    def test_days_window(self, db, make_forecast):
        yesterday = TODAY - timedelta(days=1)
        db.upsert(5, week(5, make_forecast, start=yesterday, n=10))

        window = db.get_forecasts(5, days=3)

        assert [r.date for r in window] == [TODAY + timedelta(days=i) for i in range(3)]

    def test_explicit_today(self, db, make_forecast):
        db.upsert(5, week(5, make_forecast))
        window = db.get_forecasts(5, days=2, today=TODAY + timedelta(days=5))
        assert len(window) == 2


class TestStaleness:
    """Tests for staleness queries."""

    def test_never_updated_is_stale(self, db):
        assert db.is_stale(5, max_age_hours=24)
        assert len(db.get_stale_locations(24)) == len(SURF_LOCATIONS_DATA)

    def test_fresh_after_upsert(self, db, make_forecast):
        db.upsert(5, week(5, make_forecast))

        assert not db.is_stale(5, max_age_hours=24)
        stale_ids = {loc.location_id for loc in db.get_stale_locations(24)}
        assert 5 not in stale_ids
        assert len(stale_ids) == len(SURF_LOCATIONS_DATA) - 1

    def test_becomes_stale_after_window(self, db, make_forecast, clock):
        db.upsert(5, week(5, make_forecast))

        clock.advance(hours=24)
        assert not db.is_stale(5, max_age_hours=24)

        clock.advance(seconds=1)
        assert db.is_stale(5, max_age_hours=24)
        assert 5 in {loc.location_id for loc in db.get_stale_locations(24)}

    def test_zero_max_age(self, db, make_forecast, clock):
        """With max_age 0 any elapsed time makes a location stale."""
        db.upsert(5, week(5, make_forecast))
        assert not db.is_stale(5, max_age_hours=0)

        clock.advance(seconds=1)
        assert db.is_stale(5, max_age_hours=0)

    def test_newest_day_counts(self, db, make_forecast, clock):
        db.upsert(5, [make_forecast(5, TODAY)])
        clock.advance(hours=30)
        db.upsert(5, [make_forecast(5, TODAY + timedelta(days=1))])

        assert not db.is_stale(5, max_age_hours=24)

    def test_get_last_updated(self, db, make_forecast, clock):
        assert db.get_last_updated(5) is None
        db.upsert(5, [make_forecast(5, TODAY)])
        assert db.get_last_updated(5) == clock.now


class TestProviderTables:
    """Tests for the stored provider tables."""

    def test_store_and_read(self, db):
        entry_id = db.store_provider_entry(
            21.66,
            -158.05,
            [
                ProviderRecord(date=TODAY, wave_height_max_ft=6, rating=Rating.GOOD),
                ProviderRecord(date=TODAY + timedelta(days=1), wave_height_min_ft=2),
            ],
        )

        assert db.get_provider_entries() == [(entry_id, 21.66, -158.05)]
        reports = db.get_provider_reports(entry_id)
        assert [r.date for r in reports] == [TODAY, TODAY + timedelta(days=1)]
        assert reports[0].rating == Rating.GOOD
        assert reports[0].wave_height_min_ft is None
        assert reports[1].rating is None

    def test_entries_in_insertion_order(self, db):
        first = db.store_provider_entry(1.0, 1.0, [])
        second = db.store_provider_entry(2.0, 2.0, [])
        assert [e[0] for e in db.get_provider_entries()] == [first, second]


class TestStats:
    """Tests for statistics and logging."""

    def test_get_stats(self, db, make_forecast, clock):
        db.upsert(5, week(5, make_forecast))
        db.store_provider_entry(1.0, 1.0, [])

        stats = db.get_stats()

        assert stats["forecast_count"] == 7
        assert stats["location_count"] == len(SURF_LOCATIONS_DATA)
        assert stats["provider_entry_count"] == 1
        assert stats["latest_update"] == clock.now

    def test_log_fetch(self, db):
        db.log_fetch("refresh", "success", records_added=3, duration_ms=120)
        rows = db._execute("SELECT source, status, records_added FROM fetch_log")
        assert rows == [("refresh", "success", 3)]
