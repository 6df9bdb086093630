"""DuckDB cache database for surfcast."""

import logging
import os
import threading
import time
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Iterable, Optional

import duckdb

from surfcast.cache.models import (
    SURF_LOCATIONS_DATA,
    DailyForecast,
    Location,
    ProviderRecord,
    Rating,
    Source,
    utcnow,
)

logger = logging.getLogger(__name__)

# Default database path - use project root to ensure consistent path
_PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DEFAULT_DB_PATH = Path(
    os.environ.get(
        "SURFCAST_DB_PATH",
        _PROJECT_ROOT / "data" / "cache" / "surfcast.duckdb",
    )
)

# SQL schema - DuckDB uses sequences for auto-increment
SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS seq_provider_entry_id START 1;
CREATE SEQUENCE IF NOT EXISTS seq_fetch_log_id START 1;

-- Surf locations (reference data)
CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY,
    name VARCHAR NOT NULL UNIQUE,
    lat DOUBLE NOT NULL,
    lon DOUBLE NOT NULL,
    region VARCHAR,
    difficulty VARCHAR,
    description VARCHAR
);

-- Normalized daily forecasts, one row per (location, day)
CREATE TABLE IF NOT EXISTS surf_forecasts (
    location_id INTEGER NOT NULL,
    date DATE NOT NULL,
    wave_height_min_ft INTEGER NOT NULL,
    wave_height_max_ft INTEGER NOT NULL,
    swell_period_sec DOUBLE,
    wind_direction VARCHAR,
    wind_speed_kt INTEGER,
    swell_direction VARCHAR,
    rating VARCHAR NOT NULL,
    source VARCHAR NOT NULL,
    spot_name VARCHAR,
    last_updated_at TIMESTAMP NOT NULL,
    PRIMARY KEY (location_id, date)
);

-- Raw third-party provider data, keyed approximately by coordinates.
-- Written by the ingestion job, read by the stored-provider adapter.
CREATE TABLE IF NOT EXISTS provider_entries (
    id INTEGER DEFAULT nextval('seq_provider_entry_id') PRIMARY KEY,
    provider VARCHAR NOT NULL,
    lat DOUBLE NOT NULL,
    lon DOUBLE NOT NULL,
    ingested_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS provider_reports (
    entry_id INTEGER NOT NULL,
    date DATE NOT NULL,
    wave_height_min_ft INTEGER,
    wave_height_max_ft INTEGER,
    rating VARCHAR,
    wind_direction VARCHAR,
    wind_speed_kt INTEGER,
    swell_period_sec DOUBLE,
    swell_direction VARCHAR,
    PRIMARY KEY (entry_id, date)
);

-- Fetch log for debugging/monitoring
CREATE TABLE IF NOT EXISTS fetch_log (
    id INTEGER DEFAULT nextval('seq_fetch_log_id') PRIMARY KEY,
    source VARCHAR NOT NULL,
    timestamp TIMESTAMP NOT NULL,
    status VARCHAR NOT NULL,
    records_added INTEGER,
    duration_ms INTEGER,
    error_message VARCHAR
);

CREATE INDEX IF NOT EXISTS idx_fetch_log_time ON fetch_log(timestamp);
"""

_FORECAST_COLUMNS = """
    location_id, date, wave_height_min_ft, wave_height_max_ft, swell_period_sec,
    wind_direction, wind_speed_kt, swell_direction, rating, source, spot_name,
    last_updated_at
"""

_LOCATION_COLUMNS = "id, name, lat, lon, region, difficulty, description"


def validate_report(location_id: int, report: DailyForecast) -> None:
    """Check a forecast against the store's invariants.

    Raises:
        ValueError: If the report belongs to another location, has an
            invalid height band or lacks a rating/source
    """
    if report.location_id != location_id:
        raise ValueError(
            f"Report for location {report.location_id} passed to upsert "
            f"for location {location_id}"
        )
    if report.wave_height_min_ft < 1:
        raise ValueError(f"wave_height_min_ft must be >= 1, got {report.wave_height_min_ft}")
    if report.wave_height_min_ft > report.wave_height_max_ft:
        raise ValueError(
            f"wave_height_min_ft {report.wave_height_min_ft} exceeds "
            f"wave_height_max_ft {report.wave_height_max_ft}"
        )
    if report.rating is None:
        raise ValueError(f"Report for {report.date} has no rating")
    # Raises ValueError for unknown values
    Rating(report.rating)
    Source(report.source)


class CacheDatabase:
    """DuckDB cache database manager.

    Holds the surf location catalog, the normalized daily forecasts with
    their last-updated timestamps, and the raw stored-provider table.
    Staleness is derived from ``last_updated_at``; nothing is flagged.

    All queries go through one connection guarded by a lock, so one
    instance can be shared by refresh worker threads.

    Example:
        >>> db = CacheDatabase()
        >>> db.get_stale_locations(max_age_hours=24)
        [Location(...), ...]
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        now_func: Callable[[], datetime] = utcnow,
        seed_locations: bool = True,
    ):
        """Initialize database connection.

        Args:
            db_path: Path to DuckDB file. Creates if doesn't exist.
            now_func: Clock used for last_updated_at and staleness checks
            seed_locations: Insert the default location catalog when empty
        """
        self.db_path = Path(db_path or DEFAULT_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.now_func = now_func

        self._conn = None
        self._lock = threading.RLock()
        self._init_schema(seed_locations)

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get database connection (lazy initialization with retry)."""
        if self._conn is None:
            self._conn = self._connect_with_retry()
        return self._conn

    def _connect_with_retry(self, max_retries: int = 3) -> duckdb.DuckDBPyConnection:
        """Connect to database with retry logic for lock handling."""
        last_error = None
        for attempt in range(max_retries):
            try:
                return duckdb.connect(str(self.db_path))
            except duckdb.IOException as e:
                last_error = e
                if "lock" in str(e).lower() and attempt < max_retries - 1:
                    wait_time = 0.5 * (2 ** attempt)  # Exponential backoff
                    logger.warning(f"Database locked, retrying in {wait_time}s...")
                    time.sleep(wait_time)
                else:
                    raise
        raise last_error

    def _execute(self, sql: str, params: Optional[list] = None) -> list[tuple]:
        """Run one statement under the connection lock and fetch all rows."""
        with self._lock:
            return self.conn.execute(sql, params or []).fetchall()

    def _run(self, sql: str, params: Optional[list] = None) -> None:
        """Run one statement under the connection lock, discarding results."""
        with self._lock:
            self.conn.execute(sql, params or [])

    def _init_schema(self, seed_locations: bool) -> None:
        """Initialize database schema."""
        # DuckDB executes multiple statements with execute()
        for statement in SCHEMA_SQL.split(";"):
            statement = statement.strip()
            if statement:
                self._run(statement)
        if seed_locations:
            self._init_locations()
        logger.info(f"Cache database initialized at {self.db_path}")

    def _init_locations(self) -> None:
        """Populate locations table with the seed catalog."""
        existing = self._execute("SELECT COUNT(*) FROM locations")[0][0]
        if existing > 0:
            return

        for location in SURF_LOCATIONS_DATA:
            self.add_location(location)
        logger.info(f"Initialized {len(SURF_LOCATIONS_DATA)} surf locations")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # -------------------------------------------------------------------------
    # Location Catalog
    # -------------------------------------------------------------------------

    def add_location(self, location: Location) -> None:
        """Insert a location; existing ids are left untouched."""
        self._run(
            f"""
            INSERT INTO locations ({_LOCATION_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT DO NOTHING
            """,
            [
                location.location_id,
                location.name,
                location.lat,
                location.lon,
                location.region,
                location.difficulty,
                location.description,
            ],
        )

    def get_locations(self) -> list[Location]:
        """Get all locations ordered by id."""
        rows = self._execute(f"SELECT {_LOCATION_COLUMNS} FROM locations ORDER BY id")
        return [_row_to_location(row) for row in rows]

    def get_location(self, location_id: int) -> Optional[Location]:
        """Get location by id."""
        rows = self._execute(
            f"SELECT {_LOCATION_COLUMNS} FROM locations WHERE id = ?",
            [location_id],
        )
        return _row_to_location(rows[0]) if rows else None

    # -------------------------------------------------------------------------
    # Forecast Cache Operations
    # -------------------------------------------------------------------------

    def upsert(self, location_id: int, reports: Iterable[DailyForecast]) -> int:
        """Insert or overwrite forecasts by (location_id, date).

        Every written row gets ``last_updated_at = now``. Each row is one
        INSERT ... ON CONFLICT statement, so a concurrent writer never sees
        a half-updated day; the batch runs in one transaction.

        Args:
            location_id: Location the reports belong to
            reports: Normalized forecasts; a later report for the same date
                replaces an earlier one in the same batch

        Returns:
            Number of rows written

        Raises:
            ValueError: If any report violates the forecast invariants
        """
        by_date: dict[date, DailyForecast] = {}
        for report in reports:
            validate_report(location_id, report)
            by_date[report.date] = report

        if not by_date:
            return 0

        with self._lock:
            now = self.now_func()
            self.conn.begin()
            try:
                for report in by_date.values():
                    self.conn.execute(
                        f"""
                        INSERT INTO surf_forecasts ({_FORECAST_COLUMNS})
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT (location_id, date)
                        DO UPDATE SET
                            wave_height_min_ft = EXCLUDED.wave_height_min_ft,
                            wave_height_max_ft = EXCLUDED.wave_height_max_ft,
                            swell_period_sec = EXCLUDED.swell_period_sec,
                            wind_direction = EXCLUDED.wind_direction,
                            wind_speed_kt = EXCLUDED.wind_speed_kt,
                            swell_direction = EXCLUDED.swell_direction,
                            rating = EXCLUDED.rating,
                            source = EXCLUDED.source,
                            spot_name = EXCLUDED.spot_name,
                            last_updated_at = EXCLUDED.last_updated_at
                        """,
                        [
                            location_id,
                            report.date,
                            report.wave_height_min_ft,
                            report.wave_height_max_ft,
                            report.swell_period_sec,
                            report.wind_direction,
                            report.wind_speed_kt,
                            report.swell_direction,
                            Rating(report.rating).value,
                            Source(report.source).value,
                            report.spot_name,
                            now,
                        ],
                    )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

        logger.info(f"Upserted {len(by_date)} forecast days for location {location_id}")
        return len(by_date)

    def get_forecasts(
        self,
        location_id: int,
        days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[DailyForecast]:
        """Get stored forecasts for a location, ordered by date.

        Args:
            location_id: Location id
            days: If given, only dates with 0 <= (date - today) < days
            today: First day of the window (defaults to the store clock's date)

        Returns:
            List of DailyForecast (possibly empty)
        """
        sql = f"SELECT {_FORECAST_COLUMNS} FROM surf_forecasts WHERE location_id = ?"
        params: list = [location_id]
        if days is not None:
            start = today or self.now_func().date()
            sql += " AND date >= ? AND date < ?"
            params += [start, start + timedelta(days=days)]
        sql += " ORDER BY date"

        return [_row_to_forecast(row) for row in self._execute(sql, params)]

    def get_last_updated(self, location_id: int) -> Optional[datetime]:
        """Most recent last_updated_at across a location's forecasts.

        Returns:
            Timestamp, or None if the location has no stored forecasts
        """
        rows = self._execute(
            "SELECT MAX(last_updated_at) FROM surf_forecasts WHERE location_id = ?",
            [location_id],
        )
        return rows[0][0] if rows and rows[0][0] else None

    def is_stale(self, location_id: int, max_age_hours: float) -> bool:
        """Whether a location has no forecasts or only ones older than max_age_hours."""
        return self._is_stale(self.get_last_updated(location_id), max_age_hours)

    def get_stale_locations(self, max_age_hours: float) -> list[Location]:
        """Locations with no forecasts or with forecasts older than max_age_hours.

        Scans the whole catalog. Result order is not part of the contract.

        Args:
            max_age_hours: Maximum acceptable age of the newest forecast

        Returns:
            List of stale Locations (possibly empty)
        """
        rows = self._execute(
            """
            SELECT l.id, l.name, l.lat, l.lon, l.region, l.difficulty, l.description,
                   MAX(f.last_updated_at) AS last_updated
            FROM locations l
            LEFT JOIN surf_forecasts f ON f.location_id = l.id
            GROUP BY l.id, l.name, l.lat, l.lon, l.region, l.difficulty, l.description
            ORDER BY l.id
            """
        )
        stale = [
            _row_to_location(row[:7])
            for row in rows
            if self._is_stale(row[7], max_age_hours)
        ]
        logger.debug(f"{len(stale)}/{len(rows)} locations stale (max_age={max_age_hours}h)")
        return stale

    def _is_stale(self, last_updated: Optional[datetime], max_age_hours: float) -> bool:
        if last_updated is None:
            return True
        return self.now_func() - last_updated > timedelta(hours=max_age_hours)

    # -------------------------------------------------------------------------
    # Stored Provider Table
    # -------------------------------------------------------------------------

    def store_provider_entry(
        self,
        lat: float,
        lon: float,
        reports: Iterable[ProviderRecord],
        provider: str = "stormglass",
    ) -> int:
        """Store a raw provider entry and its daily reports.

        Used by the ingestion job; the engine itself only reads this table.

        Returns:
            New entry id
        """
        with self._lock:
            self.conn.begin()
            try:
                entry_id = self.conn.execute(
                    """
                    INSERT INTO provider_entries (provider, lat, lon, ingested_at)
                    VALUES (?, ?, ?, ?)
                    RETURNING id
                    """,
                    [provider, lat, lon, self.now_func()],
                ).fetchone()[0]
                for report in reports:
                    self.conn.execute(
                        """
                        INSERT INTO provider_reports
                        (entry_id, date, wave_height_min_ft, wave_height_max_ft, rating,
                         wind_direction, wind_speed_kt, swell_period_sec, swell_direction)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT (entry_id, date) DO NOTHING
                        """,
                        [
                            entry_id,
                            report.date,
                            report.wave_height_min_ft,
                            report.wave_height_max_ft,
                            Rating(report.rating).value if report.rating else None,
                            report.wind_direction,
                            report.wind_speed_kt,
                            report.swell_period_sec,
                            report.swell_direction,
                        ],
                    )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return entry_id

    def get_provider_entries(self) -> list[tuple[int, float, float]]:
        """All provider entries as (entry_id, lat, lon), in insertion order."""
        return [
            (row[0], row[1], row[2])
            for row in self._execute("SELECT id, lat, lon FROM provider_entries ORDER BY id")
        ]

    def get_provider_reports(self, entry_id: int) -> list[ProviderRecord]:
        """Daily reports stored for one provider entry, ordered by date."""
        rows = self._execute(
            """
            SELECT date, wave_height_min_ft, wave_height_max_ft, rating,
                   wind_direction, wind_speed_kt, swell_period_sec, swell_direction
            FROM provider_reports
            WHERE entry_id = ?
            ORDER BY date
            """,
            [entry_id],
        )
        return [
            ProviderRecord(
                date=row[0],
                wave_height_min_ft=row[1],
                wave_height_max_ft=row[2],
                rating=Rating(row[3]) if row[3] else None,
                wind_direction=row[4],
                wind_speed_kt=row[5],
                swell_period_sec=row[6],
                swell_direction=row[7],
            )
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # Logging Operations
    # -------------------------------------------------------------------------

    def log_fetch(
        self,
        source: str,
        status: str,
        records_added: int,
        duration_ms: int,
        error_message: Optional[str] = None,
    ) -> None:
        """Log a refresh operation."""
        self._run(
            """
            INSERT INTO fetch_log (source, timestamp, status, records_added, duration_ms, error_message)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [source, self.now_func(), status, records_added, duration_ms, error_message],
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Get cache statistics."""
        forecast_count = self._execute("SELECT COUNT(*) FROM surf_forecasts")[0][0]
        location_count = self._execute("SELECT COUNT(*) FROM locations")[0][0]
        provider_entry_count = self._execute("SELECT COUNT(*) FROM provider_entries")[0][0]
        latest_update = self._execute("SELECT MAX(last_updated_at) FROM surf_forecasts")[0][0]

        return {
            "forecast_count": forecast_count,
            "location_count": location_count,
            "provider_entry_count": provider_entry_count,
            "latest_update": latest_update,
            "db_path": str(self.db_path),
        }


def _row_to_location(row) -> Location:
    return Location(
        location_id=row[0],
        name=row[1],
        lat=row[2],
        lon=row[3],
        region=row[4],
        difficulty=row[5],
        description=row[6],
    )


def _row_to_forecast(row) -> DailyForecast:
    return DailyForecast(
        location_id=row[0],
        date=row[1],
        wave_height_min_ft=row[2],
        wave_height_max_ft=row[3],
        swell_period_sec=row[4],
        wind_direction=row[5],
        wind_speed_kt=row[6],
        swell_direction=row[7],
        rating=Rating(row[8]),
        source=Source(row[9]),
        spot_name=row[10],
        last_updated_at=row[11],
    )
