"""Data models for cache layer."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


class Rating(str, Enum):
    """Qualitative surf rating."""

    EPIC = "epic"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Source(str, Enum):
    """Provider that produced a forecast record."""

    SPOTTER_NETWORK = "spotter-network"
    STORED_PROVIDER = "stored-provider"
    GLOBAL_MODEL = "global-model"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (DuckDB TIMESTAMP semantics)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Location:
    """Surf location reference data."""

    location_id: int
    name: str
    lat: float
    lon: float
    region: Optional[str] = None
    difficulty: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ProviderRecord:
    """Partial daily record as produced by one provider adapter.

    Only ``date`` is guaranteed; heights are in feet, directions are
    compass labels. Missing fields are filled during normalization.
    """

    date: date
    wave_height_min_ft: Optional[int] = None
    wave_height_max_ft: Optional[int] = None
    swell_period_sec: Optional[float] = None
    wind_direction: Optional[str] = None
    wind_speed_kt: Optional[int] = None
    swell_direction: Optional[str] = None
    rating: Optional[Rating] = None
    spot_name: Optional[str] = None


@dataclass
class DailyForecast:
    """One normalized forecast day for a location.

    (location_id, date) is the natural key.
    """

    location_id: int
    date: date
    wave_height_min_ft: int
    wave_height_max_ft: int
    rating: Rating
    source: Source
    last_updated_at: datetime
    swell_period_sec: Optional[float] = None
    wind_direction: Optional[str] = None
    wind_speed_kt: Optional[int] = None
    swell_direction: Optional[str] = None
    spot_name: Optional[str] = None

    @property
    def natural_key(self) -> tuple[int, date]:
        """(location_id, date) pair identifying this record."""
        return (self.location_id, self.date)


# Seed catalog of surf locations
SURF_LOCATIONS_DATA = [
    Location(1, "Pipeline", 21.66, -158.05, "Hawaii", "pro", "World famous reef break."),
    Location(2, "Superbank", -28.16, 153.55, "Australia", "advanced", "Longest hollow wave."),
    Location(3, "Teahupoo", -17.84, -149.26, "Tahiti", "pro", "Heaviest wave in the world."),
    Location(4, "Uluwatu", -8.81, 115.08, "Bali", "advanced", "Iconic Balinese reef break."),
    Location(5, "Trestles", 33.38, -117.59, "California", "intermediate", "Performance wave."),
    Location(6, "Malibu", 34.03, -118.68, "California", "beginner", "Classic right-hand point."),
    Location(7, "Mavericks", 37.49, -122.50, "California", "pro", "Cold-water big wave reef."),
    Location(8, "Ocean Beach", 37.76, -122.51, "California", "advanced", "Powerful beach break."),
    Location(9, "Hossegor", 43.67, -1.44, "France", "advanced", "Heavy European beach break."),
    Location(10, "Jeffreys Bay", -34.05, 24.93, "South Africa", "advanced", "Endless right point."),
]
