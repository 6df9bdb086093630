"""Pydantic schemas for API responses.

Defines all data models exposed by the forecast API.
"""

from datetime import date as date_type
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from surfcast.cache.models import DailyForecast, Location, Rating, Source

# Forecast window exposed to clients, in days
MAX_FORECAST_DAYS = 14
DEFAULT_FORECAST_DAYS = 7


class LocationInfo(BaseModel):
    """Surf location.

    Attributes:
        id: Location id
        name: Display name
        lat: Latitude
        lon: Longitude
        region: Region name
        difficulty: Difficulty level
    """

    id: int
    name: str
    lat: float
    lon: float
    region: Optional[str] = None
    difficulty: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_location(cls, location: Location) -> "LocationInfo":
        return cls(
            id=location.location_id,
            name=location.name,
            lat=location.lat,
            lon=location.lon,
            region=location.region,
            difficulty=location.difficulty,
            description=location.description,
        )


class DailyForecastResponse(BaseModel):
    """One forecast day."""

    date: date_type
    wave_height_min_ft: int = Field(..., ge=1, description="Minimum wave height in feet")
    wave_height_max_ft: int = Field(..., ge=1, description="Maximum wave height in feet")
    swell_period_sec: Optional[float] = Field(default=None, description="Swell period in seconds")
    wind_direction: Optional[str] = Field(default=None, description="8-point compass direction")
    wind_speed_kt: Optional[int] = Field(default=None, description="Wind speed in knots")
    swell_direction: Optional[str] = None
    rating: Rating
    source: Source
    spot_name: Optional[str] = None
    last_updated_at: datetime

    @classmethod
    def from_forecast(cls, report: DailyForecast) -> "DailyForecastResponse":
        return cls(
            date=report.date,
            wave_height_min_ft=report.wave_height_min_ft,
            wave_height_max_ft=report.wave_height_max_ft,
            swell_period_sec=report.swell_period_sec,
            wind_direction=report.wind_direction,
            wind_speed_kt=report.wind_speed_kt,
            swell_direction=report.swell_direction,
            rating=report.rating,
            source=report.source,
            spot_name=report.spot_name,
            last_updated_at=report.last_updated_at,
        )


class LocationForecastResponse(BaseModel):
    """Forecast for one location.

    Attributes:
        location: Location information
        reports: Forecast days sorted by date (empty when none available)
        last_updated: Newest last_updated_at across stored reports
        refreshed: Whether providers were queried for this request
    """

    location: LocationInfo
    reports: list[DailyForecastResponse]
    last_updated: Optional[datetime] = None
    refreshed: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "location": {
                        "id": 5,
                        "name": "Trestles",
                        "lat": 33.38,
                        "lon": -117.59,
                        "region": "California",
                        "difficulty": "intermediate",
                    },
                    "reports": [
                        {
                            "date": "2026-10-19",
                            "wave_height_min_ft": 3,
                            "wave_height_max_ft": 4,
                            "swell_period_sec": 13.0,
                            "wind_direction": "SW",
                            "rating": "fair",
                            "source": "spotter-network",
                            "last_updated_at": "2026-10-19T06:00:00",
                        }
                    ],
                    "last_updated": "2026-10-19T06:00:00",
                    "refreshed": False,
                }
            ]
        }
    }


class RefreshResponse(BaseModel):
    """Result of a refresh run."""

    total: int
    success: int
    failed: int
    skipped: int
    duration_ms: int
    message: str


class HealthResponse(BaseModel):
    """Health check response.

    Attributes:
        status: Service status ('healthy' or 'unhealthy')
        database: Path of the cache database
        version: API version
    """

    status: str = Field(
        default="healthy",
        description="Service status",
    )
    database: Optional[str] = Field(
        default=None,
        description="Cache database path",
    )
    version: str = Field(
        default="1.0.0",
        description="API version",
    )


class ErrorResponse(BaseModel):
    """Error response schema.

    Attributes:
        error: Error type/code
        message: Human-readable error message
        detail: Additional error details
    """

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Additional details")
