"""FastAPI application for surf forecasts.

Provides REST API endpoints for:
- Location catalog
- Daily surf forecasts per location (refreshed on demand when stale)
- Triggering a refresh of all stale locations
- Health checks

Example:
    >>> from surfcast.api import create_app
    >>> app = create_app()
    >>> # Run with: uvicorn surfcast.api.app:app --reload
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from surfcast.api.schemas import (
    DEFAULT_FORECAST_DAYS,
    MAX_FORECAST_DAYS,
    DailyForecastResponse,
    ErrorResponse,
    HealthResponse,
    LocationForecastResponse,
    LocationInfo,
    RefreshResponse,
)
from surfcast.cache.database import DEFAULT_DB_PATH, CacheDatabase
from surfcast.cache.refresh import (
    CACHE_VALIDITY_HOURS,
    refresh_location,
    refresh_stale_locations,
)
from surfcast.forecast.coordinator import ForecastCoordinator, build_coordinator

logger = logging.getLogger(__name__)

# API version
API_VERSION = "1.0.0"


class ForecastService:
    """Holds the cache database and coordinator for the API.

    Both are created lazily on first use so importing the module has no
    side effects.

    Attributes:
        db_path: Path to the DuckDB file
        max_age_hours: Staleness window for on-demand refresh
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        coordinator: Optional[ForecastCoordinator] = None,
        max_age_hours: float = CACHE_VALIDITY_HOURS,
    ):
        self.db_path = db_path or DEFAULT_DB_PATH
        self.max_age_hours = max_age_hours
        self._db: Optional[CacheDatabase] = None
        self._coordinator = coordinator
        self._init_lock = threading.Lock()

    @property
    def db(self) -> CacheDatabase:
        with self._init_lock:
            if self._db is None:
                self._db = CacheDatabase(self.db_path)
            return self._db

    @property
    def coordinator(self) -> ForecastCoordinator:
        db = self.db
        with self._init_lock:
            if self._coordinator is None:
                self._coordinator = build_coordinator(db)
            return self._coordinator

    def close(self) -> None:
        """Close the database connection."""
        with self._init_lock:
            if self._db is not None:
                self._db.close()
                self._db = None


def create_app(
    db_path: Optional[Path] = None,
    coordinator: Optional[ForecastCoordinator] = None,
    max_age_hours: float = CACHE_VALIDITY_HOURS,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        db_path: Optional path to the cache database
        coordinator: Optional coordinator (defaults to the standard adapters)
        max_age_hours: Staleness window for on-demand refresh

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Surf Forecast API",
        description="Aggregated daily surf forecasts for named surf locations",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    service = ForecastService(db_path, coordinator, max_age_hours)
    app.state.service = service

    @app.on_event("shutdown")
    def shutdown_event():
        """Close the database on shutdown."""
        service.close()

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with custom response."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=f"HTTP_{exc.status_code}",
                message=str(exc.detail),
            ).model_dump(),
        )

    @app.get("/", tags=["info"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Surf Forecast API",
            "version": API_VERSION,
            "docs": "/docs",
        }

    @app.get("/health", response_model=HealthResponse, tags=["info"])
    def health_check():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            database=str(service.db.db_path),
            version=API_VERSION,
        )

    @app.get("/locations", response_model=list[LocationInfo], tags=["locations"])
    def list_locations():
        """List all surf locations."""
        return [LocationInfo.from_location(loc) for loc in service.db.get_locations()]

    @app.get(
        "/locations/{location_id}/forecast",
        response_model=LocationForecastResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Unknown location"},
        },
        tags=["forecasts"],
    )
    def location_forecast(
        location_id: int,
        days: int = Query(
            default=DEFAULT_FORECAST_DAYS,
            ge=1,
            le=MAX_FORECAST_DAYS,
            description="Number of days from today",
        ),
    ):
        """Get the daily forecast for a location.

        Stale locations are refreshed from the providers before answering.
        An empty ``reports`` list means no forecast is currently available.
        """
        db = service.db
        location = db.get_location(location_id)
        if location is None:
            raise HTTPException(status_code=404, detail=f"Location {location_id} not found")

        refreshed = False
        if db.is_stale(location_id, service.max_age_hours):
            logger.info(f"On-demand refresh for stale location {location.name}")
            try:
                refresh_location(db, service.coordinator, location)
                refreshed = True
            except ValueError as e:
                logger.error(f"On-demand refresh failed for {location.name}: {e}")

        reports = db.get_forecasts(location_id, days=days)
        return LocationForecastResponse(
            location=LocationInfo.from_location(location),
            reports=[DailyForecastResponse.from_forecast(r) for r in reports],
            last_updated=db.get_last_updated(location_id),
            refreshed=refreshed,
        )

    @app.post("/refresh", response_model=RefreshResponse, tags=["forecasts"])
    def refresh(
        max_age_hours: float = Query(
            default=CACHE_VALIDITY_HOURS,
            ge=0,
            description="Refresh locations older than this many hours",
        ),
        limit: Optional[int] = Query(default=None, ge=1),
    ):
        """Refresh every stale location."""
        result = refresh_stale_locations(
            service.db,
            service.coordinator,
            max_age_hours=max_age_hours,
            max_locations=limit,
        )
        return RefreshResponse(
            total=result.total,
            success=result.success,
            failed=result.failed,
            skipped=result.skipped,
            duration_ms=result.duration_ms,
            message=str(result),
        )

    return app


# Default app instance for uvicorn
app = create_app()
