"""Forecast API for surfcast.

This module provides:

- create_app: Factory function to create FastAPI application
- ForecastService: Lazily opened database and coordinator used by the app
- Response schemas for locations and forecasts

Note: FastAPI-dependent exports (create_app, ForecastService) are lazy-loaded
to allow importing schemas without FastAPI installed.
"""

# Schemas can be imported directly (only depend on pydantic)
from surfcast.api.schemas import (
    DailyForecastResponse,
    ErrorResponse,
    HealthResponse,
    LocationForecastResponse,
    LocationInfo,
    RefreshResponse,
)


# Lazy imports for FastAPI-dependent components
def __getattr__(name):
    """Lazy load FastAPI-dependent components."""
    if name in ("create_app", "ForecastService"):
        from surfcast.api.app import ForecastService, create_app
        if name == "create_app":
            return create_app
        return ForecastService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "create_app",
    "ForecastService",
    "DailyForecastResponse",
    "ErrorResponse",
    "HealthResponse",
    "LocationForecastResponse",
    "LocationInfo",
    "RefreshResponse",
]
