"""Forecast aggregation: rating classifier and waterfall coordinator."""

from surfcast.forecast.coordinator import (
    FULL_COVERAGE_DAYS,
    ForecastCoordinator,
    build_coordinator,
    to_daily_forecast,
)
from surfcast.forecast.rating import classify, resolve_rating

__all__ = [
    "FULL_COVERAGE_DAYS",
    "ForecastCoordinator",
    "build_coordinator",
    "classify",
    "resolve_rating",
    "to_daily_forecast",
]
