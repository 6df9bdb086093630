"""Data caching layer for surfcast.

Provides persistent storage of normalized daily surf forecasts with
staleness tracking using DuckDB.

Background refresh can be run via:
    python -m surfcast.cache.refresh

Or scheduled via cron:
    # Every 6 hours
    0 */6 * * * python -m surfcast.cache.refresh
"""

from surfcast.cache.database import DEFAULT_DB_PATH, CacheDatabase
from surfcast.cache.models import (
    SURF_LOCATIONS_DATA,
    DailyForecast,
    Location,
    ProviderRecord,
    Rating,
    Source,
)

__all__ = [
    "CacheDatabase",
    "DEFAULT_DB_PATH",
    "DailyForecast",
    "Location",
    "ProviderRecord",
    "Rating",
    "SURF_LOCATIONS_DATA",
    "Source",
]
