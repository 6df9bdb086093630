"""Regional spotter network adapter.

The spotter network publishes hand-tuned, already-rated forecasts for
California spots. Coverage per day is best-effort: a day the upstream
cannot serve is skipped, so fewer than ``days`` dates may come back.

Endpoints:
    GET {base_url}/api/spot
        -> [{"_id": 1, "spot_name": "...", "coordinates": [lon, lat]}, ...]
    GET {base_url}/api/spot_forecast/{spot_id}/{year}/{month}/{day}
        -> [{"hour": "...", "size_ft": 2.3, "shape": 0.8}, ...]
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd

from surfcast.cache.models import Location, ProviderRecord, Rating, utcnow
from surfcast.providers.base import (
    Deadline,
    HTTPProviderAdapter,
    LocationUnmatched,
    ProviderTransportError,
)
from surfcast.utils.geo import degree_distance
from surfcast.utils.units import round_half_up

logger = logging.getLogger(__name__)

SPOTTER_BASE_URL = "https://api.spitcast.com"

# Spot list changes rarely; keep it for a day
SPOTS_CACHE_SECONDS = 24 * 60 * 60

# Max distance (degrees) between a location and its spotter spot
SPOT_MATCH_DEGREES = 0.1

# Shape value assumed when the upstream sends an unparseable one
DEFAULT_SHAPE = 0.5


@dataclass
class SpotterSpot:
    """A spot published by the spotter network."""

    spot_id: int
    name: str
    lat: float
    lon: float


def rate_spotter_day(avg_size_ft: float, avg_shape: float) -> Rating:
    """Rating used by the spotter network from average size and shape."""
    if avg_size_ft >= 5 and avg_shape >= 1.0:
        return Rating.EPIC
    if avg_size_ft >= 4 and avg_shape >= 0.8:
        return Rating.GOOD
    if avg_size_ft >= 2 or avg_shape >= 0.5:
        return Rating.FAIR
    return Rating.POOR


class SpotterAdapter(HTTPProviderAdapter):
    """Adapter for the regional spotter network.

    The spot list is cached on the adapter instance, so one adapter
    shared by a refresh run lists spots once.

    Example:
        >>> adapter = SpotterAdapter()
        >>> result = adapter.fetch(location)
        >>> sorted(result.dates)
    """

    name = "spotter-network"

    def __init__(
        self,
        base_url: str = SPOTTER_BASE_URL,
        days: int = 7,
        today_func: Optional[Callable[[], date]] = None,
        clock: Callable[[], float] = time.monotonic,
        **kwargs,
    ):
        """Initialize spotter adapter.

        Args:
            base_url: API root
            days: Number of days to request, starting today
            today_func: Returns the first forecast day (defaults to UTC today)
            clock: Monotonic clock for spot-list caching and the deadline
            **kwargs: Passed to HTTPProviderAdapter (session, request_config)
        """
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")
        self.days = days
        self._today_func = today_func or (lambda: utcnow().date())
        self._clock = clock
        self._spots: Optional[list[SpotterSpot]] = None
        self._spots_fetched_at = 0.0
        self._spots_lock = threading.Lock()

    def get_spots(self, force_refresh: bool = False) -> list[SpotterSpot]:
        """List spotter spots, using the instance cache when fresh.

        Refresh worker threads share one adapter; the lock makes concurrent
        callers wait for a single spot-list fetch.

        Raises:
            ProviderTransportError: If the spot list cannot be fetched
        """
        with self._spots_lock:
            age = self._clock() - self._spots_fetched_at
            if self._spots is not None and age < SPOTS_CACHE_SECONDS and not force_refresh:
                return self._spots

            self._spots = self._load_spots()
            self._spots_fetched_at = self._clock()
            return self._spots

    def _load_spots(self) -> list[SpotterSpot]:
        payload = self._get_json(f"{self.base_url}/api/spot")
        if not isinstance(payload, list):
            raise ProviderTransportError("spot list is not a JSON array")

        spots = []
        for item in payload:
            try:
                lon, lat = item["coordinates"][0], item["coordinates"][1]
                spots.append(SpotterSpot(
                    spot_id=int(item["_id"]),
                    name=str(item["spot_name"]),
                    lat=float(lat),
                    lon=float(lon),
                ))
            except (KeyError, IndexError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed spot entry {item!r}: {e}")

        logger.info(f"Loaded {len(spots)} spotter spots")
        return spots

    def find_spot(self, lat: float, lon: float) -> Optional[SpotterSpot]:
        """Nearest spot within SPOT_MATCH_DEGREES of a point, if any."""
        closest = None
        min_distance = float("inf")
        for spot in self.get_spots():
            distance = degree_distance(lat, lon, spot.lat, spot.lon)
            if distance < SPOT_MATCH_DEGREES and distance < min_distance:
                min_distance = distance
                closest = spot
        return closest

    def _fetch_records(self, location: Location) -> list[ProviderRecord]:
        deadline = Deadline(self.request_config.deadline, clock=self._clock)

        spot = self.find_spot(location.lat, location.lon)
        if spot is None:
            raise LocationUnmatched(
                f"no spotter spot within {SPOT_MATCH_DEGREES} deg of "
                f"({location.lat}, {location.lon})"
            )

        start = self._today_func()
        records = []
        for offset in range(self.days):
            day = start + timedelta(days=offset)
            deadline.check(f"spot {spot.spot_id} {day}")
            try:
                record = self._fetch_day(spot, day)
            except ProviderTransportError as e:
                logger.info(f"Spotter forecast missing for {spot.name} on {day}: {e}")
                continue
            if record is not None:
                records.append(record)

        logger.info(
            f"Spotter returned {len(records)}/{self.days} days for "
            f"{location.name} (spot={spot.name})"
        )
        return records

    def _fetch_day(self, spot: SpotterSpot, day: date) -> Optional[ProviderRecord]:
        """Fetch and summarise the hourly forecast for one day."""
        url = (
            f"{self.base_url}/api/spot_forecast/{spot.spot_id}/"
            f"{day.year}/{day.month}/{day.day}"
        )
        hourly = self._get_json(url)
        if not isinstance(hourly, list) or not hourly:
            return None

        df = pd.DataFrame(hourly)
        if "size_ft" not in df.columns:
            return None

        sizes = pd.to_numeric(df["size_ft"], errors="coerce").fillna(0)
        sizes = sizes[sizes > 0]
        if sizes.empty:
            return None

        avg_shape = DEFAULT_SHAPE
        if "shape" in df.columns:
            shapes = df["shape"].dropna()
            if not shapes.empty:
                avg_shape = pd.to_numeric(shapes, errors="coerce").fillna(DEFAULT_SHAPE).mean()

        return ProviderRecord(
            date=day,
            wave_height_min_ft=round_half_up(max(1.0, sizes.min())),
            wave_height_max_ft=round_half_up(max(1.0, sizes.max())),
            rating=rate_spotter_day(sizes.mean(), avg_shape),
            spot_name=spot.name,
        )
