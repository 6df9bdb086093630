"""Waterfall aggregation of provider forecasts for one location.

Provider priority:

1. Regional spotter network, only for locations inside SPOTTER_REGION_BBOX.
   Full coverage (>= FULL_COVERAGE_DAYS dates) is returned as-is; partial
   coverage is topped up with global-model days the spotter did not cover;
   no coverage falls through to step 2.
2. Stored third-party provider data matched by coordinates.
3. Global wave model.

Adapter calls are sequential because each step depends on the previous
step's date count. The coordinator reads no cache state and writes
nothing; callers decide whether to upsert the result.
"""

import logging
from typing import Callable, Iterable, Optional

import requests

from surfcast.cache.database import CacheDatabase
from surfcast.cache.models import DailyForecast, Location, ProviderRecord, Source, utcnow
from surfcast.forecast.rating import resolve_rating
from surfcast.providers.base import AdapterResult, ProviderAdapter, RequestConfig
from surfcast.providers.global_model import GlobalModelAdapter
from surfcast.providers.spotter import SpotterAdapter
from surfcast.providers.stored import StoredProviderAdapter
from surfcast.utils.geo import SPOTTER_REGION_BBOX, BoundingBox
from surfcast.utils.units import derive_range

logger = logging.getLogger(__name__)

# Spotter coverage at or above this many distinct dates needs no top-up
FULL_COVERAGE_DAYS = 7


def to_daily_forecast(
    record: ProviderRecord,
    location_id: int,
    source: Source,
    fetched_at,
) -> Optional[DailyForecast]:
    """Normalize a partial provider record into a DailyForecast.

    Heights are clamped so that 1 <= min <= max; a record with only one
    height gets a derived band. A missing rating is classified from the
    max height and swell period, or defaults to fair without a period.

    Returns:
        DailyForecast, or None if the record carries no height at all
    """
    low, high = record.wave_height_min_ft, record.wave_height_max_ft
    if low is None and high is None:
        return None
    if low is None:
        low, high = derive_range(high)
    elif high is None:
        high = low
    low = max(1, int(low))
    high = max(low, int(high))

    return DailyForecast(
        location_id=location_id,
        date=record.date,
        wave_height_min_ft=low,
        wave_height_max_ft=high,
        rating=resolve_rating(record.rating, high, record.swell_period_sec),
        source=source,
        last_updated_at=fetched_at,
        swell_period_sec=record.swell_period_sec,
        wind_direction=record.wind_direction,
        wind_speed_kt=record.wind_speed_kt,
        swell_direction=record.swell_direction,
        spot_name=record.spot_name,
    )


class ForecastCoordinator:
    """Select and merge provider forecasts for a location.

    Example:
        >>> coordinator = ForecastCoordinator(spotter, stored, global_model)
        >>> reports = coordinator.fetch_forecast(location)
        >>> db.upsert(location.location_id, reports)
    """

    def __init__(
        self,
        spotter: ProviderAdapter,
        stored: ProviderAdapter,
        global_model: ProviderAdapter,
        region: BoundingBox = SPOTTER_REGION_BBOX,
        now_func: Callable = utcnow,
    ):
        """Initialize coordinator.

        Args:
            spotter: Regional spotter network adapter
            stored: Stored provider adapter
            global_model: Global wave model adapter
            region: Coverage box of the spotter network
            now_func: Clock for last_updated_at on returned records
        """
        self.spotter = spotter
        self.stored = stored
        self.global_model = global_model
        self.region = region
        self.now_func = now_func

    def in_region(self, location: Location) -> bool:
        """Whether the spotter network covers a location."""
        return self.region.contains(location.lat, location.lon)

    def fetch_forecast(self, location: Location) -> list[DailyForecast]:
        """Fetch the best available daily forecasts for a location.

        Never raises; an empty list means no forecast is currently
        available from any provider.

        Args:
            location: Location to forecast

        Returns:
            DailyForecasts sorted by date, at most one per date
        """
        try:
            reports = self._run_waterfall(location)
        except Exception:
            logger.exception(f"Forecast aggregation failed for {location.name}")
            return []

        if not reports:
            logger.warning(f"No provider had data for {location.name}")
        return reports

    def _run_waterfall(self, location: Location) -> list[DailyForecast]:
        fetched_at = self.now_func()
        location_id = location.location_id

        # Coverage counts only days that survive normalization
        if self.in_region(location):
            spotter = self._finalize(
                self._call(self.spotter, location).records,
                location_id,
                Source.SPOTTER_NETWORK,
                fetched_at,
            )
            covered = len(spotter)

            if covered >= FULL_COVERAGE_DAYS:
                logger.info(f"{location.name}: full spotter coverage ({covered} days)")
                return spotter

            if covered > 0:
                logger.info(
                    f"{location.name}: partial spotter coverage ({covered} days), "
                    f"topping up from global model"
                )
                fallback = self._finalize(
                    self._call(self.global_model, location).records,
                    location_id,
                    Source.GLOBAL_MODEL,
                    fetched_at,
                )
                return self.merge(spotter, fallback)

            logger.info(f"{location.name}: no spotter data, falling through")

        stored = self._finalize(
            self._call(self.stored, location).records,
            location_id,
            Source.STORED_PROVIDER,
            fetched_at,
        )
        if stored:
            logger.info(f"{location.name}: using stored provider ({len(stored)} days)")
            return stored

        fallback = self._finalize(
            self._call(self.global_model, location).records,
            location_id,
            Source.GLOBAL_MODEL,
            fetched_at,
        )
        if fallback:
            logger.info(f"{location.name}: using global model ({len(fallback)} days)")
        return fallback

    @staticmethod
    def merge(
        primary: list[DailyForecast],
        fallback: list[DailyForecast],
    ) -> list[DailyForecast]:
        """Merge two forecast lists by date.

        Every primary record is kept unchanged; fallback records only fill
        dates the primary list does not cover.

        Returns:
            Merged forecasts sorted by date
        """
        covered = {report.date for report in primary}
        merged = list(primary)
        merged.extend(report for report in fallback if report.date not in covered)
        return sorted(merged, key=lambda report: report.date)

    @staticmethod
    def _call(adapter: ProviderAdapter, location: Location) -> AdapterResult:
        """Call an adapter, treating any unexpected exception as an empty step."""
        try:
            return adapter.fetch(location)
        except Exception as e:
            logger.exception(f"{adapter.name} raised for {location.name}")
            return AdapterResult.empty(adapter.name, error=str(e))

    @staticmethod
    def _finalize(
        records: Iterable[ProviderRecord],
        location_id: int,
        source: Source,
        fetched_at,
    ) -> list[DailyForecast]:
        """Normalize records, keep the first record per date, sort by date."""
        by_date: dict = {}
        for record in records:
            if record.date in by_date:
                continue
            report = to_daily_forecast(record, location_id, source, fetched_at)
            if report is None:
                logger.debug(f"Dropping {source.value} record without heights for {record.date}")
                continue
            by_date[record.date] = report
        return [by_date[day] for day in sorted(by_date)]


def build_coordinator(
    db: CacheDatabase,
    session: Optional[requests.Session] = None,
    request_config: Optional[RequestConfig] = None,
) -> ForecastCoordinator:
    """Wire a coordinator with the default adapters.

    Both HTTP adapters share one session; the stored adapter reads ``db``.
    """
    session = session or requests.Session()
    request_config = request_config or RequestConfig()
    return ForecastCoordinator(
        spotter=SpotterAdapter(session=session, request_config=request_config),
        stored=StoredProviderAdapter(db),
        global_model=GlobalModelAdapter(session=session, request_config=request_config),
    )
