"""Global open-ocean wave model adapter (Open-Meteo Marine API).

Covers any coordinate worldwide at lower fidelity than the regional
spotter network. Returns a 7-day daily series; heights arrive in meters
and directions in degrees, and no rating is supplied.
"""

import logging
from typing import Optional

import pandas as pd

from surfcast.cache.models import Location, ProviderRecord
from surfcast.providers.base import HTTPProviderAdapter, ProviderTransportError
from surfcast.utils.units import degrees_to_compass, derive_range, meters_to_feet

logger = logging.getLogger(__name__)

MARINE_API_URL = "https://marine-api.open-meteo.com/v1/marine"

FORECAST_DAYS = 7

DAILY_VARIABLES = [
    "wave_height_max",
    "wave_period_max",
    "wave_direction_dominant",
]


class GlobalModelAdapter(HTTPProviderAdapter):
    """Adapter for the global marine wave model."""

    name = "global-model"

    def __init__(self, base_url: str = MARINE_API_URL, **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url

    def _fetch_records(self, location: Location) -> list[ProviderRecord]:
        params = {
            "latitude": location.lat,
            "longitude": location.lon,
            "daily": ",".join(DAILY_VARIABLES),
            "forecast_days": FORECAST_DAYS,
            "timezone": "UTC",
        }
        payload = self._get_json(self.base_url, params=params)
        if not isinstance(payload, dict):
            raise ProviderTransportError("marine response is not a JSON object")

        df = self.process(payload.get("daily") or {})
        records = [self._to_record(row) for row in df.itertuples(index=False)]
        logger.info(f"Global model returned {len(records)} days for {location.name}")
        return records

    def process(self, daily: dict) -> pd.DataFrame:
        """Turn the parallel daily arrays into a DataFrame.

        Rows beyond FORECAST_DAYS and rows without a wave height (land
        points, model gaps) are dropped.

        Args:
            daily: The ``daily`` block of the API response

        Returns:
            DataFrame with columns date, height_m, period_s, direction_deg
        """
        times = daily.get("time") or []
        if not times:
            return pd.DataFrame(columns=["date", "height_m", "period_s", "direction_deg"])

        def column(key: str) -> list:
            values = list(daily.get(key) or [])
            values += [None] * (len(times) - len(values))
            return values[: len(times)]

        try:
            df = pd.DataFrame({
                "date": pd.to_datetime(times).date,
                "height_m": pd.to_numeric(column("wave_height_max"), errors="coerce"),
                "period_s": pd.to_numeric(column("wave_period_max"), errors="coerce"),
                "direction_deg": pd.to_numeric(
                    column("wave_direction_dominant"), errors="coerce"
                ),
            })
        except (TypeError, ValueError) as e:
            raise ProviderTransportError(f"unparseable daily block: {e}") from e

        df = df.head(FORECAST_DAYS)
        return df.dropna(subset=["height_m"]).reset_index(drop=True)

    @staticmethod
    def _to_record(row) -> ProviderRecord:
        height_ft = meters_to_feet(row.height_m)
        low, high = derive_range(height_ft)
        return ProviderRecord(
            date=row.date,
            wave_height_min_ft=low,
            wave_height_max_ft=high,
            swell_period_sec=_optional_float(row.period_s),
            wind_direction=(
                None if pd.isna(row.direction_deg) else degrees_to_compass(row.direction_deg)
            ),
        )


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)
