"""Stored third-party provider adapter.

Reads marine-model data that an ingestion job has already written to the
cache database's provider tables. Entries are keyed by the coordinates they
were requested for, so a location matches the first entry (in insertion
order) within MATCH_TOLERANCE_DEG on both axes. There is no nearest-entry
ranking among several candidates.
"""

import logging

import duckdb

from surfcast.cache.database import CacheDatabase
from surfcast.cache.models import Location, ProviderRecord
from surfcast.providers.base import LocationUnmatched, ProviderAdapter, ProviderTransportError
from surfcast.utils.geo import within_tolerance

logger = logging.getLogger(__name__)

MATCH_TOLERANCE_DEG = 0.5


class StoredProviderAdapter(ProviderAdapter):
    """Adapter over the cache database's stored provider table."""

    name = "stored-provider"

    def __init__(self, db: CacheDatabase, tolerance_deg: float = MATCH_TOLERANCE_DEG):
        """Initialize stored provider adapter.

        Args:
            db: CacheDatabase holding the provider tables
            tolerance_deg: Per-axis match tolerance in degrees
        """
        self.db = db
        self.tolerance_deg = tolerance_deg

    def find_entry(self, lat: float, lon: float) -> int:
        """Id of the first provider entry within tolerance.

        Raises:
            LocationUnmatched: If no entry is close enough
        """
        for entry_id, entry_lat, entry_lon in self.db.get_provider_entries():
            if within_tolerance(lat, lon, entry_lat, entry_lon, self.tolerance_deg):
                return entry_id
        raise LocationUnmatched(
            f"no stored entry within {self.tolerance_deg} deg of ({lat}, {lon})"
        )

    def _fetch_records(self, location: Location) -> list[ProviderRecord]:
        try:
            entry_id = self.find_entry(location.lat, location.lon)
            records = self.db.get_provider_reports(entry_id)
        except duckdb.Error as e:
            raise ProviderTransportError(f"stored provider query failed: {e}") from e

        logger.info(
            f"Stored provider entry {entry_id} has {len(records)} days for {location.name}"
        )
        return records
