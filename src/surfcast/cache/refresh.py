"""Background refresh for stale surf locations.

Finds locations whose newest forecast is older than the staleness window,
runs the forecast waterfall for each and upserts the result. Run it on a
schedule to keep the cache warm:

    # Every 6 hours
    0 */6 * * * python -m surfcast.cache.refresh

Usage:
    python -m surfcast.cache.refresh                 # Refresh stale locations
    python -m surfcast.cache.refresh --max-age 6     # Custom staleness window
    python -m surfcast.cache.refresh --workers 4     # Fetch 4 locations at once
    python -m surfcast.cache.refresh --status        # Show cache status
"""

import argparse
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from surfcast.cache.database import DEFAULT_DB_PATH, CacheDatabase
from surfcast.cache.models import Location
from surfcast.forecast.coordinator import ForecastCoordinator, build_coordinator

# Configure logging
logger = logging.getLogger(__name__)

# Forecasts older than this are refreshed
CACHE_VALIDITY_HOURS = 24


@dataclass
class RefreshResult:
    """Result of a refresh operation."""

    total: int
    success: int
    failed: int
    skipped: int
    duration_ms: int

    @property
    def success_rate(self) -> float:
        """Percentage of successful refreshes."""
        if self.total == 0:
            return 0.0
        return (self.success / self.total) * 100

    def __str__(self) -> str:
        return (
            f"Refresh complete: {self.success}/{self.total} successful, "
            f"{self.failed} failed, {self.skipped} skipped "
            f"({self.duration_ms}ms)"
        )


def refresh_location(
    db: CacheDatabase,
    coordinator: ForecastCoordinator,
    location: Location,
) -> int:
    """Fetch and store forecasts for one location.

    An empty waterfall result leaves the stored forecasts untouched, so the
    location stays stale and is retried on the next run.

    Returns:
        Number of forecast days written (0 if nothing was available)
    """
    reports = coordinator.fetch_forecast(location)
    if not reports:
        return 0
    return db.upsert(location.location_id, reports)


def refresh_stale_locations(
    db: CacheDatabase,
    coordinator: ForecastCoordinator,
    max_age_hours: float = CACHE_VALIDITY_HOURS,
    max_locations: Optional[int] = None,
    max_workers: int = 1,
) -> RefreshResult:
    """Refresh every stale location.

    Locations are independent: a failure for one is logged and counted
    and never stops the others. With ``max_workers > 1`` the provider
    fetches run in a thread pool.

    Args:
        db: CacheDatabase instance
        coordinator: Coordinator used to fetch forecasts
        max_age_hours: Staleness window
        max_locations: Refresh at most this many stale locations; the rest
            are counted as skipped
        max_workers: Number of locations fetched concurrently

    Returns:
        RefreshResult with counts of successful/failed refreshes
    """
    start_time = time.time()

    stale = db.get_stale_locations(max_age_hours)
    skipped = 0
    if max_locations is not None and len(stale) > max_locations:
        skipped = len(stale) - max_locations
        stale = stale[:max_locations]

    total = len(stale) + skipped
    success = 0
    failed = 0

    if not stale:
        logger.info("All locations have fresh data")
    else:
        logger.info(f"Starting refresh for {len(stale)} stale locations...")

    def _refresh(location: Location) -> int:
        return refresh_location(db, coordinator, location)

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {executor.submit(_refresh, location): location for location in stale}
        for i, future in enumerate(as_completed(futures), 1):
            location = futures[future]
            try:
                written = future.result()
            except Exception as e:
                logger.error(f"[{i}/{len(stale)}] {location.name}: failed - {e}")
                failed += 1
                continue

            if written > 0:
                logger.info(f"[{i}/{len(stale)}] {location.name}: stored {written} days")
                success += 1
            else:
                logger.warning(f"[{i}/{len(stale)}] {location.name}: no forecast available")
                failed += 1

    duration_ms = int((time.time() - start_time) * 1000)

    result = RefreshResult(
        total=total,
        success=success,
        failed=failed,
        skipped=skipped,
        duration_ms=duration_ms,
    )

    db.log_fetch(
        source="refresh",
        status="success" if failed == 0 else "error",
        records_added=success,
        duration_ms=duration_ms,
        error_message=f"{failed} locations failed" if failed else None,
    )
    logger.info(str(result))
    return result


def get_cache_status(
    db_path: Optional[Path] = None,
    max_age_hours: float = CACHE_VALIDITY_HOURS,
) -> dict:
    """Get current cache status.

    Args:
        db_path: Path to DuckDB file. Uses default if not specified.
        max_age_hours: Staleness window used to flag locations

    Returns:
        Dict with cache statistics and per-location status
    """
    db = CacheDatabase(db_path or DEFAULT_DB_PATH)

    try:
        stats = db.get_stats()
        stale_ids = {loc.location_id for loc in db.get_stale_locations(max_age_hours)}

        location_status = []
        for location in db.get_locations():
            location_status.append({
                "id": location.location_id,
                "name": location.name,
                "region": location.region,
                "last_updated": db.get_last_updated(location.location_id),
                "stale": location.location_id in stale_ids,
            })

        return {
            "db_path": str(db.db_path),
            "total_locations": len(location_status),
            "fresh_locations": sum(1 for s in location_status if not s["stale"]),
            "forecast_count": stats["forecast_count"],
            "provider_entry_count": stats["provider_entry_count"],
            "latest_update": stats["latest_update"],
            "max_age_hours": max_age_hours,
            "locations": location_status,
        }

    finally:
        db.close()


def print_status(status: dict) -> None:
    """Print cache status in human-readable format."""
    print()
    print("=" * 60)
    print("Surf Forecast Cache Status")
    print("=" * 60)
    print(f"Database: {status['db_path']}")
    print(f"Total locations: {status['total_locations']}")
    print()
    print(
        f"Fresh (< {status['max_age_hours']}h): "
        f"{status['fresh_locations']}/{status['total_locations']}"
    )
    print(f"Total forecast records: {status['forecast_count']}")
    print(f"Stored provider entries: {status['provider_entry_count']}")

    if status["latest_update"]:
        print(f"Latest update: {status['latest_update']}")

    print()
    print("Location Status:")
    print("-" * 60)

    for loc in status["locations"]:
        state = "STALE" if loc["stale"] else "OK"
        updated = loc["last_updated"].strftime("%Y-%m-%d %H:%M") if loc["last_updated"] else "never"
        print(f"  {loc['name']:<25} {state:<6} updated: {updated}")

    print("=" * 60)


def main():
    """CLI entry point for background refresh."""
    parser = argparse.ArgumentParser(
        description="Refresh surf forecast cache for stale locations",
        epilog="""
Examples:
  python -m surfcast.cache.refresh               # Refresh stale locations
  python -m surfcast.cache.refresh --max-age 6   # 6 hour staleness window
  python -m surfcast.cache.refresh --status      # Show status

Cron setup (refresh every 6 hours):
  0 */6 * * * cd /path/to/surfcast && python -m surfcast.cache.refresh >> /var/log/surfcast-refresh.log 2>&1
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--max-age",
        type=float,
        default=CACHE_VALIDITY_HOURS,
        help=f"Refresh locations older than this many hours (default: {CACHE_VALIDITY_HOURS})",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Refresh at most this many locations (e.g. to respect provider quotas)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of locations fetched concurrently",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show current cache status",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help=f"Database path (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress output except errors",
    )

    args = parser.parse_args()

    # Configure logging
    if args.quiet:
        level = logging.ERROR
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.status:
        status = get_cache_status(args.db, max_age_hours=args.max_age)
        print_status(status)
        return 0

    db = CacheDatabase(args.db or DEFAULT_DB_PATH)
    coordinator = build_coordinator(db)

    try:
        result = refresh_stale_locations(
            db,
            coordinator,
            max_age_hours=args.max_age,
            max_locations=args.limit,
            max_workers=args.workers,
        )
        return 1 if result.failed > 0 else 0

    except Exception as e:
        logger.error(f"Refresh failed: {e}")
        return 1

    finally:
        coordinator.spotter.close()
        coordinator.global_model.close()
        db.close()


if __name__ == "__main__":
    sys.exit(main())
