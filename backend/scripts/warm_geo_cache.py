"""Resolve every catalog venue once so the map starts with a warm geo cache.

Usage:
    python backend/scripts/warm_geo_cache.py [--venues path/to/venues.json] [--cache path/to/geo.sqlite] [--workers 1]

Prints one line per venue that could not be placed and exits non-zero when
`--strict` is set and any venue was skipped.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from services.coordinate_resolution import VenueCoordinateResolver  # noqa: E402
from services.geo_cache import CoordinateCacheStore, SQLiteKeyValueStore  # noqa: E402
from services.geocoding import NominatimGeocoder  # noqa: E402
from services.venue_catalog import VenueCatalog  # noqa: E402
from settings import settings  # noqa: E402

logger = logging.getLogger("warm_geo_cache")


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Geocode catalog venues into the coordinate cache.")
    parser.add_argument("--venues", default=settings.VENUES_PATH, help="Venue catalog JSON file.")
    parser.add_argument("--cache", default=settings.GEO_CACHE_PATH, help="SQLite cache database.")
    parser.add_argument("--key", default=settings.GEO_CACHE_KEY, help="Cache key holding the mapping.")
    parser.add_argument("--workers", type=int, default=settings.RESOLVE_MAX_WORKERS)
    parser.add_argument("--timeout", type=float, default=settings.GEOCODE_TIMEOUT_SECONDS)
    parser.add_argument("--strict", action="store_true", help="Exit 1 if any venue was skipped.")
    args = parser.parse_args(argv)

    catalog = VenueCatalog.from_json_file(args.venues)
    cache = CoordinateCacheStore(SQLiteKeyValueStore(args.cache), key=args.key)
    resolver = VenueCoordinateResolver(
        cache, NominatimGeocoder(timeout=args.timeout), max_workers=args.workers
    )
    pins = resolver.run(catalog.venues) or []

    run = resolver.last_run
    skipped = run.skipped if run else []
    for venue_id, reason in skipped:
        logger.info("skipped %s: %s", venue_id, reason.value)
    logger.info("%d of %d venues placed; cache at %s", len(pins), len(catalog), args.cache)
    return 1 if (args.strict and skipped) else 0


if __name__ == "__main__":
    sys.exit(main())
