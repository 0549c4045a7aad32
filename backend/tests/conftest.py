import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def isolated_defaults(monkeypatch, tmp_path):
    """Keep process-wide singletons and the on-disk geo cache out of the repo."""
    from services import coordinate_resolution, favourites, geo_cache, geocoding, venue_catalog
    from settings import settings

    monkeypatch.setattr(settings, "GEO_CACHE_PATH", str(tmp_path / "geo_cache.sqlite"))
    monkeypatch.setattr(geo_cache, "_default_cache_store", None)
    monkeypatch.setattr(geocoding, "_default_geocoder", None)
    monkeypatch.setattr(coordinate_resolution, "_default_resolver", None)
    monkeypatch.setattr(favourites, "_default_favourites_store", None)
    monkeypatch.setattr(venue_catalog, "_default_catalog", None)
