import os
from pathlib import Path
from typing import Optional, Tuple

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = BASE_DIR / "data"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _as_list(val: str | None) -> Tuple[str, ...]:
    if not val:
        return ()
    return tuple(part.strip() for part in val.split(",") if part.strip())


class Settings:
    def __init__(self) -> None:
        self.VENUES_PATH: str = os.getenv("VENUES_PATH") or str(DATA_DIR / "venues.json")
        self.GEO_CACHE_PATH: str = os.getenv("GEO_CACHE_PATH") or str(DATA_DIR / "geo_cache.sqlite")
        self.GEO_CACHE_KEY: str = os.getenv("GEO_CACHE_KEY") or "venueGeo:v1"
        self.GEOCODING_ENABLED: bool = _as_bool(os.getenv("GEOCODING_ENABLED"), True)
        self.GEOCODE_TIMEOUT_SECONDS: float = _as_float(os.getenv("GEOCODE_TIMEOUT_SECONDS"), 5.0)
        self.RESOLVE_MAX_WORKERS: int = max(1, _as_int(os.getenv("RESOLVE_MAX_WORKERS"), 1))
        self.FAVOURITES_SEED: Tuple[str, ...] = _as_list(os.getenv("FAVOURITES_SEED"))
        self.MAP_DEFAULT_CENTER: Optional[Tuple[float, float]] = (52.335, -1.9)


settings = Settings()
