"""Forward geocoding helpers using OpenStreetMap Nominatim.

The API surface is intentionally small: a `Geocoder` turns a free-text address
into zero or more coordinate candidates, raising `GeocodingError` when the
lookup itself fails. Callers that must never fail (the coordinate resolution
pipeline) catch it per venue.
"""

from __future__ import annotations

import logging
import os
import re
import threading
import time
from typing import Any, Iterable, List, Optional, Protocol, Tuple

import requests

from domain.models import Coordinate
from settings import settings

NOMINATIM_SEARCH_URL = os.getenv(
    "NOMINATIM_SEARCH_URL", "https://nominatim.openstreetmap.org/search"
)
logger = logging.getLogger(__name__)
_session = requests.Session()
_last_request_ts: float = 0.0
_lock = threading.Lock()
_MIN_INTERVAL_SEC = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.1"))
_logged_ua = False
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT")
NOMINATIM_REFERER = os.getenv("NOMINATIM_REFERER")

FALLBACK_UA = "pawsport-venues/0.1 (contact: example@example.com)"
if NOMINATIM_USER_AGENT is None:
    logger.warning(
        "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
        "This may violate Nominatim usage policy."
    )


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


_ua_value = NOMINATIM_USER_AGENT or FALLBACK_UA
NOMINATIM_HEADERS = {
    "User-Agent": _ua_value,
}
if NOMINATIM_REFERER:
    NOMINATIM_HEADERS["Referer"] = NOMINATIM_REFERER


class GeocodingError(Exception):
    """Raised when an address lookup fails (network, HTTP status, bad payload, timeout)."""


class Geocoder(Protocol):
    def geocode(self, address: str) -> List[Coordinate]: ...


def _throttled_get(
    url: str,
    *,
    params: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> requests.Response:
    """Perform a GET request with a simple global rate limit."""
    global _last_request_ts
    with _lock:
        now = time.time()
        delta = now - _last_request_ts
        if delta < _MIN_INTERVAL_SEC:
            time.sleep(_MIN_INTERVAL_SEC - delta)
        _last_request_ts = time.time()
    return _session.get(url, params=params, headers=headers, timeout=timeout)


def _parse_candidate(item: Any) -> Optional[Coordinate]:
    if not isinstance(item, dict):
        return None
    try:
        return Coordinate(lat=float(item["lat"]), lng=float(item["lon"]))
    except (KeyError, TypeError, ValueError):
        return None


class NominatimGeocoder:
    """Address → coordinate lookups against the Nominatim search endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_results: int = 1,
        country_codes: Optional[str] = None,
    ):
        self.base_url = (base_url or NOMINATIM_SEARCH_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEOCODE_TIMEOUT_SECONDS
        self.max_results = max_results
        self.country_codes = country_codes

    def geocode(self, address: str) -> List[Coordinate]:
        """
        Look up `address` and return coordinate candidates, best first.

        An empty list means the service answered but found nothing. Any
        transport, HTTP or payload problem raises GeocodingError.
        """
        query = (address or "").strip()
        if not query:
            return []

        global _logged_ua
        if not _logged_ua:
            logger.debug("Nominatim User-Agent: %s", _redact_email(_ua_value))
            _logged_ua = True

        params = {
            "q": query,
            "format": "jsonv2",
            "limit": str(self.max_results),
            "addressdetails": "0",
        }
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        try:
            resp = _throttled_get(
                self.base_url, params=params, headers=NOMINATIM_HEADERS, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise GeocodingError(f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise GeocodingError(str(exc)) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise GeocodingError(f"invalid JSON from geocoder: {exc}") from exc

        if not isinstance(data, list):
            raise GeocodingError(f"unexpected geocoder payload type {type(data).__name__}")

        candidates: List[Coordinate] = []
        for item in data:
            coord = _parse_candidate(item)
            if coord is None:
                logger.debug("Skipping malformed geocode candidate for %r: %r", query, item)
                continue
            candidates.append(coord)
        if data and not candidates:
            raise GeocodingError("geocoder returned only malformed candidates")
        return candidates


class NullGeocoder:
    """Geocoder used when lookups are disabled; never finds anything."""

    def geocode(self, address: str) -> List[Coordinate]:
        return []


_default_geocoder: Optional[Geocoder] = None


def get_default_geocoder() -> Geocoder:
    global _default_geocoder
    if _default_geocoder is None:
        if settings.GEOCODING_ENABLED:
            _default_geocoder = NominatimGeocoder()
        else:
            _default_geocoder = NullGeocoder()
    return _default_geocoder


def compute_centroid(points: Iterable[Tuple[float, float]]) -> Optional[Tuple[float, float]]:
    """Compute the centroid of a collection of (lat, lng) points."""
    pts = list(points)
    if not pts:
        return None
    lat_sum = 0.0
    lng_sum = 0.0
    for lat, lng in pts:
        lat_sum += lat
        lng_sum += lng
    return (lat_sum / len(pts), lng_sum / len(pts))


def compute_bounds(
    points: Iterable[Tuple[float, float]],
) -> Optional[Tuple[Tuple[float, float], Tuple[float, float]]]:
    """Return ((south, west), (north, east)) enclosing all points, or None."""
    pts = list(points)
    if not pts:
        return None
    lats = [p[0] for p in pts]
    lngs = [p[1] for p in pts]
    return ((min(lats), min(lngs)), (max(lats), max(lngs)))
