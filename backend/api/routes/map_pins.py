"""
Map API routes.

Serves the pins for the map view: every catalog venue whose coordinate could
be resolved, plus a centre and bounding box for fitting the map.
"""
import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter
from pydantic import BaseModel

from domain.models import ResolvedVenue
from services.coordinate_resolution import get_default_resolver
from services.geocoding import compute_bounds, compute_centroid
from services.venue_catalog import load_default_catalog
from settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)


class MapPinResponse(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    lat: float
    lng: float
    source: str


class MapPinsResponse(BaseModel):
    pins: List[MapPinResponse]
    center: Optional[Tuple[float, float]] = None
    bounds: Optional[Tuple[Tuple[float, float], Tuple[float, float]]] = None
    total_venues: int


def pin_to_response(pin: ResolvedVenue) -> MapPinResponse:
    return MapPinResponse(
        id=pin.id,
        name=pin.name,
        address=pin.venue.address,
        lat=pin.lat,
        lng=pin.lng,
        source=pin.source.value,
    )


@router.get("/pins", response_model=MapPinsResponse)
def map_pins():
    """Resolve venue coordinates (cache first, geocode on miss) and return pins."""
    catalog = load_default_catalog()
    pins = get_default_resolver().run(catalog.venues) or []
    points = [(p.lat, p.lng) for p in pins]
    center = compute_centroid(points) or settings.MAP_DEFAULT_CENTER
    logger.debug("Map pins: %d of %d venues placed", len(pins), len(catalog))
    return MapPinsResponse(
        pins=[pin_to_response(p) for p in pins],
        center=center,
        bounds=compute_bounds(points),
        total_venues=len(catalog),
    )
