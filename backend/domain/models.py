"""
Core domain models for the venue directory.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class CoordinateSource(str, Enum):
    """Where a resolved coordinate came from."""
    INLINE = "inline"
    CACHE = "cache"
    GEOCODED = "geocoded"


class SkipReason(str, Enum):
    """Why a venue could not be placed on the map."""
    NO_ADDRESS = "no_address"
    NO_CANDIDATES = "no_candidates"
    GEOCODE_FAILED = "geocode_failed"


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Coordinate"]:
        """Parse a `{"lat": .., "lng": ..}` mapping, returning None when malformed."""
        if not isinstance(data, dict):
            return None
        lat = data.get("lat")
        lng = data.get("lng")
        if not (_is_number(lat) and _is_number(lng)):
            return None
        return cls(lat=float(lat), lng=float(lng))


@dataclass(frozen=True)
class Venue:
    """
    A venue record from the static catalog.

    Only `id` and `name` are required. Inline `lat`/`lng` are authoritative
    when both are present; everything else is display data.
    """
    id: str
    name: str
    address: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    deal: Optional[str] = None
    features: Tuple[str, ...] = ()
    phone: Optional[str] = None
    online: Optional[str] = None
    image: Optional[str] = None
    postcode: Optional[str] = None

    @property
    def inline_coordinate(self) -> Optional[Coordinate]:
        if _is_number(self.lat) and _is_number(self.lng):
            return Coordinate(lat=float(self.lat), lng=float(self.lng))
        return None

    @property
    def has_address(self) -> bool:
        return bool(self.address and self.address.strip())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Venue":
        features = data.get("features") or []
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            address=_optional_str(data.get("address")),
            lat=data.get("lat"),
            lng=data.get("lng"),
            description=_optional_str(data.get("description")),
            long_description=_optional_str(
                data.get("long_description", data.get("longDescription"))
            ),
            deal=_optional_str(data.get("deal")),
            features=tuple(str(f) for f in features if f),
            phone=_optional_str(data.get("phone")),
            online=_optional_str(data.get("online")),
            image=_optional_str(data.get("image")),
            postcode=_optional_str(data.get("postcode")),
        )


@dataclass(frozen=True)
class ResolvedVenue:
    """A venue with the coordinate the resolution pipeline settled on."""
    venue: Venue
    coordinate: Coordinate
    source: CoordinateSource = field(compare=False)

    @property
    def id(self) -> str:
        return self.venue.id

    @property
    def name(self) -> str:
        return self.venue.name

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lng(self) -> float:
        return self.coordinate.lng


@dataclass(frozen=True)
class ResolutionOutcome:
    """
    Per-venue result of a resolution pass.

    Exactly one of `resolved` / `skip_reason` is set. `cache_update` carries a
    freshly geocoded coordinate that still has to be committed to the cache.
    """
    venue_id: str
    resolved: Optional[ResolvedVenue] = None
    skip_reason: Optional[SkipReason] = None
    cache_update: Optional[Coordinate] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.resolved is not None

    @classmethod
    def success(
        cls,
        venue: Venue,
        coordinate: Coordinate,
        source: CoordinateSource,
    ) -> "ResolutionOutcome":
        return cls(
            venue_id=venue.id,
            resolved=ResolvedVenue(venue=venue, coordinate=coordinate, source=source),
            cache_update=coordinate if source == CoordinateSource.GEOCODED else None,
        )

    @classmethod
    def skipped(
        cls,
        venue: Venue,
        reason: SkipReason,
        error: Optional[str] = None,
    ) -> "ResolutionOutcome":
        return cls(venue_id=venue.id, skip_reason=reason, error=error)


@dataclass(frozen=True)
class VenueListItem:
    """Shaped row for the venue list view."""
    id: str
    title: str
    city: str
    short: str
    address: Optional[str] = None
