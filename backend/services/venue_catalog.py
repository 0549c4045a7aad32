"""
Static venue catalog plus the shaping used by the list and detail views.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional
from urllib.parse import quote

from domain.models import Venue, VenueListItem
from settings import settings

logger = logging.getLogger(__name__)

FALLBACK_HERO = (
    "https://images.unsplash.com/photo-1517849845537-4d257902454a"
    "?auto=format&fit=crop&w=1600&q=60"
)
DEFAULT_SHORT_LINE = "Dog-friendly venue"
SHORT_LINE_WORDS = 10

_BRACKETED_SUFFIX = re.compile(r"\s*\([^)]*\)\s*$")
_UK_POSTCODE = re.compile(r"\b([A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2})\b", re.IGNORECASE)
_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")


class VenueCatalog:
    """Read-only, ordered collection of venues keyed by id."""

    def __init__(self, venues: Iterable[Venue]):
        self._venues: List[Venue] = []
        self._by_id: Dict[str, Venue] = {}
        for venue in venues:
            if venue.id in self._by_id:
                logger.warning("Duplicate venue id %s in catalog; keeping first", venue.id)
                continue
            self._venues.append(venue)
            self._by_id[venue.id] = venue

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "VenueCatalog":
        venues: List[Venue] = []
        for record in records:
            if not isinstance(record, dict) or record.get("id") in (None, "") or not record.get("name"):
                logger.warning("Skipping catalog record without id/name: %r", record)
                continue
            venues.append(Venue.from_dict(record))
        return cls(venues)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "VenueCatalog":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("venues", [])
        return cls.from_records(data)

    @property
    def venues(self) -> List[Venue]:
        return list(self._venues)

    def get(self, venue_id: Any) -> Optional[Venue]:
        return self._by_id.get(str(venue_id))

    def __len__(self) -> int:
        return len(self._venues)

    def __iter__(self) -> Iterator[Venue]:
        return iter(self._venues)


_default_catalog: Optional[VenueCatalog] = None


def load_default_catalog() -> VenueCatalog:
    global _default_catalog
    if _default_catalog is None:
        path = Path(settings.VENUES_PATH)
        if path.exists():
            _default_catalog = VenueCatalog.from_json_file(path)
        else:
            logger.warning("Venue catalog %s not found; starting with an empty catalog", path)
            _default_catalog = VenueCatalog([])
    return _default_catalog


def strip_bracketed_location(name: str) -> str:
    """'Café Morso (Bromsgrove)' -> 'Café Morso'."""
    return _BRACKETED_SUFFIX.sub("", name or "").strip()


def extract_city(address: Optional[str]) -> str:
    """Pick the town segment of an address, without any UK postcode."""
    if not address:
        return ""
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if not parts:
        return ""
    seg = parts[1] if len(parts) >= 2 else parts[-1]
    return _UK_POSTCODE.sub("", seg).strip()


def short_line_for(venue: Venue) -> str:
    """The deal if there is one, otherwise the start of the description."""
    if venue.deal and venue.deal.strip():
        return venue.deal.strip()
    text = ""
    for candidate in (venue.description, venue.long_description):
        if candidate and candidate.strip():
            text = candidate.strip()
            break
    if not text:
        return DEFAULT_SHORT_LINE
    words = text.split()
    short = " ".join(words[:SHORT_LINE_WORDS])
    return short + ("…" if len(words) > SHORT_LINE_WORDS else "")


def to_list_item(venue: Venue) -> VenueListItem:
    return VenueListItem(
        id=venue.id,
        title=strip_bracketed_location(venue.name),
        city=extract_city(venue.address),
        short=short_line_for(venue),
        address=venue.address,
    )


def search_venues(venues: Iterable[Venue], query: Optional[str]) -> List[VenueListItem]:
    """Case-insensitive match on title, city, short line or address."""
    items = [to_list_item(v) for v in venues]
    needle = (query or "").strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if needle in item.title.lower()
        or needle in item.city.lower()
        or needle in item.short.lower()
        or (item.address and needle in item.address.lower())
    ]


def looks_like_image(url: Optional[str]) -> bool:
    if not url:
        return False
    return url.lower().endswith(_IMAGE_EXTENSIONS)


def hero_image_url(venue: Venue) -> str:
    return venue.image if looks_like_image(venue.image) else FALLBACK_HERO


def maps_search_url(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    query = quote(address, safe="!'()*")
    return f"https://www.google.com/maps/search/?api=1&query={query}"


def website_url(online: Optional[str]) -> Optional[str]:
    if not online:
        return None
    return online if online.startswith("http") else f"https://{online}"


def website_label(online: Optional[str]) -> Optional[str]:
    if not online:
        return None
    return re.sub(r"^https?://", "", online)


def phone_url(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return None
    return f"tel:{phone}"
