"""
Venue list and detail API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from domain.models import Venue, VenueListItem
from services.favourites import get_default_favourites_store
from services.venue_catalog import (
    hero_image_url,
    load_default_catalog,
    maps_search_url,
    phone_url,
    search_venues,
    website_label,
    website_url,
)

router = APIRouter()


class VenueListItemResponse(BaseModel):
    id: str
    title: str
    city: str
    short: str
    address: Optional[str] = None
    is_favourite: bool = False


class VenueDetailResponse(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    deal: Optional[str] = None
    description: str = ""
    features: List[str] = Field(default_factory=list)
    hero_image_url: str
    maps_url: Optional[str] = None
    website_url: Optional[str] = None
    website_label: Optional[str] = None
    phone_url: Optional[str] = None
    is_favourite: bool = False


def list_item_to_response(item: VenueListItem, is_favourite: bool) -> VenueListItemResponse:
    return VenueListItemResponse(
        id=item.id,
        title=item.title,
        city=item.city,
        short=item.short,
        address=item.address,
        is_favourite=is_favourite,
    )


def venue_to_detail(venue: Venue, is_favourite: bool) -> VenueDetailResponse:
    """Convert a catalog Venue to the detail payload."""
    return VenueDetailResponse(
        id=venue.id,
        name=venue.name,
        address=venue.address,
        deal=venue.deal,
        description=venue.long_description or venue.description or "",
        features=list(venue.features),
        hero_image_url=hero_image_url(venue),
        maps_url=maps_search_url(venue.address),
        website_url=website_url(venue.online),
        website_label=website_label(venue.online),
        phone_url=phone_url(venue.phone),
        is_favourite=is_favourite,
    )


@router.get("", response_model=List[VenueListItemResponse])
async def list_venues(q: Optional[str] = None):
    """List venues, optionally filtered by a search query."""
    favourites = get_default_favourites_store()
    items = search_venues(load_default_catalog(), q)
    return [list_item_to_response(item, favourites.is_favourite(item.id)) for item in items]


@router.get("/{venue_id}", response_model=VenueDetailResponse)
async def get_venue(venue_id: str):
    venue = load_default_catalog().get(venue_id)
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue_to_detail(venue, get_default_favourites_store().is_favourite(venue.id))
