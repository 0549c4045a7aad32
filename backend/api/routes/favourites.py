"""
Favourites API routes.

All handlers share the process-wide FavouritesStore, so a toggle made from the
list view is what the detail view reads back.
"""
import logging
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from services.favourites import get_default_favourites_store

router = APIRouter()
logger = logging.getLogger(__name__)


class FavouritesResponse(BaseModel):
    ids: List[str]


class FavouriteToggleResponse(BaseModel):
    id: str
    is_favourite: bool
    ids: List[str]


class FavouritesReplace(BaseModel):
    ids: List[str]


@router.get("", response_model=FavouritesResponse)
async def list_favourites():
    return FavouritesResponse(ids=list(get_default_favourites_store().favourites))


@router.post("/{venue_id}/toggle", response_model=FavouriteToggleResponse)
async def toggle_favourite(venue_id: str):
    store = get_default_favourites_store()
    state = store.toggle(venue_id)
    logger.debug("Favourite %s toggled; %d favourites", venue_id, len(state))
    return FavouriteToggleResponse(
        id=venue_id,
        is_favourite=store.is_favourite(venue_id),
        ids=list(state),
    )


@router.put("", response_model=FavouritesResponse)
async def replace_favourites(data: FavouritesReplace):
    """Replace the whole favourites set (bulk restore)."""
    state = get_default_favourites_store().replace_all(data.ids)
    return FavouritesResponse(ids=list(state))
