"""
Shared favourites state.

One `FavouritesStore` instance is held by every surface that shows or edits
favourites (venue list, venue detail, API routes). State is an immutable tuple
of venue ids; each mutation produces a new value and notifies subscribers.
Favourites are in-memory only and start empty (or from a configured seed).
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, Union

from settings import settings

logger = logging.getLogger(__name__)

FavouritesState = Tuple[str, ...]
Listener = Callable[[FavouritesState], None]


@dataclass(frozen=True)
class ToggleFavourite:
    id: str


@dataclass(frozen=True)
class SetFavourites:
    ids: Tuple[str, ...]


FavouritesAction = Union[ToggleFavourite, SetFavourites]


def _dedupe(ids: Iterable[str]) -> FavouritesState:
    seen = set()
    out: List[str] = []
    for raw in ids:
        venue_id = str(raw)
        if venue_id in seen:
            continue
        seen.add(venue_id)
        out.append(venue_id)
    return tuple(out)


def favourites_reducer(state: FavouritesState, action: FavouritesAction) -> FavouritesState:
    """Return the next favourites state; `state` is never modified."""
    if isinstance(action, ToggleFavourite):
        venue_id = str(action.id)
        if venue_id in state:
            return tuple(fav for fav in state if fav != venue_id)
        return state + (venue_id,)
    if isinstance(action, SetFavourites):
        return _dedupe(action.ids)
    return state


class FavouritesStore:
    def __init__(self, seed: Iterable[str] = ()):
        self._state: FavouritesState = _dedupe(seed)
        self._index = frozenset(self._state)
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    @property
    def favourites(self) -> FavouritesState:
        return self._state

    def __len__(self) -> int:
        return len(self._state)

    def __contains__(self, venue_id: object) -> bool:
        return str(venue_id) in self._index

    def dispatch(self, action: FavouritesAction) -> FavouritesState:
        with self._lock:
            new_state = favourites_reducer(self._state, action)
            changed = new_state != self._state
            self._state = new_state
            self._index = frozenset(new_state)
            listeners = list(self._listeners)
        if changed:
            for listener in listeners:
                try:
                    listener(new_state)
                except Exception:
                    logger.exception("Favourites listener %r failed", listener)
        return new_state

    def toggle(self, venue_id: str) -> FavouritesState:
        return self.dispatch(ToggleFavourite(str(venue_id)))

    def replace_all(self, ids: Iterable[str]) -> FavouritesState:
        return self.dispatch(SetFavourites(tuple(str(i) for i in ids)))

    def is_favourite(self, venue_id: str) -> bool:
        return str(venue_id) in self._index

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener` for state changes; returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe


_default_favourites_store: Optional[FavouritesStore] = None


def get_default_favourites_store() -> FavouritesStore:
    global _default_favourites_store
    if _default_favourites_store is None:
        _default_favourites_store = FavouritesStore(settings.FAVOURITES_SEED)
        if settings.FAVOURITES_SEED:
            logger.info("Favourites seeded with %d ids", len(_default_favourites_store))
    return _default_favourites_store
