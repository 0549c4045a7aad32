"""
Venue coordinate resolution.

Each venue is placed using, in strict order: its inline coordinates, the
persisted coordinate cache, or a single geocoding lookup of its address.
Venues that cannot be placed are dropped from the result; one venue's failure
never stops the others. Freshly geocoded coordinates are collected during the
pass and committed to the cache in one bulk write at the end.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from domain.models import (
    Coordinate,
    CoordinateSource,
    ResolutionOutcome,
    ResolvedVenue,
    SkipReason,
    Venue,
)
from services.geo_cache import CoordinateCacheStore, get_default_cache_store
from services.geocoding import Geocoder, get_default_geocoder
from settings import settings

logger = logging.getLogger(__name__)


@dataclass
class ResolutionRun:
    """Outcome of the pure resolution step, in catalog order."""
    outcomes: List[ResolutionOutcome] = field(default_factory=list)
    pending_updates: Dict[str, Coordinate] = field(default_factory=dict)

    @property
    def resolved(self) -> List[ResolvedVenue]:
        return [o.resolved for o in self.outcomes if o.resolved is not None]

    @property
    def skipped(self) -> List[Tuple[str, SkipReason]]:
        return [(o.venue_id, o.skip_reason) for o in self.outcomes if o.skip_reason is not None]

    @property
    def geocode_attempts(self) -> int:
        return sum(
            1
            for o in self.outcomes
            if (o.resolved is not None and o.resolved.source == CoordinateSource.GEOCODED)
            or o.skip_reason in (SkipReason.NO_CANDIDATES, SkipReason.GEOCODE_FAILED)
        )


def _resolve_locally(
    venue: Venue, cache_snapshot: Mapping[str, Coordinate]
) -> Optional[ResolutionOutcome]:
    """Resolve without the network, or return None when a lookup is needed."""
    inline = venue.inline_coordinate
    if inline is not None:
        return ResolutionOutcome.success(venue, inline, CoordinateSource.INLINE)
    cached = cache_snapshot.get(venue.id)
    if cached is not None:
        return ResolutionOutcome.success(venue, cached, CoordinateSource.CACHE)
    if not venue.has_address:
        return ResolutionOutcome.skipped(venue, SkipReason.NO_ADDRESS)
    return None


def _geocode_venue(venue: Venue, geocoder: Geocoder) -> ResolutionOutcome:
    try:
        candidates = geocoder.geocode(venue.address or "")
    except Exception as exc:
        logger.warning("Geocode failed for venue=%s address=%r: %s", venue.id, venue.address, exc)
        return ResolutionOutcome.skipped(venue, SkipReason.GEOCODE_FAILED, error=str(exc))
    if not candidates:
        logger.info("No geocode candidates for venue=%s address=%r", venue.id, venue.address)
        return ResolutionOutcome.skipped(venue, SkipReason.NO_CANDIDATES)
    return ResolutionOutcome.success(venue, candidates[0], CoordinateSource.GEOCODED)


def resolve_venue(
    venue: Venue,
    cache_snapshot: Mapping[str, Coordinate],
    geocoder: Geocoder,
) -> ResolutionOutcome:
    """Resolve a single venue. Never raises."""
    outcome = _resolve_locally(venue, cache_snapshot)
    if outcome is None:
        outcome = _geocode_venue(venue, geocoder)
    return outcome


def resolve_coordinates(
    venues: Iterable[Venue],
    cache_snapshot: Mapping[str, Coordinate],
    geocoder: Geocoder,
    max_workers: int = 1,
) -> ResolutionRun:
    """
    Resolve every venue against a cache snapshot without touching the cache.

    With max_workers > 1 the geocode lookups run concurrently; outcome order
    still follows the catalog.
    """
    venue_list = list(venues)
    slots: List[Optional[ResolutionOutcome]] = []
    to_lookup: List[Tuple[int, Venue]] = []
    for idx, venue in enumerate(venue_list):
        outcome = _resolve_locally(venue, cache_snapshot)
        slots.append(outcome)
        if outcome is None:
            to_lookup.append((idx, venue))

    if to_lookup:
        if max_workers > 1 and len(to_lookup) > 1:
            with ThreadPoolExecutor(max_workers=min(max_workers, len(to_lookup))) as pool:
                futures = [
                    (idx, pool.submit(_geocode_venue, venue, geocoder))
                    for idx, venue in to_lookup
                ]
                for idx, fut in futures:
                    slots[idx] = fut.result()
        else:
            for idx, venue in to_lookup:
                slots[idx] = _geocode_venue(venue, geocoder)

    run = ResolutionRun()
    for outcome in slots:
        if outcome is None:
            continue
        run.outcomes.append(outcome)
        if outcome.cache_update is not None:
            run.pending_updates[outcome.venue_id] = outcome.cache_update
        logger.debug(
            "Venue %s: %s",
            outcome.venue_id,
            outcome.resolved.source.value if outcome.resolved else outcome.skip_reason.value,
        )
    return run


def commit_cache_updates(
    cache_store: CoordinateCacheStore,
    pending_updates: Mapping[str, Coordinate],
    snapshot: Optional[Mapping[str, Coordinate]] = None,
) -> bool:
    """
    Flush pending coordinates to the cache in one write.

    When the snapshot read at the start of the run is supplied it is used as
    the merge base; otherwise the store is re-read.
    """
    if not pending_updates:
        return True
    if snapshot is None:
        ok = cache_store.merge(pending_updates)
    else:
        merged = dict(snapshot)
        merged.update(pending_updates)
        ok = cache_store.write(merged)
    if ok:
        logger.info("Stored %d new venue coordinates in geo cache", len(pending_updates))
    return ok


class VenueCoordinateResolver:
    """Cache-aside resolution of the venue catalog."""

    def __init__(
        self,
        cache_store: CoordinateCacheStore,
        geocoder: Geocoder,
        max_workers: int = 1,
    ):
        self.cache_store = cache_store
        self.geocoder = geocoder
        self.max_workers = max(1, max_workers)
        self.last_run: Optional[ResolutionRun] = None
        # held across read, resolve and commit
        self._run_lock = threading.Lock()

    def run(
        self,
        venues: Iterable[Venue],
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[List[ResolvedVenue]]:
        """
        Read the cache once, resolve all venues, commit new coordinates once.

        Returns the resolved venues in catalog order. If `cancel_event` is set
        by the time resolution finishes, the cache is still committed but None
        is returned so an abandoned caller never sees the results. Concurrent
        calls on the same resolver are serialized.
        """
        with self._run_lock:
            snapshot = self.cache_store.read()
            run = resolve_coordinates(venues, snapshot, self.geocoder, max_workers=self.max_workers)
            self.last_run = run
            committed = commit_cache_updates(self.cache_store, run.pending_updates, snapshot=snapshot)
        logger.info(
            "Resolved %d venues (%d skipped, %d geocode calls, cache %s)",
            len(run.resolved),
            len(run.skipped),
            run.geocode_attempts,
            "ok" if committed else "not saved",
        )
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("Resolution finished after cancellation; discarding results")
            return None
        return run.resolved


class MapPinsLoader:
    """
    Background loader for map pins.

    Starts a resolution pass on a worker thread and hands the pins to
    `on_loaded` unless `cancel()` has been called first (e.g. the map view
    went away). A cancelled load still commits its cache updates.
    """

    def __init__(
        self,
        resolver: VenueCoordinateResolver,
        venues: Iterable[Venue],
        on_loaded: Callable[[List[ResolvedVenue]], None],
    ):
        self.resolver = resolver
        self.venues = list(venues)
        self.on_loaded = on_loaded
        self.is_loading = False
        self._cancel = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "MapPinsLoader":
        self.is_loading = True
        self._thread = threading.Thread(target=self._load, name="map-pins-loader", daemon=True)
        self._thread.start()
        return self

    def _load(self) -> None:
        try:
            pins = self.resolver.run(self.venues, cancel_event=self._cancel)
            if pins is not None and not self._cancel.is_set():
                self.on_loaded(pins)
        finally:
            if not self._cancel.is_set():
                self.is_loading = False

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker finishes. Returns False on timeout."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()


_default_resolver: Optional[VenueCoordinateResolver] = None


def get_default_resolver() -> VenueCoordinateResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = VenueCoordinateResolver(
            get_default_cache_store(),
            get_default_geocoder(),
            max_workers=settings.RESOLVE_MAX_WORKERS,
        )
    return _default_resolver
