"""
Persistent venue coordinate cache.

The whole `venue id -> {lat, lng}` mapping is stored as one JSON document under
a single versioned key in a small key-value store. Entries never expire.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from typing import Dict, Mapping, Optional, Protocol

from domain.models import Coordinate
from settings import settings

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store for tests and throwaway runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value


class SQLiteKeyValueStore:
    """SQLite-backed key-value store.

    By default the DB lives under the package-local `backend/data/` directory
    so that processes started from different working directories share it.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or settings.GEO_CACHE_PATH
        os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            )
            """
        )
        self._conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM kv_store WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
            (key, value, int(time.time())),
        )
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()


class CoordinateCacheStore:
    """Read / write the venue coordinate mapping held under one cache key."""

    def __init__(self, kv: KeyValueStore, key: Optional[str] = None):
        self.kv = kv
        self.key = key or settings.GEO_CACHE_KEY

    def read(self) -> Dict[str, Coordinate]:
        """
        Return the cached mapping.

        A missing value, unparseable JSON, a non-object payload or a storage
        error all yield an empty mapping. Malformed entries are dropped.
        """
        try:
            raw = self.kv.get_item(self.key)
        except Exception as exc:
            logger.warning("Geo cache read failed for key=%s: %s", self.key, exc)
            return {}
        if raw is None:
            logger.debug("Geo cache empty for key=%s", self.key)
            return {}
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Geo cache for key=%s is corrupt, ignoring: %s", self.key, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("Geo cache for key=%s is not an object, ignoring", self.key)
            return {}

        entries: Dict[str, Coordinate] = {}
        for venue_id, value in payload.items():
            coord = Coordinate.from_dict(value)
            if coord is None:
                logger.debug("Dropping malformed geo cache entry %s=%r", venue_id, value)
                continue
            entries[str(venue_id)] = coord
        return entries

    def write(self, mapping: Mapping[str, Coordinate]) -> bool:
        """Replace the stored mapping. Returns False when the write failed."""
        payload = {venue_id: coord.to_dict() for venue_id, coord in mapping.items()}
        try:
            self.kv.set_item(self.key, json.dumps(payload, sort_keys=True))
        except Exception as exc:
            logger.warning("Geo cache write failed for key=%s: %s", self.key, exc)
            return False
        return True

    def merge(self, updates: Mapping[str, Coordinate]) -> bool:
        """Bulk-merge `updates` over the stored mapping in a single write."""
        merged = self.read()
        merged.update(updates)
        return self.write(merged)


_default_cache_store: Optional[CoordinateCacheStore] = None


def get_default_cache_store() -> CoordinateCacheStore:
    global _default_cache_store
    if _default_cache_store is None:
        _default_cache_store = CoordinateCacheStore(SQLiteKeyValueStore())
    return _default_cache_store
