"""
Saved Filter Store - named filter presets kept in a keyed local store.

Presets are serialized under a single fixed key as a JSON array of
[name, {filterConfig, savedAt, id}] pairs. There is no schema versioning:
an absent or unreadable value reads as an empty store, and unreadable
entries are skipped.
"""

import json
import time
import sqlite3
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)

STORAGE_KEY = "siteFinder_savedFilters"


@dataclass
class SavedFilter:
    """A named, timestamped user filter configuration."""
    name: str
    filter_config: Dict[str, Any]
    saved_at: str
    id: str

    def to_entry(self) -> List:
        return [self.name, {"filterConfig": self.filter_config, "savedAt": self.saved_at, "id": self.id}]

    @classmethod
    def from_entry(cls, entry: Any) -> Optional["SavedFilter"]:
        """Parse one stored pair. Returns None if it is malformed."""
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            return None
        name, body = entry
        if not isinstance(name, str) or not isinstance(body, dict):
            return None
        config = body.get("filterConfig")
        if not isinstance(config, dict):
            return None
        return cls(
            name=name,
            filter_config=config,
            saved_at=str(body.get("savedAt", "")),
            id=str(body.get("id", "")),
        )


class KeyValueStore:
    """
    Minimal SQLite-backed string store.

    Use ':memory:' for a store that lives only as long as the process.
    """

    def __init__(self, db_path: str = "site_finder.db"):
        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS local_storage (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM local_storage WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def set(self, key: str, value: str):
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO local_storage (key, value) VALUES (?, ?)",
                (key, value)
            )
            self._conn.commit()

    def remove(self, key: str):
        with self._lock:
            self._conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
            self._conn.commit()

    def close(self):
        with self._lock:
            self._conn.close()


class SavedFilterStore:
    """
    Named filter presets, persisted through a KeyValueStore.

    Write failures are logged; the in-memory presets stay current either way.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._filters: Dict[str, SavedFilter] = {}
        self.load()

    def load(self) -> Dict[str, SavedFilter]:
        """Reload presets from the store."""
        self._filters = {}
        try:
            raw = self.store.get(STORAGE_KEY)
        except sqlite3.Error as e:
            log.warning(f"Could not load saved filters: {e}")
            return self._filters

        if not raw:
            return self._filters

        try:
            entries = json.loads(raw)
        except (TypeError, ValueError) as e:
            log.warning(f"Saved filter store is unreadable, treating as empty: {e}")
            return self._filters

        if not isinstance(entries, list):
            log.warning("Saved filter store is not a list, treating as empty")
            return self._filters

        for entry in entries:
            saved = SavedFilter.from_entry(entry)
            if saved is None:
                log.warning(f"Skipping malformed saved filter entry: {entry!r}")
                continue
            self._filters[saved.name] = saved
        return self._filters

    def save(self, name: str, filter_config: Dict[str, Any]) -> SavedFilter:
        saved = SavedFilter(
            name=name,
            filter_config=dict(filter_config),
            saved_at=datetime.now().isoformat(),
            id=f"filter_{int(time.time() * 1000)}",
        )
        self._filters[name] = saved
        self._persist()
        log.info(f"Saved filter preset '{name}'")
        return saved

    def get(self, name: str) -> Optional[SavedFilter]:
        return self._filters.get(name)

    def all(self) -> Dict[str, SavedFilter]:
        return dict(self._filters)

    def delete(self, name: str) -> bool:
        removed = self._filters.pop(name, None) is not None
        if removed:
            self._persist()
        return removed

    def clear(self):
        self._filters.clear()
        try:
            self.store.remove(STORAGE_KEY)
        except sqlite3.Error as e:
            log.warning(f"Could not clear saved filters: {e}")

    def close(self):
        self.store.close()

    def _persist(self):
        payload = json.dumps([f.to_entry() for f in self._filters.values()])
        try:
            self.store.set(STORAGE_KEY, payload)
        except sqlite3.Error as e:
            log.warning(f"Could not save filters: {e}")
