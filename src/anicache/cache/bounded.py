"""Bounded, expiring, persisted key/value cache.

:class:`BoundedExpiringCache` is the store behind every cache category. It
combines three policies:

* **Capacity** -- at most ``capacity`` entries. Inserting a new key into a
  full cache evicts the least recently used key first.
* **Expiry** -- entries older than ``max_age`` seconds are treated as absent.
  Expiry is lazy: a stale entry is dropped when it is read, there is no
  background sweep.
* **Persistence** -- on construction the cache is seeded from its snapshot
  slot, and every mutation writes the full entry list back. A hit counts
  as a mutation because it changes the recency order.

Entries live in one :class:`collections.OrderedDict` whose order *is* the
recency order (least recently used first), so the entry set and the
recency set can never disagree.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from anicache.cache.persistence import SnapshotPersistence
from anicache.models import CacheEntry
from anicache.output import get_output


class BoundedExpiringCache:
    """LRU cache with per-entry timestamps and snapshot persistence.

    Every public method runs under an internal :class:`threading.RLock`,
    including the persistence flush, so instances can be shared between
    threads.

    Args:
        name: Category name used in diagnostics (``"Info"``, ``"Episodes"``).
        capacity: Maximum number of live entries. ``0`` disables retention.
        max_age: Entry lifetime in seconds.
        persistence: Optional snapshot adapter. When ``None`` the cache is
            purely in-memory.
        clock: Returns the current UNIX time in seconds. Injected by tests.

    Example::

        cache = BoundedExpiringCache("Info", capacity=2, max_age=60)
        cache.set("animeInfo-21-gogoanime", {"title": "One Piece"})
        cache.get("animeInfo-21-gogoanime")
    """

    def __init__(
        self,
        name: str,
        capacity: int,
        max_age: float,
        persistence: Optional[SnapshotPersistence] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._name = name
        self._capacity = max(capacity, 0)
        self._max_age = max_age
        self._persistence = persistence
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._seed()

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def max_age(self) -> float:
        return self._max_age

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Any:
        """Return the cached value for *key*, or ``None`` on a miss.

        A stale entry is removed and reported as a miss. A fresh entry
        becomes the most recently used, and the new order is written to the
        snapshot so that eviction after a reload stays least-recently-used.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[key]
                get_output().debug(f"Cache '{self._name}' expired: {key}")
                self._flush()
                return None
            self._entries.move_to_end(key)
            self._flush()
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* as the most recently used entry.

        When the cache is full and *key* is new, the least recently used
        entry is evicted first. The snapshot is written afterwards; a
        failed write does not undo the update.
        """
        with self._lock:
            if self._capacity == 0:
                return
            if key not in self._entries and len(self._entries) >= self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                get_output().debug(f"Cache '{self._name}' evicted: {evicted}")
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
            self._entries.move_to_end(key)
            self._flush()

    def invalidate(self, key: str) -> None:
        """Remove *key* if present. Missing keys are ignored."""
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._flush()

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()
            self._flush()

    def keys(self) -> list[str]:
        """Return live keys in recency order, least recently used first.

        Stale entries are included until they are read.
        """
        with self._lock:
            return list(self._entries)

    def snapshot(self) -> list[tuple[str, CacheEntry]]:
        """Return ``(key, entry)`` pairs in recency order."""
        with self._lock:
            return list(self._entries.items())

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``name``, ``size``, ``capacity``,
            ``max_age_seconds``, ``expired`` (entries past their max age
            that have not been read yet), and ``persisted``.
        """
        with self._lock:
            expired = sum(1 for entry in self._entries.values() if self._is_expired(entry))
            return {
                "name": self._name,
                "size": len(self._entries),
                "capacity": self._capacity,
                "max_age_seconds": self._max_age,
                "expired": expired,
                "persisted": self._persistence is not None,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Freshness-aware membership test that does not touch recency."""
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not self._is_expired(entry)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at > self._max_age

    def _seed(self) -> None:
        """Populate entries from the snapshot slot, keeping the newest ``capacity``."""
        if self._persistence is None or self._capacity == 0:
            return
        for key, entry in self._persistence.load():
            self._entries.pop(key, None)
            self._entries[key] = entry
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)
        if self._entries:
            get_output().debug(
                f"Cache '{self._name}' restored {len(self._entries)} entries"
            )

    def _flush(self) -> None:
        if self._persistence is not None:
            self._persistence.save(self._entries.items())
