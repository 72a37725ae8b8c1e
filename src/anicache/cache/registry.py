"""Per-category cache instances.

:class:`CacheRegistry` is the single place cache instances are created. It
hands out one :class:`~anicache.cache.bounded.BoundedExpiringCache` per
category name, all sharing the same capacity, max age, and slot storage,
and never sharing entries with each other.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

from anicache.cache.bounded import BoundedExpiringCache
from anicache.cache.persistence import SnapshotPersistence
from anicache.cache.storage import DiskSlotStorage, MemorySlotStorage, SlotStorage
from anicache.models import CacheConfig


class CacheRegistry:
    """Creates and owns the cache instance for each category.

    Args:
        capacity: Entry limit applied to every category.
        max_age: Entry lifetime in seconds.
        storage: Snapshot backend. ``None`` keeps caches in memory only.
        clock: Time source forwarded to each cache.
    """

    def __init__(
        self,
        capacity: int,
        max_age: float,
        storage: Optional[SlotStorage] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._capacity = capacity
        self._max_age = max_age
        self._storage = storage
        self._clock = clock
        self._caches: dict[str, BoundedExpiringCache] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        cache_dir: Optional[str | Path] = None,
    ) -> CacheRegistry:
        """Build a registry from :class:`~anicache.models.CacheConfig`.

        A disabled cache gets capacity ``0``. Snapshots go to a
        :class:`DiskSlotStorage` under *cache_dir* when ``persist`` is set
        and a directory is given, otherwise to process memory.
        """
        capacity = config.capacity if config.enabled else 0
        storage: SlotStorage
        if config.persist and cache_dir is not None:
            storage = DiskSlotStorage(cache_dir)
        else:
            storage = MemorySlotStorage()
        return cls(capacity, config.max_age_seconds, storage)

    def get(self, category: str) -> BoundedExpiringCache:
        """Return the cache for *category*, creating it on first use.

        Creation is serialised so that concurrent callers always share one
        instance per category, and so one snapshot slot.
        """
        with self._lock:
            cache = self._caches.get(category)
            if cache is None:
                persistence = (
                    SnapshotPersistence(self._storage, category)
                    if self._storage is not None
                    else None
                )
                cache = BoundedExpiringCache(
                    category,
                    self._capacity,
                    self._max_age,
                    persistence=persistence,
                    clock=self._clock,
                )
                self._caches[category] = cache
            return cache

    def categories(self) -> list[str]:
        with self._lock:
            return sorted(self._caches)

    def stats(self) -> list[dict[str, Any]]:
        return [self._caches[name].stats() for name in self.categories()]

    def clear(self) -> None:
        """Clear every instantiated cache and its snapshot."""
        with self._lock:
            caches = list(self._caches.values())
        for cache in caches:
            cache.clear()

    def close(self) -> None:
        close = getattr(self._storage, "close", None)
        if close is not None:
            close()
