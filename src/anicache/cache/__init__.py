"""Bounded, expiring response caching for anicache.

This package provides :class:`BoundedExpiringCache`, the LRU store with
lazy expiry used for every data category, plus the pieces around it:

* :func:`make_key` / :func:`normalize_params` -- cache key derivation.
* :class:`SnapshotPersistence` -- JSON snapshots of a cache's entries.
* :class:`MemorySlotStorage` / :class:`DiskSlotStorage` -- snapshot backends,
  the latter built on :mod:`diskcache`.
* :class:`CacheRegistry` -- one cache instance per category.

Cache sizing is controlled by the ``cache`` section of the global
configuration (:class:`~anicache.models.CacheConfig`).
"""

from anicache.cache.bounded import BoundedExpiringCache
from anicache.cache.keys import make_key, normalize_params
from anicache.cache.persistence import SnapshotPersistence
from anicache.cache.registry import CacheRegistry
from anicache.cache.storage import DiskSlotStorage, MemorySlotStorage, SlotStorage

__all__ = [
    "BoundedExpiringCache",
    "CacheRegistry",
    "DiskSlotStorage",
    "MemorySlotStorage",
    "SlotStorage",
    "SnapshotPersistence",
    "make_key",
    "normalize_params",
]
