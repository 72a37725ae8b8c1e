"""Durable slot storage for cache snapshots.

A *slot* is a named string value holding one cache instance's serialised
entries. Two backends are provided:

* :class:`MemorySlotStorage` -- a dict, lives as long as the process.
* :class:`DiskSlotStorage` -- a :class:`diskcache.Cache` directory, survives
  restarts.

Both satisfy the :class:`SlotStorage` protocol consumed by
:class:`~anicache.cache.persistence.SnapshotPersistence`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import diskcache


@runtime_checkable
class SlotStorage(Protocol):
    """Read/write access to named snapshot slots."""

    def read_slot(self, name: str) -> Optional[str]:
        """Return the slot's content, or ``None`` if it was never written."""
        ...

    def write_slot(self, name: str, content: str) -> None:
        """Replace the slot's content."""
        ...


class MemorySlotStorage:
    """In-process slot storage backed by a plain dict."""

    def __init__(self) -> None:
        self._slots: dict[str, str] = {}

    def read_slot(self, name: str) -> Optional[str]:
        return self._slots.get(name)

    def write_slot(self, name: str, content: str) -> None:
        self._slots[name] = content

    def clear(self) -> None:
        self._slots.clear()

    def close(self) -> None:
        pass


class DiskSlotStorage:
    """Slot storage persisted with :mod:`diskcache`.

    Each slot is one key in a :class:`diskcache.Cache` rooted at
    ``<cache_dir>/slots``. Slots never expire on the diskcache side; entry
    expiry is handled by the in-memory cache using the stored timestamps.

    Args:
        cache_dir: Root directory, usually :func:`~anicache.config.get_cache_dir`.

    Example::

        storage = DiskSlotStorage(get_cache_dir())
        storage.write_slot("Info", "[]")
        storage.read_slot("Info")
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._directory = Path(cache_dir) / "slots"
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def read_slot(self, name: str) -> Optional[str]:
        if self._cache is None:
            return None
        return self._cache.get(name)

    def write_slot(self, name: str, content: str) -> None:
        if self._cache is None:
            raise OSError(f"Slot storage at {self._directory} is closed")
        self._cache.set(name, content)

    def clear(self) -> None:
        """Remove every slot."""
        if self._cache is not None:
            self._cache.clear()

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None
