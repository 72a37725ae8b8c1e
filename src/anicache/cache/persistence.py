"""Snapshot persistence for :class:`~anicache.cache.bounded.BoundedExpiringCache`.

A snapshot is the full ordered entry list of one cache instance, serialised
as a JSON array of ``[key, {"value": ..., "stored_at": ...}]`` pairs. The
array order is the recency order, least recently used first.

Persistence never fails loudly: a missing, empty, or corrupt slot loads as
an empty cache, and write failures are logged and dropped. Both cases are
reported as :class:`~anicache.exceptions.PersistenceError` through the
output system.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from pydantic import ValidationError

from anicache.cache.storage import SlotStorage
from anicache.exceptions import PersistenceError
from anicache.models import CacheEntry
from anicache.output import get_output


class SnapshotPersistence:
    """Reads and writes one cache instance's snapshot slot.

    Args:
        storage: Backend holding the slot.
        slot: Slot name, one per cache category.
    """

    def __init__(self, storage: SlotStorage, slot: str) -> None:
        self._storage = storage
        self._slot = slot
        self._skipped: set[str] = set()

    @property
    def slot(self) -> str:
        return self._slot

    def load(self) -> list[tuple[str, CacheEntry]]:
        """Return the persisted entries, or ``[]`` if none can be read."""
        try:
            return self._read()
        except PersistenceError as exc:
            get_output().debug(f"Cache '{self._slot}' starts empty: {exc}")
            return []

    def save(self, entries: Iterable[tuple[str, CacheEntry]]) -> None:
        """Write *entries* to the slot, absorbing any failure.

        Entries whose value would not come back identical from JSON (sets,
        tuples, non-string dict keys, arbitrary objects) are left out of the
        snapshot with a warning (once per key); the remaining entries are still
        written.
        """
        records: list[list[Any]] = []
        for key, entry in entries:
            try:
                records.append([key, self._encode(key, entry)])
            except PersistenceError as exc:
                if key in self._skipped:
                    get_output().debug(str(exc))
                else:
                    self._skipped.add(key)
                    get_output().warning(str(exc))
        try:
            self._write(records)
        except PersistenceError as exc:
            get_output().warning(str(exc))

    def _read(self) -> list[tuple[str, CacheEntry]]:
        try:
            raw = self._storage.read_slot(self._slot)
        except Exception as exc:
            raise PersistenceError(f"Cannot read cache slot '{self._slot}': {exc}") from exc
        if not raw:
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            raise PersistenceError(f"Corrupt cache slot '{self._slot}': {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceError(f"Corrupt cache slot '{self._slot}': expected a list")

        entries: list[tuple[str, CacheEntry]] = []
        for item in data:
            if not isinstance(item, list) or len(item) != 2 or not isinstance(item[0], str):
                raise PersistenceError(
                    f"Corrupt cache slot '{self._slot}': bad entry {item!r}"
                )
            try:
                entry = CacheEntry.model_validate(item[1])
            except ValidationError as exc:
                raise PersistenceError(
                    f"Corrupt cache slot '{self._slot}': {exc}"
                ) from exc
            entries.append((item[0], entry))
        return entries

    def _encode(self, key: str, entry: CacheEntry) -> dict[str, Any]:
        record = {"value": entry.value, "stored_at": entry.stored_at}
        try:
            restored = json.loads(json.dumps(record, ensure_ascii=False))
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Not persisting '{key}' in cache slot '{self._slot}': {exc}"
            ) from exc
        if restored != record:
            raise PersistenceError(
                f"Not persisting '{key}' in cache slot '{self._slot}': "
                "value does not round-trip through JSON"
            )
        return restored

    def _write(self, records: list[list[Any]]) -> None:
        content = json.dumps(records, ensure_ascii=False)
        try:
            self._storage.write_slot(self._slot, content)
        except Exception as exc:
            raise PersistenceError(
                f"Cannot write cache slot '{self._slot}': {exc}"
            ) from exc
