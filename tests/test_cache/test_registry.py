"""Tests for CacheRegistry."""

from __future__ import annotations

import threading
import time

from anicache.cache import CacheRegistry, DiskSlotStorage, MemorySlotStorage
from anicache.models import CacheConfig


class TestGet:
    def test_same_category_same_instance(self) -> None:
        registry = CacheRegistry(capacity=2, max_age=10)
        assert registry.get("Info") is registry.get("Info")

    def test_categories_are_isolated(self, clock) -> None:
        registry = CacheRegistry(capacity=2, max_age=10, clock=clock)
        registry.get("Info").set("k1", "info")
        assert registry.get("Episodes").get("k1") is None

    def test_settings_are_shared(self) -> None:
        registry = CacheRegistry(capacity=7, max_age=42)
        cache = registry.get("Data")
        assert cache.capacity == 7
        assert cache.max_age == 42
        assert cache.name == "Data"

    def test_no_storage_means_memory_only(self) -> None:
        registry = CacheRegistry(capacity=2, max_age=10)
        assert registry.get("Info").stats()["persisted"] is False

    def test_storage_is_shared_across_registries(self, clock) -> None:
        storage = MemorySlotStorage()
        CacheRegistry(2, 10, storage, clock).get("Info").set("k1", "a")
        assert CacheRegistry(2, 10, storage, clock).get("Info").get("k1") == "a"


class SlowStorage(MemorySlotStorage):
    """Slot storage whose reads take long enough for callers to overlap."""

    def read_slot(self, name):
        time.sleep(0.05)
        return super().read_slot(name)


class TestConcurrentGet:
    def test_concurrent_first_use_shares_one_instance(self, clock) -> None:
        registry = CacheRegistry(capacity=4, max_age=10, storage=SlowStorage(), clock=clock)
        barrier = threading.Barrier(4)
        results = []

        def worker() -> None:
            barrier.wait()
            results.append(registry.get("Info"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4
        assert all(cache is results[0] for cache in results)

    def test_writes_from_concurrent_callers_all_land(self, clock) -> None:
        storage = SlowStorage()
        registry = CacheRegistry(capacity=4, max_age=10, storage=storage, clock=clock)
        barrier = threading.Barrier(2)

        def worker(key: str) -> None:
            barrier.wait()
            registry.get("Info").set(key, key)

        threads = [threading.Thread(target=worker, args=(key,)) for key in ("k1", "k2")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(registry.get("Info").keys()) == ["k1", "k2"]
        reloaded = CacheRegistry(4, 10, storage, clock).get("Info")
        assert sorted(reloaded.keys()) == ["k1", "k2"]


class TestFromConfig:
    def test_defaults(self, tmp_path) -> None:
        registry = CacheRegistry.from_config(CacheConfig(), tmp_path)
        try:
            cache = registry.get("Info")
            assert cache.capacity == 20
            assert cache.max_age == 86400
            assert isinstance(registry._storage, DiskSlotStorage)
        finally:
            registry.close()

    def test_disabled_cache_has_zero_capacity(self) -> None:
        registry = CacheRegistry.from_config(CacheConfig(enabled=False, capacity=50))
        cache = registry.get("Info")
        cache.set("k1", "a")
        assert cache.capacity == 0
        assert cache.get("k1") is None

    def test_persist_off_uses_memory(self, tmp_path) -> None:
        registry = CacheRegistry.from_config(CacheConfig(persist=False), tmp_path)
        assert isinstance(registry._storage, MemorySlotStorage)
        assert not (tmp_path / "slots").exists()

    def test_no_cache_dir_uses_memory(self) -> None:
        registry = CacheRegistry.from_config(CacheConfig())
        assert isinstance(registry._storage, MemorySlotStorage)


class TestMaintenance:
    def test_categories_sorted(self) -> None:
        registry = CacheRegistry(capacity=2, max_age=10)
        registry.get("Info")
        registry.get("Data")
        assert registry.categories() == ["Data", "Info"]

    def test_stats_per_category(self) -> None:
        registry = CacheRegistry(capacity=2, max_age=10)
        registry.get("Info").set("k1", "a")
        registry.get("Data")
        stats = registry.stats()
        assert [s["name"] for s in stats] == ["Data", "Info"]
        assert [s["size"] for s in stats] == [0, 1]

    def test_clear_empties_everything(self) -> None:
        registry = CacheRegistry(capacity=2, max_age=10)
        registry.get("Info").set("k1", "a")
        registry.get("Data").set("k2", "b")
        registry.clear()
        assert all(s["size"] == 0 for s in registry.stats())

    def test_close_without_storage(self) -> None:
        CacheRegistry(capacity=2, max_age=10).close()
