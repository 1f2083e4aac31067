"""
Tests for the multi-valued store

These tests verify the MultiValueStore operations:
- get(): List the values of a key
- put(): Add a value, ignoring duplicates
- delete(): Remove a value, dropping empty keys
- snapshot()/load(): Whole-store copies

Run with: python -m pytest tests/test_store.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from kvdict.storage.store import MultiValueStore


class TestStorePut:
    """Test put() method."""

    def test_put_new_key(self, store: MultiValueStore):
        """Test adding the first value for a key."""
        assert store.put("fruit", "apple") == ["apple"]
        assert store.size() == 1

    def test_put_appends_in_order(self, store: MultiValueStore):
        """Test that new values go after existing ones."""
        store.put("fruit", "apple")
        store.put("fruit", "banana")
        assert store.put("fruit", "cherry") == ["apple", "banana", "cherry"]

    def test_put_is_idempotent(self, store: MultiValueStore):
        """Test that repeating a put does not duplicate the value."""
        for _ in range(5):
            result = store.put("fruit", "apple")

        assert result == ["apple"]
        assert store.get("fruit").count("apple") == 1

    def test_put_duplicate_keeps_position(self, store: MultiValueStore):
        """Test re-putting an existing value leaves the order alone."""
        store.put("fruit", "apple")
        store.put("fruit", "banana")
        assert store.put("fruit", "apple") == ["apple", "banana"]

    def test_put_multiple_keys(self, store: MultiValueStore):
        """Test that keys are independent."""
        store.put("fruit", "apple")
        store.put("veg", "carrot")

        assert store.get("fruit") == ["apple"]
        assert store.get("veg") == ["carrot"]
        assert store.size() == 2


class TestStoreGet:
    """Test get() method."""

    def test_get_nonexistent_key(self, store: MultiValueStore):
        """Test that a missing key yields an empty list."""
        assert store.get("nonexistent") == []

    def test_get_does_not_create_key(self, store: MultiValueStore):
        """Test that looking up a key never adds it."""
        store.get("ghost")
        assert store.exists("ghost") is False
        assert store.size() == 0

    def test_get_returns_copy(self, store: MultiValueStore):
        """Test that mutating a result does not change the store."""
        store.put("fruit", "apple")
        result = store.get("fruit")
        result.append("banana")

        assert store.get("fruit") == ["apple"]

    def test_case_sensitive_keys(self, store: MultiValueStore):
        """Test that keys are case-sensitive."""
        store.put("Key", "a")
        store.put("KEY", "b")

        assert store.get("Key") == ["a"]
        assert store.get("KEY") == ["b"]
        assert store.get("key") == []


class TestStoreDelete:
    """Test delete() method."""

    def test_delete_middle_value(self, store: MultiValueStore):
        """Test deleting keeps the remaining values in order."""
        for value in ("a", "b", "c"):
            store.put("k", value)

        assert store.delete("k", "b") == ["a", "c"]
        assert store.get("k") == ["a", "c"]

    def test_delete_last_value_removes_key(self, store: MultiValueStore):
        """Test that a key without values disappears."""
        store.put("fruit", "apple")

        assert store.delete("fruit", "apple") == []
        assert store.get("fruit") == []
        assert store.exists("fruit") is False
        assert store.size() == 0

    def test_delete_nonexistent_key(self, store: MultiValueStore):
        """Test deleting from a missing key is a no-op."""
        assert store.delete("nonexistent", "value") == []
        assert store.size() == 0

    def test_delete_nonexistent_value(self, store: MultiValueStore):
        """Test deleting a missing value leaves the key untouched."""
        store.put("fruit", "apple")
        store.put("fruit", "banana")

        assert store.delete("fruit", "cherry") == ["apple", "banana"]

    def test_delete_wrong_value_on_single_value_key(self, store: MultiValueStore):
        """Test a single-valued key survives deleting another value."""
        store.put("fruit", "apple")

        assert store.delete("fruit", "banana") == ["apple"]
        assert store.exists("fruit") is True

    def test_delete_then_reinsert(self, store: MultiValueStore):
        """Test that a removed key can come back."""
        store.put("fruit", "apple")
        store.delete("fruit", "apple")

        assert store.put("fruit", "banana") == ["banana"]


class TestStoreSnapshotAndLoad:
    """Test snapshot(), load(), clear() and stats."""

    def test_snapshot_is_deep_copy(self, store: MultiValueStore):
        """Test that a snapshot is detached from the live store."""
        store.put("fruit", "apple")
        data = store.snapshot()
        data["fruit"].append("banana")
        data["veg"] = ["carrot"]

        assert store.get("fruit") == ["apple"]
        assert store.exists("veg") is False

    def test_load_replaces_contents(self, store: MultiValueStore):
        """Test that load discards what was there before."""
        store.put("old", "value")
        store.load({"fruit": ["apple", "banana"]})

        assert store.exists("old") is False
        assert store.get("fruit") == ["apple", "banana"]

    def test_load_normalizes_input(self, store: MultiValueStore):
        """Test that load drops duplicates and empty keys."""
        store.load({"fruit": ["apple", "banana", "apple"], "empty": []})

        assert store.get("fruit") == ["apple", "banana"]
        assert store.exists("empty") is False
        assert store.size() == 1

    def test_snapshot_load_round_trip(self, store: MultiValueStore):
        """Test that loading a snapshot reproduces the mapping."""
        store.put("fruit", "apple")
        store.put("fruit", "banana")
        store.put("veg", "carrot")

        fresh = MultiValueStore()
        fresh.load(store.snapshot())

        assert fresh.snapshot() == store.snapshot()

    def test_clear(self, store: MultiValueStore):
        """Test clear removes all keys."""
        store.put("a", "1")
        store.put("b", "2")
        store.clear()

        assert store.size() == 0
        assert store.snapshot() == {}

    def test_stats(self, store: MultiValueStore):
        """Test key and value counts."""
        store.put("fruit", "apple")
        store.put("fruit", "banana")
        store.put("veg", "carrot")

        assert store.get_stats() == {"total_keys": 2, "total_values": 3}


class TestStoreConcurrency:
    """Concurrent access from many threads."""

    def test_concurrent_puts_same_key(self, store: MultiValueStore):
        """Test that no update is lost and none is duplicated."""
        values = [f"v{i}" for i in range(200)]

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda v: store.put("shared", v), values))

        result = store.get("shared")
        assert sorted(result) == sorted(values)
        assert len(result) == len(set(result))

    def test_concurrent_duplicate_puts(self, store: MultiValueStore):
        """Test that racing puts of the same value store it once."""
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for _ in range(100):
                store.put("shared", "same")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("shared") == ["same"]

    def test_concurrent_put_and_delete(self, store: MultiValueStore):
        """Test that interleaved puts and deletes leave a consistent mapping."""
        def churn(i: int):
            key = f"key{i % 4}"
            store.put(key, f"v{i}")
            store.delete(key, f"v{i}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(churn, range(400)))

        assert store.snapshot() == {}

    @pytest.mark.slow
    def test_snapshot_during_writes(self, store: MultiValueStore):
        """Test that snapshots never contain empty or duplicated lists."""
        stop = threading.Event()

        def writer():
            i = 0
            while not stop.is_set():
                store.put("k", f"v{i % 10}")
                store.delete("k", f"v{(i + 5) % 10}")
                i += 1

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(500):
                for values in store.snapshot().values():
                    assert values
                    assert len(values) == len(set(values))
        finally:
            stop.set()
            thread.join()
