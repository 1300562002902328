"""Tests for the in-process TTL store."""

from __future__ import annotations

import threading

from uiforge.cache.memory import TTLStore


class TestTTLStore:
    """Test storage and lazy expiry."""

    def test_set_then_get(self, store: TTLStore) -> None:
        """Stored value is returned unchanged."""
        value = {"id": "42", "versions": [1, 2]}
        assert store.set("component:42", value, 60) is True
        assert store.get("component:42") == value

    def test_get_missing_returns_none(self, store: TTLStore) -> None:
        """Absent key is a miss."""
        assert store.get("nope") is None

    def test_overwrite_replaces_value_and_ttl(self, store: TTLStore, clock) -> None:
        """Second set wins, including its TTL."""
        store.set("k", "old", 10)
        store.set("k", "new", 100)
        clock.advance(50)
        assert store.get("k") == "new"

    def test_entry_expires(self, store: TTLStore, clock) -> None:
        """A 1 second entry is gone after 1.1 seconds."""
        store.set("k", "v", 1)
        clock.advance(1.1)
        assert store.get("k") is None
        assert len(store) == 0

    def test_expiry_boundary_is_a_miss(self, store: TTLStore, clock) -> None:
        """Reading exactly at the expiry instant misses."""
        store.set("k", "v", 5)
        clock.advance(4)
        assert store.get("k") == "v"
        clock.advance(1)
        assert store.get("k") is None

    def test_default_ttl(self, clock) -> None:
        """set without ttl uses the store default."""
        store = TTLStore(default_ttl=30, clock=clock)
        store.set("k", "v")
        assert store.ttl("k") == 30

    def test_delete_absent_key_succeeds(self, store: TTLStore) -> None:
        """Delete is idempotent."""
        assert store.delete("missing") is True

    def test_delete_removes(self, store: TTLStore) -> None:
        """Deleted key reads as absent."""
        store.set("k", "v", 60)
        store.delete("k")
        assert store.get("k") is None
        assert store.exists("k") is False

    def test_exists_respects_expiry(self, store: TTLStore, clock) -> None:
        """exists follows the same expiry rule as get."""
        store.set("k", "v", 2)
        assert store.exists("k") is True
        clock.advance(2)
        assert store.exists("k") is False

    def test_keys_matches_glob(self, store: TTLStore) -> None:
        """keys filters with Redis-style glob patterns."""
        store.set("chat_history:17:a", [], 60)
        store.set("chat_history:17:b", [], 60)
        store.set("chat_history:18:a", [], 60)
        assert sorted(store.keys("chat_history:17:*")) == [
            "chat_history:17:a",
            "chat_history:17:b",
        ]

    def test_keys_skips_expired(self, store: TTLStore, clock) -> None:
        """Expired entries are not listed."""
        store.set("short", 1, 1)
        store.set("long", 2, 60)
        clock.advance(5)
        assert store.keys() == ["long"]

    def test_clear(self, store: TTLStore) -> None:
        """clear drops everything."""
        store.set("a", 1, 60)
        store.set("b", 2, 60)
        assert store.clear() is True
        assert len(store) == 0

    def test_ttl_missing_is_none(self, store: TTLStore) -> None:
        """ttl of an absent key is None."""
        assert store.ttl("missing") is None

    def test_concurrent_writers(self) -> None:
        """Concurrent set from threads leaves every key readable."""
        store = TTLStore()

        def writer(n: int) -> None:
            for i in range(200):
                store.set(f"k:{n}:{i}", i, 60)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 800
        assert store.get("k:3:199") == 199
