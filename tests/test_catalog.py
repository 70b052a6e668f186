"""Tests for CatalogStore."""

from __future__ import annotations

import threading

from fileindex.index.catalog import CatalogStore


class TestCatalogStore:
    def test_add_returns_count(self, make_entry) -> None:
        store = CatalogStore()

        assert store.add(make_entry("/a")) == 1
        assert store.add(make_entry("/b")) == 2
        assert store.count() == 2
        assert len(store) == 2

    def test_keeps_discovery_order(self, make_entry) -> None:
        store = CatalogStore()
        store.add(make_entry("/z"))
        store.extend([make_entry("/a"), make_entry("/m")])

        assert [entry.path for entry in store.snapshot()] == ["/z", "/a", "/m"]

    def test_snapshot_is_a_copy(self, make_entry) -> None:
        store = CatalogStore()
        store.add(make_entry("/a"))

        snapshot = store.snapshot()
        snapshot.append(make_entry("/b"))
        store.add(make_entry("/c"))

        assert [entry.path for entry in snapshot] == ["/a", "/b"]
        assert [entry.path for entry in store.snapshot()] == ["/a", "/c"]

    def test_clear(self, make_entry) -> None:
        store = CatalogStore()
        store.extend([make_entry("/a"), make_entry("/b")])

        store.clear()

        assert store.count() == 0
        assert store.snapshot() == []

    def test_concurrent_writers_and_readers(self, make_entry) -> None:
        """Snapshots taken during concurrent adds never fail and never lose adds."""
        store = CatalogStore()
        errors = []

        def writer(prefix: str) -> None:
            for i in range(2000):
                store.add(make_entry(f"/{prefix}/{i}"))

        def reader() -> None:
            try:
                for _ in range(200):
                    snapshot = store.snapshot()
                    assert len(snapshot) <= 4000
            except Exception as exc:  # pragma: no cover - failure path
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(p,)) for p in ("x", "y")]
        threads.append(threading.Thread(target=reader))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert store.count() == 4000
