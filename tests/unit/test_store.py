"""Tests for ItemStore."""

import threading

from topic_harvest.core.store import ItemStore

from conftest import make_item


class TestItemStore:
    """Tests for ItemStore insertion and ordering."""

    def test_add_returns_new_items(self):
        """Test that add reports only newly stored items."""
        store = ItemStore()
        first = make_item("a", page=1)
        second = make_item("b", page=2)

        assert store.add([first, second]) == [first, second]
        assert len(store) == 2

    def test_add_is_idempotent(self):
        """Test that re-adding the same ids stores nothing."""
        store = ItemStore()
        items = [make_item("a", page=1), make_item("b", page=1, position=1)]

        store.add(items)
        added = store.add(items)

        assert added == []
        assert len(store) == 2

    def test_duplicate_within_batch(self):
        """Test that a batch repeating an id stores it once."""
        store = ItemStore()
        item = make_item("a")

        added = store.add([item, item])

        assert added == [item]
        assert len(store) == 1

    def test_items_sorted_by_sort_key(self):
        """Test display order regardless of insertion order."""
        store = ItemStore()
        store.add([make_item("c", page=3)])
        store.add([make_item("a", page=1, position=5), make_item("b", page=2)])
        store.add([make_item("a0", page=1, position=0)])

        assert [item.id for item in store.items()] == ["a0", "a", "b", "c"]

    def test_items_by_author(self):
        """Test the per-author snapshot."""
        store = ItemStore()
        store.add(
            [
                make_item("1", page=2, author="id:1"),
                make_item("2", page=1, author="id:2"),
                make_item("3", page=1, author="id:1"),
            ]
        )

        assert [item.id for item in store.items(author_key="id:1")] == ["3", "1"]
        assert store.items(author_key="id:9") == []

    def test_items_is_a_snapshot(self):
        """Test that mutating a snapshot leaves the store unchanged."""
        store = ItemStore([make_item("a")])
        snapshot = store.items()
        snapshot.clear()

        assert len(store.items()) == 1

    def test_authors(self):
        """Test the author name map."""
        store = ItemStore(
            [
                make_item("1", author="id:1", author_name="alice"),
                make_item("2", author="id:2", author_name="bob"),
            ]
        )

        assert store.authors() == {"id:1": "alice", "id:2": "bob"}

    def test_seen_ids_and_contains(self):
        """Test membership by id."""
        store = ItemStore([make_item("a")])

        assert "a" in store
        assert "b" not in store
        assert store.seen_ids == frozenset({"a"})

    def test_clear(self):
        """Test clearing the store."""
        store = ItemStore([make_item("a")])
        store.clear()

        assert len(store) == 0
        assert store.items() == []
        assert store.add([make_item("a")])

    def test_concurrent_adds_store_each_id_once(self):
        """Test that racing workers never double-insert an item."""
        store = ItemStore()
        items = [make_item(str(i), page=1 + i // 10, position=i % 10) for i in range(100)]
        barrier = threading.Barrier(8)
        added_counts = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            added = store.add(items)
            with lock:
                added_counts.append(len(added))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(added_counts) == 100
        assert len(store) == 100
        keys = [item.sort_key for item in store.items()]
        assert keys == sorted(keys)
