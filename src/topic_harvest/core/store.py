"""
Deduplicating, ordered item store shared by harvest workers.
"""

import threading
from bisect import insort
from typing import Iterable, Optional

from topic_harvest.logger import get_logger
from topic_harvest.models.item import Item

logger = get_logger(__name__)


class ItemStore:
    """Thread-safe item store keyed by item id.

    Insertion is idempotent on ``Item.id`` and the stored sequence is always
    ascending by ``sort_key``. Items are also indexed by ``author_key`` so a
    corpus can answer repeated author queries without re-harvesting.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None) -> None:
        """Initialize the store.

        Args:
            items: Optional items to seed the store with
        """
        self._lock = threading.Lock()
        self._items: list[Item] = []
        self._seen_ids: set[str] = set()
        self._by_author: dict[str, list[Item]] = {}

        if items:
            self.add(items)

    def add(self, items: Iterable[Item]) -> list[Item]:
        """Insert items whose id has not been seen yet.

        The seen-check and the insert of the whole batch happen under one
        lock, so two workers can never store the same id twice.

        Args:
            items: Candidate items

        Returns:
            The items that were actually added, in input order
        """
        added = []
        with self._lock:
            for item in items:
                if item.id in self._seen_ids:
                    continue
                self._seen_ids.add(item.id)
                insort(self._items, item, key=_sort_key)
                insort(self._by_author.setdefault(item.author_key, []), item, key=_sort_key)
                added.append(item)

        if added:
            logger.debug(f"Stored {len(added)} new items ({len(self._items)} total)")
        return added

    def items(self, author_key: Optional[str] = None) -> list[Item]:
        """Snapshot of stored items in display order.

        Args:
            author_key: Only return this author's items

        Returns:
            New list sorted ascending by ``sort_key``
        """
        with self._lock:
            if author_key is None:
                return list(self._items)
            return list(self._by_author.get(author_key, ()))

    def authors(self) -> dict[str, str]:
        """Map of author key to a display name seen for that author."""
        with self._lock:
            return {key: items[0].author_name for key, items in self._by_author.items() if items}

    @property
    def seen_ids(self) -> frozenset[str]:
        """Ids inserted so far."""
        with self._lock:
            return frozenset(self._seen_ids)

    def clear(self) -> None:
        """Remove every stored item."""
        with self._lock:
            self._items.clear()
            self._seen_ids.clear()
            self._by_author.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._seen_ids

    def __repr__(self) -> str:
        return f"<ItemStore(items={len(self)})>"


def _sort_key(item: Item) -> int:
    return item.sort_key
