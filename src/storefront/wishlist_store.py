"""Wishlist storage for storefront."""

from __future__ import annotations

import copy
import logging
import threading

from .errors import WishlistItemNotFoundError
from .models import WishlistItem, _utc_now
from .storage import WISHLIST_KEY, Storage

logger = logging.getLogger(__name__)


class WishlistStore:
    """A deduplicated list of saved items."""

    def __init__(self, storage: Storage, lock: threading.RLock | None = None):
        self._storage = storage
        self._lock = lock if lock is not None else threading.RLock()
        self._items = [WishlistItem.from_dict(d) for d in storage.get(WISHLIST_KEY, [])]

    @property
    def items(self) -> list[WishlistItem]:
        with self._lock:
            return copy.deepcopy(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def contains(self, product_id: str, variant_id: str | None = None) -> bool:
        return any(item.key == (product_id, variant_id) for item in self._items)

    def get(self, item_id: str) -> WishlistItem:
        """
        Raises:
            WishlistItemNotFoundError: If item doesn't exist.
        """
        for item in self._items:
            if item.id == item_id:
                return copy.deepcopy(item)
        raise WishlistItemNotFoundError(item_id)

    def add(self, item: WishlistItem) -> bool:
        """
        Save an item unless the same product/variant is already saved.

        Returns:
            True if the item was added, False if it was already present.
        """
        with self._lock:
            if self.contains(*item.key):
                return False

            new = copy.deepcopy(item)
            new.added_at = _utc_now()
            self._items.append(new)
            self._storage.set(WISHLIST_KEY, [i.to_dict() for i in self._items])
        logger.info("Wishlist: added %s", new.id)
        return True

    def remove(self, item_id: str) -> None:
        with self._lock:
            self._items = [i for i in self._items if i.id != item_id]
            self._storage.set(WISHLIST_KEY, [i.to_dict() for i in self._items])

    def clear(self) -> None:
        with self._lock:
            self._items = []
            self._storage.remove(WISHLIST_KEY)
