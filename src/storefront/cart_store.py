"""Shopping cart storage for storefront."""

from __future__ import annotations

import copy
import logging
import os
import threading
from decimal import Decimal

from .models import CartItem, CartTotals
from .storage import CART_KEY, Storage

logger = logging.getLogger(__name__)

# 12% VAT. Can be overridden via STOREFRONT_TAX_RATE environment variable
TAX_RATE = Decimal(os.environ.get("STOREFRONT_TAX_RATE", "0.12"))


def compute_totals(items: list[CartItem], tax_rate: Decimal = TAX_RATE) -> CartTotals:
    """Derive subtotal, tax and total from cart items."""
    return CartTotals.from_items(items, tax_rate)


class CartStore:
    """Holds cart line items and keeps their totals in step with them.

    Every mutation recomputes totals and mirrors the item list to storage.
    None of the operations signal errors: unknown IDs are ignored, and the
    caller is expected to reject non-positive quantities before calling
    ``update_quantity``.

    Mutations run under ``lock``; pass a shared lock to serialize them with
    other stores.
    """

    def __init__(
        self,
        storage: Storage,
        tax_rate: Decimal | None = None,
        lock: threading.RLock | None = None,
    ):
        self._storage = storage
        self._lock = lock if lock is not None else threading.RLock()
        self.tax_rate = TAX_RATE if tax_rate is None else tax_rate
        self._items = [CartItem.from_dict(d) for d in storage.get(CART_KEY, [])]
        self._totals = compute_totals(self._items, self.tax_rate)

    @property
    def items(self) -> list[CartItem]:
        """A copy of the current line items."""
        with self._lock:
            return copy.deepcopy(self._items)

    @property
    def totals(self) -> CartTotals:
        return self._totals

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def snapshot(self) -> tuple[list[CartItem], CartTotals]:
        """Frozen copy of items and totals, for embedding in an order."""
        with self._lock:
            return copy.deepcopy(self._items), self._totals

    def get(self, item_id: str) -> CartItem | None:
        for item in self._items:
            if item.id == item_id:
                return copy.deepcopy(item)
        return None

    def _commit(self) -> None:
        self._totals = compute_totals(self._items, self.tax_rate)
        self._storage.set(CART_KEY, [item.to_dict() for item in self._items])

    def add(self, item: CartItem) -> CartItem:
        """
        Add an item, merging with an existing line for the same product/variant.

        Returns:
            The resulting line (merged or newly appended).
        """
        with self._lock:
            for existing in self._items:
                if existing.key == item.key:
                    existing.quantity += item.quantity
                    self._commit()
                    logger.info("Cart: %s quantity now %d", existing.id, existing.quantity)
                    return copy.deepcopy(existing)

            added = copy.deepcopy(item)
            self._items.append(added)
            self._commit()
            logger.info("Cart: added %s x%d", added.id, added.quantity)
            return copy.deepcopy(added)

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set the quantity of a line. Unknown IDs are ignored."""
        with self._lock:
            for item in self._items:
                if item.id == item_id:
                    item.quantity = quantity
                    break
            self._commit()

    def remove(self, item_id: str) -> None:
        """Remove a line by ID."""
        with self._lock:
            self._items = [item for item in self._items if item.id != item_id]
            self._commit()

    def clear(self) -> None:
        """Empty the cart and drop its persisted snapshot entirely."""
        with self._lock:
            self._items = []
            self._totals = CartTotals.zero()
            self._storage.remove(CART_KEY)
        logger.info("Cart cleared")
