"""Order ledger for storefront."""

from __future__ import annotations

import copy
import logging
import threading
import time

from .errors import InvalidDeliveryTransitionError, InvalidStatusError, OrderNotFoundError
from .models import DELIVERY_STATUSES, PAYMENT_STATUSES, Order, OrderDraft, PaymentMethod
from .storage import ORDERS_KEY, Storage

logger = logging.getLogger(__name__)


def next_order_number() -> str:
    """Human-readable order number based on the current time in milliseconds."""
    return f"ORD{time.time_ns() // 1_000_000}"


class OrderStore:
    """Placed orders, most recent first, plus a pointer to the current order.

    Orders are held in one map keyed by ID. The current order is kept as an
    ID and looked up on demand, so the ledger entry and the current order can
    never disagree.
    """

    def __init__(self, storage: Storage, lock: threading.RLock | None = None):
        self._storage = storage
        self._lock = lock if lock is not None else threading.RLock()
        self._orders: dict[str, Order] = {}
        for data in storage.get(ORDERS_KEY, []):
            order = Order.from_dict(data)
            self._orders[order.id] = order
        self._current_id: str | None = None

    def _save(self) -> None:
        self._storage.set(ORDERS_KEY, [o.to_dict() for o in self._orders.values()])

    def _lookup(self, order_id: str) -> Order:
        try:
            return self._orders[order_id]
        except KeyError:
            raise OrderNotFoundError(order_id) from None

    def __len__(self) -> int:
        return len(self._orders)

    def create(self, draft: OrderDraft) -> Order:
        """
        Place an order from a draft and make it the current order.

        Raises:
            InvalidStatusError: If the draft is not in pending payment status.
        """
        if draft.payment_status != "pending":
            raise InvalidStatusError("new order payment status", draft.payment_status, ("pending",))
        if draft.delivery_status not in DELIVERY_STATUSES:
            raise InvalidStatusError("delivery status", draft.delivery_status, DELIVERY_STATUSES)

        order = Order.create(draft)
        with self._lock:
            self._orders = {order.id: order, **self._orders}
            self._current_id = order.id
            self._save()
        logger.info("Order %s (%s) created, total %s", order.id, order.order_number, order.total)
        return copy.deepcopy(order)

    def get(self, order_id: str) -> Order:
        """
        Get an order by ID.

        Raises:
            OrderNotFoundError: If order doesn't exist.
        """
        with self._lock:
            return copy.deepcopy(self._lookup(order_id))

    def list_orders(self, payment_status: str | None = None) -> list[Order]:
        """
        List orders, most recent first.

        Args:
            payment_status: If given, only orders with that payment status.
        """
        with self._lock:
            return [
                copy.deepcopy(o)
                for o in self._orders.values()
                if payment_status is None or o.payment_status == payment_status
            ]

    def invoices(self) -> list[Order]:
        """Orders that have an invoice, i.e. paid ones."""
        return self.list_orders(payment_status="paid")

    @property
    def current_order(self) -> Order | None:
        with self._lock:
            if self._current_id is None or self._current_id not in self._orders:
                return None
            return copy.deepcopy(self._orders[self._current_id])

    def set_current(self, order_id: str | None) -> None:
        """
        Point the current order at an existing order, or clear it with None.

        Raises:
            OrderNotFoundError: If order doesn't exist.
        """
        with self._lock:
            if order_id is not None:
                self._lookup(order_id)
            self._current_id = order_id

    def clear_current(self) -> None:
        self._current_id = None

    def update_payment_status(
        self,
        order_id: str,
        status: str,
        paid_at: str | None = None,
        transaction_reference: str | None = None,
    ) -> Order:
        """
        Set an order's payment status.

        Raises:
            OrderNotFoundError: If order doesn't exist.
            InvalidStatusError: If status is unknown.
        """
        if status not in PAYMENT_STATUSES:
            raise InvalidStatusError("payment status", status, PAYMENT_STATUSES)
        with self._lock:
            order = self._lookup(order_id)
            order.payment_status = status
            if paid_at:
                order.paid_at = paid_at
            if transaction_reference:
                order.transaction_reference = transaction_reference
            self._save()
        logger.info("Order %s payment status -> %s", order_id, status)
        return copy.deepcopy(order)

    def set_payment_method(self, order_id: str, method: PaymentMethod) -> Order:
        """
        Record the payment method actually used, e.g. after switching methods.

        Raises:
            OrderNotFoundError: If order doesn't exist.
        """
        with self._lock:
            order = self._lookup(order_id)
            order.payment_method = copy.deepcopy(method)
            self._save()
            return copy.deepcopy(order)

    def update_delivery_status(self, order_id: str, status: str) -> Order:
        """
        Advance an order's delivery status by one stage.

        Re-applying the current status is a no-op.

        Raises:
            OrderNotFoundError: If order doesn't exist.
            InvalidStatusError: If status is unknown.
            InvalidDeliveryTransitionError: If the change skips or reverses a stage.
        """
        if status not in DELIVERY_STATUSES:
            raise InvalidStatusError("delivery status", status, DELIVERY_STATUSES)
        with self._lock:
            order = self._lookup(order_id)
            if status == order.delivery_status:
                return copy.deepcopy(order)

            current_idx = DELIVERY_STATUSES.index(order.delivery_status)
            if DELIVERY_STATUSES.index(status) != current_idx + 1:
                logger.warning(
                    "Rejected delivery transition for %s: %s -> %s",
                    order_id, order.delivery_status, status,
                )
                raise InvalidDeliveryTransitionError(order_id, order.delivery_status, status)

            order.delivery_status = status
            self._save()
        logger.info("Order %s delivery status -> %s", order_id, status)
        return copy.deepcopy(order)
