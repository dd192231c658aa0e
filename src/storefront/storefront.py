"""The storefront application object: stores, checkout and payments wired together."""

import logging
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

from . import catalog
from .address_book import AddressBook
from .cart_store import CartStore
from .checkout import CheckoutSession
from .errors import (
    CheckoutStepError,
    EmptyCartError,
    FormValidationError,
    PaymentStateError,
    ProfileIncompleteError,
    UnsupportedPaymentMethodError,
)
from .models import CENTS, CartItem, Order, OrderDraft, PaymentMethod
from .order_store import OrderStore, next_order_number
from .payments import (
    CancelToken,
    PaymentAttempt,
    PaymentFlow,
    PaymentProcessor,
    SimulatedProcessor,
    get_gateway,
    supported_methods,
)
from .profile_store import ProfileStore
from .storage import JsonFileStorage, Storage
from .wishlist_store import WishlistStore

logger = logging.getLogger(__name__)


def check_quantity(quantity: int) -> None:
    """
    Raises:
        FormValidationError: If quantity is below 1.
    """
    if quantity < 1:
        raise FormValidationError("cart", {"quantity": "Quantity must be at least 1"})


class Storefront:
    """One customer's shop state.

    Owns the cart, address book, wishlist, profile, order ledger and the
    checkout session, and keeps at most one live payment flow per order.

    All of them share ``lock``. It is held for every store mutation and for
    each payment's form -> processing step, and released while a processor
    waits so the payment can still be cancelled.
    """

    def __init__(
        self,
        storage: Storage,
        processor: PaymentProcessor | None = None,
        clock: Callable[[], float] | None = None,
        tax_rate: Decimal | None = None,
    ):
        self.storage = storage
        self.processor = processor or SimulatedProcessor()
        self._clock = clock
        self.lock = threading.RLock()
        self.cart = CartStore(storage, tax_rate=tax_rate, lock=self.lock)
        self.addresses = AddressBook(storage, lock=self.lock)
        self.wishlist = WishlistStore(storage, lock=self.lock)
        self.orders = OrderStore(storage, lock=self.lock)
        self.profile = ProfileStore(storage, lock=self.lock)
        self.checkout = CheckoutSession(lock=self.lock)
        self.flows: dict[str, PaymentFlow] = {}

    @classmethod
    def open(cls, data_dir: Path | None = None, **kwargs: Any) -> "Storefront":
        """Storefront backed by JSON files under data_dir (default: DATA_DIR)."""
        return cls(JsonFileStorage(data_dir), **kwargs)

    # --- Catalog shortcuts ---

    def add_to_cart(
        self,
        category_slug: str,
        sub_product_id: str,
        variant_id: str,
        quantity: int = 1,
        **options: str | None,
    ) -> CartItem:
        """
        Add a catalog variant to the cart.

        Raises:
            FormValidationError: If quantity is below 1.
            CatalogNotFoundError: If the variant doesn't exist.
        """
        check_quantity(quantity)
        item = catalog.make_cart_item(
            category_slug, sub_product_id, variant_id, quantity=quantity, **options
        )
        return self.cart.add(item)

    def update_cart_quantity(self, item_id: str, quantity: int) -> None:
        """
        Set a cart line's quantity.

        Raises:
            FormValidationError: If quantity is below 1.
        """
        check_quantity(quantity)
        self.cart.update_quantity(item_id, quantity)

    def add_to_wishlist(self, category_slug: str, sub_product_id: str, variant_id: str) -> bool:
        """Save a catalog variant to the wishlist."""
        item = catalog.make_wishlist_item(category_slug, sub_product_id, variant_id)
        return self.wishlist.add(item)

    def move_wishlist_item_to_cart(self, item_id: str) -> CartItem:
        """
        Add one of a wishlist item to the cart. The wishlist entry stays.

        Raises:
            WishlistItemNotFoundError: If item doesn't exist.
        """
        item = self.wishlist.get(item_id)
        return self.cart.add(item.to_cart_item(quantity=1))

    # --- Orders and payments ---

    def place_order(self, method: str) -> Order:
        """
        Turn the cart and checkout snapshots into a pending order.

        The order becomes the current order. The cart is left as it is until
        payment succeeds.

        Raises:
            EmptyCartError: If the cart is empty.
            ProfileIncompleteError: If the customer has no name or phone on file.
            CheckoutStepError: If checkout is not at the payment step with
                both addresses.
            UnsupportedPaymentMethodError: If method is unknown.
        """
        with self.lock:
            if self.cart.is_empty:
                raise EmptyCartError()
            if not self.profile.is_complete:
                raise ProfileIncompleteError(self.profile.missing_fields())
            if self.checkout.step != "payment" or not self.checkout.ready_for_payment:
                raise CheckoutStepError("payment", "shipping and billing details are required")
            if method not in supported_methods():
                raise UnsupportedPaymentMethodError(method, supported_methods())

            items, totals = self.cart.snapshot()
            draft = OrderDraft(
                order_number=next_order_number(),
                items=items,
                totals=totals,
                shipping_address=self.checkout.shipping,
                billing_address=self.checkout.billing,
                payment_method=PaymentMethod(type=method),
            )
            return self.orders.create(draft)

    def begin_payment(self, order_id: str, method: str) -> PaymentFlow:
        """
        Start a fresh payment flow, replacing any earlier one for the order.

        Switching method this way leaves the order's payment status as is.
        Time-limited methods start their countdown here.

        Raises:
            UnsupportedPaymentMethodError: If method is unknown.
            OrderNotFoundError: If order doesn't exist.
            PaymentStateError: If the order is already paid, or a payment for
                it is still processing.
        """
        gateway = get_gateway(method)
        kwargs: dict[str, Any] = {"lock": self.lock}
        if self._clock is not None:
            kwargs["clock"] = self._clock
        with self.lock:
            previous = self.flows.get(order_id)
            if previous is not None and previous.stage == "processing":
                raise PaymentStateError(order_id, previous.stage, "start")
            flow = PaymentFlow(
                order_id, gateway, self.processor, self.orders, self.cart, self.checkout, **kwargs
            )
            if previous is not None and previous.method != method:
                logger.info("Order %s switched payment method %s -> %s", order_id, previous.method, method)
            self.flows[order_id] = flow
            return flow

    def pay(
        self,
        order_id: str,
        method: str,
        details: dict[str, Any],
        cancel_token: CancelToken | None = None,
    ) -> PaymentAttempt:
        """
        Submit a payment for an order with the given method.

        Reuses the order's flow if it is waiting at the form stage with the
        same method; otherwise starts a new one. At most one payment per
        order is ever processing.

        Raises:
            FormValidationError: If details are invalid.
            PaymentStateError: If a payment for the order is still processing,
                or the order is already paid.
            PaymentCancelledError: If cancelled while processing.
        """
        with self.lock:
            flow = self.flows.get(order_id)
            if flow is not None and flow.stage == "processing":
                raise PaymentStateError(order_id, flow.stage, "submit")
            if flow is None or flow.method != method or flow.stage != "form":
                flow = self.begin_payment(order_id, method)
            flow.start(details, cancel_token=cancel_token)
        return flow.complete()

    def cancel_payment(self, order_id: str) -> bool:
        """Cancel a payment in progress. Returns False if none was pending."""
        flow = self.flows.get(order_id)
        return flow.cancel() if flow is not None else False

    def retry_payment(self, order_id: str) -> PaymentFlow:
        """
        Send a failed payment back to its form; the order is pending again.

        Raises:
            PaymentStateError: If the order has no failed payment flow.
        """
        flow = self.flows.get(order_id)
        if flow is None:
            raise PaymentStateError(order_id, "idle", "retry")
        flow.retry()
        return flow

    def payment_flow(self, order_id: str) -> PaymentFlow | None:
        return self.flows.get(order_id)

    # --- Overview ---

    def dashboard(self) -> dict[str, Any]:
        """Counts and totals for the account overview."""
        orders = self.orders.list_orders()
        paid = [o for o in orders if o.payment_status == "paid"]
        total_spent = sum((o.total for o in paid), Decimal("0")).quantize(CENTS)
        return {
            "order_count": len(orders),
            "paid_order_count": len(paid),
            "pending_order_count": sum(1 for o in orders if o.payment_status == "pending"),
            "wishlist_count": len(self.wishlist),
            "address_count": len(self.addresses.list()),
            "cart_item_count": self.cart.item_count,
            "profile_complete": self.profile.is_complete,
            "total_spent": str(total_spent),
        }
