"""Tests for OrderStore."""

import pytest

from storefront.cart_store import CartStore
from storefront.errors import (
    InvalidDeliveryTransitionError,
    InvalidStatusError,
    OrderNotFoundError,
)
from storefront.models import (
    BillingAddress,
    OrderDraft,
    PaymentMethod,
    ShippingAddress,
    _utc_now,
)
from storefront.order_store import OrderStore, next_order_number
from storefront.storage import ORDERS_KEY

from .conftest import SHIPPING, make_item


def make_draft(cart: CartStore, **overrides) -> OrderDraft:
    items, totals = cart.snapshot()
    shipping = ShippingAddress(**SHIPPING)
    fields = dict(
        order_number=next_order_number(),
        items=items,
        totals=totals,
        shipping_address=shipping,
        billing_address=BillingAddress.copy_of(shipping),
        payment_method=PaymentMethod("card"),
    )
    fields.update(overrides)
    return OrderDraft(**fields)


@pytest.fixture
def cart(storage):
    cart = CartStore(storage)
    cart.add(make_item(price=10000, quantity=2))
    return cart


class TestCreate:
    def test_create_sets_current_and_prepends(self, storage, cart):
        orders = OrderStore(storage)
        first = orders.create(make_draft(cart))
        second = orders.create(make_draft(cart))

        assert first.id.startswith("ord_")
        assert first.payment_status == "pending"
        assert first.delivery_status == "confirmed"
        assert first.created_at.endswith("Z")
        assert [o.id for o in orders.list_orders()] == [second.id, first.id]
        assert orders.current_order.id == second.id
        assert len(orders) == 2

    def test_order_number_and_invoice(self, storage, cart):
        order = OrderStore(storage).create(make_draft(cart))
        assert order.order_number.startswith("ORD")
        assert order.order_number[3:].isdigit()
        assert order.invoice_number == f"INV-{order.order_number}"

    def test_rejects_non_pending_draft(self, storage, cart):
        with pytest.raises(InvalidStatusError):
            OrderStore(storage).create(make_draft(cart, payment_status="paid"))

    def test_order_unaffected_by_later_cart_changes(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))

        line = cart.items[0]
        cart.update_quantity(line.id, 9)
        cart.add(make_item(variant_id="other", price=1))
        cart.clear()

        stored = orders.get(order.id)
        assert len(stored.items) == 1
        assert stored.items[0].quantity == 2
        assert stored.total == order.total

    def test_persisted_most_recent_first(self, storage, cart):
        orders = OrderStore(storage)
        first = orders.create(make_draft(cart))
        second = orders.create(make_draft(cart))

        stored = storage.get(ORDERS_KEY)
        assert [o["id"] for o in stored] == [second.id, first.id]
        reloaded = OrderStore(storage)
        assert [o.id for o in reloaded.list_orders()] == [second.id, first.id]
        assert reloaded.get(first.id).total == first.total


class TestPaymentStatus:
    def test_paid_agrees_between_list_and_current(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        paid_at = _utc_now()
        orders.update_payment_status(order.id, "paid", paid_at=paid_at)

        listed = orders.list_orders()[0]
        current = orders.current_order
        assert listed.payment_status == current.payment_status == "paid"
        assert listed.paid_at == current.paid_at == paid_at

    def test_unknown_status(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        with pytest.raises(InvalidStatusError):
            orders.update_payment_status(order.id, "settled")

    def test_unknown_order(self, storage):
        with pytest.raises(OrderNotFoundError):
            OrderStore(storage).update_payment_status("ord_missing", "paid")

    def test_invoices_are_paid_orders(self, storage, cart):
        orders = OrderStore(storage)
        paid = orders.create(make_draft(cart))
        orders.create(make_draft(cart))
        orders.update_payment_status(paid.id, "paid", paid_at=_utc_now())

        assert [o.id for o in orders.invoices()] == [paid.id]
        assert len(orders.list_orders(payment_status="pending")) == 1

    def test_set_payment_method(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        orders.set_payment_method(order.id, PaymentMethod("ewallet", {"ewallet_provider": "gcash"}))
        assert orders.get(order.id).payment_method.details == {"ewallet_provider": "gcash"}


class TestDeliveryStatus:
    def test_advances_one_step(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        for status in ("preparing", "in_transit", "delivered"):
            assert orders.update_delivery_status(order.id, status).delivery_status == status

    def test_same_status_is_noop(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        assert orders.update_delivery_status(order.id, "confirmed").delivery_status == "confirmed"

    def test_skip_rejected(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        with pytest.raises(InvalidDeliveryTransitionError):
            orders.update_delivery_status(order.id, "delivered")

    def test_reverse_rejected(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        orders.update_delivery_status(order.id, "preparing")
        with pytest.raises(InvalidDeliveryTransitionError):
            orders.update_delivery_status(order.id, "confirmed")
        assert orders.get(order.id).delivery_status == "preparing"

    def test_unknown_delivery_status(self, storage, cart):
        orders = OrderStore(storage)
        order = orders.create(make_draft(cart))
        with pytest.raises(InvalidStatusError):
            orders.update_delivery_status(order.id, "lost")


class TestCurrentOrder:
    def test_set_and_clear(self, storage, cart):
        orders = OrderStore(storage)
        first = orders.create(make_draft(cart))
        orders.create(make_draft(cart))

        orders.set_current(first.id)
        assert orders.current_order.id == first.id
        orders.clear_current()
        assert orders.current_order is None

    def test_set_unknown(self, storage):
        with pytest.raises(OrderNotFoundError):
            OrderStore(storage).set_current("ord_missing")
