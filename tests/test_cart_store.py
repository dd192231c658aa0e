"""Tests for CartStore."""

from decimal import Decimal

from storefront.cart_store import CartStore, compute_totals
from storefront.storage import CART_KEY, MemoryStorage

from .conftest import make_item


def assert_totals_consistent(cart: CartStore) -> None:
    expected = sum(i.price * i.quantity for i in cart.items)
    assert cart.totals.subtotal == expected
    assert cart.totals.tax == (Decimal(expected) * Decimal("0.12")).quantize(Decimal("0.01"))
    assert cart.totals.total == cart.totals.subtotal + cart.totals.tax


class TestAdd:
    def test_add_new_item(self, storage):
        cart = CartStore(storage)
        line = cart.add(make_item(quantity=2))

        assert line.quantity == 2
        assert len(cart.items) == 1
        assert_totals_consistent(cart)

    def test_merge_on_add(self, storage):
        cart = CartStore(storage)
        cart.add(make_item(quantity=2))
        merged = cart.add(make_item(quantity=3))

        assert merged.quantity == 5
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    def test_different_variants_are_separate_lines(self, storage):
        cart = CartStore(storage)
        cart.add(make_item(variant_id="carrara-white"))
        cart.add(make_item(variant_id="calacatta-gold"))

        assert len(cart.items) == 2
        assert cart.item_count == 2

    def test_items_are_copies(self, storage):
        cart = CartStore(storage)
        item = make_item(quantity=1)
        cart.add(item)
        item.quantity = 99
        cart.items[0].quantity = 50

        assert cart.items[0].quantity == 1


class TestTotals:
    def test_totals_example(self, storage):
        cart = CartStore(storage)
        cart.add(make_item(price=10000, quantity=2))

        assert cart.totals.subtotal == 20000
        assert cart.totals.tax == Decimal("2400.00")
        assert cart.totals.total == Decimal("22400.00")

    def test_totals_hold_after_every_mutation(self, storage):
        cart = CartStore(storage)
        a = cart.add(make_item(variant_id="a", price=1250, quantity=3))
        assert_totals_consistent(cart)
        b = cart.add(make_item(variant_id="b", price=999, quantity=1))
        assert_totals_consistent(cart)
        cart.update_quantity(a.id, 7)
        assert_totals_consistent(cart)
        cart.remove(b.id)
        assert_totals_consistent(cart)
        assert cart.totals.subtotal == 1250 * 7

    def test_empty_totals_are_zero(self, storage):
        cart = CartStore(storage)
        assert cart.totals.subtotal == 0
        assert cart.totals.total == 0
        assert cart.is_empty

    def test_custom_tax_rate(self, storage):
        cart = CartStore(storage, tax_rate=Decimal("0"))
        cart.add(make_item(price=500, quantity=2))
        assert cart.totals.total == 1000

    def test_compute_totals_rounds_to_cents(self):
        totals = compute_totals([make_item(price=333, quantity=1)], Decimal("0.12"))
        assert totals.tax == Decimal("39.96")
        assert totals.to_dict() == {"subtotal": "333.00", "tax": "39.96", "total": "372.96"}


class TestUpdateAndRemove:
    def test_update_quantity(self, storage):
        cart = CartStore(storage)
        line = cart.add(make_item(quantity=1))
        cart.update_quantity(line.id, 4)
        assert cart.get(line.id).quantity == 4

    def test_update_unknown_id_is_noop(self, storage):
        cart = CartStore(storage)
        cart.add(make_item(quantity=1))
        cart.update_quantity("nope", 4)
        assert cart.items[0].quantity == 1

    def test_remove(self, storage):
        cart = CartStore(storage)
        line = cart.add(make_item())
        cart.remove(line.id)
        assert cart.is_empty
        assert cart.get(line.id) is None


class TestPersistence:
    def test_mirrors_items_to_storage(self, storage):
        cart = CartStore(storage)
        cart.add(make_item(quantity=2))
        stored = storage.get(CART_KEY)
        assert len(stored) == 1
        assert stored[0]["quantity"] == 2

    def test_loads_and_recomputes_totals(self, storage):
        CartStore(storage).add(make_item(price=10000, quantity=2))
        reloaded = CartStore(storage)
        assert reloaded.items[0].quantity == 2
        assert reloaded.totals.total == Decimal("22400.00")

    def test_clear_removes_key(self):
        storage = MemoryStorage()
        cart = CartStore(storage)
        cart.add(make_item())
        cart.clear()

        assert cart.is_empty
        assert cart.totals.total == 0
        assert CART_KEY not in storage.keys()

    def test_snapshot_is_detached(self, storage):
        cart = CartStore(storage)
        line = cart.add(make_item(quantity=1))
        items, totals = cart.snapshot()
        cart.update_quantity(line.id, 10)

        assert items[0].quantity == 1
        assert totals.subtotal == 10000
