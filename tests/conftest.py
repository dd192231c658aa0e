"""Pytest fixtures for storefront tests."""

import tempfile
from pathlib import Path

import pytest

from storefront.models import CartItem
from storefront.payments import FixedOutcomeProcessor
from storefront.storage import MemoryStorage
from storefront.storefront import Storefront

SHIPPING = {
    "full_name": "Juan Dela Cruz",
    "contact_number": "+63 917 123 4567",
    "email": "juan@example.com",
    "street_address": "123 Rizal St",
    "barangay": "San Antonio",
    "city": "Pasig",
    "province": "Metro Manila",
    "postal_code": "1600",
}

BILLING = {
    "full_name": "Maria Santos",
    "contact_number": "09181234567",
    "email": "maria@example.com",
    "street_address": "45 Ayala Ave",
    "barangay": "Bel-Air",
    "city": "Makati",
    "province": "Metro Manila",
    "postal_code": "1209",
}

CARD = {
    "card_number": "4111 1111 1111 1111",
    "card_holder": "JUAN DELA CRUZ",
    "expiry": "12/29",
    "cvv": "123",
}


def make_item(product_id: str = "marble", variant_id: str | None = "carrara-white",
              price: int = 10000, quantity: int = 1) -> CartItem:
    """Build a cart item without going through the catalog."""
    return CartItem(
        id=f"natural-stones-{product_id}-{variant_id}",
        product_id=product_id,
        product_name=f"{product_id} - {variant_id}",
        price=price,
        quantity=quantity,
        variant_id=variant_id,
        variant_name=variant_id,
        category_slug="natural-stones",
        sub_product_id=product_id,
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def processor():
    """Processor that approves every payment immediately."""
    return FixedOutcomeProcessor(success=True)


@pytest.fixture
def storefront(storage, processor):
    """Storefront over in-memory storage with instant, successful payments."""
    return Storefront(storage, processor=processor)


@pytest.fixture
def ready_storefront(storefront):
    """Storefront with one cart line and checkout at the payment step."""
    storefront.cart.add(make_item(price=10000, quantity=2))
    storefront.checkout.submit_shipping(SHIPPING)
    storefront.checkout.submit_billing(same_as_shipping=True)
    return storefront


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
