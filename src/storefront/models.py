"""Data models for storefront."""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

ADDRESS_TYPES = ("shipping", "billing")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
# Order matters: delivery only ever moves one step to the right.
DELIVERY_STATUSES = ("confirmed", "preparing", "in_transit", "delivered")
PAYMENT_METHOD_TYPES = ("card", "ewallet", "bank_transfer", "billease")

CENTS = Decimal("0.01")


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id(prefix: str = "") -> str:
    """Generate a new record ID."""
    return f"{prefix}{uuid.uuid4().hex}"


def _money(value: Any) -> Decimal:
    """Coerce a persisted amount to a Decimal rounded to cents."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass
class CartItem:
    """A product line in the cart."""

    id: str
    product_id: str
    product_name: str
    price: int  # unit price, whole currency units
    quantity: int
    variant_id: str | None = None
    variant_name: str | None = None
    category_slug: str = ""
    sub_product_id: str = ""
    image: str = ""
    finish: str | None = None
    thickness: str | None = None
    size: str | None = None

    @property
    def key(self) -> tuple[str, str | None]:
        """Identity used for merge-on-add and dedup."""
        return (self.product_id, self.variant_id)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "price": self.price,
            "quantity": self.quantity,
            "category_slug": self.category_slug,
            "sub_product_id": self.sub_product_id,
            "image": self.image,
        }
        for name in ("variant_id", "variant_name", "finish", "thickness", "size"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartItem":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            product_name=data.get("product_name", ""),
            price=int(data["price"]),
            quantity=int(data["quantity"]),
            variant_id=data.get("variant_id"),
            variant_name=data.get("variant_name"),
            category_slug=data.get("category_slug", ""),
            sub_product_id=data.get("sub_product_id", ""),
            image=data.get("image", ""),
            finish=data.get("finish"),
            thickness=data.get("thickness"),
            size=data.get("size"),
        )


@dataclass(frozen=True)
class CartTotals:
    """Subtotal, tax and total derived from a list of cart items."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def zero(cls) -> "CartTotals":
        return cls(subtotal=_money(0), tax=_money(0), total=_money(0))

    @classmethod
    def from_items(cls, items: list[CartItem], tax_rate: Decimal) -> "CartTotals":
        subtotal = _money(sum(item.line_total for item in items))
        tax = _money(subtotal * tax_rate)
        return cls(subtotal=subtotal, tax=tax, total=subtotal + tax)

    def to_dict(self) -> dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "total": str(self.total),
        }


@dataclass
class Address:
    """A saved postal address in the customer's address book."""

    id: str
    type: str  # "shipping" | "billing"
    full_name: str
    contact_number: str
    street_address: str
    barangay: str
    city: str
    province: str
    postal_code: str
    is_default: bool = False
    label: str | None = None  # e.g. "Home", "Office"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "is_default": self.is_default,
            "full_name": self.full_name,
            "contact_number": self.contact_number,
            "street_address": self.street_address,
            "barangay": self.barangay,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
        }
        if self.label is not None:
            result["label"] = self.label
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Address":
        return cls(
            id=data.get("id", ""),
            type=data["type"],
            is_default=data.get("is_default", False),
            full_name=data["full_name"],
            contact_number=data["contact_number"],
            street_address=data["street_address"],
            barangay=data["barangay"],
            city=data["city"],
            province=data["province"],
            postal_code=data["postal_code"],
            label=data.get("label"),
        )


@dataclass
class ShippingAddress:
    """Checkout-time shipping snapshot."""

    full_name: str
    contact_number: str
    email: str
    street_address: str
    barangay: str
    city: str
    province: str
    postal_code: str
    country: str = "Philippines"
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "full_name": self.full_name,
            "contact_number": self.contact_number,
            "email": self.email,
            "street_address": self.street_address,
            "barangay": self.barangay,
            "city": self.city,
            "province": self.province,
            "postal_code": self.postal_code,
            "country": self.country,
        }
        if self.notes is not None:
            result["notes"] = self.notes
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingAddress":
        return cls(
            full_name=data["full_name"],
            contact_number=data["contact_number"],
            email=data["email"],
            street_address=data["street_address"],
            barangay=data["barangay"],
            city=data["city"],
            province=data["province"],
            postal_code=data["postal_code"],
            country=data.get("country", "Philippines"),
            notes=data.get("notes"),
        )


@dataclass
class BillingAddress(ShippingAddress):
    """Checkout-time billing snapshot."""

    same_as_shipping: bool = False

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["same_as_shipping"] = self.same_as_shipping
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BillingAddress":
        base = ShippingAddress.from_dict(data)
        return cls(**base.__dict__, same_as_shipping=data.get("same_as_shipping", False))

    @classmethod
    def copy_of(cls, shipping: ShippingAddress) -> "BillingAddress":
        """Billing snapshot copied verbatim from the shipping snapshot."""
        return cls(**copy.deepcopy(shipping.__dict__), same_as_shipping=True)


@dataclass
class PaymentMethod:
    """The payment method chosen for an order, with details filled in at payment time."""

    type: str  # one of PAYMENT_METHOD_TYPES
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "details": dict(self.details)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaymentMethod":
        return cls(type=data["type"], details=dict(data.get("details", {})))


@dataclass
class OrderDraft:
    """Everything an order needs except its ID and creation time."""

    order_number: str
    items: list[CartItem]
    totals: CartTotals
    shipping_address: ShippingAddress
    billing_address: BillingAddress
    payment_method: PaymentMethod
    payment_status: str = "pending"
    delivery_status: str = "confirmed"
    transaction_reference: str = ""


@dataclass
class Order:
    """A placed order. Items and totals are copies frozen at placement time."""

    id: str
    order_number: str
    items: list[CartItem]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    shipping_address: ShippingAddress
    billing_address: BillingAddress
    payment_method: PaymentMethod
    payment_status: str = "pending"
    delivery_status: str = "confirmed"
    transaction_reference: str = ""
    created_at: str = field(default_factory=_utc_now)
    paid_at: str | None = None

    @property
    def invoice_number(self) -> str:
        return f"INV-{self.order_number}"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "order_number": self.order_number,
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "total": str(self.total),
            "shipping_address": self.shipping_address.to_dict(),
            "billing_address": self.billing_address.to_dict(),
            "payment_method": self.payment_method.to_dict(),
            "payment_status": self.payment_status,
            "delivery_status": self.delivery_status,
            "transaction_reference": self.transaction_reference,
            "created_at": self.created_at,
        }
        if self.paid_at is not None:
            result["paid_at"] = self.paid_at
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            order_number=data["order_number"],
            items=[CartItem.from_dict(i) for i in data.get("items", [])],
            subtotal=_money(data["subtotal"]),
            tax=_money(data["tax"]),
            total=_money(data["total"]),
            shipping_address=ShippingAddress.from_dict(data["shipping_address"]),
            billing_address=BillingAddress.from_dict(data["billing_address"]),
            payment_method=PaymentMethod.from_dict(data["payment_method"]),
            payment_status=data.get("payment_status", "pending"),
            delivery_status=data.get("delivery_status", "confirmed"),
            transaction_reference=data.get("transaction_reference", ""),
            created_at=data.get("created_at", ""),
            paid_at=data.get("paid_at"),
        )

    @classmethod
    def create(cls, draft: OrderDraft) -> "Order":
        """Create an order from a draft with generated ID and timestamp."""
        return cls(
            id=_generate_id("ord_"),
            order_number=draft.order_number,
            items=copy.deepcopy(draft.items),
            subtotal=draft.totals.subtotal,
            tax=draft.totals.tax,
            total=draft.totals.total,
            shipping_address=copy.deepcopy(draft.shipping_address),
            billing_address=copy.deepcopy(draft.billing_address),
            payment_method=copy.deepcopy(draft.payment_method),
            payment_status=draft.payment_status,
            delivery_status=draft.delivery_status,
            transaction_reference=draft.transaction_reference,
            created_at=_utc_now(),
        )


@dataclass
class WishlistItem:
    """A product saved for later."""

    id: str
    product_id: str
    product_name: str
    price: int
    variant_id: str | None = None
    variant_name: str | None = None
    category_slug: str = ""
    sub_product_id: str = ""
    image: str = ""
    added_at: str = ""

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product_id, self.variant_id)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "price": self.price,
            "category_slug": self.category_slug,
            "sub_product_id": self.sub_product_id,
            "image": self.image,
            "added_at": self.added_at,
        }
        if self.variant_id is not None:
            result["variant_id"] = self.variant_id
        if self.variant_name is not None:
            result["variant_name"] = self.variant_name
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WishlistItem":
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            product_name=data.get("product_name", ""),
            price=int(data["price"]),
            variant_id=data.get("variant_id"),
            variant_name=data.get("variant_name"),
            category_slug=data.get("category_slug", ""),
            sub_product_id=data.get("sub_product_id", ""),
            image=data.get("image", ""),
            added_at=data.get("added_at", ""),
        )

    def to_cart_item(self, quantity: int = 1) -> CartItem:
        return CartItem(
            id=self.id,
            product_id=self.product_id,
            product_name=self.product_name,
            price=self.price,
            quantity=quantity,
            variant_id=self.variant_id,
            variant_name=self.variant_name,
            category_slug=self.category_slug,
            sub_product_id=self.sub_product_id,
            image=self.image,
        )


@dataclass
class CustomerProfile:
    """The signed-in customer's account details."""

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    role: str = "customer"
    company: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_complete(self) -> bool:
        """Name and phone are on file, so orders can be placed and delivered."""
        return bool(self.first_name and self.last_name and self.phone)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "company": self.company,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerProfile":
        return cls(
            id=data["id"],
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            email=data["email"],
            phone=data.get("phone", ""),
            role=data.get("role", "customer"),
            company=data.get("company", ""),
        )
