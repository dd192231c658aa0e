"""FastAPI REST API for the storefront."""

from typing import Any, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__, catalog
from .errors import (
    AddressNotFoundError,
    CatalogNotFoundError,
    CheckoutStepError,
    EmptyCartError,
    FormValidationError,
    InvalidDeliveryTransitionError,
    InvalidSchemaVersionError,
    InvalidStatusError,
    NotSignedInError,
    OrderNotFoundError,
    PaymentCancelledError,
    PaymentStateError,
    ProfileIncompleteError,
    StorefrontError,
    UnsupportedPaymentMethodError,
    WishlistItemNotFoundError,
)
from .models import Address, CustomerProfile, Order, _generate_id
from .payments import BANKS, EWALLET_PROVIDERS, INSTALLMENT_PLANS, CancelToken, supported_methods
from .storefront import Storefront


# --- Pydantic Schemas ---


class CartAddRequest(BaseModel):
    """Request body for adding a catalog variant to the cart."""

    category_slug: str
    sub_product_id: str
    variant_id: str
    quantity: int = Field(default=1, ge=1)
    thickness: Optional[str] = None
    size: Optional[str] = None


class CartQuantityRequest(BaseModel):
    quantity: int = Field(..., ge=1, description="New quantity; remove the line instead of setting 0")


class AddressRequest(BaseModel):
    """Request body for creating or replacing a saved address."""

    type: str = Field(..., description="'shipping' or 'billing'")
    full_name: str = Field(..., min_length=1)
    contact_number: str = Field(..., min_length=1)
    street_address: str = Field(..., min_length=1)
    barangay: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    is_default: bool = False
    label: Optional[str] = None


class AddressSchema(AddressRequest):
    id: str


class AddressListResponse(BaseModel):
    addresses: list[AddressSchema]
    count: int


class BillingRequest(BaseModel):
    same_as_shipping: bool = False
    address: Optional[dict[str, Any]] = None


class CheckoutStepRequest(BaseModel):
    step: str


class PlaceOrderRequest(BaseModel):
    payment_method: str = Field(..., description="'card', 'ewallet', 'bank_transfer' or 'billease'")


class DeliveryStatusRequest(BaseModel):
    status: str


class WishlistAddRequest(BaseModel):
    category_slug: str
    sub_product_id: str
    variant_id: str


class SignInRequest(BaseModel):
    """Request body for signing in as a customer."""

    email: str = Field(..., min_length=3)
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    company: str = ""


# --- Helper Functions ---


_storefront: Optional[Storefront] = None


def get_storefront() -> Storefront:
    """Get the global Storefront, opening the default data directory on first use."""
    global _storefront
    if _storefront is None:
        _storefront = Storefront.open()
    return _storefront


def set_storefront(storefront: Optional[Storefront]) -> None:
    """Replace the global Storefront (None reopens the default on next use)."""
    global _storefront
    _storefront = storefront


def profile_to_dict(sf: Storefront) -> dict[str, Any]:
    profile = sf.profile.profile
    return {
        "profile": profile.to_dict() if profile else None,
        "is_authenticated": sf.profile.is_authenticated,
        "is_profile_complete": sf.profile.is_complete,
        "missing_fields": sf.profile.missing_fields(),
    }


def order_to_dict(order: Order) -> dict[str, Any]:
    data = order.to_dict()
    data["invoice_number"] = order.invoice_number
    return data


def cart_to_dict(sf: Storefront) -> dict[str, Any]:
    return {
        "items": [item.to_dict() for item in sf.cart.items],
        "totals": sf.cart.totals.to_dict(),
        "item_count": sf.cart.item_count,
    }


def address_to_schema(address: Address) -> AddressSchema:
    return AddressSchema(**address.to_dict())


def category_to_dict(category: catalog.Category, detail: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = {
        "slug": category.slug,
        "name": category.name,
        "subtitle": category.subtitle,
    }
    if detail:
        data["sub_products"] = [sub_product_to_dict(s) for s in category.sub_products]
    else:
        data["sub_products"] = [{"id": s.id, "name": s.name} for s in category.sub_products]
    return data


def sub_product_to_dict(sub: catalog.SubProduct) -> dict[str, Any]:
    return {
        "id": sub.id,
        "name": sub.name,
        "specs": list(sub.specs),
        "variants": [variant_to_dict(v) for v in sub.variants],
    }


def variant_to_dict(variant: catalog.Variant) -> dict[str, Any]:
    return {
        "id": variant.id,
        "name": variant.name,
        "price": variant.price,
        "finish": variant.finish,
        "color": variant.color,
        "image": variant.image,
    }


# --- App Setup ---


app = FastAPI(
    title="storefront API",
    description="Cart, checkout, orders and simulated payments for the storefront",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    FormValidationError: 422,
    CheckoutStepError: 409,
    EmptyCartError: 409,
    OrderNotFoundError: 404,
    AddressNotFoundError: 404,
    WishlistItemNotFoundError: 404,
    InvalidDeliveryTransitionError: 409,
    CatalogNotFoundError: 404,
    UnsupportedPaymentMethodError: 400,
    PaymentCancelledError: 409,
    InvalidStatusError: 400,
    PaymentStateError: 409,
    NotSignedInError: 401,
    ProfileIncompleteError: 409,
    InvalidSchemaVersionError: 500,
}


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content: dict[str, Any] = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, FormValidationError):
        content["errors"] = exc.errors
    elif isinstance(exc, CatalogNotFoundError):
        content["fallback"] = exc.fallback
    return JSONResponse(status_code=status_code, content=content)


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    try:
        sf = get_storefront()
        return {
            "status": "ok",
            "order_count": len(sf.orders),
            "cart_item_count": sf.cart.item_count,
        }
    except StorefrontError as e:
        return {
            "status": "error",
            "detail": str(e),
        }


# --- Catalog Endpoints ---


@app.get("/api/catalog")
def list_catalog():
    """List categories with their sub-products."""
    categories = catalog.list_categories()
    return {
        "categories": [category_to_dict(c) for c in categories],
        "count": len(categories),
    }


@app.get("/api/catalog/{category_slug}")
def get_catalog_category(category_slug: str):
    return category_to_dict(catalog.get_category(category_slug), detail=True)


@app.get("/api/catalog/{category_slug}/{sub_product_id}")
def get_catalog_sub_product(category_slug: str, sub_product_id: str):
    category, sub = catalog.get_sub_product(category_slug, sub_product_id)
    return {"category": category.slug, **sub_product_to_dict(sub)}


@app.get("/api/catalog/{category_slug}/{sub_product_id}/{variant_id}")
def get_catalog_variant(category_slug: str, sub_product_id: str, variant_id: str):
    category, sub, variant = catalog.get_variant(category_slug, sub_product_id, variant_id)
    return {
        "category": category.slug,
        "sub_product": sub.id,
        "specs": list(sub.specs),
        **variant_to_dict(variant),
    }


# --- Cart Endpoints ---


@app.get("/api/cart")
def get_cart():
    return cart_to_dict(get_storefront())


@app.post("/api/cart/items", status_code=201)
def add_cart_item(request: CartAddRequest):
    """Add a catalog variant to the cart, merging with an existing line."""
    sf = get_storefront()
    item = sf.add_to_cart(
        request.category_slug,
        request.sub_product_id,
        request.variant_id,
        quantity=request.quantity,
        thickness=request.thickness,
        size=request.size,
    )
    return {"item": item.to_dict(), **cart_to_dict(sf)}


@app.patch("/api/cart/items/{item_id}")
def update_cart_item(item_id: str, request: CartQuantityRequest):
    sf = get_storefront()
    sf.update_cart_quantity(item_id, request.quantity)
    return cart_to_dict(sf)


@app.delete("/api/cart/items/{item_id}")
def remove_cart_item(item_id: str):
    sf = get_storefront()
    sf.cart.remove(item_id)
    return cart_to_dict(sf)


@app.delete("/api/cart")
def clear_cart():
    sf = get_storefront()
    sf.cart.clear()
    return cart_to_dict(sf)


# --- Address Endpoints ---


@app.get("/api/addresses", response_model=AddressListResponse)
def list_addresses(type: Optional[str] = Query(default=None, description="'shipping' or 'billing'")):
    addresses = get_storefront().addresses.list(type)
    return AddressListResponse(
        addresses=[address_to_schema(a) for a in addresses],
        count=len(addresses),
    )


@app.post("/api/addresses", response_model=AddressSchema, status_code=201)
def create_address(request: AddressRequest):
    address = Address(id="", **request.model_dump())
    return address_to_schema(get_storefront().addresses.add(address))


@app.get("/api/addresses/{address_id}", response_model=AddressSchema)
def get_address(address_id: str):
    return address_to_schema(get_storefront().addresses.get(address_id))


@app.put("/api/addresses/{address_id}", response_model=AddressSchema)
def replace_address(address_id: str, request: AddressRequest):
    address = Address(id=address_id, **request.model_dump())
    return address_to_schema(get_storefront().addresses.update(address))


@app.post("/api/addresses/{address_id}/default", response_model=AddressSchema)
def set_default_address(address_id: str):
    """Make the address the only default of its type."""
    book = get_storefront().addresses
    address = book.get(address_id)
    book.set_default(address_id, address.type)
    return address_to_schema(book.get(address_id))


@app.delete("/api/addresses/{address_id}", response_model=AddressSchema)
def delete_address(address_id: str):
    """Delete an address. Deleting the default leaves its type without one."""
    book = get_storefront().addresses
    address = book.get(address_id)
    book.delete(address_id)
    return address_to_schema(address)


# --- Checkout Endpoints ---


@app.get("/api/checkout")
def get_checkout():
    return get_storefront().checkout.to_dict()


@app.post("/api/checkout/shipping")
def submit_shipping(data: dict[str, Any] = Body(...)):
    sf = get_storefront()
    sf.checkout.submit_shipping(data)
    return sf.checkout.to_dict()


@app.post("/api/checkout/billing")
def submit_billing(request: BillingRequest):
    sf = get_storefront()
    sf.checkout.submit_billing(request.address or {}, same_as_shipping=request.same_as_shipping)
    return sf.checkout.to_dict()


@app.post("/api/checkout/step")
def go_to_checkout_step(request: CheckoutStepRequest):
    sf = get_storefront()
    sf.checkout.go_to(request.step)
    return sf.checkout.to_dict()


@app.post("/api/checkout/reset")
def reset_checkout():
    sf = get_storefront()
    sf.checkout.reset()
    return sf.checkout.to_dict()


# --- Order Endpoints ---


@app.get("/api/orders")
def list_orders(payment_status: Optional[str] = Query(default=None)):
    """List orders, most recent first."""
    orders = get_storefront().orders.list_orders(payment_status)
    return {
        "orders": [order_to_dict(o) for o in orders],
        "count": len(orders),
    }


@app.post("/api/orders", status_code=201)
def place_order(request: PlaceOrderRequest):
    """Place a pending order from the cart and checkout session."""
    order = get_storefront().place_order(request.payment_method)
    return order_to_dict(order)


@app.get("/api/orders/current")
def get_current_order():
    order = get_storefront().orders.current_order
    return {"order": order_to_dict(order) if order else None}


@app.get("/api/orders/{order_id}")
def get_order(order_id: str):
    return order_to_dict(get_storefront().orders.get(order_id))


@app.patch("/api/orders/{order_id}/delivery")
def update_delivery_status(order_id: str, request: DeliveryStatusRequest):
    """Advance delivery by one stage."""
    order = get_storefront().orders.update_delivery_status(order_id, request.status)
    return order_to_dict(order)


# --- Payment Endpoints ---


@app.get("/api/payments/methods")
def list_payment_methods():
    """Supported methods and the choices each one offers."""
    return {
        "methods": supported_methods(),
        "ewallet_providers": EWALLET_PROVIDERS,
        "banks": {key: {"code": code, "name": name} for key, (code, name) in BANKS.items()},
        "installment_plans": {str(m): str(rate) for m, rate in INSTALLMENT_PLANS.items()},
    }


@app.get("/api/orders/{order_id}/payment")
def get_payment(order_id: str):
    """State of the order's payment flow, if one was started."""
    sf = get_storefront()
    sf.orders.get(order_id)
    flow = sf.payment_flow(order_id)
    return {"flow": flow.to_dict() if flow else None}


# Declared before /payments/{method} so these paths aren't read as methods.
@app.post("/api/orders/{order_id}/payments/cancel")
def cancel_payment(order_id: str):
    """Abort a payment that is still processing."""
    sf = get_storefront()
    sf.orders.get(order_id)
    return {"cancelled": sf.cancel_payment(order_id)}


@app.post("/api/orders/{order_id}/payments/retry")
def retry_payment(order_id: str):
    """Return a failed payment to its form; the order is pending again."""
    flow = get_storefront().retry_payment(order_id)
    return flow.to_dict()


@app.post("/api/orders/{order_id}/payments/{method}/begin")
def begin_payment(order_id: str, method: str):
    """
    Open a payment form for an order.

    Time-limited methods (e-wallet) start their countdown here. A later
    submit with the same method reuses this flow.
    """
    flow = get_storefront().begin_payment(order_id, method)
    return flow.to_dict()


@app.post("/api/orders/{order_id}/payments/{method}")
def submit_payment(order_id: str, method: str, details: dict[str, Any] = Body(default={})):
    """
    Pay for an order.

    Blocks for the simulated processing delay. A declined payment is a
    normal 200 response with stage "failed".
    """
    sf = get_storefront()
    attempt = sf.pay(order_id, method, details, cancel_token=CancelToken())
    return {
        "attempt": attempt.to_dict(),
        "order": order_to_dict(sf.orders.get(order_id)),
    }


@app.get("/api/invoices")
def list_invoices():
    """Invoices for paid orders."""
    orders = get_storefront().orders.invoices()
    return {
        "invoices": [
            {
                "invoice_number": o.invoice_number,
                "order_id": o.id,
                "order_number": o.order_number,
                "total": str(o.total),
                "paid_at": o.paid_at,
                "payment_method": o.payment_method.type,
            }
            for o in orders
        ],
        "count": len(orders),
    }


# --- Wishlist Endpoints ---


@app.get("/api/wishlist")
def get_wishlist():
    items = get_storefront().wishlist.items
    return {"items": [i.to_dict() for i in items], "count": len(items)}


@app.post("/api/wishlist", status_code=201)
def add_wishlist_item(request: WishlistAddRequest):
    """Save a catalog variant; saving it twice is a no-op."""
    sf = get_storefront()
    added = sf.add_to_wishlist(request.category_slug, request.sub_product_id, request.variant_id)
    return {"added": added, "count": len(sf.wishlist)}


@app.delete("/api/wishlist/{item_id}")
def remove_wishlist_item(item_id: str):
    sf = get_storefront()
    sf.wishlist.remove(item_id)
    return {"count": len(sf.wishlist)}


@app.post("/api/wishlist/{item_id}/move-to-cart")
def move_wishlist_item_to_cart(item_id: str):
    sf = get_storefront()
    item = sf.move_wishlist_item_to_cart(item_id)
    return {"item": item.to_dict(), **cart_to_dict(sf)}


@app.delete("/api/wishlist")
def clear_wishlist():
    sf = get_storefront()
    sf.wishlist.clear()
    return {"count": 0}


# --- Profile Endpoints ---


@app.get("/api/profile")
def get_profile():
    return profile_to_dict(get_storefront())


@app.patch("/api/profile")
def update_profile(changes: dict[str, Any] = Body(...)):
    """Change name, phone or company of the signed-in customer."""
    sf = get_storefront()
    sf.profile.update(changes)
    return profile_to_dict(sf)


@app.post("/api/profile/sign-in")
def sign_in(request: SignInRequest):
    sf = get_storefront()
    sf.profile.sign_in(CustomerProfile(id=_generate_id("usr_"), **request.model_dump()))
    return profile_to_dict(sf)


@app.post("/api/profile/sign-out")
def sign_out():
    sf = get_storefront()
    sf.profile.sign_out()
    return profile_to_dict(sf)


# --- Dashboard ---


@app.get("/api/dashboard")
def get_dashboard():
    return get_storefront().dashboard()
