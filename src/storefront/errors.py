"""Custom exceptions for storefront."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class InvalidSchemaVersionError(StorefrontError):
    """Raised when persisted data has an unsupported schema version."""

    def __init__(self, key: str, found: int, supported: int):
        self.key = key
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found} for '{key}'. "
            f"This version supports {supported}."
        )


class FormValidationError(StorefrontError):
    """Raised when submitted form data fails field validation.

    ``errors`` maps each offending field to its message, in the order the
    fields were checked.
    """

    def __init__(self, form: str, errors: dict[str, str]):
        self.form = form
        self.errors = errors
        fields = ", ".join(errors)
        super().__init__(f"Invalid {form} data: {fields}")


class CheckoutStepError(StorefrontError):
    """Raised when a checkout step is entered before its prerequisites."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"Cannot go to checkout step '{step}': {reason}")


class EmptyCartError(StorefrontError):
    """Raised when checking out with nothing in the cart."""

    def __init__(self):
        super().__init__("Cart is empty")


class OrderNotFoundError(StorefrontError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class AddressNotFoundError(StorefrontError):
    """Raised when an address ID doesn't exist."""

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f"Address not found: {address_id}")


class WishlistItemNotFoundError(StorefrontError):
    """Raised when a wishlist item ID doesn't exist."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Wishlist item not found: {item_id}")


class InvalidDeliveryTransitionError(StorefrontError):
    """Raised when a delivery status change skips or reverses a stage."""

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Order {order_id} cannot move from '{current}' to '{requested}'"
        )


class CatalogNotFoundError(StorefrontError):
    """Raised when a catalog path doesn't resolve.

    ``fallback`` is the closest route that does exist.
    """

    def __init__(self, what: str, fallback: str):
        self.what = what
        self.fallback = fallback
        super().__init__(f"{what} not found (fallback: {fallback})")


class UnsupportedPaymentMethodError(StorefrontError):
    """Raised when no gateway is registered for a payment method."""

    def __init__(self, method: str, supported: list[str]):
        self.method = method
        self.supported = supported
        super().__init__(
            f"Unsupported payment method '{method}'. "
            f"Supported: {', '.join(supported) or 'none'}"
        )


class PaymentCancelledError(StorefrontError):
    """Raised when a pending payment is cancelled before it resolves."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Payment for order {order_id} was cancelled")


class InvalidStatusError(StorefrontError):
    """Raised when a status value is not one of the allowed values."""

    def __init__(self, kind: str, value: str, allowed: tuple[str, ...]):
        self.kind = kind
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Invalid {kind} '{value}'. Expected one of: {', '.join(allowed)}"
        )


class PaymentStateError(StorefrontError):
    """Raised when a payment action doesn't fit the flow's current stage."""

    def __init__(self, order_id: str, stage: str, action: str):
        self.order_id = order_id
        self.stage = stage
        self.action = action
        super().__init__(f"Cannot {action} payment for order {order_id} while {stage}")


class NotSignedInError(StorefrontError):
    """Raised when an account action needs a signed-in customer."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Sign in to {action}")


class ProfileIncompleteError(StorefrontError):
    """Raised when an order is placed before the profile has a name and phone."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Complete your profile first: {', '.join(missing)} required")
