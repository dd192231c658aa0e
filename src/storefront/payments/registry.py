"""Registry for payment gateways."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from ..errors import UnsupportedPaymentMethodError

if TYPE_CHECKING:
    from .gateways import Gateway

# Global registry state
_gateway_factories: dict[str, Callable[[], Gateway]] = {}


def register_method(method: str, factory: Callable[[], Gateway]) -> None:
    """Register a gateway factory for a payment method.

    Args:
        method: Payment method type (e.g., "card", "ewallet").
        factory: Callable that returns a Gateway instance.
    """
    _gateway_factories[method] = factory


def get_gateway(method: str) -> Gateway:
    """Get a fresh gateway for a payment method.

    Raises:
        UnsupportedPaymentMethodError: If no gateway is registered.
    """
    factory = _gateway_factories.get(method)
    if factory is None:
        raise UnsupportedPaymentMethodError(method, supported_methods())
    return factory()


def supported_methods() -> list[str]:
    """Registered payment methods, in registration order."""
    return list(_gateway_factories)
