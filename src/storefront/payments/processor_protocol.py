"""Protocol definition for payment processors."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..models import Order


class CancelToken:
    """Cancellation signal for a pending payment.

    Owned by whatever started the payment; cancelling wakes a processor that
    is waiting out its delay.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to seconds. Returns True if cancelled meanwhile."""
        return self._event.wait(seconds)


@dataclass(frozen=True)
class PaymentOutcome:
    """What a processor decided for one payment attempt."""

    success: bool
    reason: str | None = None  # "declined", "expired", ...


class PaymentProcessor(Protocol):
    """Protocol for payment processors.

    A processor only decides success or failure. It never touches orders,
    the cart or the checkout session; PaymentFlow applies the outcome.
    """

    def process(self, order: Order, amount: Decimal, cancel_token: CancelToken) -> PaymentOutcome:
        """Resolve one payment attempt.

        Args:
            order: The order being paid.
            amount: Amount to charge.
            cancel_token: Checked while waiting; cancellation aborts.

        Returns:
            The outcome of the attempt.

        Raises:
            PaymentCancelledError: If cancel_token fires before resolution.
        """
        ...
