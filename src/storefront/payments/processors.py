"""Payment processors: the random-outcome simulator and a fixed-outcome double."""

from __future__ import annotations

import logging
import os
import random
from decimal import Decimal
from typing import TYPE_CHECKING

from ..errors import PaymentCancelledError
from .processor_protocol import CancelToken, PaymentOutcome

if TYPE_CHECKING:
    from ..models import Order

logger = logging.getLogger(__name__)

# Can be overridden via STOREFRONT_PAYMENT_DELAY / STOREFRONT_PAYMENT_SUCCESS_RATE
PAYMENT_DELAY = float(os.environ.get("STOREFRONT_PAYMENT_DELAY", "3.0"))
SUCCESS_RATE = float(os.environ.get("STOREFRONT_PAYMENT_SUCCESS_RATE", "0.9"))


class SimulatedProcessor:
    """Waits a fixed delay, then succeeds with probability success_rate.

    The draw is independent of the order and the payment details.
    """

    def __init__(
        self,
        delay: float | None = None,
        success_rate: float | None = None,
        rng: random.Random | None = None,
    ):
        self.delay = PAYMENT_DELAY if delay is None else delay
        self.success_rate = SUCCESS_RATE if success_rate is None else success_rate
        self.rng = rng or random.Random()

    def process(self, order: Order, amount: Decimal, cancel_token: CancelToken) -> PaymentOutcome:
        logger.info("Processing %s for order %s (%.1fs)", amount, order.id, self.delay)
        if cancel_token.wait(self.delay):
            raise PaymentCancelledError(order.id)
        if self.rng.random() < self.success_rate:
            return PaymentOutcome(success=True)
        return PaymentOutcome(success=False, reason="declined")


class FixedOutcomeProcessor:
    """Resolves every payment immediately to a configured outcome."""

    def __init__(self, success: bool = True, reason: str | None = None):
        self.success = success
        self.reason = reason if reason or success else "declined"
        self.calls: list[tuple[str, Decimal]] = []

    def process(self, order: Order, amount: Decimal, cancel_token: CancelToken) -> PaymentOutcome:
        self.calls.append((order.id, amount))
        if cancel_token.cancelled:
            raise PaymentCancelledError(order.id)
        return PaymentOutcome(success=self.success, reason=self.reason)
