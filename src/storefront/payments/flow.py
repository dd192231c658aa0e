"""One order's payment through one method, from form to outcome."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from ..errors import PaymentCancelledError, PaymentStateError
from ..models import Order, PaymentMethod, _utc_now
from .processor_protocol import CancelToken, PaymentProcessor

if TYPE_CHECKING:
    from ..cart_store import CartStore
    from ..checkout import CheckoutSession
    from ..order_store import OrderStore
    from .gateways import Gateway

logger = logging.getLogger(__name__)

STAGES = ("form", "processing", "success", "failed")


@dataclass
class PaymentAttempt:
    """Result of submitting a payment."""

    order_id: str
    method: str
    stage: str  # "success" | "failed"
    transaction_reference: str
    reason: str | None = None
    paid_at: str | None = None

    @property
    def success(self) -> bool:
        return self.stage == "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "method": self.method,
            "stage": self.stage,
            "success": self.success,
            "transaction_reference": self.transaction_reference,
            "reason": self.reason,
            "paid_at": self.paid_at,
        }


class PaymentFlow:
    """Drives one payment method for one order.

    Stages go form -> processing -> success | failed. After a failure the
    caller can retry (back to form, order back to pending) or drop this flow
    and start another method, which leaves the order as it is. Cancelling
    while processing returns to the form stage without touching the order.
    """

    def __init__(
        self,
        order_id: str,
        gateway: Gateway,
        processor: PaymentProcessor,
        orders: OrderStore,
        cart: CartStore,
        checkout: CheckoutSession,
        clock: Callable[[], float] = time.monotonic,
        lock: threading.RLock | None = None,
    ):
        order = orders.get(order_id)
        if order.payment_status == "paid":
            raise PaymentStateError(order_id, "paid", "start")

        self.order_id = order_id
        self.gateway = gateway
        self.processor = processor
        self._orders = orders
        self._cart = cart
        self._checkout = checkout
        self._clock = clock
        self._lock = lock if lock is not None else threading.RLock()
        self.stage = "form"
        self.started_at = clock()
        self.last_attempt: PaymentAttempt | None = None
        self._token: CancelToken | None = None
        self._pending: tuple[Order, dict[str, Any], str] | None = None

    @property
    def method(self) -> str:
        return self.gateway.method

    @property
    def remaining_time(self) -> float | None:
        """Seconds left before the session expires, if the method has a limit."""
        if self.gateway.timeout is None:
            return None
        return max(0.0, self.gateway.timeout - (self._clock() - self.started_at))

    @property
    def expired(self) -> bool:
        remaining = self.remaining_time
        return remaining is not None and remaining <= 0

    def submit(self, details: dict[str, Any], cancel_token: CancelToken | None = None) -> PaymentAttempt:
        """
        Validate details and resolve the payment.

        Args:
            details: Method-specific input (card fields, provider, bank...).
            cancel_token: Token the caller can fire to abort while processing.

        Returns:
            The attempt, successful or not.

        Raises:
            PaymentStateError: If the flow is not at the form stage, or the
                order was paid by another flow meanwhile.
            FormValidationError: If details are invalid; the stage is unchanged.
            PaymentCancelledError: If cancelled before resolution.
        """
        with self._lock:
            self.start(details, cancel_token)
        return self.complete()

    def start(self, details: dict[str, Any], cancel_token: CancelToken | None = None) -> None:
        """
        Validate details and move from form to processing.

        Callers that must check other state in the same step hold the flow's
        lock around this call; ``submit`` does it for them.

        Raises:
            PaymentStateError: If the flow is not at the form stage.
            FormValidationError: If details are invalid; the stage is unchanged.
        """
        with self._lock:
            if self.stage != "form":
                raise PaymentStateError(self.order_id, self.stage, "submit")

            order = self._orders.get(self.order_id)
            recorded = self.gateway.validate(details, order.total)
            self._pending = (order, recorded, self.gateway.new_reference())
            self._token = cancel_token or CancelToken()
            self.stage = "processing"

    def complete(self) -> PaymentAttempt:
        """
        Wait for the processor and record the outcome on the order.

        The lock is not held while the processor waits, so ``cancel`` can
        reach the token.

        Raises:
            PaymentStateError: If the flow was not started, or the order was
                paid by another flow meanwhile.
            PaymentCancelledError: If cancelled before resolution.
        """
        if self.stage != "processing" or self._pending is None:
            raise PaymentStateError(self.order_id, self.stage, "complete")
        order, recorded, reference = self._pending

        try:
            if self.expired:
                logger.warning("Payment session for order %s expired before processing", self.order_id)
                return self._resolve(reference, recorded, success=False, reason="expired")

            try:
                outcome = self.processor.process(order, order.total, self._token)
            except PaymentCancelledError:
                with self._lock:
                    self.stage = "form"
                logger.info("Payment for order %s cancelled", self.order_id)
                raise

            if self.expired:
                logger.warning("Payment session for order %s expired while processing", self.order_id)
                return self._resolve(reference, recorded, success=False, reason="expired")
            return self._resolve(reference, recorded, outcome.success, outcome.reason)
        finally:
            self._token = None
            self._pending = None

    def _resolve(
        self, reference: str, recorded: dict[str, Any], success: bool, reason: str | None
    ) -> PaymentAttempt:
        with self._lock:
            if self._orders.get(self.order_id).payment_status == "paid":
                self.stage = "failed"
                logger.warning(
                    "Payment %s for order %s discarded: order is already paid",
                    reference, self.order_id,
                )
                raise PaymentStateError(self.order_id, "paid", "record")

            self._orders.set_payment_method(self.order_id, PaymentMethod(self.method, recorded))
            if success:
                paid_at = _utc_now()
                self._orders.update_payment_status(
                    self.order_id, "paid", paid_at=paid_at, transaction_reference=reference
                )
                self._cart.clear()
                self._checkout.reset()
                self.stage = "success"
            else:
                paid_at = None
                self._orders.update_payment_status(
                    self.order_id, "failed", transaction_reference=reference
                )
                self.stage = "failed"

        logger.info(
            "Payment %s for order %s via %s: %s",
            reference, self.order_id, self.method, self.stage,
        )
        self.last_attempt = PaymentAttempt(
            order_id=self.order_id,
            method=self.method,
            stage=self.stage,
            transaction_reference=reference,
            reason=reason,
            paid_at=paid_at,
        )
        return self.last_attempt

    def cancel(self) -> bool:
        """Abort a payment in progress. Returns False if nothing was pending."""
        token = self._token
        if token is None:
            return False
        token.cancel()
        return True

    def retry(self) -> None:
        """
        Go back to the form after a failure; the order is pending again.

        Raises:
            PaymentStateError: If the last attempt did not fail, or the order
                has been paid since.
        """
        with self._lock:
            if self.stage != "failed":
                raise PaymentStateError(self.order_id, self.stage, "retry")
            if self._orders.get(self.order_id).payment_status == "paid":
                raise PaymentStateError(self.order_id, "paid", "retry")
            self._orders.update_payment_status(self.order_id, "pending")
            self.stage = "form"
            self.started_at = self._clock()

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "method": self.method,
            "stage": self.stage,
            "remaining_time": self.remaining_time,
            "last_attempt": self.last_attempt.to_dict() if self.last_attempt else None,
        }
