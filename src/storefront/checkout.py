"""Checkout session: the shipping -> billing -> payment steps."""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

from .errors import CheckoutStepError
from .forms import BillingForm, ShippingForm, parse_form
from .models import BillingAddress, ShippingAddress

logger = logging.getLogger(__name__)

STEPS = ("shipping", "billing", "payment")


class CheckoutSession:
    """Staging area for an in-progress checkout.

    The session is linear. A step can be revisited at any time for edits, but
    never entered ahead of the furthest step already validated. Snapshots
    are only stored after their form validates, so a rejected submission
    leaves the session exactly as it was. Nothing here is persisted.
    """

    def __init__(self, lock: threading.RLock | None = None) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self.step = "shipping"
        self.shipping: ShippingAddress | None = None
        self.billing: BillingAddress | None = None
        self._furthest = 0

    @property
    def furthest_step(self) -> str:
        return STEPS[self._furthest]

    @property
    def ready_for_payment(self) -> bool:
        return self.shipping is not None and self.billing is not None

    def _advance(self, step: str) -> None:
        self.step = step
        self._furthest = max(self._furthest, STEPS.index(step))

    def submit_shipping(self, data: Any) -> ShippingAddress:
        """
        Validate and store the shipping snapshot, then move to billing.

        Raises:
            FormValidationError: If any field is invalid.
        """
        form = parse_form(ShippingForm, data, "shipping")
        with self._lock:
            self.shipping = ShippingAddress(**form.model_dump())
            # A billing copy taken from the old shipping data would now be stale.
            if self.billing is not None and self.billing.same_as_shipping:
                self.billing = BillingAddress.copy_of(self.shipping)
            self._advance("billing")
            return copy.deepcopy(self.shipping)

    def submit_billing(self, data: Any = None, same_as_shipping: bool = False) -> BillingAddress:
        """
        Store the billing snapshot, then move to payment.

        Args:
            data: Independently entered billing fields. Ignored when
                same_as_shipping is set.
            same_as_shipping: Copy the shipping snapshot instead.

        Raises:
            CheckoutStepError: If no shipping snapshot is stored yet.
            FormValidationError: If any field is invalid.
        """
        with self._lock:
            if self.shipping is None:
                raise CheckoutStepError("billing", "shipping details have not been submitted")

            if same_as_shipping:
                billing = BillingAddress.copy_of(self.shipping)
            else:
                form = parse_form(BillingForm, data, "billing")
                billing = BillingAddress(**form.model_dump(), same_as_shipping=False)

            self.billing = billing
            self._advance("payment")
            return copy.deepcopy(billing)

    def go_to(self, step: str) -> None:
        """
        Navigate to a step already reached, e.g. to edit it.

        Raises:
            CheckoutStepError: If the step is unknown, not reached yet, or is
                payment without both snapshots.
        """
        if step not in STEPS:
            raise CheckoutStepError(step, f"unknown step, expected one of {', '.join(STEPS)}")
        if STEPS.index(step) > self._furthest:
            raise CheckoutStepError(step, f"furthest step reached is '{self.furthest_step}'")
        if step == "payment" and not self.ready_for_payment:
            raise CheckoutStepError(step, "shipping and billing details are required")
        self.step = step

    def reset(self) -> None:
        """Clear both snapshots and return to the shipping step."""
        with self._lock:
            self.step = "shipping"
            self.shipping = None
            self.billing = None
            self._furthest = 0
        logger.debug("Checkout session reset")

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "furthest_step": self.furthest_step,
            "shipping": self.shipping.to_dict() if self.shipping else None,
            "billing": self.billing.to_dict() if self.billing else None,
        }
