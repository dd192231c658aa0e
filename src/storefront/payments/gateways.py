"""Per-method payment gateways.

A gateway knows how to validate the input of one payment method, what to
record about it on the order, and how to mint a transaction reference. It
does not decide outcomes.
"""

import os
import random
import string
import time
from decimal import Decimal
from typing import Any

from ..errors import FormValidationError
from ..forms import BillEaseForm, CardForm, digits, parse_form
from ..models import CENTS

# Can be overridden via STOREFRONT_EWALLET_TIMEOUT environment variable
EWALLET_TIMEOUT = float(os.environ.get("STOREFRONT_EWALLET_TIMEOUT", "300"))

EWALLET_PROVIDERS = {
    "gcash": "GCash",
    "maya": "Maya",
    "grabpay": "GrabPay",
    "shopeepay": "ShopeePay",
}

BANKS = {
    "bdo": ("BDO", "BDO Unibank"),
    "bpi": ("BPI", "Bank of the Philippine Islands"),
    "metrobank": ("MBTC", "Metropolitan Bank & Trust"),
    "unionbank": ("UBP", "Union Bank of the Philippines"),
    "securitybank": ("SBC", "Security Bank Corporation"),
    "landbank": ("LBP", "Land Bank of the Philippines"),
    "pnb": ("PNB", "Philippine National Bank"),
    "rcbc": ("RCBC", "Rizal Commercial Banking Corp"),
    "chinabank": ("CBC", "China Banking Corporation"),
}

# months -> interest rate in percent
INSTALLMENT_PLANS = {3: Decimal("0"), 6: Decimal("3.49"), 9: Decimal("5.49"), 12: Decimal("7.49")}

_REF_ALPHABET = string.digits + string.ascii_uppercase


def card_brand(card_number: str) -> str | None:
    """Guess the card network from the leading digits."""
    num = digits(card_number)
    if num.startswith("4"):
        return "VISA"
    if num.startswith(("5", "2")):
        return "MASTERCARD"
    if num.startswith("35"):
        return "JCB"
    if num.startswith("3"):
        return "AMEX"
    return None


def billease_quote(amount: Decimal, months: int) -> dict[str, Any]:
    """Total with interest and monthly payment for an installment plan."""
    rate = INSTALLMENT_PLANS[months]
    total = (amount * (1 + rate / 100)).quantize(CENTS)
    return {
        "months": months,
        "interest_rate": str(rate),
        "total_with_interest": str(total),
        "monthly_payment": str((total / months).quantize(CENTS)),
    }


class Gateway:
    """Base gateway. Subclasses set method and implement validate()."""

    method = ""
    label = ""
    reference_prefix = "TXN"
    timeout: float | None = None  # seconds from start to resolution, if limited

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def validate(self, details: dict[str, Any], amount: Decimal) -> dict[str, Any]:
        """
        Check method-specific input.

        Returns:
            Details to record on the order's payment method.

        Raises:
            FormValidationError: If the input is invalid.
        """
        raise NotImplementedError

    def new_reference(self) -> str:
        """Time-based transaction reference with a random suffix."""
        suffix = "".join(self.rng.choice(_REF_ALPHABET) for _ in range(6))
        return f"{self.reference_prefix}{time.time_ns() // 1_000_000}{suffix}"


class CardGateway(Gateway):
    method = "card"
    label = "Credit / Debit Card"

    def validate(self, details: dict[str, Any], amount: Decimal) -> dict[str, Any]:
        form = parse_form(CardForm, details, "card")
        return {
            "card_brand": card_brand(form.card_number),
            "card_last4": form.card_number[-4:],
            "card_holder": form.card_holder,
        }


class EWalletGateway(Gateway):
    method = "ewallet"
    label = "E-Wallet"

    def __init__(self, rng: random.Random | None = None, timeout: float | None = None):
        super().__init__(rng)
        self.timeout = EWALLET_TIMEOUT if timeout is None else timeout

    def validate(self, details: dict[str, Any], amount: Decimal) -> dict[str, Any]:
        provider = (details.get("provider") or "").lower()
        if provider not in EWALLET_PROVIDERS:
            raise FormValidationError(
                "ewallet", {"provider": f"Select one of: {', '.join(EWALLET_PROVIDERS)}"}
            )
        return {"ewallet_provider": provider}


class BankTransferGateway(Gateway):
    method = "bank_transfer"
    label = "Online Banking"

    def validate(self, details: dict[str, Any], amount: Decimal) -> dict[str, Any]:
        bank = (details.get("bank") or "").lower()
        if bank not in BANKS:
            raise FormValidationError(
                "bank_transfer", {"bank": f"Select one of: {', '.join(BANKS)}"}
            )
        code, name = BANKS[bank]
        return {"bank_code": code, "bank_name": name}


class BillEaseGateway(Gateway):
    method = "billease"
    label = "BillEase"
    reference_prefix = "BE"

    def validate(self, details: dict[str, Any], amount: Decimal) -> dict[str, Any]:
        errors: dict[str, str] = {}
        try:
            months = int(details.get("months", 3))
        except (TypeError, ValueError):
            months = 0
        if months not in INSTALLMENT_PLANS:
            errors["months"] = f"Choose one of: {', '.join(str(m) for m in INSTALLMENT_PLANS)}"
        try:
            form = parse_form(BillEaseForm, details, "billease")
        except FormValidationError as e:
            raise FormValidationError("billease", {**e.errors, **errors}) from e
        if errors:
            raise FormValidationError("billease", errors)

        quote = billease_quote(amount, months)
        return {
            "mobile_number": form.mobile_number,
            "installment_months": months,
            "interest_rate": quote["interest_rate"],
            "total_with_interest": quote["total_with_interest"],
            "monthly_payment": quote["monthly_payment"],
        }
