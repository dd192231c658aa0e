"""Simulated payment gateways for storefront."""

from .flow import PaymentAttempt, PaymentFlow
from .gateways import (
    BANKS,
    EWALLET_PROVIDERS,
    INSTALLMENT_PLANS,
    BankTransferGateway,
    BillEaseGateway,
    CardGateway,
    EWalletGateway,
    Gateway,
    billease_quote,
    card_brand,
)
from .processor_protocol import CancelToken, PaymentOutcome, PaymentProcessor
from .processors import FixedOutcomeProcessor, SimulatedProcessor
from .registry import get_gateway, register_method, supported_methods

# Register built-in gateways
register_method("card", CardGateway)
register_method("ewallet", EWalletGateway)
register_method("bank_transfer", BankTransferGateway)
register_method("billease", BillEaseGateway)

__all__ = [
    # Core types
    "CancelToken",
    "PaymentOutcome",
    "PaymentProcessor",
    "PaymentAttempt",
    "PaymentFlow",
    # Processors
    "SimulatedProcessor",
    "FixedOutcomeProcessor",
    # Gateways
    "Gateway",
    "CardGateway",
    "EWalletGateway",
    "BankTransferGateway",
    "BillEaseGateway",
    "BANKS",
    "EWALLET_PROVIDERS",
    "INSTALLMENT_PLANS",
    "billease_quote",
    "card_brand",
    # Registry functions
    "register_method",
    "get_gateway",
    "supported_methods",
]
