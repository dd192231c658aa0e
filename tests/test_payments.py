"""Tests for payment gateways, processors and PaymentFlow."""

import random
import threading
import time
from decimal import Decimal

import pytest

from storefront.errors import (
    FormValidationError,
    PaymentCancelledError,
    PaymentStateError,
    UnsupportedPaymentMethodError,
)
from storefront.payments import (
    BankTransferGateway,
    BillEaseGateway,
    CancelToken,
    CardGateway,
    EWalletGateway,
    FixedOutcomeProcessor,
    PaymentFlow,
    PaymentOutcome,
    SimulatedProcessor,
    billease_quote,
    card_brand,
    get_gateway,
    supported_methods,
)

from .conftest import CARD, FakeClock


class ClockAdvancingProcessor:
    """Approves payments, but lets time pass while processing."""

    def __init__(self, clock: FakeClock, seconds: float):
        self.clock = clock
        self.seconds = seconds

    def process(self, order, amount, cancel_token):
        self.clock.advance(self.seconds)
        return PaymentOutcome(success=True)


def make_flow(sf, method: str, processor=None, clock=None, gateway=None) -> PaymentFlow:
    order = sf.place_order(method)
    kwargs = {"clock": clock} if clock is not None else {}
    return PaymentFlow(
        order.id,
        gateway or get_gateway(method),
        processor or sf.processor,
        sf.orders,
        sf.cart,
        sf.checkout,
        **kwargs,
    )


class TestRegistry:
    def test_builtin_methods(self):
        assert supported_methods() == ["card", "ewallet", "bank_transfer", "billease"]

    def test_unknown_method(self):
        with pytest.raises(UnsupportedPaymentMethodError) as exc_info:
            get_gateway("crypto")
        assert "card" in exc_info.value.supported

    def test_fresh_instances(self):
        assert get_gateway("card") is not get_gateway("card")


class TestGateways:
    @pytest.mark.parametrize("number,brand", [
        ("4111111111111111", "VISA"),
        ("5500 0000 0000 0004", "MASTERCARD"),
        ("3530111333300000", "JCB"),
        ("378282246310005", "AMEX"),
        ("6011111111111117", None),
    ])
    def test_card_brand(self, number, brand):
        assert card_brand(number) == brand

    def test_card_records_last4(self):
        recorded = CardGateway().validate(CARD, Decimal("100"))
        assert recorded == {"card_brand": "VISA", "card_last4": "1111", "card_holder": "JUAN DELA CRUZ"}

    def test_ewallet_provider(self):
        gateway = EWalletGateway()
        assert gateway.validate({"provider": "GCash"}, Decimal("1")) == {"ewallet_provider": "gcash"}
        with pytest.raises(FormValidationError):
            gateway.validate({"provider": "paypal"}, Decimal("1"))

    def test_ewallet_timeout(self):
        assert EWalletGateway().timeout == 300
        assert EWalletGateway(timeout=5).timeout == 5
        assert CardGateway().timeout is None

    def test_bank_transfer(self):
        recorded = BankTransferGateway().validate({"bank": "bpi"}, Decimal("1"))
        assert recorded["bank_code"] == "BPI"
        with pytest.raises(FormValidationError):
            BankTransferGateway().validate({}, Decimal("1"))

    def test_billease_quote(self):
        quote = billease_quote(Decimal("22400.00"), 6)
        assert quote["interest_rate"] == "3.49"
        assert quote["total_with_interest"] == "23181.76"
        assert quote["monthly_payment"] == "3863.63"

    def test_billease_zero_interest(self):
        quote = billease_quote(Decimal("22400.00"), 3)
        assert quote["total_with_interest"] == "22400.00"

    def test_billease_bad_months_and_terms(self):
        with pytest.raises(FormValidationError) as exc_info:
            BillEaseGateway().validate({"mobile_number": "09171234567", "months": 5}, Decimal("1"))
        assert set(exc_info.value.errors) == {"agreed_to_terms", "months"}

    def test_reference_format(self):
        ref = CardGateway(rng=random.Random(1)).new_reference()
        assert ref.startswith("TXN")
        assert ref[3:-6].isdigit()
        assert BillEaseGateway().new_reference().startswith("BE")


class TestProcessors:
    def test_simulated_success_rate_bounds(self):
        order = type("O", (), {"id": "ord_x"})()
        always = SimulatedProcessor(delay=0, success_rate=1.0)
        never = SimulatedProcessor(delay=0, success_rate=0.0)
        assert always.process(order, Decimal("1"), CancelToken()).success
        outcome = never.process(order, Decimal("1"), CancelToken())
        assert not outcome.success
        assert outcome.reason == "declined"

    def test_simulated_rate_roughly_ninety_percent(self):
        order = type("O", (), {"id": "ord_x"})()
        processor = SimulatedProcessor(delay=0, success_rate=0.9, rng=random.Random(42))
        wins = sum(processor.process(order, Decimal("1"), CancelToken()).success for _ in range(2000))
        assert 1700 < wins < 1900

    def test_simulated_cancel_interrupts_wait(self):
        order = type("O", (), {"id": "ord_x"})()
        processor = SimulatedProcessor(delay=30, success_rate=1.0)
        token = CancelToken()
        threading.Timer(0.05, token.cancel).start()

        started = time.monotonic()
        with pytest.raises(PaymentCancelledError):
            processor.process(order, Decimal("1"), token)
        assert time.monotonic() - started < 5


class TestPaymentFlow:
    def test_success_marks_paid_and_clears(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card")
        attempt = flow.submit(CARD)

        order = sf.orders.get(flow.order_id)
        assert attempt.success
        assert order.payment_status == "paid"
        assert order.paid_at is not None
        assert order.transaction_reference == attempt.transaction_reference
        assert order.payment_method.details["card_last4"] == "1111"
        assert sf.cart.is_empty
        assert sf.checkout.step == "shipping"

    def test_failure_marks_failed_keeps_cart(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card", processor=FixedOutcomeProcessor(success=False))
        attempt = flow.submit(CARD)

        assert not attempt.success
        assert attempt.reason == "declined"
        assert flow.stage == "failed"
        assert sf.orders.get(flow.order_id).payment_status == "failed"
        assert not sf.cart.is_empty
        assert sf.checkout.step == "payment"

    def test_retry_returns_to_pending(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card", processor=FixedOutcomeProcessor(success=False))
        flow.submit(CARD)
        flow.retry()

        assert flow.stage == "form"
        assert sf.orders.get(flow.order_id).payment_status == "pending"

        flow.processor = FixedOutcomeProcessor(success=True)
        assert flow.submit(CARD).success

    def test_retry_only_after_failure(self, ready_storefront):
        flow = make_flow(ready_storefront, "card")
        with pytest.raises(PaymentStateError):
            flow.retry()

    def test_invalid_details_leave_form_stage(self, ready_storefront):
        sf = ready_storefront
        processor = FixedOutcomeProcessor()
        flow = make_flow(sf, "card", processor=processor)
        with pytest.raises(FormValidationError):
            flow.submit({**CARD, "cvv": "1"})

        assert flow.stage == "form"
        assert processor.calls == []
        assert sf.orders.get(flow.order_id).payment_status == "pending"

    def test_cancel_leaves_order_untouched(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card", processor=SimulatedProcessor(delay=30, success_rate=1.0))
        result: dict = {}

        def run():
            try:
                flow.submit(CARD)
            except PaymentCancelledError as e:
                result["error"] = e

        worker = threading.Thread(target=run)
        worker.start()
        deadline = time.monotonic() + 5
        while flow.stage != "processing" and time.monotonic() < deadline:
            time.sleep(0.01)
        assert flow.cancel() is True
        worker.join(timeout=5)

        assert isinstance(result.get("error"), PaymentCancelledError)
        assert flow.stage == "form"
        order = sf.orders.get(flow.order_id)
        assert order.payment_status == "pending"
        assert order.payment_method.details == {}
        assert not sf.cart.is_empty

    def test_cancel_when_idle(self, ready_storefront):
        assert make_flow(ready_storefront, "card").cancel() is False

    def test_ewallet_expires(self, ready_storefront):
        sf = ready_storefront
        clock = FakeClock()
        flow = make_flow(sf, "ewallet", clock=clock)
        assert flow.remaining_time == 300

        clock.advance(301)
        assert flow.expired
        attempt = flow.submit({"provider": "gcash"})

        assert attempt.stage == "failed"
        assert attempt.reason == "expired"
        assert sf.orders.get(flow.order_id).payment_status == "failed"

    def test_ewallet_expires_while_processing(self, ready_storefront):
        sf = ready_storefront
        clock = FakeClock()
        flow = make_flow(
            sf, "ewallet", clock=clock, processor=ClockAdvancingProcessor(clock, 400)
        )
        attempt = flow.submit({"provider": "maya"})
        assert attempt.reason == "expired"

    def test_ewallet_in_time(self, ready_storefront):
        clock = FakeClock()
        flow = make_flow(ready_storefront, "ewallet", clock=clock)
        clock.advance(120)
        assert flow.remaining_time == 180
        assert flow.submit({"provider": "gcash"}).success

    def test_cannot_start_on_paid_order(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card")
        flow.submit(CARD)
        with pytest.raises(PaymentStateError):
            PaymentFlow(flow.order_id, get_gateway("card"), sf.processor, sf.orders, sf.cart, sf.checkout)

    def test_billease_records_installment(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "billease")
        flow.submit({"mobile_number": "09171234567", "agreed_to_terms": True, "months": "12"})

        details = sf.orders.get(flow.order_id).payment_method.details
        assert details["installment_months"] == 12
        assert details["interest_rate"] == "7.49"
        assert sf.orders.get(flow.order_id).transaction_reference.startswith("BE")

    def test_start_then_complete(self, ready_storefront):
        sf = ready_storefront
        flow = make_flow(sf, "card")
        flow.start(CARD)

        assert flow.stage == "processing"
        with pytest.raises(PaymentStateError):
            flow.start(CARD)
        assert flow.complete().success
        with pytest.raises(PaymentStateError):
            flow.complete()

    def test_late_decline_cannot_overwrite_paid(self, ready_storefront):
        sf = ready_storefront
        winner = make_flow(sf, "card")
        loser = PaymentFlow(
            winner.order_id,
            get_gateway("card"),
            FixedOutcomeProcessor(success=False),
            sf.orders,
            sf.cart,
            sf.checkout,
        )
        winner.submit(CARD)

        with pytest.raises(PaymentStateError):
            loser.submit(CARD)
        with pytest.raises(PaymentStateError):
            loser.retry()

        order = sf.orders.get(winner.order_id)
        assert order.payment_status == "paid"
        assert order.transaction_reference == winner.last_attempt.transaction_reference
        assert loser.stage == "failed"
