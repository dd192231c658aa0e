"""Tests for form validation."""

import pytest

from storefront.errors import FormValidationError
from storefront.forms import BillEaseForm, CardForm, ShippingForm, parse_form

from .conftest import CARD, SHIPPING


class TestShippingForm:
    def test_valid(self):
        form = parse_form(ShippingForm, SHIPPING, "shipping")
        assert form.country == "Philippines"
        assert form.notes is None

    def test_phone_shape(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(ShippingForm, {**SHIPPING, "contact_number": "12ab"}, "shipping")
        assert "contact_number" in exc_info.value.errors

    def test_blank_required(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(ShippingForm, {**SHIPPING, "full_name": ""}, "shipping")
        assert exc_info.value.errors["full_name"] == "Full name is required"
        assert exc_info.value.form == "shipping"


class TestCardForm:
    def test_valid_strips_spaces(self):
        form = parse_form(CardForm, CARD, "card")
        assert form.card_number == "4111111111111111"

    @pytest.mark.parametrize("number", ["4111 1111 111", "4111-1111-1111-1111", "4" * 20])
    def test_bad_number(self, number):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(CardForm, {**CARD, "card_number": number}, "card")
        assert "card_number" in exc_info.value.errors

    @pytest.mark.parametrize("expiry", ["13/29", "1/29", "00/30", "1229"])
    def test_bad_expiry(self, expiry):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(CardForm, {**CARD, "expiry": expiry}, "card")
        assert "expiry" in exc_info.value.errors

    def test_cvv_messages(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(CardForm, {**CARD, "cvv": "12"}, "card")
        assert exc_info.value.errors["cvv"] == "Min 3 digits"

        with pytest.raises(FormValidationError) as exc_info:
            parse_form(CardForm, {**CARD, "cvv": "12345"}, "card")
        assert exc_info.value.errors["cvv"] == "Max 4 digits"

    def test_reports_every_field(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(CardForm, {}, "card")
        assert set(exc_info.value.errors) == {"card_number", "card_holder", "expiry", "cvv"}
        assert exc_info.value.errors["cvv"] == "CVV is required"


class TestBillEaseForm:
    def test_valid(self):
        form = parse_form(
            BillEaseForm, {"mobile_number": "09171234567", "agreed_to_terms": True}, "billease"
        )
        assert form.agreed_to_terms is True

    def test_terms_required(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(BillEaseForm, {"mobile_number": "09171234567"}, "billease")
        assert exc_info.value.errors == {"agreed_to_terms": "You must agree to BillEase terms"}

    def test_short_mobile(self):
        with pytest.raises(FormValidationError) as exc_info:
            parse_form(
                BillEaseForm, {"mobile_number": "0917", "agreed_to_terms": True}, "billease"
            )
        assert "mobile_number" in exc_info.value.errors
