"""Field validation for checkout and payment forms."""

import re
from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import FormValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")
EXPIRY_RE = re.compile(r"^\d{2}/\d{2}$")

FIELD_LABELS = {
    "full_name": "Full name",
    "contact_number": "Contact number",
    "email": "Email",
    "street_address": "Street address",
    "barangay": "Barangay",
    "city": "City",
    "province": "Province",
    "postal_code": "Postal code",
    "country": "Country",
    "card_number": "Card number",
    "card_holder": "Cardholder name",
    "expiry": "Expiry",
    "cvv": "CVV",
    "mobile_number": "Mobile number",
    "agreed_to_terms": "Terms agreement",
    "first_name": "First name",
    "last_name": "Last name",
    "phone": "Phone number",
    "company": "Company",
}

FormT = TypeVar("FormT", bound=BaseModel)


def digits(value: str) -> str:
    """Strip everything but digits."""
    return re.sub(r"\D", "", value or "")


def _required(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("is required")
    return value


class ShippingForm(BaseModel):
    full_name: str
    contact_number: str
    email: str
    street_address: str
    barangay: str
    city: str
    province: str
    postal_code: str
    country: str = "Philippines"
    notes: str | None = None

    @field_validator(
        "full_name", "street_address", "barangay", "city", "province", "postal_code", "country"
    )
    @classmethod
    def _not_blank(cls, v: str) -> str:
        return _required(v)

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        v = _required(v)
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email")
        return v

    @field_validator("contact_number")
    @classmethod
    def _phone_shape(cls, v: str) -> str:
        v = _required(v)
        if not PHONE_RE.match(v) or not 7 <= len(digits(v)) <= 15:
            raise ValueError("Enter a valid contact number")
        return v


class BillingForm(ShippingForm):
    pass


class CardForm(BaseModel):
    card_number: str
    card_holder: str
    expiry: str
    cvv: str

    @field_validator("card_number")
    @classmethod
    def _card_length(cls, v: str) -> str:
        clean = _required(v).replace(" ", "")
        if not clean.isdigit() or not 13 <= len(clean) <= 19:
            raise ValueError("Enter a valid card number")
        return clean

    @field_validator("card_holder")
    @classmethod
    def _holder(cls, v: str) -> str:
        return _required(v)

    @field_validator("expiry")
    @classmethod
    def _expiry_format(cls, v: str) -> str:
        v = _required(v)
        if not EXPIRY_RE.match(v) or not 1 <= int(v[:2]) <= 12:
            raise ValueError("Enter a valid expiry (MM/YY)")
        return v

    @field_validator("cvv")
    @classmethod
    def _cvv_length(cls, v: str) -> str:
        v = _required(v)
        if not v.isdigit():
            raise ValueError("Digits only")
        if len(v) < 3:
            raise ValueError("Min 3 digits")
        if len(v) > 4:
            raise ValueError("Max 4 digits")
        return v


class BillEaseForm(BaseModel):
    mobile_number: str
    agreed_to_terms: bool = Field(default=False, validate_default=True)

    @field_validator("mobile_number")
    @classmethod
    def _mobile_length(cls, v: str) -> str:
        v = _required(v)
        if not 10 <= len(digits(v)) <= 12:
            raise ValueError("Enter a valid mobile number")
        return v

    @field_validator("agreed_to_terms")
    @classmethod
    def _agreed(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must agree to BillEase terms")
        return v


class ProfileForm(BaseModel):
    """Account edits. Only the fields sent are changed."""

    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _not_blank(cls, v: str | None) -> str | None:
        return None if v is None else _required(v)

    @field_validator("phone")
    @classmethod
    def _phone_shape(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = _required(v)
        if not PHONE_RE.match(v) or not 7 <= len(digits(v)) <= 15:
            raise ValueError("Enter a valid phone number")
        return v

    @field_validator("company")
    @classmethod
    def _strip(cls, v: str | None) -> str | None:
        return None if v is None else v.strip()


def _message(field: str, error: dict[str, Any]) -> str:
    label = FIELD_LABELS.get(field, field)
    if error["type"] == "missing":
        return f"{label} is required"
    msg = error["msg"].removeprefix("Value error, ")
    if msg == "is required":
        return f"{label} is required"
    return msg


def parse_form(form_cls: type[FormT], data: Any, form_name: str) -> FormT:
    """
    Validate raw form data.

    Args:
        form_cls: The form model to validate against.
        data: A mapping of field values, or an already-built form.
        form_name: Name used in the error message ("shipping", "card", ...).

    Raises:
        FormValidationError: With one message per offending field.
    """
    if isinstance(data, form_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    elif hasattr(data, "to_dict"):
        data = data.to_dict()
    try:
        return form_cls.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for err in e.errors():
            field = str(err["loc"][0]) if err["loc"] else "__root__"
            errors.setdefault(field, _message(field, err))
        raise FormValidationError(form_name, errors) from e
