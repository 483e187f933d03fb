"""Tests for DeliveryDetails value object."""

import re

from cartflow.config import DeliveryFormat
from cartflow.delivery import DeliveryData, DeliveryDetails
from cartflow.errors import DeliveryDetailsInvalidError

from tests.conftest import err, ok


def _data(**overrides):
    fields = dict(
        address="Av. Corrientes 1234",
        city="Buenos Aires",
        postal_code="1043",
        phone="+54911234567",
        instructions="Timbre 2B",
    )
    fields.update(overrides)
    return DeliveryData(**fields)


class TestDeliveryDetailsCreate:
    def test_valid_details(self):
        details = ok(DeliveryDetails.create(_data()))
        assert details.address == "Av. Corrientes 1234"
        assert details.postal_code == "1043"
        assert details.instructions == "Timbre 2B"

    def test_strips_whitespace(self):
        details = ok(DeliveryDetails.create(_data(address="  Av. Corrientes 1234  ", city=" Buenos Aires ")))
        assert details.address == "Av. Corrientes 1234"
        assert details.city == "Buenos Aires"

    def test_blank_instructions_become_none(self):
        details = ok(DeliveryDetails.create(_data(instructions="   ")))
        assert details.instructions is None

    def test_short_address(self):
        e = err(DeliveryDetails.create(_data(address="Av")))
        assert isinstance(e, DeliveryDetailsInvalidError)
        assert e.context["field"] == "address"

    def test_missing_city(self):
        e = err(DeliveryDetails.create(_data(city="")))
        assert e.context["field"] == "city"

    def test_postal_code_must_be_four_digits(self):
        e = err(DeliveryDetails.create(_data(postal_code="C1043")))
        assert e.context["field"] == "postal_code"
        assert "4 digits" in e.message

    def test_missing_phone(self):
        e = err(DeliveryDetails.create(_data(phone="")))
        assert e.message == "Phone is required"

    def test_invalid_phone(self):
        e = err(DeliveryDetails.create(_data(phone="call me")))
        assert e.context["field"] == "phone"

    def test_instructions_too_long(self):
        e = err(DeliveryDetails.create(_data(instructions="x" * 501)))
        assert e.context["field"] == "instructions"

    def test_custom_format(self):
        fmt = DeliveryFormat(postal_code=re.compile(r"^\d{5}$"), postal_code_hint="5 digits")
        assert ok(DeliveryDetails.create(_data(postal_code="10001"), fmt)).postal_code == "10001"
        assert "5 digits" in err(DeliveryDetails.create(_data(), fmt)).message


class TestDeliveryDetailsEquality:
    def test_structural_equality(self):
        assert ok(DeliveryDetails.create(_data())) == ok(DeliveryDetails.create(_data()))

    def test_dict_roundtrip(self):
        details = ok(DeliveryDetails.create(_data()))
        assert ok(DeliveryDetails.from_dict(details.to_dict())) == details
