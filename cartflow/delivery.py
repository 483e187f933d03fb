"""
Delivery details — validated shipping information.

`DeliveryData` is raw caller input; `DeliveryDetails` is the immutable value
object produced only by `DeliveryDetails.create`, which returns a Result
instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from kungfu import Result, Ok, Error

from cartflow.config import DeliveryFormat
from cartflow.errors import DeliveryDetailsInvalidError

_DEFAULT_FORMAT = DeliveryFormat()


@dataclass(frozen=True, slots=True)
class DeliveryData:
    """Unvalidated delivery input as supplied by the caller."""

    address: str
    city: str
    postal_code: str
    phone: str
    instructions: str | None = None


@dataclass(frozen=True, slots=True)
class DeliveryDetails:
    """Validated shipping information. Equality is structural."""

    address: str
    city: str
    postal_code: str
    phone: str
    instructions: str | None = None

    @classmethod
    def create(
        cls,
        data: DeliveryData,
        fmt: DeliveryFormat = _DEFAULT_FORMAT,
    ) -> Result[DeliveryDetails, DeliveryDetailsInvalidError]:
        """Normalize (strip) and validate; no object is produced on failure."""
        address = (data.address or "").strip()
        city = (data.city or "").strip()
        postal_code = (data.postal_code or "").strip()
        phone = (data.phone or "").strip()
        instructions = (data.instructions or "").strip() or None

        if len(address) < fmt.address_min:
            return _invalid(f"Address must be at least {fmt.address_min} characters", "address")
        if len(address) > fmt.address_max:
            return _invalid(f"Address cannot exceed {fmt.address_max} characters", "address")
        if len(city) < fmt.city_min:
            return _invalid("City is required", "city")
        if len(city) > fmt.city_max:
            return _invalid(f"City cannot exceed {fmt.city_max} characters", "city")
        if not fmt.postal_code.fullmatch(postal_code):
            return _invalid(f"Postal code must be {fmt.postal_code_hint}", "postal_code")
        if not phone:
            return _invalid("Phone is required", "phone")
        if not fmt.phone.fullmatch(phone):
            return _invalid("Invalid phone format", "phone")
        if instructions is not None and len(instructions) > fmt.instructions_max:
            return _invalid(
                f"Instructions cannot exceed {fmt.instructions_max} characters", "instructions"
            )

        return Ok(cls(address, city, postal_code, phone, instructions))

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "phone": self.phone,
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        fmt: DeliveryFormat = _DEFAULT_FORMAT,
    ) -> Result[DeliveryDetails, DeliveryDetailsInvalidError]:
        return cls.create(
            DeliveryData(
                address=data.get("address", ""),
                city=data.get("city", ""),
                postal_code=data.get("postal_code", ""),
                phone=data.get("phone", ""),
                instructions=data.get("instructions"),
            ),
            fmt,
        )


def _invalid(message: str, field: str) -> Result[DeliveryDetails, DeliveryDetailsInvalidError]:
    return Error(DeliveryDetailsInvalidError(message, {"field": field}))


__all__ = ("DeliveryData", "DeliveryDetails")
