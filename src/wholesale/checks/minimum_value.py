"""Minimum order value check"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from src.core.math.money import (
    DEFAULT_CURRENCY,
    AmountLike,
    format_decimal,
    normalize_currency,
    to_major_units,
    to_minor_units,
)
from src.core.math.numerical_safeguards import validate_non_negative


@dataclass(frozen=True)
class MinimumValueValidation:
    met: bool
    current_value: Decimal
    minimum_value: Decimal
    shortfall: Decimal
    currency: str = DEFAULT_CURRENCY

    @property
    def message(self) -> str:
        return (
            f"Minimum order value not met. Required: {self.minimum_value} {self.currency}, "
            f"Current: {self.current_value} {self.currency}, "
            f"Shortfall: {self.shortfall} {self.currency}"
        )

    def to_contract(self) -> dict[str, Any]:
        return {
            "met": self.met,
            "current_value": format_decimal(self.current_value),
            "minimum_value": format_decimal(self.minimum_value),
            "shortfall": format_decimal(self.shortfall),
        }


def validate_minimum_value(
    current_value: AmountLike,
    minimum_value: AmountLike,
    currency: str = DEFAULT_CURRENCY,
) -> MinimumValueValidation:
    """met = current >= minimum; shortfall = max(0, minimum - current)."""
    code = normalize_currency(currency)
    current_minor = to_minor_units(validate_non_negative(current_value, "current_value"), code)
    minimum_minor = to_minor_units(validate_non_negative(minimum_value, "minimum_value"), code)

    return MinimumValueValidation(
        met=current_minor >= minimum_minor,
        current_value=to_major_units(current_minor, code),
        minimum_value=to_major_units(minimum_minor, code),
        shortfall=to_major_units(max(0, minimum_minor - current_minor), code),
        currency=code,
    )
