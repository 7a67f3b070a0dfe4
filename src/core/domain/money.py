"""
Money — immutable monetary value object

Immutable Pydantic model pairing a Decimal amount with an ISO 4217 code.
The amount is always held at the currency's canonical precision; arithmetic
is delegated to integer minor units so sums never drift.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.errors import CurrencyMismatchError
from src.core.math.money import (
    DEFAULT_CURRENCY,
    AmountLike,
    currency_quantum,
    normalize_currency,
    round_money,
    to_major_units,
    to_minor_units,
)


class Money(BaseModel):
    """
    Monetary amount in a single currency.

    Immutable model (frozen=True). Construct with Money.of() when the input
    may carry extra precision; the plain constructor rejects it.
    """

    currency: str = Field(DEFAULT_CURRENCY, description="ISO 4217 code")
    amount: Decimal = Field(..., description="Amount in major units")

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        """Unknown codes raise UnknownCurrencyError straight through."""
        return normalize_currency(v)

    @field_validator("amount")
    @classmethod
    def validate_precision(cls, v: Decimal, info) -> Decimal:
        """Amount must already sit at the currency's precision."""
        if not v.is_finite():
            raise ValueError(f"amount must be finite, got {v}")
        currency = info.data.get("currency", DEFAULT_CURRENCY)
        quantized = v.quantize(currency_quantum(currency))
        if quantized != v:
            raise ValueError(
                f"amount {v} exceeds {currency} precision ({currency_quantum(currency)})"
            )
        return quantized

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def of(cls, amount: AmountLike, currency: str = DEFAULT_CURRENCY) -> "Money":
        """Build from any numeric input, rounding once to the currency precision."""
        return cls(currency=currency, amount=round_money(amount, currency))

    @classmethod
    def from_minor(cls, minor_units: int, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(currency=currency, amount=to_major_units(minor_units, currency))

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls.from_minor(0, currency)

    # -------------------------------------------------------------------------
    # Arithmetic (minor units)
    # -------------------------------------------------------------------------

    @property
    def minor_units(self) -> int:
        return to_minor_units(self.amount, self.currency)

    def _require_same_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def __add__(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money.from_minor(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._require_same_currency(other)
        return Money.from_minor(self.minor_units - other.minor_units, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._require_same_currency(other)
        return self.minor_units < other.minor_units

    def __le__(self, other: "Money") -> bool:
        self._require_same_currency(other)
        return self.minor_units <= other.minor_units

    def times(self, quantity: int) -> "Money":
        """Exact integer multiple (line totals)."""
        return Money.from_minor(self.minor_units * quantity, self.currency)

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
