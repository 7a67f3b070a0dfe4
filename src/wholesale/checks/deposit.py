"""Deposit / balance split for wholesale orders

calculate_deposit: deposit = round(order_value * pct / 100), balance = rest
calculate_balance: remaining after a deposit payment, clamped at zero

Both work in integer minor units of the order currency.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.core.math.money import (
    DEFAULT_CURRENCY,
    HUNDRED,
    AmountLike,
    format_decimal,
    normalize_currency,
    percent_of_minor,
    to_major_units,
    to_minor_units,
)
from src.core.math.numerical_safeguards import (
    clamp_int,
    safe_divide,
    validate_non_negative,
    validate_percentage,
)

# balance_percentage is reported to two decimals
PERCENT_QUANTUM = Decimal("0.01")


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class DepositCalculation:
    """Deposit due up front and balance due later."""

    order_value: Decimal
    deposit_percentage: Decimal
    deposit_amount: Decimal
    balance_amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def to_contract(self) -> dict[str, Any]:
        return {
            "order_value": format_decimal(self.order_value),
            "deposit_percentage": format_decimal(self.deposit_percentage),
            "deposit_amount": format_decimal(self.deposit_amount),
            "balance_amount": format_decimal(self.balance_amount),
        }


@dataclass(frozen=True)
class BalanceCalculation:
    """Outstanding balance after a deposit payment."""

    order_value: Decimal
    deposit_paid: Decimal
    balance_remaining: Decimal
    balance_percentage: Decimal
    currency: str = DEFAULT_CURRENCY


# =============================================================================
# CHECKS
# =============================================================================


def calculate_deposit(
    order_value: AmountLike,
    deposit_percentage: AmountLike,
    currency: str = DEFAULT_CURRENCY,
) -> DepositCalculation:
    """
    Split an order value into deposit and balance.

    Args:
        order_value: Order value in major units (>= 0)
        deposit_percentage: 0..100
        currency: ISO code of the order

    Returns:
        DepositCalculation with deposit_amount + balance_amount == order_value

    Raises:
        InvalidAmountError: Negative order value or percentage out of range

    Examples:
        >>> calculate_deposit(1000, 30).deposit_amount
        Decimal('300.00')
    """
    code = normalize_currency(currency)
    value = validate_non_negative(order_value, "order_value")
    percentage = validate_percentage(deposit_percentage, "deposit_percentage")

    value_minor = to_minor_units(value, code)
    deposit_minor = percent_of_minor(value_minor, percentage)

    return DepositCalculation(
        order_value=to_major_units(value_minor, code),
        deposit_percentage=percentage,
        deposit_amount=to_major_units(deposit_minor, code),
        balance_amount=to_major_units(value_minor - deposit_minor, code),
        currency=code,
    )


def calculate_balance(
    order_value: AmountLike,
    deposit_paid: AmountLike,
    currency: str = DEFAULT_CURRENCY,
) -> BalanceCalculation:
    """
    Balance still owed once `deposit_paid` has been received.

    An overpaid deposit clamps the balance at zero. balance_percentage is
    0 for a zero-value order.

    Examples:
        >>> calculate_balance(1000, 300).balance_percentage
        Decimal('70.00')
    """
    code = normalize_currency(currency)
    value_minor = to_minor_units(validate_non_negative(order_value, "order_value"), code)
    paid_minor = to_minor_units(validate_non_negative(deposit_paid, "deposit_paid"), code)

    remaining_minor = clamp_int(value_minor - paid_minor, 0, value_minor)
    percentage = safe_divide(Decimal(remaining_minor) * HUNDRED, Decimal(value_minor))

    return BalanceCalculation(
        order_value=to_major_units(value_minor, code),
        deposit_paid=to_major_units(paid_minor, code),
        balance_remaining=to_major_units(remaining_minor, code),
        balance_percentage=percentage.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP),
        currency=code,
    )
