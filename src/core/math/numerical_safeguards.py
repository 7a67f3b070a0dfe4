"""
Numerical Safeguards — Safe Decimal Primitives

Guards shared by the pricing and wholesale modules:
- Safe division with an explicit divide-by-zero fallback
- Clamping of minor-unit remainders
- Parameter validation (non-negative, in range, percentage, quantity)

CRITICAL INVARIANTS:
1. Division by zero never happens (the fallback is returned instead)
2. Non-finite values (NaN/Inf) are rejected, never propagated
3. All operations are deterministic Decimal arithmetic, no binary floats
"""

from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any, Final

from src.core.errors import InvalidAmountError, InvalidQuantityError
from src.core.math.money import AmountLike, to_decimal

# =============================================================================
# CONSTANTS
# =============================================================================

ZERO: Final[Decimal] = Decimal(0)


# =============================================================================
# SAFE DIVISION
# =============================================================================


def safe_divide(
    numerator: AmountLike,
    denominator: AmountLike,
    fallback: Decimal = ZERO,
) -> Decimal:
    """
    Division that returns `fallback` when the denominator is zero.

    Args:
        numerator: Dividend
        denominator: Divisor (may be zero)
        fallback: Value returned on division by zero (default: 0)

    Returns:
        numerator / denominator, or fallback

    Examples:
        >>> safe_divide(700, 1000)
        Decimal('0.7')
        >>> safe_divide(10, 0)
        Decimal('0')
    """
    num = to_decimal(numerator)
    denom = to_decimal(denominator)

    if denom == 0:
        return fallback

    try:
        return num / denom
    except (DivisionByZero, InvalidOperation):
        return fallback


# =============================================================================
# UTILITIES
# =============================================================================


def clamp_int(value: int, min_value: int, max_value: int) -> int:
    """Clamp an integer into [min_value, max_value]."""
    if min_value > max_value:
        raise ValueError(f"min_value ({min_value}) must be <= max_value ({max_value})")
    return max(min_value, min(value, max_value))


# =============================================================================
# VALIDATION
# =============================================================================


def _as_decimal(value: AmountLike, name: str) -> Decimal:
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidAmountError(f"{name} must be a finite number, got {value!r}") from exc


def validate_non_negative(value: AmountLike, name: str) -> Decimal:
    """
    Ensure value >= 0.

    Raises:
        InvalidAmountError: If the value is negative or not a finite number
    """
    result = _as_decimal(value, name)
    if result < 0:
        raise InvalidAmountError(f"{name} cannot be negative, got {result}")
    return result


def validate_in_range(
    value: AmountLike,
    name: str,
    min_value: AmountLike,
    max_value: AmountLike,
) -> Decimal:
    """
    Ensure min_value <= value <= max_value.

    Raises:
        InvalidAmountError: If the value lies outside the closed range
    """
    result = _as_decimal(value, name)
    lo = to_decimal(min_value)
    hi = to_decimal(max_value)

    if result < lo or result > hi:
        raise InvalidAmountError(f"{name} must be between {lo} and {hi}, got {result}")
    return result


def validate_percentage(value: AmountLike, name: str = "percentage") -> Decimal:
    """Shorthand for validate_in_range(value, name, 0, 100)."""
    return validate_in_range(value, name, 0, 100)


def validate_quantity(quantity: Any, context: str = "") -> int:
    """
    Ensure a line quantity is a positive int.

    Raises:
        InvalidQuantityError: For zero, negative or non-integer values
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(quantity, context)
    if quantity <= 0:
        raise InvalidQuantityError(quantity, context)
    return quantity
