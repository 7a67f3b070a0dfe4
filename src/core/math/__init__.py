"""
Core math modules

Money conversion and numerical safeguards with exact Decimal arithmetic.
"""

# Money (minor/major units, rounding)
from src.core.math.money import (
    DEFAULT_CURRENCY,
    SUPPORTED_CURRENCIES,
    THREE_DECIMAL_CURRENCIES,
    TWO_DECIMAL_CURRENCIES,
    ZERO_DECIMAL_CURRENCIES,
    currency_exponent,
    currency_quantum,
    format_decimal,
    multiply_minor,
    normalize_currency,
    percent_of_minor,
    round_minor,
    round_money,
    to_decimal,
    to_major_units,
    to_minor_units,
)

# Numerical Safeguards
from src.core.math.numerical_safeguards import (
    clamp_int,
    safe_divide,
    validate_in_range,
    validate_non_negative,
    validate_percentage,
    validate_quantity,
)

__all__ = [
    # Money — Constants
    "DEFAULT_CURRENCY",
    "SUPPORTED_CURRENCIES",
    "THREE_DECIMAL_CURRENCIES",
    "TWO_DECIMAL_CURRENCIES",
    "ZERO_DECIMAL_CURRENCIES",
    # Money — Functions
    "currency_exponent",
    "currency_quantum",
    "format_decimal",
    "multiply_minor",
    "normalize_currency",
    "percent_of_minor",
    "round_minor",
    "round_money",
    "to_decimal",
    "to_major_units",
    "to_minor_units",
    # Numerical Safeguards — Functions
    "clamp_int",
    "safe_divide",
    "validate_in_range",
    "validate_non_negative",
    "validate_percentage",
    "validate_quantity",
]
