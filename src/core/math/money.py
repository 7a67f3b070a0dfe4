"""
Money — currency-aware minor/major unit conversion

Single permitted way to move between:
- major units (Decimal, e.g. 12.34 USD) used for display and contracts
- minor units (int, e.g. 1234 cents) used for every arithmetic step

Invariants:
1. Amounts never pass through a binary float; floats are read via str()
2. Rounding is half away from zero (ROUND_HALF_UP) to the currency exponent
3. A multi-step computation rounds exactly once, at the end, in minor units
4. to_major_units(to_minor_units(x, c), c) == round_money(x, c)
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final, Union

from src.core.errors import InvalidAmountError, UnknownCurrencyError

AmountLike = Union[Decimal, int, float, str]


# =============================================================================
# ISO 4217 MINOR-UNIT TABLE
# =============================================================================

ZERO_DECIMAL_CURRENCIES: Final[frozenset[str]] = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW",
        "MGA", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)

THREE_DECIMAL_CURRENCIES: Final[frozenset[str]] = frozenset(
    {"BHD", "IQD", "JOD", "KWD", "LYD", "OMR", "TND"}
)

TWO_DECIMAL_CURRENCIES: Final[frozenset[str]] = frozenset(
    {
        "AED", "ARS", "AUD", "BGN", "BRL", "CAD", "CHF", "CNY", "COP",
        "CZK", "DKK", "EGP", "EUR", "GBP", "HKD", "HUF", "IDR", "ILS",
        "INR", "MAD", "MXN", "MYR", "NGN", "NOK", "NZD", "PEN", "PHP",
        "PKR", "PLN", "QAR", "RON", "SAR", "SEK", "SGD", "THB", "TRY",
        "TWD", "UAH", "USD", "ZAR",
    }
)

SUPPORTED_CURRENCIES: Final[frozenset[str]] = (
    ZERO_DECIMAL_CURRENCIES | THREE_DECIMAL_CURRENCIES | TWO_DECIMAL_CURRENCIES
)

DEFAULT_CURRENCY: Final[str] = "USD"

HUNDRED: Final[Decimal] = Decimal(100)


# =============================================================================
# CURRENCY LOOKUP
# =============================================================================


def normalize_currency(currency: str) -> str:
    """
    Canonical upper-case ISO code.

    Raises:
        UnknownCurrencyError: If the code is not in the supported table
    """
    if not isinstance(currency, str):
        raise UnknownCurrencyError(currency)
    code = currency.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise UnknownCurrencyError(currency)
    return code


def currency_exponent(currency: str) -> int:
    """
    Number of decimal places of the currency's minor unit (0, 2 or 3).

    Examples:
        >>> currency_exponent("USD")
        2
        >>> currency_exponent("JPY")
        0
        >>> currency_exponent("KWD")
        3
    """
    code = normalize_currency(currency)
    if code in ZERO_DECIMAL_CURRENCIES:
        return 0
    if code in THREE_DECIMAL_CURRENCIES:
        return 3
    return 2


def currency_quantum(currency: str) -> Decimal:
    """Smallest representable major-unit step, e.g. Decimal('0.01') for USD."""
    return Decimal(1).scaleb(-currency_exponent(currency))


# =============================================================================
# CONVERSIONS
# =============================================================================


def to_decimal(value: AmountLike) -> Decimal:
    """
    Lossless conversion into Decimal.

    Floats go through their shortest repr so 0.1 stays 0.1.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Amount must be numeric, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Amount must be numeric, got {value!r}") from exc

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def round_minor(value: Decimal) -> int:
    """
    Round a fractional minor-unit quantity to an integer, half away from zero.

    Raises:
        InvalidAmountError: If the value exceeds the decimal context precision
    """
    try:
        return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Amount {value} is too large to round") from exc


def round_money(amount: AmountLike, currency: str = DEFAULT_CURRENCY) -> Decimal:
    """
    Round to the currency's precision, half away from zero.

    Raises:
        InvalidAmountError: If the amount exceeds the decimal context precision

    Examples:
        >>> round_money("2.345", "USD")
        Decimal('2.35')
        >>> round_money("-2.345", "USD")
        Decimal('-2.35')
        >>> round_money("1234.5", "JPY")
        Decimal('1235')
    """
    value = to_decimal(amount)
    try:
        return value.quantize(currency_quantum(currency), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Amount {value} is too large for {currency}") from exc


def to_minor_units(amount: AmountLike, currency: str = DEFAULT_CURRENCY) -> int:
    """
    Major units → integer minor units.

    Examples:
        >>> to_minor_units("12.34", "USD")
        1234
        >>> to_minor_units("1.2345", "KWD")
        1235
        >>> to_minor_units(500, "JPY")
        500
    """
    scaled = to_decimal(amount).scaleb(currency_exponent(currency))
    return round_minor(scaled)


def to_major_units(minor_units: int, currency: str = DEFAULT_CURRENCY) -> Decimal:
    """
    Integer minor units → major units at canonical precision.

    Raises:
        TypeError: If minor_units is not an int
    """
    if isinstance(minor_units, bool) or not isinstance(minor_units, int):
        raise TypeError(f"minor_units must be int, got {type(minor_units).__name__}")
    exponent = currency_exponent(currency)
    try:
        return Decimal(minor_units).scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Amount of {minor_units} minor units is too large for {currency}") from exc


def percent_of_minor(minor_units: int, percentage: AmountLike) -> int:
    """
    `percentage`% of an integer minor-unit amount, rounded once.

    Used for deposits: percent_of_minor(100000, 30) == 30000.
    """
    return round_minor(Decimal(minor_units) * to_decimal(percentage) / HUNDRED)


def multiply_minor(minor_units: int, factor: AmountLike) -> int:
    """Minor-unit amount times a rate (e.g. a tax rate), rounded once."""
    return round_minor(Decimal(minor_units) * to_decimal(factor))


def format_decimal(value: Decimal) -> str:
    """Plain (non-scientific) string form used in JSON contracts."""
    return format(value, "f")
