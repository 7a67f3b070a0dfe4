"""Pricing Calculator

Turns a cart or line-item list into a monetary breakdown:
- Tiered (volume) unit prices
- Best-single-discount selection
- Subtotal / tax / shipping / total aggregation
- Deposit + balance split (quotations, pre-orders, wholesale)
- Mixed-cart payment plans (pre-order deposits next to in-stock items)

Invariants:
1. Every sum is taken over integer minor units; rounding happens once per
   derived amount (tax, deposit), never per unit
2. total = subtotal + tax_amount + shipping_amount
3. deposit_amount + balance_amount = total for every deposit percentage
   (deposit is rounded first, balance is the exact remainder)
4. Discounts never stack; each is evaluated against the original price

Pure functions carry the arithmetic. PricingCalculator binds them to an
injected RateProvider for destination-dependent tax and shipping.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Final, Iterable, Mapping, Sequence

from src.core.domain.money import Money
from src.core.domain.order import Order
from src.core.domain.pricing import (
    CartItem,
    CartPricing,
    Destination,
    Discount,
    DiscountType,
    LineItem,
    PriceTier,
    PricingBreakdown,
    PricingItem,
)
from src.core.errors import CurrencyMismatchError, InvalidAmountError
from src.core.math.money import (
    DEFAULT_CURRENCY,
    HUNDRED,
    AmountLike,
    multiply_minor,
    normalize_currency,
    percent_of_minor,
    round_money,
    to_decimal,
    to_minor_units,
)
from src.core.math.numerical_safeguards import (
    ZERO,
    validate_in_range,
    validate_non_negative,
    validate_percentage,
    validate_quantity,
)
from src.core.ports import RateProvider

logger = logging.getLogger("settlement.pricing")


# =============================================================================
# CONSTANTS
# =============================================================================

# Tax rates are fractions (0.08 = 8%)
MAX_TAX_RATE: Final[Decimal] = Decimal(1)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class PricingConfig:
    """Calculator defaults.

    include_shipping_in_deposit: pre-order carts collect shipping with the
    balance unless this is set.
    """

    wholesale_cart_deposit_percentage: Decimal = Decimal(50)
    include_shipping_in_deposit: bool = False


# =============================================================================
# RESULTS
# =============================================================================


class RefundType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


@dataclass(frozen=True)
class WholesaleCartLine:
    """Wholesale cart line priced in minor units."""

    product_id: str
    quantity: int
    unit_price_minor: int
    moq: int | None = None


@dataclass(frozen=True)
class WholesaleCartLineTotal:
    product_id: str
    quantity: int
    unit_price_minor: int
    line_total_minor: int
    moq: int | None
    moq_compliant: bool


@dataclass(frozen=True)
class WholesaleCartTotals:
    """Stateless wholesale cart preview (all amounts in minor units)."""

    currency: str
    items: tuple[WholesaleCartLineTotal, ...]
    subtotal_minor: int
    deposit_minor: int
    balance_due_minor: int
    deposit_percentage: Decimal
    total_minor: int
    moq_compliant: bool = True


# =============================================================================
# TIERS & DISCOUNTS
# =============================================================================


def get_tiered_price(quantity: int, tiers: Sequence[PriceTier]) -> Decimal | None:
    """
    Unit price for `quantity` under a volume tier table.

    Tiers are scanned in descending min_qty order and the first with
    quantity >= min_qty wins, so a quantity equal to a boundary gets the
    higher tier. Below every tier the lowest-min_qty tier applies.

    Args:
        quantity: Requested quantity (> 0)
        tiers: Tier table, any order

    Returns:
        Tier unit price, or None when the table is empty

    Examples:
        >>> tiers = [PriceTier(min_qty=1, price=10), PriceTier(min_qty=10, price=9)]
        >>> get_tiered_price(10, tiers)
        Decimal('9')
    """
    validate_quantity(quantity, "tiered price")
    if not tiers:
        return None

    ordered = sorted(tiers, key=lambda tier: tier.min_qty, reverse=True)
    for tier in ordered:
        if quantity >= tier.min_qty:
            return tier.price
    return ordered[-1].price


def _discounted(price: Decimal, discount: Discount) -> Decimal:
    if discount.type == DiscountType.PERCENTAGE:
        return price * (HUNDRED - discount.value) / HUNDRED
    return price - discount.value


def apply_best_discount(
    price: AmountLike,
    discounts: Iterable[Discount],
    currency: str = DEFAULT_CURRENCY,
) -> Decimal:
    """
    Lowest price reachable with a single discount.

    Every discount is applied to the original price on its own; the cheapest
    outcome is rounded once and floored at zero. An empty list returns the
    original price (rounded to the currency precision).

    Examples:
        >>> apply_best_discount("100.00", [
        ...     Discount(type="percentage", value=10),
        ...     Discount(type="fixed", value=5),
        ...     Discount(type="percentage", value=15),
        ... ])
        Decimal('85.00')
    """
    original = validate_non_negative(price, "price")
    best = original
    for discount in discounts:
        candidate = _discounted(original, discount)
        if candidate < best:
            best = candidate

    if best < ZERO:
        best = ZERO
    return round_money(best, currency)


# =============================================================================
# LINE ITEMS & BREAKDOWN
# =============================================================================


def _resolve_currency(currencies: Iterable[str], fallback: str | None) -> str:
    resolved = normalize_currency(fallback) if fallback else None
    for code in currencies:
        if resolved is None:
            resolved = code
        elif code != resolved:
            raise CurrencyMismatchError(resolved, code)
    return resolved or DEFAULT_CURRENCY


def price_line_items(
    items: Sequence[PricingItem],
    tier_table: Mapping[str, Sequence[PriceTier]] | None = None,
) -> list[LineItem]:
    """
    Price each item: tier price (when the item's product has tiers), then
    its best discount.

    Args:
        items: Items to price, all in one currency
        tier_table: product_id → tiers; items without an entry keep unit_price

    Raises:
        InvalidQuantityError: If any quantity <= 0
        CurrencyMismatchError: If the items mix currencies
    """
    _resolve_currency((item.currency for item in items), None)

    line_items: list[LineItem] = []
    for item in items:
        validate_quantity(item.quantity, item.description)

        base_price = item.unit_price
        tiers = tier_table.get(item.product_id, ()) if tier_table and item.product_id else ()
        tier_price = get_tiered_price(item.quantity, tiers)
        if tier_price is not None:
            base_price = tier_price

        unit_price = Money.of(apply_best_discount(base_price, item.discounts, item.currency), item.currency)
        line_items.append(
            LineItem(
                description=item.description,
                product_id=item.product_id,
                unit_price=unit_price,
                quantity=item.quantity,
                line_total=unit_price.times(item.quantity),
            )
        )
    return line_items


def calculate_breakdown(
    line_items: Sequence[LineItem],
    tax_rate: AmountLike = 0,
    shipping_amount: AmountLike = 0,
    deposit_percentage: AmountLike | None = None,
    currency: str | None = None,
) -> PricingBreakdown:
    """
    Aggregate priced lines into a PricingBreakdown.

    tax_amount = round(subtotal * tax_rate), taken on the pre-shipping
    subtotal. With a deposit percentage, the deposit is rounded from the
    total and the balance is total - deposit; without one, the whole total
    is balance.

    Args:
        line_items: Output of price_line_items
        tax_rate: Fraction in [0, 1]
        shipping_amount: Shipping charge in major units
        deposit_percentage: 0..100, or None for no deposit
        currency: Currency for an empty line list (defaults to USD)

    Raises:
        InvalidAmountError: Negative shipping, tax rate or deposit out of range
        CurrencyMismatchError: Mixed currencies
    """
    code = _resolve_currency(
        (line.line_total.currency for line in line_items),
        currency,
    )
    rate = validate_in_range(tax_rate, "tax_rate", 0, MAX_TAX_RATE)
    shipping = validate_non_negative(shipping_amount, "shipping_amount")
    percentage = ZERO if deposit_percentage is None else validate_percentage(
        deposit_percentage, "deposit_percentage"
    )

    subtotal_minor = sum(line.line_total.minor_units for line in line_items)
    tax_minor = multiply_minor(subtotal_minor, rate)
    shipping_minor = to_minor_units(shipping, code)
    total_minor = subtotal_minor + tax_minor + shipping_minor

    deposit_minor = percent_of_minor(total_minor, percentage) if percentage > 0 else 0
    balance_minor = total_minor - deposit_minor

    logger.debug(
        "breakdown %s: subtotal=%d tax=%d shipping=%d deposit=%d balance=%d",
        code, subtotal_minor, tax_minor, shipping_minor, deposit_minor, balance_minor,
    )

    return PricingBreakdown(
        currency=code,
        line_items=list(line_items),
        subtotal=Money.from_minor(subtotal_minor, code),
        tax_amount=Money.from_minor(tax_minor, code),
        shipping_amount=Money.from_minor(shipping_minor, code),
        total=Money.from_minor(total_minor, code),
        deposit_percentage=percentage,
        deposit_amount=Money.from_minor(deposit_minor, code),
        balance_amount=Money.from_minor(balance_minor, code),
    )


# =============================================================================
# MIXED CART
# =============================================================================


def calculate_cart_pricing(
    items: Sequence[CartItem],
    shipping_amount: AmountLike = 0,
    tax_amount: AmountLike = 0,
    include_shipping_in_deposit: bool = False,
) -> CartPricing:
    """
    Payment plan for a cart that may mix pre-orders and in-stock items.

    Deposit-eligible items (pre-orders flagged requires_deposit with a
    per-unit deposit) are charged their deposit now; every other item is
    charged in full now. Shipping is collected with the balance for
    pre-order carts unless include_shipping_in_deposit is set.

    amount_to_charge + remaining_balance == full_total (subtotal + shipping).
    """
    code = _resolve_currency((item.currency for item in items), None)
    shipping_minor = to_minor_units(validate_non_negative(shipping_amount, "shipping_amount"), code)
    tax_minor = to_minor_units(validate_non_negative(tax_amount, "tax_amount"), code)

    subtotal_minor = 0
    immediate_minor = 0
    deposit_minor = 0
    for item in items:
        validate_quantity(item.quantity, item.description)
        line_minor = to_minor_units(item.unit_price, code) * item.quantity
        subtotal_minor += line_minor
        if item.deposit_eligible:
            per_unit_deposit = min(to_minor_units(item.deposit_amount, code), to_minor_units(item.unit_price, code))
            deposit_minor += per_unit_deposit * item.quantity
        else:
            immediate_minor += line_minor

    has_pre_orders = deposit_minor > 0
    if has_pre_orders and include_shipping_in_deposit:
        shipping_in_deposit, shipping_in_balance = shipping_minor, 0
    elif has_pre_orders:
        shipping_in_deposit, shipping_in_balance = 0, shipping_minor
    else:
        # No deposit flow: shipping is part of the single upfront charge
        shipping_in_deposit, shipping_in_balance = shipping_minor, 0

    deposit_total = deposit_minor + shipping_in_deposit
    full_total = subtotal_minor + shipping_minor
    amount_to_charge = immediate_minor + deposit_total
    remaining = full_total - amount_to_charge

    def money(minor: int) -> Money:
        return Money.from_minor(minor, code)

    return CartPricing(
        currency=code,
        subtotal=money(subtotal_minor),
        immediate_subtotal=money(immediate_minor),
        shipping_cost=money(shipping_minor),
        shipping_in_deposit=money(shipping_in_deposit),
        shipping_in_balance=money(shipping_in_balance),
        deposit_amount=money(deposit_minor),
        deposit_total=money(deposit_total),
        full_total=money(full_total),
        remaining_balance=money(remaining),
        amount_to_charge=money(amount_to_charge),
        tax_amount=money(tax_minor),
        total_with_tax=money(amount_to_charge + tax_minor),
        paying_deposit_only=has_pre_orders,
        has_pre_orders=has_pre_orders,
    )


def validate_charge_amount(displayed: Money, calculated: Money, tolerance_minor: int = 0) -> None:
    """
    Guard between what the buyer saw and what the gateway will charge.

    Raises:
        InvalidAmountError: If the amounts differ by more than tolerance_minor
    """
    if displayed.currency != calculated.currency:
        raise CurrencyMismatchError(calculated.currency, displayed.currency)
    difference = abs(displayed.minor_units - calculated.minor_units)
    if difference > tolerance_minor:
        raise InvalidAmountError(
            f"PRICING MISMATCH: displayed {displayed} does not match calculated {calculated}"
        )


# =============================================================================
# REFUNDS & WHOLESALE CART
# =============================================================================


def calculate_refund_amount(
    order: Order,
    refund_type: RefundType,
    line_amounts: Sequence[AmountLike] | None = None,
) -> Money:
    """
    Amount to refund on an order.

    Full refunds return the order total. Partial refunds sum the given line
    amounts, which must be non-empty, non-negative and not exceed the total.

    Raises:
        InvalidAmountError: Missing, negative or excessive partial amounts
    """
    if refund_type == RefundType.FULL:
        return order.total

    if not line_amounts:
        raise InvalidAmountError("Line items required for partial refund")

    refund_minor = sum(
        to_minor_units(validate_non_negative(amount, "refund line amount"), order.currency)
        for amount in line_amounts
    )
    if refund_minor > order.total.minor_units:
        raise InvalidAmountError(
            f"Refund {Money.from_minor(refund_minor, order.currency)} exceeds order total {order.total}"
        )
    return Money.from_minor(refund_minor, order.currency)


def calculate_wholesale_cart_totals(
    items: Sequence[WholesaleCartLine],
    deposit_percentage: AmountLike = 50,
    currency: str = DEFAULT_CURRENCY,
) -> WholesaleCartTotals:
    """Line totals with MOQ compliance flags, plus the deposit/balance split."""
    code = normalize_currency(currency)
    percentage = validate_percentage(deposit_percentage, "deposit_percentage")

    lines = []
    for item in items:
        validate_quantity(item.quantity, item.product_id)
        if item.unit_price_minor < 0:
            raise InvalidAmountError(f"unit price cannot be negative for {item.product_id}")
        lines.append(
            WholesaleCartLineTotal(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price_minor=item.unit_price_minor,
                line_total_minor=item.unit_price_minor * item.quantity,
                moq=item.moq,
                moq_compliant=not item.moq or item.quantity >= item.moq,
            )
        )

    subtotal = sum(line.line_total_minor for line in lines)
    deposit = percent_of_minor(subtotal, percentage)
    return WholesaleCartTotals(
        currency=code,
        items=tuple(lines),
        subtotal_minor=subtotal,
        deposit_minor=deposit,
        balance_due_minor=subtotal - deposit,
        deposit_percentage=percentage,
        total_minor=subtotal,
        moq_compliant=all(line.moq_compliant for line in lines),
    )


# =============================================================================
# CALCULATOR
# =============================================================================


class PricingCalculator:
    """Pricing entry point bound to a tax/shipping rate provider.

    Without a destination no provider call is made: tax rate and shipping
    are both zero.
    """

    def __init__(
        self,
        rate_provider: RateProvider | None = None,
        config: PricingConfig | None = None,
    ):
        self.rate_provider = rate_provider
        self.config = config or PricingConfig()

    def calculate_pricing(
        self,
        items: Sequence[PricingItem],
        destination: Destination | None = None,
        deposit_percentage: AmountLike | None = None,
        tier_table: Mapping[str, Sequence[PriceTier]] | None = None,
    ) -> PricingBreakdown:
        """
        Full breakdown for a list of items.

        Raises:
            InvalidQuantityError: If any quantity <= 0
            UnknownCurrencyError: If a currency code is unsupported
        """
        line_items = price_line_items(items, tier_table)
        currency = line_items[0].unit_price.currency if line_items else DEFAULT_CURRENCY

        tax_rate: Decimal = ZERO
        shipping: Decimal = ZERO
        if destination is not None and self.rate_provider is not None:
            subtotal = sum((line.line_total.amount for line in line_items), ZERO)
            quote = self.rate_provider.quote(destination, subtotal, currency)
            tax_rate, shipping = quote.rate, quote.shipping_amount
            logger.debug(
                "rate quote for %s: rate=%s shipping=%s", destination.country, tax_rate, shipping
            )

        return calculate_breakdown(line_items, tax_rate, shipping, deposit_percentage, currency)

    def calculate_cart_pricing(
        self,
        items: Sequence[CartItem],
        shipping_amount: AmountLike = 0,
        tax_amount: AmountLike = 0,
        include_shipping_in_deposit: bool | None = None,
    ) -> CartPricing:
        include = (
            self.config.include_shipping_in_deposit
            if include_shipping_in_deposit is None
            else include_shipping_in_deposit
        )
        return calculate_cart_pricing(items, shipping_amount, tax_amount, include)

    def calculate_wholesale_cart_totals(
        self,
        items: Sequence[WholesaleCartLine],
        deposit_percentage: AmountLike | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> WholesaleCartTotals:
        percentage = (
            self.config.wholesale_cart_deposit_percentage
            if deposit_percentage is None
            else to_decimal(deposit_percentage)
        )
        return calculate_wholesale_cart_totals(items, percentage, currency)
