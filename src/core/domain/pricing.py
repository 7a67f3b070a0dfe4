"""
Pricing models — inputs and outputs of the Pricing Calculator

Immutable Pydantic models:
- PricingItem / CartItem: what the caller asks to price
- PriceTier / Discount: volume and promotional price rules
- LineItem / PricingBreakdown / CartPricing: computed results

Result models re-check their arithmetic invariants on construction, so an
inconsistent breakdown can never be built, not even by hand.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.domain.money import Money
from src.core.math.money import DEFAULT_CURRENCY, normalize_currency


# =============================================================================
# ENUMS
# =============================================================================


class DiscountType(str, Enum):
    """Discount kind"""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ProductType(str, Enum):
    """Fulfilment class of a cart item"""

    IN_STOCK = "in-stock"
    PRE_ORDER = "pre-order"
    MADE_TO_ORDER = "made-to-order"
    WHOLESALE = "wholesale"


# =============================================================================
# PRICE RULES
# =============================================================================


class PriceTier(BaseModel):
    """Volume price: `price` applies from `min_qty` units upward."""

    min_qty: int = Field(..., ge=1, description="Smallest quantity the tier applies to")
    price: Decimal = Field(..., ge=0, description="Unit price in major units")

    model_config = {"frozen": True}


class Discount(BaseModel):
    """Single promotional discount, evaluated against the original price."""

    type: DiscountType = Field(..., description="percentage | fixed")
    value: Decimal = Field(..., ge=0, description="Percent (0-100) or fixed amount")
    label: str | None = Field(None, description="Display label, e.g. campaign name")

    model_config = {"frozen": True}

    @field_validator("value")
    @classmethod
    def validate_percentage_bound(cls, v: Decimal, info) -> Decimal:
        if info.data.get("type") == DiscountType.PERCENTAGE and v > 100:
            raise ValueError(f"percentage discount {v} exceeds 100")
        return v


# =============================================================================
# INPUTS
# =============================================================================


class PricingItem(BaseModel):
    """
    Item to be priced.

    Quantity is deliberately unconstrained here: the calculator rejects
    non-positive quantities with InvalidQuantityError.
    """

    description: str = Field(..., min_length=1)
    unit_price: Decimal = Field(..., ge=0, description="List unit price (major units)")
    quantity: int
    currency: str = Field(DEFAULT_CURRENCY)
    product_id: str | None = None
    discounts: list[Discount] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)


class CartItem(BaseModel):
    """Storefront cart line, possibly a pre-order carrying a per-unit deposit."""

    item_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    unit_price: Decimal = Field(..., ge=0)
    quantity: int
    currency: str = Field(DEFAULT_CURRENCY)
    product_type: ProductType = ProductType.IN_STOCK
    requires_deposit: bool = False
    deposit_amount: Decimal | None = Field(None, ge=0, description="Deposit per unit")

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    @property
    def deposit_eligible(self) -> bool:
        return (
            self.product_type == ProductType.PRE_ORDER
            and self.requires_deposit
            and self.deposit_amount is not None
            and self.deposit_amount > 0
        )


class Destination(BaseModel):
    """Ship-to location handed to the tax/shipping rate provider."""

    country: str = Field(..., min_length=2, max_length=2)
    region: str | None = None
    postal_code: str | None = None

    model_config = {"frozen": True}


class RateQuote(BaseModel):
    """Tax rate (fraction, 0.08 = 8%) and shipping charge for a destination."""

    rate: Decimal = Field(Decimal(0), ge=0, le=1)
    shipping_amount: Decimal = Field(Decimal(0), ge=0)

    model_config = {"frozen": True}


# =============================================================================
# RESULTS
# =============================================================================


class LineItem(BaseModel):
    """Priced line: line_total = unit_price * quantity, exact in minor units."""

    description: str
    product_id: str | None = None
    unit_price: Money
    quantity: int = Field(..., gt=0)
    line_total: Money

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_line_total(self) -> "LineItem":
        expected = self.unit_price.times(self.quantity)
        if self.line_total != expected:
            raise ValueError(
                f"line_total {self.line_total} != unit_price * quantity ({expected})"
            )
        return self


class PricingBreakdown(BaseModel):
    """
    Full monetary breakdown.

    Invariants (checked in minor units):
    - total = subtotal + tax_amount + shipping_amount
    - deposit_amount + balance_amount = total
    """

    currency: str = Field(DEFAULT_CURRENCY)
    line_items: list[LineItem] = Field(default_factory=list)
    subtotal: Money
    tax_amount: Money
    shipping_amount: Money
    total: Money
    deposit_percentage: Decimal = Field(Decimal(0), ge=0, le=100)
    deposit_amount: Money
    balance_amount: Money

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_sums(self) -> "PricingBreakdown":
        parts = self.subtotal.minor_units + self.tax_amount.minor_units + self.shipping_amount.minor_units
        if parts != self.total.minor_units:
            raise ValueError("total must equal subtotal + tax_amount + shipping_amount")
        if self.deposit_amount.minor_units + self.balance_amount.minor_units != self.total.minor_units:
            raise ValueError("deposit_amount + balance_amount must equal total")
        return self

    def to_contract(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class CartPricing(BaseModel):
    """
    Mixed-cart payment plan.

    amount_to_charge is what the payment provider charges now; the
    remaining_balance is collected later by the balance-payment flow.
    """

    currency: str = Field(DEFAULT_CURRENCY)
    subtotal: Money
    immediate_subtotal: Money
    shipping_cost: Money
    shipping_in_deposit: Money
    shipping_in_balance: Money
    deposit_amount: Money
    deposit_total: Money
    full_total: Money
    remaining_balance: Money
    amount_to_charge: Money
    tax_amount: Money
    total_with_tax: Money
    paying_deposit_only: bool
    has_pre_orders: bool

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_split(self) -> "CartPricing":
        if self.amount_to_charge.minor_units + self.remaining_balance.minor_units != self.full_total.minor_units:
            raise ValueError("amount_to_charge + remaining_balance must equal full_total")
        return self
