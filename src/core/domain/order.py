"""
Order — persisted order record and lifecycle inputs

Immutable Pydantic models. A state change never mutates an Order in place:
the lifecycle service builds a new instance via model_copy(update=...) and
bumps `version`, which the store uses for optimistic concurrency.

Ownership:
- seller of record: may mutate status, fulfillment, tracking
- buyer of record: read access only
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.domain.money import Money
from src.core.domain.pricing import LineItem, PricingItem
from src.core.math.money import DEFAULT_CURRENCY, normalize_currency


# =============================================================================
# ENUMS
# =============================================================================


class OrderKind(str, Enum):
    """Origin of an order"""

    RETAIL = "retail"
    WHOLESALE = "wholesale"
    TRADE = "trade"  # converted from a quotation


class OrderStatus(str, Enum):
    """Payment status of an order"""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class FulfillmentStatus(str, Enum):
    """Fulfillment sub-state, independent of OrderStatus"""

    UNFULFILLED = "unfulfilled"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FULFILLED = "fulfilled"


# =============================================================================
# ORDER MODEL
# =============================================================================


class Order(BaseModel):
    """
    Persisted order.

    Monetary fields mirror the PricingBreakdown the order was created from;
    deposit_amount + balance_amount == total.
    """

    # Identification
    id: str = Field(..., min_length=1)
    kind: OrderKind = OrderKind.RETAIL
    buyer_id: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)

    # State
    status: OrderStatus = OrderStatus.PENDING
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED

    # Money
    currency: str = Field(DEFAULT_CURRENCY)
    items: list[LineItem] = Field(default_factory=list)
    subtotal: Money
    tax_amount: Money
    shipping_amount: Money
    total: Money
    deposit_amount: Money
    balance_amount: Money

    # Wholesale / quotation linkage
    payment_terms: str | None = None
    payment_due_date: date | None = None
    quotation_id: str | None = None
    invitation_id: str | None = None

    # Fulfillment details
    tracking_number: str | None = None
    carrier: str | None = None

    # Concurrency & audit
    version: int = Field(1, ge=1, description="Optimistic concurrency version")
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    def is_party(self, user_id: str) -> bool:
        """True for the buyer or the seller of record."""
        return user_id in (self.buyer_id, self.seller_id)


# =============================================================================
# INPUTS
# =============================================================================


class CreateOrderInput(BaseModel):
    """Retail order request; totals are always recomputed by the calculator."""

    seller_id: str = Field(..., min_length=1)
    currency: str = Field(DEFAULT_CURRENCY)
    items: list[PricingItem] = Field(..., min_length=1)
    tax_rate: Decimal = Field(Decimal(0), ge=0, le=1)
    shipping_amount: Decimal = Field(Decimal(0), ge=0)
    deposit_percentage: Decimal | None = Field(None, ge=0, le=100)
    kind: OrderKind = OrderKind.RETAIL

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)


class UpdateFulfillmentInput(BaseModel):
    order_id: str = Field(..., min_length=1)
    fulfillment_status: FulfillmentStatus
    tracking_number: str | None = None
    carrier: str | None = None

    model_config = {"frozen": True}


class RefundInput(BaseModel):
    order_id: str = Field(..., min_length=1)
    reason: str | None = None

    model_config = {"frozen": True}
