"""
Wholesale models — invitations, terms, products and order requests

Terms fields are optional on purpose: when the seller left a term unset the
validator falls back to WholesaleDefaults and reports a warning.
"""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.domain.pricing import PriceTier
from src.core.math.money import DEFAULT_CURRENCY, normalize_currency


class InvitationStatus(str, Enum):
    """Wholesale invitation state"""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


class WholesaleTerms(BaseModel):
    """Negotiated terms attached to an invitation."""

    deposit_percentage: Decimal | None = Field(None, ge=0, le=100)
    allowed_payment_terms: list[str] | None = None
    minimum_order_value: Decimal | None = Field(None, ge=0)

    model_config = {"frozen": True}


class WholesaleInvitation(BaseModel):
    """Seller-granted relationship authorizing a buyer to order wholesale."""

    id: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)
    buyer_id: str | None = None
    buyer_email: str | None = None
    status: InvitationStatus = InvitationStatus.ACCEPTED
    currency: str = Field(DEFAULT_CURRENCY)
    terms: WholesaleTerms = Field(default_factory=WholesaleTerms)

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)


class WholesaleVariant(BaseModel):
    """Variant-level overrides of the product's wholesale price and MOQ."""

    variant_id: str = Field(..., min_length=1)
    wholesale_price: Decimal | None = Field(None, ge=0)
    moq: int | None = Field(None, ge=1)

    model_config = {"frozen": True}


class WholesaleProduct(BaseModel):
    """Product as listed in a seller's wholesale catalog."""

    product_id: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    wholesale_price: Decimal = Field(..., ge=0)
    rrp: Decimal | None = Field(None, ge=0, description="Recommended retail price")
    moq: int = Field(1, ge=1)
    variants: list[WholesaleVariant] = Field(default_factory=list)
    tiers: list[PriceTier] = Field(default_factory=list, description="Volume tiers, optional")

    model_config = {"frozen": True}

    def variant(self, variant_id: str | None) -> WholesaleVariant | None:
        if variant_id is None:
            return None
        for candidate in self.variants:
            if candidate.variant_id == variant_id:
                return candidate
        return None

    def unit_price_for(self, variant_id: str | None = None) -> Decimal:
        override = self.variant(variant_id)
        if override is not None and override.wholesale_price is not None:
            return override.wholesale_price
        return self.wholesale_price

    def moq_for(self, variant_id: str | None = None) -> int:
        override = self.variant(variant_id)
        if override is not None and override.moq is not None:
            return override.moq
        return self.moq


class WholesaleOrderItem(BaseModel):
    product_id: str = Field(..., min_length=1)
    variant_id: str | None = None
    quantity: int

    model_config = {"frozen": True}


class WholesaleOrderRequest(BaseModel):
    """Wholesale order submission; persisted only once validation passes."""

    invitation_id: str = Field(..., min_length=1)
    items: list[WholesaleOrderItem] = Field(..., min_length=1)
    payment_terms: str = Field(..., min_length=1)
    seller_id: str = Field(..., min_length=1)
    buyer_id: str = Field(..., min_length=1)
    shipping_amount: Decimal = Field(Decimal(0), ge=0)

    model_config = {"frozen": True}
