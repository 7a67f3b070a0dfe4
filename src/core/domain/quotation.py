"""
Quotation — seller-issued price offer

Lifecycle: draft → sent → {accepted, rejected, expired};
accepted → converted_to_order (terminal).
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.domain.pricing import PricingBreakdown, PricingItem
from src.core.math.money import DEFAULT_CURRENCY, normalize_currency


def as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are read as UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class QuotationStatus(str, Enum):
    """Quotation lifecycle state"""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED_TO_ORDER = "converted_to_order"


class Quotation(BaseModel):
    """
    Persisted quotation.

    Immutable model (frozen=True); transitions produce a new instance with
    version + 1.
    """

    id: str = Field(..., min_length=1)
    quotation_number: str = Field(..., min_length=1, description="Human-facing number, e.g. Q-2026-001")
    seller_id: str = Field(..., min_length=1)
    buyer_id: str | None = None
    buyer_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")

    status: QuotationStatus = QuotationStatus.DRAFT
    currency: str = Field(DEFAULT_CURRENCY)
    breakdown: PricingBreakdown

    valid_until: datetime | None = None
    order_id: str | None = Field(None, description="Set once converted to an order")
    rejection_reason: str | None = None

    version: int = Field(1, ge=1)
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    @field_validator("valid_until")
    @classmethod
    def validate_valid_until(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    def is_expired_at(self, now: datetime) -> bool:
        return self.valid_until is not None and as_utc(now) > self.valid_until


class CreateQuotationInput(BaseModel):
    """Quotation draft request."""

    buyer_email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    buyer_id: str | None = None
    currency: str = Field(DEFAULT_CURRENCY)
    items: list[PricingItem] = Field(..., min_length=1)
    tax_rate: Decimal = Field(Decimal(0), ge=0, le=1)
    shipping_amount: Decimal = Field(Decimal(0), ge=0)
    deposit_percentage: Decimal | None = Field(None, ge=0, le=100, description="Defaults to QuotationConfig")
    valid_until: datetime | None = None

    model_config = {"frozen": True}

    @field_validator("currency", mode="before")
    @classmethod
    def validate_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    @field_validator("valid_until")
    @classmethod
    def validate_valid_until(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)
