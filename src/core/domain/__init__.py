"""
Domain models and value objects.

Contains the engine's entities: Money, priced line items and breakdowns,
orders, quotations, wholesale invitations/products and domain events.
"""

from src.core.domain.events import DomainEvent, EventKind
from src.core.domain.money import Money
from src.core.domain.order import (
    CreateOrderInput,
    FulfillmentStatus,
    Order,
    OrderKind,
    OrderStatus,
    RefundInput,
    UpdateFulfillmentInput,
)
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
    ProductType,
    RateQuote,
)
from src.core.domain.quotation import CreateQuotationInput, Quotation, QuotationStatus
from src.core.domain.wholesale import (
    InvitationStatus,
    WholesaleInvitation,
    WholesaleOrderItem,
    WholesaleOrderRequest,
    WholesaleProduct,
    WholesaleTerms,
    WholesaleVariant,
)

__all__ = [
    # Money
    "Money",
    # Pricing
    "CartItem",
    "CartPricing",
    "Destination",
    "Discount",
    "DiscountType",
    "LineItem",
    "PriceTier",
    "PricingBreakdown",
    "PricingItem",
    "ProductType",
    "RateQuote",
    # Order
    "CreateOrderInput",
    "FulfillmentStatus",
    "Order",
    "OrderKind",
    "OrderStatus",
    "RefundInput",
    "UpdateFulfillmentInput",
    # Quotation
    "CreateQuotationInput",
    "Quotation",
    "QuotationStatus",
    # Wholesale
    "InvitationStatus",
    "WholesaleInvitation",
    "WholesaleOrderItem",
    "WholesaleOrderRequest",
    "WholesaleProduct",
    "WholesaleTerms",
    "WholesaleVariant",
    # Events
    "DomainEvent",
    "EventKind",
]
