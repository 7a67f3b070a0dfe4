"""
Pricing Calculator

Line pricing (tiers, best discount), breakdown aggregation with
deposit/balance split, mixed-cart payment plans, refunds and wholesale cart
previews.
"""

from src.pricing.calculator import (
    PricingCalculator,
    PricingConfig,
    RefundType,
    WholesaleCartLine,
    WholesaleCartLineTotal,
    WholesaleCartTotals,
    apply_best_discount,
    calculate_breakdown,
    calculate_cart_pricing,
    calculate_refund_amount,
    calculate_wholesale_cart_totals,
    get_tiered_price,
    price_line_items,
    validate_charge_amount,
)

__all__ = [
    # Calculator
    "PricingCalculator",
    "PricingConfig",
    # Results
    "RefundType",
    "WholesaleCartLine",
    "WholesaleCartLineTotal",
    "WholesaleCartTotals",
    # Functions
    "apply_best_discount",
    "calculate_breakdown",
    "calculate_cart_pricing",
    "calculate_refund_amount",
    "calculate_wholesale_cart_totals",
    "get_tiered_price",
    "price_line_items",
    "validate_charge_amount",
]
