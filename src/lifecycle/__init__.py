"""
Order / Quotation Lifecycle

State machines plus the services that apply them through the store and
hand committed transitions to settlement.
"""

from src.lifecycle.orders import OrderLifecycleService, new_id, order_from_breakdown
from src.lifecycle.quotations import QuotationConfig, QuotationLifecycleService
from src.lifecycle.state_machine import (
    FULFILLMENT_FROZEN_STATUSES,
    FULFILLMENT_SEQUENCE,
    ORDER_STATUS_TRANSITIONS,
    QUOTATION_TRANSITIONS,
    OrderStateMachine,
    QuotationStateMachine,
    TransitionResult,
)

__all__ = [
    # State machines
    "OrderStateMachine",
    "QuotationStateMachine",
    "TransitionResult",
    "ORDER_STATUS_TRANSITIONS",
    "FULFILLMENT_SEQUENCE",
    "FULFILLMENT_FROZEN_STATUSES",
    "QUOTATION_TRANSITIONS",
    # Services
    "OrderLifecycleService",
    "QuotationLifecycleService",
    "QuotationConfig",
    "order_from_breakdown",
    "new_id",
]
