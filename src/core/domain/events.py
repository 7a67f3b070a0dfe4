"""
DomainEvent — ephemeral notification produced by a committed transition

Never persisted by the engine. The publisher fans each event out to the
room named in `recipient_room` (`seller:{id}` or `buyer:{id}`).
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class EventKind(str, Enum):
    """Domain event kinds"""

    ORDER_CREATED = "order.created"
    ORDER_PAID = "order.paid"
    ORDER_CANCELLED = "order.cancelled"
    ORDER_FULFILLMENT_CHANGED = "order.fulfillment_changed"
    ORDER_REFUNDED = "order.refunded"
    WHOLESALE_ORDER_PLACED = "wholesale_order.placed"
    QUOTATION_CREATED = "quotation.created"
    QUOTATION_SENT = "quotation.sent"
    QUOTATION_ACCEPTED = "quotation.accepted"
    QUOTATION_REJECTED = "quotation.rejected"
    QUOTATION_EXPIRED = "quotation.expired"
    QUOTATION_CONVERTED = "quotation.converted_to_order"


class DomainEvent(BaseModel):
    kind: EventKind
    order_id: str | None = None
    quotation_id: str | None = None
    actor_seller_id: str = Field(..., min_length=1)
    recipient_room: str = Field(..., pattern=r"^(seller|buyer):.+$")
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_subject(self) -> "DomainEvent":
        if self.order_id is None and self.quotation_id is None:
            raise ValueError("event must reference an order_id or a quotation_id")
        return self

    def to_contract(self) -> dict[str, Any]:
        """JSON-ready dict matching contracts/schema/domain_event.json."""
        return self.model_dump(mode="json")
