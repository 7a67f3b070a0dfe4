"""Order / Quotation state machines

Order status:       pending → {paid, cancelled}; any → refunded
Order fulfillment:  unfulfilled → partially_fulfilled → fulfilled
                    (forward only, steps may be skipped, frozen once the
                    order is cancelled or refunded)
Quotation:          draft → sent → {accepted, rejected, expired}
                    accepted → converted_to_order (terminal)

The machines only evaluate; they never persist. A request for the current
state is allowed with transition_occurred=False, which is what makes the
lifecycle operations idempotent.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Final

from src.core.domain.order import FulfillmentStatus, OrderStatus
from src.core.domain.quotation import QuotationStatus, as_utc
from src.core.errors import InvalidTransitionError


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of evaluating one requested transition."""

    allowed: bool
    new_state: Enum
    previous_state: Enum
    requested_state: Enum

    transition_occurred: bool
    transition_reason: str

    details: str = ""

    def require(self, entity: str) -> "TransitionResult":
        """
        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.allowed:
            raise InvalidTransitionError(
                entity, self.previous_state.value, self.requested_state.value, self.details
            )
        return self


def _create_result(
    allowed: bool,
    previous_state: Enum,
    requested_state: Enum,
    reason: str,
    details: str = "",
) -> TransitionResult:
    occurred = allowed and previous_state != requested_state
    return TransitionResult(
        allowed=allowed,
        new_state=requested_state if allowed else previous_state,
        previous_state=previous_state,
        requested_state=requested_state,
        transition_occurred=occurred,
        transition_reason=reason,
        details=details,
    )


# =============================================================================
# ORDER
# =============================================================================

ORDER_STATUS_TRANSITIONS: Final[dict[OrderStatus, frozenset[OrderStatus]]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.REFUNDED}),
    OrderStatus.PAID: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.REFUNDED: frozenset(),
}

FULFILLMENT_SEQUENCE: Final[tuple[FulfillmentStatus, ...]] = (
    FulfillmentStatus.UNFULFILLED,
    FulfillmentStatus.PARTIALLY_FULFILLED,
    FulfillmentStatus.FULFILLED,
)

# Statuses in which fulfillment can no longer change
FULFILLMENT_FROZEN_STATUSES: Final[frozenset[OrderStatus]] = frozenset(
    {OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)


class OrderStateMachine:
    """Evaluates order status and fulfillment transitions."""

    def evaluate_status(self, current: OrderStatus, target: OrderStatus) -> TransitionResult:
        if current == target:
            return _create_result(True, current, target, "already_in_state")

        if target in ORDER_STATUS_TRANSITIONS[current]:
            return _create_result(True, current, target, f"{current.value}_to_{target.value}")

        return _create_result(
            False, current, target, "transition_not_allowed",
            details=f"Allowed from '{current.value}': "
            + (", ".join(sorted(s.value for s in ORDER_STATUS_TRANSITIONS[current])) or "none"),
        )

    def evaluate_fulfillment(
        self,
        status: OrderStatus,
        current: FulfillmentStatus,
        target: FulfillmentStatus,
    ) -> TransitionResult:
        if current == target:
            return _create_result(True, current, target, "already_in_state")

        if status in FULFILLMENT_FROZEN_STATUSES:
            return _create_result(
                False, current, target, "order_closed",
                details=f"Fulfillment cannot change on a {status.value} order",
            )

        if FULFILLMENT_SEQUENCE.index(target) < FULFILLMENT_SEQUENCE.index(current):
            return _create_result(
                False, current, target, "fulfillment_regression",
                details="Fulfillment only moves forward",
            )

        return _create_result(True, current, target, f"{current.value}_to_{target.value}")


# =============================================================================
# QUOTATION
# =============================================================================

QUOTATION_TRANSITIONS: Final[dict[QuotationStatus, frozenset[QuotationStatus]]] = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.SENT}),
    QuotationStatus.SENT: frozenset(
        {QuotationStatus.ACCEPTED, QuotationStatus.REJECTED, QuotationStatus.EXPIRED}
    ),
    QuotationStatus.ACCEPTED: frozenset({QuotationStatus.CONVERTED_TO_ORDER}),
    QuotationStatus.REJECTED: frozenset(),
    QuotationStatus.EXPIRED: frozenset(),
    QuotationStatus.CONVERTED_TO_ORDER: frozenset(),
}


class QuotationStateMachine:
    """Evaluates quotation transitions, including validity-window guards."""

    def evaluate(
        self,
        current: QuotationStatus,
        target: QuotationStatus,
        now: datetime | None = None,
        valid_until: datetime | None = None,
    ) -> TransitionResult:
        """
        Args:
            current: Current quotation status
            target: Requested status
            now: Evaluation instant (needed for validity checks)
            valid_until: Quotation validity end, if any

        Returns:
            TransitionResult; send/accept past valid_until and expire before
            it are refused
        """
        if current == target:
            return _create_result(True, current, target, "already_in_state")

        if target not in QUOTATION_TRANSITIONS[current]:
            allowed = ", ".join(sorted(s.value for s in QUOTATION_TRANSITIONS[current])) or "none"
            return _create_result(
                False, current, target, "transition_not_allowed",
                details=f"Allowed from '{current.value}': {allowed}",
            )

        expired = valid_until is not None and now is not None and as_utc(now) > as_utc(valid_until)

        if target in (QuotationStatus.SENT, QuotationStatus.ACCEPTED) and expired:
            return _create_result(False, current, target, "quotation_expired", details="Quotation has expired")

        if target == QuotationStatus.EXPIRED and not expired:
            return _create_result(
                False, current, target, "not_expired_yet", details="Quotation is not expired yet"
            )

        return _create_result(True, current, target, f"{current.value}_to_{target.value}")
