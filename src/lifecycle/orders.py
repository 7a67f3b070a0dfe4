"""Order lifecycle service

Applies order transitions through the CommerceStore and hands every
committed change to the SettlementCoordinator.

Rules:
- Buyer and seller of record may read; only the seller may mutate
- Every mutation runs under store.lock(order_id) and saves with the version
  it read (ConflictError on mismatch)
- Side effects fire after the save returns, never before
- Re-applying the current state is a no-op: same order back, no event
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable

from src.core.domain.events import EventKind
from src.core.domain.order import (
    CreateOrderInput,
    Order,
    OrderKind,
    OrderStatus,
    RefundInput,
    UpdateFulfillmentInput,
)
from src.core.domain.pricing import PricingBreakdown
from src.core.domain.wholesale import InvitationStatus, WholesaleOrderRequest
from src.core.errors import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from src.core.ports import Clock, CommerceStore, SystemClock
from src.lifecycle.state_machine import FULFILLMENT_FROZEN_STATUSES, OrderStateMachine
from src.pricing.calculator import calculate_breakdown, price_line_items
from src.settlement.coordinator import CommittedTransition, SettlementCoordinator
from src.wholesale.checks.payment_terms import calculate_payment_due_date
from src.wholesale.validator import WholesaleRulesValidator

logger = logging.getLogger("settlement.lifecycle")

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


def order_from_breakdown(
    order_id: str,
    breakdown: PricingBreakdown,
    buyer_id: str,
    seller_id: str,
    now: datetime,
    kind: OrderKind = OrderKind.RETAIL,
    **extra: Any,
) -> Order:
    """New pending/unfulfilled order carrying a breakdown's amounts."""
    return Order(
        id=order_id,
        kind=kind,
        buyer_id=buyer_id,
        seller_id=seller_id,
        currency=breakdown.currency,
        items=breakdown.line_items,
        subtotal=breakdown.subtotal,
        tax_amount=breakdown.tax_amount,
        shipping_amount=breakdown.shipping_amount,
        total=breakdown.total,
        deposit_amount=breakdown.deposit_amount,
        balance_amount=breakdown.balance_amount,
        created_at=now,
        updated_at=now,
        **extra,
    )


class OrderLifecycleService:
    """Order creation, payment, cancellation, fulfillment and refunds."""

    def __init__(
        self,
        store: CommerceStore,
        coordinator: SettlementCoordinator | None = None,
        wholesale_validator: WholesaleRulesValidator | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        state_machine: OrderStateMachine | None = None,
    ):
        self.store = store
        self.coordinator = coordinator or SettlementCoordinator()
        self.wholesale_validator = wholesale_validator or WholesaleRulesValidator(store)
        self.clock = clock or SystemClock()
        self.id_factory = id_factory or new_id
        self.state_machine = state_machine or OrderStateMachine()

    # -------------------------------------------------------------------------
    # Reads & guards
    # -------------------------------------------------------------------------

    def _load(self, order_id: str) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    @staticmethod
    def _require_seller(order: Order, acting_seller_id: str) -> None:
        if order.seller_id != acting_seller_id:
            raise ForbiddenError(
                f"Only the seller of order {order.id} may modify it", actor_id=acting_seller_id
            )

    def get_order(self, order_id: str, requester_id: str) -> Order:
        """
        Raises:
            NotFoundError: If the order does not exist
            ForbiddenError: If the requester is neither buyer nor seller
        """
        order = self._load(order_id)
        if not order.is_party(requester_id):
            raise ForbiddenError(f"Access to order {order_id} denied", actor_id=requester_id)
        return order

    def _commit(self, order: Order, changes: dict[str, Any]) -> Order:
        updated = order.model_copy(
            update={**changes, "version": order.version + 1, "updated_at": self.clock.now()}
        )
        return self.store.update_order(updated, expected_version=order.version)

    def _settle(self, kind: EventKind, order: Order, payload: dict[str, Any] | None = None) -> None:
        self.coordinator.settle(
            CommittedTransition(
                kind=kind,
                actor_seller_id=order.seller_id,
                occurred_at=order.updated_at,
                order=order,
                payload=payload or {},
            )
        )

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_order(self, order_input: CreateOrderInput, buyer_id: str) -> Order:
        """
        Price the input and persist a pending/unfulfilled order.

        Raises:
            InvalidQuantityError: If any quantity <= 0
            CurrencyMismatchError: If items disagree with the order currency
        """
        line_items = price_line_items(order_input.items)
        breakdown = calculate_breakdown(
            line_items,
            order_input.tax_rate,
            order_input.shipping_amount,
            order_input.deposit_percentage,
            order_input.currency,
        )
        order = order_from_breakdown(
            self.id_factory(), breakdown, buyer_id, order_input.seller_id, self.clock.now(), order_input.kind
        )

        with self.store.lock(order.id):
            saved = self.store.insert_order(order)

        logger.info("order %s created for buyer %s: total=%s", saved.id, buyer_id, saved.total)
        self._settle(EventKind.ORDER_CREATED, saved)
        return saved

    def place_wholesale_order(self, request: WholesaleOrderRequest) -> Order:
        """
        Validate and persist a wholesale order.

        Raises:
            NotFoundError: Unknown invitation
            ForbiddenError: Invitation not active, or not between these parties
            ValidationError: Any wholesale rule failed (carries the full result)
            UnsupportedPaymentTermError: Allowed but unparseable payment term
        """
        validator = self.wholesale_validator
        invitation = validator.load_invitation(request.invitation_id)
        if invitation.status != InvitationStatus.ACCEPTED:
            raise ForbiddenError(f"Wholesale invitation {invitation.id} is not active", actor_id=request.buyer_id)
        if invitation.seller_id != request.seller_id or (
            invitation.buyer_id is not None and invitation.buyer_id != request.buyer_id
        ):
            raise ForbiddenError(
                f"Wholesale invitation {invitation.id} does not cover this buyer and seller",
                actor_id=request.buyer_id,
            )

        validation = validator.validate_wholesale_order(
            request.invitation_id, request.items, request.payment_terms
        )
        if not validation.valid:
            raise ValidationError("Wholesale order validation failed", result=validation)

        now = self.clock.now()
        breakdown = calculate_breakdown(
            validation.line_items,
            0,
            request.shipping_amount,
            validation.deposit_calculation.deposit_percentage,
            validation.currency,
        )
        order = order_from_breakdown(
            self.id_factory(),
            breakdown,
            request.buyer_id,
            request.seller_id,
            now,
            OrderKind.WHOLESALE,
            invitation_id=invitation.id,
            payment_terms=request.payment_terms,
            payment_due_date=calculate_payment_due_date(now.date(), request.payment_terms),
        )

        with self.store.lock(order.id):
            saved = self.store.insert_order(order)

        logger.info(
            "wholesale order %s placed on invitation %s: total=%s deposit=%s",
            saved.id, invitation.id, saved.total, saved.deposit_amount,
        )
        self._settle(
            EventKind.WHOLESALE_ORDER_PLACED,
            saved,
            {
                "invitation_id": invitation.id,
                "payment_terms": request.payment_terms,
                "payment_due_date": saved.payment_due_date.isoformat(),
                "deposit_amount": str(saved.deposit_amount.amount),
            },
        )
        return saved

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def _change_status(
        self,
        order_id: str,
        acting_seller_id: str,
        target: OrderStatus,
        kind: EventKind,
        payload: dict[str, Any] | None = None,
    ) -> Order:
        with self.store.lock(order_id):
            order = self._load(order_id)
            self._require_seller(order, acting_seller_id)

            result = self.state_machine.evaluate_status(order.status, target).require("order")
            if not result.transition_occurred:
                logger.info("order %s already %s; nothing to do", order_id, target.value)
                return order

            saved = self._commit(order, {"status": target})

        logger.info("order %s: %s → %s", order_id, order.status.value, target.value)
        self._settle(kind, saved, {"previous_status": order.status.value, **(payload or {})})
        return saved

    def mark_paid(self, order_id: str, acting_seller_id: str) -> Order:
        return self._change_status(order_id, acting_seller_id, OrderStatus.PAID, EventKind.ORDER_PAID)

    def cancel_order(self, order_id: str, acting_seller_id: str) -> Order:
        return self._change_status(order_id, acting_seller_id, OrderStatus.CANCELLED, EventKind.ORDER_CANCELLED)

    def issue_refund(self, refund: RefundInput, acting_seller_id: str) -> Order:
        """
        Mark an order refunded. Idempotent: a refunded order is returned as
        is and no second refund event is emitted.

        Raises:
            NotFoundError / ForbiddenError
        """
        payload = {"reason": refund.reason} if refund.reason else {}
        return self._change_status(
            refund.order_id, acting_seller_id, OrderStatus.REFUNDED, EventKind.ORDER_REFUNDED, payload
        )

    # -------------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------------

    def update_fulfillment(self, update: UpdateFulfillmentInput, acting_seller_id: str) -> Order:
        """
        Move fulfillment forward and/or record tracking details.

        Raises:
            NotFoundError / ForbiddenError
            InvalidTransitionError: Backwards move, or any change on a
                cancelled/refunded order (tracking details included)
        """
        with self.store.lock(update.order_id):
            order = self._load(update.order_id)
            self._require_seller(order, acting_seller_id)

            result = self.state_machine.evaluate_fulfillment(
                order.status, order.fulfillment_status, update.fulfillment_status
            ).require("order fulfillment")

            tracking_number = update.tracking_number if update.tracking_number is not None else order.tracking_number
            carrier = update.carrier if update.carrier is not None else order.carrier
            if (
                not result.transition_occurred
                and tracking_number == order.tracking_number
                and carrier == order.carrier
            ):
                return order
            if order.status in FULFILLMENT_FROZEN_STATUSES:
                raise InvalidTransitionError(
                    "order fulfillment",
                    order.fulfillment_status.value,
                    update.fulfillment_status.value,
                    f"Tracking details cannot change on a {order.status.value} order",
                )

            saved = self._commit(
                order,
                {
                    "fulfillment_status": update.fulfillment_status,
                    "tracking_number": tracking_number,
                    "carrier": carrier,
                },
            )

        logger.info(
            "order %s fulfillment: %s → %s",
            order.id, order.fulfillment_status.value, saved.fulfillment_status.value,
        )
        payload: dict[str, Any] = {"previous_fulfillment_status": order.fulfillment_status.value}
        if saved.tracking_number:
            payload["tracking_number"] = saved.tracking_number
        if saved.carrier:
            payload["carrier"] = saved.carrier
        self._settle(EventKind.ORDER_FULFILLMENT_CHANGED, saved, payload)
        return saved
