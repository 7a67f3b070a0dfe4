"""Quotation lifecycle service

draft → sent → {accepted, rejected, expired}; accepted → converted_to_order.

- Seller of record creates, sends and converts
- Buyer of record accepts or rejects
- expire is a system action (no actor check)
- Conversion is idempotent: a quotation that already carries an order_id
  returns that order and emits nothing
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from src.core.domain.events import EventKind
from src.core.domain.order import Order, OrderKind
from src.core.domain.quotation import CreateQuotationInput, Quotation, QuotationStatus
from src.core.errors import ForbiddenError, NotFoundError, ValidationError
from src.core.ports import Clock, CommerceStore, SystemClock
from src.lifecycle.orders import IdFactory, new_id, order_from_breakdown
from src.lifecycle.state_machine import QuotationStateMachine
from src.pricing.calculator import calculate_breakdown, price_line_items
from src.settlement.coordinator import CommittedTransition, SettlementCoordinator

logger = logging.getLogger("settlement.lifecycle")


@dataclass(frozen=True)
class QuotationConfig:
    """Quotation defaults.

    Numbers look like Q-2026-001: prefix, creation year, then a per-year
    sequence padded to `number_width` digits.
    """

    default_deposit_percentage: Decimal = Decimal(50)
    number_prefix: str = "Q"
    number_width: int = 3


class QuotationLifecycleService:
    """Quotation drafting, negotiation and conversion to trade orders."""

    def __init__(
        self,
        store: CommerceStore,
        coordinator: SettlementCoordinator | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        config: QuotationConfig | None = None,
        state_machine: QuotationStateMachine | None = None,
    ):
        self.store = store
        self.coordinator = coordinator or SettlementCoordinator()
        self.clock = clock or SystemClock()
        self.id_factory = id_factory or new_id
        self.config = config or QuotationConfig()
        self.state_machine = state_machine or QuotationStateMachine()

    # -------------------------------------------------------------------------
    # Reads & guards
    # -------------------------------------------------------------------------

    def _load(self, quotation_id: str) -> Quotation:
        quotation = self.store.get_quotation(quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation", quotation_id)
        return quotation

    @staticmethod
    def _require_seller(quotation: Quotation, seller_id: str) -> None:
        if quotation.seller_id != seller_id:
            raise ForbiddenError("Unauthorized: You do not own this quotation", actor_id=seller_id)

    @staticmethod
    def _require_buyer(quotation: Quotation, buyer_id: str) -> None:
        if quotation.buyer_id is None or quotation.buyer_id != buyer_id:
            raise ForbiddenError(
                f"Quotation {quotation.id} was not issued to this buyer", actor_id=buyer_id
            )

    def get_quotation(self, quotation_id: str, requester_id: str) -> Quotation:
        """
        Raises:
            NotFoundError: Unknown quotation
            ForbiddenError: Requester is neither the seller nor the buyer
        """
        quotation = self._load(quotation_id)
        if requester_id not in (quotation.seller_id, quotation.buyer_id):
            raise ForbiddenError(f"Access to quotation {quotation_id} denied", actor_id=requester_id)
        return quotation

    def next_quotation_number(self) -> str:
        """Next number in the current year's sequence."""
        prefix = f"{self.config.number_prefix}-{self.clock.now().year}-"
        last = self.store.last_quotation_number(prefix)
        sequence = int(last[len(prefix):]) + 1 if last else 1
        return f"{prefix}{sequence:0{self.config.number_width}d}"

    def _settle(
        self,
        kind: EventKind,
        quotation: Quotation,
        order: Order | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        self.coordinator.settle(
            CommittedTransition(
                kind=kind,
                actor_seller_id=quotation.seller_id,
                occurred_at=quotation.updated_at,
                order=order,
                quotation=quotation,
                payload=payload or {},
            )
        )

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_quotation(self, quotation_input: CreateQuotationInput, seller_id: str) -> Quotation:
        """
        Price the input and persist a draft quotation.

        Raises:
            InvalidQuantityError / CurrencyMismatchError: From pricing
        """
        deposit_percentage = quotation_input.deposit_percentage
        if deposit_percentage is None:
            deposit_percentage = self.config.default_deposit_percentage

        breakdown = calculate_breakdown(
            price_line_items(quotation_input.items),
            quotation_input.tax_rate,
            quotation_input.shipping_amount,
            deposit_percentage,
            quotation_input.currency,
        )

        now = self.clock.now()
        quotation_id = self.id_factory()
        # One numbering sequence per prefix
        with self.store.lock(f"quotation-number:{self.config.number_prefix}"):
            quotation = Quotation(
                id=quotation_id,
                quotation_number=self.next_quotation_number(),
                seller_id=seller_id,
                buyer_id=quotation_input.buyer_id,
                buyer_email=quotation_input.buyer_email,
                currency=breakdown.currency,
                breakdown=breakdown,
                valid_until=quotation_input.valid_until,
                created_at=now,
                updated_at=now,
            )
            saved = self.store.insert_quotation(quotation)

        logger.info(
            "quotation %s (%s) drafted for %s: total=%s",
            saved.quotation_number, saved.id, saved.buyer_email, breakdown.total,
        )
        self._settle(EventKind.QUOTATION_CREATED, saved)
        return saved

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _transition(
        self,
        quotation: Quotation,
        target: QuotationStatus,
        changes: dict[str, Any] | None = None,
    ) -> Quotation | None:
        """Evaluate and save; None when the quotation is already in `target`."""
        now = self.clock.now()
        result = self.state_machine.evaluate(quotation.status, target, now, quotation.valid_until).require(
            "quotation"
        )
        if not result.transition_occurred:
            return None

        updated = quotation.model_copy(
            update={**(changes or {}), "status": target, "version": quotation.version + 1, "updated_at": now}
        )
        return self.store.update_quotation(updated, expected_version=quotation.version)

    def _apply(
        self,
        quotation_id: str,
        target: QuotationStatus,
        kind: EventKind,
        guard=None,
        changes: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Quotation:
        with self.store.lock(quotation_id):
            quotation = self._load(quotation_id)
            if guard is not None:
                guard(quotation)
            saved = self._transition(quotation, target, changes)

        if saved is None:
            logger.info("quotation %s already %s; nothing to do", quotation_id, target.value)
            return quotation

        logger.info("quotation %s: %s → %s", quotation_id, quotation.status.value, target.value)
        self._settle(kind, saved, payload=payload)
        return saved

    def send_quotation(self, quotation_id: str, seller_id: str) -> Quotation:
        """
        Raises:
            ForbiddenError: Not the seller of record
            ValidationError: Total is not positive
            InvalidTransitionError: Not a draft, or already expired
        """

        def guard(quotation: Quotation) -> None:
            self._require_seller(quotation, seller_id)
            if quotation.status == QuotationStatus.DRAFT and quotation.breakdown.total.amount <= 0:
                raise ValidationError("Cannot send quotation with zero or negative total")

        return self._apply(quotation_id, QuotationStatus.SENT, EventKind.QUOTATION_SENT, guard)

    def accept_quotation(self, quotation_id: str, buyer_id: str) -> Quotation:
        """
        Raises:
            ForbiddenError: Not the buyer of record
            InvalidTransitionError: Not sent, or past valid_until
        """
        return self._apply(
            quotation_id,
            QuotationStatus.ACCEPTED,
            EventKind.QUOTATION_ACCEPTED,
            lambda quotation: self._require_buyer(quotation, buyer_id),
        )

    def reject_quotation(self, quotation_id: str, buyer_id: str, reason: str | None = None) -> Quotation:
        return self._apply(
            quotation_id,
            QuotationStatus.REJECTED,
            EventKind.QUOTATION_REJECTED,
            lambda quotation: self._require_buyer(quotation, buyer_id),
            changes={"rejection_reason": reason},
            payload={"reason": reason} if reason else None,
        )

    def expire_quotation(self, quotation_id: str) -> Quotation:
        """
        Raises:
            InvalidTransitionError: Not sent, or valid_until not yet passed
        """
        return self._apply(quotation_id, QuotationStatus.EXPIRED, EventKind.QUOTATION_EXPIRED)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def convert_quotation_to_order(self, quotation_id: str) -> Order:
        """
        Create a trade order from an accepted quotation.

        The order carries the quotation's breakdown unchanged. Repeat calls
        return the same order.

        Raises:
            NotFoundError: Unknown quotation
            ValidationError: Quotation has no buyer account to bill
            InvalidTransitionError: Quotation not accepted
        """
        with self.store.lock(quotation_id):
            quotation = self._load(quotation_id)

            if quotation.order_id:
                existing = self.store.get_order(quotation.order_id)
                if existing is not None:
                    logger.info(
                        "quotation %s already converted to order %s", quotation_id, quotation.order_id
                    )
                    return existing

            self.state_machine.evaluate(
                quotation.status, QuotationStatus.CONVERTED_TO_ORDER
            ).require("quotation")
            if not quotation.buyer_id:
                raise ValidationError(f"Quotation {quotation_id} has no buyer account to bill")

            now = self.clock.now()
            order = order_from_breakdown(
                self.id_factory(),
                quotation.breakdown,
                quotation.buyer_id,
                quotation.seller_id,
                now,
                OrderKind.TRADE,
                quotation_id=quotation.id,
            )
            converted = quotation.model_copy(
                update={
                    "status": QuotationStatus.CONVERTED_TO_ORDER,
                    "order_id": order.id,
                    "version": quotation.version + 1,
                    "updated_at": now,
                }
            )
            saved_order, saved = self.store.commit_conversion(
                order, converted, expected_version=quotation.version
            )

        logger.info("quotation %s converted to order %s", saved.quotation_number, saved_order.id)
        self._settle(EventKind.QUOTATION_CONVERTED, saved, order=saved_order)
        return saved_order
