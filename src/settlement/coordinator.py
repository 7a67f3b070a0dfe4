"""Settlement Side-Effect Coordinator

Given a committed order/quotation transition, plans and dispatches:
- cache invalidations (ordered, deduplicated keys)
- domain events (one per interested room)

Contract:
1. settle() is only ever called after the store has committed the change
2. Side effects are best-effort: a failing cache or publisher call is
   logged and queued, never raised to the caller, never rolls anything back
3. retry_pending() re-attempts queued side effects until
   SettlementConfig.max_attempts, then drops them with an error log
4. plan() is pure and deterministic for a given transition
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Final

from src.core.domain.events import DomainEvent, EventKind
from src.core.domain.order import Order, OrderKind
from src.core.domain.quotation import Quotation, QuotationStatus
from src.core.ports import CacheInvalidator, EventPublisher
from src.settlement.cache import NullCache
from src.settlement.publisher import NullPublisher

logger = logging.getLogger("settlement.coordinator")


# =============================================================================
# CONSTANTS
# =============================================================================

# Quotation events the buyer does not see (drafts are seller-private)
SELLER_ONLY_EVENTS: Final[frozenset[EventKind]] = frozenset({EventKind.QUOTATION_CREATED})


# =============================================================================
# CONFIG & TYPES
# =============================================================================


@dataclass(frozen=True)
class SettlementConfig:
    max_attempts: int = 5


@dataclass(frozen=True)
class CommittedTransition:
    """A state change that the store has durably committed."""

    kind: EventKind
    actor_seller_id: str
    occurred_at: datetime
    order: Order | None = None
    quotation: Quotation | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.order is None and self.quotation is None:
            raise ValueError("CommittedTransition needs an order or a quotation")


@dataclass(frozen=True)
class SettlementPlan:
    cache_keys: tuple[str, ...]
    events: tuple[DomainEvent, ...]


@dataclass(frozen=True)
class PendingSideEffect:
    """Queued side effect awaiting retry: a cache key or an event."""

    cache_key: str | None = None
    event: DomainEvent | None = None
    attempts: int = 1
    last_error: str = ""

    @property
    def description(self) -> str:
        if self.cache_key is not None:
            return f"invalidate {self.cache_key}"
        return f"publish {self.event.kind.value} to {self.event.recipient_room}"


@dataclass(frozen=True)
class SettlementReport:
    plan: SettlementPlan
    invalidated: int
    published: int
    failed: int


# =============================================================================
# KEY & ROOM HELPERS
# =============================================================================


def order_cache_keys(order: Order) -> list[str]:
    keys = [
        f"order:{order.id}",
        f"orders:buyer:{order.buyer_id}",
        f"orders:seller:{order.seller_id}",
    ]
    if order.kind == OrderKind.WHOLESALE:
        keys += [
            f"wholesale:orders:buyer:{order.buyer_id}",
            f"wholesale:orders:seller:{order.seller_id}",
        ]
    if order.quotation_id:
        keys.append(f"quotation:{order.quotation_id}")
    return keys


def quotation_cache_keys(quotation: Quotation) -> list[str]:
    keys = [f"quotation:{quotation.id}", f"quotations:seller:{quotation.seller_id}"]
    if quotation.buyer_id:
        keys.append(f"quotations:buyer:{quotation.buyer_id}")
    return keys


def _dedupe(keys: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(keys))


# =============================================================================
# COORDINATOR
# =============================================================================


class SettlementCoordinator:
    """Plans and dispatches post-commit side effects.

    Cache and publisher default to no-op adapters.
    """

    def __init__(
        self,
        cache: CacheInvalidator | None = None,
        publisher: EventPublisher | None = None,
        config: SettlementConfig | None = None,
    ):
        self.cache = cache or NullCache()
        self.publisher = publisher or NullPublisher()
        self.config = config or SettlementConfig()
        self._pending: list[PendingSideEffect] = []

    @property
    def pending(self) -> tuple[PendingSideEffect, ...]:
        return tuple(self._pending)

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def plan(self, transition: CommittedTransition) -> SettlementPlan:
        """Ordered cache keys and one event per interested room."""
        keys: list[str] = []
        if transition.order is not None:
            keys += order_cache_keys(transition.order)
        if transition.quotation is not None:
            keys += quotation_cache_keys(transition.quotation)

        rooms = [f"seller:{transition.actor_seller_id}"]
        buyer_id = self._buyer_id(transition)
        if buyer_id and transition.kind not in SELLER_ONLY_EVENTS:
            rooms.append(f"buyer:{buyer_id}")

        payload = {**self._base_payload(transition), **transition.payload}
        events = tuple(
            DomainEvent(
                kind=transition.kind,
                order_id=transition.order.id if transition.order else None,
                quotation_id=transition.quotation.id if transition.quotation else None,
                actor_seller_id=transition.actor_seller_id,
                recipient_room=room,
                payload=payload,
                timestamp=transition.occurred_at,
            )
            for room in rooms
        )
        return SettlementPlan(cache_keys=_dedupe(keys), events=events)

    @staticmethod
    def _buyer_id(transition: CommittedTransition) -> str | None:
        if transition.order is not None:
            return transition.order.buyer_id
        return transition.quotation.buyer_id

    @staticmethod
    def _base_payload(transition: CommittedTransition) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if transition.order is not None:
            order = transition.order
            payload.update(
                {
                    "status": order.status.value,
                    "fulfillment_status": order.fulfillment_status.value,
                    "total": str(order.total.amount),
                    "currency": order.currency,
                }
            )
        if transition.quotation is not None:
            quotation = transition.quotation
            payload["quotation_status"] = quotation.status.value
            payload["quotation_number"] = quotation.quotation_number
            if quotation.status == QuotationStatus.CONVERTED_TO_ORDER and quotation.order_id:
                payload["order_id"] = quotation.order_id
        return payload

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def settle(self, transition: CommittedTransition) -> SettlementReport:
        """
        Dispatch the plan for a committed transition.

        Never raises for cache or publisher failures; they are queued.
        """
        plan = self.plan(transition)
        invalidated = published = failed = 0

        for key in plan.cache_keys:
            if self._attempt(PendingSideEffect(cache_key=key, attempts=0)):
                invalidated += 1
            else:
                failed += 1

        for event in plan.events:
            if self._attempt(PendingSideEffect(event=event, attempts=0)):
                published += 1
            else:
                failed += 1

        logger.info(
            "settled %s: %d key(s) invalidated, %d event(s) published, %d queued",
            transition.kind.value, invalidated, published, failed,
        )
        return SettlementReport(plan=plan, invalidated=invalidated, published=published, failed=failed)

    def retry_pending(self) -> int:
        """
        Re-attempt every queued side effect once.

        Returns:
            Number of side effects that succeeded on this pass
        """
        queued, self._pending = self._pending, []
        succeeded = 0
        for item in queued:
            if self._attempt(item):
                succeeded += 1
        return succeeded

    def _attempt(self, item: PendingSideEffect) -> bool:
        attempts = item.attempts + 1
        try:
            if item.cache_key is not None:
                self.cache.invalidate(item.cache_key)
            else:
                self.publisher.publish(item.event)
            return True
        except Exception as exc:
            if attempts >= self.config.max_attempts:
                logger.error(
                    "dropping side effect after %d attempt(s): %s (%s)", attempts, item.description, exc
                )
            else:
                logger.warning(
                    "side effect failed (attempt %d): %s (%s); queued for retry",
                    attempts, item.description, exc,
                )
                self._pending.append(replace(item, attempts=attempts, last_error=str(exc)))
            return False
