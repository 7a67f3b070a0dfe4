"""
Ports — collaborators consumed by the engine

The engine never reaches a database, cache or socket directly. Each external
collaborator is a Protocol passed in through a constructor:

- CommerceStore: transactional entity store with per-entity locking and
  optimistic version checks
- RateProvider: tax rate and shipping amount for a destination
- CacheInvalidator: best-effort `invalidate(key)`
- EventPublisher: room-scoped fan-out of DomainEvent
- Clock: current UTC time
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import ContextManager, Iterable, Protocol

from src.core.domain.events import DomainEvent
from src.core.domain.order import Order
from src.core.domain.pricing import Destination, RateQuote
from src.core.domain.quotation import Quotation
from src.core.domain.wholesale import WholesaleInvitation, WholesaleProduct


# =============================================================================
# PERSISTENCE
# =============================================================================


class CommerceStore(Protocol):
    """
    Transactional store.

    update_* must raise ConflictError when the stored version differs from
    expected_version; the saved record carries version = expected_version + 1.
    """

    def lock(self, entity_id: str) -> ContextManager[None]:
        ...

    def get_order(self, order_id: str) -> Order | None:
        ...

    def insert_order(self, order: Order) -> Order:
        ...

    def update_order(self, order: Order, expected_version: int) -> Order:
        ...

    def get_quotation(self, quotation_id: str) -> Quotation | None:
        ...

    def insert_quotation(self, quotation: Quotation) -> Quotation:
        ...

    def update_quotation(self, quotation: Quotation, expected_version: int) -> Quotation:
        ...

    def commit_conversion(
        self, order: Order, quotation: Quotation, expected_version: int
    ) -> tuple[Order, Quotation]:
        """Insert `order` and save `quotation` in one write; nothing is kept on failure."""
        ...

    def last_quotation_number(self, prefix: str) -> str | None:
        ...

    def get_invitation(self, invitation_id: str) -> WholesaleInvitation | None:
        ...

    def get_wholesale_products(self, product_ids: Iterable[str]) -> dict[str, WholesaleProduct]:
        ...


# =============================================================================
# RATES
# =============================================================================


class RateProvider(Protocol):
    def quote(self, destination: Destination, subtotal: Decimal, currency: str) -> RateQuote:
        ...


class FlatRateProvider:
    """Fixed tax rate and shipping charge, whatever the destination."""

    def __init__(self, rate: Decimal = Decimal(0), shipping_amount: Decimal = Decimal(0)):
        self._quote = RateQuote(rate=rate, shipping_amount=shipping_amount)

    def quote(self, destination: Destination, subtotal: Decimal, currency: str) -> RateQuote:
        return self._quote


# =============================================================================
# SIDE EFFECTS
# =============================================================================


class CacheInvalidator(Protocol):
    def invalidate(self, key: str) -> None:
        ...


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None:
        ...


# =============================================================================
# TIME
# =============================================================================


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock frozen at a given instant; advance() moves it forward."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, **delta) -> None:
        self._instant = self._instant + timedelta(**delta)
