"""
InMemoryCommerceStore — process-local CommerceStore

Backs tests and the default engine wiring. Records are immutable pydantic
models, so the store keeps them as-is and hands out the same instances.

Concurrency:
- lock(entity_id) yields a re-entrant lock dedicated to that entity; the
  lock lives only while some caller holds or waits on it
- update_* compares versions under the store-wide lock and raises
  ConflictError on mismatch
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterable, Iterator

from src.core.domain.order import Order
from src.core.domain.quotation import Quotation
from src.core.domain.wholesale import WholesaleInvitation, WholesaleProduct
from src.core.errors import ConflictError, NotFoundError


class InMemoryCommerceStore:
    """Dict-backed store with per-entity locking and version checks."""

    def __init__(self):
        self._guard = threading.RLock()
        self._entity_locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()

        self._orders: dict[str, Order] = {}
        self._quotations: dict[str, Quotation] = {}
        self._invitations: dict[str, WholesaleInvitation] = {}
        self._products: dict[str, WholesaleProduct] = {}

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    @contextmanager
    def lock(self, entity_id: str) -> Iterator[None]:
        with self._guard:
            entity_lock = self._entity_locks.get(entity_id)
            if entity_lock is None:
                entity_lock = threading.RLock()
                self._entity_locks[entity_id] = entity_lock
        with entity_lock:
            yield

    def _check_version(self, kind: str, current, expected_version: int, new_version: int) -> None:
        if current.version != expected_version:
            raise ConflictError(
                f"{kind} {current.id} is at version {current.version}, expected {expected_version}"
            )
        if new_version != expected_version + 1:
            raise ConflictError(
                f"{kind} {current.id} must be saved as version {expected_version + 1}, got {new_version}"
            )

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def insert_order(self, order: Order) -> Order:
        with self._guard:
            if order.id in self._orders:
                raise ConflictError(f"Order {order.id} already exists")
            self._orders[order.id] = order
        return order

    def update_order(self, order: Order, expected_version: int) -> Order:
        with self._guard:
            current = self._orders.get(order.id)
            if current is None:
                raise NotFoundError("Order", order.id)
            self._check_version("Order", current, expected_version, order.version)
            self._orders[order.id] = order
        return order

    # -------------------------------------------------------------------------
    # Quotations
    # -------------------------------------------------------------------------

    def get_quotation(self, quotation_id: str) -> Quotation | None:
        return self._quotations.get(quotation_id)

    def insert_quotation(self, quotation: Quotation) -> Quotation:
        with self._guard:
            if quotation.id in self._quotations:
                raise ConflictError(f"Quotation {quotation.id} already exists")
            if any(q.quotation_number == quotation.quotation_number for q in self._quotations.values()):
                raise ConflictError(f"Quotation number {quotation.quotation_number} already taken")
            self._quotations[quotation.id] = quotation
        return quotation

    def update_quotation(self, quotation: Quotation, expected_version: int) -> Quotation:
        with self._guard:
            current = self._quotations.get(quotation.id)
            if current is None:
                raise NotFoundError("Quotation", quotation.id)
            self._check_version("Quotation", current, expected_version, quotation.version)
            self._quotations[quotation.id] = quotation
        return quotation

    def commit_conversion(
        self, order: Order, quotation: Quotation, expected_version: int
    ) -> tuple[Order, Quotation]:
        with self._guard:
            current = self._quotations.get(quotation.id)
            if current is None:
                raise NotFoundError("Quotation", quotation.id)
            self._check_version("Quotation", current, expected_version, quotation.version)
            if order.id in self._orders:
                raise ConflictError(f"Order {order.id} already exists")
            self._orders[order.id] = order
            self._quotations[quotation.id] = quotation
        return order, quotation

    def last_quotation_number(self, prefix: str) -> str | None:
        """Highest number starting with prefix, compared by numeric suffix."""
        with self._guard:
            numbers = [
                q.quotation_number
                for q in self._quotations.values()
                if q.quotation_number.startswith(prefix) and q.quotation_number[len(prefix):].isdigit()
            ]
        if not numbers:
            return None
        return max(numbers, key=lambda number: int(number[len(prefix):]))

    # -------------------------------------------------------------------------
    # Wholesale catalog
    # -------------------------------------------------------------------------

    def add_invitation(self, invitation: WholesaleInvitation) -> WholesaleInvitation:
        with self._guard:
            self._invitations[invitation.id] = invitation
        return invitation

    def get_invitation(self, invitation_id: str) -> WholesaleInvitation | None:
        return self._invitations.get(invitation_id)

    def add_wholesale_product(self, product: WholesaleProduct) -> WholesaleProduct:
        with self._guard:
            self._products[product.product_id] = product
        return product

    def get_wholesale_products(self, product_ids: Iterable[str]) -> dict[str, WholesaleProduct]:
        return {pid: self._products[pid] for pid in product_ids if pid in self._products}
