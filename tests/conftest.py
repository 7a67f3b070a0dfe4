"""
Shared fixtures: an in-memory store, a frozen clock, observable cache and
publisher, and deterministic ids.
"""

import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.adapters import InMemoryCommerceStore
from src.core.domain import (
    WholesaleInvitation,
    WholesaleProduct,
    WholesaleTerms,
)
from src.core.ports import FixedClock
from src.settlement import InMemoryCache, InMemoryPublisher, SettlementCoordinator

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


class RecordingCache:
    """CacheInvalidator that remembers every key, optionally failing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.keys: list[str] = []

    def invalidate(self, key: str) -> None:
        if self.fail:
            raise ConnectionError(f"cache down while invalidating {key}")
        self.keys.append(key)


class FailingPublisher:
    def __init__(self):
        self.calls = 0

    def publish(self, event) -> None:
        self.calls += 1
        raise ConnectionError("socket closed")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def ids():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def store() -> InMemoryCommerceStore:
    store = InMemoryCommerceStore()
    store.add_wholesale_product(
        WholesaleProduct(
            product_id="mug",
            seller_id="seller-1",
            name="Ceramic Mug",
            wholesale_price=Decimal("20.00"),
            rrp=Decimal("40.00"),
            moq=50,
        )
    )
    store.add_invitation(
        WholesaleInvitation(
            id="inv-1",
            seller_id="seller-1",
            buyer_id="buyer-1",
            terms=WholesaleTerms(
                deposit_percentage=Decimal(30),
                minimum_order_value=Decimal(1000),
                allowed_payment_terms=["Net 30", "Immediate"],
            ),
        )
    )
    return store


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def coordinator(cache, publisher) -> SettlementCoordinator:
    return SettlementCoordinator(cache, publisher)


@pytest.fixture
def memory_cache(clock) -> InMemoryCache:
    return InMemoryCache(clock)


@pytest.fixture
def failing_cache() -> RecordingCache:
    return RecordingCache(fail=True)


@pytest.fixture
def failing_publisher() -> FailingPublisher:
    return FailingPublisher()
