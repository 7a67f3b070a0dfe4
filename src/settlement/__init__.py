"""
Settlement Side-Effect Coordinator

Post-commit cache invalidation and event fan-out, plus the in-memory and
no-op adapters for the cache and publisher ports.
"""

from src.settlement.cache import CacheMetrics, InMemoryCache, NullCache
from src.settlement.coordinator import (
    CommittedTransition,
    PendingSideEffect,
    SettlementConfig,
    SettlementCoordinator,
    SettlementPlan,
    SettlementReport,
    order_cache_keys,
    quotation_cache_keys,
)
from src.settlement.publisher import InMemoryPublisher, NullPublisher

__all__ = [
    # Coordinator
    "SettlementCoordinator",
    "SettlementConfig",
    "CommittedTransition",
    "SettlementPlan",
    "SettlementReport",
    "PendingSideEffect",
    "order_cache_keys",
    "quotation_cache_keys",
    # Adapters
    "CacheMetrics",
    "InMemoryCache",
    "NullCache",
    "InMemoryPublisher",
    "NullPublisher",
]
