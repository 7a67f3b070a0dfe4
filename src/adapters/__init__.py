"""
Adapters

In-process implementations of the CommerceStore port.
"""

from src.adapters.memory_store import InMemoryCommerceStore

__all__ = [
    "InMemoryCommerceStore",
]
