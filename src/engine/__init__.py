"""
Commerce Engine

Façade over pricing, wholesale validation, lifecycle and settlement.
"""

from src.engine.commerce_engine import CommerceEngine

__all__ = [
    "CommerceEngine",
]
