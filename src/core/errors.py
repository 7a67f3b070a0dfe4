"""
Errors — engine exception taxonomy

Every exception raised by the engine derives from EngineError and carries a
stable machine-readable `code` for the transport layer.

Taxonomy:
- ValidationError: compound rule failure (carries the full result object)
- NotFoundError: entity absent
- ForbiddenError: actor lacks authorization for the mutation
- EngineArithmeticError: invalid quantity, unknown currency, bad amounts
- ConflictError: concurrent mutation or illegal state move

Malformed value objects are rejected earlier by pydantic's own
ValidationError at the model boundary; that error is not wrapped.
"""

from typing import Any


class EngineError(Exception):
    """Base class for all engine errors."""

    code: str = "ENGINE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    """
    Compound business-rule failure.

    `result` holds the complete validation object so the caller can show
    every violated rule at once.
    """

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, result: Any = None, errors: list[str] | None = None):
        super().__init__(message)
        self.result = result
        self.errors = list(errors or getattr(result, "errors", []) or [])


class NotFoundError(EngineError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(EngineError):
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied", actor_id: str | None = None):
        super().__init__(message)
        self.actor_id = actor_id


# =============================================================================
# ARITHMETIC
# =============================================================================


class EngineArithmeticError(EngineError, ArithmeticError):
    """Numeric contract violation (also catchable as builtin ArithmeticError)."""

    code = "ARITHMETIC_ERROR"


class InvalidQuantityError(EngineArithmeticError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, context: str = ""):
        suffix = f" ({context})" if context else ""
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}{suffix}")
        self.quantity = quantity


class UnknownCurrencyError(EngineArithmeticError):
    code = "UNKNOWN_CURRENCY"

    def __init__(self, currency: Any):
        super().__init__(f"Unsupported currency code: {currency!r}")
        self.currency = currency


class CurrencyMismatchError(EngineArithmeticError):
    code = "CURRENCY_MISMATCH"

    def __init__(self, expected: str, got: str):
        super().__init__(f"Currency mismatch: expected {expected}, got {got}")
        self.expected = expected
        self.got = got


class InvalidAmountError(EngineArithmeticError):
    code = "INVALID_AMOUNT"


class UnsupportedPaymentTermError(EngineArithmeticError):
    code = "UNSUPPORTED_PAYMENT_TERM"

    def __init__(self, payment_terms: str):
        super().__init__(f"Unknown payment terms: {payment_terms}")
        self.payment_terms = payment_terms


# =============================================================================
# CONCURRENCY / STATE
# =============================================================================


class ConflictError(EngineError):
    """Optimistic version check failed: the record changed underneath us."""

    code = "CONFLICT"


class InvalidTransitionError(ConflictError):
    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, from_state: str, to_state: str, reason: str = ""):
        message = f"Invalid {entity} transition from '{from_state}' to '{to_state}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
