"""Payment terms check and due-date calculation

Recognized terms:
- "Net N": due N days after the order date (case-insensitive)
- "Immediate": due on the order date
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Sequence, TypeVar

from src.core.errors import UnsupportedPaymentTermError

_NET_TERM = re.compile(r"^net\s*(\d+)$", re.IGNORECASE)
_IMMEDIATE_TERM = "immediate"

DateT = TypeVar("DateT", bound=date)


@dataclass(frozen=True)
class PaymentTermsValidation:
    valid: bool
    requested_term: str
    allowed_terms: tuple[str, ...]
    error: str | None = None

    def to_contract(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "requested_term": self.requested_term,
            "allowed_terms": list(self.allowed_terms),
            "error": self.error,
        }


def validate_payment_terms(requested_term: str, allowed_terms: Sequence[str]) -> PaymentTermsValidation:
    """Exact-match membership of the requested term in the allowed set."""
    allowed = tuple(allowed_terms)
    if requested_term in allowed:
        return PaymentTermsValidation(valid=True, requested_term=requested_term, allowed_terms=allowed)

    listed = ", ".join(allowed) if allowed else "none"
    return PaymentTermsValidation(
        valid=False,
        requested_term=requested_term,
        allowed_terms=allowed,
        error=f"Payment term '{requested_term}' is not allowed. Allowed terms: {listed}",
    )


def payment_term_days(payment_terms: str) -> int:
    """
    Days until payment is due.

    Raises:
        UnsupportedPaymentTermError: For anything but "Net N" or "Immediate"
    """
    term = payment_terms.strip()
    if term.lower() == _IMMEDIATE_TERM:
        return 0
    match = _NET_TERM.match(term)
    if match is None:
        raise UnsupportedPaymentTermError(payment_terms)
    return int(match.group(1))


def calculate_payment_due_date(order_date: DateT, payment_terms: str) -> DateT:
    """
    Due date for an order placed on `order_date`.

    Works for both date and datetime; the result has the input's type.

    Examples:
        >>> calculate_payment_due_date(date(2026, 1, 1), "Net 30")
        datetime.date(2026, 1, 31)
    """
    return order_date + timedelta(days=payment_term_days(payment_terms))
