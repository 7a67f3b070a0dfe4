"""
ValidationBuilder — folds independent wholesale checks into one result

The builder accumulates sub-results and messages in any order; build()
merges them into a WholesaleOrderValidation. Nothing short-circuits: a
caller gets every violated rule in a single result.

Invariants:
1. valid == moq.valid and payment_terms.valid and minimum_value.met, and
   no free-standing error was added
2. All four sub-results are always present in the built result
3. errors lists every sub-result message, in check order, followed by
   free-standing errors
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from src.core.domain.pricing import LineItem
from src.core.math.money import DEFAULT_CURRENCY, format_decimal
from src.wholesale.checks.deposit import DepositCalculation
from src.wholesale.checks.minimum_value import MinimumValueValidation
from src.wholesale.checks.moq import MOQValidationResult
from src.wholesale.checks.payment_terms import PaymentTermsValidation


@dataclass(frozen=True)
class WholesaleOrderValidation:
    """Compound eligibility result for a wholesale order request."""

    valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    moq_validation: MOQValidationResult
    payment_terms_validation: PaymentTermsValidation
    minimum_value_validation: MinimumValueValidation
    deposit_calculation: DepositCalculation
    total_value: Decimal
    currency: str = DEFAULT_CURRENCY
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)

    def to_contract(self) -> dict[str, Any]:
        """JSON-ready dict matching contracts/schema/wholesale_order_validation.json."""
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "moq_validation": self.moq_validation.to_contract(),
            "payment_terms_validation": self.payment_terms_validation.to_contract(),
            "minimum_value_validation": self.minimum_value_validation.to_contract(),
            "deposit_calculation": self.deposit_calculation.to_contract(),
            "total_value": format_decimal(self.total_value),
            "currency": self.currency,
        }


class ValidationBuilder:
    """Accumulator for wholesale sub-validations."""

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency
        self._errors: list[str] = []
        self._warnings: list[str] = []
        self._moq: MOQValidationResult | None = None
        self._payment_terms: PaymentTermsValidation | None = None
        self._minimum_value: MinimumValueValidation | None = None
        self._deposit: DepositCalculation | None = None
        self._total_value: Decimal | None = None
        self._line_items: tuple[LineItem, ...] = ()

    def add_error(self, message: str) -> "ValidationBuilder":
        self._errors.append(message)
        return self

    def add_warning(self, message: str) -> "ValidationBuilder":
        self._warnings.append(message)
        return self

    def with_moq(self, result: MOQValidationResult) -> "ValidationBuilder":
        self._moq = result
        return self

    def with_payment_terms(self, result: PaymentTermsValidation) -> "ValidationBuilder":
        self._payment_terms = result
        return self

    def with_minimum_value(self, result: MinimumValueValidation) -> "ValidationBuilder":
        self._minimum_value = result
        return self

    def with_deposit(self, result: DepositCalculation) -> "ValidationBuilder":
        self._deposit = result
        return self

    def with_total(self, total_value: Decimal, line_items: tuple[LineItem, ...] = ()) -> "ValidationBuilder":
        self._total_value = total_value
        self._line_items = tuple(line_items)
        return self

    def build(self) -> WholesaleOrderValidation:
        """
        Fold the accumulated results.

        Raises:
            ValueError: If a sub-result was never supplied
        """
        missing = [
            name
            for name, value in (
                ("moq_validation", self._moq),
                ("payment_terms_validation", self._payment_terms),
                ("minimum_value_validation", self._minimum_value),
                ("deposit_calculation", self._deposit),
                ("total_value", self._total_value),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"ValidationBuilder missing: {', '.join(missing)}")

        errors: list[str] = list(self._moq.errors)
        if not self._payment_terms.valid and self._payment_terms.error:
            errors.append(self._payment_terms.error)
        if not self._minimum_value.met:
            errors.append(self._minimum_value.message)
        errors.extend(self._errors)

        valid = self._moq.valid and self._payment_terms.valid and self._minimum_value.met and not self._errors

        return WholesaleOrderValidation(
            valid=valid,
            errors=tuple(errors),
            warnings=tuple(self._warnings),
            moq_validation=self._moq,
            payment_terms_validation=self._payment_terms,
            minimum_value_validation=self._minimum_value,
            deposit_calculation=self._deposit,
            total_value=self._total_value,
            currency=self.currency,
            line_items=self._line_items,
        )
