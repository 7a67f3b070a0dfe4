"""Minimum order quantity check

Every requested line is checked against its product's MOQ (variant MOQ
overrides the product's). Lines for products missing from the seller's
wholesale catalog are reported as errors; the remaining lines are still
checked.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from src.core.domain.wholesale import WholesaleOrderItem, WholesaleProduct


@dataclass(frozen=True)
class MOQFailure:
    product_id: str
    product_name: str
    required_quantity: int
    provided_quantity: int
    variant_id: str | None = None

    @property
    def message(self) -> str:
        return (
            f"{self.product_name}: Minimum order quantity is {self.required_quantity}, "
            f"but only {self.provided_quantity} provided"
        )

    def to_contract(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "product_name": self.product_name,
            "required_quantity": self.required_quantity,
            "provided_quantity": self.provided_quantity,
        }


@dataclass(frozen=True)
class MOQValidationResult:
    valid: bool
    items_failing_moq: tuple[MOQFailure, ...] = field(default_factory=tuple)
    errors: tuple[str, ...] = field(default_factory=tuple)

    def to_contract(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "items_failing_moq": [failure.to_contract() for failure in self.items_failing_moq],
            "errors": list(self.errors),
        }


def validate_moq(
    items: Sequence[WholesaleOrderItem],
    product_requirements: Mapping[str, WholesaleProduct],
) -> MOQValidationResult:
    """
    Check every item against its product's minimum order quantity.

    Args:
        items: Requested lines
        product_requirements: product_id → wholesale product (MOQ source)

    Returns:
        MOQValidationResult; valid only when no line failed and every
        product was found
    """
    errors: list[str] = []
    failures: list[MOQFailure] = []

    for item in items:
        product = product_requirements.get(item.product_id)
        if product is None:
            errors.append(f"Product {item.product_id} is not available for wholesale")
            continue

        required = product.moq_for(item.variant_id)
        if item.quantity < required:
            failure = MOQFailure(
                product_id=item.product_id,
                variant_id=item.variant_id,
                product_name=product.name,
                required_quantity=required,
                provided_quantity=item.quantity,
            )
            failures.append(failure)
            errors.append(failure.message)

    return MOQValidationResult(
        valid=not errors,
        items_failing_moq=tuple(failures),
        errors=tuple(errors),
    )
