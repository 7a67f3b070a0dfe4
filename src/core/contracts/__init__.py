"""
Contract Validation Module

Validation of the engine's JSON contracts (events, breakdowns, wholesale
validation results).
"""

from .validators import (
    CONTRACTS,
    ContractValidator,
    DomainEventValidator,
    PricingBreakdownValidator,
    SchemaLoader,
    WholesaleOrderValidationValidator,
    contract_validator,
    validate_domain_event,
    validate_pricing_breakdown,
    validate_wholesale_order_validation,
)

__all__ = [
    # Registry
    "CONTRACTS",
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "DomainEventValidator",
    "PricingBreakdownValidator",
    "WholesaleOrderValidationValidator",
    # Functions
    "contract_validator",
    "validate_domain_event",
    "validate_pricing_breakdown",
    "validate_wholesale_order_validation",
]
