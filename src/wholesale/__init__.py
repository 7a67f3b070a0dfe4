"""
Wholesale Rules Validator

MOQ, payment terms, minimum order value and deposit rules for wholesale
orders, folded into a compound WholesaleOrderValidation.
"""

from src.wholesale.builder import ValidationBuilder, WholesaleOrderValidation
from src.wholesale.checks import (
    BalanceCalculation,
    DepositCalculation,
    MinimumValueValidation,
    MOQFailure,
    MOQValidationResult,
    PaymentTermsValidation,
    calculate_balance,
    calculate_deposit,
    calculate_payment_due_date,
    payment_term_days,
    validate_minimum_value,
    validate_moq,
    validate_payment_terms,
)
from src.wholesale.validator import (
    DEFAULT_ALLOWED_PAYMENT_TERMS,
    ResolvedTerms,
    WholesaleDefaults,
    WholesalePricing,
    WholesaleRulesValidator,
)

__all__ = [
    # Validator
    "WholesaleRulesValidator",
    "WholesaleDefaults",
    "ResolvedTerms",
    "WholesalePricing",
    "DEFAULT_ALLOWED_PAYMENT_TERMS",
    # Builder
    "ValidationBuilder",
    "WholesaleOrderValidation",
    # Checks
    "BalanceCalculation",
    "DepositCalculation",
    "MinimumValueValidation",
    "MOQFailure",
    "MOQValidationResult",
    "PaymentTermsValidation",
    "calculate_balance",
    "calculate_deposit",
    "calculate_payment_due_date",
    "payment_term_days",
    "validate_minimum_value",
    "validate_moq",
    "validate_payment_terms",
]
