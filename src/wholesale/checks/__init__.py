"""
Wholesale checks

Independent pure checks, each returning a frozen result rather than raising
on a rule violation.
"""

from src.wholesale.checks.deposit import (
    BalanceCalculation,
    DepositCalculation,
    calculate_balance,
    calculate_deposit,
)
from src.wholesale.checks.minimum_value import MinimumValueValidation, validate_minimum_value
from src.wholesale.checks.moq import MOQFailure, MOQValidationResult, validate_moq
from src.wholesale.checks.payment_terms import (
    PaymentTermsValidation,
    calculate_payment_due_date,
    payment_term_days,
    validate_payment_terms,
)

__all__ = [
    # Deposit / balance
    "BalanceCalculation",
    "DepositCalculation",
    "calculate_balance",
    "calculate_deposit",
    # MOQ
    "MOQFailure",
    "MOQValidationResult",
    "validate_moq",
    # Payment terms
    "PaymentTermsValidation",
    "calculate_payment_due_date",
    "payment_term_days",
    "validate_payment_terms",
    # Minimum value
    "MinimumValueValidation",
    "validate_minimum_value",
]
