"""
Tests for the Wholesale Rules Validator

Checks:
1. Independent checks: deposit/balance, MOQ, payment terms, minimum value, due dates
2. ValidationBuilder folding
3. Compound validation against an in-memory store (no short-circuit)
4. Default-term fallbacks with warnings
5. Per-product wholesale pricing
"""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from src.adapters import InMemoryCommerceStore
from src.core.contracts import validate_wholesale_order_validation
from src.core.domain import (
    InvitationStatus,
    PriceTier,
    WholesaleInvitation,
    WholesaleOrderItem,
    WholesaleProduct,
    WholesaleTerms,
    WholesaleVariant,
)
from src.core.errors import InvalidAmountError, InvalidQuantityError, NotFoundError, UnsupportedPaymentTermError
from src.wholesale import (
    DEFAULT_ALLOWED_PAYMENT_TERMS,
    ValidationBuilder,
    WholesaleDefaults,
    WholesaleRulesValidator,
    calculate_balance,
    calculate_deposit,
    calculate_payment_due_date,
    payment_term_days,
    validate_minimum_value,
    validate_moq,
    validate_payment_terms,
)

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def mug() -> WholesaleProduct:
    return WholesaleProduct(
        product_id="mug",
        seller_id="seller-1",
        name="Ceramic Mug",
        wholesale_price=Decimal("20.00"),
        rrp=Decimal("40.00"),
        moq=50,
        variants=[WholesaleVariant(variant_id="gold", wholesale_price=Decimal("25.00"), moq=10)],
        tiers=[PriceTier(min_qty=1, price=Decimal("20.00")), PriceTier(min_qty=100, price=Decimal("18.00"))],
    )


@pytest.fixture
def store(mug) -> InMemoryCommerceStore:
    store = InMemoryCommerceStore()
    store.add_wholesale_product(mug)
    store.add_wholesale_product(
        WholesaleProduct(
            product_id="plate",
            seller_id="seller-1",
            name="Stoneware Plate",
            wholesale_price=Decimal("15.00"),
            moq=10,
        )
    )
    store.add_wholesale_product(
        WholesaleProduct(
            product_id="foreign",
            seller_id="seller-2",
            name="Other Seller Bowl",
            wholesale_price=Decimal("5.00"),
        )
    )
    store.add_invitation(
        WholesaleInvitation(
            id="inv-1",
            seller_id="seller-1",
            buyer_id="buyer-1",
            terms=WholesaleTerms(
                deposit_percentage=Decimal(30),
                minimum_order_value=Decimal(1000),
                allowed_payment_terms=["Net 30", "Net 60"],
            ),
        )
    )
    store.add_invitation(WholesaleInvitation(id="inv-bare", seller_id="seller-1", buyer_id="buyer-1"))
    return store


@pytest.fixture
def validator(store) -> WholesaleRulesValidator:
    return WholesaleRulesValidator(store)


# =============================================================================
# DEPOSIT / BALANCE
# =============================================================================


class TestDepositAndBalance:
    def test_deposit_split(self) -> None:
        result = calculate_deposit(1000, 30)
        assert result.deposit_amount == Decimal("300.00")
        assert result.balance_amount == Decimal("700.00")

    def test_balance_after_deposit(self) -> None:
        result = calculate_balance(1000, 300)
        assert result.balance_remaining == Decimal("700.00")
        assert result.balance_percentage == Decimal("70.00")

    def test_overpaid_clamped(self) -> None:
        result = calculate_balance(100, 150)
        assert result.balance_remaining == Decimal("0.00")
        assert result.balance_percentage == Decimal("0.00")

    def test_zero_order_value(self) -> None:
        assert calculate_balance(0, 0).balance_percentage == Decimal("0.00")

    @pytest.mark.parametrize("percentage", range(0, 101))
    def test_deposit_plus_balance_equals_value(self, percentage) -> None:
        result = calculate_deposit("1234.57", percentage)
        assert result.deposit_amount + result.balance_amount == result.order_value

    def test_three_decimal_currency(self) -> None:
        result = calculate_deposit("10.001", 50, "KWD")
        assert result.deposit_amount == Decimal("5.001")
        assert result.balance_amount == Decimal("5.000")

    def test_invalid_percentage(self) -> None:
        with pytest.raises(InvalidAmountError):
            calculate_deposit(1000, 120)


# =============================================================================
# MOQ
# =============================================================================


class TestMOQ:
    def test_below_moq(self, mug) -> None:
        result = validate_moq([WholesaleOrderItem(product_id="mug", quantity=25)], {"mug": mug})
        assert not result.valid
        [failure] = result.items_failing_moq
        assert failure.required_quantity == 50
        assert failure.provided_quantity == 25
        assert result.errors == ("Ceramic Mug: Minimum order quantity is 50, but only 25 provided",)

    def test_at_moq(self, mug) -> None:
        assert validate_moq([WholesaleOrderItem(product_id="mug", quantity=50)], {"mug": mug}).valid

    def test_variant_moq(self, mug) -> None:
        result = validate_moq([WholesaleOrderItem(product_id="mug", variant_id="gold", quantity=10)], {"mug": mug})
        assert result.valid

    def test_unknown_product_does_not_stop_checking(self, mug) -> None:
        result = validate_moq(
            [
                WholesaleOrderItem(product_id="ghost", quantity=100),
                WholesaleOrderItem(product_id="mug", quantity=1),
            ],
            {"mug": mug},
        )
        assert not result.valid
        assert result.errors[0] == "Product ghost is not available for wholesale"
        assert len(result.items_failing_moq) == 1


# =============================================================================
# PAYMENT TERMS / MINIMUM VALUE
# =============================================================================


class TestPaymentTerms:
    def test_allowed(self) -> None:
        result = validate_payment_terms("Net 30", ["Net 30", "Net 60"])
        assert result.valid
        assert result.error is None

    def test_not_allowed(self) -> None:
        result = validate_payment_terms("Net 90", ["Net 30", "Net 60"])
        assert not result.valid
        assert result.error == "Payment term 'Net 90' is not allowed. Allowed terms: Net 30, Net 60"

    @pytest.mark.parametrize(
        "terms,days",
        [("Net 30", 30), ("net60", 60), ("NET 90", 90), ("Immediate", 0), (" immediate ", 0)],
    )
    def test_term_days(self, terms, days) -> None:
        assert payment_term_days(terms) == days

    @pytest.mark.parametrize("terms", ["COD", "50% upfront", "Net", "30 days"])
    def test_unsupported_terms(self, terms) -> None:
        with pytest.raises(UnsupportedPaymentTermError, match="Unknown payment terms"):
            payment_term_days(terms)

    def test_due_date(self) -> None:
        assert calculate_payment_due_date(date(2026, 1, 1), "Net 30") == date(2026, 1, 31)
        assert calculate_payment_due_date(date(2026, 1, 1), "Immediate") == date(2026, 1, 1)

    def test_due_date_keeps_datetime(self) -> None:
        due = calculate_payment_due_date(datetime(2026, 2, 20, 9, 30), "Net 10")
        assert due == datetime(2026, 3, 2, 9, 30)


class TestMinimumValue:
    def test_met_at_equality(self) -> None:
        result = validate_minimum_value(1000, 1000)
        assert result.met
        assert result.shortfall == Decimal("0.00")

    def test_shortfall(self) -> None:
        result = validate_minimum_value("750.50", 1000)
        assert not result.met
        assert result.shortfall == Decimal("249.50")
        assert result.message.startswith("Minimum order value not met. Required: 1000.00 USD")


# =============================================================================
# BUILDER
# =============================================================================


class TestValidationBuilder:
    def test_missing_parts(self) -> None:
        with pytest.raises(ValueError, match="moq_validation"):
            ValidationBuilder().with_total(Decimal(0)).build()

    def test_free_standing_error_invalidates(self) -> None:
        result = (
            ValidationBuilder()
            .with_total(Decimal("2000"))
            .with_moq(validate_moq([], {}))
            .with_payment_terms(validate_payment_terms("Net 30", ["Net 30"]))
            .with_minimum_value(validate_minimum_value(2000, 1000))
            .with_deposit(calculate_deposit(2000, 30))
            .add_error("Something else went wrong")
            .build()
        )
        assert not result.valid
        assert result.errors == ("Something else went wrong",)


# =============================================================================
# COMPOUND VALIDATION
# =============================================================================


class TestValidateWholesaleOrder:
    def test_valid_order(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1", [WholesaleOrderItem(product_id="mug", quantity=60)], "Net 30"
        )
        assert result.valid
        assert result.errors == ()
        assert result.warnings == ()
        assert result.total_value == Decimal("1200.00")
        assert result.deposit_calculation.deposit_amount == Decimal("360.00")
        assert result.deposit_calculation.balance_amount == Decimal("840.00")

    def test_every_failure_reported(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1", [WholesaleOrderItem(product_id="mug", quantity=25)], "Net 90"
        )
        assert not result.valid
        assert not result.moq_validation.valid
        assert not result.payment_terms_validation.valid
        assert not result.minimum_value_validation.met
        assert result.minimum_value_validation.shortfall == Decimal("500.00")
        assert result.deposit_calculation.deposit_amount == Decimal("150.00")
        assert len(result.errors) == 3
        assert result.errors[0].startswith("Ceramic Mug: Minimum order quantity is 50")

    def test_result_matches_contract(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1", [WholesaleOrderItem(product_id="mug", quantity=25)], "Net 90"
        )
        validate_wholesale_order_validation(result.to_contract())

    def test_defaults_with_warnings(self, validator, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="settlement.wholesale"):
            result = validator.validate_wholesale_order(
                "inv-bare", [WholesaleOrderItem(product_id="mug", quantity=60)], "Net 90"
            )
        assert result.valid
        assert len(result.warnings) == 3
        assert result.deposit_calculation.deposit_percentage == Decimal(30)
        assert result.minimum_value_validation.minimum_value == Decimal("1000.00")
        assert result.payment_terms_validation.allowed_terms == DEFAULT_ALLOWED_PAYMENT_TERMS
        assert len([r for r in caplog.records if r.name == "settlement.wholesale"]) == 3

    def test_custom_defaults(self, store) -> None:
        validator = WholesaleRulesValidator(store, WholesaleDefaults(minimum_order_value=Decimal(0)))
        result = validator.validate_wholesale_order(
            "inv-bare", [WholesaleOrderItem(product_id="plate", quantity=10)], "Immediate"
        )
        assert result.valid
        assert result.total_value == Decimal("150.00")

    def test_unknown_and_foreign_products(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1",
            [
                WholesaleOrderItem(product_id="ghost", quantity=100),
                WholesaleOrderItem(product_id="foreign", quantity=100),
                WholesaleOrderItem(product_id="mug", quantity=60),
            ],
            "Net 30",
        )
        assert not result.valid
        assert "Product ghost is not available for wholesale" in result.errors
        assert "Product foreign is not available for wholesale" in result.errors
        assert result.total_value == Decimal("1200.00")

    def test_non_positive_quantity(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1",
            [WholesaleOrderItem(product_id="mug", quantity=0), WholesaleOrderItem(product_id="plate", quantity=80)],
            "Net 30",
        )
        assert not result.valid
        assert any("must be positive" in error for error in result.errors)
        assert result.total_value == Decimal("1200.00")

    def test_variant_price_and_tiers(self, validator) -> None:
        result = validator.validate_wholesale_order(
            "inv-1",
            [
                WholesaleOrderItem(product_id="mug", variant_id="gold", quantity=10),
                WholesaleOrderItem(product_id="mug", quantity=100),
            ],
            "Net 60",
        )
        gold, bulk = result.line_items
        assert gold.unit_price.amount == Decimal("25.00")
        assert bulk.unit_price.amount == Decimal("18.00")
        assert result.total_value == Decimal("2050.00")
        assert result.valid

    def test_missing_invitation(self, validator) -> None:
        with pytest.raises(NotFoundError, match="Wholesale invitation nope not found"):
            validator.validate_wholesale_order("nope", [WholesaleOrderItem(product_id="mug", quantity=60)], "Net 30")

    def test_invitation_status_not_a_rule(self, store, validator) -> None:
        store.add_invitation(
            WholesaleInvitation(id="inv-revoked", seller_id="seller-1", status=InvitationStatus.REVOKED)
        )
        result = validator.validate_wholesale_order(
            "inv-revoked", [WholesaleOrderItem(product_id="mug", quantity=60)], "Net 30"
        )
        assert result.valid


# =============================================================================
# WHOLESALE PRICING
# =============================================================================


class TestWholesalePricing:
    def test_discount_against_rrp(self, validator) -> None:
        pricing = validator.get_wholesale_pricing("inv-1", "mug", 60)
        assert pricing.base_price == Decimal("40.00")
        assert pricing.wholesale_price == Decimal("20.00")
        assert pricing.discount_percentage == Decimal("50.00")
        assert pricing.total == Decimal("1200.00")

    def test_no_rrp_means_no_discount(self, validator) -> None:
        pricing = validator.get_wholesale_pricing("inv-1", "plate", 10)
        assert pricing.base_price == pricing.wholesale_price
        assert pricing.discount_percentage == Decimal("0.00")

    def test_tier_and_variant(self, validator) -> None:
        assert validator.get_wholesale_pricing("inv-1", "mug", 100).wholesale_price == Decimal("18.00")
        assert validator.get_wholesale_pricing("inv-1", "mug", 5, "gold").wholesale_price == Decimal("25.00")

    def test_foreign_product(self, validator) -> None:
        with pytest.raises(NotFoundError):
            validator.get_wholesale_pricing("inv-1", "foreign", 1)

    def test_invalid_quantity(self, validator) -> None:
        with pytest.raises(InvalidQuantityError):
            validator.get_wholesale_pricing("inv-1", "mug", 0)
