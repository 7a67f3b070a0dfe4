"""
Tests for domain models

Checks:
1. Immutability (frozen=True)
2. Arithmetic invariants re-checked on construction (LineItem, PricingBreakdown, CartPricing)
3. Field constraints (discount bounds, quantities, rooms, emails)
4. Wholesale product variant/MOQ resolution
5. DomainEvent subject rule
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.domain import (
    CartItem,
    Discount,
    DiscountType,
    DomainEvent,
    EventKind,
    LineItem,
    Money,
    Order,
    PriceTier,
    PricingBreakdown,
    PricingItem,
    ProductType,
    Quotation,
    WholesaleProduct,
    WholesaleVariant,
)
from src.core.errors import UnknownCurrencyError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def usd(amount: str) -> Money:
    return Money.of(amount, "USD")


@pytest.fixture
def line_item() -> LineItem:
    return LineItem(description="Widget", unit_price=usd("10.00"), quantity=3, line_total=usd("30.00"))


@pytest.fixture
def breakdown(line_item) -> PricingBreakdown:
    return PricingBreakdown(
        currency="USD",
        line_items=[line_item],
        subtotal=usd("30.00"),
        tax_amount=usd("2.40"),
        shipping_amount=usd("5.00"),
        total=usd("37.40"),
        deposit_percentage=Decimal(50),
        deposit_amount=usd("18.70"),
        balance_amount=usd("18.70"),
    )


# =============================================================================
# PRICING MODELS
# =============================================================================


class TestPriceRules:
    def test_tier_min_qty_at_least_one(self) -> None:
        with pytest.raises(ValidationError):
            PriceTier(min_qty=0, price=Decimal("1"))

    def test_percentage_discount_capped_at_100(self) -> None:
        with pytest.raises(ValidationError):
            Discount(type=DiscountType.PERCENTAGE, value=Decimal("120"))

    def test_fixed_discount_may_exceed_100(self) -> None:
        discount = Discount(type=DiscountType.FIXED, value=Decimal("150"))
        assert discount.value == Decimal("150")

    def test_negative_discount_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Discount(type=DiscountType.FIXED, value=Decimal("-1"))


class TestPricingItem:
    def test_quantity_not_constrained_by_model(self) -> None:
        """The calculator reports bad quantities, not the model"""
        item = PricingItem(description="Widget", unit_price=Decimal("1"), quantity=0)
        assert item.quantity == 0

    def test_currency_normalized(self) -> None:
        assert PricingItem(description="W", unit_price=Decimal("1"), quantity=1, currency="eur").currency == "EUR"

    def test_unknown_currency(self) -> None:
        with pytest.raises(UnknownCurrencyError):
            PricingItem(description="W", unit_price=Decimal("1"), quantity=1, currency="ABC")

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PricingItem(description="W", unit_price=Decimal("-1"), quantity=1)


class TestCartItem:
    @pytest.mark.parametrize(
        "product_type,requires_deposit,deposit,eligible",
        [
            (ProductType.PRE_ORDER, True, Decimal("20"), True),
            (ProductType.PRE_ORDER, False, Decimal("20"), False),
            (ProductType.PRE_ORDER, True, None, False),
            (ProductType.PRE_ORDER, True, Decimal("0"), False),
            (ProductType.IN_STOCK, True, Decimal("20"), False),
            (ProductType.MADE_TO_ORDER, True, Decimal("20"), False),
        ],
    )
    def test_deposit_eligibility(self, product_type, requires_deposit, deposit, eligible) -> None:
        item = CartItem(
            item_id="c1",
            description="Lamp",
            unit_price=Decimal("100"),
            quantity=1,
            product_type=product_type,
            requires_deposit=requires_deposit,
            deposit_amount=deposit,
        )
        assert item.deposit_eligible is eligible


class TestLineItem:
    def test_valid(self, line_item) -> None:
        assert line_item.line_total.amount == Decimal("30.00")

    def test_inconsistent_total_rejected(self) -> None:
        with pytest.raises(ValidationError, match="line_total"):
            LineItem(description="Widget", unit_price=usd("10.00"), quantity=3, line_total=usd("31.00"))

    def test_zero_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LineItem(description="Widget", unit_price=usd("10.00"), quantity=0, line_total=usd("0"))


class TestPricingBreakdown:
    def test_valid(self, breakdown) -> None:
        assert breakdown.total.amount == Decimal("37.40")

    def test_total_must_sum(self, line_item) -> None:
        with pytest.raises(ValidationError, match="subtotal"):
            PricingBreakdown(
                line_items=[line_item],
                subtotal=usd("30.00"),
                tax_amount=usd("0"),
                shipping_amount=usd("0"),
                total=usd("31.00"),
                deposit_amount=usd("0"),
                balance_amount=usd("31.00"),
            )

    def test_deposit_and_balance_must_sum(self, line_item) -> None:
        with pytest.raises(ValidationError, match="deposit_amount"):
            PricingBreakdown(
                line_items=[line_item],
                subtotal=usd("30.00"),
                tax_amount=usd("0"),
                shipping_amount=usd("0"),
                total=usd("30.00"),
                deposit_amount=usd("10.00"),
                balance_amount=usd("10.00"),
            )

    def test_frozen(self, breakdown) -> None:
        with pytest.raises(ValidationError):
            breakdown.total = usd("1")

    def test_contract_dump_uses_strings_for_amounts(self, breakdown) -> None:
        data = breakdown.to_contract()
        assert data["total"] == {"currency": "USD", "amount": "37.40"}
        assert data["line_items"][0]["quantity"] == 3


# =============================================================================
# ORDER / QUOTATION
# =============================================================================


class TestOrder:
    def test_defaults_and_party_check(self, breakdown) -> None:
        order = Order(
            id="o1",
            buyer_id="buyer-1",
            seller_id="seller-1",
            subtotal=breakdown.subtotal,
            tax_amount=breakdown.tax_amount,
            shipping_amount=breakdown.shipping_amount,
            total=breakdown.total,
            deposit_amount=breakdown.deposit_amount,
            balance_amount=breakdown.balance_amount,
            created_at=NOW,
            updated_at=NOW,
        )
        assert order.status.value == "pending"
        assert order.fulfillment_status.value == "unfulfilled"
        assert order.version == 1
        assert order.is_party("buyer-1")
        assert order.is_party("seller-1")
        assert not order.is_party("someone-else")

    def test_model_copy_leaves_original_untouched(self, breakdown) -> None:
        order = Order(
            id="o1",
            buyer_id="b",
            seller_id="s",
            subtotal=breakdown.subtotal,
            tax_amount=breakdown.tax_amount,
            shipping_amount=breakdown.shipping_amount,
            total=breakdown.total,
            deposit_amount=breakdown.deposit_amount,
            balance_amount=breakdown.balance_amount,
            created_at=NOW,
            updated_at=NOW,
        )
        bumped = order.model_copy(update={"version": 2})
        assert order.version == 1
        assert bumped.version == 2


class TestQuotation:
    def test_expiry(self, breakdown) -> None:
        quotation = Quotation(
            id="q1",
            quotation_number="Q-2026-001",
            seller_id="s",
            buyer_email="buyer@example.com",
            breakdown=breakdown,
            valid_until=NOW,
            created_at=NOW,
            updated_at=NOW,
        )
        assert not quotation.is_expired_at(NOW)
        assert quotation.is_expired_at(NOW.replace(hour=13))

    def test_no_validity_never_expires(self, breakdown) -> None:
        quotation = Quotation(
            id="q1",
            quotation_number="Q-2026-001",
            seller_id="s",
            buyer_email="buyer@example.com",
            breakdown=breakdown,
            created_at=NOW,
            updated_at=NOW,
        )
        assert not quotation.is_expired_at(datetime(2100, 1, 1, tzinfo=timezone.utc))

    def test_invalid_email(self, breakdown) -> None:
        with pytest.raises(ValidationError):
            Quotation(
                id="q1",
                quotation_number="Q-2026-001",
                seller_id="s",
                buyer_email="not-an-email",
                breakdown=breakdown,
                created_at=NOW,
                updated_at=NOW,
            )


# =============================================================================
# WHOLESALE
# =============================================================================


class TestWholesaleProduct:
    @pytest.fixture
    def product(self) -> WholesaleProduct:
        return WholesaleProduct(
            product_id="p1",
            seller_id="seller-1",
            name="Ceramic Mug",
            wholesale_price=Decimal("6.00"),
            rrp=Decimal("12.00"),
            moq=24,
            variants=[
                WholesaleVariant(variant_id="blue", wholesale_price=Decimal("6.50"), moq=48),
                WholesaleVariant(variant_id="red"),
            ],
        )

    def test_variant_overrides(self, product) -> None:
        assert product.unit_price_for("blue") == Decimal("6.50")
        assert product.moq_for("blue") == 48

    def test_variant_without_overrides_falls_back(self, product) -> None:
        assert product.unit_price_for("red") == Decimal("6.00")
        assert product.moq_for("red") == 24

    def test_unknown_variant_falls_back(self, product) -> None:
        assert product.variant("green") is None
        assert product.moq_for("green") == 24
        assert product.moq_for(None) == 24


# =============================================================================
# EVENTS
# =============================================================================


class TestDomainEvent:
    def test_requires_subject(self) -> None:
        with pytest.raises(ValidationError, match="order_id or a quotation_id"):
            DomainEvent(
                kind=EventKind.ORDER_PAID,
                actor_seller_id="s",
                recipient_room="seller:s",
                timestamp=NOW,
            )

    @pytest.mark.parametrize("room", ["seller", "admin:1", "buyer:", "seller-1"])
    def test_room_pattern(self, room) -> None:
        with pytest.raises(ValidationError):
            DomainEvent(
                kind=EventKind.ORDER_PAID,
                order_id="o1",
                actor_seller_id="s",
                recipient_room=room,
                timestamp=NOW,
            )

    def test_contract_dump(self) -> None:
        event = DomainEvent(
            kind=EventKind.QUOTATION_CONVERTED,
            order_id="o1",
            quotation_id="q1",
            actor_seller_id="s",
            recipient_room="buyer:b",
            timestamp=NOW,
        )
        data = event.to_contract()
        assert data["kind"] == "quotation.converted_to_order"
        assert data["timestamp"].startswith("2026-03-01T12:00:00")
