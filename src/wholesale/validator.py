"""Wholesale Rules Validator

Decides whether a wholesale order request may be placed under the governing
invitation's terms.

Order of work (no step short-circuits):
1. Load the invitation (missing → NotFoundError, not a rule violation)
2. Resolve terms, falling back to WholesaleDefaults with a warning each
3. Load the seller's wholesale products for the requested lines
4. Price the lines through the Pricing Calculator (variant price
   overrides, then volume tiers)
5. Run MOQ, payment terms, minimum value and deposit checks
6. Fold everything through ValidationBuilder

The validator is read-only: it never writes to the store.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final, Sequence

from src.core.domain.pricing import LineItem, PricingItem
from src.core.domain.wholesale import WholesaleInvitation, WholesaleOrderItem, WholesaleProduct
from src.core.errors import NotFoundError
from src.core.math.money import HUNDRED, round_money, to_major_units
from src.core.math.numerical_safeguards import ZERO, safe_divide, validate_quantity
from src.core.ports import CommerceStore
from src.pricing.calculator import get_tiered_price, price_line_items
from src.wholesale.builder import ValidationBuilder, WholesaleOrderValidation
from src.wholesale.checks.deposit import PERCENT_QUANTUM, calculate_deposit
from src.wholesale.checks.minimum_value import validate_minimum_value
from src.wholesale.checks.moq import validate_moq
from src.wholesale.checks.payment_terms import validate_payment_terms

logger = logging.getLogger("settlement.wholesale")


# =============================================================================
# CONFIG
# =============================================================================

DEFAULT_ALLOWED_PAYMENT_TERMS: Final[tuple[str, ...]] = ("Net 30", "Net 60", "Net 90", "Immediate")


@dataclass(frozen=True)
class WholesaleDefaults:
    """Terms applied when an invitation leaves them unset."""

    deposit_percentage: Decimal = Decimal(30)
    minimum_order_value: Decimal = Decimal(1000)
    allowed_payment_terms: tuple[str, ...] = DEFAULT_ALLOWED_PAYMENT_TERMS


@dataclass(frozen=True)
class ResolvedTerms:
    deposit_percentage: Decimal
    minimum_order_value: Decimal
    allowed_payment_terms: tuple[str, ...]


@dataclass(frozen=True)
class WholesalePricing:
    """Per-product wholesale price against its recommended retail price."""

    product_id: str
    base_price: Decimal
    wholesale_price: Decimal
    discount_percentage: Decimal
    quantity: int
    total: Decimal
    currency: str


# =============================================================================
# VALIDATOR
# =============================================================================


class WholesaleRulesValidator:
    """Compound wholesale eligibility validation against a CommerceStore."""

    def __init__(self, store: CommerceStore, defaults: WholesaleDefaults | None = None):
        self.store = store
        self.defaults = defaults or WholesaleDefaults()

    def load_invitation(self, invitation_id: str) -> WholesaleInvitation:
        invitation = self.store.get_invitation(invitation_id)
        if invitation is None:
            raise NotFoundError("Wholesale invitation", invitation_id)
        return invitation

    def resolve_terms(
        self,
        invitation: WholesaleInvitation,
        builder: ValidationBuilder | None = None,
    ) -> ResolvedTerms:
        """Invitation terms with defaults filled in (one warning per default)."""
        terms = invitation.terms

        def fallback(name: str, value):
            if builder is not None:
                builder.add_warning(f"No {name} set on invitation {invitation.id}; using default {value}")
            logger.warning("invitation %s: %s unset, using default %s", invitation.id, name, value)
            return value

        deposit = terms.deposit_percentage
        if deposit is None:
            deposit = fallback("deposit percentage", self.defaults.deposit_percentage)

        minimum = terms.minimum_order_value
        if minimum is None:
            minimum = fallback("minimum order value", self.defaults.minimum_order_value)

        allowed = tuple(terms.allowed_payment_terms) if terms.allowed_payment_terms else None
        if allowed is None:
            allowed = fallback("payment terms", self.defaults.allowed_payment_terms)

        return ResolvedTerms(
            deposit_percentage=deposit,
            minimum_order_value=minimum,
            allowed_payment_terms=allowed,
        )

    def load_products(self, invitation: WholesaleInvitation, product_ids: Sequence[str]) -> dict[str, WholesaleProduct]:
        """Seller's wholesale products; other sellers' products are ignored."""
        products = self.store.get_wholesale_products(sorted(set(product_ids)))
        return {
            product_id: product
            for product_id, product in products.items()
            if product.seller_id == invitation.seller_id
        }

    @staticmethod
    def unit_price(product: WholesaleProduct, item: WholesaleOrderItem) -> Decimal:
        """Variant override first, then the product's volume tiers, then its list price."""
        variant = product.variant(item.variant_id)
        overridden = variant is not None and variant.wholesale_price is not None
        if product.tiers and not overridden:
            tier_price = get_tiered_price(item.quantity, product.tiers)
            if tier_price is not None:
                return tier_price
        return product.unit_price_for(item.variant_id)

    def price_items(
        self,
        items: Sequence[WholesaleOrderItem],
        products: dict[str, WholesaleProduct],
        currency: str,
        builder: ValidationBuilder,
    ) -> list[LineItem]:
        """Price every line that can be priced; report the rest as errors."""
        pricing_items: list[PricingItem] = []
        for item in items:
            product = products.get(item.product_id)
            if product is None:
                # Reported by the MOQ check
                continue
            if item.quantity <= 0:
                builder.add_error(
                    f"Quantity for product {item.product_id} must be positive, got {item.quantity}"
                )
                continue
            pricing_items.append(
                PricingItem(
                    description=product.name,
                    product_id=product.product_id,
                    unit_price=self.unit_price(product, item),
                    quantity=item.quantity,
                    currency=currency,
                )
            )
        return price_line_items(pricing_items)

    def validate_wholesale_order(
        self,
        invitation_id: str,
        items: Sequence[WholesaleOrderItem],
        payment_terms: str,
    ) -> WholesaleOrderValidation:
        """
        Run every wholesale rule and fold the results.

        Args:
            invitation_id: Governing wholesale invitation
            items: Requested lines
            payment_terms: Requested payment term, e.g. "Net 30"

        Returns:
            Fully populated WholesaleOrderValidation

        Raises:
            NotFoundError: If the invitation does not exist
        """
        invitation = self.load_invitation(invitation_id)
        currency = invitation.currency
        builder = ValidationBuilder(currency)

        terms = self.resolve_terms(invitation, builder)
        products = self.load_products(invitation, [item.product_id for item in items])
        line_items = self.price_items(items, products, currency, builder)

        total_minor = sum(line.line_total.minor_units for line in line_items)
        total_value = to_major_units(total_minor, currency)

        builder.with_total(total_value, tuple(line_items))
        builder.with_moq(validate_moq(items, products))
        builder.with_payment_terms(validate_payment_terms(payment_terms, terms.allowed_payment_terms))
        builder.with_minimum_value(validate_minimum_value(total_value, terms.minimum_order_value, currency))
        builder.with_deposit(calculate_deposit(total_value, terms.deposit_percentage, currency))

        result = builder.build()
        if result.valid:
            logger.info("wholesale order on invitation %s valid: total=%s %s", invitation_id, total_value, currency)
        else:
            logger.info(
                "wholesale order on invitation %s rejected: %d error(s)", invitation_id, len(result.errors)
            )
        return result

    def get_wholesale_pricing(
        self,
        invitation_id: str,
        product_id: str,
        quantity: int,
        variant_id: str | None = None,
    ) -> WholesalePricing:
        """
        Wholesale price of one product for a buyer's invitation.

        base_price is the RRP (the wholesale price when no RRP is set);
        discount_percentage = (base - wholesale) / base * 100, 0 for a zero base.

        Raises:
            NotFoundError: Unknown invitation, or product not sold wholesale by the seller
            InvalidQuantityError: If quantity <= 0
        """
        validate_quantity(quantity, product_id)
        invitation = self.load_invitation(invitation_id)
        product = self.load_products(invitation, [product_id]).get(product_id)
        if product is None:
            raise NotFoundError("Wholesale product", product_id)

        currency = invitation.currency
        item = WholesaleOrderItem(product_id=product_id, variant_id=variant_id, quantity=quantity)
        wholesale_price = round_money(self.unit_price(product, item), currency)
        base_price = round_money(product.rrp if product.rrp is not None else wholesale_price, currency)
        discount = safe_divide((base_price - wholesale_price) * HUNDRED, base_price, fallback=ZERO)

        return WholesalePricing(
            product_id=product_id,
            base_price=base_price,
            wholesale_price=wholesale_price,
            discount_percentage=discount.quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP),
            quantity=quantity,
            total=round_money(wholesale_price * quantity, currency),
            currency=currency,
        )
