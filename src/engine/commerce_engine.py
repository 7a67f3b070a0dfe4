"""
CommerceEngine — single entry point over pricing, wholesale validation,
the order/quotation lifecycle and settlement

Wiring only: every collaborator is injected, and anything left out falls
back to an in-process default (InMemoryCommerceStore, NullCache,
NullPublisher, SystemClock, no rate provider).
"""

from datetime import date
from typing import Mapping, Sequence

from src.adapters.memory_store import InMemoryCommerceStore
from src.core.domain.money import Money
from src.core.domain.order import CreateOrderInput, Order, RefundInput, UpdateFulfillmentInput
from src.core.domain.pricing import CartItem, CartPricing, Destination, PriceTier, PricingBreakdown, PricingItem
from src.core.domain.quotation import CreateQuotationInput, Quotation
from src.core.domain.wholesale import WholesaleOrderItem, WholesaleOrderRequest
from src.core.math.money import AmountLike
from src.core.ports import CacheInvalidator, Clock, CommerceStore, EventPublisher, RateProvider, SystemClock
from src.lifecycle.orders import IdFactory, OrderLifecycleService
from src.lifecycle.quotations import QuotationConfig, QuotationLifecycleService
from src.pricing.calculator import PricingCalculator, PricingConfig, RefundType, calculate_refund_amount
from src.settlement.coordinator import SettlementConfig, SettlementCoordinator
from src.wholesale.builder import WholesaleOrderValidation
from src.wholesale.checks.payment_terms import calculate_payment_due_date
from src.wholesale.validator import WholesaleDefaults, WholesalePricing, WholesaleRulesValidator


class CommerceEngine:
    """Façade exposing every engine operation."""

    def __init__(
        self,
        store: CommerceStore | None = None,
        rate_provider: RateProvider | None = None,
        cache: CacheInvalidator | None = None,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        pricing_config: PricingConfig | None = None,
        wholesale_defaults: WholesaleDefaults | None = None,
        settlement_config: SettlementConfig | None = None,
        quotation_config: QuotationConfig | None = None,
    ):
        self.store = store or InMemoryCommerceStore()
        self.clock = clock or SystemClock()

        self.calculator = PricingCalculator(rate_provider, pricing_config)
        self.wholesale = WholesaleRulesValidator(self.store, wholesale_defaults)
        self.coordinator = SettlementCoordinator(cache, publisher, settlement_config)

        self.orders = OrderLifecycleService(
            self.store,
            coordinator=self.coordinator,
            wholesale_validator=self.wholesale,
            clock=self.clock,
            id_factory=id_factory,
        )
        self.quotations = QuotationLifecycleService(
            self.store,
            coordinator=self.coordinator,
            clock=self.clock,
            id_factory=id_factory,
            config=quotation_config,
        )

    # =========================================================================
    # PRICING
    # =========================================================================

    def calculate_pricing(
        self,
        items: Sequence[PricingItem],
        destination: Destination | None = None,
        deposit_percentage: AmountLike | None = None,
        tier_table: Mapping[str, Sequence[PriceTier]] | None = None,
    ) -> PricingBreakdown:
        return self.calculator.calculate_pricing(items, destination, deposit_percentage, tier_table)

    def calculate_cart_pricing(
        self,
        items: Sequence[CartItem],
        shipping_amount: AmountLike = 0,
        tax_amount: AmountLike = 0,
        include_shipping_in_deposit: bool | None = None,
    ) -> CartPricing:
        return self.calculator.calculate_cart_pricing(items, shipping_amount, tax_amount, include_shipping_in_deposit)

    def calculate_refund_amount(
        self,
        order_id: str,
        requester_id: str,
        refund_type: RefundType = RefundType.FULL,
        line_amounts: Sequence[AmountLike] | None = None,
    ) -> Money:
        order = self.orders.get_order(order_id, requester_id)
        return calculate_refund_amount(order, refund_type, line_amounts)

    # =========================================================================
    # WHOLESALE
    # =========================================================================

    def validate_wholesale_order(
        self,
        invitation_id: str,
        items: Sequence[WholesaleOrderItem],
        payment_terms: str,
    ) -> WholesaleOrderValidation:
        return self.wholesale.validate_wholesale_order(invitation_id, items, payment_terms)

    def get_wholesale_pricing(
        self,
        invitation_id: str,
        product_id: str,
        quantity: int,
        variant_id: str | None = None,
    ) -> WholesalePricing:
        return self.wholesale.get_wholesale_pricing(invitation_id, product_id, quantity, variant_id)

    def place_wholesale_order(self, request: WholesaleOrderRequest) -> Order:
        return self.orders.place_wholesale_order(request)

    @staticmethod
    def calculate_payment_due_date(order_date: date, payment_terms: str) -> date:
        return calculate_payment_due_date(order_date, payment_terms)

    # =========================================================================
    # ORDERS
    # =========================================================================

    def get_order(self, order_id: str, requester_id: str) -> Order:
        return self.orders.get_order(order_id, requester_id)

    def create_order(self, order_input: CreateOrderInput, buyer_id: str) -> Order:
        return self.orders.create_order(order_input, buyer_id)

    def mark_paid(self, order_id: str, acting_seller_id: str) -> Order:
        return self.orders.mark_paid(order_id, acting_seller_id)

    def cancel_order(self, order_id: str, acting_seller_id: str) -> Order:
        return self.orders.cancel_order(order_id, acting_seller_id)

    def update_fulfillment(self, update: UpdateFulfillmentInput, acting_seller_id: str) -> Order:
        return self.orders.update_fulfillment(update, acting_seller_id)

    def issue_refund(self, refund: RefundInput, acting_seller_id: str) -> Order:
        return self.orders.issue_refund(refund, acting_seller_id)

    # =========================================================================
    # QUOTATIONS
    # =========================================================================

    def get_quotation(self, quotation_id: str, requester_id: str) -> Quotation:
        return self.quotations.get_quotation(quotation_id, requester_id)

    def create_quotation(self, quotation_input: CreateQuotationInput, seller_id: str) -> Quotation:
        return self.quotations.create_quotation(quotation_input, seller_id)

    def send_quotation(self, quotation_id: str, seller_id: str) -> Quotation:
        return self.quotations.send_quotation(quotation_id, seller_id)

    def accept_quotation(self, quotation_id: str, buyer_id: str) -> Quotation:
        return self.quotations.accept_quotation(quotation_id, buyer_id)

    def reject_quotation(self, quotation_id: str, buyer_id: str, reason: str | None = None) -> Quotation:
        return self.quotations.reject_quotation(quotation_id, buyer_id, reason)

    def expire_quotation(self, quotation_id: str) -> Quotation:
        return self.quotations.expire_quotation(quotation_id)

    def convert_quotation_to_order(self, quotation_id: str) -> Order:
        return self.quotations.convert_quotation_to_order(quotation_id)

    # =========================================================================
    # SETTLEMENT
    # =========================================================================

    def retry_pending(self) -> int:
        """Re-attempt side effects queued after cache/publisher failures."""
        return self.coordinator.retry_pending()
