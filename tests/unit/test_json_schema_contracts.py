"""
Tests for JSON Schema Contract Validators

Covers:
- Validity of the schemas themselves
- Acceptance of real serialized engine output
- Detection of missing required fields, bad types and pattern violations
- One compiled validator per contract
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from jsonschema import ValidationError

from src.core.contracts import (
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
from src.core.contracts import validators
from src.core.domain import DomainEvent, EventKind, PricingItem
from src.pricing import calculate_breakdown, price_line_items
from src.settlement import InMemoryPublisher
from src.wholesale.builder import ValidationBuilder
from src.wholesale.checks import (
    calculate_deposit,
    validate_minimum_value,
    validate_moq,
    validate_payment_terms,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_domain_event():
    return DomainEvent(
        kind=EventKind.ORDER_FULFILLMENT_CHANGED,
        order_id="order-1",
        actor_seller_id="seller-1",
        recipient_room="buyer:buyer-1",
        payload={"fulfillment_status": "fulfilled", "tracking_number": "1Z999"},
        timestamp=NOW,
    ).to_contract()


@pytest.fixture
def valid_pricing_breakdown():
    items = [
        PricingItem(description="Widget", unit_price=Decimal("10.00"), quantity=3, product_id="p1"),
        PricingItem(description="Gadget", unit_price=Decimal("4.99"), quantity=1),
    ]
    return calculate_breakdown(price_line_items(items), "0.08", "5.00", 30).to_contract()


@pytest.fixture
def valid_wholesale_validation():
    builder = ValidationBuilder("USD")
    builder.add_warning("No deposit percentage set on invitation inv-1; using default 30")
    builder.with_total(Decimal("500.00"))
    builder.with_moq(validate_moq([], {}))
    builder.with_payment_terms(validate_payment_terms("Net 15", ["Net 30"]))
    builder.with_minimum_value(validate_minimum_value("500.00", 1000, "USD"))
    builder.with_deposit(calculate_deposit("500.00", 30, "USD"))
    return builder.build().to_contract()


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class TestSchemaLoader:
    @pytest.mark.parametrize(
        "schema_name", ["domain_event", "pricing_breakdown", "wholesale_order_validation"]
    )
    def test_schemas_load_and_meta_validate(self, schema_name):
        schema = SchemaLoader().load_schema(schema_name)
        assert schema["$schema"] == "https://json-schema.org/draft/2020-12/schema"

    def test_schema_cached(self):
        loader = SchemaLoader()
        assert loader.load_schema("domain_event") is loader.load_schema("domain_event")

    def test_missing_schema(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("does_not_exist")

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(RuntimeError):
            SchemaLoader(tmp_path / "nowhere")

    def test_invalid_schema_rejected(self, tmp_path: Path):
        (tmp_path / "broken.json").write_text(json.dumps({"type": 12}), encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON Schema"):
            SchemaLoader(tmp_path).load_schema("broken")


# =============================================================================
# DOMAIN EVENT
# =============================================================================


class TestDomainEventContract:
    def test_valid(self, valid_domain_event):
        validate_domain_event(valid_domain_event)

    def test_missing_subject(self, valid_domain_event):
        valid_domain_event["order_id"] = None
        assert not DomainEventValidator().is_valid(valid_domain_event)

    def test_quotation_only_subject(self, valid_domain_event):
        valid_domain_event["order_id"] = None
        valid_domain_event["quotation_id"] = "q-1"
        valid_domain_event["kind"] = "quotation.sent"
        validate_domain_event(valid_domain_event)

    def test_unknown_kind(self, valid_domain_event):
        valid_domain_event["kind"] = "order.shipped"
        with pytest.raises(ValidationError):
            validate_domain_event(valid_domain_event)

    def test_bad_room(self, valid_domain_event):
        valid_domain_event["recipient_room"] = "everyone"
        with pytest.raises(ValidationError):
            validate_domain_event(valid_domain_event)

    def test_extra_field(self, valid_domain_event):
        valid_domain_event["secret"] = "x"
        with pytest.raises(ValidationError):
            validate_domain_event(valid_domain_event)


# =============================================================================
# PRICING BREAKDOWN
# =============================================================================


class TestPricingBreakdownContract:
    def test_valid(self, valid_pricing_breakdown):
        validate_pricing_breakdown(valid_pricing_breakdown)

    def test_amounts_are_strings(self, valid_pricing_breakdown):
        assert valid_pricing_breakdown["subtotal"] == {"currency": "USD", "amount": "34.99"}
        assert valid_pricing_breakdown["deposit_percentage"] == "30"

    def test_float_amount_rejected(self, valid_pricing_breakdown):
        valid_pricing_breakdown["total"]["amount"] = 12.5
        with pytest.raises(ValidationError):
            validate_pricing_breakdown(valid_pricing_breakdown)

    def test_lowercase_currency_rejected(self, valid_pricing_breakdown):
        valid_pricing_breakdown["currency"] = "usd"
        with pytest.raises(ValidationError):
            validate_pricing_breakdown(valid_pricing_breakdown)

    def test_missing_balance(self, valid_pricing_breakdown):
        del valid_pricing_breakdown["balance_amount"]
        errors = list(PricingBreakdownValidator().iter_errors(valid_pricing_breakdown))
        assert len(errors) == 1
        assert "balance_amount" in errors[0].message


# =============================================================================
# WHOLESALE ORDER VALIDATION
# =============================================================================


class TestWholesaleValidationContract:
    def test_valid(self, valid_wholesale_validation):
        validate_wholesale_order_validation(valid_wholesale_validation)

    def test_every_sub_validation_present(self, valid_wholesale_validation):
        for key in (
            "moq_validation",
            "payment_terms_validation",
            "minimum_value_validation",
            "deposit_calculation",
        ):
            assert key in valid_wholesale_validation

    def test_failing_content(self, valid_wholesale_validation):
        assert valid_wholesale_validation["valid"] is False
        assert valid_wholesale_validation["minimum_value_validation"]["shortfall"] == "500.00"
        assert valid_wholesale_validation["deposit_calculation"]["deposit_amount"] == "150.00"
        assert len(valid_wholesale_validation["errors"]) == 2

    def test_missing_deposit_calculation(self, valid_wholesale_validation):
        del valid_wholesale_validation["deposit_calculation"]
        assert not WholesaleOrderValidationValidator().is_valid(valid_wholesale_validation)

    def test_bad_moq_failure_item(self, valid_wholesale_validation):
        valid_wholesale_validation["moq_validation"]["items_failing_moq"] = [
            {"product_id": "p1", "product_name": "Mug", "required_quantity": 0, "provided_quantity": 1}
        ]
        with pytest.raises(ValidationError):
            validate_wholesale_order_validation(valid_wholesale_validation)


# =============================================================================
# SHARED VALIDATORS
# =============================================================================


class TestSharedValidators:
    @pytest.mark.parametrize(
        "schema_name, validator_class",
        [
            ("domain_event", DomainEventValidator),
            ("pricing_breakdown", PricingBreakdownValidator),
            ("wholesale_order_validation", WholesaleOrderValidationValidator),
        ],
    )
    def test_one_instance_per_contract(self, schema_name, validator_class):
        shared = contract_validator(schema_name)
        assert isinstance(shared, validator_class)
        assert contract_validator(schema_name) is shared
        assert set(CONTRACTS) == {"domain_event", "pricing_breakdown", "wholesale_order_validation"}

    def test_convenience_functions_do_not_recompile(self, monkeypatch, valid_domain_event):
        validate_domain_event(valid_domain_event)

        def recompile(*args, **kwargs):
            raise AssertionError("schema compiled again")

        monkeypatch.setattr(validators, "Draft202012Validator", recompile)
        validate_domain_event(valid_domain_event)
        with pytest.raises(ValidationError):
            validate_domain_event({**valid_domain_event, "kind": "order.shipped"})

    def test_unknown_contract(self):
        with pytest.raises(KeyError):
            contract_validator("invoice")

    def test_base_class_needs_a_name(self):
        with pytest.raises(TypeError, match="needs a schema name"):
            ContractValidator()

    def test_custom_loader(self, tmp_path: Path):
        schema = {"$schema": "https://json-schema.org/draft/2020-12/schema", "type": "object", "required": ["id"]}
        (tmp_path / "ticket.json").write_text(json.dumps(schema), encoding="utf-8")
        validator = ContractValidator("ticket", SchemaLoader(tmp_path))

        assert validator.is_valid({"id": 1})
        assert validator.describe({}) == ["$: 'id' is a required property"]

    def test_publisher_shares_event_validator(self):
        assert InMemoryPublisher()._validator is contract_validator("domain_event")
