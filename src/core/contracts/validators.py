"""
JSON Schema Contract Validators

Checks the engine's outbound payloads against the documents in
contracts/schema/ (jsonschema, Draft 2020-12):
- domain_event: events handed to the publisher
- pricing_breakdown: PricingBreakdown.to_contract()
- wholesale_order_validation: WholesaleOrderValidation.to_contract()

Each schema is read and compiled once per process; contract_validator()
hands out the shared instance.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator, ValidationError

SCHEMA_DIR = Path(__file__).resolve().parents[3] / "contracts" / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Reads, meta-validates and memoizes schema documents from one directory."""

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or SCHEMA_DIR
        if not self._schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Args:
            schema_name: File name without the .json suffix

        Raises:
            FileNotFoundError: No such schema file
            ValueError: The document is not a Draft 2020-12 schema
        """
        cached = self._schemas.get(schema_name)
        if cached is not None:
            return cached

        path = self._schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"Schema not found: {path}")

        schema = json.loads(path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e

        self._schemas[schema_name] = schema
        return schema


@lru_cache(maxsize=None)
def _default_loader() -> SchemaLoader:
    return SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """One compiled schema. Subclasses pin `contract` to their schema name."""

    contract: ClassVar[str | None] = None

    def __init__(self, schema_name: str | None = None, loader: SchemaLoader | None = None):
        name = schema_name or self.contract
        if name is None:
            raise TypeError(f"{type(self).__name__} needs a schema name")
        self.schema_name = name
        self.schema = (loader or _default_loader()).load_schema(name)
        self._compiled = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: If the data does not match the schema
        """
        self._compiled.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._compiled.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return self._compiled.iter_errors(data)

    def describe(self, data: Dict[str, Any]) -> list[str]:
        """Every violation as "path: message", sorted by path ("$" is the root)."""
        return sorted(
            f"{error.json_path}: {error.message}" for error in self._compiled.iter_errors(data)
        )


class DomainEventValidator(ContractValidator):
    contract = "domain_event"


class PricingBreakdownValidator(ContractValidator):
    contract = "pricing_breakdown"


class WholesaleOrderValidationValidator(ContractValidator):
    contract = "wholesale_order_validation"


CONTRACTS: Dict[str, type[ContractValidator]] = {
    cls.contract: cls
    for cls in (DomainEventValidator, PricingBreakdownValidator, WholesaleOrderValidationValidator)
}


@lru_cache(maxsize=None)
def contract_validator(schema_name: str) -> ContractValidator:
    """
    Shared validator for a registered contract.

    Raises:
        KeyError: Unknown contract name
    """
    return CONTRACTS[schema_name]()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_domain_event(data: Dict[str, Any]) -> None:
    """
    Raises:
        ValidationError: If the data does not match the schema
    """
    contract_validator("domain_event").validate(data)


def validate_pricing_breakdown(data: Dict[str, Any]) -> None:
    contract_validator("pricing_breakdown").validate(data)


def validate_wholesale_order_validation(data: Dict[str, Any]) -> None:
    contract_validator("wholesale_order_validation").validate(data)
