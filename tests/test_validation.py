"""
Unit tests for schema registration, compilation and validation.
"""
import pytest

from core.exceptions import ConfigurationError
from core.json_schemas import BALANCE_SCHEMA, BALANCE_TOKEN_SCHEMA, compile_schemas
from core.schema import Balance
from core.validation import JsonSchemaService, SchemaViolation, ValidationErrorFactory


def test_compile_fails_on_unregistered_ref():
    """Test compiling a schema whose $ref is not registered fails fast."""
    service = JsonSchemaService()
    with pytest.raises(ConfigurationError) as exc_info:
        service.compile(BALANCE_SCHEMA, Balance)
    assert exc_info.value.details["ref"] == "balanceToken"


def test_compile_after_registration():
    """Test registration order makes the reference resolvable."""
    service = JsonSchemaService()
    service.add_schema(BALANCE_TOKEN_SCHEMA, "balanceToken")
    schema = service.compile(BALANCE_SCHEMA, Balance)

    payload = {
        "tokenAddress": None,
        "token": {"name": "Ether", "symbol": "ETH", "decimals": 18},
        "balance": "1000",
    }
    entity, violations = schema.validate(payload)

    assert violations == []
    assert entity.balance == "1000"
    assert entity.token.symbol == "ETH"


def test_duplicate_schema_name_rejected():
    """Test a name can only be registered once."""
    service = JsonSchemaService()
    service.add_schema(BALANCE_TOKEN_SCHEMA, "balanceToken")
    with pytest.raises(ConfigurationError):
        service.add_schema(BALANCE_TOKEN_SCHEMA, "balanceToken")


def test_invalid_schema_rejected():
    """Test a schema that is not valid JSON schema is rejected."""
    service = JsonSchemaService()
    with pytest.raises(ConfigurationError):
        service.compile({"type": "no-such-type"}, Balance)


def test_violations_report_path_and_constraint():
    """Test violations locate the failing field."""
    schemas = compile_schemas(JsonSchemaService())
    payload = {"token": None, "balance": "1.5", "trusted": "yes"}

    entity, violations = schemas.balance.validate(payload, path="$[3]")

    assert entity is None
    assert sorted((v.path, v.constraint) for v in violations) == [
        ("$[3].balance", "pattern"),
        ("$[3].trusted", "type"),
    ]


def test_numeric_amounts_are_normalized_to_strings():
    """Test integer amounts become strings on the entity."""
    schemas = compile_schemas(JsonSchemaService())
    entity, violations = schemas.balance.validate({"balance": 10 ** 30})
    assert violations == []
    assert entity.balance == str(10 ** 30)


def test_error_factory_builds_one_error():
    """Test the factory summarizes every violation in one error."""
    violations = [
        SchemaViolation(path=f"$[{i}].balance", constraint="required", expected=["balance"], actual={},
                        message="'balance' is a required property")
        for i in range(7)
    ]
    error = ValidationErrorFactory().from_violations(violations)

    assert error.violations == violations
    assert error.message.startswith("Validation failed with 7 violation(s)")
    assert "2 more" in error.message
