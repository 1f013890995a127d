"""Tests for the strictschema error hierarchy."""

from __future__ import annotations

import pytest

from strictschema.errors import (
    ConfigError,
    ConfigNotFoundError,
    ErrorCodes,
    InvalidSchemaError,
    SchemaNotFoundError,
    SchemaParseError,
    StrictSchemaError,
    UnrepresentableOptionalPropertyError,
    UnresolvableCycleError,
    UnsupportedConstraintError,
    UnsupportedVariantError,
)


class TestStrictSchemaError:
    def test_fields(self) -> None:
        cause = ValueError("boom")
        err = StrictSchemaError(code="X", message="failed", details={"a": 1}, cause=cause, trace_id="t-1")
        assert err.code == "X"
        assert err.message == "failed"
        assert err.details == {"a": 1}
        assert err.cause is cause
        assert err.trace_id == "t-1"
        assert err.timestamp

    def test_str(self) -> None:
        assert str(StrictSchemaError(code="X", message="failed")) == "[X] failed"

    def test_details_default_empty(self) -> None:
        assert StrictSchemaError(code="X", message="m").details == {}

    @pytest.mark.parametrize(
        "err",
        [
            ConfigNotFoundError(config_path="/x.yaml"),
            ConfigError(message="bad"),
            InvalidSchemaError(message="bad"),
            UnrepresentableOptionalPropertyError(property_name="p", variant="optional"),
            UnsupportedVariantError(variant="any"),
            UnsupportedConstraintError(constraint="min", variant="number"),
            UnresolvableCycleError(cycle_path=["union", "array", "union"]),
            SchemaNotFoundError(schema_id="x"),
            SchemaParseError(message="bad"),
        ],
    )
    def test_all_errors_share_base(self, err: StrictSchemaError) -> None:
        assert isinstance(err, StrictSchemaError)
        assert err.code in vars(ErrorCodes).values()


class TestConversionErrors:
    def test_optional_property(self) -> None:
        err = UnrepresentableOptionalPropertyError(property_name="nickname", variant="optional")
        assert err.code == ErrorCodes.OPTIONAL_PROPERTY
        assert err.property_name == "nickname"
        assert err.message == (
            "Optional fields are not allowed: property 'nickname' is optional. Use .nullable() instead."
        )

    def test_unsupported_variant(self) -> None:
        err = UnsupportedVariantError(variant="tuple")
        assert err.variant == "tuple"
        assert err.message == "Unsupported or unknown schema node type: tuple"

    def test_unsupported_constraint(self) -> None:
        err = UnsupportedConstraintError(constraint="pattern", variant="string")
        assert err.constraint == "pattern"
        assert err.details["variant"] == "string"

    def test_unresolvable_cycle(self) -> None:
        err = UnresolvableCycleError(cycle_path=["union", "array", "lazy", "union"])
        assert err.message.endswith("union -> array -> lazy -> union")
        assert err.details["cycle_path"] == ["union", "array", "lazy", "union"]


class TestErrorCodes:
    def test_immutable(self) -> None:
        with pytest.raises(AttributeError):
            ErrorCodes().OPTIONAL_PROPERTY = "other"  # type: ignore[misc]
