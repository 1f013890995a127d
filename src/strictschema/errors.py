"""Error hierarchy for the strictschema converter."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "StrictSchemaError",
    "ConfigNotFoundError",
    "ConfigError",
    "InvalidSchemaError",
    "UnrepresentableOptionalPropertyError",
    "UnsupportedVariantError",
    "UnsupportedConstraintError",
    "UnresolvableCycleError",
    "SchemaNotFoundError",
    "SchemaParseError",
    "ErrorCodes",
]


class StrictSchemaError(Exception):
    """Base error for all strictschema errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
        trace_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.trace_id = trace_id
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(StrictSchemaError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(StrictSchemaError):
    """Raised when configuration or conversion options are invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class InvalidSchemaError(StrictSchemaError):
    """Raised when a schema node is constructed with inconsistent arguments."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="INVALID_SCHEMA", message=message, **kwargs)


class UnrepresentableOptionalPropertyError(StrictSchemaError):
    """Raised when an object property is optional or carries a default.

    Structured outputs require every declared property to be present, so an
    absent value has no representation.
    """

    def __init__(self, property_name: str, variant: str, **kwargs: Any) -> None:
        super().__init__(
            code="OPTIONAL_PROPERTY",
            message=(
                f"Optional fields are not allowed: property '{property_name}' is {variant}. "
                f"Use .nullable() instead."
            ),
            details={"property_name": property_name, "variant": variant},
            **kwargs,
        )

    @property
    def property_name(self) -> str:
        """The name of the offending property."""
        return self.details["property_name"]


class UnsupportedVariantError(StrictSchemaError):
    """Raised when a node kind is unknown or deliberately unsupported."""

    def __init__(self, variant: str, **kwargs: Any) -> None:
        super().__init__(
            code="UNSUPPORTED_VARIANT",
            message=f"Unsupported or unknown schema node type: {variant}",
            details={"variant": variant},
            **kwargs,
        )

    @property
    def variant(self) -> str:
        """The discriminator name of the rejected node."""
        return self.details["variant"]


class UnsupportedConstraintError(StrictSchemaError):
    """Raised when a node carries a value constraint structured outputs cannot express."""

    def __init__(self, constraint: str, variant: str, **kwargs: Any) -> None:
        super().__init__(
            code="UNSUPPORTED_CONSTRAINT",
            message=f"Constraint '{constraint}' on {variant} is not supported in structured outputs",
            details={"constraint": constraint, "variant": variant},
            **kwargs,
        )

    @property
    def constraint(self) -> str:
        """The kind of the rejected check."""
        return self.details["constraint"]


class UnresolvableCycleError(StrictSchemaError):
    """Raised when a cycle contains no object node that could be hoisted into $defs."""

    def __init__(self, cycle_path: list[str], **kwargs: Any) -> None:
        super().__init__(
            code="UNRESOLVABLE_CYCLE",
            message=f"Cycle without an object node cannot be referenced: {' -> '.join(cycle_path)}",
            details={"cycle_path": cycle_path},
            **kwargs,
        )


class SchemaNotFoundError(StrictSchemaError):
    """Raised when a schema description file or definition cannot be found."""

    def __init__(self, schema_id: str, **kwargs: Any) -> None:
        super().__init__(
            code="SCHEMA_NOT_FOUND",
            message=f"Schema not found: {schema_id}",
            details={"schema_id": schema_id},
            **kwargs,
        )


class SchemaParseError(StrictSchemaError):
    """Raised when a schema description file has invalid syntax or structure."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="SCHEMA_PARSE_ERROR", message=message, **kwargs)


class ErrorCodes:
    """All error codes as constants.

    Use these instead of hardcoding error code strings.

    Example:
        if error.code == ErrorCodes.OPTIONAL_PROPERTY:
            make_field_nullable()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    OPTIONAL_PROPERTY = "OPTIONAL_PROPERTY"
    UNSUPPORTED_VARIANT = "UNSUPPORTED_VARIANT"
    UNSUPPORTED_CONSTRAINT = "UNSUPPORTED_CONSTRAINT"
    UNRESOLVABLE_CYCLE = "UNRESOLVABLE_CYCLE"
    SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
    SCHEMA_PARSE_ERROR = "SCHEMA_PARSE_ERROR"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
