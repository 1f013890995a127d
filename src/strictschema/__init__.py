"""strictschema - convert schema node trees to structured-output JSON Schema."""

from __future__ import annotations

# Nodes
from strictschema.nodes import (
    SUPPORTED_KINDS,
    WRAPPER_KINDS,
    AnyNode,
    ArrayNode,
    BigIntNode,
    BooleanNode,
    Check,
    DefaultNode,
    DiscriminatedUnionNode,
    EnumNode,
    IntersectionNode,
    LazyNode,
    LiteralNode,
    NeverNode,
    Node,
    NodeKind,
    NullableNode,
    NullNode,
    NumberNode,
    ObjectNode,
    OpaqueNode,
    OptionalNode,
    RecordNode,
    StringNode,
    TupleNode,
    UnionNode,
)

# Conversion
from strictschema.counter import ReachabilityMap, count_references
from strictschema.registry import Definition, DefinitionRegistry, definition
from strictschema.converter import ConversionOptions, SchemaConverter, to_strict_schema

# Front-ends
from strictschema.introspect import model_to_strict_schema, node_from_model, node_from_type
from strictschema.loader import SchemaDocument, SchemaLoader

# Config
from strictschema.config import Config

# Errors
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

__version__ = "0.1.0"

__all__ = [
    # Nodes
    "Node",
    "NodeKind",
    "SUPPORTED_KINDS",
    "WRAPPER_KINDS",
    "Check",
    "StringNode",
    "NumberNode",
    "BooleanNode",
    "BigIntNode",
    "NullNode",
    "LiteralNode",
    "EnumNode",
    "ObjectNode",
    "ArrayNode",
    "UnionNode",
    "DiscriminatedUnionNode",
    "LazyNode",
    "NullableNode",
    "OptionalNode",
    "DefaultNode",
    "AnyNode",
    "NeverNode",
    "IntersectionNode",
    "TupleNode",
    "RecordNode",
    "OpaqueNode",
    # Conversion
    "to_strict_schema",
    "SchemaConverter",
    "ConversionOptions",
    "Definition",
    "definition",
    "DefinitionRegistry",
    "ReachabilityMap",
    "count_references",
    # Front-ends
    "node_from_type",
    "node_from_model",
    "model_to_strict_schema",
    "SchemaLoader",
    "SchemaDocument",
    # Config
    "Config",
    # Errors
    "ErrorCodes",
    "StrictSchemaError",
    "UnrepresentableOptionalPropertyError",
    "UnsupportedVariantError",
    "UnsupportedConstraintError",
    "UnresolvableCycleError",
    "InvalidSchemaError",
    "ConfigError",
    "ConfigNotFoundError",
    "SchemaNotFoundError",
    "SchemaParseError",
]
