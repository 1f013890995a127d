"""Schema description nodes.

A schema is a tree of immutable ``Node`` instances. Identity matters: every
node receives a process-unique ``node_id`` at construction, and the converter
keys all of its bookkeeping on that id, never on structural equality. The
fluent helpers (``describe``, ``nullable``, ``optional``, ``default``, checks)
always return a new node and therefore a new identity.

Example::

    item = ObjectNode({"name": StringNode()})
    todo_list = ObjectNode({
        "pending": ArrayNode(item),
        "done": ArrayNode(item),
        "owner": StringNode().nullable().describe("Who owns the list"),
    })
"""

from __future__ import annotations

import dataclasses
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, NamedTuple, Sequence

from strictschema.errors import InvalidSchemaError

__all__ = [
    "NodeKind",
    "SUPPORTED_KINDS",
    "WRAPPER_KINDS",
    "Check",
    "Node",
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
    "WrapperNode",
    "NullableNode",
    "OptionalNode",
    "DefaultNode",
    "AnyNode",
    "NeverNode",
    "IntersectionNode",
    "TupleNode",
    "RecordNode",
    "OpaqueNode",
]

_node_ids = itertools.count(1)


class NodeKind(str, Enum):
    """Discriminator of every node variant."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    BIGINT = "bigint"
    OBJECT = "object"
    ARRAY = "array"
    UNION = "union"
    DISCRIMINATED_UNION = "discriminated_union"
    LITERAL = "literal"
    ENUM = "enum"
    NULL = "null"
    LAZY = "lazy"
    NULLABLE = "nullable"
    OPTIONAL = "optional"
    DEFAULT = "default"
    ANY = "any"
    NEVER = "never"
    INTERSECTION = "intersection"
    TUPLE = "tuple"
    RECORD = "record"
    UNKNOWN = "unknown"


WRAPPER_KINDS: frozenset[NodeKind] = frozenset({NodeKind.NULLABLE, NodeKind.OPTIONAL, NodeKind.DEFAULT})

SUPPORTED_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.STRING,
        NodeKind.NUMBER,
        NodeKind.BOOLEAN,
        NodeKind.BIGINT,
        NodeKind.OBJECT,
        NodeKind.ARRAY,
        NodeKind.UNION,
        NodeKind.DISCRIMINATED_UNION,
        NodeKind.LITERAL,
        NodeKind.ENUM,
        NodeKind.NULL,
        NodeKind.LAZY,
    }
    | WRAPPER_KINDS
)


class Check(NamedTuple):
    """A constraint attached to a node, e.g. ``Check("min_length", 1)``."""

    kind: str
    value: Any = None


@dataclass(frozen=True, eq=False)
class Node:
    """Base class of all schema nodes."""

    kind = NodeKind.UNKNOWN

    description: str | None = field(default=None, kw_only=True)
    checks: tuple[Check, ...] = field(default=(), kw_only=True)
    node_id: int = field(init=False, repr=False, default_factory=lambda: next(_node_ids))

    @property
    def type_name(self) -> str:
        """Name used for this node in error messages."""
        return self.kind.value

    def describe(self, description: str) -> Node:
        return dataclasses.replace(self, description=description)

    def nullable(self) -> NullableNode:
        return NullableNode(self)

    def optional(self) -> OptionalNode:
        return OptionalNode(self)

    def default(self, value: Any) -> DefaultNode:
        return DefaultNode(self, value)

    def array(self) -> ArrayNode:
        return ArrayNode(self)

    def is_optional(self) -> bool:
        """Whether the node accepts an absent value."""
        return False

    def is_nullable(self) -> bool:
        """Whether the node is wrapped as nullable."""
        return False

    def _with_check(self, kind: str, value: Any = None) -> Node:
        return dataclasses.replace(self, checks=self.checks + (Check(kind, value),))


@dataclass(frozen=True, eq=False)
class StringNode(Node):
    kind = NodeKind.STRING

    def min_length(self, value: int) -> StringNode:
        return self._with_check("min_length", value)  # type: ignore[return-value]

    def max_length(self, value: int) -> StringNode:
        return self._with_check("max_length", value)  # type: ignore[return-value]

    def pattern(self, value: str) -> StringNode:
        return self._with_check("pattern", value)  # type: ignore[return-value]


@dataclass(frozen=True, eq=False)
class NumberNode(Node):
    kind = NodeKind.NUMBER

    @property
    def is_integer(self) -> bool:
        """Whether the number carries an integer check."""
        return any(check.kind == "int" for check in self.checks)

    def int(self) -> NumberNode:
        return self._with_check("int")  # type: ignore[return-value]

    def min(self, value: float) -> NumberNode:
        return self._with_check("min", value)  # type: ignore[return-value]

    def max(self, value: float) -> NumberNode:
        return self._with_check("max", value)  # type: ignore[return-value]


@dataclass(frozen=True, eq=False)
class BooleanNode(Node):
    kind = NodeKind.BOOLEAN


@dataclass(frozen=True, eq=False)
class BigIntNode(Node):
    kind = NodeKind.BIGINT


@dataclass(frozen=True, eq=False)
class NullNode(Node):
    kind = NodeKind.NULL


@dataclass(frozen=True, eq=False)
class LiteralNode(Node):
    kind = NodeKind.LITERAL

    value: Any = None


@dataclass(frozen=True, eq=False)
class EnumNode(Node):
    """A closed set of string values."""

    kind = NodeKind.ENUM

    values: Sequence[str] = ()

    def __post_init__(self) -> None:
        values = tuple(self.values)
        if not values:
            raise InvalidSchemaError(message="Enum requires at least one value")
        if not all(isinstance(v, str) for v in values):
            raise InvalidSchemaError(message=f"Enum values must be strings, got {values!r}")
        if len(set(values)) != len(values):
            raise InvalidSchemaError(message=f"Enum values must be unique, got {values!r}")
        object.__setattr__(self, "values", values)


@dataclass(frozen=True, eq=False)
class ObjectNode(Node):
    """An object with a fixed, ordered set of properties."""

    kind = NodeKind.OBJECT

    shape: Mapping[str, Node] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for key, value in self.shape.items():
            if not isinstance(value, Node):
                raise InvalidSchemaError(
                    message=f"Property '{key}' must be a schema node, got {type(value).__name__}"
                )
        object.__setattr__(self, "shape", dict(self.shape))

    def extend(self, shape: Mapping[str, Node]) -> ObjectNode:
        """Return a new object with ``shape`` merged over this object's properties."""
        return ObjectNode({**self.shape, **shape}, description=self.description)


@dataclass(frozen=True, eq=False)
class ArrayNode(Node):
    kind = NodeKind.ARRAY

    element: Node

    def min_items(self, value: int) -> ArrayNode:
        return self._with_check("min_items", value)  # type: ignore[return-value]

    def max_items(self, value: int) -> ArrayNode:
        return self._with_check("max_items", value)  # type: ignore[return-value]


@dataclass(frozen=True, eq=False)
class UnionNode(Node):
    kind = NodeKind.UNION

    options: Sequence[Node]

    def __post_init__(self) -> None:
        options = tuple(self.options)
        if not options:
            raise InvalidSchemaError(message="Union requires at least one option")
        object.__setattr__(self, "options", options)


@dataclass(frozen=True, eq=False)
class DiscriminatedUnionNode(Node):
    """A union of objects told apart by a literal-valued discriminator property.

    ``options_map`` maps every discriminator value to its option, in the order
    the options (and their values) were declared.
    """

    kind = NodeKind.DISCRIMINATED_UNION

    discriminator: str
    options: Sequence[ObjectNode]
    options_map: dict[Any, ObjectNode] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        options = tuple(self.options)
        options_map: dict[Any, ObjectNode] = {}
        for option in options:
            if not isinstance(option, ObjectNode):
                raise InvalidSchemaError(
                    message=f"Discriminated union options must be objects, got {option.type_name}"
                )
            for value in self._discriminator_values(option):
                if value in options_map:
                    raise InvalidSchemaError(
                        message=f"Duplicate discriminator value {value!r} for '{self.discriminator}'"
                    )
                options_map[value] = option
        object.__setattr__(self, "options", options)
        object.__setattr__(self, "options_map", options_map)

    def _discriminator_values(self, option: ObjectNode) -> tuple[Any, ...]:
        prop = option.shape.get(self.discriminator)
        if isinstance(prop, LiteralNode):
            return (prop.value,)
        if isinstance(prop, EnumNode):
            return tuple(prop.values)
        raise InvalidSchemaError(
            message=f"Discriminator '{self.discriminator}' must be a literal or enum property on every option"
        )

    def alternatives(self) -> tuple[ObjectNode, ...]:
        """Distinct options in enumeration order."""
        return tuple(dict.fromkeys(self.options_map.values()))


@dataclass(frozen=True, eq=False)
class LazyNode(Node):
    """A deferred reference, used to build self-referential schemas.

    Example::

        category = ObjectNode({
            "name": StringNode(),
            "children": ArrayNode(LazyNode(lambda: category)),
        })
    """

    kind = NodeKind.LAZY

    getter: Callable[[], Node]

    def resolve(self) -> Node:
        target = self.getter()
        if not isinstance(target, Node):
            raise InvalidSchemaError(
                message=f"Lazy getter must return a schema node, got {type(target).__name__}"
            )
        return target

    def is_optional(self) -> bool:
        return self.resolve().is_optional()

    def is_nullable(self) -> bool:
        return self.resolve().is_nullable()


@dataclass(frozen=True, eq=False)
class WrapperNode(Node):
    """Base of nodes that change presence semantics without changing the value type."""

    inner: Node

    def unwrap(self) -> Node:
        return self.inner


@dataclass(frozen=True, eq=False)
class NullableNode(WrapperNode):
    kind = NodeKind.NULLABLE

    def is_optional(self) -> bool:
        return self.inner.is_optional()

    def is_nullable(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class OptionalNode(WrapperNode):
    kind = NodeKind.OPTIONAL

    def is_optional(self) -> bool:
        return True

    def is_nullable(self) -> bool:
        return self.inner.is_nullable()


@dataclass(frozen=True, eq=False)
class DefaultNode(WrapperNode):
    """A value that falls back to ``default_value`` when absent."""

    kind = NodeKind.DEFAULT

    default_value: Any = None

    def is_optional(self) -> bool:
        return True

    def is_nullable(self) -> bool:
        return self.inner.is_nullable()


@dataclass(frozen=True, eq=False)
class AnyNode(Node):
    kind = NodeKind.ANY


@dataclass(frozen=True, eq=False)
class NeverNode(Node):
    kind = NodeKind.NEVER


@dataclass(frozen=True, eq=False)
class IntersectionNode(Node):
    kind = NodeKind.INTERSECTION

    left: Node
    right: Node


@dataclass(frozen=True, eq=False)
class TupleNode(Node):
    kind = NodeKind.TUPLE

    items: Sequence[Node]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True, eq=False)
class RecordNode(Node):
    """A mapping with arbitrary keys."""

    kind = NodeKind.RECORD

    values: Node
    keys: Node = field(default_factory=StringNode)


@dataclass(frozen=True, eq=False)
class OpaqueNode(Node):
    """A construct the description language has no variant for."""

    kind = NodeKind.UNKNOWN

    name: str = "unknown"

    @property
    def type_name(self) -> str:
        return self.name
