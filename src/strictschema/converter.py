"""Lowering of schema node trees into structured-output JSON Schema."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from strictschema.config import Config
from strictschema.counter import MAX_DEPTH, ReachabilityMap, count_references
from strictschema.errors import (
    ConfigError,
    UnrepresentableOptionalPropertyError,
    UnresolvableCycleError,
    UnsupportedConstraintError,
    UnsupportedVariantError,
)
from strictschema.nodes import (
    SUPPORTED_KINDS,
    ArrayNode,
    DiscriminatedUnionNode,
    EnumNode,
    LazyNode,
    LiteralNode,
    Node,
    NodeKind,
    NumberNode,
    ObjectNode,
    UnionNode,
    WrapperNode,
)
from strictschema.registry import DEFS_KEY, Definition, DefinitionRegistry, inline_root_reference

logger = logging.getLogger(__name__)

__all__ = ["ConversionOptions", "SchemaConverter", "to_strict_schema"]

_NULL_FRAGMENT = {"type": "null"}

_PRIMITIVE_TYPES: dict[NodeKind, str] = {
    NodeKind.STRING: "string",
    NodeKind.BOOLEAN: "boolean",
    NodeKind.BIGINT: "integer",
    NodeKind.NULL: "null",
}


@dataclass
class ConversionOptions:
    """Per-call options.

    Attributes:
        definitions: Pinned definition names, matched by node identity.
    """

    definitions: list[Definition] = field(default_factory=list)


class SchemaConverter:
    """Stateless converter from node trees to structured-output schemas.

    All bookkeeping is allocated per ``convert`` call, so one instance may be
    shared between threads.
    """

    def __init__(self, config: Config | None = None) -> None:
        config = config or Config()
        self._max_depth: int = config.get("conversion.max_depth", MAX_DEPTH)
        self._prefix: str = config.get("conversion.definition_prefix", "Def_")
        if isinstance(self._max_depth, bool) or not isinstance(self._max_depth, int) or self._max_depth < 0:
            raise ConfigError(message=f"conversion.max_depth must be a non-negative integer, got {self._max_depth!r}")
        if not isinstance(self._prefix, str) or not self._prefix:
            raise ConfigError(message=f"conversion.definition_prefix must be a non-empty string, got {self._prefix!r}")

    def convert(self, root: Node, options: ConversionOptions | None = None) -> dict[str, Any]:
        """Convert ``root`` into a JSON Schema document.

        Repeated object nodes are hoisted into ``$defs``; everything else is
        inlined. Raises on optional properties and unsupported node kinds.
        """
        options = options or ConversionOptions()
        counts = count_references(root, max_depth=self._max_depth)
        registry = DefinitionRegistry(options.definitions, prefix=self._prefix)
        lowering = _Lowering(counts, registry)

        document = lowering.convert(root, is_root=True)

        pending = registry.pending()
        while pending:
            for node in pending:
                registry.record(node, lowering.lower(node))
            pending = registry.pending()

        definitions = registry.materialize()
        inline_root_reference(document, definitions)
        if definitions:
            document[DEFS_KEY] = definitions
        logger.debug("Converted %s schema with %d definitions", root.type_name, len(definitions))
        return document


def to_strict_schema(
    root: Node,
    options: ConversionOptions | None = None,
    *,
    config: Config | None = None,
) -> dict[str, Any]:
    """Convert a node tree to an OpenAI structured-output JSON Schema.

    Example::

        to_strict_schema(ObjectNode({"name": StringNode()}))
        # {"type": "object", "properties": {"name": {"type": "string"}},
        #  "required": ["name"], "additionalProperties": False}
    """
    return SchemaConverter(config).convert(root, options)


class _Lowering:
    """Recursive lowering state for one conversion call."""

    def __init__(self, counts: ReachabilityMap, registry: DefinitionRegistry) -> None:
        self._counts = counts
        self._registry = registry
        self._stack: list[Node] = []
        self._active: dict[int, int] = {}

    def convert(self, node: Node, is_root: bool = False) -> dict[str, Any]:
        """Emit a $ref for repeated non-root objects, otherwise lower inline."""
        if node.kind is NodeKind.OBJECT and not is_root and self._should_hoist(node):
            return self._registry.ref_for(node)
        return self.lower(node, is_root)

    def lower(self, node: Node, is_root: bool = False) -> dict[str, Any]:
        """Lower ``node`` inline, bypassing the hoisting decision for ``node`` itself."""
        if node.kind not in SUPPORTED_KINDS:
            raise UnsupportedVariantError(variant=node.type_name)
        self._reject_constraints(node)
        if node.node_id in self._active:
            self._check_cycle(node)

        self._push(node)
        try:
            fragment = self._lower_variant(node, is_root)
        finally:
            self._pop(node)

        if node.description and "$ref" not in fragment:
            fragment["description"] = node.description
        return fragment

    def _lower_variant(self, node: Node, is_root: bool) -> dict[str, Any]:
        kind = node.kind
        if kind in _PRIMITIVE_TYPES:
            return {"type": _PRIMITIVE_TYPES[kind]}
        if isinstance(node, NumberNode):
            return {"type": "integer" if node.is_integer else "number"}
        if isinstance(node, ObjectNode):
            return self._lower_object(node)
        if isinstance(node, ArrayNode):
            return {"type": "array", "items": self.convert(node.element)}
        if isinstance(node, UnionNode):
            return {"anyOf": [self.convert(option) for option in node.options]}
        if isinstance(node, DiscriminatedUnionNode):
            return {"anyOf": [self.convert(option) for option in node.alternatives()]}
        if isinstance(node, EnumNode):
            return {"type": "string", "enum": list(node.values)}
        if isinstance(node, LiteralNode):
            return _lower_literal(node.value)
        if isinstance(node, LazyNode):
            return self.convert(node.resolve(), is_root)
        if isinstance(node, WrapperNode):
            return self.convert(node.unwrap(), is_root)
        raise UnsupportedVariantError(variant=node.type_name)

    def _lower_object(self, node: ObjectNode) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for name, prop in node.shape.items():
            if prop.is_optional():
                raise UnrepresentableOptionalPropertyError(property_name=name, variant=_presence(prop))
            if prop.is_nullable():
                properties[name] = {"anyOf": [self.convert(prop), dict(_NULL_FRAGMENT)]}
            else:
                properties[name] = self.convert(prop)

        fragment: dict[str, Any] = {"type": "object", "properties": properties}
        if properties:
            fragment["required"] = list(properties)
        fragment["additionalProperties"] = False
        return fragment

    def _should_hoist(self, node: Node) -> bool:
        return self._counts.count(node) > 1 or node.node_id in self._active

    def _reject_constraints(self, node: Node) -> None:
        for check in node.checks:
            if check.kind == "int" and node.kind is NodeKind.NUMBER:
                continue
            raise UnsupportedConstraintError(constraint=check.kind, variant=node.type_name)

    def _check_cycle(self, node: Node) -> None:
        # Re-entering a node is fine if an object sits on the loop: it gets hoisted.
        start = next(i for i, active in enumerate(self._stack) if active.node_id == node.node_id)
        cycle = self._stack[start:]
        if not any(active.kind is NodeKind.OBJECT for active in cycle):
            raise UnresolvableCycleError(cycle_path=[active.type_name for active in cycle] + [node.type_name])

    def _push(self, node: Node) -> None:
        self._stack.append(node)
        self._active[node.node_id] = self._active.get(node.node_id, 0) + 1

    def _pop(self, node: Node) -> None:
        self._stack.pop()
        remaining = self._active[node.node_id] - 1
        if remaining:
            self._active[node.node_id] = remaining
        else:
            del self._active[node.node_id]


def _lower_literal(value: Any) -> dict[str, Any]:
    # bool before int/float: bool is an int subclass
    if isinstance(value, str):
        return {"type": "string", "enum": [value]}
    if isinstance(value, bool):
        return {"type": "boolean", "enum": [value]}
    if isinstance(value, (int, float)):
        return {"type": "number", "enum": [value]}
    return {"type": "string", "enum": ["null" if value is None else str(value)]}


def _presence(node: Node) -> str:
    """Describe why a property counts as optional, for error messages."""
    current = node
    while True:
        if current.kind is NodeKind.DEFAULT:
            return "defaulted"
        if current.kind is NodeKind.OPTIONAL:
            return "optional"
        if isinstance(current, LazyNode):
            current = current.resolve()
        elif isinstance(current, WrapperNode):
            current = current.unwrap()
        else:
            return "optional"
