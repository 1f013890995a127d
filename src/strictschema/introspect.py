"""Node trees from pydantic models and Python type hints."""

from __future__ import annotations

import collections.abc
import dataclasses
import inspect
import logging
import types
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo, PydanticUndefined

from strictschema.config import Config
from strictschema.converter import ConversionOptions, to_strict_schema
from strictschema.nodes import (
    AnyNode,
    ArrayNode,
    BooleanNode,
    Check,
    DefaultNode,
    DiscriminatedUnionNode,
    EnumNode,
    LazyNode,
    LiteralNode,
    Node,
    NullableNode,
    NullNode,
    NumberNode,
    ObjectNode,
    OpaqueNode,
    RecordNode,
    StringNode,
    TupleNode,
    UnionNode,
)
from strictschema.registry import Definition, definition

logger = logging.getLogger(__name__)

__all__ = ["node_from_type", "node_from_model", "model_to_strict_schema"]

# Attribute names used by annotated_types / pydantic constraint metadata
_CONSTRAINT_ATTRS = ("gt", "ge", "lt", "le", "multiple_of", "min_length", "max_length", "pattern")

_ARRAY_ORIGINS = (
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Iterable,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class _NodeBuilder:
    """Builds one node tree, sharing a single node per model class."""

    def __init__(self) -> None:
        self.models: dict[type[BaseModel], ObjectNode] = {}
        self._building: set[type[BaseModel]] = set()

    def build(self, annotation: Any) -> Node:
        if annotation is Any:
            return AnyNode()
        if annotation is None or annotation is type(None):
            return NullNode()

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Annotated:
            return self._annotated(args[0], args[1:])
        if origin is Literal:
            return _literal(args)
        if origin is Union or origin is types.UnionType:
            return self._union(args)
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return ArrayNode(self.build(args[0]))
            return TupleNode([self.build(arg) for arg in args])
        if origin in _ARRAY_ORIGINS:
            return ArrayNode(self.build(args[0]) if args else AnyNode())
        if origin in _MAPPING_ORIGINS:
            keys, values = args if args else (str, Any)
            return RecordNode(self.build(values), keys=self.build(keys))

        if isinstance(annotation, type):
            if issubclass(annotation, BaseModel):
                return self.model(annotation)
            if issubclass(annotation, Enum):
                return _enum(annotation)
            if annotation is bool:
                return BooleanNode()
            if annotation is int:
                return NumberNode().int()
            if annotation is float:
                return NumberNode()
            if annotation is str:
                return StringNode()
            if annotation in (list, set, frozenset):
                return ArrayNode(AnyNode())
            if annotation is tuple:
                return ArrayNode(AnyNode())
            if annotation is dict:
                return RecordNode(AnyNode())

        name = getattr(annotation, "__name__", None) or repr(annotation)
        logger.debug("No node variant for annotation %s", name)
        return OpaqueNode(name=name)

    def model(self, model: type[BaseModel]) -> Node:
        node = self.models.get(model)
        if node is not None:
            return node
        if model in self._building:
            # Self or mutual recursion; resolved once the model is complete
            return LazyNode(lambda: self.models[model])

        self._building.add(model)
        try:
            shape = {
                info.alias or name: self.field(info) for name, info in model.model_fields.items()
            }
        finally:
            self._building.discard(model)

        description = inspect.cleandoc(model.__doc__) if model.__doc__ else None
        node = ObjectNode(shape, description=description)
        self.models[model] = node
        return node

    def field(self, info: FieldInfo) -> Node:
        if isinstance(info.discriminator, str):
            node = self._discriminated(info.annotation, info.discriminator)
        else:
            node = self.build(info.annotation)
        node = _apply_metadata(node, info.description, _checks(info.metadata))
        if not info.is_required():
            default = None if info.default is PydanticUndefined else info.default
            node = DefaultNode(node, default)
        return node

    def _annotated(self, base: Any, metadata: tuple[Any, ...]) -> Node:
        description = None
        checks: list[Check] = []
        discriminator = None
        for item in metadata:
            if isinstance(item, FieldInfo):
                description = item.description or description
                checks.extend(_checks(item.metadata))
                if isinstance(item.discriminator, str):
                    discriminator = item.discriminator
            else:
                checks.extend(_checks([item]))

        if discriminator is not None:
            node = self._discriminated(base, discriminator)
        else:
            node = self.build(base)
        return _apply_metadata(node, description, tuple(checks))

    def _union(self, args: tuple[Any, ...]) -> Node:
        members = [arg for arg in args if arg is not type(None)]
        if not members:
            return NullNode()
        if len(members) == 1:
            node = self.build(members[0])
        else:
            node = UnionNode([self.build(member) for member in members])
        if len(members) != len(args):
            return NullableNode(node)
        return node

    def _discriminated(self, annotation: Any, discriminator: str) -> Node:
        args = get_args(annotation) or (annotation,)
        members = [arg for arg in args if arg is not type(None)]
        node: Node = DiscriminatedUnionNode(discriminator, [self.build(member) for member in members])
        if len(members) != len(args):
            return NullableNode(node)
        return node


def _literal(values: tuple[Any, ...]) -> Node:
    if len(values) == 1:
        return LiteralNode(values[0])
    if all(isinstance(v, str) for v in values):
        return EnumNode(values)
    return UnionNode([LiteralNode(v) for v in values])


def _enum(enum_cls: type[Enum]) -> Node:
    values = [member.value for member in enum_cls]
    if all(isinstance(v, str) for v in values):
        return EnumNode(values, description=_enum_description(enum_cls))
    return UnionNode([LiteralNode(v) for v in values], description=_enum_description(enum_cls))


def _enum_description(enum_cls: type[Enum]) -> str | None:
    # Enum subclasses inherit Enum's own docstring
    doc = enum_cls.__dict__.get("__doc__")
    return inspect.cleandoc(doc) if doc else None


def _checks(metadata: list[Any] | tuple[Any, ...]) -> tuple[Check, ...]:
    checks: list[Check] = []
    for item in metadata:
        for attr in _CONSTRAINT_ATTRS:
            value = getattr(item, attr, None)
            if value is not None:
                checks.append(Check(attr, value))
    return tuple(checks)


def _apply_metadata(node: Node, description: str | None, checks: tuple[Check, ...]) -> Node:
    if isinstance(node, ObjectNode) and (description or checks):
        # Keep the shared model node's identity; the lazy carries the metadata
        return LazyNode(lambda: node, description=description or None, checks=checks)
    changes: dict[str, Any] = {}
    if description:
        changes["description"] = description
    if checks:
        changes["checks"] = node.checks + checks
    if not changes:
        return node
    return dataclasses.replace(node, **changes)


def node_from_type(annotation: Any) -> Node:
    """Build a node tree for a type hint such as ``list[Item] | None``."""
    return _NodeBuilder().build(annotation)


def node_from_model(model: type[BaseModel]) -> Node:
    """Build a node tree for a pydantic model class.

    Each model class maps to exactly one object node, so a model used in
    several places is hoisted into ``$defs`` by the converter. Fields with a
    default become default wrappers, which the converter rejects.
    """
    return _NodeBuilder().model(model)


def model_to_strict_schema(model: type[BaseModel], *, config: Config | None = None) -> dict[str, Any]:
    """Convert a pydantic model class, naming hoisted definitions after model classes."""
    builder = _NodeBuilder()
    root = builder.model(model)

    definitions: list[Definition] = []
    taken: set[str] = set()
    for model_cls, node in builder.models.items():
        name = model_cls.__name__
        if name in taken:
            logger.debug("Model name '%s' is used by more than one class; using a generated name", name)
            continue
        taken.add(name)
        definitions.append(definition(name, node))

    return to_strict_schema(root, ConversionOptions(definitions=definitions), config=config)
