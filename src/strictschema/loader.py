"""Schema description files: builds node trees from *.schema.yaml files."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, NoReturn

import yaml

from strictschema.config import Config
from strictschema.converter import ConversionOptions, SchemaConverter
from strictschema.errors import InvalidSchemaError, SchemaNotFoundError, SchemaParseError
from strictschema.nodes import (
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
    NullableNode,
    NullNode,
    NumberNode,
    ObjectNode,
    OptionalNode,
    RecordNode,
    StringNode,
    TupleNode,
    UnionNode,
)
from strictschema.registry import Definition, definition

__all__ = ["SchemaDocument", "SchemaLoader"]

logger = logging.getLogger(__name__)

# JSON Schema constraint keywords -> node check kinds
_CONSTRAINT_KEYWORDS: dict[str, str] = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "minimum": "min",
    "maximum": "max",
    "minItems": "min_items",
    "maxItems": "max_items",
}

_SIMPLE_TYPES: dict[str, Callable[[], Node]] = {
    "string": StringNode,
    "number": NumberNode,
    "integer": lambda: NumberNode().int(),
    "boolean": BooleanNode,
    "bigint": BigIntNode,
    "null": NullNode,
    "any": AnyNode,
    "never": NeverNode,
}


@dataclass
class SchemaDocument:
    """A parsed description file: a root node plus its named definitions."""

    schema_id: str
    root: Node
    definitions: dict[str, Node] = field(default_factory=dict)
    description: str | None = None

    def pinned_definitions(self) -> list[Definition]:
        """Name table pinning every named definition under its own name."""
        return [definition(name, node) for name, node in self.definitions.items()]


class SchemaLoader:
    """Loads schema description files and converts them.

    File layout::

        description: Optional document description
        definitions:
          TodoItem:
            type: object
            properties:
              title: {type: string}
        root:
          type: object
          properties:
            pending: {type: array, items: {$ref: TodoItem}}
            done: {type: array, items: {$ref: TodoItem}}
    """

    def __init__(self, config: Config, schemas_dir: str | Path | None = None) -> None:
        self._config = config
        if schemas_dir is not None:
            self._schemas_dir = Path(schemas_dir).resolve()
        else:
            self._schemas_dir = Path(config.get("schema.root", "./schemas")).resolve()
        self._converter = SchemaConverter(config)
        self._cache: dict[str, SchemaDocument] = {}

    def load(self, schema_id: str) -> SchemaDocument:
        """Load and parse ``<schemas_dir>/<schema_id>.schema.yaml`` (dots become slashes)."""
        if schema_id in self._cache:
            return self._cache[schema_id]

        file_path = self._schemas_dir / (schema_id.replace(".", "/") + ".schema.yaml")
        if not file_path.exists():
            raise SchemaNotFoundError(schema_id=schema_id)

        try:
            data = yaml.safe_load(file_path.read_text())
        except yaml.YAMLError as e:
            raise SchemaParseError(message=f"Invalid YAML in schema for '{schema_id}': {e}", cause=e) from e

        document = self.parse(data, schema_id)
        self._cache[schema_id] = document
        return document

    def parse(self, data: Any, schema_id: str = "<inline>") -> SchemaDocument:
        """Build a SchemaDocument from an already-loaded mapping."""
        if data is None or not isinstance(data, dict):
            raise SchemaParseError(message=f"Schema file for '{schema_id}' is empty or not a mapping")
        if "root" not in data:
            raise SchemaParseError(message=f"Missing required field: root in schema for '{schema_id}'")

        raw_definitions = data.get("definitions") or {}
        if not isinstance(raw_definitions, dict):
            raise SchemaParseError(message=f"'definitions' must be a mapping in schema for '{schema_id}'")

        parser = _NodeParser(schema_id, set(raw_definitions))
        try:
            for name, raw in raw_definitions.items():
                parser.definitions[name] = parser.parse(raw, f"definitions.{name}")
            root = parser.parse(data["root"], "root")
        except InvalidSchemaError as e:
            raise SchemaParseError(message=f"Invalid schema '{schema_id}': {e.message}", cause=e) from e

        logger.debug("Parsed schema '%s' with %d definitions", schema_id, len(parser.definitions))
        return SchemaDocument(
            schema_id=schema_id,
            root=root,
            definitions=parser.definitions,
            description=data.get("description"),
        )

    def convert(self, schema_id: str) -> dict[str, Any]:
        """Load ``schema_id`` and convert it, naming $defs after its definitions."""
        document = self.load(schema_id)
        options = ConversionOptions(definitions=document.pinned_definitions())
        result = self._converter.convert(document.root, options)
        if document.description and "description" not in result:
            result["description"] = document.description
        return result

    def clear_cache(self) -> None:
        """Clear all parsed documents."""
        self._cache.clear()


class _NodeParser:
    """Turns the mapping syntax of one file into nodes."""

    def __init__(self, schema_id: str, names: set[str]) -> None:
        self._schema_id = schema_id
        self._names = names
        self.definitions: dict[str, Node] = {}

    def parse(self, raw: Any, path: str) -> Node:
        if not isinstance(raw, dict):
            self._fail(path, f"expected a mapping, got {type(raw).__name__}")

        if "$ref" in raw:
            node: Node = self._reference(raw["$ref"], path)
        else:
            node = self._typed(raw, path)

        checks = tuple(
            Check(kind, raw[keyword]) for keyword, kind in _CONSTRAINT_KEYWORDS.items() if keyword in raw
        )
        if checks:
            node = dataclasses.replace(node, checks=node.checks + checks)
        if raw.get("description"):
            node = node.describe(str(raw["description"]))

        if raw.get("nullable"):
            node = NullableNode(node)
        if raw.get("optional"):
            node = OptionalNode(node)
        if "default" in raw:
            node = DefaultNode(node, raw["default"])
        return node

    def _reference(self, name: Any, path: str) -> Node:
        if not isinstance(name, str) or name not in self._names:
            self._fail(path, f"$ref to unknown definition '{name}'")
        return LazyNode(lambda: self.definitions[name])

    def _typed(self, raw: dict[str, Any], path: str) -> Node:
        type_name = raw.get("type")
        if type_name is None:
            self._fail(path, "missing 'type'")
        if not isinstance(type_name, str):
            self._fail(path, f"'type' must be a string, got {type(type_name).__name__}")

        factory = _SIMPLE_TYPES.get(type_name)
        if factory is not None:
            return factory()

        if type_name == "object":
            properties = raw.get("properties") or {}
            if not isinstance(properties, dict):
                self._fail(path, "'properties' must be a mapping")
            return ObjectNode(
                {name: self.parse(prop, f"{path}.properties.{name}") for name, prop in properties.items()}
            )
        if type_name == "array":
            return ArrayNode(self.parse(self._require(raw, "items", path), f"{path}.items"))
        if type_name == "union":
            return UnionNode(self._parse_list(raw, "anyOf", path))
        if type_name == "discriminated_union":
            discriminator = self._require(raw, "discriminator", path)
            options = self._parse_list(raw, "anyOf", path)
            return DiscriminatedUnionNode(discriminator, options)  # type: ignore[arg-type]
        if type_name == "literal":
            return LiteralNode(self._require(raw, "value", path))
        if type_name == "enum":
            values = self._require(raw, "values", path)
            if not isinstance(values, list):
                self._fail(path, "'values' must be a list")
            return EnumNode(values)
        if type_name == "tuple":
            return TupleNode(self._parse_list(raw, "items", path))
        if type_name == "record":
            return RecordNode(self.parse(self._require(raw, "values", path), f"{path}.values"))
        if type_name == "intersection":
            left, right = self._parse_list(raw, "allOf", path, exactly=2)
            return IntersectionNode(left, right)

        self._fail(path, f"unknown type '{type_name}'")

    def _parse_list(self, raw: dict[str, Any], key: str, path: str, exactly: int | None = None) -> list[Node]:
        items = self._require(raw, key, path)
        if not isinstance(items, list) or not items:
            self._fail(path, f"'{key}' must be a non-empty list")
        if exactly is not None and len(items) != exactly:
            self._fail(path, f"'{key}' must have exactly {exactly} entries")
        return [self.parse(item, f"{path}.{key}[{i}]") for i, item in enumerate(items)]

    def _require(self, raw: dict[str, Any], key: str, path: str) -> Any:
        if key not in raw:
            self._fail(path, f"missing '{key}'")
        return raw[key]

    def _fail(self, path: str, reason: str) -> NoReturn:
        raise SchemaParseError(message=f"Invalid schema '{self._schema_id}' at {path}: {reason}")
