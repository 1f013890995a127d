"""Tests for building node trees from pydantic models and type hints."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

import pytest
from pydantic import BaseModel, Field

from strictschema.errors import (
    UnrepresentableOptionalPropertyError,
    UnsupportedConstraintError,
    UnsupportedVariantError,
)
from strictschema.introspect import model_to_strict_schema, node_from_model, node_from_type
from strictschema.nodes import (
    AnyNode,
    ArrayNode,
    BooleanNode,
    DefaultNode,
    DiscriminatedUnionNode,
    EnumNode,
    LazyNode,
    LiteralNode,
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


class Color(str, Enum):
    """Primary colors."""

    RED = "red"
    GREEN = "green"


class Address(BaseModel):
    street: str
    city: str


class Person(BaseModel):
    """A person with two addresses."""

    name: str = Field(description="Full name")
    home: Address
    work: Address


class Category(BaseModel):
    name: str
    children: list[Category]


class Cat(BaseModel):
    kind: Literal["cat"]
    lives: int


class Dog(BaseModel):
    kind: Literal["dog"]
    good: bool


class Owner(BaseModel):
    pet: Union[Cat, Dog] = Field(discriminator="kind")


# === Type hints ===


class TestNodeFromType:
    @pytest.mark.parametrize(
        ("annotation", "node_type"),
        [
            (str, StringNode),
            (float, NumberNode),
            (bool, BooleanNode),
            (None, NullNode),
            (Any, AnyNode),
        ],
    )
    def test_primitives(self, annotation: Any, node_type: type) -> None:
        assert isinstance(node_from_type(annotation), node_type)

    def test_int_is_integer_number(self) -> None:
        node = node_from_type(int)
        assert isinstance(node, NumberNode)
        assert node.is_integer

    def test_optional_is_nullable(self) -> None:
        node = node_from_type(Optional[str])
        assert isinstance(node, NullableNode)
        assert isinstance(node.inner, StringNode)

    def test_pipe_union_with_none(self) -> None:
        node = node_from_type(int | str | None)
        assert isinstance(node, NullableNode)
        assert isinstance(node.inner, UnionNode)
        assert len(node.inner.options) == 2

    def test_list_and_variadic_tuple(self) -> None:
        assert isinstance(node_from_type(list[str]), ArrayNode)
        assert isinstance(node_from_type(tuple[int, ...]), ArrayNode)

    def test_fixed_tuple(self) -> None:
        node = node_from_type(tuple[str, int])
        assert isinstance(node, TupleNode)
        assert len(node.items) == 2

    def test_dict_is_record(self) -> None:
        node = node_from_type(dict[str, int])
        assert isinstance(node, RecordNode)

    def test_literals(self) -> None:
        single = node_from_type(Literal["a"])
        strings = node_from_type(Literal["a", "b"])
        mixed = node_from_type(Literal["a", 1])
        assert isinstance(single, LiteralNode)
        assert single.value == "a"
        assert isinstance(strings, EnumNode)
        assert strings.values == ("a", "b")
        assert isinstance(mixed, UnionNode)

    def test_enum_class(self) -> None:
        node = node_from_type(Color)
        assert isinstance(node, EnumNode)
        assert node.values == ("red", "green")
        assert node.description == "Primary colors."

    def test_annotated_description_and_constraint(self) -> None:
        node = node_from_type(Annotated[str, Field(description="Code", min_length=2)])
        assert isinstance(node, StringNode)
        assert node.description == "Code"
        assert [check.kind for check in node.checks] == ["min_length"]

    def test_unknown_annotation_is_opaque(self) -> None:
        node = node_from_type(datetime)
        assert isinstance(node, OpaqueNode)
        assert node.type_name == "datetime"


# === Models ===


class TestNodeFromModel:
    def test_model_fields_in_order(self) -> None:
        node = node_from_model(Address)
        assert isinstance(node, ObjectNode)
        assert list(node.shape) == ["street", "city"]

    def test_repeated_model_shares_one_node(self) -> None:
        node = node_from_model(Person)
        assert node.shape["home"] is node.shape["work"]

    def test_model_docstring_becomes_description(self) -> None:
        assert node_from_model(Person).description == "A person with two addresses."

    def test_recursive_model_uses_lazy(self) -> None:
        node = node_from_model(Category)
        items = node.shape["children"].element
        assert isinstance(items, LazyNode)
        assert items.resolve() is node

    def test_default_wraps_field(self) -> None:
        class WithDefault(BaseModel):
            count: int = 0

        prop = node_from_model(WithDefault).shape["count"]
        assert isinstance(prop, DefaultNode)
        assert prop.default_value == 0

    def test_discriminated_field(self) -> None:
        prop = node_from_model(Owner).shape["pet"]
        assert isinstance(prop, DiscriminatedUnionNode)
        assert list(prop.options_map) == ["cat", "dog"]

    def test_alias_used_as_property_name(self) -> None:
        class Aliased(BaseModel):
            user_name: str = Field(alias="userName")

        assert list(node_from_model(Aliased).shape) == ["userName"]


# === Conversion ===


class TestModelToStrictSchema:
    def test_repeated_model_named_after_class(self) -> None:
        address = {
            "type": "object",
            "properties": {"street": {"type": "string"}, "city": {"type": "string"}},
            "required": ["street", "city"],
            "additionalProperties": False,
        }
        assert model_to_strict_schema(Person) == {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Full name"},
                "home": {"$ref": "#/$defs/Address"},
                "work": {"$ref": "#/$defs/Address"},
            },
            "required": ["name", "home", "work"],
            "additionalProperties": False,
            "description": "A person with two addresses.",
            "$defs": {"Address": address},
        }

    def test_recursive_model(self) -> None:
        result = model_to_strict_schema(Category)
        assert result["properties"]["children"]["items"] == {"$ref": "#/$defs/Category"}
        assert result["$defs"]["Category"]["properties"]["children"]["items"] == {
            "$ref": "#/$defs/Category"
        }

    def test_optional_annotation_is_nullable(self) -> None:
        class Nick(BaseModel):
            nickname: Optional[str]

        assert model_to_strict_schema(Nick)["properties"]["nickname"] == {
            "anyOf": [{"type": "string"}, {"type": "null"}]
        }

    def test_field_with_default_rejected(self) -> None:
        class Counter(BaseModel):
            count: int = 0

        with pytest.raises(UnrepresentableOptionalPropertyError, match="'count' is defaulted"):
            model_to_strict_schema(Counter)

    def test_discriminated_union(self) -> None:
        pet = model_to_strict_schema(Owner)["properties"]["pet"]
        assert [option["properties"]["kind"] for option in pet["anyOf"]] == [
            {"type": "string", "enum": ["cat"]},
            {"type": "string", "enum": ["dog"]},
        ]

    def test_enum_field(self) -> None:
        class Paint(BaseModel):
            color: Color

        assert model_to_strict_schema(Paint)["properties"]["color"] == {
            "type": "string",
            "enum": ["red", "green"],
            "description": "Primary colors.",
        }

    def test_described_nested_model_keeps_identity(self) -> None:
        class Trip(BaseModel):
            start: Address = Field(description="Where it begins")
            end: Address

        result = model_to_strict_schema(Trip)
        assert result["properties"]["start"] == {"$ref": "#/$defs/Address"}
        assert result["properties"]["end"] == {"$ref": "#/$defs/Address"}

    def test_constraint_rejected(self) -> None:
        class Code(BaseModel):
            value: str = Field(min_length=3)

        with pytest.raises(UnsupportedConstraintError, match="min_length"):
            model_to_strict_schema(Code)

    def test_dict_field_rejected(self) -> None:
        class Bag(BaseModel):
            items: dict[str, int]

        with pytest.raises(UnsupportedVariantError, match="record"):
            model_to_strict_schema(Bag)

    def test_unknown_field_type_rejected(self) -> None:
        class Event(BaseModel):
            at: datetime

        with pytest.raises(UnsupportedVariantError, match="datetime"):
            model_to_strict_schema(Event)
