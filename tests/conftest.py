"""Shared pytest fixtures for the strictschema test suite."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from strictschema.config import Config
from strictschema.loader import SchemaLoader
from strictschema.nodes import ArrayNode, LazyNode, ObjectNode, StringNode


# === Node fixtures ===


@pytest.fixture
def todo_item() -> ObjectNode:
    """A small object used in several places of a larger schema."""
    return ObjectNode({"name": StringNode()})


@pytest.fixture
def todo_list(todo_item: ObjectNode) -> ObjectNode:
    """An object that references the same todo_item instance twice."""
    return ObjectNode(
        {
            "pending": ArrayNode(todo_item),
            "completed": ArrayNode(todo_item),
        }
    )


@pytest.fixture
def category() -> ObjectNode:
    """A self-referential object: categories contain categories."""
    node = ObjectNode(
        {
            "name": StringNode(),
            "children": ArrayNode(LazyNode(lambda: node)),
        }
    )
    return node


# === Loader fixtures ===


@pytest.fixture
def fixtures_dir() -> Path:
    """Returns the absolute path to the tests/fixtures/ directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def schemas_dir(tmp_path: Path, fixtures_dir: Path) -> Path:
    """Copies fixture files to a temp directory for test isolation."""
    dest = tmp_path / "schemas"
    shutil.copytree(fixtures_dir, dest, dirs_exist_ok=True)
    return dest


@pytest.fixture
def schema_config(schemas_dir: Path) -> Config:
    """Returns a Config with schema.root pointing to schemas_dir."""
    return Config(data={"schema": {"root": str(schemas_dir)}})


@pytest.fixture
def schema_loader(schema_config: Config, schemas_dir: Path) -> SchemaLoader:
    """Returns a configured SchemaLoader instance."""
    return SchemaLoader(config=schema_config, schemas_dir=schemas_dir)
