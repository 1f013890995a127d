"""Definition registry: stable names and bodies for hoisted object nodes."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from strictschema.errors import ConfigError
from strictschema.nodes import Node

logger = logging.getLogger(__name__)

__all__ = [
    "DEFS_KEY",
    "REF_PREFIX",
    "Definition",
    "DefinitionRegistry",
    "definition",
    "inline_root_reference",
]

DEFS_KEY = "$defs"
REF_PREFIX = "#/$defs/"


@dataclass(frozen=True)
class Definition:
    """Pins ``schema`` (matched by identity) to the definition name ``name``."""

    name: str
    schema: Node


def definition(name: str, schema: Node) -> Definition:
    return Definition(name=name, schema=schema)


class DefinitionRegistry:
    """Assigns names to hoisted nodes and accumulates their lowered bodies.

    Names are handed out in first-encounter order, preferring a pinned name
    from ``definitions`` and falling back to ``<prefix><n>``. Lives for a
    single conversion call.
    """

    def __init__(self, definitions: Iterable[Definition] = (), prefix: str = "Def_") -> None:
        self._prefix = prefix
        self._counter = 1
        self._pinned: dict[int, str] = {}
        pinned_owner: dict[str, int] = {}
        for entry in definitions:
            node_id = entry.schema.node_id
            owner = pinned_owner.get(entry.name)
            if owner is not None and owner != node_id:
                raise ConfigError(message=f"Definition name '{entry.name}' is pinned to more than one schema")
            pinned_owner[entry.name] = node_id
            self._pinned.setdefault(node_id, entry.name)
        self._reserved = set(pinned_owner)

        self._names: dict[int, str] = {}
        self._nodes: dict[int, Node] = {}
        self._bodies: dict[int, dict[str, Any]] = {}

    def name_for(self, node: Node) -> str:
        """Return the stable name for ``node``, assigning one on first use."""
        name = self._names.get(node.node_id)
        if name is not None:
            return name

        name = self._pinned.get(node.node_id)
        if name is None:
            name = self._next_generated_name()
        self._names[node.node_id] = name
        self._nodes[node.node_id] = node
        logger.debug("Assigned definition name '%s' to %s node", name, node.type_name)
        return name

    def ref_for(self, node: Node) -> dict[str, Any]:
        return {"$ref": REF_PREFIX + self.name_for(node)}

    def record(self, node: Node, fragment: dict[str, Any]) -> None:
        """Store the lowered body of a registered node. First writer wins."""
        if node.node_id not in self._names:
            self.name_for(node)
        self._bodies.setdefault(node.node_id, fragment)

    def pending(self) -> list[Node]:
        """Registered nodes whose body has not been recorded yet."""
        return [self._nodes[node_id] for node_id in self._names if node_id not in self._bodies]

    def materialize(self) -> dict[str, dict[str, Any]]:
        """Name -> body table of every recorded definition, in naming order."""
        return {
            name: self._bodies[node_id]
            for node_id, name in self._names.items()
            if node_id in self._bodies
        }

    def __len__(self) -> int:
        return len(self._names)

    def _next_generated_name(self) -> str:
        while True:
            name = f"{self._prefix}{self._counter}"
            self._counter += 1
            if name not in self._reserved:
                return name


def inline_root_reference(
    fragment: dict[str, Any], definitions: dict[str, dict[str, Any]]
) -> dict[str, Any]:
    """Replace a root that is only ``{"$ref": ...}`` with the referenced body.

    Mutates ``fragment`` and ``definitions`` in place. The definition is
    dropped when nothing else refers to it. Returns ``fragment``.
    """
    ref = fragment.get("$ref")
    if ref is None or len(fragment) != 1 or not ref.startswith(REF_PREFIX):
        return fragment

    name = ref[len(REF_PREFIX):]
    body = definitions.get(name)
    if body is None:
        return fragment

    del fragment["$ref"]
    fragment.update(copy.deepcopy(body))

    still_used = _references(fragment, ref) or any(
        _references(other, ref) for other_name, other in definitions.items() if other_name != name
    )
    if not still_used:
        del definitions[name]
        logger.debug("Dropped definition '%s' after inlining it at the root", name)
    return fragment


def _references(node: Any, ref: str) -> bool:
    if isinstance(node, dict):
        if node.get("$ref") == ref:
            return True
        return any(_references(value, ref) for value in node.values())
    if isinstance(node, list):
        return any(_references(item, ref) for item in node)
    return False
