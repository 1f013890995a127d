"""Reachability pre-pass: counts how often each node is reached from the root."""

from __future__ import annotations

import logging
from typing import Iterator

from strictschema.nodes import (
    ArrayNode,
    DiscriminatedUnionNode,
    LazyNode,
    Node,
    ObjectNode,
    UnionNode,
    WrapperNode,
)

logger = logging.getLogger(__name__)

__all__ = ["MAX_DEPTH", "ReachabilityMap", "count_references", "iter_children"]

MAX_DEPTH = 100

# How many times one node's children are walked in a single call
_MAX_EXPANSIONS = 2


class ReachabilityMap:
    """Read-only mapping from node identity to the number of visits."""

    def __init__(self, counts: dict[int, int]) -> None:
        self._counts = counts

    def count(self, node: Node) -> int:
        """Number of times ``node`` was reached, 0 if never."""
        return self._counts.get(node.node_id, 0)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, Node) and node.node_id in self._counts

    def __len__(self) -> int:
        return len(self._counts)


def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct children of a node as seen by the pre-pass.

    Never raises for unsupported kinds; they simply have no children here.
    """
    if isinstance(node, ObjectNode):
        yield from node.shape.values()
    elif isinstance(node, ArrayNode):
        yield node.element
    elif isinstance(node, UnionNode):
        yield from node.options
    elif isinstance(node, DiscriminatedUnionNode):
        yield from node.alternatives()
    elif isinstance(node, LazyNode):
        yield node.resolve()
    elif isinstance(node, WrapperNode):
        yield node.unwrap()


def count_references(root: Node, max_depth: int = MAX_DEPTH) -> ReachabilityMap:
    """Walk the tree once, counting the visits that reach each node.

    Every visit is counted, but a node's children are walked at most twice
    per call. A node re-entered through a cycle is expanded a second time,
    so every node on or below a cycle is reached at least twice. Visits
    deeper than ``max_depth`` are neither counted nor expanded.
    """
    counts: dict[int, int] = {}
    expansions: dict[int, int] = {}
    truncated = False

    def visit(node: Node, depth: int) -> None:
        nonlocal truncated
        if depth > max_depth:
            truncated = True
            return

        node_id = node.node_id
        counts[node_id] = counts.get(node_id, 0) + 1
        if expansions.get(node_id, 0) >= _MAX_EXPANSIONS:
            return

        expansions[node_id] = expansions.get(node_id, 0) + 1
        for child in iter_children(node):
            visit(child, depth + 1)

    visit(root, 0)

    if truncated:
        logger.warning(
            "Reachability pre-pass stopped at depth %d; deeper nodes were not counted", max_depth
        )
    logger.debug("Counted %d distinct nodes", len(counts))
    return ReachabilityMap(counts)
