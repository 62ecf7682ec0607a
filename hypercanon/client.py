"""Hypercanon client: the primary interface for signing and matching hypergraphs."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from itertools import islice
from pathlib import Path
from typing import Any, Literal

from hypercanon.engine.canon import DEFAULT_MAX_DEPTH, canon, match
from hypercanon.engine.core import Hypergraph
from hypercanon.engine.reader import load_hypergraph, parse_hypergraph
from hypercanon.engine.traversal import Edge, HypergraphNeighbors, Node, bfs, dfs
from hypercanon.models import CanonReport, HypergraphStats, MatchReport, ValidationResult, Visit

logger = logging.getLogger(__name__)


class Hypercanon:
    """A registry of named hypergraphs with canonicalization and matching.

    Example:
        ```python
        hc = Hypercanon()
        hc.add("left", Hypergraph.from_edges({0: ["a", "b"], 1: ["b", "c"]}))
        hc.load("right", "right.txt")
        report = hc.match("left", "right")
        ```

    Args:
        max_depth: Nested hashing bound passed to ``canon``; None for unbounded
    """

    def __init__(self, *, max_depth: int | None = DEFAULT_MAX_DEPTH) -> None:
        if max_depth is not None and max_depth < 0:
            raise ValueError(f"max_depth must be >= 0 or None, got: {max_depth}")
        self.max_depth = max_depth
        self._graphs: dict[str, Hypergraph[Any, Any]] = {}

    # --- Registry ---

    def add(self, name: str, hypergraph: Hypergraph[Any, Any]) -> Hypergraph[Any, Any]:
        """Register a hypergraph under ``name``, replacing any previous one."""
        if name in self._graphs:
            logger.info("Replacing hypergraph %r", name)
        self._graphs[name] = hypergraph
        return hypergraph

    def load(
        self, name: str, source: str | Path | Iterable[str], *, min_size: int = 2
    ) -> Hypergraph[str, int]:
        """Register a hypergraph read from a text file path or from text lines.

        See ``hypercanon.engine.reader`` for the format.
        """
        if isinstance(source, (str, Path)):
            hypergraph = load_hypergraph(source, min_size=min_size)
        else:
            hypergraph = parse_hypergraph(source, min_size=min_size)
        self.add(name, hypergraph)
        return hypergraph

    def graph(self, name: str) -> Hypergraph[Any, Any]:
        """Look up a registered hypergraph.

        Raises:
            KeyError: If no hypergraph is registered under ``name``
        """
        try:
            return self._graphs[name]
        except KeyError:
            raise KeyError(f"No hypergraph named {name!r}") from None

    def names(self) -> list[str]:
        return sorted(self._graphs)

    def remove(self, name: str) -> bool:
        """Unregister a hypergraph. Returns True if it was registered."""
        return self._graphs.pop(name, None) is not None

    def __contains__(self, name: object) -> bool:
        return name in self._graphs

    # --- Inspection ---

    def stats(self, name: str) -> HypergraphStats:
        hg = self.graph(name)
        return HypergraphStats(
            node_count=hg.node_count,
            edge_count=hg.edge_count,
            rank=hg.rank if hg.edge_count else None,
            is_empty=hg.is_empty,
            component_count=len(hg.components()),
            isolated_nodes=[node for node, incident in hg.nodes.items() if not incident],
        )

    def validate(self, name: str) -> ValidationResult:
        result = self.graph(name).validate()
        return ValidationResult(valid=result["valid"], errors=result["errors"])

    def matrix(self, name: str, *, blank: str = " ") -> str:
        return self.graph(name).matrix(blank=blank)

    # --- Canonicalization & matching ---

    def canon(self, name: str) -> CanonReport:
        """Signature tables for a registered hypergraph."""
        signatures = canon(self.graph(name), max_depth=self.max_depth)
        return CanonReport(
            node_signatures=signatures.nodes,
            edge_signatures=signatures.edges,
            distinct_nodes=signatures.distinct_nodes,
            distinct_edges=signatures.distinct_edges,
            discrete=signatures.is_discrete(),
            max_depth=self.max_depth,
        )

    def match(self, first: str, second: str) -> MatchReport:
        """Try to map ``first`` onto ``second`` by signatures.

        A failed match is an ordinary result with ``matched=False`` and the
        reason the signatures could not be lined up.
        """
        attempt = match(self.graph(first), self.graph(second), max_depth=self.max_depth)
        if attempt.mapping is None:
            logger.info("No mapping from %r to %r: %s", first, second, attempt.reason)
            return MatchReport(matched=False, reason=attempt.reason)
        return MatchReport(
            matched=True,
            node_map=attempt.mapping.nodes,
            edge_map=attempt.mapping.edges,
        )

    # --- Traversal ---

    def traverse(
        self,
        name: str,
        start: Any,
        *,
        kind: Literal["node", "edge"] = "node",
        order: Literal["bfs", "dfs"] = "bfs",
        limit: int | None = None,
    ) -> list[Visit]:
        """Walk the node/edge incidence graph from ``start``.

        Args:
            name: Registered hypergraph
            start: Label of the starting node (or edge, with ``kind="edge"``)
            kind: Whether ``start`` names a node or an edge
            order: "bfs" or "dfs"
            limit: Stop after this many visits (None for all reachable)

        Returns:
            Visits in traversal order; depth counts node/edge hops from start

        Raises:
            KeyError: If the hypergraph or the start element does not exist
            ValueError: If kind or order is not recognized
        """
        hg = self.graph(name)
        if kind == "node":
            if not hg.has_node(start):
                raise KeyError(f"No node {start!r} in {name!r}")
            element: Node[Any] | Edge[Any] = Node(start)
        elif kind == "edge":
            if start not in hg.edges:
                raise KeyError(f"No edge {start!r} in {name!r}")
            element = Edge(start)
        else:
            raise ValueError(f"kind must be 'node' or 'edge', got: {kind!r}")

        if order == "bfs":
            walk = bfs(HypergraphNeighbors(hg), element, 0, lambda depth, _: depth + 1)
        elif order == "dfs":
            walk = dfs(HypergraphNeighbors(hg), element, 0, lambda depth, _: depth + 1)
        else:
            raise ValueError(f"order must be 'bfs' or 'dfs', got: {order!r}")

        return [
            Visit(
                kind="node" if isinstance(ctx.current, Node) else "edge",
                label=ctx.current.label,
                depth=ctx.state,
            )
            for ctx in islice(walk, limit)
        ]
