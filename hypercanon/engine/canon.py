"""Canonical signatures and signature-based isomorphism matching.

``canon`` gives every node and edge of a hypergraph an integer signature that
depends only on incidence structure, never on labels. It does one mutual
refinement round: each node gets a container of its incident edges'
containers, each edge a container of its member nodes' containers, and a
signature is the hash of that container. The containers reference each other
in cycles; ``HashReference`` cuts a cycle when it comes back to a reference
already being hashed, and ``max_depth`` bounds how far the nested hashing
walks out from the element.

Elements with the same neighborhood pattern get the same signature. That is
expected: the refinement is deliberately not iterated to a fixpoint.

``match`` uses the signatures to propose a bijection between two
hypergraphs. It only verifies: if either side has colliding signatures it
gives up instead of searching, so hypergraphs with symmetries report no
mapping even when one exists.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, NamedTuple, TypeVar

from hypercanon.engine.core import Hypergraph
from hypercanon.engine.refs import IdAllocator, SafeSet, bounded_hashing

logger = logging.getLogger(__name__)

V = TypeVar("V", bound=Hashable)
E = TypeVar("E", bound=Hashable)
V2 = TypeVar("V2", bound=Hashable)
E2 = TypeVar("E2", bound=Hashable)

# Nested reference hashes allowed per signature: node -> edges -> nodes ->
# edges -> nodes, i.e. the two-hop node neighborhood.
DEFAULT_MAX_DEPTH = 4


class Signatures(NamedTuple):
    """Signature tables produced by ``canon``.

    Unpacks as ``nodes, edges = canon(hg)``.
    """

    nodes: dict[Any, int]
    edges: dict[Any, int]

    @property
    def distinct_nodes(self) -> int:
        return len(set(self.nodes.values()))

    @property
    def distinct_edges(self) -> int:
        return len(set(self.edges.values()))

    def is_discrete(self) -> bool:
        """True if every node and every edge has its own signature."""
        return self.distinct_nodes == len(self.nodes) and self.distinct_edges == len(self.edges)


def canon(
    hypergraph: Hypergraph[V, E],
    *,
    max_depth: int | None = DEFAULT_MAX_DEPTH,
    allocator: IdAllocator | None = None,
) -> Signatures:
    """Compute relabeling-invariant signatures for all nodes and edges.

    Args:
        hypergraph: The hypergraph to sign
        max_depth: Bound on nested reference hashing; None walks until every
            path closes a cycle, which is exponential on dense hypergraphs
        allocator: Id source for the reference wrappers (shared default if None)

    Returns:
        Signatures with node -> int and edge -> int tables. They are fresh
        for every call and not cached.
    """
    node_sets: dict[V, SafeSet[Any]] = {
        node: SafeSet(allocator=allocator) for node in hypergraph.nodes
    }
    edge_sets: dict[E, SafeSet[Any]] = {
        edge: SafeSet(allocator=allocator) for edge in hypergraph.edges
    }

    for node, incident in hypergraph.nodes.items():
        node_sets[node].update(edge_sets[edge] for edge in incident if edge in edge_sets)
    for edge, members in hypergraph.edges.items():
        edge_sets[edge].update(node_sets[node] for node in members if node in node_sets)

    with bounded_hashing(max_depth):
        signatures = Signatures(
            {node: hash(container) for node, container in node_sets.items()},
            {edge: hash(container) for edge, container in edge_sets.items()},
        )
    logger.debug(
        "Signed %d nodes (%d distinct) and %d edges (%d distinct)",
        len(signatures.nodes),
        signatures.distinct_nodes,
        len(signatures.edges),
        signatures.distinct_edges,
    )
    return signatures


@dataclass
class HypergraphMapping(Generic[V, E, V2, E2]):
    """A node bijection and an edge bijection between two hypergraphs."""

    nodes: dict[V, V2] = field(default_factory=dict)
    edges: dict[E, E2] = field(default_factory=dict)

    def inverse(self) -> HypergraphMapping[V2, E2, V, E]:
        return HypergraphMapping(
            {target: source for source, target in self.nodes.items()},
            {target: source for source, target in self.edges.items()},
        )

    def is_bijective(self) -> bool:
        return len(set(self.nodes.values())) == len(self.nodes) and len(
            set(self.edges.values())
        ) == len(self.edges)

    def preserves_incidence(self, source: Hypergraph[V, E], target: Hypergraph[V2, E2]) -> bool:
        """Check that this mapping carries ``source``'s incidence onto ``target``'s."""
        if set(self.nodes) != set(source.nodes) or set(self.edges) != set(source.edges):
            return False
        for edge, members in source.edges.items():
            if frozenset(self.nodes[node] for node in members) != target[self.edges[edge]]:
                return False
        return len(source.edges) == len(target.edges) and len(source.nodes) == len(target.nodes)


@dataclass
class MatchAttempt(Generic[V, E, V2, E2]):
    """Outcome of ``match``: a mapping, or the reason there is none."""

    mapping: HypergraphMapping[V, E, V2, E2] | None = None
    reason: str | None = None

    @property
    def matched(self) -> bool:
        return self.mapping is not None


def _reverse(table: Mapping[Any, int]) -> dict[int, Any]:
    return {signature: element for element, signature in table.items()}


def _pair_up(
    source: Mapping[Any, int], target_by_signature: Mapping[int, Any]
) -> dict[Any, Any] | None:
    pairs = {}
    for element, signature in source.items():
        if signature not in target_by_signature:
            return None
        pairs[element] = target_by_signature[signature]
    return pairs


def _fail(reason: str) -> MatchAttempt[Any, Any, Any, Any]:
    logger.debug("No mapping: %s", reason)
    return MatchAttempt(reason=reason)


def match(
    a: Hypergraph[V, E],
    b: Hypergraph[V2, E2],
    *,
    max_depth: int | None = DEFAULT_MAX_DEPTH,
) -> MatchAttempt[V, E, V2, E2]:
    """Try to recover an incidence-preserving bijection from ``a`` to ``b``.

    Succeeds only when one refinement round separates every node and every
    edge on both sides and the signature tables line up one to one. No
    alternative pairings are tried.

    Returns:
        MatchAttempt holding the mapping, or a reason when there is none
    """
    signed_a = canon(a, max_depth=max_depth)
    if not signed_a.is_discrete():
        return _fail(
            f"first hypergraph not separated: {signed_a.distinct_nodes}/{a.node_count} "
            f"node and {signed_a.distinct_edges}/{a.edge_count} edge signatures"
        )

    signed_b = canon(b, max_depth=max_depth)
    if not signed_b.is_discrete():
        return _fail(
            f"second hypergraph not separated: {signed_b.distinct_nodes}/{b.node_count} "
            f"node and {signed_b.distinct_edges}/{b.edge_count} edge signatures"
        )

    nodes_by_signature = _reverse(signed_b.nodes)
    edges_by_signature = _reverse(signed_b.edges)
    if len(nodes_by_signature) != b.node_count or len(edges_by_signature) != b.edge_count:
        return _fail("second hypergraph has colliding signatures")

    if a.node_count != b.node_count or a.edge_count != b.edge_count:
        return _fail(
            f"size mismatch: {a.node_count} nodes/{a.edge_count} edges vs "
            f"{b.node_count} nodes/{b.edge_count} edges"
        )

    node_pairs = _pair_up(signed_a.nodes, nodes_by_signature)
    if node_pairs is None or len(node_pairs) != a.node_count:
        return _fail("node signatures have no counterpart in second hypergraph")
    edge_pairs = _pair_up(signed_a.edges, edges_by_signature)
    if edge_pairs is None or len(edge_pairs) != a.edge_count:
        return _fail("edge signatures have no counterpart in second hypergraph")

    return MatchAttempt(HypergraphMapping(node_pairs, edge_pairs))


def map_to(
    a: Hypergraph[V, E],
    b: Hypergraph[V2, E2],
    *,
    max_depth: int | None = DEFAULT_MAX_DEPTH,
) -> HypergraphMapping[V, E, V2, E2] | None:
    """The mapping found by ``match``, or None."""
    return match(a, b, max_depth=max_depth).mapping
