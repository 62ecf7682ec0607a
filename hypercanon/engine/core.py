"""Core hypergraph data structures and operations.

A hypergraph is stored as two incidence mappings kept consistent with each
other:

    nodes: node -> frozenset of incident edges
    edges: edge -> frozenset of member nodes

so that ``e in nodes[v]`` exactly when ``v in edges[e]``. Node and edge labels
can be any hashable values; nothing but incidence is semantically significant.
Key order of the two mappings is the "listing order" used by positional
operations such as ``permute``.

``Hypergraph`` is immutable once constructed. ``MutableHypergraph`` is a
convenience for building one incrementally and is not used by the
canonicalization or traversal code.

References:
- Bretto: "Hypergraph Theory: An Introduction" (2013)
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Generator, Hashable, Iterable, Mapping, Sequence
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Generic, TypeVar

V = TypeVar("V", bound=Hashable)
E = TypeVar("E", bound=Hashable)
W = TypeVar("W", bound=Hashable)


def _check_permutation(permutation: Sequence[int], size: int, kind: str) -> None:
    if len(permutation) != size:
        raise ValueError(
            f"{kind} permutation has length {len(permutation)}, expected {size}"
        )
    if sorted(permutation) != list(range(size)):
        raise ValueError(f"{kind} permutation is not a permutation of 0..{size - 1}")


def _invert_incidence(edges: Mapping[E, Iterable[V]]) -> dict[V, set[E]]:
    nodes: dict[V, set[E]] = {}
    for edge, members in edges.items():
        for node in members:
            nodes.setdefault(node, set()).add(edge)
    return nodes


class Hypergraph(Generic[V, E]):
    """An immutable hypergraph over node labels V and edge labels E.

    Build one with ``Hypergraph.from_edges`` (or ``hypergraph_of``) to derive
    the node mapping from the edges. The raw constructor takes both mappings
    as given and does not check that they agree; use ``validate()`` for that.

    Attributes:
        nodes: Read-only mapping of node -> incident edges
        edges: Read-only mapping of edge -> member nodes
    """

    def __init__(
        self,
        nodes: Mapping[V, Iterable[E]] | None = None,
        edges: Mapping[E, Iterable[V]] | None = None,
    ) -> None:
        self._nodes: dict[V, frozenset[E]] = {
            node: frozenset(incident) for node, incident in (nodes or {}).items()
        }
        self._edges: dict[E, frozenset[V]] = {
            edge: frozenset(members) for edge, members in (edges or {}).items()
        }

    @classmethod
    def from_edges(cls, edges: Mapping[E, Iterable[V]]) -> Hypergraph[V, E]:
        """Build a hypergraph from edge -> member nodes, deriving the node side.

        Example:
            hg = Hypergraph.from_edges({0: ["A", "B"], 1: ["B", "C"]})
            hg.nodes["B"]  # frozenset({0, 1})
        """
        materialized = {edge: list(members) for edge, members in edges.items()}
        return cls(_invert_incidence(materialized), materialized)

    @property
    def nodes(self) -> Mapping[V, frozenset[E]]:
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> Mapping[E, frozenset[V]]:
        return MappingProxyType(self._edges)

    # ========== Queries ==========

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def rank(self) -> int:
        """Largest number of nodes in any edge.

        Raises:
            ValueError: If the hypergraph has no edges
        """
        if not self._edges:
            raise ValueError("rank is undefined for a hypergraph without edges")
        return max(len(members) for members in self._edges.values())

    @property
    def is_empty(self) -> bool:
        return not self._nodes and not self._edges

    def has_node(self, node: Any) -> bool:
        return node in self._nodes

    def contains_edge_set(self, candidate: Iterable[V]) -> bool:
        """Check whether every node of ``candidate`` has exactly ``candidate``
        as its set of incident edges.

        This is the narrow "self-describing" check, not general edge
        membership: it only holds when nodes and edges share labels and each
        node's incident-edge set equals the candidate. Vacuously true for an
        empty candidate.
        """
        members = frozenset(candidate)
        return all(self._nodes.get(node) == members for node in members)  # type: ignore[comparison-overlap]

    def __contains__(self, item: object) -> bool:
        """``node in hg`` for labels, ``{...} in hg`` for the edge-set check."""
        if isinstance(item, (set, frozenset)):
            return self.contains_edge_set(item)  # type: ignore[arg-type]
        return self.has_node(item)

    def __getitem__(self, edge: E) -> frozenset[V]:
        """Member nodes of ``edge``, or an empty set for unknown edges."""
        return self._edges.get(edge, frozenset())

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hypergraph):
            return NotImplemented
        return self._nodes == other._nodes and self._edges == other._edges

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        edges = {edge: sorted(map(repr, members)) for edge, members in self._edges.items()}
        return f"{type(self).__name__}(nodes={self.node_count}, edges={edges!r})"

    def validate(self) -> dict[str, Any]:
        """Check that the node and edge mappings describe the same incidence.

        Returns:
            Dict with 'valid' (bool) and 'errors' (list of error descriptions)
        """
        errors: list[str] = []
        for node, incident in self._nodes.items():
            for edge in incident:
                if edge not in self._edges:
                    errors.append(f"Node {node!r} references non-existent edge {edge!r}")
                elif node not in self._edges[edge]:
                    errors.append(f"Node {node!r} lists edge {edge!r} which does not list it")
        for edge, members in self._edges.items():
            for node in members:
                if node not in self._nodes:
                    errors.append(f"Edge {edge!r} references non-existent node {node!r}")
                elif edge not in self._nodes[node]:
                    errors.append(f"Edge {edge!r} lists node {node!r} which does not list it")
        return {"valid": len(errors) == 0, "errors": errors}

    def components(self) -> list[tuple[frozenset[V], frozenset[E]]]:
        """Connected components as (nodes, edges) pairs, in listing order.

        Isolated nodes form their own component; so do edges without members.
        """
        from hypercanon.engine.traversal import Edge, HypergraphNeighbors, Node, bfs

        neighbors = HypergraphNeighbors(self)
        seen_nodes: set[V] = set()
        seen_edges: set[E] = set()
        result: list[tuple[frozenset[V], frozenset[E]]] = []
        starts: list[Node[V] | Edge[E]] = [Node(v) for v in self._nodes]
        starts += [Edge(e) for e in self._edges]
        for start in starts:
            if isinstance(start, Node) and start.label in seen_nodes:
                continue
            if isinstance(start, Edge) and start.label in seen_edges:
                continue
            comp_nodes: set[V] = set()
            comp_edges: set[E] = set()
            for ctx in bfs(neighbors, start):
                if isinstance(ctx.current, Node):
                    comp_nodes.add(ctx.current.label)
                else:
                    comp_edges.add(ctx.current.label)
            seen_nodes |= comp_nodes
            seen_edges |= comp_edges
            result.append((frozenset(comp_nodes), frozenset(comp_edges)))
        return result

    # ========== Rendering ==========

    def incidence_matrix(self) -> list[list[bool]]:
        """Boolean incidence table: one row per node, one column per edge."""
        edge_list = list(self._edges)
        return [
            [edge in self._nodes[node] for edge in edge_list] for node in self._nodes
        ]

    def matrix(self, blank: str = " ") -> str:
        """Human-readable incidence matrix.

        One line per edge and one cell per node. A cell shows the node label
        where the node belongs to the edge and is padded with ``blank``
        otherwise, so columns line up.
        """
        labels = [str(node) for node in self._nodes]
        lines = []
        for members in self._edges.values():
            cells = [
                label if node in members else blank * len(label)
                for node, label in zip(self._nodes, labels)
            ]
            lines.append("".join(cells))
        return "\n".join(lines)

    # ========== Relabeling ==========

    def map_nodes(self, fn: Callable[[V], W]) -> Hypergraph[W, E]:
        """Replace every node label by ``fn(label)``, keeping incidence.

        ``fn`` should be injective; merged labels merge their incidence.
        """
        nodes: dict[W, set[E]] = {}
        for node, incident in self._nodes.items():
            nodes.setdefault(fn(node), set()).update(incident)
        edges = {edge: [fn(node) for node in members] for edge, members in self._edges.items()}
        return Hypergraph(nodes, edges)

    def relabel(
        self, node_map: Mapping[V, V], edge_map: Mapping[E, E]
    ) -> Hypergraph[V, E]:
        """Apply label bijections to nodes and edges.

        The result lists nodes and edges in the same label order as this
        hypergraph; node ``node_map[v]`` takes over the incidence of ``v``.
        Labels missing from a map are kept unchanged.
        """
        moved_nodes = {
            node_map.get(node, node): frozenset(edge_map.get(e, e) for e in incident)
            for node, incident in self._nodes.items()
        }
        moved_edges = {
            edge_map.get(edge, edge): frozenset(node_map.get(v, v) for v in members)
            for edge, members in self._edges.items()
        }
        # original label order first, then any labels new to this hypergraph
        return Hypergraph(
            {**{n: moved_nodes[n] for n in self._nodes if n in moved_nodes}, **moved_nodes},
            {**{e: moved_edges[e] for e in self._edges if e in moved_edges}, **moved_edges},
        )

    def permutation_mapping(
        self, node_permutation: Sequence[int], edge_permutation: Sequence[int]
    ) -> tuple[dict[V, V], dict[E, E]]:
        """Label maps induced by positional permutations.

        Position ``i`` of the result receives what sat at position
        ``permutation[i]``, so the label at ``permutation[i]`` maps to the
        label at ``i``. Positions follow the current listing order.

        Raises:
            ValueError: If a permutation has the wrong length or is not a
                permutation of the positions
        """
        _check_permutation(node_permutation, self.node_count, "Node")
        _check_permutation(edge_permutation, self.edge_count, "Edge")
        node_list = list(self._nodes)
        edge_list = list(self._edges)
        node_map = {node_list[p]: node_list[i] for i, p in enumerate(node_permutation)}
        edge_map = {edge_list[p]: edge_list[i] for i, p in enumerate(edge_permutation)}
        return node_map, edge_map

    def permute(
        self, node_permutation: Sequence[int], edge_permutation: Sequence[int]
    ) -> Hypergraph[V, E]:
        """Shuffle which incidence sets attach to which positions.

        Position ``i`` in the result holds the incidence of the element
        originally at position ``permutation[i]``, with the labels inside
        relabeled the same way. Labels themselves do not change.
        ``permute(p, q).permute(inverse(p), inverse(q))`` gives back the
        original hypergraph.

        Raises:
            ValueError: If a permutation has the wrong length or is not a
                permutation of the positions
        """
        node_map, edge_map = self.permutation_mapping(node_permutation, edge_permutation)
        return self.relabel(node_map, edge_map)


class MutableHypergraph(Hypergraph[V, E]):
    """A hypergraph that can be edited in place.

    Every edit keeps both incidence mappings consistent. Edits are protected
    by an internal RLock; use ``batch()`` to group several of them.
    """

    def __init__(
        self,
        nodes: Mapping[V, Iterable[E]] | None = None,
        edges: Mapping[E, Iterable[V]] | None = None,
    ) -> None:
        super().__init__(nodes, edges)
        self._lock = threading.RLock()

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold the lock across several edits. Provides isolation, not rollback."""
        with self._lock:
            yield

    def add_node(self, node: V) -> None:
        """Insert a node with no edges. Existing nodes are left untouched."""
        with self._lock:
            self._nodes.setdefault(node, frozenset())

    def set_edge(self, edge: E, members: Iterable[V]) -> None:
        """Assign ``edge`` exactly the given member nodes.

        Nodes new to the hypergraph are created; nodes dropped from the edge
        keep existing (possibly with no edges).
        """
        new_members = frozenset(members)
        with self._lock:
            for node in self._edges.get(edge, frozenset()) - new_members:
                self._nodes[node] = self._nodes[node] - {edge}
            for node in new_members:
                self._nodes[node] = self._nodes.get(node, frozenset()) | {edge}
            self._edges[edge] = new_members

    __setitem__ = set_edge

    def remove_edge(self, edge: E) -> bool:
        """Delete an edge. Returns True if deleted, False if not found."""
        with self._lock:
            members = self._edges.pop(edge, None)
            if members is None:
                return False
            for node in members:
                self._nodes[node] = self._nodes[node] - {edge}
            return True

    def freeze(self) -> Hypergraph[V, E]:
        """Immutable snapshot of the current state."""
        with self._lock:
            return Hypergraph(self._nodes, self._edges)


def hypergraph_of(*edges: tuple[E, Iterable[V]]) -> Hypergraph[V, E]:
    """Build a hypergraph from ``(edge, nodes)`` pairs.

    Example:
        hg = hypergraph_of((0, "AB"), (1, "BC"))
    """
    return Hypergraph.from_edges(dict(edges))
