"""Lazy breadth-first and depth-first traversal over a neighbor relation.

A neighbor relation is any callable mapping an element to an iterable of its
neighbors. ``bfs`` and ``dfs`` walk it from a start element and yield one
``TraversalContext`` per visited element, carrying a per-path state built by
an update function (depth, path, weight, ...). Nothing is computed ahead of
the consumer: iteration can stop or pause after any context.

For hypergraphs the relation runs over the bipartite incidence graph: a
``Node`` leads to its incident ``Edge`` elements and an ``Edge`` to its member
``Node`` elements.

Example:
    hg = Hypergraph.from_edges({0: ["A", "B"], 1: ["B", "C"]})
    for ctx in bfs(HypergraphNeighbors(hg), Node("A"), 0, lambda depth, _: depth + 1):
        print(ctx.current, ctx.state)
    # Node('A') 0, Edge(0) 1, Node('B') 2, Edge(1) 3, Node('C') 4
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Generator, Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from hypercanon.engine.core import Hypergraph

T = TypeVar("T", bound=Hashable)
S = TypeVar("S")
L = TypeVar("L", bound=Hashable)

Neighbors = Callable[[T], Iterable[T]]


@dataclass(frozen=True)
class Node(Generic[L]):
    """A hypergraph node seen as a traversal element."""

    label: L

    def __repr__(self) -> str:
        return f"Node({self.label!r})"


@dataclass(frozen=True)
class Edge(Generic[L]):
    """A hypergraph edge seen as a traversal element."""

    label: L

    def __repr__(self) -> str:
        return f"Edge({self.label!r})"


class HypergraphNeighbors:
    """Neighbor relation of a hypergraph's bipartite incidence graph.

    Node(v) -> Edge(e) for every edge incident to v;
    Edge(e) -> Node(v) for every node of e.
    Labels unknown to the hypergraph have no neighbors.

    Raises:
        TypeError: If called with something other than a Node or an Edge
    """

    def __init__(self, hypergraph: Hypergraph[Any, Any]) -> None:
        self.hypergraph = hypergraph

    def __call__(self, element: Node[Any] | Edge[Any]) -> Iterator[Node[Any] | Edge[Any]]:
        if isinstance(element, Node):
            incident = self.hypergraph.nodes.get(element.label, frozenset())
            return (Edge(edge) for edge in incident)
        if isinstance(element, Edge):
            return (Node(node) for node in self.hypergraph[element.label])
        raise TypeError(
            f"Hypergraph traversal elements must be Node or Edge, got: {type(element).__name__}"
        )


@dataclass
class TraversalContext(Generic[T, S]):
    """One visitation step.

    Attributes:
        current: The element being visited
        state: State accumulated along the path that discovered ``current``
        visited: Elements discovered so far (live, owned by the traversal)
        frontier: Pending (element, state) entries (live, owned by the traversal)
        discovered: Neighbors of ``current`` first discovered at this step

    ``visited`` and ``frontier`` keep changing as the traversal advances;
    copy them if a snapshot is needed after resuming iteration.
    """

    current: T
    state: S
    visited: set[T] = field(repr=False)
    frontier: deque[tuple[T, S]] = field(repr=False)
    discovered: tuple[T, ...] = ()
    relation: Neighbors[T] | None = field(default=None, repr=False, compare=False)

    @property
    def neighbors(self) -> Iterator[T]:
        """Immediate neighbors of ``current``, evaluated on access."""
        if self.relation is None:
            return iter(())
        return iter(self.relation(self.current))


def _keep(state: Any, _neighbor: Any) -> Any:
    return state


def _traverse(
    neighbors: Neighbors[T],
    start: T,
    initial_state: S,
    update: Callable[[S, T], S] | None,
    *,
    depth_first: bool,
) -> Generator[TraversalContext[T, S], None, None]:
    step = update or _keep
    visited: set[T] = {start}
    pending: deque[tuple[T, S]] = deque([(start, initial_state)])
    while pending:
        current, state = pending.pop() if depth_first else pending.popleft()
        fresh = tuple(n for n in dict.fromkeys(neighbors(current)) if n not in visited)
        yield TraversalContext(current, state, visited, pending, fresh, neighbors)
        for neighbor in fresh:
            pending.append((neighbor, step(state, neighbor)))
            visited.add(neighbor)


def bfs(
    neighbors: Neighbors[T],
    start: T,
    initial_state: Any = None,
    update: Callable[[Any, T], Any] | None = None,
) -> Generator[TraversalContext[T, Any], None, None]:
    """Breadth-first traversal: always visit the oldest pending element.

    Args:
        neighbors: Neighbor relation
        start: Element to start from (visited first)
        initial_state: State attached to ``start``
        update: ``update(state, neighbor)`` gives the state of a newly
            discovered neighbor; defaults to passing the state on unchanged

    Yields:
        One TraversalContext per reachable element, each exactly once
    """
    return _traverse(neighbors, start, initial_state, update, depth_first=False)


def dfs(
    neighbors: Neighbors[T],
    start: T,
    initial_state: Any = None,
    update: Callable[[Any, T], Any] | None = None,
) -> Generator[TraversalContext[T, Any], None, None]:
    """Depth-first traversal: always visit the newest pending element.

    Elements are marked visited when discovered, so each is yielded once.
    Arguments as for ``bfs``.
    """
    return _traverse(neighbors, start, initial_state, update, depth_first=True)
