from hypercanon.engine.canon import (
    DEFAULT_MAX_DEPTH,
    HypergraphMapping,
    MatchAttempt,
    Signatures,
    canon,
    map_to,
    match,
)
from hypercanon.engine.core import Hypergraph, MutableHypergraph, hypergraph_of
from hypercanon.engine.reader import iter_hypergraphs, load_hypergraph, parse_hypergraph
from hypercanon.engine.refs import (
    DEFAULT_ALLOCATOR,
    HashReference,
    IdAllocator,
    SafeSet,
    bounded_hashing,
    safe_set_of,
)
from hypercanon.engine.traversal import (
    Edge,
    HypergraphNeighbors,
    Node,
    TraversalContext,
    bfs,
    dfs,
)

__all__ = [
    "Hypergraph",
    "MutableHypergraph",
    "hypergraph_of",
    "HashReference",
    "IdAllocator",
    "DEFAULT_ALLOCATOR",
    "SafeSet",
    "safe_set_of",
    "bounded_hashing",
    "canon",
    "match",
    "map_to",
    "Signatures",
    "HypergraphMapping",
    "MatchAttempt",
    "DEFAULT_MAX_DEPTH",
    "Node",
    "Edge",
    "HypergraphNeighbors",
    "TraversalContext",
    "bfs",
    "dfs",
    "parse_hypergraph",
    "iter_hypergraphs",
    "load_hypergraph",
]
