"""Hypercanon: canonical signatures and isomorphism matching for hypergraphs."""

__version__ = "0.1.0"

from hypercanon.client import Hypercanon
from hypercanon.engine import (
    Edge,
    Hypergraph,
    HypergraphMapping,
    MutableHypergraph,
    Node,
    SafeSet,
    bfs,
    canon,
    dfs,
    hypergraph_of,
    map_to,
    match,
)
from hypercanon.models import CanonReport, HypergraphStats, MatchReport, ValidationResult, Visit

__all__ = [
    "CanonReport",
    "Edge",
    "Hypercanon",
    "Hypergraph",
    "HypergraphMapping",
    "HypergraphStats",
    "MatchReport",
    "MutableHypergraph",
    "Node",
    "SafeSet",
    "ValidationResult",
    "Visit",
    "__version__",
    "bfs",
    "canon",
    "dfs",
    "hypergraph_of",
    "map_to",
    "match",
]
