"""Benchmark fixtures for canonicalization performance tests."""

import random
from collections.abc import Callable

import pytest

from hypercanon import Hypergraph


def generate_sparse_hypergraph(
    num_nodes: int,
    num_edges: int,
    avg_cardinality: float = 2.5,
    seed: int = 42,
) -> Hypergraph[str, int]:
    """Generate a sparse random hypergraph for benchmarking.

    Args:
        num_nodes: Size of the node label pool
        num_edges: Number of edges to create
        avg_cardinality: Average number of nodes per edge
        seed: Random seed for reproducibility

    Returns:
        Hypergraph with "node_<i>" labels and integer edge labels
    """
    rng = random.Random(seed)
    node_ids = [f"node_{i}" for i in range(num_nodes)]

    edges = {}
    for i in range(num_edges):
        # 2 to roughly 2*avg, centered around avg
        cardinality = max(2, int(rng.gauss(avg_cardinality, avg_cardinality / 2)))
        cardinality = min(cardinality, num_nodes)
        edges[i] = rng.sample(node_ids, cardinality)

    return Hypergraph.from_edges(edges)


@pytest.fixture
def sparse_factory() -> Callable[..., Hypergraph[str, int]]:
    return generate_sparse_hypergraph


@pytest.fixture
def graph_500() -> Hypergraph[str, int]:
    """500 nodes, 1K edges - small benchmark hypergraph."""
    return generate_sparse_hypergraph(num_nodes=500, num_edges=1000, seed=42)


@pytest.fixture
def graph_5k() -> Hypergraph[str, int]:
    """5K nodes, 10K edges - medium benchmark hypergraph."""
    return generate_sparse_hypergraph(num_nodes=5000, num_edges=10000, seed=42)
