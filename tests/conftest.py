"""Shared fixtures for hypercanon tests."""

import random
from collections.abc import Callable

import pytest

from hypercanon import Hypergraph, Hypercanon


def generate_random_hypergraph(
    num_nodes: int,
    num_edges: int,
    cardinality: int | None = None,
    seed: int = 42,
) -> Hypergraph[str, int]:
    """Generate a random hypergraph.

    Args:
        num_nodes: Size of the node label pool ("n0", "n1", ...)
        num_edges: Number of edges, labelled 0..num_edges-1
        cardinality: Fixed number of nodes per edge; random in 1..num_nodes if None
        seed: Random seed for reproducibility

    Nodes that end up in no edge are not part of the result.
    """
    rng = random.Random(seed)
    labels = [f"n{i}" for i in range(num_nodes)]
    edges = {}
    for edge in range(num_edges):
        size = cardinality if cardinality is not None else rng.randint(1, num_nodes)
        edges[edge] = rng.sample(labels, size)
    return Hypergraph.from_edges(edges)


def make_permutation(n: int, seed: int = 0) -> list[int]:
    """Uniform random permutation of 0..n-1 (Fisher-Yates)."""
    rng = random.Random(seed)
    arr = list(range(n))
    for i in range(n - 1, 0, -1):
        j = rng.randint(0, i)
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def invert_permutation(permutation: list[int]) -> list[int]:
    inverse = [0] * len(permutation)
    for i, p in enumerate(permutation):
        inverse[p] = i
    return inverse


@pytest.fixture()
def random_hypergraph() -> Callable[..., Hypergraph[str, int]]:
    """Factory for seeded random hypergraphs."""
    return generate_random_hypergraph


@pytest.fixture()
def permutation() -> Callable[..., list[int]]:
    """Factory for seeded random permutations."""
    return make_permutation


@pytest.fixture()
def inverse() -> Callable[[list[int]], list[int]]:
    return invert_permutation


@pytest.fixture()
def path_graph() -> Hypergraph[str, int]:
    """Two edges sharing one node.

    Edges: 0 = {A, B}, 1 = {B, C}
    B has two incident edges; A and C are mirror images of each other.
    """
    return Hypergraph.from_edges({0: ["A", "B"], 1: ["B", "C"]})


@pytest.fixture()
def staircase_graph() -> Hypergraph[str, int]:
    """Nested edges with no symmetry: every node and edge is distinguishable.

    Edges: 0 = {a, b, c, d}, 1 = {a, b, c}, 2 = {a, b}, 3 = {a}
    Node degrees: a=4, b=3, c=2, d=1
    """
    return Hypergraph.from_edges({0: ["a", "b", "c", "d"], 1: ["a", "b", "c"], 2: ["a", "b"], 3: ["a"]})


@pytest.fixture()
def hc(path_graph, staircase_graph) -> Hypercanon:
    """Client with the path and staircase hypergraphs registered."""
    client = Hypercanon()
    client.add("path", path_graph)
    client.add("staircase", staircase_graph)
    return client
