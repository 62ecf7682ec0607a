"""Tests for the hypergraph data model and its operators."""

import pytest

from hypercanon.engine.core import Hypergraph, MutableHypergraph, hypergraph_of


def assert_consistent(hg):
    """e in nodes[v] exactly when v in edges[e]."""
    for node, incident in hg.nodes.items():
        for edge in incident:
            assert node in hg.edges[edge]
    for edge, members in hg.edges.items():
        for node in members:
            assert edge in hg.nodes[node]


class TestConstruction:
    """Tests for building hypergraphs."""

    def test_from_edges_derives_nodes(self, path_graph):
        assert dict(path_graph.nodes) == {
            "A": frozenset({0}),
            "B": frozenset({0, 1}),
            "C": frozenset({1}),
        }
        assert dict(path_graph.edges) == {0: frozenset({"A", "B"}), 1: frozenset({"B", "C"})}

    def test_node_listing_order(self, path_graph):
        assert list(path_graph.nodes) == ["A", "B", "C"]
        assert list(path_graph.edges) == [0, 1]

    def test_hypergraph_of_pairs(self):
        hg = hypergraph_of((0, "AB"), (1, "BC"))
        assert set(hg.nodes) == {"A", "B", "C"}
        assert hg[1] == {"B", "C"}

    def test_duplicate_members_collapse(self):
        hg = Hypergraph.from_edges({0: ["A", "A", "B"]})
        assert hg[0] == {"A", "B"}

    def test_mappings_are_read_only(self, path_graph):
        with pytest.raises(TypeError):
            path_graph.nodes["Z"] = frozenset()  # type: ignore[index]

    def test_random_hypergraphs_are_consistent(self, random_hypergraph):
        for seed in range(20):
            hg = random_hypergraph(10, 6, seed=seed)
            assert_consistent(hg)
            assert hg.validate()["valid"] is True

    def test_equality(self, path_graph):
        assert path_graph == Hypergraph.from_edges({1: ["C", "B"], 0: ["B", "A"]})
        assert path_graph != Hypergraph.from_edges({0: ["A", "B"]})

    def test_not_hashable(self, path_graph):
        with pytest.raises(TypeError):
            hash(path_graph)


class TestQueries:
    """Tests for counts, rank and containment."""

    def test_counts(self, path_graph):
        assert path_graph.node_count == 3
        assert path_graph.edge_count == 2
        assert len(path_graph) == 3

    def test_rank(self, staircase_graph):
        assert staircase_graph.rank == 4

    def test_rank_without_edges_raises(self):
        with pytest.raises(ValueError, match="rank is undefined"):
            _ = Hypergraph().rank

    def test_is_empty(self, path_graph):
        assert Hypergraph().is_empty
        assert not path_graph.is_empty
        assert not Hypergraph(nodes={"lonely": []}).is_empty

    def test_contains_node(self, path_graph):
        assert "A" in path_graph
        assert "Z" not in path_graph
        assert path_graph.has_node("B")

    def test_edge_set_check_is_literal(self, path_graph):
        # {A, B} is an edge, but A's incident-edge set is {0}, not {A, B}
        assert {"A", "B"} not in path_graph
        assert not path_graph.contains_edge_set(["A", "B"])

    def test_edge_set_check_on_self_describing_structure(self):
        hg = Hypergraph.from_edges({"x": ["x"]})
        assert frozenset({"x"}) in hg

    def test_empty_edge_set_is_vacuously_contained(self, path_graph):
        assert frozenset() in path_graph

    def test_getitem(self, path_graph):
        assert path_graph[0] == {"A", "B"}
        assert path_graph[99] == frozenset()


class TestValidation:
    def test_detects_one_sided_incidence(self):
        hg = Hypergraph(nodes={"A": [0]}, edges={0: []})
        result = hg.validate()
        assert result["valid"] is False
        assert "does not list it" in result["errors"][0]

    def test_detects_missing_references(self):
        hg = Hypergraph(nodes={}, edges={0: ["ghost"]})
        result = hg.validate()
        assert result["valid"] is False
        assert "non-existent node" in result["errors"][0]


class TestMatrix:
    def test_matrix(self, path_graph):
        assert path_graph.matrix() == "AB \n BC"

    def test_matrix_blank(self, path_graph):
        assert path_graph.matrix(blank=".") == "AB.\n.BC"

    def test_matrix_pads_long_labels(self):
        hg = Hypergraph.from_edges({0: ["aa", "b"], 1: ["b"]})
        assert hg.matrix(blank="-") == "aab\n--b"

    def test_incidence_matrix(self, path_graph):
        assert path_graph.incidence_matrix() == [[True, False], [True, True], [False, True]]


class TestRelabeling:
    """Tests for map_nodes, relabel and permute."""

    def test_map_nodes(self, path_graph):
        lowered = path_graph.map_nodes(str.lower)
        assert lowered == Hypergraph.from_edges({0: ["a", "b"], 1: ["b", "c"]})

    def test_map_nodes_keeps_isolated_nodes(self):
        hg = MutableHypergraph.from_edges({0: ["A"]})
        hg.add_node("Z")
        assert "z" in hg.freeze().map_nodes(str.lower)

    def test_relabel(self, path_graph):
        moved = path_graph.relabel({"A": "C", "C": "A"}, {0: 1, 1: 0})
        assert moved == path_graph

    def test_permute_explicit(self, path_graph):
        # position 0 takes B's incidence, position 1 takes A's
        permuted = path_graph.permute([1, 0, 2], [0, 1])
        assert dict(permuted.nodes) == {
            "A": frozenset({0, 1}),
            "B": frozenset({0}),
            "C": frozenset({1}),
        }
        assert dict(permuted.edges) == {0: frozenset({"A", "B"}), 1: frozenset({"A", "C"})}
        assert list(permuted.nodes) == ["A", "B", "C"]

    def test_permute_edges(self, path_graph):
        permuted = path_graph.permute([0, 1, 2], [1, 0])
        assert permuted[0] == {"B", "C"}
        assert permuted.nodes["A"] == {1}

    def test_permutation_mapping(self, path_graph):
        node_map, edge_map = path_graph.permutation_mapping([2, 0, 1], [1, 0])
        assert node_map == {"C": "A", "A": "B", "B": "C"}
        assert edge_map == {1: 0, 0: 1}

    def test_permute_round_trip(self, random_hypergraph, permutation, inverse):
        for seed in range(25):
            hg = random_hypergraph(9, 6, seed=seed)
            p = permutation(hg.node_count, seed=seed)
            q = permutation(hg.edge_count, seed=seed + 1000)
            permuted = hg.permute(p, q)
            assert_consistent(permuted)
            assert permuted.permute(inverse(p), inverse(q)) == hg

    def test_permute_matches_relabel(self, random_hypergraph, permutation):
        hg = random_hypergraph(8, 5, seed=3)
        p = permutation(hg.node_count, seed=1)
        q = permutation(hg.edge_count, seed=2)
        node_map, edge_map = hg.permutation_mapping(p, q)
        assert hg.permute(p, q) == hg.relabel(node_map, edge_map)

    def test_permute_wrong_length_raises(self, path_graph):
        with pytest.raises(ValueError, match="length 2, expected 3"):
            path_graph.permute([0, 1], [0, 1])

    def test_permute_invalid_permutation_raises(self, path_graph):
        with pytest.raises(ValueError, match="not a permutation"):
            path_graph.permute([0, 0, 1], [0, 1])


class TestComponents:
    def test_components(self):
        hg = MutableHypergraph.from_edges({0: ["A", "B"], 1: ["C", "D"], 2: ["D", "E"]})
        hg.add_node("lonely")
        components = hg.freeze().components()
        assert components == [
            (frozenset({"A", "B"}), frozenset({0})),
            (frozenset({"C", "D", "E"}), frozenset({1, 2})),
            (frozenset({"lonely"}), frozenset()),
        ]

    def test_memberless_edge_is_own_component(self):
        hg = Hypergraph.from_edges({0: ["A"], 1: []})
        assert (frozenset(), frozenset({1})) in hg.components()


class TestMutableHypergraph:
    """Tests for in-place editing."""

    def test_add_node(self):
        hg = MutableHypergraph()
        hg.add_node("A")
        assert hg.nodes["A"] == frozenset()
        assert hg.node_count == 1

    def test_add_existing_node_keeps_edges(self):
        hg = MutableHypergraph.from_edges({0: ["A"]})
        hg.add_node("A")
        assert hg.nodes["A"] == {0}

    def test_set_edge_keeps_consistency(self):
        hg = MutableHypergraph()
        hg[0] = ["A", "B"]
        hg.set_edge(1, ["B", "C"])
        assert_consistent(hg)
        assert hg.freeze() == Hypergraph.from_edges({0: ["A", "B"], 1: ["B", "C"]})

    def test_reassign_edge(self):
        hg = MutableHypergraph.from_edges({0: ["A", "B"]})
        hg[0] = ["B", "C"]
        assert hg.nodes["A"] == frozenset()
        assert hg.nodes["C"] == {0}
        assert hg.validate()["valid"] is True

    def test_remove_edge(self):
        hg = MutableHypergraph.from_edges({0: ["A", "B"], 1: ["B"]})
        assert hg.remove_edge(0) is True
        assert hg.remove_edge(0) is False
        assert hg.nodes["B"] == {1}
        assert_consistent(hg)

    def test_batch(self):
        hg = MutableHypergraph()
        with hg.batch():
            hg[0] = ["A"]
            hg[1] = ["A", "B"]
        assert hg.nodes["A"] == {0, 1}

    def test_freeze_is_independent(self):
        hg = MutableHypergraph.from_edges({0: ["A"]})
        frozen = hg.freeze()
        hg[1] = ["B"]
        assert isinstance(frozen, Hypergraph)
        assert not isinstance(frozen, MutableHypergraph)
        assert frozen.edge_count == 1
