import networkx as nx
import pytest

from route_inspection import (
    AugmentationInvariantViolation,
    AugmentedGraph,
    Matching,
    StreetGraph,
    augment,
    match_odd_vertices,
    pairwise_shortest_paths,
)
from route_inspection.graph_utilities import random_graph


def _augment(graph):
    odd = graph.odd_vertices()
    return augment(graph, match_odd_vertices(pairwise_shortest_paths(graph, odd)))


def test_path_graph_doubles_every_edge(path_graph):
    aug = _augment(path_graph)
    assert aug.multiplicities == (2, 2, 2)
    assert aug.odd_vertices() == []
    assert aug.total_weight() == 18
    assert [(e.index, m) for e, m in aug.duplicated_edges()] == [(0, 2), (1, 2), (2, 2)]


def test_eulerian_graph_is_unchanged(square):
    aug = augment(square, Matching())
    assert aug.multiplicities == (1, 1, 1, 1)
    assert aug.duplicated_edges() == []
    assert aug.total_weight() == square.total_weight()


def test_input_graph_is_not_mutated(path_graph):
    before = path_graph.edges
    _augment(path_graph)
    assert path_graph.edges == before
    assert path_graph.odd_vertices() == ["a", "d"]


def test_odd_vertex_after_augmentation_is_reported(path_graph):
    with pytest.raises(AugmentationInvariantViolation) as info:
        augment(path_graph, Matching())
    assert info.value.vertex == "a"
    assert info.value.degree == 1
    assert info.value.stage == "augment"
    assert not info.value.is_user_error


def test_weight_mismatch_is_reported(square):
    aug = AugmentedGraph(square, [1, 1, 1, 1], matching_cost=3)
    with pytest.raises(AugmentationInvariantViolation, match="differs"):
        aug.check()


def test_multiplicity_length_must_match(square):
    with pytest.raises(ValueError):
        AugmentedGraph(square, [1, 1])


@pytest.mark.parametrize("seed", range(8))
def test_random_graphs_become_eulerian(seed):
    g = random_graph(20, p=0.15, seed=seed, weighted=True, weight_range=(1, 50), integer_weights=True)
    aug = _augment(g)
    H = aug.to_networkx()
    assert nx.is_eulerian(H)
    assert H.number_of_edges() == aug.number_of_edge_copies()
    assert aug.total_weight() == g.total_weight() + aug.matching_cost


def test_to_networkx_marks_copies(path_graph):
    H = _augment(path_graph).to_networkx()
    copies = sorted(d["copy"] for _, _, d in H.edges(data=True) if d["edge_index"] == 1)
    assert copies == [0, 1]
    assert all(d["street_id"] == 1 for _, _, d in H.edges(data=True) if d["edge_index"] == 1)


def test_degree_counts_copies():
    g = StreetGraph.from_edges([(1, 2, 1), (2, 3, 1)])
    aug = _augment(g)
    assert aug.degree(2) == 4
    assert aug.degrees() == {1: 2, 2: 4, 3: 2}
