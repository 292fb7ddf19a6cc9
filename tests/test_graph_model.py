import math

import networkx as nx
import pytest

from route_inspection import DisconnectedGraph, InvalidGraph, StreetGraph


def test_parallel_edges_are_kept_separately():
    g = StreetGraph()
    for v in "ab":
        g.add_vertex(v)
    e0 = g.add_edge("a", "b", 3)
    e1 = g.add_edge("b", "a", 1, street_id="Main St")
    assert g.edges_between("a", "b") == [e0, e1]
    assert g.degree("a") == 2
    assert g.neighbors("a") == ["b"]
    assert e0.street_id == 0
    assert e1.street_id == "Main St"
    assert g.total_weight() == 4


@pytest.mark.parametrize("weight", [-1, math.inf, math.nan, "3", None, True])
def test_bad_weights_are_rejected(weight):
    g = StreetGraph.from_edges([], vertices=[1, 2])
    with pytest.raises(InvalidGraph):
        g.add_edge(1, 2, weight)


def test_self_loop_is_rejected():
    g = StreetGraph.from_edges([], vertices=[1])
    with pytest.raises(InvalidGraph, match="self-loop"):
        g.add_edge(1, 1, 1)


def test_unknown_vertex_is_rejected():
    with pytest.raises(InvalidGraph, match="unknown vertex"):
        StreetGraph.from_edges([(1, 9, 1)], vertices=[1, 2])


def test_unhashable_and_none_vertices_are_rejected():
    g = StreetGraph()
    with pytest.raises(InvalidGraph):
        g.add_vertex(None)
    with pytest.raises(InvalidGraph):
        g.add_vertex([1, 2])


def test_malformed_edge_tuple():
    with pytest.raises(InvalidGraph):
        StreetGraph.from_edges([(1, 2)])


def test_vertex_order_and_metadata():
    g = StreetGraph()
    g.add_vertex("z", pos=(0, 0))
    g.add_vertex("a")
    g.add_vertex("z", name="Zed")
    assert g.vertices == ("z", "a")
    assert g.vertex_index("a") == 1
    assert g.metadata("z") == {"pos": (0, 0), "name": "Zed"}


def test_neighbors_and_incident_edges_in_index_order():
    g = StreetGraph.from_edges([(1, 3, 1), (1, 2, 1), (3, 1, 2), (2, 3, 1)])
    # vertex order is 1, 3, 2 (first appearance)
    assert g.neighbors(1) == [3, 2]
    assert g.neighbors(3) == [1, 2]
    assert [e.index for e in g.incident_edges(1)] == [0, 1, 2]
    assert g.edge(2).other(3) == 1


def test_odd_vertices(path_graph, square):
    assert path_graph.odd_vertices() == ["a", "d"]
    assert square.odd_vertices() == []
    assert square.is_eulerian()


def test_validate_empty_graph():
    with pytest.raises(InvalidGraph):
        StreetGraph().validate()


def test_validate_disconnected_graph():
    g = StreetGraph.from_edges([(1, 2, 1), (3, 4, 1)])
    assert not g.is_connected()
    with pytest.raises(DisconnectedGraph) as info:
        g.validate()
    assert info.value.components == 2
    assert info.value.is_user_error


def test_single_vertex_is_valid():
    g = StreetGraph()
    g.add_vertex("only")
    g.validate()
    assert g.odd_vertices() == []


def test_networkx_round_trip():
    G = nx.MultiGraph()
    G.add_node("a", pos=(1.0, 2.0))
    G.add_edge("a", "b", weight=2.5, street_id="Elm")
    G.add_edge("a", "b", weight=1.0)
    G.add_edge("b", "c")
    g = StreetGraph.from_networkx(G)
    assert g.number_of_edges() == 3
    assert g.metadata("a") == {"pos": (1.0, 2.0)}
    assert [e.weight for e in g.edges] == [2.5, 1.0, 1.0]
    assert g.edge(0).street_id == "Elm"

    H = g.to_networkx()
    assert H.number_of_edges() == 3
    assert H["a"]["b"][0]["street_id"] == "Elm"
    H.add_edge("c", "d")
    assert g.number_of_edges() == 3


def test_directed_graph_rejected():
    with pytest.raises(InvalidGraph):
        StreetGraph.from_networkx(nx.DiGraph([(1, 2)]))


def test_networkx_self_loop_rejected():
    with pytest.raises(InvalidGraph):
        StreetGraph.from_networkx(nx.Graph([(1, 1)]))
