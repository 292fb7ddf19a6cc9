import random

import networkx as nx
import pytest

from conftest import brute_force_min_matching
from route_inspection import MatchingError, match_odd_vertices, min_weight_perfect_matching
from route_inspection import pairwise_shortest_paths
from route_inspection.graph_utilities import random_graph


def _complete(n, weight):
    return [(i, j, weight(i, j)) for i in range(n) for j in range(i + 1, n)]


def _cost(edges, pairs):
    w = {(x, y): c for x, y, c in edges}
    return sum(w[p] for p in pairs)


def _is_perfect(n, pairs):
    seen = [v for p in pairs for v in p]
    return sorted(seen) == list(range(n))


def test_empty_graph():
    assert min_weight_perfect_matching(0, []) == []


def test_single_edge():
    assert min_weight_perfect_matching(2, [(0, 1, 7)]) == [(0, 1)]


def test_picks_cheaper_pairing():
    # 0-1 and 2-3 cost 2 in total, the crossing pairings cost more
    edges = [(0, 1, 1), (2, 3, 1), (0, 2, 5), (1, 3, 5), (0, 3, 4), (1, 2, 4)]
    assert min_weight_perfect_matching(4, edges) == [(0, 1), (2, 3)]


def test_perfect_even_when_heavier():
    # maximum weight would leave 0 and 3 unmatched and take the 1-2 edge;
    # the perfect matching must use the two expensive end edges
    edges = [(0, 1, 10), (1, 2, 0), (2, 3, 10)]
    assert min_weight_perfect_matching(4, edges) == [(0, 1), (2, 3)]


def test_sparse_graph_with_odd_cycle():
    # triangle 0-1-2 hanging off a path; only some pairings exist
    edges = [(0, 1, 2), (1, 2, 2), (0, 2, 2), (2, 3, 9), (0, 4, 9), (4, 5, 1), (3, 5, 3)]
    pairs = min_weight_perfect_matching(6, edges)
    assert _is_perfect(6, pairs)
    assert pairs == [(0, 1), (2, 3), (4, 5)]
    assert _cost(edges, pairs) == 12


@pytest.mark.parametrize("seed", range(25))
def test_integer_weights_against_brute_force(seed):
    rng = random.Random(seed)
    n = rng.choice([2, 4, 6, 8])
    w = {(i, j): rng.randint(0, 20) for i in range(n) for j in range(i + 1, n)}
    edges = _complete(n, lambda i, j: w[(i, j)])
    pairs = min_weight_perfect_matching(n, edges)
    assert _is_perfect(n, pairs)
    assert _cost(edges, pairs) == brute_force_min_matching(
        range(n), lambda u, v: w[(min(u, v), max(u, v))])


@pytest.mark.parametrize("seed", range(10))
def test_float_weights_against_networkx(seed):
    rng = random.Random(1000 + seed)
    n = 2 * rng.randint(2, 9)
    edges = _complete(n, lambda i, j: rng.uniform(0.0, 100.0))
    pairs = min_weight_perfect_matching(n, edges)
    assert _is_perfect(n, pairs)

    K = nx.Graph()
    K.add_weighted_edges_from(edges)
    expected = sum(K[u][v]["weight"] for u, v in nx.min_weight_matching(K))
    assert _cost(edges, pairs) == pytest.approx(expected)


def test_equal_weights_still_perfect():
    edges = _complete(6, lambda i, j: 3)
    pairs = min_weight_perfect_matching(6, edges)
    assert _is_perfect(6, pairs)
    assert pairs == min_weight_perfect_matching(6, edges)


def test_no_perfect_matching():
    # star: the centre can take only one leaf
    with pytest.raises(MatchingError):
        min_weight_perfect_matching(4, [(0, 1, 1), (0, 2, 1), (0, 3, 1)])


def test_odd_vertex_count():
    with pytest.raises(MatchingError):
        min_weight_perfect_matching(3, _complete(3, lambda i, j: 1))


@pytest.mark.parametrize("edges", [
    [(0, 0, 1)],
    [(0, 1, 1), (1, 0, 2)],
    [(0, 5, 1)],
])
def test_bad_input(edges):
    with pytest.raises(ValueError):
        min_weight_perfect_matching(2, edges)


def test_match_odd_vertices_carries_paths(path_graph):
    dm = pairwise_shortest_paths(path_graph, ["a", "d"])
    m = match_odd_vertices(dm)
    assert len(m) == 1
    (pair,) = m.pairs
    assert (pair.u, pair.v, pair.cost) == ("a", "d", 9)
    assert pair.path.edges == (0, 1, 2)
    assert m.cost == 9
    assert m.mate("d") == "a"
    assert m.mate("a") == "d"
    with pytest.raises(KeyError):
        m.mate("b")


def test_match_odd_vertices_on_street_graph():
    g = random_graph(24, p=0.2, seed=11, weighted=True, weight_range=(1, 30), integer_weights=True)
    odd = g.odd_vertices()
    dm = pairwise_shortest_paths(g, odd)
    m = match_odd_vertices(dm)
    assert sorted(v for p in m for v in (p.u, p.v)) == sorted(odd)

    K = nx.Graph()
    for sp in dm.pairs():
        K.add_edge(sp.source, sp.target, weight=sp.length)
    expected = sum(K[u][v]["weight"] for u, v in nx.min_weight_matching(K))
    assert m.cost == expected


def test_no_odd_vertices(square):
    m = match_odd_vertices(pairwise_shortest_paths(square, []))
    assert len(m) == 0
    assert m.cost == 0
