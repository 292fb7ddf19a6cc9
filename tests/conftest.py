import pytest

from route_inspection import StreetGraph


def brute_force_min_matching(vertices, dist):
    """Cheapest perfect matching by trying every pairing; fine up to 8 vertices."""
    def pairings(items):
        if not items:
            yield []
            return
        first = items[0]
        for i in range(1, len(items)):
            rest = items[1:i] + items[i + 1:]
            for tail in pairings(rest):
                yield [(first, items[i])] + tail

    best = None
    for pairing in pairings(list(vertices)):
        cost = sum(dist(u, v) for u, v in pairing)
        if best is None or cost < best:
            best = cost
    return best


def edge_copies(route):
    """Multiset of edge indices walked by a route."""
    counts = {}
    for step in route.steps:
        counts[step.edge_index] = counts.get(step.edge_index, 0) + 1
    return counts


def assert_closed_walk(route):
    walk = route.walk
    assert walk[0] == walk[-1] == route.start
    for step, a, b in zip(route.steps, walk, walk[1:]):
        assert (step.tail, step.head) == (a, b)


@pytest.fixture
def square():
    # 4-cycle, every vertex already even
    return StreetGraph.from_edges([(1, 2, 1), (2, 3, 1), (3, 4, 1), (4, 1, 1)])


@pytest.fixture
def bowtie():
    # two triangles sharing vertex 3
    return StreetGraph.from_edges([
        (1, 2, 1), (2, 3, 1), (3, 1, 1),
        (3, 4, 1), (4, 5, 1), (5, 3, 1),
    ])


@pytest.fixture
def square_with_diagonal():
    return StreetGraph.from_edges([
        (1, 2, 1), (2, 3, 1), (3, 4, 1), (4, 1, 1), (1, 3, 1.5),
    ])


@pytest.fixture
def path_graph():
    # a-b-c-d, odd ends a and d
    return StreetGraph.from_edges([("a", "b", 2), ("b", "c", 3), ("c", "d", 4)])
