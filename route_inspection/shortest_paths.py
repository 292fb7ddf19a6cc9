from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Sequence, Tuple

import networkx as nx

from .errors import DisconnectedGraph
from .graph_model import Edge, Number, StreetGraph


logger = logging.getLogger(__name__)

Pair = Tuple[Hashable, Hashable]


@dataclass(frozen=True)
class ShortestPath:
    """One realising path: vertices from source to target and the edge indices walked."""
    source: Hashable
    target: Hashable
    length: Number
    vertices: Tuple[Hashable, ...]
    edges: Tuple[int, ...]

    def reversed(self) -> "ShortestPath":
        return ShortestPath(self.target, self.source, self.length,
                            tuple(reversed(self.vertices)), tuple(reversed(self.edges)))


class DistanceMatrix:
    """
    Read-only pairwise shortest distances over a fixed vertex list.

    Each unordered pair is stored once, oriented from the lower to the higher
    position in ``vertices``; lookups in either direction are served from it.
    """

    def __init__(self, vertices: Sequence[Hashable], paths: Dict[Pair, ShortestPath]) -> None:
        self._vertices = tuple(vertices)
        self._position = {v: i for i, v in enumerate(self._vertices)}
        self._paths = dict(paths)

    @property
    def vertices(self) -> Tuple[Hashable, ...]:
        return self._vertices

    def __len__(self) -> int:
        return len(self._vertices)

    def path(self, u: Hashable, v: Hashable) -> ShortestPath:
        if u == v:
            return ShortestPath(u, v, 0, (u,), ())
        if self._position[u] < self._position[v]:
            return self._paths[(u, v)]
        return self._paths[(v, u)].reversed()

    def distance(self, u: Hashable, v: Hashable) -> Number:
        return self.path(u, v).length

    def pairs(self) -> Iterator[ShortestPath]:
        for i, u in enumerate(self._vertices):
            for v in self._vertices[i + 1:]:
                yield self._paths[(u, v)]


def routing_view(graph: StreetGraph) -> nx.Graph:
    """
    Simple-graph view used for searches: parallel edges collapse to the
    cheapest one (lowest index on equal weight). Nodes are inserted in vertex
    index order, so position in the view is the vertex index.
    """
    best: Dict[Pair, Edge] = {}
    for edge in graph.edges:
        a, b = edge.u, edge.v
        if graph.vertex_index(a) > graph.vertex_index(b):
            a, b = b, a
        current = best.get((a, b))
        if current is None or edge.weight < current.weight:
            best[(a, b)] = edge

    view = nx.Graph()
    view.add_nodes_from(graph.vertices)
    for a, b in sorted(best, key=lambda p: (graph.vertex_index(p[0]), graph.vertex_index(p[1]))):
        edge = best[(a, b)]
        view.add_edge(a, b, weight=edge.weight, edge_index=edge.index)
    return view


def _walk_back(pred: Dict[Hashable, List[Hashable]], order: Dict[Hashable, int],
               source: Hashable, target: Hashable) -> Tuple[Hashable, ...]:
    # pred lists every equal-length predecessor; take the lowest vertex index.
    # Predecessors are always settled earlier, so the walk cannot loop.
    path = [target]
    while path[-1] != source:
        path.append(min(pred[path[-1]], key=order.__getitem__))
    return tuple(reversed(path))


def _search(view: nx.Graph, source: Hashable,
            targets: Sequence[Hashable]) -> List[ShortestPath]:
    pred, lengths = nx.dijkstra_predecessor_and_distance(view, source, weight="weight")
    order = {v: i for i, v in enumerate(view)}
    row = []
    for target in targets:
        if target not in lengths:
            raise DisconnectedGraph(
                f"vertex {target!r} is unreachable from {source!r}",
                stage="shortest_paths", details={"source": source, "target": target})
        vertices = _walk_back(pred, order, source, target)
        edges = tuple(view[a][b]["edge_index"] for a, b in zip(vertices, vertices[1:]))
        row.append(ShortestPath(source, target, lengths[target], vertices, edges))
    logger.debug("dijkstra from %r reached %d targets", source, len(row))
    return row


def pairwise_shortest_paths(graph: StreetGraph, vertices: Sequence[Hashable],
                            workers: int = 1) -> DistanceMatrix:
    """
    Shortest paths between every pair of ``vertices`` (typically the odd ones).

    Source ``i`` only searches for targets after it in ``vertices``; with
    ``workers > 1`` the searches run on a thread pool and rows are merged in
    source order, so the result matches the sequential run.
    """
    vertices = list(vertices)
    view = routing_view(graph)
    jobs = [(src, vertices[i + 1:]) for i, src in enumerate(vertices[:-1])]

    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            rows = list(pool.map(lambda job: _search(view, *job), jobs))
    else:
        rows = [_search(view, src, targets) for src, targets in jobs]

    paths: Dict[Pair, ShortestPath] = {}
    for row in rows:
        for sp in row:
            paths[(sp.source, sp.target)] = sp

    logger.debug("computed %d shortest paths between %d vertices", len(paths), len(vertices))
    return DistanceMatrix(vertices, paths)
