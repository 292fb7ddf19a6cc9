from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import networkx as nx

from .errors import DisconnectedGraph, InvalidGraph


Number = Union[int, float]


@dataclass(frozen=True)
class Edge:
    """One street segment. Parallel segments are separate records."""
    index: int
    u: Hashable
    v: Hashable
    weight: Number
    street_id: Any

    def other(self, x: Hashable) -> Hashable:
        if x == self.u:
            return self.v
        if x == self.v:
            return self.u
        raise ValueError(f"vertex {x!r} is not an endpoint of edge {self.index}")

    @property
    def endpoints(self) -> Tuple[Hashable, Hashable]:
        return (self.u, self.v)


def _check_weight(weight: Any) -> Number:
    # bool is an int subclass but never a length
    if isinstance(weight, bool) or not isinstance(weight, numbers.Real):
        raise InvalidGraph(f"edge weight must be a number, got {weight!r}")
    if not math.isfinite(weight):
        raise InvalidGraph(f"edge weight must be finite, got {weight!r}")
    if weight < 0:
        raise InvalidGraph(f"edge weight must be non-negative, got {weight!r}")
    return weight


class StreetGraph:
    """
    Undirected weighted street multigraph backed by a networkx MultiGraph.

    Edges are keyed by their index in insertion order; vertices keep their
    insertion order as a stable index, which every later stage uses to break
    ties deterministically.
    """

    def __init__(self) -> None:
        self._graph = nx.MultiGraph()
        self._edges: List[Edge] = []
        self._index: Dict[Hashable, int] = {}
        self._order: List[Hashable] = []

    # --- construction ---

    def add_vertex(self, v: Hashable, **metadata: Any) -> None:
        """Add vertex ``v``; re-adding an existing vertex merges its metadata."""
        if v is None:
            raise InvalidGraph("vertex identifier must not be None")
        try:
            known = v in self._index
        except TypeError:
            raise InvalidGraph(f"vertex identifier must be hashable, got {v!r}") from None
        if not known:
            self._index[v] = len(self._order)
            self._order.append(v)
        self._graph.add_node(v, **metadata)

    def add_edge(self, u: Hashable, v: Hashable, weight: Number,
                 street_id: Any = None) -> Edge:
        self._require_vertex(u)
        self._require_vertex(v)
        if u == v:
            raise InvalidGraph(f"self-loop on vertex {u!r} is not allowed")
        weight = _check_weight(weight)

        index = len(self._edges)
        edge = Edge(index=index, u=u, v=v, weight=weight,
                    street_id=index if street_id is None else street_id)
        self._edges.append(edge)
        self._graph.add_edge(u, v, key=index, weight=weight, street_id=edge.street_id)
        return edge

    @classmethod
    def from_edges(cls, edges: Iterable[Sequence[Any]],
                   vertices: Optional[Iterable[Hashable]] = None) -> "StreetGraph":
        """
        Build a graph from ``(u, v, weight)`` or ``(u, v, weight, street_id)``
        tuples. With ``vertices`` given, edges may only reference those;
        otherwise vertices are added in order of first appearance.
        """
        graph = cls()
        if vertices is not None:
            for v in vertices:
                graph.add_vertex(v)
        for item in edges:
            if len(item) == 3:
                u, v, w = item
                sid = None
            elif len(item) == 4:
                u, v, w, sid = item
            else:
                raise InvalidGraph(f"edge must be (u, v, weight[, street_id]), got {item!r}")
            if vertices is None:
                for x in (u, v):
                    if not graph.has_vertex(x):
                        graph.add_vertex(x)
            graph.add_edge(u, v, w, sid)
        return graph

    @classmethod
    def from_networkx(cls, G: nx.Graph, weight: str = "weight",
                      street_id: str = "street_id",
                      default_weight: Number = 1.0) -> "StreetGraph":
        """Convert a networkx Graph or MultiGraph; node attributes become metadata."""
        if G.is_directed():
            raise InvalidGraph("directed graphs are not supported")
        graph = cls()
        for node, attrs in G.nodes(data=True):
            graph.add_vertex(node, **dict(attrs))
        for u, v, attrs in G.edges(data=True):
            graph.add_edge(u, v, attrs.get(weight, default_weight), attrs.get(street_id))
        return graph

    def to_networkx(self) -> nx.MultiGraph:
        H = nx.MultiGraph()
        for v in self._order:
            H.add_node(v, **self.metadata(v))
        for e in self._edges:
            H.add_edge(e.u, e.v, key=e.index, weight=e.weight, street_id=e.street_id)
        return H

    # --- queries ---

    @property
    def vertices(self) -> Tuple[Hashable, ...]:
        return tuple(self._order)

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return tuple(self._edges)

    def number_of_vertices(self) -> int:
        return len(self._order)

    def number_of_edges(self) -> int:
        return len(self._edges)

    def has_vertex(self, v: Hashable) -> bool:
        try:
            return v in self._index
        except TypeError:
            return False

    def __contains__(self, v: Hashable) -> bool:
        return self.has_vertex(v)

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._order)

    def vertex_index(self, v: Hashable) -> int:
        self._require_vertex(v)
        return self._index[v]

    def metadata(self, v: Hashable) -> Dict[str, Any]:
        self._require_vertex(v)
        return dict(self._graph.nodes[v])

    def edge(self, index: int) -> Edge:
        return self._edges[index]

    def degree(self, v: Hashable) -> int:
        self._require_vertex(v)
        return int(self._graph.degree(v))

    def neighbors(self, v: Hashable) -> List[Hashable]:
        self._require_vertex(v)
        return sorted(self._graph.neighbors(v), key=self._index.__getitem__)

    def edges_between(self, u: Hashable, v: Hashable) -> List[Edge]:
        self._require_vertex(u)
        self._require_vertex(v)
        data = self._graph.get_edge_data(u, v)
        if data is None:
            return []
        return [self._edges[k] for k in sorted(data)]

    def incident_edges(self, v: Hashable) -> List[Edge]:
        self._require_vertex(v)
        keys = sorted(k for _, _, k in self._graph.edges(v, keys=True))
        return [self._edges[k] for k in keys]

    def total_weight(self) -> Number:
        return sum((e.weight for e in self._edges), 0)

    def odd_vertices(self) -> List[Hashable]:
        return [v for v in self._order if self._graph.degree(v) % 2 == 1]

    def is_eulerian(self) -> bool:
        return self.is_connected() and not self.odd_vertices()

    def number_of_components(self) -> int:
        if not self._order:
            return 0
        return nx.number_connected_components(self._graph)

    def is_connected(self) -> bool:
        return self.number_of_components() == 1

    def validate(self) -> None:
        """Raise unless the graph is a non-empty single connected component."""
        if not self._order:
            raise InvalidGraph("graph has no vertices", stage="validate")
        components = self.number_of_components()
        if components != 1:
            raise DisconnectedGraph(
                f"graph has {components} connected components; route inspection "
                "needs a single component",
                components=components, stage="validate")

    def _require_vertex(self, v: Hashable) -> None:
        if not self.has_vertex(v):
            raise InvalidGraph(f"unknown vertex {v!r}")

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(vertices={len(self._order)}, "
                f"edges={len(self._edges)})")
