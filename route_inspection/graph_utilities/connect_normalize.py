from typing import Hashable, Set

import networkx as nx

from ..graph_model import StreetGraph


def _largest_connected_component_nodes(graph: StreetGraph) -> Set[Hashable]:
    """
    Vertices of the largest connected component; on equal size the component
    holding the earliest-added vertex wins. Empty graph gives an empty set.
    """
    if len(graph) == 0:
        return set()
    comps = nx.connected_components(graph.to_networkx())
    largest = max(comps, key=lambda c: (len(c), -min(graph.vertex_index(v) for v in c)))
    return set(largest)


def connect_normalize(graph: StreetGraph) -> StreetGraph:
    """
    Return a new StreetGraph holding only the largest connected component of
    ``graph``. Vertex order, metadata and street ids are carried over, so a
    route on the result still reports the caller's street identifiers.
    """
    nodes = _largest_connected_component_nodes(graph)
    result = StreetGraph()
    for v in graph.vertices:
        if v in nodes:
            result.add_vertex(v, **graph.metadata(v))
    for e in graph.edges:
        if e.u in nodes:
            result.add_edge(e.u, e.v, e.weight, e.street_id)
    return result
