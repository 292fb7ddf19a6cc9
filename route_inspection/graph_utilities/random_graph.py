from __future__ import annotations

import math
import random
from typing import Dict, Optional, Tuple

import networkx as nx

from ..graph_model import Number, StreetGraph
from ..matching import match_odd_vertices
from ..shortest_paths import pairwise_shortest_paths


def _draw_weight(rng: random.Random, weighted: bool, weight_range: Tuple[float, float],
                 integer_weights: bool) -> Number:
    if not weighted:
        return 1 if integer_weights else 1.0
    lo, hi = weight_range
    if integer_weights:
        return rng.randint(int(lo), int(hi))
    return rng.uniform(lo, hi)


def random_graph(
    n: int,
    p: float = 0.2,
    seed: Optional[int] = None,
    weighted: bool = False,
    weight_range: Tuple[float, float] = (1.0, 1.0),
    integer_weights: bool = False,
    ensure_connected: bool = True,
    pos_layout: str = "random",  # 'random' | 'circle'
    compact_scale: float = 1.0,
) -> StreetGraph:
    """
    Return a random street graph on vertices 0..n-1 with a 2D 'pos' per vertex.

    Each pair gets a street with probability p. With ensure_connected the
    components are chained together through a random member of each, so the
    result is always a valid solver input.

    Layout options:
      - 'random': uniform in the square [-scale, scale]
      - 'circle': evenly spaced on a circle of radius scale
    """
    rng = random.Random(seed)
    G = nx.Graph()
    G.add_nodes_from(range(n))

    for i in range(n):
        for j in range(i + 1, n):
            if rng.random() < p:
                G.add_edge(i, j, weight=_draw_weight(rng, weighted, weight_range, integer_weights))

    if ensure_connected and n > 0:
        comps = [sorted(c) for c in nx.connected_components(G)]
        if len(comps) > 1:
            reps = [rng.choice(nodes) for nodes in comps]
            for a, b in zip(reps, reps[1:]):
                G.add_edge(a, b, weight=_draw_weight(rng, weighted, weight_range, integer_weights))

    pos: Dict[int, Tuple[float, float]] = {}
    if pos_layout == "circle":
        for node in G.nodes():
            theta = 2 * math.pi * (node / max(1, n))
            pos[node] = (compact_scale * math.cos(theta), compact_scale * math.sin(theta))
    elif pos_layout == "random":
        for node in G.nodes():
            pos[node] = (rng.uniform(-compact_scale, compact_scale),
                         rng.uniform(-compact_scale, compact_scale))
    else:
        raise ValueError(f"unknown pos_layout {pos_layout!r}")
    nx.set_node_attributes(G, pos, name="pos")

    return StreetGraph.from_networkx(G)


def random_eulerian(
    n: int,
    p: float = 0.2,
    seed: Optional[int] = None,
    weighted: bool = False,
    weight_range: Tuple[float, float] = (1.0, 1.0),
    integer_weights: bool = False,
    pos_layout: str = "random",
    compact_scale: float = 1.0,
) -> StreetGraph:
    """
    Random connected street graph in which every vertex has even degree.

    Starts from random_graph and doubles the streets on a minimum matching
    of its odd vertices, so the doubled streets are ordinary parallel edges.
    """
    graph = random_graph(n, p=p, seed=seed, weighted=weighted, weight_range=weight_range,
                         integer_weights=integer_weights, ensure_connected=True,
                         pos_layout=pos_layout, compact_scale=compact_scale)
    odd = graph.odd_vertices()
    if not odd:
        return graph

    matching = match_odd_vertices(pairwise_shortest_paths(graph, odd))
    for pair in matching:
        for index in pair.path.edges:
            edge = graph.edge(index)
            graph.add_edge(edge.u, edge.v, edge.weight)

    odd_after = graph.odd_vertices()
    if odd_after:
        raise RuntimeError(f"Failed to make graph Eulerian; odd vertices remain: {odd_after}")
    return graph
