from __future__ import annotations

import logging
import math
from typing import Dict, Hashable, List, Tuple

import networkx as nx

from .errors import AugmentationInvariantViolation
from .graph_model import Edge, Number, StreetGraph
from .matching import Matching


logger = logging.getLogger(__name__)


class AugmentedGraph:
    """
    The original graph plus a traversal count per edge.

    Every edge starts at multiplicity 1; each matched shortest path that
    walks an edge adds one more copy. The original graph is never touched.
    """

    def __init__(self, graph: StreetGraph, multiplicity: List[int],
                 matching_cost: Number = 0) -> None:
        if len(multiplicity) != graph.number_of_edges():
            raise ValueError("one multiplicity per edge is required")
        self.graph = graph
        self._multiplicity = list(multiplicity)
        self.matching_cost = matching_cost

    def multiplicity(self, index: int) -> int:
        return self._multiplicity[index]

    @property
    def multiplicities(self) -> Tuple[int, ...]:
        return tuple(self._multiplicity)

    def number_of_edge_copies(self) -> int:
        return sum(self._multiplicity)

    def degrees(self) -> Dict[Hashable, int]:
        deg = {v: 0 for v in self.graph.vertices}
        for e in self.graph.edges:
            m = self._multiplicity[e.index]
            deg[e.u] += m
            deg[e.v] += m
        return deg

    def degree(self, v: Hashable) -> int:
        return sum(self._multiplicity[e.index] for e in self.graph.incident_edges(v))

    def odd_vertices(self) -> List[Hashable]:
        return [v for v, d in self.degrees().items() if d % 2 == 1]

    def total_weight(self) -> Number:
        return sum((e.weight * self._multiplicity[e.index] for e in self.graph.edges), 0)

    def duplicated_edges(self) -> List[Tuple[Edge, int]]:
        """Edges walked more than once, with their multiplicity, in index order."""
        return [(e, self._multiplicity[e.index]) for e in self.graph.edges
                if self._multiplicity[e.index] > 1]

    def to_networkx(self) -> nx.MultiGraph:
        """One parallel MultiGraph edge per copy; ``copy`` is 0 for the original street."""
        H = nx.MultiGraph()
        for v in self.graph.vertices:
            H.add_node(v, **self.graph.metadata(v))
        for e in self.graph.edges:
            for copy in range(self._multiplicity[e.index]):
                H.add_edge(e.u, e.v, key=(e.index, copy), weight=e.weight,
                           street_id=e.street_id, edge_index=e.index, copy=copy)
        return H

    def check(self) -> None:
        """Raise AugmentationInvariantViolation on an odd vertex or a weight mismatch."""
        for v, d in self.degrees().items():
            if d % 2 == 1:
                raise AugmentationInvariantViolation(
                    f"vertex {v!r} has odd degree {d} after augmentation",
                    vertex=v, degree=d)

        expected = self.graph.total_weight() + self.matching_cost
        actual = self.total_weight()
        if isinstance(expected, int) and isinstance(actual, int):
            agrees = expected == actual
        else:
            agrees = math.isclose(expected, actual, rel_tol=1e-9, abs_tol=1e-9)
        if not agrees:
            raise AugmentationInvariantViolation(
                f"augmented weight {actual} differs from original plus matching cost {expected}",
                details={"expected": expected, "actual": actual})


def augment(graph: StreetGraph, matching: Matching) -> AugmentedGraph:
    """Add one copy of every edge on every matched path, then check the result is even."""
    multiplicity = [1] * graph.number_of_edges()
    for pair in matching:
        for index in pair.path.edges:
            multiplicity[index] += 1

    augmented = AugmentedGraph(graph, multiplicity, matching.cost)
    augmented.check()
    logger.info("augmented graph: %d edge copies, %d streets repeated",
                augmented.number_of_edge_copies(), len(augmented.duplicated_edges()))
    return augmented
