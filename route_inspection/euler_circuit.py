from __future__ import annotations

import logging
from typing import Hashable, List, NamedTuple, Optional, Tuple

from .augment import AugmentedGraph
from .errors import AugmentationInvariantViolation, DisconnectedAugmentedGraph, InvalidGraph


logger = logging.getLogger(__name__)


class Traversal(NamedTuple):
    edge: int
    tail: Hashable
    head: Hashable


def euler_circuit(augmented: AugmentedGraph,
                  start: Optional[Hashable] = None) -> List[Traversal]:
    """
    Hierholzer's algorithm over the edge copies of ``augmented``.

    Starts at ``start`` (default: the first vertex of the graph) and, at each
    vertex, leaves through the unused copy with the lowest edge index. The
    returned traversals form a closed walk using every copy exactly once.
    """
    graph = augmented.graph
    for v, d in augmented.degrees().items():
        if d % 2 == 1:
            raise AugmentationInvariantViolation(
                f"vertex {v!r} has odd degree {d}; no Euler circuit exists",
                vertex=v, degree=d, stage="euler_circuit")

    if start is None:
        if not graph.vertices:
            return []
        start = graph.vertices[0]
    elif not graph.has_vertex(start):
        raise InvalidGraph(f"start vertex {start!r} is not in the graph", stage="euler_circuit")

    remaining = list(augmented.multiplicities)
    incident = {v: [e.index for e in graph.incident_edges(v)] for v in graph.vertices}
    cursor = {v: 0 for v in graph.vertices}

    # each frame is (vertex, traversal that reached it)
    stack: List[Tuple[Hashable, Optional[Traversal]]] = [(start, None)]
    popped: List[Traversal] = []
    while stack:
        v, via = stack[-1]
        edges = incident[v]
        i = cursor[v]
        while i < len(edges) and remaining[edges[i]] == 0:
            i += 1
        cursor[v] = i
        if i == len(edges):
            stack.pop()
            if via is not None:
                popped.append(via)
            continue
        index = edges[i]
        remaining[index] -= 1
        w = graph.edge(index).other(v)
        stack.append((w, Traversal(index, v, w)))

    for index, left in enumerate(remaining):
        if left:
            raise DisconnectedAugmentedGraph(
                f"edge {index} has {left} unused copies after the walk from {start!r}",
                edge=index, details={"start": start, "unused": left})

    popped.reverse()
    logger.debug("euler circuit from %r uses %d edge copies", start, len(popped))
    return popped
