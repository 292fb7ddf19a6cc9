"""
Minimum-weight perfect matching with Edmonds' primal-dual blossom algorithm.

The solver works on the maximisation form: weights are complemented
(``w' = max_w - w``) so that a maximum-weight perfect matching of the
complemented graph is a minimum-weight perfect matching of the input.
The dual step that would let a vertex dual run down to zero (and leave the
vertex single) is never taken, so every stage ends in an augmentation and
the result is perfect whenever the graph has a perfect matching.

Vertex duals are stored doubled so integer weights keep all arithmetic in
integers. Every choice scans vertices and edges in index order, so the same
input always produces the same matching.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import MatchingError
from .shortest_paths import DistanceMatrix, ShortestPath


logger = logging.getLogger(__name__)

Number = Union[int, float]
WeightedEdge = Tuple[int, int, Number]

_NONE = 0
_S = 1
_T = 2


@dataclass(frozen=True)
class MatchedPair:
    u: Hashable
    v: Hashable
    cost: Number
    path: ShortestPath


@dataclass(frozen=True)
class Matching:
    """Disjoint pairs covering every odd vertex once, each with its realising path."""
    pairs: Tuple[MatchedPair, ...] = ()

    @property
    def cost(self) -> Number:
        return sum((p.cost for p in self.pairs), 0)

    def mate(self, v: Hashable) -> Hashable:
        """Partner of ``v``; KeyError if ``v`` is not matched."""
        for p in self.pairs:
            if p.u == v:
                return p.v
            if p.v == v:
                return p.u
        raise KeyError(v)

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[MatchedPair]:
        return iter(self.pairs)


class _Blossom:
    """A single vertex, or (as _NonTrivialBlossom) an odd cycle of sub-blossoms."""

    def __init__(self, base: int) -> None:
        # enclosing blossom, None while top-level
        self.parent: Optional[_NonTrivialBlossom] = None
        self.base = base
        self.label = _NONE
        # (x, y) with y inside this blossom and x in its tree parent
        self.tree_edge: Optional[Tuple[int, int]] = None
        # least-slack edge to another top-level S-blossom, or -1
        self.best_edge = -1
        self.marker = False

    def vertices(self) -> List[int]:
        return [self.base]


class _NonTrivialBlossom(_Blossom):

    def __init__(self, subblossoms: List[_Blossom], edges: List[Tuple[int, int]]) -> None:
        super().__init__(subblossoms[0].base)
        assert len(subblossoms) == len(edges) >= 3
        assert len(subblossoms) % 2 == 1
        # subblossoms[0] holds the base; edges[i] links subblossoms[i] to [i+1]
        self.subblossoms = subblossoms
        self.edges = edges
        self.dual: Number = 0
        self.best_edge_set: Optional[List[int]] = None

    def vertices(self) -> List[int]:
        stack: List[_NonTrivialBlossom] = [self]
        found: List[int] = []
        while stack:
            b = stack.pop()
            for sub in b.subblossoms:
                if isinstance(sub, _NonTrivialBlossom):
                    stack.append(sub)
                else:
                    found.append(sub.base)
        return found


class _MatchingContext:
    """All state of one solver run. Nothing outlives the call."""

    def __init__(self, num_vertex: int, edges: List[WeightedEdge]) -> None:
        self.num_vertex = num_vertex
        self.edges = edges
        self.adjacent: List[List[int]] = [[] for _ in range(num_vertex)]
        for e, (x, y, _w) in enumerate(edges):
            self.adjacent[x].append(e)
            self.adjacent[y].append(e)
        self.integer_weights = all(isinstance(w, int) for (_x, _y, w) in edges)

        self.mate: List[int] = num_vertex * [-1]
        self.trivial: List[_Blossom] = [_Blossom(x) for x in range(num_vertex)]
        self.nontrivial: List[_NonTrivialBlossom] = []
        self.top: List[_Blossom] = list(self.trivial)

        max_weight = max(w for (_x, _y, w) in edges)
        self.dual_2x: List[Number] = num_vertex * [max_weight]

        # least-slack edge from each non-S vertex to any S-vertex, or -1
        self.vertex_best_edge: List[int] = num_vertex * [-1]
        # S-vertices waiting to be scanned (used as a stack)
        self.queue: List[int] = []
        self.stages = 0
        self.blossoms_made = 0

    def slack_2x(self, e: int) -> Number:
        x, y, w = self.edges[e]
        return self.dual_2x[x] + self.dual_2x[y] - 2 * w

    # --- least-slack edge tracking ---

    def lset_reset(self) -> None:
        for x in range(self.num_vertex):
            self.vertex_best_edge[x] = -1
        for b in self.trivial:
            b.best_edge = -1
        for nb in self.nontrivial:
            nb.best_edge = -1
            nb.best_edge_set = None

    def lset_add_vertex_edge(self, y: int, e: int, slack: Number) -> None:
        best = self.vertex_best_edge[y]
        if best == -1 or slack < self.slack_2x(best):
            self.vertex_best_edge[y] = e

    def lset_best_vertex_edge(self) -> Tuple[int, Number]:
        best_e, best_slack = -1, 0
        for x in range(self.num_vertex):
            if self.top[x].label == _NONE:
                e = self.vertex_best_edge[x]
                if e != -1:
                    slack = self.slack_2x(e)
                    if best_e == -1 or slack < best_slack:
                        best_e, best_slack = e, slack
        return best_e, best_slack

    def lset_new_blossom(self, b: _Blossom) -> None:
        assert b.best_edge == -1
        if isinstance(b, _NonTrivialBlossom):
            b.best_edge_set = []

    def lset_add_blossom_edge(self, b: _Blossom, e: int, slack: Number) -> None:
        if b.best_edge == -1 or slack < self.slack_2x(b.best_edge):
            b.best_edge = e
        if isinstance(b, _NonTrivialBlossom):
            assert b.best_edge_set is not None
            b.best_edge_set.append(e)

    def lset_merge_blossoms(self, blossom: _NonTrivialBlossom) -> None:
        """Collect the least-slack edge from the new blossom to each other S-blossom."""
        to_blossom: Dict[int, int] = {}
        slack_to_blossom: Dict[int, Number] = {}
        best_e, best_slack = -1, 0

        for sub in blossom.subblossoms:
            # former T-subs get their edges when their vertices are scanned
            if sub.label != _S:
                continue
            if isinstance(sub, _NonTrivialBlossom):
                assert sub.best_edge_set is not None
                candidates = sub.best_edge_set
                sub.best_edge_set = None
            else:
                candidates = self.adjacent[sub.base]

            for e in candidates:
                x, y, _w = self.edges[e]
                bx, by = self.top[x], self.top[y]
                if bx is by:
                    continue
                other = by if bx is blossom else bx
                if other.label != _S:
                    continue
                slack = self.slack_2x(e)
                key = other.base
                if key not in to_blossom or slack < slack_to_blossom[key]:
                    to_blossom[key] = e
                    slack_to_blossom[key] = slack
                if best_e == -1 or slack < best_slack:
                    best_e, best_slack = e, slack

        blossom.best_edge_set = [to_blossom[k] for k in sorted(to_blossom)]
        blossom.best_edge = best_e

    def lset_best_blossom_edge(self) -> Tuple[int, Number]:
        best_e, best_slack = -1, 0
        for b in self.trivial + self.nontrivial:
            if b.label == _S and b.parent is None and b.best_edge != -1:
                slack = self.slack_2x(b.best_edge)
                if best_e == -1 or slack < best_slack:
                    best_e, best_slack = b.best_edge, slack
        return best_e, best_slack

    # --- alternating trees and blossoms ---

    def reset_stage(self) -> None:
        for b in self.trivial + self.nontrivial:
            b.label = _NONE
            b.tree_edge = None
        self.queue.clear()
        self.lset_reset()

    def trace_alternating_paths(self, x: int, y: int) -> List[Tuple[int, int]]:
        """
        Walk up the alternating trees from both ends of the S-S edge (x, y),
        one step at a time on each side.

        Returns an odd cycle through a new blossom when both ends share a
        tree, otherwise an augmenting path between two single vertices.
        """
        marked: List[_Blossom] = []
        xedges: List[Tuple[int, int]] = [(x, y)]
        yedges: List[Tuple[int, int]] = [(y, x)]
        common: Optional[_Blossom] = None

        while x != -1 or y != -1:
            bx = self.top[x]
            if bx.marker:
                common = bx
                break
            bx.marker = True
            marked.append(bx)
            if bx.tree_edge is None:
                x = -1
            else:
                xedges.append(bx.tree_edge)
                x = bx.tree_edge[0]
            if y != -1:
                x, y = y, x
                xedges, yedges = yedges, xedges

        for b in marked:
            b.marker = False

        if common is not None:
            assert self.top[xedges[-1][0]] is common
            while self.top[yedges[-1][0]] is not common:
                yedges.pop()

        path = xedges[::-1] + [(q, p) for (p, q) in yedges[1:]]
        assert len(path) % 2 == 1
        return path

    def make_blossom(self, path: List[Tuple[int, int]]) -> None:
        subblossoms = [self.top[x] for (x, _y) in path]
        assert subblossoms[0] is self.top[path[-1][1]]

        blossom = _NonTrivialBlossom(subblossoms, path)
        self.nontrivial.append(blossom)
        for sub in subblossoms:
            sub.parent = blossom
        for x in blossom.vertices():
            self.top[x] = blossom

        assert subblossoms[0].label == _S
        blossom.label = _S
        blossom.tree_edge = subblossoms[0].tree_edge

        # former T-vertices are S now and need scanning
        for sub in subblossoms:
            if sub.label == _T:
                self.queue.extend(sub.vertices())

        self.lset_merge_blossoms(blossom)
        self.blossoms_made += 1
        logger.debug("blossom with %d sub-blossoms around base %d",
                     len(subblossoms), blossom.base)

    @staticmethod
    def path_to_base(blossom: _NonTrivialBlossom,
                     sub: _Blossom) -> Tuple[List[_Blossom], List[Tuple[int, int]]]:
        """Even-length alternating path through ``blossom`` from ``sub`` to its base."""
        nodes: List[_Blossom] = [sub]
        edges: List[Tuple[int, int]] = []
        p = blossom.subblossoms.index(sub)
        n = len(blossom.subblossoms)
        while p != 0:
            if p % 2 == 0:
                edges.append(blossom.edges[p - 1][::-1])
                nodes.append(blossom.subblossoms[p - 1])
                edges.append(blossom.edges[p - 2][::-1])
                nodes.append(blossom.subblossoms[p - 2])
                p -= 2
            else:
                edges.append(blossom.edges[p])
                nodes.append(blossom.subblossoms[p + 1])
                edges.append(blossom.edges[p + 1])
                nodes.append(blossom.subblossoms[(p + 2) % n])
                p = (p + 2) % n
        return nodes, edges

    def _release(self, sub: _Blossom) -> None:
        sub.parent = None
        for x in sub.vertices():
            self.top[x] = sub

    def expand_t_blossom(self, blossom: _NonTrivialBlossom) -> None:
        """Dissolve a T-blossom whose dual hit zero and relabel the path through it."""
        assert blossom.parent is None and blossom.label == _T
        for sub in blossom.subblossoms:
            assert sub.label == _NONE
            self._release(sub)

        assert blossom.tree_edge is not None
        _x, y = blossom.tree_edge
        sub = self.top[y]
        sub.label = _T
        sub.tree_edge = blossom.tree_edge

        nodes, edges = self.path_to_base(blossom, sub)
        for p in range(0, len(edges), 2):
            _y, x = edges[p]
            self.assign_label_s(x)
            nxt = nodes[p + 2]
            nxt.label = _T
            nxt.tree_edge = edges[p + 1]

        self.nontrivial.remove(blossom)

    def expand_zero_dual_blossoms(self) -> None:
        """At stage end, dissolve top-level blossoms (and nested ones) whose dual is zero."""
        stack = [b for b in self.nontrivial if b.parent is None and b.dual == 0]
        while stack:
            blossom = stack.pop()
            for sub in blossom.subblossoms:
                if isinstance(sub, _NonTrivialBlossom) and sub.dual == 0:
                    sub.parent = None
                    stack.append(sub)
                else:
                    self._release(sub)
            self.nontrivial.remove(blossom)

    # --- augmenting ---

    def _augment_one(self, blossom: _NonTrivialBlossom, sub: _Blossom,
                     stack: List[Tuple[_NonTrivialBlossom, _Blossom]]) -> None:
        nodes, edges = self.path_to_base(blossom, sub)
        for p in range(0, len(edges), 2):
            x, y = edges[p + 1]
            self.mate[x] = y
            self.mate[y] = x
            bx, by = nodes[p + 1], nodes[p + 2]
            if isinstance(bx, _NonTrivialBlossom):
                stack.append((bx, self.trivial[x]))
            if isinstance(by, _NonTrivialBlossom):
                stack.append((by, self.trivial[y]))

        # rotate so the sub-blossom holding the new base comes first
        p = blossom.subblossoms.index(sub)
        blossom.subblossoms = blossom.subblossoms[p:] + blossom.subblossoms[:p]
        blossom.edges = blossom.edges[p:] + blossom.edges[:p]
        blossom.base = sub.base

    def augment_blossom(self, blossom: _NonTrivialBlossom, sub: _Blossom) -> None:
        stack: List[Tuple[_NonTrivialBlossom, _Blossom]] = [(blossom, sub)]
        while stack:
            outer, sub = stack.pop()
            assert sub.parent is not None
            inner = sub.parent
            if inner is not outer:
                stack.append((outer, inner))
            self._augment_one(inner, sub, stack)

    def augment_matching(self, path: List[Tuple[int, int]]) -> None:
        for x in (path[0][0], path[-1][1]):
            assert self.mate[self.top[x].base] == -1
        for x, y in path[0::2]:
            bx = self.top[x]
            if isinstance(bx, _NonTrivialBlossom):
                self.augment_blossom(bx, self.trivial[x])
            by = self.top[y]
            if isinstance(by, _NonTrivialBlossom):
                self.augment_blossom(by, self.trivial[y])
            self.mate[x] = y
            self.mate[y] = x

    # --- labelling ---

    def assign_label_s(self, x: int) -> None:
        bx = self.top[x]
        assert bx.label == _NONE
        bx.label = _S
        y = self.mate[x]
        if y == -1:
            assert bx.base == x
            bx.tree_edge = None
        else:
            assert self.top[y].label == _T
            bx.tree_edge = (y, x)
        self.lset_new_blossom(bx)
        self.queue.extend(bx.vertices())

    def assign_label_t(self, x: int, y: int) -> None:
        assert self.top[x].label == _S
        by = self.top[y]
        assert by.label == _NONE
        by.label = _T
        by.tree_edge = (x, y)
        z = self.mate[by.base]
        assert z != -1
        self.assign_label_s(z)

    def add_s_to_s_edge(self, x: int, y: int) -> Optional[List[Tuple[int, int]]]:
        path = self.trace_alternating_paths(x, y)
        if self.top[path[0][0]] is self.top[path[-1][1]]:
            self.make_blossom(path)
            return None
        return path

    def scan(self) -> Optional[List[Tuple[int, int]]]:
        """Grow the trees through tight edges until the queue drains or a path turns up."""
        while self.queue:
            x = self.queue.pop()
            assert self.top[x].label == _S
            for e in self.adjacent[x]:
                p, q, _w = self.edges[e]
                y = q if p == x else p
                bx, by = self.top[x], self.top[y]
                if bx is by:
                    continue
                ylabel = by.label
                slack = self.slack_2x(e)
                if slack <= 0:
                    if ylabel == _NONE:
                        self.assign_label_t(x, y)
                    elif ylabel == _S:
                        path = self.add_s_to_s_edge(x, y)
                        if path is not None:
                            return path
                elif ylabel == _S:
                    self.lset_add_blossom_edge(bx, e, slack)
                if ylabel != _S:
                    self.lset_add_vertex_edge(y, e, slack)
        return None

    # --- dual updates ---

    def dual_delta(self) -> Tuple[int, Number, int, Optional[_NonTrivialBlossom]]:
        """
        Smallest admissible dual change (doubled) and what it unlocks:
        2 = S-to-free edge, 3 = S-to-S edge, 4 = T-blossom dual. 0 means none.
        """
        delta_type = 0
        delta_2x: Number = math.inf
        delta_edge = -1
        delta_blossom: Optional[_NonTrivialBlossom] = None

        e, slack = self.lset_best_vertex_edge()
        if e != -1:
            delta_type, delta_2x, delta_edge = 2, slack, e

        e, slack = self.lset_best_blossom_edge()
        if e != -1:
            if self.integer_weights:
                # S-vertices share dual parity, so S-S slack is even
                assert slack % 2 == 0
                slack = slack // 2
            else:
                slack = slack / 2
            if slack < delta_2x:
                delta_type, delta_2x, delta_edge = 3, slack, e

        for b in self.nontrivial:
            if b.label == _T and b.parent is None and b.dual < delta_2x:
                delta_type, delta_2x, delta_blossom = 4, b.dual, b

        return delta_type, delta_2x, delta_edge, delta_blossom

    def apply_delta(self, delta_2x: Number) -> None:
        for x in range(self.num_vertex):
            label = self.top[x].label
            if label == _S:
                self.dual_2x[x] -= delta_2x
            elif label == _T:
                self.dual_2x[x] += delta_2x
        for b in self.nontrivial:
            if b.parent is None:
                if b.label == _S:
                    b.dual += delta_2x
                elif b.label == _T:
                    b.dual -= delta_2x

    def run_stage(self) -> bool:
        """Grow trees from every single vertex and augment once. False when perfect."""
        for x in range(self.num_vertex):
            if self.mate[x] == -1:
                self.assign_label_s(x)
        if not self.queue:
            return False

        self.stages += 1
        while True:
            path = self.scan()
            if path is not None:
                break

            delta_type, delta_2x, delta_edge, delta_blossom = self.dual_delta()
            if delta_type == 0:
                single = [x for x in range(self.num_vertex) if self.mate[x] == -1]
                raise MatchingError(
                    "graph has no perfect matching",
                    details={"unmatched": single, "stage_number": self.stages})

            self.apply_delta(delta_2x)

            if delta_type == 2:
                x, y, _w = self.edges[delta_edge]
                if self.top[x].label != _S:
                    x, y = y, x
                self.assign_label_t(x, y)
            elif delta_type == 3:
                x, y, _w = self.edges[delta_edge]
                path = self.add_s_to_s_edge(x, y)
                if path is not None:
                    break
            else:
                assert delta_blossom is not None
                self.expand_t_blossom(delta_blossom)

        self.augment_matching(path)
        self.expand_zero_dual_blossoms()
        self.reset_stage()
        return True


def _verify_optimum(ctx: _MatchingContext) -> None:
    """
    Check the LP optimality certificate of a perfect matching: blossom
    duals non-negative, no edge with negative slack, matched edges tight,
    and every blossom with positive dual full.
    """
    def fail(message: str, **details) -> None:
        raise MatchingError(f"optimality check failed: {message}", details=details)

    for x in range(ctx.num_vertex):
        y = ctx.mate[x]
        if y == -1 or ctx.mate[y] != x:
            fail("matching is not perfect", vertex=x)
    for b in ctx.nontrivial:
        if b.dual < 0:
            fail("negative blossom dual", base=b.base, dual=b.dual)

    nvertex = {id(b): 0 for b in ctx.nontrivial}
    for x in range(ctx.num_vertex):
        b = ctx.trivial[x]
        while b.parent is not None:
            b = b.parent
            nvertex[id(b)] += 1

    nmatched = {id(b): 0 for b in ctx.nontrivial}
    seen = 0
    for e, (x, y, w) in enumerate(ctx.edges):
        xchain, ychain = [], []
        b = ctx.trivial[x]
        while b.parent is not None:
            b = b.parent
            xchain.append(b)
        b = ctx.trivial[y]
        while b.parent is not None:
            b = b.parent
            ychain.append(b)
        shared: List[_NonTrivialBlossom] = []
        for bx, by in zip(reversed(xchain), reversed(ychain)):
            if bx is not by:
                break
            shared.append(bx)

        slack = ctx.dual_2x[x] + ctx.dual_2x[y] - 2 * w + 2 * sum(b.dual for b in shared)
        if slack < 0:
            fail("edge with negative slack", edge=e, slack=slack)
        if ctx.mate[x] == y:
            seen += 1
            if slack != 0:
                fail("matched edge is not tight", edge=e, slack=slack)
            for b in shared:
                nmatched[id(b)] += 1

    if 2 * seen != ctx.num_vertex:
        fail("matched pairs are not edges of the graph", matched_edges=seen)
    for b in ctx.nontrivial:
        if b.dual > 0 and nvertex[id(b)] != 2 * nmatched[id(b)] + 1:
            fail("blossom with positive dual is not full", base=b.base)


def _check_input(num_vertex: int, edges: Sequence[WeightedEdge]) -> None:
    seen = set()
    for item in edges:
        if len(item) != 3:
            raise ValueError(f"edge must be (x, y, weight), got {item!r}")
        x, y, w = item
        if not (isinstance(x, int) and isinstance(y, int)):
            raise TypeError("edge endpoints must be integers")
        if not (0 <= x < num_vertex and 0 <= y < num_vertex):
            raise ValueError(f"edge ({x}, {y}) references a vertex outside 0..{num_vertex - 1}")
        if x == y:
            raise ValueError(f"self-edge on vertex {x}")
        key = (x, y) if x < y else (y, x)
        if key in seen:
            raise ValueError(f"duplicate edge {key}")
        seen.add(key)
        if isinstance(w, bool) or not isinstance(w, numbers.Real) or not math.isfinite(w):
            raise TypeError(f"edge weight must be a finite number, got {w!r}")


def min_weight_perfect_matching(num_vertex: int, edges: Sequence[WeightedEdge],
                                verify: bool = True) -> List[Tuple[int, int]]:
    """
    Minimum-weight perfect matching of the graph on vertices ``0..num_vertex-1``.

    ``edges`` holds ``(x, y, weight)`` tuples, at most one per vertex pair.
    Returns the matched pairs as ``(x, y)`` with ``x < y``, sorted.
    Raises MatchingError when no perfect matching exists or, for integer
    weights with ``verify`` set, when the optimality certificate fails.
    """
    _check_input(num_vertex, edges)
    if num_vertex == 0:
        return []
    if num_vertex % 2 == 1:
        raise MatchingError(f"odd number of vertices ({num_vertex}) has no perfect matching")
    if not edges:
        raise MatchingError("graph has no edges", details={"num_vertex": num_vertex})

    max_w = max(w for (_x, _y, w) in edges)
    flipped = [(x, y, max_w - w) for (x, y, w) in edges]

    ctx = _MatchingContext(num_vertex, flipped)
    while ctx.run_stage():
        pass

    if verify and ctx.integer_weights:
        _verify_optimum(ctx)

    logger.debug("blossom solver: %d stages, %d blossoms formed",
                 ctx.stages, ctx.blossoms_made)
    return sorted((x, y) for x, y in enumerate(ctx.mate) if x < y)


def match_odd_vertices(distances: DistanceMatrix, verify: bool = True) -> Matching:
    """Pair up the vertices of ``distances`` so the summed shortest distance is minimal."""
    vertices = distances.vertices
    if not vertices:
        return Matching()

    edges = [(i, j, distances.distance(vertices[i], vertices[j]))
             for i in range(len(vertices)) for j in range(i + 1, len(vertices))]
    pairs = min_weight_perfect_matching(len(vertices), edges, verify=verify)

    matched = []
    for i, j in pairs:
        path = distances.path(vertices[i], vertices[j])
        matched.append(MatchedPair(vertices[i], vertices[j], path.length, path))
    result = Matching(tuple(matched))
    logger.info("matched %d odd vertices into %d pairs, cost %s",
                len(vertices), len(result), result.cost)
    return result
