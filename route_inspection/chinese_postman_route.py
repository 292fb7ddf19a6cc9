from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterator, List, Mapping, Optional, Tuple

from .augment import augment
from .config import SolverConfig
from .errors import InvalidGraph, RouteCancelled, RouteError
from .euler_circuit import euler_circuit
from .graph_model import Number, StreetGraph
from .matching import Matching, match_odd_vertices
from .shortest_paths import pairwise_shortest_paths


logger = logging.getLogger(__name__)

FEET_PER_MILE = 5280


@dataclass(frozen=True)
class RouteStep:
    """One street traversal of the route."""
    street_id: Any
    edge_index: int
    tail: Hashable
    head: Hashable
    direction: str
    is_repeat: bool
    length: Number


@dataclass(frozen=True)
class Route:
    steps: Tuple[RouteStep, ...]
    start: Hashable
    original_length: Number
    matching_cost: Number
    total_length: Number
    odd_vertices: Tuple[Hashable, ...] = ()
    matching: Matching = field(default_factory=Matching, compare=False, repr=False)

    @property
    def walk(self) -> List[Hashable]:
        """Closed vertex sequence, first and last entries equal."""
        return [self.start] + [s.head for s in self.steps]

    def street_ids(self) -> List[Any]:
        return [s.street_id for s in self.steps]

    @property
    def repeat_count(self) -> int:
        return sum(1 for s in self.steps if s.is_repeat)

    @property
    def deadhead_length(self) -> Number:
        return sum((s.length for s in self.steps if s.is_repeat), 0)

    def length_in_miles(self, unit: str = "feet") -> float:
        """
        Total length in miles, truncated to two decimals. ``unit`` names what
        the edge weights measure: "feet" or "miles".
        """
        if unit == "feet":
            miles = self.total_length / FEET_PER_MILE
        elif unit == "miles":
            miles = self.total_length
        else:
            raise ValueError(f"unit must be 'feet' or 'miles', got {unit!r}")
        return math.floor(miles * 100) / 100

    def describe(self, labels: Optional[Mapping[Hashable, Any]] = None) -> str:
        labels = labels or {}
        return " -- ".join(str(labels.get(v, v)) for v in self.walk)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[RouteStep]:
        return iter(self.steps)


@dataclass(frozen=True)
class RouteOutcome:
    """Either a route or the error that stopped the run, never both."""
    route: Optional[Route] = None
    error: Optional[RouteError] = None

    def __post_init__(self) -> None:
        if (self.route is None) == (self.error is None):
            raise ValueError("exactly one of route and error must be set")

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Route:
        if self.error is not None:
            raise self.error
        assert self.route is not None
        return self.route


def _checkpoint(config: SolverConfig, stage: str) -> None:
    if config.cancelled():
        raise RouteCancelled(f"cancelled before {stage}", stage=stage)


def chinese_postman_route(graph: StreetGraph,
                          config: Optional[SolverConfig] = None) -> Route:
    """
    Shortest closed walk covering every street of ``graph`` at least once.
    Raises a RouteError subclass on bad input or a broken internal invariant.
    """
    config = (config or SolverConfig()).validate()
    if not config.log_level:
        return _build_route(graph, config)

    package_logger = logging.getLogger(__package__)
    previous = package_logger.level
    package_logger.setLevel(config.log_level.upper())
    try:
        return _build_route(graph, config)
    finally:
        package_logger.setLevel(previous)


def _build_route(graph: StreetGraph, config: SolverConfig) -> Route:
    _checkpoint(config, "validate")
    graph.validate()
    start = config.start_vertex
    if start is None:
        start = graph.vertices[0]
    elif not graph.has_vertex(start):
        raise InvalidGraph(f"start vertex {start!r} is not in the graph", stage="validate")

    odd = graph.odd_vertices()
    logger.info("graph: %d vertices, %d edges, %d odd vertices",
                graph.number_of_vertices(), graph.number_of_edges(), len(odd))

    # already eulerian: nothing to match, the circuit covers each street once
    matching = Matching()
    if odd:
        _checkpoint(config, "shortest_paths")
        distances = pairwise_shortest_paths(graph, odd, workers=config.shortest_path_workers)
        _checkpoint(config, "matching")
        matching = match_odd_vertices(distances, verify=config.verify_matching)

    _checkpoint(config, "augment")
    augmented = augment(graph, matching)

    _checkpoint(config, "euler_circuit")
    traversals = euler_circuit(augmented, start)

    steps = []
    walked = set()
    for t in traversals:
        edge = graph.edge(t.edge)
        steps.append(RouteStep(
            street_id=edge.street_id,
            edge_index=edge.index,
            tail=t.tail,
            head=t.head,
            direction="forward" if t.tail == edge.u else "reverse",
            is_repeat=edge.index in walked,
            length=edge.weight,
        ))
        walked.add(edge.index)

    original = graph.total_weight()
    route = Route(
        steps=tuple(steps),
        start=start,
        original_length=original,
        matching_cost=matching.cost,
        total_length=original + matching.cost,
        odd_vertices=tuple(odd),
        matching=matching,
    )
    logger.info("route: %d traversals, %d repeats, total length %s",
                len(route), route.repeat_count, route.total_length)
    return route


def solve(graph: StreetGraph, config: Optional[SolverConfig] = None) -> RouteOutcome:
    """Run the whole pipeline and report the route or the RouteError as a RouteOutcome."""
    try:
        return RouteOutcome(route=chinese_postman_route(graph, config))
    except RouteError as err:
        if err.is_user_error or isinstance(err, RouteCancelled):
            logger.info("route inspection stopped: %s", err)
        else:
            logger.error("route inspection failed: %s (details=%r)", err, err.details)
        return RouteOutcome(error=err)
