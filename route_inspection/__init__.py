import logging

from .augment import AugmentedGraph, augment
from .chinese_postman_route import Route, RouteOutcome, RouteStep, chinese_postman_route, solve
from .config import SolverConfig
from .errors import (
    AugmentationInvariantViolation,
    DisconnectedAugmentedGraph,
    DisconnectedGraph,
    GraphInputError,
    InternalConsistencyError,
    InvalidGraph,
    MatchingError,
    RouteCancelled,
    RouteError,
)
from .euler_circuit import Traversal, euler_circuit
from .graph_model import Edge, StreetGraph
from .matching import MatchedPair, Matching, match_odd_vertices, min_weight_perfect_matching
from .shortest_paths import DistanceMatrix, ShortestPath, pairwise_shortest_paths

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AugmentationInvariantViolation",
    "AugmentedGraph",
    "DisconnectedAugmentedGraph",
    "DisconnectedGraph",
    "DistanceMatrix",
    "Edge",
    "GraphInputError",
    "InternalConsistencyError",
    "InvalidGraph",
    "MatchedPair",
    "Matching",
    "MatchingError",
    "Route",
    "RouteCancelled",
    "RouteError",
    "RouteOutcome",
    "RouteStep",
    "ShortestPath",
    "SolverConfig",
    "StreetGraph",
    "Traversal",
    "augment",
    "chinese_postman_route",
    "euler_circuit",
    "match_odd_vertices",
    "min_weight_perfect_matching",
    "pairwise_shortest_paths",
    "solve",
]
