"""Error taxonomy for the route inspection pipeline.

Two families:

- ``GraphInputError``: the caller handed in a graph the problem is not
  defined for. Fix the input and resubmit.
- ``InternalConsistencyError``: one of the algorithm's guarantees was
  violated. These are defects and carry the stage plus enough detail to
  reproduce.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Optional


class RouteError(Exception):
    """Base class of every error reported by ``solve``."""

    is_user_error = False

    def __init__(self, message: str, *, stage: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage}] {self.message}"


class GraphInputError(RouteError):
    is_user_error = True


class InvalidGraph(GraphInputError):
    """Malformed input: unknown vertex, self-loop, bad weight, empty graph."""


class DisconnectedGraph(GraphInputError):
    """The graph has more than one connected component."""

    def __init__(self, message: str, *, components: int = 0,
                 stage: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, stage=stage, details=details)
        self.components = components


class InternalConsistencyError(RouteError):
    pass


class AugmentationInvariantViolation(InternalConsistencyError):
    """A vertex kept odd degree (or the weights disagree) after augmentation."""

    def __init__(self, message: str, *, vertex: Optional[Hashable] = None,
                 degree: Optional[int] = None, stage: str = "augment",
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, stage=stage, details=details)
        self.vertex = vertex
        self.degree = degree


class DisconnectedAugmentedGraph(InternalConsistencyError):
    """Hierholzer's walk finished with edge copies left unused."""

    def __init__(self, message: str, *, edge: Optional[int] = None,
                 stage: str = "euler_circuit",
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, stage=stage, details=details)
        self.edge = edge


class MatchingError(InternalConsistencyError):
    """The blossom solver failed to produce or verify an optimal matching."""

    def __init__(self, message: str, *, stage: str = "matching",
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, stage=stage, details=details)


class RouteCancelled(RouteError):
    """Raised between stages when the caller asked to abandon the run."""
