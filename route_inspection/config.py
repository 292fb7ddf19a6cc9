from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Hashable, Mapping, Optional


ENV_WORKERS = "ROUTE_INSPECTION_WORKERS"
ENV_VERIFY_MATCHING = "ROUTE_INSPECTION_VERIFY_MATCHING"
ENV_LOG_LEVEL = "ROUTE_INSPECTION_LOG_LEVEL"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be one of {sorted(_TRUE | _FALSE)}, got {raw!r}")


@dataclass(frozen=True)
class SolverConfig:
    """
    Knobs for a single ``solve`` call.

      - start_vertex: vertex the closed walk starts and ends at
        (default: the first vertex added to the graph)
      - shortest_path_workers: threads used for the per-source Dijkstra runs
      - verify_matching: run the LP optimality check after matching
        (integer weights only)
      - should_cancel: zero-argument callable polled between stages
      - log_level: level set on the package logger for one call, then restored
    """
    start_vertex: Optional[Hashable] = None
    shortest_path_workers: int = 1
    verify_matching: bool = True
    should_cancel: Optional[Callable[[], bool]] = None
    log_level: Optional[str] = None

    def validate(self) -> "SolverConfig":
        if not isinstance(self.shortest_path_workers, int) or self.shortest_path_workers < 1:
            raise ValueError("shortest_path_workers must be a positive integer")
        if self.log_level is not None and not isinstance(
                logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log level {self.log_level!r}")
        return self

    def cancelled(self) -> bool:
        return bool(self.should_cancel is not None and self.should_cancel())

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "SolverConfig":
        """Build a config from ROUTE_INSPECTION_* variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values = {}

        raw = env.get(ENV_WORKERS)
        if raw is not None and raw.strip():
            try:
                values["shortest_path_workers"] = int(raw)
            except ValueError:
                raise ValueError(f"{ENV_WORKERS} must be an integer, got {raw!r}") from None

        raw = env.get(ENV_VERIFY_MATCHING)
        if raw is not None and raw.strip():
            values["verify_matching"] = _parse_bool(ENV_VERIFY_MATCHING, raw)

        raw = env.get(ENV_LOG_LEVEL)
        if raw is not None and raw.strip():
            values["log_level"] = raw.strip().upper()

        values.update(overrides)
        return cls(**values).validate()
