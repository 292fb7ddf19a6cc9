import pytest

from route_inspection import SolverConfig
from route_inspection.config import ENV_LOG_LEVEL, ENV_VERIFY_MATCHING, ENV_WORKERS


def test_defaults():
    cfg = SolverConfig()
    assert cfg.start_vertex is None
    assert cfg.shortest_path_workers == 1
    assert cfg.verify_matching is True
    assert not cfg.cancelled()


def test_from_env_reads_variables():
    cfg = SolverConfig.from_env({ENV_WORKERS: "4", ENV_VERIFY_MATCHING: "no", ENV_LOG_LEVEL: "debug"})
    assert cfg.shortest_path_workers == 4
    assert cfg.verify_matching is False
    assert cfg.log_level == "DEBUG"


def test_from_env_overrides_win():
    cfg = SolverConfig.from_env({ENV_WORKERS: "4"}, shortest_path_workers=2, start_vertex="a")
    assert cfg.shortest_path_workers == 2
    assert cfg.start_vertex == "a"


def test_from_env_ignores_blank_values():
    assert SolverConfig.from_env({ENV_WORKERS: " ", ENV_VERIFY_MATCHING: ""}) == SolverConfig()


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv(ENV_WORKERS, "3")
    assert SolverConfig.from_env().shortest_path_workers == 3


@pytest.mark.parametrize("env", [
    {ENV_WORKERS: "many"},
    {ENV_WORKERS: "0"},
    {ENV_VERIFY_MATCHING: "maybe"},
    {ENV_LOG_LEVEL: "chatty"},
])
def test_from_env_rejects_malformed_values(env):
    with pytest.raises(ValueError):
        SolverConfig.from_env(env)


def test_validate_rejects_non_positive_workers():
    with pytest.raises(ValueError):
        SolverConfig(shortest_path_workers=0).validate()


def test_cancelled_polls_callable():
    flags = iter([False, True])
    cfg = SolverConfig(should_cancel=lambda: next(flags))
    assert not cfg.cancelled()
    assert cfg.cancelled()
