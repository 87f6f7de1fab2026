"""Timing checks for the hot paths (run with ``-m slow``)."""

import time

import pytest

from calccore import api
from calccore.numerical import NumericalSolverConfig, solve
from calccore.parser import parse
from calccore.types import SolverTimeoutError


@pytest.mark.slow
def test_repeated_evaluation_is_fast():
    start = time.perf_counter()
    for i in range(1000):
        assert api.evaluate(f"sin({i})^2 + cos({i})^2").ok
    assert time.perf_counter() - start < 10.0


@pytest.mark.slow
def test_long_flat_expression_parses():
    text = "+".join(["1"] * 50)
    start = time.perf_counter()
    parse(text)
    assert time.perf_counter() - start < 1.0


@pytest.mark.slow
def test_polynomial_batch():
    start = time.perf_counter()
    for k in range(1, 201):
        result = api.solve_polynomial([1, -k, k, -1, 2])
        assert result.ok
        assert len(result.real_roots) + len(result.complex_roots) == 4
    assert time.perf_counter() - start < 10.0


@pytest.mark.slow
def test_solver_respects_wall_clock_budget():
    def sluggish(x):
        time.sleep(0.01)
        return x * x + 1

    cfg = NumericalSolverConfig(max_iterations=10_000, timeout=0.2)
    start = time.perf_counter()
    with pytest.raises(SolverTimeoutError):
        solve(sluggish, 0.5, solver_config=cfg)
    assert time.perf_counter() - start < 5.0
