"""
Tests for Bland's anti-cycling rule in the PrimalSimplex class.
"""

import numpy as np
import pytest

from problem import Problem
from simplex import PrimalSimplex, Tableau, OPTIMAL, solve_lp_scipy


def cycling_problem():
    # Chvatal's example: cycles under the largest-coefficient rule
    return Problem("maximize", ["x1", "x2", "x3", "x4"], [10, -57, -9, -24], [
        ([0.5, -5.5, -2.5, 9], "<=", 0),
        ([0.5, -1.5, -0.5, 1], "<=", 0),
        ([1, 0, 0, 0], "<=", 1),
    ])


def test_blands_rule_basic():
    """
    Minimize: 3x1 + 4x2
    Subject to: x1 + x2 >= 2
               2x1 + x2 >= 3
    given in <= form with negative right-hand sides.
    """
    c = np.array([3, 4])
    A = np.array([[-1, -1], [-2, -1]])
    b = np.array([-2, -3])

    solution = PrimalSimplex(pivot_rule="bland").solve(Problem.from_arrays(c, A, b))

    assert solution.status == OPTIMAL
    assert solution.optimal_value == pytest.approx(6.0)
    assert np.allclose(solution.point, [2.0, 0.0])


def test_blands_rule_degenerate():
    """Degenerate problem where every ratio test ties at zero."""
    solution = PrimalSimplex(pivot_rule="bland").solve(cycling_problem())

    assert solution.status == OPTIMAL
    assert solution.optimal_value == pytest.approx(1.0)
    assert np.allclose(solution.point, [1.0, 0.0, 1.0, 0.0])
    assert solution.iterations < PrimalSimplex().max_iterations


def test_bland_entering_variable_is_smallest_index():
    tableau = Tableau(
        np.array([
            [1.0, 1.0, 1.0, 0.0, 4.0],
            [1.0, 2.0, 0.0, 1.0, 6.0],
            [-1.0, -5.0, 0.0, 0.0, 0.0],
        ]),
        ("s1", "s2"),
        ("x1", "x2", "s1", "s2"),
    )

    assert PrimalSimplex(pivot_rule="bland").select_pivot_column(tableau) == 0
    assert PrimalSimplex(pivot_rule="dantzig").select_pivot_column(tableau) == 1


def test_bland_leaving_tie_uses_smallest_basic_index():
    # Row 0 holds s2, row 1 holds s1; both ratios equal 2
    tableau = Tableau(
        np.array([
            [1.0, 0.0, 1.0, 2.0],
            [1.0, 1.0, 0.0, 2.0],
            [-1.0, 0.0, 0.0, 0.0],
        ]),
        ("s2", "s1"),
        ("x1", "s1", "s2"),
    )

    assert PrimalSimplex(pivot_rule="bland").select_pivot_row(tableau, 0) == 1
    assert PrimalSimplex(pivot_rule="dantzig").select_pivot_row(tableau, 0) == 0


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_pivot_rules_agree(seed):
    """Both pivot rules reach the same optimal value as SciPy."""
    rng = np.random.default_rng(seed)
    c = rng.integers(1, 10, size=4)
    A = rng.integers(1, 6, size=(3, 4))
    b = rng.integers(10, 30, size=3)
    problem = Problem.from_arrays(c, A, b, direction="maximize")

    _, expected = solve_lp_scipy(problem)
    for rule in ("dantzig", "bland"):
        solution = PrimalSimplex(pivot_rule=rule).solve(problem)
        assert solution.status == OPTIMAL
        assert solution.optimal_value == pytest.approx(expected, abs=1e-6)
