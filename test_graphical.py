import numpy as np
import pytest

from example_problems import get_graphical_examples, get_example
from graphical import (
    GraphicalSolver,
    Line,
    Point,
    check_feasibility,
    OPTIMAL,
    UNBOUNDED,
    INFEASIBLE,
    INAPPLICABLE,
)
from problem import Problem
from simplex import PrimalSimplex


def same_points(found, expected, tol=1e-9):
    if len(found) != len(expected):
        return False
    return all(any(abs(p.x - x) < tol and abs(p.y - y) < tol for p in found) for x, y in expected)


def test_requires_two_variables():
    problem = Problem("maximize", ["x1", "x2", "x3"], [1, 1, 1], [([1, 1, 1], "<=", 3)])
    solution = GraphicalSolver().solve(problem)

    assert not solution.applicable
    assert solution.status == INAPPLICABLE
    assert "3" in solution.message
    assert solution.corner_points == ()
    assert not solution.agrees_with(PrimalSimplex().solve(problem))


def test_corner_points_and_optimum():
    problem = Problem("maximize", ["x1", "x2"], [3, 2], [
        ([1, 1], "<=", 4),
        ([2, 1], "<=", 6),
    ])
    solution = GraphicalSolver().solve(problem)

    assert solution.applicable
    assert solution.status == OPTIMAL
    assert same_points(solution.corner_points, [(2, 2), (0, 4), (3, 0), (0, 0)])
    assert tuple(solution.optimal_point) == pytest.approx((2.0, 2.0))
    assert solution.optimal_value == pytest.approx(10.0)
    assert len(solution.lines) == 4
    assert len(solution.evaluations) == 4


def test_minimization_corner():
    problem = Problem("minimize", ["x1", "x2"], [2, 3], [
        ([1, 2], ">=", 6),
        ([2, 1], ">=", 8),
    ])
    solution = GraphicalSolver().solve(problem)

    assert solution.status == OPTIMAL
    assert solution.optimal_point.x == pytest.approx(10 / 3)
    assert solution.optimal_point.y == pytest.approx(4 / 3)
    assert solution.optimal_value == pytest.approx(32 / 3)
    assert solution.agrees_with(PrimalSimplex().solve(problem))


def test_intersection_and_parallel_lines():
    first = Line(1.0, 1.0, 4.0, "<=")
    second = Line(2.0, 1.0, 6.0, "<=")

    assert first.intersect(second) == Point(2.0, 2.0)
    assert first.intersect(Line(2.0, 2.0, 5.0, "<=")) is None


def test_line_contains():
    line = Line(1.0, 1.0, 4.0, "<=")

    assert line.contains(Point(2.0, 2.0))
    assert line.contains(Point(1.0, 1.0))
    assert not line.contains(Point(3.0, 3.0))
    assert Line(1.0, 1.0, 4.0, ">=").contains(Point(2.0, 2.0 + 1e-12))
    assert Line(1.0, 1.0, 4.0, "=").contains(Point(2.0, 2.0))
    assert not Line(1.0, 1.0, 4.0, "=").contains(Point(1.0, 2.0))


def test_duplicate_corners_are_merged():
    # Three boundary lines pass through (2, 0)
    problem = Problem("maximize", ["x1", "x2"], [1, 1], [
        ([1, 1], "<=", 2),
        ([1, -1], "<=", 2),
    ])
    solution = GraphicalSolver().solve(problem)

    assert same_points(solution.corner_points, [(2, 0), (0, 2), (0, 0)])


def test_ties_keep_first_corner():
    problem = Problem("maximize", ["x1", "x2"], [1, 1], [([1, 1], "<=", 4)])
    solution = GraphicalSolver().solve(problem)

    assert solution.optimal_value == pytest.approx(4.0)
    assert solution.optimal_point == Point(0.0, 4.0)


def test_unbounded_maximization():
    problem = Problem("maximize", ["x1", "x2"], [1, 1], [([1, -1], "<=", 1)])
    solution = GraphicalSolver().solve(problem)

    assert solution.status == UNBOUNDED
    assert solution.optimal_value == np.inf
    assert solution.optimal_point is None
    assert "unbounded" in solution.message
    assert solution.agrees_with(PrimalSimplex().solve(problem))


def test_unbounded_minimization():
    problem = Problem("minimize", ["x1", "x2"], [-1, 0], [([0, 1], "<=", 3)])
    solution = GraphicalSolver().solve(problem)

    assert solution.status == UNBOUNDED
    assert solution.optimal_value == -np.inf


def test_unbounded_region_with_bounded_objective():
    problem = Problem("minimize", ["x1", "x2"], [1, 1], [([1, 1], ">=", 2)])
    solution = GraphicalSolver().solve(problem)

    assert solution.status == OPTIMAL
    assert solution.optimal_value == pytest.approx(2.0)
    assert solution.optimal_point == Point(0.0, 2.0)
    assert solution.agrees_with(PrimalSimplex().solve(problem))


def test_infeasible_region():
    problem = get_example("graphical-7").problem
    solution = GraphicalSolver().solve(problem)

    assert solution.status == INFEASIBLE
    assert solution.corner_points == ()
    assert solution.optimal_value is None
    assert solution.agrees_with(PrimalSimplex().solve(problem))


def test_check_feasibility():
    lines = (Line(1.0, 1.0, 2.0, "<="), Line(1.0, 1.0, 5.0, ">="))
    assert check_feasibility(lines) is False
    assert check_feasibility((Line(1.0, 1.0, 2.0, "<="), Line(1.0, 0.0, 0.0, ">="))) is True


def test_steps_list_lines_and_corners():
    problem = Problem("maximize", ["x1", "x2"], [3, 2], [([1, 1], "<=", 4, "Wood")])
    solution = GraphicalSolver().solve(problem)

    assert solution.steps[1] == "Line 1: x1 + x2 <= 4"
    assert solution.steps[-1] == solution.message
    assert any(step.startswith("Corner points:") for step in solution.steps)


@pytest.mark.parametrize("example", get_graphical_examples(), ids=lambda e: e.id)
def test_graphical_agrees_with_simplex(example):
    graphical = GraphicalSolver().solve(example.problem)
    simplex = PrimalSimplex().solve(example.problem)

    assert graphical.status == example.expected_status
    assert simplex.status == example.expected_status
    assert graphical.agrees_with(simplex)
    if example.expected_status == OPTIMAL:
        assert graphical.optimal_value == pytest.approx(example.expected_value)
        assert tuple(graphical.optimal_point) == pytest.approx(example.expected_point)
