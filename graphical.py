"""
Graphical method for two-variable linear programs.

Every constraint and both non-negativity bounds become a boundary line
``a*x + b*y (op) c``. Corner points are the feasible pairwise intersections of
those lines; the optimum of a bounded problem is attained at one of them.
"""
from dataclasses import dataclass
from itertools import combinations
from typing import Optional, Tuple

import numpy as np
from scipy.optimize import linprog


DETERMINANT_TOL = 1e-10
FEASIBILITY_TOL = 1e-10
DEDUP_TOL = 1e-6
AGREEMENT_TOL = 1e-6

OPTIMAL = "optimal"
UNBOUNDED = "unbounded"
INFEASIBLE = "infeasible"
UNBOUNDED_OR_INFEASIBLE = "unbounded-or-infeasible"
INAPPLICABLE = "inapplicable"


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __iter__(self):
        yield self.x
        yield self.y

    def __str__(self):
        return f"({self.x:.3f}, {self.y:.3f})"


@dataclass(frozen=True)
class Line:
    """Boundary line ``a*x + b*y = c`` of the half-plane ``a*x + b*y (operator) c``."""
    a: float
    b: float
    c: float
    operator: str
    label: str = ""

    def value(self, point):
        return self.a * point.x + self.b * point.y

    def contains(self, point, tol=FEASIBILITY_TOL):
        """True when `point` satisfies this line's inequality (or equality)."""
        value = self.value(point)
        tol = tol * max(1.0, abs(self.c), abs(self.a * point.x), abs(self.b * point.y))
        if self.operator == "<=":
            return value <= self.c + tol
        if self.operator == ">=":
            return value >= self.c - tol
        return abs(value - self.c) <= tol

    def intersect(self, other):
        """Intersection by Cramer's rule, or None for parallel lines."""
        determinant = self.a * other.b - other.a * self.b
        if abs(determinant) < DETERMINANT_TOL:
            return None
        x = (self.c * other.b - other.c * self.b) / determinant
        y = (self.a * other.c - other.a * self.c) / determinant
        return Point(x + 0.0, y + 0.0)

    def admits_direction(self, dx, dy, tol=FEASIBILITY_TOL):
        """True when moving along (dx, dy) never leaves this half-plane."""
        slope = self.a * dx + self.b * dy
        if self.operator == "<=":
            return slope <= tol
        if self.operator == ">=":
            return slope >= -tol
        return abs(slope) <= tol


@dataclass(frozen=True)
class GraphicalSolution:
    applicable: bool
    status: str
    message: str
    lines: Tuple[Line, ...] = ()
    corner_points: Tuple[Point, ...] = ()
    optimal_point: Optional[Point] = None
    optimal_value: Optional[float] = None
    evaluations: Tuple[Tuple[Point, float], ...] = ()
    steps: Tuple[str, ...] = ()

    def is_feasible(self, point):
        return all(line.contains(point) for line in self.lines)

    def agrees_with(self, simplex_solution, tol=AGREEMENT_TOL):
        """Cross-check against a SimplexSolution of the same problem."""
        if not self.applicable:
            return False
        if self.status == OPTIMAL:
            if simplex_solution.status != OPTIMAL:
                return False
            point = Point(*simplex_solution.point)
            return abs(self.optimal_value - simplex_solution.optimal_value) <= tol and self.is_feasible(point)
        if self.status in (UNBOUNDED, INFEASIBLE):
            return simplex_solution.status == self.status
        return simplex_solution.status in (UNBOUNDED, INFEASIBLE)


def check_feasibility(lines):
    """
    Explicit emptiness test of the half-plane intersection.

    Returns True (non-empty), False (empty) or None when the LP solver fails.
    """
    A_ub, b_ub, A_eq, b_eq = [], [], [], []
    for line in lines:
        if line.operator == "<=":
            A_ub.append([line.a, line.b])
            b_ub.append(line.c)
        elif line.operator == ">=":
            A_ub.append([-line.a, -line.b])
            b_ub.append(-line.c)
        else:
            A_eq.append([line.a, line.b])
            b_eq.append(line.c)

    result = linprog(
        np.zeros(2),
        A_ub=np.array(A_ub) if A_ub else None,
        b_ub=np.array(b_ub) if b_ub else None,
        A_eq=np.array(A_eq) if A_eq else None,
        b_eq=np.array(b_eq) if b_eq else None,
        bounds=[(None, None)] * 2,
        method='highs',
    )
    if result.status == 0:
        return True
    if result.status == 2:
        return False
    return None


class GraphicalSolver:
    """Corner-point enumeration for problems with exactly two decision variables."""

    def build_lines(self, problem):
        lines = []
        for constraint in problem.constraints:
            a, b = constraint.coefficients
            lines.append(Line(a, b, constraint.rhs, constraint.operator,
                              constraint.expression(problem.variables)))

        # Non-negativity bounds
        x, y = problem.variables
        lines.append(Line(1.0, 0.0, 0.0, ">=", f"{x} >= 0"))
        lines.append(Line(0.0, 1.0, 0.0, ">=", f"{y} >= 0"))
        return tuple(lines)

    def corner_points(self, lines):
        """Feasible pairwise intersections, deduplicated in first-found order."""
        corners = []
        for first, second in combinations(lines, 2):
            point = first.intersect(second)
            if point is None:
                continue
            if not all(line.contains(point) for line in lines):
                continue
            if any(abs(p.x - point.x) < DEDUP_TOL and abs(p.y - point.y) < DEDUP_TOL for p in corners):
                continue
            corners.append(point)
        return corners

    def improving_ray(self, problem, lines):
        """
        A recession direction of the feasible region along which the objective
        improves, or None.

        The recession cone lies in the first quadrant, so its extreme rays run
        along boundary lines; checking those directions is sufficient.
        """
        sign = -1.0 if problem.is_minimize else 1.0
        ca, cb = problem.objective

        for line in lines:
            norm = np.hypot(line.a, line.b)
            if norm < DETERMINANT_TOL:
                continue
            for dx, dy in ((line.b / norm, -line.a / norm), (-line.b / norm, line.a / norm)):
                if sign * (ca * dx + cb * dy) <= FEASIBILITY_TOL:
                    continue
                if all(other.admits_direction(dx, dy) for other in lines):
                    return dx + 0.0, dy + 0.0
        return None

    def solve(self, problem):
        if problem.n != 2:
            return GraphicalSolution(
                applicable=False,
                status=INAPPLICABLE,
                message=(f"The graphical method requires exactly 2 variables; "
                         f"this problem has {problem.n}."),
            )

        steps = ["Graphical method for a two-variable problem"]
        lines = self.build_lines(problem)
        for i, line in enumerate(lines, start=1):
            steps.append(f"Line {i}: {line.label}")

        corners = self.corner_points(lines)
        steps.append(f"Corner points: {', '.join(str(p) for p in corners) or 'none'}")

        if not corners:
            feasible = check_feasibility(lines)
            if feasible is False:
                status, message = INFEASIBLE, "The feasible region is empty: the problem is infeasible."
            else:
                status = UNBOUNDED_OR_INFEASIBLE
                message = ("No feasible corner point was found, but the feasible region could not be "
                           "shown to be empty.")
            steps.append(message)
            return GraphicalSolution(
                applicable=True, status=status, message=message,
                lines=lines, steps=tuple(steps),
            )

        evaluations = tuple((point, problem.evaluate(tuple(point))) for point in corners)
        for point, value in evaluations:
            steps.append(f"  z{point} = {value:.3f}")

        ray = self.improving_ray(problem, lines)
        if ray is not None:
            value = -np.inf if problem.is_minimize else np.inf
            message = (f"The objective improves without limit along direction "
                       f"({ray[0]:.3f}, {ray[1]:.3f}): the problem is unbounded.")
            steps.append(message)
            return GraphicalSolution(
                applicable=True, status=UNBOUNDED, message=message,
                lines=lines, corner_points=tuple(corners), optimal_value=value,
                evaluations=evaluations, steps=tuple(steps),
            )

        best_point, best_value = evaluations[0]
        for point, value in evaluations[1:]:
            margin = 1e-12 * max(1.0, abs(best_value))
            better = value < best_value - margin if problem.is_minimize else value > best_value + margin
            if better:
                best_point, best_value = point, value

        message = f"Optimal solution at {best_point} with value {best_value:.6g}."
        steps.append(message)
        return GraphicalSolution(
            applicable=True, status=OPTIMAL, message=message,
            lines=lines, corner_points=tuple(corners),
            optimal_point=best_point, optimal_value=best_value,
            evaluations=evaluations, steps=tuple(steps),
        )
