import warnings
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from scipy.optimize import linprog

from problem import Problem, StandardForm, to_standard_form
from utils import format_tableau


OPTIMALITY_TOL = 1e-10
PIVOT_TOL = 1e-12
FEASIBILITY_TOL = 1e-8
MAX_ITERATIONS = 100

OPTIMAL = "optimal"
UNBOUNDED = "unbounded"
INFEASIBLE = "infeasible"
ITERATION_LIMIT = "iteration-limit"

PIVOT_RULES = ("dantzig", "bland")


# Custom Exception Classes for better error handling
class SimplexError(Exception):
    """Base class for simplex-related errors."""
    pass

class InfeasibleProblemError(SimplexError):
    """Raised when the linear programming problem is infeasible."""
    pass

class UnboundedProblemError(SimplexError):
    """Raised when the linear programming problem is unbounded."""
    pass

class IterationLimitError(SimplexError):
    """Raised when the iteration cap was reached before a terminal state."""
    pass

class NumericalInstabilityError(SimplexError):
    """Raised when numerical instability is detected that may compromise results."""
    pass

class TableauCorruptionError(SimplexError):
    """Raised when the tableau appears to be in an invalid state."""
    pass


@dataclass(frozen=True, eq=False)
class Tableau:
    """
    Immutable simplex tableau snapshot.

    Rows are the constraints followed by the objective row; the last column
    holds the right-hand side. ``basic_variables[i]`` names the basic variable
    of constraint row ``i``.
    """
    matrix: np.ndarray
    basic_variables: Tuple[str, ...]
    column_names: Tuple[str, ...]
    iteration: int = 0
    phase: int = 2
    pivot_row: Optional[int] = None
    pivot_col: Optional[int] = None
    explanation: str = ""

    def __post_init__(self):
        matrix = np.array(self.matrix, dtype=float)
        basic_variables = tuple(self.basic_variables)
        column_names = tuple(self.column_names)

        expected = (len(basic_variables) + 1, len(column_names) + 1)
        if matrix.shape != expected:
            raise TableauCorruptionError(f"Tableau shape {matrix.shape} does not match expected {expected}")

        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)
        object.__setattr__(self, "basic_variables", basic_variables)
        object.__setattr__(self, "column_names", column_names)

    @property
    def m(self):
        return len(self.basic_variables)

    @property
    def objective_row(self):
        return self.matrix[-1, :-1]

    @property
    def rhs(self):
        return self.matrix[:-1, -1]

    @property
    def objective_value(self):
        """Value of the internal (maximize) objective at this basis."""
        return float(self.matrix[-1, -1])

    @property
    def non_basic_variables(self):
        basic = set(self.basic_variables)
        return tuple(name for name in self.column_names if name not in basic)

    def column_index(self, name):
        return self.column_names.index(name)

    def is_optimal(self, tol=OPTIMALITY_TOL):
        return bool(np.all(self.objective_row >= -tol))

    def value_of(self, name):
        """Current value of a variable: its RHS if basic, zero otherwise."""
        if name in self.basic_variables:
            return float(self.rhs[self.basic_variables.index(name)])
        if name not in self.column_names:
            raise KeyError(name)
        return 0.0

    def to_text(self, use_fractions=False, fraction_digits=3):
        return format_tableau(self.matrix, self.column_names, self.basic_variables,
                              use_fractions=use_fractions, fraction_digits=fraction_digits)

    def __str__(self):
        return self.to_text()


@dataclass(frozen=True, eq=False)
class SimplexSolution:
    """Outcome of a simplex run, including every intermediate tableau."""
    status: str
    optimal_value: float
    variables: Dict[str, float]
    tableaus: Tuple[Tableau, ...]
    message: str
    iterations: int
    problem: Problem
    standard_form: StandardForm

    @property
    def final_tableau(self):
        return self.tableaus[-1]

    @property
    def is_optimal(self):
        return self.status == OPTIMAL

    @property
    def point(self):
        return np.array([self.variables[name] for name in self.problem.variables])

    @property
    def steps(self):
        return [t.explanation for t in self.tableaus] + [self.message]

    def raise_for_status(self):
        """Raise the matching SimplexError unless the solution is optimal."""
        if self.status == INFEASIBLE:
            raise InfeasibleProblemError(self.message)
        if self.status == UNBOUNDED:
            raise UnboundedProblemError(self.message)
        if self.status == ITERATION_LIMIT:
            raise IterationLimitError(self.message)
        return self


class PrimalSimplex:
    """
    Tableau simplex method with a Phase I for ``>=`` and ``=`` constraints.

    :param max_iterations: cap on the total number of pivots over both phases
    :param pivot_rule: "dantzig" (most negative reduced cost) or "bland"
        (smallest index, anti-cycling)
    """

    def __init__(self, max_iterations=MAX_ITERATIONS, pivot_rule="dantzig"):
        if pivot_rule not in PIVOT_RULES:
            raise ValueError(f"pivot_rule must be one of {PIVOT_RULES}, got {pivot_rule!r}")
        if int(max_iterations) < 0:
            raise ValueError("max_iterations must be non-negative")
        self.max_iterations = int(max_iterations)
        self.pivot_rule = pivot_rule

    def initialize_tableau(self, standard_form):
        """Initial tableau with the slack/artificial variables as starting basis."""
        A, b = standard_form.matrix()
        m, n = A.shape

        matrix = np.zeros((m + 1, n + 1), dtype=float)
        matrix[:m, :n] = A
        matrix[:m, -1] = b
        matrix[m, :len(standard_form.variables)] = [-c + 0.0 for c in standard_form.objective]

        basic = [c.initial_basic for c in standard_form.constraints]
        phase = 1 if standard_form.artificial_names else 2
        return Tableau(
            matrix, basic, standard_form.column_names,
            iteration=0, phase=phase,
            explanation=f"Initial tableau: starting basis {', '.join(basic)}",
        )

    def select_pivot_column(self, tableau):
        """Entering column, or None when the tableau is optimal."""
        objective_row = tableau.objective_row
        candidates = np.where(objective_row < -OPTIMALITY_TOL)[0]
        if len(candidates) == 0:
            return None

        if self.pivot_rule == "bland":
            return int(candidates[0])
        # argmin returns the first occurrence, so ties go to the lowest index
        return int(np.argmin(objective_row))

    def select_pivot_row(self, tableau, column):
        """Leaving row by the minimum ratio test, or None when the column is unbounded."""
        best_row = None
        best_ratio = np.inf
        best_key = None

        for i in range(tableau.m):
            entry = tableau.matrix[i, column]
            if entry <= PIVOT_TOL:
                continue
            ratio = max(0.0, tableau.matrix[i, -1]) / entry

            if best_row is None or ratio < best_ratio - PIVOT_TOL:
                best_row, best_ratio = i, ratio
                best_key = tableau.column_index(tableau.basic_variables[i])
            elif self.pivot_rule == "bland" and abs(ratio - best_ratio) <= PIVOT_TOL:
                key = tableau.column_index(tableau.basic_variables[i])
                if key < best_key:
                    best_row, best_key = i, key

        return best_row

    def pivot(self, tableau, row, column, iteration=None, phase=None, explanation=None):
        """Pivot on (row, column) and return the resulting new tableau."""
        matrix = np.array(tableau.matrix, dtype=float)
        element = matrix[row, column]

        if not np.isfinite(element) or abs(element) < PIVOT_TOL:
            raise NumericalInstabilityError(
                f"Pivot element {element:.2e} at ({row}, {column}) is too small."
            )
        if abs(element) < 1e-9:
            warnings.warn(f"Small pivot element {element:.2e} may cause numerical instability.", UserWarning)

        # Normalize pivot row
        matrix[row, :] /= element

        # Eliminate other entries in pivot column
        for i in range(matrix.shape[0]):
            if i != row:
                factor = matrix[i, column]
                if factor != 0.0:
                    matrix[i, :] -= factor * matrix[row, :]

        # Clean up numerical errors
        matrix[np.abs(matrix) < 1e-15] = 0.0
        matrix[:, column] = 0.0
        matrix[row, column] = 1.0

        if not np.all(np.isfinite(matrix)):
            raise TableauCorruptionError(
                f"Tableau corruption after pivot on row {row}, column {column}."
            )

        entering = tableau.column_names[column]
        leaving = tableau.basic_variables[row]
        basic = list(tableau.basic_variables)
        basic[row] = entering

        if iteration is None:
            iteration = tableau.iteration + 1
        if explanation is None:
            explanation = (
                f"Iteration {iteration}: {entering} enters, {leaving} leaves "
                f"(pivot {element:g} at row {row + 1}, column {column + 1})"
            )
        return Tableau(
            matrix, basic, tableau.column_names,
            iteration=iteration,
            phase=tableau.phase if phase is None else phase,
            pivot_row=row, pivot_col=column,
            explanation=explanation,
        )

    def _iterate(self, tableau, history, iterations, phase):
        """Pivot until optimal, unbounded or out of iterations."""
        while True:
            column = self.select_pivot_column(tableau)
            if column is None:
                return OPTIMAL, tableau, iterations, None

            row = self.select_pivot_row(tableau, column)
            if row is None:
                return UNBOUNDED, tableau, iterations, tableau.column_names[column]

            if iterations >= self.max_iterations:
                warnings.warn(f"Maximum iterations ({self.max_iterations}) reached without convergence.", UserWarning)
                return ITERATION_LIMIT, tableau, iterations, None

            iterations += 1
            tableau = self.pivot(tableau, row, column, iteration=iterations, phase=phase)
            history.append(tableau)

    def _phase_one_tableau(self, tableau, artificial):
        """Replace the objective row by maximize -(sum of artificial variables)."""
        matrix = np.array(tableau.matrix, dtype=float)
        objective = np.zeros(matrix.shape[1], dtype=float)
        for j, name in enumerate(tableau.column_names):
            if name in artificial:
                objective[j] = 1.0

        # Make objective row consistent with the artificial basis
        for i, name in enumerate(tableau.basic_variables):
            if name in artificial:
                objective -= matrix[i, :]
        matrix[-1, :] = objective + 0.0

        return Tableau(
            matrix, tableau.basic_variables, tableau.column_names,
            iteration=tableau.iteration, phase=1,
            explanation=f"Phase I: minimize {' + '.join(sorted(artificial, key=tableau.column_index))}",
        )

    def _drive_out_artificials(self, tableau, history, artificial, iterations):
        """Pivot zero-level artificial variables out of the basis where possible."""
        for row, name in enumerate(tableau.basic_variables):
            if name not in artificial:
                continue
            for j, column_name in enumerate(tableau.column_names):
                if column_name not in artificial and abs(tableau.matrix[row, j]) > OPTIMALITY_TOL:
                    iterations += 1
                    tableau = self.pivot(
                        tableau, row, j, iteration=iterations, phase=1,
                        explanation=f"Iteration {iterations}: {column_name} replaces zero-level artificial {name}",
                    )
                    history.append(tableau)
                    break
            else:
                warnings.warn(
                    f"Artificial variable {name} stays basic at zero level: constraint row {row + 1} is redundant.",
                    UserWarning,
                )
        return tableau, iterations

    def _phase_two_tableau(self, tableau, standard_form, artificial):
        """Drop non-basic artificial columns and restore the real objective."""
        basic = set(tableau.basic_variables)
        keep = [j for j, name in enumerate(tableau.column_names)
                if name not in artificial or name in basic]
        columns = tuple(tableau.column_names[j] for j in keep)

        matrix = np.array(tableau.matrix[:, keep + [tableau.matrix.shape[1] - 1]], dtype=float)
        costs = dict(zip(standard_form.column_names, standard_form.costs()))

        matrix[-1, :] = 0.0
        for j, name in enumerate(columns):
            matrix[-1, j] = -costs[name] + 0.0

        # Make objective row consistent with current basis
        for i, name in enumerate(tableau.basic_variables):
            coeff = matrix[-1, columns.index(name)]
            if abs(coeff) > 1e-15:
                matrix[-1, :] -= coeff * matrix[i, :]
        matrix[np.abs(matrix) < 1e-15] = 0.0

        return Tableau(
            matrix, tableau.basic_variables, columns,
            iteration=tableau.iteration, phase=2,
            explanation="Phase II: artificial columns removed, original objective restored",
        )

    def solve(self, problem):
        """Solve `problem` and return a SimplexSolution; outcomes are reported via its status."""
        if not isinstance(problem, Problem):
            raise TypeError(f"Expected Problem instance, got {type(problem).__name__}")

        standard_form = to_standard_form(problem)
        tableau = self.initialize_tableau(standard_form)
        history = [tableau]
        iterations = 0
        artificial = set(standard_form.artificial_names)

        if artificial:
            tableau = self._phase_one_tableau(tableau, artificial)
            history.append(tableau)
            status, tableau, iterations, _ = self._iterate(tableau, history, iterations, phase=1)

            if status == ITERATION_LIMIT:
                message = f"Iteration limit ({self.max_iterations}) reached during Phase I; no feasible basis yet."
                return self._solution(problem, standard_form, history, ITERATION_LIMIT, message,
                                      iterations, np.nan)
            if status == UNBOUNDED:
                raise TableauCorruptionError("Phase I objective reported unbounded; it is bounded above by zero.")

            infeasibility = -tableau.objective_value
            if infeasibility > FEASIBILITY_TOL:
                message = (f"Problem is infeasible: Phase I ended with artificial variables "
                           f"summing to {infeasibility:.6g} > 0.")
                return self._solution(problem, standard_form, history, INFEASIBLE, message,
                                      iterations, np.nan)

            tableau, iterations = self._drive_out_artificials(tableau, history, artificial, iterations)
            tableau = self._phase_two_tableau(tableau, standard_form, artificial)
            history.append(tableau)

        status, tableau, iterations, entering = self._iterate(tableau, history, iterations, phase=2)

        value = tableau.objective_value
        if standard_form.negated:
            value = -value

        if status == OPTIMAL:
            message = f"Optimal solution found after {iterations} iteration(s): z = {value:.6g}."
        elif status == UNBOUNDED:
            value = -np.inf if problem.is_minimize else np.inf
            message = f"Problem is unbounded: {entering} can increase without limit (no positive entry in its column)."
        else:
            message = f"Iteration limit ({self.max_iterations}) reached; the last tableau is not proven optimal."

        return self._solution(problem, standard_form, history, status, message, iterations, value)

    def _solution(self, problem, standard_form, history, status, message, iterations, value):
        final = history[-1]
        variables = {name: 0.0 for name in problem.variables}
        for name, val in zip(final.basic_variables, final.rhs):
            if name in variables:
                val = max(0.0, float(val))
                variables[name] = 0.0 if val < 1e-12 else val

        return SimplexSolution(
            status=status,
            optimal_value=float(value) + 0.0,
            variables=variables,
            tableaus=tuple(history),
            message=message,
            iterations=iterations,
            problem=problem,
            standard_form=standard_form,
        )


def solve_lp_scipy(problem):
    """
    Solve `problem` with SciPy's linprog (HiGHS) and return ``(x, objective_value)``.

    Raises ValueError when SciPy reports the problem infeasible or unbounded.
    """
    A_ub, b_ub, A_eq, b_eq = [], [], [], []
    for constraint in problem.constraints:
        coefficients = list(constraint.coefficients)
        if constraint.operator == "<=":
            A_ub.append(coefficients)
            b_ub.append(constraint.rhs)
        elif constraint.operator == ">=":
            A_ub.append([-a for a in coefficients])
            b_ub.append(-constraint.rhs)
        else:
            A_eq.append(coefficients)
            b_eq.append(constraint.rhs)

    sign = 1.0 if problem.is_minimize else -1.0
    c = sign * np.asarray(problem.objective, dtype=float)

    result = linprog(
        c,
        A_ub=np.array(A_ub) if A_ub else None,
        b_ub=np.array(b_ub) if b_ub else None,
        A_eq=np.array(A_eq) if A_eq else None,
        b_eq=np.array(b_eq) if b_eq else None,
        bounds=[(0, None)] * problem.n,
        method='highs',
    )

    if result.success:
        return result.x, sign * result.fun
    else:
        error_messages = {
            2: "Problem is infeasible",
            3: "Problem is unbounded"
        }
        msg = error_messages.get(result.status, f"SciPy linprog failed: {result.message} (Status: {result.status})")
        raise ValueError(msg)


# Example Usage
if __name__ == "__main__":
    """
    Example problem:

        Maximize:    z = 3x₁ + 2x₂

        Subject to:
            x₁ + x₂   ≤ 4
            2x₁ + x₂  ≤ 6
            xⱼ ≥ 0
    """
    example = Problem("maximize", ["x1", "x2"], [3, 2], [([1, 1], "<=", 4), ([2, 1], "<=", 6)])
    solution = PrimalSimplex().solve(example)
    for snapshot in solution.tableaus:
        print(snapshot.explanation)
        print(snapshot)
    print(solution.message)
    print(f"Variables: {solution.variables}")
