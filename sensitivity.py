"""
Post-optimal sensitivity analysis on a solved simplex tableau.

Shadow prices and reduced costs are read from the final objective row. Ranging
uses the basis inverse of the standard-form constraint matrix: for constraint
``i`` the column ``B^-1 e_i`` is the tableau column of its slack/artificial
variable, and the minimum ratio test over that column bounds how far the
right-hand side may move before a basic variable turns negative.
"""
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from simplex import OPTIMAL, SimplexSolution
from utils import format_range


SENSITIVITY_TOL = 1e-9
STABILITY_THRESHOLD = 1.0


@dataclass(frozen=True)
class ShadowPrice:
    constraint_index: int
    constraint: str
    value: float
    range_low: float
    range_high: float
    allowable_increase: float
    allowable_decrease: float
    binding: bool
    interpretation: str


@dataclass(frozen=True)
class ObjectiveRange:
    variable: str
    current_value: float
    reduced_cost: float
    is_basic: bool
    range_low: float
    range_high: float
    allowable_increase: float
    allowable_decrease: float


@dataclass(frozen=True)
class SensitivitySummary:
    most_constraining_resource: Optional[str]
    most_sensitive_variable: Optional[str]
    total_slack: float


@dataclass(frozen=True)
class SensitivityResult:
    available: bool
    message: str
    shadow_prices: Tuple[ShadowPrice, ...] = ()
    objective_ranging: Tuple[ObjectiveRange, ...] = ()
    stable: bool = False
    critical_ranges: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    summary: Optional[SensitivitySummary] = None

    def shadow_price_values(self):
        return np.array([sp.value for sp in self.shadow_prices])

    def reduced_costs(self):
        return {r.variable: r.reduced_cost for r in self.objective_ranging}

    def report(self):
        """Plain-text listing of the ranges, one line per constraint/variable."""
        if not self.available:
            return self.message
        lines = ["Shadow prices:"]
        for sp in self.shadow_prices:
            lines.append(f"  {sp.constraint}: {sp.value:.4f}  rhs range {format_range((sp.range_low, sp.range_high))}")
        lines.append("Objective coefficient ranges:")
        for r in self.objective_ranging:
            lines.append(f"  {r.variable}: reduced cost {r.reduced_cost:.4f}  "
                         f"{format_range((r.range_low, r.range_high), r.current_value)}")
        lines.append(f"Basis {'stable' if self.stable else 'unstable'}")
        return "\n".join(lines)


def _unavailable(message):
    return SensitivityResult(available=False, message=message)


def _clean(value):
    return 0.0 if abs(value) < SENSITIVITY_TOL else float(value) + 0.0


class SensitivityAnalysis:
    """
    Derive shadow prices, reduced costs and ranging from an optimal SimplexSolution.

    :param stability_threshold: the basis is reported unstable when any
        allowable increase or decrease is smaller than this (a heuristic)
    """

    def __init__(self, stability_threshold=STABILITY_THRESHOLD):
        if stability_threshold < 0:
            raise ValueError("stability_threshold must be non-negative")
        self.stability_threshold = float(stability_threshold)

    def analyze(self, solution, problem=None):
        if not isinstance(solution, SimplexSolution):
            raise TypeError(f"Expected SimplexSolution instance, got {type(solution).__name__}")

        if problem is None:
            problem = solution.problem
        elif problem.variables != solution.problem.variables or problem.m != solution.problem.m:
            raise ValueError("Problem does not match the problem the solution was computed for.")

        if solution.status != OPTIMAL:
            return _unavailable(
                f"Sensitivity analysis requires an optimal solution; simplex status is '{solution.status}'."
            )

        tableau = solution.final_tableau
        if not tableau.is_optimal():
            return _unavailable("Sensitivity analysis requires an optimal final tableau.")

        try:
            B_inv = self._basis_inverse(solution)
        except np.linalg.LinAlgError:
            warnings.warn("Basis matrix is singular, cannot compute sensitivity ranges.", UserWarning)
            return _unavailable("Basis matrix is singular; sensitivity ranges are undefined.")

        shadow_prices = self._shadow_prices(solution, problem, B_inv)
        objective_ranging = self._objective_ranging(solution, problem)
        critical = self._critical_ranges(shadow_prices, objective_ranging)

        return SensitivityResult(
            available=True,
            message="Sensitivity analysis completed.",
            shadow_prices=shadow_prices,
            objective_ranging=objective_ranging,
            stable=not critical,
            critical_ranges=critical,
            recommendations=self._recommendations(problem, shadow_prices, objective_ranging),
            summary=self._summary(solution, shadow_prices, objective_ranging),
        )

    def _basis_inverse(self, solution):
        """Inverse of the standard-form columns of the final basis, rows in tableau order."""
        A, _ = solution.standard_form.matrix()
        index = {name: j for j, name in enumerate(solution.standard_form.column_names)}
        basis = [index[name] for name in solution.final_tableau.basic_variables]
        return np.linalg.inv(A[:, basis])

    def _shadow_prices(self, solution, problem, B_inv):
        tableau = solution.final_tableau
        standard_form = solution.standard_form
        objective_row = tableau.objective_row
        basic_values = np.maximum(tableau.rhs, 0.0)
        artificial = set(standard_form.artificial_names)
        pinned = [name in artificial for name in tableau.basic_variables]

        costs = dict(zip(standard_form.column_names, standard_form.costs()))
        duals = np.array([costs[name] for name in tableau.basic_variables]) @ B_inv

        results = []
        for i, constraint in enumerate(standard_form.constraints):
            if constraint.slack:
                raw = objective_row[tableau.column_index(constraint.slack)]
            elif constraint.surplus:
                raw = objective_row[tableau.column_index(constraint.surplus)]
            else:
                raw = duals[i]
            value = _clean(abs(raw))

            increase, decrease = self._rhs_ratio_test(B_inv[:, i], basic_values, pinned)
            if constraint.flipped:
                increase, decrease = decrease, increase

            rhs = problem.constraints[i].rhs
            label = problem.constraint_label(i)
            results.append(ShadowPrice(
                constraint_index=i,
                constraint=label,
                value=value,
                range_low=rhs - decrease,
                range_high=rhs + increase,
                allowable_increase=increase,
                allowable_decrease=decrease,
                binding=value > 0,
                interpretation=self._interpret(label, value, problem),
            ))
        return tuple(results)

    @staticmethod
    def _rhs_ratio_test(column, basic_values, pinned=None):
        """
        Allowable (increase, decrease) of a right-hand side keeping the basis feasible.

        `pinned` flags rows whose basic variable must stay at zero (an artificial
        left in a redundant row); any nonzero entry there fixes the right-hand side.
        """
        if pinned is None:
            pinned = [False] * len(column)
        increase = decrease = np.inf
        for entry, value, fixed in zip(column, basic_values, pinned):
            if fixed and abs(entry) > SENSITIVITY_TOL:
                increase = decrease = 0.0
            elif entry < -SENSITIVITY_TOL:
                increase = min(increase, -value / entry)
            elif entry > SENSITIVITY_TOL:
                decrease = min(decrease, value / entry)
        return _clean(increase), _clean(decrease)

    def _objective_ranging(self, solution, problem):
        tableau = solution.final_tableau
        objective_row = tableau.objective_row
        basic = set(tableau.basic_variables)

        results = []
        for j, name in enumerate(problem.variables):
            column = tableau.column_index(name)

            if name in basic:
                reduced_cost = 0.0
                row = tableau.basic_variables.index(name)
                increase = decrease = np.inf
                # Perturbing c_j shifts every non-basic reduced cost by delta * t_rk
                for k, other in enumerate(tableau.column_names):
                    if other in basic:
                        continue
                    t = tableau.matrix[row, k]
                    d = max(objective_row[k], 0.0)
                    if t < -SENSITIVITY_TOL:
                        increase = min(increase, d / -t)
                    elif t > SENSITIVITY_TOL:
                        decrease = min(decrease, d / t)
            else:
                reduced_cost = _clean(objective_row[column])
                increase, decrease = max(reduced_cost, 0.0), np.inf

            # Ranges were computed on the internal maximize form
            if solution.standard_form.negated:
                increase, decrease = decrease, increase
            increase, decrease = _clean(increase), _clean(decrease)

            current = problem.objective[j]
            results.append(ObjectiveRange(
                variable=name,
                current_value=current,
                reduced_cost=reduced_cost,
                is_basic=name in basic,
                range_low=current - decrease,
                range_high=current + increase,
                allowable_increase=increase,
                allowable_decrease=decrease,
            ))
        return tuple(results)

    def _critical_ranges(self, shadow_prices, objective_ranging):
        critical = []
        for r in objective_ranging:
            if min(r.allowable_increase, r.allowable_decrease) < self.stability_threshold:
                critical.append(f"{r.variable}: objective coefficient range "
                                f"{format_range((r.range_low, r.range_high), r.current_value)}")
        for sp in shadow_prices:
            if min(sp.allowable_increase, sp.allowable_decrease) < self.stability_threshold:
                critical.append(f"{sp.constraint}: right-hand side range {format_range((sp.range_low, sp.range_high))}")
        return tuple(critical)

    @staticmethod
    def _interpret(label, value, problem):
        if value == 0:
            return f"{label} is not binding: it has slack, so changing its right-hand side does not move the optimum."
        change = "decrease" if problem.is_minimize else "increase"
        return (f"Relaxing {label} by one unit would {change} the optimal objective by {value:.3f} "
                f"(shadow price {value:.3f}).")

    @staticmethod
    def _recommendations(problem, shadow_prices, objective_ranging):
        recommendations = []

        binding = [sp for sp in shadow_prices if sp.binding]
        if binding:
            top = max(binding, key=lambda sp: sp.value)
            expression = problem.constraints[top.constraint_index].expression(problem.variables)
            recommendations.append(
                f"Consider relaxing {top.constraint} ({expression}): it has the largest shadow price ({top.value:.3f})."
            )

        non_basic = [r for r in objective_ranging if not r.is_basic and r.reduced_cost != 0]
        if non_basic:
            top = max(non_basic, key=lambda r: abs(r.reduced_cost))
            recommendations.append(
                f"Variable {top.variable} is not in the basis with reduced cost {top.reduced_cost:.3f}; "
                f"its objective coefficient must improve by at least that much before it becomes worthwhile."
            )

        if binding:
            recommendations.append(f"{len(binding)} constraint(s) are binding at the optimal solution.")
        else:
            recommendations.append("No constraint is binding; every resource has slack at the optimum.")
        return tuple(recommendations)

    @staticmethod
    def _summary(solution, shadow_prices, objective_ranging):
        tableau = solution.final_tableau
        standard_form = solution.standard_form

        most_constraining = None
        if shadow_prices and max(sp.value for sp in shadow_prices) > 0:
            most_constraining = max(shadow_prices, key=lambda sp: sp.value).constraint

        most_sensitive = None
        if objective_ranging:
            most_sensitive = min(
                objective_ranging, key=lambda r: min(r.allowable_increase, r.allowable_decrease)
            ).variable

        slack_names = {c.slack for c in standard_form.constraints if c.slack}
        slack_names |= {c.surplus for c in standard_form.constraints if c.surplus}
        total_slack = sum(max(float(value), 0.0) for name, value in zip(tableau.basic_variables, tableau.rhs)
                          if name in slack_names)

        return SensitivitySummary(
            most_constraining_resource=most_constraining,
            most_sensitive_variable=most_sensitive,
            total_slack=total_slack,
        )
