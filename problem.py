"""
Problem definition and conversion to the internal standard (maximize) form.

    maximize / minimize   c^T x
    subject to            a_i^T x  (<=, >=, =)  b_i
                          x >= 0
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


MAXIMIZE = "maximize"
MINIMIZE = "minimize"

_DIRECTIONS = {
    "maximize": MAXIMIZE, "max": MAXIMIZE,
    "minimize": MINIMIZE, "min": MINIMIZE,
}

_OPERATORS = {
    "<=": "<=", "≤": "<=",
    ">=": ">=", "≥": ">=",
    "=": "=", "==": "=",
}


class StructuralError(ValueError):
    """Raised when a problem definition is malformed."""
    pass


def _as_vector(values, length, what):
    try:
        vector = [float(v) for v in values]
    except (TypeError, ValueError):
        raise StructuralError(f"{what} must be a sequence of numbers, got {values!r}")

    if len(vector) > length:
        raise StructuralError(
            f"{what} has {len(vector)} coefficients but the problem has {length} variables"
        )
    if not np.all(np.isfinite(vector)):
        raise StructuralError(f"{what} contains non-finite values (NaN or Inf)")

    # Missing trailing coefficients are implicit zeros
    vector.extend([0.0] * (length - len(vector)))
    return tuple(vector)


def format_expression(coefficients, variables):
    """Plain-text linear expression, e.g. ``3x1 - x2``."""
    terms = []
    for coeff, name in zip(coefficients, variables):
        if np.isclose(coeff, 0):
            continue
        magnitude = abs(coeff)
        text = name if np.isclose(magnitude, 1) else f"{magnitude:g}{name}"
        if not terms:
            terms.append(text if coeff > 0 else f"-{text}")
        else:
            terms.append(f"+ {text}" if coeff > 0 else f"- {text}")
    return " ".join(terms) if terms else "0"


@dataclass(frozen=True)
class Constraint:
    """A single linear constraint ``coefficients . x  operator  rhs``."""
    coefficients: Tuple[float, ...]
    operator: str
    rhs: float
    label: Optional[str] = None

    def expression(self, variables):
        return f"{format_expression(self.coefficients, variables)} {self.operator} {self.rhs:g}"


class Problem:
    """
    A validated linear program. Instances are immutable.

    :param direction: "maximize"/"max" or "minimize"/"min"
    :param variables: ordered, unique decision variable names
    :param objective: objective coefficients, zero-padded to len(variables)
    :param constraints: iterable of Constraint or (coefficients, operator, rhs[, label]) tuples
    """

    __slots__ = ("direction", "variables", "objective", "constraints")

    def __init__(self, direction, variables, objective, constraints):
        key = str(direction).strip().lower()
        if key not in _DIRECTIONS:
            raise StructuralError(f"Unknown optimization direction {direction!r}")

        variables = tuple(str(v) for v in variables)
        if not variables:
            raise StructuralError("Problem must have at least one variable.")
        if any(not v.strip() for v in variables):
            raise StructuralError("Variable names must be non-empty.")
        if len(set(variables)) != len(variables):
            raise StructuralError(f"Variable names must be unique, got {variables}")

        n = len(variables)
        normalized = []
        for i, item in enumerate(constraints):
            if isinstance(item, Constraint):
                coefficients, operator, rhs, label = item.coefficients, item.operator, item.rhs, item.label
            else:
                try:
                    coefficients, operator, rhs, *rest = item
                except (TypeError, ValueError):
                    raise StructuralError(f"Constraint {i + 1} is not a (coefficients, operator, rhs) triple")
                label = rest[0] if rest else None

            if not isinstance(operator, str) or operator not in _OPERATORS:
                raise StructuralError(f"Constraint {i + 1} has unknown operator {operator!r}")
            try:
                rhs = float(rhs)
            except (TypeError, ValueError):
                raise StructuralError(f"Constraint {i + 1} right-hand side must be a number, got {rhs!r}")
            if not np.isfinite(rhs):
                raise StructuralError(f"Constraint {i + 1} right-hand side is non-finite ({rhs})")

            normalized.append(Constraint(
                coefficients=_as_vector(coefficients, n, f"Constraint {i + 1}"),
                operator=_OPERATORS[operator],
                rhs=rhs,
                label=label,
            ))

        if not normalized:
            raise StructuralError("Problem must have at least one constraint.")

        object.__setattr__(self, "direction", _DIRECTIONS[key])
        object.__setattr__(self, "variables", variables)
        object.__setattr__(self, "objective", _as_vector(objective, n, "Objective"))
        object.__setattr__(self, "constraints", tuple(normalized))

    def __setattr__(self, name, value):
        raise AttributeError("Problem instances are immutable")

    @classmethod
    def from_arrays(cls, c, A, b, operators=None, direction=MINIMIZE, variables=None):
        """Build a problem from ``c``, ``A``, ``b`` arrays (all ``<=`` unless `operators` is given)."""
        A = np.atleast_2d(np.asarray(A, dtype=float))
        b = np.asarray(b, dtype=float).reshape(-1)
        c = np.asarray(c, dtype=float).reshape(-1)

        if A.shape[0] != len(b):
            raise StructuralError(
                f"Constraint vector b length ({len(b)}) does not match number of constraints ({A.shape[0]})"
            )
        if operators is None:
            operators = ["<="] * len(b)
        elif isinstance(operators, str):
            operators = [operators] * len(b)
        if len(operators) != len(b):
            raise StructuralError(f"Expected {len(b)} operators, got {len(operators)}")
        if variables is None:
            variables = [f"x{j + 1}" for j in range(max(len(c), A.shape[1]))]

        return cls(direction, variables, c, zip(A, operators, b))

    @property
    def n(self):
        return len(self.variables)

    @property
    def m(self):
        return len(self.constraints)

    @property
    def is_minimize(self):
        return self.direction == MINIMIZE

    def constraint_label(self, index):
        constraint = self.constraints[index]
        return constraint.label or f"C{index + 1}"

    def evaluate(self, values):
        """Objective value for a sequence of variable values."""
        return float(np.dot(self.objective, np.asarray(values, dtype=float)))

    def __repr__(self):
        return f"Problem(direction={self.direction!r}, n={self.n}, m={self.m})"

    def __str__(self):
        lines = [f"{self.direction} z = {format_expression(self.objective, self.variables)}", "subject to"]
        for constraint in self.constraints:
            lines.append(f"  {constraint.expression(self.variables)}")
        lines.append(f"  {', '.join(self.variables)} >= 0")
        return "\n".join(lines)


@dataclass(frozen=True)
class StandardConstraint:
    """A constraint after sign normalization with its auxiliary variable names."""
    coefficients: Tuple[float, ...]
    operator: str
    rhs: float
    slack: Optional[str] = None
    surplus: Optional[str] = None
    artificial: Optional[str] = None
    flipped: bool = False

    @property
    def auxiliary(self):
        return tuple(name for name in (self.slack, self.surplus, self.artificial) if name)

    @property
    def initial_basic(self):
        return self.slack or self.artificial


@dataclass(frozen=True)
class StandardForm:
    """Internal maximize form of a Problem."""
    variables: Tuple[str, ...]
    objective: Tuple[float, ...]
    constraints: Tuple[StandardConstraint, ...]
    negated: bool

    @property
    def column_names(self):
        names = list(self.variables)
        for constraint in self.constraints:
            names.extend(constraint.auxiliary)
        return tuple(names)

    @property
    def artificial_names(self):
        return tuple(c.artificial for c in self.constraints if c.artificial)

    @property
    def m(self):
        return len(self.constraints)

    def matrix(self):
        """Constraint matrix over all columns (decision then auxiliary), plus RHS vector."""
        columns = self.column_names
        index = {name: j for j, name in enumerate(columns)}
        A = np.zeros((self.m, len(columns)), dtype=float)
        b = np.zeros(self.m, dtype=float)
        for i, constraint in enumerate(self.constraints):
            A[i, :len(self.variables)] = constraint.coefficients
            if constraint.slack:
                A[i, index[constraint.slack]] = 1.0
            if constraint.surplus:
                A[i, index[constraint.surplus]] = -1.0
            if constraint.artificial:
                A[i, index[constraint.artificial]] = 1.0
            b[i] = constraint.rhs
        return A, b

    def costs(self):
        """Max-form cost vector over all columns; auxiliary variables cost nothing."""
        c = np.zeros(len(self.column_names), dtype=float)
        c[:len(self.variables)] = self.objective
        return c


def to_standard_form(problem):
    """
    Convert a Problem into maximize form with slack, surplus and artificial variables.

    Slack (s), surplus (e) and artificial (a) variables are numbered by separate
    counters in constraint order. Rows with a negative right-hand side are
    multiplied by -1 first, so every standard row has rhs >= 0.
    """
    sign = -1.0 if problem.is_minimize else 1.0
    objective = tuple(sign * c + 0.0 for c in problem.objective)

    taken = set(problem.variables)

    def fresh(prefix, count):
        name = f"{prefix}{count}"
        while name in taken:
            name += "_"
        return name

    slack_count = surplus_count = artificial_count = 0
    standard = []
    for constraint in problem.constraints:
        coefficients, operator, rhs = constraint.coefficients, constraint.operator, constraint.rhs
        flipped = rhs < 0
        if flipped:
            coefficients = tuple(-a + 0.0 for a in coefficients)
            rhs = -rhs
            operator = {"<=": ">=", ">=": "<=", "=": "="}[operator]

        slack = surplus = artificial = None
        if operator == "<=":
            slack_count += 1
            slack = fresh("s", slack_count)
        elif operator == ">=":
            surplus_count += 1
            artificial_count += 1
            surplus = fresh("e", surplus_count)
            artificial = fresh("a", artificial_count)
        else:
            artificial_count += 1
            artificial = fresh("a", artificial_count)

        standard.append(StandardConstraint(
            coefficients=coefficients,
            operator=operator,
            rhs=rhs,
            slack=slack,
            surplus=surplus,
            artificial=artificial,
            flipped=flipped,
        ))

    return StandardForm(
        variables=problem.variables,
        objective=objective,
        constraints=tuple(standard),
        negated=problem.is_minimize,
    )
