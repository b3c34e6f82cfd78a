import numpy as np
import pytest

from problem import (
    Constraint,
    Problem,
    StructuralError,
    format_expression,
    to_standard_form,
)


def test_problem_normalizes_input():
    problem = Problem("Max", ["x", "y", "z"], [1], [
        ([1, 2], "≤", 4),
        Constraint((0, 1, 1), "==", 3, "Capacity"),
    ])

    assert problem.direction == "maximize"
    assert not problem.is_minimize
    # Short vectors are padded with zeros
    assert problem.objective == (1.0, 0.0, 0.0)
    assert problem.constraints[0].coefficients == (1.0, 2.0, 0.0)
    assert problem.constraints[0].operator == "<="
    assert problem.constraints[1].operator == "="
    assert problem.n == 3
    assert problem.m == 2
    assert problem.constraint_label(0) == "C1"
    assert problem.constraint_label(1) == "Capacity"


def test_problem_is_immutable():
    problem = Problem("min", ["x1"], [1], [([1], "<=", 5)])

    with pytest.raises(AttributeError):
        problem.direction = "maximize"
    with pytest.raises(AttributeError):
        problem.objective = (2.0,)


@pytest.mark.parametrize("kwargs, match", [
    (dict(direction="sideways"), "direction"),
    (dict(variables=[]), "at least one variable"),
    (dict(variables=["x1", "x1"]), "unique"),
    (dict(variables=["x1", " "]), "non-empty"),
    (dict(objective=[1, 2, 3]), "Objective has 3 coefficients"),
    (dict(objective=[np.nan, 1]), "non-finite"),
    (dict(constraints=[]), "at least one constraint"),
    (dict(constraints=[([1, 1], "<", 4)]), "unknown operator"),
    (dict(constraints=[([1, 1], ["<="], 4)]), "unknown operator"),
    (dict(constraints=[([1, 1, 1], "<=", 4)]), "Constraint 1 has 3 coefficients"),
    (dict(constraints=[([1, 1], "<=", np.inf)]), "non-finite"),
    (dict(constraints=[([1, np.inf], "<=", 1)]), "non-finite"),
    (dict(constraints=[([1, 1], "<=")]), "triple"),
    (dict(constraints=[([1, 1], "<=", "four")]), "must be a number"),
])
def test_structural_errors(kwargs, match):
    arguments = dict(direction="maximize", variables=["x1", "x2"], objective=[1, 1],
                     constraints=[([1, 1], "<=", 4)])
    arguments.update(kwargs)

    with pytest.raises(StructuralError, match=match):
        Problem(**arguments)


def test_structural_error_is_value_error():
    assert issubclass(StructuralError, ValueError)


def test_from_arrays():
    problem = Problem.from_arrays([1, 2], [[1, 0, 1], [0, 1, 1]], [3, 4], operators=">=")

    assert problem.direction == "minimize"
    assert problem.variables == ("x1", "x2", "x3")
    assert problem.objective == (1.0, 2.0, 0.0)
    assert [c.operator for c in problem.constraints] == [">=", ">="]

    with pytest.raises(StructuralError, match="does not match"):
        Problem.from_arrays([1, 2], [[1, 0], [0, 1]], [3])
    with pytest.raises(StructuralError, match="operators"):
        Problem.from_arrays([1, 2], [[1, 0], [0, 1]], [3, 4], operators=["<="])


def test_evaluate_and_text():
    problem = Problem("maximize", ["x1", "x2"], [3, 2], [([1, 1], "<=", 4), ([2, -1], ">=", 0)])

    assert problem.evaluate([2, 2]) == pytest.approx(10.0)
    assert format_expression((3.0, -1.0), ("x1", "x2")) == "3x1 - x2"
    assert format_expression((0.0, 0.0), ("x1", "x2")) == "0"
    assert "maximize z = 3x1 + 2x2" in str(problem)
    assert "2x1 - x2 >= 0" in str(problem)
    assert repr(problem) == "Problem(direction='maximize', n=2, m=2)"


def test_standard_form_auxiliary_names():
    problem = Problem("maximize", ["x1", "x2"], [1, 1], [
        ([1, 1], "<=", 4),
        ([1, 0], ">=", 1),
        ([0, 1], "=", 1),
        ([1, -1], ">=", 0),
    ])
    standard = to_standard_form(problem)

    assert standard.column_names == ("x1", "x2", "s1", "e1", "a1", "a2", "e2", "a3")
    assert standard.artificial_names == ("a1", "a2", "a3")
    assert [c.initial_basic for c in standard.constraints] == ["s1", "a1", "a2", "a3"]
    assert not standard.negated
    assert standard.objective == (1.0, 1.0)

    A, b = standard.matrix()
    assert np.allclose(A[1], [1, 0, 0, -1, 1, 0, 0, 0])
    assert np.allclose(A[2], [0, 1, 0, 0, 0, 1, 0, 0])
    assert np.allclose(b, [4, 1, 1, 0])


def test_standard_form_negates_minimization():
    standard = to_standard_form(Problem("minimize", ["x1", "x2"], [2, 3], [([1, 2], ">=", 6)]))

    assert standard.negated
    assert standard.objective == (-2.0, -3.0)
    assert np.allclose(standard.costs(), [-2.0, -3.0, 0.0, 0.0])


def test_negative_rhs_is_flipped():
    standard = to_standard_form(Problem("minimize", ["x1", "x2"], [1, 1], [
        ([1, 1], "<=", 2),
        ([-1, 1], "<=", -1),
    ]))
    flipped = standard.constraints[1]

    assert flipped.flipped
    assert flipped.operator == ">="
    assert flipped.rhs == 1.0
    assert flipped.coefficients == (1.0, -1.0)
    assert (flipped.surplus, flipped.artificial) == ("e1", "a1")
    assert not standard.constraints[0].flipped


def test_auxiliary_names_avoid_decision_variables():
    standard = to_standard_form(Problem("maximize", ["s1", "a1"], [1, 1], [
        ([1, 1], "<=", 4),
        ([1, 0], "=", 1),
    ]))

    assert standard.column_names == ("s1", "a1", "s1_", "a1_")
