# example_problems.py
from dataclasses import dataclass
from typing import Optional, Tuple

from problem import Problem


CATEGORIES = ("graphical", "simplex", "mixed")
DIFFICULTIES = ("basic", "intermediate", "advanced")


@dataclass(frozen=True)
class ExampleProblem:
    id: str
    title: str
    description: str
    category: str
    difficulty: str
    problem: Problem
    expected_status: str = "optimal"
    expected_value: Optional[float] = None
    expected_point: Optional[Tuple[float, ...]] = None


def create_example_2d():
    """Create a simple example 2D LP problem (Minimize)"""
    # Minimize: z = -3x1 - 5x2
    # Subject to:
    #   x1 <= 4
    #   2x2 <= 12  (x2 <= 6)
    #   3x1 + 2x2 <= 18
    #   x1, x2 >= 0
    # Optimal: x1=2, x2=6, z = -36
    return Problem.from_arrays(
        c=[-3, -5],
        A=[[1, 0],
           [0, 2],
           [3, 2]],
        b=[4, 12, 18],
    )


def create_example_3d():
    """Create a simple example 3D LP problem (Minimize)"""
    # Optimal: x1=0, x2=4, x3=1, z = -16
    return Problem.from_arrays(
        c=[-2, -3, -4],
        A=[[1, 1, 1],
           [2, 1, 0],
           [0, 1, 3]],
        b=[6, 4, 7],
    )


EXAMPLE_PROBLEMS = (
    ExampleProblem(
        id="graphical-1",
        title="Basic advertising plan",
        description="Maximization with a budget limit and a minimum coverage requirement.",
        category="graphical",
        difficulty="basic",
        problem=Problem("maximize", ["x1", "x2"], [40, 15], [
            ([5, 1.5], "<=", 60, "Budget"),
            ([1, 0], ">=", 6, "Minimum coverage"),
            ([1, 1], "<=", 30, "Total spots"),
        ]),
        expected_value=540.0,
        expected_point=(6.0, 20.0),
    ),
    ExampleProblem(
        id="graphical-2",
        title="Economic diet",
        description="Cost minimization subject to two nutritional requirements.",
        category="graphical",
        difficulty="basic",
        problem=Problem("minimize", ["x1", "x2"], [0.5, 0.8], [
            ([200, 150], ">=", 1500, "Calories"),
            ([3, 8], ">=", 60, "Protein"),
        ]),
        expected_value=150 / 23,
        expected_point=(60 / 23, 150 / 23),
    ),
    ExampleProblem(
        id="graphical-3",
        title="Furniture production",
        description="Maximize profit from chairs and tables with two shared resources.",
        category="graphical",
        difficulty="intermediate",
        problem=Problem("maximize", ["x1", "x2"], [3, 2], [
            ([1, 1], "<=", 4, "Wood"),
            ([2, 1], "<=", 6, "Labor"),
        ]),
        expected_value=10.0,
        expected_point=(2.0, 2.0),
    ),
    ExampleProblem(
        id="graphical-4",
        title="Product mix",
        description="Two products competing for resources with individual capacity limits.",
        category="graphical",
        difficulty="intermediate",
        problem=Problem("maximize", ["x1", "x2"], [6, 4], [
            ([2, 3], "<=", 12),
            ([3, 1], "<=", 12),
            ([1, 0], "<=", 3),
            ([0, 1], "<=", 3),
        ]),
        expected_value=26.0,
        expected_point=(3.0, 2.0),
    ),
    ExampleProblem(
        id="graphical-5",
        title="Resource allocation",
        description="Minimization with two covering constraints.",
        category="graphical",
        difficulty="basic",
        problem=Problem("minimize", ["x1", "x2"], [2, 3], [
            ([1, 2], ">=", 6),
            ([2, 1], ">=", 8),
        ]),
        expected_value=32 / 3,
        expected_point=(10 / 3, 4 / 3),
    ),
    ExampleProblem(
        id="graphical-6",
        title="Unbounded production",
        description="A single difference constraint leaves the profit unbounded.",
        category="graphical",
        difficulty="basic",
        problem=Problem("maximize", ["x1", "x2"], [1, 1], [
            ([1, -1], "<=", 1),
        ]),
        expected_status="unbounded",
    ),
    ExampleProblem(
        id="graphical-7",
        title="Contradictory demands",
        description="Two demands that cannot be met at the same time.",
        category="graphical",
        difficulty="basic",
        problem=Problem("minimize", ["x1", "x2"], [1, 1], [
            ([1, 1], "<=", 2),
            ([1, 1], ">=", 5),
        ]),
        expected_status="infeasible",
    ),
    ExampleProblem(
        id="mixed-1",
        title="Shift plan (simplified)",
        description="Staffing two shifts with minimums and a fixed total headcount.",
        category="mixed",
        difficulty="intermediate",
        problem=Problem("minimize", ["x1", "x2"], [80, 70], [
            ([1, 0], ">=", 30),
            ([0, 1], ">=", 25),
            ([1, 1], "=", 80),
        ]),
        expected_value=5900.0,
        expected_point=(30.0, 50.0),
    ),
    ExampleProblem(
        id="simplex-1",
        title="Three-product plan",
        description="Three variables, so only the simplex method applies.",
        category="simplex",
        difficulty="intermediate",
        problem=create_example_3d(),
        expected_value=-16.0,
        expected_point=(0.0, 4.0, 1.0),
    ),
    ExampleProblem(
        id="simplex-2",
        title="Two-plant production",
        description="Classic two-variable minimization with three capacity constraints.",
        category="simplex",
        difficulty="basic",
        problem=create_example_2d(),
        expected_value=-36.0,
        expected_point=(2.0, 6.0),
    ),
)


def get_all_examples():
    return EXAMPLE_PROBLEMS


def get_example(example_id):
    for example in EXAMPLE_PROBLEMS:
        if example.id == example_id:
            return example
    raise KeyError(f"Unknown example problem {example_id!r}")


def get_examples_by_category(category):
    if category not in CATEGORIES:
        raise ValueError(f"category must be one of {CATEGORIES}, got {category!r}")
    return tuple(e for e in EXAMPLE_PROBLEMS if e.category == category)


def get_examples_by_difficulty(difficulty):
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {DIFFICULTIES}, got {difficulty!r}")
    return tuple(e for e in EXAMPLE_PROBLEMS if e.difficulty == difficulty)


def get_graphical_examples():
    return tuple(e for e in EXAMPLE_PROBLEMS if e.problem.n == 2)
