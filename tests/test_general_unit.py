import math

import pytest

from mathcore.config import SolverConfig
from mathcore.errors import BackendError, ComputationError
from mathcore.models import EquationType, OperationKind
from mathcore.parser import parse
from mathcore.solver.backends import BackendChain
from mathcore.solver.general import GeneralSolver
from mathcore.solver.linear import ALL_REAL_NUMBERS


class FakeBackend:
    """Returns canned roots, or fails, without touching SymPy."""

    def __init__(self, name: str, roots=None, error: str = "") -> None:
        self.name = name
        self.roots = roots or []
        self.error = error
        self.calls = []

    def solve(self, equation: str, variable: str) -> list:
        self.calls.append((equation, variable))
        if self.error:
            raise BackendError(self.error)
        return list(self.roots)

    def simplify(self, expression: str, variable: str) -> str:
        return expression

    def evaluate(self, expression: str) -> float:
        raise BackendError("not needed")

    def differentiate(self, expression: str, variable: str) -> str:
        raise BackendError("not needed")

    integrate = factor = expand = differentiate


def _ast(text: str):
    return parse(text).ast


def _ids(steps) -> list:
    return [s.id for s in steps]


def test_first_answering_backend_wins() -> None:
    broken = FakeBackend("broken", error="boom")
    good = FakeBackend("good", roots=["2", "-2"])
    unused = FakeBackend("unused", roots=["7"])
    solver = GeneralSolver(backends=BackendChain([broken, good, unused]))

    solutions, steps = solver.solve(_ast("x^2 = 4"), "x")

    assert [s.value for s in solutions] == ["2", "-2"]
    assert [s.approximation for s in solutions] == [2.0, -2.0]
    assert _ids(steps) == ["backend_broken_failed", "backend_good_solution"]
    assert steps[0].operation is OperationKind.FALLBACK
    assert "boom" in steps[0].explanation
    assert steps[1].after == "x = 2, x = -2"
    assert unused.calls == []


def test_empty_backend_answer_is_inconclusive() -> None:
    empty = FakeBackend("empty")
    solver = GeneralSolver(SolverConfig(search_radius=10.0), BackendChain([empty]))

    solutions, steps = solver.solve(_ast("x^3 = 8"), "x")

    assert _ids(steps) == ["backend_empty_inconclusive", "numeric_fallback", "numeric_roots"]
    assert [s.value for s in solutions] == ["2"]
    assert not solutions[0].is_exact


def test_without_backends_roots_are_numeric() -> None:
    solver = GeneralSolver(backends=BackendChain())

    solutions, steps = solver.solve(_ast("x^3 - x - 1 = 0"), "x")

    assert _ids(steps) == ["no_backend", "numeric_fallback", "numeric_roots"]
    assert len(solutions) == 1
    assert solutions[0].approximation == pytest.approx(1.3247179572, abs=1e-9)
    assert steps[-1].operation is OperationKind.NUMERIC_APPROXIMATION


def test_numeric_fallback_recognises_identity() -> None:
    solver = GeneralSolver(backends=BackendChain())

    solutions, steps = solver.solve(_ast("x/x = 1"), "x", EquationType.RATIONAL)

    assert steps[-1].id == "identity"
    assert [s.value for s in solutions] == [ALL_REAL_NUMBERS]
    assert solutions[0].conditions == ("x ∈ ℝ",)


def test_nothing_found_raises_with_steps() -> None:
    solver = GeneralSolver(SolverConfig(search_radius=10.0), BackendChain())

    with pytest.raises(ComputationError) as info:
        solver.solve(_ast("x^2 + 1 = 0"), "x")

    assert _ids(info.value.steps) == ["no_backend", "numeric_fallback"]
    assert info.value.expression


def test_periodic_roots_are_reduced_to_one_period() -> None:
    backend = FakeBackend("fake", roots=["0", "pi", "2*pi"])
    solver = GeneralSolver(backends=BackendChain([backend]))

    solutions, _ = solver.solve(_ast("sin(x) = 0"), "x", EquationType.TRIGONOMETRIC)

    assert [s.value for s in solutions] == ["0", "pi"]
    assert solutions[1].approximation == pytest.approx(math.pi)
    assert solutions[1].conditions == ("x = pi + 2πn, n ∈ ℤ",)


def test_numeric_periodic_roots_carry_general_form() -> None:
    solver = GeneralSolver(SolverConfig(search_radius=10.0), BackendChain())

    solutions, _ = solver.solve(_ast("sin(x) = 0"), "x", EquationType.TRIGONOMETRIC)

    assert [s.approximation for s in solutions] == pytest.approx([0.0, math.pi])
    assert solutions[0].conditions == ("x = 0 + 2πn, n ∈ ℤ",)


def test_inexact_mode_prints_decimal_approximations() -> None:
    backend = FakeBackend("fake", roots=["1/3"])
    solver = GeneralSolver(SolverConfig(exact=False, precision=4), BackendChain([backend]))

    solutions, _ = solver.solve(_ast("3x = 1"), "x")

    assert solutions[0].value == "0.3333"
    assert not solutions[0].is_exact


def test_symbolic_root_without_numeric_value_is_kept() -> None:
    backend = FakeBackend("fake", roots=["6/a"])
    solver = GeneralSolver(backends=BackendChain([backend]))

    solutions, _ = solver.solve(_ast("a*x = 6"), "x")

    assert solutions[0].value == "6/a"
    assert solutions[0].approximation is None
    assert solutions[0].is_exact


def test_default_chain_solves_with_sympy() -> None:
    solutions, steps = GeneralSolver().solve(_ast("x^3 = 8"), "x")
    assert [s.value for s in solutions] == ["2"]
    assert steps[-1].id == "backend_sympy_solution"
