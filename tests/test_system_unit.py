import pytest

from mathcore.config import SolverConfig
from mathcore.errors import ComputationError, MathError, MathErrorKind, ParseError
from mathcore.models import EquationType
from mathcore.solver.system import INFINITELY_MANY, SystemSolver, solve_system, split_equations


def _ids(result) -> list:
    return [s.id for s in result.steps]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("x + y = 10; x - y = 2", ["x + y = 10", "x - y = 2"]),
        ("x + y = 1, max(x, y) = 2; z = 3", ["x + y = 1", "max(x, y) = 2", "z = 3"]),
        ("x = 1;;  ", ["x = 1"]),
    ],
)
def test_split_equations(text: str, expected: list) -> None:
    assert split_equations(text) == expected


def test_unique_integer_system_is_solved_exactly() -> None:
    result = solve_system("x + y = 10; x - y = 2")
    assert result.values == ["6", "4"]
    assert result.variables == ("x", "y")
    assert result.equation_type is EquationType.SYSTEM
    assert _ids(result) == [
        "system", "matrix_form", "rank_analysis", "gauss_jordan", "verify_solution",
        "conclusion",
    ]
    assert result.steps[-1].after == "x = 6, y = 4"
    assert result.steps[-1].explanation == "The system has a unique solution."
    assert result.steps[-2].after == "(1) ✓  (2) ✓"
    assert result.metadata["method"] == "gauss_jordan"
    assert result.metadata["confidence"] == 0.85
    assert result.metadata["is_exact"] is True


def test_fractional_solution_stays_exact() -> None:
    result = solve_system(["2x + 3y = 1", "x - y = 2"])
    assert result.values == ["7/5", "-3/5"]
    assert all(s.is_exact for s in result.solutions)
    assert result.solutions[0].approximation == pytest.approx(1.4)


def test_three_unknowns() -> None:
    result = solve_system("x + y + z = 6; x - y = 0; 2z = 6")
    assert dict(zip(result.variables, result.values)) == {"x": "3/2", "y": "3/2", "z": "3"}


def test_decimal_coefficients_use_numpy() -> None:
    result = solve_system("0.5x + y = 2; x - y = 1")
    assert result.metadata["method"] == "numpy.linalg.solve"
    assert result.metadata["is_exact"] is False
    assert [s.approximation for s in result.solutions] == pytest.approx([2.0, 1.0])
    assert "numeric_solve" in _ids(result)


def test_overdetermined_consistent_system() -> None:
    result = solve_system("x + y = 2; x - y = 0; 2x + 2y = 4")
    assert result.values == ["1", "1"]

    result = solve_system("0.5x = 1; x + y = 3; y = 1")
    assert result.metadata["method"] == "numpy.linalg.lstsq"
    assert [s.approximation for s in result.solutions] == pytest.approx([2.0, 1.0])


def test_inconsistent_system_has_no_solution() -> None:
    result = solve_system("x + y = 1; x + y = 2")
    assert result.solutions == ()
    assert "inconsistent_system" in _ids(result)
    assert result.steps[-1].after == "no solution"
    assert result.steps[-1].explanation == "The system has no solution."
    assert result.metadata["method"] == "rank_analysis"


def test_dependent_system_has_infinitely_many_solutions() -> None:
    result = solve_system("x + y = 1; 2x + 2y = 2")
    assert result.values == [INFINITELY_MANY, INFINITELY_MANY]
    assert result.solutions[0].conditions == ("free parameter",)
    assert result.steps[-1].explanation == "The system has infinitely many solutions."
    assert "underdetermined_system" in _ids(result)
    assert result.metadata["is_exact"] is False


def test_bare_expressions_equal_zero() -> None:
    assert solve_system("x + y - 3; x - y - 1").values == ["2", "1"]


def test_show_steps_false() -> None:
    result = SystemSolver(SolverConfig(show_steps=False)).solve("x + y = 3; x - y = 1")
    assert _ids(result) == ["conclusion"]


def test_inexact_mode_prints_decimals() -> None:
    result = SystemSolver(SolverConfig(exact=False, precision=3)).solve("3x = 1; y = 2")
    assert result.values == ["0.333", "2"]
    assert result.metadata["is_exact"] is False


@pytest.mark.parametrize("equations", ["", " ; ", []])
def test_no_equations(equations) -> None:
    with pytest.raises(ParseError, match="No equations"):
        solve_system(equations)


def test_no_variables() -> None:
    with pytest.raises(ComputationError, match="no variables"):
        solve_system("1 = 1; 2 = 2")


def test_inequality_in_system() -> None:
    with pytest.raises(ComputationError) as info:
        solve_system("x + y < 3; x = 1")
    assert info.value.kind is MathErrorKind.UNSUPPORTED_OPERATION


def test_nonlinear_equation_in_system() -> None:
    with pytest.raises(MathError):
        solve_system("x*y = 1; x = 1")
