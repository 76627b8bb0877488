import math

import pytest

from mathcore.config import SolverConfig
from mathcore.errors import ComputationError, ParseError
from mathcore.solver.substitution import (
    check_solution, parse_values, resolve_bindings, resolve_value,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("x = 3", {"x": "3"}),
        ("x = 3, y = 4", {"x": "3", "y": "4"}),
        ("x=3;y=-1.5", {"x": "3", "y": "-1.5"}),
        ("  theta = pi/2 ", {"theta": "pi/2"}),
    ],
)
def test_parse_values(text: str, expected: dict) -> None:
    assert parse_values(text) == expected


@pytest.mark.parametrize(
    "text,message",
    [
        ("x 3", "Invalid value format"),
        ("x =", "Both variable name and value"),
        ("2x = 3", "Invalid variable name"),
        (" , ", "No values provided"),
    ],
)
def test_parse_values_errors(text: str, message: str) -> None:
    with pytest.raises(ParseError, match=message):
        parse_values(text)


def test_resolve_value() -> None:
    assert resolve_value(3) == 3.0
    assert resolve_value("pi/2") == pytest.approx(math.pi / 2)
    assert resolve_value("2^10") == 1024.0


@pytest.mark.parametrize("value", [True, math.inf, "y + 1"])
def test_resolve_value_rejects(value) -> None:
    with pytest.raises(ComputationError):
        resolve_value(value)


def test_resolve_bindings() -> None:
    assert resolve_bindings({"a": "1/4", "b": 2}) == {"a": 0.25, "b": 2.0}
    assert resolve_bindings(None) == {}


def test_check_solution_holds() -> None:
    result = check_solution("2x + 1 = 7", {"x": 3})
    assert result.holds
    assert (result.lhs, result.rhs, result.difference) == (7.0, 7.0, 0.0)
    assert [s.id for s in result.steps] == [
        "parse", "given_values", "substitute_values", "evaluate_sides", "conclusion",
    ]
    assert result.steps[-1].after == "LHS and RHS are equal ✓"
    assert result.values == {"x": 3.0}


def test_check_solution_fails() -> None:
    result = check_solution("x^2 = 5", {"x": "2"})
    assert not result.holds
    assert result.difference == pytest.approx(-1.0)
    assert result.steps[-2].after == "4 ≠ 5"
    assert "NOT" in result.steps[-1].after


def test_check_tolerates_round_off() -> None:
    assert check_solution("sin(x) = 1", {"x": "pi/2"}).holds
    assert check_solution("0.1 + 0.2 = x", {"x": 0.3}).holds


def test_check_several_variables() -> None:
    result = check_solution("x + y = 10", {"x": 6, "y": 4})
    assert result.holds
    assert result.steps[2].after == "6 + 4 = 10"


def test_check_bare_expression_against_zero() -> None:
    assert check_solution("x^2 - 4", {"x": -2}).holds


def test_check_missing_value() -> None:
    with pytest.raises(ComputationError, match="Missing value"):
        check_solution("x + y = 1", {"x": 1})


def test_check_rejects_inequality() -> None:
    with pytest.raises(ComputationError, match="not an inequality"):
        check_solution("x < 1", {"x": 0})


def test_check_undefined_value_raises() -> None:
    with pytest.raises(ComputationError):
        check_solution("1/x = 1", {"x": 0})


def test_check_uses_configured_precision() -> None:
    result = check_solution("x = 1", {"x": "1/3"}, SolverConfig(precision=3))
    assert result.steps[1].after == "x = 0.333"
