import math

import pytest

from mathcore.errors import ComputationError, MathErrorKind
from mathcore.parser import parse
from mathcore.parser.evaluator import evaluate, residual
from mathcore.parser.nodes import (
    Variable, complexity, num, substitute, substitute_all, to_source, var,
)


def _eval(text: str, **bindings) -> float:
    return evaluate(parse(text).ast, bindings)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("sqrt(16) + abs(-3)", 7),
        ("log10(1000)", 3),
        ("log(8, 2)", 3),
        ("ln(e)", 1),
        ("cbrt(-27)", -3),
        ("floor(2.7) + ceil(2.1)", 5),
        ("round(2.5)", 3),
        ("gcd(12, 18) + lcm(4, 6)", 18),
        ("sin(pi/2)", 1),
        ("exp(0)", 1),
        ("2.5!", math.gamma(3.5)),
    ],
)
def test_functions_and_constants(text: str, expected: float) -> None:
    assert _eval(text) == pytest.approx(expected)


def test_bindings_are_used() -> None:
    assert _eval("x^2 + y", x=3, y=1) == 10


@pytest.mark.parametrize(
    "text,kind",
    [
        ("1/0", MathErrorKind.DIVISION_BY_ZERO),
        ("sqrt(-1)", MathErrorKind.DOMAIN_ERROR),
        ("log(0)", MathErrorKind.DOMAIN_ERROR),
        ("(-8)^(1/3)", MathErrorKind.DOMAIN_ERROR),
        ("integrate(2)", MathErrorKind.UNSUPPORTED_OPERATION),
    ],
)
def test_evaluation_errors(text: str, kind: MathErrorKind) -> None:
    with pytest.raises(ComputationError) as info:
        _eval(text)
    assert info.value.kind is kind


def test_unbound_variable() -> None:
    with pytest.raises(ComputationError, match="has no value"):
        _eval("x + 1")


def test_overflow_is_a_computation_error() -> None:
    with pytest.raises(ComputationError):
        _eval("10^400")


def test_arity_is_checked() -> None:
    with pytest.raises(ComputationError, match="expects 1 argument"):
        _eval("sin(1, 2)")


def test_residual() -> None:
    ast = parse("2x + 1 = 7").ast
    assert residual(ast, {"x": 3}) == 0
    assert residual(ast, {"x": 0}) == -6
    assert residual(parse("x^2").ast, {"x": 3}) == 9


def test_substitute_builds_new_trees() -> None:
    ast = parse("x^2 + x").ast
    replaced = substitute(ast, "x", num(-3))
    assert to_source(replaced) == "(-3)^2 + -3"
    assert to_source(ast) == "x^2 + x"
    assert evaluate(replaced) == 6

    both = substitute_all(parse("a*x + b").ast, {"a": 2, "b": var("c")})
    assert to_source(both) == "2*x + c"


def test_to_source_round_trips_structure() -> None:
    for text in ["2*(x + 1)", "(x + 1)^2", "-(x^2)", "2^3^2", "(2^3)^2", "x - (y - z)", "a/(b*c)"]:
        ast = parse(text).ast
        assert parse(to_source(ast)).ast == ast


def test_complexity_weights() -> None:
    # x (1) + 2 (0.5) + '+' (1.5) + '=' (3) + 3 (0.5)
    assert complexity(parse("x + 2 = 3").ast) == 6.5
    assert complexity(Variable("x")) == 1
