import pytest

from mathcore.models import EquationType
from mathcore.parser import parse
from mathcore.solver.classifier import classify, polynomial_degree, select_target_variable


def _type(text: str, variable: str = "x") -> EquationType:
    return classify(parse(text).ast, variable).equation_type


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2x + 3 = 7", EquationType.LINEAR),
        ("x^2 - 4 = 0", EquationType.QUADRATIC),
        ("x*x = 9", EquationType.QUADRATIC),
        ("x^3 - x = 0", EquationType.POLYNOMIAL),
        ("(x+1)^3 = 8", EquationType.POLYNOMIAL),
        ("sin(x) = 0.5", EquationType.TRIGONOMETRIC),
        ("exp(x) = 2", EquationType.EXPONENTIAL),
        ("2^x = 8", EquationType.EXPONENTIAL),
        ("cosh(x) = 2", EquationType.EXPONENTIAL),
        ("ln(x) = 1", EquationType.LOGARITHMIC),
        ("1/x = 2", EquationType.RATIONAL),
        ("sqrt(x) = 3", EquationType.RADICAL),
        ("x^0.5 = 3", EquationType.RADICAL),
    ],
)
def test_classification(text: str, expected: EquationType) -> None:
    assert _type(text) is expected


def test_first_match_wins() -> None:
    # Trigonometric is checked before logarithmic and rational.
    assert _type("sin(x) + ln(x) = 1/x") is EquationType.TRIGONOMETRIC
    assert _type("ln(x) = 1/x") is EquationType.LOGARITHMIC


def test_only_target_dependent_terms_count() -> None:
    assert _type("sin(1)*x = 2") is EquationType.LINEAR
    assert _type("y/x = 2", "x") is EquationType.RATIONAL
    assert _type("y/x = 2", "y") is EquationType.LINEAR
    assert _type("x/y = 2", "x") is EquationType.LINEAR


def test_classification_carries_degree_and_reason() -> None:
    result = classify(parse("x^2 = 4").ast, "x")
    assert result.degree == 2
    assert "2" in result.reason

    result = classify(parse("x^3 - 1 = 0").ast, "x")
    assert result.degree == 3
    assert result.reason.endswith("(cubic)")


@pytest.mark.parametrize(
    "text,degree",
    [("x", 1), ("x*x - x^2", 2), ("(x^2)^3", 6), ("5", 0), ("sin(x)", None), ("x^y", None)],
)
def test_polynomial_degree(text: str, degree) -> None:
    assert polynomial_degree(parse(text).ast, "x") == degree


def test_select_target_variable() -> None:
    ast = parse("a*t + y = 3").ast
    assert select_target_variable(ast) == "y"
    assert select_target_variable(ast, ["a"]) == "a"
    assert select_target_variable(ast, bindings={"y": 1}) == "t"
    assert select_target_variable(parse("a + b = 1").ast) == "a"
    assert select_target_variable(parse("1 = 1").ast) == "x"
    assert select_target_variable(ast, ["y", "a"], {"y": 2}) == "a"
