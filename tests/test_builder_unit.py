import pytest

from mathcore.config import SolverConfig
from mathcore.errors import MathSyntaxError, ParseError, ValidationError
from mathcore.models import Span
from mathcore.parser import MathParser, parse
from mathcore.parser.builder import build_ast
from mathcore.parser.evaluator import evaluate
from mathcore.parser.lexer import tokenize
from mathcore.parser.nodes import (
    Equation, Function, Inequality, Number, Operator, Variable, free_variables, to_source,
)


def _value(text: str, **bindings) -> float:
    return evaluate(parse(text).ast, bindings)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2+3*4", 14),
        ("2^3^2", 512),
        ("(2+3)*4", 20),
        ("-2^2", -4),
        ("2^-1", 0.5),
        ("10-4-3", 3),
        ("12/3/2", 2),
        ("3!", 6),
        ("2*3!", 12),
        ("2**3", 8),
        ("[1+2]*3", 9),
        ("max(1, 5, 3)", 5),
        ("7 % 3", 1),
    ],
)
def test_precedence_and_associativity(text: str, expected: float) -> None:
    assert _value(text) == pytest.approx(expected)


def test_implicit_multiplication_builds_products() -> None:
    assert _value("2x(x+1)", x=3) == 24
    assert _value("(x+1)(x-1)", x=3) == 8


def test_equation_and_inequality_nodes() -> None:
    eq = parse("2x + 3 = 7").ast
    assert isinstance(eq, Equation)
    assert to_source(eq) == "2*x + 3 = 7"

    ineq = parse("x <= 3").ast
    assert isinstance(ineq, Inequality)
    assert ineq.op == "<="


def test_unary_operators_use_prefixed_symbols() -> None:
    ast = parse("-x").ast
    assert isinstance(ast, Operator)
    assert ast.symbol == "u-"
    assert ast.is_unary
    assert ast.operands == (Variable("x"),)


def test_function_names_are_lowercased() -> None:
    ast = parse("SIN(0)").ast
    assert isinstance(ast, Function)
    assert ast.name == "sin"


def test_operator_arity_is_checked() -> None:
    with pytest.raises(ValueError):
        Operator("+", (Number(1.0),))


def test_spans_cover_the_source() -> None:
    ast = parse("2 + 3").ast
    assert ast.span == Span(0, 5)
    assert ast.operands[1].span == Span(4, 5)


def test_chained_relation_is_rejected() -> None:
    with pytest.raises(MathSyntaxError, match="Chained relations"):
        parse("1 < x < 3")


def test_function_without_parentheses() -> None:
    with pytest.raises(MathSyntaxError, match="must be followed by"):
        build_ast(tokenize("sin x"))
    # Through the facade the validator catches it first.
    with pytest.raises(ValidationError, match="must be followed by parentheses"):
        parse("sin x")


@pytest.mark.parametrize("text", ["", "   "])
def test_empty_expression(text: str) -> None:
    with pytest.raises(ParseError):
        parse(text)


def test_build_ast_on_empty_token_list() -> None:
    with pytest.raises(ParseError, match="Empty expression"):
        build_ast(tokenize(""))


def test_expression_too_long() -> None:
    config = SolverConfig(max_expression_length=10)
    with pytest.raises(ParseError, match="too long"):
        MathParser(config).parse("x + 1 + 2 + 3 = 4")


def test_deep_nesting_is_reported() -> None:
    text = "(" * 300 + "x" + ")" * 300
    with pytest.raises((MathSyntaxError, ParseError), match="nested too deeply"):
        parse(text)


def test_implicit_multiplication_can_be_disabled() -> None:
    config = SolverConfig(implicit_multiplication=False)
    with pytest.raises(MathSyntaxError):
        MathParser(config).parse("2x")


def test_parse_result_fields() -> None:
    result = parse("2sin(x) + y = pi")
    assert result.variables == ("x", "y")
    assert result.functions == ("sin",)
    assert result.normalized == "2sin(x) + y = pi"
    assert result.validation.is_valid
    assert result.complexity > 0
    assert result.steps[0].id == "parse"
    assert "pi" not in free_variables(result.ast)


def test_parse_many_keeps_going_after_failures() -> None:
    results = MathParser().parse_many(["x + 1", "((x", "y = 2"])
    assert [r.ast is not None for r in results] == [True, False, True]
    assert not results[1].validation.is_valid


def test_node_spans_index_the_text_as_typed() -> None:
    result = parse("  x +\n y = 3")
    assert result.normalized == "x + y = 3"
    y = result.ast.left.operands[1]
    assert y.name == "y"
    assert y.span == Span(7, 8)
