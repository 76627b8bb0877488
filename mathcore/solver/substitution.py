"""Substitution (verification) check.

Given an equation like ``2x + 1 = 7`` and values like ``x = 3``, this
module substitutes the values into the equation and checks whether both
sides agree, recording each stage as a step.
"""

import logging
import math
import re
from typing import Mapping, Optional, Union

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import ComputationError, MathError, ParseError
from mathcore.models import CheckResult, OperationKind
from mathcore.parser import MathParser
from mathcore.parser.evaluator import evaluate
from mathcore.parser.nodes import Equation, Inequality, free_variables, num, substitute_all, to_source
from mathcore.solver.formatting import fmt_approx
from mathcore.solver.steps import StepTrace

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*$")

Value = Union[int, float, str]


def parse_values(values_str: str) -> dict[str, str]:
    """Parse a user-supplied values string like ``x = 3, y = 4``.

    Returns a dict mapping variable names to their raw value strings.
    """
    assignments = re.split(r"\s*[,;]\s*", values_str.strip())
    result = {}
    for assignment in assignments:
        assignment = assignment.strip()
        if not assignment:
            continue
        if "=" not in assignment:
            raise ParseError(
                f"Invalid value format: '{assignment}'. "
                f"Expected format: variable = value (e.g. x = 3)"
            )
        name, value = (part.strip() for part in assignment.split("=", 1))
        if not name or not value:
            raise ParseError(
                f"Invalid value format: '{assignment}'. "
                f"Both variable name and value are required."
            )
        if not _IDENTIFIER.match(name):
            raise ParseError(f"Invalid variable name: '{name}'")
        result[name] = value
    if not result:
        raise ParseError("No values provided. Enter values like: x = 3  or  x = 3, y = 4")
    return result


def resolve_value(value: Value, parser: Optional[MathParser] = None) -> float:
    """Numbers pass through; strings such as ``pi/2`` are parsed and evaluated."""
    if isinstance(value, bool):
        raise ComputationError(f"Invalid value: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ComputationError(f"Value must be finite, got {value!r}")
        return float(value)
    parser = parser or MathParser()
    ast = parser.parse(str(value)).ast
    if free_variables(ast):
        raise ComputationError(f"Value '{value}' must not contain variables")
    return evaluate(ast)


def resolve_bindings(values: Optional[Mapping], parser: Optional[MathParser] = None) -> dict:
    return {name: resolve_value(v, parser) for name, v in (values or {}).items()}


def check_solution(expression: str, values: Mapping[str, Value],
                   config: Optional[SolverConfig] = None) -> CheckResult:
    """Substitute *values* into *expression* and compare both sides."""
    config = config or DEFAULT_CONFIG
    parser = MathParser(config)
    parsed = parser.parse(expression)
    ast = parsed.ast
    if isinstance(ast, Inequality):
        raise ComputationError("Substitution check needs an equation, not an inequality",
                               expression=parsed.normalized)
    if not isinstance(ast, Equation):
        ast = Equation(ast, num(0))

    try:
        resolved = resolve_bindings(values, parser)
    except MathError as e:
        raise e.with_expression(parsed.normalized)
    missing = [v for v in free_variables(ast) if v not in resolved]
    if missing:
        raise ComputationError(
            f"Missing value(s) for variable(s): {', '.join(missing)}. "
            f"Please provide values for all variables in the equation.",
            expression=parsed.normalized,
        )

    trace = StepTrace(parsed.steps)
    shown = ", ".join(f"{k} = {fmt_approx(v, config.precision)}" for k, v in resolved.items())
    equation_text = to_source(ast)
    trace.add(
        "given_values",
        "Given values to substitute",
        OperationKind.IDENTIFICATION,
        equation_text,
        shown,
        f"We will substitute {shown} into the equation and evaluate both sides "
        f"to check if they are equal.",
    )

    substituted = substitute_all(ast, {k: num(v) for k, v in resolved.items()})
    trace.add(
        "substitute_values",
        f"Substitute {shown} into the equation",
        OperationKind.SUBSTITUTION,
        equation_text,
        to_source(substituted),
        "We replace every variable with its given value in the equation.",
    )

    lhs = evaluate(substituted.left)
    rhs = evaluate(substituted.right)
    difference = lhs - rhs
    holds = abs(difference) <= max(config.tolerance, 1e-9) * max(1.0, abs(lhs), abs(rhs))
    lhs_s, rhs_s = fmt_approx(lhs, config.precision), fmt_approx(rhs, config.precision)
    trace.add(
        "evaluate_sides",
        "Evaluate both sides",
        OperationKind.CALCULATION,
        to_source(substituted),
        f"{lhs_s} {'=' if holds else '≠'} {rhs_s}",
        f"After substituting, the left side is {lhs_s} and the right side is {rhs_s}; "
        f"their difference is {fmt_approx(difference, config.precision)}.",
    )
    trace.add(
        "conclusion",
        "Compare the two sides",
        OperationKind.CONCLUSION,
        f"{lhs_s} - {rhs_s} = {fmt_approx(difference, config.precision)}",
        "LHS and RHS are equal ✓" if holds else "LHS and RHS are NOT equal ✗",
        "The values satisfy the equation." if holds
        else "The values do not satisfy the equation.",
    )
    logger.debug("Checked %r with %s: holds=%s", expression, resolved, holds)
    return CheckResult(holds, lhs, rhs, difference, trace.steps, resolved)
