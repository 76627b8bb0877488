"""Domain restrictions implied by an equation's structure."""

import logging
from typing import Mapping, Optional

from mathcore.errors import ComputationError
from mathcore.models import DomainRestriction, Solution
from mathcore.parser.evaluator import evaluate
from mathcore.parser.nodes import Function, Node, Operator, contains_variable, to_source, walk
from mathcore.solver.classifier import LOGARITHMIC_FUNCTIONS, constant_value

logger = logging.getLogger(__name__)

_EPS = 1e-12


def _restriction(variable: str, arg: Node, relation: str, description: str) -> DomainRestriction:
    text = to_source(arg)
    if relation == "[-1,1]":
        restriction = f"-1 ≤ {text} ≤ 1"
    else:
        symbol = {">": ">", ">=": "≥", "!=": "≠"}[relation]
        restriction = f"{text} {symbol} 0"
    return DomainRestriction(variable, restriction, description, expression=arg, relation=relation)


def domain_restrictions(ast: Node, variable: str) -> list[DomainRestriction]:
    """Restrictions on *variable* from logs, even roots, divisors and arcsin/arccos."""
    found: list[DomainRestriction] = []

    def add(item: DomainRestriction) -> None:
        if all(r.restriction != item.restriction for r in found):
            found.append(item)

    for node in walk(ast):
        if isinstance(node, Function) and node.args and contains_variable(node.args[0], variable):
            arg = node.args[0]
            if node.name in LOGARITHMIC_FUNCTIONS:
                add(_restriction(variable, arg, ">",
                                 f"The argument of {node.name} must be positive"))
            elif node.name == "sqrt":
                add(_restriction(variable, arg, ">=",
                                 "The radicand of a square root cannot be negative"))
            elif node.name in ("asin", "acos"):
                add(_restriction(variable, arg, "[-1,1]",
                                 f"{node.name} is only defined on [-1, 1]"))
        elif isinstance(node, Operator) and not node.is_unary:
            left, right = node.operands
            if node.symbol == "/" and contains_variable(right, variable):
                add(_restriction(variable, right, "!=", "Division by zero is undefined"))
            elif node.symbol == "^" and contains_variable(left, variable):
                exponent = constant_value(right)
                if exponent is not None and not float(exponent).is_integer():
                    add(_restriction(variable, left, ">=",
                                     "A fractional power needs a non-negative base"))
                elif exponent is not None and exponent < 0:
                    add(_restriction(variable, left, "!=",
                                     "A negative power divides by its base"))
    return found


def satisfies(restriction: DomainRestriction, variable: str, value: float,
              bindings: Optional[Mapping] = None) -> bool:
    env = dict(bindings or {})
    env[variable] = value
    try:
        v = evaluate(restriction.expression, env)
    except ComputationError:
        return False
    if restriction.relation == ">":
        return v > _EPS
    if restriction.relation == ">=":
        return v >= -1e-9
    if restriction.relation == "!=":
        return abs(v) > _EPS
    if restriction.relation == "[-1,1]":
        return -1 - 1e-9 <= v <= 1 + 1e-9
    raise ValueError(f"Unknown restriction relation {restriction.relation!r}")


def filter_solutions(solutions: list[Solution], restrictions: list[DomainRestriction],
                     variable: str, bindings: Optional[Mapping] = None) -> tuple[list, list]:
    """Split *solutions* into ``(kept, rejected)``; symbolic-only ones are kept."""
    kept, rejected = [], []
    for solution in solutions:
        if solution.approximation is None or not restrictions:
            kept.append(solution)
            continue
        if all(satisfies(r, variable, solution.approximation, bindings) for r in restrictions):
            kept.append(solution)
        else:
            logger.debug("Rejected extraneous root %s = %s", variable, solution.value)
            rejected.append(solution)
    return kept, rejected
