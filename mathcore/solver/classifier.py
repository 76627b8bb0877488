"""
Structural equation classifier.

Checks run in a fixed order and the first match wins:
trigonometric → exponential → logarithmic → rational → radical → degree.
Only sub-expressions that depend on the target variable count, so
``sin(1)*x = 2`` is linear in ``x``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from mathcore.errors import ComputationError
from mathcore.models import EquationType
from mathcore.parser.evaluator import evaluate
from mathcore.parser.nodes import (
    Equation, Function, Inequality, Node, Number, Operator, Variable,
    contains_variable, free_variables, unhandled_node, walk,
)
from mathcore.solver.formatting import degree_name

logger = logging.getLogger(__name__)

TRIGONOMETRIC_FUNCTIONS = frozenset({
    "sin", "cos", "tan", "cot", "sec", "csc",
    "asin", "acos", "atan", "acot", "asec", "acsc",
})
HYPERBOLIC_FUNCTIONS = frozenset({
    "sinh", "cosh", "tanh", "coth", "sech", "csch",
    "asinh", "acosh", "atanh", "acoth", "asech", "acsch",
})
EXPONENTIAL_FUNCTIONS = frozenset({"exp"}) | HYPERBOLIC_FUNCTIONS
LOGARITHMIC_FUNCTIONS = frozenset({"log", "ln", "log10", "log2"})
RADICAL_FUNCTIONS = frozenset({"sqrt", "cbrt"})

PREFERRED_TARGETS = ("x", "y", "z", "t")


@dataclass(frozen=True)
class Classification:
    equation_type: EquationType
    variable: str
    degree: Optional[int]
    reason: str


# ── Structural helpers ──────────────────────────────────────────────────

def constant_value(node: Node) -> Optional[float]:
    """Numeric value of a variable-free sub-tree, or None."""
    if free_variables(node):
        return None
    try:
        return evaluate(node)
    except ComputationError:
        return None


def _calls(node: Node, names: frozenset, variable: str) -> Optional[Function]:
    for n in walk(node):
        if isinstance(n, Function) and n.name in names and contains_variable(n, variable):
            return n
    return None


def _variable_exponent(node: Node, variable: str) -> bool:
    return any(
        isinstance(n, Operator) and n.symbol == "^" and contains_variable(n.operands[1], variable)
        for n in walk(node)
    )


def _variable_divisor(node: Node, variable: str) -> bool:
    return any(
        isinstance(n, Operator) and n.symbol == "/" and contains_variable(n.operands[1], variable)
        for n in walk(node)
    )


def _fractional_power(node: Node, variable: str) -> bool:
    for n in walk(node):
        if isinstance(n, Operator) and n.symbol == "^" and contains_variable(n.operands[0], variable):
            exponent = constant_value(n.operands[1])
            if exponent is not None and not float(exponent).is_integer():
                return True
    return False


def polynomial_degree(node: Node, variable: str) -> Optional[int]:
    """Highest structural power of *variable*; None when not a polynomial.

    No terms are cancelled: ``x*x - x^2`` has degree 2.
    """
    if isinstance(node, Number):
        return 0
    if isinstance(node, Variable):
        return 1 if node.name == variable else 0
    if isinstance(node, Function):
        return None if contains_variable(node, variable) else 0
    if isinstance(node, Operator):
        if not contains_variable(node, variable):
            return 0
        symbol = node.symbol
        if symbol in ("u-", "u+"):
            return polynomial_degree(node.operands[0], variable)
        if symbol in ("!", "%"):
            return None
        left, right = node.operands
        if symbol in ("+", "-", "*"):
            ld, rd = polynomial_degree(left, variable), polynomial_degree(right, variable)
            if ld is None or rd is None:
                return None
            return ld + rd if symbol == "*" else max(ld, rd)
        if symbol == "/":
            if contains_variable(right, variable):
                return None
            return polynomial_degree(left, variable)
        if symbol == "^":
            if contains_variable(right, variable):
                return None
            base = polynomial_degree(left, variable)
            exponent = constant_value(right)
            if base is None or exponent is None or exponent < 0 \
                    or not float(exponent).is_integer():
                return None
            return base * int(exponent)
        unhandled_node(node)
    if isinstance(node, (Equation, Inequality)):
        ld, rd = polynomial_degree(node.left, variable), polynomial_degree(node.right, variable)
        if ld is None or rd is None:
            return None
        return max(ld, rd)
    unhandled_node(node)


# ── Target selection ────────────────────────────────────────────────────

def select_target_variable(ast: Node, variables: Optional[Iterable[str]] = None,
                           bindings: Optional[Mapping] = None) -> str:
    """Pick the variable to solve for.

    Caller-supplied names minus bound ones win; otherwise the first of
    x, y, z, t present; otherwise the first variable in the tree; ``x``
    when the tree has none.
    """
    bound = set(bindings or {})
    if variables:
        candidates = [v for v in variables if v not in bound]
        if candidates:
            return candidates[0]
    present = [v for v in free_variables(ast) if v not in bound]
    for name in PREFERRED_TARGETS:
        if name in present:
            return name
    return present[0] if present else "x"


# ── Classifier ──────────────────────────────────────────────────────────

class EquationClassifier:
    """Buckets an equation into one :class:`EquationType`."""

    def classify(self, ast: Node, variable: str, raw: str = "") -> Classification:
        result = self._classify(ast, variable)
        logger.debug("Classified %r as %s in %s: %s", raw or ast, result.equation_type.value,
                     variable, result.reason)
        return result

    def _classify(self, ast: Node, variable: str) -> Classification:
        fn = _calls(ast, TRIGONOMETRIC_FUNCTIONS, variable)
        if fn is not None:
            return Classification(EquationType.TRIGONOMETRIC, variable, None,
                                  f"{variable} appears inside {fn.name}()")
        fn = _calls(ast, EXPONENTIAL_FUNCTIONS, variable)
        if fn is not None:
            return Classification(EquationType.EXPONENTIAL, variable, None,
                                  f"{variable} appears inside {fn.name}()")
        if _variable_exponent(ast, variable):
            return Classification(EquationType.EXPONENTIAL, variable, None,
                                  f"{variable} appears in an exponent")
        fn = _calls(ast, LOGARITHMIC_FUNCTIONS, variable)
        if fn is not None:
            return Classification(EquationType.LOGARITHMIC, variable, None,
                                  f"{variable} appears inside {fn.name}()")
        if _variable_divisor(ast, variable):
            return Classification(EquationType.RATIONAL, variable, None,
                                  f"a divisor contains {variable}")
        fn = _calls(ast, RADICAL_FUNCTIONS, variable)
        if fn is not None:
            return Classification(EquationType.RADICAL, variable, None,
                                  f"{variable} appears inside {fn.name}()")
        if _fractional_power(ast, variable):
            return Classification(EquationType.RADICAL, variable, None,
                                  f"{variable} is raised to a fractional power")

        degree = polynomial_degree(ast, variable)
        if degree == 1:
            return Classification(EquationType.LINEAR, variable, 1, "highest power of "
                                  f"{variable} is 1")
        if degree == 2:
            return Classification(EquationType.QUADRATIC, variable, 2, "highest power of "
                                  f"{variable} is 2")
        if degree is not None and degree > 2:
            return Classification(EquationType.POLYNOMIAL, variable, degree,
                                  f"highest power of {variable} is {degree} ({degree_name(degree)})")
        return Classification(EquationType.POLYNOMIAL, variable, degree,
                              "no closed-form pattern recognised")


def classify(ast: Node, variable: str, raw: str = "") -> Classification:
    return EquationClassifier().classify(ast, variable, raw)
