"""
Coefficient extraction from expression trees.

An equation ``lhs = rhs`` is moved to one side (``lhs - rhs``) and walked
bottom-up as polynomial arithmetic on ``{power: coefficient}`` maps.
Variable-free sub-trees (``sqrt(2)``, ``pi``, ``3!``) are folded to
numbers.  Anything that is not a polynomial with numeric coefficients in
the target raises :class:`ExtractionError`; a polynomial of too high a
degree raises :class:`DegreeMismatch`.
"""

from typing import Iterable, Optional

from mathcore.errors import ComputationError, DegreeMismatch, ExtractionError, MathErrorKind
from mathcore.parser.evaluator import CONSTANT_VALUES, evaluate
from mathcore.parser.nodes import (
    Equation, Function, Inequality, Node, Number, Operator, Variable,
    contains_variable, free_variables, to_source, unhandled_node,
)

# Relative to the largest addend; only sums are snapped, never input values.
CANCEL_TOLERANCE = 1e-12
MAX_EXPANSION_DEGREE = 64


# ── Polynomial arithmetic on {power: coeff} ─────────────────────────────

def _nonzero(poly: dict) -> dict:
    return {p: c for p, c in poly.items() if c != 0}


def _cancel(total: float, scale: float) -> float:
    """``total``, or ``0.0`` when it is round-off left from terms of size ``scale``."""
    return 0.0 if abs(total) <= CANCEL_TOLERANCE * scale else total


def _add(a: dict, b: dict, sign: float = 1.0) -> dict:
    out = dict(a)
    for p, c in b.items():
        current = out.get(p, 0.0)
        out[p] = _cancel(current + sign * c, max(abs(current), abs(c)))
    return _nonzero(out)


def _mul(a: dict, b: dict) -> dict:
    out: dict = {}
    scale: dict = {}
    for pa, ca in a.items():
        for pb, cb in b.items():
            term = ca * cb
            out[pa + pb] = out.get(pa + pb, 0.0) + term
            scale[pa + pb] = max(scale.get(pa + pb, 0.0), abs(term))
    return _nonzero({p: _cancel(c, scale[p]) for p, c in out.items()})


def _scale(a: dict, factor: float) -> dict:
    return _nonzero({p: c * factor for p, c in a.items()})


def degree_of(poly: dict) -> int:
    return max(poly) if poly else 0


def _fold(node: Node) -> dict:
    try:
        return _nonzero({0: evaluate(node)})
    except ComputationError as e:
        if e.kind is MathErrorKind.COMPUTATION_ERROR and free_variables(node):
            raise ExtractionError(f"Term '{to_source(node)}' depends on another variable") from e
        raise


def _poly(node: Node, variable: str) -> dict:
    if isinstance(node, Number):
        return _nonzero({0: node.value})
    if isinstance(node, Variable):
        if node.name == variable:
            return {1: 1.0}
        if node.name in CONSTANT_VALUES:
            return {0: CONSTANT_VALUES[node.name]}
        raise ExtractionError(
            f"Term '{node.name}' is another variable, not a number",
            suggestions=(f"Bind {node.name} to a value or solve for it instead",),
        )
    if isinstance(node, Function):
        if contains_variable(node, variable):
            raise ExtractionError(f"{node.name}() of {variable} is not a polynomial term")
        return _fold(node)
    if isinstance(node, Operator):
        if not contains_variable(node, variable):
            return _fold(node)
        symbol = node.symbol
        if symbol == "u-":
            return _scale(_poly(node.operands[0], variable), -1.0)
        if symbol == "u+":
            return _poly(node.operands[0], variable)
        if symbol in ("!", "%"):
            raise ExtractionError(f"'{symbol}' applied to {variable} is not a polynomial term")
        left, right = node.operands
        if symbol == "+":
            return _add(_poly(left, variable), _poly(right, variable))
        if symbol == "-":
            return _add(_poly(left, variable), _poly(right, variable), -1.0)
        if symbol == "*":
            return _mul(_poly(left, variable), _poly(right, variable))
        if symbol == "/":
            if contains_variable(right, variable):
                raise ExtractionError(f"Division by an expression in {variable}")
            divisor = _fold(right).get(0, 0.0)
            if divisor == 0:
                raise ComputationError("Division by zero", kind=MathErrorKind.DIVISION_BY_ZERO)
            return _scale(_poly(left, variable), 1.0 / divisor)
        if symbol == "^":
            return _power(left, right, variable)
        unhandled_node(node)
    if isinstance(node, Equation):
        return _add(_poly(node.left, variable), _poly(node.right, variable), -1.0)
    if isinstance(node, Inequality):
        raise ExtractionError("Inequalities have no polynomial form")
    unhandled_node(node)


def _power(base: Node, exponent: Node, variable: str) -> dict:
    if contains_variable(exponent, variable):
        raise ExtractionError(f"{variable} appears in an exponent")
    n = _fold(exponent).get(0, 0.0)
    if n < 0 or not float(n).is_integer():
        raise ExtractionError(f"Exponent {n:g} is not a non-negative integer")
    n = int(n)
    if n > MAX_EXPANSION_DEGREE:
        raise DegreeMismatch(n, MAX_EXPANSION_DEGREE, variable)
    result = {0: 1.0}
    factor = _poly(base, variable)
    for _ in range(n):
        result = _mul(result, factor)
    return result


# ── Public extraction API ───────────────────────────────────────────────

def extract_polynomial(ast: Node, variable: str, max_degree: Optional[int] = None) -> dict:
    """``{power: coefficient}`` of ``lhs - rhs`` (zero coefficients dropped)."""
    poly = _poly(ast, variable)
    degree = degree_of(poly)
    if max_degree is not None and degree > max_degree:
        raise DegreeMismatch(degree, max_degree, variable)
    return poly


def extract_linear(ast: Node, variable: str) -> tuple[float, float]:
    """``(a, b)`` such that the equation reads ``a·x + b = 0``."""
    poly = extract_polynomial(ast, variable, max_degree=1)
    return poly.get(1, 0.0), poly.get(0, 0.0)


def extract_quadratic(ast: Node, variable: str) -> tuple[float, float, float]:
    """``(a, b, c)`` such that the equation reads ``a·x² + b·x + c = 0``."""
    poly = extract_polynomial(ast, variable, max_degree=2)
    return poly.get(2, 0.0), poly.get(1, 0.0), poly.get(0, 0.0)


# ── Linear forms in several variables ───────────────────────────────────

CONSTANT_KEY = ""


def _is_constant_form(form: dict) -> bool:
    return all(k == CONSTANT_KEY for k in form)


def _form(node: Node, variables: frozenset) -> dict:
    if not any(contains_variable(node, v) for v in variables):
        return _nonzero({CONSTANT_KEY: evaluate(node)})
    if isinstance(node, Variable):
        return {node.name: 1.0}
    if isinstance(node, Operator):
        symbol = node.symbol
        if symbol in ("u-", "u+"):
            inner = _form(node.operands[0], variables)
            return _scale(inner, -1.0) if symbol == "u-" else inner
        if symbol in ("+", "-"):
            left, right = (_form(o, variables) for o in node.operands)
            return _add(left, right, 1.0 if symbol == "+" else -1.0)
        if symbol == "*":
            left, right = (_form(o, variables) for o in node.operands)
            if _is_constant_form(left):
                return _scale(right, left.get(CONSTANT_KEY, 0.0))
            if _is_constant_form(right):
                return _scale(left, right.get(CONSTANT_KEY, 0.0))
            raise DegreeMismatch(2, 1, _first_variable(node, variables))
        if symbol == "/":
            left, right = (_form(o, variables) for o in node.operands)
            if not _is_constant_form(right):
                raise ExtractionError("Division by a variable in a linear system")
            divisor = right.get(CONSTANT_KEY, 0.0)
            if divisor == 0:
                raise ComputationError("Division by zero", kind=MathErrorKind.DIVISION_BY_ZERO)
            return _scale(left, 1.0 / divisor)
        if symbol == "^":
            base, exponent = node.operands
            power = _form(exponent, variables)
            if not _is_constant_form(power):
                raise ExtractionError("Variable exponent in a linear system")
            n = power.get(CONSTANT_KEY, 0.0)
            if n == 1:
                return _form(base, variables)
            if n == 0:
                return {CONSTANT_KEY: 1.0}
            raise DegreeMismatch(int(n) if float(n).is_integer() and n > 1 else 2, 1,
                                 _first_variable(node, variables))
    if isinstance(node, Equation):
        return _add(_form(node.left, variables), _form(node.right, variables), -1.0)
    raise ExtractionError(f"'{to_source(node)}' is not linear in {', '.join(sorted(variables))}")


def _first_variable(node: Node, variables: frozenset) -> str:
    return next(v for v in free_variables(node) if v in variables)


def extract_linear_form(ast: Node, variables: Iterable[str]) -> tuple[dict, float]:
    """``({var: coeff}, constant)`` with ``sum(coeff·var) + constant = 0``."""
    form = _form(ast, frozenset(variables))
    constant = form.pop(CONSTANT_KEY, 0.0)
    return form, constant
