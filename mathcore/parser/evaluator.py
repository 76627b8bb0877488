"""Numeric evaluation of expression trees."""

import math
from typing import Mapping, Optional

from mathcore.errors import ComputationError, MathErrorKind
from mathcore.parser.nodes import (
    Equation, Function, Inequality, Node, Number, Operator, Variable, unhandled_node,
)

CONSTANT_VALUES = {"pi": math.pi, "e": math.e}

# Names the lexer knows but that need a symbolic engine to mean anything.
SYMBOLIC_ONLY = frozenset({
    "integrate", "derivative", "diff", "sum", "product", "limit", "solve",
    "simplify", "expand", "factor", "det", "inv", "transpose",
})


def _cbrt(x):
    return math.copysign(abs(x) ** (1.0 / 3.0), x)


def _factorial(x):
    if x < 0:
        raise ValueError("factorial of a negative number")
    if float(x).is_integer():
        return float(math.factorial(int(x)))
    return math.gamma(x + 1)


def _round(x):
    return float(math.floor(x + 0.5))


def _log(x, base=None):
    if base is None:
        return math.log(x)
    return math.log(x, base)


def _integer_args(name, args):
    if not all(float(a).is_integer() for a in args):
        raise ValueError(f"{name} expects integer arguments")
    return [int(a) for a in args]


def _gcd(*args):
    return float(math.gcd(*_integer_args("gcd", args)))


def _lcm(*args):
    return float(math.lcm(*_integer_args("lcm", args)))


def _beta(a, b):
    return math.gamma(a) * math.gamma(b) / math.gamma(a + b)


# name → (callable, min arity, max arity or None for variadic)
FUNCTION_TABLE = {
    "sin": (math.sin, 1, 1),
    "cos": (math.cos, 1, 1),
    "tan": (math.tan, 1, 1),
    "cot": (lambda x: 1.0 / math.tan(x), 1, 1),
    "sec": (lambda x: 1.0 / math.cos(x), 1, 1),
    "csc": (lambda x: 1.0 / math.sin(x), 1, 1),
    "asin": (math.asin, 1, 1),
    "acos": (math.acos, 1, 1),
    "atan": (math.atan, 1, 1),
    "acot": (lambda x: math.atan(1.0 / x), 1, 1),
    "asec": (lambda x: math.acos(1.0 / x), 1, 1),
    "acsc": (lambda x: math.asin(1.0 / x), 1, 1),
    "sinh": (math.sinh, 1, 1),
    "cosh": (math.cosh, 1, 1),
    "tanh": (math.tanh, 1, 1),
    "coth": (lambda x: 1.0 / math.tanh(x), 1, 1),
    "sech": (lambda x: 1.0 / math.cosh(x), 1, 1),
    "csch": (lambda x: 1.0 / math.sinh(x), 1, 1),
    "asinh": (math.asinh, 1, 1),
    "acosh": (math.acosh, 1, 1),
    "atanh": (math.atanh, 1, 1),
    "acoth": (lambda x: math.atanh(1.0 / x), 1, 1),
    "asech": (lambda x: math.acosh(1.0 / x), 1, 1),
    "acsch": (lambda x: math.asinh(1.0 / x), 1, 1),
    "log": (_log, 1, 2),
    "ln": (math.log, 1, 1),
    "log10": (math.log10, 1, 1),
    "log2": (math.log2, 1, 1),
    "exp": (math.exp, 1, 1),
    "sqrt": (math.sqrt, 1, 1),
    "cbrt": (_cbrt, 1, 1),
    "abs": (abs, 1, 1),
    "floor": (lambda x: float(math.floor(x)), 1, 1),
    "ceil": (lambda x: float(math.ceil(x)), 1, 1),
    "round": (_round, 1, 1),
    "min": (min, 1, None),
    "max": (max, 1, None),
    "gcd": (_gcd, 1, None),
    "lcm": (_lcm, 1, None),
    "factorial": (_factorial, 1, 1),
    "gamma": (math.gamma, 1, 1),
    "beta": (_beta, 2, 2),
    "erf": (math.erf, 1, 1),
    "erfc": (math.erfc, 1, 1),
}


def _binary(symbol: str, a: float, b: float) -> float:
    if symbol == "+":
        return a + b
    if symbol == "-":
        return a - b
    if symbol == "*":
        return a * b
    if symbol == "/":
        return a / b
    if symbol == "%":
        return math.fmod(a, b)
    if symbol == "^":
        return math.pow(a, b)
    raise ComputationError(f"Unknown operator {symbol!r}",
                           kind=MathErrorKind.UNSUPPORTED_OPERATION)


def _call(name: str, args: list) -> float:
    if name in SYMBOLIC_ONLY:
        raise ComputationError(f"'{name}' cannot be evaluated numerically",
                               kind=MathErrorKind.UNSUPPORTED_OPERATION)
    if name not in FUNCTION_TABLE:
        raise ComputationError(f"Unknown function: {name}",
                               kind=MathErrorKind.UNSUPPORTED_OPERATION)
    fn, lo, hi = FUNCTION_TABLE[name]
    if len(args) < lo or (hi is not None and len(args) > hi):
        expected = str(lo) if lo == hi else f"{lo}+" if hi is None else f"{lo}-{hi}"
        raise ComputationError(f"{name} expects {expected} argument(s), got {len(args)}")
    return fn(*args)


def _eval(node: Node, bindings: Mapping) -> float:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        if node.name in bindings:
            return float(bindings[node.name])
        if node.name in CONSTANT_VALUES:
            return CONSTANT_VALUES[node.name]
        raise ComputationError(f"Variable '{node.name}' has no value",
                               suggestions=(f"Provide a value for {node.name}",))
    if isinstance(node, Function):
        return _call(node.name, [_eval(a, bindings) for a in node.args])
    if isinstance(node, Operator):
        values = [_eval(o, bindings) for o in node.operands]
        if node.symbol == "u-":
            return -values[0]
        if node.symbol == "u+":
            return values[0]
        if node.symbol == "!":
            return _factorial(values[0])
        return _binary(node.symbol, values[0], values[1])
    if isinstance(node, (Equation, Inequality)):
        raise ComputationError("A relation has no numeric value; evaluate each side instead",
                               kind=MathErrorKind.UNSUPPORTED_OPERATION)
    unhandled_node(node)


def evaluate(node: Node, bindings: Optional[Mapping] = None) -> float:
    """Evaluate *node* to a finite float.

    Raises :class:`ComputationError` for unbound variables, symbolic-only
    functions, division by zero, domain errors and overflow.
    """
    try:
        value = _eval(node, bindings or {})
    except ZeroDivisionError as e:
        raise ComputationError("Division by zero",
                               kind=MathErrorKind.DIVISION_BY_ZERO) from e
    except OverflowError as e:
        raise ComputationError("Numeric overflow during evaluation") from e
    except ValueError as e:
        raise ComputationError(f"Math domain error: {e}",
                               kind=MathErrorKind.DOMAIN_ERROR) from e
    if isinstance(value, complex) or not math.isfinite(value):
        raise ComputationError("Result is not a finite real number",
                               kind=MathErrorKind.DOMAIN_ERROR)
    return float(value)


def residual(equation: Node, bindings: Optional[Mapping] = None) -> float:
    """``lhs - rhs`` of an equation, or the value of a bare expression."""
    if isinstance(equation, (Equation, Inequality)):
        return evaluate(equation.left, bindings) - evaluate(equation.right, bindings)
    return evaluate(equation, bindings)
