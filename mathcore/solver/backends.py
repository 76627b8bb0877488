"""
Pluggable symbolic backends.

A backend is anything implementing :class:`SymbolicBackend`.  The solver
never hard-codes "try A, else B": it walks a :class:`BackendChain`, an
explicit prioritised list whose order can be inspected and changed.
:class:`SympyBackend` is the default implementation.
"""

import keyword
import logging
import re
from typing import Iterable, Iterator, Protocol, runtime_checkable

import sympy
from sympy.parsing.sympy_parser import (
    parse_expr, standard_transformations, convert_xor, rationalize,
)

from mathcore.errors import BackendError, MathError
from mathcore.parser import MathParser
from mathcore.parser.nodes import (
    Equation, Inequality, Variable, free_variables, substitute, to_source,
)

logger = logging.getLogger(__name__)

# Input reaches SymPy through to_source(), so multiplication is already
# explicit and identifiers must never be split into letters.
TRANSFORMATIONS = standard_transformations + (
    convert_xor,
    rationalize,  # Convert decimals like "12.5" to exact Rational(25, 2)
)


@runtime_checkable
class SymbolicBackend(Protocol):
    name: str

    def differentiate(self, expression: str, variable: str) -> str: ...

    def integrate(self, expression: str, variable: str) -> str: ...

    def factor(self, expression: str, variable: str) -> str: ...

    def expand(self, expression: str, variable: str) -> str: ...

    def simplify(self, expression: str, variable: str) -> str: ...

    def solve(self, equation: str, variable: str) -> list[str]:
        """Real closed-form roots; raises BackendError when undecided."""
        ...

    def evaluate(self, expression: str) -> float: ...


# ── SymPy ───────────────────────────────────────────────────────────────

def _log10(x):
    return sympy.log(x, 10)


def _log2(x):
    return sympy.log(x, 2)


_EULER = re.compile(r"\bE\b")

_SYMPY_NAMES = {
    "pi": sympy.pi,
    "e": sympy.E,
    "ln": sympy.log,
    "log10": _log10,
    "log2": _log2,
    "ceil": sympy.ceiling,
    "min": sympy.Min,
    "max": sympy.Max,
    "abs": sympy.Abs,
}


def _display(expr) -> str:
    """SymPy text in the notation mathcore parses back (`^`, lower-case `e`)."""
    return _EULER.sub("e", str(expr).replace("**", "^"))


class SympyBackend:
    """SymbolicBackend on top of SymPy."""

    name = "sympy"

    def __init__(self):
        self._parser = MathParser()

    # ── Conversion ───────────────────────────────────────────────────

    def _to_sympy(self, expression: str, variable: str = ""):
        """Return ``(expr, symbols)``; an equation becomes ``lhs - rhs``."""
        try:
            ast = self._parser.parse(expression).ast
        except MathError as e:
            raise BackendError(f"Could not parse expression: '{expression}'. Error: {e}") from e
        if isinstance(ast, Inequality):
            raise BackendError("Inequalities are not supported by the symbolic backend")
        names = free_variables(ast)
        if variable and variable not in names:
            names.append(variable)
        local = dict(_SYMPY_NAMES)
        symbols = {}
        for i, name in enumerate(names):
            symbols[name] = sympy.Symbol(name, real=True)
            # Python keywords ("as", "in", "for") cannot reach parse_expr.
            safe = f"_v{i}" if keyword.iskeyword(name) else name
            if safe != name:
                ast = substitute(ast, name, Variable(safe))
            local[safe] = symbols[name]
        try:
            if isinstance(ast, Equation):
                left = parse_expr(to_source(ast.left), local_dict=local,
                                  transformations=TRANSFORMATIONS)
                right = parse_expr(to_source(ast.right), local_dict=local,
                                   transformations=TRANSFORMATIONS)
                return left - right, symbols
            return parse_expr(to_source(ast), local_dict=local,
                              transformations=TRANSFORMATIONS), symbols
        except Exception as e:
            raise BackendError(f"SymPy could not read '{expression}': {e}") from e

    def _apply(self, operation, expression: str, variable: str) -> str:
        expr, symbols = self._to_sympy(expression, variable)
        try:
            return _display(operation(expr, symbols[variable]))
        except Exception as e:
            raise BackendError(f"SymPy failed on '{expression}': {e}") from e

    # ── SymbolicBackend ──────────────────────────────────────────────

    def differentiate(self, expression: str, variable: str) -> str:
        return self._apply(lambda e, x: sympy.diff(e, x), expression, variable)

    def integrate(self, expression: str, variable: str) -> str:
        return self._apply(lambda e, x: sympy.integrate(e, x), expression, variable)

    def factor(self, expression: str, variable: str) -> str:
        return self._apply(lambda e, x: sympy.factor(e), expression, variable)

    def expand(self, expression: str, variable: str) -> str:
        return self._apply(lambda e, x: sympy.expand(e), expression, variable)

    def simplify(self, expression: str, variable: str) -> str:
        return self._apply(lambda e, x: sympy.simplify(e), expression, variable)

    def solve(self, equation: str, variable: str) -> list[str]:
        expr, symbols = self._to_sympy(equation, variable)
        x = symbols[variable]
        try:
            roots = sympy.solve(expr, x)
        except NotImplementedError as e:
            raise BackendError(f"SymPy has no closed form for '{equation}'") from e
        except Exception as e:
            raise BackendError(f"SymPy failed to solve '{equation}': {e}") from e
        if isinstance(roots, dict):
            roots = [roots[x]] if x in roots else []
        if not isinstance(roots, list):
            raise BackendError(f"SymPy gave no explicit roots for '{equation}'")
        real = []
        for root in roots:
            if isinstance(root, (tuple, dict)):
                raise BackendError(f"SymPy returned a parametric answer for '{equation}'")
            if root.is_real is False:
                continue
            # Roots in terms of other variables are kept as they are.
            if root.is_real is None and not root.free_symbols:
                try:
                    approx = complex(sympy.N(root))
                except (TypeError, ValueError) as e:
                    raise BackendError(f"Root {root} has no numeric value") from e
                if abs(approx.imag) > 1e-12:
                    continue
            real.append(_display(root))
        logger.debug("SymPy roots of %r in %s: %s", equation, variable, real)
        return real

    def evaluate(self, expression: str) -> float:
        try:
            expr = parse_expr(expression.replace("^", "**"), local_dict=dict(_SYMPY_NAMES),
                              transformations=TRANSFORMATIONS)
            value = complex(sympy.N(expr))
        except Exception as e:
            raise BackendError(f"SymPy could not evaluate '{expression}': {e}") from e
        if abs(value.imag) > 1e-12:
            raise BackendError(f"'{expression}' is not a real number")
        return value.real


# ── Chain ───────────────────────────────────────────────────────────────

class BackendChain:
    """Prioritised, inspectable list of symbolic backends."""

    def __init__(self, backends: Iterable[SymbolicBackend] = ()):
        self._backends = list(backends)

    @classmethod
    def default(cls) -> "BackendChain":
        return cls([SympyBackend()])

    def add(self, backend: SymbolicBackend) -> "BackendChain":
        self._backends.append(backend)
        return self

    @property
    def names(self) -> list[str]:
        return [b.name for b in self._backends]

    def __iter__(self) -> Iterator[SymbolicBackend]:
        return iter(self._backends)

    def __len__(self) -> int:
        return len(self._backends)
