"""
Immutable expression tree.

The tree is a closed union of six frozen dataclasses.  Consumers dispatch
with an ``isinstance`` chain that ends in :func:`unhandled_node`, so a new
node kind fails loudly instead of being skipped.  Transformations such as
:func:`substitute` always build new nodes.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from mathcore.models import Span
from mathcore.parser.lexer import is_constant

# ── Operator table ──────────────────────────────────────────────────────

PRECEDENCE = {
    "+": 1, "-": 1,
    "*": 2, "/": 2, "%": 2,
    "u+": 3, "u-": 3,
    "^": 4,
    "!": 5,
}

RIGHT_ASSOCIATIVE = frozenset({"^", "u+", "u-"})

UNARY_SYMBOLS = frozenset({"u+", "u-", "!"})

_ATOM = 10


# ── Nodes ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Number:
    value: float
    span: Optional[Span] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Variable:
    name: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Function:
    name: str
    args: tuple
    span: Optional[Span] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Operator:
    """Unary (``u+``, ``u-``, postfix ``!``) or binary operator application."""

    symbol: str
    operands: tuple
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        expected = 1 if self.symbol in UNARY_SYMBOLS else 2
        if len(self.operands) != expected:
            raise ValueError(
                f"Operator {self.symbol!r} takes {expected} operand(s), "
                f"got {len(self.operands)}"
            )

    @property
    def precedence(self) -> int:
        return PRECEDENCE[self.symbol]

    @property
    def associativity(self) -> str:
        return "right" if self.symbol in RIGHT_ASSOCIATIVE else "left"

    @property
    def is_unary(self) -> bool:
        return len(self.operands) == 1


@dataclass(frozen=True)
class Equation:
    left: "Node"
    right: "Node"
    span: Optional[Span] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Inequality:
    op: str
    left: "Node"
    right: "Node"
    span: Optional[Span] = field(default=None, compare=False, repr=False)


Node = Union[Number, Variable, Function, Operator, Equation, Inequality]


def unhandled_node(node) -> None:
    raise TypeError(f"Unhandled expression node: {type(node).__name__}")


# ── Construction shortcuts ──────────────────────────────────────────────

def num(value) -> Number:
    return Number(float(value))


def var(name: str) -> Variable:
    return Variable(name)


def binary(symbol: str, left: Node, right: Node) -> Operator:
    return Operator(symbol, (left, right))


# ── Traversal ───────────────────────────────────────────────────────────

def children(node: Node) -> tuple:
    if isinstance(node, (Number, Variable)):
        return ()
    if isinstance(node, Function):
        return node.args
    if isinstance(node, Operator):
        return node.operands
    if isinstance(node, (Equation, Inequality)):
        return (node.left, node.right)
    unhandled_node(node)


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def free_variables(node: Node) -> list[str]:
    """Variable names in order of first occurrence, constants excluded."""
    seen: list[str] = []
    for n in walk(node):
        if isinstance(n, Variable) and not is_constant(n.name) and n.name not in seen:
            seen.append(n.name)
    return seen


def functions_used(node: Node) -> list[str]:
    seen: list[str] = []
    for n in walk(node):
        if isinstance(n, Function) and n.name not in seen:
            seen.append(n.name)
    return seen


def contains_variable(node: Node, name: str) -> bool:
    return any(isinstance(n, Variable) and n.name == name for n in walk(node))


def complexity(node: Node) -> float:
    """Structural weight: numbers 0.5, variables 1, operators 1.5,
    function calls 2, relations 3."""
    total = 0.0
    for n in walk(node):
        if isinstance(n, Number):
            total += 0.5
        elif isinstance(n, Variable):
            total += 1
        elif isinstance(n, Operator):
            total += 1.5
        elif isinstance(n, Function):
            total += 2
        elif isinstance(n, (Equation, Inequality)):
            total += 3
        else:
            unhandled_node(n)
    return total


def substitute(node: Node, name: str, replacement: Node) -> Node:
    """Return a new tree with every ``Variable(name)`` replaced."""
    if isinstance(node, Number):
        return node
    if isinstance(node, Variable):
        return replacement if node.name == name else node
    if isinstance(node, Function):
        return Function(node.name, tuple(substitute(a, name, replacement) for a in node.args),
                        node.span)
    if isinstance(node, Operator):
        return Operator(node.symbol,
                        tuple(substitute(o, name, replacement) for o in node.operands),
                        node.span)
    if isinstance(node, Equation):
        return Equation(substitute(node.left, name, replacement),
                        substitute(node.right, name, replacement), node.span)
    if isinstance(node, Inequality):
        return Inequality(node.op, substitute(node.left, name, replacement),
                          substitute(node.right, name, replacement), node.span)
    unhandled_node(node)


def substitute_all(node: Node, bindings: dict) -> Node:
    for name, replacement in bindings.items():
        if not isinstance(replacement, (Number, Variable, Function, Operator)):
            replacement = num(replacement)
        node = substitute(node, name, replacement)
    return node


# ── Pretty printing ─────────────────────────────────────────────────────

def format_number(value: float) -> str:
    if value != value or value in (float("inf"), float("-inf")):
        return str(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _binding_power(node: Node) -> int:
    if isinstance(node, Operator):
        return node.precedence
    if isinstance(node, Number) and node.value < 0:
        return PRECEDENCE["u-"]
    if isinstance(node, (Equation, Inequality)):
        return 0
    return _ATOM


def _wrap(node: Node, needs_parens: bool) -> str:
    text = to_source(node)
    return f"({text})" if needs_parens else text


def to_source(node: Node) -> str:
    """Render *node* as parseable text with minimal parentheses."""
    if isinstance(node, Number):
        return format_number(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Function):
        return f"{node.name}({', '.join(to_source(a) for a in node.args)})"
    if isinstance(node, Operator):
        power = node.precedence
        if node.symbol == "!":
            operand = node.operands[0]
            return _wrap(operand, _binding_power(operand) < power) + "!"
        if node.is_unary:
            operand = node.operands[0]
            return node.symbol[1] + _wrap(operand, _binding_power(operand) < power)
        left, right = node.operands
        lp, rp = _binding_power(left), _binding_power(right)
        left_text = _wrap(left, lp < power or (lp == power and node.associativity == "right"))
        right_text = _wrap(right, rp < power or (rp == power and node.associativity == "left"))
        if node.symbol in ("+", "-"):
            return f"{left_text} {node.symbol} {right_text}"
        return f"{left_text}{node.symbol}{right_text}"
    if isinstance(node, Equation):
        return f"{to_source(node.left)} = {to_source(node.right)}"
    if isinstance(node, Inequality):
        return f"{to_source(node.left)} {node.op} {to_source(node.right)}"
    unhandled_node(node)
