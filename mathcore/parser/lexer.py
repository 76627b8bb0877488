"""
Tokenizer for mathematical expressions.

Produces a flat, EOF-terminated list of immutable :class:`Token` records
with span / line / column metadata.  Either the whole input is consumed
or a :class:`~mathcore.errors.LexError` is raised.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from mathcore.errors import LexError
from mathcore.models import Span

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    NUMBER = "number"
    VARIABLE = "variable"
    FUNCTION = "function"
    OPERATOR = "operator"
    LEFT_PAREN = "left_paren"
    RIGHT_PAREN = "right_paren"
    LEFT_BRACKET = "left_bracket"
    RIGHT_BRACKET = "right_bracket"
    COMMA = "comma"
    EQUALS = "equals"
    COMPARISON = "comparison"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    span: Span
    line: int
    column: int

    @property
    def start(self) -> int:
        return self.span.start


# ── Tables ──────────────────────────────────────────────────────────────

FUNCTIONS = frozenset({
    "sin", "cos", "tan", "cot", "sec", "csc",
    "asin", "acos", "atan", "acot", "asec", "acsc",
    "sinh", "cosh", "tanh", "coth", "sech", "csch",
    "asinh", "acosh", "atanh", "acoth", "asech", "acsch",
    "log", "ln", "log10", "log2",
    "exp", "sqrt", "cbrt",
    "abs", "floor", "ceil", "round",
    "min", "max",
    "gcd", "lcm",
    "factorial",
    "gamma", "beta",
    "erf", "erfc",
    "integrate", "derivative", "diff",
    "sum", "product",
    "limit",
    "solve",
    "simplify", "expand", "factor",
    "det", "inv", "transpose",
})

CONSTANTS = frozenset({"pi", "e"})

# Longest spellings first so "**" wins over "*" and "<=" over "<".
_MULTI_CHAR = (
    ("**", TokenKind.OPERATOR),
    ("==", TokenKind.EQUALS),
    ("<=", TokenKind.COMPARISON),
    (">=", TokenKind.COMPARISON),
    ("!=", TokenKind.COMPARISON),
)

_SINGLE_CHAR = {
    "+": TokenKind.OPERATOR,
    "-": TokenKind.OPERATOR,
    "*": TokenKind.OPERATOR,
    "/": TokenKind.OPERATOR,
    "%": TokenKind.OPERATOR,
    "^": TokenKind.OPERATOR,
    "!": TokenKind.OPERATOR,
    "(": TokenKind.LEFT_PAREN,
    ")": TokenKind.RIGHT_PAREN,
    "[": TokenKind.LEFT_BRACKET,
    "]": TokenKind.RIGHT_BRACKET,
    ",": TokenKind.COMMA,
    "=": TokenKind.EQUALS,
    "<": TokenKind.COMPARISON,
    ">": TokenKind.COMPARISON,
}


def is_function_name(name: str) -> bool:
    return name.lower() in FUNCTIONS


def is_constant(name: str) -> bool:
    return name in CONSTANTS


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


# ── Lexer ───────────────────────────────────────────────────────────────

class Lexer:
    """Single-use scanner over one source string."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        while self.pos < len(self.source):
            self._scan_token()
        self._emit(TokenKind.EOF, "", self.pos, self.line, self.column)
        logger.debug("Tokenized %r into %d tokens", self.source, len(self.tokens))
        return self.tokens

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else ""

    def _advance(self, count: int = 1) -> None:
        self.pos += count
        self.column += count

    def _emit(self, kind: TokenKind, text: str, start: int, line: int, column: int) -> None:
        self.tokens.append(Token(kind, text, Span(start, start + len(text)), line, column))

    def _scan_token(self) -> None:
        ch = self._peek()
        start, line, column = self.pos, self.line, self.column

        if ch == "\n":
            self.pos += 1
            self.line += 1
            self.column = 1
            return
        if ch.isspace():
            self._advance()
            return

        for text, kind in _MULTI_CHAR:
            if self.source.startswith(text, self.pos):
                self._advance(len(text))
                self._emit(kind, text, start, line, column)
                return

        if ch in _SINGLE_CHAR:
            self._advance()
            self._emit(_SINGLE_CHAR[ch], ch, start, line, column)
            return

        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            self._scan_number(start, line, column)
            return

        if _is_ident_start(ch):
            self._scan_identifier(start, line, column)
            return

        raise LexError(
            f"Unexpected character: {ch!r}",
            expression=self.source,
            position=Span(start, start + 1),
            suggestions=("Remove the character or replace it with a supported operator",),
        )

    def _scan_digits(self) -> None:
        while self._peek().isdigit():
            self._advance()

    def _scan_number(self, start: int, line: int, column: int) -> None:
        self._scan_digits()
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()
            self._scan_digits()

        # An exponent marker only belongs to the number when digits follow it:
        # "2exp(x)", "2e*x" and "3e-x" keep e as the constant.
        if self._peek() in ("e", "E"):
            after = self._peek(1)
            signed = after in ("+", "-")
            if after.isdigit() or (signed and self._peek(2).isdigit()):
                self._advance(3 if signed else 2)
                self._scan_digits()
            elif after == "" or (signed and self._peek(2) == ""):
                raise LexError(
                    "Invalid scientific notation: exponent digits expected",
                    expression=self.source,
                    position=Span(start, len(self.source)),
                    suggestions=("Write the exponent in full, e.g. 1.5e-3",),
                )

        self._emit(TokenKind.NUMBER, self.source[start:self.pos], start, line, column)

    def _scan_identifier(self, start: int, line: int, column: int) -> None:
        while _is_ident_char(self._peek()):
            self._advance()
        text = self.source[start:self.pos]
        # Reserved constants (pi, e) stay VARIABLE tokens; is_constant() tells them apart.
        kind = TokenKind.FUNCTION if is_function_name(text) else TokenKind.VARIABLE
        self._emit(kind, text, start, line, column)


def tokenize(source: str) -> list[Token]:
    """Scan *source* into tokens terminated by an EOF token."""
    return Lexer(source).tokenize()


# ── Raw-input positions ─────────────────────────────────────────────────

def line_and_column(source: str, position: int) -> tuple[int, int]:
    """1-based line and column of *position* in *source*."""
    line = source.count("\n", 0, position) + 1
    return line, position - (source.rfind("\n", 0, position) + 1) + 1


def raw_span(span: Span, offsets: list) -> Span:
    """Map a span in normalized text back onto the raw input."""
    last = len(offsets) - 1
    return Span(offsets[min(span.start, last)], offsets[min(span.end, last)])


def relocate_tokens(tokens: list[Token], offsets: list, raw: str) -> list[Token]:
    """Re-express token positions against *raw*, the text before normalization."""
    out = []
    for token in tokens:
        span = raw_span(token.span, offsets)
        line, column = line_and_column(raw, span.start)
        out.append(Token(token.kind, token.text, span, line, column))
    return out


# ── Implicit multiplication ─────────────────────────────────────────────

_OPERAND_END = (TokenKind.NUMBER, TokenKind.VARIABLE, TokenKind.RIGHT_PAREN,
                TokenKind.RIGHT_BRACKET)
_OPERAND_START = (TokenKind.VARIABLE, TokenKind.FUNCTION, TokenKind.LEFT_PAREN,
                  TokenKind.LEFT_BRACKET)


def _ends_operand(token: Token) -> bool:
    return token.kind in _OPERAND_END or (
        token.kind is TokenKind.OPERATOR and token.text == "!"
    )


def _starts_operand(left: Token, right: Token) -> bool:
    if right.kind in _OPERAND_START:
        return True
    return right.kind is TokenKind.NUMBER and left.kind is not TokenKind.NUMBER


def insert_implicit_multiplication(tokens: list[Token]) -> list[Token]:
    """Insert zero-width ``*`` tokens where two operands are juxtaposed.

    ``2x`` → ``2*x``, ``3(x+1)`` → ``3*(x+1)``, ``(x+1)(x-1)``,
    ``x sin(x)``.  Identifiers are never split, and a function name is
    never multiplied into its own argument list.
    """
    out: list[Token] = []
    for token in tokens:
        if out:
            prev = out[-1]
            if _ends_operand(prev) and _starts_operand(prev, token):
                at = token.span.start
                out.append(Token(TokenKind.OPERATOR, "*", Span(at, at),
                                 token.line, token.column))
        out.append(token)
    return out
