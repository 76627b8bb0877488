"""
Recursive-descent (precedence-climbing) parser: tokens → expression tree.

Grammar, loosest binding first::

    Relation  := Sum (('=' | '==' | '<' | '>' | '<=' | '>=' | '!=') Sum)?
    Sum       := Product (('+' | '-') Product)*
    Product   := Unary (('*' | '/' | '%') Unary)*
    Unary     := ('+' | '-') Unary | Power
    Power     := Postfix (('^' | '**') Unary)?
    Postfix   := Primary '!'*
    Primary   := NUMBER | VARIABLE | FUNCTION '(' args ')' | '(' Relation ')'
               | '[' Relation ']'

Unary minus binds looser than ``^`` so ``-2^2`` is ``-(2^2)``; the right
operand of ``^`` re-enters ``Unary`` which keeps ``2^3^2 = 2^(3^2)`` and
allows ``2^-1``.
"""

from mathcore.errors import MathSyntaxError, ParseError
from mathcore.models import Span
from mathcore.parser.lexer import Token, TokenKind
from mathcore.parser.nodes import (
    Equation, Function, Inequality, Node, Number, Operator, Variable,
)

MAX_NESTING = 200

_CLOSERS = {
    TokenKind.LEFT_PAREN: (TokenKind.RIGHT_PAREN, ")"),
    TokenKind.LEFT_BRACKET: (TokenKind.RIGHT_BRACKET, "]"),
}


class ASTBuilder:
    """Single-use parser over one token list (EOF-terminated)."""

    def __init__(self, tokens: list[Token], source: str = ""):
        self.tokens = tokens
        self.source = source
        self.index = 0
        self.depth = 0

    # ── Token cursor ──────────────────────────────────────────────────

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _at(self, kind: TokenKind, *texts: str) -> bool:
        token = self.current
        return token.kind is kind and (not texts or token.text in texts)

    def _advance(self) -> Token:
        token = self.current
        if token.kind is not TokenKind.EOF:
            self.index += 1
        return token

    def _prev_end(self) -> int:
        return self.tokens[self.index - 1].span.end if self.index else 0

    def _span_from(self, start: int) -> Span:
        return Span(start, max(start, self._prev_end()))

    def _error(self, message: str, token: Token, *suggestions: str) -> MathSyntaxError:
        return MathSyntaxError(message, expression=self.source, position=token.span,
                               suggestions=suggestions)

    # ── Grammar ───────────────────────────────────────────────────────

    def parse(self) -> Node:
        if not self.tokens or self.tokens[0].kind is TokenKind.EOF:
            raise ParseError("Empty expression", expression=self.source,
                             suggestions=("Enter an expression such as 2x + 3 = 7",))
        node = self._relation()
        if not self._at(TokenKind.EOF):
            token = self.current
            raise self._error(f"Unexpected token {token.text!r}", token,
                              "Check for a missing operator or an extra closing bracket")
        return node

    def _relation(self) -> Node:
        start = self.current.span.start
        left = self._sum()
        if not (self._at(TokenKind.EQUALS) or self._at(TokenKind.COMPARISON)):
            return left
        op = self._advance()
        right = self._sum()
        if self._at(TokenKind.EQUALS) or self._at(TokenKind.COMPARISON):
            raise self._error("Chained relations are not supported", self.current,
                              "Split the statement into separate equations")
        span = self._span_from(start)
        if op.kind is TokenKind.EQUALS:
            return Equation(left, right, span)
        return Inequality(op.text, left, right, span)

    def _sum(self) -> Node:
        start = self.current.span.start
        node = self._product()
        while self._at(TokenKind.OPERATOR, "+", "-"):
            symbol = self._advance().text
            right = self._product()
            node = Operator(symbol, (node, right), self._span_from(start))
        return node

    def _product(self) -> Node:
        start = self.current.span.start
        node = self._unary()
        while self._at(TokenKind.OPERATOR, "*", "/", "%"):
            symbol = self._advance().text
            right = self._unary()
            node = Operator(symbol, (node, right), self._span_from(start))
        return node

    def _unary(self) -> Node:
        if self._at(TokenKind.OPERATOR, "+", "-"):
            start = self.current.span.start
            symbol = "u" + self._advance().text
            operand = self._nested(self._unary)
            return Operator(symbol, (operand,), self._span_from(start))
        return self._power()

    def _power(self) -> Node:
        start = self.current.span.start
        base = self._postfix()
        if self._at(TokenKind.OPERATOR, "^", "**"):
            self._advance()
            exponent = self._nested(self._unary)
            return Operator("^", (base, exponent), self._span_from(start))
        return base

    def _postfix(self) -> Node:
        start = self.current.span.start
        node = self._primary()
        while self._at(TokenKind.OPERATOR, "!"):
            self._advance()
            node = Operator("!", (node,), self._span_from(start))
        return node

    def _primary(self) -> Node:
        token = self.current
        if token.kind is TokenKind.NUMBER:
            self._advance()
            return Number(float(token.text), token.span)
        if token.kind is TokenKind.VARIABLE:
            self._advance()
            return Variable(token.text, token.span)
        if token.kind is TokenKind.FUNCTION:
            return self._call()
        if token.kind in _CLOSERS:
            closer, closer_text = _CLOSERS[token.kind]
            self._advance()
            inner = self._nested(self._relation)
            if not self._at(closer):
                raise self._error(f"Expected {closer_text!r}", self.current,
                                  f"Add the missing {closer_text!r}")
            self._advance()
            return inner
        if token.kind is TokenKind.EOF:
            raise self._error("Unexpected end of expression", token,
                              "The expression ends with an incomplete term")
        raise self._error(f"Unexpected token {token.text!r}", token)

    def _call(self) -> Node:
        name_token = self._advance()
        name = name_token.text.lower()
        if not self._at(TokenKind.LEFT_PAREN):
            raise self._error(f"Function '{name}' must be followed by '('", name_token,
                              f"Write {name}(...) with the argument in parentheses")
        self._advance()
        args: list[Node] = []
        if not self._at(TokenKind.RIGHT_PAREN):
            args.append(self._nested(self._relation))
            while self._at(TokenKind.COMMA):
                self._advance()
                args.append(self._nested(self._relation))
        if not self._at(TokenKind.RIGHT_PAREN):
            raise self._error(f"Expected ')' to close the call to '{name}'", self.current,
                              "Add the missing ')'")
        self._advance()
        return Function(name, tuple(args), self._span_from(name_token.span.start))

    def _nested(self, rule):
        self.depth += 1
        try:
            if self.depth > MAX_NESTING:
                raise self._error("Expression is nested too deeply", self.current)
            return rule()
        finally:
            self.depth -= 1


def build_ast(tokens: list[Token], source: str = "") -> Node:
    return ASTBuilder(tokens, source).parse()
