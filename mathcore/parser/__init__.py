"""
Expression parsing pipeline.

``text → normalize → tokenize → validate → implicit multiplication →
build`` yields a :class:`~mathcore.models.ParseResult`.  Lex, syntax,
parse and validation errors abort the call with a positioned
:class:`~mathcore.errors.MathError`.  Token, node and error positions
index the text as typed, before normalization.
"""

import logging
from typing import Iterable, Optional

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import LexError, MathError, ParseError
from mathcore.models import OperationKind, ParseResult, SolutionStep, ValidationResult
from mathcore.parser.builder import ASTBuilder, build_ast
from mathcore.parser.lexer import (
    Lexer, Token, TokenKind, insert_implicit_multiplication, raw_span, relocate_tokens, tokenize,
)
from mathcore.parser.nodes import complexity, free_variables, functions_used, to_source
from mathcore.parser.normalize import normalize_expression, normalize_with_offsets
from mathcore.parser.validator import validate_tokens

logger = logging.getLogger(__name__)

MAX_REPORTED_COMPLEXITY = 100


def _scan(expression: str) -> tuple[str, list[Token]]:
    """Normalize and tokenize; token and error positions index *expression*."""
    normalized, offsets = normalize_with_offsets(expression)
    try:
        tokens = tokenize(normalized)
    except LexError as e:
        if e.position is not None:
            e.position = raw_span(e.position, offsets)
        e.expression = expression
        raise
    return normalized, relocate_tokens(tokens, offsets, expression)


class MathParser:
    """Parse and validate expressions under one configuration."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def _check_length(self, expression) -> None:
        if not isinstance(expression, str) or not expression.strip():
            raise ParseError("Expression must be a non-empty string",
                             expression=expression if isinstance(expression, str) else "",
                             suggestions=("Enter an expression such as 2x + 3 = 7",))
        if len(expression) > self.config.max_expression_length:
            raise ParseError(
                f"Expression too long ({len(expression)} characters, "
                f"limit {self.config.max_expression_length})",
                expression=expression[:80],
                suggestions=("Split the expression into smaller parts",),
            )

    def parse(self, expression: str, config: Optional[SolverConfig] = None) -> ParseResult:
        parser = MathParser(config) if config is not None else self
        parser._check_length(expression)
        try:
            normalized, tokens = _scan(expression)
            validation = validate_tokens(tokens, parser.config, expression)
            if not validation.is_valid:
                raise validation.errors[0]
            if parser.config.implicit_multiplication:
                tokens = insert_implicit_multiplication(tokens)
            ast = build_ast(tokens, expression)
            variables = tuple(free_variables(ast))
            functions = tuple(functions_used(ast))
            score = min(MAX_REPORTED_COMPLEXITY, complexity(ast))
        except MathError as e:
            raise e.with_expression(expression)
        except RecursionError as e:
            raise ParseError("Expression is nested too deeply", expression=expression) from e

        logger.debug("Parsed %r as %s", expression, to_source(ast))
        step = SolutionStep(
            id="parse",
            description="Parsed mathematical expression",
            operation=OperationKind.PARSING,
            before=expression,
            after=normalized,
            explanation="Expression successfully parsed and validated",
        )
        return ParseResult(
            raw=expression,
            normalized=normalized,
            ast=ast,
            variables=variables,
            functions=functions,
            complexity=score,
            validation=validation,
            steps=(step,),
        )

    def validate(self, expression: str) -> ValidationResult:
        """Validate without building a tree; lexing failures become result errors."""
        try:
            self._check_length(expression)
            _, tokens = _scan(expression)
            return validate_tokens(tokens, self.config, expression)
        except MathError as e:
            return ValidationResult(errors=(e.with_expression(str(expression)),),
                                    suggestions=e.suggestions)

    def parse_many(self, expressions: Iterable[str]) -> list[ParseResult]:
        """Parse each expression; a failure is recorded and the batch continues."""
        results = []
        for expression in expressions:
            try:
                results.append(self.parse(expression))
            except MathError as e:
                logger.debug("Batch parse failed for %r: %s", expression, e)
                results.append(ParseResult(
                    raw=expression,
                    normalized=expression,
                    ast=None,
                    variables=(),
                    functions=(),
                    complexity=0,
                    validation=ValidationResult(errors=(e,), suggestions=e.suggestions),
                ))
        return results


def parse(expression: str, config: Optional[SolverConfig] = None) -> ParseResult:
    return MathParser(config).parse(expression)


def validate(expression: str, config: Optional[SolverConfig] = None) -> ValidationResult:
    return MathParser(config).validate(expression)


__all__ = [
    "ASTBuilder", "Lexer", "MathParser", "Token", "TokenKind", "build_ast",
    "insert_implicit_multiplication", "normalize_expression", "parse", "tokenize",
    "validate", "validate_tokens",
]
