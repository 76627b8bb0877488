"""
Rule-based validation over the raw token stream.

Each rule is independent and returns a list of :class:`Issue`.  Errors make
the expression invalid; warnings never block parsing.  The validator runs on
tokens *before* implicit multiplication is inserted, so the positions it
reports always point at characters the user typed.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import ValidationError
from mathcore.models import Span, ValidationResult
from mathcore.parser.lexer import Token, TokenKind, is_constant, is_function_name

logger = logging.getLogger(__name__)

UNARY_OPERATORS = frozenset({"+", "-", "!"})
BINARY_OPERATORS = frozenset({"+", "-", "*", "/", "^", "**", "%"})
RESERVED_WORDS = frozenset({"undefined", "null", "true", "false", "NaN", "Infinity"})

# Integers above 2**53 cannot be represented exactly as floats.
_MAX_SAFE_INTEGER = 2 ** 53 - 1


@dataclass(frozen=True)
class Issue:
    severity: str  # "error" | "warning"
    message: str
    position: Optional[Span] = None
    suggestions: tuple = ()


class Rule(NamedTuple):
    name: str
    check: Callable[[list, SolverConfig], list]


def _error(message, token=None, *suggestions) -> Issue:
    return Issue("error", message, token.span if token is not None else None, suggestions)


def _warning(message, token=None, *suggestions) -> Issue:
    return Issue("warning", message, token.span if token is not None else None, suggestions)


# ── Rules ───────────────────────────────────────────────────────────────

def _balance_rule(open_kind, close_kind, noun):
    def check(tokens, config):
        issues = []
        stack = []
        for token in tokens:
            if token.kind is open_kind:
                stack.append(token)
            elif token.kind is close_kind:
                if stack:
                    stack.pop()
                else:
                    issues.append(_error(f"Unmatched closing {noun}", token,
                                         f"Remove the extra closing {noun}"))
        if stack:
            # The innermost unclosed opener is the one reported.
            issues.append(_error(f"Unmatched opening {noun}", stack[-1],
                                 f"Add missing closing {noun}"))
        return issues
    return check


_LEFT_BOUNDARY = (TokenKind.LEFT_PAREN, TokenKind.LEFT_BRACKET, TokenKind.COMMA,
                  TokenKind.EQUALS, TokenKind.COMPARISON)
_RIGHT_BOUNDARY = (TokenKind.RIGHT_PAREN, TokenKind.RIGHT_BRACKET, TokenKind.COMMA,
                   TokenKind.EQUALS, TokenKind.COMPARISON)


def _check_operators(tokens, config):
    issues = []
    significant = [t for t in tokens if t.kind is not TokenKind.EOF]
    for i, token in enumerate(significant):
        if token.kind is not TokenKind.OPERATOR:
            continue
        prev = significant[i - 1] if i > 0 else None
        nxt = significant[i + 1] if i + 1 < len(significant) else None
        op = token.text

        if prev is None:
            if op not in ("+", "-"):
                issues.append(_error(f"Binary operator '{op}' at start of expression", token,
                                     "Add operand before the operator"))
        elif prev.kind is TokenKind.OPERATOR:
            if prev.text == "!":
                pass  # postfix result is a complete operand
            elif op not in ("+", "-") or prev.text not in BINARY_OPERATORS:
                issues.append(_error(f"Consecutive operators: {prev.text} {op}", token,
                                     "Remove one of the operators or add operand between them"))
        elif prev.kind in _LEFT_BOUNDARY and op not in ("+", "-"):
            issues.append(_error(f"Operator '{op}' is missing its left operand", token,
                                 "Add operand before the operator"))

        if op == "!":
            continue
        if nxt is None:
            issues.append(_error(f"Operator '{op}' at end of expression", token,
                                 "Add operand after the operator"))
        elif nxt.kind in _RIGHT_BOUNDARY:
            issues.append(_error(f"Operator '{op}' is missing its right operand", token,
                                 "Add operand after the operator"))
    return issues


def _check_functions(tokens, config):
    issues = []
    for token, nxt in zip(tokens, tokens[1:]):
        if token.kind is TokenKind.FUNCTION and nxt.kind is not TokenKind.LEFT_PAREN:
            issues.append(_error(f"Function '{token.text}' must be followed by parentheses",
                                 token, f"Add parentheses: {token.text}()"))
        elif (token.kind is TokenKind.VARIABLE and nxt.kind is TokenKind.LEFT_PAREN
                and token.span.end == nxt.span.start and len(token.text) > 1
                and not is_constant(token.text) and not is_function_name(token.text)):
            issues.append(_warning(f"Unknown function: {token.text}", token,
                                   "Check function name spelling"))
    return issues


def _check_numbers(tokens, config):
    issues = []
    for token in tokens:
        if token.kind is not TokenKind.NUMBER:
            continue
        try:
            value = float(token.text)
        except ValueError:
            issues.append(_error(f"Invalid number: {token.text}", token, "Check number format"))
            continue
        if not math.isfinite(value):
            issues.append(_error(f"Number is out of range: {token.text}", token,
                                 "Use a smaller exponent"))
        elif abs(value) > _MAX_SAFE_INTEGER:
            issues.append(_warning(f"Very large number may lose precision: {token.text}",
                                   token, "Consider using scientific notation"))
        elif value == 0 and any(d in "123456789" for d in token.text.lower().split("e")[0]):
            issues.append(_warning(f"Very small number may underflow: {token.text}",
                                   token, "Consider using scientific notation"))
    return issues


def _check_variables(tokens, config):
    issues = []
    names = []
    for token in tokens:
        if token.kind is not TokenKind.VARIABLE:
            continue
        if not is_constant(token.text) and token.text not in names:
            names.append(token.text)
        if len(token.text) > config.max_variable_name_length:
            issues.append(_warning(f"Very long variable name: {token.text}", token,
                                   "Consider using shorter variable names"))
        if token.text in RESERVED_WORDS:
            issues.append(_warning(f"Variable name '{token.text}' is a reserved word", token,
                                   "Use a different variable name"))
    if len(names) > config.max_variables:
        issues.append(_warning(
            f"Too many variables ({len(names)}), maximum recommended: {config.max_variables}",
            None, "Consider simplifying the expression"))
    return issues


def _check_complexity(tokens, config):
    count = sum(1 for t in tokens if t.kind is not TokenKind.EOF)
    if count > config.max_complexity:
        return [_warning(f"Expression is very complex ({count} tokens)", None,
                         "Consider breaking into smaller expressions")]
    return []


RULES = (
    Rule("parentheses", _balance_rule(TokenKind.LEFT_PAREN, TokenKind.RIGHT_PAREN,
                                      "parenthesis")),
    Rule("brackets", _balance_rule(TokenKind.LEFT_BRACKET, TokenKind.RIGHT_BRACKET,
                                   "bracket")),
    Rule("operators", _check_operators),
    Rule("functions", _check_functions),
    Rule("numbers", _check_numbers),
    Rule("variables", _check_variables),
    Rule("complexity", _check_complexity),
)


# ── Aggregation ─────────────────────────────────────────────────────────

def validate_tokens(tokens: list[Token], config: Optional[SolverConfig] = None,
                    expression: str = "") -> ValidationResult:
    """Run every rule in order and aggregate the issues."""
    config = config or DEFAULT_CONFIG
    errors, warnings, suggestions = [], [], []
    for rule in RULES:
        for issue in rule.check(tokens, config):
            if issue.severity == "error":
                errors.append(ValidationError(issue.message, expression=expression,
                                              position=issue.position,
                                              suggestions=issue.suggestions))
            else:
                warnings.append(issue.message)
            for hint in issue.suggestions:
                if hint not in suggestions:
                    suggestions.append(hint)
    if errors or warnings:
        logger.debug("Validation of %r: %d error(s), %d warning(s)",
                     expression, len(errors), len(warnings))
    return ValidationResult(tuple(errors), tuple(warnings), tuple(suggestions))
