"""Error taxonomy shared by the parser and the solvers.

Every failure raised by mathcore is a :class:`MathError`.  Lexing, syntax,
parse and validation errors abort a call immediately and carry the source
span plus remediation hints; solver-side failures are
:class:`ComputationError` subclasses and may carry the partial step trace
recorded before the solver gave up.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from mathcore.models import Span


class MathErrorKind(str, Enum):
    LEX_ERROR = "lex_error"
    SYNTAX_ERROR = "syntax_error"
    PARSE_ERROR = "parse_error"
    VALIDATION_ERROR = "validation_error"
    DEGREE_MISMATCH = "degree_mismatch"
    COMPUTATION_ERROR = "computation_error"
    DOMAIN_ERROR = "domain_error"
    DIVISION_BY_ZERO = "division_by_zero"
    UNSUPPORTED_OPERATION = "unsupported_operation"


class MathError(Exception):
    """Base class for every mathcore failure."""

    default_kind = MathErrorKind.COMPUTATION_ERROR

    def __init__(self, message: str, *, kind: Optional[MathErrorKind] = None,
                 expression: str = "", position: Optional[Span] = None,
                 suggestions=(), steps=()):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.expression = expression
        self.position = position
        self.suggestions = tuple(suggestions)
        self.steps = tuple(steps)

    def with_expression(self, expression: str) -> "MathError":
        """Attach the source text if the raiser did not know it."""
        if not self.expression:
            self.expression = expression
        return self

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "message": self.message,
            "expression": self.expression,
            "position": self.position.to_dict() if self.position else None,
            "suggestions": list(self.suggestions),
        }

    def __str__(self) -> str:
        if self.position is not None:
            return f"{self.message} (at {self.position.start}..{self.position.end})"
        return self.message


class LexError(MathError):
    """Malformed token: bad scientific notation or an unknown character."""

    default_kind = MathErrorKind.LEX_ERROR


class MathSyntaxError(MathError):
    """Grammar violation found while building the AST."""

    default_kind = MathErrorKind.SYNTAX_ERROR


class ParseError(MathError):
    """Input rejected before parsing proper (empty or too long)."""

    default_kind = MathErrorKind.PARSE_ERROR


class ValidationError(MathError):
    """A validator rule reported an error-level issue."""

    default_kind = MathErrorKind.VALIDATION_ERROR


class DegreeMismatch(MathError):
    """Extracted polynomial degree exceeds what the requested solver handles."""

    default_kind = MathErrorKind.DEGREE_MISMATCH

    def __init__(self, degree: int, supported: int, variable: str = "x", **kwargs):
        super().__init__(
            f"Equation has degree {degree} in {variable}; "
            f"this solver supports degree {supported} at most",
            **kwargs,
        )
        self.degree = degree
        self.supported = supported
        self.variable = variable


class ComputationError(MathError):
    """Solver-internal failure (overflow, domain error, nothing found)."""

    default_kind = MathErrorKind.COMPUTATION_ERROR


class ExtractionError(ComputationError):
    """A term is not a polynomial with numeric coefficients in the target."""


class BackendError(ComputationError):
    """A symbolic backend is unavailable or could not decide."""


class ConfigError(ValueError):
    """Invalid configuration option or value."""
