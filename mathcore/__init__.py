"""
mathcore — expression parsing and step-by-step equation solving.

    >>> from mathcore import solve
    >>> solve("2x - 6 = 0").values
    ['3']
"""

from mathcore.config import DEFAULT_CONFIG, SolverConfig, load_config
from mathcore.errors import (
    BackendError, ComputationError, ConfigError, DegreeMismatch, ExtractionError, LexError,
    MathError, MathErrorKind, MathSyntaxError, ParseError, ValidationError,
)
from mathcore.models import (
    CheckResult, DomainRestriction, EquationType, OperationKind, ParseResult, Solution,
    SolutionStep, SolveResult, Span, ValidationResult,
)
from mathcore.parser import MathParser, parse, validate
from mathcore.solver import (
    BackendChain, EquationSolver, SympyBackend, check_solution, solve, solve_system,
)

__version__ = "1.0.0"

__all__ = [
    "BackendChain", "BackendError", "CheckResult", "ComputationError", "ConfigError",
    "DEFAULT_CONFIG", "DegreeMismatch", "DomainRestriction", "EquationSolver", "EquationType",
    "ExtractionError", "LexError", "MathError", "MathErrorKind", "MathParser",
    "MathSyntaxError", "OperationKind", "ParseError", "ParseResult", "Solution",
    "SolutionStep", "SolveResult", "SolverConfig", "Span", "SympyBackend", "ValidationError",
    "ValidationResult", "check_solution", "load_config", "parse", "solve", "solve_system",
    "validate",
]
