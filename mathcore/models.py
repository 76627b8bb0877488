"""Result records produced by the parser and the solvers.

All records are immutable dataclasses.  ``to_dict`` renders them into the
plain-JSON shape used by the CLI and the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from mathcore.parser.nodes import Node


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` in the text as the user typed it."""

    start: int
    end: int

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}


class EquationType(str, Enum):
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    POLYNOMIAL = "polynomial"
    RATIONAL = "rational"
    RADICAL = "radical"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    TRIGONOMETRIC = "trigonometric"
    SYSTEM = "system"
    DIFFERENTIAL = "differential"


class OperationKind(str, Enum):
    PARSING = "parsing"
    CLASSIFICATION = "classification"
    IDENTIFICATION = "identification"
    SUBSTITUTION = "substitution"
    SIMPLIFICATION = "simplification"
    ALGEBRAIC_MANIPULATION = "algebraic_manipulation"
    CALCULATION = "calculation"
    ANALYSIS = "analysis"
    QUADRATIC_FORMULA = "quadratic_formula"
    ELIMINATION = "elimination"
    SYMBOLIC = "symbolic"
    NUMERIC_APPROXIMATION = "numeric_approximation"
    FALLBACK = "fallback"
    VERIFICATION = "verification"
    CONCLUSION = "conclusion"


@dataclass(frozen=True)
class SolutionStep:
    """One audit record of a derivation; never mutated after creation."""

    id: str
    description: str
    operation: OperationKind
    before: str
    after: str
    explanation: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "operation": self.operation.value,
            "before": self.before,
            "after": self.after,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class Solution:
    variable: str
    value: str
    is_exact: bool
    approximation: Optional[float] = None
    conditions: tuple = ()
    multiplicity: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "variable": self.variable,
            "value": self.value,
            "is_exact": self.is_exact,
            "approximation": self.approximation,
            "conditions": list(self.conditions),
            "multiplicity": self.multiplicity,
        }


@dataclass(frozen=True)
class DomainRestriction:
    """A condition the target variable must satisfy for the equation to be defined.

    ``expression`` and ``relation`` (``">"``, ``">="``, ``"!="``, ``"[-1,1]"``)
    keep the restriction machine-checkable; only the text fields are exported.
    """

    variable: str
    restriction: str
    description: str
    expression: Optional["Node"] = field(default=None, compare=False, repr=False)
    relation: str = field(default="", compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "variable": self.variable,
            "restriction": self.restriction,
            "description": self.description,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Aggregated validator output; valid iff there are no errors."""

    errors: tuple = ()
    warnings: tuple = ()
    suggestions: tuple = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class ParseResult:
    raw: str
    normalized: str
    ast: Optional["Node"]
    variables: tuple
    functions: tuple
    complexity: float
    validation: ValidationResult
    steps: tuple = ()

    def to_dict(self) -> dict:
        from mathcore.parser.nodes import to_source

        return {
            "raw": self.raw,
            "normalized": self.normalized,
            "ast": to_source(self.ast) if self.ast is not None else None,
            "variables": list(self.variables),
            "functions": list(self.functions),
            "complexity": self.complexity,
            "validation": self.validation.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class SolveResult:
    solutions: tuple
    steps: tuple
    equation_type: EquationType
    variables: tuple
    domain_restrictions: tuple = ()
    metadata: dict = field(default_factory=dict, compare=False)

    @property
    def values(self) -> list[str]:
        return [s.value for s in self.solutions]

    def to_dict(self) -> dict:
        return {
            "solutions": [s.to_dict() for s in self.solutions],
            "steps": [s.to_dict() for s in self.steps],
            "equation_type": self.equation_type.value,
            "variables": list(self.variables),
            "domain_restrictions": [d.to_dict() for d in self.domain_restrictions],
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class CheckResult:
    """Outcome of substituting values into an equation."""

    holds: bool
    lhs: float
    rhs: float
    difference: float
    steps: tuple = ()
    values: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "holds": self.holds,
            "lhs": self.lhs,
            "rhs": self.rhs,
            "difference": self.difference,
            "values": dict(self.values),
            "steps": [s.to_dict() for s in self.steps],
        }
