"""
Equation solving engine.

Parses an equation, classifies it, and dispatches it through an ordered
solver chain:

* LINEAR     → linear → quadratic → general
* QUADRATIC  → quadratic → general
* everything else → general (symbolic backends, then numeric roots)

A solver that cannot take the equation raises :class:`DegreeMismatch` or
:class:`ExtractionError`; the engine records a fallback step and moves on.
Solutions are then checked against the domain restrictions of the
equation and a final conclusion step lists every value.
"""

import dataclasses
import logging
import time
from typing import Iterable, Mapping, Optional, Protocol

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import (
    ComputationError, DegreeMismatch, ExtractionError, MathError, MathErrorKind,
)
from mathcore.models import EquationType, OperationKind, SolveResult
from mathcore.parser import MathParser
from mathcore.parser.evaluator import residual
from mathcore.parser.nodes import (
    Equation, Inequality, Node, contains_variable, free_variables, num, substitute_all, to_source,
)
from mathcore.solver.backends import BackendChain
from mathcore.solver.classifier import EquationClassifier, select_target_variable
from mathcore.solver.coefficients import extract_linear, extract_quadratic
from mathcore.solver.domain import domain_restrictions, filter_solutions
from mathcore.solver.formatting import fmt_approx, format_solution_list
from mathcore.solver.general import GeneralSolver
from mathcore.solver.linear import ALL_REAL_NUMBERS, LinearSolver
from mathcore.solver.quadratic import QuadraticSolver
from mathcore.solver.steps import StepTrace
from mathcore.solver.substitution import resolve_bindings

logger = logging.getLogger(__name__)

METHODS = {
    EquationType.LINEAR: "algebraic_manipulation",
    EquationType.QUADRATIC: "quadratic_formula",
    EquationType.POLYNOMIAL: "polynomial_factoring",
    EquationType.RATIONAL: "rational_equation_solving",
    EquationType.RADICAL: "radical_equation_solving",
    EquationType.EXPONENTIAL: "logarithmic_transformation",
    EquationType.LOGARITHMIC: "exponential_transformation",
    EquationType.TRIGONOMETRIC: "trigonometric_identities",
    EquationType.SYSTEM: "system_solving",
    EquationType.DIFFERENTIAL: "differential_equation_solving",
}
NUMERIC_METHOD = "numerical_methods"

CONFIDENCE = {
    EquationType.LINEAR: 1.0,
    EquationType.QUADRATIC: 0.95,
    EquationType.POLYNOMIAL: 0.8,
    EquationType.RATIONAL: 0.85,
    EquationType.RADICAL: 0.8,
    EquationType.EXPONENTIAL: 0.9,
    EquationType.LOGARITHMIC: 0.9,
    EquationType.TRIGONOMETRIC: 0.7,
    EquationType.SYSTEM: 0.85,
    EquationType.DIFFERENTIAL: 0.6,
}

CHAINS = {
    EquationType.LINEAR: ("linear", "quadratic", "general"),
    EquationType.QUADRATIC: ("quadratic", "general"),
}
DEFAULT_CHAIN = ("general",)

CACHE_TTL = 3600.0


# ── Cache ───────────────────────────────────────────────────────────────

class Cache(Protocol):
    def get(self, key: str) -> Optional[SolveResult]: ...

    def put(self, key: str, result: SolveResult, ttl: Optional[float] = None) -> None: ...


class MemoryCache:
    """In-process cache with per-entry expiry."""

    def __init__(self, clock=time.monotonic):
        self._entries: dict = {}
        self._clock = clock

    def get(self, key: str) -> Optional[SolveResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        result, expires = entry
        if expires is not None and self._clock() >= expires:
            del self._entries[key]
            return None
        return result

    def put(self, key: str, result: SolveResult, ttl: Optional[float] = None) -> None:
        expires = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (result, expires)

    def __len__(self) -> int:
        return len(self._entries)


def cache_key(normalized: str, target: str, bindings: Mapping) -> str:
    bound = ",".join(f"{k}={v!r}" for k, v in sorted(bindings.items()))
    return f"{normalized}|{target}|{bound}"


# ── Engine ──────────────────────────────────────────────────────────────

class EquationSolver:
    """Parse → classify → dispatch → domain check → conclude."""

    def __init__(self, config: Optional[SolverConfig] = None,
                 backends: Optional[BackendChain] = None,
                 cache: Optional[Cache] = None):
        self.config = config or DEFAULT_CONFIG
        self.cache = cache
        self._parser = MathParser(self.config)
        self._classifier = EquationClassifier()
        self._general = GeneralSolver(self.config, backends)

    @property
    def backends(self) -> BackendChain:
        return self._general.backends

    def solve(self, expression: str, variables: Optional[Iterable[str]] = None,
              bindings: Optional[Mapping] = None) -> SolveResult:
        t_start = time.perf_counter()
        parsed = self._parser.parse(expression)
        ast = parsed.ast
        trace = StepTrace(parsed.steps)

        if isinstance(ast, Inequality):
            raise ComputationError(
                "Inequalities cannot be solved yet",
                kind=MathErrorKind.UNSUPPORTED_OPERATION,
                expression=parsed.normalized,
                suggestions=("Replace the comparison with '=' to find the boundary points",),
            )
        if not isinstance(ast, Equation):
            zeroed = Equation(ast, num(0))
            trace.add(
                "set_equal_to_zero",
                "Treat the expression as an equation equal to zero",
                OperationKind.IDENTIFICATION,
                to_source(ast),
                to_source(zeroed),
                "An expression without '=' is solved for the values that make it zero",
            )
            ast = zeroed

        try:
            resolved = resolve_bindings(bindings, self._parser)
        except MathError as e:
            raise e.with_expression(parsed.normalized)
        target = select_target_variable(ast, list(variables) if variables else None, resolved)

        key = cache_key(parsed.normalized, target, resolved)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %r", key)
                return cached

        if resolved:
            ast = self._substitute(ast, resolved, trace)

        classification = self._classifier.classify(ast, target, parsed.normalized)
        equation_type = classification.equation_type
        trace.add(
            "classify_equation",
            f"Identify the equation type: {equation_type.value}",
            OperationKind.CLASSIFICATION,
            to_source(ast),
            f"{equation_type.value} equation in {target}",
            f"Classified as {equation_type.value} because {classification.reason}",
        )

        try:
            if not contains_variable(ast, target):
                solutions = self._constant_statement(ast, target, trace)
                equation_type = EquationType.LINEAR
            else:
                solutions, equation_type = self._dispatch(ast, target, equation_type, trace)
        except ComputationError as e:
            e.steps = trace.steps + e.steps
            raise e.with_expression(parsed.normalized)

        restrictions = domain_restrictions(ast, target)
        solutions = self._apply_domain(solutions, restrictions, target, trace)

        values = [s.value for s in solutions]
        trace.add(
            "conclusion",
            "Final answer",
            OperationKind.CONCLUSION,
            to_source(ast),
            format_solution_list(target, values),
            self._summary(target, solutions),
        )

        steps = trace.steps if self.config.show_steps else (trace.last,)
        numeric = any(s.id == "numeric_roots" for s in trace)
        metadata = {
            "computation_time_ms": round((time.perf_counter() - t_start) * 1000, 2),
            "method": NUMERIC_METHOD if numeric else METHODS[equation_type],
            "confidence": CONFIDENCE[equation_type],
            "is_exact": all(s.is_exact for s in solutions),
        }
        result = SolveResult(tuple(solutions), steps, equation_type, (target,),
                             tuple(restrictions), metadata)
        logger.debug("Solved %r for %s: %s", parsed.normalized, target, values)
        if self.cache is not None:
            self.cache.put(key, result, CACHE_TTL)
        return result

    # ── Pipeline stages ──────────────────────────────────────────────

    def _substitute(self, ast: Node, resolved: dict, trace: StepTrace) -> Node:
        substituted = substitute_all(ast, {k: num(v) for k, v in resolved.items()})
        shown = ", ".join(f"{k} = {fmt_approx(v, self.config.precision)}"
                          for k, v in resolved.items())
        trace.add(
            "substitute_bindings",
            f"Substitute the known values {shown}",
            OperationKind.SUBSTITUTION,
            to_source(ast),
            to_source(substituted),
            "Every bound variable is replaced by its value before solving",
        )
        return substituted

    def _constant_statement(self, ast: Node, target: str, trace: StepTrace) -> list:
        others = free_variables(ast)
        if others:
            raise ComputationError(
                f"Variable '{target}' does not occur in the equation",
                suggestions=(f"Solve for one of: {', '.join(others)}",),
            )
        value = residual(ast)
        trace.add(
            "no_target_variable",
            f"The equation does not contain {target}",
            OperationKind.FALLBACK,
            to_source(ast),
            f"0{target} + {fmt_approx(value, self.config.precision)} = 0",
            f"Without {target} the equation is a constant statement; it is either always "
            f"or never true, which the linear solver decides",
        )
        solutions, steps = LinearSolver(self.config).solve(0.0, value, target)
        trace.extend(steps)
        return solutions

    def _dispatch(self, ast: Node, target: str, equation_type: EquationType,
                  trace: StepTrace) -> tuple:
        chain = CHAINS.get(equation_type, DEFAULT_CHAIN)
        for i, stage in enumerate(chain):
            try:
                solutions, steps = self._run(stage, ast, target, equation_type)
            except (DegreeMismatch, ExtractionError) as e:
                following = chain[i + 1]
                logger.info("Rerouting %s from the %s solver to the %s solver: %s",
                            to_source(ast), stage, following, e.message)
                trace.add(
                    f"fallback_{stage}",
                    f"The {stage} solver does not apply",
                    OperationKind.FALLBACK,
                    to_source(ast),
                    f"try the {following} solver",
                    e.message,
                )
                if following == "quadratic":
                    equation_type = EquationType.QUADRATIC
                elif equation_type in (EquationType.LINEAR, EquationType.QUADRATIC):
                    equation_type = EquationType.POLYNOMIAL
                continue
            logger.debug("Solved with the %s solver", stage)
            trace.extend(steps)
            return solutions, equation_type
        raise AssertionError("solver chain must end with the general solver")

    def _run(self, stage: str, ast: Node, target: str, equation_type: EquationType) -> tuple:
        if stage == "linear":
            a, b = extract_linear(ast, target)
            return LinearSolver(self.config).solve(a, b, target)
        if stage == "quadratic":
            a, b, c = extract_quadratic(ast, target)
            return QuadraticSolver(self.config).solve(a, b, c, target)
        return self._general.solve(ast, target, equation_type)

    def _apply_domain(self, solutions: list, restrictions: list, target: str,
                      trace: StepTrace) -> list:
        if not restrictions:
            return solutions
        kept, rejected = filter_solutions(solutions, restrictions, target)
        if rejected:
            trace.add(
                "reject_extraneous",
                "Reject solutions outside the domain",
                OperationKind.VERIFICATION,
                format_solution_list(target, [s.value for s in solutions]),
                format_solution_list(target, [s.value for s in kept]),
                "Rejected " + ", ".join(f"{target} = {s.value}" for s in rejected)
                + " because the equation requires "
                + " and ".join(r.restriction for r in restrictions),
            )
        extra = tuple(r.restriction for r in restrictions)
        return [dataclasses.replace(s, conditions=s.conditions + extra)
                if s.value == ALL_REAL_NUMBERS else s for s in kept]

    @staticmethod
    def _summary(target: str, solutions: list) -> str:
        if not solutions:
            return f"The equation has no real solution for {target}"
        if len(solutions) == 1 and solutions[0].value == ALL_REAL_NUMBERS:
            return f"The equation holds for every admissible value of {target}"
        count = len(solutions)
        return f"The equation has {count} solution{'s' if count != 1 else ''} for {target}"


def solve(expression: str, variables: Optional[Iterable[str]] = None,
          bindings: Optional[Mapping] = None, config: Optional[SolverConfig] = None,
          backends: Optional[BackendChain] = None, cache: Optional[Cache] = None) -> SolveResult:
    return EquationSolver(config, backends, cache).solve(expression, variables, bindings)
