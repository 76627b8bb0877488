"""
Generalized solver for equations without a closed-form algorithm here.

Each symbolic backend in the chain is tried in order; a backend error or
an empty answer is recorded as a step and the next backend is tried.
When no backend decides, the bounded numeric root finder takes over.
Finding nothing at all is a :class:`ComputationError`, never an empty
success.
"""

import logging
import math
from typing import Mapping, Optional

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import BackendError, ComputationError, MathError
from mathcore.models import EquationType, OperationKind, Solution
from mathcore.parser import MathParser
from mathcore.parser.evaluator import evaluate
from mathcore.parser.nodes import Node, to_source
from mathcore.solver.backends import BackendChain
from mathcore.solver.formatting import fmt_approx, format_solution_list
from mathcore.solver.linear import ALL_REAL_NUMBERS
from mathcore.solver.numerical import (
    detect_period, find_roots, is_identically_zero, make_function, reduce_to_period,
)
from mathcore.solver.steps import StepTrace

logger = logging.getLogger(__name__)


class GeneralSolver:
    def __init__(self, config: Optional[SolverConfig] = None,
                 backends: Optional[BackendChain] = None):
        self.config = config or DEFAULT_CONFIG
        self.backends = backends if backends is not None else BackendChain.default()
        self._parser = MathParser(self.config)

    def solve(self, ast: Node, variable: str,
              equation_type: EquationType = EquationType.POLYNOMIAL,
              bindings: Optional[Mapping] = None) -> tuple[list, tuple]:
        trace = StepTrace()
        equation = to_source(ast)
        f = make_function(ast, variable, bindings)
        period = detect_period(f) if equation_type is EquationType.TRIGONOMETRIC else None

        for backend in self.backends:
            solutions = self._try_backend(backend, equation, variable, f, period, trace)
            if solutions:
                return solutions, trace.steps

        if not len(self.backends):
            trace.add(
                "no_backend",
                "No symbolic backend configured",
                OperationKind.FALLBACK,
                equation,
                "numeric approximation",
                "Without a symbolic backend the equation is solved numerically",
            )
        return self._numeric(equation, variable, f, period, trace), trace.steps

    # ── Symbolic attempt ─────────────────────────────────────────────

    def _approximate(self, backend, value: str) -> Optional[float]:
        try:
            return evaluate(self._parser.parse(value).ast)
        except MathError:
            pass
        try:
            return backend.evaluate(value)
        except BackendError:
            return None

    def _try_backend(self, backend, equation: str, variable: str, f, period, trace) -> list:
        try:
            values = backend.solve(equation, variable)
        except BackendError as e:
            logger.warning("Backend %s failed on %r: %s", backend.name, equation, e)
            trace.add(
                f"backend_{backend.name}_failed",
                f"Symbolic backend '{backend.name}' could not solve the equation",
                OperationKind.FALLBACK,
                equation,
                "no closed form",
                f"{e.message}; trying the next strategy",
            )
            return []
        if not values:
            trace.add(
                f"backend_{backend.name}_inconclusive",
                f"Symbolic backend '{backend.name}' returned no real roots",
                OperationKind.FALLBACK,
                equation,
                "no closed form",
                "An empty symbolic answer is not taken as proof; trying the next strategy",
            )
            return []

        solutions = []
        seen = []
        for value in values:
            if self.config.auto_simplify:
                try:
                    value = backend.simplify(value, variable)
                except BackendError:
                    pass  # keep the unsimplified root
            approx = self._approximate(backend, value)
            if period is not None and approx is not None:
                key = reduce_to_period([approx], period[0])[0]
                if any(math.isclose(key, k, abs_tol=1e-9) for k in seen):
                    continue
                seen.append(key)
            text = value if self.config.exact or approx is None \
                else fmt_approx(approx, self.config.precision)
            solutions.append(Solution(variable, text, self.config.exact or approx is None,
                                      approximation=approx,
                                      conditions=self._conditions(variable, text, period)))

        trace.add(
            f"backend_{backend.name}_solution",
            f"Solve symbolically with '{backend.name}'",
            OperationKind.SYMBOLIC,
            f"{equation}",
            format_solution_list(variable, [s.value for s in solutions]),
            f"The symbolic backend found {len(solutions)} closed-form real root(s)"
            + (" on one period" if period is not None else ""),
        )
        return solutions

    # ── Numeric fallback ─────────────────────────────────────────────

    def _numeric(self, equation: str, variable: str, f, period, trace) -> list:
        radius = self.config.search_radius
        trace.add(
            "numeric_fallback",
            "Fall back to numeric root finding",
            OperationKind.FALLBACK,
            equation,
            f"search {variable} ∈ [-{fmt_approx(radius)}, {fmt_approx(radius)}]",
            "No closed form was found, so roots are approximated with Newton's method "
            "safeguarded by bisection",
        )
        if is_identically_zero(f, self.config):
            trace.add(
                "identity",
                "Recognise an identity",
                OperationKind.ANALYSIS,
                equation,
                ALL_REAL_NUMBERS,
                "Both sides agree wherever they are defined, so every real number is a solution",
            )
            return [Solution(variable, ALL_REAL_NUMBERS, True, conditions=(f"{variable} ∈ ℝ",))]

        roots = find_roots(f, self.config)
        if period is not None:
            roots = reduce_to_period(roots, period[0])
        if not roots:
            raise ComputationError(
                f"Could not find a real solution for {variable} in {equation}",
                expression=equation,
                suggestions=("Check that the equation has a real solution",
                             "Try a larger search radius"),
                steps=trace.steps,
            )

        solutions = []
        for r in roots:
            text = fmt_approx(r, self.config.precision)
            solutions.append(Solution(variable, text, False, approximation=r,
                                      conditions=self._conditions(variable, text, period)))
        trace.add(
            "numeric_roots",
            "Approximate the real roots numerically",
            OperationKind.NUMERIC_APPROXIMATION,
            equation,
            format_solution_list(variable, [s.value for s in solutions]),
            f"Found {len(solutions)} root(s) to within {self.config.tolerance:g}",
        )
        return solutions

    @staticmethod
    def _conditions(variable: str, value: str, period) -> tuple:
        if period is None:
            return ()
        return (f"{variable} = {value} + {period[1]}, n ∈ ℤ",)
