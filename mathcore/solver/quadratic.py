"""Step-by-step solver for ``a·x² + b·x + c = 0`` using the discriminant."""

import math
from fractions import Fraction
from typing import Optional

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.models import OperationKind, Solution
from mathcore.solver.formatting import fmt_coeff, fmt_num, format_polynomial, is_integral
from mathcore.solver.linear import LinearSolver, format_value, linear_text
from mathcore.solver.steps import StepTrace


def _discriminant(a: float, b: float, c: float, integral: bool):
    if integral:
        return int(b) * int(b) - 4 * int(a) * int(c)
    d = b * b - 4 * a * c
    # Float round-off near a double root.
    scale = max(b * b, abs(4 * a * c))
    return 0.0 if abs(d) <= 1e-12 * scale else d


class QuadraticSolver:
    """Discriminant case analysis with an explicit step for every branch."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def solve(self, a: float, b: float, c: float, variable: str = "x") -> tuple[list, tuple]:
        trace = StepTrace()
        v = variable
        form = f"{format_polynomial({2: a, 1: b, 0: c}, v)} = 0"
        a_s, b_s, c_s = fmt_coeff(a), fmt_coeff(b), fmt_coeff(c)

        trace.add(
            "identify_quadratic",
            f"Identify quadratic equation: {form}",
            OperationKind.IDENTIFICATION,
            form,
            "Quadratic equation in standard form",
            f"This is a quadratic equation with a = {a_s}, b = {b_s}, c = {c_s}",
        )

        # ── Degenerate: no x² term ────────────────────────────────────
        if a == 0:
            reduced = f"{linear_text(b, c, v)} = 0"
            trace.add(
                "reduce_to_linear",
                f"Coefficient of {v}² is 0, reducing to linear equation",
                OperationKind.SIMPLIFICATION,
                form,
                reduced,
                "Since a = 0, this reduces to a linear equation",
            )
            solutions, steps = LinearSolver(self.config).solve(b, c, v)
            trace.extend(steps)
            return solutions, trace.steps

        # ── Discriminant ──────────────────────────────────────────────
        integral = is_integral(a) and is_integral(b) and is_integral(c)
        d = _discriminant(a, b, c, integral)
        d_s = fmt_num(d)
        substituted = f"Δ = ({b_s})² - 4({a_s})({c_s})"
        trace.add(
            "calculate_discriminant",
            "Calculate discriminant Δ = b² - 4ac",
            OperationKind.CALCULATION,
            substituted,
            f"Δ = {d_s}",
            f"The discriminant determines the nature of the roots: {substituted} = {d_s}",
        )

        if d < 0:
            trace.add(
                "no_real_solutions",
                "Discriminant is negative",
                OperationKind.ANALYSIS,
                f"Δ = {d_s} < 0",
                "No real solutions",
                "Since the discriminant is negative, there are no real solutions "
                "(complex solutions exist)",
            )
            return [], trace.steps

        two_a = 2 * a
        if d == 0:
            trace.add(
                "one_repeated_root",
                "Discriminant is zero - one repeated root",
                OperationKind.ANALYSIS,
                "Δ = 0",
                "One repeated root",
                "Since the discriminant is zero, there is one repeated root",
            )
            value = -b / two_a
            exact = Fraction(-int(b), int(two_a)) if integral else None
            text = format_value(value, exact, self.config)
            trace.add(
                "calculate_repeated_root",
                f"Calculate the repeated root using {v} = -b/(2a)",
                OperationKind.QUADRATIC_FORMULA,
                f"{v} = -({b_s})/(2·{a_s})",
                f"{v} = {text}",
                f"Using the quadratic formula with Δ = 0: {v} = -({b_s})/(2·{a_s}) = {text}",
            )
            return [Solution(v, text, exact is not None and self.config.exact,
                             approximation=value, multiplicity=2)], trace.steps

        trace.add(
            "two_distinct_roots",
            "Discriminant is positive - two distinct real roots",
            OperationKind.ANALYSIS,
            f"Δ = {d_s} > 0",
            "Two distinct real roots",
            "Since the discriminant is positive, there are two distinct real roots",
        )
        root = math.sqrt(d)
        perfect = integral and math.isqrt(int(d)) ** 2 == int(d)
        solutions = []
        for sign in (1, -1):
            value = (-b + sign * root) / two_a
            exact = None
            if perfect:
                exact = Fraction(-int(b) + sign * math.isqrt(int(d)), int(two_a))
            text = format_value(value, exact, self.config)
            solutions.append(Solution(v, text, exact is not None and self.config.exact,
                                      approximation=value))

        trace.add(
            "apply_quadratic_formula",
            f"Apply quadratic formula: {v} = (-b ± √Δ)/(2a)",
            OperationKind.QUADRATIC_FORMULA,
            f"{v} = (-({b_s}) ± √{d_s})/(2·{a_s})",
            f"{v} = {solutions[0].value} or {v} = {solutions[1].value}",
            f"Using the quadratic formula: {v} = (-({b_s}) ± √{d_s})/(2·{a_s})",
        )
        return solutions, trace.steps


def solve_quadratic(a: float, b: float, c: float, variable: str = "x",
                    config: Optional[SolverConfig] = None) -> tuple[list, tuple]:
    return QuadraticSolver(config).solve(a, b, c, variable)
