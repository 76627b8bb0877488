"""Step-by-step solver for ``a·x + b = 0``."""

from fractions import Fraction
from typing import Optional

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.models import OperationKind, Solution
from mathcore.solver.formatting import fmt_approx, fmt_coeff, fmt_fraction, fmt_num, is_integral
from mathcore.solver.steps import StepTrace

ALL_REAL_NUMBERS = "all real numbers"


def linear_text(a: float, b: float, variable: str) -> str:
    """``2x - 6`` style rendering that keeps a zero ``a`` visible (``0x + 5``)."""
    sign = "-" if b < 0 else "+"
    return f"{fmt_coeff(a)}{variable} {sign} {fmt_coeff(abs(b))}"


def format_value(value: float, exact_fraction: Optional[Fraction],
                 config: SolverConfig) -> str:
    if exact_fraction is not None and config.exact:
        return fmt_fraction(exact_fraction)
    return fmt_approx(value, config.precision)


class LinearSolver:
    """Solves ``a·x + b = 0`` with degenerate-case handling."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def solve(self, a: float, b: float, variable: str = "x") -> tuple[list, tuple]:
        trace = StepTrace()
        form = f"{linear_text(a, b, variable)} = 0"

        # ── Step 1: identify the standard form ───────────────────────
        trace.add(
            "identify_form",
            f"Identify linear equation form: {form}",
            OperationKind.IDENTIFICATION,
            form,
            "Linear equation in standard form",
            f"This is a linear equation with coefficient a = {fmt_coeff(a)} "
            f"and constant b = {fmt_coeff(b)}",
        )

        # ── Degenerate cases: the variable cancelled out ─────────────
        if a == 0:
            if b == 0:
                trace.add(
                    "infinite_solutions",
                    "Equation simplifies to 0 = 0",
                    OperationKind.SIMPLIFICATION,
                    form,
                    "0 = 0",
                    "This equation is always true, so every real number is a solution",
                )
                solution = Solution(variable, ALL_REAL_NUMBERS, True,
                                    conditions=(f"{variable} ∈ ℝ",))
                return [solution], trace.steps
            trace.add(
                "no_solution",
                f"Equation simplifies to {fmt_coeff(b)} = 0",
                OperationKind.SIMPLIFICATION,
                form,
                f"{fmt_coeff(b)} = 0",
                f"This equation is never true since {fmt_coeff(b)} ≠ 0, so there is no solution",
            )
            return [], trace.steps

        # ── Step 2: move the constant across ─────────────────────────
        term = f"{fmt_coeff(a)}{variable}"
        if b < 0:
            move = f"Add {fmt_coeff(-b)} to both sides"
        else:
            move = f"Subtract {fmt_coeff(b)} from both sides"
        trace.add(
            "isolate_variable_term",
            move,
            OperationKind.ALGEBRAIC_MANIPULATION,
            form,
            f"{term} = {fmt_coeff(-b)}",
            f"{move} to isolate the variable term",
        )

        # ── Step 3: divide by the coefficient ────────────────────────
        value = -b / a
        exact = Fraction(int(-b), int(a)) if is_integral(a) and is_integral(b) else None
        text = format_value(value, exact, self.config)
        trace.add(
            "solve_for_variable",
            f"Divide both sides by {fmt_coeff(a)}",
            OperationKind.ALGEBRAIC_MANIPULATION,
            f"{term} = {fmt_coeff(-b)}",
            f"{variable} = {text}",
            f"Divide both sides by {fmt_coeff(a)} to solve for {variable}",
        )

        # ── Step 4: verification by substitution ─────────────────────
        check = a * value + b
        trace.add(
            "verify_solution",
            "Verify the solution",
            OperationKind.VERIFICATION,
            f"{variable} = {text}",
            f"{fmt_coeff(a)}({text}) {'-' if b < 0 else '+'} {fmt_coeff(abs(b))} = {fmt_num(check)}",
            f"Substitute {variable} = {text} back into the equation: the left side "
            f"{'equals' if abs(check) < 1e-9 else 'does not equal'} zero",
        )

        solution = Solution(variable, text, exact is not None and self.config.exact,
                            approximation=value)
        return [solution], trace.steps


def solve_linear(a: float, b: float, variable: str = "x",
                 config: Optional[SolverConfig] = None) -> tuple[list, tuple]:
    return LinearSolver(config).solve(a, b, variable)
