"""
Systems of linear equations.

Every equation is reduced to a linear form over all variables of the
system and assembled into ``A·v = b``.  The ranks of ``A`` and ``[A | b]``
decide between a unique, an inconsistent and an underdetermined system.
Unique systems with integer coefficients are solved exactly by fraction
Gauss–Jordan elimination, all others with NumPy.
"""

import logging
import time
from fractions import Fraction
from typing import Iterable, Optional, Union

import numpy as np

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import ComputationError, MathError, MathErrorKind, ParseError
from mathcore.models import EquationType, OperationKind, Solution, SolveResult
from mathcore.parser import MathParser
from mathcore.parser.evaluator import residual
from mathcore.parser.nodes import Equation, Inequality, free_variables, num, to_source
from mathcore.solver.coefficients import extract_linear_form
from mathcore.solver.formatting import fmt_approx, fmt_fraction, fmt_num, is_integral
from mathcore.solver.steps import StepTrace

logger = logging.getLogger(__name__)

INFINITELY_MANY = "infinitely many"
SYSTEM_CONFIDENCE = 0.85


def split_equations(text: str) -> list[str]:
    """Split on ``;`` or on commas outside parentheses and brackets."""
    parts, depth, current = [], 0, []
    for ch in text:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        if ch == ";" or (ch == "," and depth == 0):
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _format_matrix(A: np.ndarray) -> str:
    """Format a 2-D NumPy array as a readable bracketed matrix."""
    rows = []
    for row in A:
        rows.append("[" + ", ".join(fmt_num(v) for v in row) + "]")
    return "[" + ", ".join(rows) + "]"


def _gauss_jordan(A: np.ndarray, b: np.ndarray) -> list[Fraction]:
    """Exact elimination on ``[A | b]``; assumes full column rank."""
    n = A.shape[1]
    m = [[Fraction(int(v)) for v in row] + [Fraction(int(rhs))] for row, rhs in zip(A, b)]
    pivot_row = 0
    for col in range(n):
        pivot = next((r for r in range(pivot_row, len(m)) if m[r][col] != 0), None)
        if pivot is None:
            continue
        m[pivot_row], m[pivot] = m[pivot], m[pivot_row]
        lead = m[pivot_row][col]
        m[pivot_row] = [v / lead for v in m[pivot_row]]
        for r in range(len(m)):
            if r != pivot_row and m[r][col] != 0:
                factor = m[r][col]
                m[r] = [x - factor * y for x, y in zip(m[r], m[pivot_row])]
        pivot_row += 1
    return [m[i][n] for i in range(n)]


class SystemSolver:
    """Solves a list of linear equations in several unknowns."""

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._parser = MathParser(self.config)

    def _parse(self, raw_equations: list[str]) -> list:
        asts = []
        for text in raw_equations:
            ast = self._parser.parse(text).ast
            if isinstance(ast, Inequality):
                raise ComputationError("Systems of inequalities are not supported",
                                       kind=MathErrorKind.UNSUPPORTED_OPERATION,
                                       expression=text)
            if not isinstance(ast, Equation):
                ast = Equation(ast, num(0))
            asts.append(ast)
        return asts

    def solve(self, equations: Union[str, Iterable[str]]) -> SolveResult:
        t_start = time.perf_counter()
        raw = split_equations(equations) if isinstance(equations, str) else [
            e.strip() for e in equations if e and e.strip()]
        if not raw:
            raise ParseError("No equations provided",
                             suggestions=("Separate equations with ';', e.g. x + y = 3; x - y = 1",))
        asts = self._parse(raw)

        var_names: list[str] = []
        for ast in asts:
            for v in free_variables(ast):
                if v not in var_names:
                    var_names.append(v)
        if not var_names:
            raise ComputationError("The system has no variables to solve for",
                                   expression="; ".join(raw))
        n_eq, n_var = len(asts), len(var_names)
        trace = StepTrace()

        # ── Step: show the system ────────────────────────────────────
        sys_lines = "\n".join(f"  ({i + 1})  {to_source(a)}" for i, a in enumerate(asts))
        trace.add(
            "system",
            "System of equations",
            OperationKind.IDENTIFICATION,
            "; ".join(raw),
            sys_lines,
            f"We have {n_eq} equation{'s' if n_eq != 1 else ''} "
            f"with {n_var} unknown{'s' if n_var != 1 else ''}: {', '.join(var_names)}.",
        )

        # ── Coefficient matrix A and constant vector b ───────────────
        A = np.zeros((n_eq, n_var), dtype=np.float64)
        b = np.zeros(n_eq, dtype=np.float64)
        for i, ast in enumerate(asts):
            try:
                coeffs, constant = extract_linear_form(ast, var_names)
            except MathError as e:
                raise e.with_expression(raw[i])
            for j, v in enumerate(var_names):
                A[i, j] = coeffs.get(v, 0.0)
            b[i] = -constant
        trace.add(
            "matrix_form",
            "Build coefficient matrix and constant vector",
            OperationKind.ALGEBRAIC_MANIPULATION,
            sys_lines,
            f"A = {_format_matrix(A)}\nb = [{', '.join(fmt_num(v) for v in b)}]",
            "Extract the coefficients of each variable from every equation "
            "to form the matrix A and constant vector b for the system Ax = b.",
        )

        # ── Rank analysis ────────────────────────────────────────────
        rank_a = int(np.linalg.matrix_rank(A))
        rank_ab = int(np.linalg.matrix_rank(np.column_stack([A, b])))
        trace.add(
            "rank_analysis",
            "Compare the ranks of A and [A | b]",
            OperationKind.ANALYSIS,
            f"A = {_format_matrix(A)}",
            f"rank(A) = {rank_a}, rank([A | b]) = {rank_ab}, unknowns = {n_var}",
            "A unique solution needs rank(A) = rank([A | b]) = number of unknowns.",
        )

        if rank_a < rank_ab:
            solutions, method, exact = [], "rank_analysis", True
            trace.add(
                "inconsistent_system",
                "The system is inconsistent",
                OperationKind.ANALYSIS,
                f"rank(A) = {rank_a} < rank([A | b]) = {rank_ab}",
                "no solution",
                "Eliminating variables leads to a contradiction such as 0 = c with c ≠ 0, "
                "so no values satisfy every equation at once.",
            )
        elif rank_a < n_var:
            solutions = [Solution(v, INFINITELY_MANY, False, conditions=("free parameter",))
                         for v in var_names]
            method, exact = "rank_analysis", False
            free = n_var - rank_a
            trace.add(
                "underdetermined_system",
                "The system is underdetermined",
                OperationKind.ANALYSIS,
                f"rank(A) = {rank_a} < {n_var} unknowns",
                f"{INFINITELY_MANY} solutions",
                f"The equations are dependent: {free} unknown{'s' if free != 1 else ''} "
                "can be chosen freely, giving infinitely many solutions.",
            )
        else:
            solutions, method, exact = self._unique(A, b, var_names, trace)
            self._verify(asts, solutions, trace)

        values = ", ".join(f"{s.variable} = {s.value}" for s in solutions) or "no solution"
        if not solutions:
            outcome = "no solution"
        elif rank_a < n_var:
            outcome = "infinitely many solutions"
        else:
            outcome = "a unique solution"
        trace.add(
            "conclusion",
            "Solution of the system",
            OperationKind.CONCLUSION,
            sys_lines,
            values,
            f"The system has {outcome}.",
        )
        steps = trace.steps if self.config.show_steps else (trace.last,)
        metadata = {
            "computation_time_ms": round((time.perf_counter() - t_start) * 1000, 2),
            "method": method,
            "confidence": SYSTEM_CONFIDENCE,
            "is_exact": exact,
        }
        logger.debug("Solved system %s with %s: %s", raw, method, values)
        return SolveResult(tuple(solutions), steps, EquationType.SYSTEM, tuple(var_names),
                           (), metadata)

    def _unique(self, A: np.ndarray, b: np.ndarray, var_names: list[str], trace: StepTrace):
        integral = all(is_integral(v) for v in A.flat) and all(is_integral(v) for v in b)
        if integral:
            exact_values = _gauss_jordan(A, b)
            floats = [float(v) for v in exact_values]
            texts = [fmt_fraction(v) if self.config.exact else fmt_approx(float(v),
                     self.config.precision) for v in exact_values]
            method = "gauss_jordan"
            trace.add(
                "gauss_jordan",
                "Reduce [A | b] to reduced row echelon form",
                OperationKind.ELIMINATION,
                f"[A | b] = {_format_matrix(np.column_stack([A, b]))}",
                ", ".join(f"{v} = {t}" for v, t in zip(var_names, texts)),
                "Gauss–Jordan elimination with exact fractions: scale each pivot row "
                "to 1 and clear the pivot column in every other row.",
            )
        else:
            if A.shape[0] == A.shape[1]:
                x = np.linalg.solve(A, b)
                how = "numpy.linalg.solve"
            else:
                x = np.linalg.lstsq(A, b, rcond=None)[0]
                how = "numpy.linalg.lstsq"
            floats = [float(v) for v in x]
            texts = [fmt_approx(v, self.config.precision) for v in floats]
            method = how
            trace.add(
                "numeric_solve",
                f"Solve Ax = b using {how}",
                OperationKind.CALCULATION,
                f"A = {_format_matrix(A)}",
                ", ".join(f"{v} = {t}" for v, t in zip(var_names, texts)),
                "NumPy solves the system using LU decomposition to find "
                "the numerical values of each variable.",
            )
        is_exact = integral and self.config.exact
        solutions = [Solution(v, t, is_exact, approximation=f)
                     for v, t, f in zip(var_names, texts, floats)]
        return solutions, method, is_exact

    def _verify(self, asts: list, solutions: list, trace: StepTrace) -> None:
        bindings = {s.variable: s.approximation for s in solutions}
        lines = []
        for i, ast in enumerate(asts):
            diff = residual(ast, bindings)
            ok = abs(diff) < 1e-9 * max(1.0, *(abs(v) for v in bindings.values()))
            lines.append(f"({i + 1}) {'✓' if ok else '✗'}")
        trace.add(
            "verify_solution",
            "Substitute into every equation",
            OperationKind.VERIFICATION,
            ", ".join(f"{s.variable} = {s.value}" for s in solutions),
            "  ".join(lines),
            "Plug the solution back into each original equation and compare both sides.",
        )


def solve_system(equations: Union[str, Iterable[str]],
                 config: Optional[SolverConfig] = None) -> SolveResult:
    return SystemSolver(config).solve(equations)
