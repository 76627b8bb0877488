"""
Equation solvers.

:func:`solve` is the single-equation entry point, :func:`solve_system`
handles systems of linear equations and :func:`check_solution`
substitutes given values into an equation.
"""

from mathcore.solver.backends import BackendChain, SymbolicBackend, SympyBackend
from mathcore.solver.classifier import Classification, EquationClassifier, classify
from mathcore.solver.engine import Cache, EquationSolver, MemoryCache, solve
from mathcore.solver.general import GeneralSolver
from mathcore.solver.linear import LinearSolver, solve_linear
from mathcore.solver.quadratic import QuadraticSolver, solve_quadratic
from mathcore.solver.substitution import check_solution, parse_values
from mathcore.solver.system import SystemSolver, solve_system

__all__ = [
    "BackendChain", "Cache", "Classification", "EquationClassifier", "EquationSolver",
    "GeneralSolver", "LinearSolver", "MemoryCache", "QuadraticSolver", "SymbolicBackend",
    "SympyBackend", "SystemSolver", "check_solution", "classify", "parse_values", "solve",
    "solve_linear", "solve_quadratic", "solve_system",
]
