import pytest

from mathcore.config import SolverConfig
from mathcore.errors import BackendError, ComputationError, MathErrorKind
from mathcore.models import EquationType
from mathcore.parser import parse
from mathcore.solver.backends import BackendChain
from mathcore.solver.engine import (
    CACHE_TTL, EquationSolver, MemoryCache, cache_key, solve,
)
from mathcore.solver.linear import ALL_REAL_NUMBERS
from mathcore.solver.steps import StepTrace


class CannedBackend:
    name = "canned"

    def __init__(self, roots) -> None:
        self.roots = roots

    def solve(self, equation: str, variable: str) -> list:
        return list(self.roots)

    def simplify(self, expression: str, variable: str) -> str:
        return expression

    def evaluate(self, expression: str) -> float:
        raise BackendError("not needed")


def _ids(result) -> list:
    return [s.id for s in result.steps]


# ── Dispatch by type ────────────────────────────────────────────────────

def test_linear_equation() -> None:
    result = solve("2x + 3 = 7")
    assert result.values == ["2"]
    assert result.equation_type is EquationType.LINEAR
    assert result.variables == ("x",)
    assert _ids(result)[:2] == ["parse", "classify_equation"]
    assert "identify_form" in _ids(result)
    assert result.steps[-1].id == "conclusion"
    assert result.steps[-1].after == "x = 2"
    assert result.metadata["method"] == "algebraic_manipulation"
    assert result.metadata["confidence"] == 1.0
    assert result.metadata["is_exact"] is True
    assert result.metadata["computation_time_ms"] >= 0


def test_quadratic_equation() -> None:
    result = solve("x^2 - 4 = 0")
    assert sorted(result.values) == ["-2", "2"]
    assert result.equation_type is EquationType.QUADRATIC
    assert result.metadata["confidence"] == 0.95
    final = result.steps[-1].after
    assert "x = 2" in final and "x = -2" in final


def test_bare_expression_is_set_equal_to_zero() -> None:
    result = solve("x^2 - 5x + 6")
    assert _ids(result)[1] == "set_equal_to_zero"
    assert result.values == ["3", "2"]


def test_cubic_goes_to_general_solver() -> None:
    result = solve("x^3 - 6x^2 + 11x - 6 = 0")
    assert result.equation_type is EquationType.POLYNOMIAL
    assert sorted(result.values) == ["1", "2", "3"]
    assert result.metadata["method"] == "polynomial_factoring"
    assert "backend_sympy_solution" in _ids(result)


def test_numeric_method_is_reported() -> None:
    result = solve("x^3 - x - 1 = 0", backends=BackendChain())
    assert result.metadata["method"] == "numerical_methods"
    assert result.metadata["is_exact"] is False
    assert result.solutions[0].approximation == pytest.approx(1.3247179572, abs=1e-9)


def test_target_variable_selection() -> None:
    result = solve("2y - 4 = 0")
    assert result.variables == ("y",)
    assert result.values == ["2"]
    assert solve("x + t = 3", variables=["t"], bindings={"x": 1}).values == ["2"]


# ── Bindings ────────────────────────────────────────────────────────────

def test_bindings_are_substituted_first() -> None:
    result = solve("a*x + b = 0", variables=["x"], bindings={"a": 2, "b": "-8"})
    assert result.values == ["4"]
    step = next(s for s in result.steps if s.id == "substitute_bindings")
    assert "a = 2" in step.description and "b = -8" in step.description
    assert result.equation_type is EquationType.LINEAR


def test_binding_values_may_be_expressions() -> None:
    result = solve("x = k", bindings={"k": "2^3"})
    assert result.values == ["8"]


def test_binding_with_variable_is_rejected() -> None:
    with pytest.raises(ComputationError, match="must not contain variables"):
        solve("x = k", bindings={"k": "y + 1"})


# ── Fallback chain ──────────────────────────────────────────────────────

def test_linear_stage_falls_back_to_quadratic() -> None:
    solver = EquationSolver()
    trace = StepTrace()
    ast = parse("x^2 = 4").ast

    solutions, equation_type = solver._dispatch(ast, "x", EquationType.LINEAR, trace)

    assert equation_type is EquationType.QUADRATIC
    assert sorted(s.value for s in solutions) == ["-2", "2"]
    assert [s.id for s in trace][0] == "fallback_linear"
    assert trace.steps[0].after == "try the quadratic solver"


def test_quadratic_stage_falls_back_to_general() -> None:
    solver = EquationSolver()
    trace = StepTrace()
    ast = parse("x^3 = 8").ast

    solutions, equation_type = solver._dispatch(ast, "x", EquationType.QUADRATIC, trace)

    assert equation_type is EquationType.POLYNOMIAL
    assert [s.value for s in solutions] == ["2"]
    assert trace.steps[0].id == "fallback_quadratic"


# ── Degenerate and unsolvable input ─────────────────────────────────────

def test_identity_without_variable() -> None:
    result = solve("2 + 2 = 4")
    assert result.values == [ALL_REAL_NUMBERS]
    assert result.equation_type is EquationType.LINEAR
    assert "no_target_variable" in _ids(result)


def test_contradiction_without_variable() -> None:
    result = solve("1 = 2")
    assert result.values == []
    assert result.steps[-1].after == "no real solutions"


def test_linear_identity() -> None:
    result = solve("2(x + 1) = 2x + 2")
    assert result.values == [ALL_REAL_NUMBERS]
    assert result.solutions[0].conditions == ("x ∈ ℝ",)


def test_tiny_coefficients_are_solved_not_dropped() -> None:
    assert solve("1e-13*x = 1e-13").values == ["1"]
    result = solve("1e-13*x = 1")
    assert len(result.solutions) == 1
    assert result.solutions[0].approximation == pytest.approx(1e13)


def test_inexact_mode_reports_inexact_solutions() -> None:
    result = solve("3x = 1", config=SolverConfig(exact=False, precision=4))
    assert result.values == ["0.3333"]
    assert result.solutions[0].is_exact is False
    assert result.metadata["is_exact"] is False


def test_missing_target_variable_raises() -> None:
    with pytest.raises(ComputationError, match="does not occur"):
        solve("y = 2", variables=["x"])


def test_inequality_is_unsupported() -> None:
    with pytest.raises(ComputationError) as info:
        solve("x < 3")
    assert info.value.kind is MathErrorKind.UNSUPPORTED_OPERATION


def test_failure_carries_steps_so_far() -> None:
    config = SolverConfig(search_radius=10.0)
    with pytest.raises(ComputationError) as info:
        solve("exp(x) = -1", config=config, backends=BackendChain())
    ids = [s.id for s in info.value.steps]
    assert ids[:2] == ["parse", "classify_equation"]
    assert "numeric_fallback" in ids
    assert "exp(x)" in info.value.expression


# ── Domain restrictions ─────────────────────────────────────────────────

def test_roots_outside_domain_are_rejected() -> None:
    backend = CannedBackend(["-1", "1"])
    result = solve("sqrt(x) = 1", backends=BackendChain([backend]))
    assert result.values == ["1"]
    assert "reject_extraneous" in _ids(result)
    assert [r.restriction for r in result.domain_restrictions] == ["x ≥ 0"]


def test_identity_keeps_domain_as_condition() -> None:
    result = solve("x/x = 1")
    assert result.values == [ALL_REAL_NUMBERS]
    assert "x ≠ 0" in result.solutions[0].conditions


def test_log_equation_reports_restriction() -> None:
    result = solve("ln(x) = 0")
    assert result.equation_type is EquationType.LOGARITHMIC
    assert result.values == ["1"]
    assert result.domain_restrictions[0].restriction == "x > 0"


# ── Options, cache ──────────────────────────────────────────────────────

def test_show_steps_false_keeps_only_conclusion() -> None:
    result = solve("2x = 8", config=SolverConfig(show_steps=False))
    assert len(result.steps) == 1
    assert result.steps[0].id == "conclusion"
    assert result.values == ["4"]


def test_cache_returns_stored_result() -> None:
    cache = MemoryCache()
    solver = EquationSolver(cache=cache)
    first = solver.solve("2x = 4")
    assert len(cache) == 1
    assert solver.solve("2x = 4") is first


def test_cache_key_includes_bindings() -> None:
    assert cache_key("a*x = 1", "x", {"a": 2.0}) != cache_key("a*x = 1", "x", {"a": 3.0})
    assert cache_key("x = 1", "x", {}) == "x = 1|x|"


def test_cache_entries_expire() -> None:
    now = [0.0]
    cache = MemoryCache(clock=lambda: now[0])
    result = solve("x = 1")
    cache.put("k", result, CACHE_TTL)
    assert cache.get("k") is result
    now[0] = CACHE_TTL + 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_solver_exposes_backend_chain() -> None:
    assert EquationSolver().backends.names == ["sympy"]
    chain = BackendChain()
    assert EquationSolver(backends=chain).backends is chain
