"""
Bounded numeric root finder.

Scans ``[-radius, radius]`` on a NumPy grid, brackets sign changes and
near-zero dips, and polishes every candidate with Newton–Raphson guarded
by bisection.  Iterations are capped and candidates that do not drive the
residual to (almost) zero are discarded, so poles never pass for roots.
"""

import logging
import math
from typing import Callable, Mapping, Optional

import numpy as np

from mathcore.config import DEFAULT_CONFIG, SolverConfig
from mathcore.errors import ComputationError
from mathcore.parser.evaluator import residual
from mathcore.parser.nodes import Node

logger = logging.getLogger(__name__)

# |f(x)| below this counts as a root once Newton has converged.
RESIDUAL_TOLERANCE = 1e-7
PERIOD_CANDIDATES = ((math.pi, "πn"), (2 * math.pi, "2πn"))


def make_function(ast: Node, variable: str,
                  bindings: Optional[Mapping] = None) -> Callable[[float], float]:
    """``f(x) = lhs - rhs`` as a float function; undefined points give NaN."""
    fixed = dict(bindings or {})

    def f(x: float) -> float:
        fixed[variable] = x
        try:
            return residual(ast, fixed)
        except ComputationError:
            return math.nan

    return f


def sample(f: Callable[[float], float], xs: np.ndarray) -> np.ndarray:
    return np.fromiter((f(float(x)) for x in xs), dtype=float, count=len(xs))


def _derivative(f, x: float) -> float:
    h = 1e-7 * max(1.0, abs(x))
    return (f(x + h) - f(x - h)) / (2 * h)


def _newton_bracketed(f, lo: float, hi: float, tolerance: float,
                      max_iterations: int) -> Optional[float]:
    """Newton steps that fall outside ``[lo, hi]`` are replaced by bisection."""
    f_lo = f(lo)
    x = 0.5 * (lo + hi)
    for _ in range(max_iterations):
        fx = f(x)
        if not math.isfinite(fx):
            return None
        if abs(fx) < tolerance:
            return x
        if (fx < 0) == (f_lo < 0):
            lo, f_lo = x, fx
        else:
            hi = x
        if hi - lo < tolerance * (1 + abs(x)):
            return x
        slope = _derivative(f, x)
        step = x - fx / slope if slope and math.isfinite(slope) else None
        x = step if step is not None and lo < step < hi else 0.5 * (lo + hi)
    return x


def _newton_free(f, x: float, tolerance: float, max_iterations: int) -> Optional[float]:
    """Plain Newton from *x*; used for roots the curve only touches."""
    for _ in range(max_iterations):
        fx = f(x)
        if not math.isfinite(fx):
            return None
        if abs(fx) < tolerance:
            return x
        slope = _derivative(f, x)
        if not slope or not math.isfinite(slope):
            return None
        nxt = x - fx / slope
        if abs(nxt - x) < tolerance * (1 + abs(x)):
            return nxt
        x = nxt
    return x


def _tidy(x: float) -> float:
    nearest = round(x)
    if abs(x - nearest) < 1e-9:
        return float(nearest)
    return x


def _dedupe(roots: list[float]) -> list[float]:
    out: list[float] = []
    for r in sorted(roots):
        if not out or abs(r - out[-1]) > 1e-6 * (1 + abs(r)):
            out.append(r)
    return out


def find_roots(f: Callable[[float], float], config: Optional[SolverConfig] = None,
               lo: Optional[float] = None, hi: Optional[float] = None) -> list[float]:
    """All real roots of *f* found on the search interval, sorted."""
    config = config or DEFAULT_CONFIG
    lo = -config.search_radius if lo is None else lo
    hi = config.search_radius if hi is None else hi
    xs = np.linspace(lo, hi, config.search_samples)
    ys = sample(f, xs)
    finite = np.isfinite(ys)
    tol = config.tolerance
    candidates: list[float] = []

    # Grid points that already are roots.
    for i in np.nonzero(finite & (ys == 0))[0]:
        candidates.append(float(xs[i]))

    # Sign changes between neighbouring finite samples.
    pair_ok = finite[:-1] & finite[1:]
    flips = np.nonzero(pair_ok & (np.sign(ys[:-1]) * np.sign(ys[1:]) < 0))[0]
    for i in flips:
        root = _newton_bracketed(f, float(xs[i]), float(xs[i + 1]), tol, config.max_iterations)
        if root is not None:
            candidates.append(root)

    # Local minima of |f| that never cross zero (double roots).
    mag = np.abs(ys)
    for i in range(1, len(xs) - 1):
        if not (finite[i - 1] and finite[i] and finite[i + 1]):
            continue
        if mag[i] <= mag[i - 1] and mag[i] <= mag[i + 1] and ys[i - 1] * ys[i + 1] > 0:
            root = _newton_free(f, float(xs[i]), tol, config.max_iterations)
            if root is not None and abs(root - xs[i]) <= (hi - lo) / len(xs) * 2:
                candidates.append(root)

    roots = []
    for r in candidates:
        value = f(r)
        if math.isfinite(value) and abs(value) < RESIDUAL_TOLERANCE and lo <= r <= hi:
            roots.append(_tidy(r))
    roots = _dedupe(roots)
    logger.debug("Numeric scan on [%g, %g] found %d root(s)", lo, hi, len(roots))
    return roots


# ── Periodicity ─────────────────────────────────────────────────────────

def detect_period(f: Callable[[float], float], probes: int = 9) -> Optional[tuple]:
    """Return ``(period, label)`` if ``f(x + P) == f(x)`` numerically."""
    xs = np.linspace(-2.7, 3.1, probes)
    base = sample(f, xs)
    if not np.isfinite(base).any():
        return None
    for period, label in PERIOD_CANDIDATES:
        shifted = sample(f, xs + period)
        both = np.isfinite(base) & np.isfinite(shifted)
        if both.sum() < probes // 2:
            continue
        if np.allclose(base[both], shifted[both], rtol=1e-9, atol=1e-9):
            return period, label
    return None


def reduce_to_period(roots: list[float], period: float) -> list[float]:
    """Representatives of *roots* in ``[0, period)``."""
    reduced = []
    for r in roots:
        m = math.fmod(r, period)
        if m < 0:
            m += period
        if period - m < 1e-9:
            m = 0.0
        reduced.append(_tidy(m))
    return _dedupe(reduced)


def is_identically_zero(f: Callable[[float], float], config: Optional[SolverConfig] = None,
                        probes: int = 101) -> bool:
    """True when every defined probe point is a root (``x/x = 1``)."""
    config = config or DEFAULT_CONFIG
    # Offset keeps probes off integers, where removable holes usually sit.
    xs = np.linspace(-config.search_radius, config.search_radius, probes) + 0.1234567
    ys = sample(f, xs)
    finite = np.isfinite(ys)
    return bool(finite.sum() >= probes // 4 and np.all(np.abs(ys[finite]) < RESIDUAL_TOLERANCE))
