"""Display helpers shared by the solvers' step traces."""

import math
from fractions import Fraction

# ── Numeric formatting helpers ──────────────────────────────────────────

def fmt_num(value: float, max_decimals: int = 10) -> str:
    """Format a float into a clean decimal string.

    - Removes trailing zeros after the decimal point.
    - Uses up to *max_decimals* digits after the point.
    - Returns integers without a decimal point (e.g. ``7`` not ``7.0``).
    """
    if not math.isfinite(value):
        return str(value)
    if abs(value - round(value)) < 1e-12:
        return str(int(round(value)))
    formatted = f"{value:.{max_decimals}f}".rstrip("0").rstrip(".")
    if formatted in ("", "-0", "-"):
        return "0"
    return formatted


def fmt_coeff(value: float, max_decimals: int = 10) -> str:
    """Like :func:`fmt_num`, but a nonzero coefficient never prints as ``0``."""
    text = fmt_num(value, max_decimals)
    if text == "0" and value != 0:
        return f"{value:.6g}"
    return text


def fmt_approx(value: float, precision: int = 15) -> str:
    """Format with at most *precision* significant digits."""
    if not math.isfinite(value):
        return str(value)
    if value == 0:
        return "0"
    magnitude = int(math.floor(math.log10(abs(value))))
    decimals = max(0, min(precision - 1 - magnitude, 15))
    return fmt_num(value, decimals)


def fmt_fraction(value: Fraction) -> str:
    """``Fraction(-1, 3)`` → ``"-1/3"``, ``Fraction(3)`` → ``"3"``."""
    if value.denominator == 1:
        return str(value.numerator)
    return f"{value.numerator}/{value.denominator}"


def is_integral(value: float) -> bool:
    return math.isfinite(value) and float(value).is_integer()


_SUPERSCRIPT = str.maketrans("0123456789+-/()", "⁰¹²³⁴⁵⁶⁷⁸⁹⁺⁻ᐟ⁽⁾")


def to_superscript(text: str) -> str:
    """Convert a string of digits / signs into Unicode superscript."""
    return text.translate(_SUPERSCRIPT)


_DEGREE_NAMES = {
    0: "constant",
    1: "linear",
    2: "quadratic",
    3: "cubic",
    4: "quartic",
    5: "quintic",
}


def degree_name(degree: int) -> str:
    """Return the conventional name for a polynomial of the given degree."""
    return _DEGREE_NAMES.get(degree, f"degree-{degree} polynomial")


# ── Polynomial display ──────────────────────────────────────────────────

def _term(coeff: float, variable: str, power: int, max_decimals: int) -> str:
    magnitude = abs(coeff)
    if power == 0:
        return fmt_coeff(magnitude, max_decimals)
    monomial = variable if power == 1 else f"{variable}{to_superscript(str(power))}"
    if abs(magnitude - 1) < 1e-12:
        return monomial
    return f"{fmt_coeff(magnitude, max_decimals)}{monomial}"


def format_polynomial(coeffs: dict, variable: str, max_decimals: int = 10) -> str:
    """Render ``{2: 1, 0: -4}`` as ``x² - 4``; zero polynomial is ``0``."""
    parts = []
    for power in sorted(coeffs, reverse=True):
        coeff = coeffs[power]
        if coeff == 0:
            continue
        term = _term(coeff, variable, power, max_decimals)
        if not parts:
            parts.append(f"-{term}" if coeff < 0 else term)
        else:
            parts.append(f"- {term}" if coeff < 0 else f"+ {term}")
    return " ".join(parts) if parts else "0"


def format_solution_list(variable: str, values) -> str:
    """``x = 2, x = -2`` or ``no real solutions``."""
    values = list(values)
    if not values:
        return "no real solutions"
    return ", ".join(f"{variable} = {v}" for v in values)
