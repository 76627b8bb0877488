"""Unicode clean-up applied to raw input before lexing.

The rewrite also returns an offset table so token positions can be
reported against the text the user typed.
"""

import re

# Typeset symbols users paste from documents or a symbol pad.
_REPLACEMENTS = (
    ("×", "*"),
    ("⋅", "*"),
    ("·", "*"),
    ("÷", "/"),
    ("−", "-"),
    ("²", "^2"),
    ("³", "^3"),
    ("≤", "<="),
    ("≥", ">="),
    ("≠", "!="),
)
_SYMBOLS = tuple((re.compile(re.escape(symbol)), replacement)
                 for symbol, replacement in _REPLACEMENTS)

# √x and √2 take their operand as an argument; √(…) just becomes sqrt(…).
_ROOT_OPERAND = re.compile(r"√\s*(\d+(?:\.\d+)?|[A-Za-z_]\w*)")
_ROOT = re.compile("√")
# π glued to an identifier must not merge into it ("πr" is pi*r, not "pir").
_PI = re.compile("π")
_WHITESPACE = re.compile(r"\s+")


def _spell_pi(match: re.Match) -> str:
    text = match.string
    end = match.end()
    start = match.start()
    before = " " if start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_") else ""
    after = " " if end < len(text) and (text[end].isalnum() or text[end] == "_") else ""
    return f"{before}pi{after}"


def _sub(pattern: re.Pattern, repl, text: str, offsets: list) -> tuple:
    """``pattern.sub`` that carries each output character's raw offset along.

    ``offsets`` has one entry per character of *text* plus one for its end.
    Replacement characters all map to the start of the text they replace.
    """
    out, mapped, last = [], [], 0
    for match in pattern.finditer(text):
        start, end = match.span()
        out.append(text[last:start])
        mapped.extend(offsets[last:start])
        replacement = repl(match) if callable(repl) else match.expand(repl)
        out.append(replacement)
        mapped.extend([offsets[start]] * len(replacement))
        last = end
    out.append(text[last:])
    mapped.extend(offsets[last:])
    return "".join(out), mapped


def normalize_with_offsets(text: str) -> tuple[str, list]:
    """Normalize *text* and return ``(normalized, offsets)``.

    ``offsets[i]`` is the position in *text* of normalized character ``i``;
    the final entry maps the end of the normalized string.
    """
    offsets = list(range(len(text) + 1))
    for pattern, replacement in _SYMBOLS:
        text, offsets = _sub(pattern, replacement, text, offsets)
    text, offsets = _sub(_ROOT_OPERAND, r"sqrt(\1)", text, offsets)
    text, offsets = _sub(_ROOT, "sqrt", text, offsets)
    text, offsets = _sub(_PI, _spell_pi, text, offsets)
    text, offsets = _sub(_WHITESPACE, " ", text, offsets)

    start = len(text) - len(text.lstrip())
    end = len(text.rstrip())
    if start >= end:
        return "", offsets[-1:]
    return text[start:end], offsets[start:end] + [offsets[end]]


def normalize_expression(text: str) -> str:
    """Return *text* with typeset symbols replaced and whitespace collapsed.

    >>> normalize_expression("2×x²  ≤ 8")
    '2*x^2 <= 8'
    """
    return normalize_with_offsets(text)[0]
