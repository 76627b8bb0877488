"""
mathcore — solver configuration.

Options can be given in snake_case or in the camelCase spelling used by
JSON and JavaScript callers (``maxVariables``, ``showSteps``, ...).
A JSON file may hold either a bare mapping or ``{"config": {...}}``.
"""

import json
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from mathcore.errors import ConfigError

DEFAULT_PRECISION = 15
MAX_EXPRESSION_LENGTH = 10000
MAX_VARIABLES = 100
MAX_COMPLEXITY = 1000

_ALIASES = {
    "autoSimplify": "auto_simplify",
    "showSteps": "show_steps",
    "maxExpressionLength": "max_expression_length",
    "maxVariables": "max_variables",
    "maxComplexity": "max_complexity",
    "maxVariableNameLength": "max_variable_name_length",
    "implicitMultiplication": "implicit_multiplication",
    "searchRadius": "search_radius",
    "searchSamples": "search_samples",
    "maxIterations": "max_iterations",
}

# (minimum, maximum) for integer options
_INT_RANGES = {
    "precision": (1, 100),
    "max_expression_length": (1, 100000),
    "max_variables": (1, 1000),
    "max_complexity": (1, 100000),
    "max_variable_name_length": (1, 1000),
    "search_samples": (3, 1000000),
    "max_iterations": (1, 100000),
}

_BOOL_OPTIONS = ("exact", "auto_simplify", "show_steps", "implicit_multiplication")
_POSITIVE_FLOATS = ("search_radius", "tolerance")


@dataclass(frozen=True)
class SolverConfig:
    precision: int = DEFAULT_PRECISION
    exact: bool = True
    auto_simplify: bool = True
    show_steps: bool = True
    max_expression_length: int = MAX_EXPRESSION_LENGTH
    max_variables: int = MAX_VARIABLES
    max_complexity: int = MAX_COMPLEXITY
    max_variable_name_length: int = 20
    implicit_multiplication: bool = True
    # numeric root finder
    search_radius: float = 100.0
    search_samples: int = 2001
    max_iterations: int = 100
    tolerance: float = 1e-10

    def __post_init__(self):
        for name, (lo, hi) in _INT_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not lo <= value <= hi:
                raise ConfigError(f"{name} must be an integer between {lo} and {hi}")
        for name in _BOOL_OPTIONS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean value")
        for name in _POSITIVE_FLOATS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{name} must be a positive number")

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping] = None) -> "SolverConfig":
        """Build a config from user options, rejecting unknown keys."""
        return cls().with_overrides(**_canonical(mapping or {}))

    def with_overrides(self, **changes) -> "SolverConfig":
        """Return a scoped copy with *changes* applied."""
        changes = _canonical(changes)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _canonical(mapping: Mapping) -> dict:
    known = {f.name for f in fields(SolverConfig)}
    out = {}
    for key, value in mapping.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise ConfigError(f"Unknown configuration option: {key}")
        # Whole-number floats from JSON are accepted for integer options.
        if name in _INT_RANGES and isinstance(value, float) and value.is_integer():
            value = int(value)
        out[name] = value
    return out


def load_config(path: Optional[str] = None) -> SolverConfig:
    """Read a JSON config file; a missing file yields the defaults."""
    if not path or not os.path.exists(path):
        return SolverConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Failed to load configuration from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")
    if isinstance(data.get("config"), dict):
        data = data["config"]
    return SolverConfig.from_mapping(data)


DEFAULT_CONFIG = SolverConfig()
