import json

import pytest

from mathcore.config import DEFAULT_CONFIG, SolverConfig, load_config
from mathcore.errors import ConfigError


def test_defaults() -> None:
    config = SolverConfig()
    assert config.precision == 15
    assert config.exact is True
    assert config.show_steps is True
    assert config.max_expression_length == 10000
    assert config.max_variables == 100
    assert config.max_complexity == 1000
    assert config == DEFAULT_CONFIG


def test_from_mapping_accepts_camel_case() -> None:
    config = SolverConfig.from_mapping({"showSteps": False, "maxVariables": 5, "precision": 4})
    assert config.show_steps is False
    assert config.max_variables == 5
    assert config.precision == 4


def test_whole_number_floats_count_as_integers() -> None:
    assert SolverConfig.from_mapping({"precision": 6.0}).precision == 6


@pytest.mark.parametrize(
    "options,message",
    [
        ({"colour": "red"}, "Unknown configuration option"),
        ({"precision": 0}, "precision must be an integer"),
        ({"precision": 2.5}, "precision must be an integer"),
        ({"precision": True}, "precision must be an integer"),
        ({"exact": "yes"}, "exact must be a boolean"),
        ({"searchRadius": -1}, "search_radius must be a positive number"),
    ],
)
def test_invalid_options(options: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        SolverConfig.from_mapping(options)


def test_config_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        SolverConfig(max_variables=0)


def test_with_overrides_returns_scoped_copy() -> None:
    base = SolverConfig()
    scoped = base.with_overrides(exact=False, maxIterations=10)
    assert scoped.exact is False
    assert scoped.max_iterations == 10
    assert base.exact is True


def test_to_dict_round_trips() -> None:
    config = SolverConfig(precision=7, show_steps=False)
    assert SolverConfig.from_mapping(config.to_dict()) == config


def test_load_config_missing_file_gives_defaults(tmp_path) -> None:
    assert load_config(None) == SolverConfig()
    assert load_config(str(tmp_path / "missing.json")) == SolverConfig()


def test_load_config_bare_and_wrapped(tmp_path) -> None:
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps({"precision": 5}), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"config": {"showSteps": False}}), encoding="utf-8")

    assert load_config(str(bare)).precision == 5
    assert load_config(str(wrapped)).show_steps is False


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_load_config_rejects_bad_files(tmp_path, content: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))
