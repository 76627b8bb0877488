import io
import json

import pytest

from mathcore import cli
from mathcore.errors import ParseError


def _run(*argv: str) -> tuple:
    out = io.StringIO()
    code = cli.main(list(argv), out=out)
    return code, out.getvalue()


def test_solve_prints_steps_and_answer() -> None:
    code, text = _run("solve", "2x + 3 = 7")
    assert code == 0
    assert "Step 1: Parsed mathematical expression" in text
    assert "Type: linear" in text
    assert text.rstrip().endswith("x = 2")


def test_solve_with_variable_and_bindings() -> None:
    code, text = _run("solve", "a*x^2 + b = 0", "--var", "x", "--bind", "a=2", "--bind", "b=-8")
    assert code == 0
    assert "x = 2" in text and "x = -2" in text


def test_solve_json_output() -> None:
    code, text = _run("--json", "solve", "x^2 - 4 = 0")
    assert code == 0
    data = json.loads(text)
    assert sorted(s["value"] for s in data["solutions"]) == ["-2", "2"]
    assert data["equation_type"] == "quadratic"


def test_solve_no_real_solutions() -> None:
    code, text = _run("solve", "x^2 + 1 = 0")
    assert code == 0
    assert "No real solutions" in text


def test_system_accepts_separate_arguments_or_one_string() -> None:
    code_a, text_a = _run("system", "x + y = 10", "x - y = 2")
    code_b, text_b = _run("system", "x + y = 10; x - y = 2")
    assert code_a == code_b == 0
    assert "x = 6" in text_a and "y = 4" in text_a
    assert text_a == text_b


def test_parse_command() -> None:
    code, text = _run("parse", "2sin(x)^2")
    assert code == 0
    assert "Variables:  x" in text
    assert "Functions:  sin" in text


def test_validate_command_exit_code() -> None:
    assert _run("validate", "x + 1")[0] == 0
    code, text = _run("validate", "((x+1)")
    assert code == 1
    assert text.startswith("invalid")


def test_check_command() -> None:
    code, text = _run("check", "2x + 1 = 7", "--bind", "x=3")
    assert code == 0
    assert text.rstrip().endswith("holds")


def test_math_error_goes_to_stderr(capsys) -> None:
    code, text = _run("solve", "2x +")
    assert code == 1
    assert text == ""
    err = capsys.readouterr().err
    assert 'Could not process "2x +"' in err
    assert "Examples:" in err


def test_bad_config_file(tmp_path, capsys) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"precision": 0}', encoding="utf-8")
    code, _ = _run("--config", str(path), "solve", "x = 1")
    assert code == 2
    assert "Invalid configuration" in capsys.readouterr().err


def test_config_file_is_applied(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"showSteps": False}), encoding="utf-8")
    code, text = _run("--config", str(path), "solve", "2x = 4")
    assert code == 0
    assert "Step 2" not in text
    assert "Step 1: Final answer" in text


def test_friendly_error_lists_hints() -> None:
    message = cli.friendly_error("x = ", ParseError("Missing operand", suggestions=("Add a value",)))
    assert message.splitlines() == [
        'Could not process "x = ": Missing operand',
        "  Hint: Add a value",
        cli.EXAMPLES,
    ]


def test_subcommand_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
