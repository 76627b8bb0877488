"""
mathcore — command line interface.

    mathcore solve "2x + 3 = 7"
    mathcore solve "a*x^2 + b = 0" --var x --bind a=2 --bind b=-8
    mathcore system "x + y = 10" "x - y = 2"
    mathcore parse "2sin(x)^2"
    mathcore validate "((x+1)"
    mathcore check "2x + 1 = 7" --bind x=3
"""

import argparse
import json
import logging
import sys
from typing import Optional

from mathcore.config import SolverConfig, load_config
from mathcore.errors import ConfigError, MathError
from mathcore.parser import MathParser
from mathcore.solver.engine import EquationSolver
from mathcore.solver.substitution import check_solution, parse_values
from mathcore.solver.system import solve_system

logger = logging.getLogger(__name__)

EXAMPLES = "Examples:  2x + 3 = 7  •  x^2 - 4 = 0  •  x + y = 10; x - y = 2"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mathcore",
        description="Parse expressions and solve equations step by step.",
    )
    parser.add_argument("--config", metavar="PATH", help="JSON configuration file")
    parser.add_argument("--json", action="store_true", help="print machine-readable JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("solve", help="solve one equation")
    p.add_argument("expression")
    p.add_argument("--var", action="append", dest="variables", metavar="NAME",
                   help="variable to solve for")
    p.add_argument("--bind", action="append", default=[], metavar="NAME=VALUE",
                   help="known value, e.g. a=2 (repeatable)")

    p = sub.add_parser("system", help="solve a system of linear equations")
    p.add_argument("equations", nargs="+",
                   help="equations as separate arguments or one string split by ';'")

    p = sub.add_parser("parse", help="parse an expression and show its structure")
    p.add_argument("expression")

    p = sub.add_parser("validate", help="run the validator only")
    p.add_argument("expression")

    p = sub.add_parser("check", help="substitute values into an equation")
    p.add_argument("expression")
    p.add_argument("--bind", action="append", required=True, metavar="NAME=VALUE",
                   help="value to substitute, e.g. x=3 (repeatable)")
    return parser


def _bindings(pairs: list[str]) -> dict:
    return parse_values(", ".join(pairs)) if pairs else {}


# ── Text rendering ──────────────────────────────────────────────────────

def _print_steps(steps, out) -> None:
    for i, step in enumerate(steps, 1):
        print(f"Step {i}: {step.description}", file=out)
        print(f"    {step.before}", file=out)
        print(f"  → {step.after}", file=out)
        if step.explanation:
            print(f"    {step.explanation}", file=out)


def _print_solve_result(result, out) -> None:
    _print_steps(result.steps, out)
    print("", file=out)
    print(f"Type: {result.equation_type.value}", file=out)
    if not result.solutions:
        print("No real solutions", file=out)
    for s in result.solutions:
        line = f"{s.variable} = {s.value}"
        if not s.is_exact and s.approximation is not None:
            line += "  (approx.)"
        if s.multiplicity:
            line += f"  (multiplicity {s.multiplicity})"
        if s.conditions:
            line += f"  [{'; '.join(s.conditions)}]"
        print(line, file=out)
    for r in result.domain_restrictions:
        print(f"Domain: {r.restriction}  ({r.description})", file=out)


def _print_parse_result(result, out) -> None:
    print(f"Normalized: {result.normalized}", file=out)
    print(f"Variables:  {', '.join(result.variables) or '-'}", file=out)
    print(f"Functions:  {', '.join(result.functions) or '-'}", file=out)
    print(f"Complexity: {result.complexity}", file=out)
    for w in result.validation.warnings:
        print(f"Warning: {w}", file=out)


def _print_validation(result, out) -> None:
    print("valid" if result.is_valid else "invalid", file=out)
    for e in result.errors:
        print(f"Error: {e}", file=out)
    for w in result.warnings:
        print(f"Warning: {w}", file=out)
    for s in result.suggestions:
        print(f"Hint: {s}", file=out)


def _print_check(result, out) -> None:
    _print_steps(result.steps, out)
    print("", file=out)
    print("holds" if result.holds else "does not hold", file=out)


def friendly_error(expression: str, exc: MathError) -> str:
    lines = [f'Could not process "{expression}": {exc}']
    lines.extend(f"  Hint: {s}" for s in exc.suggestions)
    lines.append(EXAMPLES)
    return "\n".join(lines)


# ── Entry point ─────────────────────────────────────────────────────────

def run(args: argparse.Namespace, config: SolverConfig, out) -> int:
    if args.command == "solve":
        result = EquationSolver(config).solve(args.expression, args.variables,
                                              _bindings(args.bind))
        render = _print_solve_result
    elif args.command == "system":
        equations = args.equations[0] if len(args.equations) == 1 else args.equations
        result = solve_system(equations, config)
        render = _print_solve_result
    elif args.command == "parse":
        result = MathParser(config).parse(args.expression)
        render = _print_parse_result
    elif args.command == "validate":
        result = MathParser(config).validate(args.expression)
        render = _print_validation
    else:
        result = check_solution(args.expression, _bindings(args.bind), config)
        render = _print_check

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), file=out)
    else:
        render(result, out)
    if args.command == "validate" and not result.is_valid:
        return 1
    return 0


def main(argv: Optional[list] = None, out=None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    expression = getattr(args, "expression", None) or "; ".join(getattr(args, "equations", []))
    try:
        return run(args, config, out)
    except MathError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(friendly_error(expression, e), file=sys.stderr)
        return 1
