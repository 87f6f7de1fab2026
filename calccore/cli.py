from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from . import api, config
from .evaluator import AngleMode
from .logging_config import get_logger, setup_logging
from .numerical import METHODS
from .parser import format_number
from .types import (
    EvalResult,
    InequalityResult,
    PolynomialResult,
    SolveResult,
    SystemResult,
    ValidationError,
)

logger = get_logger("cli")

SYSTEM_VARIABLES = ("x", "y", "z", "w")
ANGLE_MODES = [mode.value for mode in AngleMode]


def _safe_print(text: str) -> None:
    try:
        print(text)
    except UnicodeEncodeError:
        # Console without Unicode support (e.g. a legacy Windows code page)
        encoding = sys.stdout.encoding or "ascii"
        print(text.encode(encoding, errors="replace").decode(encoding))


def parse_number_list(text: str) -> list[float]:
    """Parse ``"1, -3, 2"`` into floats."""
    parts = [part.strip() for part in text.split(",")]
    if not parts or any(not part for part in parts):
        raise ValidationError(f"Expected comma-separated numbers, got {text!r}")
    try:
        return [float(part) for part in parts]
    except ValueError:
        raise ValidationError(f"Expected comma-separated numbers, got {text!r}") from None


def parse_matrix(text: str) -> list[list[float]]:
    """Parse ``"1,1;1,-1"`` into rows of floats."""
    return [parse_number_list(row) for row in text.split(";")]


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print(f"Running calccore {config.VERSION} health check...")
    print("-" * 50)

    for module_name in ("numpy", "sympy"):
        try:
            module = __import__(module_name)
            print(f"[OK] {module_name} {module.__version__} imported successfully")
            checks_passed += 1
        except ImportError as e:
            print(f"[FAIL] {module_name} import failed: {e}")
            checks_failed += 1

    checks = [
        ("Expression evaluation", lambda: api.evaluate("2+3×4").value == 14.0),
        ("Equation solving", lambda: abs(api.solve_equation("x^2-2", guess=1).root - 2 ** 0.5) < 1e-9),
        ("Polynomial solving", lambda: api.solve_polynomial([1, -3, 2]).real_roots == [1.0, 2.0]),
        ("Linear systems", lambda: api.solve_system([[1, 1], [1, -1]], [5, 1]).values == [3.0, 2.0]),
        ("Inequalities", lambda: api.solve_inequality([1, 0, -4], "<").notation == "(-2, 2)"),
    ]
    for name, check in checks:
        try:
            passed = check()
        except Exception as e:
            passed = False
            logger.debug("Health check %s raised: %s", name, e, exc_info=True)
        if passed:
            print(f"[OK] {name} works")
            checks_passed += 1
        else:
            print(f"[FAIL] {name} check failed")
            checks_failed += 1

    try:
        import matplotlib

        print(f"[OK] Matplotlib {matplotlib.__version__} available")
        checks_passed += 1
    except ImportError:
        print("[WARN] Matplotlib not available (PNG plots disabled, ASCII plots still work)")
        print("  To install: pip install matplotlib")

    print("-" * 50)
    print(f"Results: {checks_passed} passed, {checks_failed} failed")

    if checks_failed > 0:
        print("\n[WARN] Some health checks failed. Core functionality may be impaired.")
        return 1

    print("\n[OK] All health checks passed!")
    return 0


def print_result_pretty(result: Any, output_format: str = "human") -> None:
    """Print a result object in the specified format.

    Args:
        result: Any result dataclass from ``calccore.api``
        output_format: "json" for JSON output, "human" for human-readable
    """
    if output_format == "json":
        _safe_print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return
    if not result.ok:
        _safe_print(f"Error: {result.error}")
        return

    if isinstance(result, EvalResult):
        _safe_print(result.formatted or "")
    elif isinstance(result, SolveResult):
        _safe_print(f"Root: {format_number(result.root)}")
        _safe_print(
            f"  {result.method}, {result.iterations} iterations, "
            f"residual {format_number(result.residual, 3)}"
        )
        if not result.converged:
            _safe_print("  Warning: did not converge within the iteration limit")
    elif isinstance(result, PolynomialResult):
        if not result.real_roots and not result.complex_roots:
            _safe_print("No roots")
        if result.real_roots:
            _safe_print("Real roots: " + ", ".join(format_number(r) for r in result.real_roots))
        if result.complex_roots:
            _safe_print("Complex roots: " + ", ".join(result.complex_roots))
    elif isinstance(result, InequalityResult):
        _safe_print(f"Solution: {result.notation}")
    elif isinstance(result, SystemResult):
        if result.kind == "unique":
            for name, value in zip(SYSTEM_VARIABLES, result.values):
                _safe_print(f"{name} = {format_number(value)}")
        else:
            _safe_print(result.description or "System has no solution")
    else:
        _safe_print(str(result))


def print_help_text() -> None:
    """Print help text for REPL commands."""
    help_text = f"""calccore version {config.VERSION}

Expressions:
  2+3×4, 2*(3+4), 5!, 3√8, 10 mod 3, 5C2, 5P2, sin(30), ln(e), 2π
  Ans / PreAns recall the last two answers.

Equations (solved numerically for x):
  x^2 - 2 = 0, cos(x) = x

Commands:
  mode degrees|radians|gradians   change the angle mode
  help                            show this text
  quit, exit                      leave
"""
    _safe_print(help_text)


def repl_loop(output_format: str = "human", angle_mode: str | None = None) -> None:
    """Interactive REPL keeping ``Ans`` and ``PreAns`` between lines."""
    mode = angle_mode or config.DEFAULT_ANGLE_MODE
    last_answer = 0.0
    previous_answer = 0.0

    print("calccore - type 'help' for commands, 'quit' to exit.")
    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue

        command = raw.lower()
        if command in ("quit", "exit"):
            break
        if command == "help":
            print_help_text()
            continue
        if command.startswith("mode"):
            requested = command[4:].strip()
            if requested in ANGLE_MODES:
                mode = requested
                print(f"Angle mode: {mode}")
            else:
                print(f"Current angle mode: {mode} (choose from {', '.join(ANGLE_MODES)})")
            continue

        if "=" in raw:
            print_result_pretty(api.solve_equation(raw, angle_mode=mode), output_format)
            continue

        result = api.evaluate(
            raw, angle_mode=mode, last_answer=last_answer, previous_answer=previous_answer
        )
        if result.ok:
            previous_answer, last_answer = last_answer, result.value
        print_result_pretty(result, output_format)


def _run_action(args: argparse.Namespace) -> Any | None:
    """Dispatch the one-shot action flags; None when no action was requested."""
    if args.eval_expr is not None:
        return api.evaluate(args.eval_expr, angle_mode=args.angle)
    if args.solve is not None:
        return api.solve_equation(
            args.solve,
            variable=args.var,
            guess=args.guess,
            method=args.method,
            lower=args.lower,
            upper=args.upper,
            angle_mode=args.angle,
        )
    try:
        if args.poly is not None:
            return api.solve_polynomial(parse_number_list(args.poly))
        if args.inequality is not None:
            return api.solve_inequality(parse_number_list(args.inequality), args.op)
        if args.system is not None:
            if args.constants is None:
                raise ValidationError("--system requires --constants")
            return api.solve_system(parse_matrix(args.system), parse_number_list(args.constants))
    except ValidationError as e:
        return EvalResult(ok=False, error=e.message, error_code=e.code)
    return None


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the calccore CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="calccore")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument("--solve", type=str, help="Solve an equation numerically, e.g. 'x^2=2'")
    parser.add_argument("--var", type=str, default="x", help="Variable to solve for (default: x)")
    parser.add_argument("--guess", type=float, default=0.0, help="Initial guess (default: 0)")
    parser.add_argument(
        "--method", type=str, choices=list(METHODS), default="auto", help="Root-finding method"
    )
    parser.add_argument("--lower", type=float, help="Bracket lower end (bisection, brent)")
    parser.add_argument("--upper", type=float, help="Bracket upper end (bisection, brent)")
    parser.add_argument(
        "--poly", type=str, help="Solve a polynomial, coefficients highest power first: '1,-3,2'"
    )
    parser.add_argument(
        "--inequality", type=str, help="Solve a polynomial inequality p(x) <op> 0: '1,0,-4'"
    )
    parser.add_argument(
        "--op", type=str, default="<", help="Inequality operator: <, <=, >, >= (default: <)"
    )
    parser.add_argument("--system", type=str, help="Coefficient matrix, rows separated by ';'")
    parser.add_argument("--constants", type=str, help="Right-hand sides for --system")
    parser.add_argument("--angle", type=str, choices=ANGLE_MODES, help="Angle mode")
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "-t", "--timeout", type=float, help="Override solver timeout (seconds)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    # Apply CLI configuration overrides
    if args.precision and args.precision > 0:
        config.OUTPUT_PRECISION = int(args.precision)
    if args.timeout and args.timeout > 0:
        config.SOLVER_TIMEOUT = float(args.timeout)
    if args.angle:
        config.DEFAULT_ANGLE_MODE = args.angle

    if args.version:
        print(config.VERSION)
        return 0
    if args.health_check:
        return _health_check()

    result = _run_action(args)
    if result is None:
        repl_loop(output_format=args.format, angle_mode=args.angle)
        return 0
    print_result_pretty(result, output_format=args.format)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main_entry())
