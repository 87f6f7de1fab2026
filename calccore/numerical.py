"""Iterative root finding for arbitrary scalar functions.

Every method returns a ``NumericalSolution``; running out of iterations is
reported through ``converged=False`` rather than an exception. Structural
failures (zero derivative, parallel secant, missing bracket) raise
``SolverError`` or ``ValidationError``, and exceeding the wall-clock budget
raises ``SolverTimeoutError``.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import config
from .ast_nodes import Node
from .evaluator import EvaluationContext, Evaluator
from .logging_config import get_logger
from .parser import parse
from .types import (
    CalculatorError,
    SolverError,
    SolverTimeoutError,
    ValidationError,
)

logger = get_logger("numerical")

Function = Callable[[float], float]

NEWTON_RAPHSON = "Newton-Raphson"
BISECTION = "Bisection"
SECANT = "Secant"
BRENT = "Brent"
HALLEY = "Halley"
FIXED_POINT = "Fixed Point"

ZERO_THRESHOLD = 1e-15

# Names accepted by solve_expression's ``method`` argument
METHODS = ("auto", "newton", "bisection", "secant", "brent", "halley")


@dataclass(frozen=True)
class NumericalSolverConfig:
    """Iteration budget and tolerances for one solve call."""

    max_iterations: int = field(default_factory=lambda: config.MAX_ITERATIONS)
    tolerance: float = field(default_factory=lambda: config.SOLVER_TOLERANCE)
    derivative_step: float = field(default_factory=lambda: config.DERIVATIVE_STEP)
    timeout: float = field(default_factory=lambda: config.SOLVER_TIMEOUT)

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValidationError("max_iterations must be at least 1")
        if not self.tolerance > 0:
            raise ValidationError("tolerance must be positive")
        if not self.derivative_step > 0:
            raise ValidationError("derivative_step must be positive")
        if not self.timeout > 0:
            raise ValidationError("timeout must be positive")


@dataclass(frozen=True)
class NumericalSolution:
    root: float
    iterations: int
    residual: float
    converged: bool
    method: str


class _Deadline:
    """Wall-clock budget checked once per iteration."""

    def __init__(self, seconds: float, method: str):
        self.method = method
        self.seconds = seconds
        self.expires = time.monotonic() + seconds

    def check(self) -> None:
        if time.monotonic() > self.expires:
            logger.warning("%s exceeded the %.3gs time limit", self.method, self.seconds)
            raise SolverTimeoutError(f"{self.method}: timed out after {self.seconds:g}s")


def _resolve(solver_config: NumericalSolverConfig | None) -> NumericalSolverConfig:
    return solver_config if solver_config is not None else NumericalSolverConfig()


def _not_converged(root: float, residual: float, solver_config: NumericalSolverConfig, method: str) -> NumericalSolution:
    logger.debug(
        "%s did not converge in %d iterations (root=%r, residual=%r)",
        method,
        solver_config.max_iterations,
        root,
        residual,
    )
    return NumericalSolution(root, solver_config.max_iterations, residual, False, method)


def numerical_derivative(function: Function, x: float, h: float = 1e-8) -> float:
    """Central difference (f(x+h) - f(x-h)) / 2h."""
    return (function(x + h) - function(x - h)) / (2 * h)


def numerical_second_derivative(function: Function, x: float, h: float = 1e-5) -> float:
    return (function(x + h) - 2 * function(x) + function(x - h)) / (h * h)


def newton_raphson(
    function: Function,
    initial_guess: float,
    derivative: Optional[Function] = None,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Newton-Raphson iteration x ← x - f(x)/f'(x).

    Args:
        function: Scalar function whose root is sought
        initial_guess: Starting point
        derivative: Exact derivative; a central difference is used if omitted
        solver_config: Iteration budget and tolerances

    Returns:
        NumericalSolution (converged when |f(x)| or the step is below tolerance)

    Raises:
        SolverError: If f is non-finite, the derivative vanishes or the step is non-finite
        SolverTimeoutError: If the time budget is exceeded
    """
    cfg = _resolve(solver_config)
    deadline = _Deadline(cfg.timeout, NEWTON_RAPHSON)
    fprime = derivative or (lambda v: numerical_derivative(function, v, cfg.derivative_step))
    x = initial_guess

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        fx = function(x)
        if not math.isfinite(fx):
            raise SolverError("Newton-Raphson: function returned non-finite value")
        if abs(fx) < cfg.tolerance:
            return NumericalSolution(x, iteration, abs(fx), True, NEWTON_RAPHSON)

        fpx = fprime(x)
        if not abs(fpx) > ZERO_THRESHOLD:
            raise SolverError("Newton-Raphson: derivative is zero")
        dx = fx / fpx
        if not math.isfinite(dx):
            raise SolverError("Newton-Raphson: step is non-finite")
        x -= dx
        if abs(dx) < cfg.tolerance:
            return NumericalSolution(x, iteration, abs(function(x)), True, NEWTON_RAPHSON)

    return _not_converged(x, abs(function(x)), cfg, NEWTON_RAPHSON)


def _require_bracket(fa: float, fb: float, method: str) -> None:
    if not fa * fb < 0:
        raise ValidationError(
            f"{method} requires f(lower) and f(upper) to have opposite signs"
        )


def bisection(
    function: Function,
    lower: float,
    upper: float,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Halve a sign-changing bracket until |f(mid)| or half its width is below tolerance.

    Raises:
        ValidationError: If f(lower) and f(upper) do not have opposite signs
    """
    cfg = _resolve(solver_config)
    a, b = lower, upper
    fa, fb = function(a), function(b)
    _require_bracket(fa, fb, BISECTION)
    deadline = _Deadline(cfg.timeout, BISECTION)
    if a > b:
        a, b, fa, fb = b, a, fb, fa

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        mid = (a + b) / 2
        fmid = function(mid)
        if not math.isfinite(fmid):
            raise SolverError("Bisection: function returned non-finite value")
        if abs(fmid) < cfg.tolerance or (b - a) / 2 < cfg.tolerance:
            return NumericalSolution(mid, iteration, abs(fmid), True, BISECTION)
        if fa * fmid < 0:
            b, fb = mid, fmid
        else:
            a, fa = mid, fmid

    mid = (a + b) / 2
    return _not_converged(mid, abs(function(mid)), cfg, BISECTION)


def secant(
    function: Function,
    x0: float,
    x1: float,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Secant iteration from two seeds; no derivative needed.

    Raises:
        SolverError: On a near-zero denominator (parallel secant) or non-finite step
    """
    cfg = _resolve(solver_config)
    deadline = _Deadline(cfg.timeout, SECANT)
    x_prev, x_curr = x0, x1
    f_prev, f_curr = function(x_prev), function(x_curr)

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        if abs(f_curr) < cfg.tolerance:
            return NumericalSolution(x_curr, iteration, abs(f_curr), True, SECANT)

        denominator = f_curr - f_prev
        if not abs(denominator) > ZERO_THRESHOLD:
            raise SolverError("Secant: division by zero (parallel secant line)")
        x_next = x_curr - f_curr * (x_curr - x_prev) / denominator
        if not math.isfinite(x_next):
            raise SolverError("Secant: step is non-finite")
        if abs(x_next - x_curr) < cfg.tolerance:
            return NumericalSolution(x_next, iteration, abs(function(x_next)), True, SECANT)

        x_prev, f_prev = x_curr, f_curr
        x_curr, f_curr = x_next, function(x_next)

    return _not_converged(x_curr, abs(f_curr), cfg, SECANT)


def brent(
    function: Function,
    lower: float,
    upper: float,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Brent's method: inverse quadratic interpolation guarded by bisection.

    ``b`` is the best estimate, ``[b, c]`` always brackets the root and ``a``
    is the previous iterate. Interpolation is accepted only when it lands
    inside the bracket and the step shrinks faster than bisection would.

    Raises:
        ValidationError: If f(lower) and f(upper) do not have opposite signs
    """
    cfg = _resolve(solver_config)
    a, b = lower, upper
    fa, fb = function(a), function(b)
    _require_bracket(fa, fb, BRENT)
    deadline = _Deadline(cfg.timeout, BRENT)
    c, fc = b, fb
    d = e = b - a

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        if (fb > 0 and fc > 0) or (fb < 0 and fc < 0):
            c, fc = a, fa
            d = e = b - a
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb

        if abs(fb) < cfg.tolerance:
            return NumericalSolution(b, iteration, abs(fb), True, BRENT)
        tol1 = 2.0 * cfg.tolerance * max(abs(b), 1.0)
        midpoint = 0.5 * (c - b)
        if abs(midpoint) <= tol1 or fb == 0.0:
            return NumericalSolution(b, iteration, abs(fb), True, BRENT)

        if abs(e) >= tol1 and abs(fa) > abs(fb):
            s = fb / fa
            if a == c:
                p = 2.0 * midpoint * s
                q = 1.0 - s
            else:
                q = fa / fc
                r = fb / fc
                p = s * (2.0 * midpoint * q * (q - r) - (b - a) * (r - 1.0))
                q = (q - 1.0) * (r - 1.0) * (s - 1.0)
            if p > 0:
                q = -q
            p = abs(p)
            min1 = 3.0 * midpoint * q - abs(tol1 * q)
            min2 = abs(e * q)
            if 2.0 * p < min(min1, min2):
                e, d = d, p / q
            else:
                d = e = midpoint
        else:
            d = e = midpoint

        a, fa = b, fb
        b += d if abs(d) > tol1 else math.copysign(tol1, midpoint)
        fb = function(b)
        if not math.isfinite(fb):
            raise SolverError("Brent: function returned non-finite value")

    return _not_converged(b, abs(fb), cfg, BRENT)


def halley(
    function: Function,
    initial_guess: float,
    derivative: Optional[Function] = None,
    second_derivative: Optional[Function] = None,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Halley's cubically convergent update.

    Uses x ← x - f / (f' - f·f''/(2f')) and falls back to a Newton step when
    that denominator is near zero or not finite. Missing derivatives are approximated by
    central differences (step ``derivative_step`` and its square root).
    """
    cfg = _resolve(solver_config)
    deadline = _Deadline(cfg.timeout, HALLEY)
    fprime = derivative or (lambda v: numerical_derivative(function, v, cfg.derivative_step))
    second_step = math.sqrt(cfg.derivative_step)
    fsecond = second_derivative or (
        lambda v: numerical_second_derivative(function, v, second_step)
    )
    x = initial_guess

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        fx = function(x)
        if not math.isfinite(fx):
            raise SolverError("Halley: function returned non-finite value")
        if abs(fx) < cfg.tolerance:
            return NumericalSolution(x, iteration, abs(fx), True, HALLEY)

        fpx = fprime(x)
        if not abs(fpx) > ZERO_THRESHOLD:
            raise SolverError("Halley: derivative is zero")
        denominator = fpx - (fx * fsecond(x)) / (2 * fpx)
        # a near-zero or non-finite denominator falls back to a Newton step
        if math.isfinite(denominator) and abs(denominator) > ZERO_THRESHOLD:
            dx = fx / denominator
        else:
            dx = fx / fpx
        x -= dx
        if abs(dx) < cfg.tolerance:
            return NumericalSolution(x, iteration, abs(function(x)), True, HALLEY)

    return _not_converged(x, abs(function(x)), cfg, HALLEY)


def fixed_point(
    g: Function,
    initial_guess: float,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Iterate x ← g(x) until successive iterates differ by less than the tolerance.

    The reported residual is |g(x) - x|.

    Raises:
        SolverError: If an iterate is non-finite
    """
    cfg = _resolve(solver_config)
    deadline = _Deadline(cfg.timeout, FIXED_POINT)
    x = initial_guess

    for iteration in range(1, cfg.max_iterations + 1):
        deadline.check()
        x_next = g(x)
        if not math.isfinite(x_next):
            raise SolverError("Fixed point: iteration produced non-finite value")
        step = abs(x_next - x)
        if step < cfg.tolerance:
            return NumericalSolution(x_next, iteration, step, True, FIXED_POINT)
        x = x_next

    return _not_converged(x, abs(g(x) - x), cfg, FIXED_POINT)


def find_bracket(
    function: Function,
    guess: float,
    max_expansions: int | None = None,
    growth_factor: float | None = None,
) -> tuple[float, float] | None:
    """Grow an interval around ``guess`` until f changes sign.

    Starts at guess ± 10% (± 0.1 for a zero guess) and repeatedly pushes out
    the end with the smaller |f| by ``growth_factor`` times the width.

    Returns:
        ``(lower, upper)`` with a sign change, or None if none was found
    """
    if max_expansions is None:
        max_expansions = config.MAX_BRACKET_EXPANSIONS
    if growth_factor is None:
        growth_factor = config.BRACKET_GROWTH_FACTOR

    delta = 0.1 if guess == 0 else abs(guess) * 0.1
    a, b = guess - delta, guess + delta
    fa, fb = function(a), function(b)
    if fa * fb < 0:
        return (min(a, b), max(a, b))

    for _ in range(max_expansions):
        if abs(fa) < abs(fb):
            a -= growth_factor * (b - a)
            fa = function(a)
        else:
            b += growth_factor * (b - a)
            fb = function(b)
        if fa * fb < 0:
            return (min(a, b), max(a, b))
        if not (math.isfinite(fa) and math.isfinite(fb)):
            return None
    return None


def solve(
    function: Function,
    initial_guess: float,
    derivative: Optional[Function] = None,
    solver_config: NumericalSolverConfig | None = None,
) -> NumericalSolution:
    """Find a root near ``initial_guess`` with automatic method selection.

    Tries Brent on a bracket found around the guess, then Newton-Raphson,
    then the secant method seeded with guess and guess + 0.1(|guess| + 1).
    A method is abandoned only when it raises; a non-converged result is
    returned as is. Timeouts are not retried.

    Raises:
        SolverError: If the final secant attempt fails as well
        SolverTimeoutError: If any attempt exceeds the time budget
    """
    cfg = _resolve(solver_config)

    bracket = find_bracket(function, initial_guess)
    if bracket is not None:
        try:
            return brent(function, bracket[0], bracket[1], cfg)
        except SolverTimeoutError:
            raise
        except (SolverError, ValidationError) as e:
            logger.debug("Brent failed on bracket %s: %s; trying Newton-Raphson", bracket, e)

    try:
        return newton_raphson(function, initial_guess, derivative, cfg)
    except SolverTimeoutError:
        raise
    except SolverError as e:
        logger.debug("Newton-Raphson failed from %r: %s; trying secant", initial_guess, e)

    x1 = initial_guess + 0.1 * (abs(initial_guess) + 1)
    return secant(function, initial_guess, x1, cfg)


def expression_function(
    expression: Node | str,
    variable: str = "x",
    context: EvaluationContext | None = None,
) -> Function:
    """Turn an expression into f(value) with ``variable`` bound to value.

    Each call evaluates against its own context copy; evaluation errors
    (domain, division by zero, ...) yield NaN so solvers treat them as
    non-finite values.
    """
    node = parse(expression) if isinstance(expression, str) else expression
    base = context if context is not None else EvaluationContext()

    def evaluate_at(value: float) -> float:
        try:
            return Evaluator(base.with_variable(variable, value)).evaluate(node)
        except CalculatorError:
            return math.nan

    return evaluate_at


def solve_expression(
    expression: Node | str,
    variable: str = "x",
    initial_guess: float = 0.0,
    context: EvaluationContext | None = None,
    solver_config: NumericalSolverConfig | None = None,
    method: str = "auto",
    lower: float | None = None,
    upper: float | None = None,
) -> NumericalSolution:
    """Solve expression = 0 for ``variable``.

    Args:
        expression: Expression text or parsed tree
        variable: Free variable to solve for
        initial_guess: Starting point for open methods
        context: Context supplying angle mode and other bindings
        solver_config: Iteration budget and tolerances
        method: One of ``METHODS``; bracketing methods need lower and upper
        lower: Lower end of the bracket (bisection, brent)
        upper: Upper end of the bracket (bisection, brent)

    Example:
        >>> round(solve_expression("x^2 - 2", initial_guess=1.5).root, 10)
        1.4142135624
    """
    if method not in METHODS:
        raise ValidationError(
            f"Unknown method '{method}' (expected one of: {', '.join(METHODS)})"
        )
    function = expression_function(expression, variable, context)

    if method in ("bisection", "brent"):
        if lower is None or upper is None:
            raise ValidationError(f"Method '{method}' requires lower and upper bounds")
        solver = bisection if method == "bisection" else brent
        return solver(function, lower, upper, solver_config)
    if method == "newton":
        return newton_raphson(function, initial_guess, solver_config=solver_config)
    if method == "halley":
        return halley(function, initial_guess, solver_config=solver_config)
    if method == "secant":
        x1 = initial_guess + 0.1 * (abs(initial_guess) + 1)
        return secant(function, initial_guess, x1, solver_config)
    return solve(function, initial_guess, solver_config=solver_config)
