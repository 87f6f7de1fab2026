"""Numerical calculus operations: integrals, derivatives, sums and products.

Every operation takes a plain ``f(x) -> float`` callable; the ``*_expression``
variants accept an expression (text or parsed tree) and the name of the
variable to sweep.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Callable

import numpy as np

from . import config
from .ast_nodes import Node
from .evaluator import EvaluationContext
from .logging_config import get_logger
from .numerical import expression_function
from .types import DomainError, EvaluationError, NumericOverflowError, ValidationError

logger = get_logger("calculus")

Function = Callable[[float], float]

MACHINE_EPSILON = sys.float_info.epsilon
DEFAULT_TOLERANCE = 1e-10
MAX_SIMPSON_DEPTH = 50
MAX_DERIVATIVE_ORDER = 4


@dataclass(frozen=True)
class IntegrationResult:
    value: float
    estimated_error: float
    evaluations: int
    converged: bool


@dataclass(frozen=True)
class DerivativeResult:
    value: float
    estimated_error: float
    order: int


def _undefined_at(x: float) -> EvaluationError:
    return EvaluationError(f"Function is undefined at x = {x:g}", "MATH_ERROR")


def _require_finite_bounds(a: float, b: float) -> None:
    if not (math.isfinite(a) and math.isfinite(b)):
        raise DomainError("Integration bounds must be finite")


def integrate(
    function: Function,
    a: float,
    b: float,
    tolerance: float = DEFAULT_TOLERANCE,
    max_depth: int = MAX_SIMPSON_DEPTH,
) -> IntegrationResult:
    """Definite integral by adaptive Simpson quadrature.

    Each panel is split in half until the Richardson difference of the two
    halves drops below 15 × its share of the tolerance or ``max_depth`` is
    reached. Reversed bounds negate the result.

    Args:
        function: Integrand
        a: Lower bound
        b: Upper bound
        tolerance: Target absolute error
        max_depth: Maximum bisection depth

    Returns:
        IntegrationResult (``converged`` when the error estimate is below tolerance)

    Raises:
        DomainError: If a bound is infinite or NaN
        EvaluationError: If the integrand is non-finite at any sample point
    """
    _require_finite_bounds(a, b)
    if a == b:
        return IntegrationResult(0.0, 0.0, 0, True)
    if a > b:
        result = integrate(function, b, a, tolerance, max_depth)
        return IntegrationResult(-result.value, result.estimated_error, result.evaluations, result.converged)

    evaluations = 3
    fa, fb, fm = function(a), function(b), function((a + b) / 2)
    for x, fx in ((a, fa), (b, fb), ((a + b) / 2, fm)):
        if not math.isfinite(fx):
            raise _undefined_at(x)

    def simpson(left: float, right: float, f_left: float, f_right: float, f_mid: float) -> float:
        return (right - left) / 6 * (f_left + 4 * f_mid + f_right)

    def adaptive(left, right, f_left, f_right, f_mid, whole, tol, depth):
        nonlocal evaluations
        mid = (left + right) / 2
        f_left_mid = function((left + mid) / 2)
        f_right_mid = function((mid + right) / 2)
        evaluations += 2
        for x, fx in (((left + mid) / 2, f_left_mid), ((mid + right) / 2, f_right_mid)):
            if not math.isfinite(fx):
                raise _undefined_at(x)
        left_half = simpson(left, mid, f_left, f_mid, f_left_mid)
        right_half = simpson(mid, right, f_mid, f_right, f_right_mid)
        delta = left_half + right_half - whole
        if depth <= 0 or abs(delta) <= 15 * tol:
            return left_half + right_half + delta / 15, abs(delta) / 15
        value_l, error_l = adaptive(left, mid, f_left, f_mid, f_left_mid, left_half, tol / 2, depth - 1)
        value_r, error_r = adaptive(mid, right, f_mid, f_right, f_right_mid, right_half, tol / 2, depth - 1)
        return value_l + value_r, error_l + error_r

    whole = simpson(a, b, fa, fb, fm)
    value, error = adaptive(a, b, fa, fb, fm, whole, tolerance, max_depth)
    if not error < tolerance:
        logger.debug("Adaptive Simpson on [%g, %g] stopped with error %g", a, b, error)
    return IntegrationResult(value, error, evaluations, error < tolerance)


def _grid(a: float, b: float, n: int) -> np.ndarray:
    return np.linspace(a, b, n + 1)


def _sample(function: Function, xs: np.ndarray) -> np.ndarray:
    values = np.array([function(float(x)) for x in xs], dtype=float)
    bad = ~np.isfinite(values)
    if bad.any():
        raise _undefined_at(float(xs[int(np.argmax(bad))]))
    return values


def simpson_integrate(function: Function, a: float, b: float, n: int = 1000) -> float:
    """Composite Simpson's rule on ``n`` panels (odd n is rounded up)."""
    _require_finite_bounds(a, b)
    if n % 2:
        n += 1
    if n < 2:
        raise ValidationError("Number of intervals must be at least 2")
    xs = _grid(a, b, n)
    weights = np.ones(n + 1)
    weights[1:-1:2] = 4.0
    weights[2:-1:2] = 2.0
    h = (b - a) / n
    return float(np.dot(weights, _sample(function, xs)) * h / 3)


def _require_panels(n: int) -> None:
    if n < 1:
        raise ValidationError("Number of subintervals must be at least 1")


def left_riemann_sum(function: Function, a: float, b: float, n: int) -> float:
    _require_panels(n)
    h = (b - a) / n
    return float(_sample(function, _grid(a, b, n)[:-1]).sum() * h)


def right_riemann_sum(function: Function, a: float, b: float, n: int) -> float:
    _require_panels(n)
    h = (b - a) / n
    return float(_sample(function, _grid(a, b, n)[1:]).sum() * h)


def trapezoidal_rule(function: Function, a: float, b: float, n: int) -> float:
    _require_panels(n)
    h = (b - a) / n
    values = _sample(function, _grid(a, b, n))
    return float((values.sum() - (values[0] + values[-1]) / 2) * h)


def differentiate(function: Function, a: float, h: float | None = None) -> DerivativeResult:
    """First derivative by central difference.

    The default step ε^(1/3)·max(1, |a|) balances truncation and rounding error.
    """
    step = h if h is not None else MACHINE_EPSILON ** (1 / 3) * max(1.0, abs(a))
    f_plus = function(a + step)
    f_minus = function(a - step)
    derivative = (f_plus - f_minus) / (2 * step)
    error = step * step * abs(derivative) + MACHINE_EPSILON * max(abs(f_plus), abs(f_minus)) / step
    return DerivativeResult(derivative, error, 1)


def second_derivative(function: Function, a: float, h: float | None = None) -> DerivativeResult:
    step = h if h is not None else MACHINE_EPSILON ** (1 / 4) * max(1.0, abs(a))
    f_center = function(a)
    f_plus = function(a + step)
    f_minus = function(a - step)
    derivative = (f_plus - 2 * f_center + f_minus) / (step * step)
    error = step * step * abs(derivative) + MACHINE_EPSILON * max(
        abs(f_plus), abs(f_center), abs(f_minus)
    ) / (step * step)
    return DerivativeResult(derivative, error, 2)


def nth_derivative(function: Function, a: float, order: int, h: float | None = None) -> DerivativeResult:
    """Derivative of order 1 to 4 by central finite differences.

    Raises:
        ValidationError: If the order is outside 1..4
    """
    if not 1 <= order <= MAX_DERIVATIVE_ORDER:
        raise ValidationError(f"Derivative order must be between 1 and {MAX_DERIVATIVE_ORDER}")
    step = h if h is not None else MACHINE_EPSILON ** (1 / (order + 2)) * max(1.0, abs(a))
    if order == 1:
        return differentiate(function, a, step)
    if order == 2:
        return second_derivative(function, a, step)

    f_p1, f_p2 = function(a + step), function(a + 2 * step)
    f_m1, f_m2 = function(a - step), function(a - 2 * step)
    if order == 3:
        value = (f_p2 - 2 * f_p1 + 2 * f_m1 - f_m2) / (2 * step ** 3)
    else:
        value = (f_p2 - 4 * f_p1 + 6 * function(a) - 4 * f_m1 + f_m2) / step ** 4
    return DerivativeResult(value, step * step, order)


def _integer_range(start: float, end: float, what: str) -> range:
    if not (float(start).is_integer() and float(end).is_integer()):
        raise ValidationError(f"{what} bounds must be integers")
    start, end = int(start), int(end)
    if start > end:
        raise ValidationError(f"Start must be <= end for {what.lower()}")
    if end - start >= config.MAX_SERIES_TERMS:
        raise ValidationError(
            f"{what} range too large (max {config.MAX_SERIES_TERMS} terms)"
        )
    return range(start, end + 1)


def summation(function: Function, start: int, end: int) -> float:
    """Σ f(i) for i = start..end inclusive."""
    total = 0.0
    for i in _integer_range(start, end, "Summation"):
        value = function(float(i))
        if not math.isfinite(value):
            raise _undefined_at(i)
        total += value
    if not math.isfinite(total):
        raise NumericOverflowError("Summation overflow")
    return total


def product(function: Function, start: int, end: int) -> float:
    """Π f(i) for i = start..end inclusive; stops early once the product is zero."""
    result = 1.0
    for i in _integer_range(start, end, "Product"):
        value = function(float(i))
        if not math.isfinite(value):
            raise _undefined_at(i)
        result *= value
        if result == 0:
            break
        if not math.isfinite(result):
            raise NumericOverflowError("Product overflow")
    return result


def integrate_expression(
    expression: Node | str,
    a: float,
    b: float,
    variable: str = "x",
    context: EvaluationContext | None = None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> IntegrationResult:
    """Integrate an expression over [a, b].

    Example:
        >>> round(integrate_expression("x^2", 0, 3).value, 9)
        9.0
    """
    return integrate(expression_function(expression, variable, context), a, b, tolerance)


def differentiate_expression(
    expression: Node | str,
    a: float,
    variable: str = "x",
    context: EvaluationContext | None = None,
    order: int = 1,
) -> DerivativeResult:
    """Derivative of an expression at ``a``.

    Raises:
        EvaluationError: If the derivative is not finite at ``a``
    """
    result = nth_derivative(expression_function(expression, variable, context), a, order)
    if not math.isfinite(result.value):
        raise EvaluationError(f"Derivative undefined at x = {a:g}", "MATH_ERROR")
    return result


def summation_expression(
    expression: Node | str,
    start: int,
    end: int,
    variable: str = "x",
    context: EvaluationContext | None = None,
) -> float:
    return summation(expression_function(expression, variable, context), start, end)


def product_expression(
    expression: Node | str,
    start: int,
    end: int,
    variable: str = "x",
    context: EvaluationContext | None = None,
) -> float:
    return product(expression_function(expression, variable, context), start, end)
