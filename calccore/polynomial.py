"""Closed-form polynomial root finding for degrees 1 through 4.

Coefficients are given highest power first: ``[1, -3, 2]`` is x² - 3x + 2.
Real roots are returned in the order each formula produces them (unsorted),
repeated roots are listed once per multiplicity, and non-real roots come in
conjugate pairs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, Union

import sympy as sp

from . import config
from .complex_number import ComplexNumber
from .logging_config import get_logger
from .parser import format_superscript
from .types import ValidationError

logger = get_logger("polynomial")

EPSILON = 1e-12
MAX_DEGREE = 4

Scalar = Union[float, complex, ComplexNumber]


@dataclass(frozen=True)
class PolynomialRoots:
    degree: int
    real_roots: list[float] = field(default_factory=list)
    complex_roots: list[ComplexNumber] = field(default_factory=list)

    @property
    def all_real(self) -> bool:
        return not self.complex_roots

    @property
    def root_count(self) -> int:
        return len(self.real_roots) + len(self.complex_roots)

    @property
    def all_roots(self) -> list[ComplexNumber]:
        return [ComplexNumber(r) for r in self.real_roots] + list(self.complex_roots)


def solve_linear(a: float, b: float) -> PolynomialRoots:
    if abs(a) <= EPSILON:
        raise ValidationError("Coefficient 'a' cannot be zero for a linear equation")
    return PolynomialRoots(1, [-b / a])


def solve_quadratic(a: float, b: float, c: float) -> PolynomialRoots:
    """Solve ax² + bx + c = 0.

    Distinct real roots use q = -(b + sign(b)·√D)/2 with roots q/a and c/q,
    which avoids cancellation when b² dominates 4ac.
    """
    if abs(a) <= EPSILON:
        raise ValidationError("Coefficient 'a' cannot be zero for a quadratic")

    discriminant = b * b - 4 * a * c
    if discriminant > EPSILON:
        sqrt_d = math.sqrt(discriminant)
        q = -0.5 * (b + (1.0 if b >= 0 else -1.0) * sqrt_d)
        return PolynomialRoots(2, [q / a, c / q])
    if abs(discriminant) <= EPSILON:
        x = -b / (2 * a)
        return PolynomialRoots(2, [x, x])

    real_part = -b / (2 * a)
    imaginary_part = math.sqrt(-discriminant) / (2 * a)
    return PolynomialRoots(
        2,
        [],
        [ComplexNumber(real_part, imaginary_part), ComplexNumber(real_part, -imaginary_part)],
    )


def solve_cubic(a: float, b: float, c: float, d: float) -> PolynomialRoots:
    """Solve ax³ + bx² + cx + d = 0 through the depressed cubic t³ + At + B."""
    if abs(a) <= EPSILON:
        raise ValidationError("Leading coefficient cannot be zero")

    p, q, r = b / a, c / a, d / a
    big_a = q - p * p / 3.0
    big_b = (2.0 * p ** 3 - 9.0 * p * q + 27.0 * r) / 27.0
    discriminant = -(4.0 * big_a ** 3 + 27.0 * big_b ** 2)
    offset = p / 3.0

    # A and B are zero up to the rounding of their own terms: triple root
    if abs(big_a) <= EPSILON * (abs(q) + p * p) and abs(big_b) <= EPSILON * (
        abs(p) ** 3 + abs(p * q) + abs(r)
    ):
        return PolynomialRoots(3, [-offset] * 3)

    # The discriminant is compared relative to its own terms, which scale as A³ and B²
    scale = max(abs(4.0 * big_a ** 3), 27.0 * big_b ** 2)
    if abs(discriminant) <= EPSILON * scale:
        double_root = -3.0 * big_b / (2.0 * big_a) - offset
        single_root = 3.0 * big_b / big_a - offset
        return PolynomialRoots(3, [single_root, double_root, double_root])

    if discriminant > 0:
        # Three distinct real roots: trigonometric method
        m = 2.0 * math.sqrt(-big_a / 3.0)
        cos_arg = max(-1.0, min(1.0, 3.0 * big_b / (big_a * m)))
        theta = math.acos(cos_arg) / 3.0
        roots = [m * math.cos(theta - 2.0 * math.pi * k / 3.0) - offset for k in range(3)]
        return PolynomialRoots(3, roots)

    # One real root and a conjugate pair: Cardano, taking the larger cube
    # root first and v = -A/(3u) so that u + v does not cancel
    sqrt_term = math.sqrt(-discriminant / 27.0)
    sign = 1.0 if big_b >= 0 else -1.0
    u = math.cbrt(-big_b / 2.0 - sign * sqrt_term / 2.0)
    v = -big_a / (3.0 * u)
    omega = ComplexNumber(-0.5, math.sqrt(3.0) / 2.0)
    omega_squared = omega.conjugate()
    t2 = omega * u + omega_squared * v
    t3 = omega_squared * u + omega * v
    return PolynomialRoots(
        3,
        [u + v - offset],
        [t2 - offset, t3 - offset],
    )


def solve_quartic(a: float, b: float, c: float, d: float, e: float) -> PolynomialRoots:
    """Solve ax⁴ + bx³ + cx² + dx + e = 0 by Ferrari's method.

    The depressed quartic y⁴ + Py² + Qy + R is split into two quadratics
    y² ± ay + (P + a² ∓ Q/a)/2, where a² is a positive root of the resolvent
    cubic u³ + 2Pu² + (P² - 4R)u - Q². Q ≈ 0 is solved as a quadratic in y².
    """
    if abs(a) <= EPSILON:
        raise ValidationError("Leading coefficient cannot be zero")

    p, q, r, s = b / a, c / a, d / a, e / a
    p2 = p * p
    big_p = q - 3.0 * p2 / 8.0
    big_q = p2 * p / 8.0 - p * q / 2.0 + r
    big_r = -3.0 * p2 * p2 / 256.0 + p2 * q / 16.0 - p * r / 4.0 + s
    offset = p / 4.0

    if abs(big_q) < EPSILON:
        return _solve_biquadratic(big_p, big_r, offset)

    # u = a² for the factorization (y² + ay + b)(y² - ay + c)
    resolvent = solve_cubic(1.0, 2.0 * big_p, big_p * big_p - 4.0 * big_r, -big_q * big_q)
    u = _choose_resolvent_root(resolvent.real_roots)
    a_factor = math.sqrt(abs(u))
    if a_factor <= EPSILON:
        return _solve_biquadratic(big_p, big_r, offset)

    half = (big_p + u) / 2.0
    k = big_q / (2.0 * a_factor)
    real_roots: list[float] = []
    complex_roots: list[ComplexNumber] = []
    for linear, constant in ((a_factor, half - k), (-a_factor, half + k)):
        factor = solve_quadratic(1.0, linear, constant)
        real_roots.extend(root - offset for root in factor.real_roots)
        complex_roots.extend(root - offset for root in factor.complex_roots)
    return PolynomialRoots(4, real_roots, complex_roots)


def _choose_resolvent_root(roots: list[float]) -> float:
    for root in roots:
        if root > EPSILON:
            return root
    for root in roots:
        if abs(root) > EPSILON:
            return root
    return roots[0] if roots else 0.0


def _solve_biquadratic(big_p: float, big_r: float, offset: float) -> PolynomialRoots:
    """Solve y⁴ + Py² + R = 0 with z = y², then shift by the offset."""
    z_roots = solve_quadratic(1.0, big_p, big_r)
    real_roots: list[float] = []
    complex_roots: list[ComplexNumber] = []

    for z in z_roots.real_roots:
        if z > EPSILON:
            root = math.sqrt(z)
            real_roots.extend([root - offset, -root - offset])
        elif abs(z) <= EPSILON:
            real_roots.extend([-offset, -offset])
        else:
            root = math.sqrt(-z)
            complex_roots.extend([ComplexNumber(-offset, root), ComplexNumber(-offset, -root)])

    for z in z_roots.complex_roots:
        root = z.sqrt()
        complex_roots.extend([root - offset, -root - offset])

    return PolynomialRoots(4, real_roots, complex_roots)


def strip_leading_zeros(coefficients: Sequence[float]) -> list[float]:
    coeffs = [float(c) for c in coefficients]
    while len(coeffs) > 1 and abs(coeffs[0]) < EPSILON:
        coeffs.pop(0)
    return coeffs


def solve_polynomial(coefficients: Sequence[float]) -> PolynomialRoots:
    """Find all roots of a polynomial of degree at most 4.

    Args:
        coefficients: Coefficients, highest power first

    Returns:
        PolynomialRoots with degree, real roots and complex roots

    Raises:
        ValidationError: If every coefficient is zero or the degree exceeds 4

    Example:
        >>> sorted(solve_polynomial([1, -5, 6]).real_roots)
        [2.0, 3.0]
    """
    coeffs = strip_leading_zeros(coefficients)
    if not coeffs:
        raise ValidationError("Polynomial must have at least one non-zero coefficient")

    degree = len(coeffs) - 1
    if degree > MAX_DEGREE:
        raise ValidationError(
            f"Polynomials of degree {degree} are not supported (max degree: {MAX_DEGREE})"
        )
    if any(not math.isfinite(c) for c in coeffs):
        raise ValidationError("Coefficients must be finite numbers")

    if degree == 0:
        if abs(coeffs[0]) < EPSILON:
            raise ValidationError("Zero polynomial has infinitely many roots")
        return PolynomialRoots(0)

    logger.debug("Solving degree %d polynomial %s", degree, coeffs)
    if degree == 1:
        return solve_linear(*coeffs)
    if degree == 2:
        return solve_quadratic(*coeffs)
    if degree == 3:
        return solve_cubic(*coeffs)
    return solve_quartic(*coeffs)


def evaluate_polynomial(coefficients: Sequence[float], x: Scalar) -> Scalar:
    """Horner evaluation; works for float, complex and ComplexNumber arguments."""
    result: Scalar = 0.0
    for coefficient in coefficients:
        result = result * x + coefficient
    return result


def verify_root(
    coefficients: Sequence[float], root: Scalar, tolerance: float | None = None
) -> bool:
    """Check that |p(root)| is below the tolerance (default ``ROOT_VERIFY_TOLERANCE``)."""
    if tolerance is None:
        tolerance = config.ROOT_VERIFY_TOLERANCE
    return abs(evaluate_polynomial(coefficients, root)) < tolerance


def polynomial_derivative(coefficients: Sequence[float]) -> list[float]:
    n = len(coefficients) - 1
    if n < 1:
        return [0.0]
    return [float(n - i) * coefficients[i] for i in range(n)]


def _sympy_coefficient(value: float) -> sp.Expr:
    if float(value).is_integer() and abs(value) < 1e15:
        return sp.Integer(int(value))
    return sp.Float(value, 6)


def format_polynomial(coefficients: Sequence[float], variable: str = "x") -> str:
    """Render coefficients as a readable polynomial.

    Example:
        >>> format_polynomial([1, -3, 2])
        'x² - 3x + 2'
    """
    symbol = sp.Symbol(variable)
    n = len(coefficients) - 1
    expr = sp.Add(
        *(
            _sympy_coefficient(c) * symbol ** (n - i)
            for i, c in enumerate(coefficients)
            if abs(c) >= EPSILON
        )
    )
    text = sp.sstr(expr, full_prec=False, order="lex")
    return format_superscript(text).replace("*", "")
