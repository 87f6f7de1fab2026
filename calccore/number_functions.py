"""Scalar number functions used by the evaluator.

Combinatorics, integer and rounding helpers, angle unit conversions and the
encoded degrees-minutes-seconds format (``45.3015`` is 45°30'15").
"""

from __future__ import annotations

import math

from .types import (
    DivisionByZeroError,
    DomainError,
    NumericOverflowError,
    NumericUnderflowError,
)

MAX_FACTORIAL = 170
DISPLAY_SIGNIFICANT_DIGITS = 10


def is_integer(value: float) -> bool:
    return math.isfinite(value) and value == math.floor(value)


def _require_non_negative_integer(value: float, what: str) -> int:
    if not is_integer(value) or value < 0:
        raise DomainError(f"{what} requires a non-negative integer")
    return int(value)


def factorial(n: float) -> float:
    """n! for a non-negative integer n.

    Raises:
        DomainError: If n is negative or not an integer.
        NumericOverflowError: If n exceeds 170.
    """
    k = _require_non_negative_integer(n, "Factorial")
    if k > MAX_FACTORIAL:
        raise NumericOverflowError(f"Factorial overflow: {k}! exceeds the float range")
    return float(math.factorial(k))


def permutation(n: float, r: float) -> float:
    """nPr: ordered selections of r items from n."""
    total = _require_non_negative_integer(n, "Permutation")
    chosen = _require_non_negative_integer(r, "Permutation")
    if chosen > total:
        raise DomainError("Permutation requires r <= n")
    result = 1.0
    for factor in range(total - chosen + 1, total + 1):
        result *= factor
        if math.isinf(result):
            raise NumericOverflowError("Permutation overflow")
    return result


def combination(n: float, r: float) -> float:
    """nCr using the multiplicative formula with C(n, r) = C(n, n-r)."""
    total = _require_non_negative_integer(n, "Combination")
    chosen = _require_non_negative_integer(r, "Combination")
    if chosen > total:
        raise DomainError("Combination requires r <= n")
    chosen = min(chosen, total - chosen)
    result = 1.0
    for i in range(1, chosen + 1):
        result = result * (total - chosen + i) / i
        if math.isinf(result):
            raise NumericOverflowError("Combination overflow")
    return float(round(result))


def _require_positive_integer(value: float, what: str) -> int:
    if not is_integer(value) or value <= 0:
        raise DomainError(f"{what} requires positive integers")
    return int(value)


def gcd(a: float, b: float) -> float:
    return float(math.gcd(_require_positive_integer(a, "GCD"), _require_positive_integer(b, "GCD")))


def lcm(a: float, b: float) -> float:
    x = _require_positive_integer(a, "LCM")
    y = _require_positive_integer(b, "LCM")
    return float(x // math.gcd(x, y) * y)


def modulo(a: float, b: float) -> float:
    """Floored modulo: the result takes the sign of the divisor."""
    if b == 0:
        raise DivisionByZeroError()
    return a - b * math.floor(a / b)


def nth_root(index: float, radicand: float) -> float:
    """The index-th root of radicand (``3√8`` is 2).

    Odd integer indices accept negative radicands.
    """
    if index == 0:
        raise DomainError("Root index cannot be zero")
    if radicand == 0 and index < 0:
        raise DivisionByZeroError()
    if radicand >= 0:
        return math.pow(radicand, 1.0 / index)
    if is_integer(index) and int(index) % 2 == 1:
        return -math.pow(-radicand, 1.0 / index)
    raise DomainError("Even root of a negative number")


def ten_pow(x: float) -> float:
    if x > 308:
        raise NumericOverflowError("10^x overflow")
    if x < -323:
        raise NumericUnderflowError("10^x underflow")
    return math.pow(10.0, x)


def reciprocal(x: float) -> float:
    if x == 0:
        raise DivisionByZeroError()
    return 1.0 / x


def integer_part(x: float) -> float:
    return float(math.trunc(x))


def fractional_part(x: float) -> float:
    return x - math.trunc(x)


def round_to_display(x: float) -> float:
    """Round to the calculator's display precision of 10 significant digits."""
    if not math.isfinite(x) or x == 0:
        return x
    return float(f"{x:.{DISPLAY_SIGNIFICANT_DIGITS}g}")


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def degrees_to_gradians(degrees: float) -> float:
    return degrees * 10.0 / 9.0


def gradians_to_degrees(gradians: float) -> float:
    return gradians * 9.0 / 10.0


def dms_to_decimal(encoded: float) -> float:
    """Decode ``D.MMSS`` (45.3015 is 45°30'15") into decimal degrees."""
    negative = encoded < 0
    magnitude = abs(encoded)
    degrees = math.trunc(magnitude)
    # Rounding absorbs representation error (45.30 would otherwise be 29 minutes)
    minutes_part = round((magnitude - degrees) * 100, 9)
    minutes = math.trunc(minutes_part)
    seconds = (minutes_part - minutes) * 100
    value = degrees + minutes / 60.0 + seconds / 3600.0
    return -value if negative else value


def decimal_to_dms(decimal: float) -> float:
    """Encode decimal degrees as ``D.MMSS``."""
    negative = decimal < 0
    magnitude = abs(decimal)
    degrees = math.trunc(magnitude)
    minutes_decimal = (magnitude - degrees) * 60.0
    minutes = math.trunc(minutes_decimal)
    seconds = (minutes_decimal - minutes) * 60.0
    encoded = degrees + minutes / 100.0 + seconds / 10000.0
    return -encoded if negative else encoded


def format_dms(decimal: float) -> str:
    """Format decimal degrees as ``45°30'15"`` (fractional seconds to 2 places)."""
    sign = "-" if decimal < 0 else ""
    magnitude = abs(decimal)
    degrees = math.trunc(magnitude)
    minutes_decimal = (magnitude - degrees) * 60.0
    minutes = math.trunc(minutes_decimal)
    seconds = (minutes_decimal - minutes) * 60.0
    seconds_text = f"{seconds:.0f}" if seconds == math.trunc(seconds) else f"{seconds:.2f}"
    return f"{sign}{degrees}°{minutes}'{seconds_text}\""
