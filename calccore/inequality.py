"""Polynomial inequalities p(x) < 0, p(x) ≤ 0, p(x) > 0 and p(x) ≥ 0.

The real roots of p split the line into open regions; the sign of p is
constant on each region, so one test point per region decides whether the
whole region belongs to the solution set.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from . import config
from .logging_config import get_logger
from .polynomial import evaluate_polynomial, solve_polynomial, strip_leading_zeros
from .types import ValidationError

logger = get_logger("inequality")

EPSILON = 1e-12


class ComparisonOperator(Enum):
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "≤"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = "≥"

    @classmethod
    def from_symbol(cls, symbol: str) -> ComparisonOperator:
        """Accept the operator symbols plus the ASCII forms ``<=`` and ``>=``."""
        text = symbol.strip()
        text = {"<=": "≤", "=<": "≤", ">=": "≥", "=>": "≥"}.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValidationError(f"Unknown comparison operator: {symbol!r}") from None

    @property
    def includes_equality(self) -> bool:
        return self in (ComparisonOperator.LESS_THAN_OR_EQUAL, ComparisonOperator.GREATER_THAN_OR_EQUAL)

    @property
    def opposite(self) -> ComparisonOperator:
        return _OPPOSITES[self]

    def holds(self, value: float) -> bool:
        """Whether ``value <op> 0`` holds, treating |value| < 1e-12 as zero."""
        if self is ComparisonOperator.LESS_THAN:
            return value < -EPSILON
        if self is ComparisonOperator.LESS_THAN_OR_EQUAL:
            return value < EPSILON
        if self is ComparisonOperator.GREATER_THAN:
            return value > EPSILON
        return value > -EPSILON


_OPPOSITES = {
    ComparisonOperator.LESS_THAN: ComparisonOperator.GREATER_THAN,
    ComparisonOperator.LESS_THAN_OR_EQUAL: ComparisonOperator.GREATER_THAN_OR_EQUAL,
    ComparisonOperator.GREATER_THAN: ComparisonOperator.LESS_THAN,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: ComparisonOperator.LESS_THAN_OR_EQUAL,
}


def _format_bound(value: float) -> str:
    if value == math.inf:
        return "∞"
    if value == -math.inf:
        return "-∞"
    if value == round(value) and abs(value) < 1e10:
        return f"{value + 0.0:.0f}"
    return f"{value:.4g}"


@dataclass(frozen=True)
class Interval:
    """A real interval; unbounded ends are ``-math.inf`` / ``math.inf`` and always open."""

    lower: float = -math.inf
    upper: float = math.inf
    lower_inclusive: bool = False
    upper_inclusive: bool = False

    @classmethod
    def less_than(cls, value: float, inclusive: bool = False) -> Interval:
        return cls(-math.inf, value, False, inclusive)

    @classmethod
    def greater_than(cls, value: float, inclusive: bool = False) -> Interval:
        return cls(value, math.inf, inclusive, False)

    @classmethod
    def open(cls, lower: float, upper: float) -> Interval:
        return cls(lower, upper, False, False)

    @classmethod
    def closed(cls, lower: float, upper: float) -> Interval:
        return cls(lower, upper, True, True)

    @classmethod
    def point(cls, value: float) -> Interval:
        return cls(value, value, True, True)

    @classmethod
    def all_reals(cls) -> Interval:
        return cls()

    @classmethod
    def empty(cls) -> Interval:
        return cls(1.0, 0.0)

    @property
    def is_empty(self) -> bool:
        if self.lower > self.upper:
            return True
        return self.lower == self.upper and not (self.lower_inclusive and self.upper_inclusive)

    @property
    def is_all_reals(self) -> bool:
        return self.lower == -math.inf and self.upper == math.inf

    def contains(self, value: float) -> bool:
        if self.is_empty:
            return False
        if value < self.lower or (value == self.lower and not self.lower_inclusive):
            return False
        if value > self.upper or (value == self.upper and not self.upper_inclusive):
            return False
        return True

    def __str__(self) -> str:
        if self.is_empty:
            return "∅"
        left = "[" if self.lower_inclusive else "("
        right = "]" if self.upper_inclusive else ")"
        return f"{left}{_format_bound(self.lower)}, {_format_bound(self.upper)}{right}"


@dataclass(frozen=True)
class InequalitySolution:
    """Sorted critical points and the disjoint intervals whose union solves the inequality."""

    critical_points: list[float] = field(default_factory=list)
    intervals: list[Interval] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.intervals

    @property
    def is_all_reals(self) -> bool:
        return len(self.intervals) == 1 and self.intervals[0].is_all_reals

    @property
    def notation(self) -> str:
        """Set notation such as ``(-∞, -2) ∪ (2, ∞)``, ``ℝ`` or ``∅``."""
        if self.is_empty:
            return "∅"
        if self.is_all_reals:
            return "ℝ"
        return " ∪ ".join(str(interval) for interval in self.intervals)

    def contains(self, value: float) -> bool:
        return any(interval.contains(value) for interval in self.intervals)

    def __str__(self) -> str:
        return self.notation


def _solve_constant(constant: float, op: ComparisonOperator) -> InequalitySolution:
    if op.holds(constant):
        return InequalitySolution([], [Interval.all_reals()])
    return InequalitySolution([], [])


def _solve_linear(a: float, b: float, op: ComparisonOperator) -> InequalitySolution:
    root = -b / a
    want_negative = op in (ComparisonOperator.LESS_THAN, ComparisonOperator.LESS_THAN_OR_EQUAL)
    # ax + b is negative left of the root exactly when a > 0
    if want_negative == (a > 0):
        interval = Interval.less_than(root, op.includes_equality)
    else:
        interval = Interval.greater_than(root, op.includes_equality)
    return InequalitySolution([root], [interval])


def _deduplicate(points: Sequence[float]) -> list[float]:
    unique: list[float] = []
    for point in sorted(points):
        if not unique or abs(point - unique[-1]) > config.ROOT_DEDUP_TOLERANCE:
            unique.append(point)
    return unique


def region_probes(critical_points: Sequence[float]) -> list[float]:
    """One interior point per region: cp[0] - 1, each midpoint, cp[-1] + 1."""
    if not critical_points:
        return [0.0]
    points = [critical_points[0] - 1]
    points.extend((left + right) / 2 for left, right in zip(critical_points, critical_points[1:]))
    points.append(critical_points[-1] + 1)
    return points


def _build_intervals(
    critical_points: list[float], coefficients: Sequence[float], op: ComparisonOperator
) -> list[Interval]:
    inclusive = op.includes_equality
    bounds = [-math.inf, *critical_points, math.inf]
    intervals = []
    for lower, upper, probe in zip(bounds, bounds[1:], region_probes(critical_points)):
        if op.holds(evaluate_polynomial(coefficients, probe)):
            intervals.append(
                Interval(
                    lower,
                    upper,
                    inclusive and math.isfinite(lower),
                    inclusive and math.isfinite(upper),
                )
            )

    if inclusive:
        # Roots where p touches zero without changing sign still satisfy ≤ / ≥
        for point in critical_points:
            if not any(interval.contains(point) for interval in intervals):
                intervals.append(Interval.point(point))
        intervals.sort(key=lambda interval: interval.lower)

    return merge_adjacent(intervals)


def merge_adjacent(intervals: Sequence[Interval]) -> list[Interval]:
    """Join neighbours that share a boundary which either side includes."""
    merged: list[Interval] = []
    for interval in intervals:
        if merged:
            current = merged[-1]
            touching = abs(current.upper - interval.lower) < EPSILON
            if touching and (current.upper_inclusive or interval.lower_inclusive):
                merged[-1] = Interval(
                    current.lower, interval.upper, current.lower_inclusive, interval.upper_inclusive
                )
                continue
        merged.append(interval)
    return merged


def solve_inequality(
    coefficients: Sequence[float], op: ComparisonOperator | str
) -> InequalitySolution:
    """Solve p(x) <op> 0 for a polynomial of degree at most 4.

    Args:
        coefficients: Polynomial coefficients, highest power first
        op: Comparison operator (enum member or symbol such as ``"<="``)

    Returns:
        InequalitySolution with sorted critical points and merged intervals

    Raises:
        ValidationError: If coefficients are empty, non-finite or of degree above 4

    Example:
        >>> solve_inequality([1, 0, -4], "<").notation
        '(-2, 2)'
    """
    if isinstance(op, str):
        op = ComparisonOperator.from_symbol(op)
    if len(coefficients) == 0:
        raise ValidationError("Coefficient list cannot be empty")
    coeffs = strip_leading_zeros(coefficients)
    if any(not math.isfinite(c) for c in coeffs):
        raise ValidationError("Coefficients must be finite numbers")

    if len(coeffs) == 1:
        return _solve_constant(coeffs[0], op)
    if len(coeffs) == 2:
        return _solve_linear(coeffs[0], coeffs[1], op)

    roots = solve_polynomial(coeffs)
    critical_points = _deduplicate(roots.real_roots)
    logger.debug("Critical points for %s %s 0: %s", coeffs, op.value, critical_points)
    return InequalitySolution(critical_points, _build_intervals(critical_points, coeffs, op))


def solve_quadratic_inequality(a: float, b: float, c: float, op: ComparisonOperator | str) -> InequalitySolution:
    return solve_inequality([a, b, c], op)


def solve_cubic_inequality(
    a: float, b: float, c: float, d: float, op: ComparisonOperator | str
) -> InequalitySolution:
    return solve_inequality([a, b, c, d], op)


def solve_quartic_inequality(
    a: float, b: float, c: float, d: float, e: float, op: ComparisonOperator | str
) -> InequalitySolution:
    return solve_inequality([a, b, c, d, e], op)
