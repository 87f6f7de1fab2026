"""Tests for polynomial inequality solving."""

import math
import unittest

import pytest

from calccore.inequality import (
    ComparisonOperator,
    InequalitySolution,
    Interval,
    merge_adjacent,
    region_probes,
    solve_cubic_inequality,
    solve_inequality,
    solve_quadratic_inequality,
    solve_quartic_inequality,
)
from calccore.types import ValidationError


class TestQuadratic(unittest.TestCase):
    def test_strictly_between_roots(self):
        solution = solve_quadratic_inequality(1, 0, -4, "<")
        self.assertEqual(solution.critical_points, [-2.0, 2.0])
        self.assertEqual(len(solution.intervals), 1)
        interval = solution.intervals[0]
        self.assertEqual((interval.lower, interval.upper), (-2.0, 2.0))
        self.assertFalse(interval.lower_inclusive)
        self.assertFalse(interval.upper_inclusive)
        self.assertEqual(solution.notation, "(-2, 2)")

    def test_between_roots_inclusive(self):
        solution = solve_quadratic_inequality(1, 0, -4, "≤")
        interval = solution.intervals[0]
        self.assertTrue(interval.lower_inclusive)
        self.assertTrue(interval.upper_inclusive)
        self.assertEqual(solution.notation, "[-2, 2]")

    def test_outside_roots(self):
        self.assertEqual(solve_inequality([1, 0, -4], ">").notation, "(-∞, -2) ∪ (2, ∞)")
        self.assertEqual(solve_inequality([1, 0, -4], ">=").notation, "(-∞, -2] ∪ [2, ∞)")

    def test_no_real_roots(self):
        self.assertEqual(solve_inequality([1, 0, 1], "<").notation, "∅")
        self.assertTrue(solve_inequality([1, 0, 1], "<").is_empty)
        self.assertEqual(solve_inequality([1, 0, 1], ">").notation, "ℝ")
        self.assertTrue(solve_inequality([1, 0, 1], ">").is_all_reals)

    def test_touching_root(self):
        self.assertEqual(solve_inequality([1, 0, 0], "<=").notation, "[0, 0]")
        self.assertEqual(solve_inequality([1, 0, 0], "<").notation, "∅")
        self.assertEqual(solve_inequality([1, 0, 0], ">").notation, "(-∞, 0) ∪ (0, ∞)")
        self.assertEqual(solve_inequality([1, 0, 0], ">=").notation, "ℝ")

    def test_repeated_root_is_one_critical_point(self):
        self.assertEqual(solve_inequality([1, -2, 1], ">").critical_points, [1.0])


class TestHigherDegree(unittest.TestCase):
    def test_cubic_three_roots(self):
        solution = solve_cubic_inequality(1, -6, 11, -6, ">")
        self.assertEqual(solution.notation, "(1, 2) ∪ (3, ∞)")
        self.assertTrue(solution.contains(1.5))
        self.assertFalse(solution.contains(2.5))

    def test_cubic_double_root(self):
        # (x - 1)²(x + 2)
        self.assertEqual(solve_cubic_inequality(1, 0, -3, 2, "<").notation, "(-∞, -2)")
        self.assertEqual(solve_cubic_inequality(1, 0, -3, 2, ">").notation, "(-2, 1) ∪ (1, ∞)")
        self.assertEqual(solve_cubic_inequality(1, 0, -3, 2, ">=").notation, "[-2, ∞)")

    def test_isolated_touching_root_next_to_interval(self):
        # -x²(x - 3) ≤ 0 holds on [3, ∞) and at x = 0
        solution = solve_cubic_inequality(-1, 3, 0, 0, "<=")
        self.assertEqual(solution.notation, "[0, 0] ∪ [3, ∞)")
        self.assertTrue(solution.contains(0.0))
        self.assertFalse(solution.contains(1.0))

    def test_cubic_with_small_constant(self):
        solution = solve_inequality([1, 0, 0, 1e-7], ">")
        self.assertEqual(len(solution.intervals), 1)
        self.assertAlmostEqual(solution.critical_points[0], -(1e-7 ** (1 / 3)), places=12)
        self.assertTrue(solution.contains(0.0))
        self.assertFalse(solution.contains(-0.005))

    def test_quartic(self):
        solution = solve_quartic_inequality(1, 0, -5, 0, 4, "<")
        self.assertEqual(solution.notation, "(-2, -1) ∪ (1, 2)")
        self.assertEqual(solution.critical_points, [-2.0, -1.0, 1.0, 2.0])


class TestLowDegree:
    def test_linear(self):
        assert solve_inequality([2, -4], ">").notation == "(2, ∞)"
        assert solve_inequality([-2, 4], ">").notation == "(-∞, 2)"
        assert solve_inequality([2, -4], "<=").notation == "(-∞, 2]"

    def test_leading_zeros_reduce_degree(self):
        assert solve_inequality([0, 0, 2, -4], ">=").notation == "[2, ∞)"

    @pytest.mark.parametrize(
        "constant,op,expected",
        [
            (5, "<", "∅"),
            (-5, "<", "ℝ"),
            (0, "<", "∅"),
            (0, "<=", "ℝ"),
            (0, ">=", "ℝ"),
            (1e-13, ">", "∅"),
        ],
    )
    def test_constant(self, constant, op, expected):
        solution = solve_inequality([constant], op)
        assert solution.notation == expected
        assert solution.critical_points == []


class TestValidation:
    def test_empty_coefficients(self):
        with pytest.raises(ValidationError):
            solve_inequality([], "<")

    def test_non_finite(self):
        with pytest.raises(ValidationError):
            solve_inequality([1, math.inf, 0], "<")

    def test_degree_too_high(self):
        with pytest.raises(ValidationError):
            solve_inequality([1, 0, 0, 0, 0, 1], "<")

    def test_unknown_operator(self):
        with pytest.raises(ValidationError):
            solve_inequality([1, 0, -4], "!=")


class TestOperators:
    @pytest.mark.parametrize(
        "symbol,expected",
        [
            ("<", ComparisonOperator.LESS_THAN),
            ("<=", ComparisonOperator.LESS_THAN_OR_EQUAL),
            ("=<", ComparisonOperator.LESS_THAN_OR_EQUAL),
            ("≤", ComparisonOperator.LESS_THAN_OR_EQUAL),
            (" > ", ComparisonOperator.GREATER_THAN),
            (">=", ComparisonOperator.GREATER_THAN_OR_EQUAL),
            ("≥", ComparisonOperator.GREATER_THAN_OR_EQUAL),
        ],
    )
    def test_from_symbol(self, symbol, expected):
        assert ComparisonOperator.from_symbol(symbol) is expected

    def test_opposite_and_equality(self):
        assert ComparisonOperator.LESS_THAN.opposite is ComparisonOperator.GREATER_THAN
        assert ComparisonOperator.GREATER_THAN_OR_EQUAL.opposite is ComparisonOperator.LESS_THAN_OR_EQUAL
        assert ComparisonOperator.LESS_THAN_OR_EQUAL.includes_equality
        assert not ComparisonOperator.GREATER_THAN.includes_equality

    def test_holds_treats_tiny_values_as_zero(self):
        assert not ComparisonOperator.LESS_THAN.holds(-1e-13)
        assert ComparisonOperator.LESS_THAN_OR_EQUAL.holds(1e-13)
        assert ComparisonOperator.GREATER_THAN.holds(1e-6)


class TestIntervals(unittest.TestCase):
    def test_formatting(self):
        self.assertEqual(str(Interval.open(-2.5, 3.25)), "(-2.5, 3.25)")
        self.assertEqual(str(Interval.closed(1 / 3, 1)), "[0.3333, 1]")
        self.assertEqual(str(Interval.less_than(2, inclusive=True)), "(-∞, 2]")
        self.assertEqual(str(Interval.greater_than(-1)), "(-1, ∞)")
        self.assertEqual(str(Interval.empty()), "∅")
        self.assertEqual(str(Interval.all_reals()), "(-∞, ∞)")

    def test_contains(self):
        self.assertFalse(Interval.open(-2, 2).contains(2))
        self.assertTrue(Interval.closed(-2, 2).contains(2))
        self.assertTrue(Interval.point(3).contains(3))
        self.assertFalse(Interval.empty().contains(0.5))

    def test_emptiness(self):
        self.assertTrue(Interval(1, 1, True, False).is_empty)
        self.assertFalse(Interval.point(1).is_empty)

    def test_merge_adjacent(self):
        merged = merge_adjacent([Interval(-math.inf, 0, False, True), Interval(0, 5, False, False)])
        self.assertEqual(merged, [Interval(-math.inf, 5, False, False)])
        separate = merge_adjacent([Interval.open(-1, 0), Interval.open(0, 1)])
        self.assertEqual(len(separate), 2)

    def test_region_probes(self):
        self.assertEqual(region_probes([]), [0.0])
        self.assertEqual(region_probes([-2.0, 2.0]), [-3.0, 0.0, 3.0])

    def test_solution_str(self):
        self.assertEqual(str(InequalitySolution([], [])), "∅")


if __name__ == "__main__":
    unittest.main()
