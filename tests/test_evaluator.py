"""Tests for the tree-walking evaluator."""

import math
import unittest

import pytest

from calccore import config
from calccore.evaluator import (
    AngleMode,
    EvaluationContext,
    Evaluator,
    evaluate,
)
from calccore.parser import parse
from calccore.types import (
    DivisionByZeroError,
    DomainError,
    EvaluationError,
    NumericOverflowError,
    UndefinedVariableError,
)

RADIANS = EvaluationContext(angle_mode=AngleMode.RADIANS)
DEGREES = EvaluationContext(angle_mode=AngleMode.DEGREES)
GRADIANS = EvaluationContext(angle_mode=AngleMode.GRADIANS)


class TestArithmetic(unittest.TestCase):
    def test_basic_operations(self):
        self.assertEqual(evaluate("2+3×4"), 14.0)
        self.assertEqual(evaluate("(2+3)×4"), 20.0)
        self.assertEqual(evaluate("10-4-3"), 3.0)
        self.assertEqual(evaluate("7/2"), 3.5)

    def test_power(self):
        self.assertEqual(evaluate("2^10"), 1024.0)
        self.assertEqual(evaluate("2^(3+1)"), 16.0)
        self.assertEqual(evaluate("2^-1"), 0.5)
        self.assertAlmostEqual(evaluate("8^(1/3)"), 2.0)

    def test_postfix_operators(self):
        self.assertEqual(evaluate("5!"), 120.0)
        self.assertEqual(evaluate("3²"), 9.0)
        self.assertEqual(evaluate("2³"), 8.0)
        self.assertEqual(evaluate("4⁻¹"), 0.25)
        self.assertEqual(evaluate("50%"), 0.5)

    def test_negation_applies_before_square_shorthand(self):
        self.assertEqual(evaluate("-2^2"), 4.0)
        self.assertEqual(evaluate("-(2^2)"), -4.0)

    def test_implicit_multiplication(self):
        self.assertAlmostEqual(evaluate("2π"), 2 * math.pi)
        self.assertEqual(evaluate("2(3+4)"), 14.0)
        self.assertEqual(evaluate("(1+1)(2+2)"), 8.0)

    def test_combinatorics_and_roots(self):
        self.assertEqual(evaluate("5C2"), 10.0)
        self.assertEqual(evaluate("5P2"), 20.0)
        self.assertAlmostEqual(evaluate("3√8"), 2.0)
        self.assertEqual(evaluate("√9"), 3.0)

    def test_modulo_takes_sign_of_divisor(self):
        self.assertEqual(evaluate("10 mod 3"), 1.0)
        self.assertEqual(evaluate("-7 mod 3"), 2.0)

    def test_constants(self):
        self.assertAlmostEqual(evaluate("π"), math.pi)
        self.assertAlmostEqual(evaluate("ln(e)"), 1.0)


class TestFunctions(unittest.TestCase):
    def test_logarithms(self):
        self.assertAlmostEqual(evaluate("log(1000)"), 3.0)
        self.assertAlmostEqual(evaluate("ln(e^2)"), 2.0)
        self.assertEqual(evaluate("tenpow(3)"), 1000.0)

    def test_rounding_family(self):
        self.assertEqual(evaluate("int(-2.7)"), -2.0)
        self.assertAlmostEqual(evaluate("frac(2.75)"), 0.75)
        self.assertEqual(evaluate("floor(-2.5)"), -3.0)
        self.assertEqual(evaluate("ceil(2.1)"), 3.0)
        self.assertEqual(evaluate("abs(-4)"), 4.0)

    def test_two_argument_functions(self):
        self.assertEqual(evaluate("gcd(12, 18)"), 6.0)
        self.assertEqual(evaluate("lcm(4, 6)"), 12.0)
        self.assertEqual(evaluate("pol(3, 4)"), 5.0)
        self.assertAlmostEqual(evaluate("rec(2, 60)", DEGREES), 1.0)

    def test_hyperbolic(self):
        self.assertAlmostEqual(evaluate("sinh(0)"), 0.0)
        self.assertAlmostEqual(evaluate("cosh(0)"), 1.0)
        self.assertAlmostEqual(evaluate("acosh(1)"), 0.0)


class TestAngleModes:
    def test_degrees(self):
        assert evaluate("sin(30)", DEGREES) == pytest.approx(0.5)
        assert evaluate("cos(60)", DEGREES) == pytest.approx(0.5)
        assert evaluate("asin(1)", DEGREES) == pytest.approx(90.0)

    def test_radians(self):
        assert evaluate("sin(π/2)", RADIANS) == pytest.approx(1.0)
        assert evaluate("atan(1)", RADIANS) == pytest.approx(math.pi / 4)

    def test_gradians(self):
        assert evaluate("sin(100)", GRADIANS) == pytest.approx(1.0)
        assert evaluate("acos(0)", GRADIANS) == pytest.approx(100.0)

    def test_default_mode_comes_from_config(self, monkeypatch):
        monkeypatch.setattr(config, "DEFAULT_ANGLE_MODE", "radians")
        assert EvaluationContext().angle_mode is AngleMode.RADIANS
        assert evaluate("sin(π/2)") == pytest.approx(1.0)

    def test_tangent_undefined_at_right_angle(self):
        with pytest.raises(DomainError):
            evaluate("tan(90)", DEGREES)


class TestErrors:
    @pytest.mark.parametrize(
        "expression,error,code",
        [
            ("1/0", DivisionByZeroError, "DIVISION_BY_ZERO"),
            ("0^-2", DivisionByZeroError, "DIVISION_BY_ZERO"),
            ("5 mod 0", DivisionByZeroError, "DIVISION_BY_ZERO"),
            ("asin(2)", DomainError, "DOMAIN_ERROR"),
            ("ln(0)", DomainError, "DOMAIN_ERROR"),
            ("sqrt(-1)", DomainError, "DOMAIN_ERROR"),
            ("(-8)^0.5", DomainError, "DOMAIN_ERROR"),
            ("(-1)!", DomainError, "DOMAIN_ERROR"),
            ("2.5!", DomainError, "DOMAIN_ERROR"),
            ("171!", NumericOverflowError, "OVERFLOW"),
            ("10^400", NumericOverflowError, "OVERFLOW"),
            ("exp(1000)", NumericOverflowError, "OVERFLOW"),
            ("y + 1", UndefinedVariableError, "UNDEFINED_VARIABLE"),
        ],
    )
    def test_error_kinds(self, expression, error, code):
        with pytest.raises(error) as exc_info:
            evaluate(expression, RADIANS)
        assert exc_info.value.code == code
        assert isinstance(exc_info.value, EvaluationError)

    def test_undefined_variable_records_name(self):
        with pytest.raises(UndefinedVariableError) as exc_info:
            evaluate("2 * speed")
        assert exc_info.value.name == "speed"
        assert "speed" in exc_info.value.message


class TestContext(unittest.TestCase):
    def test_variables(self):
        context = EvaluationContext(variables={"x": 3.0})
        self.assertEqual(evaluate("2x + 1", context), 7.0)

    def test_answer_memory(self):
        context = EvaluationContext(last_answer=5.0, previous_answer=2.0)
        self.assertEqual(evaluate("Ans × 2", context), 10.0)
        self.assertEqual(evaluate("Ans + PreAns", context), 7.0)

    def test_answers_default_to_zero(self):
        self.assertEqual(evaluate("Ans"), 0.0)

    def test_with_answer_shifts_history(self):
        context = EvaluationContext().with_answer(3.0).with_answer(4.0)
        self.assertEqual(context.last_answer, 4.0)
        self.assertEqual(context.previous_answer, 3.0)

    def test_with_variable_leaves_original_untouched(self):
        base = EvaluationContext(variables={"a": 1.0})
        derived = base.with_variable("x", 2.0)
        self.assertEqual(base.variables, {"a": 1.0})
        self.assertEqual(derived.variables, {"a": 1.0, "x": 2.0})

    def test_evaluation_is_repeatable(self):
        tree = parse("sin(x)^2 + cos(x)^2 + Ans")
        evaluator = Evaluator(EvaluationContext(AngleMode.RADIANS, {"x": 0.7}, last_answer=1.0))
        first = evaluator.evaluate(tree)
        second = evaluator.evaluate(tree)
        self.assertEqual(first, second)
        self.assertAlmostEqual(first, 2.0)


if __name__ == "__main__":
    unittest.main()
