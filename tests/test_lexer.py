"""Tests for the expression lexer."""

import unittest

import pytest

from calccore.lexer import tokenize
from calccore.tokens import (
    BinaryOperator,
    Constant,
    MathFunction,
    TokenType,
    UnaryOperator,
)
from calccore.types import ParseError, ValidationError


def kinds(text):
    return [token.type for token in tokenize(text)]


def values(text):
    return [token.value for token in tokenize(text)[:-1]]


class TestNumbers(unittest.TestCase):
    def test_integer_and_decimal(self):
        self.assertEqual(values("42"), [42.0])
        self.assertEqual(values("3.25"), [3.25])
        self.assertEqual(values(".5"), [0.5])

    def test_scientific_notation(self):
        self.assertAlmostEqual(values("1.5e-3")[0], 0.0015)
        self.assertEqual(values("2E+2"), [200.0])

    def test_trailing_e_is_euler_constant(self):
        """2e is 2 times e, not an incomplete exponent."""
        self.assertEqual(kinds("2e"), [TokenType.NUMBER, TokenType.CONSTANT, TokenType.END])
        self.assertEqual(values("2e")[1], Constant.E)

    def test_decimal_point_without_digits(self):
        with self.assertRaises(ParseError):
            tokenize("1.")


class TestOperators(unittest.TestCase):
    def test_ascii_and_calculator_spellings(self):
        self.assertEqual(values("2*3")[1], BinaryOperator.MULTIPLY)
        self.assertEqual(values("2×3")[1], BinaryOperator.MULTIPLY)
        self.assertEqual(values("2/3")[1], BinaryOperator.DIVIDE)
        self.assertEqual(values("2÷3")[1], BinaryOperator.DIVIDE)
        self.assertEqual(values("3−2")[1], BinaryOperator.SUBTRACT)

    def test_minus_is_negation_at_start_and_after_operators(self):
        self.assertEqual(values("-5")[0], UnaryOperator.NEGATE)
        self.assertEqual(values("2*-5")[2], UnaryOperator.NEGATE)
        self.assertEqual(values("(-5)")[1], UnaryOperator.NEGATE)
        self.assertEqual(values("2-5")[1], BinaryOperator.SUBTRACT)

    def test_postfix_superscripts(self):
        self.assertEqual(values("3²")[1], UnaryOperator.SQUARE)
        self.assertEqual(values("3³")[1], UnaryOperator.CUBE)
        self.assertEqual(values("3⁻¹")[1], UnaryOperator.RECIPROCAL)
        self.assertEqual(values("5!")[1], UnaryOperator.FACTORIAL)
        self.assertEqual(values("50%")[1], UnaryOperator.PERCENT)

    def test_caret_shorthands(self):
        self.assertEqual(values("x^2")[1], UnaryOperator.SQUARE)
        self.assertEqual(values("x^3")[1], UnaryOperator.CUBE)
        self.assertEqual(values("x^-1")[1], UnaryOperator.RECIPROCAL)

    def test_caret_followed_by_more_digits_is_power(self):
        self.assertEqual(values("2^23"), [2.0, BinaryOperator.POWER, 23.0])
        self.assertEqual(values("2^2.5"), [2.0, BinaryOperator.POWER, 2.5])
        self.assertEqual(
            values("2^-12"), [2.0, BinaryOperator.POWER, UnaryOperator.NEGATE, 12.0]
        )

    def test_root_operator(self):
        self.assertEqual(values("3√8"), [3.0, BinaryOperator.NTH_ROOT, 8.0])
        self.assertEqual(values("√9"), [MathFunction.SQRT, 9.0])

    def test_word_operators(self):
        self.assertEqual(values("10 mod 3")[1], BinaryOperator.MODULO)
        self.assertEqual(values("5C2"), [5.0, BinaryOperator.COMBINATION, 2.0])
        self.assertEqual(values("5P2"), [5.0, BinaryOperator.PERMUTATION, 2.0])

    def test_unknown_character(self):
        with self.assertRaises(ParseError) as ctx:
            tokenize("2 # 3")
        self.assertEqual(ctx.exception.position, 2)
        self.assertEqual(ctx.exception.code, "SYNTAX_ERROR")

    def test_incomplete_superscript(self):
        with self.assertRaises(ParseError):
            tokenize("2⁻")


class TestIdentifiers:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("sin", MathFunction.SIN),
            ("ASIN", MathFunction.ASIN),
            ("rnd", MathFunction.ROUND),
            ("tenpow", MathFunction.TEN_POW),
            ("gcd", MathFunction.GCD),
        ],
    )
    def test_functions(self, text, expected):
        tokens = tokenize(text)
        assert tokens[0].type is TokenType.FUNCTION
        assert tokens[0].value is expected

    def test_constants(self):
        assert values("π") == [Constant.PI]
        assert values("pi") == [Constant.PI]
        assert values("e") == [Constant.E]

    def test_answer_memory_names_are_normalized(self):
        assert values("ans") == ["Ans"]
        assert values("PREANS") == ["PreAns"]

    def test_variables(self):
        assert values("x") == ["x"]
        assert values("rate_2") == ["rate_2"]

    def test_lowercase_c_after_number_is_a_variable(self):
        assert kinds("2c") == [TokenType.NUMBER, TokenType.VARIABLE, TokenType.END]

    def test_positions(self):
        tokens = tokenize("12 + 3")
        assert [t.position for t in tokens] == [0, 3, 5, 6]
        assert tokens[-1].type is TokenType.END


class TestLimits:
    def test_input_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            tokenize("1" * 10001)
        assert exc_info.value.code == "TOO_LONG"

    def test_empty_input_is_just_end(self):
        assert kinds("   ") == [TokenType.END]


if __name__ == "__main__":
    unittest.main()
