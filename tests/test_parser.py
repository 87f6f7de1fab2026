"""Tests for the precedence-climbing parser and result formatting."""

import unittest

import pytest

from calccore import config
from calccore.ast_nodes import (
    BinaryOpNode,
    ConstantNode,
    Function2Node,
    FunctionNode,
    NumberNode,
    UnaryOpNode,
    VariableNode,
    free_variables,
)
from calccore.evaluator import evaluate
from calccore.lexer import tokenize
from calccore.parser import format_number, format_superscript, parse, superscriptify
from calccore.tokens import BinaryOperator, Constant, MathFunction, UnaryOperator
from calccore.types import ParseError


class TestPrecedence(unittest.TestCase):
    def test_multiplication_binds_tighter_than_addition(self):
        tree = parse("2+3×4")
        self.assertIsInstance(tree, BinaryOpNode)
        self.assertEqual(tree.op, BinaryOperator.ADD)
        self.assertEqual(tree.right, BinaryOpNode(BinaryOperator.MULTIPLY, NumberNode(3.0), NumberNode(4.0)))

    def test_subtraction_is_left_associative(self):
        tree = parse("10-4-3")
        self.assertEqual(tree.op, BinaryOperator.SUBTRACT)
        self.assertEqual(tree.left, BinaryOpNode(BinaryOperator.SUBTRACT, NumberNode(10.0), NumberNode(4.0)))

    def test_power_is_right_associative(self):
        tree = parse("2^4^5")
        self.assertEqual(tree.op, BinaryOperator.POWER)
        self.assertEqual(tree.left, NumberNode(2.0))
        self.assertEqual(tree.right, BinaryOpNode(BinaryOperator.POWER, NumberNode(4.0), NumberNode(5.0)))

    def test_parentheses_override_precedence(self):
        tree = parse("(2+3)×4")
        self.assertEqual(tree.op, BinaryOperator.MULTIPLY)
        self.assertEqual(tree.left.op, BinaryOperator.ADD)

    def test_root_binds_tighter_than_power(self):
        tree = parse("2×3√8")
        self.assertEqual(tree.op, BinaryOperator.MULTIPLY)
        self.assertEqual(tree.right.op, BinaryOperator.NTH_ROOT)


class TestUnaryAndPostfix(unittest.TestCase):
    def test_negation(self):
        self.assertEqual(parse("-5"), UnaryOpNode(UnaryOperator.NEGATE, NumberNode(5.0)))

    def test_double_negation(self):
        tree = parse("--5")
        self.assertEqual(tree.op, UnaryOperator.NEGATE)
        self.assertEqual(tree.operand.op, UnaryOperator.NEGATE)

    def test_postfix_applies_to_preceding_operand(self):
        self.assertEqual(parse("3!"), UnaryOpNode(UnaryOperator.FACTORIAL, NumberNode(3.0)))
        tree = parse("2+3²")
        self.assertEqual(tree.right, UnaryOpNode(UnaryOperator.SQUARE, NumberNode(3.0)))

    def test_chained_postfix(self):
        tree = parse("3!²")
        self.assertEqual(tree.op, UnaryOperator.SQUARE)
        self.assertEqual(tree.operand.op, UnaryOperator.FACTORIAL)


class TestImplicitMultiplication(unittest.TestCase):
    def test_number_variable(self):
        self.assertEqual(
            parse("2x"), BinaryOpNode(BinaryOperator.MULTIPLY, NumberNode(2.0), VariableNode("x"))
        )

    def test_number_constant(self):
        self.assertEqual(
            parse("2π"),
            BinaryOpNode(BinaryOperator.MULTIPLY, NumberNode(2.0), ConstantNode(Constant.PI)),
        )

    def test_number_parenthesis_and_adjacent_groups(self):
        self.assertEqual(parse("2(3)").op, BinaryOperator.MULTIPLY)
        self.assertEqual(parse("(1)(2)").op, BinaryOperator.MULTIPLY)

    def test_number_function(self):
        tree = parse("2sin(30)")
        self.assertEqual(tree.op, BinaryOperator.MULTIPLY)
        self.assertIsInstance(tree.right, FunctionNode)

    def test_implicit_operand_keeps_its_postfix(self):
        tree = parse("2x²+1")
        self.assertEqual(tree.op, BinaryOperator.ADD)
        self.assertEqual(
            tree.left,
            BinaryOpNode(
                BinaryOperator.MULTIPLY,
                NumberNode(2.0),
                UnaryOpNode(UnaryOperator.SQUARE, VariableNode("x")),
            ),
        )

    def test_adjacent_numbers_are_an_error(self):
        with self.assertRaises(ParseError):
            parse("2 3")


class TestFunctions:
    def test_parenthesized_argument(self):
        assert parse("sin(30)") == FunctionNode(MathFunction.SIN, NumberNode(30.0))

    def test_bare_argument(self):
        tree = parse("sin 30 + 1")
        assert tree.op is BinaryOperator.ADD
        assert tree.left == FunctionNode(MathFunction.SIN, NumberNode(30.0))

    def test_two_argument_function(self):
        assert parse("gcd(12, 18)") == Function2Node(MathFunction.GCD, NumberNode(12.0), NumberNode(18.0))

    def test_two_argument_function_requires_comma(self):
        with pytest.raises(ParseError, match="Expected ','"):
            parse("gcd(12)")

    def test_missing_argument(self):
        with pytest.raises(ParseError):
            parse("sin")


class TestErrors:
    @pytest.mark.parametrize(
        "text,message",
        [
            ("", "Empty input"),
            ("2 +", "Unexpected end of input"),
            ("()", "Empty parentheses"),
            ("(2+3", "Expected ')'"),
            ("2+3)", "Unexpected token after expression"),
            ("×2", "Unexpected token"),
        ],
    )
    def test_syntax_errors(self, text, message):
        with pytest.raises(ParseError, match=message.replace("(", r"\(").replace(")", r"\)")) as exc_info:
            parse(text)
        assert exc_info.value.code == "SYNTAX_ERROR"

    def test_error_position_points_at_offending_token(self):
        with pytest.raises(ParseError) as exc_info:
            parse("2+3)")
        assert exc_info.value.position == 3


class TestDepthLimit:
    def test_moderate_nesting_is_accepted(self):
        tree = parse("(" * 50 + "1" + ")" * 50)
        assert tree == NumberNode(1.0)

    def test_deep_parentheses_are_rejected(self):
        with pytest.raises(ParseError) as exc_info:
            parse("(" * 150 + "1" + ")" * 150)
        assert exc_info.value.code == "TOO_DEEP"

    def test_long_negation_chain_is_rejected(self):
        with pytest.raises(ParseError) as exc_info:
            parse("-" * 150 + "1")
        assert exc_info.value.code == "TOO_DEEP"

    def test_long_flat_sum_is_accepted(self):
        tree = parse("+".join(["1"] * 150))
        assert tree.depth == 150
        assert evaluate(tree) == 150.0

    def test_very_long_flat_sum_is_rejected(self):
        with pytest.raises(ParseError) as exc_info:
            parse("+".join(["1"] * 600))
        assert exc_info.value.code == "TOO_DEEP"

    def test_tree_limit_follows_config(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_TREE_DEPTH", 10)
        assert parse("+".join(["1"] * 10)).depth == 10
        with pytest.raises(ParseError):
            parse("+".join(["1"] * 11))

    def test_limit_follows_config(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_EXPRESSION_DEPTH", 5)
        with pytest.raises(ParseError):
            parse("((((((1))))))")
        assert parse("((1))") == NumberNode(1.0)

    def test_node_depth(self):
        assert parse("1").depth == 1
        assert parse("1+2").depth == 2
        assert parse("1+2×3").depth == 3


class TestParseFromTokens(unittest.TestCase):
    def test_accepts_token_list(self):
        self.assertEqual(parse(tokenize("1+2")), parse("1+2"))

    def test_free_variables(self):
        self.assertEqual(free_variables(parse("x^2 + 2xy - gcd(a, 4)")), {"x", "xy", "a"})
        self.assertEqual(free_variables(parse("2π")), set())


class TestFormatting(unittest.TestCase):
    def test_superscriptify(self):
        self.assertEqual(superscriptify("123"), "¹²³")
        self.assertEqual(superscriptify("-5"), "⁻⁵")

    def test_format_superscript(self):
        self.assertEqual(format_superscript("x**2 + x**-3"), "x² + x⁻³")

    def test_format_number_significant_digits(self):
        self.assertEqual(format_number(14.0), "14")
        self.assertEqual(format_number(1 / 3), "0.3333333333")
        self.assertEqual(format_number(2.0 ** 0.5, 4), "1.414")

    def test_format_number_negative_zero(self):
        self.assertEqual(format_number(-0.0), "0")

    def test_format_number_non_numeric(self):
        self.assertEqual(format_number("abc"), "abc")


if __name__ == "__main__":
    unittest.main()
