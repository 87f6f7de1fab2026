"""Expression parsing and result formatting.

This module handles:
- Precedence-climbing parsing of token lists into an expression tree
- Bounding the nesting depth of parsed input
- Result formatting (superscripts, significant digits)
"""

from __future__ import annotations

import re
from typing import Any

from . import config
from .ast_nodes import (
    BinaryOpNode,
    ConstantNode,
    Function2Node,
    FunctionNode,
    Node,
    NumberNode,
    UnaryOpNode,
    VariableNode,
)
from .lexer import tokenize
from .tokens import BinaryOperator, Token, TokenType, UnaryOperator
from .types import ParseError

# Implicit multiplication applies when a token of the first group is followed
# by one of the second (2x, 2(3), (1)(2), 3!π, xsin(30)).
_IMPLICIT_LEFT = (
    TokenType.NUMBER,
    TokenType.CONSTANT,
    TokenType.VARIABLE,
    TokenType.RIGHT_PAREN,
)
_IMPLICIT_RIGHT = (
    TokenType.LEFT_PAREN,
    TokenType.CONSTANT,
    TokenType.VARIABLE,
    TokenType.FUNCTION,
)
# Right operand of an implicit product binds like the right side of '^'
_IMPLICIT_OPERAND_PRECEDENCE = BinaryOperator.POWER.precedence


class Parser:
    """Precedence-climbing parser over a token list."""

    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].type is not TokenType.END:
            tokens = list(tokens) + [Token(TokenType.END, None, len(tokens))]
        self.tokens = tokens
        self.pos = 0
        self._nesting = 0

    def parse(self) -> Node:
        """Parse the full token list into a single tree.

        Raises:
            ParseError: If the input is empty, malformed, has trailing tokens or
                nests deeper than ``MAX_EXPRESSION_DEPTH``.
        """
        self.pos = 0
        self._nesting = 0
        if self._current.type is TokenType.END:
            raise ParseError("Empty input", position=0)
        node = self.parse_expression(0)
        if self._current.type is not TokenType.END:
            raise ParseError(
                f"Unexpected token after expression: {self._current.describe()}",
                position=self._current.position,
            )
        return node

    @property
    def _current(self) -> Token:
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token | None:
        return self.tokens[self.pos - 1] if self.pos > 0 else None

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type is not TokenType.END:
            self.pos += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> None:
        if self._current.type is not token_type:
            raise ParseError(message, position=self._current.position)
        self._advance()

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > config.MAX_EXPRESSION_DEPTH:
            raise ParseError(
                f"Expression too deeply nested (max depth {config.MAX_EXPRESSION_DEPTH})",
                "TOO_DEEP",
                position=self._current.position,
            )

    def _leave(self) -> None:
        self._nesting -= 1

    def _check_depth(self, node: Node) -> Node:
        if node.depth > config.MAX_TREE_DEPTH:
            raise ParseError(
                f"Expression too complex (max tree depth {config.MAX_TREE_DEPTH})",
                "TOO_DEEP",
                position=self._current.position,
            )
        return node

    def parse_expression(self, min_precedence: int) -> Node:
        self._enter()
        try:
            left = self.parse_primary()
            while True:
                left = self._parse_postfix(left)
                left = self._parse_implicit_multiplication(left)

                token = self._current
                if token.type is not TokenType.BINARY_OPERATOR:
                    break
                op: BinaryOperator = token.value
                if op.precedence < min_precedence:
                    break
                self._advance()
                next_min = op.precedence if op.is_right_associative else op.precedence + 1
                right = self.parse_expression(next_min)
                left = self._check_depth(BinaryOpNode(op, left, right))
            return left
        finally:
            self._leave()

    def parse_primary(self) -> Node:
        token = self._current

        if token.type is TokenType.NUMBER:
            self._advance()
            return NumberNode(token.value)
        if token.type is TokenType.CONSTANT:
            self._advance()
            return ConstantNode(token.value)
        if token.type is TokenType.VARIABLE:
            self._advance()
            return VariableNode(token.value)
        if token.type is TokenType.LEFT_PAREN:
            return self._parse_group()
        if token.type is TokenType.FUNCTION:
            self._advance()
            self._enter()
            try:
                return self._check_depth(self._parse_function_call(token))
            finally:
                self._leave()
        if token.type is TokenType.UNARY_OPERATOR and token.value is UnaryOperator.NEGATE:
            self._advance()
            self._enter()
            try:
                return self._check_depth(UnaryOpNode(UnaryOperator.NEGATE, self.parse_primary()))
            finally:
                self._leave()
        if token.type is TokenType.END:
            raise ParseError("Unexpected end of input", position=token.position)
        raise ParseError(
            f"Unexpected token: {token.describe()}", position=token.position
        )

    def _parse_group(self) -> Node:
        self._advance()  # (
        if self._current.type is TokenType.RIGHT_PAREN:
            raise ParseError("Empty parentheses", position=self._current.position)
        node = self.parse_expression(0)
        self._expect(TokenType.RIGHT_PAREN, "Expected ')'")
        return node

    def _parse_function_call(self, token: Token) -> Node:
        function = token.value
        if not function.is_two_argument:
            return FunctionNode(function, self._parse_function_argument())

        name = function.value
        self._expect(TokenType.LEFT_PAREN, f"Expected '(' after {name}")
        first = self.parse_expression(0)
        self._expect(TokenType.COMMA, f"Expected ',' between arguments of {name}")
        second = self.parse_expression(0)
        self._expect(TokenType.RIGHT_PAREN, f"Expected ')' after arguments of {name}")
        return Function2Node(function, first, second)

    def _parse_function_argument(self) -> Node:
        if self._current.type is TokenType.LEFT_PAREN:
            return self._parse_group()
        return self.parse_primary()

    def _parse_postfix(self, operand: Node) -> Node:
        while (
            self._current.type is TokenType.UNARY_OPERATOR
            and self._current.value.is_postfix
        ):
            op = self._advance().value
            operand = self._check_depth(UnaryOpNode(op, operand))
        return operand

    def _parse_implicit_multiplication(self, left: Node) -> Node:
        previous = self._previous
        if (
            previous is None
            or previous.type not in _IMPLICIT_LEFT + (TokenType.UNARY_OPERATOR,)
            or self._current.type not in _IMPLICIT_RIGHT
        ):
            return left
        if previous.type is TokenType.UNARY_OPERATOR and not previous.value.is_postfix:
            return left
        right = self.parse_expression(_IMPLICIT_OPERAND_PRECEDENCE)
        return self._check_depth(BinaryOpNode(BinaryOperator.MULTIPLY, left, right))


def parse(source: str | list[Token]) -> Node:
    """Parse an expression string (or pre-scanned tokens) into a tree.

    Args:
        source: Expression text or the output of ``tokenize``

    Returns:
        Root node of the expression tree

    Raises:
        ParseError: If the expression is malformed or nested too deeply
        ValidationError: If the text is too long

    Example:
        >>> parse("2+3")
        BinaryOpNode(op=<BinaryOperator.ADD: '+'>, left=NumberNode(value=2.0), right=NumberNode(value=3.0))
    """
    tokens = tokenize(source) if isinstance(source, str) else source
    return Parser(tokens).parse()


def superscriptify(input_str: str) -> str:
    """Convert numeric string to Unicode superscript characters.

    Args:
        input_str: Input string with digits and '-' (e.g., "123", "-5")

    Returns:
        String with superscript Unicode characters (e.g., "¹²³", "⁻⁵")
    """
    mapping = {
        "0": "⁰",
        "1": "¹",
        "2": "²",
        "3": "³",
        "4": "⁴",
        "5": "⁵",
        "6": "⁶",
        "7": "⁷",
        "8": "⁸",
        "9": "⁹",
        "-": "⁻",
    }
    return "".join(mapping.get(char, char) for char in input_str)


def format_superscript(expr_str: str) -> str:
    """Replace Python power notation (**) with Unicode superscripts.

    Args:
        expr_str: Expression string (e.g., "x**2", "x**-3")

    Returns:
        String with superscripts (e.g., "x²", "x⁻³")
    """
    return re.sub(r"\*\*(\-?\d+)", lambda m: superscriptify(m.group(1)), expr_str)


def format_number(val: Any, precision: int | None = None) -> str:
    """Format a numeric value with the given number of significant digits.

    Args:
        val: Numeric value to format
        precision: Significant digits (default: ``config.OUTPUT_PRECISION``)

    Returns:
        Formatted string; ``-0`` is printed as ``0``
    """
    if precision is None:
        precision = config.OUTPUT_PRECISION
    try:
        number = float(val)
    except (ValueError, TypeError, OverflowError):
        return str(val)
    if number == 0:
        number = 0.0
    fmt = "{:." + str(int(precision)) + "g}"
    return fmt.format(number)
