"""Lexer: converts raw expression text into an ordered list of tokens.

Handles:
- Decimal numbers with optional scientific exponent (``1.5e-3``)
- Named functions, constants (``π``/``pi``, ``e``) and variables
- ASCII and calculator-style operator spellings (``*``/``×``, ``/``/``÷``, ``−``)
- Postfix superscripts (``²``, ``³``, ``⁻¹``) and their ``^2``/``^3``/``^-1`` forms
"""

from __future__ import annotations

from . import config
from .tokens import (
    FUNCTION_ALIASES,
    BinaryOperator,
    Constant,
    MathFunction,
    Token,
    TokenType,
    UnaryOperator,
)
from .types import ParseError, ValidationError

DIGITS = "0123456789"
MINUS_SIGNS = "-−"

_SINGLE_CHAR_TOKENS = {
    "(": Token(TokenType.LEFT_PAREN),
    ")": Token(TokenType.RIGHT_PAREN),
    ",": Token(TokenType.COMMA),
    "+": Token(TokenType.BINARY_OPERATOR, BinaryOperator.ADD),
    "*": Token(TokenType.BINARY_OPERATOR, BinaryOperator.MULTIPLY),
    "×": Token(TokenType.BINARY_OPERATOR, BinaryOperator.MULTIPLY),
    "/": Token(TokenType.BINARY_OPERATOR, BinaryOperator.DIVIDE),
    "÷": Token(TokenType.BINARY_OPERATOR, BinaryOperator.DIVIDE),
    "!": Token(TokenType.UNARY_OPERATOR, UnaryOperator.FACTORIAL),
    "%": Token(TokenType.UNARY_OPERATOR, UnaryOperator.PERCENT),
    "²": Token(TokenType.UNARY_OPERATOR, UnaryOperator.SQUARE),
    "³": Token(TokenType.UNARY_OPERATOR, UnaryOperator.CUBE),
}

# Token kinds after which a minus sign is a negation rather than subtraction
_UNARY_MINUS_PREDECESSORS = (
    TokenType.LEFT_PAREN,
    TokenType.COMMA,
    TokenType.BINARY_OPERATOR,
    TokenType.FUNCTION,
)


class Lexer:
    """Single-use scanner over one input string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Scan the whole input.

        Returns:
            Tokens in source order, terminated by an ``END`` token.

        Raises:
            ValidationError: If the input exceeds ``MAX_INPUT_LENGTH``.
            ParseError: On an unrecognized character or malformed number.
        """
        if len(self.text) > config.MAX_INPUT_LENGTH:
            raise ValidationError(
                f"Input too long (max {config.MAX_INPUT_LENGTH} characters)", "TOO_LONG"
            )
        self.pos = 0
        self.tokens = []
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.text):
                break
            self._scan_token()
        self.tokens.append(Token(TokenType.END, None, self.pos))
        return self.tokens

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.text[index] if index < len(self.text) else ""

    def _emit(self, token_type: TokenType, value=None, position: int | None = None) -> None:
        self.tokens.append(
            Token(token_type, value, self.pos if position is None else position)
        )

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _scan_token(self) -> None:
        char = self._peek()
        if char and char in DIGITS or (char == "." and self._peek(1) and self._peek(1) in DIGITS):
            self._scan_number()
        elif char == "π" or char.isalpha() or char == "_":
            self._scan_identifier()
        else:
            self._scan_operator()

    def _scan_number(self) -> None:
        start = self.pos
        while self._peek() and self._peek() in DIGITS:
            self.pos += 1
        if self._peek() == ".":
            self.pos += 1
            if not (self._peek() and self._peek() in DIGITS):
                raise ParseError(
                    "Malformed number: decimal point must be followed by digits",
                    position=start,
                )
            while self._peek() and self._peek() in DIGITS:
                self.pos += 1
        literal = self.text[start:self.pos]

        # An exponent is only consumed when digits follow it; otherwise the
        # 'e' is left for the identifier scanner (2e is 2 times e).
        if self._peek() in ("e", "E"):
            offset = 1
            if self._peek(offset) and self._peek(offset) in "+" + MINUS_SIGNS:
                offset += 1
            if self._peek(offset) and self._peek(offset) in DIGITS:
                end = self.pos + offset
                while end < len(self.text) and self.text[end] in DIGITS:
                    end += 1
                literal += self.text[self.pos:end].replace("−", "-")
                self.pos = end

        try:
            value = float(literal)
        except ValueError:
            raise ParseError(f"Malformed number: '{literal}'", position=start)
        self._emit(TokenType.NUMBER, value, start)

    def _scan_identifier(self) -> None:
        start = self.pos
        if self._peek() == "π":
            self.pos += 1
            self._emit(TokenType.CONSTANT, Constant.PI, start)
            return

        # nPr and nCr: a lone P or C between operands, digits may follow directly
        letter = self._peek()
        if letter in ("P", "C") and self._follows_operand() and not (
            self._peek(1).isalpha() or self._peek(1) == "_"
        ):
            self.pos += 1
            operator = BinaryOperator.PERMUTATION if letter == "P" else BinaryOperator.COMBINATION
            self._emit(TokenType.BINARY_OPERATOR, operator, start)
            return

        while self._peek() and (self._peek().isalpha() or self._peek() in DIGITS or self._peek() == "_"):
            if self._peek() == "π":
                break
            self.pos += 1
        name = self.text[start:self.pos]
        lowered = name.lower()

        if lowered == "mod":
            self._emit(TokenType.BINARY_OPERATOR, BinaryOperator.MODULO, start)
        elif lowered in FUNCTION_ALIASES:
            self._emit(TokenType.FUNCTION, FUNCTION_ALIASES[lowered], start)
        elif lowered in _FUNCTION_NAMES:
            self._emit(TokenType.FUNCTION, MathFunction(lowered), start)
        elif lowered == "pi":
            self._emit(TokenType.CONSTANT, Constant.PI, start)
        elif name in ("e", "E"):
            self._emit(TokenType.CONSTANT, Constant.E, start)
        elif lowered == "ans":
            self._emit(TokenType.VARIABLE, "Ans", start)
        elif lowered == "preans":
            self._emit(TokenType.VARIABLE, "PreAns", start)
        else:
            self._emit(TokenType.VARIABLE, name, start)

    def _scan_operator(self) -> None:
        start = self.pos
        char = self._peek()
        self.pos += 1

        if char in _SINGLE_CHAR_TOKENS:
            token = _SINGLE_CHAR_TOKENS[char]
            self._emit(token.type, token.value, start)
        elif char in MINUS_SIGNS:
            if self._is_unary_minus_context():
                self._emit(TokenType.UNARY_OPERATOR, UnaryOperator.NEGATE, start)
            else:
                self._emit(TokenType.BINARY_OPERATOR, BinaryOperator.SUBTRACT, start)
        elif char == "^":
            self._scan_caret(start)
        elif char == "√":
            if self.tokens and self.tokens[-1].type is TokenType.NUMBER:
                self._emit(TokenType.BINARY_OPERATOR, BinaryOperator.NTH_ROOT, start)
            else:
                self._emit(TokenType.FUNCTION, MathFunction.SQRT, start)
        elif char == "⁻":
            if self._peek() != "¹":
                raise ParseError("Invalid superscript sequence", position=start)
            self.pos += 1
            self._emit(TokenType.UNARY_OPERATOR, UnaryOperator.RECIPROCAL, start)
        else:
            raise ParseError(f"Unknown character: '{char}'", position=start)

    def _scan_caret(self, start: int) -> None:
        # ^-1, ^2 and ^3 are postfix operators unless more digits follow
        following = self._peek(1)
        ends_number = not (following and following in DIGITS)
        if self._peek() and self._peek() in MINUS_SIGNS and self._peek(1) == "1" and not (
            self._peek(2) and self._peek(2) in DIGITS + "."
        ):
            self.pos += 2
            self._emit(TokenType.UNARY_OPERATOR, UnaryOperator.RECIPROCAL, start)
        elif self._peek() == "2" and ends_number and following != ".":
            self.pos += 1
            self._emit(TokenType.UNARY_OPERATOR, UnaryOperator.SQUARE, start)
        elif self._peek() == "3" and ends_number and following != ".":
            self.pos += 1
            self._emit(TokenType.UNARY_OPERATOR, UnaryOperator.CUBE, start)
        else:
            self._emit(TokenType.BINARY_OPERATOR, BinaryOperator.POWER, start)

    def _follows_operand(self) -> bool:
        if not self.tokens:
            return False
        return self.tokens[-1].type in (
            TokenType.NUMBER,
            TokenType.RIGHT_PAREN,
            TokenType.VARIABLE,
        )

    def _is_unary_minus_context(self) -> bool:
        if not self.tokens:
            return True
        last = self.tokens[-1]
        if last.type in _UNARY_MINUS_PREDECESSORS:
            return True
        return last.type is TokenType.UNARY_OPERATOR and last.value is UnaryOperator.NEGATE


_FUNCTION_NAMES = frozenset(function.value for function in MathFunction)


def tokenize(text: str) -> list[Token]:
    """Tokenize an expression string.

    Args:
        text: Expression text (e.g., ``"2+3×sin(45)"``)

    Returns:
        List of tokens ending with an ``END`` token

    Raises:
        ParseError: On an unrecognized character or malformed number
        ValidationError: If the input is too long

    Example:
        >>> [t.type.name for t in tokenize("2x")]
        ['NUMBER', 'VARIABLE', 'END']
    """
    return Lexer(text).tokenize()
