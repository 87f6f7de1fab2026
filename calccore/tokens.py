"""Token model shared by the lexer, parser and AST.

The operator, function and constant enumerations are closed sets: the parser
and evaluator match on them exhaustively.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


class TokenType(Enum):
    NUMBER = "number"
    CONSTANT = "constant"
    VARIABLE = "variable"
    FUNCTION = "function"
    BINARY_OPERATOR = "binary_operator"
    UNARY_OPERATOR = "unary_operator"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    COMMA = ","
    END = "end"


class BinaryOperator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "×"
    DIVIDE = "÷"
    POWER = "^"
    MODULO = "mod"
    PERMUTATION = "P"
    COMBINATION = "C"
    NTH_ROOT = "√"

    @property
    def precedence(self) -> int:
        if self in (BinaryOperator.ADD, BinaryOperator.SUBTRACT):
            return 1
        if self in (BinaryOperator.MULTIPLY, BinaryOperator.DIVIDE, BinaryOperator.MODULO):
            return 2
        if self is BinaryOperator.POWER:
            return 3
        return 4

    @property
    def is_right_associative(self) -> bool:
        return self is BinaryOperator.POWER


class UnaryOperator(Enum):
    NEGATE = "negate"
    FACTORIAL = "!"
    PERCENT = "%"
    SQUARE = "²"
    CUBE = "³"
    RECIPROCAL = "⁻¹"

    @property
    def is_postfix(self) -> bool:
        return self is not UnaryOperator.NEGATE


class MathFunction(Enum):
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    ASINH = "asinh"
    ACOSH = "acosh"
    ATANH = "atanh"
    LOG = "log"
    LN = "ln"
    SQRT = "sqrt"
    CBRT = "cbrt"
    ABS = "abs"
    EXP = "exp"
    TEN_POW = "tenpow"
    INT_PART = "int"
    FRAC_PART = "frac"
    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"
    DEG_TO_RAD = "degtorad"
    RAD_TO_DEG = "radtodeg"
    DEG_TO_GRAD = "degtograd"
    GRAD_TO_DEG = "gradtodeg"
    DMS_TO_DECIMAL = "dmstodec"
    DECIMAL_TO_DMS = "dectodms"
    POL = "pol"
    REC = "rec"
    GCD = "gcd"
    LCM = "lcm"

    @property
    def is_two_argument(self) -> bool:
        return self in _TWO_ARGUMENT_FUNCTIONS

    @property
    def takes_angle(self) -> bool:
        """True for functions whose argument is interpreted in the angle mode."""
        return self in (MathFunction.SIN, MathFunction.COS, MathFunction.TAN)

    @property
    def returns_angle(self) -> bool:
        """True for inverse trigonometric functions."""
        return self in (MathFunction.ASIN, MathFunction.ACOS, MathFunction.ATAN)


_TWO_ARGUMENT_FUNCTIONS = frozenset(
    {MathFunction.POL, MathFunction.REC, MathFunction.GCD, MathFunction.LCM}
)

# Spellings accepted by the lexer in addition to each function's own name
FUNCTION_ALIASES: dict[str, MathFunction] = {
    "rnd": MathFunction.ROUND,
    "dmstod": MathFunction.DMS_TO_DECIMAL,
    "dtodms": MathFunction.DECIMAL_TO_DMS,
}


class Constant(Enum):
    PI = "π"
    E = "e"

    @property
    def value_of(self) -> float:
        return math.pi if self is Constant.PI else math.e


TokenValue = Union[float, str, BinaryOperator, UnaryOperator, MathFunction, Constant, None]


@dataclass(frozen=True)
class Token:
    """A lexical token with its offset into the source string."""

    type: TokenType
    value: TokenValue = None
    position: int = 0

    def describe(self) -> str:
        if self.type is TokenType.END:
            return "end of input"
        if self.type is TokenType.NUMBER:
            return repr(self.value)
        if isinstance(self.value, Enum):
            return f"'{self.value.value}'"
        if self.value is not None:
            return f"'{self.value}'"
        return f"'{self.type.value}'"
