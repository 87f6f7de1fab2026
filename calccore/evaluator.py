"""Tree-walking evaluator with angle modes and domain-checked numerics.

The evaluator never mutates its context: every call with the same tree and
context returns the same value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from . import config
from . import number_functions as nf
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
from .parser import parse
from .tokens import BinaryOperator, MathFunction, UnaryOperator
from .types import (
    DivisionByZeroError,
    DomainError,
    NumericOverflowError,
    UndefinedVariableError,
)

ZERO_THRESHOLD = 1e-15


class AngleMode(Enum):
    DEGREES = "degrees"
    RADIANS = "radians"
    GRADIANS = "gradians"

    def to_radians(self, value: float) -> float:
        if self is AngleMode.DEGREES:
            return value * math.pi / 180.0
        if self is AngleMode.GRADIANS:
            return value * math.pi / 200.0
        return value

    def from_radians(self, value: float) -> float:
        if self is AngleMode.DEGREES:
            return value * 180.0 / math.pi
        if self is AngleMode.GRADIANS:
            return value * 200.0 / math.pi
        return value


def _default_angle_mode() -> AngleMode:
    return AngleMode(config.DEFAULT_ANGLE_MODE)


@dataclass(frozen=True)
class EvaluationContext:
    """Angle mode, variable bindings and answer memory for one evaluation.

    Instances are immutable; ``with_variable`` and ``with_answer`` return
    updated copies so solvers can bind a sweep variable without sharing state.
    """

    angle_mode: AngleMode = field(default_factory=_default_angle_mode)
    variables: dict[str, float] = field(default_factory=dict)
    last_answer: float = 0.0
    previous_answer: float = 0.0

    def with_variable(self, name: str, value: float) -> EvaluationContext:
        variables = dict(self.variables)
        variables[name] = value
        return replace(self, variables=variables)

    def with_answer(self, value: float) -> EvaluationContext:
        """Store a new answer, shifting the current one into ``PreAns``."""
        return replace(
            self,
            variables=dict(self.variables),
            previous_answer=self.last_answer,
            last_answer=value,
        )

    def get_variable(self, name: str) -> float:
        if name in self.variables:
            return self.variables[name]
        if name == "Ans":
            return self.last_answer
        if name == "PreAns":
            return self.previous_answer
        raise UndefinedVariableError(name)


def _checked(result: float) -> float:
    if not math.isfinite(result):
        raise NumericOverflowError()
    return result


def _power(base: float, exponent: float) -> float:
    if base == 0 and exponent < 0:
        raise DivisionByZeroError("Zero raised to a negative power")
    try:
        return math.pow(base, exponent)
    except OverflowError:
        raise NumericOverflowError()
    except ValueError:
        raise DomainError("Negative base with a non-integer exponent")


def _divide(numerator: float, denominator: float) -> float:
    if abs(denominator) < ZERO_THRESHOLD:
        raise DivisionByZeroError()
    return numerator / denominator


_BINARY_OPERATIONS: dict[BinaryOperator, Callable[[float, float], float]] = {
    BinaryOperator.ADD: lambda a, b: a + b,
    BinaryOperator.SUBTRACT: lambda a, b: a - b,
    BinaryOperator.MULTIPLY: lambda a, b: a * b,
    BinaryOperator.DIVIDE: _divide,
    BinaryOperator.POWER: _power,
    BinaryOperator.MODULO: nf.modulo,
    BinaryOperator.PERMUTATION: nf.permutation,
    BinaryOperator.COMBINATION: nf.combination,
    BinaryOperator.NTH_ROOT: nf.nth_root,
}

_UNARY_OPERATIONS: dict[UnaryOperator, Callable[[float], float]] = {
    UnaryOperator.NEGATE: lambda x: -x,
    UnaryOperator.FACTORIAL: nf.factorial,
    UnaryOperator.PERCENT: lambda x: x / 100.0,
    UnaryOperator.SQUARE: lambda x: x * x,
    UnaryOperator.CUBE: lambda x: x * x * x,
    UnaryOperator.RECIPROCAL: nf.reciprocal,
}


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise DomainError(message)


def _log10(x: float) -> float:
    _require(x > 0, "log requires positive input")
    return math.log10(x)


def _ln(x: float) -> float:
    _require(x > 0, "ln requires positive input")
    return math.log(x)


def _sqrt(x: float) -> float:
    _require(x >= 0, "sqrt requires non-negative input")
    return math.sqrt(x)


def _acosh(x: float) -> float:
    _require(x >= 1, "acosh requires input >= 1")
    return math.acosh(x)


def _atanh(x: float) -> float:
    _require(-1 < x < 1, "atanh requires input in (-1, 1)")
    return math.atanh(x)


# Functions whose argument and result are independent of the angle mode
_PLAIN_FUNCTIONS: dict[MathFunction, Callable[[float], float]] = {
    MathFunction.SINH: math.sinh,
    MathFunction.COSH: math.cosh,
    MathFunction.TANH: math.tanh,
    MathFunction.ASINH: math.asinh,
    MathFunction.ACOSH: _acosh,
    MathFunction.ATANH: _atanh,
    MathFunction.LOG: _log10,
    MathFunction.LN: _ln,
    MathFunction.SQRT: _sqrt,
    MathFunction.CBRT: math.cbrt,
    MathFunction.ABS: abs,
    MathFunction.EXP: math.exp,
    MathFunction.TEN_POW: nf.ten_pow,
    MathFunction.INT_PART: nf.integer_part,
    MathFunction.FRAC_PART: nf.fractional_part,
    MathFunction.FLOOR: lambda x: float(math.floor(x)),
    MathFunction.CEIL: lambda x: float(math.ceil(x)),
    MathFunction.ROUND: nf.round_to_display,
    MathFunction.DEG_TO_RAD: nf.degrees_to_radians,
    MathFunction.RAD_TO_DEG: nf.radians_to_degrees,
    MathFunction.DEG_TO_GRAD: nf.degrees_to_gradians,
    MathFunction.GRAD_TO_DEG: nf.gradians_to_degrees,
    MathFunction.DMS_TO_DECIMAL: nf.dms_to_decimal,
    MathFunction.DECIMAL_TO_DMS: nf.decimal_to_dms,
}


class Evaluator:
    """Evaluates expression trees against a fixed context."""

    def __init__(self, context: EvaluationContext | None = None):
        self.context = context if context is not None else EvaluationContext()

    def evaluate(self, node: Node) -> float:
        """Reduce a tree to a float.

        Raises:
            UndefinedVariableError: For an unbound identifier.
            DivisionByZeroError: When a divisor is (nearly) zero.
            DomainError: For an argument outside a function's domain.
            NumericOverflowError: When a finite computation leaves the float range.
        """
        if isinstance(node, NumberNode):
            return _checked(node.value)
        if isinstance(node, ConstantNode):
            return node.constant.value_of
        if isinstance(node, VariableNode):
            return self.context.get_variable(node.name)
        if isinstance(node, BinaryOpNode):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            try:
                return _checked(_BINARY_OPERATIONS[node.op](left, right))
            except OverflowError:
                raise NumericOverflowError()
        if isinstance(node, UnaryOpNode):
            value = self.evaluate(node.operand)
            return _checked(_UNARY_OPERATIONS[node.op](value))
        if isinstance(node, FunctionNode):
            return _checked(self._apply_function(node.function, self.evaluate(node.argument)))
        if isinstance(node, Function2Node):
            first = self.evaluate(node.first)
            second = self.evaluate(node.second)
            return _checked(self._apply_function2(node.function, first, second))
        raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _apply_function(self, function: MathFunction, value: float) -> float:
        mode = self.context.angle_mode
        if function.takes_angle:
            radians = mode.to_radians(value)
            if function is MathFunction.SIN:
                return math.sin(radians)
            if function is MathFunction.COS:
                return math.cos(radians)
            cosine = math.cos(radians)
            if abs(cosine) < ZERO_THRESHOLD:
                raise DomainError("Tangent undefined at this angle")
            return math.sin(radians) / cosine
        if function.returns_angle:
            if function is MathFunction.ATAN:
                return mode.from_radians(math.atan(value))
            name = function.value
            _require(-1 <= value <= 1, f"{name} requires input in [-1, 1]")
            primitive = math.asin if function is MathFunction.ASIN else math.acos
            return mode.from_radians(primitive(value))
        try:
            return _PLAIN_FUNCTIONS[function](value)
        except OverflowError:
            raise NumericOverflowError(f"{function.value} overflow")

    def _apply_function2(self, function: MathFunction, first: float, second: float) -> float:
        mode = self.context.angle_mode
        if function is MathFunction.POL:
            return math.hypot(first, second)
        if function is MathFunction.REC:
            return first * math.cos(mode.to_radians(second))
        if function is MathFunction.GCD:
            return nf.gcd(first, second)
        if function is MathFunction.LCM:
            return nf.lcm(first, second)
        raise TypeError(f"{function.value} is not a two-argument function")


def evaluate(expression: str | Node, context: EvaluationContext | None = None) -> float:
    """Evaluate an expression string or a parsed tree.

    Args:
        expression: Expression text (e.g., "2+3×sin(30)") or a parsed node
        context: Evaluation context (default: fresh context in the configured angle mode)

    Returns:
        The numeric value

    Example:
        >>> evaluate("2+3×4")
        14.0
    """
    node = parse(expression) if isinstance(expression, str) else expression
    return Evaluator(context).evaluate(node)
