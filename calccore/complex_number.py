"""Complex value type for polynomial roots."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .parser import format_number
from .types import DivisionByZeroError

EPSILON = 1e-15


@dataclass(frozen=True, eq=False)
class ComplexNumber:
    """Immutable ``real + imaginary·i`` with tolerance-based equality.

    Equality compares both parts within 1e-15, so instances are unhashable.
    """

    real: float
    imaginary: float = 0.0

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def from_polar(cls, r: float, theta: float) -> ComplexNumber:
        return cls(r * math.cos(theta), r * math.sin(theta))

    @classmethod
    def from_complex(cls, value: complex) -> ComplexNumber:
        return cls(value.real, value.imag)

    def to_complex(self) -> complex:
        return complex(self.real, self.imaginary)

    @property
    def magnitude(self) -> float:
        return math.hypot(self.real, self.imaginary)

    @property
    def argument(self) -> float:
        """Angle in radians, in (-π, π]."""
        return math.atan2(self.imaginary, self.real)

    @property
    def is_real(self) -> bool:
        return abs(self.imaginary) < EPSILON

    @property
    def is_zero(self) -> bool:
        return abs(self.real) < EPSILON and abs(self.imaginary) < EPSILON

    def conjugate(self) -> ComplexNumber:
        return ComplexNumber(self.real, -self.imaginary)

    def sqrt(self) -> ComplexNumber:
        """Principal square root via the polar form."""
        if self.is_zero:
            return ComplexNumber(0.0, 0.0)
        return ComplexNumber.from_polar(math.sqrt(self.magnitude), self.argument / 2)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (int, float)):
            other = ComplexNumber(float(other))
        if not isinstance(other, ComplexNumber):
            return NotImplemented
        return (
            abs(self.real - other.real) < EPSILON
            and abs(self.imaginary - other.imaginary) < EPSILON
        )

    def __add__(self, other: ComplexNumber | float) -> ComplexNumber:
        other = _coerce(other)
        return ComplexNumber(self.real + other.real, self.imaginary + other.imaginary)

    __radd__ = __add__

    def __sub__(self, other: ComplexNumber | float) -> ComplexNumber:
        other = _coerce(other)
        return ComplexNumber(self.real - other.real, self.imaginary - other.imaginary)

    def __rsub__(self, other: float) -> ComplexNumber:
        return _coerce(other) - self

    def __mul__(self, other: ComplexNumber | float) -> ComplexNumber:
        other = _coerce(other)
        return ComplexNumber(
            self.real * other.real - self.imaginary * other.imaginary,
            self.real * other.imaginary + self.imaginary * other.real,
        )

    __rmul__ = __mul__

    def __truediv__(self, other: ComplexNumber | float) -> ComplexNumber:
        other = _coerce(other)
        denominator = other.real * other.real + other.imaginary * other.imaginary
        if denominator < EPSILON:
            raise DivisionByZeroError()
        return ComplexNumber(
            (self.real * other.real + self.imaginary * other.imaginary) / denominator,
            (self.imaginary * other.real - self.real * other.imaginary) / denominator,
        )

    def __rtruediv__(self, other: float) -> ComplexNumber:
        return _coerce(other) / self

    def __neg__(self) -> ComplexNumber:
        return ComplexNumber(-self.real, -self.imaginary)

    def __abs__(self) -> float:
        return self.magnitude

    def __str__(self) -> str:
        if self.is_zero:
            return "0"
        if self.is_real:
            return format_number(self.real)
        imaginary = _imaginary_text(abs(self.imaginary))
        if abs(self.real) < EPSILON:
            return f"-{imaginary}" if self.imaginary < 0 else imaginary
        sign = "-" if self.imaginary < 0 else "+"
        return f"{format_number(self.real)} {sign} {imaginary}"


def _imaginary_text(magnitude: float) -> str:
    if abs(magnitude - 1) < EPSILON:
        return "i"
    return f"{format_number(magnitude)}i"


def _coerce(value: ComplexNumber | float) -> ComplexNumber:
    if isinstance(value, ComplexNumber):
        return value
    if isinstance(value, complex):
        return ComplexNumber.from_complex(value)
    return ComplexNumber(float(value))
