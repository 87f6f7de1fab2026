"""Error taxonomy and result dataclasses for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class CalculatorError(Exception):
    """Base class for every error raised by the calculator core."""

    def __init__(self, message: str, code: str = "CALCULATOR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(CalculatorError):
    """Raised when the input is not a well-formed expression."""

    def __init__(
        self, message: str, code: str = "SYNTAX_ERROR", position: int | None = None
    ):
        self.position = position
        super().__init__(message, code)


class ValidationError(CalculatorError):
    """Raised when arguments have the wrong shape, count or range."""

    def __init__(self, message: str, code: str = "INVALID_INPUT"):
        super().__init__(message, code)


class EvaluationError(CalculatorError):
    """Raised when a well-formed expression cannot be reduced to a number."""


class DivisionByZeroError(EvaluationError):
    def __init__(self, message: str = "Division by zero"):
        super().__init__(message, "DIVISION_BY_ZERO")


class DomainError(EvaluationError):
    def __init__(self, message: str = "Domain error"):
        super().__init__(message, "DOMAIN_ERROR")


class NumericOverflowError(EvaluationError):
    def __init__(self, message: str = "Overflow"):
        super().__init__(message, "OVERFLOW")


class NumericUnderflowError(EvaluationError):
    def __init__(self, message: str = "Underflow"):
        super().__init__(message, "UNDERFLOW")


class UndefinedVariableError(EvaluationError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined variable: {name}", "UNDEFINED_VARIABLE")


class SolverError(CalculatorError):
    """Raised when a solver cannot continue iterating (zero derivative, no bracket)."""

    def __init__(self, message: str, code: str = "MATH_ERROR"):
        super().__init__(message, code)


class SolverTimeoutError(SolverError):
    """Raised when a solver exceeds its wall-clock budget."""

    def __init__(self, message: str = "Solver timed out"):
        super().__init__(message, "TIMEOUT")


def _compact(result_dict: dict[str, Any], **optional: Any) -> dict[str, Any]:
    for key, value in optional.items():
        if value is not None:
            result_dict[key] = value
    return result_dict


@dataclass
class EvalResult:
    """Result of evaluating a mathematical expression."""

    ok: bool
    value: float | None = None
    formatted: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(
            {"ok": self.ok, "type": "value"},
            value=self.value,
            result=self.formatted,
            error=self.error,
            error_code=self.error_code,
        )

    def __repr__(self) -> str:
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        return f"EvalResult(ok=True, value={self.value!r}, formatted={self.formatted!r})"


@dataclass
class SolveResult:
    """Result of numerically solving a single equation."""

    ok: bool
    root: float | None = None
    iterations: int | None = None
    residual: float | None = None
    converged: bool | None = None
    method: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(
            {"ok": self.ok, "type": "equation"},
            root=self.root,
            iterations=self.iterations,
            residual=self.residual,
            converged=self.converged,
            method=self.method,
            error=self.error,
            error_code=self.error_code,
        )

    def __repr__(self) -> str:
        if not self.ok:
            return f"SolveResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        return (
            f"SolveResult(ok=True, root={self.root!r}, converged={self.converged!r}, "
            f"method={self.method!r}, iterations={self.iterations!r})"
        )


@dataclass
class PolynomialResult:
    """Result of solving a polynomial equation in closed form."""

    ok: bool
    degree: int | None = None
    real_roots: list[float] | None = None
    complex_roots: list[str] | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(
            {"ok": self.ok, "type": "polynomial"},
            degree=self.degree,
            real_roots=self.real_roots,
            complex_roots=self.complex_roots,
            error=self.error,
            error_code=self.error_code,
        )


@dataclass
class InequalityResult:
    """Result of solving a polynomial inequality."""

    ok: bool
    notation: str | None = None
    intervals: list[str] | None = None
    critical_points: list[float] | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(
            {"ok": self.ok, "type": "inequality"},
            solution=self.notation,
            intervals=self.intervals,
            critical_points=self.critical_points,
            error=self.error,
            error_code=self.error_code,
        )

    def __repr__(self) -> str:
        if not self.ok:
            return f"InequalityResult(ok=False, error={self.error!r})"
        return f"InequalityResult(ok=True, notation={self.notation!r})"


@dataclass
class SystemResult:
    """Result of solving a square linear system.

    ``kind`` is one of ``"unique"``, ``"no_solution"`` or ``"infinite"``; the
    last two are successful outcomes, not failures.
    """

    ok: bool
    kind: str | None = None
    values: list[float] | None = None
    description: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return _compact(
            {"ok": self.ok, "type": "system"},
            kind=self.kind,
            values=self.values,
            description=self.description,
            error=self.error,
            error_code=self.error_code,
        )
