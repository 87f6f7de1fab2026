"""Square linear systems of 2 to 4 unknowns by Gaussian elimination."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import numpy as np

from .logging_config import get_logger
from .types import ValidationError

logger = get_logger("linear_system")

EPSILON = 1e-15
MIN_UNKNOWNS = 2
MAX_UNKNOWNS = 4


class SolutionKind(Enum):
    UNIQUE = "unique"
    NO_SOLUTION = "no_solution"
    INFINITE = "infinite"


@dataclass(frozen=True)
class SystemSolution:
    """Outcome of solving a square system.

    ``values`` is filled only for ``UNIQUE``; ``description`` explains an
    ``INFINITE`` outcome.
    """

    kind: SolutionKind
    values: list[float] = field(default_factory=list)
    description: str = ""

    @classmethod
    def unique(cls, values: Sequence[float]) -> SystemSolution:
        return cls(SolutionKind.UNIQUE, [float(v) for v in values])

    @classmethod
    def no_solution(cls) -> SystemSolution:
        return cls(SolutionKind.NO_SOLUTION, description="System has no solution")

    @classmethod
    def infinite(cls, description: str = "System has infinitely many solutions") -> SystemSolution:
        return cls(SolutionKind.INFINITE, description=description)

    @property
    def is_unique(self) -> bool:
        return self.kind is SolutionKind.UNIQUE


def _augmented_matrix(coefficients: Sequence[Sequence[float]], constants: Sequence[float]) -> np.ndarray:
    n = len(coefficients)
    if not MIN_UNKNOWNS <= n <= MAX_UNKNOWNS:
        raise ValidationError(
            f"System must have {MIN_UNKNOWNS}-{MAX_UNKNOWNS} equations (got {n})"
        )
    if len(constants) != n:
        raise ValidationError(
            "Number of constants must match number of equations", code="DIMENSION_MISMATCH"
        )
    if any(len(row) != n for row in coefficients):
        raise ValidationError("Coefficient matrix must be square", code="DIMENSION_MISMATCH")

    try:
        matrix = np.column_stack(
            [np.asarray(coefficients, dtype=float), np.asarray(constants, dtype=float)]
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Coefficients must be numbers: {e}") from e
    if not np.all(np.isfinite(matrix)):
        raise ValidationError("Coefficients and constants must be finite numbers")
    return matrix


def gaussian_elimination(augmented: np.ndarray) -> np.ndarray:
    """Forward elimination with partial pivoting on a copy of ``augmented``.

    Columns whose best pivot is below 1e-15 are skipped, leaving the matrix
    in row echelon form with possible zero rows for the classifier.
    """
    matrix = np.array(augmented, dtype=float)
    n, m = matrix.shape

    for col in range(min(n, m - 1)):
        pivot = col + int(np.argmax(np.abs(matrix[col:, col])))
        if pivot != col:
            matrix[[col, pivot]] = matrix[[pivot, col]]
        if abs(matrix[col, col]) < EPSILON:
            continue
        factors = matrix[col + 1:, col] / matrix[col, col]
        matrix[col + 1:, col:] -= np.outer(factors, matrix[col, col:])
        matrix[col + 1:, col] = 0.0

    return matrix


def back_substitution(matrix: np.ndarray) -> SystemSolution:
    """Classify an eliminated augmented matrix and solve it when the solution is unique."""
    n = matrix.shape[0]
    coefficient_part = np.abs(matrix[:, :-1]) < EPSILON
    constant_part = np.abs(matrix[:, -1])

    if np.any(coefficient_part.all(axis=1) & (constant_part > EPSILON)):
        return SystemSolution.no_solution()
    if np.any((np.abs(matrix) < EPSILON).all(axis=1)):
        return SystemSolution.infinite("System has infinitely many solutions (dependent equations)")
    pivot_count = int(np.count_nonzero(np.abs(np.diag(matrix[:, :n])) > EPSILON))
    if pivot_count < n:
        return SystemSolution.infinite("System has infinitely many solutions (rank deficient)")

    solution = np.zeros(n)
    for i in range(n - 1, -1, -1):
        remainder = matrix[i, n] - matrix[i, i + 1:n] @ solution[i + 1:]
        solution[i] = remainder / matrix[i, i]
    return SystemSolution.unique(solution.tolist())


def solve_linear_system(
    coefficients: Sequence[Sequence[float]], constants: Sequence[float]
) -> SystemSolution:
    """Solve A·x = b for a square 2x2, 3x3 or 4x4 system.

    Args:
        coefficients: Row-major coefficient matrix A
        constants: Right-hand side b

    Returns:
        SystemSolution: unique values, no solution, or infinitely many

    Raises:
        ValidationError: On a non-square matrix, a size outside 2..4 or a
            constants vector of the wrong length

    Example:
        >>> solve_linear_system([[1, 1], [1, -1]], [5, 1]).values
        [3.0, 2.0]
    """
    augmented = _augmented_matrix(coefficients, constants)
    result = back_substitution(gaussian_elimination(augmented))
    logger.debug("Solved %dx%d system: %s", len(coefficients), len(coefficients), result.kind.value)
    return result


def solve_2x2(a1: float, b1: float, c1: float, a2: float, b2: float, c2: float) -> SystemSolution:
    """Solve a1·x + b1·y = c1, a2·x + b2·y = c2."""
    return solve_linear_system([[a1, b1], [a2, b2]], [c1, c2])


def solve_3x3(
    row1: Sequence[float], row2: Sequence[float], row3: Sequence[float]
) -> SystemSolution:
    """Solve three equations given as ``(a, b, c, d)`` rows meaning a·x + b·y + c·z = d."""
    rows = [row1, row2, row3]
    return _solve_rows(rows)


def solve_4x4(
    row1: Sequence[float], row2: Sequence[float], row3: Sequence[float], row4: Sequence[float]
) -> SystemSolution:
    """Solve four equations given as ``(a, b, c, d, e)`` rows."""
    return _solve_rows([row1, row2, row3, row4])


def _solve_rows(rows: list[Sequence[float]]) -> SystemSolution:
    width = len(rows) + 1
    if any(len(row) != width for row in rows):
        raise ValidationError(
            f"Each equation needs {width} values (coefficients then constant)",
            code="DIMENSION_MISMATCH",
        )
    return solve_linear_system([list(row[:-1]) for row in rows], [row[-1] for row in rows])


def determinant(coefficients: Sequence[Sequence[float]]) -> float:
    matrix = np.asarray(coefficients, dtype=float)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValidationError("Determinant requires a square matrix", code="DIMENSION_MISMATCH")
    return float(np.linalg.det(matrix))
