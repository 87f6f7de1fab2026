"""Function value tables and plots for single-variable expressions."""

from __future__ import annotations

import csv
import io
import math
import tempfile
from dataclasses import dataclass, field

import numpy as np

try:
    # Non-GUI backend must be selected before pyplot is imported
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from . import config
from .ast_nodes import Node
from .evaluator import EvaluationContext, Evaluator
from .logging_config import get_logger
from .parser import parse
from .types import CalculatorError, ValidationError

logger = get_logger("plotting")

ASCII_ROWS = 20
ASCII_COLS = 60
PLOT_VALUE_LIMIT = 1e10


@dataclass(frozen=True)
class TableRow:
    """One x value with f(x) and g(x); a failed cell has a value of None and an error message."""

    x: float
    fx: float | None = None
    gx: float | None = None
    f_error: str | None = None
    g_error: str | None = None


@dataclass
class FunctionTable:
    f_expression: str
    g_expression: str | None = None
    variable: str = "x"
    rows: list[TableRow] = field(default_factory=list)

    @property
    def has_g(self) -> bool:
        return self.g_expression is not None


def _row_count(start: float, end: float, step: float) -> int:
    if not all(math.isfinite(v) for v in (start, end, step)):
        raise ValidationError("Table range must be finite")
    if step <= 0:
        raise ValidationError("Step must be positive")
    if end < start:
        raise ValidationError("End must be greater than or equal to start")
    # Slack absorbs rounding in (end - start) / step
    count = int(math.floor((end - start) / step + 1e-9)) + 1
    if count > config.MAX_TABLE_ROWS:
        raise ValidationError(f"Too many rows (max {config.MAX_TABLE_ROWS})")
    return count


def _evaluate_cell(evaluator: Evaluator, node: Node | None) -> tuple[float | None, str | None]:
    if node is None:
        return None, None
    try:
        return evaluator.evaluate(node), None
    except CalculatorError as e:
        return None, e.message


def generate_table(
    f_expression: str,
    start: float,
    end: float,
    step: float,
    g_expression: str | None = None,
    context: EvaluationContext | None = None,
    variable: str = "x",
) -> FunctionTable:
    """Tabulate f (and optionally g) at start, start + step, ... up to end.

    Args:
        f_expression: Expression for f, in terms of ``variable``
        start: First x value
        end: Last x value (inclusive when reached by whole steps)
        step: Positive increment
        g_expression: Optional second expression
        context: Context supplying angle mode and other bindings
        variable: Name of the swept variable

    Returns:
        FunctionTable whose rows record per-cell evaluation errors

    Raises:
        ValidationError: On an empty f, a non-positive step, a reversed range or
            more than ``MAX_TABLE_ROWS`` rows
        ParseError: If either expression does not parse
    """
    if not f_expression or not f_expression.strip():
        raise ValidationError("f(x) expression cannot be empty")
    count = _row_count(start, end, step)
    if g_expression is not None and not g_expression.strip():
        g_expression = None

    f_node = parse(f_expression)
    g_node = parse(g_expression) if g_expression is not None else None
    base = context if context is not None else EvaluationContext()

    table = FunctionTable(f_expression, g_expression, variable)
    for i in range(count):
        x = start + i * step
        evaluator = Evaluator(base.with_variable(variable, x))
        fx, f_error = _evaluate_cell(evaluator, f_node)
        gx, g_error = _evaluate_cell(evaluator, g_node)
        table.rows.append(TableRow(x, fx, gx, f_error, g_error))
    logger.debug("Generated %d table rows for %s", count, f_expression)
    return table


def _csv_number(value: float) -> str:
    if value == math.floor(value) and abs(value) < 1e10:
        return f"{value + 0.0:.0f}"
    return f"{value:.10g}"


def table_to_csv(table: FunctionTable) -> str:
    """Export a table as CSV with an ``Error`` cell wherever evaluation failed."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    v = table.variable
    header = [v, f"f({v})"] + ([f"g({v})"] if table.has_g else [])
    writer.writerow(header)
    for row in table.rows:
        cells = [_csv_number(row.x), "Error" if row.fx is None else _csv_number(row.fx)]
        if table.has_g:
            cells.append("Error" if row.gx is None else _csv_number(row.gx))
        writer.writerow(cells)
    return buffer.getvalue()


def sample_function(
    expression: str | Node,
    x_min: float,
    x_max: float,
    points: int = 100,
    variable: str = "x",
    context: EvaluationContext | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate an expression on an even grid; failed points become NaN."""
    if not (math.isfinite(x_min) and math.isfinite(x_max)) or x_min >= x_max:
        raise ValidationError("Plot range must satisfy x_min < x_max")
    if points < 2:
        raise ValidationError("At least 2 sample points are required")
    node = parse(expression) if isinstance(expression, str) else expression
    base = context if context is not None else EvaluationContext()

    xs = np.linspace(x_min, x_max, points)
    ys = np.full(points, np.nan)
    for i, x in enumerate(xs):
        try:
            ys[i] = Evaluator(base.with_variable(variable, float(x))).evaluate(node)
        except CalculatorError:
            continue
    return xs, ys


def ascii_plot(
    expression: str,
    x_min: float = -10,
    x_max: float = 10,
    variable: str = "x",
    context: EvaluationContext | None = None,
    rows: int = ASCII_ROWS,
    cols: int = ASCII_COLS,
) -> str:
    """Render a text plot of the expression, one sample per column.

    Raises:
        ValidationError: If no sample has a finite value within ±1e10
    """
    xs, ys = sample_function(expression, x_min, x_max, cols, variable, context)
    visible = np.isfinite(ys) & (np.abs(ys) < PLOT_VALUE_LIMIT)
    if not visible.any():
        raise ValidationError("Cannot plot: function values out of range")

    y_min, y_max = float(ys[visible].min()), float(ys[visible].max())
    y_span = y_max - y_min if y_max != y_min else 1.0
    grid = [[" "] * cols for _ in range(rows)]

    # Row 0 is the top of the plot
    def row_of(y: float) -> int:
        return int(round((y_max - y) / y_span * (rows - 1)))

    def col_of(x: float) -> int:
        return int(round((x - x_min) / (x_max - x_min) * (cols - 1)))

    if y_min <= 0 <= y_max:
        axis_row = row_of(0.0)
        grid[axis_row] = ["-"] * cols
    if x_min <= 0 <= x_max:
        axis_col = col_of(0.0)
        for r in range(rows):
            grid[r][axis_col] = "+" if grid[r][axis_col] == "-" else "|"

    for x, y in zip(xs[visible], ys[visible]):
        grid[row_of(float(y))][col_of(float(x))] = "*"

    return "\n".join("".join(line) for line in grid)


def plot_function(
    expression: str,
    x_min: float = -10,
    x_max: float = 10,
    variable: str = "x",
    points: int = 200,
    output_path: str | None = None,
    context: EvaluationContext | None = None,
) -> str:
    """Save a PNG plot of the expression and return its path.

    Args:
        expression: Function expression to plot (e.g., "x^2", "sin(x)")
        x_min: Minimum x value
        x_max: Maximum x value
        variable: Variable to plot against
        points: Number of sample points
        output_path: Destination file (default: a new temporary .png)
        context: Context supplying angle mode and other bindings

    Raises:
        CalculatorError: If matplotlib is not installed
    """
    if not HAS_MATPLOTLIB:
        raise CalculatorError(
            "matplotlib not installed. Use ascii_plot for a text plot.", "MISSING_DEPENDENCY"
        )
    xs, ys = sample_function(expression, x_min, x_max, points, variable, context)

    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        ax.plot(xs, ys, linewidth=2, color="#2E86AB", label=f"f({variable}) = {expression}")
        ax.set_xlabel(variable, fontsize=12, fontweight="bold")
        ax.set_ylabel(f"f({variable})", fontsize=12, fontweight="bold")
        ax.set_title(f"Plot of {expression}", fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3, linestyle="--")
        ax.axhline(y=0, color="k", linewidth=0.8, alpha=0.3)
        ax.axvline(x=0, color="k", linewidth=0.8, alpha=0.3)
        ax.legend(loc="best", fontsize=10)
        fig.tight_layout()

        if output_path is None:
            with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as handle:
                output_path = handle.name
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.info("Plot of %s saved to %s", expression, output_path)
    return output_path
