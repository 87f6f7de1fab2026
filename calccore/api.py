"""Public API for calccore - returns structured result objects instead of raising.

Every function converts ``CalculatorError`` into a failed result carrying the
error message and code, so callers branch on ``result.ok``. Anything else
that escapes the core is logged with its traceback and reported as
``INTERNAL_ERROR``.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from . import calculus, inequality, linear_system, numerical, plotting, polynomial
from .ast_nodes import BinaryOpNode, free_variables
from .evaluator import AngleMode, EvaluationContext, Evaluator
from .logging_config import get_logger
from .parser import format_number, parse
from .tokens import BinaryOperator
from .types import (
    CalculatorError,
    EvalResult,
    InequalityResult,
    PolynomialResult,
    SolveResult,
    SystemResult,
    ValidationError,
)

logger = get_logger("api")


def _failure(result_type: type, error: Exception, operation: str) -> Any:
    if isinstance(error, CalculatorError):
        logger.debug("%s failed: [%s] %s", operation, error.code, error.message)
        return result_type(ok=False, error=error.message, error_code=error.code)
    logger.error(f"Unexpected error in {operation}: {error}", exc_info=True)
    return result_type(ok=False, error=f"{operation} failed unexpectedly", error_code="INTERNAL_ERROR")


def _angle_mode(angle_mode: AngleMode | str | None) -> AngleMode | None:
    if angle_mode is None or isinstance(angle_mode, AngleMode):
        return angle_mode
    try:
        return AngleMode(angle_mode.lower())
    except ValueError:
        raise ValidationError(
            f"Unknown angle mode '{angle_mode}' (expected degrees, radians or gradians)"
        ) from None


def make_context(
    angle_mode: AngleMode | str | None = None,
    variables: Mapping[str, float] | None = None,
    last_answer: float = 0.0,
    previous_answer: float = 0.0,
) -> EvaluationContext:
    """Build an evaluation context; ``angle_mode=None`` uses the configured default."""
    mode = _angle_mode(angle_mode)
    options = {} if mode is None else {"angle_mode": mode}
    return EvaluationContext(
        variables=dict(variables or {}),
        last_answer=float(last_answer),
        previous_answer=float(previous_answer),
        **options,
    )


def evaluate(
    expression: str,
    angle_mode: AngleMode | str | None = None,
    variables: Mapping[str, float] | None = None,
    last_answer: float = 0.0,
    previous_answer: float = 0.0,
) -> EvalResult:
    """Evaluate a mathematical expression.

    Args:
        expression: Expression string (e.g., "2+3×sin(30)", "5!", "3√8")
        angle_mode: "degrees", "radians" or "gradians" (default from config)
        variables: Variable bindings
        last_answer: Value of ``Ans``
        previous_answer: Value of ``PreAns``

    Returns:
        EvalResult with the value and its display string

    Example:
        >>> evaluate("2^10").formatted
        '1024'
        >>> evaluate("1/0").error_code
        'DIVISION_BY_ZERO'
    """
    try:
        context = make_context(angle_mode, variables, last_answer, previous_answer)
        value = Evaluator(context).evaluate(parse(expression))
        return EvalResult(ok=True, value=value, formatted=format_number(value))
    except Exception as e:
        return _failure(EvalResult, e, "Evaluation")


def _equation_to_zero_form(expression: str):
    """Parse ``lhs = rhs`` as lhs - rhs; an expression without '=' is used as is."""
    sides = expression.split("=")
    if len(sides) > 2:
        raise ValidationError("Equation may contain at most one '='")
    if len(sides) == 1:
        return parse(expression)
    lhs, rhs = sides
    if not lhs.strip() or not rhs.strip():
        raise ValidationError("Both sides of the equation must be non-empty")
    return BinaryOpNode(BinaryOperator.SUBTRACT, parse(lhs), parse(rhs))


def solve_equation(
    expression: str,
    variable: str = "x",
    guess: float = 0.0,
    method: str = "auto",
    lower: float | None = None,
    upper: float | None = None,
    angle_mode: AngleMode | str | None = None,
) -> SolveResult:
    """Numerically solve one equation in one variable.

    Args:
        expression: ``f(x)`` meaning f(x) = 0, or ``lhs = rhs``
        variable: Variable to solve for
        guess: Initial guess for open methods
        method: "auto", "newton", "bisection", "secant", "brent" or "halley"
        lower: Bracket lower end (bisection, brent)
        upper: Bracket upper end (bisection, brent)
        angle_mode: Angle mode for trigonometric functions

    Returns:
        SolveResult; running out of iterations is a success with ``converged=False``

    Example:
        >>> round(solve_equation("x^2 = 2", guess=1).root, 10)
        1.4142135624
    """
    try:
        node = _equation_to_zero_form(expression)
        if variable not in free_variables(node):
            raise ValidationError(f"Equation does not contain variable '{variable}'")
        solution = numerical.solve_expression(
            node,
            variable=variable,
            initial_guess=float(guess),
            context=make_context(angle_mode),
            method=method,
            lower=lower,
            upper=upper,
        )
        return SolveResult(
            ok=True,
            root=solution.root,
            iterations=solution.iterations,
            residual=solution.residual,
            converged=solution.converged,
            method=solution.method,
        )
    except Exception as e:
        return _failure(SolveResult, e, "Solving")


def solve_polynomial(coefficients: Sequence[float]) -> PolynomialResult:
    """Find all roots of a polynomial of degree 1 to 4.

    Real roots are returned sorted; complex roots as display strings.

    Example:
        >>> solve_polynomial([1, -3, 2]).real_roots
        [1.0, 2.0]
        >>> solve_polynomial([1, 0, 1]).complex_roots
        ['i', '-i']
    """
    try:
        roots = polynomial.solve_polynomial(coefficients)
        return PolynomialResult(
            ok=True,
            degree=roots.degree,
            real_roots=sorted(roots.real_roots),
            complex_roots=[str(root) for root in roots.complex_roots],
        )
    except Exception as e:
        return _failure(PolynomialResult, e, "Polynomial solving")


def solve_inequality(
    coefficients: Sequence[float], operator: inequality.ComparisonOperator | str
) -> InequalityResult:
    """Solve p(x) <operator> 0.

    Example:
        >>> solve_inequality([1, 0, -4], ">=").notation
        '(-∞, -2] ∪ [2, ∞)'
    """
    try:
        solution = inequality.solve_inequality(coefficients, operator)
        return InequalityResult(
            ok=True,
            notation=solution.notation,
            intervals=[str(interval) for interval in solution.intervals],
            critical_points=list(solution.critical_points),
        )
    except Exception as e:
        return _failure(InequalityResult, e, "Inequality solving")


def solve_system(
    coefficients: Sequence[Sequence[float]], constants: Sequence[float]
) -> SystemResult:
    """Solve a square linear system of 2 to 4 unknowns.

    "no_solution" and "infinite" are successful outcomes (``ok=True``).

    Example:
        >>> solve_system([[1, 1], [1, -1]], [5, 1]).values
        [3.0, 2.0]
    """
    try:
        solution = linear_system.solve_linear_system(coefficients, constants)
        return SystemResult(
            ok=True,
            kind=solution.kind.value,
            values=solution.values if solution.is_unique else None,
            description=solution.description or None,
        )
    except Exception as e:
        return _failure(SystemResult, e, "System solving")


def validate_expression(expression: str) -> tuple[bool, str | None]:
    """Check that an expression parses, without evaluating it.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_expression("2 + 2")
        (True, None)
        >>> validate_expression("2 +")
        (False, 'Unexpected end of input')
    """
    try:
        parse(expression)
        return True, None
    except CalculatorError as e:
        return False, e.message
    except Exception as e:
        logger.warning(f"Unexpected validation error: {e}", exc_info=True)
        return False, "Unexpected validation error"


def diff(
    expression: str,
    at: float,
    variable: str = "x",
    order: int = 1,
    angle_mode: AngleMode | str | None = None,
) -> EvalResult:
    """Numerical derivative of the given order (1 to 4) at a point.

    Example:
        >>> diff("x^3", 2).formatted
        '12'
    """
    try:
        result = calculus.differentiate_expression(
            expression, float(at), variable, make_context(angle_mode), order
        )
        return EvalResult(ok=True, value=result.value, formatted=format_number(result.value))
    except Exception as e:
        return _failure(EvalResult, e, "Differentiation")


def integrate_expr(
    expression: str,
    lower: float,
    upper: float,
    variable: str = "x",
    angle_mode: AngleMode | str | None = None,
) -> EvalResult:
    """Definite integral over [lower, upper].

    Example:
        >>> integrate_expr("2x", 0, 3).formatted
        '9'
    """
    try:
        result = calculus.integrate_expression(
            expression, float(lower), float(upper), variable, make_context(angle_mode)
        )
        return EvalResult(ok=True, value=result.value, formatted=format_number(result.value))
    except Exception as e:
        return _failure(EvalResult, e, "Integration")


def plot(
    expression: str,
    variable: str = "x",
    x_min: float = -10,
    x_max: float = 10,
    ascii: bool = False,
    angle_mode: AngleMode | str | None = None,
) -> EvalResult:
    """Plot a single-variable function.

    With ``ascii=True`` the result's ``formatted`` field holds the text plot,
    otherwise the path of the saved PNG.
    """
    try:
        context = make_context(angle_mode)
        if ascii:
            text = plotting.ascii_plot(expression, x_min, x_max, variable, context)
        else:
            text = plotting.plot_function(expression, x_min, x_max, variable, context=context)
        return EvalResult(ok=True, formatted=text)
    except Exception as e:
        return _failure(EvalResult, e, "Plotting")
