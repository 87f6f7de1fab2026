"""calccore package: expression parsing and evaluation plus numerical solvers."""

__all__ = [
    "config",
    "types",
    "logging_config",
    "tokens",
    "lexer",
    "ast_nodes",
    "parser",
    "evaluator",
    "number_functions",
    "complex_number",
    "polynomial",
    "numerical",
    "linear_system",
    "inequality",
    "calculus",
    "plotting",
    "api",
    "cli",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "solve_equation",
    "solve_polynomial",
    "solve_inequality",
    "solve_system",
    "validate_expression",
    "diff",
    "integrate_expr",
    "plot",
]
