"""Centralized configuration for calccore.

This module defines:
- Input validation limits (length, nesting depth)
- Numerical solver defaults (iterations, tolerance, timeout)
- Output formatting options

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with CALCCORE_)
"""

import os

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("calccore")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("CALCCORE_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("CALCCORE_MAX_EXPRESSION_DEPTH", "100")
)  # parser nesting
MAX_TREE_DEPTH = int(os.getenv("CALCCORE_MAX_TREE_DEPTH", "500"))  # evaluator recursion

# Numerical solver defaults
MAX_ITERATIONS = int(os.getenv("CALCCORE_MAX_ITERATIONS", "100"))
SOLVER_TOLERANCE = float(os.getenv("CALCCORE_SOLVER_TOLERANCE", "1e-12"))
DERIVATIVE_STEP = float(os.getenv("CALCCORE_DERIVATIVE_STEP", "1e-8"))
SOLVER_TIMEOUT = float(os.getenv("CALCCORE_SOLVER_TIMEOUT", "5.0"))  # seconds
MAX_BRACKET_EXPANSIONS = int(os.getenv("CALCCORE_MAX_BRACKET_EXPANSIONS", "50"))
BRACKET_GROWTH_FACTOR = float(os.getenv("CALCCORE_BRACKET_GROWTH_FACTOR", "1.6"))

# Root handling tolerances
ROOT_DEDUP_TOLERANCE = float(
    os.getenv("CALCCORE_ROOT_DEDUP_TOLERANCE", "1e-6")
)  # For deduplicating critical points
ROOT_VERIFY_TOLERANCE = float(
    os.getenv("CALCCORE_ROOT_VERIFY_TOLERANCE", "1e-8")
)  # Residual accepted by verify_root

# Output and evaluation
OUTPUT_PRECISION = int(os.getenv("CALCCORE_OUTPUT_PRECISION", "10"))
DEFAULT_ANGLE_MODE = os.getenv("CALCCORE_DEFAULT_ANGLE_MODE", "degrees")

# Table and series limits
MAX_TABLE_ROWS = int(os.getenv("CALCCORE_MAX_TABLE_ROWS", "1000"))
MAX_SERIES_TERMS = int(os.getenv("CALCCORE_MAX_SERIES_TERMS", "10000000"))
