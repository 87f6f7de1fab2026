"""Main entry point for running calccore as a module.

This allows running calccore with:
    python -m calccore
    python -m calccore --health-check
    python -m calccore -e "2+2"
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
