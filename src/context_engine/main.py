"""
Main entry point for the Context Engine CLI application.

This module provides the main entry point that is called from the installed
``context-engine`` console script or via ``python -m context_engine.main``.
"""

import sys
from typing import List, Optional

from .cli import parse_args, handle_cli_command


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and run one CLI command."""
    args = parse_args(argv)
    return handle_cli_command(args)


if __name__ == "__main__":
    sys.exit(main())
