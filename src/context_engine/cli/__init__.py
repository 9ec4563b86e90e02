"""
CLI module for the Context Engine.

This module contains the command-line interface: argument parsing in
``commands`` and the service-backed handlers in ``handlers``.
"""

from .commands import create_parser, parse_args
from .handlers import handle_cli_command, parse_params

__all__ = ["create_parser", "parse_args", "handle_cli_command", "parse_params"]
