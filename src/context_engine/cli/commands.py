"""
Command-line argument parser for the Context Engine.

This module defines all CLI sub-commands and arguments; the handlers live in
``handlers.py``.
"""

import argparse
from typing import List, Optional


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="context-engine",
        description="Context Engine MCP - multi-tenant context, tools and similarity search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  context-engine process "store context theme=dark"
  context-engine --tenant acme retrieve theme
  context-engine execute calculator --param expression="15% of 1200"
  context-engine index "Wireless noise-cancelling headphones" --type products
  context-engine search "headphones" --type products --limit 5
        """
    )

    # Basic options
    parser.add_argument(
        "--version",
        action="version",
        version="Context Engine MCP 0.1.0"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--tenant",
        type=str,
        metavar="NAME",
        help="Tenant to operate on (defaults to context.default_tenant)"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    process = subparsers.add_parser("process", help="Classify and run a free-text command")
    process.add_argument("text", help="Command text")
    process.add_argument("--timeout", type=float, metavar="SECONDS", help="Deadline for the command")

    store = subparsers.add_parser("store", help="Store a context value")
    store.add_argument("key", help="Context key")
    store.add_argument("value", help="Value (parsed as JSON when possible)")

    retrieve = subparsers.add_parser("retrieve", help="Retrieve a context value")
    retrieve.add_argument("key", help="Context key")

    subparsers.add_parser("clear", help="Clear the tenant's context")

    tools = subparsers.add_parser("tools", help="List available tools")
    tools.add_argument("--category", type=str, help="Only list tools of this category")

    execute = subparsers.add_parser("execute", help="Execute a tool")
    execute.add_argument("tool", help="Tool name")
    execute.add_argument(
        "--param", "-p",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Tool parameter (repeatable; values parsed as JSON when possible)"
    )

    index = subparsers.add_parser("index", help="Index a document for similarity search")
    index.add_argument("content", help="Document text")
    index.add_argument("--type", type=str, help="Document type used for filtering")
    index.add_argument("--id", dest="document_id", type=str, help="Document id (generated when omitted)")

    search = subparsers.add_parser("search", help="Find similar documents")
    search.add_argument("query", help="Query text")
    search.add_argument("--type", type=str, help="Only return documents of this type")
    search.add_argument("--limit", type=int, help="Maximum number of results")

    subparsers.add_parser("resources", help="List available resources")
    subparsers.add_parser("health", help="Report service health")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = create_parser()
    return parser.parse_args(argv)
