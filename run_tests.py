#!/usr/bin/env python3
"""
Test runner script for the Context Engine test suite.

This script provides various ways to run the tests with different
marker selections and reporting options.
"""

import argparse
import subprocess
import sys
from pathlib import Path


def run_tests(args):
    """Run the test suite with specified options."""

    # Base pytest command
    cmd = [sys.executable, "-m", "pytest", "src/context_engine/tests"]

    # Add verbosity
    if args.verbose:
        cmd.extend(["-v", "-s", "--capture=no"])
    else:
        cmd.append("-v")

    # Add specific test categories
    markers = []
    if args.unit:
        markers.append("unit")
    elif args.integration:
        markers.append("integration")
    elif args.concurrency:
        markers.append("concurrency")

    # Exclude slow tests unless specifically requested
    if not args.include_slow:
        markers.append("not slow")

    if markers:
        cmd.extend(["-m", " and ".join(markers)])

    # Add coverage reporting
    if args.coverage:
        cmd.extend([
            "--cov=context_engine",
            "--cov-report=html",
            "--cov-report=term-missing"
        ])

    # Add any additional pytest args
    if args.pytest_args:
        cmd.extend(args.pytest_args.split())

    print(f"Running command: {' '.join(cmd)}")
    print("-" * 60)

    try:
        result = subprocess.run(cmd, cwd=Path(__file__).parent)
        return result.returncode
    except KeyboardInterrupt:
        print("\nTests interrupted by user")
        return 1


def main():
    parser = argparse.ArgumentParser(description="Run the Context Engine tests")

    category = parser.add_mutually_exclusive_group()
    category.add_argument("--unit", action="store_true", help="Run unit tests only")
    category.add_argument("--integration", action="store_true", help="Run integration tests only")
    category.add_argument("--concurrency", action="store_true", help="Run concurrency tests only")

    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--coverage", action="store_true", help="Generate coverage report")
    parser.add_argument("--include-slow", action="store_true", help="Include slow tests")
    parser.add_argument("--pytest-args", type=str, help="Additional arguments passed to pytest")

    args = parser.parse_args()
    return run_tests(args)


if __name__ == "__main__":
    sys.exit(main())
