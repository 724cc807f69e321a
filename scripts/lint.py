#!/usr/bin/env python
"""
Lint script for the campsite-ingest project.
Runs isort, black and flake8 over the sources, then the test suite.

Usage:
    python scripts/lint.py          # check only
    python scripts/lint.py --fix    # let isort and black rewrite files first
"""

import argparse
import subprocess
import sys
from pathlib import Path


def run_command(cmd, description):
    """Run a command, print its output and report whether it passed."""
    print(f"\n=== Running {description} ===")
    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print(result.stderr, file=sys.stderr)

    if result.returncode != 0:
        print(f"{description} failed with exit code {result.returncode}")
        return False

    print(f"{description} passed!")
    return True


def main():
    parser = argparse.ArgumentParser(description="Run code quality checks")
    parser.add_argument("--fix", action="store_true", help="Reformat files instead of checking")
    parser.add_argument("--skip-tests", action="store_true", help="Only run the linters")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    src_dirs = [
        project_root / "src" / "campsite_ingest",
        project_root / "tests",
        project_root / "scripts",
    ]
    src_paths = [str(path) for path in src_dirs if path.exists()]

    check_flag = [] if args.fix else ["--check"]
    results = [
        run_command(["isort", *check_flag, *src_paths], "isort import ordering"),
        run_command(["black", *check_flag, *src_paths], "black code formatting"),
        run_command(["flake8", *src_paths], "flake8 linting"),
    ]

    if not args.skip_tests:
        print("\n=== Running tests ===")
        results.append(subprocess.run(["pytest", "-v"], cwd=project_root).returncode == 0)

    return all(results)


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
