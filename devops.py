"""DevOps tasks for phpinictl.

Usage: uv run devops.py <task>
Tasks: fmt, lint, test, smoke, clean
"""

import subprocess
import sys


def _run(commands: list[list[str]]) -> None:
    """Execute a sequence of shell commands, exiting on first failure."""
    for cmd in commands:
        try:
            subprocess.run(cmd, check=True)  # nosec: B603, B607
        except subprocess.CalledProcessError as e:
            print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
            sys.exit(e.returncode)


def format_code() -> None:
    """Format app/ and tests/ with Ruff."""
    _run(
        [
            ["ruff", "format", "app", "tests", "devops.py"],
            ["ruff", "check", "--fix", "app", "tests", "devops.py"],
        ]
    )


def lint() -> None:
    """Check formatting and lint rules without changing files."""
    _run(
        [
            ["ruff", "format", "--check", "app", "tests"],
            ["ruff", "check", "app", "tests"],
        ]
    )


def test() -> None:
    """Run the unit tests with PyTest."""
    _run([["uv", "run", "pytest", "-q", "tests/unit"]])


def smoke() -> None:
    """Run read-only CLI commands against the local machine."""
    _run(
        [
            ["uv", "run", "phpinictl", "--version"],
            ["uv", "run", "phpinictl", "extensions", "--preset", "laravel"],
            ["uv", "run", "phpinictl", "config", "show", "--resolved"],
            # Exits 1 on machines without PHP
            ["uv", "run", "phpinictl", "list"],
        ]
    )


def clean() -> None:
    """Remove caches and build artifacts."""
    _run(
        [
            ["find", ".", "-type", "d", "-name", "__pycache__", "-exec", "rm", "-rf", "{}", "+"],
            ["rm", "-rf", ".pytest_cache", ".ruff_cache", "dist", "build"],
        ]
    )


TASKS = {
    "fmt": format_code,
    "lint": lint,
    "test": test,
    "smoke": smoke,
    "clean": clean,
}


if __name__ == "__main__":
    if len(sys.argv) != 2 or sys.argv[1] not in TASKS:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    TASKS[sys.argv[1]]()
