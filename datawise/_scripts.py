"""Dev gates for this repo. Use: uv run check | uv run fix (see pyproject.toml)."""

import subprocess
import sys

SOURCES = ["datawise", "tests"]

CHECK_STEPS = [
    ("lint", ["ruff", "check", *SOURCES]),
    ("format", ["ruff", "format", "--check", *SOURCES]),
    ("types", ["pyright", "datawise"]),
    ("tests", ["pytest", "tests/", "--cov=datawise", "--cov-report=term-missing"]),
]

FIX_STEPS = [
    ("lint", ["ruff", "check", "--fix", *SOURCES]),
    ("format", ["ruff", "format", *SOURCES]),
]


def _run_steps(steps: list[tuple[str, list[str]]]) -> None:
    """Run each step as `python -m <tool>`; exit with the first failing step's code."""
    for name, args in steps:
        print(f"==> {name}: {' '.join(args)}")
        code = subprocess.run([sys.executable, "-m", *args]).returncode
        if code != 0:
            print(f"{name} failed (exit {code})", file=sys.stderr)
            sys.exit(code)
    sys.exit(0)


def check() -> None:
    """Lint, format check, type check, then tests with coverage."""
    _run_steps(CHECK_STEPS)


def fix() -> None:
    """Apply ruff autofixes and formatting."""
    _run_steps(FIX_STEPS)
