# topmark:header:start
#
#   project      : PubSniff
#   file         : noxfile.py
#   file_relpath : noxfile.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff project automation via Nox.

Sessions:
  - `qa`: Per-Python session that runs pytest and pyright.
  - `property_test`: Hypothesis property tests only.
  - `lint`: Ruff static analysis.
  - `lint_fixall`: Ruff lint autofix.
  - `format_check`: Verify formatting (ruff).
  - `format`: Apply formatting (ruff).
  - `package_check`: Build sdist/wheel and validate metadata (twine).

Common invocations:
  - `nox -s lint`
  - `nox -s qa` (runs for all configured Python versions)
"""

from __future__ import annotations

import pathlib
import sys
import warnings
from typing import TYPE_CHECKING, Any, cast

import nox

if TYPE_CHECKING:
    from collections.abc import Callable

if sys.version_info >= (3, 11):
    import tomllib

    _toml_loads = cast("Callable[[str], dict[str, Any]]", tomllib.loads)
else:
    import tomlkit

    _toml_loads = cast("Callable[[str], dict[str, Any]]", lambda s: tomlkit.parse(s).unwrap())

CURRENT_PYTHON_VERSION: str = f"{sys.version_info[0]}.{sys.version_info[1]}"

TEST_EXTRA: str = ".[test]"
DEV_TOOLS: tuple[str, ...] = ("pyright", "ruff")


def _parse_pyproject_toml() -> dict[str, Any]:
    """Parse `pyproject.toml` (at noxfile import time, without project dependencies)."""
    path: pathlib.Path = pathlib.Path(__file__).parent / "pyproject.toml"
    if not path.exists():
        return {}
    try:
        return _toml_loads(path.read_text(encoding="utf-8"))
    except ValueError:
        return {}


def get_supported_pythons() -> list[str]:
    """Resolve supported Python versions from `pyproject.toml` classifiers.

    Returns:
        list[str]: Supported versions like ["3.10", "3.11", ...], sorted.
    """
    project: Any = _parse_pyproject_toml().get("project")
    classifiers: Any = project.get("classifiers") if isinstance(project, dict) else None
    if not isinstance(classifiers, list):
        warnings.warn(
            f"No classifiers in pyproject.toml. Falling back to Python {CURRENT_PYTHON_VERSION}.",
            RuntimeWarning,
            stacklevel=2,
        )
        return [CURRENT_PYTHON_VERSION]

    prefix = "Programming Language :: Python :: "
    versions: set[str] = set()
    for c in cast("list[str]", classifiers):
        if not c.startswith(prefix):
            continue
        parts: list[str] = c.removeprefix(prefix).strip().split(".")
        if len(parts) == 2 and all(p.isdigit() for p in parts):
            versions.add(f"{int(parts[0])}.{int(parts[1])}")

    out: list[str] = sorted(versions, key=lambda s: tuple(int(p) for p in s.split(".")))
    return out or [CURRENT_PYTHON_VERSION]


PYTHONS: list[str] = get_supported_pythons()

nox.options.sessions = ["lint", "format_check"]


@nox.session(python=PYTHONS)
def qa(session: nox.Session) -> None:
    """Run tests + pyright (per Python version)."""
    session.log("Supported Python versions: " + ", ".join(PYTHONS))
    session.install("-e", TEST_EXTRA, *DEV_TOOLS)

    session.run("pytest", "-q", "tests", *session.posargs)

    py_ver = session.python
    if not isinstance(py_ver, str) or not py_ver:
        raise RuntimeError(f"Unexpected session.python value: {py_ver!r}")
    session.run("pyright", "--pythonversion", py_ver)


@nox.session
def property_test(session: nox.Session) -> None:
    """Run the hypothesis property tests."""
    session.install("-e", TEST_EXTRA)
    session.run("pytest", "-vv", "tests", "-m", "hypothesis", *session.posargs)


@nox.session
def lint(session: nox.Session) -> None:
    """Static analysis."""
    session.install("ruff")
    session.run("ruff", "check", ".")


@nox.session
def lint_fixall(session: nox.Session) -> None:
    """Run ruff with --fix (auto-fix lint issues)."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")


@nox.session
def format_check(session: nox.Session) -> None:
    """Check code formatting."""
    session.install("ruff")
    session.run("ruff", "format", "--check", ".")


@nox.session
def format(session: nox.Session) -> None:
    """Format code (auto-fix)."""
    session.install("ruff")
    session.run("ruff", "format", ".")


@nox.session(python=CURRENT_PYTHON_VERSION)
def package_check(session: nox.Session) -> None:
    """Build sdist/wheel and validate distribution metadata (twine)."""
    session.install("build", "twine")
    session.run("python", "-c", "import shutil; shutil.rmtree('dist', ignore_errors=True)")
    session.run("python", "-m", "build", "--sdist", "--wheel")
    session.run("twine", "check", "dist/*")
