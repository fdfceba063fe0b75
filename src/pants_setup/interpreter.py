# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Select the Python interpreter that will host Pants."""

from __future__ import annotations

import ast
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .config import PantsConfig
from .console import LOGGER
from .errors import IncompatibleInterpreterError, InterpreterProbeError, MissingExecutableError
from .process import CommandOptions, SubprocessExecutionError, run_command
from .settings import BootstrapSettings
from .versioning import major_minor

Which = Callable[[str], str | None]

VERSION_COMPONENTS: Final[int] = 2
PROBE_SCRIPT: Final[str] = "import sys; sys.stdout.write(str(tuple(sys.version_info[:2])))"

# Interpreter suffixes accepted per Pants release line, in preference order.
# Rows are ``(major, max_minor_inclusive, candidates)``; anything that matches
# no row falls through to :data:`DEFAULT_CANDIDATES`.
COMPATIBILITY_TABLE: Final[tuple[tuple[int, int, tuple[str, ...]], ...]] = (
    (1, 14, ("2.7",)),
    (1, 15, ("3.6", "2.7")),
    (1, 16, ("3.6", "3.7", "2.7")),
)
DEFAULT_CANDIDATES: Final[tuple[str, ...]] = ("3.6", "3.7")


@dataclass(frozen=True, slots=True)
class Interpreter:
    """Interpreter chosen for an invocation.

    Attributes:
        name: Binary name or path that was requested, e.g. ``python3.7``.
        path: Absolute path the name resolved to on ``PATH``.
    """

    name: str
    path: Path


def supported_python_versions(pants_version: str) -> tuple[str, ...]:
    """Return acceptable ``X.Y`` interpreter versions for ``pants_version``."""

    major, minor = major_minor(pants_version)
    for row_major, max_minor, candidates in COMPATIBILITY_TABLE:
        if major == row_major and minor <= max_minor:
            return candidates
    return DEFAULT_CANDIDATES


def describe_versions(versions: tuple[str, ...]) -> str:
    """Render ``versions`` as ``"2.7"``, ``"2.7 or 3.6"`` or ``"2.7, 3.6, or 3.7"``."""

    ordered = sorted(versions, key=lambda value: tuple(int(part) for part in value.split(".")))
    if len(ordered) == 1:
        return ordered[0]
    if len(ordered) == 2:
        return f"{ordered[0]} or {ordered[1]}"
    return f"{', '.join(ordered[:-1])}, or {ordered[-1]}"


class InterpreterResolver:
    """Apply the override, config and compatibility-table rules in order."""

    def __init__(self, settings: BootstrapSettings, config: PantsConfig, *, which: Which = shutil.which) -> None:
        self._settings = settings
        self._config = config
        self._which = which

    def resolve(self, pants_version: str) -> Interpreter:
        """Return the interpreter to use for ``pants_version``.

        Raises:
            MissingExecutableError: If an explicitly requested interpreter is
                not on ``PATH``.
            IncompatibleInterpreterError: If no table candidate is on ``PATH``.
        """

        if self._settings.python_override is not None:
            LOGGER.debug("Using interpreter from PYTHON: %s", self._settings.python_override)
            return self._require(self._settings.python_override)

        if self._config.runtime_python_version:
            name = f"python{self._config.runtime_python_version}"
            LOGGER.debug("Using interpreter from config: %s", name)
            return self._require(name)

        return self._default_for(pants_version)

    def _default_for(self, pants_version: str) -> Interpreter:
        candidates = supported_python_versions(pants_version)
        for version in candidates:
            name = f"python{version}"
            found = self._which(name)
            if found:
                LOGGER.debug("Using default interpreter %s at %s", name, found)
                return Interpreter(name=name, path=Path(found))
        raise IncompatibleInterpreterError(
            "No valid Python interpreter found. For this Pants version, "
            f"Pants requires Python {describe_versions(candidates)}."
        )

    def _require(self, name: str) -> Interpreter:
        found = self._which(name)
        if not found:
            raise MissingExecutableError(name)
        return Interpreter(name=name, path=Path(found))


def probe_major_minor(interpreter: Interpreter) -> tuple[int, int]:
    """Run ``interpreter`` and return its ``(major, minor)`` version.

    Raises:
        InterpreterProbeError: If the interpreter fails or reports garbage.
    """

    try:
        completed = run_command(
            [str(interpreter.path), "-c", PROBE_SCRIPT],
            options=CommandOptions(capture_output=True),
        )
    except (OSError, SubprocessExecutionError) as exc:
        raise InterpreterProbeError(f"Unable to run {interpreter.path}: {exc}") from exc

    text = completed.stdout.strip()
    try:
        parsed = ast.literal_eval(text)
    except (ValueError, SyntaxError) as exc:
        raise InterpreterProbeError(f"Unexpected version payload from {interpreter.path}: {text!r}") from exc
    if not (
        isinstance(parsed, tuple)
        and len(parsed) == VERSION_COMPONENTS
        and all(isinstance(item, int) for item in parsed)
    ):
        raise InterpreterProbeError(f"Unexpected version payload from {interpreter.path}: {text!r}")
    major, minor = parsed
    return major, minor


__all__ = [
    "COMPATIBILITY_TABLE",
    "DEFAULT_CANDIDATES",
    "Interpreter",
    "InterpreterResolver",
    "describe_versions",
    "probe_major_minor",
    "supported_python_versions",
]
