# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell-free ``subprocess`` wrapper used for provisioning and launching."""

from __future__ import annotations

import shutil
import subprocess  # nosec B404 - argument lists only, never shell=True
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess

from .console import LOGGER


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Execution options for :func:`run_command`.

    Attributes:
        cwd: Working directory for the child, ``None`` to inherit.
        env: Complete child environment, ``None`` to inherit.
        check: Raise :class:`SubprocessExecutionError` on non-zero exit.
        capture_output: Capture stdout and stderr instead of inheriting them.
        stdout_to_stderr: Redirect the child's stdout onto our stderr so
            provisioning chatter never reaches the caller's stdout.
    """

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    check: bool = True
    capture_output: bool = False
    stdout_to_stderr: bool = False


class SubprocessExecutionError(RuntimeError):
    """Raised when a checked subprocess exits with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: str | None,
    ) -> None:
        """Initialise the error with the failing command metadata.

        Args:
            command: Normalised command sequence that was executed.
            returncode: Exit status reported by the subprocess.
            stderr: Captured standard error, when output was captured.
        """

        detail = f" stderr: {stderr.strip()}" if stderr else ""
        super().__init__(f"Command '{' '.join(command)}' exited with status {returncode}.{detail}")
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr


def _normalize_args(args: Sequence[str]) -> list[str]:
    """Resolve the executable in ``args`` to an absolute path.

    Raises:
        ValueError: If ``args`` is empty.
        FileNotFoundError: If a bare executable name is not on ``PATH``.
    """

    if not args:
        raise ValueError("subprocess command requires at least one argument")

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    options: CommandOptions | None = None,
) -> CompletedProcess[str]:
    """Execute ``args`` without a shell.

    Args:
        args: Command and arguments. Arguments are passed through untouched.
        options: Execution options; defaults to :class:`CommandOptions`.

    Returns:
        CompletedProcess[str]: Execution metadata for the finished child.

    Raises:
        FileNotFoundError: If the executable cannot be resolved.
        SubprocessExecutionError: When ``check`` is set and the child fails.
    """

    resolved = options or CommandOptions()
    normalized = _normalize_args(args)
    LOGGER.debug("Executing: %s", normalized)
    stdout = sys.stderr if resolved.stdout_to_stderr and not resolved.capture_output else None
    completed: CompletedProcess[str] = subprocess.run(  # nosec B603 - controlled argument list
        normalized,
        cwd=str(resolved.cwd) if resolved.cwd is not None else None,
        env=dict(resolved.env) if resolved.env is not None else None,
        check=False,
        capture_output=resolved.capture_output,
        stdout=stdout,
        text=True,
    )
    LOGGER.debug("Exit status %s from %s", completed.returncode, normalized[0])

    if resolved.check and completed.returncode != 0:
        raise SubprocessExecutionError(
            normalized,
            completed.returncode,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )
    return completed


__all__ = ["CommandOptions", "SubprocessExecutionError", "run_command"]
