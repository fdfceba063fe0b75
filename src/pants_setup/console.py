# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing console output and debug logging for the bootstrapper.

Everything the bootstrapper prints goes to stderr; stdout belongs to Pants.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Literal, TextIO

from rich.console import Console
from rich.text import Text

LOGGER = logging.getLogger("pants_setup")


def detect_tty(stream: TextIO | None = None) -> bool:
    """Return ``True`` when ``stream`` (stderr by default) is a terminal.

    Args:
        stream: Stream to inspect. ``None`` selects :data:`sys.stderr`.

    Returns:
        bool: ``True`` when the stream reports TTY support.
    """

    target = sys.stderr if stream is None else stream
    try:
        return target.isatty()
    except (AttributeError, ValueError):
        return False


@lru_cache(maxsize=4)
def get_console(*, stderr: bool = True, color: bool = True) -> Console:
    """Return a cached Rich console bound to stderr or stdout.

    Args:
        stderr: ``True`` to write to stderr, ``False`` for stdout.
        color: ``False`` disables colour even on a terminal.

    Returns:
        Console: Console configured for the requested stream.
    """

    tty = detect_tty(sys.stderr if stderr else sys.stdout)
    color_system: Literal["auto"] | None = "auto" if color and tty else None
    return Console(
        stderr=stderr,
        color_system=color_system,
        no_color=not (color and tty),
        soft_wrap=True,
        markup=False,
        highlight=False,
    )


def configure_logging(*, verbose: bool) -> None:
    """Stream debug records from :data:`LOGGER` to stderr when ``verbose``.

    Args:
        verbose: Whether debug tracing was requested.
    """

    if not verbose or getattr(LOGGER, "_pants_setup_configured", False):
        return
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter("[pants-setup] %(message)s"))
    LOGGER.addHandler(handler)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.propagate = False
    setattr(LOGGER, "_pants_setup_configured", True)


def _print_line(msg: str, *, style: str | None) -> None:
    console = get_console(stderr=True)
    text = Text(msg)
    if style:
        text.stylize(style)
    console.print(text)


def info(msg: str) -> None:
    """Emit an informational message."""

    _print_line(msg, style=None)


def ok(msg: str) -> None:
    """Emit a success message in green."""

    _print_line(msg, style="green")


def warn(msg: str) -> None:
    """Emit a warning message in yellow."""

    _print_line(msg, style="yellow")


def fail(msg: str) -> None:
    """Emit an error message in red."""

    _print_line(msg, style="red")


__all__ = [
    "LOGGER",
    "configure_logging",
    "detect_tty",
    "fail",
    "get_console",
    "info",
    "ok",
    "warn",
]
