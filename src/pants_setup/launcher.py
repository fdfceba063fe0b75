# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Entry point that bootstraps Pants and runs it with the caller's arguments.

The ``pants`` command defines no options of its own: every argument after the
program name reaches Pants untouched, which is why :data:`sys.argv` is read
directly instead of going through a CLI parser.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

from .config import PantsConfig, find_config_file, load_config
from .console import LOGGER, configure_logging, fail
from .constants import CONFIG_FILENAMES, FAILURE_EXIT_CODE, NO_PROXY_ALL_HOSTS, NO_PROXY_ENV
from .errors import BootstrapError, LaunchError
from .interpreter import Interpreter, InterpreterResolver
from .layout import CacheLayout, venv_bin_dir
from .process import CommandOptions, run_command
from .provision import Provisioner
from .settings import BootstrapSettings
from .versioning import VersionResolver


@dataclass(frozen=True, slots=True)
class Resolution:
    """Everything the pipeline decided before launching Pants."""

    config: PantsConfig
    pants_version: str
    interpreter: Interpreter


def discover_buildroot(start: Path | None = None) -> Path:
    """Return the nearest directory at or above ``start`` holding a Pants config.

    Falls back to ``start`` (the current directory by default) when no
    ancestor contains ``pants.toml`` or ``pants.ini``.
    """

    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if find_config_file(candidate) is not None:
            return candidate
    LOGGER.debug("No %s above %s; using it as the buildroot", " or ".join(CONFIG_FILENAMES), origin)
    return origin


def build_settings(
    *,
    buildroot: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BootstrapSettings:
    """Return settings for ``buildroot`` (discovered when omitted) and enable tracing."""

    root = buildroot if buildroot is not None else discover_buildroot()
    settings = BootstrapSettings.from_environ(environ, buildroot=root)
    configure_logging(verbose=settings.verbose)
    return settings


def build_provisioner(settings: BootstrapSettings) -> Provisioner:
    """Return a provisioner bound to the cache configured in ``settings``."""

    return Provisioner(
        CacheLayout.for_cache_root(settings.cache_root),
        virtualenv_version=settings.virtualenv_version,
    )


def resolve(settings: BootstrapSettings, *, versions: VersionResolver | None = None) -> Resolution:
    """Resolve the config, Pants version and interpreter for ``settings``."""

    config = load_config(settings.buildroot)
    pants_version = (versions or VersionResolver()).resolve(config)
    interpreter = InterpreterResolver(settings, config).resolve(pants_version)
    return Resolution(config=config, pants_version=pants_version, interpreter=interpreter)


def child_environment(environ: Mapping[str, str]) -> dict[str, str]:
    """Return the environment for Pants: a copy of ``environ`` with ``no_proxy=*``."""

    env = dict(environ)
    env[NO_PROXY_ENV] = NO_PROXY_ALL_HOSTS
    return env


def pants_command(pants_dir: Path, args: Iterable[str]) -> list[str]:
    """Return the command running the Pants entry point installed in ``pants_dir``.

    Paths are absolute because the child runs from the buildroot, not from the
    caller's directory.
    """

    bin_dir = venv_bin_dir(pants_dir.absolute())
    return [str(bin_dir / "python"), str(bin_dir / "pants"), *args]


def run_pants(pants_dir: Path, args: Iterable[str], settings: BootstrapSettings) -> int:
    """Run Pants from the buildroot, wait for it and return its exit status."""

    command = pants_command(pants_dir, args)
    try:
        completed = run_command(
            command,
            options=CommandOptions(
                cwd=settings.buildroot,
                env=child_environment(settings.environ),
                check=False,
            ),
        )
    except OSError as exc:
        raise LaunchError(f"Failed to launch Pants from {pants_dir}: {exc}") from exc
    return completed.returncode


def bootstrap_and_run(args: list[str], settings: BootstrapSettings) -> int:
    """Run the full pipeline and return Pants' exit status."""

    resolution = resolve(settings)
    pants_dir = build_provisioner(settings).ensure_pants(resolution.pants_version, resolution.interpreter)
    return run_pants(pants_dir, args, settings)


def launch(
    argv: Iterable[str] | None = None,
    *,
    buildroot: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> NoReturn:
    """Bootstrap Pants and exit with its status.

    Args:
        argv: Arguments for Pants. ``None`` forwards ``sys.argv[1:]``.
        buildroot: Directory Pants runs in; discovered when omitted.
        environ: Environment to read settings from; ``os.environ`` by default.
    """

    args = list(sys.argv[1:] if argv is None else argv)
    try:
        settings = build_settings(buildroot=buildroot, environ=environ)
        code = bootstrap_and_run(args, settings)
    except BootstrapError as exc:
        fail(str(exc))
        sys.exit(FAILURE_EXIT_CODE)
    sys.exit(code)


def main() -> None:
    """Console-script entry point for ``pants``."""

    launch()


__all__ = [
    "Resolution",
    "bootstrap_and_run",
    "build_provisioner",
    "build_settings",
    "child_environment",
    "discover_buildroot",
    "launch",
    "main",
    "pants_command",
    "resolve",
    "run_pants",
]
