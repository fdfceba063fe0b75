# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Immutable bootstrap settings derived once from the process environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    CACHE_ROOT_ENV,
    PYTHON_OVERRIDE_ENV,
    PYTHON_UNSPECIFIED,
    VERBOSE_ENV,
    VIRTUALENV_DEFAULT_VERSION,
    VIRTUALENV_VERSION_ENV,
    XDG_CACHE_ENV,
)

_FALSY_FLAGS = frozenset({"", "0", "false", "no", "off"})


class BootstrapSettings(BaseModel):
    """Configuration shared by every stage of the pipeline.

    Attributes:
        buildroot: Directory holding the Pants config; the child runs here.
        cache_root: Directory under which environments are cached.
        python_override: Interpreter requested through ``PYTHON``, if any.
        virtualenv_version: virtualenv release used to create environments.
        verbose: Whether debug tracing was requested.
        environ: Snapshot of the environment the settings were built from.
    """

    model_config = ConfigDict(frozen=True)

    buildroot: Path
    cache_root: Path
    python_override: str | None = None
    virtualenv_version: str = VIRTUALENV_DEFAULT_VERSION
    verbose: bool = False
    environ: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        buildroot: Path,
    ) -> BootstrapSettings:
        """Build settings from ``environ`` (``os.environ`` by default).

        Args:
            environ: Environment mapping to read.
            buildroot: Resolved buildroot for this invocation.

        Returns:
            BootstrapSettings: Frozen settings instance.
        """

        env = dict(os.environ if environ is None else environ)
        root = buildroot.resolve()
        python = env.get(PYTHON_OVERRIDE_ENV, "").strip()
        return cls(
            buildroot=root,
            cache_root=default_cache_root(env, buildroot=root),
            python_override=None if python in ("", PYTHON_UNSPECIFIED) else _anchor_interpreter(python, root),
            virtualenv_version=env.get(VIRTUALENV_VERSION_ENV, "").strip() or VIRTUALENV_DEFAULT_VERSION,
            verbose=env.get(VERBOSE_ENV, "").strip().lower() not in _FALSY_FLAGS,
            environ=env,
        )


def default_cache_root(environ: Mapping[str, str], *, buildroot: Path | None = None) -> Path:
    """Return the cache root honouring ``PANTS_SETUP_CACHE`` and XDG rules.

    A relative ``PANTS_SETUP_CACHE`` is taken relative to ``buildroot`` (the
    current directory when omitted), so every caller shares one cache.
    """

    override = environ.get(CACHE_ROOT_ENV, "").strip()
    if override:
        path = Path(override).expanduser()
        if not path.is_absolute():
            path = (buildroot or Path.cwd()) / path
        return path.resolve()
    xdg = environ.get(XDG_CACHE_ENV, "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".cache"
    return base / "pants" / "setup"


def _anchor_interpreter(python: str, buildroot: Path) -> str:
    """Return ``python`` anchored at ``buildroot`` when it is a relative path.

    Bare names such as ``python3.7`` are left for a ``PATH`` lookup. Symlinks
    are not followed so a virtualenv interpreter keeps its own prefix.
    """

    separators = {sep for sep in (os.sep, os.altsep) if sep}
    if not any(sep in python for sep in separators):
        return python
    path = Path(python).expanduser()
    if path.is_absolute():
        return str(path)
    return os.path.abspath(buildroot / path)


__all__ = ["BootstrapSettings", "default_cache_root"]
