# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest

from pants_setup.settings import BootstrapSettings

SettingsFactory = Callable[..., BootstrapSettings]


@pytest.fixture
def make_settings(tmp_path: Path) -> SettingsFactory:
    """Return a factory building settings rooted in ``tmp_path``."""

    def factory(**environ: str) -> BootstrapSettings:
        env = {"PANTS_SETUP_CACHE": str(tmp_path / "cache"), **environ}
        buildroot = tmp_path / "buildroot"
        buildroot.mkdir(exist_ok=True)
        return BootstrapSettings.from_environ(env, buildroot=buildroot)

    return factory


def _write_virtualenv_sdist(destination: Path, version: str, *, extra_members: dict[str, bytes] | None = None) -> Path:
    """Write a minimal virtualenv sdist tarball to ``destination``."""

    members = {f"virtualenv-{version}/virtualenv.py": b"print('virtualenv')\n", **(extra_members or {})}
    with tarfile.open(destination, "w:gz") as tar:
        for name, payload in members.items():
            entry = tarfile.TarInfo(name)
            entry.size = len(payload)
            entry.mode = 0o644
            tar.addfile(entry, io.BytesIO(payload))
    return destination


@pytest.fixture
def write_sdist() -> Callable[..., Path]:
    """Return a helper writing a minimal virtualenv sdist tarball."""

    return _write_virtualenv_sdist

