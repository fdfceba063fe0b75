# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem layout of the bootstrap cache."""

from __future__ import annotations

import os
import platform
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .constants import STAGING_PREFIX

WINDOWS_OS_NAME: Final[str] = "nt"


def platform_tag() -> str:
    """Return ``<system>-<machine>`` as ``uname -s`` and ``uname -m`` report them."""

    return f"{platform.system()}-{platform.machine()}"


def cache_key(pants_version: str, python_major_minor: tuple[int, int]) -> str:
    """Return the cache slot name, e.g. ``1.16.0_py37``."""

    major, minor = python_major_minor
    return f"{pants_version}_py{major}{minor}"


def venv_bin_dir(venv: Path) -> Path:
    """Return the scripts directory of the virtualenv rooted at ``venv``."""

    return venv / ("Scripts" if os.name == WINDOWS_OS_NAME else "bin")


@dataclass(frozen=True, slots=True)
class CacheLayout:
    """Paths inside the per-platform bootstrap directory.

    Attributes:
        cache_root: Root shared by every platform.
        tag: Platform tag distinguishing the bootstrap directory.
    """

    cache_root: Path
    tag: str

    @classmethod
    def for_cache_root(cls, cache_root: Path) -> CacheLayout:
        """Return the layout for ``cache_root`` on the running platform."""

        return cls(cache_root=cache_root, tag=platform_tag())

    @property
    def bootstrap_dir(self) -> Path:
        """Return the directory holding every cached artifact."""

        return self.cache_root / f"bootstrap-{self.tag}"

    def virtualenv_dir(self, version: str) -> Path:
        """Return the published location of the virtualenv ``version`` sources."""

        return self.bootstrap_dir / f"virtualenv-{version}"

    def pants_dir(self, pants_version: str, python_major_minor: tuple[int, int]) -> Path:
        """Return the cache slot for a Pants version and interpreter pairing."""

        return self.bootstrap_dir / cache_key(pants_version, python_major_minor)

    def staging_dirs(self) -> list[Path]:
        """Return every staging directory currently present, sorted by name."""

        if not self.bootstrap_dir.is_dir():
            return []
        return sorted(
            path
            for path in self.bootstrap_dir.glob(f"{STAGING_PREFIX}*")
            if path.is_dir() and not path.is_symlink()
        )

    def published_links(self) -> list[Path]:
        """Return every published symlink in the bootstrap directory."""

        if not self.bootstrap_dir.is_dir():
            return []
        return sorted(path for path in self.bootstrap_dir.iterdir() if path.is_symlink())

    def make_staging_dir(self) -> Path:
        """Create and return a fresh, uniquely named staging directory."""

        self.bootstrap_dir.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.bootstrap_dir))


__all__ = ["CacheLayout", "cache_key", "platform_tag", "venv_bin_dir"]
