# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Names, URLs and defaults shared across the bootstrap pipeline."""

from __future__ import annotations

from typing import Final

PANTS_DISTRIBUTION: Final[str] = "pantsbuild.pants"
PYPI_JSON_URL: Final[str] = f"https://pypi.org/pypi/{PANTS_DISTRIBUTION}/json"

VIRTUALENV_DEFAULT_VERSION: Final[str] = "16.4.3"
VIRTUALENV_URL_TEMPLATE: Final[str] = "https://pypi.io/packages/source/v/virtualenv/virtualenv-{version}.tar.gz"
VIRTUALENV_SCRIPT: Final[str] = "virtualenv.py"

ALLOWED_DOWNLOAD_HOSTS: Final[frozenset[str]] = frozenset(
    {"pypi.org", "pypi.io", "pypi.python.org", "files.pythonhosted.org"}
)

PYTHON_OVERRIDE_ENV: Final[str] = "PYTHON"
PYTHON_UNSPECIFIED: Final[str] = "unspecified"
CACHE_ROOT_ENV: Final[str] = "PANTS_SETUP_CACHE"
VIRTUALENV_VERSION_ENV: Final[str] = "VENV_VERSION"
VERBOSE_ENV: Final[str] = "PANTS_SETUP_VERBOSE"
XDG_CACHE_ENV: Final[str] = "XDG_CACHE_HOME"

CONFIG_FILENAMES: Final[tuple[str, ...]] = ("pants.toml", "pants.ini")
PANTS_VERSION_KEY: Final[str] = "pants_version"
RUNTIME_PYTHON_KEY: Final[str] = "pants_runtime_python_version"

STAGING_PREFIX: Final[str] = "pants."
INSTALL_SUBDIR: Final[str] = "install"

# urllib performs non async-signal-safe proxy lookups after fork on macOS;
# disabling proxies for every host sidesteps the crash in Pants' forked workers.
NO_PROXY_ENV: Final[str] = "no_proxy"
NO_PROXY_ALL_HOSTS: Final[str] = "*"

FAILURE_EXIT_CODE: Final[int] = 1

__all__ = [
    "ALLOWED_DOWNLOAD_HOSTS",
    "CACHE_ROOT_ENV",
    "CONFIG_FILENAMES",
    "FAILURE_EXIT_CODE",
    "INSTALL_SUBDIR",
    "NO_PROXY_ALL_HOSTS",
    "NO_PROXY_ENV",
    "PANTS_DISTRIBUTION",
    "PANTS_VERSION_KEY",
    "PYPI_JSON_URL",
    "PYTHON_OVERRIDE_ENV",
    "PYTHON_UNSPECIFIED",
    "RUNTIME_PYTHON_KEY",
    "STAGING_PREFIX",
    "VERBOSE_ENV",
    "VIRTUALENV_DEFAULT_VERSION",
    "VIRTUALENV_SCRIPT",
    "VIRTUALENV_URL_TEMPLATE",
    "VIRTUALENV_VERSION_ENV",
    "XDG_CACHE_ENV",
]
