# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy for the bootstrap pipeline.

Every failure is fatal: entry points catch :class:`BootstrapError`, report the
message on stderr and exit non-zero. Nothing is retried.
"""

from __future__ import annotations


class BootstrapError(RuntimeError):
    """Base class for all fatal bootstrap failures."""


class ConfigError(BootstrapError):
    """Raised when the buildroot config holds an unusable value."""


class MissingExecutableError(BootstrapError):
    """Raised when a required executable is not on ``PATH``."""

    def __init__(self, executable: str) -> None:
        super().__init__(f"Could not find {executable}. Please ensure {executable} is on your PATH.")
        self.executable = executable


class IncompatibleInterpreterError(BootstrapError):
    """Raised when no interpreter compatible with the Pants version is found."""


class InterpreterProbeError(BootstrapError):
    """Raised when the selected interpreter cannot report its version."""


class DownloadError(BootstrapError):
    """Raised when an HTTPS download fails or is refused."""


class VersionResolutionError(BootstrapError):
    """Raised when the Pants version cannot be determined."""


class ProvisioningError(BootstrapError):
    """Raised when building a cached environment fails."""


class LaunchError(BootstrapError):
    """Raised when the provisioned Pants cannot be started."""


__all__ = [
    "BootstrapError",
    "ConfigError",
    "DownloadError",
    "IncompatibleInterpreterError",
    "InterpreterProbeError",
    "LaunchError",
    "MissingExecutableError",
    "ProvisioningError",
    "VersionResolutionError",
]
