# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Bootstrap a cached Pants virtual environment and run Pants inside it."""

from __future__ import annotations

from .errors import BootstrapError
from .launcher import launch, main

__version__ = "0.1.0"

__all__ = ["BootstrapError", "__version__", "launch", "main"]
