# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Allow ``python -m pants_setup`` to behave like the ``pants`` shim."""

from __future__ import annotations

from .launcher import main

if __name__ == "__main__":
    main()
