# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Garbage collection of staging directories orphaned by lost publish races.

When two invocations build the same artifact concurrently, the later rename
replaces the earlier symlink and the earlier staging directory is no longer
referenced. Interrupted builds leave staging directories behind too. A
staging directory is collectable once no published symlink points into it
and it is older than a grace period, so builds still in flight are kept.
"""

from __future__ import annotations

import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .console import LOGGER
from .layout import CacheLayout

DEFAULT_GRACE_SECONDS: Final[float] = 24 * 60 * 60


@dataclass(slots=True)
class CleanPlan:
    """Staging directories scheduled for removal and those kept."""

    orphans: list[Path] = field(default_factory=list)
    referenced: list[Path] = field(default_factory=list)
    recent: list[Path] = field(default_factory=list)


@dataclass(slots=True)
class CleanResult:
    """Outcome of a collection run."""

    removed: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


def referenced_staging_dirs(layout: CacheLayout) -> set[Path]:
    """Return staging directories that some published symlink points into."""

    bootstrap = layout.bootstrap_dir.resolve()
    referenced: set[Path] = set()
    for link in layout.published_links():
        try:
            target = link.readlink()
        except FileNotFoundError:
            continue
        if not target.is_absolute():
            target = link.parent / target
        try:
            relative = target.resolve().relative_to(bootstrap)
        except ValueError:
            continue
        if relative.parts:
            referenced.add(bootstrap / relative.parts[0])
    return referenced


def plan_cleanup(
    layout: CacheLayout,
    *,
    grace_seconds: float = DEFAULT_GRACE_SECONDS,
    now: float | None = None,
) -> CleanPlan:
    """Classify every staging directory under ``layout``.

    Args:
        layout: Cache layout to inspect.
        grace_seconds: Minimum age before an unreferenced directory is an orphan.
        now: Reference timestamp; defaults to :func:`time.time`.

    Returns:
        CleanPlan: Orphans, referenced directories and recent directories.
    """

    current = time.time() if now is None else now
    referenced = referenced_staging_dirs(layout)
    plan = CleanPlan()
    for staging in layout.staging_dirs():
        try:
            mtime = staging.stat().st_mtime
        except FileNotFoundError:
            LOGGER.debug("Staging directory %s vanished while planning", staging)
            continue
        if staging.resolve() in referenced:
            plan.referenced.append(staging)
        elif current - mtime < grace_seconds:
            plan.recent.append(staging)
        else:
            plan.orphans.append(staging)
    return plan


def collect_garbage(
    layout: CacheLayout,
    *,
    grace_seconds: float = DEFAULT_GRACE_SECONDS,
    dry_run: bool = False,
    now: float | None = None,
) -> CleanResult:
    """Remove orphaned staging directories, or only list them on ``dry_run``."""

    plan = plan_cleanup(layout, grace_seconds=grace_seconds, now=now)
    result = CleanResult()
    for orphan in plan.orphans:
        if dry_run:
            result.skipped.append(orphan)
            continue
        LOGGER.debug("Removing orphaned staging directory %s", orphan)
        try:
            shutil.rmtree(orphan)
        except FileNotFoundError:
            LOGGER.debug("Staging directory %s was removed concurrently", orphan)
            continue
        result.removed.append(orphan)
    return result


__all__ = [
    "CleanPlan",
    "CleanResult",
    "DEFAULT_GRACE_SECONDS",
    "collect_garbage",
    "plan_cleanup",
    "referenced_staging_dirs",
]
