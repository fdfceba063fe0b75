# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``pants-setup``: inspect and maintain the bootstrap cache."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from .clean import DEFAULT_GRACE_SECONDS, collect_garbage
from .console import fail, get_console, ok
from .constants import FAILURE_EXIT_CODE
from .errors import BootstrapError
from .launcher import build_provisioner, build_settings, resolve

SECONDS_PER_HOUR = 60 * 60

app = typer.Typer(
    help="Inspect and maintain the cached Pants bootstrap environments.",
    no_args_is_help=True,
    add_completion=False,
)

BUILDROOT_OPTION = Annotated[
    Path | None,
    typer.Option(
        "--buildroot",
        help="Directory containing pants.toml or pants.ini (discovered from the current directory by default).",
        file_okay=False,
        dir_okay=True,
        exists=True,
        resolve_path=True,
    ),
]


def _abort(exc: BootstrapError) -> typer.Exit:
    fail(str(exc))
    return typer.Exit(code=FAILURE_EXIT_CODE)


@app.command("info")
def info_command(buildroot: BUILDROOT_OPTION = None) -> None:
    """Show how the next ``pants`` invocation would be resolved."""

    try:
        settings = build_settings(buildroot=buildroot)
        resolution = resolve(settings)
        slot = build_provisioner(settings).slot_for(resolution.pants_version, resolution.interpreter)
    except BootstrapError as exc:
        raise _abort(exc) from exc

    table = Table(show_header=False, box=None)
    table.add_column("key", style="bold")
    table.add_column("value")
    table.add_row("buildroot", str(settings.buildroot))
    table.add_row("config", str(resolution.config.source) if resolution.config.source else "-")
    table.add_row("pants version", resolution.pants_version)
    table.add_row("interpreter", f"{resolution.interpreter.name} ({resolution.interpreter.path})")
    table.add_row("cache root", str(settings.cache_root))
    table.add_row("environment", str(slot))
    table.add_row("cached", "yes" if slot.is_dir() else "no")
    get_console(stderr=False).print(table)


@app.command("provision")
def provision_command(buildroot: BUILDROOT_OPTION = None) -> None:
    """Build the cached Pants environment without running Pants."""

    try:
        settings = build_settings(buildroot=buildroot)
        resolution = resolve(settings)
        slot = build_provisioner(settings).ensure_pants(resolution.pants_version, resolution.interpreter)
    except BootstrapError as exc:
        raise _abort(exc) from exc
    get_console(stderr=False).print(str(slot))


@app.command("gc")
def gc_command(
    older_than_hours: Annotated[
        float,
        typer.Option(
            "--older-than-hours",
            min=0.0,
            help="Only remove unreferenced staging directories older than this.",
        ),
    ] = DEFAULT_GRACE_SECONDS / SECONDS_PER_HOUR,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="List orphans without removing them.")] = False,
) -> None:
    """Remove staging directories left behind by failed or lost builds."""

    settings = build_settings(buildroot=Path.cwd())
    layout = build_provisioner(settings).layout
    result = collect_garbage(layout, grace_seconds=older_than_hours * SECONDS_PER_HOUR, dry_run=dry_run)

    console = get_console(stderr=False)
    for path in result.skipped:
        console.print(f"would remove {path}")
    for path in result.removed:
        console.print(f"removed {path}")
    if dry_run:
        ok(f"{len(result.skipped)} orphaned staging director{'y' if len(result.skipped) == 1 else 'ies'} found.")
    else:
        ok(f"Removed {len(result.removed)} orphaned staging director{'y' if len(result.removed) == 1 else 'ies'}.")


def main() -> None:
    """Console-script entry point for ``pants-setup``."""

    app()


__all__ = ["app", "main"]
