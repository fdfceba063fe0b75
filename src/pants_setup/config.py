# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reader for the bootstrap keys in ``pants.toml`` / ``pants.ini``.

Only two keys matter to the bootstrapper, so the file is scanned line by line
instead of being parsed as TOML or INI: a line of the form ``key: value`` or
``key = value`` (key at the start of the line, any whitespace around the
delimiter) supplies ``value``. Quotes are stripped and the first occurrence
of a key wins. Every other line is ignored.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict

from .console import LOGGER
from .constants import CONFIG_FILENAMES, PANTS_VERSION_KEY, RUNTIME_PYTHON_KEY
from .errors import ConfigError

RECOGNIZED_KEYS: Final[frozenset[str]] = frozenset({PANTS_VERSION_KEY, RUNTIME_PYTHON_KEY})

_LINE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_.-]*)[ \t]*[:=][ \t]*(?P<value>.*)$")
_QUOTES: Final[str] = "\"'"
_PYTHON_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+)?$")


class PantsConfig(BaseModel):
    """Bootstrap settings read from the buildroot config file.

    Attributes:
        pants_version: Pinned Pants release, or ``None`` to use the latest.
        runtime_python_version: Interpreter suffix such as ``3.7``.
        source: File the values were read from, if any.
    """

    model_config = ConfigDict(frozen=True)

    pants_version: str | None = None
    runtime_python_version: str | None = None
    source: Path | None = None


def read_config_values(text: str) -> dict[str, str]:
    """Return the recognized ``key -> value`` pairs found in ``text``.

    Keys with an empty value are omitted, so an absent key and a blank key
    both produce no entry.
    """

    values: dict[str, str] = {}
    for line in text.splitlines():
        match = _LINE_PATTERN.match(line)
        if match is None:
            continue
        key = match.group("key")
        if key not in RECOGNIZED_KEYS or key in values:
            continue
        value = match.group("value").translate(str.maketrans("", "", _QUOTES)).strip()
        if value:
            values[key] = value
    return values


def parse_config_text(text: str, *, source: Path | None = None) -> PantsConfig:
    """Parse ``text`` into a validated :class:`PantsConfig`.

    Raises:
        ConfigError: If a recognized key holds an invalid version.
    """

    values = read_config_values(text)
    where = f" in {source}" if source is not None else ""

    pants_version = values.get(PANTS_VERSION_KEY)
    if pants_version is not None:
        try:
            Version(pants_version)
        except InvalidVersion as exc:
            raise ConfigError(f"Invalid {PANTS_VERSION_KEY} {pants_version!r}{where}.") from exc

    python_version = values.get(RUNTIME_PYTHON_KEY)
    if python_version is not None and not _PYTHON_VERSION_PATTERN.match(python_version):
        raise ConfigError(f"Invalid {RUNTIME_PYTHON_KEY} {python_version!r}{where}; expected e.g. 3.7.")

    return PantsConfig(
        pants_version=pants_version,
        runtime_python_version=python_version,
        source=source,
    )


def find_config_file(buildroot: Path) -> Path | None:
    """Return the first config file present in ``buildroot``."""

    for name in CONFIG_FILENAMES:
        candidate = buildroot / name
        if candidate.is_file():
            return candidate
    return None


def load_config(buildroot: Path) -> PantsConfig:
    """Load bootstrap settings from ``buildroot``; empty when no file exists."""

    path = find_config_file(buildroot)
    if path is None:
        LOGGER.debug("No %s found in %s", " or ".join(CONFIG_FILENAMES), buildroot)
        return PantsConfig()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    config = parse_config_text(text, source=path)
    LOGGER.debug("Read %s: %s", path, config.model_dump(exclude={"source"}))
    return config


__all__ = [
    "PantsConfig",
    "RECOGNIZED_KEYS",
    "find_config_file",
    "load_config",
    "parse_config_text",
    "read_config_values",
]
