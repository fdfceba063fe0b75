# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve which Pants release to bootstrap."""

from __future__ import annotations

from collections.abc import Callable

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ValidationError

from .config import PantsConfig
from .console import LOGGER
from .constants import PYPI_JSON_URL
from .download import fetch_json
from .errors import DownloadError, VersionResolutionError

JsonFetcher = Callable[[str], object]


class _ReleaseInfo(BaseModel):
    version: str


class PackageIndexDocument(BaseModel):
    """Subset of the PyPI JSON API document the resolver reads."""

    info: _ReleaseInfo


class VersionResolver:
    """Determine the Pants version from config or from PyPI."""

    def __init__(self, fetcher: JsonFetcher = fetch_json, *, index_url: str = PYPI_JSON_URL) -> None:
        self._fetch = fetcher
        self._index_url = index_url

    def resolve(self, config: PantsConfig) -> str:
        """Return the pinned version, or the latest stable release when unpinned."""

        if config.pants_version:
            LOGGER.debug("Using pants_version %s from %s", config.pants_version, config.source)
            return config.pants_version
        return self.latest_stable()

    def latest_stable(self) -> str:
        """Return the current stable Pants version published on PyPI.

        Raises:
            VersionResolutionError: If PyPI cannot be reached or answers with
                an unexpected document.
        """

        try:
            payload = self._fetch(self._index_url)
        except DownloadError as exc:
            raise VersionResolutionError(f"Unable to determine the latest Pants version: {exc}") from exc
        try:
            document = PackageIndexDocument.model_validate(payload)
        except ValidationError as exc:
            raise VersionResolutionError(f"Unexpected response from {self._index_url}: {exc}") from exc
        version = document.info.version.strip()
        try:
            Version(version)
        except InvalidVersion as exc:
            raise VersionResolutionError(f"PyPI reported an invalid Pants version: {version!r}") from exc
        LOGGER.debug("Latest stable Pants release on PyPI: %s", version)
        return version


def major_minor(version: str) -> tuple[int, int]:
    """Return the ``(major, minor)`` release components of ``version``.

    Raises:
        VersionResolutionError: If ``version`` is not a valid PEP 440 version.
    """

    try:
        release = Version(version).release
    except InvalidVersion as exc:
        raise VersionResolutionError(f"Invalid Pants version: {version!r}") from exc
    minor = release[1] if len(release) > 1 else 0
    return release[0], minor


__all__ = ["PackageIndexDocument", "VersionResolver", "major_minor"]
