# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for Pants version resolution."""

from __future__ import annotations

import pytest

from pants_setup.config import PantsConfig
from pants_setup.constants import PYPI_JSON_URL
from pants_setup.errors import DownloadError, VersionResolutionError
from pants_setup.versioning import VersionResolver, major_minor


def _unreachable(url: str) -> object:
    raise AssertionError(f"network access attempted: {url}")


def test_pinned_version_skips_network() -> None:
    resolver = VersionResolver(_unreachable)

    assert resolver.resolve(PantsConfig(pants_version="1.16.0")) == "1.16.0"


def test_unpinned_version_queries_package_index() -> None:
    requested: list[str] = []

    def fetch(url: str) -> object:
        requested.append(url)
        return {"info": {"version": "1.20.0", "name": "pantsbuild.pants"}, "releases": {}}

    assert VersionResolver(fetch).resolve(PantsConfig()) == "1.20.0"
    assert requested == [PYPI_JSON_URL]


def test_network_failure_is_fatal() -> None:
    def fetch(url: str) -> object:
        raise DownloadError("connection refused")

    with pytest.raises(VersionResolutionError, match="connection refused"):
        VersionResolver(fetch).latest_stable()


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"info": {}},
        {"info": {"version": "not a version"}},
        ["unexpected"],
    ],
)
def test_unparseable_response_is_fatal(payload: object) -> None:
    with pytest.raises(VersionResolutionError):
        VersionResolver(lambda url: payload).latest_stable()


@pytest.mark.parametrize(
    ("version", "expected"),
    [("1.14.0", (1, 14)), ("1.16.0rc1", (1, 16)), ("2.0.0.dev3", (2, 0)), ("3", (3, 0))],
)
def test_major_minor(version: str, expected: tuple[int, int]) -> None:
    assert major_minor(version) == expected


def test_major_minor_rejects_garbage() -> None:
    with pytest.raises(VersionResolutionError):
        major_minor("one.two")
