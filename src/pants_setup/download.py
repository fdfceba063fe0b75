# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""HTTPS fetch helpers restricted to the PyPI hosts the bootstrapper needs."""

from __future__ import annotations

import http.client
import json
import shutil
from contextlib import closing
from pathlib import Path
from typing import Final
from urllib.parse import urljoin, urlparse

from .console import LOGGER
from .constants import ALLOWED_DOWNLOAD_HOSTS
from .errors import DownloadError

HTTPS_SCHEME: Final[str] = "https"
MAX_REDIRECTS: Final[int] = 3
HTTP_OK_STATUS: Final[int] = 200
HTTP_REDIRECT_STATUSES: Final[frozenset[int]] = frozenset({301, 302, 303, 307, 308})
REQUEST_TIMEOUT: Final[float] = 60.0
USER_AGENT: Final[str] = "pants-setup"


def _open(url: str, *, redirects: int = 0) -> tuple[http.client.HTTPSConnection, http.client.HTTPResponse]:
    """Return an open connection and a ``200`` response for ``url``.

    Redirects are followed up to :data:`MAX_REDIRECTS` times and every hop must
    stay on HTTPS within :data:`ALLOWED_DOWNLOAD_HOSTS`.

    Raises:
        DownloadError: On refused targets, transport errors or non-200 replies.
    """

    parsed = urlparse(url)
    if parsed.scheme != HTTPS_SCHEME or parsed.hostname not in ALLOWED_DOWNLOAD_HOSTS:
        raise DownloadError(f"Refusing to download from unexpected location: {url}")
    if redirects > MAX_REDIRECTS:
        raise DownloadError(f"Too many redirects while fetching {url}")

    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"

    connection = http.client.HTTPSConnection(parsed.netloc, timeout=REQUEST_TIMEOUT)
    try:
        connection.request("GET", path, headers={"User-Agent": USER_AGENT})
        response = connection.getresponse()
    except OSError as exc:
        connection.close()
        raise DownloadError(f"Failed to fetch {url}: {exc}") from exc

    if response.status in HTTP_REDIRECT_STATUSES:
        location = response.getheader("Location")
        connection.close()
        if not location:
            raise DownloadError(f"{url} redirected without a Location header")
        next_url = urljoin(url, location)
        LOGGER.debug("Redirected %s -> %s", url, next_url)
        return _open(next_url, redirects=redirects + 1)

    if response.status != HTTP_OK_STATUS:
        connection.close()
        raise DownloadError(f"Failed to fetch {url}: HTTP {response.status}")
    return connection, response


def fetch_bytes(url: str) -> bytes:
    """Return the body served at ``url``."""

    LOGGER.debug("Fetching %s", url)
    connection, response = _open(url)
    with closing(connection):
        try:
            return response.read()
        except OSError as exc:
            raise DownloadError(f"Failed to read response from {url}: {exc}") from exc


def fetch_json(url: str) -> object:
    """Return the decoded JSON document served at ``url``.

    Raises:
        DownloadError: If the transfer fails or the body is not JSON.
    """

    payload = fetch_bytes(url)
    try:
        return json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DownloadError(f"Response from {url} is not valid JSON: {exc}") from exc


def download(url: str, destination: Path) -> Path:
    """Stream ``url`` into ``destination`` and return ``destination``."""

    LOGGER.debug("Downloading %s -> %s", url, destination)
    connection, response = _open(url)
    with closing(connection):
        try:
            with open(destination, "wb") as handle:
                shutil.copyfileobj(response, handle)
        except OSError as exc:
            raise DownloadError(f"Failed to download {url}: {exc}") from exc
    return destination


__all__ = ["MAX_REDIRECTS", "download", "fetch_bytes", "fetch_json"]
