# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build and publish cached virtualenv and Pants installations.

Two cache levels live in the bootstrap directory:

* ``virtualenv-<version>``: the extracted virtualenv sdist, shared by every
  Pants version.
* ``<pants_version>_py<XY>``: a virtual environment with
  ``pantsbuild.pants==<pants_version>`` installed for one interpreter.

Each artifact is built inside a private ``pants.XXXXXX`` staging directory and
published by renaming a symlink onto its final name. ``rename(2)`` is atomic,
so concurrent invocations only ever observe a complete artifact or none. A
failed build is never published.
"""

from __future__ import annotations

import os
import re
import shutil
import tarfile
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from subprocess import CompletedProcess
from typing import Final

from .console import LOGGER, info, ok, warn
from .constants import INSTALL_SUBDIR, PANTS_DISTRIBUTION, VIRTUALENV_SCRIPT, VIRTUALENV_URL_TEMPLATE
from .download import download
from .errors import DownloadError, ProvisioningError
from .interpreter import Interpreter, probe_major_minor
from .layout import CacheLayout, venv_bin_dir
from .process import CommandOptions, SubprocessExecutionError, run_command

Downloader = Callable[[str, Path], Path]
Runner = Callable[..., CompletedProcess[str]]
Probe = Callable[[Interpreter], tuple[int, int]]

PUBLISH_LINK_NAME: Final[str] = "latest"
PATH_TRAVERSAL_COMPONENT: Final[str] = ".."
VERSIONED_INTERPRETER: Final[re.Pattern[str]] = re.compile(r"^python(?P<major>\d+)\.(?P<minor>\d+)$")


def publish(artifact: Path, destination: Path) -> bool:
    """Atomically expose ``artifact`` at ``destination`` through a symlink.

    Args:
        artifact: Fully built directory inside a staging directory.
        destination: Final cache slot.

    Returns:
        bool: ``True`` when our symlink now occupies ``destination``;
        ``False`` when another invocation already published a real directory
        there and that copy is kept.

    Raises:
        ProvisioningError: If the rename fails and nothing usable exists at
            ``destination``.
    """

    link = artifact.parent / PUBLISH_LINK_NAME
    try:
        link.symlink_to(artifact.resolve(), target_is_directory=True)
        os.replace(link, destination)
    except OSError as exc:
        link.unlink(missing_ok=True)
        if destination.is_dir():
            LOGGER.debug("Another invocation published %s first; keeping it", destination)
            return False
        raise ProvisioningError(f"Failed to publish {artifact} to {destination}: {exc}") from exc
    LOGGER.debug("Published %s -> %s", destination, artifact)
    return True


def extract_archive(archive: Path, target_dir: Path) -> None:
    """Extract the gzipped tarball ``archive`` into ``target_dir``.

    Raises:
        ProvisioningError: If the archive is unreadable or has members that
            would land outside ``target_dir``.
    """

    try:
        with tarfile.open(archive, "r:gz") as tar:
            for member in tar.getmembers():
                member_path = Path(member.name)
                if member_path.is_absolute() or PATH_TRAVERSAL_COMPONENT in member_path.parts:
                    raise ProvisioningError(f"Unsafe path in {archive.name}: {member.name}")
            tar.extractall(target_dir, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise ProvisioningError(f"Failed to extract {archive.name}: {exc}") from exc


class Provisioner:
    """Ensure cached environments exist, building them on first use."""

    def __init__(
        self,
        layout: CacheLayout,
        *,
        virtualenv_version: str,
        downloader: Downloader = download,
        runner: Runner = run_command,
        probe: Probe = probe_major_minor,
    ) -> None:
        self.layout = layout
        self.virtualenv_version = virtualenv_version
        self._download = downloader
        self._run = runner
        self._probe = probe

    def slot_for(self, pants_version: str, interpreter: Interpreter) -> Path:
        """Return the cache slot ``pants_version`` would use with ``interpreter``.

        A ``pythonX.Y`` binary name supplies the version directly; anything
        else is run once to ask.
        """

        match = VERSIONED_INTERPRETER.match(Path(interpreter.name).name)
        if match is not None:
            version = (int(match.group("major")), int(match.group("minor")))
        else:
            version = self._probe(interpreter)
        return self.layout.pants_dir(pants_version, version)

    def ensure_virtualenv(self) -> Path:
        """Return the extracted virtualenv sources, downloading them once."""

        target = self.layout.virtualenv_dir(self.virtualenv_version)
        if target.is_dir():
            LOGGER.debug("virtualenv %s already cached at %s", self.virtualenv_version, target)
            return target

        url = VIRTUALENV_URL_TEMPLATE.format(version=self.virtualenv_version)
        info(f"Downloading virtualenv {self.virtualenv_version} from {url}")
        with self._staging() as staging:
            archive = staging / f"virtualenv-{self.virtualenv_version}.tar.gz"
            try:
                self._download(url, archive)
            except DownloadError as exc:
                raise ProvisioningError(f"Failed to download virtualenv {self.virtualenv_version}: {exc}") from exc
            extract_archive(archive, staging)
            extracted = staging / f"virtualenv-{self.virtualenv_version}"
            if not (extracted / VIRTUALENV_SCRIPT).is_file():
                raise ProvisioningError(f"{archive.name} does not contain {VIRTUALENV_SCRIPT}")
            archive.unlink()
            if not publish(extracted, target):
                shutil.rmtree(staging, ignore_errors=True)
        return target

    def ensure_pants(self, pants_version: str, interpreter: Interpreter) -> Path:
        """Return a cached environment with ``pants_version`` installed.

        The slot is keyed by ``pants_version`` and the interpreter's
        ``major.minor``. An existing slot is returned without any network
        access or package installation.

        Raises:
            ProvisioningError: If any download, extraction, environment
                creation or installation step fails.
        """

        slot = self.slot_for(pants_version, interpreter)
        if slot.is_dir():
            LOGGER.debug("Cache hit: %s", slot)
            return slot

        virtualenv = self.ensure_virtualenv()
        info(f"Bootstrapping Pants {pants_version} with {interpreter.name} ({interpreter.path})")
        with self._staging() as staging:
            install = staging / INSTALL_SUBDIR
            pip = str(venv_bin_dir(install) / "pip")
            self._execute(
                [str(interpreter.path), str(virtualenv / VIRTUALENV_SCRIPT), "--no-download", str(install)],
                action="create a virtual environment",
            )
            self._execute([pip, "install", "-U", "pip"], action="upgrade pip")
            self._execute(
                [pip, "install", f"{PANTS_DISTRIBUTION}=={pants_version}"],
                action=f"install {PANTS_DISTRIBUTION}=={pants_version}",
            )
            if not publish(install, slot):
                warn(f"{slot} was created by another invocation; using that copy.")
                shutil.rmtree(staging, ignore_errors=True)
        ok(f"New virtual environment successfully created at {slot}.")
        return slot

    @contextmanager
    def _staging(self) -> Iterator[Path]:
        """Yield a new staging directory, removing it if the build fails."""

        staging = self.layout.make_staging_dir()
        LOGGER.debug("Staging in %s", staging)
        try:
            yield staging
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

    def _execute(self, command: Sequence[str], *, action: str) -> None:
        try:
            self._run(list(command), options=CommandOptions(stdout_to_stderr=True))
        except (OSError, SubprocessExecutionError) as exc:
            raise ProvisioningError(f"Failed to {action}: {exc}") from exc


__all__ = ["Provisioner", "extract_archive", "publish"]
