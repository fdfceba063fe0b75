# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for cached environment provisioning."""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from pants_setup.errors import DownloadError, ProvisioningError
from pants_setup.interpreter import Interpreter
from pants_setup.layout import CacheLayout, cache_key
from pants_setup.process import CommandOptions, SubprocessExecutionError
from pants_setup.provision import Provisioner, extract_archive, publish

VENV_VERSION = "16.4.3"
PYTHON37 = Interpreter(name="python3.7", path=Path("/usr/bin/python3.7"))


class FakeToolchain:
    """Stand-in for the network and the virtualenv/pip subprocesses."""

    def __init__(self, write_sdist: Callable[..., Path], *, fail_on: str | None = None) -> None:
        self.write_sdist = write_sdist
        self.fail_on = fail_on
        self.downloads: list[str] = []
        self.commands: list[list[str]] = []
        self.options: list[CommandOptions | None] = []
        self.during_install: Callable[[], None] | None = None

    def download(self, url: str, destination: Path) -> Path:
        self.downloads.append(url)
        return self.write_sdist(destination, VENV_VERSION)

    def run(self, command: list[str], *, options: CommandOptions | None = None) -> subprocess.CompletedProcess[str]:
        self.commands.append(command)
        self.options.append(options)
        if self.fail_on is not None and self.fail_on in command:
            raise SubprocessExecutionError(command, 1, None)
        if "--no-download" in command:
            bin_dir = Path(command[-1]) / "bin"
            bin_dir.mkdir(parents=True)
            for name in ("python", "pip", "pants"):
                (bin_dir / name).write_text("#!/bin/sh\n", encoding="utf-8")
        if command[-1].startswith("pantsbuild.pants==") and self.during_install is not None:
            hook, self.during_install = self.during_install, None
            hook()
        return subprocess.CompletedProcess(args=command, returncode=0, stdout="", stderr="")

    def provisioner(self, cache_root: Path) -> Provisioner:
        return Provisioner(
            CacheLayout(cache_root=cache_root, tag="Linux-x86_64"),
            virtualenv_version=VENV_VERSION,
            downloader=self.download,
            runner=self.run,
            probe=lambda interpreter: (3, 7),
        )


def test_cache_key_combines_pants_and_python_versions() -> None:
    assert cache_key("1.16.0", (3, 7)) == "1.16.0_py37"
    assert cache_key("1.14.0", (2, 7)) == "1.14.0_py27"


def test_layout_paths(tmp_path: Path) -> None:
    layout = CacheLayout(cache_root=tmp_path, tag="Darwin-arm64")

    assert layout.bootstrap_dir == tmp_path / "bootstrap-Darwin-arm64"
    assert layout.virtualenv_dir("16.4.3") == layout.bootstrap_dir / "virtualenv-16.4.3"
    assert layout.pants_dir("1.17.0", (3, 6)) == layout.bootstrap_dir / "1.17.0_py36"


def test_first_provisioning_runs_the_nested_bootstrap(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    toolchain = FakeToolchain(write_sdist)

    slot = toolchain.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37)

    bootstrap = tmp_path / "bootstrap-Linux-x86_64"
    assert slot == bootstrap / "1.16.0_py37"
    assert slot.is_symlink()
    assert (slot / "bin" / "pants").is_file()
    assert toolchain.downloads == ["https://pypi.io/packages/source/v/virtualenv/virtualenv-16.4.3.tar.gz"]

    venv_sources = bootstrap / "virtualenv-16.4.3"
    assert (venv_sources / "virtualenv.py").is_file()
    create, upgrade, install = toolchain.commands
    assert create[:3] == ["/usr/bin/python3.7", str(venv_sources / "virtualenv.py"), "--no-download"]
    assert Path(create[3]).name == "install"
    assert Path(create[3]).parent.name.startswith("pants.")
    pip = str(Path(create[3]) / "bin" / "pip")
    assert upgrade == [pip, "install", "-U", "pip"]
    assert install == [pip, "install", "pantsbuild.pants==1.16.0"]
    assert all(options is not None and options.stdout_to_stderr for options in toolchain.options)


def test_second_provisioning_is_a_pure_cache_hit(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    first = FakeToolchain(write_sdist)
    slot = first.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37)

    second = FakeToolchain(write_sdist)
    again = second.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37)

    assert again == slot
    assert second.downloads == []
    assert second.commands == []


def test_virtualenv_sources_are_shared_across_pants_versions(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    toolchain = FakeToolchain(write_sdist)
    provisioner = toolchain.provisioner(tmp_path)

    provisioner.ensure_pants("1.16.0", PYTHON37)
    provisioner.ensure_pants("1.17.0", PYTHON37)

    assert len(toolchain.downloads) == 1
    assert (tmp_path / "bootstrap-Linux-x86_64" / "1.17.0_py37").is_dir()


def test_failed_install_never_publishes(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    toolchain = FakeToolchain(write_sdist, fail_on="pantsbuild.pants==1.16.0")
    provisioner = toolchain.provisioner(tmp_path)

    with pytest.raises(ProvisioningError, match=r"install pantsbuild\.pants==1\.16\.0"):
        provisioner.ensure_pants("1.16.0", PYTHON37)

    bootstrap = tmp_path / "bootstrap-Linux-x86_64"
    assert not (bootstrap / "1.16.0_py37").exists()
    assert not (bootstrap / "1.16.0_py37").is_symlink()
    assert (bootstrap / "virtualenv-16.4.3").is_dir()
    remaining = {path.resolve() for path in provisioner.layout.staging_dirs()}
    assert remaining == {(bootstrap / "virtualenv-16.4.3").resolve().parent}


def test_failed_virtualenv_download_is_fatal(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    toolchain = FakeToolchain(write_sdist)

    def offline(url: str, destination: Path) -> Path:
        raise DownloadError("network unreachable")

    provisioner = Provisioner(
        CacheLayout(cache_root=tmp_path, tag="Linux-x86_64"),
        virtualenv_version=VENV_VERSION,
        downloader=offline,
        runner=toolchain.run,
        probe=lambda interpreter: (3, 7),
    )

    with pytest.raises(ProvisioningError, match="network unreachable"):
        provisioner.ensure_pants("1.16.0", PYTHON37)

    assert not provisioner.layout.virtualenv_dir(VENV_VERSION).exists()
    assert provisioner.layout.staging_dirs() == []
    assert toolchain.commands == []


def test_racing_provisioners_leave_a_complete_slot(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    loser = FakeToolchain(write_sdist)
    winner = FakeToolchain(write_sdist)
    published: list[Path] = []

    def publish_first() -> None:
        published.append(winner.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37))

    loser.during_install = publish_first

    slot = loser.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37)

    assert published == [slot]
    assert slot.is_symlink()
    assert (slot / "bin" / "pants").is_file()
    assert len(winner.commands) == 3
    assert len(loser.commands) == 3


def test_publish_replaces_an_existing_link_atomically(tmp_path: Path) -> None:
    destination = tmp_path / "slot"
    first = tmp_path / "pants.one" / "install"
    second = tmp_path / "pants.two" / "install"
    for artifact in (first, second):
        artifact.mkdir(parents=True)

    assert publish(first, destination)
    assert publish(second, destination)

    assert destination.resolve() == second.resolve()
    assert not (first.parent / "latest").exists()


def test_publish_keeps_an_existing_directory(tmp_path: Path) -> None:
    destination = tmp_path / "slot"
    (destination / "bin").mkdir(parents=True)
    artifact = tmp_path / "pants.three" / "install"
    artifact.mkdir(parents=True)

    assert publish(artifact, destination) is False
    assert not destination.is_symlink()
    assert (destination / "bin").is_dir()
    assert not (artifact.parent / "latest").is_symlink()


def test_extract_archive_rejects_path_traversal(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    archive = write_sdist(tmp_path / "evil.tar.gz", VENV_VERSION, extra_members={"../escape.py": b"boom"})
    target = tmp_path / "out"
    target.mkdir()

    with pytest.raises(ProvisioningError, match="Unsafe path"):
        extract_archive(archive, target)

    assert not (tmp_path / "escape.py").exists()


def test_extract_archive_rejects_corrupt_tarball(tmp_path: Path) -> None:
    archive = tmp_path / "broken.tar.gz"
    archive.write_bytes(b"not a tarball")

    with pytest.raises(ProvisioningError, match="Failed to extract"):
        extract_archive(archive, tmp_path)


def test_losing_to_a_real_directory_keeps_it_and_warns(
    tmp_path: Path,
    write_sdist: Callable[..., Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    toolchain = FakeToolchain(write_sdist)
    provisioner = toolchain.provisioner(tmp_path)
    slot = provisioner.layout.pants_dir("1.16.0", (3, 7))

    def occupy_slot() -> None:
        (slot / "bin").mkdir(parents=True)
        (slot / "bin" / "pants").write_text("#!/bin/sh\n", encoding="utf-8")

    toolchain.during_install = occupy_slot

    assert provisioner.ensure_pants("1.16.0", PYTHON37) == slot

    assert not slot.is_symlink()
    assert (slot / "bin" / "pants").is_file()
    assert "created by another invocation" in capsys.readouterr().err
    venv_staging = provisioner.layout.virtualenv_dir(VENV_VERSION).resolve().parent
    assert [path.resolve() for path in provisioner.layout.staging_dirs()] == [venv_staging]


def test_versioned_interpreter_names_skip_the_probe(tmp_path: Path) -> None:
    probed: list[Interpreter] = []

    def probe(interpreter: Interpreter) -> tuple[int, int]:
        probed.append(interpreter)
        return (3, 9)

    provisioner = Provisioner(
        CacheLayout(cache_root=tmp_path, tag="Linux-x86_64"),
        virtualenv_version=VENV_VERSION,
        probe=probe,
    )
    bootstrap = tmp_path / "bootstrap-Linux-x86_64"
    custom = Interpreter(name="/opt/tools/python", path=Path("/opt/tools/python"))

    assert provisioner.slot_for("1.16.0", PYTHON37) == bootstrap / "1.16.0_py37"
    assert provisioner.slot_for("1.16.0", Interpreter(name="/opt/bin/python3.6", path=Path("/opt/bin/python3.6"))) == (
        bootstrap / "1.16.0_py36"
    )
    assert probed == []
    assert provisioner.slot_for("1.16.0", custom) == bootstrap / "1.16.0_py39"
    assert probed == [custom]


def test_cache_hit_runs_no_subprocess(tmp_path: Path, write_sdist: Callable[..., Path]) -> None:
    toolchain = FakeToolchain(write_sdist)
    slot = toolchain.provisioner(tmp_path).ensure_pants("1.16.0", PYTHON37)

    def no_probe(interpreter: Interpreter) -> tuple[int, int]:
        raise AssertionError(f"{interpreter.path} should not be run on a cache hit")

    second = FakeToolchain(write_sdist)
    provisioner = Provisioner(
        CacheLayout(cache_root=tmp_path, tag="Linux-x86_64"),
        virtualenv_version=VENV_VERSION,
        downloader=second.download,
        runner=second.run,
        probe=no_probe,
    )

    assert provisioner.ensure_pants("1.16.0", PYTHON37) == slot
    assert second.commands == []
