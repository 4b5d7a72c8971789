from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
from pathlib import Path

import pytest

from bbinstaller.app.install.installer import locate_binary, place_binary
from bbinstaller.app.install.platforms import PosixStrategy, WindowsStrategy
from bbinstaller.domain.errors import BinaryNotFoundError, InstallTargetError
from bbinstaller.domain.release import InstallTarget
from bbinstaller.ports.user_environment import UserEnvironment


class NullUserEnvironment(UserEnvironment):
    def read_path(self) -> str:
        return ""

    def write_path(self, value: str) -> None:
        raise AssertionError("not expected")


def _touch(path: Path, data: bytes = b"bin") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_locate_binary_prefers_lexicographically_first_path(tmp_path: Path) -> None:
    _touch(tmp_path / "z" / "bb-linux-x86_64")
    first = _touch(tmp_path / "a" / "bb")
    _touch(tmp_path / "b" / "bb-linux-x86_64")

    assert locate_binary(tmp_path, PosixStrategy(environ={}), "bb") == first


def test_locate_binary_ignores_non_binaries(tmp_path: Path) -> None:
    _touch(tmp_path / "bb-linux-x86_64.sha256")
    _touch(tmp_path / "bb-notes.md")
    _touch(tmp_path / "bbx")
    binary = _touch(tmp_path / "nested" / "bb-linux-x86_64")

    assert locate_binary(tmp_path, PosixStrategy(environ={}), "bb") == binary


def test_locate_binary_on_windows_requires_exe(tmp_path: Path) -> None:
    _touch(tmp_path / "bb")
    binary = _touch(tmp_path / "BB.EXE")
    strategy = WindowsStrategy(NullUserEnvironment(), environ={})

    assert locate_binary(tmp_path, strategy, "bb") == binary


def test_locate_binary_missing_raises(tmp_path: Path) -> None:
    _touch(tmp_path / "README.md")

    with pytest.raises(BinaryNotFoundError):
        locate_binary(tmp_path, PosixStrategy(environ={}), "bb")


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_place_binary_creates_directory_and_sets_exec_bit(tmp_path: Path) -> None:
    source = _touch(tmp_path / "extract" / "bb-linux-x86_64", b"new")
    target = InstallTarget(directory=tmp_path / "deep" / "bin", binary_name="bb")

    final_path = place_binary(source, target, PosixStrategy(environ={}))

    assert final_path == target.path
    assert final_path.read_bytes() == b"new"
    assert final_path.stat().st_mode & stat.S_IXUSR


def test_place_binary_overwrites_existing_file(tmp_path: Path) -> None:
    source = _touch(tmp_path / "extract" / "bb", b"fresh build")
    target = InstallTarget(directory=tmp_path / "bin", binary_name="bb")
    _touch(target.path, b"stale and much longer previous build contents")

    place_binary(source, target, PosixStrategy(environ={}))
    place_binary(source, target, PosixStrategy(environ={}))

    assert target.path.read_bytes() == b"fresh build"


@pytest.mark.skipif(sys.platform.startswith("win") or os.geteuid() == 0, reason="needs an unprivileged POSIX user")
def test_place_binary_without_sudo_reports_hint(tmp_path: Path) -> None:
    source = _touch(tmp_path / "extract" / "bb", b"fresh")
    locked = tmp_path / "locked"
    locked.mkdir()
    locked.chmod(0o555)
    target = InstallTarget(directory=locked, binary_name="bb")
    try:
        with pytest.raises(InstallTargetError, match="BB_INSTALL_DIR"):
            place_binary(source, target, PosixStrategy(environ={"PATH": ""}), allow_sudo=False)
    finally:
        locked.chmod(0o755)


def test_place_binary_falls_back_to_sudo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import bbinstaller.app.install.platforms as platforms

    source = _touch(tmp_path / "extract" / "bb", b"fresh")
    target = InstallTarget(directory=tmp_path / "bin", binary_name="bb")
    calls: list[list[str]] = []

    def deny(*args: object, **kwargs: object) -> None:
        raise PermissionError("denied")

    class Completed:
        returncode = 0
        stderr = ""

    def fake_run(command: list[str], **kwargs: object) -> Completed:
        calls.append(command)
        return Completed()

    monkeypatch.setattr(platforms.shutil, "copyfile", deny)
    monkeypatch.setattr(platforms.shutil, "which", lambda name, path=None: "/usr/bin/sudo")
    monkeypatch.setattr(platforms.subprocess, "run", fake_run)

    place_binary(source, target, PosixStrategy(environ={"PATH": "/usr/bin"}))

    assert [command[1] for command in calls] == ["mkdir", "cp", "chmod", "mv"]
    assert calls[1][-1] == calls[3][-2]
    assert calls[3][-1] == str(target.path)
    assert list(target.directory.iterdir()) == []


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX symlinks")
def test_place_binary_replaces_symlink_instead_of_following_it(tmp_path: Path) -> None:
    source = _touch(tmp_path / "extract" / "bb", b"fresh")
    keg = _touch(tmp_path / "Cellar" / "bb", b"package manager build")
    target = InstallTarget(directory=tmp_path / "bin", binary_name="bb")
    target.directory.mkdir()
    target.path.symlink_to(keg)

    place_binary(source, target, PosixStrategy(environ={}))

    assert not target.path.is_symlink()
    assert target.path.read_bytes() == b"fresh"
    assert keg.read_bytes() == b"package manager build"
    assert sorted(entry.name for entry in target.directory.iterdir()) == ["bb"]


@pytest.mark.skipif(
    sys.platform.startswith("win") or shutil.which("sleep") is None,
    reason="needs a native POSIX executable",
)
def test_place_binary_replaces_running_executable(tmp_path: Path) -> None:
    target = InstallTarget(directory=tmp_path / "bin", binary_name="bb")
    target.directory.mkdir()
    shutil.copy2(shutil.which("sleep"), target.path)
    source = _touch(tmp_path / "extract" / "bb", b"fresh")
    running = subprocess.Popen([str(target.path), "30"])
    try:
        place_binary(source, target, PosixStrategy(environ={}))
    finally:
        running.kill()
        running.wait()

    assert target.path.read_bytes() == b"fresh"
    assert target.path.stat().st_mode & stat.S_IXUSR


def test_place_binary_leaves_no_staged_file_on_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import bbinstaller.app.install.platforms as platforms

    source = _touch(tmp_path / "extract" / "bb", b"fresh")
    target = InstallTarget(directory=tmp_path / "bin", binary_name="bb")
    _touch(target.path, b"previous")

    def broken_replace(src: object, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(platforms.os, "replace", broken_replace)

    with pytest.raises(InstallTargetError, match="disk full"):
        place_binary(source, target, PosixStrategy(environ={}))

    assert target.path.read_bytes() == b"previous"
    assert sorted(entry.name for entry in target.directory.iterdir()) == ["bb"]
