"""Per-platform-family install behaviour.

Everything that differs between Windows and POSIX hosts (archive format,
executable naming, permissions, default location and PATH handling) lives in
one strategy object selected once from the ``PlatformDescriptor``.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping

from bbinstaller.domain.errors import InstallTargetError, PathRegistrationError, UnsupportedPlatformError
from bbinstaller.domain.platform import PlatformDescriptor
from bbinstaller.ports.user_environment import UserEnvironment
from bbinstaller.utils.reporter import Reporter

_NON_BINARY_SUFFIXES = {".sha256", ".txt", ".md", ".gz", ".tgz", ".tar", ".zip", ".sig", ".asc"}
_WINDOWS_VAR = re.compile(r"%([^%]+)%")
_EXECUTABLE_MODE = 0o755


def _replace_file(source: Path, destination: Path, *, mode: int | None = None) -> None:
    """Stage a copy next to ``destination`` and rename it over the old entry.

    The rename swaps the directory entry itself: a symlink at ``destination``
    is replaced rather than followed, and a running executable keeps its inode.
    """

    fd, staged_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    os.close(fd)
    staged = Path(staged_name)
    try:
        shutil.copyfile(source, staged)
        if mode is not None:
            staged.chmod(mode)
        os.replace(staged, destination)
    except BaseException:
        staged.unlink(missing_ok=True)
        raise


@dataclass(frozen=True)
class PathRegistration:
    on_path: bool
    changed: bool = False


class PlatformStrategy(ABC):
    config_key: str
    archive_extension: str

    @abstractmethod
    def executable_name(self, binary_name: str) -> str:
        """Canonical file name of the installed binary."""

    @abstractmethod
    def is_binary_candidate(self, filename: str, binary_name: str) -> bool:
        """Whether an extracted file looks like the release executable."""

    @abstractmethod
    def expand_install_dir(self, raw: str, env: Mapping[str, str]) -> Path:
        """Expand a configured install directory for this platform family."""

    @abstractmethod
    def copy_binary(self, source: Path, destination: Path, *, allow_sudo: bool) -> None:
        """Place ``source`` at ``destination``, overwriting, and make it runnable."""

    @abstractmethod
    def register_path(self, directory: Path, reporter: Reporter) -> PathRegistration:
        """Make ``directory`` discoverable on the execution search path."""


class PosixStrategy(PlatformStrategy):
    config_key = "posix"
    archive_extension = "tar.gz"

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def executable_name(self, binary_name: str) -> str:
        return binary_name

    def is_binary_candidate(self, filename: str, binary_name: str) -> bool:
        if filename == binary_name:
            return True
        if not filename.startswith(f"{binary_name}-"):
            return False
        return Path(filename).suffix.lower() not in _NON_BINARY_SUFFIXES

    def expand_install_dir(self, raw: str, env: Mapping[str, str]) -> Path:
        return Path(os.path.expandvars(raw)).expanduser()

    def copy_binary(self, source: Path, destination: Path, *, allow_sudo: bool) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            _replace_file(source, destination, mode=_EXECUTABLE_MODE)
            return
        except PermissionError as exc:
            sudo = shutil.which("sudo", path=self._environ.get("PATH")) if allow_sudo else None
            if sudo is None:
                raise InstallTargetError(
                    f"Cannot write to {destination.parent} and sudo is not available. "
                    f"Try: BB_INSTALL_DIR=~/.local/bin bb-install"
                ) from exc
        except OSError as exc:
            raise InstallTargetError(f"Failed to install {destination}: {exc}") from exc
        self._copy_with_sudo(sudo, source, destination)

    def _copy_with_sudo(self, sudo: str, source: Path, destination: Path) -> None:
        staged = destination.with_name(f".{destination.name}.new")
        commands = [
            [sudo, "mkdir", "-p", str(destination.parent)],
            [sudo, "cp", str(source), str(staged)],
            [sudo, "chmod", "755", str(staged)],
            [sudo, "mv", "-f", str(staged), str(destination)],
        ]
        for command in commands:
            try:
                result = subprocess.run(command, capture_output=True, text=True)
            except OSError as exc:
                raise InstallTargetError(f"sudo invocation failed: {exc}") from exc
            if result.returncode != 0:
                detail = (result.stderr or "").strip() or f"exit code {result.returncode}"
                raise InstallTargetError(f"'{' '.join(command[1:])}' failed: {detail}")

    def register_path(self, directory: Path, reporter: Reporter) -> PathRegistration:
        entries = [entry for entry in self._environ.get("PATH", "").split(os.pathsep) if entry]
        target = os.path.normpath(str(directory))
        if any(os.path.normpath(entry) == target for entry in entries):
            return PathRegistration(on_path=True)
        reporter.warn(f"{directory} is not in your PATH")
        reporter.warn("Add it to your shell profile:")
        reporter.warn(f'  export PATH="$PATH:{directory}"')
        return PathRegistration(on_path=False)


class WindowsStrategy(PlatformStrategy):
    config_key = "windows"
    archive_extension = "zip"

    def __init__(self, user_env: UserEnvironment, environ: MutableMapping[str, str] | None = None) -> None:
        self._user_env = user_env
        self._environ = os.environ if environ is None else environ

    def executable_name(self, binary_name: str) -> str:
        return f"{binary_name}.exe"

    def is_binary_candidate(self, filename: str, binary_name: str) -> bool:
        lowered = filename.lower()
        prefix = binary_name.lower()
        if not lowered.endswith(".exe"):
            return False
        return lowered == f"{prefix}.exe" or lowered.startswith(f"{prefix}-")

    def expand_install_dir(self, raw: str, env: Mapping[str, str]) -> Path:
        lookup = {key.upper(): value for key, value in env.items()}
        if "LOCALAPPDATA" not in lookup:
            lookup["LOCALAPPDATA"] = str(Path.home() / "AppData" / "Local")

        def _replace(match: re.Match[str]) -> str:
            return lookup.get(match.group(1).upper(), match.group(0))

        return Path(_WINDOWS_VAR.sub(_replace, raw)).expanduser()

    def copy_binary(self, source: Path, destination: Path, *, allow_sudo: bool) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            _replace_file(source, destination)
        except PermissionError as exc:
            raise InstallTargetError(
                f"Cannot write {destination}; close any running '{destination.name}' and retry"
            ) from exc
        except OSError as exc:
            raise InstallTargetError(f"Failed to install {destination}: {exc}") from exc

    def register_path(self, directory: Path, reporter: Reporter) -> PathRegistration:
        entry = str(directory)
        try:
            current = self._user_env.read_path()
        except OSError as exc:
            raise PathRegistrationError(f"Cannot read user PATH: {exc}") from exc

        changed = False
        if entry.lower() not in current.lower():
            updated = f"{current.rstrip(';')};{entry}" if current else entry
            try:
                self._user_env.write_path(updated)
            except OSError as exc:
                raise PathRegistrationError(f"Cannot update user PATH: {exc}") from exc
            changed = True
            reporter.info(f"Added {entry} to your user PATH (restart your terminal to pick it up)")

        process_path = self._environ.get("PATH", "")
        if entry.lower() not in process_path.lower():
            self._environ["PATH"] = f"{process_path};{entry}" if process_path else entry
        return PathRegistration(on_path=True, changed=changed)


def strategy_for(platform: PlatformDescriptor, *, user_env: UserEnvironment | None = None) -> PlatformStrategy:
    if platform.is_windows:
        if user_env is None:
            from bbinstaller.adapters.windows_environment import WinregUserEnvironment

            try:
                user_env = WinregUserEnvironment()
            except OSError as exc:
                raise UnsupportedPlatformError(
                    f"{platform.canonical} needs the Windows registry to update PATH ({exc}). "
                    "Run bb-install from a native Windows Python, not Cygwin or MSYS"
                ) from exc
        return WindowsStrategy(user_env)
    return PosixStrategy()


__all__ = [
    "PathRegistration",
    "PlatformStrategy",
    "PosixStrategy",
    "WindowsStrategy",
    "strategy_for",
]
