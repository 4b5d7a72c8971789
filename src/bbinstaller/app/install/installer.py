"""Locating the release executable and placing it into the install target."""

from __future__ import annotations

from pathlib import Path

from bbinstaller.domain.errors import BinaryNotFoundError
from bbinstaller.domain.release import InstallTarget

from .platforms import PlatformStrategy


def locate_binary(root: Path, strategy: PlatformStrategy, binary_name: str) -> Path:
    """Return the release executable under ``root``.

    When several files qualify, the one whose path relative to ``root`` sorts
    first (POSIX separators) wins, independent of filesystem traversal order.
    """

    candidates = [
        path
        for path in root.rglob("*")
        if path.is_file() and not path.is_symlink() and strategy.is_binary_candidate(path.name, binary_name)
    ]
    if not candidates:
        raise BinaryNotFoundError(f"Binary not found in archive (looked for '{binary_name}' under {root.name}/)")
    return min(candidates, key=lambda path: path.relative_to(root).as_posix())


def place_binary(source: Path, target: InstallTarget, strategy: PlatformStrategy, *, allow_sudo: bool = True) -> Path:
    """Copy ``source`` to ``target.path``, replacing whatever is there."""

    destination = target.path
    strategy.copy_binary(source, destination, allow_sudo=allow_sudo)
    return destination
