"""Platform identity used to name release artifacts."""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass
from enum import Enum

from .errors import UnsupportedPlatformError


class OperatingSystem(str, Enum):
    LINUX = "linux"
    DARWIN = "darwin"
    WINDOWS = "windows"


class Architecture(str, Enum):
    X86_64 = "x86_64"
    AARCH64 = "aarch64"


_OS_PREFIXES: tuple[tuple[str, OperatingSystem], ...] = (
    ("linux", OperatingSystem.LINUX),
    ("darwin", OperatingSystem.DARWIN),
    ("windows", OperatingSystem.WINDOWS),
    ("mingw", OperatingSystem.WINDOWS),
    ("msys", OperatingSystem.WINDOWS),
    ("cygwin", OperatingSystem.WINDOWS),
)

_ARCH_ALIASES: dict[str, Architecture] = {
    "x86_64": Architecture.X86_64,
    "amd64": Architecture.X86_64,
    "x64": Architecture.X86_64,
    "aarch64": Architecture.AARCH64,
    "arm64": Architecture.AARCH64,
}


@dataclass(frozen=True)
class PlatformDescriptor:
    """Normalised (os, arch) pair of the executing machine."""

    os: OperatingSystem
    arch: Architecture

    @property
    def canonical(self) -> str:
        return f"{self.os.value}-{self.arch.value}"

    @property
    def is_windows(self) -> bool:
        return self.os is OperatingSystem.WINDOWS

    def __str__(self) -> str:
        return self.canonical


def normalise_os(raw: str) -> OperatingSystem:
    value = raw.strip().lower()
    for prefix, family in _OS_PREFIXES:
        if value.startswith(prefix):
            return family
    raise UnsupportedPlatformError(f"Unsupported operating system: {raw or '<unknown>'}")


def normalise_arch(raw: str) -> Architecture:
    try:
        return _ARCH_ALIASES[raw.strip().lower()]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported architecture: {raw or '<unknown>'}") from None


def resolve_platform(system: str | None = None, machine: str | None = None) -> PlatformDescriptor:
    """Return the descriptor for ``system``/``machine`` (defaults to this machine)."""

    os_family = normalise_os(system if system is not None else _platform.system())
    arch = normalise_arch(machine if machine is not None else _platform.machine())
    return PlatformDescriptor(os=os_family, arch=arch)


__all__ = [
    "Architecture",
    "OperatingSystem",
    "PlatformDescriptor",
    "normalise_arch",
    "normalise_os",
    "resolve_platform",
]
