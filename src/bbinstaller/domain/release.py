"""Value objects describing a release, its artifacts and the install outcome."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .errors import VersionResolutionError
from .platform import PlatformDescriptor

CHECKSUM_SUFFIX = ".sha256"


@dataclass(frozen=True)
class ReleaseVersion:
    """Opaque release tag such as ``v1.2.0``."""

    tag: str

    def __post_init__(self) -> None:
        if not isinstance(self.tag, str) or not self.tag.strip():
            raise VersionResolutionError("Release tag is empty")
        object.__setattr__(self, "tag", self.tag.strip())

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class DownloadDescriptor:
    archive_url: str
    checksum_url: str

    @property
    def archive_name(self) -> str:
        return self.archive_url.rsplit("/", 1)[-1]

    @classmethod
    def build(
        cls,
        repo_base: str,
        version: ReleaseVersion,
        platform: PlatformDescriptor,
        *,
        binary_name: str,
        extension: str,
    ) -> "DownloadDescriptor":
        base = repo_base.rstrip("/")
        archive_url = f"{base}/releases/download/{version.tag}/{binary_name}-{platform.canonical}.{extension}"
        return cls(archive_url=archive_url, checksum_url=archive_url + CHECKSUM_SUFFIX)


@dataclass(frozen=True)
class ChecksumRecord:
    """Expected digest taken from a ``<hex> <filename>`` checksum resource."""

    digest: str

    @classmethod
    def parse(cls, content: str) -> "ChecksumRecord":
        tokens = content.split()
        return cls(digest=tokens[0].lower() if tokens else "")

    def matches(self, actual: str) -> bool:
        return bool(self.digest) and self.digest == actual.strip().lower()


@dataclass(frozen=True)
class InstallTarget:
    directory: Path
    binary_name: str

    @property
    def path(self) -> Path:
        return self.directory / self.binary_name


@dataclass(frozen=True)
class InstallationResult:
    final_path: Path
    verified: bool
    version: str
    reported_version: str | None = None
    checksum_verified: bool = False
    path_registered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_path": str(self.final_path),
            "verified": self.verified,
            "version": self.version,
            "reported_version": self.reported_version,
            "checksum_verified": self.checksum_verified,
            "path_registered": self.path_registered,
        }


__all__ = [
    "CHECKSUM_SUFFIX",
    "ChecksumRecord",
    "DownloadDescriptor",
    "InstallTarget",
    "InstallationResult",
    "ReleaseVersion",
]
