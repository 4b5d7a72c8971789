"""Installer domain exports."""

from .errors import (
    BinaryNotFoundError,
    ChecksumMismatchError,
    ChecksumUnavailableError,
    ConfigError,
    DownloadError,
    ExtractionError,
    InstallTargetError,
    InstallerError,
    PathRegistrationError,
    UnsupportedPlatformError,
    VerificationError,
    VersionResolutionError,
)
from .platform import Architecture, OperatingSystem, PlatformDescriptor, resolve_platform
from .release import (
    ChecksumRecord,
    DownloadDescriptor,
    InstallTarget,
    InstallationResult,
    ReleaseVersion,
)

__all__ = [
    "Architecture",
    "BinaryNotFoundError",
    "ChecksumMismatchError",
    "ChecksumRecord",
    "ChecksumUnavailableError",
    "ConfigError",
    "DownloadDescriptor",
    "DownloadError",
    "ExtractionError",
    "InstallTarget",
    "InstallTargetError",
    "InstallationResult",
    "InstallerError",
    "OperatingSystem",
    "PathRegistrationError",
    "PlatformDescriptor",
    "ReleaseVersion",
    "UnsupportedPlatformError",
    "VerificationError",
    "VersionResolutionError",
    "resolve_platform",
]
