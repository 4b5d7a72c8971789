"""Error taxonomy for installer runs."""

from __future__ import annotations


class InstallerError(RuntimeError):
    """Base class for conditions that abort an installer run."""

    fatal = True


class ConfigError(InstallerError):
    """Raised when installer configuration cannot be loaded."""


class UnsupportedPlatformError(InstallerError):
    """Raised when the machine's OS or architecture cannot be installed to."""


class VersionResolutionError(InstallerError):
    """Raised when the release to install cannot be determined."""


class DownloadError(InstallerError):
    """Raised when the release archive cannot be downloaded."""


class ChecksumMismatchError(InstallerError):
    """Raised when the archive digest differs from the published checksum."""


class ChecksumUnavailableError(InstallerError):
    """Raised when a checksum is required but none was published."""


class ExtractionError(InstallerError):
    """Raised when the archive is corrupt, unreadable or unsafe to unpack."""


class BinaryNotFoundError(InstallerError):
    """Raised when the unpacked archive holds no matching executable."""


class InstallTargetError(InstallerError):
    """Raised when the binary cannot be placed into the install directory."""


class PathRegistrationError(InstallerError):
    """Raised when the install directory cannot be persisted on the user PATH."""


class VerificationError(InstallerError):
    """Raised when the installed binary does not answer ``--version``.

    The install service downgrades this to a warning.
    """

    fatal = False


__all__ = [
    "InstallerError",
    "ConfigError",
    "UnsupportedPlatformError",
    "VersionResolutionError",
    "DownloadError",
    "ChecksumMismatchError",
    "ChecksumUnavailableError",
    "ExtractionError",
    "BinaryNotFoundError",
    "InstallTargetError",
    "PathRegistrationError",
    "VerificationError",
]
