"""Port for release metadata and artifact downloads."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from bbinstaller.domain.release import ReleaseVersion


class ReleaseSource(ABC):
    """Remote that publishes tagged releases and their artifacts."""

    @abstractmethod
    def latest_version(self) -> ReleaseVersion:
        """Return the tag of the latest published release.

        Raises ``VersionResolutionError`` when the tag cannot be determined.
        """

    @abstractmethod
    def download(self, url: str, destination: Path) -> Path:
        """Store the resource at ``url`` into ``destination``.

        Raises ``DownloadError`` on any transport or HTTP failure.
        """
