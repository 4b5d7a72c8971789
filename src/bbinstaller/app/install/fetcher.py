"""Download of the release archive and its optional checksum resource."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bbinstaller.domain.errors import DownloadError
from bbinstaller.domain.release import CHECKSUM_SUFFIX, DownloadDescriptor
from bbinstaller.ports.release_source import ReleaseSource
from bbinstaller.utils.reporter import Reporter


@dataclass(frozen=True)
class FetchedArtifact:
    archive: Path
    checksum: Path | None


@dataclass
class ArtifactFetcher:
    source: ReleaseSource
    reporter: Reporter

    def fetch(self, descriptor: DownloadDescriptor, directory: Path) -> FetchedArtifact:
        archive = directory / descriptor.archive_name
        self.reporter.info(f"Downloading from: {descriptor.archive_url}")
        self.source.download(descriptor.archive_url, archive)

        checksum: Path | None = directory / (descriptor.archive_name + CHECKSUM_SUFFIX)
        try:
            self.source.download(descriptor.checksum_url, checksum)
        except DownloadError:
            checksum = None
        return FetchedArtifact(archive=archive, checksum=checksum)
