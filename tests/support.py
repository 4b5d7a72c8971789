from __future__ import annotations

import io
import json
import tarfile
import zipfile
from hashlib import sha256
from pathlib import Path

from bbinstaller.app.install.platforms import PosixStrategy
from bbinstaller.domain.errors import DownloadError, VersionResolutionError
from bbinstaller.domain.release import ReleaseVersion
from bbinstaller.ports.release_source import ReleaseSource
from bbinstaller.settings import InstallerSettings
from bbinstaller.utils.events import log_path

FAKE_BINARY = b"#!/bin/sh\necho 'bb 1.2.0'\n"


def make_settings(tmp_path: Path, **overrides: object) -> InstallerSettings:
    values: dict[str, object] = {
        "repo": "iamngoni/bitbucket-cli",
        "binary_name": "bb",
        "github_base": "https://github.com",
        "api_base": "https://api.github.com",
        "install_dir": tmp_path / "bin",
        "home_dir": tmp_path / "installer-home",
        "max_attempts": 1,
        "retry_delay": 0.0,
    }
    values.update(overrides)
    return InstallerSettings(**values)  # type: ignore[arg-type]


def build_tar_gz(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_zip(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def checksum_line(data: bytes, filename: str) -> bytes:
    return f"{sha256(data).hexdigest()}  {filename}\n".encode("utf-8")


class StaticReleaseSource(ReleaseSource):
    """In-memory release source keyed by URL."""

    def __init__(self, tag: str | None = "v1.2.0", resources: dict[str, bytes] | None = None) -> None:
        self.tag = tag
        self.resources = resources or {}
        self.metadata_calls = 0
        self.downloads: list[str] = []

    def latest_version(self) -> ReleaseVersion:
        self.metadata_calls += 1
        if self.tag is None:
            raise VersionResolutionError("Failed to get latest version")
        return ReleaseVersion(self.tag)

    def download(self, url: str, destination: Path) -> Path:
        self.downloads.append(url)
        if url not in self.resources:
            raise DownloadError(f"Failed to download {url}: HTTP 404")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.resources[url])
        return destination


class RecordingPosixStrategy(PosixStrategy):
    def __init__(self, path_entries: list[str] | None = None) -> None:
        super().__init__(environ={"PATH": ":".join(path_entries or [])})


def read_events(settings: InstallerSettings) -> list[dict[str, object]]:
    path = log_path(settings)
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
