"""Application service running the install pipeline end to end."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar

from bbinstaller.domain.errors import InstallerError, VerificationError
from bbinstaller.domain.platform import PlatformDescriptor
from bbinstaller.domain.release import (
    DownloadDescriptor,
    InstallTarget,
    InstallationResult,
    ReleaseVersion,
)
from bbinstaller.ports.release_source import ReleaseSource
from bbinstaller.settings import InstallerSettings
from bbinstaller.utils.events import record_event
from bbinstaller.utils.reporter import Reporter

from .checksum import verify_archive
from .extractor import extract_archive
from .fetcher import ArtifactFetcher
from .installer import locate_binary, place_binary
from .platforms import PlatformStrategy
from .verifier import verify_installation, version_matches
from .workspace import ScratchWorkspace

T = TypeVar("T")


@dataclass
class InstallService:
    settings: InstallerSettings
    platform: PlatformDescriptor
    strategy: PlatformStrategy
    source: ReleaseSource
    reporter: Reporter
    scratch_dir: Path | None = None

    @property
    def target(self) -> InstallTarget:
        return InstallTarget(
            directory=self.settings.install_dir,
            binary_name=self.strategy.executable_name(self.settings.binary_name),
        )

    def run(self) -> InstallationResult:
        self.reporter.info(f"Detected platform: {self.platform.canonical}")
        self._record("install.platform", {"platform": self.platform.canonical})

        version = self._stage("install.version", self.resolve_version)
        descriptor = DownloadDescriptor.build(
            self.settings.repo_base,
            version,
            self.platform,
            binary_name=self.settings.binary_name,
            extension=self.strategy.archive_extension,
        )

        with ScratchWorkspace(base_dir=self.scratch_dir) as workspace:
            fetcher = ArtifactFetcher(self.source, self.reporter)
            artifact = self._stage("install.download", lambda: fetcher.fetch(descriptor, workspace.downloads))
            checksum_verified = self._stage(
                "install.checksum",
                lambda: verify_archive(
                    artifact.archive,
                    artifact.checksum,
                    self.reporter,
                    require=self.settings.require_checksum,
                ),
            )

            self.reporter.info("Extracting...")
            extracted = self._stage(
                "install.extract",
                lambda: extract_archive(artifact.archive, workspace.extracted, self.strategy.archive_extension),
            )
            binary = self._stage(
                "install.locate", lambda: locate_binary(extracted, self.strategy, self.settings.binary_name)
            )

            target = self.target
            self.reporter.info(f"Installing to {target.directory}...")
            final_path = self._stage(
                "install.place",
                lambda: place_binary(binary, target, self.strategy, allow_sudo=self.settings.allow_sudo),
            )
        self.reporter.success(f"Installed {self.settings.binary_name} to {final_path}")

        path_registered = False
        if self.settings.modify_path:
            registration = self._stage(
                "install.path", lambda: self.strategy.register_path(target.directory, self.reporter)
            )
            path_registered = registration.on_path

        reported = self._verify(final_path, version)
        result = InstallationResult(
            final_path=final_path,
            verified=reported is not None,
            version=version.tag,
            reported_version=reported,
            checksum_verified=checksum_verified,
            path_registered=path_registered,
        )
        self._record("install.completed", result.to_dict(), status="ok")
        return result

    def resolve_version(self) -> ReleaseVersion:
        if self.settings.version:
            version = ReleaseVersion(self.settings.version)
            self.reporter.info(f"Requested version: {version}")
            return version
        version = self.source.latest_version()
        self.reporter.info(f"Latest version: {version}")
        return version

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _verify(self, final_path: Path, version: ReleaseVersion) -> str | None:
        try:
            reported = self._stage(
                "install.verify",
                lambda: verify_installation(final_path, timeout=self.settings.verify_timeout),
            )
        except VerificationError as exc:
            self.reporter.warn(f"{self.settings.binary_name} is installed but could not be verified: {exc}")
            return None
        self.reporter.success(f"Installation verified: {reported}")
        if version_matches(reported, version.tag) is False:
            self.reporter.warn(f"Installed binary reports '{reported}', expected release {version.tag}")
        return reported

    def _stage(self, event: str, func: Callable[[], T]) -> T:
        start = time.perf_counter()
        try:
            value = func()
        except InstallerError as exc:
            self._record(
                event,
                {"error": str(exc), "kind": type(exc).__name__},
                level="error" if exc.fatal else "warn",
                status="failed",
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            raise
        self._record(event, {}, status="ok", duration_ms=(time.perf_counter() - start) * 1000)
        return value

    def _record(self, event: str, payload: dict[str, Any], **extra: Any) -> None:
        record_event(self.settings, event, payload=payload, **extra)


__all__ = ["InstallService"]
