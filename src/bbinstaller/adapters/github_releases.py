"""GitHub Releases backed release source."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable, Dict

import requests

from bbinstaller import __version__
from bbinstaller.domain.errors import DownloadError, VersionResolutionError
from bbinstaller.domain.release import ReleaseVersion
from bbinstaller.ports.release_source import ReleaseSource
from bbinstaller.settings import InstallerSettings

CHUNK_SIZE = 64 * 1024
USER_AGENT = f"bb-installer/{__version__}"


class _TransientError(Exception):
    """Failure worth another attempt (connection problems, 5xx)."""


class GitHubReleaseSource(ReleaseSource):
    def __init__(
        self,
        settings: InstallerSettings,
        session: requests.Session | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._sleep = sleep

    def latest_version(self) -> ReleaseVersion:
        url = self._settings.latest_release_url
        headers = {"Accept": "application/vnd.github+json", "User-Agent": USER_AGENT}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"

        def attempt() -> Any:
            response = self._get(url, headers=headers)
            try:
                return response.json()
            except ValueError as exc:
                raise VersionResolutionError(f"Release metadata from {url} is not valid JSON") from exc

        try:
            payload = self._with_retries(attempt)
        except _TransientError as exc:
            raise VersionResolutionError(
                f"Failed to get latest version ({exc}). Please check your internet connection."
            ) from exc
        except requests.HTTPError as exc:
            raise VersionResolutionError(f"Failed to get latest version: {exc}") from exc

        tag = payload.get("tag_name") if isinstance(payload, dict) else None
        if not isinstance(tag, str) or not tag.strip():
            raise VersionResolutionError(f"Release metadata from {url} has no tag_name")
        return ReleaseVersion(tag)

    def download(self, url: str, destination: Path) -> Path:
        headers = {"User-Agent": USER_AGENT}

        def attempt() -> Path:
            response = self._get(url, headers=headers, stream=True)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                with destination.open("wb") as fh:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            fh.write(chunk)
            except requests.RequestException as exc:
                raise _TransientError(f"transfer interrupted: {exc}") from exc
            except OSError as exc:
                raise DownloadError(f"Cannot write {destination}: {exc}") from exc
            finally:
                response.close()
            return destination

        try:
            return self._with_retries(attempt)
        except (_TransientError, requests.HTTPError) as exc:
            destination.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download {url}: {exc}") from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get(self, url: str, *, headers: Dict[str, str], stream: bool = False) -> requests.Response:
        try:
            response = self._session.get(url, headers=headers, stream=stream, timeout=self._settings.request_timeout)
        except requests.RequestException as exc:
            raise _TransientError(str(exc)) from exc
        if response.status_code >= 500:
            response.close()
            raise _TransientError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            response.close()
            raise requests.HTTPError(f"HTTP {response.status_code} for {url}", response=response)
        return response

    def _with_retries(self, func: Callable[[], Any]) -> Any:
        attempts = self._settings.max_attempts
        for number in range(1, attempts + 1):
            try:
                return func()
            except _TransientError:
                if number == attempts:
                    raise
                self._sleep(self._settings.retry_delay * number)
        raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["GitHubReleaseSource", "USER_AGENT"]
