"""Post-install sanity check of the installed binary."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from packaging.version import InvalidVersion, Version

from bbinstaller.domain.errors import VerificationError

_VERSION_TOKEN = re.compile(r"v?(\d+(?:\.\d+)+[0-9A-Za-z.+-]*)")


def verify_installation(binary: Path, *, timeout: float = 30.0) -> str:
    """Run ``binary --version`` and return the first non-empty output line."""

    if not binary.exists():
        raise VerificationError(f"{binary} does not exist")
    try:
        result = subprocess.run(
            [str(binary), "--version"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise VerificationError(f"{binary.name} --version timed out after {timeout:g}s") from exc
    except OSError as exc:
        raise VerificationError(f"Cannot execute {binary}: {exc}") from exc
    if result.returncode != 0:
        raise VerificationError(f"{binary.name} --version exited with code {result.returncode}")
    for line in (result.stdout or "").splitlines():
        if line.strip():
            return line.strip()
    raise VerificationError(f"{binary.name} --version printed nothing")


def _parse_version(value: str) -> Version | None:
    match = _VERSION_TOKEN.search(value)
    if match is None:
        return None
    try:
        return Version(match.group(1))
    except InvalidVersion:
        return None


def version_matches(reported: str, tag: str) -> bool | None:
    """Compare the version printed by the binary with the release tag.

    Returns ``None`` when either side is not a recognisable version.
    """

    reported_version = _parse_version(reported)
    tag_version = _parse_version(tag)
    if reported_version is None or tag_version is None:
        return None
    return reported_version == tag_version
