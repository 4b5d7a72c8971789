"""SHA-256 verification of downloaded archives."""

from __future__ import annotations

from hashlib import sha256
from pathlib import Path

from bbinstaller.domain.errors import ChecksumMismatchError, ChecksumUnavailableError
from bbinstaller.domain.release import ChecksumRecord
from bbinstaller.utils.reporter import Reporter

_BLOCK_SIZE = 1024 * 1024


def compute_sha256(path: Path) -> str:
    digest = sha256()
    with path.open("rb") as fh:
        for block in iter(lambda: fh.read(_BLOCK_SIZE), b""):
            digest.update(block)
    return digest.hexdigest()


def verify_archive(
    archive: Path,
    checksum_path: Path | None,
    reporter: Reporter,
    *,
    require: bool = False,
) -> bool:
    """Return ``True`` when the archive matched a published checksum.

    Without a checksum resource the archive is left unverified (``False``),
    unless ``require`` is set, in which case the run fails closed.
    """

    if checksum_path is None or not checksum_path.exists():
        if require:
            raise ChecksumUnavailableError(
                "Checksum file is not available and checksum verification is required"
            )
        reporter.warn("Checksum file not available; skipping verification, the archive is unverified")
        return False

    reporter.info("Verifying checksum...")
    record = ChecksumRecord.parse(checksum_path.read_text(encoding="utf-8", errors="replace"))
    actual = compute_sha256(archive)
    if not record.matches(actual):
        raise ChecksumMismatchError(
            f"Checksum verification failed! expected {record.digest or '<empty>'}, got {actual}"
        )
    reporter.success("Checksum verified")
    return True
