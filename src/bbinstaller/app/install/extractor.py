"""Unpacking of release archives into the scratch workspace."""

from __future__ import annotations

import os
import tarfile
import zipfile
from pathlib import Path

from bbinstaller.domain.errors import ExtractionError


def _ensure_inside(root: Path, member: str) -> None:
    resolved_root = os.path.realpath(root)
    resolved = os.path.realpath(os.path.join(resolved_root, member))
    if resolved != resolved_root and not resolved.startswith(resolved_root + os.sep):
        raise ExtractionError(f"Refusing to extract '{member}': path traversal detected")


def _extract_tar(archive: Path, destination: Path) -> None:
    with tarfile.open(archive, "r:gz") as tf:
        if hasattr(tarfile, "data_filter"):
            tf.extractall(destination, filter="data")
            return
        for member in tf.getmembers():
            _ensure_inside(destination, member.name)
            if member.issym() or member.islnk():
                _ensure_inside(destination, os.path.join(os.path.dirname(member.name), member.linkname))
        tf.extractall(destination)


def _extract_zip(archive: Path, destination: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        for name in zf.namelist():
            _ensure_inside(destination, name)
        zf.extractall(destination)


def extract_archive(archive: Path, destination: Path, extension: str) -> Path:
    """Unpack ``archive`` (``tar.gz`` or ``zip``) into ``destination``."""

    destination.mkdir(parents=True, exist_ok=True)
    try:
        if extension == "zip":
            _extract_zip(archive, destination)
        elif extension == "tar.gz":
            _extract_tar(archive, destination)
        else:
            raise ExtractionError(f"Unsupported archive format: .{extension}")
    except (tarfile.TarError, zipfile.BadZipFile, EOFError) as exc:
        raise ExtractionError(f"Failed to extract {archive.name}: {exc}") from exc
    except OSError as exc:
        raise ExtractionError(f"Cannot read {archive.name}: {exc}") from exc
    return destination
