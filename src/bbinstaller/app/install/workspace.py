"""Run-scoped scratch directory for downloads and extraction."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from types import TracebackType


class ScratchWorkspace:
    """Creates a unique temporary directory and removes it on every exit path."""

    def __init__(self, prefix: str = "bb-install-", base_dir: Path | None = None) -> None:
        self._prefix = prefix
        self._base_dir = base_dir
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Scratch workspace is not active")
        return self._path

    @property
    def downloads(self) -> Path:
        return self.path / "download"

    @property
    def extracted(self) -> Path:
        return self.path / "extract"

    def __enter__(self) -> "ScratchWorkspace":
        self._path = Path(tempfile.mkdtemp(prefix=self._prefix, dir=self._base_dir))
        self.downloads.mkdir()
        self.extracted.mkdir()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._path is not None:
            shutil.rmtree(self._path, ignore_errors=True)
            self._path = None
