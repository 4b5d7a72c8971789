"""Local structured event log for installer runs (opt-out).

Records go to ``<home>/logs/install.jsonl``. Once the file passes
``MAX_LOG_BYTES`` it is moved to ``install.jsonl.1`` (replacing the previous
generation), so at most two files ever exist.
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any

import jsonschema

from bbinstaller.resources import load_event_schema
from bbinstaller.settings import InstallerSettings

LEVELS = {"info", "warn", "error"}
LOG_FILENAME = "install.jsonl"
MAX_LOG_BYTES = 256 * 1024

_VALIDATOR: jsonschema.Draft202012Validator | None = None


def log_path(settings: InstallerSettings) -> Path:
    return settings.log_dir / LOG_FILENAME


def record_event(
    settings: InstallerSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    duration_ms: float | None = None,
) -> None:
    if not settings.events:
        return
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    if duration_ms is not None:
        record["durationMs"] = round(duration_ms, 3)
    _validate_record(record)
    path = log_path(settings)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _rotate(path)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False) + "\n")
    except OSError:
        # The event log never decides the outcome of an install.
        return


def _rotate(path: Path) -> None:
    try:
        size = path.stat().st_size
    except FileNotFoundError:
        return
    if size >= MAX_LOG_BYTES:
        os.replace(path, path.with_name(path.name + ".1"))


def _validator() -> jsonschema.Draft202012Validator:
    global _VALIDATOR
    if _VALIDATOR is None:
        _VALIDATOR = jsonschema.Draft202012Validator(load_event_schema())
    return _VALIDATOR


def _validate_record(record: dict[str, Any]) -> None:
    if record.get("level") not in LEVELS:
        raise ValueError(f"Event level '{record.get('level')}' is not supported")
    _validator().validate(record)


__all__ = ["LOG_FILENAME", "MAX_LOG_BYTES", "log_path", "record_event"]
