"""Packaged resources for the installer."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict

import yaml

__all__ = ["load_defaults", "load_event_schema"]


@lru_cache(maxsize=1)
def load_defaults() -> Dict[str, Any]:
    """Return the default configuration shipped with the package."""

    raw = (resources.files(__name__) / "defaults.yaml").read_text("utf-8")
    payload = yaml.safe_load(raw) or {}
    if not isinstance(payload, dict):
        raise ValueError("defaults.yaml must contain a mapping")
    return payload


@lru_cache(maxsize=1)
def load_event_schema() -> Dict[str, Any]:
    raw = (resources.files(__name__) / "events.schema.json").read_text("utf-8")
    return json.loads(raw)
