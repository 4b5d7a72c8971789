"""Runtime settings for a single installer run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping

import yaml

from bbinstaller import __version__
from bbinstaller.domain.errors import ConfigError
from bbinstaller.resources import load_defaults

if TYPE_CHECKING:
    from bbinstaller.app.install.platforms import PlatformStrategy

INSTALL_DIR_ENV = "BB_INSTALL_DIR"
TOKEN_ENV = "GITHUB_TOKEN"
EVENTS_ENV = "BB_INSTALL_EVENTS"

_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class InstallerSettings:
    repo: str
    binary_name: str
    github_base: str
    api_base: str
    install_dir: Path
    home_dir: Path
    version: str | None = None
    token: str | None = None
    require_checksum: bool = False
    modify_path: bool = True
    allow_sudo: bool = True
    events: bool = True
    request_timeout: float = 60.0
    max_attempts: int = 3
    retry_delay: float = 1.0
    verify_timeout: float = 30.0
    installer_version: str = __version__

    @property
    def repo_base(self) -> str:
        return f"{self.github_base.rstrip('/')}/{self.repo}"

    @property
    def latest_release_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.repo}/releases/latest"

    @property
    def log_dir(self) -> Path:
        return self.home_dir / "logs"


_SCALAR_TYPES: Dict[str, type] = {
    "repo": str,
    "binary_name": str,
    "github_base": str,
    "api_base": str,
    "version": str,
    "require_checksum": bool,
    "modify_path": bool,
    "allow_sudo": bool,
    "events": bool,
    "request_timeout": float,
    "max_attempts": int,
    "retry_delay": float,
    "verify_timeout": float,
}
_ALLOWED_KEYS = set(_SCALAR_TYPES) | {"install_dir"}


def _default_home_dir() -> Path:
    return Path.home() / ".bb-installer"


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    unknown = sorted(set(payload) - _ALLOWED_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return payload


def _merge(base: Dict[str, Any], update: Mapping[str, Any]) -> None:
    for key, value in update.items():
        if value is None:
            continue
        if key == "install_dir" and isinstance(value, dict):
            merged = dict(base.get("install_dir") or {})
            merged.update(value)
            base["install_dir"] = merged
        else:
            base[key] = value


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    coerced: Dict[str, Any] = {}
    for key, kind in _SCALAR_TYPES.items():
        if key not in values:
            continue
        value = values[key]
        try:
            if kind is bool:
                if isinstance(value, str):
                    value = value.strip().lower() not in _FALSY
                coerced[key] = bool(value)
            elif kind is float:
                coerced[key] = float(value)
            elif kind is int:
                coerced[key] = int(value)
            else:
                coerced[key] = str(value) if value is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for '{key}': {value!r}") from exc
    if coerced.get("max_attempts", 1) < 1:
        raise ConfigError("max_attempts must be at least 1")
    return coerced


def load_settings(
    strategy: "PlatformStrategy",
    *,
    env: Mapping[str, str] | None = None,
    config_path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    home_dir: Path | None = None,
) -> InstallerSettings:
    """Build the run configuration once.

    Precedence: packaged defaults < ``config_path`` < environment < ``overrides``.
    ``install_dir`` may be a plain path or a mapping keyed by the strategy's
    ``config_key`` (``posix`` or ``windows``); the strategy expands it.
    """

    environ = os.environ if env is None else env
    values: Dict[str, Any] = {}
    _merge(values, load_defaults())
    if config_path is not None:
        _merge(values, _read_config_file(config_path.expanduser()))

    configured_dir = values.get("install_dir")
    if isinstance(configured_dir, dict):
        configured_dir = configured_dir.get(strategy.config_key)
    if not isinstance(configured_dir, str) or not configured_dir.strip():
        raise ConfigError(f"No install_dir configured for {strategy.config_key} platforms")
    install_dir = strategy.expand_install_dir(configured_dir, environ)

    if environ.get(INSTALL_DIR_ENV):
        install_dir = Path(environ[INSTALL_DIR_ENV])
    if environ.get(EVENTS_ENV):
        values["events"] = environ[EVENTS_ENV]

    if overrides:
        override_values = dict(overrides)
        override_dir = override_values.pop("install_dir", None)
        if override_dir:
            install_dir = Path(override_dir)
        _merge(values, override_values)

    coerced = _coerce(values)
    return InstallerSettings(
        install_dir=install_dir.expanduser(),
        home_dir=home_dir or _default_home_dir(),
        token=environ.get(TOKEN_ENV) or None,
        **coerced,
    )


__all__ = [
    "EVENTS_ENV",
    "INSTALL_DIR_ENV",
    "InstallerSettings",
    "TOKEN_ENV",
    "load_settings",
]
