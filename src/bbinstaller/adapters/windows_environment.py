"""User-scope PATH persisted in the Windows registry."""

from __future__ import annotations

try:  # Windows-only
    import winreg
except ImportError:  # pragma: no cover - exercised on non-Windows only
    winreg = None  # type: ignore[assignment]

from bbinstaller.ports.user_environment import UserEnvironment

ENVIRONMENT_KEY = "Environment"
PATH_VALUE = "Path"


class WinregUserEnvironment(UserEnvironment):
    """Reads and writes ``HKEY_CURRENT_USER\\Environment\\Path``."""

    def __init__(self) -> None:
        if winreg is None:
            raise OSError("Windows registry is not available on this platform")
        self._value_type = winreg.REG_EXPAND_SZ

    def read_path(self) -> str:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, ENVIRONMENT_KEY, 0, winreg.KEY_READ) as key:
            try:
                value, value_type = winreg.QueryValueEx(key, PATH_VALUE)
            except FileNotFoundError:
                return ""
        if value_type in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
            self._value_type = value_type
        return str(value or "")

    def write_path(self, value: str) -> None:
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, ENVIRONMENT_KEY, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, PATH_VALUE, 0, self._value_type, value)
