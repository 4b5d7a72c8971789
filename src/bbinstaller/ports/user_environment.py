"""Port for the persistent, user-scoped PATH value."""

from __future__ import annotations

from abc import ABC, abstractmethod


class UserEnvironment(ABC):
    @abstractmethod
    def read_path(self) -> str:
        """Return the persisted user PATH (empty string when unset)."""

    @abstractmethod
    def write_path(self, value: str) -> None:
        """Persist ``value`` as the user PATH. Raises ``OSError`` on failure."""
