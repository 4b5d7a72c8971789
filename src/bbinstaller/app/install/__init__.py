"""Install pipeline package."""

from .platforms import PlatformStrategy, PosixStrategy, WindowsStrategy, strategy_for  # noqa: F401
from .service import InstallService  # noqa: F401
from .workspace import ScratchWorkspace  # noqa: F401

__all__ = [
    "InstallService",
    "PlatformStrategy",
    "PosixStrategy",
    "ScratchWorkspace",
    "WindowsStrategy",
    "strategy_for",
]
