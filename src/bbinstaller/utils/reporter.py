"""Leveled, human-readable status output for installer runs."""

from __future__ import annotations

import os
import sys
from typing import Mapping, NoReturn, TextIO

RULE = "━" * 68

_COLORS = {
    "info": "\033[0;34m",
    "success": "\033[0;32m",
    "warn": "\033[1;33m",
    "error": "\033[0;31m",
}
_RESET = "\033[0m"


def color_supported(stream: TextIO, environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    if env.get("NO_COLOR"):
        return False
    if env.get("FORCE_COLOR"):
        return True
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False
    return env.get("TERM", "") != "dumb"


class Reporter:
    """Writes ``[INFO]``/``[SUCCESS]`` to stdout and ``[WARN]``/``[ERROR]`` to stderr.

    ``error`` terminates the run with exit status 1.
    """

    def __init__(
        self,
        *,
        out: TextIO | None = None,
        err: TextIO | None = None,
        color: bool | None = None,
    ) -> None:
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self._color = color_supported(self._out) if color is None else color
        self.warnings: list[str] = []

    def _paint(self, level: str, text: str) -> str:
        if not self._color:
            return text
        return f"{_COLORS[level]}{text}{_RESET}"

    def _emit(self, stream: TextIO, level: str, message: str) -> None:
        label = self._paint(level, f"[{level.upper()}]")
        stream.write(f"{label} {message}\n")
        stream.flush()

    def info(self, message: str) -> None:
        self._emit(self._out, "info", message)

    def success(self, message: str) -> None:
        self._emit(self._out, "success", message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        self._emit(self._err, "warn", message)

    def error(self, message: str, *, exit_code: int = 1) -> NoReturn:
        self._emit(self._err, "error", message)
        raise SystemExit(exit_code)

    def line(self, text: str = "") -> None:
        self._out.write(f"{text}\n")

    def banner(self, title: str) -> None:
        self.line()
        self.line(RULE)
        self.line(f"  {title}")
        self.line(RULE)
        self.line()

    def next_steps(self, binary_name: str, repo_url: str) -> None:
        self.line()
        self.line(RULE)
        self.line(self._paint("success", f"{binary_name} (Bitbucket CLI) has been installed!"))
        self.line(RULE)
        self.line()
        self.line("Get started:")
        self.line(f"  {binary_name} auth login    # Authenticate with Bitbucket")
        self.line(f"  {binary_name} repo list     # List your repositories")
        self.line(f"  {binary_name} --help        # View all commands")
        self.line()
        self.line("Enable shell completions:")
        self.line("  # Bash")
        self.line(f"  {binary_name} completion bash >> ~/.bashrc")
        self.line()
        self.line("  # Zsh")
        self.line(f"  {binary_name} completion zsh >> ~/.zshrc")
        self.line()
        self.line("  # Fish")
        self.line(f"  {binary_name} completion fish > ~/.config/fish/completions/{binary_name}.fish")
        self.line()
        self.line(f"Documentation: {repo_url}")
        self.line()
        self._out.flush()


__all__ = ["Reporter", "RULE", "color_supported"]
