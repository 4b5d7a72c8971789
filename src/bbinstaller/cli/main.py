#!/usr/bin/env python3
"""Entry point for the bb-install CLI."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict

from bbinstaller import __version__
from bbinstaller.adapters.github_releases import GitHubReleaseSource
from bbinstaller.app.install import InstallService, strategy_for
from bbinstaller.domain.errors import InstallerError
from bbinstaller.domain.platform import resolve_platform
from bbinstaller.ports.release_source import ReleaseSource
from bbinstaller.settings import InstallerSettings, load_settings
from bbinstaller.utils.events import record_event
from bbinstaller.utils.reporter import Reporter

HELP_OVERVIEW = dedent(
    """
    Install the bb (Bitbucket CLI) release binary for this machine.

    Environment:
      BB_INSTALL_DIR=<dir>   install directory (default: /usr/local/bin,
                             %LOCALAPPDATA%\\Programs\\bb on Windows)
      GITHUB_TOKEN=<token>   authenticate GitHub API requests
      BB_INSTALL_EVENTS=0    disable the local event log
      NO_COLOR=1             disable colored output

    Event log:
      ~/.bb-installer/logs/install.jsonl, one JSON record per stage;
      moved to install.jsonl.1 once it reaches 256 KiB.
    """
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bb-install",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"bb-install {__version__}")
    parser.add_argument("--tag", help="Install this release tag instead of the latest (e.g. v1.2.0)")
    parser.add_argument("--install-dir", help="Install directory (overrides BB_INSTALL_DIR)")
    parser.add_argument("--repo", help="GitHub repository publishing the releases (owner/name)")
    parser.add_argument("--config", help="YAML file with installer settings")
    parser.add_argument(
        "--require-checksum",
        action="store_true",
        default=None,
        help="Fail when the release has no .sha256 checksum file",
    )
    parser.add_argument("--no-modify-path", action="store_true", help="Do not touch PATH")
    parser.add_argument("--no-sudo", action="store_true", help="Never retry a failed copy through sudo")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--json", action="store_true", help="Print the installation result as JSON")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "version": args.tag,
        "install_dir": args.install_dir,
        "repo": args.repo,
        "require_checksum": args.require_checksum,
    }
    if args.no_modify_path:
        overrides["modify_path"] = False
    if args.no_sudo:
        overrides["allow_sudo"] = False
    return {key: value for key, value in overrides.items() if value is not None}


def _build_source(settings: InstallerSettings) -> ReleaseSource:
    return GitHubReleaseSource(settings)


def _run(args: argparse.Namespace, reporter: Reporter) -> int:
    platform = resolve_platform()
    strategy = strategy_for(platform)
    settings = load_settings(
        strategy,
        config_path=Path(args.config) if args.config else None,
        overrides=_overrides_from_args(args),
    )
    service = InstallService(
        settings=settings,
        platform=platform,
        strategy=strategy,
        source=_build_source(settings),
        reporter=reporter,
    )
    try:
        result = service.run()
    except InstallerError as exc:
        record_event(
            settings,
            "install.failed",
            payload={"error": str(exc), "kind": type(exc).__name__},
            level="error",
            status="failed",
        )
        raise

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        reporter.next_steps(settings.binary_name, settings.repo_base)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # Keep stdout clean for the JSON document.
    reporter = Reporter(out=sys.stderr if args.json else None, color=False if args.no_color else None)
    if not args.json:
        reporter.banner("bb (Bitbucket CLI) Installer")
    try:
        return _run(args, reporter)
    except InstallerError as exc:
        reporter.error(str(exc))
    except KeyboardInterrupt:
        reporter.error("Installation interrupted", exit_code=130)


if __name__ == "__main__":
    sys.exit(main())
