"""Command line interface: push, pull and status for a local script project.

All progress and results go to stdout; logs go to stderr (or, in watch
mode, to a log file).  Failures are printed with a corrective action and
exit with status 1.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any

from . import __version__
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import build_config
from .errors import ScriptSyncError, format_error
from .logger import setup_logging
from .runtime import project_runtime
from .sync.classifier import MANIFEST_EXTENSION, MANIFEST_NAME
from .sync.engine import ProjectFiles
from .sync.reporter import (
    files_to_json,
    format_pull_report,
    format_push_report,
    format_status_report,
    status_to_json,
)

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = f"{MANIFEST_NAME}{MANIFEST_EXTENSION}"


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _manifest_changed(paths: list[str]) -> bool:
    return any(PurePosixPath(p).name == MANIFEST_FILE_NAME for p in paths)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _push_changes(
    files: ProjectFiles, paths: list[str], args: argparse.Namespace
) -> bool:
    """Push after a change to *paths*.

    Returns:
        False when the push was skipped because the manifest changed and
        --force was not given, True otherwise.
    """
    if _manifest_changed(paths) and not args.force:
        if not args.json:
            print(
                "Manifest file has been updated. Skipping push "
                "(use --force to overwrite the remote manifest)."
            )
        return False

    pushed = await files.push()
    if args.json:
        _print_json(files_to_json(pushed))
        return True

    missing = files.check_missing_files_from_push_order(pushed)
    print(
        format_push_report(
            pushed,
            missing_from_order=missing,
            timestamp=datetime.now().strftime("%H:%M:%S"),
        )
    )
    return True


async def cmd_push(files: ProjectFiles, args: argparse.Namespace) -> int:
    pending = await files.changed_files()
    if pending:
        await _push_changes(files, [f.local_path for f in pending], args)
    elif args.json:
        _print_json([])
    else:
        print("Script is already up to date.")

    if not args.watch:
        return 0

    # set when a push inside the watch is skipped; ends the watch
    skipped = asyncio.Event()

    def _on_ready() -> None:
        if not args.json:
            print("Waiting for changes...")

    async def _on_change(paths: list[str]) -> None:
        try:
            pushed = await _push_changes(files, paths, args)
        except ScriptSyncError as e:
            logger.error("Push failed: %s", e)
            print(format_error(e), file=sys.stderr)
            return
        if not pushed:
            skipped.set()

    watcher = await files.watch_local_files(_on_change, on_ready=_on_ready)
    waiters = [
        asyncio.create_task(watcher.wait()),
        asyncio.create_task(skipped.wait()),
    ]
    try:
        await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
        await watcher.stop()
    return 0


async def cmd_pull(files: ProjectFiles, args: argparse.Namespace) -> int:
    pulled = await files.pull(args.version_number)
    if args.json:
        _print_json(files_to_json([f for f in pulled if f.source]))
    else:
        print(format_pull_report(pulled))
    return 0


async def cmd_status(files: ProjectFiles, args: argparse.Namespace) -> int:
    status = await files.status()
    if args.json:
        _print_json(status_to_json(status))
    else:
        print(format_status_report(status))
    return 0


COMMANDS = {
    "push": cmd_push,
    "pull": cmd_pull,
    "status": cmd_status,
}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


async def main(
    args: argparse.Namespace, config_overrides: dict | None = None
) -> int:
    """Run one command.

    Args:
        args: Parsed command line.
        config_overrides: Optional dict with config values from CLI (url,
            access_token, insecure, debug, project_file, ignore_file,
            content_dir)

    Returns:
        Process exit status.
    """
    try:
        async with project_runtime(config_overrides) as files:
            return await COMMANDS[args.command](files, args)
    except ScriptSyncError as e:
        logger.debug("Command failed", exc_info=True)
        print(format_error(e), file=sys.stderr)
        return 1
    except (RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptsync",
        description="Synchronise a local directory with a remote script project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show which files would be pushed and which are ignored
  scriptsync status

  # Push changed files, then keep pushing on every save
  scriptsync push --watch

  # Overwrite the remote manifest as well
  scriptsync push --force

  # Pull a specific version
  scriptsync pull --version 3

Credentials come from --token or SCRIPTSYNC_ACCESS_TOKEN (a .env file in the
working directory is honoured).
        """,
    )
    parser.add_argument(
        "--api-url",
        help="Override the content API URL (takes precedence over SCRIPTSYNC_API_URL and config files)",
    )
    parser.add_argument(
        "--token",
        help="OAuth access token (visible in process list -- prefer SCRIPTSYNC_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--project",
        help="Path to the project file (or the directory holding it)",
    )
    parser.add_argument(
        "--ignore-file",
        help="Path to the ignore file (default: .scriptsyncignore in the project root)",
    )
    parser.add_argument(
        "--content-dir",
        help="Override the project's content directory",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--debug-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file (watch mode logs only to a file)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"scriptsync version {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    push = subparsers.add_parser("push", help="Update the remote project")
    push.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Forcibly overwrite the remote manifest",
    )
    push.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Watch for local file changes and push when a non-ignored file changes",
    )
    push.add_argument("--json", action="store_true", help="JSON output")

    pull = subparsers.add_parser(
        "pull", help="Update local files from the remote project"
    )
    pull.add_argument(
        "--version",
        dest="version_number",
        type=int,
        help="Version number to pull (default: latest)",
    )
    pull.add_argument("--json", action="store_true", help="JSON output")

    status = subparsers.add_parser(
        "status", help="List files that would be pushed and untracked files"
    )
    status.add_argument("--json", action="store_true", help="JSON output")

    return parser


def _config_overrides(args: argparse.Namespace) -> dict:
    overrides: dict[str, Any] = {}
    if args.api_url:
        overrides["url"] = args.api_url
    if args.token:
        overrides["access_token"] = args.token
    if args.insecure:
        overrides["insecure"] = True
    if args.debug:
        overrides["debug"] = True
    if args.project:
        overrides["project_file"] = args.project
    if args.ignore_file:
        overrides["ignore_file"] = args.ignore_file
    if args.content_dir:
        overrides["content_dir"] = args.content_dir
    return overrides


def _configure_logging(args: argparse.Namespace) -> None:
    level = None
    log_file = args.log_file
    if discover_config_files():
        try:
            logging_config = build_config(load_hierarchical_config()).logging
        except ValueError as e:
            print(f"Warning: ignoring invalid config file: {e}", file=sys.stderr)
        else:
            level = logging_config.level
            log_file = log_file or logging_config.file

    setup_logging(
        mode="watch" if getattr(args, "watch", False) else "cli",
        debug=args.debug,
        log_file=log_file,
        debug_format=args.debug_format,
        level=level,
    )


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)
    _configure_logging(args)

    try:
        exit_code = asyncio.run(main(args, _config_overrides(args)))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
