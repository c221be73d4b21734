"""Push, pull and status report formatting.

Provides human-readable and machine-readable output for sync operations:

- ``format_push_report`` -- files pushed, plus push-order entries missing.
- ``format_pull_report`` -- files written locally.
- ``format_status_report`` -- tracked and untracked files.
- ``status_to_json`` / ``files_to_json`` -- structured dicts for ``--json``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import FileStatus, ProjectFile

# ------------------------------------------------------------------
# Human-readable reports
# ------------------------------------------------------------------


def format_push_report(
    pushed: Sequence[ProjectFile],
    missing_from_order: Sequence[str] = (),
    timestamp: str | None = None,
) -> str:
    """Format the result of a push.

    Args:
        pushed: Files sent, in upload order.
        missing_from_order: Push-order entries that were not pushed.
        timestamp: Time of the push, appended to the summary line.

    Returns:
        Multi-line formatted string.
    """
    if not pushed:
        return "No files to push."

    count = "one file" if len(pushed) == 1 else f"{len(pushed)} files"
    summary = f"Pushed {count}"
    if timestamp:
        summary += f" at {timestamp}"
    lines: list[str] = [f"{summary}."]
    for file in pushed:
        lines.append(f"└─ {file.local_path}")

    if missing_from_order:
        lines.append("")
        lines.append("Warning: files in filePushOrder were not pushed:")
        for path in missing_from_order:
            lines.append(f"  {path}")

    return "\n".join(lines)


def format_pull_report(pulled: Sequence[ProjectFile]) -> str:
    """Format the result of a pull.

    Only files that were written (those with content) are listed.
    """
    written = [f for f in pulled if f.source]
    lines = [f"└─ {f.local_path}" for f in written]
    lines.append(f"Pulled {len(written)} files.")
    return "\n".join(lines)


def format_status_report(status: FileStatus) -> str:
    """Format tracked and untracked files, one section each."""
    lines: list[str] = []

    lines.append("Tracked files:")
    for file in status.files_to_push:
        lines.append(f"└─ {file.local_path}")
    lines.append("")

    lines.append("Untracked files:")
    for path in status.untracked_files:
        lines.append(f"└─ {path}")

    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def files_to_json(files: Sequence[ProjectFile]) -> list[str]:
    """Local paths of *files*, for JSON output."""
    return [f.local_path for f in files]


def status_to_json(status: FileStatus) -> dict:
    """Convert a status to ``{"filesToPush": [...], "untrackedFiles": [...]}``."""
    return {
        "filesToPush": files_to_json(status.files_to_push),
        "untrackedFiles": list(status.untracked_files),
    }
