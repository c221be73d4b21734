"""Report local files that exist but are not part of the project.

Untracked files are collapsed to the shallowest directory that holds no
tracked file: an excluded ``node_modules`` tree is reported once as
``node_modules/``, while a lone excluded file next to tracked files is
reported by its own path.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Iterable

from .collector import list_local_paths, to_local_path

logger = logging.getLogger(__name__)


def parent_dirs(path: str) -> list[str]:
    """Ancestor directories of a relative forward-slash path, deepest first.

    Examples:
        >>> parent_dirs("a/b/c.js")
        ['a/b', 'a']
    """
    dirs: list[str] = []
    current = posixpath.dirname(path)
    while current not in ("", ".", "/"):
        dirs.append(current)
        current = posixpath.dirname(current)
    return dirs


class UntrackedFileScanner:
    """Compare the full content tree against the tracked file set.

    Args:
        content_dir: Directory to scan (unfiltered).
        cwd: Directory reported paths are relative to.
    """

    def __init__(self, content_dir: str | Path, cwd: Path | None = None) -> None:
        self.content_dir = Path(content_dir)
        self.cwd = cwd or Path.cwd()

    def scan(self, tracked_paths: Iterable[str]) -> list[str]:
        """Return sorted, deduplicated untracked paths and directories.

        Args:
            tracked_paths: ``local_path`` values of the in-project files.

        Returns:
            Paths relative to ``cwd``; directories end with ``/``.
        """
        tracked = set(tracked_paths)
        tracked_parents: set[str] = set()
        for path in tracked:
            tracked_parents.update(parent_dirs(path))

        untracked: set[str] = set()
        for rel_path in list_local_paths(self.content_dir, recursive=True):
            local_path = to_local_path(self.content_dir / rel_path, self.cwd)
            if local_path in tracked:
                continue

            display = local_path
            parent = posixpath.dirname(local_path)
            while parent not in ("", ".", "/") and parent not in tracked_parents:
                display = f"{parent}/"
                parent = posixpath.dirname(parent)
            untracked.add(display)

        result = sorted(untracked)
        logger.debug("Found %d untracked files/directories.", len(result))
        return result
