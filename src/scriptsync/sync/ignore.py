"""Glob-based ignore rules for project files.

Patterns follow gitignore wildcard syntax via ``pathspec``: ``**`` spans
directories, ``!`` negates, and the last matching pattern decides.  Dotfiles
are matched like any other file.

As in a ``.gitignore``, a pattern without a slash matches at any depth
(``*.txt`` also ignores ``sub/notes.txt``) and a pattern naming a directory
ignores everything below it (``lib`` ignores ``lib/a.js``).  Anchor a
pattern with a leading ``/`` to match from the content root only.

A path is *included* when the combined pattern set does not match it; an
empty pattern set includes everything.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Iterable

import pathspec

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "**/**",
    "!**/appsscript.json",
    "!**/*.gs",
    "!**/*.js",
    "!**/*.ts",
    "!**/*.html",
    ".git/**",
    "node_modules/**",
)


class IgnoreMatcher:
    """Evaluate relative paths against an ordered ignore pattern list.

    Examples:
        >>> matcher = IgnoreMatcher(["*.txt", "!keep.txt"])
        >>> matcher.is_included("notes.txt")
        False
        >>> matcher.is_included("keep.txt")
        True
    """

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        self.patterns = [p for p in (patterns or []) if p.strip()]
        self._spec: pathspec.PathSpec | None = None
        if self.patterns:
            self._spec = pathspec.PathSpec.from_lines(
                "gitignore", self.patterns
            )

    def is_ignored(self, relative_path: str | PurePath) -> bool:
        """Return True if the pattern set excludes *relative_path*."""
        if self._spec is None:
            return False
        rel = (
            relative_path.as_posix()
            if isinstance(relative_path, PurePath)
            else relative_path.replace("\\", "/")
        )
        return self._spec.match_file(rel)

    def is_included(self, relative_path: str | PurePath) -> bool:
        return not self.is_ignored(relative_path)

    def filter_paths(self, paths: Iterable[str]) -> list[str]:
        """Keep only the included paths, preserving order."""
        paths = list(paths)
        kept = [p for p in paths if self.is_included(p)]
        logger.debug(
            "Ignored %d files based on ignore rules. Kept %d files.",
            len(paths) - len(kept),
            len(kept),
        )
        return kept
