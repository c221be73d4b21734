"""Local project file discovery.

``LocalFileCollector`` turns the content directory into the ordered list of
``ProjectFile`` objects a push would upload:

1. List every plain file under the content directory (optionally only the
   top level), as forward-slash paths relative to the content directory.
2. Drop paths excluded by the ignore rules; sort the rest.
3. Classify each path; files of unknown kind are dropped.
4. Derive remote names and reject source-code name collisions.
5. Read file contents with bounded concurrency.

Conflicts are detected before any file is read, so a collision aborts the
collection without touching file contents.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..config_schema import ExtensionTable
from ..core.async_utils import DEFAULT_CONCURRENCY, map_limited
from ..errors import FileConflict
from ..file_handler import read_text
from .classifier import classify, remote_name_for
from .ignore import IgnoreMatcher
from .models import FileKind, ProjectFile

logger = logging.getLogger(__name__)


def list_local_paths(content_dir: Path, recursive: bool = True) -> list[str]:
    """List plain files under *content_dir*, relative to it, sorted.

    Args:
        content_dir: Directory to walk.
        recursive: When False only files directly inside *content_dir*
            are returned.

    Returns:
        Forward-slash relative paths in lexicographic order.
    """
    if not content_dir.is_dir():
        logger.debug("Content directory %s does not exist", content_dir)
        return []

    paths: list[str] = []
    for dirpath, dirnames, filenames in os.walk(content_dir):
        rel_dir = Path(dirpath).relative_to(content_dir)
        for filename in filenames:
            if not os.path.isfile(os.path.join(dirpath, filename)):
                continue
            paths.append((rel_dir / filename).as_posix())
        if not recursive:
            dirnames.clear()
    paths.sort()
    return paths


def to_local_path(path: Path, cwd: Path) -> str:
    """Express *path* relative to *cwd* with forward slashes."""
    return Path(os.path.relpath(path, cwd)).as_posix()


class FilenameConflictChecker:
    """Track ``dir/name`` keys of source-code files and reject repeats.

    Only ``SOURCE_CODE`` files share a namespace: ``foo.js`` and ``foo.gs``
    collide, ``foo.js`` and ``foo.html`` do not.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def check(self, file: ProjectFile) -> ProjectFile:
        """Register *file*, raising ``FileConflict`` if its key was seen."""
        if file.kind != FileKind.SOURCE_CODE:
            return file
        key = file.remote_path or Path(file.local_path).with_suffix("").as_posix()
        if key in self._seen:
            raise FileConflict(key, file.local_path, file.kind.value)
        self._seen.add(key)
        return file


class LocalFileCollector:
    """Collect in-project files from a content directory.

    Args:
        content_dir: Directory whose files make up the project.
        ignore_patterns: Ignore rules evaluated relative to *content_dir*.
        extensions: Extension table used for classification.
        recursive: Descend into subdirectories.
        cwd: Directory ``local_path`` values are relative to (default CWD).
        max_parallel_io: Concurrent file reads.
    """

    def __init__(
        self,
        content_dir: str | Path,
        ignore_patterns: list[str] | None = None,
        extensions: ExtensionTable | None = None,
        recursive: bool = True,
        cwd: Path | None = None,
        max_parallel_io: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.content_dir = Path(content_dir)
        self.matcher = IgnoreMatcher(ignore_patterns)
        self.extensions = extensions or ExtensionTable()
        self.recursive = recursive
        self.cwd = cwd or Path.cwd()
        self.max_parallel_io = max_parallel_io

    def candidates(self) -> list[ProjectFile]:
        """Classified, conflict-checked files without their content.

        Raises:
            FileConflict: If two source-code files share a remote name.
        """
        logger.debug(
            "Collecting files in %s, recursive: %s",
            self.content_dir,
            self.recursive,
        )
        paths = list_local_paths(self.content_dir, self.recursive)
        if self.matcher.patterns:
            paths = self.matcher.filter_paths(paths)

        checker = FilenameConflictChecker()
        files: list[ProjectFile] = []
        for rel_path in paths:
            kind = classify(rel_path, self.extensions)
            if kind == FileKind.UNKNOWN:
                logger.debug("Ignoring unsupported file type: %s", rel_path)
                continue
            files.append(
                checker.check(
                    ProjectFile(
                        local_path=to_local_path(
                            self.content_dir / rel_path, self.cwd
                        ),
                        remote_path=remote_name_for(rel_path, kind),
                        kind=kind,
                    )
                )
            )
        return files

    async def collect(self) -> list[ProjectFile]:
        """Collect files with their content loaded.

        Unreadable files are skipped with a warning.

        Raises:
            FileConflict: If two source-code files share a remote name.
        """
        files = self.candidates()
        sources = await map_limited(
            self._read_source, files, limit=self.max_parallel_io
        )
        collected = [
            f.model_copy(update={"source": source})
            for f, source in zip(files, sources)
            if source is not None
        ]
        logger.debug("Collected %d local files.", len(collected))
        return collected

    def _read_source(self, file: ProjectFile) -> str | None:
        path = self.cwd / file.local_path
        try:
            return read_text(path)
        except OSError as exc:
            logger.warning(
                "Could not read file %s. Skipping. Error: %s",
                file.local_path,
                exc,
            )
            return None
