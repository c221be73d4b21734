"""Local/remote project file synchronization engine.

Mirrors a remote script project, stored behind the content API, against a
local directory tree.

Modules:

- ``engine``       -- ``ProjectFiles``: push, pull, status, diff and watch.
- ``collector``    -- ``LocalFileCollector``: discover in-project files.
- ``classifier``   -- map file names to kinds and remote names.
- ``ignore``       -- ``IgnoreMatcher``: glob ignore rules with negation.
- ``diff``         -- ``diff_files``: what a push would change.
- ``syntax_error`` -- locate compile errors reported on push.
- ``untracked``    -- ``UntrackedFileScanner``: files outside the project.
- ``watcher``      -- ``ChangeWatcher`` and ``Debouncer``.
- ``models``       -- ``FileKind``, ``ProjectFile``, ``RemoteFileRecord``,
  ``FileStatus``: core data contracts.
- ``reporter``     -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from scriptsync.config import load_config
    from scriptsync.config_loader import load_project_settings
    from scriptsync.core import ScriptClient
    from scriptsync.sync import ProjectFiles, format_push_report

    config = load_config()
    files = ProjectFiles(
        settings=load_project_settings(),
        config=config,
        gateway=ScriptClient(config),
    )

    pushed = await files.push()
    print(format_push_report(pushed))
"""

from .collector import LocalFileCollector
from .diff import diff_files
from .engine import ProjectFiles, missing_from_push_order, sort_by_push_order
from .ignore import DEFAULT_IGNORE_PATTERNS, IgnoreMatcher
from .models import FileKind, FileStatus, ProjectFile, RemoteFileRecord
from .reporter import (
    format_pull_report,
    format_push_report,
    format_status_report,
    status_to_json,
)
from .untracked import UntrackedFileScanner
from .watcher import ChangeWatcher, Debouncer, WatchState

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "ChangeWatcher",
    "Debouncer",
    "FileKind",
    "FileStatus",
    "IgnoreMatcher",
    "LocalFileCollector",
    "ProjectFile",
    "ProjectFiles",
    "RemoteFileRecord",
    "UntrackedFileScanner",
    "WatchState",
    "diff_files",
    "format_pull_report",
    "format_push_report",
    "format_status_report",
    "missing_from_push_order",
    "sort_by_push_order",
    "status_to_json",
]
