"""Project file operations against the remote content API.

``ProjectFiles`` assembles the collector, the gateway and the pipelines for
one local project:

- ``collect_local_files`` -- in-project files with content.
- ``fetch_remote``        -- remote files mapped to local paths.
- ``changed_files``       -- local files a push would change.
- ``untracked_files``     -- local files excluded from the project.
- ``status``              -- tracked plus untracked files.
- ``push``                -- ordered full-content upload.
- ``pull``                -- download and write files locally.
- ``watch_local_files``   -- debounced change notifications.

Remote calls run in worker threads via ``run_sync``; local reads and writes
fan out through ``map_limited``.  Gateway failures are translated into the
``scriptsync.errors`` taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from ..config import Config
from ..config_schema import ProjectSettings
from ..core.async_utils import map_limited, run_sync
from ..errors import (
    ApiError,
    ContentApiError,
    MissingScriptConfiguration,
    NotAuthenticated,
    ScriptSyntaxError,
)
from ..file_handler import write_file
from ..validators import validate_remote_name
from .classifier import local_name_for
from .collector import LocalFileCollector, to_local_path
from .diff import diff_files
from .models import FileStatus, ProjectFile
from .syntax_error import extract_syntax_error
from .untracked import UntrackedFileScanner
from .watcher import (
    DEFAULT_QUIET_PERIOD,
    BatchCallback,
    ChangeWatcher,
    ReadyCallback,
)

if TYPE_CHECKING:
    from ..core.client import ContentGateway

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Push order
# ---------------------------------------------------------------------------


def sort_by_push_order(
    files: Sequence[ProjectFile], push_order: Sequence[str]
) -> list[ProjectFile]:
    """Order files by their position in *push_order*.

    Listed files come first in list order; the rest follow sorted by
    ``local_path``.
    """
    positions: dict[str, int] = {}
    for index, path in enumerate(push_order):
        positions.setdefault(path, index)
    unlisted = len(positions) + len(push_order)

    def _key(file: ProjectFile) -> tuple[int, str]:
        return (positions.get(file.local_path, unlisted), file.local_path)

    return sorted(files, key=_key)


def missing_from_push_order(
    push_order: Sequence[str], pushed: Sequence[ProjectFile]
) -> list[str]:
    """Push-order entries that were not among the pushed files."""
    pushed_paths = {f.local_path for f in pushed}
    return [path for path in push_order if path not in pushed_paths]


def _to_api_error(exc: ContentApiError) -> ApiError:
    return ApiError(
        exc.message, status=exc.status, original_message=exc.original_message
    )


# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------


class ProjectFiles:
    """File operations for one configured project.

    Args:
        settings: Project settings (script id, content dir, ignore rules).
        config: Connection config; its access token is the credential.
        gateway: Remote content capability.
        cwd: Directory ``local_path`` values are relative to (default CWD).
    """

    def __init__(
        self,
        settings: ProjectSettings,
        config: Config,
        gateway: ContentGateway,
        cwd: Path | None = None,
    ) -> None:
        self.settings = settings
        self.config = config
        self.gateway = gateway
        self.cwd = cwd or Path.cwd()

    @property
    def content_dir(self) -> Path:
        return Path(self.settings.files.content_dir or self.cwd)

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def _require_authenticated(self) -> None:
        if not self.config.authenticated:
            raise NotAuthenticated()

    def _require_script(self) -> str:
        if not self.settings.is_configured:
            logger.debug("Essential script configuration is missing")
            raise MissingScriptConfiguration()
        return self.settings.script_id  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Local and remote listings
    # ------------------------------------------------------------------

    def collector(self) -> LocalFileCollector:
        files = self.settings.files
        return LocalFileCollector(
            self.content_dir,
            ignore_patterns=files.ignore_patterns,
            extensions=files.extensions,
            recursive=not files.skip_subdirectories,
            cwd=self.cwd,
            max_parallel_io=self.config.max_parallel_io,
        )

    async def collect_local_files(self) -> list[ProjectFile]:
        """Collect the in-project files with their content.

        Raises:
            MissingScriptConfiguration: If the project is not configured.
            FileConflict: If two source-code files share a remote name.
        """
        self._require_script()
        logger.debug("Collecting local project files...")
        return await self.collector().collect()

    async def fetch_remote(self, version: int | None = None) -> list[ProjectFile]:
        """Fetch remote files, mapping each to its local path.

        Raises:
            NotAuthenticated: If no credential is configured.
            MissingScriptConfiguration: If the project is not configured.
            ApiError: If the content API rejects the request.
        """
        self._require_authenticated()
        script_id = self._require_script()
        logger.debug("Fetching remote files. Version: %s", version or "HEAD")

        try:
            records = await run_sync(
                self.gateway.fetch_content, script_id, version
            )
        except ContentApiError as exc:
            raise _to_api_error(exc) from exc

        extensions = self.settings.files.extensions
        files = []
        for record in records:
            local_name = local_name_for(record.name, record.type, extensions)
            files.append(
                ProjectFile(
                    local_path=to_local_path(
                        self.content_dir / local_name, self.cwd
                    ),
                    remote_path=record.name,
                    source=record.source,
                    kind=record.type,
                )
            )
        return files

    async def changed_files(self) -> list[ProjectFile]:
        """Local files whose content differs from, or is missing on, remote."""
        logger.debug("Comparing local and remote files to find changes...")
        local, remote = await asyncio.gather(
            self.collect_local_files(), self.fetch_remote()
        )
        return diff_files(local, remote)

    async def untracked_files(self) -> list[str]:
        """Local files (or whole directories) not part of the project."""
        tracked = await self.collect_local_files()
        scanner = UntrackedFileScanner(self.content_dir, cwd=self.cwd)
        return await run_sync(scanner.scan, [f.local_path for f in tracked])

    async def status(self) -> FileStatus:
        """Files a push would upload plus untracked local files."""
        files, untracked = await asyncio.gather(
            self.collect_local_files(), self.untracked_files()
        )
        return FileStatus(files_to_push=files, untracked_files=untracked)

    # ------------------------------------------------------------------
    # Push / pull
    # ------------------------------------------------------------------

    async def push(self) -> list[ProjectFile]:
        """Upload every in-project file in push order.

        Returns:
            The files sent, in upload order; empty when there was nothing
            to push (no API call is made).

        Raises:
            NotAuthenticated: If no credential is configured.
            MissingScriptConfiguration: If the project is not configured.
            FileConflict: If two source-code files share a remote name.
            ScriptSyntaxError: If the remote rejects a file that does not
                compile.
            ApiError: For any other rejection.
        """
        self._require_authenticated()
        script_id = self._require_script()
        logger.debug("Pushing local files to remote project...")

        files = await self.collect_local_files()
        if not files:
            logger.debug("No local files found to push.")
            return []

        files = sort_by_push_order(files, self.settings.files.push_order)
        records = [f.to_record() for f in files]
        logger.debug("Replacing remote content with %d files.", len(records))
        try:
            await run_sync(self.gateway.replace_content, script_id, records)
        except ContentApiError as exc:
            details = extract_syntax_error(exc.message, files)
            if details is None and exc.original_message != exc.message:
                details = extract_syntax_error(exc.original_message, files)
            if details is not None:
                raise ScriptSyntaxError(
                    details.message,
                    name=details.name,
                    line=details.line,
                    file=details.file,
                    snippet=details.snippet,
                ) from exc
            raise _to_api_error(exc) from exc

        logger.debug("Successfully pushed %d files.", len(files))
        return files

    def check_missing_files_from_push_order(
        self, pushed: Sequence[ProjectFile]
    ) -> list[str]:
        """Push-order entries that were not part of *pushed*."""
        return missing_from_push_order(self.settings.files.push_order, pushed)

    async def pull(self, version: int | None = None) -> list[ProjectFile]:
        """Fetch remote files and write them under the content directory.

        Files without a source body are not written.  Writes run
        concurrently; a failure part way leaves earlier writes in place.

        Raises:
            NotAuthenticated: If no credential is configured.
            MissingScriptConfiguration: If the project is not configured.
            ApiError: If the content API rejects the request.
            ValueError: If a remote name would escape the content directory.
        """
        files = await self.fetch_remote(version)
        for file in files:
            is_valid, error = validate_remote_name(file.remote_path or "")
            if not is_valid:
                raise ValueError(f"{error}: {file.remote_path!r}")

        to_write = [f for f in files if f.source]
        skipped = len(files) - len(to_write)
        if skipped:
            logger.debug("Skipping %d files with no source content", skipped)

        await map_limited(
            self._write_project_file,
            to_write,
            limit=self.config.max_parallel_io,
        )
        logger.debug("Successfully pulled and wrote %d files.", len(to_write))
        return files

    def _write_project_file(self, file: ProjectFile) -> None:
        write_file(self.cwd / file.local_path, file.source or "")
        logger.debug("Wrote file: %s", file.local_path)

    # ------------------------------------------------------------------
    # Watch
    # ------------------------------------------------------------------

    async def watch_local_files(
        self,
        on_change: BatchCallback,
        on_ready: ReadyCallback | None = None,
        delay: float = DEFAULT_QUIET_PERIOD,
    ) -> ChangeWatcher:
        """Start a watcher on the content directory.

        Returns:
            The running watcher; call ``stop()`` to end it.
        """
        watcher = ChangeWatcher(
            self.content_dir,
            self.settings.files.ignore_patterns,
            on_change=on_change,
            on_ready=on_ready,
            delay=delay,
        )
        await watcher.start()
        return watcher
