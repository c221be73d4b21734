"""Pydantic models for the file synchronization engine.

Defines the core data contracts shared by every sync module:

- ``FileKind``: Logical role of a file in the remote project.
- ``ProjectFile``: One file with its local and remote identities.
- ``RemoteFileRecord``: Wire shape of a file exchanged with the content API.
- ``FileStatus``: Tracked and untracked files for a status report.

All models are frozen (immutable); instances are built fresh by every
collection or fetch and never cached.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class FileKind(str, Enum):
    """Logical file kinds.  Values are the remote API's type names."""

    SOURCE_CODE = "SERVER_JS"
    MARKUP = "HTML"
    MANIFEST = "JSON"
    UNKNOWN = "UNKNOWN"


class ProjectFile(BaseModel):
    """A project file as seen locally and remotely.

    Attributes:
        local_path: Path relative to the invocation working directory.
        remote_path: Extension-less remote name, forward-slash separated.
        source: Text content (``None`` when not loaded).
        kind: Logical file kind.
    """

    local_path: str
    remote_path: str | None = None
    source: str | None = None
    kind: FileKind = FileKind.UNKNOWN

    model_config = {"frozen": True}

    def to_record(self) -> RemoteFileRecord:
        """Convert to the wire shape sent to the content API."""
        return RemoteFileRecord(
            name=self.remote_path or "",
            type=self.kind,
            source=self.source,
        )


class RemoteFileRecord(BaseModel):
    """A file as exchanged with the content API.

    Attributes:
        name: Remote logical name (no extension).
        type: File kind.
        source: File body; absent bodies come back as ``None``.
    """

    name: str
    type: FileKind
    source: str | None = None

    model_config = {"frozen": True}


class FileStatus(BaseModel):
    """Local project status.

    Attributes:
        files_to_push: Files that a push would upload.
        untracked_files: Local paths (or directory prefixes ending in
            ``/``) excluded from the project.
    """

    files_to_push: list[ProjectFile] = Field(default_factory=list)
    untracked_files: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}
