"""Map local filenames to file kinds and remote names, and back.

Pure functions; no filesystem access.

Classification order for a filename:

1. Extension in the source-code list -> ``SOURCE_CODE``.
2. Extension in the markup list -> ``MARKUP``.
3. Basename (sans extension) equals ``MANIFEST_NAME`` and the extension is
   ``.json`` or in the manifest list -> ``MANIFEST``.
4. Otherwise ``UNKNOWN``.
"""

from __future__ import annotations

from pathlib import PurePath, PurePosixPath

from ..config_schema import ExtensionTable
from ..errors import InvalidFileType
from .models import FileKind

MANIFEST_NAME = "appsscript"
MANIFEST_EXTENSION = ".json"

_DEFAULT_EXTENSIONS: dict[FileKind, str] = {
    FileKind.SOURCE_CODE: ".js",
    FileKind.MARKUP: ".html",
    FileKind.MANIFEST: ".json",
}


def extensions_for(kind: FileKind, table: ExtensionTable) -> list[str]:
    match kind:
        case FileKind.SOURCE_CODE:
            return table.source_code
        case FileKind.MARKUP:
            return table.markup
        case FileKind.MANIFEST:
            return table.manifest
        case _:
            return []


def classify(file_name: str, table: ExtensionTable) -> FileKind:
    """Classify a filename (any path form) by its extension.

    Args:
        file_name: File name or relative path.
        table: Configured extension table.

    Returns:
        The file kind, ``FileKind.UNKNOWN`` if nothing matches.
    """
    path = PurePath(file_name)
    extension = path.suffix.lower()
    if extension in table.source_code:
        return FileKind.SOURCE_CODE
    if extension in table.markup:
        return FileKind.MARKUP
    if path.stem == MANIFEST_NAME and (
        extension == MANIFEST_EXTENSION or extension in table.manifest
    ):
        return FileKind.MANIFEST
    return FileKind.UNKNOWN


def default_extension(kind: FileKind | str | None, table: ExtensionTable) -> str:
    """Extension used when writing a file of *kind* locally.

    Returns the first configured extension for the kind, or the built-in
    default (``.js``, ``.html``, ``.json``) when the table has none.

    Raises:
        InvalidFileType: If *kind* is unknown or not a file kind at all.
    """
    try:
        resolved = FileKind(kind)
    except ValueError:
        raise InvalidFileType(kind) from None
    if resolved not in _DEFAULT_EXTENSIONS:
        raise InvalidFileType(kind)
    configured = extensions_for(resolved, table)
    return configured[0] if configured else _DEFAULT_EXTENSIONS[resolved]


def local_name_for(
    remote_name: str, kind: FileKind | str | None, table: ExtensionTable
) -> str:
    """File name (relative to the content dir) a remote file is written to.

    The manifest always gets ``MANIFEST_EXTENSION``, whatever the table
    says.
    """
    extension = (
        MANIFEST_EXTENSION
        if kind == FileKind.MANIFEST
        else default_extension(kind, table)
    )
    return f"{remote_name}{extension}"


def remote_name_for(path_in_content_dir: str, kind: FileKind) -> str:
    """Remote name for a path relative to the content directory.

    The extension is stripped and separators normalised to ``/``; the
    manifest always maps to ``MANIFEST_NAME`` wherever it lives.
    """
    normalized = path_in_content_dir.replace("\\", "/")
    if kind == FileKind.MANIFEST:
        return MANIFEST_NAME
    return str(PurePosixPath(normalized).with_suffix(""))
