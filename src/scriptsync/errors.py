"""Error taxonomy for scriptsync operations.

Every failure the engine surfaces is a ``ScriptSyncError`` subclass carrying
a stable ``code``.  Callers match on the class (or ``code``) instead of
sniffing message text:

- ``NotAuthenticated``            -- no credential available.
- ``MissingScriptConfiguration``  -- script id / content dir not configured.
- ``FileConflict``                -- two local files map to one remote name.
- ``InvalidFileType``             -- unknown file kind (no local extension, or an
  unrecognised remote record type).
- ``ScriptSyntaxError``           -- push rejected with a located error.
- ``ApiError``                    -- any other remote rejection.

``ContentApiError`` is what gateways raise; the engine translates it into
``ScriptSyntaxError`` or ``ApiError``.

``format_error`` turns any of these into a message plus a corrective action
for CLI output.
"""

from __future__ import annotations

# HTTP status -> error code for generic API failures
ERROR_CODES: dict[int, str] = {
    400: "INVALID_ARGUMENT",
    401: "NOT_AUTHENTICATED",
    403: "NOT_AUTHORIZED",
    404: "NOT_FOUND",
}


class ScriptSyncError(Exception):
    """Base class for all scriptsync failures."""

    code = "UNEXPECTED_ERROR"


class NotAuthenticated(ScriptSyncError):
    code = "NO_CREDENTIALS"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "User is not authenticated. Set SCRIPTSYNC_ACCESS_TOKEN "
            "or pass --token."
        )


class MissingScriptConfiguration(ScriptSyncError):
    code = "MISSING_SCRIPT_CONFIGURATION"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Project settings (.scriptsync.json) not found or script ID "
            "is missing."
        )


class FileConflict(ScriptSyncError):
    """Two local source files resolve to the same remote name.

    Attributes:
        key: The colliding ``dir/name`` key (no extension).
        file_path: Local path of the file that triggered the conflict.
        kind: File kind of the colliding files.
    """

    code = "FILE_CONFLICT"

    def __init__(self, key: str, file_path: str, kind: str) -> None:
        self.key = key
        self.file_path = file_path
        self.kind = kind
        directory, _, name = key.rpartition("/")
        super().__init__(
            f"File conflict: more than one file would result in a file "
            f'named "{name}" of type {kind} in the directory '
            f'"{directory or "./"}". Conflicting path: {file_path}'
        )


class InvalidFileType(ScriptSyncError):
    code = "INVALID_FILE_TYPE"

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Invalid file type: {kind}")


class ScriptSyntaxError(ScriptSyncError):
    """Push rejected because a pushed file does not compile.

    Attributes:
        name: Error name reported by the remote (e.g. ``Unexpected token``).
        line: 1-based line number reported by the remote.
        file: Remote name of the offending file.
        snippet: Rendered source context around ``line``.
    """

    code = "SYNTAX_ERROR"

    def __init__(
        self,
        message: str,
        *,
        name: str,
        line: int,
        file: str,
        snippet: str,
    ) -> None:
        self.name = name
        self.line = line
        self.file = file
        self.snippet = snippet
        super().__init__(message)


class ApiError(ScriptSyncError):
    """Generic remote API failure.

    Attributes:
        status: HTTP status (0 when no response was received).
        message: Most specific message reported by the remote.
        original_message: The raw top-level message.
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        original_message: str | None = None,
    ) -> None:
        self.status = status
        self.message = message
        self.original_message = original_message or message
        super().__init__(message)

    @property
    def code(self) -> str:  # type: ignore[override]
        return ERROR_CODES.get(self.status, "UNEXPECTED_API_ERROR")


class ContentApiError(Exception):
    """A content API call failed (raised by gateways, translated by the engine).

    Attributes:
        status: HTTP status code, 0 when no response was received.
        message: Most specific error message reported by the API.
        original_message: Top-level message of the response (or exception).
        details: Decoded JSON error body, if any.
    """

    def __init__(
        self,
        message: str,
        status: int = 0,
        original_message: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.status = status
        self.message = message
        self.original_message = original_message or message
        self.details = details or {}
        super().__init__(message)


# ---------------------------------------------------------------------------
# User-facing formatting
# ---------------------------------------------------------------------------

_ACTIONS: dict[str, str] = {
    "auth": "Set SCRIPTSYNC_ACCESS_TOKEN (or pass --token) and retry.",
    "config": "Run inside a project directory containing .scriptsync.json "
    "with a scriptId.",
    "conflict": "Rename or ignore one of the files so each script name is "
    "unique within its directory.",
    "syntax": "Fix the error above and push again.",
    "not_found": "Check the scriptId in .scriptsync.json.",
    "permission": "Check that the account has edit access to the script.",
    "server": "Retry later.",
}


def format_error(error: BaseException) -> str:
    """Render an error as a message followed by a corrective action.

    Args:
        error: Any exception raised by an engine operation.

    Returns:
        Multi-line string suitable for stderr.
    """
    match error:
        case NotAuthenticated() | ApiError(status=401):
            action = _ACTIONS["auth"]
        case MissingScriptConfiguration():
            action = _ACTIONS["config"]
        case FileConflict():
            action = _ACTIONS["conflict"]
        case ScriptSyntaxError(snippet=snippet):
            return f"Error: {error}\n{snippet}\n\nAction: {_ACTIONS['syntax']}"
        case ApiError(status=404):
            action = _ACTIONS["not_found"]
        case ApiError(status=403):
            action = _ACTIONS["permission"]
        case _:
            action = _ACTIONS["server"]
    return f"Error: {error}\n\nAction: {action}"
