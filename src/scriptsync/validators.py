"""
Input validation functions for scriptsync.

Validates script ids and remote file names before they are sent to the
content API or turned into local paths.
"""

import re

_SCRIPT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Script ID")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_script_id(script_id: str) -> tuple[bool, str]:
    """
    Validate a script project id.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Only letters, digits, '-' and '_' (it is embedded in a URL path)
    """
    if not script_id or not script_id.strip():
        return (
            False,
            format_validation_error("Script ID", "cannot be empty"),
        )

    if not _SCRIPT_ID_PATTERN.match(script_id):
        return (
            False,
            format_validation_error(
                "Script ID",
                "may only contain letters, digits, '-' and '_'",
            ),
        )

    return (True, "")


def validate_remote_name(name: str) -> tuple[bool, str]:
    """
    Validate a remote file name before materialising it locally.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be absolute
        - Cannot contain '..' segments (path traversal protection)
        - Cannot have empty path segments (e.g., 'lib//util')
    """
    if not name or not name.strip():
        return (
            False,
            format_validation_error("File name", "cannot be empty"),
        )

    normalized = name.replace("\\", "/")
    if normalized.startswith("/"):
        return (
            False,
            format_validation_error("File name", "cannot be absolute"),
        )

    segments = normalized.split("/")
    if ".." in segments:
        return (
            False,
            format_validation_error("File name", "cannot contain '..'"),
        )

    if "" in segments:
        return (
            False,
            format_validation_error(
                "File name", "cannot have empty path segments"
            ),
        )

    return (True, "")
