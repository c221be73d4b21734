"""File handler module: encoding-aware read/write of project files.

All functions are plain blocking I/O; callers fan them out through
``core.async_utils.map_limited``.
"""

import logging
from pathlib import Path

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file, decoding UTF-8 first and detecting the encoding otherwise.

    Content is returned verbatim (no newline translation) so it compares
    exactly against remote copies.  Files that are not valid UTF-8 are
    decoded with the encoding charset-normalizer detects.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    try:
        return (raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError:
        pass

    result = from_bytes(raw).best()
    if result is None:
        logger.debug("Encoding detection failed for %s, using utf-8", path)
        return (raw.decode("utf-8", errors="replace"), "utf-8")
    return (str(result), result.encoding)


def read_text(path: Path) -> str:
    """Read a file's text content (see ``read_file_with_encoding``)."""
    content, _ = read_file_with_encoding(path)
    return content


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file verbatim, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)

