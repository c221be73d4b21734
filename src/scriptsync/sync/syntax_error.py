"""Locate compile errors reported by the remote on push.

The content API rejects a push whose files do not compile with a message of
the form ``Syntax error: <name> line: <n> file: <remoteName>``.  This module
parses that message, finds the offending file among the pushed ones and
renders the surrounding source.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Sequence

from .models import ProjectFile

SYNTAX_ERROR_PATTERN = re.compile(r"Syntax error: (.+?) line: (\d+) file: (.+)")
CONTEXT_LINES = 4


@dataclass(frozen=True)
class SyntaxErrorDetails:
    """A located syntax error.

    Attributes:
        name: Error name reported by the remote.
        line: 1-based line number as reported.
        file: Remote name of the offending file.
        message: ``<name> - "<file>:<line>"``.
        snippet: Rendered context lines.
    """

    name: str
    line: int
    file: str
    message: str
    snippet: str


def render_snippet(
    source: str, line: int, context: int = CONTEXT_LINES
) -> str:
    """Render up to *context* lines either side of 1-based *line*.

    The error line is marked with ``>``; context lines are indented.  Line
    numbers outside the source are clamped to its bounds.
    """
    lines = source.split("\n")
    index = min(max(line - 1, 0), len(lines) - 1)
    start = max(index - context, 0)
    end = min(index + context + 1, len(lines))
    width = len(str(end))

    rendered: list[str] = []
    for i in range(start, end):
        marker = ">" if i == index else " "
        rendered.append(f"{marker} {i + 1:>{width}} | {lines[i]}")
    return "\n".join(rendered)


def _find_file(
    files: Sequence[ProjectFile], remote_name: str
) -> ProjectFile | None:
    for file in files:
        if file.remote_path == remote_name:
            return file
    # Names reported with an extension, e.g. ``lib/Code.gs``.
    path = PurePosixPath(remote_name)
    if not path.name:
        return None
    base = str(path.with_suffix(""))
    for file in files:
        if file.remote_path == base:
            return file
    return None


def extract_syntax_error(
    message: str, files: Sequence[ProjectFile]
) -> SyntaxErrorDetails | None:
    """Parse a push rejection message against the pushed files.

    Args:
        message: Error message returned by the content API.
        files: The files that were pushed.

    Returns:
        The located error, or ``None`` when the message is not a syntax
        error or names a file that was not pushed.
    """
    found = SYNTAX_ERROR_PATTERN.search(message)
    if found is None:
        return None

    name, line_text, remote_name = found.groups()
    remote_name = remote_name.strip()
    line = int(line_text)

    file = _find_file(files, remote_name)
    if file is None or file.source is None:
        return None

    return SyntaxErrorDetails(
        name=name,
        line=line,
        file=remote_name,
        message=f'{name} - "{remote_name}:{line}"',
        snippet=render_snippet(file.source, line),
    )
