"""Local-versus-remote change detection.

Answers "what would a push upload": a local file is changed when no remote
file materialises to the same local path, or when the contents differ by
exact string comparison.  Remote-only files are not reported.
"""

from __future__ import annotations

from typing import Sequence

from .models import ProjectFile


def diff_files(
    local: Sequence[ProjectFile], remote: Sequence[ProjectFile]
) -> list[ProjectFile]:
    """Return the local files that differ from (or are missing on) remote.

    Matching is by ``local_path``: a remote file only matches the local file
    it would be written to on pull, so a file renamed only remotely shows up
    as a new local file.

    Args:
        local: Collected local files (with content).
        remote: Fetched remote files (with their local paths derived).

    Returns:
        Changed local files in their original order.
    """
    remote_by_path = {f.local_path: f for f in remote}
    changed: list[ProjectFile] = []
    for file in local:
        match = remote_by_path.get(file.local_path)
        if match is None or match.source != file.source:
            changed.append(file)
    return changed
