"""
Configuration discovery for scriptsync.

Two independent sources are located and loaded here:

* **User config** -- hierarchical YAML files (``!include`` support, env var
  interpolation, "project wins" merge) holding API and logging settings.
* **Project settings** -- the ``.scriptsync.json`` project file found by
  walking up from the working directory, plus the ``.scriptsyncignore``
  file next to it.

Usage:
    from scriptsync.config_loader import (
        load_hierarchical_config, load_project_settings,
    )

    raw = load_hierarchical_config()
    settings = load_project_settings()
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .config_schema import ExtensionTable, FileSettings, ProjectSettings
from .sync.ignore import DEFAULT_IGNORE_PATTERNS

logger = logging.getLogger(__name__)

PROJECT_FILE_NAME = ".scriptsync.json"
IGNORE_FILE_NAME = ".scriptsyncignore"

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` patterns with env values.

    * ``${VAR}`` is replaced with ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    * Literal ``${`` with no closing ``}`` is left untouched.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)
        env_val = os.environ.get(var_name)
        if env_val is not None and env_val != "":
            return env_val
        if default is not None:
            return default
        return ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Walk a nested dict/list and interpolate env vars in all strings."""
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. YAML !include support (dedicated SafeLoader subclass)
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """YAML SafeLoader subclass with ``!include`` support.

    Uses a dedicated subclass so the global ``yaml.SafeLoader`` is never
    modified.  Tracks an *include stack* per-load to detect circular includes.
    """


def _include_constructor(
    loader: ConfigLoader, node: yaml.ScalarNode
) -> Any:
    """Handle ``!include path/to/file.yml`` directives."""
    include_path_str: str = loader.construct_scalar(node)

    if os.path.isabs(include_path_str):
        include_path = Path(include_path_str)
    else:
        parent_dir = Path(loader.name).resolve().parent
        include_path = parent_dir / include_path_str

    include_path = include_path.resolve()

    include_stack: list[Path] = getattr(loader, "_include_stack", [])
    if include_path in include_stack:
        chain = (
            " -> ".join(str(p) for p in include_stack)
            + f" -> {include_path}"
        )
        raise ValueError(f"Circular include detected: {chain}")

    if not include_path.exists():
        source_file = Path(loader.name).resolve()
        raise FileNotFoundError(
            f"Include file not found: {include_path} (referenced from {source_file})"
        )

    return _load_yaml_with_includes(
        include_path, _include_stack=include_stack + [include_path]
    )


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path,
    *,
    _include_stack: list[Path] | None = None,
) -> Any:
    """Load a YAML file using the ``ConfigLoader`` (with ``!include``)."""
    path = path.resolve()
    if _include_stack is None:
        _include_stack = [path]

    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. User config discovery and hierarchical merge
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Return existing user config file paths, highest precedence first.

    Search order:
        1. ``SCRIPTSYNC_CONFIG`` env var (explicit single path).
        2. ``.scriptsync/config.yml`` in CWD (project-level).
        3. ``~/.config/scriptsync/config.yml`` (XDG global).

    Only paths that exist on disk are returned.
    """
    candidates: list[Path] = []

    env_path = os.environ.get("SCRIPTSYNC_CONFIG")
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    candidates.append(Path.cwd() / ".scriptsync" / "config.yml")
    candidates.append(
        Path.home() / ".config" / "scriptsync" / "config.yml"
    )

    return [p for p in candidates if p.exists()]


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered user config files.

    Merge strategy ("project wins"):
        Files are loaded from lowest precedence to highest.  Each file's
        top-level keys **replace** (not deep-merge) those from earlier files.

    After merging, env var interpolation is applied to all string values.

    Returns an empty dict when no config files exist (zero-config).
    """
    paths = discover_config_files()

    if not paths:
        logger.debug(
            "No config files found -- using zero-config defaults"
        )
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s) -- skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)  # type: ignore[no-any-return]


# ---------------------------------------------------------------------------
# 4. Project settings
# ---------------------------------------------------------------------------


def find_project_file(
    start_dir: Path | None = None, explicit: str | None = None
) -> Path | None:
    """Locate the project file.

    An explicit path (file or directory) wins.  Otherwise the directory
    tree is walked upwards from *start_dir* (default: CWD).

    Returns:
        Resolved path to ``.scriptsync.json``, or ``None`` if not found.
    """
    if explicit:
        candidate = Path(explicit).expanduser().resolve()
        if candidate.is_dir():
            candidate = candidate / PROJECT_FILE_NAME
        return candidate if candidate.is_file() else None

    current = (start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / PROJECT_FILE_NAME
        if candidate.is_file():
            logger.debug("Found project file: %s", candidate)
            return candidate
    return None


def _split_ignore_lines(text: str) -> list[str]:
    return [
        line.strip()
        for line in text.lstrip("\ufeff").splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]


def load_ignore_patterns(ignore_file: Path | None) -> list[str]:
    """Read ignore patterns, falling back to the defaults.

    Blank lines and ``#`` comments are dropped; a UTF-8 BOM is stripped.
    A missing or unreadable file yields ``DEFAULT_IGNORE_PATTERNS``.
    """
    if ignore_file is None or not ignore_file.is_file():
        logger.debug("No ignore file found. Using default ignore patterns.")
        return list(DEFAULT_IGNORE_PATTERNS)
    try:
        text = ignore_file.read_text(encoding="utf-8")
    except OSError as exc:
        logger.debug(
            "Error reading ignore file %s: %s. Using default patterns.",
            ignore_file,
            exc,
        )
        return list(DEFAULT_IGNORE_PATTERNS)
    return _split_ignore_lines(text)


def _first_value(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def load_project_settings(
    start_dir: Path | None = None,
    project_file: str | None = None,
    ignore_file: str | None = None,
    content_dir: str | None = None,
) -> ProjectSettings:
    """Load the project settings for the current project.

    Args:
        start_dir: Directory to start the upward search from (default CWD).
        project_file: Explicit project file (or directory holding one).
        ignore_file: Explicit ignore file (or directory holding one).
        content_dir: Override for the project's content directory.

    Returns:
        ``ProjectSettings``.  When no project file exists the returned
        settings carry default file options rooted at *start_dir* and no
        script id.

    Raises:
        ValueError: If the project file is not a JSON object.
    """
    base_dir = (start_dir or Path.cwd()).resolve()
    config_path = find_project_file(base_dir, project_file)

    if config_path is None:
        logger.debug("No project file found from %s", base_dir)
        root = base_dir
        resolved_content = (
            (root / content_dir).resolve() if content_dir else root
        )
        ignore_path = _resolve_ignore_file(root, ignore_file)
        return ProjectSettings(
            files=FileSettings(
                project_root_dir=str(root),
                content_dir=str(resolved_content),
                ignore_file_path=str(ignore_path) if ignore_path else None,
                ignore_patterns=load_ignore_patterns(ignore_path),
            )
        )

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Project file {config_path} is not valid JSON: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Project file {config_path} must contain a JSON object"
        )

    root = config_path.parent
    content_source = (
        content_dir or data.get("srcDir") or data.get("rootDir") or "."
    )
    ignore_path = _resolve_ignore_file(root, ignore_file)

    return ProjectSettings(
        script_id=data.get("scriptId"),
        project_id=data.get("projectId"),
        parent_id=_first_value(data.get("parentId")),
        config_file_path=str(config_path),
        files=FileSettings(
            project_root_dir=str(root),
            content_dir=str((root / content_source).resolve()),
            ignore_file_path=str(ignore_path) if ignore_path else None,
            ignore_patterns=load_ignore_patterns(ignore_path),
            push_order=list(data.get("filePushOrder") or []),
            extensions=ExtensionTable.from_project_file(data),
            skip_subdirectories=bool(
                data.get("ignoreSubdirectories", False)
            ),
        ),
    )


def _resolve_ignore_file(root: Path, explicit: str | None) -> Path | None:
    if explicit:
        candidate = Path(explicit).expanduser().resolve()
        if candidate.is_dir():
            candidate = candidate / IGNORE_FILE_NAME
    else:
        candidate = root / IGNORE_FILE_NAME
    return candidate if candidate.is_file() else None
