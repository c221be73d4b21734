"""Configuration schema for scriptsync.

Defines Pydantic models for two kinds of configuration:

- **User config** (``UnifiedConfig``): API connection and logging settings
  loaded from the hierarchical YAML files.
- **Project settings** (``ProjectSettings``): per-project script identity
  and file-handling options loaded from ``.scriptsync.json`` plus the
  ignore file.

Usage:
    from scriptsync.config_schema import build_config, to_client_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_client_config(unified, cli_overrides={"url": "https://..."})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# User config sections
# ---------------------------------------------------------------------------


class ApiConfig(BaseModel):
    """Remote content API connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="API base URL")
    access_token: str | None = Field(
        default=None, description="OAuth bearer token"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    max_parallel_io: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent local file reads/writes (1-100)",
    )
    timeout: float = Field(
        default=60.0, gt=0, description="HTTP read timeout in seconds"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str | None = Field(default=None, description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level user configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Project settings
# ---------------------------------------------------------------------------


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and ensure it has a leading dot."""
    normalized = ext.lower().strip()
    if not normalized.startswith("."):
        normalized = f".{normalized}"
    return normalized


def _ensure_string_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


class ExtensionTable(BaseModel):
    """Local file extensions recognised for each file kind.

    The first entry of each list is the extension used when materialising
    a remote file locally.
    """

    source_code: list[str] = Field(default_factory=lambda: [".js", ".gs"])
    markup: list[str] = Field(default_factory=lambda: [".html"])
    manifest: list[str] = Field(default_factory=lambda: [".json"])

    model_config = {"frozen": True}

    @field_validator("source_code", "markup", "manifest", mode="before")
    @classmethod
    def _normalize(cls, value: object) -> list[str]:
        return [normalize_extension(ext) for ext in _ensure_string_list(value)]

    @classmethod
    def from_project_file(cls, data: dict) -> ExtensionTable:
        """Build a table from raw project-file keys.

        Supports the legacy single ``fileExtension`` key as well as
        ``scriptExtensions``, ``htmlExtensions`` and ``jsonExtensions``.
        """
        kwargs: dict[str, object] = {}
        if isinstance(data.get("fileExtension"), str):
            kwargs["source_code"] = [data["fileExtension"]]
        if data.get("scriptExtensions"):
            kwargs["source_code"] = data["scriptExtensions"]
        if data.get("htmlExtensions"):
            kwargs["markup"] = data["htmlExtensions"]
        if data.get("jsonExtensions"):
            kwargs["manifest"] = data["jsonExtensions"]
        return cls(**kwargs)


class FileSettings(BaseModel):
    """File-handling options for one project.

    Attributes:
        project_root_dir: Directory holding the project file.
        content_dir: Directory whose files make up the project.
        ignore_file_path: Ignore file that supplied ``ignore_patterns``.
        ignore_patterns: Glob patterns (``!`` negates) excluding local files.
        push_order: Local paths to upload first, in this order.
        extensions: Extension table per file kind.
        skip_subdirectories: Only collect files directly in ``content_dir``.
    """

    project_root_dir: str | None = None
    content_dir: str | None = None
    ignore_file_path: str | None = None
    ignore_patterns: list[str] = Field(default_factory=list)
    push_order: list[str] = Field(default_factory=list)
    extensions: ExtensionTable = Field(default_factory=ExtensionTable)
    skip_subdirectories: bool = False

    model_config = {"frozen": True}


class ProjectSettings(BaseModel):
    """Script identity plus file settings for one local project."""

    script_id: str | None = None
    project_id: str | None = None
    parent_id: str | None = None
    config_file_path: str | None = None
    files: FileSettings = Field(default_factory=FileSettings)

    model_config = {"frozen": True}

    @property
    def is_configured(self) -> bool:
        return bool(
            self.script_id
            and self.config_file_path
            and self.files.project_root_dir
            and self.files.content_dir
        )


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully -- anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_client_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the ``Config`` dataclass,
    applying CLI overrides on top.

    The precedence applied here is:
        CLI override > unified config value > built-in default

    CLI overrides dict keys: url, access_token, insecure, debug.
    """
    from .config import DEFAULT_API_URL, Config

    overrides = cli_overrides or {}

    return Config(
        api_url=overrides.get("url") or unified.api.url or DEFAULT_API_URL,
        access_token=overrides.get("access_token")
        or unified.api.access_token,
        insecure=overrides.get("insecure", False) or unified.api.insecure,
        debug=overrides.get("debug", False) or unified.api.debug,
        max_parallel_io=unified.api.max_parallel_io,
        timeout=unified.api.timeout,
    )
