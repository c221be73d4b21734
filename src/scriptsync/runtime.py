"""Assemble configuration, API client and project files for one command."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import load_config
from .config_loader import (
    discover_config_files,
    load_hierarchical_config,
    load_project_settings,
)
from .config_schema import build_config
from .core.client import ScriptClient
from .sync.engine import ProjectFiles
from .validators import validate_script_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def project_runtime(
    config_overrides: dict[str, Any] | None = None,
    cwd: Path | None = None,
) -> AsyncIterator[ProjectFiles]:
    """
    Build a ``ProjectFiles`` for the project around *cwd*.

    On entry:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Load the project file and ignore rules
    - Create the ScriptClient

    No remote call is made here; a missing token or script id only fails
    once an operation needs it.

    Args:
        config_overrides: Optional dict with values from CLI (url,
            access_token, insecure, debug, project_file, ignore_file,
            content_dir)
        cwd: Working directory local paths are relative to (default CWD).

    Yields:
        The configured ``ProjectFiles``.

    Raises:
        RuntimeError: If the configuration or project file is invalid.
    """
    overrides = config_overrides or {}
    workdir = (cwd or Path.cwd()).resolve()

    try:
        # 1. Load .env early (before YAML, so ${VAR} interpolation can use .env values)
        load_dotenv()

        # 2. Load YAML config if present, extract api section as fallbacks
        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        if config_files:
            unified = build_config(load_hierarchical_config())
            yaml_fallbacks = {
                k: v
                for k, v in unified.api.model_dump().items()
                if v is not None
            }
            logger.debug("Configuration loaded from: %s", config_files[0])

        # 3. Single call to load_config with all sources merged
        config = load_config(
            api_url=overrides.get("url"),
            access_token=overrides.get("access_token"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        settings = load_project_settings(
            start_dir=workdir,
            project_file=overrides.get("project_file"),
            ignore_file=overrides.get("ignore_file"),
            content_dir=overrides.get("content_dir"),
        )
        if settings.script_id:
            is_valid, error = validate_script_id(settings.script_id)
            if not is_valid:
                raise ValueError(error)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise RuntimeError(f"Configuration error: {e}") from e

    logger.debug("API URL: %s", config.api_url)
    logger.debug("Content directory: %s", settings.files.content_dir)

    files = ProjectFiles(
        settings=settings,
        config=config,
        gateway=ScriptClient(config),
        cwd=workdir,
    )
    yield files
