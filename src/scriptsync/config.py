"""Connection configuration for the remote script content API.

Reads API settings from CLI args, environment variables, .env files, and
YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    SCRIPTSYNC_API_URL: Content API base URL (optional,
        default: https://script.googleapis.com/v1)
    SCRIPTSYNC_ACCESS_TOKEN: OAuth bearer token (optional; without it every
        remote operation fails with NotAuthenticated)
    SCRIPTSYNC_INSECURE: Skip SSL verification (optional, default: false)
    SCRIPTSYNC_DEBUG: Enable debug logging (optional, default: false)
    SCRIPTSYNC_MAX_PARALLEL_IO: Max concurrent file reads/writes (optional, default: 5)
    SCRIPTSYNC_TIMEOUT: HTTP read timeout in seconds (optional, default: 60)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://script.googleapis.com/v1"


@dataclass
class Config:
    api_url: str = DEFAULT_API_URL
    access_token: str | None = None
    insecure: bool = False
    debug: bool = False
    max_parallel_io: int = 5
    timeout: float = 60.0

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token and self.access_token.strip())


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the URL format is invalid or a number is out of range.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if not (1 <= config.max_parallel_io <= 100):
        raise ValueError(
            f"Invalid max_parallel_io {config.max_parallel_io}: must be between 1 and 100"
        )

    if config.timeout <= 0:
        raise ValueError(
            f"Invalid timeout {config.timeout}: must be a positive number of seconds"
        )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_flag(cli_value: bool, env_key: str, fallback: object) -> bool:
    if cli_value:
        return True
    env_value = _get_bool_env(env_key)
    if env_value is not None:
        return env_value
    return bool(fallback)


def _resolve_number(env_key: str, fallback: object, default: float, cast):
    raw = os.getenv(env_key)
    if raw is not None:
        try:
            return cast(raw)
        except ValueError:
            raise ValueError(
                f"Invalid {env_key} '{raw}': must be a number"
            ) from None
    if fallback is not None:
        return cast(fallback)
    return cast(default)


def load_config(
    api_url: str | None = None,
    access_token: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    A missing access token is not an error here: unauthenticated
    configurations are valid for purely local operations (status).

    Args:
        api_url: Override API base URL.
        access_token: Override bearer token.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML config ``api`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is malformed after checking all sources.
    """
    fb = yaml_fallbacks or {}

    final_url = (
        api_url
        or os.getenv("SCRIPTSYNC_API_URL")
        or fb.get("url")
        or DEFAULT_API_URL
    )
    final_token = (
        access_token
        or os.getenv("SCRIPTSYNC_ACCESS_TOKEN")
        or fb.get("access_token")
    )
    if final_token:
        final_token = final_token.strip()

    config = Config(
        api_url=final_url,
        access_token=final_token or None,
        insecure=_resolve_flag(
            insecure, "SCRIPTSYNC_INSECURE", fb.get("insecure", False)
        ),
        debug=_resolve_flag(
            debug, "SCRIPTSYNC_DEBUG", fb.get("debug", False)
        ),
        max_parallel_io=_resolve_number(
            "SCRIPTSYNC_MAX_PARALLEL_IO",
            fb.get("max_parallel_io"),
            5,
            int,
        ),
        timeout=_resolve_number(
            "SCRIPTSYNC_TIMEOUT", fb.get("timeout"), 60.0, float
        ),
    )

    validate_config(config)

    return config
