"""Remote content API access shared between the engine and the CLI."""

from .async_utils import map_limited, run_sync
from .client import ContentGateway, ScriptClient

__all__ = ["ContentGateway", "ScriptClient", "map_limited", "run_sync"]
