"""Runtime configuration for the game pass proxy.

All settings come from environment variables so the service can be deployed
on any Node-style hosting platform (Replit, Railway, Render, ...) without a
config file.

Environment Variables:
    CACHE_DURATION_MS (int): Per-owner cache lifetime in milliseconds
        (default 300000, i.e. five minutes).
    PORT (int): Listening port (default 3000).
    HOST (str): Bind address (default ``0.0.0.0``).
    ROBLOX_GAMES_API (str): Base URL of the games API used to list the
        universes created by a user.
    ROBLOX_PASSES_API (str): Base URL of the API serving universe game passes.
    LOG_LEVEL (str): Python logging level name (default ``INFO``).

Example:
    >>> from gamepass_proxy.config import load_config
    >>> config = load_config()
    >>> config.cache_ttl_seconds
    300.0
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DURATION_MS = 5 * 60 * 1000
DEFAULT_PORT = 3000
DEFAULT_GAMES_API = "https://games.roblox.com"
DEFAULT_PASSES_API = "https://apis.roblox.com"

# Fan-out width for a single owner lookup.
MAX_CHILDREN = 10


@dataclass
class ProxyConfig:
    """Resolved service settings.

    Attributes:
        cache_ttl_seconds: Lifetime of a cached owner lookup.
        port: TCP port uvicorn listens on.
        host: Bind address.
        games_api_url: Base URL for ``/v2/users/{id}/games``.
        passes_api_url: Base URL for ``/game-passes/v1/universes/{id}/game-passes``.
        log_level: Logging level name passed to ``logging.basicConfig``.
    """

    cache_ttl_seconds: float = DEFAULT_CACHE_DURATION_MS / 1000
    port: int = DEFAULT_PORT
    host: str = "0.0.0.0"
    games_api_url: str = DEFAULT_GAMES_API
    passes_api_url: str = DEFAULT_PASSES_API
    log_level: str = "INFO"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def load_config(env: Optional[Mapping[str, str]] = None) -> ProxyConfig:
    """Build a :class:`ProxyConfig` from environment variables.

    Args:
        env: Mapping to read from (defaults to ``os.environ``).

    Returns:
        ProxyConfig with defaults applied for unset or malformed values.
    """
    env = os.environ if env is None else env

    duration_ms = _int_env(env, "CACHE_DURATION_MS", DEFAULT_CACHE_DURATION_MS)
    if duration_ms < 0:
        logger.warning(
            f"CACHE_DURATION_MS must not be negative; using {DEFAULT_CACHE_DURATION_MS}"
        )
        duration_ms = DEFAULT_CACHE_DURATION_MS

    return ProxyConfig(
        cache_ttl_seconds=duration_ms / 1000,
        port=_int_env(env, "PORT", DEFAULT_PORT),
        host=env.get("HOST", "0.0.0.0"),
        games_api_url=env.get("ROBLOX_GAMES_API", DEFAULT_GAMES_API).rstrip("/"),
        passes_api_url=env.get("ROBLOX_PASSES_API", DEFAULT_PASSES_API).rstrip("/"),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
