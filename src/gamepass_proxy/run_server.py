"""Executable entry point for launching the game pass proxy.

Process managers can import the stable ``app`` object from
``gamepass_proxy.app``, or run ``python -m gamepass_proxy.run_server`` (or the
``gamepass-proxy`` console script) directly.

Environment Variables:
    PORT (int): Listening port (default 3000).
    HOST (str): Bind address (default 0.0.0.0).
    LOG_LEVEL (str): Logging level name (default INFO).

Example:
    $ PORT=8080 gamepass-proxy
"""

from __future__ import annotations

import logging

import uvicorn

from .app import app, get_config


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main() -> None:
    """Launch uvicorn with the environment-derived host and port."""
    config = get_config()
    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)
    logger.info(f"Game Pass Proxy running on port {config.port}")
    logger.info(
        f"API endpoint: http://localhost:{config.port}/api/gamepasses?userId=YOUR_USER_ID"
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
