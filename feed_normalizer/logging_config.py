"""Logging setup for feed_normalizer.

Log records go to stderr: stdout carries CLI output and the MCP STDIO
transport.
"""

import logging
import sys
from typing import Optional

from feed_normalizer.config import ServerConfig


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("feed_normalizer")


def setup_logging(config: Optional[ServerConfig] = None) -> logging.Logger:
    """Configure the package logger.

    Args:
        config: Server configuration providing the log level

    Returns:
        The ``feed_normalizer`` logger
    """
    level_name = (config.log_level if config else "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO

    logger.setLevel(level)

    if not any(getattr(h, "_feed_normalizer", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._feed_normalizer = True
        logger.addHandler(handler)

    logger.debug(f"Logging configured at level {level_name}")
    return logger
