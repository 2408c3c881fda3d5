"""Logging configuration."""

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV_VAR = "TAXILEDGER_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"

_handler: Optional[logging.Handler] = None


def resolve_level(level: Optional[str] = None) -> int:
    """Numeric level for a name, falling back to the environment, then INFO."""
    name = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Send taxiledger log records to stderr.

    Calling this again replaces the handler it installed before.
    """
    global _handler
    logger = logging.getLogger("taxiledger")
    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(resolve_level(level))
    return logger
