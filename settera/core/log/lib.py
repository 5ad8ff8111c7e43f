"""Core logging implementation for settera."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging", "resolve_level"]

LOGGER_NAME = "settera"


def resolve_level(level: int | str) -> int:
    """Turn a level name ("debug", "WARNING") or number into a logging level.

    Unknown names fall back to WARNING.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level, as a number or a level name.
        stream: Output stream.
    """
    logging.basicConfig(
        level=resolve_level(level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or LOGGER_NAME)
