"""
Logging switches for xlsxfs.

The package logs through loguru but stays silent by default, as a library
should. Applications opt in with enable_logging().
"""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - <level>{message}</level>"
)


def enable_logging(level: str = "INFO", sink: Any = None) -> int:
    """
    Turn on xlsxfs log output.

    Args:
        level: Minimum level for the added sink
        sink: Any loguru sink (defaults to stderr)

    Returns:
        The loguru handler id, to pass to disable_logging
    """
    logger.enable("xlsxfs")
    return logger.add(
        sink if sink is not None else sys.stderr,
        level=level,
        format=LOG_FORMAT,
        filter="xlsxfs",
    )


def disable_logging(handler_id: int | None = None) -> None:
    """Silence xlsxfs again, removing the handler if one is given."""
    if handler_id is not None:
        logger.remove(handler_id)
    logger.disable("xlsxfs")
