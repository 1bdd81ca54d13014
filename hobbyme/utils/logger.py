"""Centralised Loguru logger shared by the application and the scripts."""
from __future__ import annotations

import sys

from loguru import logger

_DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO") -> None:
    """Replace Loguru's default sink with a stderr sink at ``level``.

    Calling it again simply swaps the sink, so entry points can invoke it after
    loading their configuration without duplicating output.
    """

    logger.remove()
    logger.add(sys.stderr, level=str(level).upper(), format=_DEFAULT_FORMAT)


__all__ = ["configure_logging", "logger"]
