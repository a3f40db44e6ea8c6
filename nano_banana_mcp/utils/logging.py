from __future__ import annotations

import sys

from loguru import logger

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} {level} [nano-banana] {message}"


def configure_logging(level: str = "INFO") -> None:
    """Send all diagnostics to stderr; stdout belongs to the stdio transport."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_FORMAT, backtrace=False, diagnose=False)


__all__ = ["configure_logging"]
