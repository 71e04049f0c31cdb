from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | '
    '<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - '
    '<level>{message}</level>'
)


def configure_logging(level: str = 'INFO') -> None:
    logger.remove()
    logger.add(sink=sys.stderr, level=level.upper(), format=LOG_FORMAT, colorize=True)
