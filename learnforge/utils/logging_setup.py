"""
Loguru sink configuration for the host application.
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger

try:
    from ..config import LoggingConfig, PathConfig
except ImportError:
    from learnforge.config import LoggingConfig, PathConfig


LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{line} | {message}"


def configure_logging(logging_config: LoggingConfig, paths: Optional[PathConfig] = None):
    """
    Replace loguru's default sink with the configured ones.

    Args:
        logging_config: Level and file logging switch
        paths: Path configuration; required for file logging
    """
    logger.remove()
    logger.add(sys.stderr, level=logging_config.log_level.upper(), format=LOG_FORMAT)

    if logging_config.log_to_file and paths is not None:
        paths.logs_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            paths.logs_dir / "learnforge_{time:YYYY-MM-DD}.log",
            level=logging_config.log_level.upper(),
            rotation="10 MB",
            retention="14 days",
        )
