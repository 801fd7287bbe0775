"""
API Initialization - Logging Module.

Configures loguru logger for the API server.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = "logs/betta.log") -> None:
    """Configure stderr sink at level and an optional rotating file sink."""
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.info("Starting Betta backend...")
