"""
Logging Setup.

This module configures loguru sinks for the loader.

Key features:
- Console sink with per-component tagging
- Optional rotating file sink
- Component-bound child loggers
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = "INFO", log_file: Path | str | None = None) -> None:
    """
    Replace the default loguru sinks.

    Args:
        level: Minimum level for every sink
        log_file: Optional file receiving the same records (rotated daily)
    """
    logger.remove()
    logger.configure(extra={"component": "bespoke"})
    logger.add(sys.stderr, format=_LOG_FORMAT, colorize=True, level=level)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=_LOG_FORMAT,
            level=level,
            rotation="1 day",
            retention="7 days",
            backtrace=False,
            diagnose=False,
        )


def get_logger(component: str | None = None):
    """Return a logger tagged with the given component name (``bespoke`` by default)."""
    return logger.bind(component=component or "bespoke")
