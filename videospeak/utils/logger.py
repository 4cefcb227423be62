"""Logging utilities."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

_configured = False


def setup_logger(
    level: str = "INFO",
    log_file: Optional[str] = None,
    rotation: str = "10 MB",
    retention: str = "1 week"
) -> "LoguruWrapper":
    """
    Configure the process-wide log sinks.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        rotation: When to rotate the log file
        retention: How long rotated files are kept

    Returns:
        Logger for the ``videospeak`` component
    """
    global _configured

    loguru_logger.remove()
    loguru_logger.configure(extra={"component": "videospeak"})
    loguru_logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        loguru_logger.add(
            str(log_path),
            level=level.upper(),
            rotation=rotation,
            retention=retention
        )

    _configured = True
    return get_logger("videospeak")


def get_logger(name: str = "videospeak") -> "LoguruWrapper":
    """Get a logger tagged with the given component name."""
    if not _configured:
        loguru_logger.configure(extra={"component": "videospeak"})
    return LoguruWrapper(loguru_logger.bind(component=name))


class LoguruWrapper:
    """Wrapper exposing the standard logging method names on a loguru logger."""

    def __init__(self, logger):
        self._logger = logger

    def debug(self, msg, *args, **kwargs):
        self._logger.opt(depth=1).debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.opt(depth=1).info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.opt(depth=1).warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.opt(depth=1).error(msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.opt(depth=1).critical(msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._logger.opt(depth=1, exception=True).error(msg, *args, **kwargs)
