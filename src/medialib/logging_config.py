"""Logging setup for the medialib command line."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from medialib.config.models import LoggingSettings

_LOGGER_NAME = "medialib"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(settings: LoggingSettings, verbose: int) -> int:
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    level = logging.getLevelName(settings.level.upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(settings: LoggingSettings, *, verbose: int = 0) -> logging.Logger:
    """Attach console and optional rotating file handlers to the package logger.

    Handlers installed by an earlier call are replaced, so repeated CLI
    invocations in one process do not duplicate output.

    Args:
        settings: Logging section of the loaded configuration.
        verbose: Count of ``-v`` flags; 1 selects INFO, 2 or more DEBUG.

    Returns:
        logging.Logger: The configured ``medialib`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = _resolve_level(settings, verbose)
    logger.setLevel(level)

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging"]
