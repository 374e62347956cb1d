"""Logging setup for the medium2md package logger."""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "medium2md"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    console: Optional[Console] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Configure the ``medium2md`` logger.

    Console output goes through rich so that it interleaves cleanly with
    the CLI's progress display; pass the CLI's own Console for that. Embed
    and image failures are logged at WARNING, so the default level shows
    every dropped embed.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file receiving a plain-text copy of the log
        console: Console to render log records on (stderr if None)
        force: If True, reconfigure even if handlers exist

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Only clear and reconfigure if forced or no handlers exist
    if force or not logger.handlers:
        logger.handlers.clear()

        console_handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=numeric_level <= logging.DEBUG,
            markup=False,
        )
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            logger.addHandler(file_handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
