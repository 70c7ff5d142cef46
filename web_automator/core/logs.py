"""
Logging sink setup: rich console output plus a daily rotating file.

Library modules only call `logging.getLogger(__name__)`; routing is decided
here, by the entry points (CLI, handler), never by the drivers.
"""

from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "web_automator"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured: dict[str, logging.Handler] = {}


def configure_logging(
    level: str | int = "INFO",
    log_dir: str | Path | None = "logs",
    *,
    console: Console | None = None,
) -> logging.Logger:
    """
    Attach console (rich) and file handlers to the package logger.
    Calling it again only updates the level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level if isinstance(level, int) else level.upper())

    if "console" not in _configured:
        handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        _configured["console"] = handler

    if log_dir is not None and "file" not in _configured:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / f"web-automator-{datetime.now():%Y%m%d}.log"
        file_handler = TimedRotatingFileHandler(
            log_file, when="midnight", backupCount=7, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
        _configured["file"] = file_handler
        logger.info("Log file: %s", log_file)

    return logger


def close_logging() -> None:
    """Flush and detach the handlers installed by configure_logging()."""
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in _configured.values():
        handler.flush()
        handler.close()
        logger.removeHandler(handler)
    _configured.clear()
