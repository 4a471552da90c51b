"""
Logging for the phonebook service.

Request handling, storage and startup messages all go through the
standard ``logging`` module under per-module loggers.  ``setup_logging``
wires those loggers to the console and, when ``LOG_FILE`` is set, to a
size-rotated file so that a long-running directory does not fill the
disk.  The uvicorn access log keeps its own handlers.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def build_handlers(
    logfile: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> List[logging.Handler]:
    """Return the console handler plus a rotating file handler for ``logfile``."""
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """Attach the service handlers to the root logger.

    Parameters
    ----------
    level : str
        Level name such as ``"DEBUG"``; unknown names mean ``INFO``.
    logfile : Optional[str]
        File receiving a copy of the log.  Rotated once it reaches
        ``max_bytes``, keeping ``backup_count`` old files.

    Repeated calls (one per ``create_app``) are no-ops.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in build_handlers(logfile, max_bytes, backup_count):
        root.addHandler(handler)
    _configured = True
