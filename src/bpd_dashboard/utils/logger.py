"""Application logging.

Everything under the ``bpd_dashboard`` logger goes to a rotating file in the
platformdirs user log directory. ``configure()`` adjusts the level from the
loaded configuration and can mirror records to stderr for ``--verbose`` runs.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir
from rich.logging import RichHandler

from bpd_dashboard.utils.ui.console import get_console

_APP_NAME = "bpd_dashboard"
_LOG_FILE = "bpd.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3
_FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

_logger: logging.Logger | None = None


def log_file_path() -> Path:
    return Path(user_log_dir(_APP_NAME)) / _LOG_FILE


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    return handler


def get_logger() -> logging.Logger:
    """Return the package root logger, attaching the file handler on first call.

    Module loggers (``logging.getLogger(__name__)``) are its children and
    share the handler.
    """
    global _logger
    if _logger is not None:
        return _logger

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        logger.addHandler(_file_handler(log_file_path()))
    logger.propagate = False

    _logger = logger
    return _logger


def set_level(level: str) -> None:
    """Set the application logger level by name (e.g. ``"INFO"``)."""
    get_logger().setLevel(getattr(logging, level.upper(), logging.INFO))


def configure(level: str = "INFO", verbose: bool = False) -> logging.Logger:
    """Apply the configured level and optionally echo records to stderr.

    Args:
        level: Level name for the file log
        verbose: Also render DEBUG and above on stderr through rich
    """
    logger = get_logger()
    set_level("DEBUG" if verbose else level)

    has_echo = any(isinstance(h, RichHandler) for h in logger.handlers)
    if verbose and not has_echo:
        echo = RichHandler(console=get_console(stderr=True), show_path=False)
        echo.setLevel(logging.DEBUG)
        logger.addHandler(echo)
    elif not verbose and has_echo:
        for handler in [h for h in logger.handlers if isinstance(h, RichHandler)]:
            logger.removeHandler(handler)
    return logger
