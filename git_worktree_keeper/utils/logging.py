"""Logging configuration for git-worktree-keeper

Application loggers live under the ``git_worktree_keeper`` namespace so their
level is set independently of third-party loggers such as GitPython's ``git``.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from git_worktree_keeper.constants import LOG_DIR_NAME, LOG_FILE_NAME

PACKAGE_LOGGER = "git_worktree_keeper"

DEBUG_FORMAT = '%(asctime)s - %(short_name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def short_name(name: str) -> str:
    """Logger name without the package prefix, for display."""
    if name.startswith(PACKAGE_LOGGER + '.'):
        return name[len(PACKAGE_LOGGER) + 1:]
    return name


class ColoredFormatter(logging.Formatter):
    """Formatter exposing ``%(short_name)s`` and coloring the level on a terminal.

    Formats a copy of the record; other handlers see it unchanged.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, color: Optional[bool] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.color = color

    def _use_color(self) -> bool:
        return sys.stderr.isatty() if self.color is None else self.color

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        record.short_name = short_name(record.name)
        color = self.COLORS.get(record.levelname)
        if color and self._use_color():
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages and also log to a file
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    # GitPython is chatty at DEBUG
    logging.getLogger('git').setLevel(max(level, logging.INFO))

    if debug:
        log_dir = Path.home() / LOG_DIR_NAME
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(ColoredFormatter(fmt=DEBUG_FORMAT, datefmt=DATE_FORMAT, color=False))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(fmt=DEBUG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(ColoredFormatter(fmt='[%(short_name)s] %(message)s'))
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace (typically for ``__name__``)."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
