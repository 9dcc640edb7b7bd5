"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- logging: Logging configuration and logger creation
- process: Discovery and execution of external tools
"""

from .logging import setup_logging, get_logger, ColoredFormatter
from .process import CommandRunner

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "ColoredFormatter",
    # Processes
    "CommandRunner",
]
