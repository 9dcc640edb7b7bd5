"""Command-line interface for git-worktree-keeper.

This package provides the ``git-wt`` entry point and argument parsing.
"""

from .main import main
from .args import parse_args

__all__ = ["main", "parse_args"]
