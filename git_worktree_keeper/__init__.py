"""
git-worktree-keeper - Safe git worktree management with ecosystem plugins
"""

from .__version__ import __version__
from .cli.main import main

__all__ = ["main", "__version__"]
