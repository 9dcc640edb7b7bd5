"""Formatting utilities for git-worktree-keeper."""

from .status import (
    format_dependency_state,
    format_dirty_state,
    format_share,
    format_worktree_name,
)

__all__ = [
    "format_dependency_state",
    "format_dirty_state",
    "format_share",
    "format_worktree_name",
]
