"""Git-related services for git-worktree-keeper."""

from .worktrees import WorktreeRegistry, describe_git_error, parse_dirty_state

__all__ = [
    "WorktreeRegistry",
    "describe_git_error",
    "parse_dirty_state",
]
