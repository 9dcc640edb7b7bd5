"""Worktree data models."""

import os
from dataclasses import dataclass
from enum import Enum


class DirtyState(Enum):
    """Uncommitted-change category of a worktree."""
    CLEAN = "clean"
    UNSTAGED = "unstaged"
    STAGED = "staged"
    UNTRACKED = "untracked"
    MIXED = "mixed"

    @property
    def is_clean(self) -> bool:
        return self is DirtyState.CLEAN


@dataclass
class Worktree:
    """Information about a git worktree."""

    path: str
    branch: str  # Empty for detached HEAD
    head_commit: str
    dirty_state: DirtyState = DirtyState.CLEAN
    is_current: bool = False  # Caller's working directory is inside this worktree
    is_main: bool = False  # Is this the main working tree?
    is_locked: bool = False
    is_orphaned: bool = False  # Directory missing?

    @property
    def name(self) -> str:
        """Directory name used to address the worktree on the command line."""
        return os.path.basename(self.path.rstrip(os.sep))

    def __str__(self) -> str:
        """String representation of worktree."""
        branch = self.branch or "(detached)"
        markers = []
        if self.is_main:
            markers.append("main")
        if self.is_current:
            markers.append("current")
        if self.is_orphaned:
            markers.append("orphaned")
        suffix = f" ({', '.join(markers)})" if markers else ""
        return f"{branch} @ {self.path}{suffix} [{self.dirty_state.value}]"
