"""Data models for git-worktree-keeper."""

from .worktree import DirtyState, Worktree
from .plugin import (
    Capability,
    DependencyShare,
    DependencyState,
    PluginStatus,
    ProjectMetadata,
    SetupOptions,
    SetupReport,
    ShareOutcome,
)

__all__ = [
    "DirtyState",
    "Worktree",
    "Capability",
    "DependencyShare",
    "DependencyState",
    "PluginStatus",
    "ProjectMetadata",
    "SetupOptions",
    "SetupReport",
    "ShareOutcome",
]
