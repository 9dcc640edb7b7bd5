"""Shared constants for git-worktree-keeper."""

from dataclasses import dataclass
from typing import List


APP_NAME = "git-worktree-keeper"

# Configuration layout: $XDG_CONFIG_HOME/git-worktree-keeper/{config.yaml,plugins.json}
CONFIG_HOME_ENV = "XDG_CONFIG_HOME"
CONFIG_DIR_NAME = APP_NAME
CONFIG_FILE_NAME = "config.yaml"
PLUGIN_STATE_FILE_NAME = "plugins.json"

# Debug log location, relative to the home directory
LOG_DIR_NAME = ".git-worktree-keeper"
LOG_FILE_NAME = "git-worktree-keeper.log"

# Branches whose worktree is preferred as the dependency-sharing reference
REFERENCE_BRANCHES = ("main", "master")


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


WORKTREE_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("name", "Worktree", 24),
    ColumnDefinition("branch", "Branch", 30),
    ColumnDefinition("head", "HEAD", 9),
    ColumnDefinition("state", "State", 10),
    ColumnDefinition("path", "Path"),
]


# Symbol constants
SYMBOL_CURRENT = " *"
SYMBOL_MAIN = " (main)"


# Display names and Rich colors for dirty states
DIRTY_STATE_DISPLAY = {
    "clean": ("clean", "green"),
    "unstaged": ("M", "yellow"),
    "staged": ("S", "yellow"),
    "untracked": ("U", "yellow"),
    "mixed": ("mixed", "red"),
}

DEPENDENCY_STATE_DISPLAY = {
    "shared": "shared (symlink)",
    "installed": "installed",
    "missing": "missing",
}
