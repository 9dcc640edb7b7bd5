"""Status formatting utilities."""

from rich.markup import escape

from git_worktree_keeper.constants import (
    DEPENDENCY_STATE_DISPLAY,
    DIRTY_STATE_DISPLAY,
    SYMBOL_CURRENT,
    SYMBOL_MAIN,
)
from git_worktree_keeper.models.plugin import DependencyShare, DependencyState, ShareOutcome
from git_worktree_keeper.models.worktree import DirtyState, Worktree


def format_dirty_state(state: DirtyState) -> str:
    """
    Format a dirty state as Rich markup.

    Args:
        state: Dirty state enum value

    Returns:
        Colored display text, e.g. "[yellow]M[/yellow]"
    """
    label, color = DIRTY_STATE_DISPLAY.get(state.value, (state.value, "white"))
    return f"[{color}]{label}[/{color}]"


def format_worktree_name(worktree: Worktree) -> str:
    """Worktree directory name with main/current markers."""
    name = escape(worktree.name)
    if worktree.is_main:
        name += SYMBOL_MAIN
    if worktree.is_current:
        name += SYMBOL_CURRENT
    if worktree.is_locked:
        name += " (locked)"
    if worktree.is_orphaned:
        name += " (orphaned)"
    return name


def format_dependency_state(state: DependencyState) -> str:
    return DEPENDENCY_STATE_DISPLAY.get(state.value, state.value)


def format_share(share: DependencyShare) -> str:
    """One-line description of a dependency share outcome."""
    if share.outcome is ShareOutcome.SYMLINKED:
        return f"Shared {share.artifact} from {share.source_dir} (symlink)"
    if share.outcome is ShareOutcome.COPIED:
        return f"Copied {share.artifact} from {share.source_dir} (hard links)"
    return f"Did not share {share.artifact}: {share.reason or 'skipped'}"
