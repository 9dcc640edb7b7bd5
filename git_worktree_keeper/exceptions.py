"""Custom exceptions for git-worktree-keeper"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from git_worktree_keeper.models.worktree import DirtyState, Worktree


class GitWorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class GitOperationError(GitWorktreeKeeperError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, worktree: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.worktree = worktree
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if worktree:
            error_msg += f" for worktree '{worktree}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotInRepositoryError(GitOperationError):
    """Exception raised when invoked outside a git repository."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("open_repository", message=f"Not in a git repository: {path}")


class WorktreeSupportError(GitOperationError):
    """Exception raised when the repository cannot host multiple worktrees."""

    def __init__(self, message: Optional[str] = None):
        super().__init__("list_worktrees", message=message or "git worktree is not supported here")


class WorktreeNotFoundError(GitOperationError):
    """Exception raised when no worktree matches a name.

    Carries the full listing so callers can show what is available.
    """

    def __init__(self, name: str, worktrees: list["Worktree"]):
        self.name = name
        self.worktrees = list(worktrees)
        super().__init__("find_worktree", name, "Worktree not found")

    @property
    def available_names(self) -> list[str]:
        return [wt.name for wt in self.worktrees]


class AmbiguousWorktreeError(GitOperationError):
    """Exception raised when a name matches more than one worktree.

    Carries the matching worktrees so callers can ask for a path instead.
    """

    def __init__(self, name: str, matches: list["Worktree"]):
        self.name = name
        self.matches = list(matches)
        paths = ", ".join(wt.path for wt in self.matches)
        super().__init__("find_worktree", name, f"Name matches several worktrees ({paths}); pass a path instead")


class CurrentWorktreeError(GitOperationError):
    """Exception raised when attempting to remove the worktree you are standing in."""

    def __init__(self, name: str):
        super().__init__("remove_worktree", name, "Cannot remove a worktree while inside it")


class DirtyWorktreeError(GitOperationError):
    """Exception raised when a worktree has uncommitted changes."""

    def __init__(self, name: str, dirty_state: "DirtyState"):
        self.dirty_state = dirty_state
        super().__init__(
            "remove_worktree",
            name,
            f"Worktree has uncommitted changes ({dirty_state.value}); use --force to override",
        )


class RemovalCancelledError(GitOperationError):
    """Exception raised when the user declines a forced removal."""

    def __init__(self, name: str):
        super().__init__("remove_worktree", name, "Removal cancelled by user")


class OperationFailedError(GitOperationError):
    """Exception raised when the underlying git removal fails."""
    pass


class InvalidTransitionError(GitWorktreeKeeperError):
    """Exception raised on an illegal removal state transition."""

    def __init__(self, source, target):
        self.source = source
        self.target = target
        super().__init__(f"Invalid removal transition {source.name} -> {target.name}")


class PluginError(GitWorktreeKeeperError):
    """Exception raised for errors in plugin operations."""

    def __init__(self, plugin_id: str, message: Optional[str] = None):
        self.plugin_id = plugin_id
        self.message = message

        error_msg = f"Plugin '{plugin_id}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class PluginNotFoundError(PluginError):
    """Exception raised when a plugin id is not in the catalog."""

    def __init__(self, plugin_id: str):
        super().__init__(plugin_id, "Plugin not found")


class SetupFailedError(PluginError):
    """Exception raised when dependency bootstrap fails.

    Advisory only: the worktree itself is kept.
    """
    pass
