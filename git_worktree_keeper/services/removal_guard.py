"""Removal guard: the state machine in front of destructive worktree removal.

States and legal transitions::

    IDLE -> VALIDATING
    VALIDATING -> REMOVING | DIRTY | ABORTED
    DIRTY -> ABORTED | CONFIRMING_FORCE
    CONFIRMING_FORCE -> REMOVING | ABORTED
    REMOVING -> REMOVED | ABORTED

A dirty worktree only reaches REMOVING through CONFIRMING_FORCE, and the
current worktree never leaves VALIDATING except to ABORTED, force or not.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from git_worktree_keeper.exceptions import (
    CurrentWorktreeError,
    DirtyWorktreeError,
    GitOperationError,
    GitWorktreeKeeperError,
    InvalidTransitionError,
    RemovalCancelledError,
)
from git_worktree_keeper.models.worktree import Worktree
from git_worktree_keeper.services.git.worktrees import WorktreeRegistry
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

Confirm = Callable[[str], bool]
Undo = Callable[[], None]
# Runs on entering REMOVING; may return an Undo called if the git removal fails
PreRemoveHook = Callable[[Worktree], Optional[Undo]]


class RemovalState(Enum):
    """States of a single removal request."""
    IDLE = "idle"
    VALIDATING = "validating"
    DIRTY = "dirty"
    CONFIRMING_FORCE = "confirming-force"
    REMOVING = "removing"
    REMOVED = "removed"
    ABORTED = "aborted"


TRANSITIONS: Dict[RemovalState, FrozenSet[RemovalState]] = {
    RemovalState.IDLE: frozenset({RemovalState.VALIDATING}),
    RemovalState.VALIDATING: frozenset(
        {RemovalState.REMOVING, RemovalState.DIRTY, RemovalState.ABORTED}
    ),
    RemovalState.DIRTY: frozenset({RemovalState.ABORTED, RemovalState.CONFIRMING_FORCE}),
    RemovalState.CONFIRMING_FORCE: frozenset({RemovalState.REMOVING, RemovalState.ABORTED}),
    RemovalState.REMOVING: frozenset({RemovalState.REMOVED, RemovalState.ABORTED}),
    RemovalState.REMOVED: frozenset(),
    RemovalState.ABORTED: frozenset(),
}

TERMINAL_STATES = frozenset({RemovalState.REMOVED, RemovalState.ABORTED})


@dataclass
class RemovalResult:
    """Outcome of one removal request."""

    name: str
    force: bool = False
    history: List[RemovalState] = field(default_factory=lambda: [RemovalState.IDLE])
    worktree: Optional[Worktree] = None
    error: Optional[GitWorktreeKeeperError] = None

    @property
    def state(self) -> RemovalState:
        return self.history[-1]

    @property
    def removed(self) -> bool:
        return self.state is RemovalState.REMOVED

    @property
    def exit_code(self) -> int:
        return 0 if self.removed else 1


class RemovalGuard:
    """Gates worktree removal on cleanliness and explicit confirmation."""

    def __init__(
        self,
        registry: WorktreeRegistry,
        confirm: Confirm,
        pre_remove: Optional[PreRemoveHook] = None,
    ):
        """Initialize the guard.

        Args:
            registry: Worktree registry used for lookup and the actual removal
            confirm: Asks a yes/no question; the terminal in production, a
                scripted responder in tests
            pre_remove: Optional hook run on entering REMOVING (plugin cleanup).
                Not run for the main or an orphaned worktree; failures are
                logged only. If it returns a callable, that callable is run
                when the git removal then fails, so the hook can put back
                what it took away (shared dependency links). Anything it
                cannot restore, such as deleted caches, stays deleted.
        """
        self.registry = registry
        self.confirm = confirm
        self.pre_remove = pre_remove

    @staticmethod
    def _advance(result: RemovalResult, target: RemovalState) -> None:
        """Move ``result`` to ``target`` if the transition is legal."""
        source = result.state
        if target not in TRANSITIONS[source]:
            raise InvalidTransitionError(source, target)
        logger.debug(f"Removal of {result.name}: {source.value} -> {target.value}")
        result.history.append(target)

    def _abort(self, result: RemovalResult, error: GitWorktreeKeeperError) -> RemovalResult:
        self._advance(result, RemovalState.ABORTED)
        result.error = error
        logger.info(f"Removal of {result.name} aborted: {error}")
        return result

    def remove(self, name: str, force: bool = False) -> RemovalResult:
        """Drive one removal request to a terminal state.

        Errors are not raised; they are recorded on the returned result.

        Args:
            name: Worktree directory name, branch name or path
            force: Allow removing a dirty worktree after confirmation

        Returns:
            RemovalResult in state REMOVED or ABORTED
        """
        result = RemovalResult(name=name, force=force)
        self._advance(result, RemovalState.VALIDATING)

        try:
            worktree = self.registry.find(name)
        except GitOperationError as e:
            return self._abort(result, e)
        result.worktree = worktree

        if worktree.is_current:
            return self._abort(result, CurrentWorktreeError(worktree.name))

        if worktree.dirty_state.is_clean:
            return self._remove(result, worktree, force=False)

        self._advance(result, RemovalState.DIRTY)
        if not force:
            return self._abort(result, DirtyWorktreeError(worktree.name, worktree.dirty_state))

        self._advance(result, RemovalState.CONFIRMING_FORCE)
        prompt = (
            f"Worktree '{worktree.name}' has uncommitted changes "
            f"({worktree.dirty_state.value}). Remove it anyway?"
        )
        if not self.confirm(prompt):
            return self._abort(result, RemovalCancelledError(worktree.name))

        return self._remove(result, worktree, force=True)

    def _remove(self, result: RemovalResult, worktree: Worktree, force: bool) -> RemovalResult:
        self._advance(result, RemovalState.REMOVING)
        undo = self._run_pre_remove(worktree)

        try:
            self.registry.remove(worktree, force=force)
        except GitOperationError as e:
            if undo is not None:
                self._run_undo(worktree, undo)
            return self._abort(result, e)

        self._advance(result, RemovalState.REMOVED)
        return result

    def _run_pre_remove(self, worktree: Worktree) -> Optional[Undo]:
        if self.pre_remove is None or worktree.is_main or worktree.is_orphaned:
            return None
        try:
            return self.pre_remove(worktree)
        except Exception as e:
            logger.warning(f"Cleanup before removing {worktree.path} failed: {e}")
            return None

    @staticmethod
    def _run_undo(worktree: Worktree, undo: Undo) -> None:
        try:
            undo()
        except Exception as e:
            logger.warning(f"Could not restore {worktree.path} after failed removal: {e}")
