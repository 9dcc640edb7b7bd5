"""Worktree registry service for git-worktree-keeper."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import git

from git_worktree_keeper.constants import REFERENCE_BRANCHES
from git_worktree_keeper.exceptions import (
    AmbiguousWorktreeError,
    GitOperationError,
    NotInRepositoryError,
    OperationFailedError,
    WorktreeNotFoundError,
    WorktreeSupportError,
)
from git_worktree_keeper.models.worktree import DirtyState, Worktree
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


def describe_git_error(command: str, error: git.exc.GitCommandError) -> str:
    """Build a one-line message from a GitCommandError."""
    stderr = (error.stderr if hasattr(error, "stderr") else str(error)).strip()
    status = error.status if hasattr(error, "status") else "unknown"

    if stderr:
        return f"{command} failed (exit {status}): {stderr}"
    return f"{command} failed with exit code {status}"


def parse_dirty_state(porcelain: str) -> DirtyState:
    """Classify ``git status --porcelain`` output.

    Porcelain format is ``XY path`` where X is the index (staged) column and
    Y the working tree (unstaged) column; ``??`` marks untracked files.
    """
    has_unstaged = False
    has_staged = False
    has_untracked = False

    for line in porcelain.split("\n"):
        if len(line) < 2:
            continue

        if line.startswith("??"):
            has_untracked = True
            continue
        if line.startswith("!!"):
            continue  # Ignored files never block removal

        if line[0] != " ":
            has_staged = True
        if line[1] != " ":
            has_unstaged = True

    categories = [
        state
        for state, present in (
            (DirtyState.UNSTAGED, has_unstaged),
            (DirtyState.STAGED, has_staged),
            (DirtyState.UNTRACKED, has_untracked),
        )
        if present
    ]
    if not categories:
        return DirtyState.CLEAN
    if len(categories) > 1:
        return DirtyState.MIXED
    return categories[0]


def _is_within(path: str, root: str) -> bool:
    """Return True if ``path`` equals ``root`` or lies beneath it."""
    root = root.rstrip(os.sep) or os.sep
    return path == root or path.startswith(root + os.sep)


class WorktreeRegistry:
    """Enumerates, inspects, creates and removes worktrees of the current repository."""

    def __init__(self, cwd: Optional[str] = None):
        """Initialize the registry.

        Args:
            cwd: Caller's working directory (defaults to os.getcwd()). It locates
                the repository and decides which worktree is current.
        """
        self.cwd = os.path.realpath(cwd or os.getcwd())
        self._worktrees: Optional[List[Worktree]] = None  # Cache for one invocation

    def _get_repo(self) -> git.Repo:
        """Open the repository containing the caller's directory.

        Raises:
            NotInRepositoryError: If the directory is not inside a git repository
        """
        try:
            return git.Repo(self.cwd, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise NotInRepositoryError(self.cwd) from e

    def clear_cache(self):
        """Clear the worktree listing cache."""
        self._worktrees = None

    def list(self) -> List[Worktree]:
        """Get all worktrees of the repository, main worktree first.

        Bare repository entries are not working directories and are skipped.

        Raises:
            NotInRepositoryError: Outside a git repository
            WorktreeSupportError: If ``git worktree`` is unavailable
        """
        if self._worktrees is not None:
            return list(self._worktrees)

        repo = self._get_repo()
        try:
            # Use --porcelain for machine-readable output
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            raise WorktreeSupportError(describe_git_error("git worktree list", e)) from e

        worktrees = []
        for index, entry in enumerate(self._parse_porcelain(output)):
            if entry.get("bare"):
                continue
            path = os.path.realpath(entry["path"])
            is_orphaned = not os.path.isdir(path)
            worktree = Worktree(
                path=path,
                branch=entry.get("branch", ""),
                head_commit=entry.get("HEAD", ""),
                is_main=index == 0,
                is_locked=entry.get("locked", False),
                is_orphaned=is_orphaned,
            )
            worktree.dirty_state = self._safe_dirty_state(worktree)
            worktrees.append(worktree)

        self._mark_current(worktrees)

        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")

        self._worktrees = worktrees
        return list(worktrees)

    @staticmethod
    def _parse_porcelain(output: str) -> List[Dict[str, Any]]:
        """Parse ``git worktree list --porcelain`` into one dict per entry.

        Format:
            worktree /path/to/worktree
            HEAD commit_sha
            branch refs/heads/branch-name   (or "detached" / "bare")
            locked [reason]
            prunable [reason]
            (blank line between worktrees)
        """
        entries: List[Dict[str, Any]] = []
        current: Dict[str, Any] = {}
        for line in output.split("\n"):
            if not line.strip():
                if current.get("path"):
                    entries.append(current)
                current = {}
                continue

            key, _, value = line.partition(" ")
            if key == "worktree":
                current["path"] = value
            elif key == "HEAD":
                current["HEAD"] = value
            elif key == "branch":
                if value.startswith("refs/heads/"):
                    current["branch"] = value[len("refs/heads/"):]
                else:
                    current["branch"] = value
            elif key == "detached":
                current["branch"] = ""
            elif key == "bare":
                current["bare"] = True
            elif key == "locked":
                current["locked"] = True
            elif key == "prunable":
                current["prunable"] = True

        # Handle last entry if no trailing blank line
        if current.get("path"):
            entries.append(current)
        return entries

    def _mark_current(self, worktrees: List[Worktree]) -> None:
        """Flag the single worktree containing the caller's directory.

        Worktrees may be nested inside one another, so the deepest match wins.
        """
        best: Optional[Worktree] = None
        for wt in worktrees:
            if _is_within(self.cwd, wt.path) and (best is None or len(wt.path) > len(best.path)):
                best = wt
        if best is not None:
            best.is_current = True

    def _safe_dirty_state(self, worktree: Worktree) -> DirtyState:
        """Dirty state for listings; an unreadable worktree is treated as MIXED."""
        try:
            return self.dirty_state(worktree.path)
        except GitOperationError as e:
            logger.warning(f"Could not check worktree status for {worktree.path}: {e}")
            return DirtyState.MIXED

    def dirty_state(self, path: str) -> DirtyState:
        """Get the uncommitted-change category of a worktree.

        A missing directory (orphaned worktree) has nothing to lose and is CLEAN.

        Raises:
            GitOperationError: If git status cannot be run in the worktree
        """
        if not os.path.isdir(path):
            logger.debug(f"Worktree path {path} doesn't exist (orphaned)")
            return DirtyState.CLEAN

        repo = self._get_repo()
        try:
            status = repo.git.execute(["git", "-C", path, "status", "--porcelain"])
        except git.exc.GitCommandError as e:
            raise GitOperationError("status", path, describe_git_error("git status", e)) from e
        return parse_dirty_state(status)

    def find(self, name: str) -> Worktree:
        """Find a worktree by directory name, branch name or path.

        Relative paths are resolved against the caller's directory, so ``.``
        names the worktree you are standing in.

        Raises:
            AmbiguousWorktreeError: If several worktrees share the name or branch
            WorktreeNotFoundError: If nothing matches; carries the full listing
        """
        worktrees = self.list()

        for matches in (
            [wt for wt in worktrees if wt.name == name],
            [wt for wt in worktrees if wt.branch and wt.branch == name],
        ):
            if len(matches) == 1:
                return matches[0]
            if len(matches) > 1:
                raise AmbiguousWorktreeError(name, matches)

        candidate = os.path.realpath(os.path.join(self.cwd, name))
        for wt in worktrees:
            if wt.path == candidate:
                return wt

        raise WorktreeNotFoundError(name, worktrees)

    def worktree_root(self) -> str:
        """Directory new worktrees are created in.

        Inside a bare repository layout this is the repository root; otherwise
        worktrees become siblings of the main worktree.
        """
        repo = self._get_repo()
        if repo.bare:
            root = Path(repo.git_dir)
            if root.name in (".bare", ".git"):
                root = root.parent
            return str(root.resolve())

        main = next((wt for wt in self.list() if wt.is_main), None)
        base = main.path if main else repo.working_tree_dir
        return os.path.dirname(os.path.realpath(base))

    def default_worktree_path(self, branch: str) -> str:
        """Default location for a branch's worktree (``/`` becomes ``-``)."""
        return os.path.join(self.worktree_root(), branch.replace("/", "-"))

    @staticmethod
    def _branch_exists(repo: git.Repo, branch: str) -> bool:
        """Check whether a branch exists locally or on the origin remote."""
        if branch in [head.name for head in repo.heads]:
            return True
        try:
            repo.git.rev_parse("--verify", "--quiet", f"refs/remotes/origin/{branch}")
            return True
        except git.exc.GitCommandError:
            return False

    def add(self, branch: str, base_branch: Optional[str] = None, path: Optional[str] = None) -> Worktree:
        """Create a worktree for a branch.

        Existing branches are checked out; otherwise a new branch is created
        from ``base_branch`` (or HEAD).

        Args:
            branch: Branch to check out or create
            base_branch: Start point for a new branch
            path: Worktree directory (defaults to default_worktree_path())

        Returns:
            The created Worktree

        Raises:
            GitOperationError: If the path exists or git worktree add fails
        """
        repo = self._get_repo()
        if path:
            target = os.path.realpath(os.path.join(self.cwd, path))
        else:
            target = self.default_worktree_path(branch)

        if os.path.exists(target):
            raise GitOperationError("add_worktree", branch, f"Path already exists: {target}")

        if self._branch_exists(repo, branch):
            if base_branch:
                logger.warning(f"Branch {branch} already exists, ignoring base branch {base_branch}")
            args = ["add", target, branch]
        else:
            args = ["add", "-b", branch, target]
            if base_branch:
                args.append(base_branch)

        try:
            repo.git.worktree(*args)
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error("git worktree add", e)
            logger.error(f"Failed to add worktree for {branch}: {error_msg}")
            raise GitOperationError("add_worktree", branch, error_msg) from e

        logger.info(f"Created worktree for {branch} at {target}")
        self.clear_cache()
        return self.find(target)

    def remove(self, worktree: Worktree, force: bool = False) -> None:
        """Remove a worktree directory and prune its administrative record.

        Orphaned worktrees (directory already gone) are only pruned.

        Args:
            worktree: Worktree to remove
            force: Pass --force so git discards uncommitted changes

        Raises:
            OperationFailedError: If git refuses or fails to remove the worktree
        """
        repo = self._get_repo()
        try:
            if worktree.is_orphaned:
                repo.git.worktree("prune")
            else:
                args = ["remove"]
                if force:
                    args.append("--force")
                args.append(worktree.path)
                repo.git.worktree(*args)
                repo.git.worktree("prune")
        except git.exc.GitCommandError as e:
            error_msg = describe_git_error("git worktree remove", e)
            logger.error(f"Failed to remove worktree at {worktree.path}: {error_msg}")
            raise OperationFailedError("remove_worktree", worktree.name, error_msg) from e
        finally:
            # Clear cache since worktree list changed (or may have)
            self.clear_cache()

        logger.info(f"Removed worktree at {worktree.path}")

    def default_reference(self, exclude: Optional[Worktree] = None) -> Optional[Worktree]:
        """Pick the worktree whose installed dependencies new worktrees share.

        Prefers a worktree on ``main``/``master``, then the main worktree.
        """
        candidates = [
            wt for wt in self.list()
            if not wt.is_orphaned and (exclude is None or wt.path != exclude.path)
        ]
        for branch in REFERENCE_BRANCHES:
            for wt in candidates:
                if wt.branch == branch:
                    return wt
        return next((wt for wt in candidates if wt.is_main), None)
