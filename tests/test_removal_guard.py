"""Tests for the removal guard state machine"""
import os
import shutil
from pathlib import Path
from unittest.mock import Mock, patch

import git
import pytest

from git_worktree_keeper.exceptions import (
    AmbiguousWorktreeError,
    CurrentWorktreeError,
    DirtyWorktreeError,
    InvalidTransitionError,
    OperationFailedError,
    RemovalCancelledError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.models.worktree import DirtyState
from git_worktree_keeper.services.dependency_sharer import DependencySharer
from git_worktree_keeper.services.git.worktrees import WorktreeRegistry
from git_worktree_keeper.services.removal_guard import (
    RemovalGuard,
    RemovalResult,
    RemovalState,
    TRANSITIONS,
)

S = RemovalState


class ScriptedConfirm:
    """Answers confirmation prompts with a fixed reply and records them."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.answer


def make_dirty(path, state):
    """Put a worktree into the given dirty state."""
    if state is DirtyState.UNTRACKED:
        (path / "untracked.txt").write_text("new\n")
    elif state is DirtyState.UNSTAGED:
        (path / "README.md").write_text("changed\n")
    elif state is DirtyState.STAGED:
        (path / "staged.txt").write_text("staged\n")
        git.Repo(path).git.add("staged.txt")
    elif state is DirtyState.MIXED:
        (path / "README.md").write_text("changed\n")
        (path / "untracked.txt").write_text("new\n")


DIRTY_STATES = [DirtyState.UNTRACKED, DirtyState.UNSTAGED, DirtyState.STAGED, DirtyState.MIXED]


class TestTransitionTable:
    """Test the legal transitions."""

    def test_terminal_states_have_no_exits(self):
        assert TRANSITIONS[S.REMOVED] == frozenset()
        assert TRANSITIONS[S.ABORTED] == frozenset()

    def test_dirty_only_reaches_removing_through_confirmation(self):
        assert S.REMOVING not in TRANSITIONS[S.DIRTY]
        assert S.REMOVING in TRANSITIONS[S.CONFIRMING_FORCE]

    def test_illegal_transition_raises(self, registry):
        guard = RemovalGuard(registry, ScriptedConfirm(True))
        result = RemovalResult(name="x")

        with pytest.raises(InvalidTransitionError):
            guard._advance(result, S.REMOVING)
        assert result.history == [S.IDLE]


class TestCleanRemoval:
    """Test removing clean worktrees."""

    def test_clean_worktree_is_removed(self, repo_with_worktrees, temp_dir, registry):
        confirm = ScriptedConfirm(False)
        result = RemovalGuard(registry, confirm).remove("feature-a")

        assert result.removed
        assert result.exit_code == 0
        assert result.history == [S.IDLE, S.VALIDATING, S.REMOVING, S.REMOVED]
        assert not (temp_dir / "feature-a").exists()
        assert confirm.prompts == []

    def test_force_on_clean_worktree_does_not_prompt(self, repo_with_worktrees, temp_dir, registry):
        confirm = ScriptedConfirm(False)
        result = RemovalGuard(registry, confirm).remove("feature-a", force=True)

        assert result.removed
        assert confirm.prompts == []

    def test_remove_by_branch_name(self, git_repo, add_worktree, temp_dir, registry):
        add_worktree("feature/login", dirname="login")
        result = RemovalGuard(registry, ScriptedConfirm(False)).remove("feature/login")

        assert result.removed
        assert not (temp_dir / "login").exists()

    def test_orphaned_worktree_is_pruned(self, repo_with_worktrees, temp_dir, registry):
        shutil.rmtree(temp_dir / "feature-a")

        result = RemovalGuard(registry, ScriptedConfirm(False)).remove("feature-a")

        assert result.removed
        assert "feature-a" not in [wt.name for wt in registry.list()]


class TestDirtyRemoval:
    """Test the dirty and forced paths."""

    @pytest.mark.parametrize("state", DIRTY_STATES, ids=lambda s: s.value)
    def test_dirty_without_force_is_refused(self, repo_with_worktrees, temp_dir, registry, state):
        path = temp_dir / "feature-a"
        make_dirty(path, state)

        result = RemovalGuard(registry, ScriptedConfirm(True)).remove("feature-a")

        assert result.state is S.ABORTED
        assert result.exit_code == 1
        assert isinstance(result.error, DirtyWorktreeError)
        assert result.error.dirty_state is state
        assert result.history == [S.IDLE, S.VALIDATING, S.DIRTY, S.ABORTED]
        assert path.exists()

    def test_force_declined_keeps_directory(self, repo_with_worktrees, temp_dir, registry):
        path = temp_dir / "feature-a"
        make_dirty(path, DirtyState.UNSTAGED)
        confirm = ScriptedConfirm(False)

        result = RemovalGuard(registry, confirm).remove("feature-a", force=True)

        assert result.exit_code == 1
        assert isinstance(result.error, RemovalCancelledError)
        assert result.history == [S.IDLE, S.VALIDATING, S.DIRTY, S.CONFIRMING_FORCE, S.ABORTED]
        assert path.exists()
        assert (path / "README.md").read_text() == "changed\n"
        assert len(confirm.prompts) == 1
        assert "uncommitted changes" in confirm.prompts[0]

    @pytest.mark.parametrize("state", DIRTY_STATES, ids=lambda s: s.value)
    def test_force_accepted_removes(self, repo_with_worktrees, temp_dir, registry, state):
        path = temp_dir / "feature-a"
        make_dirty(path, state)

        result = RemovalGuard(registry, ScriptedConfirm(True)).remove("feature-a", force=True)

        assert result.removed
        assert result.history == [
            S.IDLE, S.VALIDATING, S.DIRTY, S.CONFIRMING_FORCE, S.REMOVING, S.REMOVED
        ]
        assert not path.exists()


class TestRefusals:
    """Test requests that never reach removal."""

    def test_current_worktree_refused_even_with_force(self, repo_with_worktrees, temp_dir):
        registry = WorktreeRegistry(str(temp_dir / "feature-a"))
        confirm = ScriptedConfirm(True)

        result = RemovalGuard(registry, confirm).remove("feature-a", force=True)

        assert isinstance(result.error, CurrentWorktreeError)
        assert "while inside it" in str(result.error)
        assert result.history == [S.IDLE, S.VALIDATING, S.ABORTED]
        assert (temp_dir / "feature-a").exists()
        assert confirm.prompts == []

    def test_current_dot_refers_to_caller(self, repo_with_worktrees, temp_dir):
        registry = WorktreeRegistry(str(temp_dir / "feature-b"))
        result = RemovalGuard(registry, ScriptedConfirm(True)).remove(".")

        assert isinstance(result.error, CurrentWorktreeError)

    def test_nonexistent_lists_all_worktrees(self, repo_with_worktrees, registry):
        result = RemovalGuard(registry, ScriptedConfirm(True)).remove("nonexistent")

        assert result.exit_code == 1
        assert isinstance(result.error, WorktreeNotFoundError)
        assert result.error.available_names == ["test_repo", "feature-a", "feature-b"]
        assert result.history == [S.IDLE, S.VALIDATING, S.ABORTED]

    def test_git_failure_aborts(self, repo_with_worktrees, temp_dir, registry):
        error = OperationFailedError("remove_worktree", "feature-a", "locked")
        with patch.object(registry, "remove", side_effect=error):
            result = RemovalGuard(registry, ScriptedConfirm(True)).remove("feature-a")

        assert result.error is error
        assert result.history == [S.IDLE, S.VALIDATING, S.REMOVING, S.ABORTED]
        assert (temp_dir / "feature-a").exists()


class TestPreRemoveHook:
    """Test the cleanup hook run on entering REMOVING."""

    def test_hook_runs_before_removal(self, repo_with_worktrees, temp_dir, registry):
        seen = []

        def hook(worktree):
            seen.append((worktree.name, (temp_dir / worktree.name).exists()))

        RemovalGuard(registry, ScriptedConfirm(True), pre_remove=hook).remove("feature-a")

        assert seen == [("feature-a", True)]

    def test_hook_not_run_when_refused(self, repo_with_worktrees, temp_dir, registry):
        hook = Mock()
        make_dirty(temp_dir / "feature-a", DirtyState.UNTRACKED)

        RemovalGuard(registry, ScriptedConfirm(True), pre_remove=hook).remove("feature-a")

        hook.assert_not_called()

    def test_hook_failure_does_not_block_removal(self, repo_with_worktrees, temp_dir, registry):
        hook = Mock(side_effect=OSError("permission denied"))

        result = RemovalGuard(registry, ScriptedConfirm(True), pre_remove=hook).remove("feature-a")

        assert result.removed
        hook.assert_called_once()

    def test_undo_runs_when_git_removal_fails(self, repo_with_worktrees, registry):
        undo = Mock()
        error = OperationFailedError("remove_worktree", "feature-a", "locked")

        with patch.object(registry, "remove", side_effect=error):
            result = RemovalGuard(registry, ScriptedConfirm(True), pre_remove=lambda wt: undo).remove("feature-a")

        assert result.error is error
        undo.assert_called_once_with()

    def test_undo_not_run_after_successful_removal(self, repo_with_worktrees, registry):
        undo = Mock()

        result = RemovalGuard(registry, ScriptedConfirm(True), pre_remove=lambda wt: undo).remove("feature-a")

        assert result.removed
        undo.assert_not_called()

    def test_undo_failure_keeps_original_error(self, repo_with_worktrees, registry):
        undo = Mock(side_effect=OSError("read-only"))
        error = OperationFailedError("remove_worktree", "feature-a", "locked")

        with patch.object(registry, "remove", side_effect=error):
            result = RemovalGuard(registry, ScriptedConfirm(True), pre_remove=lambda wt: undo).remove("feature-a")

        assert result.error is error
        assert result.state is S.ABORTED


class TestSharedDependencies:
    """Test removal of worktrees whose dependencies are shared from another worktree."""

    @pytest.fixture
    def shared(self, git_repo, add_worktree):
        main = Path(git_repo.working_dir)
        (main / "package.json").write_text("{}")
        (main / ".gitignore").write_text("node_modules/\n")
        git_repo.index.add(["package.json", ".gitignore"])
        git_repo.index.commit("Add package.json")
        (main / "node_modules" / "left-pad").mkdir(parents=True)
        path = add_worktree("feature-a")
        DependencySharer().share(main, path, "node_modules")
        return main, path

    def test_removed_without_force(self, shared, registry, dispatcher):
        main, path = shared
        confirm = ScriptedConfirm(False)

        result = RemovalGuard(registry, confirm, pre_remove=lambda wt: dispatcher.cleanup_for_removal(wt.path)).remove(
            "feature-a"
        )

        assert result.removed
        assert confirm.prompts == []
        assert not path.exists()
        assert (main / "node_modules" / "left-pad").is_dir()

    def test_link_restored_when_removal_fails(self, shared, registry, dispatcher):
        main, path = shared
        link = path / "node_modules"
        target = os.readlink(link)
        error = OperationFailedError("remove_worktree", "feature-a", "locked")

        with patch.object(registry, "remove", side_effect=error):
            result = RemovalGuard(
                registry, ScriptedConfirm(True), pre_remove=lambda wt: dispatcher.cleanup_for_removal(wt.path)
            ).remove("feature-a")

        assert result.error is error
        assert link.is_symlink()
        assert os.readlink(link) == target


class TestAmbiguousName:
    """Test names shared by several worktrees."""

    def test_ambiguous_name_aborts(self, git_repo, add_worktree, registry):
        first = add_worktree("one", dirname="a/feature")
        second = add_worktree("two", dirname="b/feature")

        result = RemovalGuard(registry, ScriptedConfirm(True)).remove("feature", force=True)

        assert isinstance(result.error, AmbiguousWorktreeError)
        assert result.history == [S.IDLE, S.VALIDATING, S.ABORTED]
        assert first.exists() and second.exists()

    def test_path_removes_one_of_them(self, git_repo, add_worktree, registry):
        first = add_worktree("one", dirname="a/feature")
        second = add_worktree("two", dirname="b/feature")

        result = RemovalGuard(registry, ScriptedConfirm(True)).remove(str(second))

        assert result.removed
        assert first.exists()
        assert not second.exists()
