"""Pytest fixtures for git-worktree-keeper tests"""
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
import git

from git_worktree_keeper.plugins.catalog import PluginCatalog
from git_worktree_keeper.plugins.dispatcher import PluginDispatcher
from git_worktree_keeper.services.git.worktrees import WorktreeRegistry


class FakeRunner:
    """Stand-in for CommandRunner that never spawns processes.

    Tools listed in ``tools`` are "on PATH". ``run`` records the call and
    returns ``exit_code``; on success it can create directories to mimic an
    install populating node_modules or target/.
    """

    def __init__(
        self,
        tools: Iterable[str] = (),
        exit_code: int = 0,
        creates: Iterable[str] = (),
        outputs: Optional[Dict[str, str]] = None,
    ):
        self.tools = set(tools)
        self.exit_code = exit_code
        self.creates = list(creates)
        self.outputs = outputs or {}
        self.calls: List[Tuple[Tuple[str, ...], Path]] = []

    def which(self, tool):
        return f"/usr/bin/{tool}" if tool in self.tools else None

    def run(self, command, cwd):
        self.calls.append((tuple(command), Path(cwd)))
        if self.exit_code == 0:
            for name in self.creates:
                (Path(cwd) / name).mkdir(exist_ok=True)
        return self.exit_code

    def output(self, command, cwd=None):
        return self.outputs.get(command[0])


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # Resolve so paths compare equal to the registry's realpath'd ones
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit on main branch
    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch('-M', 'main')

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def add_worktree(git_repo, temp_dir):
    """Factory creating a linked worktree on a new branch; returns its path."""

    def _add(branch: str, dirname: Optional[str] = None) -> Path:
        path = temp_dir / (dirname or branch.replace("/", "-"))
        git_repo.git.worktree("add", "-b", branch, str(path))
        return path

    return _add


@pytest.fixture
def repo_with_worktrees(git_repo, add_worktree):
    """Repository with two linked worktrees: feature-a and feature-b."""
    add_worktree("feature-a")
    add_worktree("feature-b")
    yield git_repo


@pytest.fixture
def registry(git_repo):
    """Registry whose caller stands in the main worktree."""
    return WorktreeRegistry(git_repo.working_dir)


@pytest.fixture
def fake_runner():
    """Runner with no tools available."""
    return FakeRunner()


@pytest.fixture
def catalog(fake_runner):
    """Default catalog with every plugin enabled."""
    return PluginCatalog.default(["javascript", "python", "rust"], runner=fake_runner)


@pytest.fixture
def dispatcher(catalog):
    return PluginDispatcher(catalog)


@pytest.fixture
def config_dir(temp_dir):
    """Empty configuration directory."""
    path = temp_dir / "config"
    path.mkdir()
    return path


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner
