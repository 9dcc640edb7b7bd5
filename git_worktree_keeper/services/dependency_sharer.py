"""Share heavy dependency artifacts (node_modules, target, ...) between worktrees."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Union

import git

from git_worktree_keeper.models.plugin import DependencyShare, ShareOutcome
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


class DependencySharer:
    """Links a reference worktree's dependency artifact into another worktree.

    Tries a symlink first, then a hard-link copy (``cp -al`` style). When both
    fail the target is left exactly as it was found.
    """

    def __init__(
        self,
        symlink: Callable[..., None] = os.symlink,
        link: Callable[[str, str], None] = os.link,
    ):
        """Initialize the sharer.

        Args:
            symlink: Symlink primitive (os.symlink signature)
            link: Hard-link primitive used for the copy fallback (os.link signature)
        """
        self._symlink = symlink
        self._link = link

    def share(self, source_dir: PathLike, target_dir: PathLike, artifact: str) -> DependencyShare:
        """Share ``source_dir/artifact`` into ``target_dir/artifact``.

        Args:
            source_dir: Reference worktree holding installed dependencies
            target_dir: Worktree that should receive them
            artifact: Name of the dependency directory (e.g. "node_modules")

        Returns:
            DependencyShare describing the outcome
        """
        source_dir = Path(source_dir)
        target_dir = Path(target_dir)
        source = source_dir / artifact
        target = target_dir / artifact

        def skipped(reason: str) -> DependencyShare:
            logger.info(f"Not sharing {artifact}: {reason}")
            return DependencyShare(source_dir, target_dir, artifact, ShareOutcome.SKIPPED, reason)

        if not source.is_dir():
            return skipped(f"{source} does not exist")
        if not target_dir.is_dir():
            return skipped(f"{target_dir} is not a directory")
        if source_dir.resolve() == target_dir.resolve():
            return skipped("source and target are the same directory")

        replaced_empty_dir = False
        if target.is_symlink():
            if target.resolve() == source.resolve():
                logger.debug(f"{target} already links to {source}")
                self.exclude_from_status(target_dir, artifact)
                return DependencyShare(source_dir, target_dir, artifact, ShareOutcome.SYMLINKED)
            logger.debug(f"Replacing stale symlink {target}")
            target.unlink()
        elif target.is_dir():
            if any(target.iterdir()):
                return skipped(f"{target} already exists and is not empty")
            target.rmdir()
            replaced_empty_dir = True
        elif target.exists():
            return skipped(f"{target} exists and is not a directory")

        link_source = os.path.relpath(os.path.realpath(source), os.path.realpath(target_dir))
        try:
            self._symlink(link_source, str(target), target_is_directory=True)
            logger.info(f"Linked {target} -> {link_source}")
            self.exclude_from_status(target_dir, artifact)
            return DependencyShare(source_dir, target_dir, artifact, ShareOutcome.SYMLINKED)
        except OSError as e:
            logger.info(f"Symlink for {artifact} failed ({e}), attempting hard-link copy")

        try:
            self._hardlink_copy(source, target)
            logger.info(f"Copied {source} to {target} with hard links")
            self.exclude_from_status(target_dir, artifact)
            return DependencyShare(source_dir, target_dir, artifact, ShareOutcome.COPIED)
        except (OSError, shutil.Error) as e:
            logger.warning(f"Failed to share {artifact} from {source_dir}: {e}")
            if replaced_empty_dir:
                target.mkdir(exist_ok=True)
            return skipped(f"symlink and hard-link copy both failed: {e}")

    def _hardlink_copy(self, source: Path, target: Path) -> None:
        """Hard-link copy ``source`` to ``target`` via a staging directory.

        The tree is built next to the target and renamed into place, so a
        failure halfway never leaves a partial artifact behind.
        """
        staging_root = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=str(target.parent)))
        try:
            staging = staging_root / target.name
            shutil.copytree(source, staging, symlinks=True, copy_function=self._link)
            staging.rename(target)
        finally:
            shutil.rmtree(staging_root, ignore_errors=True)

    @staticmethod
    def exclude_from_status(target_dir: Path, artifact: str) -> None:
        """Add ``/<artifact>`` to the repository's info/exclude.

        A ``node_modules/`` ignore rule matches directories only, so a shared
        symlink would otherwise show up as untracked and make the worktree
        look dirty. Directories outside a git worktree are left alone.
        """
        pattern = f"/{artifact}"
        try:
            repo = git.Repo(target_dir)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            logger.debug(f"{target_dir} is not a git worktree, not excluding {artifact}")
            return

        try:
            exclude_file = Path(repo.git.rev_parse("--git-path", "info/exclude"))
            if not exclude_file.is_absolute():
                exclude_file = Path(repo.working_tree_dir) / exclude_file

            content = exclude_file.read_text() if exclude_file.exists() else ""
            if pattern in content.splitlines():
                return
            exclude_file.parent.mkdir(parents=True, exist_ok=True)
            with open(exclude_file, "a") as f:
                if content and not content.endswith("\n"):
                    f.write("\n")
                f.write(f"{pattern}\n")
            logger.debug(f"Added {pattern} to {exclude_file}")
        except (git.exc.GitCommandError, OSError) as e:
            logger.warning(f"Could not exclude {artifact} from git status: {e}")
        finally:
            repo.close()
