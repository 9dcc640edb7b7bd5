"""Plugin contract shared by every ecosystem plugin."""

import json
import shutil
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from git_worktree_keeper.exceptions import SetupFailedError
from git_worktree_keeper.models.plugin import (
    UNKNOWN,
    Capability,
    DependencyState,
    PluginStatus,
    ProjectMetadata,
    SetupOptions,
    SetupReport,
)
from git_worktree_keeper.services.dependency_sharer import DependencySharer
from git_worktree_keeper.utils.logging import get_logger
from git_worktree_keeper.utils.process import CommandRunner

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallCandidate:
    """One way of installing dependencies, tried in priority order."""

    tool: str
    argv: Tuple[str, ...]
    trigger: Optional[str] = None  # File that must exist for this candidate; None = always


def read_toml(path: Path) -> Dict[str, Any]:
    """Parse a TOML file, returning {} if it is missing or invalid."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.debug(f"Could not read {path}: {e}")
        return {}


def read_json(path: Path) -> Dict[str, Any]:
    """Parse a JSON object file, returning {} if it is missing or invalid."""
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug(f"Could not read {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def as_text(value: Any) -> str:
    """Render a metadata value, falling back to the unknown placeholder."""
    if isinstance(value, (str, int, float)) and str(value).strip():
        return str(value).strip()
    return UNKNOWN


class Plugin(ABC):
    """Detection, setup, cleanup and status for one language ecosystem.

    Subclasses describe their ecosystem through class attributes and a few
    hooks; the setup/cleanup/status flow itself lives here.
    """

    id: str = ""
    display_name: str = ""
    # Files whose presence marks a project of this ecosystem
    marker_files: Tuple[str, ...] = ()
    # Per-worktree dependency directories; the first one is shared from the reference worktree
    dependency_dirs: Tuple[str, ...] = ()
    shareable: bool = True
    # Caches removed on cleanup
    ephemeral_paths: Tuple[str, ...] = ()
    capabilities: FrozenSet[Capability] = frozenset(Capability)

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"

    # Detection

    def detect(self, directory: Path) -> bool:
        """Return True if ``directory`` holds a project of this ecosystem."""
        directory = Path(directory)
        return any((directory / marker).is_file() for marker in self.marker_files)

    # Hooks

    @abstractmethod
    def install_candidates(self, directory: Path) -> Sequence[InstallCandidate]:
        """Install commands in priority order, most specific tool first."""

    @abstractmethod
    def project_metadata(self, directory: Path) -> ProjectMetadata:
        """Best-effort project name and version."""

    @abstractmethod
    def ecosystem_version(self) -> str:
        """Version of the ecosystem toolchain, or "unknown"."""

    def package_manager(self, directory: Path) -> str:
        """Name of the tool managing this project, or "unknown"."""
        for candidate in self.install_candidates(directory):
            if candidate.trigger and (Path(directory) / candidate.trigger).exists():
                return candidate.tool
        return UNKNOWN

    def status_details(self, directory: Path) -> Dict[str, str]:
        """Extra ecosystem-specific facts shown with the status."""
        return {}

    # Dependency directory

    @property
    def shared_artifact(self) -> Optional[str]:
        """Dependency directory shared from the reference worktree, if any."""
        if self.shareable and self.dependency_dirs:
            return self.dependency_dirs[0]
        return None

    def dependency_state(self, directory: Path) -> DependencyState:
        directory = Path(directory)
        for name in self.dependency_dirs:
            path = directory / name
            if path.is_symlink():
                return DependencyState.SHARED
            if path.is_dir():
                return DependencyState.INSTALLED
        return DependencyState.MISSING

    def has_dependencies(self, directory: Path) -> bool:
        return self.dependency_state(directory) is not DependencyState.MISSING

    # Operations

    def select_installer(self, directory: Path) -> Optional[InstallCandidate]:
        """Pick the first applicable candidate whose tool is on PATH.

        Returns:
            The candidate, or None when no candidate applies (nothing to install)

        Raises:
            SetupFailedError: If candidates apply but none of their tools is available
        """
        directory = Path(directory)
        applicable = [
            c for c in self.install_candidates(directory)
            if c.trigger is None or (directory / c.trigger).exists()
        ]
        if not applicable:
            return None
        for candidate in applicable:
            if self.runner.which(candidate.tool):
                return candidate
        tools = "/".join(dict.fromkeys(c.tool for c in applicable))
        raise SetupFailedError(self.id, f"No package manager found ({tools})")

    def install(self, directory: Path) -> Optional[str]:
        """Install dependencies with the selected tool.

        Returns:
            Name of the tool used, or None if there was nothing to install

        Raises:
            SetupFailedError: If no tool is available or the tool fails
        """
        candidate = self.select_installer(directory)
        if candidate is None:
            logger.info(f"No {self.display_name} dependencies to install in {directory}")
            return None

        exit_code = self.runner.run(candidate.argv, directory)
        if exit_code != 0:
            raise SetupFailedError(self.id, f"{candidate.tool} exited with status {exit_code}")
        return candidate.tool

    def setup(self, directory: Path, options: SetupOptions, sharer: DependencySharer) -> SetupReport:
        """Share, install, then report.

        Install failures are recorded on the report rather than raised.
        """
        directory = Path(directory)
        report = SetupReport(plugin_id=self.id, directory=directory)

        if not self.detect(directory):
            report.error = SetupFailedError(self.id, f"{directory} is not a {self.display_name} project")
            return report

        artifact = self.shared_artifact
        if artifact and options.reference_dir is not None:
            reference = Path(options.reference_dir)
            if (reference / artifact).is_dir():
                report.share = sharer.share(reference, directory, artifact)

        if options.install and not self.has_dependencies(directory):
            try:
                report.installed_with = self.install(directory)
            except SetupFailedError as e:
                report.error = e

        report.project = self.project_metadata(directory)
        return report

    def cleanup(self, directory: Path) -> List[Path]:
        """Remove shared dependency links and ephemeral caches.

        Real dependency directories are never deleted, only symlinks.

        Returns:
            Paths that were removed
        """
        directory = Path(directory)
        removed = []

        for name in self.dependency_dirs:
            path = directory / name
            if path.is_symlink():
                path.unlink()
                removed.append(path)
            elif path.exists():
                logger.debug(f"Keeping real dependency directory {path}")

        for name in self.ephemeral_paths:
            path = directory / name
            if path.is_symlink() or path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
            else:
                continue
            removed.append(path)

        return removed

    def status(self, directory: Path) -> Optional[PluginStatus]:
        """Status of this ecosystem in ``directory``; None if not applicable."""
        directory = Path(directory)
        if not self.detect(directory):
            return None

        project = self.project_metadata(directory)
        return PluginStatus(
            plugin_id=self.id,
            project_name=project.name,
            project_version=project.version,
            package_manager=self.package_manager(directory),
            dependency_state=self.dependency_state(directory),
            ecosystem_version=self.ecosystem_version(),
            details=self.status_details(directory),
        )
