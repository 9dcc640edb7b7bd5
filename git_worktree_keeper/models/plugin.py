"""Plugin, dependency sharing and setup models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from git_worktree_keeper.exceptions import SetupFailedError

UNKNOWN = "unknown"


class Capability(Enum):
    """Operations a plugin supports."""
    SETUP = "setup"
    CLEANUP = "cleanup"
    STATUS = "status"


class ShareOutcome(Enum):
    """Result of sharing a dependency artifact into a worktree."""
    SYMLINKED = "symlinked"
    COPIED = "copied"
    SKIPPED = "skipped"


class DependencyState(Enum):
    """State of a project's dependency artifact in a worktree."""
    SHARED = "shared"
    INSTALLED = "installed"
    MISSING = "missing"


@dataclass(frozen=True)
class DependencyShare:
    """Outcome of DependencySharer.share()."""

    source_dir: Path
    target_dir: Path
    artifact: str
    outcome: ShareOutcome
    reason: Optional[str] = None  # Why it was skipped

    @property
    def shared(self) -> bool:
        return self.outcome is not ShareOutcome.SKIPPED


@dataclass(frozen=True)
class ProjectMetadata:
    """Best-effort project name and version."""

    name: str = UNKNOWN
    version: str = UNKNOWN

    def __str__(self) -> str:
        if self.version == UNKNOWN:
            return self.name
        return f"{self.name} v{self.version}"


@dataclass
class PluginStatus:
    """Status of one ecosystem in a directory."""

    plugin_id: str
    project_name: str = UNKNOWN
    project_version: str = UNKNOWN
    package_manager: str = UNKNOWN
    dependency_state: DependencyState = DependencyState.MISSING
    ecosystem_version: str = UNKNOWN
    details: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SetupOptions:
    """Inputs to PluginDispatcher.setup_worktree()."""

    reference_dir: Optional[Path] = None  # Worktree holding already-installed dependencies
    install: bool = True


@dataclass
class SetupReport:
    """What happened while setting up one plugin in a worktree."""

    plugin_id: str
    directory: Path
    share: Optional[DependencyShare] = None
    installed_with: Optional[str] = None
    project: ProjectMetadata = field(default_factory=ProjectMetadata)
    error: Optional["SetupFailedError"] = None

    @property
    def ok(self) -> bool:
        return self.error is None
