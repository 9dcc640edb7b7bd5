"""Detects which plugins apply to a directory and runs their operations."""

import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from git_worktree_keeper.models.plugin import PluginStatus, SetupOptions, SetupReport
from git_worktree_keeper.plugins.base import Plugin
from git_worktree_keeper.plugins.catalog import PluginCatalog
from git_worktree_keeper.services.dependency_sharer import DependencySharer
from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


class PluginDispatcher:
    """Routes setup, cleanup and status requests to enabled plugins."""

    def __init__(self, catalog: PluginCatalog, sharer: Optional[DependencySharer] = None):
        self.catalog = catalog
        self.sharer = sharer or DependencySharer()

    def detect(self, directory: PathLike) -> List[Plugin]:
        """Enabled plugins whose detection matches ``directory``, in catalog order."""
        directory = Path(directory)
        matches = [plugin for plugin in self.catalog.enabled() if plugin.detect(directory)]
        logger.debug(f"Detected plugins for {directory}: {[p.id for p in matches]}")
        return matches

    def setup_worktree(
        self, directory: PathLike, plugin_id: str, options: Optional[SetupOptions] = None
    ) -> SetupReport:
        """Run one plugin's setup in ``directory``.

        Setup failures are advisory: they are logged and returned on the report.

        Raises:
            PluginNotFoundError: If ``plugin_id`` is not in the catalog
        """
        plugin = self.catalog.get(plugin_id)
        options = options or SetupOptions()
        logger.info(f"Setting up {plugin.display_name} project in {directory}")

        report = plugin.setup(Path(directory), options, self.sharer)
        if report.error:
            logger.warning(f"Setup of {plugin_id} in {directory} degraded: {report.error}")
        return report

    def auto_setup(self, directory: PathLike, options: Optional[SetupOptions] = None) -> List[SetupReport]:
        """Set up every detected enabled plugin, in catalog order."""
        plugins = self.detect(directory)
        if not plugins:
            logger.info(f"No enabled plugin applies to {directory}")
        return [self.setup_worktree(directory, plugin.id, options) for plugin in plugins]

    def cleanup_worktree(self, directory: PathLike, plugin_id: str) -> List[Path]:
        """Run one plugin's cleanup in ``directory``.

        Raises:
            PluginNotFoundError: If ``plugin_id`` is not in the catalog
        """
        plugin = self.catalog.get(plugin_id)
        removed = plugin.cleanup(Path(directory))
        for path in removed:
            logger.info(f"Removed {path}")
        return removed

    def cleanup(self, directory: PathLike) -> Dict[str, List[Path]]:
        """Clean up every detected enabled plugin."""
        return {
            plugin.id: self.cleanup_worktree(directory, plugin.id)
            for plugin in self.detect(directory)
        }

    def shared_links(self, directory: PathLike) -> Dict[Path, str]:
        """Symlinked dependency directories of every detected enabled plugin, with their targets."""
        directory = Path(directory)
        links = {}
        for plugin in self.detect(directory):
            for name in plugin.dependency_dirs:
                path = directory / name
                if path.is_symlink():
                    links[path] = os.readlink(path)
        return links

    def restore_links(self, links: Dict[Path, str]) -> None:
        """Recreate symlinks recorded by shared_links() that are missing now."""
        for path, target in links.items():
            if path.is_symlink() or path.exists():
                continue
            try:
                os.symlink(target, path, target_is_directory=True)
                logger.info(f"Restored {path} -> {target}")
            except OSError as e:
                logger.warning(f"Could not restore {path}: {e}")

    def cleanup_for_removal(self, directory: PathLike) -> Callable[[], None]:
        """Clean up before a worktree is removed.

        Returns:
            Callable that relinks the shared dependency directories, for when
            the removal fails afterwards
        """
        links = self.shared_links(directory)
        self.cleanup(directory)
        return lambda: self.restore_links(links)

    def list_status(self, directory: PathLike, plugin_id: str) -> Optional[PluginStatus]:
        """Status of one plugin in ``directory``.

        Returns:
            PluginStatus, or None when the plugin does not apply to the directory

        Raises:
            PluginNotFoundError: If ``plugin_id`` is not in the catalog
        """
        return self.catalog.get(plugin_id).status(Path(directory))

    def list_all_status(self, directory: PathLike) -> List[PluginStatus]:
        """Status of every detected enabled plugin."""
        statuses = [self.list_status(directory, plugin.id) for plugin in self.detect(directory)]
        return [status for status in statuses if status is not None]
