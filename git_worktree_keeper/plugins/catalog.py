"""Static plugin registry and the enabled subset."""

from typing import Iterable, List, Optional, Sequence, Tuple, Type

from git_worktree_keeper.exceptions import PluginNotFoundError
from git_worktree_keeper.plugins.base import Plugin
from git_worktree_keeper.plugins.javascript import JavaScriptPlugin
from git_worktree_keeper.plugins.python import PythonPlugin
from git_worktree_keeper.plugins.rust import RustPlugin
from git_worktree_keeper.utils.logging import get_logger
from git_worktree_keeper.utils.process import CommandRunner

logger = get_logger(__name__)

# Registration order is detection order
PLUGIN_TYPES: Tuple[Type[Plugin], ...] = (JavaScriptPlugin, PythonPlugin, RustPlugin)


class PluginCatalog:
    """Available plugins in registration order, plus which of them are enabled."""

    def __init__(self, plugins: Sequence[Plugin], enabled_ids: Iterable[str] = ()):
        """Initialize the catalog.

        Args:
            plugins: Plugin instances in registration order
            enabled_ids: Ids to enable; ids not in the catalog are ignored

        Raises:
            ValueError: If two plugins share an id
        """
        ids = [plugin.id for plugin in plugins]
        duplicates = sorted({plugin_id for plugin_id in ids if ids.count(plugin_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate plugin ids: {', '.join(duplicates)}")

        self._plugins: Tuple[Plugin, ...] = tuple(plugins)
        wanted = set(enabled_ids)
        unknown = sorted(wanted - set(ids))
        if unknown:
            logger.warning(f"Ignoring unknown plugins: {', '.join(unknown)}")
        self._enabled = frozenset(wanted & set(ids))

    @classmethod
    def default(cls, enabled_ids: Iterable[str] = (), runner: Optional[CommandRunner] = None) -> "PluginCatalog":
        """Catalog of the built-in plugins sharing one command runner."""
        runner = runner or CommandRunner()
        return cls([plugin_type(runner) for plugin_type in PLUGIN_TYPES], enabled_ids)

    @property
    def ids(self) -> List[str]:
        return [plugin.id for plugin in self._plugins]

    @property
    def enabled_ids(self) -> List[str]:
        return [plugin.id for plugin in self.enabled()]

    def available(self) -> List[Plugin]:
        return list(self._plugins)

    def enabled(self) -> List[Plugin]:
        return [plugin for plugin in self._plugins if plugin.id in self._enabled]

    def is_enabled(self, plugin_id: str) -> bool:
        return plugin_id in self._enabled

    def get(self, plugin_id: str) -> Plugin:
        """Look up a plugin by id.

        Raises:
            PluginNotFoundError: If no plugin has this id
        """
        for plugin in self._plugins:
            if plugin.id == plugin_id:
                return plugin
        raise PluginNotFoundError(plugin_id)
