"""Project-type plugins for git-worktree-keeper."""

from .base import InstallCandidate, Plugin
from .catalog import PLUGIN_TYPES, PluginCatalog
from .dispatcher import PluginDispatcher
from .javascript import JavaScriptPlugin
from .python import PythonPlugin
from .rust import RustPlugin

__all__ = [
    "InstallCandidate",
    "Plugin",
    "PLUGIN_TYPES",
    "PluginCatalog",
    "PluginDispatcher",
    "JavaScriptPlugin",
    "PythonPlugin",
    "RustPlugin",
]
