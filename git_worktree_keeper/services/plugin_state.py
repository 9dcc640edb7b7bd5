"""Persistence of the enabled-plugin set."""
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, List, Sequence, Set

from git_worktree_keeper.exceptions import PluginNotFoundError
from git_worktree_keeper.utils.logging import get_logger

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)


class PluginStateStore:
    """Reads and writes the set of enabled plugin ids.

    The file holds ``{"enabled": ["javascript", ...]}``. Ids not present in
    the catalog are dropped on load, so the enabled set is always a subset
    of the catalog.
    """

    def __init__(self, state_file: Path, catalog_ids: Sequence[str]):
        """Initialize the store.

        Args:
            state_file: JSON file holding the enabled ids
            catalog_ids: Ids of every available plugin, in catalog order
        """
        self.state_file = Path(state_file)
        self.catalog_ids = list(catalog_ids)

    @contextmanager
    def _acquire_lock(self, file_handle, operation: str = "read"):
        """Acquire file lock for state file operations.

        Args:
            file_handle: Open file handle to lock
            operation: Type of operation ("read" or "write")

        Yields:
            None when lock is acquired
        """
        if not HAS_FCNTL:
            logger.debug("File locking not available on this platform")
            yield
            return

        # Acquire exclusive lock for writes, shared lock for reads
        lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
        fcntl.flock(file_handle.fileno(), lock_type)
        try:
            yield
        finally:
            fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)

    def _ordered(self, ids: Iterable[str]) -> List[str]:
        """Keep known ids only, in catalog order."""
        wanted = set(ids)
        return [plugin_id for plugin_id in self.catalog_ids if plugin_id in wanted]

    def load(self) -> Set[str]:
        """Load the enabled ids.

        Returns an empty set if the file is missing or unreadable.
        """
        if not self.state_file.exists():
            logger.debug("No plugin state file found")
            return set()

        try:
            with open(self.state_file, "r") as f:
                with self._acquire_lock(f, operation="read"):
                    data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in plugin state file: {e}")
            return set()
        except OSError as e:
            logger.warning(f"Failed to read plugin state: {e}")
            return set()

        raw = data.get("enabled", []) if isinstance(data, dict) else []
        if not isinstance(raw, list):
            logger.warning("Plugin state 'enabled' is not a list, ignoring it")
            return set()

        unknown = sorted(str(plugin_id) for plugin_id in raw if plugin_id not in self.catalog_ids)
        if unknown:
            logger.warning(f"Ignoring unknown enabled plugins: {', '.join(unknown)}")
        return set(self._ordered(raw))

    def save(self, enabled_ids: Iterable[str]) -> None:
        """Write the enabled ids using an atomic rename under an exclusive lock."""
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        payload = {"enabled": self._ordered(enabled_ids)}

        temp_file = self.state_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w") as f:
                with self._acquire_lock(f, operation="write"):
                    json.dump(payload, f, indent=2)
                    f.flush()
            # Atomic rename (POSIX systems guarantee atomicity)
            temp_file.replace(self.state_file)
        finally:
            if temp_file.exists():
                temp_file.unlink()
        logger.debug(f"Saved enabled plugins: {payload['enabled']}")

    def enable(self, plugin_id: str) -> bool:
        """Enable a plugin.

        Returns:
            True if the plugin was newly enabled, False if it already was

        Raises:
            PluginNotFoundError: If the id is not in the catalog
        """
        if plugin_id not in self.catalog_ids:
            raise PluginNotFoundError(plugin_id)
        enabled = self.load()
        if plugin_id in enabled:
            return False
        enabled.add(plugin_id)
        self.save(enabled)
        logger.info(f"Enabled plugin {plugin_id}")
        return True

    def disable(self, plugin_id: str) -> bool:
        """Disable a plugin.

        Returns:
            True if the plugin was enabled before, False otherwise

        Raises:
            PluginNotFoundError: If the id is not in the catalog
        """
        if plugin_id not in self.catalog_ids:
            raise PluginNotFoundError(plugin_id)
        enabled = self.load()
        if plugin_id not in enabled:
            return False
        enabled.discard(plugin_id)
        self.save(enabled)
        logger.info(f"Disabled plugin {plugin_id}")
        return True
