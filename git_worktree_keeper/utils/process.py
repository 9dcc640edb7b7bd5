"""Discovery and execution of external tools (npm, uv, cargo, ...)."""

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)


class CommandRunner:
    """Runs ecosystem tools on behalf of plugins.

    Plugins never call subprocess directly so tests can substitute a fake.
    """

    def which(self, tool: str) -> Optional[str]:
        """Return the absolute path of ``tool`` on PATH, or None."""
        return shutil.which(tool)

    def run(self, command: Sequence[str], cwd: Union[str, Path]) -> int:
        """Run a command with inherited stdio and return its exit code."""
        logger.info(f"Running {' '.join(command)} in {cwd}")
        try:
            completed = subprocess.run(list(command), cwd=str(cwd), check=False)
        except OSError as e:
            logger.warning(f"Could not execute {command[0]}: {e}")
            return 127
        logger.debug(f"{command[0]} exited with {completed.returncode}")
        return completed.returncode

    def output(self, command: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> Optional[str]:
        """Run a command and return its stripped stdout, or None on any failure."""
        if self.which(command[0]) is None:
            return None
        try:
            completed = subprocess.run(
                list(command),
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=30,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Could not query {command[0]}: {e}")
            return None
        if completed.returncode != 0:
            return None
        return completed.stdout.strip() or None
