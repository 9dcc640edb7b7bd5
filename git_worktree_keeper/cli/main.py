"""Command-line interface for git-worktree-keeper"""

import argparse
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape

from git_worktree_keeper.config import ConfigResolver, default_config_dir
from git_worktree_keeper.constants import PLUGIN_STATE_FILE_NAME
from git_worktree_keeper.exceptions import GitWorktreeKeeperError
from git_worktree_keeper.models.plugin import SetupOptions
from git_worktree_keeper.models.worktree import Worktree
from git_worktree_keeper.plugins.catalog import PLUGIN_TYPES, PluginCatalog
from git_worktree_keeper.plugins.dispatcher import PluginDispatcher
from git_worktree_keeper.services.display_service import DisplayService
from git_worktree_keeper.services.git.worktrees import WorktreeRegistry
from git_worktree_keeper.services.plugin_state import PluginStateStore
from git_worktree_keeper.services.removal_guard import RemovalGuard
from git_worktree_keeper.utils.logging import get_logger, setup_logging

from .args import parse_args

console = Console()
logger = get_logger(__name__)


def confirm_in_terminal(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but y/yes (or EOF) is no."""
    try:
        answer = console.input(escape(f"{prompt} [y/N] "))
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


class CommandContext:
    """Services shared by the subcommands of one invocation."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.config_dir = Path(args.config_dir).expanduser() if args.config_dir else default_config_dir()
        self.resolver = ConfigResolver.from_config_dir(self.config_dir)
        self.plugin_state = PluginStateStore(
            self.config_dir / PLUGIN_STATE_FILE_NAME,
            [plugin_type.id for plugin_type in PLUGIN_TYPES],
        )
        self.catalog = PluginCatalog.default(self.plugin_state.load())
        self.dispatcher = PluginDispatcher(self.catalog)
        self.display = DisplayService(verbose=args.verbose)
        self._registry: Optional[WorktreeRegistry] = None

    @property
    def registry(self) -> WorktreeRegistry:
        if self._registry is None:
            self._registry = WorktreeRegistry(os.getcwd())
        return self._registry

    def reference_for(self, directory: str, reference: Optional[str] = None) -> Optional[Path]:
        """Reference worktree for ``directory``: the explicit one, else the main/master worktree."""
        if reference:
            return Path(reference).expanduser().resolve()

        try:
            candidate = WorktreeRegistry(directory).default_reference()
        except GitWorktreeKeeperError as e:
            logger.info(f"No reference worktree for {directory}: {e}")
            return None

        if candidate is None or candidate.path == os.path.realpath(directory):
            return None
        return Path(candidate.path)


def cmd_add(ctx: CommandContext) -> int:
    args = ctx.args
    worktree = ctx.registry.add(args.branch, base_branch=args.base_branch, path=args.path)
    console.print(f"[green]✓ Created worktree for {escape(args.branch)} at {escape(worktree.path)}[/green]")

    auto_setup = ctx.resolver.resolve("auto_setup", args.auto_setup)
    if not auto_setup.value:
        logger.debug("Auto-setup disabled")
        return 0

    options = SetupOptions(reference_dir=ctx.reference_for(worktree.path, args.reference))
    reports = ctx.dispatcher.auto_setup(worktree.path, options)
    if not reports:
        console.print("[dim]No enabled plugin applies to the new worktree[/dim]")
    ctx.display.display_setup_reports(reports)
    return 0


def cmd_remove(ctx: CommandContext) -> int:
    def cleanup(worktree: Worktree) -> Callable[[], None]:
        return ctx.dispatcher.cleanup_for_removal(worktree.path)

    guard = RemovalGuard(ctx.registry, confirm_in_terminal, pre_remove=cleanup)
    result = guard.remove(ctx.args.worktree, force=ctx.args.force)
    ctx.display.display_removal_result(result)
    return result.exit_code


def cmd_status(ctx: CommandContext) -> int:
    worktrees = ctx.registry.list()
    ctx.display.display_worktree_table(worktrees)
    return 0


def cmd_plugin(ctx: CommandContext) -> int:
    args = ctx.args
    action = args.plugin_command

    if action == "enable":
        if ctx.plugin_state.enable(args.plugin_id):
            console.print(f"[green]✓ Enabled plugin {escape(args.plugin_id)}[/green]")
        else:
            console.print(f"Plugin {escape(args.plugin_id)} is already enabled")
    elif action == "disable":
        if ctx.plugin_state.disable(args.plugin_id):
            console.print(f"[green]✓ Disabled plugin {escape(args.plugin_id)}[/green]")
        else:
            console.print(f"Plugin {escape(args.plugin_id)} is not enabled")
    elif action == "list-available":
        ctx.display.display_plugins(ctx.catalog)
    elif action == "list-enabled":
        ctx.display.display_plugins(ctx.catalog, enabled_only=True)
    elif action == "list-status":
        console.print(f"Plugin status for {escape(os.path.abspath(args.directory))}:")
        ctx.display.display_plugin_status(ctx.dispatcher.list_all_status(args.directory), ctx.catalog)
    elif action == "auto-setup":
        options = SetupOptions(reference_dir=ctx.reference_for(args.directory, args.reference))
        reports = ctx.dispatcher.auto_setup(args.directory, options)
        if not reports:
            console.print("[dim]No enabled plugin applies to this directory[/dim]")
        ctx.display.display_setup_reports(reports)
    elif action == "setup":
        options = SetupOptions(reference_dir=ctx.reference_for(args.directory, args.reference))
        report = ctx.dispatcher.setup_worktree(args.directory, args.plugin_id, options)
        ctx.display.display_setup_reports([report])
    elif action == "cleanup":
        removed = ctx.dispatcher.cleanup(args.directory)
        paths = [path for paths in removed.values() for path in paths]
        for path in paths:
            console.print(f"Removed {escape(str(path))}")
        if not paths:
            console.print("[dim]Nothing to clean up[/dim]")
    return 0


COMMANDS = {
    "add": cmd_add,
    "remove": cmd_remove,
    "status": cmd_status,
    "plugin": cmd_plugin,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)

    try:
        # Setup logging before creating any service
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        if parsed_args.debug:
            console.print("[yellow]Debug mode enabled[/yellow]")

        ctx = CommandContext(parsed_args)
        return COMMANDS[parsed_args.command](ctx)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except GitWorktreeKeeperError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
