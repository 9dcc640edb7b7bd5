"""Display service for worktree and plugin information"""
from typing import Iterable, List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_worktree_keeper.constants import WORKTREE_COLUMNS
from git_worktree_keeper.exceptions import AmbiguousWorktreeError, WorktreeNotFoundError
from git_worktree_keeper.formatters import (
    format_dependency_state,
    format_dirty_state,
    format_share,
    format_worktree_name,
)
from git_worktree_keeper.models.plugin import PluginStatus, SetupReport
from git_worktree_keeper.models.worktree import Worktree
from git_worktree_keeper.plugins.catalog import PluginCatalog
from git_worktree_keeper.services.removal_guard import RemovalResult

console = Console()


class DisplayService:
    def __init__(self, verbose: bool = False):
        """Initialize the display service.

        Args:
            verbose: Show full commit hashes and plugin marker files
        """
        self.verbose = verbose

    def display_worktree_table(self, worktrees: List[Worktree]) -> None:
        """Display a table of worktrees."""
        table = Table()
        for col in WORKTREE_COLUMNS:
            table.add_column(col.label, min_width=col.width or None)

        for wt in worktrees:
            # Match WORKTREE_COLUMNS order: Worktree, Branch, HEAD, State, Path
            table.add_row(
                format_worktree_name(wt),
                escape(wt.branch) if wt.branch else "(detached)",
                wt.head_commit if self.verbose else wt.head_commit[:7],
                format_dirty_state(wt.dirty_state),
                escape(wt.path),
                style="bold" if wt.is_current else None,
            )

        console.print(table)

    def display_plugins(self, catalog: PluginCatalog, enabled_only: bool = False) -> None:
        plugins = catalog.enabled() if enabled_only else catalog.available()
        console.print("Enabled plugins:" if enabled_only else "Available plugins:")
        if not plugins:
            console.print("  (none)")
        for plugin in plugins:
            marker = "[green]✓[/green]" if catalog.is_enabled(plugin.id) else " "
            capabilities = ", ".join(sorted(c.value for c in plugin.capabilities))
            console.print(f"  {marker} {plugin.id} ({plugin.display_name}: {capabilities})")
            if self.verbose:
                console.print(f"      detects: {', '.join(plugin.marker_files)}")

    def display_plugin_status(self, statuses: Iterable[PluginStatus], catalog: PluginCatalog) -> None:
        statuses = list(statuses)
        if not statuses:
            console.print("[dim]No enabled plugin applies to this directory[/dim]")
            return

        for status in statuses:
            plugin = catalog.get(status.plugin_id)
            console.print(f"  [bold]{plugin.display_name} Project[/bold]")
            console.print(f"    Name: {escape(str(status.project_name))}")
            console.print(f"    Version: {escape(str(status.project_version))}")
            console.print(f"    Package Manager: {status.package_manager}")
            console.print(f"    Dependencies: {format_dependency_state(status.dependency_state)}")
            console.print(f"    {plugin.display_name} Version: {escape(str(status.ecosystem_version))}")
            for key, value in status.details.items():
                console.print(f"    {key.capitalize()}: {escape(str(value))}")

    def display_setup_reports(self, reports: Iterable[SetupReport]) -> None:
        for report in reports:
            if report.share is not None:
                style = "green" if report.share.shared else "yellow"
                console.print(f"[{style}]{escape(format_share(report.share))}[/{style}]")
            if report.installed_with:
                console.print(f"[green]✓ Installed dependencies with {report.installed_with}[/green]")
            if report.error:
                console.print(f"[yellow]⚠️  {escape(str(report.error))} (worktree kept)[/yellow]")
            console.print(f"Project: {escape(str(report.project))}")

    def display_removal_result(self, result: RemovalResult) -> None:
        if result.removed:
            console.print(f"[green]✓ Removed worktree at {escape(result.worktree.path)}[/green]")
            return

        console.print(f"[red]Error: {escape(str(result.error))}[/red]")
        if isinstance(result.error, AmbiguousWorktreeError):
            console.print("Matching worktrees:")
            for wt in result.error.matches:
                console.print(f"  • {escape(wt.path)} ({escape(wt.branch or 'detached')})")
        elif isinstance(result.error, WorktreeNotFoundError):
            console.print("Available worktrees:")
            for wt in result.error.worktrees:
                console.print(f"  • {escape(wt.name)} ({escape(wt.branch or 'detached')})")
