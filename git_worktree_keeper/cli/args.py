"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from typing import List, Optional

from git_worktree_keeper.__version__ import __version__


def _add_reference_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--reference",
        metavar="DIR",
        help="Worktree to share dependencies from (default: the main/master worktree)",
    )


def _build_plugin_parser(subparsers) -> None:
    plugin = subparsers.add_parser("plugin", help="Manage ecosystem plugins")
    actions = plugin.add_subparsers(dest="plugin_command", metavar="ACTION")
    actions.required = True

    enable = actions.add_parser("enable", help="Enable a plugin")
    enable.add_argument("plugin_id", help="Plugin id (see list-available)")

    disable = actions.add_parser("disable", help="Disable a plugin")
    disable.add_argument("plugin_id", help="Plugin id (see list-enabled)")

    actions.add_parser("list-available", help="List every known plugin")
    actions.add_parser("list-enabled", help="List enabled plugins")

    status = actions.add_parser("list-status", help="Show plugin status for a directory")
    status.add_argument("directory", help="Worktree directory")

    auto = actions.add_parser("auto-setup", help="Set up every detected enabled plugin")
    auto.add_argument("directory", help="Worktree directory")
    _add_reference_argument(auto)

    setup = actions.add_parser("setup", help="Set up one plugin")
    setup.add_argument("plugin_id", help="Plugin id")
    setup.add_argument("directory", help="Worktree directory")
    _add_reference_argument(setup)

    cleanup = actions.add_parser("cleanup", help="Clean up every detected enabled plugin")
    cleanup.add_argument("directory", help="Worktree directory")


def build_parser() -> argparse.ArgumentParser:
    """Build the ``git-wt`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="git-wt",
        description="Safe git worktree management with dependency sharing plugins",
        epilog="Config: $XDG_CONFIG_HOME/git-worktree-keeper/config.yaml (auto_setup: true|false)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")
    parser.add_argument(
        "--config-dir",
        metavar="DIR",
        help="Configuration directory (default: $XDG_CONFIG_HOME/git-worktree-keeper)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    add = subparsers.add_parser("add", help="Create a worktree for a branch")
    add.add_argument("branch", help="Branch to check out (created if it does not exist)")
    add.add_argument("base_branch", nargs="?", help="Start point for a new branch")
    add.add_argument("--path", help="Worktree directory (default: sibling of the main worktree)")
    add.add_argument(
        "--auto-setup",
        dest="auto_setup",
        action="store_true",
        default=None,
        help="Run plugin setup in the new worktree",
    )
    add.add_argument(
        "--no-auto-setup",
        dest="auto_setup",
        action="store_false",
        help="Skip plugin setup even if enabled in the config file",
    )
    _add_reference_argument(add)

    remove = subparsers.add_parser("remove", help="Remove a worktree")
    remove.add_argument("worktree", help="Worktree directory name, branch or path")
    remove.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Remove even with uncommitted changes (asks for confirmation)",
    )

    subparsers.add_parser("status", help="Show all worktrees")

    _build_plugin_parser(subparsers)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
